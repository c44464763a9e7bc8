"""
Local filesystem storage for certificate attachments.

All attachments live in one flat directory. A stored file's name is the only
record of which person and competency it belongs to:

    {person_id}_{competency_id}_{unix_timestamp}.{extension}
"""
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from werkzeug.datastructures import FileStorage

from certificate_service.utils.validators import (
    file_extension, final_path_segment, sanitize_identifier
)

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o755
UNKNOWN_ID = 'unknown'

# Person ids may contain underscores; competency ids are assumed not to.
_FILENAME_PATTERN = re.compile(r'^(?P<person_id>.*)_(?P<competency_id>[^_]*)_(?P<timestamp>\d+)\.(?P<extension>[^.]*)$')


class StorageError(Exception):
    """Base exception for storage errors."""
    pass


class UploadFailedError(StorageError):
    """Payload could not be written to the storage directory."""

    def __init__(self, message: str = 'Upload failed'):
        super().__init__(message)


class CertificateNotFoundError(StorageError):
    """No attachment with the requested name exists."""

    def __init__(self, message: str = 'File not found'):
        super().__init__(message)


class DeleteFailedError(StorageError):
    """Attachment exists but could not be removed."""

    def __init__(self, message: str = 'Delete failed'):
        super().__init__(message)


def _current_timestamp() -> int:
    return int(time.time())


def build_certificate_filename(person_id: Optional[str], competency_id: Optional[str],
                               original_filename: str, timestamp: int) -> str:
    """
    Synthesize the stored name for an upload.

    Args:
        person_id: Caller-supplied person id (None becomes 'unknown')
        competency_id: Caller-supplied competency id (None becomes 'unknown')
        original_filename: Client filename, only its extension is kept
        timestamp: Unix timestamp in seconds

    Returns:
        Filename of the form {person_id}_{competency_id}_{timestamp}.{extension}
    """
    person = sanitize_identifier(UNKNOWN_ID if person_id is None else person_id)
    competency = sanitize_identifier(UNKNOWN_ID if competency_id is None else competency_id)
    extension = file_extension(original_filename)
    return f"{person}_{competency}_{timestamp}.{extension}"


def parse_certificate_filename(filename: str) -> Optional[Dict[str, Any]]:
    """
    Split a synthesized filename back into its parts.

    Returns:
        Dict with person_id, competency_id, timestamp and extension,
        or None if the name does not follow the pattern
    """
    match = _FILENAME_PATTERN.match(filename)
    if not match:
        return None
    parts = match.groupdict()
    parts['timestamp'] = int(parts['timestamp'])
    return parts


class CertificateStorage:
    """Store, look up and remove attachments in a flat directory."""

    def __init__(self, upload_folder, url_prefix: str = '/uploads/certificates/'):
        """Initialize storage rooted at upload_folder."""
        self.upload_folder = Path(upload_folder)
        self.url_prefix = url_prefix

    def ensure_directory(self) -> Path:
        """Create the storage directory (and parents) if it is missing."""
        if not self.upload_folder.exists():
            self.upload_folder.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
            logger.info(f"Created certificate directory {self.upload_folder}")
        return self.upload_folder

    def path_for(self, filename: str) -> Optional[Path]:
        """
        Map a client-supplied name to a path inside the storage directory.

        Only the final path segment of the name is used.

        Returns:
            Path inside the directory, or None if the name reduces to nothing

        Raises:
            CertificateNotFoundError if the storage directory cannot be created
        """
        name = final_path_segment(filename)
        if not name:
            return None
        try:
            folder = self.ensure_directory()
        except OSError as e:
            logger.error(f"Certificate directory {self.upload_folder} unavailable: {e}")
            raise CertificateNotFoundError()
        return folder / name

    def url_for(self, filename: str) -> str:
        return f"{self.url_prefix}{filename}"

    def save(self, file: FileStorage, person_id: Optional[str] = None,
             competency_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Persist an uploaded file under its synthesized name.

        An existing file with the same name is overwritten.

        Args:
            file: Uploaded file from request.files
            person_id: Caller-supplied person id
            competency_id: Caller-supplied competency id

        Returns:
            Dictionary with 'filename', 'originalName', 'url' and 'size'

        Raises:
            UploadFailedError if the file cannot be written
        """
        original_name = final_path_segment(file.filename)
        filename = build_certificate_filename(
            person_id, competency_id, original_name, _current_timestamp()
        )
        size = stream_size(file)

        try:
            target_path = self.ensure_directory() / filename
            file.save(target_path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to store certificate {filename}: {e}")
            raise UploadFailedError()

        logger.info(f"Stored certificate {filename} ({size} bytes)")
        return {
            'filename': filename,
            'originalName': original_name,
            'url': self.url_for(filename),
            'size': size
        }

    def delete(self, filename: str) -> bool:
        """
        Remove an attachment.

        Raises:
            CertificateNotFoundError if the name is empty or no such file exists
            DeleteFailedError if removal fails
        """
        path = self.path_for(filename)
        if path is None or not path.exists():
            raise CertificateNotFoundError()

        try:
            path.unlink()
        except OSError as e:
            logger.error(f"Failed to delete certificate {path.name}: {e}")
            raise DeleteFailedError()

        logger.info(f"Deleted certificate {path.name}")
        return True

    def resolve(self, filename: str) -> Path:
        """
        Locate an existing attachment for download.

        Raises:
            CertificateNotFoundError if no regular file with that name exists
        """
        path = self.path_for(filename)
        if path is None or not path.is_file():
            raise CertificateNotFoundError()
        return path

    def list_certificates(self, person_id: Optional[str] = None,
                          competency_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Scan the directory for attachments, optionally filtered by owner.

        Files whose names do not follow the synthesized pattern are skipped.

        Returns:
            List of dicts with filename, person_id, competency_id, timestamp,
            extension, size and url, oldest first
        """
        records = []
        for entry in self.ensure_directory().iterdir():
            if not entry.is_file():
                continue
            parts = parse_certificate_filename(entry.name)
            if parts is None:
                continue
            if person_id is not None and parts['person_id'] != person_id:
                continue
            if competency_id is not None and parts['competency_id'] != competency_id:
                continue
            parts.update({
                'filename': entry.name,
                'size': entry.stat().st_size,
                'url': self.url_for(entry.name)
            })
            records.append(parts)

        records.sort(key=lambda r: (r['timestamp'], r['filename']))
        return records


def stream_size(file: FileStorage) -> int:
    """Size of an uploaded file in bytes, leaving the stream at the start."""
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def get_storage_service(app=None) -> CertificateStorage:
    """
    Factory function to create CertificateStorage instance.

    Args:
        app: Flask app instance (optional)

    Returns:
        CertificateStorage instance
    """
    if app:
        upload_folder = app.config['UPLOAD_FOLDER']
        url_prefix = app.config.get('CERTIFICATE_URL_PREFIX', '/uploads/certificates/')
    else:
        upload_folder = os.getenv('CERTIFICATE_UPLOAD_DIR', '/var/www/training-system/uploads/certificates')
        url_prefix = os.getenv('CERTIFICATE_URL_PREFIX', '/uploads/certificates/')

    return CertificateStorage(upload_folder, url_prefix)
