"""
Validation utilities for certificate uploads and inputs.
"""
import re
from typing import Iterable, Optional


class ValidationError(Exception):
    """Validation error exception."""
    pass


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the size limit."""

    def __init__(self, message: str = 'File too large. Max 5MB'):
        super().__init__(message)


class UnsupportedTypeError(ValidationError):
    """Uploaded file type is not in the allow-list."""

    def __init__(self, message: str = 'Invalid file type'):
        super().__init__(message)


# Leading bytes for each allowed type
CONTENT_SIGNATURES = {
    'application/pdf': (b'%PDF-',),
    'image/jpeg': (b'\xff\xd8\xff',),
    'image/jpg': (b'\xff\xd8\xff',),
    'image/png': (b'\x89PNG\r\n\x1a\n',),
    'application/msword': (b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1',),
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document': (
        b'PK\x03\x04', b'PK\x05\x06', b'PK\x07\x08'
    ),
}

SIGNATURE_SAMPLE_BYTES = 8


def validate_file_size(size_bytes: int, max_bytes: int) -> bool:
    """
    Validate file size.

    Args:
        size_bytes: File size in bytes
        max_bytes: Maximum allowed size in bytes (inclusive)

    Returns:
        True if valid

    Raises:
        FileTooLargeError if too large
    """
    if size_bytes > max_bytes:
        raise FileTooLargeError(
            f"File too large. Max {max_bytes // (1024 * 1024)}MB"
        )
    return True


def validate_content_type(content_type: Optional[str], allowed_types: Iterable[str]) -> bool:
    """
    Validate the client-declared MIME type against the allow-list.

    The comparison is exact: the label is trusted as sent.

    Args:
        content_type: MIME type declared by the client
        allowed_types: Allowed MIME types

    Returns:
        True if valid

    Raises:
        UnsupportedTypeError if the type is missing or not allowed
    """
    if not content_type or content_type not in set(allowed_types):
        raise UnsupportedTypeError()
    return True


def validate_content_signature(sample: bytes, content_type: str) -> bool:
    """
    Check that the payload's leading bytes match the declared type.

    Args:
        sample: First bytes of the payload
        content_type: MIME type declared by the client

    Returns:
        True if the signature matches

    Raises:
        UnsupportedTypeError on mismatch or unknown type
    """
    signatures = CONTENT_SIGNATURES.get(content_type)
    if not signatures or not sample.startswith(signatures):
        raise UnsupportedTypeError()
    return True


def final_path_segment(name: Optional[str]) -> str:
    """
    Reduce a client-supplied name to its last path segment.

    Both separators are honoured so Windows-style names are stripped too.
    Returns '' for names that cannot denote a file in the storage directory.
    """
    if not name or '\x00' in name:
        return ''
    segment = re.split(r'[\\/]', name.rstrip('/\\'))[-1]
    if segment in ('.', '..'):
        return ''
    return segment


def file_extension(filename: str) -> str:
    """
    Return the text after the last dot of the file's base name.

    The extension is returned verbatim: no case folding, '' when there is no dot.
    """
    base = final_path_segment(filename)
    if '.' not in base:
        return ''
    return base.rsplit('.', 1)[1]


def sanitize_identifier(value: str) -> str:
    """Replace path separators and NUL bytes in a caller-supplied id."""
    return re.sub(r'[\\/\x00]', '-', value)
