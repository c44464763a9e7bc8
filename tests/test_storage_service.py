"""Tests for the filesystem storage service."""
import io

import pytest
from werkzeug.datastructures import FileStorage

from certificate_service.services import storage_service
from certificate_service.services.storage_service import (
    CertificateStorage, CertificateNotFoundError, DeleteFailedError, UploadFailedError,
    build_certificate_filename, parse_certificate_filename, get_storage_service
)


def _file(payload=b'data', filename='cert.pdf', content_type='application/pdf'):
    return FileStorage(stream=io.BytesIO(payload), filename=filename, content_type=content_type)


@pytest.fixture
def storage(tmp_path):
    return CertificateStorage(tmp_path / 'a' / 'b' / 'certs')


class TestBuildFilename:

    def test_pattern(self):
        assert build_certificate_filename('42', '7', 'cert.pdf', 1700000000) == '42_7_1700000000.pdf'

    def test_none_ids_become_unknown(self):
        assert build_certificate_filename(None, None, 'a.png', 1) == 'unknown_unknown_1.png'

    def test_empty_ids_are_kept(self):
        assert build_certificate_filename('', '', 'a.png', 1) == '__1.png'

    def test_last_extension_only(self):
        assert build_certificate_filename('1', '2', 'scan.tar.gz', 5) == '1_2_5.gz'

    def test_no_extension(self):
        assert build_certificate_filename('1', '2', 'scan', 5) == '1_2_5.'


class TestParseFilename:

    def test_parses_synthesized_name(self):
        assert parse_certificate_filename('42_7_1700000000.pdf') == {
            'person_id': '42',
            'competency_id': '7',
            'timestamp': 1700000000,
            'extension': 'pdf'
        }

    def test_person_id_with_underscore(self):
        parts = parse_certificate_filename('emp_42_7_10.docx')

        assert parts['person_id'] == 'emp_42'
        assert parts['competency_id'] == '7'

    def test_empty_extension(self):
        assert parse_certificate_filename('1_2_3.')['extension'] == ''

    def test_foreign_names_rejected(self):
        assert parse_certificate_filename('readme.txt') is None
        assert parse_certificate_filename('1_2_abc.pdf') is None


class TestCertificateStorage:

    def test_ensure_directory_creates_parents(self, storage):
        assert not storage.upload_folder.exists()

        storage.ensure_directory()

        assert storage.upload_folder.is_dir()

    def test_save_and_resolve(self, storage, monkeypatch):
        monkeypatch.setattr(storage_service, '_current_timestamp', lambda: 99)

        result = storage.save(_file(b'hello'), person_id='p', competency_id='c')

        assert result == {
            'filename': 'p_c_99.pdf',
            'originalName': 'cert.pdf',
            'url': '/uploads/certificates/p_c_99.pdf',
            'size': 5
        }
        assert storage.resolve('p_c_99.pdf').read_bytes() == b'hello'

    def test_original_name_reduced_to_base_name(self, storage, monkeypatch):
        monkeypatch.setattr(storage_service, '_current_timestamp', lambda: 1)

        result = storage.save(_file(filename='C:\\Users\\me\\cert.PDF'), person_id='p', competency_id='c')

        assert result['originalName'] == 'cert.PDF'
        assert result['filename'] == 'p_c_1.PDF'

    def test_save_failure_raises_upload_failed(self, tmp_path):
        blocker = tmp_path / 'not-a-dir'
        blocker.write_text('file in the way')
        storage = CertificateStorage(blocker / 'certs')

        with pytest.raises(UploadFailedError) as exc_info:
            storage.save(_file(), person_id='p', competency_id='c')

        assert str(exc_info.value) == 'Upload failed'

    def test_delete(self, storage):
        storage.ensure_directory()
        (storage.upload_folder / 'x_y_1.pdf').write_bytes(b'1')

        assert storage.delete('x_y_1.pdf') is True
        with pytest.raises(CertificateNotFoundError):
            storage.delete('x_y_1.pdf')

    def test_delete_directory_entry_fails(self, storage):
        (storage.ensure_directory() / 'subdir').mkdir()

        with pytest.raises(DeleteFailedError) as exc_info:
            storage.delete('subdir')

        assert str(exc_info.value) == 'Delete failed'

    def test_resolve_rejects_directories(self, storage):
        (storage.ensure_directory() / 'subdir').mkdir()

        with pytest.raises(CertificateNotFoundError):
            storage.resolve('subdir')

    def test_path_for_stays_inside(self, storage):
        assert storage.path_for('../../etc/passwd') == storage.upload_folder / 'passwd'
        assert storage.path_for('..') is None
        assert storage.path_for('') is None

    def test_list_certificates(self, storage):
        folder = storage.ensure_directory()
        for name in ('42_7_20.pdf', '42_8_10.png', '43_7_5.pdf', 'notes.txt'):
            (folder / name).write_bytes(b'12')
        (folder / '42_9_1.pdf').mkdir()

        assert [r['filename'] for r in storage.list_certificates()] == [
            '43_7_5.pdf', '42_8_10.png', '42_7_20.pdf'
        ]
        assert [r['filename'] for r in storage.list_certificates(person_id='42')] == [
            '42_8_10.png', '42_7_20.pdf'
        ]
        records = storage.list_certificates(person_id='42', competency_id='7')
        assert records == [{
            'person_id': '42',
            'competency_id': '7',
            'timestamp': 20,
            'extension': 'pdf',
            'filename': '42_7_20.pdf',
            'size': 2,
            'url': '/uploads/certificates/42_7_20.pdf'
        }]


def test_get_storage_service_from_app(app, upload_dir):
    storage = get_storage_service(app)

    assert storage.upload_folder == upload_dir
    assert storage.url_prefix == '/uploads/certificates/'


def test_get_storage_service_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv('CERTIFICATE_UPLOAD_DIR', str(tmp_path))
    monkeypatch.setenv('CERTIFICATE_URL_PREFIX', '/files/')

    storage = get_storage_service()

    assert storage.upload_folder == tmp_path
    assert storage.url_for('a.pdf') == '/files/a.pdf'


def test_unavailable_directory_maps_to_not_found(tmp_path):
    blocker = tmp_path / 'not-a-dir'
    blocker.write_text('file in the way')
    storage = CertificateStorage(blocker / 'certs')

    with pytest.raises(CertificateNotFoundError):
        storage.resolve('a.pdf')
    with pytest.raises(CertificateNotFoundError):
        storage.delete('a.pdf')
