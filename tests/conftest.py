"""Shared fixtures for the certificate service tests."""
import io

import pytest

from certificate_service import create_app
from certificate_service.services import storage_service

FROZEN_TIMESTAMP = 1700000000
UPLOAD_URL = '/api/certificates/upload'


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / 'uploads' / 'certificates'


@pytest.fixture
def app(upload_dir):
    app = create_app('testing', overrides={'UPLOAD_FOLDER': upload_dir})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def frozen_clock(monkeypatch):
    monkeypatch.setattr(storage_service, '_current_timestamp', lambda: FROZEN_TIMESTAMP)
    return FROZEN_TIMESTAMP


def upload(client, payload=b'%PDF-1.4 test', filename='cert.pdf',
           content_type='application/pdf', **fields):
    """POST a multipart upload and return the response."""
    data = {'file': (io.BytesIO(payload), filename, content_type)}
    data.update(fields)
    return client.post(UPLOAD_URL, data=data, content_type='multipart/form-data')
