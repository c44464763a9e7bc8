"""
Certificate attachment routes.

One URL handles every method: upload (POST), delete (DELETE),
download (GET ?file=...) and CORS preflight (OPTIONS).
"""
from flask import Blueprint, request, jsonify, current_app, send_file
from certificate_service.services.storage_service import (
    get_storage_service, stream_size, StorageError, CertificateNotFoundError
)
from certificate_service.utils.validators import (
    validate_file_size, validate_content_type, validate_content_signature,
    ValidationError, SIGNATURE_SAMPLE_BYTES
)

bp = Blueprint('certificates', __name__, url_prefix='/api/certificates')

ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS', 'TRACE', 'CONNECT']


def _failure(message: str, status: int = 200):
    return jsonify({'success': False, 'error': message}), status


@bp.route('/upload', methods=ALL_METHODS)
def certificate_endpoint():
    """Dispatch on request method."""
    if request.method == 'OPTIONS':
        return preflight()
    if request.method == 'POST' and 'file' in request.files:
        return store_certificate()
    if request.method == 'DELETE':
        return delete_certificate()
    if request.method == 'GET' and 'file' in request.args:
        return download_certificate()
    return _failure('Invalid request')


def preflight():
    """Acknowledge a CORS preflight with an empty body."""
    return current_app.response_class(status=200, mimetype='application/json')


def store_certificate():
    """
    Store an uploaded certificate.

    Expected form data:
        - file: File object
        - personId: Person the certificate belongs to (optional)
        - competencyId: Competency it proves (optional)

    Returns:
        {
            "success": true,
            "filename": "42_7_1700000000.pdf",
            "originalName": "cert.pdf",
            "url": "/uploads/certificates/42_7_1700000000.pdf",
            "size": 1024
        }
    """
    file = request.files['file']
    try:
        size_bytes = stream_size(file)
        validate_file_size(size_bytes, current_app.config['MAX_CERTIFICATE_SIZE_BYTES'])
        validate_content_type(file.mimetype, current_app.config['ALLOWED_CERTIFICATE_TYPES'])

        if current_app.config.get('VERIFY_CONTENT_SIGNATURE'):
            sample = file.stream.read(SIGNATURE_SAMPLE_BYTES)
            file.stream.seek(0)
            validate_content_signature(sample, file.mimetype)

        storage = get_storage_service(current_app)
        result = storage.save(
            file,
            person_id=request.form.get('personId'),
            competency_id=request.form.get('competencyId')
        )
        return jsonify({'success': True, **result}), 200

    except ValidationError as e:
        current_app.logger.warning(
            f"Rejected certificate upload '{file.filename}' ({file.mimetype}): {e}"
        )
        return _failure(str(e))
    except StorageError as e:
        return _failure(str(e))


def delete_certificate():
    """
    Delete a stored certificate.

    Expected JSON body:
        {"filename": "42_7_1700000000.pdf"}
    """
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        data = {}
    filename = data.get('filename') or ''
    if not isinstance(filename, str):
        filename = ''

    try:
        storage = get_storage_service(current_app)
        storage.delete(filename)
        return jsonify({'success': True}), 200
    except StorageError as e:
        return _failure(str(e))


def download_certificate():
    """Stream a stored certificate back as a download."""
    try:
        storage = get_storage_service(current_app)
        path = storage.resolve(request.args.get('file', ''))
    except CertificateNotFoundError as e:
        return _failure(str(e), 404)

    return send_file(
        path,
        mimetype='application/octet-stream',
        as_attachment=True,
        download_name=path.name
    )
