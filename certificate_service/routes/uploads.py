"""
Public URL routes for stored certificates.

Serves the `url` returned by an upload when no front web server
maps the storage directory. Disabled unless SERVE_UPLOADS is set.
"""
from flask import Blueprint, jsonify, current_app, send_file
from certificate_service.services.storage_service import (
    get_storage_service, CertificateNotFoundError
)

bp = Blueprint('uploads', __name__)


@bp.route('/<path:filename>')
def serve_certificate(filename):
    """
    Serve a stored certificate as a download.

    The stored extension comes from the client, so the file is never
    rendered inline.
    """
    try:
        path = get_storage_service(current_app).resolve(filename)
    except CertificateNotFoundError as e:
        return jsonify({'success': False, 'error': str(e)}), 404

    response = send_file(
        path,
        mimetype='application/octet-stream',
        as_attachment=True,
        download_name=path.name
    )
    response.headers['X-Content-Type-Options'] = 'nosniff'
    return response
