"""
Flask application factory.
"""
from flask import Flask, jsonify, request
import logging


def create_app(config_name=None, overrides=None):
    """
    Create and configure Flask application.

    Args:
        config_name: Configuration name ('development', 'production', 'testing')
        overrides: Optional mapping applied on top of the configuration class

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    # Load configuration
    from certificate_service.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO if not app.config['DEBUG'] else logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Validate storage configuration (warn if unusable, don't fail)
    try:
        from certificate_service.config import Config
        Config.validate_storage_config(app.config.get('UPLOAD_FOLDER'))
        app.logger.info(f"Certificate storage at {app.config['UPLOAD_FOLDER']}")
    except ValueError as e:
        app.logger.warning(f"Storage configuration warning: {e}")

    # Register blueprints
    from certificate_service.routes import attachments, uploads

    app.register_blueprint(attachments.bp)
    if app.config.get('SERVE_UPLOADS', False):
        app.register_blueprint(
            uploads.bp,
            url_prefix=app.config['CERTIFICATE_URL_PREFIX'].rstrip('/')
        )

    app.logger.info("All blueprints registered")

    # CORS headers on every response
    @app.after_request
    def add_cors_headers(response):
        response.headers['Access-Control-Allow-Origin'] = app.config['CORS_ALLOWED_ORIGIN']
        response.headers['Access-Control-Allow-Methods'] = app.config['CORS_ALLOWED_METHODS']
        response.headers['Access-Control-Allow-Headers'] = app.config['CORS_ALLOWED_HEADERS']
        return response

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Invalid request'}), 405

    @app.errorhandler(413)
    def request_too_large(error):
        # Uploads over the body cap are reported like any other oversized file
        if request.blueprint == 'certificates' and request.method == 'POST':
            max_mb = app.config['MAX_CERTIFICATE_SIZE_BYTES'] // (1024 * 1024)
            return jsonify({'success': False, 'error': f'File too large. Max {max_mb}MB'}), 200
        return jsonify({'success': False, 'error': 'Request too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal error: {error}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {
            'status': 'healthy',
            'app': 'Certificate Attachment Service',
            'version': '1.0.0'
        }, 200

    app.logger.info(f"Flask app created successfully in {app.config.get('FLASK_ENV', 'development')} mode")

    return app
