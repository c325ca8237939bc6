"""Flask application factory."""
import os
import logging

from flask import Flask, jsonify, request
from quotedesk.database import init_db


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not app.config.get('TESTING'):
        logging.basicConfig(
            level=logging.DEBUG if app.config.get('DEBUG') else logging.INFO,
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            environment=app.config.get('ENV', 'production'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    init_db(app)

    from quotedesk.middleware import load_current_user

    @app.before_request
    def before_request_handler():
        """Load the acting user for each request."""
        load_current_user()

    # Error Handlers
    from quotedesk.exceptions import QuoteDeskError

    @app.errorhandler(QuoteDeskError)
    def handle_app_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"QuoteDeskError [{error.status_code}]: {error.message}")
        else:
            app.logger.info(f"QuoteDeskError [{error.status_code}] {request.path}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'status': 'error', 'message': 'Not Found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'status': 'error', 'message': 'Method Not Allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal Server Error'}), 500

    # Register blueprints
    from quotedesk.blueprints.offers import offers_bp
    from quotedesk.blueprints.pricing import pricing_bp
    from quotedesk.blueprints.clients import clients_bp
    from quotedesk.blueprints.reports import reports_bp

    app.register_blueprint(offers_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(reports_bp)

    # Register CLI commands
    from quotedesk.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
