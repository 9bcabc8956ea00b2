# app.py
"""
Flask Application Factory for the Contact Relay service

Wires the request pipeline for contact form submissions:
- Origin allow-list check (before any other hook)
- Fixed-window rate limiting per client address
- Field validation and sanitization
- Single-shot SMTP dispatch through the mail relay
- JSON error handling, security headers and structured logging
"""

import logging
import logging.handlers
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, Response, request, jsonify, g
from flask.logging import default_handler
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from api.contact import contact_bp
from config import get_config_class, load_environment
from core.context import ContactContext
from core.errors import OriginRejectedError, ValidationFailedError
from core.mail_relay import MailRelay
from core.transport import MailTransport, SMTPTransport, TransportProbe
from middleware.security import enforce_allowed_origin, security_headers

READINESS_TEXT = 'Contact form API is running!'
LOG_HANDLER_NAME = 'contact-relay'


def setup_logging(app: Flask) -> None:
    """
    Configure logging for the service

    Module loggers (core.*, api.*, middleware.*) and the Flask app logger all
    end up on the same handlers: stderr always, plus a rotating file when
    LOG_FILE is set.
    """
    app.logger.removeHandler(default_handler)

    formatter = logging.Formatter(
        fmt='%(asctime)s %(name)-20s %(levelname)-8s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    log_level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    app.logger.setLevel(log_level)

    # Drop handlers from a previous factory call in the same process
    for handler in list(root.handlers):
        if handler.get_name() and handler.get_name().startswith(LOG_HANDLER_NAME):
            root.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.set_name(LOG_HANDLER_NAME)
    stream_handler.setFormatter(formatter)
    stream_handler.setLevel(log_level)
    root.addHandler(stream_handler)

    log_file = app.config.get('LOG_FILE')
    if log_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.set_name(f'{LOG_HANDLER_NAME}-file')
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root.addHandler(file_handler)

    if not app.debug:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)


def build_contact_context(app: Flask, transport: Optional[MailTransport] = None) -> ContactContext:
    """Create the process-scoped allow-list, transport, relay and probe"""
    if transport is None:
        transport = SMTPTransport.from_config(app.config)

    recipient = app.config.get('EMAIL_TO') or app.config.get('EMAIL_USER')
    if not app.config.get('EMAIL_TO'):
        app.logger.warning(f"EMAIL_TO is not set, delivering to EMAIL_USER ({recipient or 'unset'})")

    relay = MailRelay(
        transport=transport,
        operator_address=app.config.get('EMAIL_USER', ''),
        recipient=recipient,
    )

    return ContactContext(
        allowed_origins=tuple(app.config.get('CORS_ORIGINS', ())),
        transport=transport,
        relay=relay,
        probe=TransportProbe(transport),
    )


def configure_security(app: Flask, context: ContactContext) -> Limiter:
    """
    Configure the origin gate, CORS headers and rate limiting

    Returns:
        The Limiter instance bound to this app
    """
    # Must be registered before Limiter.init_app so it runs first
    app.before_request(enforce_allowed_origin)

    CORS(app,
         origins=list(context.allowed_origins),
         methods=['GET', 'POST'],
         supports_credentials=True)

    limiter = Limiter(
        key_func=get_remote_address,
        storage_uri=app.config['RATELIMIT_STORAGE_URI'],
        strategy=app.config['RATELIMIT_STRATEGY'],
        headers_enabled=app.config.get('RATELIMIT_HEADERS_ENABLED', True),
    )
    limiter.init_app(app)

    limiter.limit(
        app.config['CONTACT_RATE_LIMIT'],
        methods=['POST'],
        error_message=app.config['CONTACT_RATE_LIMIT_MESSAGE'],
    )(contact_bp)

    app.logger.info(f"Security configured: {len(context.allowed_origins)} allowed origin(s), "
                    f"limit {app.config['CONTACT_RATE_LIMIT']}")
    return limiter


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(contact_bp)


def configure_error_handlers(app: Flask) -> None:
    """
    Map pipeline failures and HTTP errors to JSON responses
    """
    @app.errorhandler(OriginRejectedError)
    def origin_rejected(error):
        return jsonify({'message': 'Not allowed by CORS'}), error.status_code

    @app.errorhandler(ValidationFailedError)
    def validation_failed(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        app.logger.warning(f"Bad request from {request.remote_addr}: {error}")
        return jsonify({'message': 'Invalid request format or parameters'}), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'message': 'The requested resource was not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'message': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        app.logger.warning(f"Oversized request body from {request.remote_addr}")
        return jsonify({'message': 'Request body too large'}), 413

    @app.errorhandler(429)
    def rate_limit_exceeded(error):
        app.logger.warning(f"Rate limit exceeded for {request.remote_addr}")
        message = getattr(error, 'description', None) or app.config['CONTACT_RATE_LIMIT_MESSAGE']
        return Response(message, status=429, mimetype='text/plain')

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f"Internal server error: {error}", exc_info=True)
        return jsonify({'message': 'Internal server error. Please try again later.'}), 500

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Handle unexpected exceptions"""
        if isinstance(e, HTTPException):
            return e

        app.logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({'message': 'Internal server error. Please try again later.'}), 500


def configure_health_checks(app: Flask, context: ContactContext) -> None:
    """
    Readiness and health endpoints (not rate limited)
    """
    @app.route('/')
    def index():
        return Response(READINESS_TEXT, mimetype='text/plain')

    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': app.config.get('VERSION', '1.0.0'),
            'transport': context.probe.state,
        })


def configure_request_middleware(app: Flask) -> None:
    @app.before_request
    def before_request():
        g.start_time = datetime.now(timezone.utc)

    @app.after_request
    def after_request(response):
        response = security_headers(response)

        if hasattr(g, 'start_time'):
            duration = (datetime.now(timezone.utc) - g.start_time).total_seconds() * 1000
            if duration > app.config.get('SLOW_REQUEST_THRESHOLD', 5000):
                app.logger.warning(f"Slow request ({duration:.0f}ms): {request.method} {request.path}")

        return response


def create_app(config_name: str = None, transport: Optional[MailTransport] = None, **overrides) -> Flask:
    """
    Flask application factory

    Args:
        config_name: Configuration environment ('development', 'testing', 'production');
            defaults to APP_ENV
        transport: Mail transport to use instead of SMTP (tests pass a fake)
        **overrides: Extra config values applied last

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    config_class = get_config_class(config_name)
    app.config.from_object(config_class)
    if not app.config['TESTING']:
        app.config.update(load_environment())
    app.config.update(overrides)

    if app.config.get('PROXY_FIX_COUNT'):
        count = app.config['PROXY_FIX_COUNT']
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=count, x_proto=count, x_host=count)

    setup_logging(app)
    app.logger.info(f"Starting Contact Relay in {config_class.ENV_NAME} mode")

    context = build_contact_context(app, transport)
    app.contact_context = context

    # Order matters: origin gate, then rate limiter, then request timing
    app.limiter = configure_security(app, context)
    configure_request_middleware(app)
    register_blueprints(app)
    configure_error_handlers(app)
    configure_health_checks(app, context)

    if app.config.get('EMAIL_VERIFY_ON_STARTUP', True):
        context.probe.start()
    else:
        context.probe.skip()

    app.logger.info("Flask application factory completed successfully")
    return app


def main() -> None:
    load_dotenv()
    app = create_app()
    port = app.config['PORT']
    app.logger.info(f"Server running on port {port}")
    app.run(host=app.config['HOST'], port=port, threaded=True)


if __name__ == '__main__':
    main()
