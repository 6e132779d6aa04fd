"""
RouterHub Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (test or env-based), init the database.
  • Register blueprints: auth (/auth), main (/), api (/api), relay (/v1).
  • Record per-request Prometheus metrics.
  • Register global JSON error handlers.
  • Register the import-blogs / import-docs CLI commands.
"""

import time
from flask import Flask, g, request
from .models import db
from .routes import auth_bp, main_bp, api_bp, relay_bp
from .config import Config
from .utils.prom_metrics import observe_request


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__)

    # Configuration
    if test_config:
        # Use test configuration if provided
        app.config.update(test_config)
    else:
        # Use environment-based configuration
        app.config.from_object(Config())

    # Initialize extensions
    db.init_app(app)

    # Register blueprints
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(relay_bp)

    @app.before_request
    def start_timer():
        g.request_started_at = time.time()

    @app.after_request
    def record_request(response):
        started_at = getattr(g, 'request_started_at', None)
        if started_at is not None:
            endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
            observe_request(endpoint, response.status_code, time.time() - started_at)
        return response

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    from .commands import register_commands
    register_commands(app)

    return app
