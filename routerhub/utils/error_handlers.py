"""
Error Handlers

This module registers JSON error responses for the whole application.
"""

from flask import jsonify


def error_response(message, status_code):
    """Build the standard failure envelope"""
    return jsonify({'success': False, 'error': message}), status_code


def register_error_handlers(app):
    """Register error handlers with the Flask app"""

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('Method not allowed', 405)

    @app.errorhandler(500)
    def internal_error(error):
        from ..models import db
        db.session.rollback()
        return error_response('Internal server error', 500)
