"""
Authentication Utilities

This module contains session helpers and the access decorators used by the routes.
"""

from functools import wraps
from flask import session, jsonify, current_app
from ..models import db, User


def current_user_id():
    return session.get('user_id')


def get_current_user():
    """User stored in the session, or None"""
    user_id = current_user_id()
    if not user_id:
        return None
    return db.session.get(User, user_id)


def login_user(user):
    session.clear()
    session['user_id'] = user.id
    session['user_email'] = user.email
    session.permanent = True


def logout_user():
    session.clear()


def admin_ids():
    raw = current_app.config.get('PROJECT_ADMIN_ID') or ''
    return {value.strip() for value in raw.split(',') if value.strip()}


def is_admin(user_id=None):
    """
    In production only ids listed in PROJECT_ADMIN_ID are admins;
    elsewhere every signed-in user is.
    """
    user_id = user_id or current_user_id()
    if not user_id:
        return False
    if not current_app.config.get('IS_PRODUCTION'):
        return True
    return user_id in admin_ids()


def login_required(f):
    """Decorator to require user login"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'success': False, 'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require an admin session"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'success': False, 'error': 'Unauthorized'}), 401
        if not is_admin():
            return jsonify({'success': False, 'error': 'Forbidden'}), 403
        return f(*args, **kwargs)
    return decorated_function
