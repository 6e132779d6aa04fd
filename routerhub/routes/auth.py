"""
Authentication Routes

FLOW OVERVIEW
- /auth/signin [POST]
  • Validate email → find or create the user (signup bonus, invite code)
    → optionally apply an invite code → set session.
- /auth/signout [POST]
  • Clear session.
- /auth/session [GET]
  • Current user plus isAdmin, or user None when signed out.
"""

from flask import Blueprint, current_app
from ..models import User
from ..utils.api_utils import request_validator, response_formatter
from ..utils.auth_utils import login_user, logout_user, get_current_user, is_admin
from ..utils.invitations import create_user, apply_invite_code, InvitationError
from ..utils.validators import validate_email

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/signin', methods=['POST'])
def signin():
    """Sign a user in by email, creating the account on first visit"""
    client_ip = request_validator.get_client_ip()
    is_valid_json, data, json_error = request_validator.validate_json_request(client_ip)
    if not is_valid_json:
        return response_formatter.failure(json_error['error'], 400)

    email_result = validate_email(data.get('email'))
    if not email_result.is_valid:
        return response_formatter.failure(email_result.error_message, 400)

    try:
        user = User.get_by_email(email_result.sanitized_value)
        created = user is None
        if created:
            user = create_user(email_result.sanitized_value, name=data.get('name'), image=data.get('image'))
    except Exception as e:
        current_app.logger.error(f"Sign-in failed for {email_result.sanitized_value}: {str(e)}", exc_info=True)
        return response_formatter.failure('Failed to sign in', 500)

    invite_error = None
    invite_code = (data.get('inviteCode') or '').strip()
    if created and invite_code:
        try:
            apply_invite_code(user, invite_code)
        except InvitationError as e:
            invite_error = e.message

    login_user(user)
    current_app.logger.info(f"User {user.id} signed in (new={created})")
    return response_formatter.success(user.to_dict(), 201 if created else 200,
                                      created=created, inviteError=invite_error)


@auth_bp.route('/signout', methods=['POST'])
def signout():
    logout_user()
    return response_formatter.success(None)


@auth_bp.route('/session', methods=['GET'])
def current_session():
    user = get_current_user()
    if user is None:
        return response_formatter.success({'user': None, 'isAdmin': False})
    return response_formatter.success({'user': user.to_dict(), 'isAdmin': is_admin(user.id)})
