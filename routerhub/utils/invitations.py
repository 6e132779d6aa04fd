"""
User provisioning, signup bonus and invite rewards.

FLOW OVERVIEW
- create_user(email, name, image)
  • Insert user + usage allowance + invite code + signup bonus in one transaction.
- create_invite_code_for_user(user)
  • Draw 8-char [a-z0-9] codes until one is unused (10 attempts).
- handle_signup_bonus(user) / handle_invite_reward(inviter, invitee)
  • Adjust balance and append a BalanceTransaction; callers commit.
- apply_invite_code(user, code)
  • Validate the code, link invitee → inviter and pay the reward atomically.
- get_user_invite_stats(user)
  • Code, counts, earnings and the list of invitees.
"""

import logging
from flask import current_app
from ..models import db, User, UserUsage, Invitation, BalanceTransaction
from ..models.utils import generate_invite_code, isoformat

SIGNUP_BONUS = 10000
INVITE_REWARD = 2000
FREE_USER_TOKENS = 10000
INVITE_CODE_ATTEMPTS = 10

logger = logging.getLogger(__name__)


class InvitationError(Exception):
    """Raised when an invite code cannot be issued or applied"""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _setting(name, default):
    try:
        return current_app.config.get(name, default)
    except RuntimeError:
        return default


def _record(user, amount, kind, description, related_id=None):
    balance_before = user.balance or 0
    user.balance = balance_before + amount
    entry = BalanceTransaction(
        user_id=user.id,
        amount=amount,
        type=kind,
        description=description,
        related_id=related_id,
        balance_before=balance_before,
        balance_after=user.balance,
    )
    db.session.add(entry)
    return entry


def create_invite_code_for_user(user):
    """Assign a unique invite code (not committed)"""
    for _ in range(INVITE_CODE_ATTEMPTS):
        code = generate_invite_code()
        if not User.query.filter_by(invite_code=code).first():
            user.invite_code = code
            return code
    raise InvitationError('Failed to generate unique invite code', 500)


def handle_signup_bonus(user):
    """Credit the signup bonus (not committed)"""
    return _record(user, _setting('SIGNUP_BONUS', SIGNUP_BONUS), 'signup_bonus', 'Signup bonus')


def handle_invite_reward(inviter, invitee):
    """
    Pay the inviter for a completed invitation (not committed).

    Returns the Invitation row; the reward transaction references its id.
    """
    reward = _setting('INVITE_REWARD', INVITE_REWARD)
    invitation = Invitation(inviter_id=inviter.id, invitee_id=invitee.id, reward=reward, status='completed')
    db.session.add(invitation)
    db.session.flush()

    inviter.total_earned = (inviter.total_earned or 0) + reward
    inviter.invite_count = (inviter.invite_count or 0) + 1
    _record(inviter, reward, 'invite_reward', f'Invite reward for {invitee.email}', invitation.id)
    return invitation


def create_user(email, name=None, image=None, email_verified=None):
    """Create a user with usage allowance, invite code and signup bonus"""
    user = User(email=email.strip().lower(), name=name, image=image, email_verified=email_verified, balance=0)
    try:
        db.session.add(user)
        db.session.flush()
        db.session.add(UserUsage(
            user_id=user.id,
            used_tokens=0,
            total_tokens=_setting('FREE_USER_TOKENS', FREE_USER_TOKENS),
        ))
        create_invite_code_for_user(user)
        handle_signup_bonus(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Created user {user.id} with invite code {user.invite_code}")
    return user


def get_inviter_by_code(code):
    return User.get_by_invite_code(code)


def apply_invite_code(user, code):
    """
    Link `user` to the owner of `code` and reward the inviter.

    Raises:
        InvitationError: already invited, unknown code or own code
    """
    if user.invited_by:
        raise InvitationError('You have already used an invite code')

    inviter = get_inviter_by_code(code)
    if not inviter:
        raise InvitationError('Invalid invite code')

    if inviter.id == user.id:
        raise InvitationError('You cannot use your own invite code')

    try:
        user.invited_by = inviter.id
        invitation = handle_invite_reward(inviter, user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"User {user.id} joined via invite from {inviter.id}")
    return invitation


def get_user_invite_stats(user):
    invitees = (User.query
                .filter_by(invited_by=user.id)
                .order_by(User.created_at.desc())
                .all())
    return {
        'inviteCode': user.invite_code,
        'inviteCount': user.invite_count,
        'totalEarned': user.total_earned,
        'balance': user.balance,
        'invitees': [
            {
                'id': invitee.id,
                'name': invitee.name,
                'email': invitee.email,
                'image': invitee.image,
                'createdAt': isoformat(invitee.created_at),
            }
            for invitee in invitees
        ],
    }
