"""
Tests for signup provisioning, invite codes and invite rewards
"""

import re
import pytest
from unittest.mock import patch
from routerhub.models import db, User, UserUsage, Invitation, BalanceTransaction
from routerhub.utils.invitations import (
    create_user, apply_invite_code, create_invite_code_for_user, get_user_invite_stats,
    InvitationError
)


class TestCreateUser:

    def test_signup_bonus_and_usage(self, db_session):
        """A new user gets the bonus, a ledger entry and a usage allowance"""
        user = create_user('New.User@Example.com', name='New')
        assert user.email == 'new.user@example.com'
        assert user.balance == 10000

        entries = BalanceTransaction.for_user(user.id)
        assert len(entries) == 1
        assert entries[0].type == 'signup_bonus'
        assert entries[0].balance_before == 0
        assert entries[0].balance_after == 10000

        usage = UserUsage.query.filter_by(user_id=user.id).one()
        assert usage.used_tokens == 0
        assert usage.total_tokens == 10000

    def test_invite_code_format(self, db_session):
        user = create_user('code@example.com')
        assert re.fullmatch(r'[a-z0-9]{8}', user.invite_code)

    def test_failed_signup_leaves_nothing_behind(self, db_session):
        """The whole signup is one transaction"""
        with patch('routerhub.utils.invitations.handle_signup_bonus', side_effect=RuntimeError('boom')):
            with pytest.raises(RuntimeError):
                create_user('broken@example.com')
        assert User.get_by_email('broken@example.com') is None
        assert UserUsage.query.count() == 0

    def test_invite_code_retries_exhausted(self, db_session, test_user):
        """Collisions on every attempt raise InvitationError"""
        with patch('routerhub.utils.invitations.generate_invite_code', return_value=test_user.invite_code):
            with pytest.raises(InvitationError):
                create_invite_code_for_user(User(email='x@example.com'))


class TestApplyInviteCode:

    def test_reward_paid_to_inviter(self, db_session, test_user, other_user):
        invitation = apply_invite_code(other_user, test_user.invite_code)

        db.session.refresh(test_user)
        db.session.refresh(other_user)
        assert other_user.invited_by == test_user.id
        assert test_user.balance == 12000
        assert test_user.total_earned == 2000
        assert test_user.invite_count == 1

        assert invitation.status == 'completed'
        assert invitation.reward == 2000
        reward = BalanceTransaction.query.filter_by(user_id=test_user.id, type='invite_reward').one()
        assert reward.related_id == invitation.id
        assert reward.balance_before == 10000
        assert reward.balance_after == 12000

    def test_code_is_case_insensitive(self, db_session, test_user, other_user):
        apply_invite_code(other_user, test_user.invite_code.upper())
        assert other_user.invited_by == test_user.id

    def test_already_invited(self, db_session, test_user, other_user):
        apply_invite_code(other_user, test_user.invite_code)
        with pytest.raises(InvitationError) as excinfo:
            apply_invite_code(other_user, test_user.invite_code)
        assert excinfo.value.message == 'You have already used an invite code'
        assert Invitation.query.count() == 1

    def test_invalid_code(self, db_session, other_user):
        with pytest.raises(InvitationError) as excinfo:
            apply_invite_code(other_user, 'zzzzzzzz')
        assert excinfo.value.message == 'Invalid invite code'

    def test_own_code(self, db_session, test_user):
        with pytest.raises(InvitationError) as excinfo:
            apply_invite_code(test_user, test_user.invite_code)
        assert excinfo.value.message == 'You cannot use your own invite code'
        assert test_user.invited_by is None

    def test_invite_stats(self, db_session, test_user, other_user):
        apply_invite_code(other_user, test_user.invite_code)
        stats = get_user_invite_stats(test_user)
        assert stats['inviteCode'] == test_user.invite_code
        assert stats['inviteCount'] == 1
        assert stats['totalEarned'] == 2000
        assert stats['balance'] == 12000
        assert [invitee['email'] for invitee in stats['invitees']] == ['other@example.com']


class TestInviteEndpoints:

    def test_verify_requires_login(self, client, db_session):
        response = client.post('/api/invite/verify', json={'inviteCode': 'abc'})
        assert response.status_code == 401

    def test_verify_requires_code(self, logged_in_client):
        response = logged_in_client.post('/api/invite/verify', json={})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invite code is required'

    def test_verify_applies_code(self, logged_in_client, test_user, other_user):
        response = logged_in_client.post('/api/invite/verify', json={'inviteCode': other_user.invite_code})
        assert response.status_code == 200
        assert response.get_json()['message'] == 'Invite code applied successfully'
        db.session.refresh(other_user)
        assert other_user.balance == 12000

    def test_verify_rejects_own_code(self, logged_in_client, test_user):
        response = logged_in_client.post('/api/invite/verify', json={'inviteCode': test_user.invite_code})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'You cannot use your own invite code'

    def test_invite_stats_self_only(self, logged_in_client, test_user, other_user):
        assert logged_in_client.get(f'/api/user/{test_user.id}/invite-stats').status_code == 200
        assert logged_in_client.get(f'/api/user/{other_user.id}/invite-stats').status_code == 401
