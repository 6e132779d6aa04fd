"""
User Models

This module contains the User, UserUsage, Invitation and BalanceTransaction models.
Balance arithmetic lives in utils/invitations.py; the models only hold rows and lookups.
"""

from .database import db, TimestampMixin
from .utils import isoformat


class User(TimestampMixin, db.Model):
    """User account with balance and invite bookkeeping"""
    __tablename__ = 'user'

    name = db.Column(db.String(255))
    email = db.Column(db.String(255), unique=True, nullable=False)
    email_verified = db.Column(db.DateTime)
    image = db.Column(db.Text)
    balance = db.Column(db.Integer, default=0, nullable=False)
    invite_code = db.Column(db.String(16), unique=True)
    invited_by = db.Column(db.String(36), db.ForeignKey('user.id'))
    total_earned = db.Column(db.Integer, default=0, nullable=False)
    invite_count = db.Column(db.Integer, default=0, nullable=False)

    # Relationships
    api_keys = db.relationship('ApiKey', backref='user', lazy=True, cascade='all, delete-orphan')
    usage = db.relationship('UserUsage', backref='user', uselist=False, cascade='all, delete-orphan')

    UPDATABLE_FIELDS = {
        'name': 'name',
        'email': 'email',
        'image': 'image',
        'emailVerified': 'email_verified',
        'balance': 'balance',
        'inviteCode': 'invite_code',
        'invitedBy': 'invited_by',
        'totalEarned': 'total_earned',
        'inviteCount': 'invite_count',
    }

    def __repr__(self):
        return f'<User {self.email}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'emailVerified': isoformat(self.email_verified),
            'image': self.image,
            'balance': self.balance,
            'inviteCode': self.invite_code,
            'invitedBy': self.invited_by,
            'totalEarned': self.total_earned,
            'inviteCount': self.invite_count,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    def to_public_dict(self):
        """Author info shown next to comments"""
        return {'id': self.id, 'name': self.name, 'image': self.image}

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.id.desc()).all()

    @classmethod
    def search_query(cls, search=None):
        """Query filtered by a LIKE match on name or email"""
        query = cls.query
        if search and search.strip():
            pattern = f'%{search.strip()}%'
            query = query.filter(db.or_(cls.name.like(pattern), cls.email.like(pattern)))
        return query.order_by(cls.created_at.desc())

    @classmethod
    def get_by_email(cls, email):
        return cls.query.filter_by(email=(email or '').strip().lower()).first()

    @classmethod
    def get_by_invite_code(cls, code):
        if not code:
            return None
        return cls.query.filter_by(invite_code=code.strip().lower()).first()

    def update(self, values):
        """Partial update from a camelCase payload"""
        self.apply_updates(values, self.UPDATABLE_FIELDS)
        db.session.commit()
        return self


class UserUsage(TimestampMixin, db.Model):
    """Token allowance for a user"""
    __tablename__ = 'user_usage'

    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    used_tokens = db.Column(db.Integer, default=0, nullable=False)
    total_tokens = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'usedTokens': self.used_tokens,
            'totalTokens': self.total_tokens,
        }


class Invitation(TimestampMixin, db.Model):
    """Referral record linking an inviter to an invitee"""
    __tablename__ = 'invitations'

    inviter_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    invitee_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    reward = db.Column(db.Integer, default=0, nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)  # pending, completed

    invitee = db.relationship('User', foreign_keys=[invitee_id])

    def to_dict(self):
        return {
            'id': self.id,
            'inviterId': self.inviter_id,
            'inviteeId': self.invitee_id,
            'reward': self.reward,
            'status': self.status,
            'createdAt': isoformat(self.created_at),
        }


class BalanceTransaction(TimestampMixin, db.Model):
    """Ledger entry for every balance change"""
    __tablename__ = 'balance_transactions'

    user_id = db.Column(db.String(36), db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    amount = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(32), nullable=False)  # signup_bonus, invite_reward
    description = db.Column(db.Text)
    related_id = db.Column(db.String(36))
    balance_before = db.Column(db.Integer, nullable=False)
    balance_after = db.Column(db.Integer, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'amount': self.amount,
            'type': self.type,
            'description': self.description,
            'relatedId': self.related_id,
            'balanceBefore': self.balance_before,
            'balanceAfter': self.balance_after,
            'createdAt': isoformat(self.created_at),
        }

    @classmethod
    def for_user(cls, user_id):
        return cls.query.filter_by(user_id=user_id).order_by(cls.created_at.desc()).all()
