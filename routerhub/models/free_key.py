"""
Free Key Model

A FreeKey row is a pool of shared credentials stored as a JSON-encoded list.
"""

import json
from .database import db, TimestampMixin
from .utils import isoformat

KEY_TYPES = ('claude', 'llm')
KEY_STATUSES = ('active', 'inactive', 'exhausted')


def parse_key_values(raw):
    """Decode the stored key list; anything malformed reads as empty"""
    try:
        values = json.loads(raw) if raw else []
    except (TypeError, ValueError):
        return []
    return values if isinstance(values, list) else []


class FreeKey(TimestampMixin, db.Model):
    """Pooled shared API keys of one type"""
    __tablename__ = 'free_keys'

    key_values = db.Column(db.Text, nullable=False)
    key_type = db.Column(db.String(20), nullable=False)  # claude, llm
    status = db.Column(db.String(20), default='active', nullable=False)  # active, inactive, exhausted
    created_by = db.Column(db.String(36))
    updated_by = db.Column(db.String(36))

    def __repr__(self):
        return f'<FreeKey {self.key_type} ({self.status})>'

    @property
    def keys(self):
        return parse_key_values(self.key_values)

    def to_dict(self):
        return {
            'id': self.id,
            'keyValues': self.key_values,
            'keys': self.keys,
            'keyType': self.key_type,
            'status': self.status,
            'createdBy': self.created_by,
            'updatedBy': self.updated_by,
            'createdAt': isoformat(self.created_at),
            'updatedAt': isoformat(self.updated_at),
        }

    @classmethod
    def create(cls, key_values, key_type, status='active', created_by=None):
        free_key = cls(
            key_values=json.dumps(list(key_values)),
            key_type=key_type,
            status=status or 'active',
            created_by=created_by,
            updated_by=created_by,
        )
        db.session.add(free_key)
        db.session.commit()
        return free_key

    def update(self, key_values=None, key_type=None, status=None, updated_by=None):
        if key_values is not None:
            self.key_values = json.dumps(list(key_values))
        if key_type is not None:
            self.key_type = key_type
        if status is not None:
            self.status = status
        self.updated_by = updated_by
        db.session.commit()
        return self

    @classmethod
    def get_all(cls):
        return cls.query.order_by(cls.created_at.desc()).all()

    @classmethod
    def get_by_type(cls, key_type):
        return cls.query.filter_by(key_type=key_type).order_by(cls.created_at.desc()).all()

    @classmethod
    def get_active_by_type(cls, key_type):
        return (cls.query
                .filter_by(key_type=key_type, status='active')
                .order_by(cls.created_at.desc())
                .first())
