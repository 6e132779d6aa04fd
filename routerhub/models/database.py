"""
Database Configuration

FLOW OVERVIEW
- Provides the global SQLAlchemy instance `db` used across all models.
- Initialized in the app factory (routerhub/__init__.py) with app context.
- TimestampMixin gives every table a UUID string key plus created/updated stamps.
"""

from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from .utils import generate_id

# Create SQLAlchemy instance
db = SQLAlchemy()


class TimestampMixin:
    """UUID primary key and created_at/updated_at columns"""

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def apply_updates(self, values, fields):
        """Copy the keys of `values` listed in `fields` (json name -> attribute) onto the row"""
        for json_name, attr in fields.items():
            if json_name in values:
                setattr(self, attr, values[json_name])
        self.updated_at = datetime.utcnow()
