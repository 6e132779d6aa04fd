"""
Database Models Package

FLOW OVERVIEW
- Centralizes SQLAlchemy DB instance and model imports for convenient usage.
- Exposes: db, users/invitations, API keys, content (docs, models, posts),
  proxy directory, routers/VPNs, free keys and upstream model configs.
"""

from .database import db
from .user import User, UserUsage, Invitation, BalanceTransaction
from .api_key import ApiKey
from .content import Doc, AIModel, Post, PostTranslation
from .proxy import Proxy, ProxyLike, ProxyComment, CommentLike
from .router import Router, RouterLike, VPN
from .free_key import FreeKey
from .model_config import ModelConfig

__all__ = [
    'db',
    'User',
    'UserUsage',
    'Invitation',
    'BalanceTransaction',
    'ApiKey',
    'Doc',
    'AIModel',
    'Post',
    'PostTranslation',
    'Proxy',
    'ProxyLike',
    'ProxyComment',
    'CommentLike',
    'Router',
    'RouterLike',
    'VPN',
    'FreeKey',
    'ModelConfig'
]
