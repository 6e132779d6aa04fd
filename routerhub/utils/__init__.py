"""
Utilities Package

This package contains request helpers, validators and the service modules
used by the route blueprints.
"""

from . import auth_utils
from . import validators
from . import error_handlers

__all__ = [
    'auth_utils',
    'validators',
    'error_handlers'
]
