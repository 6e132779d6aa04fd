"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
"""

import os
from dotenv import load_dotenv

class Config:
    """Base configuration class"""

    def __init__(self):
        # Load environment variables based on FLASK_ENV
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # For testing, don't load config files, use environment variables directly
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')  # Default to development

    @property
    def SECRET_KEY(self):
        """Session signing key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Database connection URI"""
        return os.getenv('DATABASE_URL', 'sqlite:///routerhub.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def IS_PRODUCTION(self):
        """Production mode restricts admin access to PROJECT_ADMIN_ID"""
        return os.getenv('FLASK_ENV', 'development') == 'production'

    @property
    def PROJECT_ADMIN_ID(self):
        """Comma-separated user ids with admin rights in production"""
        return os.getenv('PROJECT_ADMIN_ID', '')

    @property
    def FREE_USER_TOKENS(self):
        """Token allowance granted to every new user"""
        return int(os.getenv('FREE_USER_TOKENS', 10000))

    @property
    def SIGNUP_BONUS(self):
        """Balance credited on signup (cents)"""
        return int(os.getenv('SIGNUP_BONUS', 10000))

    @property
    def INVITE_REWARD(self):
        """Balance credited to an inviter per completed invitation (cents)"""
        return int(os.getenv('INVITE_REWARD', 2000))

    @property
    def ROUTER_HEALTH_TIMEOUT(self):
        """Seconds before a router health probe gives up"""
        return float(os.getenv('ROUTER_HEALTH_TIMEOUT', 10))

    @property
    def RELAY_TIMEOUT(self):
        """Seconds to wait on an upstream chat completion"""
        return float(os.getenv('RELAY_TIMEOUT', 120))

    @property
    def SESSION_COOKIE_SECURE(self):
        """Whether session cookies should be secure (HTTPS only)"""
        return os.getenv('SESSION_COOKIE_SECURE', 'False').lower() == 'true'

    @property
    def SESSION_COOKIE_HTTPONLY(self):
        return True

    @property
    def SESSION_COOKIE_SAMESITE(self):
        """Session cookie SameSite policy"""
        return 'Lax'

    @property
    def PERMANENT_SESSION_LIFETIME(self):
        """Session lifetime in seconds"""
        return int(os.getenv('PERMANENT_SESSION_LIFETIME', 30 * 24 * 3600))
