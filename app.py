#!/usr/bin/env python3
"""
RouterHub application entry point.

This module selects configuration based on environment variables, creates the
Flask application via `create_app`, and creates the database tables. When
executed directly, it runs the development server. In production, a WSGI
server should import `app` from this module.

Environment variables of interest:
- FLASK_ENV: 'testing' enables an in-memory DB and testing flags.
- DATABASE_URL: database URI consumed by `Config`.
- SECRET_KEY, PROJECT_ADMIN_ID: consumed by `create_app` through `Config`.
"""

import os
import logging
from routerhub import create_app
from routerhub.models import db

logging.basicConfig(level=os.getenv('LOG_LEVEL', 'INFO'))
logger = logging.getLogger(__name__)

# Create app instance
if os.getenv('FLASK_ENV') == 'testing':
    # Use test configuration for testing environment
    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': os.getenv('DATABASE_URL', 'sqlite:///:memory:'),
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': os.getenv('SECRET_KEY', 'test-secret-key'),
        'IS_PRODUCTION': False,
    }
    app = create_app(test_config)
else:
    app = create_app()

with app.app_context():
    db.create_all()
    logger.info(f"Database ready at {app.config['SQLALCHEMY_DATABASE_URI']}")

if __name__ == '__main__':
    app.run(debug=os.getenv('FLASK_ENV') != 'production', host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
