"""
Main Routes

FLOW OVERVIEW
- / [GET]
  • Service banner with the API entry points.
- /health [GET]
  • JSON health check including a database ping.
- /metrics [GET]
  • Prometheus exposition.
"""

from datetime import datetime
from flask import Blueprint, jsonify, Response, current_app
from sqlalchemy import text
from ..models import db
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def home():
    return jsonify({
        'name': 'routerhub',
        'api': '/api',
        'relay': '/v1/chat/completions',
    })


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    database = 'ok'
    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        current_app.logger.error(f"Health check database ping failed: {str(e)}")
        db.session.rollback()
        database = 'unavailable'
    status_code = 200 if database == 'ok' else 503
    return jsonify({
        'status': 'healthy' if status_code == 200 else 'degraded',
        'database': database,
        'timestamp': datetime.utcnow().isoformat(),
    }), status_code


@main_bp.route('/metrics')
def metrics():
    """Prometheus metrics endpoint."""
    output = metrics_latest()
    return Response(output, mimetype=CONTENT_TYPE_LATEST)
