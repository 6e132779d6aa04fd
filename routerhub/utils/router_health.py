"""
Router health checks.

A check is one HTTP HEAD against the router URL:
- any response with status < 400 → online, response_time = elapsed ms
- 4xx/5xx, timeout or connection error → offline, response_time = 0
Every outcome is stamped on the row (last_check) and counted in Prometheus.
"""

import json
import time
import logging
import requests
from flask import current_app
from ..models import Router
from .prom_metrics import observe_router_check

DEFAULT_TIMEOUT = 10


class RouterHealthChecker:
    """Probe routers and persist their status"""

    def __init__(self, session=None):
        self.logger = logging.getLogger(__name__)
        self.session = session or requests

    def _timeout(self):
        try:
            return current_app.config.get('ROUTER_HEALTH_TIMEOUT', DEFAULT_TIMEOUT)
        except RuntimeError:
            return DEFAULT_TIMEOUT

    def probe(self, url):
        """
        Return (status, response_time_ms) for `url` without touching the database.
        """
        started_at = time.time()
        try:
            response = self.session.head(url, timeout=self._timeout(), allow_redirects=True)
        except requests.RequestException as e:
            self.logger.warning(json.dumps({
                'event': 'router_check_error',
                'url': url,
                'error': str(e)[:300],
            }))
            return 'offline', 0

        elapsed_ms = int((time.time() - started_at) * 1000)
        if response.status_code < 400:
            return 'online', elapsed_ms
        self.logger.info(json.dumps({
            'event': 'router_check_bad_status',
            'url': url,
            'status': response.status_code,
        }))
        return 'offline', 0

    def check(self, router):
        status, response_time = self.probe(router.url)
        router.set_status(status, response_time)
        observe_router_check(status)
        self.logger.info(json.dumps({
            'event': 'router_check',
            'router_id': router.id,
            'status': status,
            'response_time_ms': response_time,
        }))
        return router

    def check_all(self):
        """Check every router one after another"""
        return [self.check(router) for router in Router.get_all()]


# Global instance
router_health_checker = RouterHealthChecker()


def check_router_health(router):
    return router_health_checker.check(router)


def check_all_routers_health():
    return router_health_checker.check_all()
