"""
BRILLPRIME Health Endpoints
============================

/health/        liveness, the process answers
/health/ready/  readiness, PostgreSQL and the Redis cache answer

Each dependency probe returns a dict with at least a 'status' key
('healthy' or 'unhealthy'). Readiness is 200 only when every probe is healthy.
"""

import logging
import time

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET

logger = logging.getLogger('brillprime.monitoring')

SERVICE_NAME = 'brillprime'
CACHE_PROBE_KEY = '_brillprime_ready'


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


def _check_database() -> dict:
    started = time.monotonic()
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as e:
        logger.error(f"[HEALTH] Database probe failed: {e}")
        return {'status': 'unhealthy', 'error': str(e)}

    return {
        'status': 'healthy',
        'engine': connection.vendor,
        'response_time_ms': _elapsed_ms(started),
    }


def _check_cache() -> dict:
    started = time.monotonic()
    token = str(started)
    try:
        cache.set(CACHE_PROBE_KEY, token, 10)
        echoed = cache.get(CACHE_PROBE_KEY)
    except Exception as e:
        # Redis client errors do not share a base class with Django's
        logger.error(f"[HEALTH] Cache probe failed: {e}")
        return {'status': 'unhealthy', 'error': str(e)}

    if echoed != token:
        logger.error("[HEALTH] Cache probe read back a different value")
        return {'status': 'unhealthy', 'error': 'Cache read/write mismatch'}

    return {'status': 'healthy', 'response_time_ms': _elapsed_ms(started)}


READINESS_CHECKS = (
    ('database', _check_database),
    ('cache', _check_cache),
)


def _payload(status: str, **extra) -> dict:
    return {
        'status': status,
        'service': SERVICE_NAME,
        'timestamp': timezone.now().isoformat(),
        **extra,
    }


@csrf_exempt
@require_GET
def health_check(request):
    """Liveness probe for load balancers and Docker."""
    return JsonResponse(_payload('ok'))


@csrf_exempt
@require_GET
def readiness_check(request):
    """Readiness probe: 503 as soon as one dependency is down."""
    checks = {name: probe() for name, probe in READINESS_CHECKS}
    healthy = all(check['status'] == 'healthy' for check in checks.values())

    if not healthy:
        logger.warning(
            "[HEALTH] Not ready: "
            + ", ".join(name for name, check in checks.items() if check['status'] != 'healthy')
        )

    return JsonResponse(
        _payload('healthy' if healthy else 'unhealthy', checks=checks),
        status=200 if healthy else 503,
    )
