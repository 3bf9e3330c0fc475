import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, current_app

from filmfolk.api.context import get_storage

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)

STARTED_AT = time.monotonic()


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _check_database() -> dict:
    start = time.perf_counter()
    try:
        get_storage().ping()
    except Exception as exc:  # noqa: BLE001
        logger.error("database health check failed: %s", exc.__class__.__name__)
        get_storage().rollback()
        return {"status": "unhealthy", "error": "database unreachable"}
    return {"status": "healthy", "latency_ms": round((time.perf_counter() - start) * 1000, 2)}


@bp.get("/health")
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: healthy
            service:
              type: string
              example: filmfolk
    """
    return {"status": "healthy", "timestamp": _now_iso(), "service": current_app.config["APP_NAME"]}, 200


@bp.get("/health/detailed")
def health_detailed():
    """
    Health check including dependencies
    ---
    tags:
      - Health
    responses:
      200: { description: All checks pass }
      503: { description: A dependency is unhealthy }
    """
    checks = {"database": _check_database()}
    healthy = all(c["status"] == "healthy" for c in checks.values())
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": _now_iso(),
        "service": current_app.config["APP_NAME"],
        "version": current_app.config["VERSION"],
        "uptime_seconds": round(time.monotonic() - STARTED_AT, 2),
        "checks": checks,
    }
    return body, 200 if healthy else 503


@bp.get("/health/ready")
def ready():
    """
    Readiness probe
    ---
    tags:
      - Health
    responses:
      200: { description: Ready }
      503: { description: Not ready }
    """
    db = _check_database()
    if db["status"] != "healthy":
        return {"status": "not_ready", "error": db["error"]}, 503
    return {"status": "ready"}, 200


@bp.get("/health/live")
def live():
    """
    Liveness probe
    ---
    tags:
      - Health
    responses:
      200: { description: Alive }
    """
    return {"status": "alive"}, 200
