"""
Cross-cutting request handling:
- X-Request-ID propagation
- one access-log line per request
- security response headers
- fixed-window rate limiting (global hook plus a per-route decorator)
"""
from __future__ import annotations

import logging
import time
import uuid
from functools import wraps

from flask import g, jsonify, request

from filmfolk.api.context import get_rate_limiter

logger = logging.getLogger("filmfolk.access")
rl_logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Content-Security-Policy": "default-src 'self'",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

# Swagger UI needs inline scripts and styles
DOCS_PREFIXES = ("/apidocs", "/flasgger_static")


def client_ip() -> str:
    return request.remote_addr or "unknown"


def _too_many_requests(result):
    resp = jsonify({"error": "Rate limit exceeded. Please try again later.", "retry_after": result.retry_after})
    resp.status_code = 429
    resp.headers["Retry-After"] = str(result.retry_after)
    return resp


def _consult(name: str):
    """
    Count this request against the named limiter.
    Returns a 429 response when over the limit, otherwise None. A limiter
    that fails lets the request through.
    """
    try:
        limiter = get_rate_limiter(name)
        if limiter is None:
            return None
        result = limiter.hit(f"{name}:{client_ip()}")
    except Exception:  # noqa: BLE001
        rl_logger.exception("rate limiter %r failed; letting request through", name)
        return None

    g.rate_limit = result
    if not result.allowed:
        rl_logger.warning("rate limit exceeded: limiter=%s ip=%s path=%s", name, client_ip(), request.path)
        return _too_many_requests(result)
    return None


def rate_limited(name: str):
    """Apply an additional named limiter to one endpoint."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            limited = _consult(name)
            if limited is not None:
                return limited
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def register_middleware(app):
    @app.before_request
    def _start_request():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

    @app.before_request
    def _global_rate_limit():
        return _consult("global")

    @app.after_request
    def _decorate_response(response):
        response.headers[REQUEST_ID_HEADER] = getattr(g, "request_id", "")

        result = getattr(g, "rate_limit", None)
        if result is not None:
            response.headers["X-RateLimit-Limit"] = str(result.limit)
            response.headers["X-RateLimit-Remaining"] = str(result.remaining)
            response.headers["X-RateLimit-Reset"] = str(result.reset)

        for name, value in SECURITY_HEADERS.items():
            if name == "Content-Security-Policy" and request.path.startswith(DOCS_PREFIXES):
                continue
            response.headers.setdefault(name, value)

        _log_request(response.status_code)
        return response


def _log_request(status: int) -> None:
    start = getattr(g, "request_start", None)
    latency_ms = (time.perf_counter() - start) * 1000 if start is not None else 0.0
    if status >= 500:
        level = logging.ERROR
    elif status >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(
        level,
        "request_id=%s method=%s path=%s status=%d latency_ms=%.2f ip=%s user_agent=%s",
        getattr(g, "request_id", "-"),
        request.method,
        request.path,
        status,
        latency_ms,
        client_ip(),
        request.user_agent.string or "-",
    )
