"""
Request ID middleware - Inject X-Request-ID for request correlation.

Provides:
- Request ID on g.request_id (client-supplied header or new UUID)
- X-Request-ID response header
- One timing log line per request on the "api.request" logger
"""

import logging
import time
import uuid
from flask import Flask, request, g

logger = logging.getLogger("api.request")


def setup_request_id_middleware(app: Flask) -> None:
    """
    Set up request ID and timing middleware on Flask app.

    Args:
        app: Flask application instance
    """

    @app.before_request
    def inject_request_id():
        g.request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        g.request_start = time.perf_counter()

    @app.after_request
    def add_request_id_header(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers['X-Request-ID'] = request_id

        start = getattr(g, 'request_start', None)
        if start is not None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "api_request method=%s path=%s status=%s elapsed_ms=%.1f request_id=%s",
                request.method, request.path, response.status_code, elapsed_ms, request_id,
            )
        return response


def get_request_id() -> str:
    """
    Get current request ID from Flask context.

    Returns:
        Request ID string, or generated UUID if not in request context
    """
    if hasattr(g, 'request_id'):
        return g.request_id
    return str(uuid.uuid4())
