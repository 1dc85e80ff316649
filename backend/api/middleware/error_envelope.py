"""
Error envelope middleware - Standardize all error responses.

Provides consistent error response format:
{
    "error": {
        "code": "WORD_NOT_FOUND",
        "message": "no definitions for 'qwzx' on dict.laban.vn",
        "requestId": "uuid"
    }
}

Word lookup errors keep their taxonomy in the status code instead of
collapsing into a generic 500.
"""

import logging
from flask import Flask, jsonify, g
from werkzeug.exceptions import HTTPException

from services.errors import WordLookupError, error_code


logger = logging.getLogger('api.middleware.error')


# Error codes reference
ERROR_CODES = {
    # Client errors (4xx)
    "BAD_REQUEST": 400,
    "NOT_FOUND": 404,
    "METHOD_NOT_ALLOWED": 405,
    "INVALID_PARAMS": 400,
    "INVALID_PAYLOAD": 400,

    # Word lookup errors
    "WORD_NOT_FOUND": 404,
    "SOURCE_UNAVAILABLE": 502,
    "INVALID_SOURCE_RECORD": 502,
    "STORE_UNAVAILABLE": 503,
    "RESOLUTION_TIMEOUT": 504,
    "SEED_FAILED": 500,

    # Server errors (5xx)
    "INTERNAL_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}


def error_status(code: str) -> int:
    return ERROR_CODES.get(code, 500)


def setup_error_handlers(app: Flask) -> None:
    """
    Set up standardized error handlers on Flask app.

    Handles:
    - HTTP exceptions (400, 404, 405, etc.)
    - WordLookupError subclasses raised out of routes
    - Unhandled Python exceptions
    """

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # "Not Found" -> "NOT_FOUND"
        code = error.name.upper().replace(' ', '_')
        return make_error_response(code, error.description, status_code=error.code)

    @app.errorhandler(WordLookupError)
    def handle_lookup_error(error):
        code = error_code(error)
        logger.warning(
            "word_lookup_error code=%s key=%s err=%s request_id=%s",
            code, error.key, error, getattr(g, 'request_id', None),
        )
        return make_error_response(code, str(error))

    @app.errorhandler(Exception)
    def handle_generic_error(error):
        request_id = getattr(g, 'request_id', None)
        logger.exception(
            f"Unhandled error: {error}",
            extra={
                "event": "unhandled_error",
                "request_id": request_id,
                "error_type": type(error).__name__,
            }
        )
        return make_error_response("INTERNAL_ERROR", "An unexpected error occurred")


def make_error_response(
    code: str,
    message: str,
    status_code: int = None,
    field: str = None,
    details: dict = None,
):
    """
    Create a standardized error response.

    Args:
        code: Error code (e.g., "INVALID_PARAMS")
        message: Human-readable error message
        status_code: HTTP status code (defaults based on error code)
        field: Optional field name that caused the error
        details: Optional additional details dict

    Returns:
        Tuple of (response, status_code)
    """
    request_id = getattr(g, 'request_id', None)

    if status_code is None:
        status_code = error_status(code)

    error = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }

    if field:
        error["error"]["field"] = field
    if details:
        error["error"]["details"] = details

    response = jsonify(error)
    if request_id:
        response.headers['X-Request-ID'] = request_id

    return response, status_code
