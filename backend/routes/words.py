"""
Word API Routes

Provides endpoints for:
- Single word resolution (cache -> store -> source)
- Batch seeding from free text
- Liveness and store health
"""
import logging

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError as PayloadValidationError

from api.contracts import SeedPayload, WordParams
from api.middleware import make_error_response
from services.errors import BatchPartialFailure
from utils.normalize import ValidationError, normalize_key

logger = logging.getLogger(__name__)

words_bp = Blueprint('words', __name__)


def _service():
    return current_app.extensions["word_service"]


def _first_validation_message(error: PayloadValidationError) -> str:
    errors = error.errors()
    if not errors:
        return "invalid payload"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else first.get("msg", "invalid payload")


@words_bp.route("/word/<word>", methods=["GET"])
def get_word(word):
    """
    Resolve one word.

    Query params:
        - timeout: Resolution deadline in seconds (optional)

    Returns:
        {"data": {"key", "groups", "entries", "created_at", "updated_at"}}
    """
    try:
        key = normalize_key(word)
    except ValidationError as e:
        return make_error_response("INVALID_PARAMS", str(e), field=e.field)

    try:
        params = WordParams.model_validate(request.args.to_dict())
    except PayloadValidationError as e:
        return make_error_response("INVALID_PARAMS", _first_validation_message(e), field="timeout")

    record = _service().lookup(key, timeout=params.timeout)
    return jsonify({"data": record.to_dict()})


@words_bp.route("/seed", methods=["POST"])
def seed():
    """
    Resolve every word of a sentence so later lookups are served from storage.

    Body (JSON or form):
        - sentence: free text

    Returns:
        {"message": "success", "count": <distinct words>}
    """
    raw = request.get_json(silent=True)
    if raw is None:
        raw = request.form.to_dict()

    try:
        payload = SeedPayload.model_validate(raw)
    except PayloadValidationError as e:
        return make_error_response("INVALID_PAYLOAD", _first_validation_message(e), field="sentence")

    keys = payload.keys()
    try:
        report = _service().seed(keys)
    except BatchPartialFailure as e:
        logger.warning("word_seed_failed failed=%s first_error=%s", e.report.failed_keys, e.first_error)
        return make_error_response("SEED_FAILED", "seed failed", details=e.report.to_dict())

    return jsonify({"message": "success", "count": report.total})


@words_bp.route("/ping", methods=["GET"])
def ping():
    """Liveness check - no storage access."""
    return jsonify({"ok": True})


@words_bp.route("/health", methods=["GET"])
def health():
    """Durable store connectivity check."""
    service = _service()
    store_ok = service.store.ping() if service.store is not None else True
    body = {
        "status": "healthy" if store_ok else "degraded",
        "store": store_ok,
        "pending_writebacks": service.resolver.pending_writebacks(),
    }
    return jsonify(body), (200 if store_ok else 503)
