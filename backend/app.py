"""
Flask Application Factory - Word definition service

Every lookup goes through the tiered resolver:
local cache -> durable store -> live source (on a full miss only).

Endpoints (all under /api):
- GET  /word/<word>   resolve one word
- POST /seed          resolve every word of a sentence
- GET  /ping, /health
"""

import logging
import os

from flask import Flask
from flask_cors import CORS

from config import Config


def create_app(service=None, config=Config):
    """
    Build the Flask app.

    Args:
        service: Prebuilt WordService (tests inject one with fake tiers).
                 Built from config when None.
        config: Config class or object
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = Flask(__name__)
    app.config.from_object(config)

    CORS(app,
         resources={r"/api/*": {"origins": "*"}},
         methods=["GET", "POST", "OPTIONS"],
         allow_headers=["Content-Type", "X-Request-ID"],
         expose_headers=["X-Request-ID"],
         supports_credentials=False,
         send_wildcard=True)

    from api.middleware import setup_error_handlers, setup_request_id_middleware
    setup_request_id_middleware(app)
    setup_error_handlers(app)

    if service is None:
        from services.word_service import build_word_service
        service = build_word_service(config)
        print("   ✓ Word service initialized")
    app.extensions["word_service"] = service

    from routes.words import words_bp
    app.register_blueprint(words_bp, url_prefix='/api')

    return app


if __name__ == "__main__":
    port = int(os.getenv("PORT", Config.PORT))
    application = create_app()
    logging.getLogger(__name__).info("server running port=%d", port)
    application.run(host="0.0.0.0", port=port, debug=Config.DEBUG)
