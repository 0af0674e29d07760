"""Flask API for netprobe.

Run: python -m netprobe.api
"""

import logging
from typing import Optional

from flask import Blueprint, Flask, current_app, jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import redis as redis_lib

from .app.db_check import probe_database
from .app.ssl_check import check_ssl
from .config import Settings
from .request_log import log_request

# Logging
logging.basicConfig(level=Settings.from_env().log_level)
logger = logging.getLogger("api")

DB_PROBE_PATH = "/api/test-connection"
TLS_PROBE_PATH = "/check-ssl"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

probes = Blueprint("probes", __name__)


def _settings() -> Settings:
    return current_app.config["NETPROBE"]


@probes.route(DB_PROBE_PATH, methods=["POST"])
def test_connection():
    data = request.get_json(force=True, silent=True)
    body = data if isinstance(data, dict) else {}
    log_request(DB_PROBE_PATH, body)
    return jsonify(probe_database(body, _settings()))


@probes.route(TLS_PROBE_PATH, methods=["GET"])
def ssl_probe():
    domain = request.args.get("domain", "").strip()
    log_request(TLS_PROBE_PATH, {"domain": domain})
    if not domain:
        return jsonify({"error": "Please provide ?domain=example.com"}), 400
    return jsonify(check_ssl(domain, _settings()))


def _storage_uri(settings: Settings) -> str:
    """Prefer Redis for rate-limit counters when it answers, else keep them in memory."""
    if not settings.redis_url:
        return "memory://"
    try:
        redis_lib.from_url(settings.redis_url).ping()
        logger.info("Using Redis at %s for rate limiting", settings.redis_url)
        return settings.redis_url
    except (redis_lib.RedisError, ValueError):
        logger.exception("Failed to connect to Redis, falling back to in-memory limiter")
        return "memory://"


def _preflight():
    if request.method == "OPTIONS":
        return current_app.response_class(status=204, mimetype="application/json")
    # Flask answers HEAD on every GET route; only GET and POST are served
    if request.method == "HEAD":
        return _not_found(None)
    return None


def _add_cors_headers(response):
    for name, value in CORS_HEADERS.items():
        response.headers[name] = value
    return response


def _not_found(_error):
    return jsonify({"error": "Not found"}), 404


def _too_many_requests(error):
    return jsonify({"error": "Too many requests", "detail": str(error.description)}), 429


def _internal_error(error):
    logger.exception("Unhandled error: %s", getattr(error, "original_exception", error))
    return jsonify({"error": "Internal server error"}), 500


def create_app(settings: Optional[Settings] = None, **config) -> Flask:
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["NETPROBE"] = settings
    app.config["RATELIMIT_HEADERS_ENABLED"] = True
    app.config.update(config)
    if "RATELIMIT_STORAGE_URI" not in app.config:
        app.config["RATELIMIT_STORAGE_URI"] = _storage_uri(settings)

    # registered ahead of the limiter so pre-flight and HEAD requests are never counted
    app.before_request(_preflight)

    limiter = Limiter(key_func=get_remote_address, app=app)
    limiter.limit(settings.rate_limit)(probes)
    app.register_blueprint(probes)

    app.after_request(_add_cors_headers)
    # a known path with the wrong method is reported the same as an unknown path
    app.register_error_handler(404, _not_found)
    app.register_error_handler(405, _not_found)
    app.register_error_handler(429, _too_many_requests)
    app.register_error_handler(500, _internal_error)
    return app


def main() -> None:
    settings = Settings.from_env()
    logging.getLogger().setLevel(settings.log_level)
    app = create_app(settings)
    logger.info("Server running on port %d", settings.port)
    app.run(host=settings.host, port=settings.port, debug=False)


if __name__ == "__main__":
    main()
