# request_log.py
"""
One structured log line per probe request.

Public function:
    log_request(endpoint: str, body: dict | None) -> None

The line is a JSON object {time, ip, method, endpoint, body}. Sensitive body
fields are replaced with REDACTED before the line is built, and nothing that
goes wrong here is allowed to reach the request handler.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import request
from flask_limiter.util import get_remote_address

logger = logging.getLogger("request_log")

REDACTED = "[HIDDEN]"
SENSITIVE_FIELDS = ("db_pass",)


def redact(body: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a copy of `body` with sensitive fields masked."""
    if not isinstance(body, dict):
        return body
    cleaned = dict(body)
    for field in SENSITIVE_FIELDS:
        if cleaned.get(field) is not None:
            cleaned[field] = REDACTED
    return cleaned


def log_request(endpoint: str, body: Optional[Dict[str, Any]] = None) -> None:
    try:
        entry = {
            "time": datetime.now(timezone.utc).isoformat(),
            "ip": get_remote_address() or "unknown",
            "method": request.method,
            "endpoint": endpoint,
        }
        if body:
            entry["body"] = redact(body)
        logger.info(json.dumps(entry, default=str))
    except Exception:
        # a broken log sink must never change the response
        pass
