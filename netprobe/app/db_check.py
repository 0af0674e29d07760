"""
db_check.py

Database connectivity probe.

Public function:
    probe_database(body: dict, settings: Settings) -> dict

Opens one short-lived connection with the caller's credentials, runs
SELECT 1 so we know the session is usable (not just that the socket
opened), and closes everything before returning. Driver failures are
translated through errors.DB_ERROR_RULES.

Requires:
    pip install sqlalchemy pymysql
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ..config import Settings
from .errors import normalize_error

logger = logging.getLogger("db_check")

PING_QUERY = "SELECT 1"


class ProbeInputError(ValueError):
    """Request body failed validation; carries the response message/error pair."""

    def __init__(self, message: str, error: str):
        super().__init__(error)
        self.message = message
        self.error = error


def _field(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class ConnectionRequest:
    host: str
    database: str
    user: str
    password: str = ""
    port: Optional[int] = None

    @classmethod
    def from_body(cls, body: Optional[Dict[str, Any]], default_port: Optional[int] = None) -> "ConnectionRequest":
        body = body if isinstance(body, dict) else {}
        host = _field(body, "db_host")
        database = _field(body, "db_name")
        user = _field(body, "db_user")
        if not host or not database or not user:
            logger.warning("Missing required fields: host=%s database=%s user=%s",
                           bool(host), bool(database), bool(user))
            raise ProbeInputError("Missing required fields",
                                  "Host, database name, and username are required")

        password = body.get("db_pass")
        password = "" if password is None else str(password)

        port = default_port
        raw_port = _field(body, "db_port")
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError:
                port = 0
            if not 0 < port < 65536:
                raise ProbeInputError("Invalid port", "Port must be an integer between 1 and 65535")

        return cls(host=host, database=database, user=user, password=password, port=port)

    def url(self, driver: str) -> URL:
        return URL.create(
            driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )


def _connect_args(settings: Settings) -> Dict[str, Any]:
    args = {"connect_timeout": settings.connect_timeout}
    if settings.db_driver.endswith("+pymysql"):
        # keep SELECT 1 bounded by the same budget as the connect
        args["read_timeout"] = settings.connect_timeout
        args["write_timeout"] = settings.connect_timeout
    return args


def _driver_error(exc: Exception) -> Tuple[Optional[int], str, Dict[str, Any]]:
    """Pull (code, raw message, details) out of a SQLAlchemy/DBAPI exception."""
    orig = getattr(exc, "orig", None) or exc
    args = getattr(orig, "args", ())
    code = None
    if len(args) >= 2 and isinstance(args[0], int):
        code, message = args[0], str(args[1])
    else:
        message = str(orig)

    details: Dict[str, Any] = {"errorCode": code if code is not None else type(orig).__name__}
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate:
        details["sqlState"] = sqlstate
    if code is not None:
        details["sqlMessage"] = message
    return code, message, details


def _failure(error: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": False,
        "message": "Database connection failed",
        "error": error,
        "details": details,
    }


def probe_database(body: Optional[Dict[str, Any]], settings: Settings) -> Dict[str, Any]:
    try:
        req = ConnectionRequest.from_body(body, default_port=settings.db_port)
    except ProbeInputError as e:
        return {"success": False, "message": e.message, "error": e.error}

    logger.info("Attempting to connect to database host=%s port=%s database=%s user=%s",
                req.host, req.port, req.database, req.user)

    engine = None
    try:
        try:
            engine = create_engine(req.url(settings.db_driver), poolclass=NullPool,
                                   connect_args=_connect_args(settings))
            conn = engine.connect()
        except (SQLAlchemyError, OSError, ValueError) as e:
            # PyMySQL lets resolver errors such as an IDNA UnicodeError through unwrapped
            code, raw, details = _driver_error(e)
            logger.error("Database connection error: %s", raw)
            return _failure(normalize_error(code, raw), details)

        with conn:
            try:
                conn.execute(text(PING_QUERY))
            except SQLAlchemyError as e:
                _, raw, details = _driver_error(e)
                logger.error("Database query error: %s", raw)
                return _failure(f"Database exists but query failed: {raw}", details)

        logger.info("Database connection successful host=%s database=%s", req.host, req.database)
        return {
            "success": True,
            "message": "Database connection successful!",
            "details": {
                "host": req.host,
                "database": req.database,
                "user": req.user,
            },
        }
    finally:
        if engine is not None:
            engine.dispose()
