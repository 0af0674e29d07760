"""Stand-ins for SQLAlchemy engines/connections and TLS sockets used by the tests."""

from datetime import datetime, timedelta, timezone

import pymysql
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from sqlalchemy.exc import OperationalError, ProgrammingError


def driver_error(code, message):
    """OperationalError the way SQLAlchemy raises it around a PyMySQL failure."""
    return OperationalError("SELECT 1", {}, pymysql.err.OperationalError(code, message))


def query_error(code, message):
    return ProgrammingError("SELECT 1", {}, pymysql.err.ProgrammingError(code, message))


class FakeConnection:
    def __init__(self, error=None):
        self.error = error
        self.executed = []
        self.closed = 0

    def execute(self, statement):
        self.executed.append(str(statement))
        if self.error is not None:
            raise self.error

    def close(self):
        self.closed += 1

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class FakeEngine:
    def __init__(self, connection=None, connect_error=None):
        self.connection = connection or FakeConnection()
        self.connect_error = connect_error
        self.disposed = 0

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        return self.connection

    def dispose(self):
        self.disposed += 1


class EngineFactory:
    """Replacement for sqlalchemy.create_engine that records how it was called."""

    def __init__(self, engine):
        self.engine = engine
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return self.engine


def make_certificate(not_after, not_before=None, subject_cn="example.com",
                     issuer_name=None):
    """Self-signed-style DER certificate with the given validity window."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_cn)])
    issuer = issuer_name or x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Test Issuing CA")])
    not_before = not_before or datetime(2020, 1, 1, tzinfo=timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.DER)


def fixed_now():
    return datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


def days_from_now(days):
    return fixed_now() + timedelta(days=days)
