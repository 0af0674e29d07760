"""
ssl_check.py

TLS certificate probe: handshake with a domain, pull the peer certificate
and score how fresh and how strongly signed it is.

Public function:
    check_ssl(domain: str, settings: Settings) -> dict

Certificate verification is switched off on purpose. The probe has to
complete the handshake against expired, self-signed or mismatched
certificates so it can report on them; it never makes a trust decision.

Returns dict on success:
{
  "domain": "example.com",
  "ssl": True,
  "score": 90,
  "valid_from": "2026-01-13T00:00:00+00:00",
  "valid_to": "2026-12-14T23:59:59+00:00",
  "days_remaining": 56,
  "issuer": "DigiCert Global G3 TLS ECC SHA384 2020 CA1",
  "issuedTo": "*.example.com",
  "protocol": "TLSv1.3",
  "signature_algorithm": "sha384",
  "last_checked": "2026-10-19T08:12:44.125108+00:00"
}

Requires:
    pip install cryptography
"""

import math
import socket
import ssl
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.x509.oid import NameOID

from ..config import Settings

logger = logging.getLogger("ssl_check")

SECONDS_PER_DAY = 86400
EXPIRY_CRITICAL_DAYS = 30
EXPIRY_WARNING_DAYS = 90
EXPIRY_CRITICAL_PENALTY = 30
EXPIRY_WARNING_PENALTY = 10
WEAK_SIGNATURE_PENALTY = 20
WEAK_SIGNATURE_MARKER = "sha1"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _make_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def fetch_peer_certificate(domain: str, port: int = 443, timeout: int = 10) -> Tuple[Optional[bytes], Optional[str]]:
    """Handshake with domain:port (SNI = domain) and return (DER cert, protocol)."""
    ctx = _make_context()
    with socket.create_connection((domain, port), timeout=timeout) as sock:
        with ctx.wrap_socket(sock, server_hostname=domain) as conn:
            return conn.getpeercert(binary_form=True), conn.version()


def _common_name(name: x509.Name) -> str:
    """CN of an x509 name, or the whole name in RFC 4514 form when there is none."""
    attrs = name.get_attributes_for_oid(NameOID.COMMON_NAME)
    if attrs:
        return str(attrs[0].value)
    return name.rfc4514_string()


def _signature_algorithm(cert: x509.Certificate) -> Optional[str]:
    try:
        algorithm = cert.signature_hash_algorithm
    except UnsupportedAlgorithm:
        return None
    # ed25519/ed448 sign without a separate hash
    return algorithm.name if algorithm is not None else None


def days_until(moment: datetime, now: Optional[datetime] = None) -> int:
    """Whole days from now until `moment`, halves rounded up; negative once past."""
    now = now or _now()
    return math.floor((moment - now).total_seconds() / SECONDS_PER_DAY + 0.5)


def score_certificate(days_remaining: int, signature_algorithm: Optional[str] = None) -> int:
    score = 100
    if days_remaining < EXPIRY_CRITICAL_DAYS:
        score -= EXPIRY_CRITICAL_PENALTY
    elif days_remaining < EXPIRY_WARNING_DAYS:
        score -= EXPIRY_WARNING_PENALTY
    if signature_algorithm and WEAK_SIGNATURE_MARKER in signature_algorithm.lower():
        score -= WEAK_SIGNATURE_PENALTY
    return score


@dataclass
class CertificateReport:
    domain: str
    checked_at: datetime
    ssl_present: bool = False
    score: int = 0
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    days_remaining: Optional[int] = None
    issuer: Optional[str] = None
    subject: Optional[str] = None
    protocol: Optional[str] = None
    signature_algorithm: Optional[str] = None

    @classmethod
    def from_der(cls, domain: str, der: bytes, protocol: Optional[str],
                 now: Optional[datetime] = None) -> "CertificateReport":
        now = now or _now()
        cert = x509.load_der_x509_certificate(der)
        valid_to = cert.not_valid_after_utc
        days_remaining = days_until(valid_to, now)
        signature_algorithm = _signature_algorithm(cert)
        return cls(
            domain=domain,
            checked_at=now,
            ssl_present=True,
            score=score_certificate(days_remaining, signature_algorithm),
            valid_from=cert.not_valid_before_utc,
            valid_to=valid_to,
            days_remaining=days_remaining,
            issuer=_common_name(cert.issuer),
            subject=_common_name(cert.subject),
            protocol=protocol,
            signature_algorithm=signature_algorithm,
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.ssl_present:
            return {
                "domain": self.domain,
                "ssl": False,
                "score": 0,
                "last_checked": self.checked_at.isoformat(),
            }
        return {
            "domain": self.domain,
            "ssl": True,
            "score": self.score,
            "valid_from": self.valid_from.isoformat(),
            "valid_to": self.valid_to.isoformat(),
            "days_remaining": self.days_remaining,
            "issuer": self.issuer,
            "issuedTo": self.subject,
            "protocol": self.protocol,
            "signature_algorithm": self.signature_algorithm,
            "last_checked": self.checked_at.isoformat(),
        }


def check_ssl(domain: str, settings: Settings) -> Dict[str, Any]:
    """Probe `domain` and return the JSON-ready report (see module docstring)."""
    try:
        der, protocol = fetch_peer_certificate(domain, settings.tls_port, settings.connect_timeout)
    except (OSError, ValueError) as e:
        # ssl.SSLError and socket.timeout are OSError subclasses
        logger.info("TLS connection to %s failed: %s", domain, e)
        result = CertificateReport(domain=domain, checked_at=_now()).to_dict()
        result["error"] = str(e)
        return result

    report = None
    if der:
        try:
            report = CertificateReport.from_der(domain, der, protocol)
        except ValueError as e:
            logger.warning("Could not parse certificate from %s: %s", domain, e)

    if report is None:
        result = CertificateReport(domain=domain, checked_at=_now()).to_dict()
        result["message"] = "No valid SSL certificate found."
        return result

    logger.info("Certificate for %s: score=%d days_remaining=%d protocol=%s",
                domain, report.score, report.days_remaining, report.protocol)
    return report.to_dict()
