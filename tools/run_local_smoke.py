"""
Quick local smoke test: run the TLS probe against a few public domains and
print one JSON line per domain (score, days remaining, protocol, or the
connection error).

Needs network access. Run: python3 tools/run_local_smoke.py [domain ...]
"""
import sys
import json

from netprobe.app.ssl_check import check_ssl
from netprobe.config import Settings

SAMPLES = [
    "example.com",
    "wikipedia.org",
    "expired.badssl.com",
    "self-signed.badssl.com",
    "sha1-intermediate.badssl.com",
]


def main():
    settings = Settings.from_env()
    domains = sys.argv[1:] or SAMPLES
    for d in domains:
        result = check_ssl(d, settings)
        print(json.dumps(result))


if __name__ == '__main__':
    main()
