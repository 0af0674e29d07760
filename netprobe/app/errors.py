"""
errors.py

Translation of raw database driver errors into user-facing messages.

Rules are (name, predicate, message) entries evaluated in order; the first
predicate that matches wins and its message replaces the driver text. When
no rule matches the raw driver message is returned unchanged. Swap
DB_ERROR_RULES (or pass a different list to normalize_error) to support a
driver with other error signatures.

Example:
    >>> normalize_error(1045, "Access denied for user 'bob'@'10.0.0.2'")
    'Access denied. Please check your username and password.'
"""

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

Predicate = Callable[[Optional[int], str], bool]

ACCESS_DENIED = "Access denied. Please check your username and password."
CANNOT_CONNECT = ("Could not connect to database server. Please check if the "
                  "server is running and the host is correct.")
UNKNOWN_DATABASE = "Database does not exist."
TIMED_OUT = "Connection timed out. Please check your host and port."


@dataclass(frozen=True)
class ErrorRule:
    name: str
    predicate: Predicate
    message: str

    def matches(self, code: Optional[int], text: str) -> bool:
        return self.predicate(code, text)


def code_in(*codes: int) -> Predicate:
    return lambda code, text: code in codes


def contains(*needles: str) -> Predicate:
    """Case-sensitive substring match on the raw message."""
    return lambda code, text: any(n in text for n in needles)


def any_of(*predicates: Predicate) -> Predicate:
    return lambda code, text: any(p(code, text) for p in predicates)


# MySQL client/server error numbers as reported by PyMySQL
ER_ACCESS_DENIED = 1045
ER_BAD_DB = 1049
CR_CONNECTION_ERROR = 2002
CR_SERVER_GONE = 2006
CR_SERVER_LOST = 2013

DB_ERROR_RULES = (
    ErrorRule(
        "access_denied",
        any_of(code_in(ER_ACCESS_DENIED), contains("ER_ACCESS_DENIED_ERROR", "Access denied")),
        ACCESS_DENIED,
    ),
    ErrorRule(
        "connection_refused",
        any_of(
            code_in(CR_CONNECTION_ERROR),
            contains(
                "ECONNREFUSED",
                "Connection refused",
                "Name or service not known",
                "nodename nor servname",
                "Temporary failure in name resolution",
                "getaddrinfo failed",
                "No route to host",
                "Network is unreachable",
            ),
        ),
        CANNOT_CONNECT,
    ),
    ErrorRule(
        "unknown_database",
        any_of(code_in(ER_BAD_DB), contains("ER_BAD_DB_ERROR", "Unknown database")),
        UNKNOWN_DATABASE,
    ),
    ErrorRule(
        "timeout",
        any_of(code_in(CR_SERVER_GONE, CR_SERVER_LOST), contains("ETIMEDOUT", "timed out")),
        TIMED_OUT,
    ),
)


def match_rule(code: Optional[int], text: str,
               rules: Sequence[ErrorRule] = DB_ERROR_RULES) -> Optional[ErrorRule]:
    for rule in rules:
        if rule.matches(code, text):
            return rule
    return None


def normalize_error(code: Optional[int], text: str,
                    rules: Sequence[ErrorRule] = DB_ERROR_RULES) -> str:
    rule = match_rule(code, text, rules)
    return rule.message if rule else text
