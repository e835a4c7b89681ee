"""Logging setup: one stream handler with secret redaction."""

import logging
import re
import sys

_SENSITIVE_PATTERNS = [
    (re.compile(r"(Bearer\s+)\S+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'(password["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'(secret["\s:=]+)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r'(token=)[^\s&"\']+', re.IGNORECASE), r"\1[REDACTED]"),
]


def redact(value: str) -> str:
    for pattern, replacement in _SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Scrubs bearer tokens, passwords, secrets and invite links from records."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Format first so a placeholder like "password=%s" is redacted with its value
        record.msg = redact(record.getMessage())
        record.args = ()
        return True


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    )
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
