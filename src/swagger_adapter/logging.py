"""Logging helpers with credential redaction."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict


_SENSITIVE_KEYS = re.compile(
    r"(token|secret|api[_-]?key|password|authorization)", re.IGNORECASE
)
_REDACTED = "***REDACTED***"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        force=True,
    )
    # httpx logs every request URL at INFO, which can carry query-string API keys.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    redacted: Dict[str, Any] = {}
    for key, value in payload.items():
        if _SENSITIVE_KEYS.search(str(key)):
            redacted[key] = _REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_payload(value)
        elif isinstance(value, list):
            redacted[key] = [
                redact_payload(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            redacted[key] = value
    return redacted
