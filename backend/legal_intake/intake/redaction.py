"""
PII redaction for log output.

Walks dicts and lists, masking values stored under sensitive keys or that
look like emails, phone numbers, SSNs, card numbers or tokens.
"""

import re
from typing import Any

MAX_DEPTH = 10

SENSITIVE_FIELDS = (
    "name", "email", "phone", "address", "location", "ssn", "social_security",
    "credit_card", "card_number", "account_number", "routing_number",
    "password", "token", "secret", "key", "credential",
    "description", "details", "notes", "comments", "message",
    "opposing_party", "client_info", "personal_info",
)

SENSITIVE_VALUE_PATTERNS = [
    re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),                 # email
    re.compile(r"^\+?[0-9\s\-()]{7,20}$"),                     # phone
    re.compile(r"^\d{3}-?\d{2}-?\d{4}$"),                      # SSN
    re.compile(r"^\d{4}[\s\-]?\d{4}[\s\-]?\d{4}[\s\-]?\d{4}$"),  # card
    re.compile(r"^[a-zA-Z0-9]{20,}$"),                         # token
]


def _is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(name in lowered for name in SENSITIVE_FIELDS)


def _is_sensitive_value(value: Any) -> bool:
    return isinstance(value, str) and any(p.match(value) for p in SENSITIVE_VALUE_PATTERNS)


def mask(value: Any) -> Any:
    if not isinstance(value, str):
        return "***REDACTED***"

    if "@" in value:
        local, _, domain = value.partition("@")
        local, domain = local.strip(), domain.strip()
        if not local or not domain or "@" in domain:
            return "***REDACTED***"
        if len(local) >= 2:
            return f"{local[:2]}***@{domain}"
        return f"***@{domain}"

    if len(value) > 4:
        return f"{value[:2]}***{value[-2:]}"
    return "***REDACTED***"


def redact(value: Any, depth: int = 0) -> Any:
    """Return a copy of value that is safe to log."""
    if depth > MAX_DEPTH:
        return "***DEPTH_LIMIT***"

    if isinstance(value, (list, tuple)):
        return [redact(item, depth + 1) for item in value]

    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if item is None:
                result[key] = None
            elif _is_sensitive_key(str(key)) or _is_sensitive_value(item):
                result[key] = mask(item)
            else:
                result[key] = redact(item, depth + 1)
        return result

    return value
