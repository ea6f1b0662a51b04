"""Sanitization of values that end up in log records."""

import re
from typing import Any

REDACTED = "[REDACTED]"
MAX_DEPTH = 10


class LogSanitizer:
    """Redact sensitive fields from structures before they are logged."""

    # Substrings matched case-insensitively against dictionary keys
    SENSITIVE_PATTERNS: list[str] = [
        "password",
        "token",
        "secret",
        "key",
        "auth",
        "bearer",
        "api_key",
        "apikey",
        "credential",
        "ssn",
        "social_security",
        "credit_card",
        "card_number",
        "cvv",
        "pin",
        "private",
    ]

    # Inline "Bearer <token>" occurrences inside free text
    BEARER_PATTERN = re.compile(r"(?i)bearer\s+[a-z0-9\-_.=]+")

    @classmethod
    def is_sensitive_key(cls, key: str) -> bool:
        lowered = key.lower()
        return any(pattern in lowered for pattern in cls.SENSITIVE_PATTERNS)

    @classmethod
    def sanitize_text(cls, value: str) -> str:
        """Mask bearer tokens embedded in a message."""
        if not value:
            return value
        return cls.BEARER_PATTERN.sub(f"Bearer {REDACTED}", value)

    @classmethod
    def sanitize_dict(cls, data: dict[str, Any], depth: int = 0) -> Any:
        """Recursively redact values whose key looks sensitive."""
        if depth > MAX_DEPTH:
            return "[Max depth exceeded]"

        sanitized: dict[str, Any] = {}
        for key, value in data.items():
            if cls.is_sensitive_key(str(key)):
                sanitized[key] = REDACTED
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value, depth + 1)
            elif isinstance(value, list | tuple):
                sanitized[key] = cls.sanitize_list(list(value), depth + 1)
            else:
                sanitized[key] = value

        return sanitized

    @classmethod
    def sanitize_list(cls, data: list[Any], depth: int = 0) -> Any:
        """Recursively sanitize list items."""
        if depth > MAX_DEPTH:
            return "[Max depth exceeded]"

        sanitized = []
        for item in data:
            if isinstance(item, dict):
                sanitized.append(cls.sanitize_dict(item, depth + 1))
            elif isinstance(item, list | tuple):
                sanitized.append(cls.sanitize_list(list(item), depth + 1))
            else:
                sanitized.append(item)

        return sanitized


def sanitize_log_context(value: Any) -> Any:
    """Sanitize any value destined for a log record."""
    if isinstance(value, dict):
        return LogSanitizer.sanitize_dict(value)
    elif isinstance(value, list | tuple):
        return LogSanitizer.sanitize_list(list(value))
    elif isinstance(value, str):
        return LogSanitizer.sanitize_text(value)
    return value
