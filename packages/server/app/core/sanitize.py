"""
Input sanitization and password strength rules.

Everything here is pure: no I/O, no settings lookups.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

SEARCH_TERM_MAX_LENGTH = 100

# Structurally significant in filter expressions: , . ( ) * % \
_FILTER_BREAKING_CHARS = re.compile(r"[,.()*%\\]")
_TAG = re.compile(r"<[^>]*>")

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?`~"

PASSWORD_MIN_LENGTH = 8
STRONG_PASSWORD_LENGTH = 12

ERR_MIN_LENGTH = "At least 8 characters"
ERR_UPPERCASE = "At least 1 uppercase letter"
ERR_LOWERCASE = "At least 1 lowercase letter"
ERR_NUMBER = "At least 1 number"
ERR_SPECIAL = "At least 1 special character (!@#$%^&*...)"


def sanitize_search_term(value: Any, max_length: int = SEARCH_TERM_MAX_LENGTH) -> str:
    """Defang a free-text search term before it reaches a filter expression."""
    if not value or not isinstance(value, str):
        return ""
    cleaned = _FILTER_BREAKING_CHARS.sub("", value)
    # Every quote is doubled, including ones that arrive already doubled.
    cleaned = cleaned.replace("'", "''")
    return cleaned.strip()[:max_length].rstrip()


def sanitize_free_text(value: Any) -> str:
    """Strip tag-shaped markup and surrounding whitespace."""
    if not value or not isinstance(value, str):
        return ""
    return _TAG.sub("", value).strip()


@dataclass(frozen=True)
class PasswordValidation:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    strength: str = "weak"  # weak | fair | strong


def validate_password_strength(password: str) -> PasswordValidation:
    """Check the five password rules and grade the result."""
    password = password or ""
    errors: list[str] = []

    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(ERR_MIN_LENGTH)
    if not re.search(r"[A-Z]", password):
        errors.append(ERR_UPPERCASE)
    if not re.search(r"[a-z]", password):
        errors.append(ERR_LOWERCASE)
    if not re.search(r"[0-9]", password):
        errors.append(ERR_NUMBER)
    if not any(ch in SPECIAL_CHARACTERS for ch in password):
        errors.append(ERR_SPECIAL)

    if not errors:
        strength = "strong" if len(password) >= STRONG_PASSWORD_LENGTH else "fair"
    elif len(errors) <= 2:
        strength = "fair"
    else:
        strength = "weak"

    return PasswordValidation(is_valid=not errors, errors=errors, strength=strength)
