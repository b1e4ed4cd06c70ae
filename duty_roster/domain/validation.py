"""Input validation rules used by the request models."""

import re
from datetime import date
from typing import List, Optional

SPECIAL_CHARACTERS = "@$!%*?&"

_HTML_BRACKETS = re.compile(r"[<>]")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def validate_password(password: str) -> List[str]:
    """Return the list of unmet password requirements (empty when valid)."""
    errors = []
    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        errors.append("Password must contain at least one special character")
    return errors


def sanitize_input(value: str) -> str:
    value = value.strip()
    value = _HTML_BRACKETS.sub("", value)
    value = _JS_PROTOCOL.sub("", value)
    value = _EVENT_HANDLER.sub("", value)
    return value


def validate_age(date_of_birth: date, today: date) -> Optional[str]:
    age = today.year - date_of_birth.year
    if age < 16:
        return "Must be at least 16 years old"
    if age > 100:
        return "Please enter a valid date of birth"
    return None
