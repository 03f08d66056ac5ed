"""
Input validation utilities for contact form submissions.
"""

import re
from typing import Optional

from contact_service.shared.errors import ValidationError


MAX_EMAIL_LENGTH = 255

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


def clean_field(value: Optional[str]) -> Optional[str]:
    """Strip whitespace; blank strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def require_fields(**fields: Optional[str]) -> None:
    """
    Raise if any of the given fields is missing or blank.

    Raises:
        ValidationError naming the missing fields in its detail
    """
    missing = [name for name, value in fields.items() if not clean_field(value)]
    if missing:
        raise ValidationError(
            "Missing required fields",
            detail=f"Required: {', '.join(missing)}"
        )


def validate_email_format(email: str) -> str:
    """
    Validate email address format and length.

    Args:
        email: Email to validate

    Returns:
        Normalized email (lowercase)

    Raises:
        ValidationError if validation fails
    """
    email = normalize_email(email)

    if len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")

    return email


def email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()
