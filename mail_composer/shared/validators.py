"""Shared validation utilities"""

import re
from typing import Optional

# Basic email validation pattern
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

ADDRESS_SEPARATORS = re.compile(r"[,;\n]")


def parse_addresses(value: Optional[str]) -> list[str]:
    """
    Split a free-text recipient field into individual addresses.

    Entries are separated by commas, semicolons or newlines. Each entry is
    trimmed and empty entries are dropped. Order and duplicates are kept.

    Args:
        value: Raw text from a To/CC/BCC field

    Returns:
        List of address strings, possibly empty
    """
    if not value:
        return []

    parts = (part.strip() for part in ADDRESS_SEPARATORS.split(value))
    return [part for part in parts if part]


def is_valid_email(email: Optional[str]) -> bool:
    """Check email syntax without normalizing the address"""
    if not email or not isinstance(email, str):
        return False
    return EMAIL_PATTERN.fullmatch(email) is not None


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        The address, unchanged

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    if not is_valid_email(email):
        raise ValueError(f"Invalid email address: {email}")

    return email
