"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

# Characters that could be used for path traversal or header injection in stored filenames
DANGEROUS_FILENAME_CHARS = ["..", "/", "\\", "<", ">", ":", '"', "|", "?", "*"]


def blank_to_none(value):
    """
    Normalise blank form input.

    Strings are stripped and empty strings become None so blank form
    submissions never end up stored as "".
    """
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate an international phone number.

    Accepts digits with spaces, dashes, dots, parentheses and a leading +,
    keeping the caller's formatting. Between 7 and 15 digits are required.
    """
    if not phone:
        return phone

    phone = phone.strip()
    if not re.match(r"^\+?[\d\s().-]+$", phone):
        raise ValueError("Phone number contains invalid characters")

    digits = re.sub(r"\D", "", phone)
    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain between 7 and 15 digits")

    return phone


def validate_filename(filename: Optional[str], allowed_extensions: tuple[str, ...]) -> str:
    """
    Validate an uploaded filename.

    Raises:
        ValueError: If the name is missing, too long, has a dangerous character
            or an extension outside ``allowed_extensions``
    """
    if not filename:
        raise ValueError("Filename is required")

    for char in DANGEROUS_FILENAME_CHARS:
        if char in filename:
            raise ValueError(f"Invalid filename - contains dangerous character '{char}'")

    if len(filename) > 255:
        raise ValueError("Filename too long - maximum 255 characters")

    if not filename.lower().endswith(allowed_extensions):
        raise ValueError("Invalid filename - unsupported file extension")

    return filename
