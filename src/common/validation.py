from __future__ import annotations

import re
from typing import Dict, Optional

from . import messages


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 254

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
PASSWORD_STRENGTH_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")

_PMID_PATTERN = re.compile(r"^[0-9]+$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """Return an error message for `email`, or None when it is acceptable."""
    if not email:
        return messages.EMAIL_REQUIRED
    if len(email) < EMAIL_MIN_LENGTH:
        return messages.EMAIL_TOO_SHORT
    if len(email) > EMAIL_MAX_LENGTH:
        return messages.EMAIL_TOO_LONG
    if not EMAIL_PATTERN.match(email):
        return messages.EMAIL_INVALID
    return None


def validate_password(password: Optional[str]) -> Optional[str]:
    """Require length bounds plus at least one lowercase, uppercase and digit."""
    if not password:
        return messages.PASSWORD_REQUIRED
    if len(password) < PASSWORD_MIN_LENGTH:
        return messages.PASSWORD_TOO_SHORT
    if len(password) > PASSWORD_MAX_LENGTH:
        return messages.PASSWORD_TOO_LONG
    if not PASSWORD_STRENGTH_PATTERN.match(password):
        return messages.PASSWORD_WEAK
    return None


def validate_confirm_password(confirm_password: Optional[str], password: Optional[str]) -> Optional[str]:
    if not confirm_password:
        return messages.CONFIRM_PASSWORD_REQUIRED
    if confirm_password != password:
        return messages.CONFIRM_PASSWORD_MISMATCH
    return None


def validate_register_form(
    email: Optional[str],
    password: Optional[str],
    confirm_password: Optional[str],
) -> Dict[str, str]:
    """Validate a registration form; an empty dict means the form is valid."""
    errors: Dict[str, str] = {}
    email_error = validate_email(email)
    if email_error:
        errors["email"] = email_error
    password_error = validate_password(password)
    if password_error:
        errors["password"] = password_error
    confirm_error = validate_confirm_password(confirm_password, password)
    if confirm_error:
        errors["confirmPassword"] = confirm_error
    return errors


def is_numeric_pmid(pmid: Optional[str]) -> bool:
    """PMIDs are optional; when present they must be digits only."""
    if pmid is None:
        return True
    text = str(pmid).strip()
    return not text or bool(_PMID_PATTERN.match(text))
