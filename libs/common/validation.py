"""Input validation rules shared by request schemas and forms.

These checks run before any backend call; failures are surfaced per field.
"""

import re
from dataclasses import dataclass, field

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s()+-]+$")
SPECIAL_CHAR_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")

PASSWORD_MIN_LENGTH = 8

POSTAL_CODE_PATTERNS = {
    "US": re.compile(r"^\d{5}(-\d{4})?$"),
    "NG": re.compile(r"^\d{6}$"),
    "GB": re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}$", re.IGNORECASE),
}


@dataclass
class PasswordCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def is_valid_email(email: str) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None


def is_valid_phone(phone: str) -> bool:
    """Digits, spaces and ``()+-`` only, with at least 10 digits."""
    if not phone or not PHONE_RE.match(phone):
        return False
    return len(re.sub(r"\D", "", phone)) >= 10


def validate_password(password: str) -> PasswordCheck:
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not SPECIAL_CHAR_RE.search(password):
        errors.append("Password must contain at least one special character")
    return PasswordCheck(is_valid=not errors, errors=errors)


def is_valid_card_number(card_number: str) -> bool:
    """Luhn check on 13-19 digit card numbers."""
    digits = re.sub(r"\D", "", card_number or "")
    if not 13 <= len(digits) <= 19:
        return False

    total = 0
    for index, char in enumerate(reversed(digits)):
        digit = int(char)
        if index % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_valid_postal_code(postal_code: str, country: str = "US") -> bool:
    pattern = POSTAL_CODE_PATTERNS.get(country.upper())
    if pattern is None:
        return bool(postal_code)
    return pattern.match(postal_code or "") is not None


def slugify(value: str) -> str:
    """Lower-case, hyphen-separated slug used for products and categories."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-")
