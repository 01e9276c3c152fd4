import re

KENYAN_PHONE_RE = re.compile(r"^(\+?254|0)[17]\d{8}$")
PASSWORD_MIN_LENGTH = 8


def normalize_phone(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip().replace(" ", "")
    if not stripped:
        return None
    if not KENYAN_PHONE_RE.match(stripped):
        raise ValueError("Invalid Kenyan phone number")
    return stripped


def normalize_email(value: object) -> object:
    # Syntax is checked by EmailStr; addresses are stored lower-cased.
    if isinstance(value, str):
        return value.strip().lower()
    return value


def check_password_strength(value: str) -> str:
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not (
        any(char.islower() for char in value)
        and any(char.isupper() for char in value)
        and any(char.isdigit() for char in value)
    ):
        raise ValueError("Password must contain uppercase, lowercase, and number")
    if len(value.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes")
    return value
