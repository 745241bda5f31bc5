"""
Validation utilities
"""
import re

from nest.domain.errors import ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,30}$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_text(
    value: str | None,
    field: str,
    max_length: int,
    required: bool = True,
) -> str | None:
    """
    Strip whitespace and check length

    Returns:
        Stripped string, or None for an empty optional value

    Raises:
        ValidationError: empty required value or value longer than max_length

    Example:
        >>> clean_text("  Kitchen  ", "name", 100)
        "Kitchen"
        >>> clean_text("   ", "description", 500, required=False)
        None
    """
    value = (value or "").strip()
    if not value:
        if required:
            raise ValidationError(f"{field} must not be empty", fields=[field])
        return None
    if len(value) > max_length:
        raise ValidationError(
            f"{field} must be at most {max_length} characters", fields=[field]
        )
    return value


def validate_username(value: str) -> str:
    value = (value or "").strip()
    if not USERNAME_RE.match(value):
        raise ValidationError(
            "Username must be 3-30 characters: letters, digits, '_', '.', '-'",
            fields=["username"],
        )
    return value


def validate_email(value: str) -> str:
    value = (value or "").strip().lower()
    if not EMAIL_RE.match(value):
        raise ValidationError("Please enter a valid email address", fields=["email"])
    return value


def validate_password(value: str) -> str:
    if not value or len(value) < 6:
        raise ValidationError("Password must be at least 6 characters", fields=["password"])
    return value


def validate_choice(value: str, choices: tuple[str, ...], field: str) -> str:
    if value not in choices:
        raise ValidationError(
            f"Invalid {field}: {value!r}. Expected one of: {', '.join(choices)}",
            fields=[field],
        )
    return value


def validate_non_negative_int(value: int | None, field: str, default: int = 0) -> int:
    if value is None:
        return default
    if value < 0:
        raise ValidationError(f"{field} must not be negative", fields=[field])
    return value
