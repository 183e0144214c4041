"""Input checks shared by the services."""

from typing import Optional

from email_validator import EmailNotValidError, validate_email

from ..core.errors import ValidationError


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def require_email(email: str) -> str:
    """Return ``email`` unchanged if it is syntactically valid.

    Deliverability (DNS) is not checked; the address is stored exactly as
    supplied.
    """
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("A valid email address is required.") from None
    return email
