"""
Input coercion for attestation payloads

JSON bodies carry dates as ISO strings and ids as numbers or numeric strings.
These helpers turn them into Python values or raise AttestationValidationError.
"""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from email_validator import validate_email, EmailNotValidError

from app.buisness.attestation.errors import AttestationValidationError


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_datetime(value, field: str) -> Optional[datetime]:
    """ISO date or datetime → naive UTC datetime; blank → None"""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise AttestationValidationError(f"{field} must be an ISO 8601 date")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value, field: str) -> Optional[date]:
    """ISO date (a datetime string is truncated to its date); blank → None"""
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise AttestationValidationError(f"{field} must be an ISO 8601 date")


def parse_int(value, field: str, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool):
        raise AttestationValidationError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise AttestationValidationError(f"{field} must be an integer")
    if minimum is not None and number < minimum:
        raise AttestationValidationError(f"{field} must be at least {minimum}")
    return number


def parse_id_list(value, field: str) -> List[int]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise AttestationValidationError(f"{field} must be a list of ids")
    return [parse_int(item, field) for item in value]


def require_fields(data: dict, fields: Iterable[str], message: str) -> None:
    if any(is_blank(data.get(name)) for name in fields):
        raise AttestationValidationError(message)


def check_email(value, field: str, required: bool = True) -> Optional[str]:
    """Validate an email address and return it trimmed"""
    if is_blank(value):
        if required:
            raise AttestationValidationError(f"{field} is required")
        return None
    address = str(value).strip()
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError as e:
        raise AttestationValidationError(f"{field} is not a valid email address: {e}")
    return address
