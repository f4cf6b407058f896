"""Input validation helpers shared by the settings and projections endpoints."""

import re
from typing import Optional, Union

from email_validator import EmailNotValidError, validate_email as check_email_syntax

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50

SLUG_RE = re.compile(r"^[a-z0-9-]+$")

# Leading numeric prefix, so "12px" parses as 12
_FLOAT_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX_RE = re.compile(r"^\s*[+-]?\d+")

Number = Union[int, float, str, None]


def validate_slug(slug: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid organization slug, else None."""
    if not slug or len(slug) < SLUG_MIN_LENGTH:
        return f"URL must be at least {SLUG_MIN_LENGTH} characters"
    if len(slug) > SLUG_MAX_LENGTH:
        return f"URL must be less than {SLUG_MAX_LENGTH} characters"
    if not SLUG_RE.match(slug):
        return "URL can only contain lowercase letters, numbers, and hyphens"
    if slug.startswith("-") or slug.endswith("-"):
        return "URL cannot start or end with a hyphen"
    return None


def validate_email(email: Optional[str]) -> bool:
    """Syntax check only; no DNS lookup."""
    if not email:
        return False
    try:
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _clamp(value, minimum, maximum):
    if minimum is not None and value < minimum:
        return minimum
    if maximum is not None and value > maximum:
        return maximum
    return value


def parse_number(
    value: Number,
    *,
    minimum: Optional[float] = None,
    maximum: Optional[float] = None,
    default: float = 0,
) -> float:
    """Parse a float leniently, clamping to the given bounds."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, (int, float)):
        parsed = float(value)
    else:
        match = _FLOAT_PREFIX_RE.match(value)
        if not match:
            return default
        parsed = float(match.group(0))
    if parsed != parsed:  # NaN
        return default
    return _clamp(parsed, minimum, maximum)


def parse_integer(
    value: Number,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
    default: int = 0,
) -> int:
    """Parse an integer leniently (floats are floored), clamping to the given bounds."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, float):
        if value != value:
            return default
        parsed = int(value // 1)
    elif isinstance(value, int):
        parsed = value
    else:
        match = _INT_PREFIX_RE.match(value)
        if not match:
            return default
        parsed = int(match.group(0))
    return _clamp(parsed, minimum, maximum)
