"""Resolution of expirations given as second counts or duration strings.

Two call sites need different answers for the same input:

* key publication wants an absolute Unix timestamp (``resolve_expiration``),
  where a numeric string already *is* that timestamp;
* token signing wants a number of seconds from now (``resolve_expires_in``),
  where a numeric string is already that count.

Duration strings follow the common ``ms`` grammar: ``"2 days"``, ``"10h"``,
``"1.5 hours"``, ``"-3m"``. A bare number in a duration string is milliseconds.
"""

import math
import re
from datetime import UTC, datetime

from hivejwt.core.errors import InvalidExpirationError

MAX_DURATION_LENGTH = 100

_SECOND_MS = 1000
_MINUTE_MS = _SECOND_MS * 60
_HOUR_MS = _MINUTE_MS * 60
_DAY_MS = _HOUR_MS * 24
_WEEK_MS = _DAY_MS * 7
_YEAR_MS = _DAY_MS * 365.25

_UNIT_MS = {
    "years": _YEAR_MS,
    "year": _YEAR_MS,
    "yrs": _YEAR_MS,
    "yr": _YEAR_MS,
    "y": _YEAR_MS,
    "weeks": _WEEK_MS,
    "week": _WEEK_MS,
    "w": _WEEK_MS,
    "days": _DAY_MS,
    "day": _DAY_MS,
    "d": _DAY_MS,
    "hours": _HOUR_MS,
    "hour": _HOUR_MS,
    "hrs": _HOUR_MS,
    "hr": _HOUR_MS,
    "h": _HOUR_MS,
    "minutes": _MINUTE_MS,
    "minute": _MINUTE_MS,
    "mins": _MINUTE_MS,
    "min": _MINUTE_MS,
    "m": _MINUTE_MS,
    "seconds": _SECOND_MS,
    "second": _SECOND_MS,
    "secs": _SECOND_MS,
    "sec": _SECOND_MS,
    "s": _SECOND_MS,
    "milliseconds": 1,
    "millisecond": 1,
    "msecs": 1,
    "msec": 1,
    "ms": 1,
}

_DURATION_RE = re.compile(
    r"^(?P<amount>-?\d*\.?\d+) *(?P<unit>"
    + "|".join(sorted(_UNIT_MS, key=len, reverse=True))
    + r")?$",
    re.IGNORECASE,
)
_NUMERIC_RE = re.compile(r"^\d+$")


def is_numeric(value: str) -> bool:
    """True when ``value`` is a plain non-negative integer string."""
    return _NUMERIC_RE.match(value) is not None


def parse_duration_ms(value: str) -> float:
    """Parse a duration string into milliseconds."""
    if not value or len(value) > MAX_DURATION_LENGTH:
        raise InvalidExpirationError(value)
    match = _DURATION_RE.match(value)
    if match is None:
        raise InvalidExpirationError(value)
    unit = (match.group("unit") or "ms").lower()
    return float(match.group("amount")) * _UNIT_MS[unit]


def _finite_floor(value: float, original: str) -> int:
    if not math.isfinite(value):
        raise InvalidExpirationError(original)
    return math.floor(value)


def resolve_expiration(value: str | int, now: datetime | None = None) -> int:
    """Resolve an absolute expiration timestamp in seconds since the epoch.

    Integers and numeric strings are taken as the timestamp itself. Anything
    else is parsed as a duration and added to ``now``.
    """
    if isinstance(value, int):
        return value
    if is_numeric(value):
        return int(value)
    current = now or datetime.now(UTC)
    now_ms = current.timestamp() * _SECOND_MS
    return _finite_floor((now_ms + parse_duration_ms(value)) / _SECOND_MS, value)


def resolve_expires_in(value: str | int) -> int:
    """Resolve a relative expiration as a whole number of seconds."""
    if isinstance(value, int):
        return value
    if is_numeric(value):
        return int(value)
    return _finite_floor(parse_duration_ms(value) / _SECOND_MS, value)
