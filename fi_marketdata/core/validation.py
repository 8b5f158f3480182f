"""
Input vocabularies and validation.

Validation runs once at the service entry (and again inside providers, which
may be called directly). Every rejection raises InvalidInputError with a
message naming the offending argument.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .. import timeutils
from .errors import InvalidInputError

TENORS = ("1M", "3M", "6M", "1Y", "2Y", "3Y", "5Y", "7Y", "10Y", "20Y", "30Y")
REGIONS = ("US", "EUR", "UK", "JP", "CA", "AU")
RATINGS = (
    "AAA",
    "AA+", "AA", "AA-",
    "A+", "A", "A-",
    "BBB+", "BBB", "BBB-",
    "BB+", "BB", "BB-",
    "B+", "B", "B-",
    "CCC", "CC", "C", "D",
)

MAX_BATCH_DATES = 100
MAX_HISTORY_YEARS = 50
MAX_SECTOR_LENGTH = 50


def tenor_years(tenor: str) -> float:
    """Maturity in years for a tenor label ('6M' -> 0.5, '10Y' -> 10.0)."""
    unit = tenor[-1:].upper()
    try:
        n = int(tenor[:-1])
    except ValueError:
        raise InvalidInputError(f"Malformed tenor: {tenor!r}") from None
    if unit == "M":
        return n / 12.0
    if unit == "Y":
        return float(n)
    raise InvalidInputError(f"Malformed tenor: {tenor!r}")


def sort_tenors(tenors: Iterable[str]) -> List[str]:
    return sorted(tenors, key=tenor_years)


def validate_tenor(tenor: Optional[str], supported: Optional[Iterable[str]] = None) -> str:
    if tenor is None or not str(tenor).strip():
        raise InvalidInputError("Tenor cannot be empty")
    t = str(tenor).strip().upper()
    allowed = set(supported) if supported is not None else set(TENORS)
    if t not in allowed:
        raise InvalidInputError(f"Unsupported tenor: {tenor!r}. Valid tenors: {', '.join(sort_tenors(allowed))}")
    return t


def validate_region(region: Optional[str]) -> str:
    if region is None or not str(region).strip():
        raise InvalidInputError("Region cannot be empty")
    r = str(region).strip().upper()
    if r not in REGIONS:
        raise InvalidInputError(f"Unsupported region: {region!r}. Valid regions: {', '.join(REGIONS)}")
    return r


def validate_date(value: Optional[date], name: str = "date") -> date:
    """Reject None, non-dates and dates after today."""
    if value is None:
        raise InvalidInputError(f"{name} cannot be null")
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise InvalidInputError(f"{name} must be a date, got {type(value).__name__}")
    if value > timeutils.today():
        raise InvalidInputError(f"{name} cannot be in the future: {value.isoformat()}")
    return value


def validate_date_range(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    if start is None or end is None:
        raise InvalidInputError("Start date and end date cannot be null")
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    if start > end:
        raise InvalidInputError(
            f"Start date {start.isoformat()} cannot be after end date {end.isoformat()}"
        )
    today = timeutils.today()
    if start > today:
        raise InvalidInputError(f"Start date cannot be in the future: {start.isoformat()}")
    earliest = _years_before(today, MAX_HISTORY_YEARS)
    if start < earliest:
        raise InvalidInputError(
            f"Start date cannot be more than {MAX_HISTORY_YEARS} years in the past: {start.isoformat()}"
        )
    if end > today + timedelta(days=1):
        raise InvalidInputError(f"End date cannot be in the future: {end.isoformat()}")
    return start, end


def validate_dates(dates: Optional[Iterable[Optional[date]]]) -> List[date]:
    if dates is None:
        raise InvalidInputError("Dates list cannot be null or empty")
    out = list(dates)
    if not out:
        raise InvalidInputError("Dates list cannot be null or empty")
    if len(out) > MAX_BATCH_DATES:
        raise InvalidInputError(f"Too many dates requested: {len(out)} (max {MAX_BATCH_DATES})")
    return [validate_date(d, name="dates entry") for d in out]


def validate_sector(sector: Optional[str]) -> Optional[str]:
    """None means 'no sector adjustment'; anything else must be a short non-blank label."""
    if sector is None:
        return None
    s = str(sector).strip()
    if not s:
        raise InvalidInputError("Sector cannot be blank")
    if len(s) > MAX_SECTOR_LENGTH:
        raise InvalidInputError(f"Sector name too long (max {MAX_SECTOR_LENGTH} characters)")
    return s.upper()


def validate_days_to_keep(days: int) -> int:
    if isinstance(days, bool) or not isinstance(days, int):
        raise InvalidInputError(f"days_to_keep must be an integer, got {days!r}")
    if days < 0:
        raise InvalidInputError(f"days_to_keep cannot be negative: {days}")
    return days


def normalize_region(region: Optional[str]) -> Optional[str]:
    """Upper-cased region if it is in the vocabulary, else None."""
    if region is None:
        return None
    r = str(region).strip().upper()
    return r if r in REGIONS else None


def normalize_rating(rating: Optional[str]) -> Optional[str]:
    """
    Reduce an agency rating to its letter bucket ('AA+' -> 'AA', 'BBB-' -> 'BBB').
    Returns None for empty or unrecognised ratings.
    """
    if rating is None:
        return None
    r = str(rating).strip().upper()
    if r not in RATINGS:
        return None
    return r.rstrip("+-")


def _years_before(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year - years)
    except ValueError:
        # 29 Feb
        return d.replace(year=d.year - years, day=28)
