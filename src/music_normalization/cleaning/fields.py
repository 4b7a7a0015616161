# music_normalization/cleaning/fields.py

"""Pure field-level normalization rules.

These functions have no store dependency. The normalizer registers them as
SQL functions so the same rules apply to staged rows and to unit tests.
"""

from __future__ import annotations

import re
from datetime import date

# Two-digit years below this value are assumed to be in the 2000s.
YEAR_PIVOT = 24
ADULT_AGE = 18

_YEAR_TOKEN = re.compile(r"[0-9]{2}\Z")


def normalize_date(raw: str | None) -> str | None:
    """Reparse an ambiguous "M/D/YY" date into canonical "YYYY-MM-DD".

    Returns None when the value is null, blank, does not end in a two-digit
    year, or has no month/day segments to split.

    The year comes from the trailing two characters. Month is the text
    before the first "/", day the text between the first and second "/".
    No calendar check is made: "13/45/20" gives "2020-13-45".
    """
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    match = _YEAR_TOKEN.search(text)
    if match is None:
        return None

    parts = text.split("/")
    if len(parts) < 3:
        return None

    two_digit_year = int(match.group())
    if two_digit_year < YEAR_PIVOT:
        year = 2000 + two_digit_year
    else:
        year = 1900 + two_digit_year

    month = parts[0].strip().zfill(2)
    day = parts[1].strip().zfill(2)
    return f"{year}-{month}-{day}"


def normalize_name(value: str | None) -> str | None:
    """Strip surrounding whitespace. Empty or null input gives None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def adult_cutoff(today: date) -> date:
    """Latest birth date that still makes someone an adult on `today`."""
    try:
        return today.replace(year=today.year - ADULT_AGE)
    except ValueError:
        # today is Feb 29 and the cutoff year is not a leap year
        return date(today.year - ADULT_AGE, 2, 28)


def parse_birth_date(value: str | date | None) -> date | None:
    if value is None:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


def is_adult(birth_date: str | date | None, today: date) -> bool:
    """Return True if the person was born at least 18 years before `today`.

    Unparseable birth dates are never adult.
    """
    born = parse_birth_date(birth_date)
    if born is None:
        return False
    return born <= adult_cutoff(today)
