"""Tests for the pure field normalization rules."""

from __future__ import annotations

from datetime import date

import pytest

from music_normalization.cleaning.fields import (
    adult_cutoff,
    is_adult,
    normalize_date,
    normalize_name,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3/4/23", "2023-03-04"),
        ("3/4/24", "1924-03-04"),
        ("12/31/99", "1999-12-31"),
        ("1/1/00", "2000-01-01"),
        (None, None),
        ("not-a-date", None),
    ],
)
def test_normalize_date_examples(raw: str | None, expected: str | None) -> None:
    assert normalize_date(raw) == expected


def test_normalize_date_uses_trailing_two_digits_of_long_year() -> None:
    assert normalize_date("3/4/2023") == "2023-03-04"


def test_normalize_date_rejects_non_numeric_year_token() -> None:
    assert normalize_date("3/4/a3") is None
    assert normalize_date("") is None
    assert normalize_date("   ") is None


def test_normalize_date_needs_month_and_day_segments() -> None:
    assert normalize_date("1999") is None
    assert normalize_date("4/99") is None


def test_normalize_date_does_not_validate_calendar() -> None:
    assert normalize_date("13/45/20") == "2020-13-45"


def test_normalize_date_strips_surrounding_whitespace() -> None:
    assert normalize_date(" 7/9/85 ") == "1985-07-09"


def test_normalize_name() -> None:
    assert normalize_name(" Bob ") == "Bob"
    assert normalize_name("  ") is None
    assert normalize_name(None) is None


def test_is_adult_boundary() -> None:
    today = date(2026, 6, 15)
    assert is_adult("2008-06-15", today) is True
    assert is_adult("2008-06-16", today) is False
    assert is_adult(date(1970, 1, 1), today) is True


def test_is_adult_rejects_unparseable_dates() -> None:
    assert is_adult("yesterday", date(2026, 1, 1)) is False
    assert is_adult(None, date(2026, 1, 1)) is False


def test_adult_cutoff_on_leap_day() -> None:
    assert adult_cutoff(date(2024, 2, 29)) == date(2006, 2, 28)
