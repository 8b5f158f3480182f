"""
Input validation: tenors, regions, dates, ranges, batches, sectors, retention.
Today is pinned to 2024-06-14 by conftest.
"""
from __future__ import annotations

from datetime import date, datetime

import pytest

from fi_marketdata.core.errors import InvalidInputError
from fi_marketdata.core.validation import (
    MAX_BATCH_DATES,
    normalize_rating,
    normalize_region,
    sort_tenors,
    tenor_years,
    validate_date,
    validate_date_range,
    validate_dates,
    validate_days_to_keep,
    validate_region,
    validate_sector,
    validate_tenor,
)


class TestTenors:
    def test_normalizes_case_and_whitespace(self):
        assert validate_tenor(" 10y ") == "10Y"

    @pytest.mark.parametrize("bad", [None, "", "  ", "15Y", "10"])
    def test_rejects_unknown_or_empty(self, bad):
        with pytest.raises(InvalidInputError):
            validate_tenor(bad)

    def test_respects_provider_supported_set(self):
        with pytest.raises(InvalidInputError, match="Valid tenors: 2Y, 10Y"):
            validate_tenor("5Y", supported={"10Y", "2Y"})

    def test_maturity_ordering(self):
        assert tenor_years("6M") == 0.5
        assert sort_tenors(["30Y", "1M", "10Y", "6M", "2Y"]) == ["1M", "6M", "2Y", "10Y", "30Y"]


class TestRegions:
    def test_valid_region_upper_cased(self):
        assert validate_region("eur") == "EUR"

    def test_unknown_region_rejected(self):
        with pytest.raises(InvalidInputError, match="Unsupported region"):
            validate_region("XX")

    def test_normalize_region_returns_none_for_unknown(self):
        assert normalize_region("uk") == "UK"
        assert normalize_region("XX") is None
        assert normalize_region(None) is None


class TestDates:
    def test_today_is_accepted(self):
        assert validate_date(date(2024, 6, 14)) == date(2024, 6, 14)

    def test_future_date_rejected(self):
        with pytest.raises(InvalidInputError, match="future"):
            validate_date(date(2024, 6, 15))

    def test_none_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_date(None)

    def test_datetime_reduced_to_date(self):
        assert validate_date(datetime(2024, 1, 2, 15, 30)) == date(2024, 1, 2)


class TestDateRange:
    def test_inverted_range_rejected(self):
        with pytest.raises(InvalidInputError, match="cannot be after"):
            validate_date_range(date(2024, 3, 1), date(2024, 2, 1))

    def test_end_may_be_tomorrow(self):
        assert validate_date_range(date(2024, 6, 1), date(2024, 6, 15)) == (date(2024, 6, 1), date(2024, 6, 15))

    def test_end_beyond_tomorrow_rejected(self):
        with pytest.raises(InvalidInputError, match="End date"):
            validate_date_range(date(2024, 6, 1), date(2024, 6, 16))

    def test_start_more_than_fifty_years_back_rejected(self):
        with pytest.raises(InvalidInputError, match="50 years"):
            validate_date_range(date(1974, 6, 13), date(2024, 1, 1))
        assert validate_date_range(date(1974, 6, 14), date(2024, 1, 1))[0] == date(1974, 6, 14)

    def test_missing_bounds_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_date_range(None, date(2024, 1, 1))


class TestBatchDates:
    def test_empty_rejected(self):
        with pytest.raises(InvalidInputError):
            validate_dates([])
        with pytest.raises(InvalidInputError):
            validate_dates(None)

    def test_too_many_rejected(self):
        dates = [date(2024, 1, 1)] * (MAX_BATCH_DATES + 1)
        with pytest.raises(InvalidInputError, match="Too many dates"):
            validate_dates(dates)

    def test_any_future_entry_rejects_whole_batch(self):
        with pytest.raises(InvalidInputError):
            validate_dates([date(2024, 1, 2), date(2030, 1, 1)])

    def test_order_and_duplicates_preserved(self):
        ds = [date(2024, 3, 1), date(2024, 1, 1), date(2024, 3, 1)]
        assert validate_dates(ds) == ds


class TestSectorAndRetention:
    def test_sector_none_passes_through(self):
        assert validate_sector(None) is None

    def test_sector_upper_cased(self):
        assert validate_sector(" energy ") == "ENERGY"

    @pytest.mark.parametrize("bad", ["", "   ", "X" * 51])
    def test_sector_blank_or_long_rejected(self, bad):
        with pytest.raises(InvalidInputError):
            validate_sector(bad)

    def test_days_to_keep(self):
        assert validate_days_to_keep(0) == 0
        with pytest.raises(InvalidInputError):
            validate_days_to_keep(-1)
        with pytest.raises(InvalidInputError):
            validate_days_to_keep(True)
        with pytest.raises(InvalidInputError):
            validate_days_to_keep("30")


class TestRatings:
    @pytest.mark.parametrize(
        "raw,bucket",
        [("AA+", "AA"), ("bbb-", "BBB"), ("A", "A"), ("B-", "B")],
    )
    def test_notches_stripped(self, raw, bucket):
        assert normalize_rating(raw) == bucket

    def test_unknown_rating_is_none(self):
        assert normalize_rating("ZZZ") is None
        assert normalize_rating("") is None
