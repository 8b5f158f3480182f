"""
End-to-end resolution through the service: cache -> store -> providers -> fallback.
Providers are fakes; the store is a temp SQLite file; today is 2024-06-14.
"""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from fi_marketdata.cache import TieredCache
from fi_marketdata.core.errors import InvalidInputError
from fi_marketdata.core.types import FALLBACK_SOURCE, DataCategory, TimeSeriesPoint, YieldCurveSnapshot
from fi_marketdata.db.store import MarketDataStore
from fi_marketdata.providers.chain import ProviderChain
from fi_marketdata.service import MarketDataService, create_market_data_service

from tests.fakes import FAKE_YIELDS, FakeProvider, FakeProviderAlwaysFail

TODAY = date(2024, 6, 14)
STORED_YIELDS = {"2Y": Decimal("3.33"), "10Y": Decimal("3.44")}


def make_service(db_path, primary, secondary=None, **kwargs) -> MarketDataService:
    return MarketDataService(
        chain=ProviderChain(primary, secondary),
        store=MarketDataStore(db_path),
        cache=TieredCache(),
        **kwargs,
    )


def stored_curve(store: MarketDataStore, d: date, source: str = "STORED") -> None:
    store.store_snapshot(YieldCurveSnapshot(date=d, source=source, yields=dict(STORED_YIELDS)))


def stored_points(store: MarketDataStore, start: date, days: int) -> None:
    store.store_points(
        [
            TimeSeriesPoint(
                category=DataCategory.YIELD_CURVE,
                key="10Y",
                value=Decimal("3.00"),
                observed_date=date.fromordinal(start.toordinal() + i),
                source="STORED",
                currency="EUR",
            )
            for i in range(days)
        ],
        scope="EUR",
    )


class TestColdStart:
    def test_fallback_curve_then_cache_hit(self, db_path):
        provider = FakeProvider("primary", healthy=False)
        service = make_service(db_path, provider)

        first = service.latest_yield_curve()
        assert first.source == FALLBACK_SOURCE
        assert first.yields["10Y"] == Decimal("3.05")
        assert first.date == TODAY

        second = service.latest_yield_curve()
        assert second == first
        assert service.cache_stats()["yield_curves"]["hits"] == 1
        assert provider.call_count == 0

    def test_fallback_is_not_written_back(self, db_path):
        service = make_service(db_path, FakeProvider("primary", healthy=False))
        service.latest_yield_curve()
        assert service.store.count() == 0


class TestTierPrecedence:
    def test_provider_result_written_back(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        snap = service.latest_yield_curve()
        assert snap.source == "primary"
        assert snap.yields == FAKE_YIELDS
        assert service.store.count(DataCategory.YIELD_CURVE) == len(FAKE_YIELDS)

    def test_store_served_before_providers(self, db_path):
        make_service(db_path, FakeProvider("primary")).latest_yield_curve()

        provider = FakeProviderAlwaysFail("other")
        service = make_service(db_path, provider)
        snap = service.latest_yield_curve()
        assert snap.source == "primary"
        assert provider.call_count == 0

    def test_cache_served_before_store(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        service.latest_yield_curve()
        service.clear_database_data()
        assert service.latest_yield_curve().source == "primary"

    def test_secondary_used_when_primary_fails(self, db_path):
        secondary = FakeProvider("secondary")
        service = make_service(db_path, FakeProviderAlwaysFail("primary"), secondary)
        assert service.latest_yield_curve().source == "secondary"
        assert secondary.call_count == 1

    def test_fresh_cache_entry_skips_store_and_providers(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        service.credit_spreads()
        calls_before = provider.call_count

        service.store.latest_as_of = MagicMock()
        service.credit_spreads()
        service.store.latest_as_of.assert_not_called()
        assert provider.call_count == calls_before

    def test_both_providers_failing_falls_back(self, db_path):
        primary = FakeProviderAlwaysFail("primary")
        secondary = FakeProviderAlwaysFail("secondary")
        service = make_service(db_path, primary, secondary)
        snap = service.latest_yield_curve()
        assert primary.call_count == 1
        assert secondary.call_count == 1
        assert snap.source == FALLBACK_SOURCE
        assert snap.yields

    def test_stale_store_record_not_used_for_latest(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        stored_curve(service.store, date(2024, 6, 1))
        assert service.latest_yield_curve().source == "primary"

    def test_write_back_failure_still_returns_value(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        service = make_service(blocker / "db.sqlite", FakeProvider("primary"))
        assert service.latest_yield_curve().source == "primary"


class TestHistoricalCurves:
    def test_store_within_tolerance(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        stored_curve(service.store, date(2024, 3, 1))

        snap = service.historical_yield_curve(date(2024, 3, 4))
        assert snap.source == "STORED"
        assert snap.date == date(2024, 3, 1)
        assert snap.yields == STORED_YIELDS
        assert provider.call_count == 0

    def test_store_outside_tolerance_goes_to_provider(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        stored_curve(service.store, date(2024, 3, 1))

        snap = service.historical_yield_curve(date(2024, 3, 20))
        assert snap.source == "primary"
        assert provider.requested_dates == [date(2024, 3, 20)]

    def test_exhausted_providers_fall_back_with_requested_date(self, db_path):
        service = make_service(db_path, FakeProviderAlwaysFail("primary"))
        snap = service.historical_yield_curve(date(2023, 12, 29))
        assert snap.source == FALLBACK_SOURCE
        assert snap.date == date(2023, 12, 29)

    def test_future_date_rejected_before_any_tier(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        with pytest.raises(InvalidInputError):
            service.historical_yield_curve(date(2024, 6, 15))
        assert provider.call_count == 0


class TestBatchCurves:
    def test_mixed_tiers_keep_request_order(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        stored_curve(service.store, date(2024, 1, 2))

        request = [date(2024, 1, 3), date(2024, 1, 2), date(2024, 1, 3)]
        snaps = service.yield_curves_for_dates(request)
        assert [s.date for s in snaps] == request
        assert [s.source for s in snaps] == ["primary", "STORED", "primary"]
        assert provider.requested_dates == [date(2024, 1, 3)]
        assert service.store.exact_date(DataCategory.YIELD_CURVE, date(2024, 1, 3), scope="EUR") is not None

    def test_missing_dates_filled_from_fallback(self, db_path):
        service = make_service(db_path, FakeProviderAlwaysFail("primary"))
        snaps = service.yield_curves_for_dates([date(2024, 1, 2), date(2024, 1, 3)])
        assert [s.source for s in snaps] == [FALLBACK_SOURCE, FALLBACK_SOURCE]
        assert [s.date for s in snaps] == [date(2024, 1, 2), date(2024, 1, 3)]

    def test_invalid_batches_rejected(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        with pytest.raises(InvalidInputError):
            service.yield_curves_for_dates([])
        with pytest.raises(InvalidInputError):
            service.yield_curves_for_dates([date(2024, 1, 2)] * 101)


class TestTimeSeries:
    def test_provider_series_written_back_then_served_from_store(self, db_path):
        make_service(db_path, FakeProvider("primary")).yield_time_series(
            "10Y", date(2024, 1, 1), date(2024, 1, 31)
        )

        provider = FakeProviderAlwaysFail("other")
        service = make_service(db_path, provider)
        points = service.yield_time_series("10y", date(2024, 1, 1), date(2024, 1, 31))
        assert len(points) == 31
        assert points[0].observed_date == date(2024, 1, 1)
        assert all(p.source == "primary" for p in points)
        assert provider.call_count == 0

    def test_partial_store_coverage_refreshes_from_provider(self, db_path):
        provider = FakeProvider("primary")
        service = make_service(db_path, provider)
        stored_points(service.store, date(2024, 1, 1), 10)

        points = service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31))
        assert provider.calls == ["time_series"]
        assert len(points) == 31

    def test_partial_store_returned_when_providers_fail(self, db_path):
        service = make_service(db_path, FakeProviderAlwaysFail("primary"))
        stored_points(service.store, date(2024, 1, 1), 10)
        points = service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31))
        assert len(points) == 10

    def test_no_data_anywhere_is_empty_and_not_cached(self, db_path):
        provider = FakeProviderAlwaysFail("primary")
        service = make_service(db_path, provider)
        assert service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31)) == []
        assert service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31)) == []
        assert provider.call_count == 2

    def test_invalid_arguments(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        with pytest.raises(InvalidInputError):
            service.yield_time_series("10Y", date(2024, 3, 1), date(2024, 2, 1))
        with pytest.raises(InvalidInputError):
            service.yield_time_series("15Y", date(2024, 1, 1), date(2024, 2, 1))

    def test_range_may_end_tomorrow_but_single_date_may_not(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        points = service.yield_time_series("10Y", date(2024, 6, 1), date(2024, 6, 15))
        assert points[-1].observed_date == TODAY
        with pytest.raises(InvalidInputError):
            service.historical_yield_curve(date(2024, 6, 15))


class TestReturnedValuesAreIsolated:
    def test_cached_curve_yields_are_read_only(self, db_path):
        service = make_service(db_path, FakeProvider("primary", healthy=False))
        first = service.latest_yield_curve()
        with pytest.raises(TypeError):
            first.yields.clear()
        again = service.latest_yield_curve()
        assert again.source == FALLBACK_SOURCE
        assert again.yields["10Y"] == Decimal("3.05")
        assert len(again.yields) == 11

    def test_snapshot_keeps_its_own_copy_of_input(self):
        raw = dict(STORED_YIELDS)
        snap = YieldCurveSnapshot(date=TODAY, source="STORED", yields=raw)
        raw.clear()
        assert snap.yields == STORED_YIELDS

    def test_clearing_batch_result_does_not_touch_cache(self, db_path):
        service = make_service(db_path, FakeProvider("primary", healthy=False))
        dates = [date(2024, 1, 2), date(2024, 1, 3)]
        service.yield_curves_for_dates(dates).clear()
        again = service.yield_curves_for_dates(dates)
        assert [s.date for s in again] == dates
        assert service.cache_stats()["yield_curves"]["hits"] == 1

    def test_clearing_series_result_does_not_touch_cache(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31)).clear()
        again = service.yield_time_series("10Y", date(2024, 1, 1), date(2024, 1, 31))
        assert len(again) == 31
        assert service.cache_stats()["time_series"]["hits"] == 1


class TestReferenceData:
    def test_credit_spreads_from_secondary_written_back(self, db_path):
        spreads = {"AAA": Decimal("22"), "BBB": Decimal("160")}
        service = make_service(
            db_path, FakeProvider("primary"), FakeProvider("secondary", categories={"credit_spreads": spreads})
        )
        assert service.credit_spreads() == spreads
        rs = service.store.latest_as_of(DataCategory.CREDIT_SPREAD, TODAY)
        assert rs.source == "secondary"
        assert rs.values == spreads

    def test_unsupported_everywhere_uses_fallback(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        assert service.credit_spreads()["BBB"] == Decimal("150")
        assert service.benchmark_rates()["US"] == Decimal("5.25")
        assert service.liquidity_premiums()["CORPORATE"] == Decimal("15")
        assert service.inflation_expectations("uk")["10Y"] == Decimal("2.8")

    def test_sector_adjustment_ordering(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        base = service.sector_credit_data(None)
        energy = service.sector_credit_data("energy")
        tech = service.sector_credit_data("TECH")
        assert energy["BBB"] > base["BBB"] > tech["BBB"]
        assert base == service.credit_spreads()

    def test_returned_maps_are_copies(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        service.credit_spreads()["BBB"] = Decimal("0")
        assert service.credit_spreads()["BBB"] == Decimal("150")

    def test_invalid_region_and_sector(self, db_path):
        service = make_service(db_path, FakeProvider("primary"))
        with pytest.raises(InvalidInputError):
            service.inflation_expectations("XX")
        with pytest.raises(InvalidInputError):
            service.sector_credit_data("  ")


class TestScalarLookups:
    def test_yield_for_tenor_tiers(self, db_path):
        assert make_service(db_path, FakeProvider("p", healthy=False)).yield_for_tenor("10y") == Decimal("3.05")
        assert make_service(db_path, FakeProvider("p")).yield_for_tenor("10Y") == FAKE_YIELDS["10Y"]

    def test_yield_for_tenor_non_eur_region_skips_eur_providers(self, db_path):
        provider = FakeProvider("p")
        service = make_service(db_path, provider)
        assert service.yield_for_tenor("10Y", "US") == Decimal("4.23")
        assert provider.call_count == 0

    def test_yield_for_tenor_unknown_region_uses_eur(self, db_path):
        service = make_service(db_path, FakeProvider("p", healthy=False))
        assert service.yield_for_tenor("2Y", "XX") == Decimal("3.15")

    def test_credit_spread_for_rating(self, db_path):
        spreads = {"AA": Decimal("41"), "BBB": Decimal("151")}
        service = make_service(db_path, FakeProvider("p", categories={"credit_spreads": spreads}))
        assert service.credit_spread_for_rating("AA+") == Decimal("41")
        assert service.credit_spread_for_rating("NR") == Decimal("151")

    def test_missing_or_unknown_rating_matches_bbb(self, db_path):
        service = make_service(db_path, FakeProvider("p"))
        bbb = service.credit_spread_for_rating("BBB")
        assert service.credit_spread_for_rating(None) == bbb
        assert service.credit_spread_for_rating("NOTARATING") == bbb
        assert bbb == Decimal("150")

    def test_credit_spread_missing_bucket_falls_back(self, db_path):
        service = make_service(db_path, FakeProvider("p", categories={"credit_spreads": {"AAA": Decimal("20")}}))
        assert service.credit_spread_for_rating("B") == Decimal("500")

    def test_benchmark_rate_for_region(self, db_path):
        service = make_service(db_path, FakeProvider("p"))
        assert service.benchmark_rate_for_region("jp") == Decimal("0.10")
        assert service.benchmark_rate_for_region(None) == Decimal("3.75")


class TestVisibilityAndMaintenance:
    def test_health_and_tenors(self, db_path):
        service = make_service(db_path, FakeProvider("a", healthy=False), FakeProvider("b"))
        assert service.is_available() is True
        assert service.provider_health_status() == {"a": False, "b": True}
        assert len(service.supported_tenors()) == 11

    def test_clean_old_data(self, db_path):
        service = make_service(db_path, FakeProvider("p"))
        stored_curve(service.store, date(2024, 1, 2))
        stored_curve(service.store, date(2024, 6, 1))
        assert service.clean_old_data(30) == len(STORED_YIELDS)
        with pytest.raises(InvalidInputError):
            service.clean_old_data(-1)

    def test_clear_cache_by_name(self, db_path):
        service = make_service(db_path, FakeProvider("p"))
        service.latest_yield_curve()
        assert service.clear_cache("yield_curves") == 1
        with pytest.raises(InvalidInputError, match="Unknown cache pool"):
            service.clear_cache("bogus")

    def test_clear_caches(self, db_path):
        service = make_service(db_path, FakeProvider("p"))
        service.latest_yield_curve()
        service.credit_spreads()
        assert service.clear_caches() == 2


def test_create_market_data_service_from_env(monkeypatch, db_path):
    monkeypatch.setenv("FI_MARKETDATA_DB_PATH", db_path)
    service = create_market_data_service()
    assert service.store.db_path == db_path
    assert service.provider_health_status() == {"FRED": False}
    assert service.latest_yield_curve().source == FALLBACK_SOURCE
