"""Shared fixtures: pinned calendar date and an environment free of real credentials."""

from __future__ import annotations

from datetime import date

import pytest

FIXED_TODAY = date(2024, 6, 14)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("FI_MARKETDATA_DETERMINISTIC_DATE", FIXED_TODAY.isoformat())
    monkeypatch.setenv("FI_MARKETDATA_CONFIG", str(tmp_path / "no-such-config.yaml"))
    for var in (
        "FRED_API_KEY",
        "FI_MARKETDATA_DB_PATH",
        "ALTERNATIVE_API_ENABLED",
        "ALTERNATIVE_API_BASE_URL",
        "ALTERNATIVE_API_KEY",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "marketdata.sqlite")
