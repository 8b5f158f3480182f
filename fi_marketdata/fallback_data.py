"""
Static reference tables used as the terminal tier.

Values are percentages (curves, rates, inflation) or basis points (spreads,
premiums). Tables are read-only mappings built once at import; other modules
reach them only through StaticFallbackResolver.
"""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Mapping

_CURVE_TENORS = ("1M", "3M", "6M", "1Y", "2Y", "3Y", "5Y", "7Y", "10Y", "20Y", "30Y")


def _frozen(values: Dict[str, str]) -> Mapping[str, Decimal]:
    return MappingProxyType({k: Decimal(v) for k, v in values.items()})


def _curve(*rates: str) -> Mapping[str, Decimal]:
    return _frozen(dict(zip(_CURVE_TENORS, rates)))


YIELD_CURVES: Mapping[str, Mapping[str, Decimal]] = MappingProxyType({
    "US": _curve("5.31", "5.28", "5.12", "4.80", "4.49", "4.25", "4.18", "4.20", "4.23", "4.47", "4.39"),
    "EUR": _curve("3.75", "3.72", "3.51", "3.40", "3.15", "3.10", "2.92", "2.89", "3.05", "3.31", "3.45"),
    "UK": _curve("5.15", "5.05", "4.95", "4.65", "4.35", "4.20", "4.10", "4.12", "4.15", "4.40", "4.35"),
    "JP": _curve("0.08", "0.12", "0.15", "0.20", "0.28", "0.35", "0.59", "0.75", "0.95", "1.70", "1.90"),
})

# Basis points over the risk-free curve, by letter bucket.
CREDIT_SPREADS: Mapping[str, Decimal] = _frozen({
    "AAA": "25",
    "AA": "40",
    "A": "75",
    "BBB": "150",
    "BB": "300",
    "B": "500",
    "CCC": "800",
    "CC": "1200",
    "C": "2000",
})

BENCHMARK_RATES: Mapping[str, Decimal] = _frozen({
    "US": "5.25",
    "EUR": "3.75",
    "UK": "5.00",
    "JP": "0.10",
    "CA": "4.50",
    "AU": "4.10",
})

INFLATION_EXPECTATIONS: Mapping[str, Mapping[str, Decimal]] = MappingProxyType({
    "US": _frozen({"2Y": "2.5", "5Y": "2.3", "10Y": "2.2", "30Y": "2.1"}),
    "EUR": _frozen({"2Y": "2.1", "5Y": "2.0", "10Y": "1.9", "30Y": "1.8"}),
    "UK": _frozen({"2Y": "3.2", "5Y": "3.0", "10Y": "2.8", "30Y": "2.7"}),
})

LIQUIDITY_PREMIUMS: Mapping[str, Decimal] = _frozen({
    "GOVERNMENT": "0",
    "CORPORATE": "15",
    "MUNICIPAL": "25",
    "HIGH_YIELD": "50",
    "EMERGING_MARKET": "75",
})

SECTOR_MULTIPLIERS: Mapping[str, Decimal] = _frozen({
    "TECH": "0.85",
    "ENERGY": "1.20",
    "UTILITIES": "0.90",
    "FINANCIALS": "1.10",
    "HEALTHCARE": "0.95",
})

DEFAULT_REGION = "EUR"
DEFAULT_TENOR = "10Y"
DEFAULT_RATING = "BBB"
LAST_RESORT_TENOR = "30Y"
LAST_RESORT_YIELD = Decimal("4.00")
LAST_RESORT_SPREAD = Decimal("150")
LAST_RESORT_BENCHMARK = Decimal("3.75")
