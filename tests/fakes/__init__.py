"""Fake providers for chain and service tests (no live network)."""

from .providers import (
    FAKE_YIELDS,
    FakeProvider,
    FakeProviderAlwaysFail,
    FakeProviderFailNThenSucceed,
)

__all__ = [
    "FAKE_YIELDS",
    "FakeProvider",
    "FakeProviderAlwaysFail",
    "FakeProviderFailNThenSucceed",
]
