"""
Shared CLI plumbing: logging setup, service construction, error-to-exit-code mapping.
"""

from __future__ import annotations

import logging
import sys
from datetime import date
from decimal import Decimal
from typing import Callable, Mapping

from fi_marketdata.core.errors import InvalidInputError, MarketDataError
from fi_marketdata.core.validation import TENORS, sort_tenors
from fi_marketdata.service import MarketDataService, create_market_data_service

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_INPUT = 2


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_service() -> MarketDataService:
    return create_market_data_service()


def iso_date(text: str) -> date:
    """argparse type for YYYY-MM-DD."""
    return date.fromisoformat(text)


def run_with_service(action: Callable[[MarketDataService], int]) -> int:
    try:
        return action(build_service())
    except InvalidInputError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except MarketDataError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE


def print_map(values: Mapping[str, Decimal], tenor_keys: bool = False) -> None:
    by_tenor = tenor_keys and all(k in TENORS for k in values)
    keys = sort_tenors(values) if by_tenor else sorted(values)
    for k in keys:
        print(f"{k:<8} {values[k]}")
