"""
Reference-data commands: spreads, rates, inflation, liquidity.
Use: fi-marketdata spreads [--sector ENERGY] | rates | inflation --region US | liquidity
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from fi_marketdata.service import MarketDataService

from ._common import EXIT_OK, configure_logging, print_map, run_with_service


def _parser(prog: str, description: str) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=f"fi-marketdata {prog}", description=description)
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main_spreads(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = _parser("spreads", "Print credit spreads (bp) by rating, optionally sector-adjusted.")
    ap.add_argument("--sector", default=None, help="Industry sector, e.g. ENERGY")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        if args.sector is None:
            print_map(service.credit_spreads())
        else:
            print_map(service.sector_credit_data(args.sector))
        return EXIT_OK

    return run_with_service(action)


def main_rates(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parser("rates", "Print benchmark policy rates by region.").parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        print_map(service.benchmark_rates())
        return EXIT_OK

    return run_with_service(action)


def main_inflation(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = _parser("inflation", "Print inflation expectations by horizon for a region.")
    ap.add_argument("--region", required=True, help="US, EUR, UK, JP, CA or AU")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        print_map(service.inflation_expectations(args.region), tenor_keys=True)
        return EXIT_OK

    return run_with_service(action)


def main_liquidity(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parser("liquidity", "Print liquidity premiums (bp) by instrument class.").parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        print_map(service.liquidity_premiums())
        return EXIT_OK

    return run_with_service(action)
