"""
Yield-curve commands.
Use: fi-marketdata curve [--date YYYY-MM-DD] [--csv]
     fi-marketdata curves --dates D1 D2 ... [--csv]
     fi-marketdata series --tenor 10Y --start D --end D [--csv]
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from fi_marketdata.frames import curve_to_frame, curves_to_frame, series_to_frame
from fi_marketdata.service import MarketDataService

from ._common import EXIT_OK, configure_logging, iso_date, print_map, run_with_service


def main_curve(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = argparse.ArgumentParser(prog="fi-marketdata curve", description="Print the latest or a historical yield curve.")
    ap.add_argument("--date", type=iso_date, default=None, help="Curve date (default: latest)")
    ap.add_argument("--csv", action="store_true", help="Write tenor,years,yield CSV to stdout")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        if args.date is None:
            snap = service.latest_yield_curve()
        else:
            snap = service.historical_yield_curve(args.date)
        if args.csv:
            curve_to_frame(snap).to_csv(sys.stdout, index=False)
            return EXIT_OK
        print(f"Yield curve {snap.date.isoformat()} ({snap.region}, source={snap.source})")
        print_map(snap.yields, tenor_keys=True)
        return EXIT_OK

    return run_with_service(action)


def main_curves(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = argparse.ArgumentParser(prog="fi-marketdata curves", description="Print yield curves for several dates.")
    ap.add_argument("--dates", type=iso_date, nargs="+", required=True, help="Curve dates (YYYY-MM-DD)")
    ap.add_argument("--csv", action="store_true", help="Write a date x tenor CSV to stdout")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        snaps = service.yield_curves_for_dates(args.dates)
        df = curves_to_frame(snaps)
        if args.csv:
            df.to_csv(sys.stdout)
        else:
            print(df.to_string())
        return EXIT_OK

    return run_with_service(action)


def main_series(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = argparse.ArgumentParser(prog="fi-marketdata series", description="Print a yield time series for one tenor.")
    ap.add_argument("--tenor", required=True, help="Tenor, e.g. 10Y")
    ap.add_argument("--start", type=iso_date, required=True)
    ap.add_argument("--end", type=iso_date, required=True)
    ap.add_argument("--csv", action="store_true", help="Write observed_date,key,value,source CSV to stdout")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        points = service.yield_time_series(args.tenor, args.start, args.end)
        if args.csv:
            series_to_frame(points).to_csv(sys.stdout)
            return EXIT_OK
        if not points:
            print(f"No {args.tenor.upper()} data between {args.start} and {args.end}")
            return EXIT_OK
        for p in points:
            print(f"{p.observed_date.isoformat()} {p.value} ({p.source})")
        return EXIT_OK

    return run_with_service(action)
