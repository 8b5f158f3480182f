"""
Operational commands: init, health, clean, clear-db, cache-stats.
Use: fi-marketdata health | clean --days 365 | clear-db --yes | cache-stats | init
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from fi_marketdata.service import MarketDataService

from ._common import EXIT_FAILURE, EXIT_OK, configure_logging, run_with_service


def _parser(prog: str, description: str) -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=f"fi-marketdata {prog}", description=description)
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap


def main_init(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parser("init", "Create the SQLite store and run migrations.").parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        service.store.ensure_schema()
        print(f"Initialized DB: {service.store.db_path}")
        return EXIT_OK

    return run_with_service(action)


def main_health(argv: Optional[List[str]] = None) -> int:
    """Exit 0 if at least one provider is healthy, else 1."""
    if argv is None:
        argv = sys.argv[1:]
    args = _parser("health", "Probe every configured provider.").parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        status = service.provider_health_status()
        for name, ok in status.items():
            print(f"{name:<16} {'OK' if ok else 'UNAVAILABLE'}")
        tenors = service.supported_tenors()
        print(f"supported tenors: {len(tenors)}")
        return EXIT_OK if any(status.values()) else EXIT_FAILURE

    return run_with_service(action)


def main_clean(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = _parser("clean", "Delete stored records older than N days.")
    ap.add_argument("--days", type=int, required=True, help="Days of history to keep")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        deleted = service.clean_old_data(args.days)
        print(f"Deleted {deleted} records older than {args.days} days")
        return EXIT_OK

    return run_with_service(action)


def main_clear_db(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    ap = _parser("clear-db", "Delete every stored market-data record.")
    ap.add_argument("--yes", action="store_true", help="Confirm deletion")
    args = ap.parse_args(argv)
    configure_logging(args.verbose)
    if not args.yes:
        print("Refusing to clear the store without --yes", file=sys.stderr)
        return EXIT_FAILURE

    def action(service: MarketDataService) -> int:
        deleted = service.clear_database_data()
        print(f"Deleted {deleted} records")
        return EXIT_OK

    return run_with_service(action)


def main_cache_stats(argv: Optional[List[str]] = None) -> int:
    """Stats for a fresh process; useful mainly to check configured pool sizes and TTLs."""
    if argv is None:
        argv = sys.argv[1:]
    args = _parser("cache-stats", "Print cache pool configuration and counters.").parse_args(argv)
    configure_logging(args.verbose)

    def action(service: MarketDataService) -> int:
        for name, stats in service.cache_stats().items():
            print(
                f"{name:<14} size={stats['size']}/{stats['max_size']} "
                f"ttl={int(stats['ttl_seconds'])}s hits={stats['hits']} misses={stats['misses']}"
            )
        return EXIT_OK

    return run_with_service(action)
