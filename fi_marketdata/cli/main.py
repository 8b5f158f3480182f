"""
Top-level CLI dispatcher: fi-marketdata <command> [args...].
All commands dispatch to the command modules in this package.
"""

from __future__ import annotations

import argparse
import sys
from typing import Callable, Dict, List, Optional

from . import admin, curves, reference

COMMANDS: Dict[str, Callable[[Optional[List[str]]], int]] = {
    "init": admin.main_init,
    "curve": curves.main_curve,
    "curves": curves.main_curves,
    "series": curves.main_series,
    "spreads": reference.main_spreads,
    "rates": reference.main_rates,
    "inflation": reference.main_inflation,
    "liquidity": reference.main_liquidity,
    "health": admin.main_health,
    "clean": admin.main_clean,
    "clear-db": admin.main_clear_db,
    "cache-stats": admin.main_cache_stats,
}


def main(argv: Optional[List[str]] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    # Subcommands own their arguments; dispatch before any parsing.
    if argv and argv[0] in COMMANDS:
        return COMMANDS[argv[0]](list(argv[1:]))
    parser = argparse.ArgumentParser(
        prog="fi-marketdata",
        description="Fixed-income market reference data (yield curves, spreads, rates)",
    )
    subparsers = parser.add_subparsers(dest="command", help="command")
    for name in COMMANDS:
        subparsers.add_parser(name, help=f"Run {name}")
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
