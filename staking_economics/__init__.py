"""Liquid-staking accounting engine: staking pool, wrapper token and reward oracle."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the staking-economics script."""
    import sys

    from staking_economics.cli import main

    raise SystemExit(main(sys.argv[1:]))
