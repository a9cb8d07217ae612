"""CLI and main logic."""

import argparse
import os
import sys
from dataclasses import asdict, replace

from tqdm import tqdm

from staking_economics.console import print_report_with_deltas
from staking_economics.constants import SCENARIO_ENV_VAR
from staking_economics.formatters import parse_ether
from staking_economics.models import Event, SimulationConfig
from staking_economics.parsing import load_scenario_file, parse_scenario, validate_config
from staking_economics.simulation import default_config, run_simulation


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(description="Simulate a liquid-staking pool, its wrapper token and reward oracle.")
    p.add_argument(
        "--scenario",
        default=None,
        help=f"JSON scenario file with simulation parameters. Defaults to ${SCENARIO_ENV_VAR} if set.",
    )
    p.add_argument("--days", type=int, default=None, help="Number of daily oracle reports to simulate.")
    p.add_argument("--depositors", type=int, default=None, help="Number of depositing accounts.")
    p.add_argument("--deposit-eth", default=None, help="ETH deposited by each depositor (e.g. 32 or 0.5).")
    p.add_argument("--validators", type=int, default=None, help="Validator count used for oracle rewards.")
    p.add_argument("--validator-balance-eth", default=None, help="Active balance per validator in ETH.")
    p.add_argument("--apr-bps", type=int, default=None, help="Validator reward APR in basis points (1..10000).")
    p.add_argument(
        "--wrap-bps",
        type=int,
        default=None,
        help="Share of each depositor's pool tokens to wrap, in basis points (0..10000).",
    )
    p.add_argument(
        "--no-withdraw",
        action="store_true",
        help="Skip the closing withdrawal request and claim.",
    )
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar.")
    p.add_argument("--verbose", action="store_true", help="Echo every emitted event to stderr.")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    """Merge defaults, the scenario file and explicit flags (in increasing precedence)."""
    config = default_config()

    scenario_path = args.scenario or os.getenv(SCENARIO_ENV_VAR)
    if scenario_path:
        config = parse_scenario(load_scenario_file(scenario_path), base=config)

    overrides: dict = {}
    if args.days is not None:
        overrides["days"] = args.days
    if args.depositors is not None:
        overrides["depositors"] = args.depositors
    if args.deposit_eth is not None:
        overrides["deposit_wei"] = parse_ether(args.deposit_eth)
    if args.validators is not None:
        overrides["validator_count"] = args.validators
    if args.validator_balance_eth is not None:
        overrides["validator_balance_wei"] = parse_ether(args.validator_balance_eth)
    if args.apr_bps is not None:
        overrides["apr_bps"] = args.apr_bps
    if args.wrap_bps is not None:
        overrides["wrap_bps"] = args.wrap_bps
    if args.no_withdraw:
        overrides["withdraw_at_end"] = False

    config = replace(config, **overrides)
    validate_config(config)
    return config


def _echo_event(event: Event) -> None:
    fields = ", ".join(f"{k}={v}" for k, v in asdict(event).items())
    tqdm.write(f"📝 {event.name}({fields})", file=sys.stderr)


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = build_config(args)
    except (OSError, ValueError) as ex:
        print(f"Error: invalid configuration: {ex}", file=sys.stderr)
        return 2

    print(
        f"ℹ️ Simulating {config.days} day(s), {config.depositors} depositor(s), "
        f"{config.validator_count} validator(s) at {config.apr_bps} bps",
        file=sys.stderr,
    )
    result = run_simulation(
        config,
        progress=not args.no_progress,
        on_event=_echo_event if args.verbose else None,
    )

    print_report_with_deltas(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
