"""Scenario file parsing."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Any

from staking_economics.constants import MAX_BPS
from staking_economics.formatters import as_bool, as_int, parse_ether
from staking_economics.models import SimulationConfig

# Scenario JSON key -> (SimulationConfig field, converter)
_SCENARIO_FIELDS = {
    "days": ("days", as_int),
    "depositors": ("depositors", as_int),
    "depositEth": ("deposit_wei", parse_ether),
    "depositWei": ("deposit_wei", as_int),
    "validatorCount": ("validator_count", as_int),
    "validatorBalanceEth": ("validator_balance_wei", parse_ether),
    "validatorBalanceWei": ("validator_balance_wei", as_int),
    "aprBps": ("apr_bps", as_int),
    "wrapBps": ("wrap_bps", as_int),
    "genesisTimestamp": ("genesis_timestamp", as_int),
    "withdrawAtEnd": ("withdraw_at_end", as_bool),
}


def parse_scenario_bytes(raw_bytes: bytes) -> dict[str, Any]:
    """Parse scenario JSON from raw bytes."""
    data = json.loads(raw_bytes.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Unexpected scenario format (expected JSON object)")
    return data


def load_scenario_file(path: str | Path) -> dict[str, Any]:
    """Read a scenario JSON file."""
    return parse_scenario_bytes(Path(path).read_bytes())


def parse_scenario(scenario: dict[str, Any], *, base: SimulationConfig) -> SimulationConfig:
    """
    Apply scenario overrides on top of `base`.

    Args:
        scenario: JSON object with camelCase keys (e.g. "days", "depositEth", "aprBps")
        base: Config supplying every value the scenario leaves out

    Returns:
        The merged, validated SimulationConfig
    """
    unknown = sorted(set(scenario) - set(_SCENARIO_FIELDS))
    if unknown:
        raise ValueError(f"Unknown scenario keys: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in scenario.items():
        field_name, convert = _SCENARIO_FIELDS[key]
        try:
            overrides[field_name] = convert(value)
        except (TypeError, ValueError) as ex:
            raise ValueError(f"Invalid scenario value for {key}: {value!r}") from ex

    config = replace(base, **overrides)
    validate_config(config)
    return config


def validate_config(config: SimulationConfig) -> None:
    """Raise ValueError if the config cannot drive a simulation."""
    if config.days < 0:
        raise ValueError(f"days must be >= 0, got {config.days}")
    if config.depositors < 0:
        raise ValueError(f"depositors must be >= 0, got {config.depositors}")
    if config.deposit_wei <= 0:
        raise ValueError("deposit must be > 0")
    if config.validator_count <= 0:
        raise ValueError(f"validatorCount must be > 0, got {config.validator_count}")
    if config.validator_balance_wei < 0:
        raise ValueError("validator balance must be >= 0")
    if not 0 < config.apr_bps <= MAX_BPS:
        raise ValueError(f"aprBps must be in (0, {MAX_BPS}], got {config.apr_bps}")
    if not 0 <= config.wrap_bps <= MAX_BPS:
        raise ValueError(f"wrapBps must be in [0, {MAX_BPS}], got {config.wrap_bps}")
