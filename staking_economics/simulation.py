"""Day-by-day simulation of a deployment driven by oracle reports."""

import sys
from collections.abc import Callable
from dataclasses import dataclass, field

from tqdm import tqdm

from staking_economics.constants import (
    DEFAULT_DEPOSIT_ETH,
    DEFAULT_DEPOSITORS,
    DEFAULT_GENESIS_TIMESTAMP,
    DEFAULT_SIM_DAYS,
    DEFAULT_VALIDATOR_BALANCE_ETH,
    DEFAULT_VALIDATOR_COUNT,
    DEFAULT_WRAP_BPS,
    MAX_BPS,
    REWARD_APR_BPS,
    SECONDS_PER_DAY,
)
from staking_economics.context import ChainContext, ManualClock
from staking_economics.formatters import derive_address, mul_div, parse_ether
from staking_economics.models import Event, ProtocolSnapshot, SimulationConfig
from staking_economics.oracle import RewardOracle
from staking_economics.pool import StakingPool
from staking_economics.reports import take_snapshot
from staking_economics.validation import validate_oracle, validate_pool, validate_wrapper
from staking_economics.wrapper import WrapperToken

ADMIN_LABEL = "staking_economics:admin"
TREASURY_LABEL = "staking_economics:treasury"
DEPOSITOR_LABEL = "staking_economics:depositor"


@dataclass
class SimulationResult:
    """Deployed components plus the daily snapshots (oldest first)."""

    config: SimulationConfig
    ctx: ChainContext
    pool: StakingPool
    wrapper: WrapperToken
    oracle: RewardOracle
    depositors: list[str]
    snapshots: list[ProtocolSnapshot] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # (request id, settled amount) of the closing withdrawal, if one was made.
    withdrawal: tuple[int, int] | None = None


def default_config() -> SimulationConfig:
    """Simulation parameters built from the package defaults."""
    return SimulationConfig(
        days=DEFAULT_SIM_DAYS,
        depositors=DEFAULT_DEPOSITORS,
        deposit_wei=parse_ether(DEFAULT_DEPOSIT_ETH),
        validator_count=DEFAULT_VALIDATOR_COUNT,
        validator_balance_wei=parse_ether(DEFAULT_VALIDATOR_BALANCE_ETH),
        apr_bps=REWARD_APR_BPS,
        wrap_bps=DEFAULT_WRAP_BPS,
        genesis_timestamp=DEFAULT_GENESIS_TIMESTAMP,
    )


def _check_invariants(result: SimulationResult, day: int) -> None:
    issues = (
        validate_pool(result.pool, warn_only=True)
        + validate_wrapper(result.wrapper, warn_only=True)
        + validate_oracle(result.oracle, warn_only=True)
    )
    for issue in issues:
        msg = f"day {day}: {issue}"
        result.warnings.append(msg)
        tqdm.write(f"⚠️  {msg}", file=sys.stderr)


def run_simulation(
    config: SimulationConfig,
    *,
    progress: bool = True,
    on_event: Callable[[Event], None] | None = None,
) -> SimulationResult:
    """
    Deploy pool, wrapper and oracle on a manual clock and run `config.days` daily oracle reports.

    Day 0: each depositor is funded, submits `deposit_wei` and wraps `wrap_bps` of its pool tokens.
    Each following day the oracle synthesizes a report, and the pool ingests it, crediting the
    reward to pool-token holders. Optionally the first depositor withdraws its unwrapped
    balance at the end.
    """
    if config.days < 0 or config.depositors < 0:
        raise ValueError("days and depositors must be non-negative")

    clock = ManualClock(config.genesis_timestamp)
    ctx = ChainContext(clock)
    if on_event is not None:
        ctx.events.subscribe(on_event)

    admin = derive_address(ADMIN_LABEL)
    oracle = RewardOracle(ctx, admin)
    pool = StakingPool(ctx, admin, oracle=oracle.address, fee_recipient=derive_address(TREASURY_LABEL))
    wrapper = WrapperToken(ctx, pool, admin)
    depositors = [derive_address(f"{DEPOSITOR_LABEL}:{i}") for i in range(config.depositors)]
    result = SimulationResult(config=config, ctx=ctx, pool=pool, wrapper=wrapper, oracle=oracle, depositors=depositors)

    # First-ever updates are not rate-limited.
    oracle.set_active_balance(admin, config.validator_balance_wei)
    oracle.set_validator_balance(admin, config.validator_balance_wei * config.validator_count)

    for depositor in depositors:
        ctx.ether.mint(depositor, config.deposit_wei)
        pool.submit(depositor, config.deposit_wei)
        to_wrap = mul_div(pool.balance_of(depositor), config.wrap_bps, MAX_BPS)
        if to_wrap > 0:
            pool.token.approve(depositor, wrapper.address, to_wrap)
            wrapper.wrap(depositor, to_wrap)

    _check_invariants(result, 0)
    result.snapshots.append(take_snapshot(pool, wrapper, oracle, day=0, timestamp=clock.now()))

    with tqdm(
        range(1, config.days + 1),
        desc="⏳ Simulating days",
        unit="day",
        file=sys.stderr,
        disable=not progress,
    ) as pbar:
        for day in pbar:
            clock.advance(SECONDS_PER_DAY)
            report = oracle.simulate_rewards(admin, config.validator_count, config.apr_bps)
            reward = pool.handle_oracle_report(
                oracle.address,
                pool.total_pooled_value + report.total_rewards,
                pool.total_shares,
                SECONDS_PER_DAY,
            )
            pbar.set_postfix(epoch=report.epoch_id, reward=reward)

            _check_invariants(result, day)
            result.snapshots.append(take_snapshot(pool, wrapper, oracle, day=day, timestamp=clock.now()))

    if config.withdraw_at_end and depositors:
        owner = depositors[0]
        amount = pool.balance_of(owner)
        if amount > 0:
            request_id = pool.request_withdrawal(owner, amount)
            paid = pool.claim_withdrawal(owner, request_id)
            result.withdrawal = (request_id, paid)
            _check_invariants(result, config.days)
            result.snapshots.append(take_snapshot(pool, wrapper, oracle, day=config.days, timestamp=clock.now()))

    return result
