"""Invariant checks for pool, wrapper and oracle state."""

from staking_economics.oracle import RewardOracle
from staking_economics.pool import StakingPool
from staking_economics.wrapper import WrapperToken


def validate_pool(pool: StakingPool, *, warn_only: bool = False) -> list[str]:
    """
    Validate pool ledger invariants.

    Returns list of validation warnings/errors. If warn_only=False, raises ValueError on critical errors.
    """
    issues: list[str] = []

    # 1. Share conservation: per-account shares sum to the total.
    shares_sum = sum(pool.state.shares.values())
    if shares_sum != pool.total_shares:
        msg = f"Pool {pool.address}: share sum mismatch: sum(shareOf)={shares_sum} != totalShares={pool.total_shares}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 2. An empty pool has no shares outstanding.
    if pool.total_pooled_value == 0 and pool.total_shares != 0:
        msg = f"Pool {pool.address}: totalPooledValue is 0 but totalShares={pool.total_shares}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 3. Non-negative values
    non_negative_fields = {
        "totalPooledValue": pool.total_pooled_value,
        "totalShares": pool.total_shares,
        "minShareOf": min(pool.state.shares.values(), default=0),
    }
    for name, value in non_negative_fields.items():
        if value < 0:
            msg = f"Pool {pool.address}: negative {name}: {value}"
            issues.append(msg)
            if not warn_only:
                raise ValueError(msg)

    # 4. ETH custody should cover queued settlements. Only a warning: fee tokens are unbacked.
    custody = pool.eth_custody()
    pending = pool.pending_settlements()
    if custody < pending:
        issues.append(f"Pool {pool.address}: ETH custody {custody} is below pending settlements {pending}")

    return issues


def validate_wrapper(wrapper: WrapperToken, *, warn_only: bool = False) -> list[str]:
    """Validate that wrapper supply and reserve are both zero or both nonzero."""
    issues: list[str] = []

    supply = wrapper.wrapper_supply
    reserve = wrapper.reserve()
    if reserve == 0 and supply != 0:
        msg = f"Wrapper {wrapper.address}: reserve is empty but supply={supply}"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)
    if supply == 0 and reserve != 0:
        # Donated pool tokens before the first wrap; the first wrapper collects them.
        issues.append(f"Wrapper {wrapper.address}: supply is 0 but reserve={reserve}")

    return issues


def validate_oracle(oracle: RewardOracle, *, warn_only: bool = True) -> list[str]:
    """
    Validate report history ordering.

    Returns list of warnings. By default, only warns (doesn't raise).
    """
    issues: list[str] = []

    reports = oracle.reports()
    for prev, cur in zip(reports, reports[1:]):
        if cur.timestamp <= prev.timestamp:
            msg = (
                f"Oracle report timestamps not increasing: epoch {prev.epoch_id} @ {prev.timestamp} → "
                f"epoch {cur.epoch_id} @ {cur.timestamp}"
            )
            issues.append(msg)
            if not warn_only:
                raise ValueError(msg)

    latest = oracle.latest_report()
    if reports and (latest is None or latest.epoch_id != reports[-1].epoch_id):
        msg = f"Oracle current epoch {oracle.current_epoch} does not point at the latest report"
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    return issues
