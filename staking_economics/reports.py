"""Protocol snapshots and deltas."""

from staking_economics.constants import PRECISION
from staking_economics.formatters import annualized_bps
from staking_economics.models import ProtocolSnapshot, SnapshotDelta
from staking_economics.oracle import RewardOracle
from staking_economics.pool import StakingPool
from staking_economics.wrapper import WrapperToken


def share_rate(pool: StakingPool) -> int:
    """Value per PRECISION shares; PRECISION for an empty pool."""
    if pool.total_shares == 0:
        return PRECISION
    return pool.shares_to_value(PRECISION)


def take_snapshot(
    pool: StakingPool, wrapper: WrapperToken, oracle: RewardOracle, *, day: int = 0, timestamp: int | None = None
) -> ProtocolSnapshot:
    """Capture the current protocol state. `timestamp` defaults to the latest oracle report time."""
    pending = [r for r in pool.state.withdrawal_requests.values() if not r.claimed]
    return ProtocolSnapshot(
        day=day,
        timestamp=oracle.last_report_timestamp if timestamp is None else timestamp,
        epoch=oracle.current_epoch,
        total_pooled_value=pool.total_pooled_value,
        total_shares=pool.total_shares,
        share_rate=share_rate(pool),
        pool_token_supply=pool.token.total_supply,
        eth_custody=pool.eth_custody(),
        wrapper_supply=wrapper.wrapper_supply,
        wrapper_reserve=wrapper.reserve(),
        reserve_per_wrapper=wrapper.reserve_per_wrapper(),
        pending_withdrawals=len(pending),
        pending_settlement_value=sum(r.settlement_amount for r in pending),
    )


def snapshot_delta(base: ProtocolSnapshot, cur: ProtocolSnapshot) -> SnapshotDelta:
    """Calculate the change from base to cur."""
    elapsed_s = cur.timestamp - base.timestamp
    rate_change = cur.share_rate - base.share_rate
    return SnapshotDelta(
        elapsed_s=elapsed_s,
        pooled_value_change=cur.total_pooled_value - base.total_pooled_value,
        shares_change=cur.total_shares - base.total_shares,
        share_rate_change=rate_change,
        reserve_per_wrapper_change=cur.reserve_per_wrapper - base.reserve_per_wrapper,
        share_rate_apr_bps=annualized_bps(rate_change, base.share_rate, elapsed_s),
    )
