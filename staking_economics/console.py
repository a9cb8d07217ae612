"""Console output formatting."""

from datetime import datetime, timezone

from staking_economics.formatters import (
    delta_indicator,
    format_address,
    format_bp,
    format_eth,
    format_ratio,
    format_shares,
)
from staking_economics.models import ProtocolSnapshot
from staking_economics.reports import snapshot_delta
from staking_economics.simulation import SimulationResult


def _format_ts(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def print_current_state(result: SimulationResult) -> None:
    """Print the latest snapshot plus per-account balances."""
    cur = result.snapshots[-1]
    pool, wrapper = result.pool, result.wrapper

    print("=" * 70)
    print("📊 STAKING POOL REPORT")
    print(f"   🕐 {_format_ts(cur.timestamp)}  •  day {cur.day}  •  epoch {cur.epoch}")
    print("=" * 70)

    print("\n🏦 Pool")
    print("   " + "─" * 50)
    print(f"   💰 Total pooled value: {format_eth(cur.total_pooled_value, decimals=6)}")
    print(f"   🧮 Total shares:       {format_shares(cur.total_shares, decimals=6)}")
    print(f"   📐 Share rate:         {format_ratio(cur.share_rate, decimals=9)} ETH/share")
    print(f"   🪙 Pool-token supply:  {format_eth(cur.pool_token_supply, decimals=6)}")
    print(f"   🔒 ETH custody:        {format_eth(cur.eth_custody, decimals=6)}")
    if cur.pending_withdrawals:
        print(
            f"   ⏳ Pending withdrawals: {cur.pending_withdrawals} "
            f"({format_eth(cur.pending_settlement_value, decimals=6)})"
        )
    fee_balance = format_eth(pool.balance_of(pool.fee_recipient), decimals=6)
    print(f"   💸 Fee recipient {format_address(pool.fee_recipient)}: {fee_balance}")

    print("\n🎁 Wrapper")
    print("   " + "─" * 50)
    print(f"   📦 Supply:             {format_eth(cur.wrapper_supply, decimals=6)}")
    print(f"   🧱 Reserve:            {format_eth(cur.wrapper_reserve, decimals=6)}")
    print(f"   📐 Reserve per wrapper: {format_ratio(cur.reserve_per_wrapper, decimals=9)}")

    if result.depositors:
        print("\n👥 Depositors")
        print("   " + "─" * 50)
        for account in result.depositors:
            print(f"   • {format_address(account)}")
            print(f"      - Shares:       {format_shares(pool.shares_of(account), decimals=6)}")
            print(f"      - Pool tokens:  {format_eth(pool.balance_of(account), decimals=6)}")
            wrapped = wrapper.balance_of(account)
            if wrapped:
                redeemable = format_eth(wrapper.pool_token_value_of(account), decimals=6, approx=True)
                print(f"      - Wrapped:      {format_eth(wrapped, decimals=6)}  (redeems {redeemable})")

    if result.withdrawal is not None:
        request_id, paid = result.withdrawal
        print(f"\n🏧 Closing withdrawal: request #{request_id} paid {format_eth(paid, decimals=6)}")


def print_changes_section(*, title: str, base: ProtocolSnapshot, cur: ProtocolSnapshot) -> None:
    """Print the change between two snapshots."""
    delta = snapshot_delta(base, cur)
    print("\n" + "=" * 70)
    print(title)
    print(f"   day {base.day} → day {cur.day}  •  epoch {base.epoch} → {cur.epoch}")
    print("=" * 70)

    if delta.pooled_value_change == 0 and delta.shares_change == 0 and delta.reserve_per_wrapper_change == 0:
        print("   ➡️ Unchanged")
        return

    print(
        f"   {delta_indicator(base.total_pooled_value, cur.total_pooled_value)} Pooled value: "
        f"{format_eth(base.total_pooled_value, decimals=6)} → {format_eth(cur.total_pooled_value, decimals=6)}"
    )
    print(
        f"   {delta_indicator(base.total_shares, cur.total_shares)} Shares: "
        f"{format_shares(base.total_shares, decimals=6)} → {format_shares(cur.total_shares, decimals=6)}"
    )
    print(
        f"   {delta_indicator(base.share_rate, cur.share_rate)} Share rate: "
        f"{format_ratio(base.share_rate, decimals=9)} → {format_ratio(cur.share_rate, decimals=9)}"
    )
    print(
        f"   {delta_indicator(base.reserve_per_wrapper, cur.reserve_per_wrapper)} Reserve per wrapper: "
        f"{format_ratio(base.reserve_per_wrapper, decimals=9)} → {format_ratio(cur.reserve_per_wrapper, decimals=9)}"
    )
    if delta.elapsed_s > 0:
        print(f"   📅 Annualized share-rate growth: {format_bp(delta.share_rate_apr_bps)}")


def print_report_with_deltas(result: SimulationResult) -> None:
    """Print report with deltas."""
    snapshots = result.snapshots
    print_current_state(result)

    if len(snapshots) > 1:
        print_changes_section(title="📈 CHANGES SINCE LAST SNAPSHOT", base=snapshots[-2], cur=snapshots[-1])
    # Avoid duplicating the previous comparison when only 2 snapshots are available.
    if len(snapshots) > 2:
        print_changes_section(title="📈 CHANGES SINCE FIRST SNAPSHOT", base=snapshots[0], cur=snapshots[-1])

    if result.warnings:
        print(f"\n⚠️  {len(result.warnings)} invariant warning(s) during the run (see stderr).")
