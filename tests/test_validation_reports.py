import pytest

from staking_economics.constants import PRECISION, SECONDS_PER_DAY
from staking_economics.reports import share_rate, snapshot_delta, take_snapshot
from staking_economics.validation import validate_oracle, validate_pool, validate_wrapper

GENESIS = 1_700_000_000


def test_fresh_deployment_is_valid(d):
    assert validate_pool(d.pool) == []
    assert validate_wrapper(d.wrapper) == []
    assert validate_oracle(d.oracle) == []


def test_share_sum_mismatch_raises_unless_warn_only(d):
    d.submit(d.alice, 10)
    d.report(20, 12)

    with pytest.raises(ValueError, match="share sum mismatch"):
        validate_pool(d.pool)
    assert len(validate_pool(d.pool, warn_only=True)) == 1


def test_custody_below_pending_settlements_is_a_warning(d):
    d.submit(d.alice, 10)
    d.report(20)
    d.pool.request_withdrawal(d.alice, 10)
    d.pool.request_withdrawal(d.treasury, 1)

    issues = validate_pool(d.pool)
    assert len(issues) == 1
    assert "below pending settlements 11" in issues[0]


def test_donation_before_first_wrap_is_a_warning(d):
    d.submit(d.alice, 10)
    d.pool.token.transfer(d.alice, d.wrapper.address, 1)

    issues = validate_wrapper(d.wrapper)
    assert len(issues) == 1
    assert "supply is 0" in issues[0]


def test_oracle_history_written_through_the_api_is_valid(d):
    for _ in range(3):
        d.clock.advance(SECONDS_PER_DAY)
        d.oracle.simulate_rewards(d.owner, 1, 500)
    assert validate_oracle(d.oracle, warn_only=False) == []


def test_share_rate_tracks_pooled_value(d):
    assert share_rate(d.pool) == PRECISION
    d.submit(d.alice, 10)
    d.report(15)
    assert share_rate(d.pool) == 15 * PRECISION // 10


def test_snapshots_and_delta(d):
    d.submit(d.alice, 100)
    d.wrap(d.alice, 50)
    base = take_snapshot(d.pool, d.wrapper, d.oracle)

    assert base.timestamp == GENESIS
    assert base.epoch == 0
    assert base.total_pooled_value == 100
    assert base.pool_token_supply == 110
    assert base.eth_custody == 100
    assert base.wrapper_supply == 50
    assert base.wrapper_reserve == 50
    assert base.reserve_per_wrapper == PRECISION
    assert base.pending_withdrawals == 0

    d.clock.advance(SECONDS_PER_DAY)
    d.oracle.simulate_rewards(d.owner, 1, 500)
    d.report(110)
    d.pool.request_withdrawal(d.alice, 20)
    cur = take_snapshot(d.pool, d.wrapper, d.oracle, day=1)

    assert cur.timestamp == GENESIS + SECONDS_PER_DAY
    assert cur.epoch == 1
    assert cur.pending_withdrawals == 1
    assert cur.pending_settlement_value == 20

    delta = snapshot_delta(base, cur)
    assert delta.elapsed_s == SECONDS_PER_DAY
    assert delta.pooled_value_change == 10
    assert delta.shares_change == 0
    assert delta.share_rate_change == PRECISION // 10
    # The wrapper held 50 of 110 pool tokens and was credited 4 of the 10 reward.
    assert delta.reserve_per_wrapper_change == 8 * 10**16
    # 10% in one day.
    assert delta.share_rate_apr_bps == 365 * 1000
