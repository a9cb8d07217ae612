import pytest

from staking_economics.constants import MIN_UPDATE_INTERVAL, SECONDS_PER_YEAR
from staking_economics.errors import (
    BalanceChangeTooLarge,
    InvalidEpoch,
    InvalidParameter,
    InvalidTimestamp,
    NotFound,
    Paused,
    RateLimited,
    Unauthorized,
)
from staking_economics.models import OracleReport, ReportSubmitted

ETH = 10**18
GENESIS = 1_700_000_000


def _report(epoch_id: int, timestamp: int, rewards: int = ETH) -> OracleReport:
    return OracleReport(
        epoch_id=epoch_id,
        total_active_balance=100 * ETH,
        total_validator_balance=100 * ETH,
        total_rewards=rewards,
        timestamp=timestamp,
    )


def test_reports_must_move_forward_in_time(d):
    d.oracle.submit_report(d.owner, _report(1, GENESIS + 100))
    assert d.oracle.current_epoch == 1
    assert d.oracle.last_report_timestamp == GENESIS + 100

    with pytest.raises(InvalidTimestamp):
        d.oracle.submit_report(d.owner, _report(2, GENESIS + 50))

    assert d.oracle.current_epoch == 1
    assert d.oracle.last_report_timestamp == GENESIS + 100
    assert d.oracle.reports() == [_report(1, GENESIS + 100)]


def test_report_at_deploy_time_is_rejected(d):
    with pytest.raises(InvalidTimestamp):
        d.oracle.submit_report(d.owner, _report(1, GENESIS))


def test_epoch_ids_must_increase_but_may_skip(d):
    d.oracle.submit_report(d.owner, _report(5, GENESIS + 10))

    with pytest.raises(InvalidEpoch):
        d.oracle.submit_report(d.owner, _report(5, GENESIS + 20))
    with pytest.raises(InvalidEpoch):
        d.oracle.submit_report(d.owner, _report(3, GENESIS + 20))

    d.oracle.submit_report(d.owner, _report(9, GENESIS + 20))
    assert [r.epoch_id for r in d.oracle.reports()] == [5, 9]


def test_report_views_and_event(d):
    assert d.oracle.latest_report() is None
    with pytest.raises(NotFound):
        d.oracle.get_report(1)

    report = _report(1, GENESIS + 10, rewards=7)
    d.oracle.submit_report(d.owner, report)

    assert d.oracle.get_report(1) == report
    assert d.oracle.latest_report() == report
    assert d.ctx.events.last(ReportSubmitted) == ReportSubmitted(epoch_id=1, total_rewards=7, timestamp=GENESIS + 10)


def test_negative_report_values_are_rejected(d):
    with pytest.raises(InvalidParameter):
        d.oracle.submit_report(d.owner, _report(1, GENESIS + 10, rewards=-1))


def test_only_owner_may_report(d):
    with pytest.raises(Unauthorized):
        d.oracle.submit_report(d.alice, _report(1, GENESIS + 10))
    with pytest.raises(Unauthorized):
        d.oracle.simulate_rewards(d.alice, 1, 500)
    with pytest.raises(Unauthorized):
        d.oracle.set_active_balance(d.alice, 1)


def test_simulate_rewards_accrues_apr_on_active_balance(d):
    d.oracle.set_balances_for_testing(d.owner, 320 * ETH, 32 * ETH)
    d.clock.advance(SECONDS_PER_YEAR)

    report = d.oracle.simulate_rewards(d.owner, 10, 500)

    assert report == OracleReport(
        epoch_id=1,
        total_active_balance=32 * ETH,
        total_validator_balance=320 * ETH,
        total_rewards=16 * ETH,
        timestamp=GENESIS + SECONDS_PER_YEAR,
    )
    assert d.oracle.latest_report() == report

    d.clock.advance(SECONDS_PER_YEAR // 365)
    assert d.oracle.simulate_rewards(d.owner, 10, 500).epoch_id == 2


@pytest.mark.parametrize(("validator_count", "apr_bps"), [(0, 500), (-1, 500), (1, 0), (1, 10_001)])
def test_simulate_rewards_rejects_bad_parameters(d, validator_count, apr_bps):
    d.clock.advance(10)
    with pytest.raises(InvalidParameter):
        d.oracle.simulate_rewards(d.owner, validator_count, apr_bps)
    assert d.oracle.current_epoch == 0


def test_simulate_rewards_needs_time_to_pass(d):
    d.clock.advance(10)
    d.oracle.simulate_rewards(d.owner, 1, 500)

    with pytest.raises(InvalidTimestamp):
        d.oracle.simulate_rewards(d.owner, 1, 500)
    assert d.oracle.current_epoch == 1


def test_rate_limited_setters(d):
    d.oracle.set_validator_balance(d.owner, 100)
    # Cooldowns are tracked per setter.
    d.oracle.set_active_balance(d.owner, 50)

    with pytest.raises(RateLimited):
        d.oracle.set_validator_balance(d.owner, 105)

    d.clock.advance(MIN_UPDATE_INTERVAL)
    with pytest.raises(BalanceChangeTooLarge):
        d.oracle.set_validator_balance(d.owner, 111)
    with pytest.raises(BalanceChangeTooLarge):
        d.oracle.set_validator_balance(d.owner, 89)
    assert d.oracle.validator_balance == 100

    d.oracle.set_validator_balance(d.owner, 110)
    assert d.oracle.validator_balance == 110

    with pytest.raises(InvalidParameter):
        d.oracle.set_active_balance(d.owner, -1)


def test_testing_bypass_skips_cooldown_and_cap(d):
    d.oracle.set_validator_balance(d.owner, 100)

    d.oracle.set_balances_for_testing(d.owner, 10_000, 5_000)

    assert d.oracle.validator_balance == 10_000
    assert d.oracle.active_balance == 5_000
    # The bypass leaves the validator cooldown in force.
    with pytest.raises(RateLimited):
        d.oracle.set_validator_balance(d.owner, 10_000)


def test_paused_oracle_rejects_reports(d):
    d.oracle.pause_flag.pause(d.owner)
    d.clock.advance(10)

    with pytest.raises(Paused):
        d.oracle.simulate_rewards(d.owner, 1, 500)
    with pytest.raises(Paused):
        d.oracle.set_balances_for_testing(d.owner, 1, 1)

    d.oracle.pause_flag.unpause(d.owner)
    d.oracle.simulate_rewards(d.owner, 1, 500)
    assert d.oracle.current_epoch == 1


def test_report_history_is_not_journaled_per_operation(d):
    for _ in range(1_000):
        d.clock.advance(60)
        d.oracle.simulate_rewards(d.owner, 1, 500)

    d.clock.advance(60)
    with d.ctx.transaction():
        d.oracle.simulate_rewards(d.owner, 1, 500)
        # One report entry, the epoch and the timestamp.
        assert d.ctx.pending_writes == 3

    d.clock.advance(60)
    with pytest.raises(RuntimeError):
        with d.ctx.transaction():
            d.oracle.simulate_rewards(d.owner, 1, 500)
            raise RuntimeError("abort")
    assert d.oracle.current_epoch == 1_001
    assert len(d.oracle.reports()) == 1_001
