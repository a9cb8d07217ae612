"""Reward oracle: append-only report history and simulated validator rewards."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from staking_economics.capabilities import Ownable, PauseFlag, ReentrancyGuard
from staking_economics.constants import (
    MAX_BALANCE_CHANGE_BPS,
    MAX_BPS,
    MIN_UPDATE_INTERVAL,
    ORACLE_ADDRESS_LABEL,
    SECONDS_PER_YEAR,
)
from staking_economics.errors import (
    BalanceChangeTooLarge,
    InvalidEpoch,
    InvalidParameter,
    InvalidTimestamp,
    NotFound,
    RateLimited,
)
from staking_economics.formatters import derive_address, mul_div, to_address
from staking_economics.models import OracleReport, OracleState, ReportSubmitted

if TYPE_CHECKING:
    from staking_economics.context import ChainContext  # pragma: no cover

_VALIDATOR_BALANCE = "validator_balance"
_ACTIVE_BALANCE = "active_balance"


class RewardOracle:
    """
    Records periodic validator balance reports and derives simulated rewards.

    Reports are keyed by epoch id and never mutated. A report is accepted only if its
    timestamp is strictly after the previous one and its epoch id is strictly above the
    current epoch; gaps between epoch ids are allowed.
    """

    def __init__(self, ctx: "ChainContext", owner: str, *, address: str | None = None) -> None:
        self._ctx = ctx
        self.address = to_address(address) if address else derive_address(ORACLE_ADDRESS_LABEL)
        self.access = Ownable(owner)
        self.pause_flag = PauseFlag(self.access)
        self._guard = ReentrancyGuard()
        # Rewards are simulated from deployment time onward.
        self.state = OracleState(last_report_timestamp=ctx.now())

    # Views

    @property
    def current_epoch(self) -> int:
        return self.state.current_epoch

    @property
    def last_report_timestamp(self) -> int:
        return self.state.last_report_timestamp

    @property
    def validator_balance(self) -> int:
        return self.state.validator_balance

    @property
    def active_balance(self) -> int:
        return self.state.active_balance

    def latest_report(self) -> OracleReport | None:
        return self.state.reports.get(self.state.current_epoch)

    def get_report(self, epoch_id: int) -> OracleReport:
        report = self.state.reports.get(epoch_id)
        if report is None:
            raise NotFound(f"no report for epoch {epoch_id}")
        return report

    def reports(self) -> list[OracleReport]:
        """All accepted reports in epoch order."""
        return [self.state.reports[k] for k in sorted(self.state.reports)]

    # Mutations

    @contextmanager
    def _admin_operation(self, caller: str) -> Iterator[None]:
        with self._guard.guard():
            self.access.require_owner(caller)
            self.pause_flag.require_not_paused()
            with self._ctx.transaction():
                yield

    def submit_report(self, caller: str, report: OracleReport) -> None:
        with self._admin_operation(caller):
            self._store_report(report)

    def simulate_rewards(self, caller: str, validator_count: int, apr_bps: int) -> OracleReport:
        """Synthesize and store the report for the next epoch from the active balance and elapsed time."""
        with self._admin_operation(caller):
            if validator_count <= 0:
                raise InvalidParameter("validator count must be > 0")
            if apr_bps <= 0 or apr_bps > MAX_BPS:
                raise InvalidParameter(f"apr must be in (0, {MAX_BPS}] bps, got {apr_bps}")

            now = self._ctx.now()
            elapsed = max(now - self.state.last_report_timestamp, 0)
            reward = mul_div(
                self.state.active_balance * validator_count * apr_bps,
                elapsed,
                MAX_BPS * SECONDS_PER_YEAR,
            )
            report = OracleReport(
                epoch_id=self.state.current_epoch + 1,
                total_active_balance=self.state.active_balance,
                total_validator_balance=self.state.validator_balance,
                total_rewards=reward,
                timestamp=now,
            )
            self._store_report(report)
            return report

    def set_validator_balance(self, caller: str, value: int) -> None:
        with self._admin_operation(caller):
            self._set_rate_limited(_VALIDATOR_BALANCE, value)

    def set_active_balance(self, caller: str, value: int) -> None:
        with self._admin_operation(caller):
            self._set_rate_limited(_ACTIVE_BALANCE, value)

    def set_balances_for_testing(self, caller: str, validator_balance: int, active_balance: int) -> None:
        """Set both balances without cooldown or change cap. Does not reset the cooldown clocks."""
        with self._admin_operation(caller):
            if validator_balance < 0 or active_balance < 0:
                raise InvalidParameter("balances must be non-negative")
            self._ctx.assign(self.state, _VALIDATOR_BALANCE, validator_balance)
            self._ctx.assign(self.state, _ACTIVE_BALANCE, active_balance)

    def _set_rate_limited(self, key: str, value: int) -> None:
        if value < 0:
            raise InvalidParameter(f"{key} must be non-negative")
        now = self._ctx.now()
        last = self.state.last_update.get(key)
        if last is not None and now - last < MIN_UPDATE_INTERVAL:
            raise RateLimited(f"{key} updated {now - last}s ago; minimum interval is {MIN_UPDATE_INTERVAL}s")

        current = getattr(self.state, key)
        if current > 0:
            max_change = mul_div(current, MAX_BALANCE_CHANGE_BPS, MAX_BPS)
            if abs(value - current) > max_change:
                raise BalanceChangeTooLarge(f"{key}: change {current} -> {value} exceeds {max_change}")

        self._ctx.assign(self.state, key, value)
        self._ctx.put(self.state.last_update, key, now)

    def _store_report(self, report: OracleReport) -> None:
        if report.timestamp <= self.state.last_report_timestamp:
            raise InvalidTimestamp(
                f"report timestamp {report.timestamp} is not after {self.state.last_report_timestamp}"
            )
        if report.epoch_id <= self.state.current_epoch:
            raise InvalidEpoch(f"epoch {report.epoch_id} is not after current epoch {self.state.current_epoch}")
        if min(report.total_active_balance, report.total_validator_balance, report.total_rewards) < 0:
            raise InvalidParameter("report values must be non-negative")

        self._ctx.put(self.state.reports, report.epoch_id, report)
        self._ctx.assign(self.state, "current_epoch", report.epoch_id)
        self._ctx.assign(self.state, "last_report_timestamp", report.timestamp)
        self._ctx.events.emit(
            ReportSubmitted(epoch_id=report.epoch_id, total_rewards=report.total_rewards, timestamp=report.timestamp)
        )
