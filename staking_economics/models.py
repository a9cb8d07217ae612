"""Data models for the staking economics engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class OracleReport:
    """A single accepted oracle report."""

    epoch_id: int
    total_active_balance: int
    total_validator_balance: int
    total_rewards: int
    timestamp: int


@dataclass(frozen=True)
class WithdrawalRequest:
    """A pending or claimed withdrawal. Claiming replaces it with a copy that has `claimed=True`."""

    id: int
    owner: str
    # Pool tokens burned when the request was created.
    source_amount: int
    # Value paid out on claim; frozen at request time.
    settlement_amount: int
    created_at: int
    claimed: bool = False


@dataclass
class LedgerState:
    """Balances of a fungible ledger."""

    total_supply: int = 0
    balances: dict[str, int] = field(default_factory=dict)
    # owner -> spender -> amount
    allowances: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass
class PoolState:
    """Share ledger and withdrawal queue owned by a StakingPool."""

    total_pooled_value: int = 0
    total_shares: int = 0
    shares: dict[str, int] = field(default_factory=dict)
    last_reward_time: int = 0
    withdrawal_requests: dict[int, WithdrawalRequest] = field(default_factory=dict)
    next_request_id: int = 1


@dataclass
class OracleState:
    """Report history and simulated validator balances owned by a RewardOracle."""

    reports: dict[int, OracleReport] = field(default_factory=dict)
    current_epoch: int = 0
    last_report_timestamp: int = 0
    validator_balance: int = 0
    active_balance: int = 0
    # Last accepted update time per rate-limited setter; absent until the first update.
    last_update: dict[str, int] = field(default_factory=dict)


# Events


@dataclass(frozen=True)
class Event:
    """Base for all recorded events."""

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Transfer(Event):
    token: str
    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class Approval(Event):
    token: str
    owner: str
    spender: str
    amount: int


@dataclass(frozen=True)
class Submitted(Event):
    sender: str
    referral: str
    amount: int
    shares: int


@dataclass(frozen=True)
class FeeCollected(Event):
    recipient: str
    amount: int


@dataclass(frozen=True)
class RewardsDistributed(Event):
    amount: int
    timestamp: int


@dataclass(frozen=True)
class WithdrawalRequested(Event):
    owner: str
    amount: int
    request_id: int


@dataclass(frozen=True)
class WithdrawalClaimed(Event):
    owner: str
    amount: int
    request_id: int


@dataclass(frozen=True)
class Wrapped(Event):
    caller: str
    pool_token_amount: int
    wrapper_amount: int


@dataclass(frozen=True)
class Unwrapped(Event):
    caller: str
    wrapper_amount: int
    pool_token_amount: int


@dataclass(frozen=True)
class ReportSubmitted(Event):
    epoch_id: int
    total_rewards: int
    timestamp: int


# Reporting


@dataclass(frozen=True)
class ProtocolSnapshot:
    """Point-in-time view of pool, wrapper and oracle state."""

    day: int
    timestamp: int
    epoch: int
    total_pooled_value: int
    total_shares: int
    # Value per PRECISION shares.
    share_rate: int
    pool_token_supply: int
    eth_custody: int
    wrapper_supply: int
    wrapper_reserve: int
    # Pool tokens per PRECISION wrapper tokens.
    reserve_per_wrapper: int
    pending_withdrawals: int
    pending_settlement_value: int


@dataclass(frozen=True)
class SnapshotDelta:
    """Change between two snapshots."""

    elapsed_s: int
    pooled_value_change: int
    shares_change: int
    share_rate_change: int
    reserve_per_wrapper_change: int
    # Annualized growth of the share rate, in basis points.
    share_rate_apr_bps: int


@dataclass(frozen=True)
class SimulationConfig:
    """Parameters for a simulated deployment. Amounts are in wei."""

    days: int
    depositors: int
    deposit_wei: int
    validator_count: int
    validator_balance_wei: int
    apr_bps: int
    wrap_bps: int
    genesis_timestamp: int
    withdraw_at_end: bool = True
