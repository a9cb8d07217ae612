"""Staking pool: ETH-to-share ledger, pool token, reward accrual and withdrawal queue."""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import TYPE_CHECKING

from staking_economics.capabilities import Ownable, PauseFlag, ReentrancyGuard
from staking_economics.constants import (
    FEE_BPS,
    MAX_BPS,
    POOL_ADDRESS_LABEL,
    POOL_TOKEN_NAME,
    POOL_TOKEN_SYMBOL,
    REWARD_APR_BPS,
    SECONDS_PER_YEAR,
    ZERO_ADDRESS,
)
from staking_economics.errors import (
    AlreadyClaimed,
    InsufficientBalance,
    InsufficientLiquidity,
    InsufficientState,
    InvalidParameter,
    InvalidRewardAmount,
    NotFound,
    NotOwner,
    Unauthorized,
    ZeroAmount,
)
from staking_economics.formatters import derive_address, mul_div, to_address
from staking_economics.models import (
    FeeCollected,
    PoolState,
    RewardsDistributed,
    Submitted,
    WithdrawalClaimed,
    WithdrawalRequest,
    WithdrawalRequested,
)
from staking_economics.token import FungibleLedger

if TYPE_CHECKING:
    from staking_economics.context import ChainContext  # pragma: no cover


class StakingPool:
    """
    Owns the pool ledger (pooled value, shares) and all withdrawal requests.

    Pool tokens are minted 1:1 with deposited value and burned on withdrawal request;
    shares are tracked separately. Every reward, whether reported or accrued over time, is
    also credited to pool-token holders pro-rata to their balances, so balances held by
    other components (the wrapper reserve) grow with the pool.
    """

    def __init__(
        self,
        ctx: "ChainContext",
        owner: str,
        *,
        oracle: str,
        fee_recipient: str | None = None,
        address: str | None = None,
        token_name: str = POOL_TOKEN_NAME,
        token_symbol: str = POOL_TOKEN_SYMBOL,
    ) -> None:
        self._ctx = ctx
        self.address = to_address(address) if address else derive_address(POOL_ADDRESS_LABEL)
        self.access = Ownable(owner)
        self.pause_flag = PauseFlag(self.access)
        self._guard = ReentrancyGuard()
        self.token = FungibleLedger(ctx, name=token_name, symbol=token_symbol)
        self.oracle = to_address(oracle)
        self.fee_recipient = to_address(fee_recipient) if fee_recipient else self.access.owner
        self.state = PoolState(last_reward_time=ctx.now())

    # Views

    @property
    def total_pooled_value(self) -> int:
        return self.state.total_pooled_value

    @property
    def total_shares(self) -> int:
        return self.state.total_shares

    @property
    def last_reward_time(self) -> int:
        return self.state.last_reward_time

    def shares_of(self, account: str) -> int:
        return self.state.shares.get(to_address(account), 0)

    def balance_of(self, account: str) -> int:
        """Pool-token balance."""
        return self.token.balance_of(account)

    def shares_to_value(self, shares: int) -> int:
        if self.state.total_shares == 0:
            return 0
        return mul_div(shares, self.state.total_pooled_value, self.state.total_shares)

    def value_to_shares(self, value: int) -> int:
        if self.state.total_pooled_value == 0:
            return value
        return mul_div(value, self.state.total_shares, self.state.total_pooled_value)

    def get_withdrawal_request(self, request_id: int) -> WithdrawalRequest:
        request = self.state.withdrawal_requests.get(request_id)
        if request is None:
            raise NotFound(f"withdrawal request {request_id} not found")
        return request

    def withdrawal_requests_of(self, owner: str) -> list[WithdrawalRequest]:
        owner = to_address(owner)
        return [r for _, r in sorted(self.state.withdrawal_requests.items()) if r.owner == owner]

    def eth_custody(self) -> int:
        """Native ETH held by the pool."""
        return self._ctx.ether.balance_of(self.address)

    def pending_settlements(self) -> int:
        """Total value owed to unclaimed withdrawal requests."""
        return sum(r.settlement_amount for r in self.state.withdrawal_requests.values() if not r.claimed)

    # Mutations

    @contextmanager
    def _operation(self, admin: str | None = None) -> Iterator[None]:
        with self._guard.guard():
            if admin is not None:
                self.access.require_owner(admin)
            self.pause_flag.require_not_paused()
            with self._ctx.transaction():
                yield

    def submit(self, caller: str, value: int, referral: str = ZERO_ADDRESS) -> int:
        """Deposit `value` ETH from `caller`; returns the shares credited."""
        caller, referral = to_address(caller), to_address(referral)
        with self._operation():
            if value <= 0:
                raise ZeroAmount("deposit value must be > 0")

            st = self.state
            if st.total_shares == 0 or st.total_pooled_value == 0:
                shares = value
            else:
                shares = mul_div(value, st.total_shares, st.total_pooled_value)

            # Attached message value moves into custody before the body runs.
            self._ctx.ether.transfer(caller, self.address, value)

            self._ctx.assign(st, "total_pooled_value", st.total_pooled_value + value)
            self._ctx.assign(st, "total_shares", st.total_shares + shares)
            self._ctx.put(st.shares, caller, st.shares.get(caller, 0) + shares)
            self.token.mint(caller, value)

            fee = mul_div(value, FEE_BPS, MAX_BPS)
            if fee > 0 and self.fee_recipient != ZERO_ADDRESS:
                self.token.mint(self.fee_recipient, fee)
                self._ctx.events.emit(FeeCollected(recipient=self.fee_recipient, amount=fee))

            self._ctx.events.emit(Submitted(sender=caller, referral=referral, amount=value, shares=shares))
            self._accrue_time_rewards()
            return shares

    def distribute_rewards(self, caller: str) -> int:
        """Owner trigger for the passive time-based accrual; returns the reward added."""
        with self._operation(admin=caller):
            return self._accrue_time_rewards()

    def request_withdrawal(self, caller: str, amount: int) -> int:
        """Burn `amount` pool tokens and queue a withdrawal; returns the request id."""
        caller = to_address(caller)
        with self._operation():
            if amount <= 0:
                raise ZeroAmount("withdrawal amount must be > 0")
            balance = self.token.balance_of(caller)
            if balance < amount:
                raise InsufficientBalance(f"pool-token balance {balance} is below {amount}")

            st = self.state
            request_id = st.next_request_id
            self._ctx.assign(st, "next_request_id", request_id + 1)
            request = WithdrawalRequest(
                id=request_id,
                owner=caller,
                source_amount=amount,
                settlement_amount=self._pool_token_to_value(amount),
                created_at=self._ctx.now(),
            )
            self._ctx.put(st.withdrawal_requests, request_id, request)
            self.token.burn(caller, amount)
            self._ctx.events.emit(WithdrawalRequested(owner=caller, amount=amount, request_id=request_id))
            return request_id

    def claim_withdrawal(self, caller: str, request_id: int) -> int:
        """Pay out a request's frozen settlement; returns the amount paid."""
        caller = to_address(caller)
        with self._operation():
            st = self.state
            request = st.withdrawal_requests.get(request_id)
            if request is None:
                raise NotFound(f"withdrawal request {request_id} not found")
            if request.claimed:
                raise AlreadyClaimed(f"withdrawal request {request_id} already claimed")
            if caller != request.owner:
                raise NotOwner(f"withdrawal request {request_id} belongs to {request.owner}")

            settlement = request.settlement_amount
            # Live ratio at claim time, even though the settlement was frozen at request time.
            shares = self.value_to_shares(settlement)

            self._ctx.put(st.withdrawal_requests, request_id, replace(request, claimed=True))
            if settlement > st.total_pooled_value or shares > st.total_shares:
                raise InsufficientState(
                    f"claim of {settlement} ({shares} shares) exceeds pool "
                    f"({st.total_pooled_value} value, {st.total_shares} shares)"
                )
            owner_shares = st.shares.get(request.owner, 0)
            if owner_shares < shares:
                raise InsufficientBalance(f"owner holds {owner_shares} shares, claim burns {shares}")
            self._ctx.assign(st, "total_pooled_value", st.total_pooled_value - settlement)
            self._ctx.assign(st, "total_shares", st.total_shares - shares)
            self._ctx.put(st.shares, request.owner, owner_shares - shares)

            custody = self._ctx.ether.balance_of(self.address)
            if custody < settlement:
                raise InsufficientLiquidity(f"pool holds {custody} wei, claim needs {settlement}")
            self._ctx.ether.transfer(self.address, request.owner, settlement)
            self._ctx.events.emit(WithdrawalClaimed(owner=request.owner, amount=settlement, request_id=request_id))
            return settlement

    def handle_oracle_report(
        self, caller: str, new_total_pooled_value: int, new_total_shares: int, elapsed: int
    ) -> int:
        """
        Apply an oracle report. Only the configured oracle may call this.

        The reported totals replace the ledger totals wholesale when pooled value grows;
        an equal value is a no-op and a lower one is rejected. `elapsed` is the length of the
        reporting period. Returns the reward (growth in pooled value).
        """
        with self._guard.guard():
            if to_address(caller) != self.oracle:
                raise Unauthorized(f"caller {caller} is not the oracle")
            self.pause_flag.require_not_paused()
            with self._ctx.transaction():
                st = self.state
                if new_total_pooled_value < st.total_pooled_value:
                    raise InvalidRewardAmount(
                        f"reported pooled value {new_total_pooled_value} is below {st.total_pooled_value}"
                    )
                if new_total_shares < 0 or elapsed < 0:
                    raise InvalidParameter("reported shares and elapsed time must be non-negative")
                if new_total_pooled_value == st.total_pooled_value:
                    return 0

                reward = new_total_pooled_value - st.total_pooled_value
                now = self._ctx.now()
                self._ctx.assign(st, "total_pooled_value", new_total_pooled_value)
                self._ctx.assign(st, "total_shares", new_total_shares)
                self._ctx.assign(st, "last_reward_time", now)
                self._credit_holders(reward)
                self._ctx.events.emit(RewardsDistributed(amount=reward, timestamp=now))
                return reward

    def set_fee_recipient(self, caller: str, recipient: str) -> None:
        self.access.require_owner(caller)
        self.fee_recipient = to_address(recipient)

    def set_oracle(self, caller: str, oracle: str) -> None:
        self.access.require_owner(caller)
        oracle = to_address(oracle)
        if oracle == ZERO_ADDRESS:
            raise InvalidParameter("oracle is the zero address")
        self.oracle = oracle

    def _accrue_time_rewards(self) -> int:
        st = self.state
        now = self._ctx.now()
        elapsed = now - st.last_reward_time
        if elapsed <= 0 or st.total_pooled_value == 0:
            return 0
        reward = mul_div(st.total_pooled_value * REWARD_APR_BPS, elapsed, MAX_BPS * SECONDS_PER_YEAR)
        if reward == 0:
            return 0
        self._ctx.assign(st, "total_pooled_value", st.total_pooled_value + reward)
        self._ctx.assign(st, "last_reward_time", now)
        self._credit_holders(reward)
        self._ctx.events.emit(RewardsDistributed(amount=reward, timestamp=now))
        return reward

    def _credit_holders(self, reward: int) -> int:
        """Mint `reward` pool tokens across current holders pro-rata (floor per holder); returns the total minted."""
        supply = self.token.total_supply
        if reward <= 0 or supply == 0:
            return 0
        credited = 0
        for holder, balance in sorted(self.token.holders().items()):
            credit = mul_div(reward, balance, supply)
            if credit > 0:
                self.token.mint(holder, credit)
                credited += credit
        return credited

    def _pool_token_to_value(self, amount: int) -> int:
        # Pool tokens are minted 1:1 with deposited value.
        return amount
