"""Non-rebasing wrapper over pool-token balances."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from staking_economics.capabilities import Ownable, PauseFlag, ReentrancyGuard
from staking_economics.constants import (
    MIN_UNIT,
    PRECISION,
    WRAPPER_ADDRESS_LABEL,
    WRAPPER_TOKEN_NAME,
    WRAPPER_TOKEN_SYMBOL,
)
from staking_economics.errors import ExceedsReserve, InsufficientLiquidity, InsufficientState, ZeroAmount, ZeroReturn
from staking_economics.formatters import derive_address, mul_div, to_address
from staking_economics.models import Unwrapped, Wrapped
from staking_economics.token import FungibleLedger

if TYPE_CHECKING:
    from staking_economics.context import ChainContext  # pragma: no cover
    from staking_economics.pool import StakingPool  # pragma: no cover


class WrapperToken:
    """
    Wraps pool tokens into a fixed-balance token.

    The reserve is whatever pool-token balance the pool ledger holds for this wrapper's
    address; a wrapper balance therefore redeems for more pool tokens as the reserve grows
    while the supply stays put.
    """

    def __init__(
        self,
        ctx: "ChainContext",
        pool: "StakingPool",
        owner: str,
        *,
        address: str | None = None,
        token_name: str = WRAPPER_TOKEN_NAME,
        token_symbol: str = WRAPPER_TOKEN_SYMBOL,
    ) -> None:
        self._ctx = ctx
        self._pool = pool
        self.address = to_address(address) if address else derive_address(WRAPPER_ADDRESS_LABEL)
        self.access = Ownable(owner)
        self.pause_flag = PauseFlag(self.access)
        self._guard = ReentrancyGuard()
        self.token = FungibleLedger(ctx, name=token_name, symbol=token_symbol)

    # Views

    @property
    def wrapper_supply(self) -> int:
        return self.token.total_supply

    def reserve(self) -> int:
        return self._pool.token.balance_of(self.address)

    def balance_of(self, account: str) -> int:
        return self.token.balance_of(account)

    def reserve_per_wrapper(self) -> int:
        supply = self.wrapper_supply
        if supply == 0:
            return PRECISION
        return mul_div(self.reserve(), PRECISION, supply)

    def wrapper_per_reserve(self) -> int:
        rpw = self.reserve_per_wrapper()
        if rpw == 0:
            return 0
        return mul_div(PRECISION, PRECISION, rpw)

    def pool_token_value_of(self, account: str) -> int:
        """Pool tokens the account's full wrapper balance currently redeems for (0 if nothing wrapped)."""
        supply = self.wrapper_supply
        if supply == 0:
            return 0
        return mul_div(self.balance_of(account), self.reserve(), supply)

    def convert_to_wrapper(self, pool_token_amount: int) -> int:
        """Wrapper tokens that wrapping `pool_token_amount` would mint right now."""
        if pool_token_amount < MIN_UNIT:
            raise ZeroAmount(f"amount below minimum unit ({MIN_UNIT})")
        supply = self.wrapper_supply
        if supply == 0:
            return pool_token_amount

        reserve = self.reserve()
        if reserve == 0:
            raise InsufficientState(f"reserve is empty while supply is {supply}")
        if pool_token_amount > reserve:
            raise ExceedsReserve(f"amount {pool_token_amount} exceeds reserve {reserve}")
        wrapper_amount = mul_div(pool_token_amount, supply, reserve)
        if wrapper_amount == 0:
            raise ZeroReturn(f"{pool_token_amount} pool tokens mint nothing at the current ratio")
        if wrapper_amount > supply + pool_token_amount:
            raise InsufficientState(f"computed {wrapper_amount} exceeds supply + amount ({supply + pool_token_amount})")
        return wrapper_amount

    def convert_to_pool_token(self, wrapper_amount: int) -> int:
        """Pool tokens that unwrapping `wrapper_amount` would release right now."""
        if wrapper_amount < MIN_UNIT:
            raise ZeroAmount(f"amount below minimum unit ({MIN_UNIT})")
        supply = self.wrapper_supply
        if supply == 0:
            return wrapper_amount

        reserve = self.reserve()
        pool_token_amount = mul_div(wrapper_amount, reserve, supply)
        if pool_token_amount == 0:
            raise ZeroReturn(f"{wrapper_amount} wrapper tokens release nothing at the current ratio")
        if reserve < pool_token_amount:
            raise InsufficientLiquidity(f"reserve {reserve} is below {pool_token_amount}")
        return pool_token_amount

    # Mutations

    @contextmanager
    def _operation(self) -> Iterator[None]:
        with self._guard.guard():
            self.pause_flag.require_not_paused()
            with self._ctx.transaction():
                yield

    def wrap(self, caller: str, pool_token_amount: int) -> int:
        """Move pool tokens into custody and mint wrapper tokens. Needs a pool-token allowance to this wrapper."""
        caller = to_address(caller)
        with self._operation():
            wrapper_amount = self.convert_to_wrapper(pool_token_amount)
            self._pool.token.transfer_from(self.address, caller, self.address, pool_token_amount)
            self.token.mint(caller, wrapper_amount)
            self._ctx.events.emit(
                Wrapped(caller=caller, pool_token_amount=pool_token_amount, wrapper_amount=wrapper_amount)
            )
            return wrapper_amount

    def unwrap(self, caller: str, wrapper_amount: int) -> int:
        """Burn wrapper tokens and release the matching pool tokens from custody."""
        caller = to_address(caller)
        with self._operation():
            pool_token_amount = self.convert_to_pool_token(wrapper_amount)
            self.token.burn(caller, wrapper_amount)
            self._pool.token.transfer(self.address, caller, pool_token_amount)
            self._ctx.events.emit(
                Unwrapped(caller=caller, wrapper_amount=wrapper_amount, pool_token_amount=pool_token_amount)
            )
            return pool_token_amount
