"""Fungible ledger primitive used for native ETH, the pool token and the wrapper token."""

from collections.abc import Callable
from typing import TYPE_CHECKING

from staking_economics.constants import ZERO_ADDRESS
from staking_economics.errors import InsufficientAllowance, InsufficientBalance, InvalidParameter
from staking_economics.formatters import to_address
from staking_economics.models import Approval, LedgerState, Transfer

if TYPE_CHECKING:
    from staking_economics.context import ChainContext  # pragma: no cover

# Called after a transfer credits the hooked account: hook(sender, amount).
ReceiverHook = Callable[[str, int], None]


class FungibleLedger:
    """
    Balances, allowances, mint and burn.

    `transfer` and `transfer_from` invoke the recipient's receiver hook (if any) after the
    balances have moved, which is how value transfers can call back into other components.
    """

    def __init__(self, ctx: "ChainContext", *, name: str, symbol: str) -> None:
        self._ctx = ctx
        self.name = name
        self.symbol = symbol
        self.state = LedgerState()
        self._hooks: dict[str, ReceiverHook] = {}

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    def balance_of(self, account: str) -> int:
        return self.state.balances.get(to_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.state.allowances.get(to_address(owner), {}).get(to_address(spender), 0)

    def holders(self) -> dict[str, int]:
        """Accounts with a nonzero balance."""
        return {k: v for k, v in self.state.balances.items() if v > 0}

    def set_receiver_hook(self, account: str, hook: ReceiverHook | None) -> None:
        account = to_address(account)
        if hook is None:
            self._hooks.pop(account, None)
        else:
            self._hooks[account] = hook

    def approve(self, owner: str, spender: str, amount: int) -> None:
        owner, spender = to_address(owner), to_address(spender)
        if amount < 0:
            raise InvalidParameter(f"negative allowance: {amount}")
        self._set_allowance(owner, spender, amount)
        self._ctx.events.emit(Approval(token=self.symbol, owner=owner, spender=spender, amount=amount))

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        with self._ctx.transaction():
            self._move(to_address(sender), to_address(recipient), amount)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        spender, owner = to_address(spender), to_address(owner)
        with self._ctx.transaction():
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise InsufficientAllowance(
                    f"{self.symbol}: allowance {allowed} of {spender} over {owner} is below {amount}"
                )
            self._set_allowance(owner, spender, allowed - amount)
            self._move(owner, to_address(recipient), amount)

    def mint(self, account: str, amount: int) -> None:
        account = to_address(account)
        if account == ZERO_ADDRESS:
            raise InvalidParameter("mint to the zero address")
        if amount < 0:
            raise InvalidParameter(f"negative mint: {amount}")
        self._credit(account, amount)
        self._ctx.assign(self.state, "total_supply", self.state.total_supply + amount)
        self._ctx.events.emit(Transfer(token=self.symbol, sender=ZERO_ADDRESS, recipient=account, amount=amount))

    def burn(self, account: str, amount: int) -> None:
        account = to_address(account)
        if amount < 0:
            raise InvalidParameter(f"negative burn: {amount}")
        balance = self.state.balances.get(account, 0)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: balance {balance} of {account} is below {amount}")
        self._ctx.put(self.state.balances, account, balance - amount)
        self._ctx.assign(self.state, "total_supply", self.state.total_supply - amount)
        self._ctx.events.emit(Transfer(token=self.symbol, sender=account, recipient=ZERO_ADDRESS, amount=amount))

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        if amount < 0:
            raise InvalidParameter(f"negative transfer: {amount}")
        if recipient == ZERO_ADDRESS:
            raise InvalidParameter("transfer to the zero address")
        balance = self.state.balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: balance {balance} of {sender} is below {amount}")
        self._ctx.put(self.state.balances, sender, balance - amount)
        self._credit(recipient, amount)
        self._ctx.events.emit(Transfer(token=self.symbol, sender=sender, recipient=recipient, amount=amount))
        hook = self._hooks.get(recipient)
        if hook is not None:
            hook(sender, amount)

    def _credit(self, account: str, amount: int) -> None:
        self._ctx.put(self.state.balances, account, self.state.balances.get(account, 0) + amount)

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        spenders = self.state.allowances.get(owner)
        if spenders is None:
            spenders = {}
            self._ctx.put(self.state.allowances, owner, spenders)
        self._ctx.put(spenders, spender, amount)
