"""Capabilities composed into each component: ownership, pause flag and re-entry guard."""

from collections.abc import Iterator
from contextlib import contextmanager

from staking_economics.constants import ZERO_ADDRESS
from staking_economics.errors import InvalidParameter, Paused, ReentrantCall, Unauthorized
from staking_economics.formatters import to_address


class Ownable:
    """Single-owner authorization."""

    def __init__(self, owner: str) -> None:
        self._owner = to_address(owner)

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        return to_address(caller) == self._owner

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise Unauthorized(f"caller {caller} is not the owner")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller)
        new_owner = to_address(new_owner)
        if new_owner == ZERO_ADDRESS:
            raise InvalidParameter("new owner is the zero address")
        self._owner = new_owner


class PauseFlag:
    """Owner-controlled pause switch."""

    def __init__(self, access: Ownable) -> None:
        self._access = access
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def require_not_paused(self) -> None:
        if self._paused:
            raise Paused("operation rejected while paused")

    def pause(self, caller: str) -> None:
        self._access.require_owner(caller)
        self._paused = True

    def unpause(self, caller: str) -> None:
        self._access.require_owner(caller)
        self._paused = False


class ReentrancyGuard:
    """Rejects entering a guarded section while another guarded call on the same component is running."""

    def __init__(self) -> None:
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    @contextmanager
    def guard(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall("reentrant call")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False
