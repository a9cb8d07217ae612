"""Execution context: clock, event log, native ETH ledger and transactional rollback."""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from staking_economics.constants import NATIVE_SYMBOL
from staking_economics.models import Event

if TYPE_CHECKING:
    from staking_economics.token import FungibleLedger  # pragma: no cover

E = TypeVar("E", bound=Event)


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to. Used by tests and the simulation."""

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"cannot move the clock backwards: {timestamp} < {self._now}")
        self._now = int(timestamp)


class EventLog:
    """Append-only record of emitted events (the in-memory analogue of transaction logs)."""

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._listeners: list[Callable[[Event], None]] = []
        # Events before this index have been delivered to listeners.
        self._delivered = 0
        self._held = False

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(list(self._events))

    def emit(self, event: Event) -> None:
        self._events.append(event)
        if not self._held:
            self._deliver()

    def subscribe(self, listener: Callable[[Event], None]) -> None:
        """Call listener for every committed event emitted from now on."""
        self._listeners.append(listener)

    def of_type(self, event_type: type[E]) -> list[E]:
        return [e for e in self._events if isinstance(e, event_type)]

    def last(self, event_type: type[E]) -> E | None:
        for e in reversed(self._events):
            if isinstance(e, event_type):
                return e
        return None

    def truncate(self, length: int) -> None:
        del self._events[length:]
        self._delivered = min(self._delivered, length)

    def hold(self) -> None:
        """Buffer events until `release`; listeners never see events that are truncated meanwhile."""
        self._held = True

    def release(self) -> None:
        self._held = False
        self._deliver()

    def _deliver(self) -> None:
        while self._delivered < len(self._events):
            event = self._events[self._delivered]
            self._delivered += 1
            for listener in self._listeners:
                listener(event)


_MISSING = object()


class ChainContext:
    """
    Shared execution environment for all components of one deployment.

    Components write their mutable state through `assign` and `put`. Inside `transaction()`
    each write records the value it replaced, so a failing block undoes exactly the writes it
    made and truncates the events it emitted; untouched state (such as report history) is
    never copied. Nested transactions are allowed: an inner failure undoes the inner writes only.
    Listeners on the event log are notified when the outermost transaction commits.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        from staking_economics.token import FungibleLedger  # pylint: disable=import-outside-toplevel

        self.clock: Clock = clock if clock is not None else SystemClock()
        self.events = EventLog()
        # Undo records of the open transaction(s); None outside any transaction.
        self._journal: list[tuple[Any, Any, Any, bool]] | None = None
        self.ether: "FungibleLedger" = FungibleLedger(self, name="Ether", symbol=NATIVE_SYMBOL)

    def now(self) -> int:
        return self.clock.now()

    @property
    def pending_writes(self) -> int:
        """Undo records held by the open transaction(s)."""
        return len(self._journal) if self._journal is not None else 0

    def assign(self, obj: Any, name: str, value: Any) -> None:
        """Set an attribute, recording the old value while a transaction is open."""
        if self._journal is not None:
            self._journal.append((obj, name, getattr(obj, name), True))
        setattr(obj, name, value)

    def put(self, mapping: dict, key: Any, value: Any) -> None:
        """Set a mapping entry, recording the old entry (or its absence) while a transaction is open."""
        if self._journal is not None:
            self._journal.append((mapping, key, mapping.get(key, _MISSING), False))
        mapping[key] = value

    @contextmanager
    def transaction(self) -> Iterator[None]:
        outermost = self._journal is None
        if outermost:
            self._journal = []
            self.events.hold()
        journal = self._journal
        mark = len(journal)
        events_mark = len(self.events)
        try:
            yield
        except BaseException:
            self._undo(journal, mark)
            self.events.truncate(events_mark)
            raise
        finally:
            if outermost:
                self._journal = None
                self.events.release()

    @staticmethod
    def _undo(journal: list[tuple[Any, Any, Any, bool]], mark: int) -> None:
        while len(journal) > mark:
            target, key, old, is_attr = journal.pop()
            if is_attr:
                setattr(target, key, old)
            elif old is _MISSING:
                del target[key]
            else:
                target[key] = old
