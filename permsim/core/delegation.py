"""Switchable composition of several permission facades.

Every query is forwarded to *all* delegates, and the resulting composite
status follows whichever delegate is currently selected. Switching delegates
therefore takes effect immediately, including for statuses that were queried
before the switch.
"""
from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Protocol, Sequence, Tuple

from permsim.core.descriptor import Descriptor
from permsim.core.events import Event, EventTarget, Listener
from permsim.core.states import PermissionState
from permsim.utils.errors import InvalidArgumentError
from permsim.utils.logging import get_logger

logger = get_logger(__name__)

_CREATE = object()


class StatusLike(Protocol):
    name: str

    @property
    def state(self) -> PermissionState: ...

    def add_event_listener(self, type: str, listener: Optional[Listener], **options: Any) -> None: ...

    def remove_event_listener(self, type: str, listener: Optional[Listener], **options: Any) -> None: ...


class PermissionsLike(Protocol):
    async def query(self, descriptor: Descriptor) -> StatusLike: ...


class _Selection:
    """The immutable delegate list plus the index of the selected one."""

    def __init__(self, delegates: Sequence[PermissionsLike]) -> None:
        self.delegates: Tuple[PermissionsLike, ...] = tuple(delegates)
        self.index = 0
        self._subscribers: Dict[Callable[[], None], None] = {}

    def index_of(self, delegate: PermissionsLike) -> int:
        for index, candidate in enumerate(self.delegates):
            if candidate is delegate:
                return index
        raise InvalidArgumentError("Unknown delegate")

    def select(self, delegate: PermissionsLike) -> None:
        self.index = self.index_of(delegate)
        logger.debug("delegate selected", extra={"index": self.index})
        for subscriber in list(self._subscribers):
            if subscriber in self._subscribers:
                subscriber()

    def is_selected(self, delegate: PermissionsLike) -> bool:
        return self.delegates[self.index] is delegate

    def subscribe(self, subscriber: Callable[[], None]) -> Callable[[], None]:
        self._subscribers[subscriber] = None
        return lambda: self._subscribers.pop(subscriber, None)


class DelegatedPermissionStatus(EventTarget):
    """Status that mirrors the selected delegate's status for one descriptor."""

    def __init__(
        self,
        token: object = None,
        *,
        statuses: Optional[Sequence[StatusLike]] = None,
        selection: Optional[_Selection] = None,
    ) -> None:
        if token is not _CREATE or statuses is None or selection is None:
            raise TypeError("Illegal constructor")
        super().__init__(on_listener_count_change=self._handle_listener_count_change)
        self._statuses: Tuple[StatusLike, ...] = tuple(statuses)
        self._selection = selection
        self._onchange: Optional[Listener] = None
        self._handlers: List[Callable[[Event], None]] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._state = self.state
        self.name: str = self._statuses[0].name

    def __repr__(self) -> str:
        return f"<DelegatedPermissionStatus name={self.name!r} state={self.state.value!r}>"

    @property
    def state(self) -> PermissionState:
        return self._statuses[self._selection.index].state

    @property
    def onchange(self) -> Optional[Listener]:
        return self._onchange

    @onchange.setter
    def onchange(self, listener: Optional[Listener]) -> None:
        if self._onchange is not None:
            self.remove_event_listener("change", self._onchange)
        self._onchange = listener
        if listener is not None:
            self.add_event_listener("change", listener)

    def _handle_listener_count_change(self, type: str, count: int) -> None:
        if type != "change":
            return
        if count > 0 and self._unsubscribe is None:
            self._state = self.state
            self._unsubscribe = self._selection.subscribe(self._handle_selection_change)
            for index, status in enumerate(self._statuses):
                handler = partial(self._handle_delegate_change, index)
                self._handlers.append(handler)
                status.add_event_listener("change", handler)
        elif count == 0 and self._unsubscribe is not None:
            for status, handler in zip(self._statuses, self._handlers):
                status.remove_event_listener("change", handler)
            self._handlers.clear()
            self._unsubscribe()
            self._unsubscribe = None

    def _handle_delegate_change(self, index: int, event: Event) -> None:
        if index != self._selection.index:
            return
        self._update_state(self._statuses[index].state)

    def _handle_selection_change(self) -> None:
        self._update_state(self.state)

    def _update_state(self, state: PermissionState) -> None:
        if state is self._state:
            return
        self._state = state
        self.dispatch_event(Event("change"))


class DelegatedPermissions:
    """Query facade over a fixed list of delegate facades."""

    def __init__(self, token: object = None, *, selection: Optional[_Selection] = None) -> None:
        if token is not _CREATE or selection is None:
            raise TypeError("Illegal constructor")
        self._selection = selection

    async def query(self, descriptor: Descriptor) -> DelegatedPermissionStatus:
        statuses = await asyncio.gather(
            *(delegate.query(descriptor) for delegate in self._selection.delegates)
        )
        return DelegatedPermissionStatus(_CREATE, statuses=statuses, selection=self._selection)


class Delegation(NamedTuple):
    permissions: DelegatedPermissions
    select_delegate: Callable[[PermissionsLike], None]
    is_delegate_selected: Callable[[PermissionsLike], bool]


def create_delegation(delegates: Sequence[PermissionsLike]) -> Delegation:
    """Compose ``delegates``; the first one starts out selected."""

    if not delegates:
        raise InvalidArgumentError("No delegates provided")
    selection = _Selection(delegates)
    return Delegation(
        permissions=DelegatedPermissions(_CREATE, selection=selection),
        select_delegate=selection.select,
        is_delegate_selected=selection.is_selected,
    )


__all__ = [
    "DelegatedPermissionStatus",
    "DelegatedPermissions",
    "Delegation",
    "create_delegation",
]
