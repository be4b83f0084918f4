"""Minimal DOM-style event dispatch.

Status objects need ``addEventListener`` semantics (capture and bubble
phases, ``once``, abort signals) plus a hook that fires whenever the number
of listeners for an event type changes; that hook is what lets a status
object subscribe to its store only while somebody is listening.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Union


class ListenerObject(Protocol):
    def handle_event(self, event: "Event") -> Any: ...


Listener = Union[Callable[["Event"], Any], ListenerObject]
OnListenerCountChange = Callable[[str, int], None]


@dataclass
class Event:
    type: str
    target: Any = None
    current_target: Any = None


class AbortSignal:
    """Signal handed to ``add_event_listener(..., signal=...)``."""

    def __init__(self) -> None:
        self._aborted = False
        self._listeners: Dict[Callable[[], None], None] = {}

    @property
    def aborted(self) -> bool:
        return self._aborted

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners[callback] = None

    def remove_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.pop(callback, None)

    def _abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        listeners = list(self._listeners)
        self._listeners.clear()
        for callback in listeners:
            callback()


class AbortController:
    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self) -> None:
        self.signal._abort()


@dataclass
class _ListenerRecord:
    listener: Listener
    once: bool
    signal: Optional[AbortSignal] = None
    handle_abort: Optional[Callable[[], None]] = None
    removed: bool = field(default=False)

    def invoke(self, event: Event) -> None:
        if callable(self.listener):
            self.listener(event)
        else:
            self.listener.handle_event(event)


class EventTarget:
    """Event target with separately tracked capture and bubble listeners."""

    def __init__(self, *, on_listener_count_change: Optional[OnListenerCountChange] = None) -> None:
        self._capture_listeners: Dict[str, Dict[Listener, _ListenerRecord]] = {}
        self._bubble_listeners: Dict[str, Dict[Listener, _ListenerRecord]] = {}
        self._on_listener_count_change = on_listener_count_change

    def add_event_listener(
        self,
        type: str,
        listener: Optional[Listener],
        *,
        capture: bool = False,
        once: bool = False,
        signal: Optional[AbortSignal] = None,
    ) -> None:
        if listener is None:
            return
        if signal is not None and signal.aborted:
            return
        listeners = self._listeners_for(type, capture)
        if listener in listeners:
            return

        record = _ListenerRecord(listener=listener, once=once)
        if signal is not None:
            # detached again on removal, otherwise a later abort would remove
            # a re-added registration that no longer belongs to this signal
            def handle_abort() -> None:
                if listeners.get(listener) is record:
                    self._remove_record(type, capture, record)

            record.signal = signal
            record.handle_abort = handle_abort
            signal.add_listener(handle_abort)

        listeners[listener] = record
        self._notify_count(type)

    def remove_event_listener(
        self, type: str, listener: Optional[Listener], *, capture: bool = False
    ) -> None:
        if listener is None:
            return
        record = self._listeners_for(type, capture).get(listener)
        if record is None:
            return
        self._remove_record(type, capture, record)

    def dispatch_event(self, event: Event) -> bool:
        event.target = self
        event.current_target = self
        for capture in (True, False):
            records: List[_ListenerRecord] = list(self._listeners_for(event.type, capture).values())
            for record in records:
                if record.removed:
                    continue
                if record.once:
                    self._remove_record(event.type, capture, record)
                record.invoke(event)
        return True

    def listener_count(self, type: str) -> int:
        return len(self._capture_listeners.get(type, ())) + len(
            self._bubble_listeners.get(type, ())
        )

    def _remove_record(self, type: str, capture: bool, record: _ListenerRecord) -> None:
        listeners = self._listeners_for(type, capture)
        if listeners.get(record.listener) is not record:
            return
        del listeners[record.listener]
        record.removed = True
        if record.signal is not None and record.handle_abort is not None:
            record.signal.remove_listener(record.handle_abort)
        self._notify_count(type)

    def _listeners_for(self, type: str, capture: bool) -> Dict[Listener, _ListenerRecord]:
        by_type = self._capture_listeners if capture else self._bubble_listeners
        return by_type.setdefault(type, {})

    def _notify_count(self, type: str) -> None:
        if self._on_listener_count_change is not None:
            self._on_listener_count_change(type, self.listener_count(type))


__all__ = [
    "AbortController",
    "AbortSignal",
    "Event",
    "EventTarget",
    "Listener",
    "ListenerObject",
]
