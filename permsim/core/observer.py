"""Waiting for a permission to reach a particular state."""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Coroutine, Iterable, List, Optional, Protocol, Union

from permsim.core.descriptor import Descriptor
from permsim.core.events import Event
from permsim.core.states import PermissionState
from permsim.utils.errors import InvalidArgumentError

StateOrStates = Union[PermissionState, str, Iterable[Union[PermissionState, str]]]
Task = Callable[[], Union[Awaitable[Any], None]]


class _Queryable(Protocol):
    async def query(self, descriptor: Descriptor) -> Any: ...


def _normalize_states(states: StateOrStates) -> List[PermissionState]:
    if isinstance(states, (PermissionState, str)):
        return [PermissionState(states)]
    return [PermissionState(state) for state in states]


async def _run_task(task: Optional[Task]) -> None:
    if task is None:
        return
    result = task()
    if inspect.isawaitable(result):
        await result


class PermissionObserver:
    """Observes one permission through a query facade.

    Example::

        observer = create_permission_observer(permissions, {"name": "camera"})
        await observer.wait_for_state("granted", lambda: user.grant_access({"name": "camera"}))
    """

    def __init__(self, permissions: _Queryable, descriptor: Descriptor) -> None:
        self._permissions = permissions
        self._descriptor = dict(descriptor)

    def wait_for_state(
        self, states: StateOrStates, task: Optional[Task] = None
    ) -> Coroutine[Any, Any, None]:
        """Return a coroutine that finishes once the state is one of ``states``.

        ``task`` is run (and awaited) after observation has started, so any
        change it makes is seen. It runs even if the state already matches.
        An empty ``states`` collection is rejected immediately, before any
        coroutine is created.
        """

        targets = _normalize_states(states)
        if not targets:
            raise InvalidArgumentError("No states provided")
        return self._wait(targets, task)

    async def _wait(self, targets: List[PermissionState], task: Optional[Task]) -> None:
        status = await self._permissions.query(self._descriptor)
        if status.state in targets:
            await _run_task(task)
            return

        reached: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def on_change(event: Event) -> None:
            if status.state not in targets:
                return
            status.remove_event_listener("change", on_change)
            if not reached.done():
                reached.set_result(None)

        status.add_event_listener("change", on_change)
        try:
            await asyncio.gather(reached, _run_task(task))
        finally:
            status.remove_event_listener("change", on_change)


def create_permission_observer(permissions: _Queryable, descriptor: Descriptor) -> PermissionObserver:
    return PermissionObserver(permissions, descriptor)


__all__ = ["PermissionObserver", "create_permission_observer"]
