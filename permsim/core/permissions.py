"""Query facade and store-backed permission status objects."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from permsim.core.descriptor import Descriptor
from permsim.core.events import Event, EventTarget, Listener
from permsim.core.mask import PermissionMask, PermissionMasks
from permsim.core.states import AccessStatus, PermissionState
from permsim.core.store import PermissionStore, Unsubscribe
from permsim.utils.logging import get_logger

logger = get_logger(__name__)

# Only code in this module holds the token, so status objects can only come
# out of Permissions.query().
_CREATE = object()


class PermissionStatus(EventTarget):
    """Live view of one permission's masked state.

    ``state`` is read from the store on every access. The status subscribes to
    the store only while at least one ``"change"`` listener is registered, so
    abandoned status objects never pile up as store subscribers.
    """

    def __init__(
        self,
        token: object = None,
        *,
        store: Optional[PermissionStore] = None,
        descriptor: Optional[Descriptor] = None,
        masks: Optional[PermissionMasks] = None,
    ) -> None:
        if token is not _CREATE or store is None or descriptor is None or masks is None:
            raise TypeError("Illegal constructor")
        super().__init__(on_listener_count_change=self._handle_listener_count_change)
        self._store = store
        self._descriptor: Dict[str, Any] = dict(descriptor)
        self._masks = masks
        self._onchange: Optional[Listener] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._state = self.state
        self.name: str = self._descriptor["name"]

    def __repr__(self) -> str:
        return f"<PermissionStatus name={self.name!r} state={self.state.value!r}>"

    @property
    def state(self) -> PermissionState:
        return self._mask(self._store.get(self._descriptor))

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

    def _mask(self, status: AccessStatus) -> PermissionState:
        return self._masks.apply(self._store, self._descriptor, status)

    def _handle_listener_count_change(self, type: str, count: int) -> None:
        if type != "change":
            return
        if count > 0 and self._unsubscribe is None:
            self._state = self.state
            self._unsubscribe = self._store.subscribe(self._handle_store_change)
            logger.debug("status subscribed to store", extra={"descriptor": self._descriptor})
        elif count == 0 and self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.debug("status unsubscribed from store", extra={"descriptor": self._descriptor})

    def _handle_store_change(
        self,
        is_matching: Callable[[Descriptor], bool],
        to_status: AccessStatus,
        from_status: AccessStatus,
    ) -> None:
        if not is_matching(self._descriptor):
            return
        # a nested set() may already have moved the store past to_status
        state = self.state
        if state is self._state:
            return
        self._state = state
        self.dispatch_event(Event("change"))


class Permissions:
    """Answers queries with :class:`PermissionStatus` objects for one store."""

    def __init__(
        self,
        store: PermissionStore,
        *,
        masks: Optional[Iterable[Tuple[Descriptor, PermissionMask]]] = None,
    ) -> None:
        self._store = store
        self._masks = PermissionMasks(masks)

    @property
    def store(self) -> PermissionStore:
        return self._store

    async def query(self, descriptor: Descriptor) -> PermissionStatus:
        # resolve eagerly so unknown descriptors fail here
        self._store.get(descriptor)
        return PermissionStatus(
            _CREATE, store=self._store, descriptor=descriptor, masks=self._masks
        )


def create_permissions(
    store: PermissionStore,
    *,
    masks: Optional[Iterable[Tuple[Descriptor, PermissionMask]]] = None,
) -> Permissions:
    return Permissions(store, masks=masks)


__all__ = ["PermissionStatus", "Permissions", "create_permissions"]
