"""The permission state store.

The store is the single source of truth for access statuses. Everything else
in the package (status objects, masks, delegation, dialogs) reads from it and
writes through :meth:`PermissionStore.set`.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from permsim.core.access import AccessRequest, AccessRequestFlow, HandleAccessRequest
from permsim.core.descriptor import (
    Descriptor,
    MatchFn,
    is_matching_descriptor as default_is_matching_descriptor,
    render_descriptor,
)
from permsim.core.states import AccessStatus
from permsim.constants import (
    GEOLOCATION,
    MIDI,
    NOTIFICATIONS,
    PERSISTENT_STORAGE,
    PUSH,
    SCREEN_WAKE_LOCK,
    STORAGE_ACCESS,
)
from permsim.utils.errors import DescriptorNotFoundError, InvalidArgumentError
from permsim.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

StatusLike = Union[AccessStatus, str]
InitialStates = Iterable[Tuple[Descriptor, StatusLike]]
Subscriber = Callable[[Callable[[Descriptor], bool], AccessStatus, AccessStatus], None]
Unsubscribe = Callable[[], None]

DEFAULT_DISMISS_DENY_THRESHOLD = 3


@dataclass
class _Entry:
    descriptor: Dict[str, Any]
    status: AccessStatus


def build_initial_permission_states() -> List[Tuple[Descriptor, AccessStatus]]:
    """Initial states for the permissions every engine understands."""

    return [
        ({"name": GEOLOCATION}, AccessStatus.PROMPT),
        ({"name": MIDI, "sysex": False}, AccessStatus.PROMPT),
        ({"name": MIDI, "sysex": True}, AccessStatus.PROMPT),
        ({"name": NOTIFICATIONS}, AccessStatus.PROMPT),
        ({"name": PERSISTENT_STORAGE}, AccessStatus.PROMPT),
        ({"name": PUSH, "userVisibleOnly": False}, AccessStatus.PROMPT),
        ({"name": PUSH, "userVisibleOnly": True}, AccessStatus.PROMPT),
        ({"name": SCREEN_WAKE_LOCK}, AccessStatus.PROMPT),
        ({"name": STORAGE_ACCESS}, AccessStatus.PROMPT),
    ]


class PermissionStore:
    """Mutable mapping from descriptors to access statuses.

    Lookups go through the configured matcher rather than equality, so
    ``{"name": "midi"}`` finds the entry stored as ``{"name": "midi", "sysex":
    False}``. Subscribers are notified synchronously, in registration order,
    whenever :meth:`set` changes a status.
    """

    def __init__(
        self,
        initial_states: InitialStates,
        *,
        is_matching_descriptor: MatchFn = default_is_matching_descriptor,
        dismiss_deny_threshold: Optional[int] = DEFAULT_DISMISS_DENY_THRESHOLD,
        dialog_default_remember: bool = False,
        handle_access_request: Optional[HandleAccessRequest] = None,
    ) -> None:
        self._matcher = is_matching_descriptor
        self._entries: List[_Entry] = []
        # dict keeps insertion order and makes subscribe idempotent
        self._subscribers: Dict[Subscriber, None] = {}
        for descriptor, status in initial_states:
            for entry in self._entries:
                if self._matcher(entry.descriptor, descriptor) or self._matcher(
                    descriptor, entry.descriptor
                ):
                    raise InvalidArgumentError(
                        f"Descriptors {render_descriptor(entry.descriptor)} and "
                        f"{render_descriptor(descriptor)} refer to the same permission"
                    )
            self._entries.append(_Entry(descriptor=dict(descriptor), status=AccessStatus(status)))
        self._access = AccessRequestFlow(
            self,
            dismiss_deny_threshold=dismiss_deny_threshold,
            dialog_default_remember=dialog_default_remember,
            handler=handle_access_request,
        )

    # -- lookup -----------------------------------------------------------

    def is_matching_descriptor(self, a: Descriptor, b: Descriptor) -> bool:
        return self._matcher(a, b)

    def select_by_descriptor(
        self, pairs: Iterable[Tuple[Descriptor, T]], descriptor: Descriptor
    ) -> Optional[T]:
        """Return the value of the first pair whose descriptor matches."""

        for candidate, value in pairs:
            if self._matcher(candidate, descriptor):
                return value
        return None

    def has(self, descriptor: Descriptor) -> bool:
        return self._find(descriptor) is not None

    is_known_descriptor = has

    def canonical_descriptor(self, descriptor: Descriptor) -> Dict[str, Any]:
        """Return a copy of the stored descriptor that ``descriptor`` matches."""

        return dict(self._require(descriptor).descriptor)

    def get(self, descriptor: Descriptor) -> AccessStatus:
        return self._require(descriptor).status

    def set(self, descriptor: Descriptor, to_status: StatusLike) -> None:
        """Transition a permission and notify subscribers.

        Writing the current status again is a no-op and notifies nobody.
        """

        entry = self._require(descriptor)
        to_status = AccessStatus(to_status)
        from_status = entry.status
        if to_status is from_status:
            return
        entry.status = to_status
        logger.debug(
            "permission status changed",
            extra={
                "descriptor": entry.descriptor,
                "from_status": from_status.value,
                "to_status": to_status.value,
            },
        )
        self._dispatch(entry.descriptor, to_status, from_status)

    def subscribe(self, subscriber: Subscriber) -> Unsubscribe:
        """Register ``subscriber``; the returned callable removes it again."""

        self._subscribers[subscriber] = None

        def unsubscribe() -> None:
            self._subscribers.pop(subscriber, None)

        return unsubscribe

    # -- access requests --------------------------------------------------

    async def request_access(self, descriptor: Descriptor) -> bool:
        return await self._access.request_access(descriptor)

    def set_access_request_handler(self, handler: Optional[HandleAccessRequest]) -> None:
        self._access.handler = handler

    def access_requests(self, descriptor: Optional[Descriptor] = None) -> List[AccessRequest]:
        return self._access.requests(descriptor)

    def access_request_count(self, descriptor: Optional[Descriptor] = None) -> int:
        return len(self._access.requests(descriptor))

    def clear_access_requests(self, descriptor: Optional[Descriptor] = None) -> None:
        self._access.clear(descriptor)

    # -- internals --------------------------------------------------------

    def _find(self, descriptor: Descriptor) -> Optional[_Entry]:
        for entry in self._entries:
            if self._matcher(entry.descriptor, descriptor):
                return entry
        return None

    def _require(self, descriptor: Descriptor) -> _Entry:
        entry = self._find(descriptor)
        if entry is None:
            raise DescriptorNotFoundError(descriptor)
        return entry

    def _dispatch(
        self, descriptor: Dict[str, Any], to_status: AccessStatus, from_status: AccessStatus
    ) -> None:
        is_matching = partial(self._matcher, descriptor)
        for subscriber in list(self._subscribers):
            # skip subscribers removed by an earlier subscriber in this loop
            if subscriber not in self._subscribers:
                continue
            try:
                subscriber(is_matching, to_status, from_status)
            except Exception as exc:
                _report_subscriber_fault(exc, descriptor)


def _report_subscriber_fault(exc: Exception, descriptor: Dict[str, Any]) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.error(
            "permission store subscriber failed",
            exc_info=exc,
            extra={"descriptor": descriptor},
        )
        return
    # surfaced on the next loop iteration, never to the caller of set()
    context = {
        "message": "permission store subscriber failed",
        "exception": exc,
        "descriptor": descriptor,
    }
    loop.call_soon(loop.call_exception_handler, context)


def create_permission_store(
    initial_states: Optional[InitialStates] = None,
    *,
    is_matching_descriptor: MatchFn = default_is_matching_descriptor,
    dismiss_deny_threshold: Optional[int] = DEFAULT_DISMISS_DENY_THRESHOLD,
    dialog_default_remember: bool = False,
    handle_access_request: Optional[HandleAccessRequest] = None,
) -> PermissionStore:
    """Create a store, defaulting to :func:`build_initial_permission_states`."""

    if initial_states is None:
        initial_states = build_initial_permission_states()
    return PermissionStore(
        initial_states,
        is_matching_descriptor=is_matching_descriptor,
        dismiss_deny_threshold=dismiss_deny_threshold,
        dialog_default_remember=dialog_default_remember,
        handle_access_request=handle_access_request,
    )


__all__ = [
    "DEFAULT_DISMISS_DENY_THRESHOLD",
    "PermissionStore",
    "Subscriber",
    "Unsubscribe",
    "build_initial_permission_states",
    "create_permission_store",
]
