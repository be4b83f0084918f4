"""Access request handling.

:class:`AccessRequestFlow` decides whether a request needs a dialog, runs the
configured handler against a fresh :class:`~permsim.core.dialog.AccessDialog`,
and turns the outcome into a status transition on the owning store. Every
dialog that is opened leaves an :class:`AccessRequest` in the flow's log.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field, replace
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Dict,
    Hashable,
    List,
    Optional,
    Union,
)

from permsim.core.descriptor import Descriptor, descriptor_key
from permsim.core.dialog import AccessDialog, AccessDialogResult
from permsim.core.states import BLOCKING_STATUSES, AccessStatus
from permsim.utils.errors import InvalidArgumentError
from permsim.utils.logging import get_logger

if TYPE_CHECKING:
    from permsim.core.store import PermissionStore

logger = get_logger(__name__)

HandleAccessRequestComplete = Callable[[Optional[AccessDialogResult]], None]
HandlerOutcome = Optional[HandleAccessRequestComplete]
HandleAccessRequest = Callable[
    [AccessDialog, Descriptor],
    Union[HandlerOutcome, Awaitable[HandlerOutcome]],
]


@dataclass(frozen=True)
class AccessRequest:
    """One access request, as seen by the user.

    ``result`` is ``None`` while pending and when the dialog was dismissed.
    """

    descriptor: Dict[str, Any]
    result: Optional[AccessDialogResult] = None
    is_complete: bool = False


@dataclass
class _Dismissals:
    counts: Dict[Hashable, int] = field(default_factory=dict)

    def increment(self, key: Hashable) -> int:
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    def reset(self, key: Hashable) -> None:
        self.counts.pop(key, None)


class AccessRequestFlow:
    """Turns access requests into dialog interactions and status changes."""

    def __init__(
        self,
        store: "PermissionStore",
        *,
        dismiss_deny_threshold: Optional[int],
        dialog_default_remember: bool,
        handler: Optional[HandleAccessRequest] = None,
    ) -> None:
        if dismiss_deny_threshold is not None and dismiss_deny_threshold < 1:
            raise InvalidArgumentError("dismiss_deny_threshold must be at least 1")
        self._store = store
        self._threshold = dismiss_deny_threshold
        self._default_remember = dialog_default_remember
        self._dismissals = _Dismissals()
        self._requests: List[AccessRequest] = []
        self.handler = handler

    async def request_access(self, descriptor: Descriptor) -> bool:
        """Ask for access, opening a dialog when the status calls for one.

        If the handler raises, its dialog is dismissed and the record is
        completed with whatever result the dialog holds, but the status is
        not changed and the dismissal counter is not touched. The exception
        propagates to the caller.
        """

        status = self._store.get(descriptor)
        if status is AccessStatus.GRANTED:
            return True
        if status in BLOCKING_STATUSES:
            return False

        pending = AccessRequest(descriptor=dict(descriptor))
        self._requests.append(pending)

        handler = self.handler
        on_complete: HandlerOutcome = None
        if handler is None:
            # no user to ask: treat as an unremembered denial
            result: Optional[AccessDialogResult] = AccessDialogResult(
                should_allow=False, should_remember=False
            )
        else:
            dialog = AccessDialog(default_remember=self._default_remember)
            try:
                outcome = handler(dialog, descriptor)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception:
                # the store is left untouched; only the record is closed
                if dialog.is_open:
                    dialog.dismiss()
                self._complete(pending, dialog.result)
                raise
            if dialog.is_open:
                dialog.dismiss()
            result = dialog.result
            on_complete = outcome if callable(outcome) else None

        self._apply(descriptor, result)
        self._complete(pending, result)
        if on_complete is not None:
            on_complete(result)
        return result is not None and result.should_allow

    def requests(self, descriptor: Optional[Descriptor] = None) -> List[AccessRequest]:
        if descriptor is None:
            return list(self._requests)
        known = self._store.canonical_descriptor(descriptor)
        return [
            request
            for request in self._requests
            if self._store.is_matching_descriptor(known, request.descriptor)
        ]

    def clear(self, descriptor: Optional[Descriptor] = None) -> None:
        if descriptor is None:
            self._requests.clear()
            return
        matching = self.requests(descriptor)
        self._requests = [
            request for request in self._requests if not any(request is m for m in matching)
        ]

    def _apply(self, descriptor: Descriptor, result: Optional[AccessDialogResult]) -> None:
        key = descriptor_key(self._store.canonical_descriptor(descriptor))
        if result is None:
            dismissals = self._dismissals.increment(key)
            logger.info(
                "access dialog dismissed",
                extra={"descriptor": dict(descriptor), "dismissals": dismissals},
            )
            if self._threshold is not None and dismissals >= self._threshold:
                self._dismissals.reset(key)
                logger.info(
                    "permission blocked after repeated dismissals",
                    extra={"descriptor": dict(descriptor), "dismissals": dismissals},
                )
                self._store.set(descriptor, AccessStatus.BLOCKED_AUTOMATICALLY)
            return

        self._dismissals.reset(key)
        if result.should_allow:
            to_status = AccessStatus.GRANTED if result.should_remember else AccessStatus.ALLOWED
        else:
            to_status = AccessStatus.BLOCKED if result.should_remember else AccessStatus.DENIED
        logger.info(
            "access dialog resolved",
            extra={"descriptor": dict(descriptor), "result": to_status.value},
        )
        self._store.set(descriptor, to_status)

    def _complete(self, pending: AccessRequest, result: Optional[AccessDialogResult]) -> None:
        for index, request in enumerate(self._requests):
            if request is pending:
                self._requests[index] = replace(pending, result=result, is_complete=True)
                return


__all__ = [
    "AccessRequest",
    "AccessRequestFlow",
    "HandleAccessRequest",
    "HandleAccessRequestComplete",
]
