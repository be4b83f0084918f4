"""Simulated permission access dialogs."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from permsim.utils.errors import IllegalStateError


class DialogState(str, Enum):
    OPEN = "open"
    ALLOWED = "allowed"
    DENIED = "denied"
    DISMISSED = "dismissed"


@dataclass(frozen=True)
class AccessDialogResult:
    """Outcome of a dialog that was not dismissed."""

    should_allow: bool
    should_remember: bool


class AccessDialog:
    """A one-shot consent prompt handed to an access request handler.

    ``remember()`` may be called any number of times while the dialog is open
    and decides how a later ``allow()`` or ``deny()`` is recorded:

    ============  ===========  ==========
    choice        remembered   status
    ============  ===========  ==========
    allow         yes          GRANTED
    allow         no           ALLOWED
    deny          yes          BLOCKED
    deny          no           DENIED
    ============  ===========  ==========

    Exactly one of ``allow()``, ``deny()`` or ``dismiss()`` may be called.
    Any call after that raises :class:`~permsim.utils.errors.IllegalStateError`.
    """

    def __init__(self, *, default_remember: bool = False) -> None:
        self._should_remember = default_remember
        self._state = DialogState.OPEN
        self._result: Optional[AccessDialogResult] = None

    @property
    def state(self) -> DialogState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is DialogState.OPEN

    @property
    def result(self) -> Optional[AccessDialogResult]:
        """The choice made, or ``None`` while open or after a dismissal."""

        return self._result

    def remember(self, should_remember: bool) -> None:
        self._ensure_open()
        self._should_remember = should_remember

    def allow(self) -> None:
        self._close(DialogState.ALLOWED, AccessDialogResult(True, self._should_remember))

    def deny(self) -> None:
        self._close(DialogState.DENIED, AccessDialogResult(False, self._should_remember))

    def dismiss(self) -> None:
        self._close(DialogState.DISMISSED, None)

    def _close(self, state: DialogState, result: Optional[AccessDialogResult]) -> None:
        self._ensure_open()
        self._state = state
        self._result = result

    def _ensure_open(self) -> None:
        if self._state is not DialogState.OPEN:
            raise IllegalStateError("Access dialog already dismissed")


__all__ = ["AccessDialog", "AccessDialogResult", "DialogState"]
