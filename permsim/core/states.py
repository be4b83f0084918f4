"""Permission state enumerations."""
from __future__ import annotations

from enum import Enum


class PermissionState(str, Enum):
    """Externally visible state, as reported by a status object."""

    PROMPT = "prompt"
    GRANTED = "granted"
    DENIED = "denied"


class AccessStatus(str, Enum):
    """Fine-grained status held by a :class:`~permsim.core.store.PermissionStore`.

    ``PROMPT``, ``GRANTED`` and ``BLOCKED`` are remembered decisions.
    ``ALLOWED`` and ``DENIED`` record a dialog choice that was not remembered,
    and ``BLOCKED_AUTOMATICALLY`` is reached after too many dismissals.
    """

    PROMPT = "PROMPT"
    GRANTED = "GRANTED"
    BLOCKED = "BLOCKED"
    BLOCKED_AUTOMATICALLY = "BLOCKED_AUTOMATICALLY"
    ALLOWED = "ALLOWED"
    DENIED = "DENIED"


# Statuses for which an access request opens a dialog.
PROMPTING_STATUSES = frozenset({AccessStatus.PROMPT, AccessStatus.ALLOWED, AccessStatus.DENIED})
BLOCKING_STATUSES = frozenset({AccessStatus.BLOCKED, AccessStatus.BLOCKED_AUTOMATICALLY})

__all__ = ["AccessStatus", "PermissionState", "PROMPTING_STATUSES", "BLOCKING_STATUSES"]
