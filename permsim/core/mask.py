"""Masks translate store statuses into externally visible states."""
from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from permsim.core.descriptor import Descriptor
from permsim.core.states import AccessStatus, PermissionState

if TYPE_CHECKING:
    from permsim.core.store import PermissionStore

PermissionMask = Mapping[Union[AccessStatus, str], Union[PermissionState, str]]

DEFAULT_MASK: Mapping[AccessStatus, PermissionState] = MappingProxyType(
    {
        AccessStatus.PROMPT: PermissionState.PROMPT,
        AccessStatus.GRANTED: PermissionState.GRANTED,
        AccessStatus.BLOCKED: PermissionState.DENIED,
        AccessStatus.BLOCKED_AUTOMATICALLY: PermissionState.DENIED,
        AccessStatus.ALLOWED: PermissionState.PROMPT,
        AccessStatus.DENIED: PermissionState.PROMPT,
    }
)


def normalize_mask(mask: Optional[PermissionMask] = None) -> Dict[AccessStatus, PermissionState]:
    """Fill the gaps of a partial mask with :data:`DEFAULT_MASK`."""

    normalized = dict(DEFAULT_MASK)
    for status, state in (mask or {}).items():
        normalized[AccessStatus(status)] = PermissionState(state)
    return normalized


class PermissionMasks:
    """Per-descriptor masks, looked up with the store's matcher."""

    def __init__(self, masks: Optional[Iterable[Tuple[Descriptor, PermissionMask]]] = None) -> None:
        self._masks: List[Tuple[Descriptor, Dict[AccessStatus, PermissionState]]] = [
            (dict(descriptor), normalize_mask(mask)) for descriptor, mask in (masks or ())
        ]

    def mask_for(
        self, store: "PermissionStore", descriptor: Descriptor
    ) -> Mapping[AccessStatus, PermissionState]:
        return store.select_by_descriptor(self._masks, descriptor) or DEFAULT_MASK

    def apply(
        self, store: "PermissionStore", descriptor: Descriptor, status: AccessStatus
    ) -> PermissionState:
        return self.mask_for(store, descriptor)[status]


__all__ = ["DEFAULT_MASK", "PermissionMask", "PermissionMasks", "normalize_mask"]
