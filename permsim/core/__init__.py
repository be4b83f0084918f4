"""The permission state store and everything layered on top of it."""

from __future__ import annotations

from permsim.core.access import AccessRequest, AccessRequestFlow
from permsim.core.delegation import (
    DelegatedPermissionStatus,
    DelegatedPermissions,
    Delegation,
    create_delegation,
)
from permsim.core.descriptor import is_matching_descriptor
from permsim.core.dialog import AccessDialog, AccessDialogResult
from permsim.core.events import AbortController, AbortSignal, Event, EventTarget
from permsim.core.mask import DEFAULT_MASK, PermissionMasks, normalize_mask
from permsim.core.observer import PermissionObserver, create_permission_observer
from permsim.core.permissions import PermissionStatus, Permissions, create_permissions
from permsim.core.states import AccessStatus, PermissionState
from permsim.core.store import (
    PermissionStore,
    build_initial_permission_states,
    create_permission_store,
)
from permsim.core.user import User, create_user

__all__ = [
    "AbortController",
    "AbortSignal",
    "AccessDialog",
    "AccessDialogResult",
    "AccessRequest",
    "AccessRequestFlow",
    "AccessStatus",
    "DEFAULT_MASK",
    "DelegatedPermissionStatus",
    "DelegatedPermissions",
    "Delegation",
    "Event",
    "EventTarget",
    "PermissionMasks",
    "PermissionObserver",
    "PermissionState",
    "PermissionStatus",
    "PermissionStore",
    "Permissions",
    "User",
    "build_initial_permission_states",
    "create_delegation",
    "create_permission_observer",
    "create_permission_store",
    "create_permissions",
    "create_user",
    "is_matching_descriptor",
    "normalize_mask",
]
