"""permsim: an in-memory permission store for exercising permission-aware code.

Typical use::

    store = create_permission_store([({"name": "geolocation"}, "PROMPT")])
    user = create_user(store)
    permissions = create_permissions(store)
    status = await permissions.query({"name": "geolocation"})
    user.grant_access({"name": "geolocation"})
    assert status.state is PermissionState.GRANTED
"""

from __future__ import annotations

from permsim.core import (
    AbortController,
    AbortSignal,
    AccessDialog,
    AccessDialogResult,
    AccessRequest,
    AccessStatus,
    DelegatedPermissions,
    DelegatedPermissionStatus,
    Delegation,
    Event,
    PermissionObserver,
    Permissions,
    PermissionState,
    PermissionStatus,
    PermissionStore,
    User,
    build_initial_permission_states,
    create_delegation,
    create_permission_observer,
    create_permission_store,
    create_permissions,
    create_user,
    is_matching_descriptor,
)
from permsim.utils.errors import (
    ConfigurationError,
    DescriptorNotFoundError,
    IllegalStateError,
    InvalidArgumentError,
    PermsimError,
)

__version__ = "0.1.0"

__all__ = [
    "AbortController",
    "AbortSignal",
    "AccessDialog",
    "AccessDialogResult",
    "AccessRequest",
    "AccessStatus",
    "ConfigurationError",
    "DelegatedPermissionStatus",
    "DelegatedPermissions",
    "Delegation",
    "DescriptorNotFoundError",
    "Event",
    "IllegalStateError",
    "InvalidArgumentError",
    "PermissionObserver",
    "PermissionState",
    "PermissionStatus",
    "PermissionStore",
    "Permissions",
    "PermsimError",
    "User",
    "build_initial_permission_states",
    "create_delegation",
    "create_permission_observer",
    "create_permission_store",
    "create_permissions",
    "create_user",
    "is_matching_descriptor",
]
