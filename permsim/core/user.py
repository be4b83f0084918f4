"""A simulated user acting on a permission store."""
from __future__ import annotations

from typing import List, Optional

from permsim.core.access import AccessRequest, HandleAccessRequest
from permsim.core.descriptor import Descriptor
from permsim.core.states import AccessStatus
from permsim.core.store import PermissionStore


class User:
    """Changes permissions the way a person would through browser settings."""

    def __init__(
        self,
        store: PermissionStore,
        *,
        handle_access_request: Optional[HandleAccessRequest] = None,
    ) -> None:
        self._store = store
        if handle_access_request is not None:
            store.set_access_request_handler(handle_access_request)

    def grant_access(self, descriptor: Descriptor) -> None:
        self._store.set(descriptor, AccessStatus.GRANTED)

    def block_access(self, descriptor: Descriptor) -> None:
        self._store.set(descriptor, AccessStatus.BLOCKED)

    def reset_access(self, descriptor: Descriptor) -> None:
        self._store.set(descriptor, AccessStatus.PROMPT)

    async def request_access(self, descriptor: Descriptor) -> bool:
        return await self._store.request_access(descriptor)

    def set_access_request_handler(self, handler: Optional[HandleAccessRequest]) -> None:
        self._store.set_access_request_handler(handler)

    def access_requests(self, descriptor: Optional[Descriptor] = None) -> List[AccessRequest]:
        return self._store.access_requests(descriptor)

    def access_request_count(self, descriptor: Optional[Descriptor] = None) -> int:
        return self._store.access_request_count(descriptor)

    def clear_access_requests(self, descriptor: Optional[Descriptor] = None) -> None:
        self._store.clear_access_requests(descriptor)


def create_user(
    store: PermissionStore, *, handle_access_request: Optional[HandleAccessRequest] = None
) -> User:
    return User(store, handle_access_request=handle_access_request)


__all__ = ["User", "create_user"]
