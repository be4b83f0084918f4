"""Configuration management for permsim.

Stores can be described declaratively in YAML (or TOML), which keeps test
fixtures for large permission sets out of Python code. The
:class:`ConfigLoader` reads and validates such a file with Pydantic models and
builds ready-to-use stores and query facades from it.
"""
from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from permsim.core.permissions import Permissions
from permsim.core.states import AccessStatus, PermissionState
from permsim.core.store import (
    DEFAULT_DISMISS_DENY_THRESHOLD,
    PermissionStore,
    create_permission_store,
)
from permsim.utils.errors import ConfigurationError
from permsim.utils.logging import get_logger

logger = get_logger(__name__)


def _require_name(descriptor: Dict[str, Any]) -> Dict[str, Any]:
    name = descriptor.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError("descriptor requires a non-empty 'name'")
    return descriptor


class PermissionEntry(BaseModel):
    """Initial status of one permission."""

    descriptor: Dict[str, Any]
    status: AccessStatus = AccessStatus.PROMPT

    @field_validator("descriptor")
    @classmethod
    def validate_descriptor(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        return _require_name(value)


class MaskEntry(BaseModel):
    """Partial mask applied to every status matching ``descriptor``."""

    descriptor: Dict[str, Any]
    mask: Dict[AccessStatus, PermissionState] = Field(default_factory=dict)

    @field_validator("descriptor")
    @classmethod
    def validate_descriptor(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        return _require_name(value)


class StoreSettings(BaseModel):
    """Knobs for the permission store and its access request flow."""

    dismiss_deny_threshold: Optional[int] = Field(
        default=DEFAULT_DISMISS_DENY_THRESHOLD,
        ge=1,
        description="Dismissals before a permission is blocked automatically; null disables",
    )
    dialog_default_remember: bool = False
    permissions: List[PermissionEntry] = Field(default_factory=list)


class PermsimSettings(BaseModel):
    """Root configuration schema."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    masks: List[MaskEntry] = Field(default_factory=list)


class ConfigLoader:
    """Load permsim configuration files and build objects from them."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path or Path(
            os.environ.get("PERMSIM_CONFIG", "config/permsim.yml")
        )
        self._settings: Optional[PermsimSettings] = None
        self._callbacks: List[Callable[[PermsimSettings], Awaitable[None]]] = []
        self._lock = asyncio.Lock()

    async def load(self) -> PermsimSettings:
        """Load configuration from disk and validate it."""

        async with self._lock:
            logger.debug("loading configuration", extra={"path": str(self.config_path)})
            data = self._read_file(self.config_path)
            try:
                settings = PermsimSettings(**data)
            except ValidationError as exc:
                raise ConfigurationError(str(exc)) from exc
            self._settings = settings
            return settings

    async def reload(self) -> PermsimSettings:
        """Reload configuration explicitly and notify callbacks."""

        settings = await self.load()
        await self._notify(settings)
        return settings

    def register_callback(self, callback: Callable[[PermsimSettings], Awaitable[None]]) -> None:
        """Register a coroutine callback executed after reloads."""

        self._callbacks.append(callback)

    async def get_settings(self) -> PermsimSettings:
        """Return the last loaded settings, loading them if necessary."""

        if self._settings is None:
            return await self.load()
        return self._settings

    async def build_store(self) -> PermissionStore:
        settings = await self.get_settings()
        return build_store(settings)

    async def build_permissions(self, store: Optional[PermissionStore] = None) -> Permissions:
        settings = await self.get_settings()
        return build_permissions(settings, store or build_store(settings))

    async def _notify(self, settings: PermsimSettings) -> None:
        for callback in self._callbacks:
            try:
                await callback(settings)
            except Exception as exc:
                logger.exception("configuration callback failed", exc_info=exc)

    @staticmethod
    def _read_file(path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigurationError(f"Configuration file {path} does not exist")
        try:
            if path.suffix in {".yml", ".yaml"}:
                with path.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle) or {}
            elif path.suffix == ".toml":
                import tomllib

                with path.open("rb") as handle:
                    data = tomllib.load(handle)
            else:
                raise ConfigurationError(f"Unsupported configuration format: {path.suffix}")
        except (yaml.YAMLError, ValueError) as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        return data


def build_store(settings: PermsimSettings) -> PermissionStore:
    """Create a store from validated settings."""

    store_settings = settings.store
    initial_states = None
    if store_settings.permissions:
        initial_states = [(entry.descriptor, entry.status) for entry in store_settings.permissions]
    return create_permission_store(
        initial_states,
        dismiss_deny_threshold=store_settings.dismiss_deny_threshold,
        dialog_default_remember=store_settings.dialog_default_remember,
    )


def build_permissions(settings: PermsimSettings, store: PermissionStore) -> Permissions:
    """Create a masked query facade for ``store``."""

    return Permissions(store, masks=[(entry.descriptor, entry.mask) for entry in settings.masks])


__all__ = [
    "ConfigLoader",
    "MaskEntry",
    "PermissionEntry",
    "PermsimSettings",
    "StoreSettings",
    "build_permissions",
    "build_store",
]
