"""Custom exceptions used across permsim."""
from __future__ import annotations

import json
from typing import Any, Mapping


class PermsimError(Exception):
    """Base exception for all library-specific errors."""


class DescriptorNotFoundError(PermsimError, LookupError):
    """Raised when no stored permission matches a descriptor."""

    def __init__(self, descriptor: Mapping[str, Any]) -> None:
        self.descriptor = descriptor
        super().__init__(
            f"No permission state for descriptor {json.dumps(dict(descriptor), sort_keys=True)}"
        )


class IllegalStateError(PermsimError, RuntimeError):
    """Raised when an object is used after its legal window has closed."""


class InvalidArgumentError(PermsimError, ValueError):
    """Raised when a call violates a documented precondition."""


class ConfigurationError(PermsimError):
    """Raised when configuration loading or validation fails."""


__all__ = [
    "PermsimError",
    "DescriptorNotFoundError",
    "IllegalStateError",
    "InvalidArgumentError",
    "ConfigurationError",
]
