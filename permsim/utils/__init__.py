"""Shared helpers for permsim."""

from __future__ import annotations

from permsim.utils.errors import (
    ConfigurationError,
    DescriptorNotFoundError,
    IllegalStateError,
    InvalidArgumentError,
    PermsimError,
)
from permsim.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DescriptorNotFoundError",
    "IllegalStateError",
    "InvalidArgumentError",
    "PermsimError",
    "configure_logging",
    "get_logger",
]
