"""Permission descriptors and the default matching policy.

A descriptor is any mapping with a ``name`` key, e.g. ``{"name": "midi",
"sysex": True}``. Descriptors are compared structurally through a matcher;
unknown extra keys are ignored by the default policy.
"""
from __future__ import annotations

import json
from typing import Any, Callable, Dict, Hashable, Mapping, Tuple

Descriptor = Mapping[str, Any]
MatchFn = Callable[[Descriptor, Descriptor], bool]

# name -> (discriminating field, value assumed when the field is absent)
DISCRIMINATORS: Dict[str, Tuple[str, Any]] = {
    "midi": ("sysex", False),
    "push": ("userVisibleOnly", False),
}


def is_matching_descriptor(a: Descriptor, b: Descriptor) -> bool:
    """Return ``True`` when ``a`` and ``b`` denote the same permission."""

    name = a.get("name")
    if name != b.get("name"):
        return False
    discriminator = DISCRIMINATORS.get(name)
    if discriminator is None:
        return True
    field, default = discriminator
    return a.get(field, default) == b.get(field, default)


def descriptor_key(descriptor: Descriptor) -> Hashable:
    """Hashable stand-in for a descriptor, used to key per-permission state."""

    return render_descriptor(descriptor)


def render_descriptor(descriptor: Descriptor) -> str:
    return json.dumps(dict(descriptor), sort_keys=True, default=repr)


__all__ = [
    "DISCRIMINATORS",
    "Descriptor",
    "MatchFn",
    "descriptor_key",
    "is_matching_descriptor",
    "render_descriptor",
]
