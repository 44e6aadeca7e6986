"""Cache key derivation.

A key identifies one computation: which cached function (an explicit,
caller-supplied name), the caller's key parts, and the call arguments.
All three are encoded together as one canonical JSON array, so no value
inside a component can be mistaken for a separator.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from quickcache._codec import canonical


def _validate_name(name: str) -> None:
    """Raise ValueError if name cannot identify a cached function."""
    if not isinstance(name, str) or not name:
        raise ValueError(f"Cached function name must be a non-empty string, got {name!r}")


def _validate_key_parts(key_parts: Sequence[str]) -> None:
    for part in key_parts:
        if not isinstance(part, str):
            raise ValueError(f"Key part must be a string, got {type(part).__name__}")


def derive_key(name: str, key_parts: Sequence[str], args: Sequence[Any]) -> str:
    """Build the cache key for one call.

    Args:
        name: Stable identifier of the cached function.
        key_parts: Extra caller-supplied discriminators (e.g. a schema version).
        args: Positional call arguments.

    Returns:
        Opaque key string; equal for structurally equal arguments.

    Raises:
        ValueError: Empty name or non-string key part.
        TypeError: An argument has no canonical encoding.
    """
    _validate_name(name)
    _validate_key_parts(key_parts)
    return canonical([name, list(key_parts), tuple(args)]).decode("utf-8")


__all__ = ("derive_key",)
