"""
Tagged JSON codec.

Plain JSON loses types: datetimes become strings, tuples become lists,
sets and non-finite floats are not representable at all. Values are walked
into a tagged tree first, then written with orjson:

    {"__qc__": "datetime", "v": "2024-01-01T00:00:00+00:00"}

Used for two things:
    - canonical bytes of call arguments (key derivation)
    - the on-disk body of a cache entry
"""

from __future__ import annotations

import base64
import math
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

import orjson

from quickcache._types import CacheEntry

MARKER = "__qc__"

_CANONICAL = orjson.OPT_SORT_KEYS

# orjson only writes integers that fit in 64 bits.
_INT_MIN, _INT_MAX = -(2**63), 2**63 - 1


# ═══════════════════════════════════════════════════════════════════════════════
# Tagging
# ═══════════════════════════════════════════════════════════════════════════════


def _node(tag: str, payload: Any) -> dict[str, Any]:
    return {MARKER: tag, "v": payload}


def _sort_key(tagged: Any) -> bytes:
    return orjson.dumps(tagged, option=_CANONICAL)


def to_tagged(value: Any) -> Any:
    """
    Convert a value into a JSON-safe tagged tree.

    Set members and non-string mapping keys are ordered by their encoded
    form, so equal values always produce equal bytes.

    Raises:
        TypeError: value (or a nested value) has no tagged representation.
    """
    match value:
        case None | bool() | str():
            return value
        case int():
            if _INT_MIN <= value <= _INT_MAX:
                return value
            return _node("int", str(value))
        case float():
            if math.isfinite(value):
                return value
            return _node("float", repr(value))
        case datetime():
            return _node("datetime", value.isoformat())
        case date():
            return _node("date", value.isoformat())
        case time():
            return _node("time", value.isoformat())
        case timedelta():
            return _node("timedelta", [value.days, value.seconds, value.microseconds])
        case Decimal():
            return _node("decimal", str(value))
        case UUID():
            return _node("uuid", str(value))
        case bytes():
            return _node("bytes", base64.b64encode(value).decode("ascii"))
        case tuple():
            return _node("tuple", [to_tagged(v) for v in value])
        case list():
            return [to_tagged(v) for v in value]
        case frozenset():
            return _node("frozenset", sorted((to_tagged(v) for v in value), key=_sort_key))
        case set():
            return _node("set", sorted((to_tagged(v) for v in value), key=_sort_key))
        case dict():
            if MARKER not in value and all(isinstance(k, str) for k in value):
                return {k: to_tagged(v) for k, v in value.items()}
            pairs = [[to_tagged(k), to_tagged(v)] for k, v in value.items()]
            return _node("map", sorted(pairs, key=lambda p: _sort_key(p[0])))
        case _:
            raise TypeError(f"Cannot encode value of type {type(value).__name__}")


_DECODERS: dict[str, Any] = {
    "int": int,
    "float": float,
    "datetime": datetime.fromisoformat,
    "date": date.fromisoformat,
    "time": time.fromisoformat,
    "timedelta": lambda v: timedelta(days=v[0], seconds=v[1], microseconds=v[2]),
    "decimal": Decimal,
    "uuid": UUID,
    "bytes": lambda v: base64.b64decode(v.encode("ascii")),
}


def from_tagged(tree: Any) -> Any:
    """
    Inverse of to_tagged.

    Raises:
        ValueError: unknown tag or malformed node.
    """
    if isinstance(tree, list):
        return [from_tagged(v) for v in tree]
    if not isinstance(tree, dict):
        return tree
    if MARKER not in tree:
        return {k: from_tagged(v) for k, v in tree.items()}

    tag = tree[MARKER]
    payload = tree.get("v")
    match tag:
        case "tuple":
            return tuple(from_tagged(v) for v in payload)
        case "set":
            return {from_tagged(v) for v in payload}
        case "frozenset":
            return frozenset(from_tagged(v) for v in payload)
        case "map":
            return {from_tagged(k): from_tagged(v) for k, v in payload}
        case _ if tag in _DECODERS:
            return _DECODERS[tag](payload)
        case _:
            raise ValueError(f"Unknown tag: {tag!r}")


# ═══════════════════════════════════════════════════════════════════════════════
# Public Codec
# ═══════════════════════════════════════════════════════════════════════════════


def canonical(value: Any) -> bytes:
    """Deterministic bytes for structurally equal values."""
    return orjson.dumps(to_tagged(value), option=_CANONICAL)


def encode_entry(entry: CacheEntry[Any]) -> bytes:
    """Serialize a full entry (data, expiry, revalidate, tags)."""
    return orjson.dumps(
        {
            "data": to_tagged(entry.data),
            "expiry": to_tagged(entry.expiry),
            "revalidate": entry.revalidate,
            "tags": sorted(entry.tags),
        }
    )


def decode_entry(raw: bytes) -> CacheEntry[Any]:
    """
    Parse an entry written by encode_entry.

    Raises:
        ValueError: any malformed body, including payloads that a
            decoder rejects with another exception type.
    """
    doc = orjson.loads(raw)
    if not isinstance(doc, dict) or "data" not in doc or "expiry" not in doc:
        raise ValueError("Not a cache entry document")

    try:
        revalidate = doc.get("revalidate")
        return CacheEntry(
            data=from_tagged(doc["data"]),
            expiry=float(from_tagged(doc["expiry"])),
            revalidate=None if revalidate is None else float(revalidate),
            tags=frozenset(doc.get("tags") or ()),
        )
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Malformed cache entry: {e!r}") from e


__all__ = (
    "MARKER",
    "to_tagged",
    "from_tagged",
    "canonical",
    "encode_entry",
    "decode_entry",
)
