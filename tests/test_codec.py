"""Tests for the tagged codec (rich values, determinism, entry documents)."""

import math
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import orjson
import pytest

from quickcache import CacheEntry
from quickcache._codec import (
    MARKER,
    canonical,
    decode_entry,
    encode_entry,
    from_tagged,
    to_tagged,
)


class TestTaggedValues:
    """Values plain JSON cannot carry survive the tagged tree."""

    def test_rich_document(self) -> None:
        value = {
            "when": datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
            "day": date(2024, 5, 1),
            "at": time(8, 15),
            "ttl": timedelta(days=1, microseconds=5),
            "price": Decimal("19.99"),
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "blob": b"\x00\x01",
            "point": (1, 2),
            "labels": {"b", "a"},
            "frozen": frozenset({3}),
            "by_id": {1: "one", (2, 3): "pair"},
            "limits": [math.inf, -math.inf],
            "nothing": None,
        }
        tree = orjson.loads(orjson.dumps(to_tagged(value)))
        assert from_tagged(tree) == value

    def test_integers_beyond_64_bits(self) -> None:
        value = [2**64, -(2**63) - 1, 2**63 - 1, 10**40]
        tree = orjson.loads(orjson.dumps(to_tagged(value)))
        assert from_tagged(tree) == value
        assert to_tagged(2**63 - 1) == 2**63 - 1

    def test_nan_round_trips(self) -> None:
        out = from_tagged(orjson.loads(orjson.dumps(to_tagged(float("nan")))))
        assert math.isnan(out)

    def test_plain_json_is_untouched(self) -> None:
        value = {"a": [1, 2.5, "x", True, None]}
        assert to_tagged(value) == value

    def test_mapping_using_marker_key(self) -> None:
        value = {MARKER: "not a tag", "v": 1}
        tree = to_tagged(value)
        assert tree[MARKER] == "map"
        assert from_tagged(orjson.loads(orjson.dumps(tree))) == value

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            to_tagged({"handle": object()})

    def test_unknown_tag(self) -> None:
        with pytest.raises(ValueError):
            from_tagged({MARKER: "martian", "v": 1})


class TestCanonical:
    """Structurally equal values encode to identical bytes."""

    def test_mapping_order_ignored(self) -> None:
        assert canonical({"a": 1, "b": 2}) == canonical({"b": 2, "a": 1})

    def test_set_order_ignored(self) -> None:
        assert canonical({"z", "a", "m"}) == canonical({"m", "z", "a"})

    def test_non_string_keys_order_ignored(self) -> None:
        assert canonical({2: "b", 1: "a"}) == canonical({1: "a", 2: "b"})

    def test_tuple_and_list_differ(self) -> None:
        assert canonical((1, 2)) != canonical([1, 2])

    def test_int_and_string_differ(self) -> None:
        assert canonical([1]) != canonical(["1"])


class TestEntryDocument:
    """encode_entry / decode_entry keep every entry field."""

    def test_round_trip(self) -> None:
        entry = CacheEntry(
            data={"rows": (1, 2)},
            expiry=1_700_000_060.5,
            revalidate=60.0,
            tags=frozenset({"users", "reports"}),
        )
        assert decode_entry(encode_entry(entry)) == entry

    def test_never_expires(self) -> None:
        entry = CacheEntry.fresh("x", None)
        decoded = decode_entry(encode_entry(entry))
        assert decoded.expiry == math.inf
        assert decoded.revalidate is None
        assert decoded.tags == frozenset()

    def test_rejects_non_entry(self) -> None:
        with pytest.raises(ValueError):
            decode_entry(b'{"hello": "world"}')

    def test_big_int_data_round_trips(self) -> None:
        entry = CacheEntry.fresh({"balance": 10**30}, 60, now=0.0)
        assert decode_entry(encode_entry(entry)) == entry

    def test_decoder_errors_become_value_errors(self) -> None:
        with pytest.raises(ValueError):
            decode_entry(b'{"data": {"__qc__": "decimal", "v": "abc"}, "expiry": 0}')
        with pytest.raises(ValueError):
            decode_entry(b'{"data": {"__qc__": "bytes", "v": 5}, "expiry": 0}')
