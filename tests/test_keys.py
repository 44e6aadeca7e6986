"""Tests for derive_key (stability, separation, validation)."""

from datetime import date

import pytest

from quickcache import derive_key


class TestStability:
    """Structurally equal calls map to the same key."""

    def test_same_call_same_key(self) -> None:
        assert derive_key("users", ["v1"], (1, "a")) == derive_key("users", ["v1"], (1, "a"))

    def test_mapping_order_ignored(self) -> None:
        a = derive_key("search", [], ({"q": "x", "page": 2},))
        b = derive_key("search", [], ({"page": 2, "q": "x"},))
        assert a == b

    def test_integers_beyond_64_bits(self) -> None:
        assert derive_key("f", [], (2**64,)) == derive_key("f", [], (2**64,))
        assert derive_key("f", [], (2**64,)) != derive_key("f", [], (str(2**64),))

    def test_rich_arguments(self) -> None:
        a = derive_key("report", [], (date(2024, 1, 1), {"b", "a"}))
        b = derive_key("report", [], (date(2024, 1, 1), {"a", "b"}))
        assert a == b


class TestSeparation:
    """Different functions, parts or arguments never collide."""

    def test_name_separates_identical_arguments(self) -> None:
        assert derive_key("users", [], (1,)) != derive_key("orders", [], (1,))

    def test_key_parts_separate(self) -> None:
        assert derive_key("users", ["v1"], (1,)) != derive_key("users", ["v2"], (1,))

    def test_separator_inside_name(self) -> None:
        assert derive_key("a:b", [], ()) != derive_key("a", ["b"], ())

    def test_argument_types_separate(self) -> None:
        assert derive_key("f", [], (1,)) != derive_key("f", [], ("1",))

    def test_argument_count_separates(self) -> None:
        assert derive_key("f", [], ((1, 2),)) != derive_key("f", [], (1, 2))


class TestValidation:
    """Bad identities and arguments fail loudly."""

    @pytest.mark.parametrize("name", ["", None, 42])
    def test_bad_name(self, name) -> None:
        with pytest.raises(ValueError):
            derive_key(name, [], ())

    def test_non_string_key_part(self) -> None:
        with pytest.raises(ValueError):
            derive_key("f", [1], ())

    def test_unserializable_argument(self) -> None:
        with pytest.raises(TypeError):
            derive_key("f", [], (object(),))
