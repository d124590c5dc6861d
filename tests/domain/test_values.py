"""Tests for the parsed value tree."""

from datetime import timedelta

import pytest

from supervisectl.domain.errors import SourceLocation
from supervisectl.domain.values import (
    ArrayValue,
    LiteralKind,
    LiteralValue,
    MappingValue,
    block,
    lit,
)


class TestLiteralValue:
    @pytest.mark.parametrize(
        "value,kind",
        [
            (True, LiteralKind.BOOL),
            (3, LiteralKind.INT),
            (2.5, LiteralKind.DOUBLE),
            ("x", LiteralKind.STRING),
            (timedelta(seconds=5), LiteralKind.DURATION),
        ],
    )
    def test_lit_infers_kind(self, value: object, kind: LiteralKind) -> None:
        assert lit(value).kind is kind

    def test_bool_is_not_an_int_literal(self) -> None:
        with pytest.raises(TypeError):
            LiteralValue(LiteralKind.INT, True)

    def test_value_must_match_kind(self) -> None:
        with pytest.raises(TypeError):
            LiteralValue(LiteralKind.DURATION, "10s")

    def test_lit_rejects_unsupported_type(self) -> None:
        with pytest.raises(TypeError):
            lit(object())

    def test_location_is_kept(self) -> None:
        loc = SourceLocation(line=4, column=9)
        assert lit(1, location=loc).location == loc
        assert str(loc) == "4:9"


class TestContainers:
    def test_array_items_become_tuple(self) -> None:
        arr = ArrayValue([lit(1), lit(2)])  # type: ignore[arg-type]
        assert isinstance(arr.items, tuple)
        assert arr.shape() == "array"

    def test_mapping_is_read_only(self) -> None:
        m = MappingValue({"a": lit(1)})
        with pytest.raises(TypeError):
            m.fields["b"] = lit(2)  # type: ignore[index]

    def test_mapping_copies_input(self) -> None:
        source = {"a": lit(1)}
        m = MappingValue(source)
        source["b"] = lit(2)
        assert set(m.fields) == {"a"}

    def test_block_dashes_keyword_names(self) -> None:
        m = block("cluster", node_name=lit("alpha"))
        assert m.name == "cluster"
        assert set(m.fields) == {"node-name"}

    def test_shape(self) -> None:
        assert block("retries").shape() == "directive 'retries'"
        assert block().shape() == "mapping"
        assert lit(1).shape() == "int"
