from __future__ import annotations
from decimal import Decimal
import pytest

from pgcheck.errors import MalformedDescriptor
from pgcheck.schemas.descriptor import ColumnInSet, Conjunction, Raw, descriptor_from
from pgcheck.services.compiler import compile_descriptor, render_literal


def test_raw_is_wrapped_once():
    assert compile_descriptor(Raw(text="price > 1000")) == "(price > 1000)"


def test_raw_compound_keeps_its_own_parentheses():
    """Raw text is never normalized: already-parenthesized text gets a second pair"""
    assert compile_descriptor(Raw(text="(a > 1) OR (b < 2)")) == "((a > 1) OR (b < 2))"


def test_column_in_set():
    d = ColumnInSet(column="price", values=[10, 20, 30])
    assert compile_descriptor(d) == "(price = ANY (ARRAY[10, 20, 30]))"


def test_conjunction():
    d = Conjunction(parts=[Raw(text="price > 50"), ColumnInSet(column="price", values=[90, 100])])
    assert compile_descriptor(d) == "((price > 50) AND (price = ANY (ARRAY[90, 100])))"


def test_single_part_conjunction_still_wrapped():
    assert compile_descriptor(Conjunction(parts=[Raw(text="x")])) == "((x))"


def test_nested_conjunction():
    d = descriptor_from([["a > 1", "b > 2"], {"c": ["x"]}])
    assert compile_descriptor(d) == "(((a > 1) AND (b > 2)) AND (c = ANY (ARRAY['x'])))"


def test_compile_is_deterministic():
    d = descriptor_from(["price > 50", {"price": [90, 100], "kind": ["a", "b"]}])
    assert compile_descriptor(d) == compile_descriptor(d)
    # a structurally equal descriptor built separately gives the same bytes
    assert compile_descriptor(d) == compile_descriptor(descriptor_from(["price > 50", {"price": [90, 100], "kind": ["a", "b"]}]))


def test_empty_conjunction_is_malformed():
    with pytest.raises(MalformedDescriptor):
        compile_descriptor(Conjunction(parts=[]))


def test_empty_value_set_is_malformed():
    with pytest.raises(MalformedDescriptor):
        compile_descriptor(ColumnInSet(column="price", values=[]))


def test_empty_value_set_nested_in_conjunction_is_malformed():
    d = Conjunction(parts=[Raw(text="a > 1"), ColumnInSet(column="price", values=[])])
    with pytest.raises(MalformedDescriptor):
        compile_descriptor(d)


def test_unsupported_shape_is_malformed():
    with pytest.raises(MalformedDescriptor):
        compile_descriptor("price > 1000")


def test_blank_raw_is_malformed():
    with pytest.raises(MalformedDescriptor):
        compile_descriptor(Raw(text="   "))


@pytest.mark.parametrize("value,expected", [
    (10, "10"),
    (-3, "-3"),
    (1.5, "1.5"),
    (Decimal("9.99"), "9.99"),
    ("open", "'open'"),
    ("O'Brien", "'O''Brien'"),
    (True, "true"),
    (False, "false"),
])
def test_render_literal(value, expected):
    assert render_literal(value) == expected


def test_render_literal_rejects_non_finite():
    with pytest.raises(MalformedDescriptor):
        render_literal(float("nan"))


@pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity"), float("inf")])
def test_non_finite_literals_are_malformed(value):
    with pytest.raises(MalformedDescriptor):
        render_literal(value)


def test_string_values_are_quoted_in_set():
    d = ColumnInSet(column="status", values=["new", "it's done"])
    assert compile_descriptor(d) == "(status = ANY (ARRAY['new', 'it''s done']))"


def test_infinite_float_in_set_is_malformed():
    with pytest.raises(MalformedDescriptor):
        compile_descriptor(ColumnInSet(column="price", values=[float("inf")]))
