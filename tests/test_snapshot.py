from __future__ import annotations
import pytest

from pgcheck.schemas.descriptor import CheckConstraint
from pgcheck.services.operations import Migration
from pgcheck.services.registry import CheckConstraintRegistry
from pgcheck.services.snapshot import render_fragment, render_snapshot
from pgcheck.ddl import SQLCollector
from pgcheck.errors import DuplicateConstraintName


def _ck(name, table="prices", predicate="(price > 0)"):
    return CheckConstraint(name=name, table=table, predicate=predicate)


def test_fragment_line_format():
    assert render_fragment("prices", [_ck("a")]) == "a: (price > 0)"


def test_fragment_is_sorted_by_name_regardless_of_add_order():
    a, b = _ck("a", predicate="(price > 1)"), _ck("b", predicate="(price < 9)")
    assert render_fragment("prices", [b, a]) == render_fragment("prices", [a, b])
    assert render_fragment("prices", [b, a]) == "a: (price > 1)\nb: (price < 9)"


def test_registry_order_does_not_leak_into_snapshot():
    r1 = CheckConstraintRegistry([_ck("b"), _ck("a")])
    r2 = CheckConstraintRegistry([_ck("a"), _ck("b")])
    assert render_snapshot(r1) == render_snapshot(r2)


def test_no_constraints_means_no_fragment():
    assert render_fragment("prices", []) is None
    assert render_snapshot(CheckConstraintRegistry()) == ""


def test_fragment_ignores_other_tables():
    assert render_fragment("prices", [_ck("x", table="orders")]) is None


def test_snapshot_blocks():
    registry = CheckConstraintRegistry([
        _ck("test_constraint", predicate="(price = ANY (ARRAY[10, 20, 30]))"),
        _ck("qty_positive", table="orders", predicate="(qty > 0)"),
    ])
    assert render_snapshot(registry) == (
        'table "orders"\n'
        "  qty_positive: (qty > 0)\n"
        "\n"
        'table "prices"\n'
        "  test_constraint: (price = ANY (ARRAY[10, 20, 30]))\n"
    )


def test_snapshot_after_all_constraints_removed():
    registry = CheckConstraintRegistry()
    ddl = SQLCollector()
    add = Migration("add")
    add.add_check_constraint("prices", "price > 1000", name="test_constraint")
    add.upgrade(registry, ddl)
    assert "test_constraint: (price > 1000)" in render_snapshot(registry)

    drop = Migration("drop")
    drop.remove_check_constraint("prices", "test_constraint", "price > 1000")
    drop.upgrade(registry, ddl)
    assert "test_constraint" not in render_snapshot(registry)
    assert registry.tables() == []


def test_end_to_end_prices_scenario():
    registry = CheckConstraintRegistry()
    m = Migration("create_prices")
    m.add_check_constraint("prices", {"price": [10, 20, 30]}, name="test_constraint")
    m.upgrade(registry, SQLCollector())
    assert "test_constraint: (price = ANY (ARRAY[10, 20, 30]))" in render_fragment(
        "prices", registry.constraints("prices")
    )


def test_registry_rejects_duplicate_names():
    registry = CheckConstraintRegistry([_ck("a")])
    with pytest.raises(DuplicateConstraintName):
        registry.add(_ck("a", predicate="(price > 5)"))
    # same name on another table is allowed
    registry.add(_ck("a", table="orders"))
    assert registry.tables() == ["orders", "prices"]


def test_registry_discard():
    registry = CheckConstraintRegistry([_ck("a"), _ck("b")])
    assert registry.discard("prices", "a").name == "a"
    assert registry.discard("prices", "a") is None
    assert registry.discard("nope", "a") is None
    assert registry.names("prices") == {"b"}


class FakeInspector:
    """Shape of sqlalchemy.engine.reflection.Inspector used by the registry."""

    def __init__(self, tables):
        self.tables = tables

    def get_table_names(self):
        return list(self.tables)

    def get_check_constraints(self, table):
        return self.tables[table]


def test_registry_from_inspector():
    inspector = FakeInspector({
        "prices": [
            {"name": "test_constraint", "sqltext": "(price = ANY (ARRAY[10, 20, 30]))"},
            {"name": None, "sqltext": "(price > 0)"},
        ],
        "orders": [],
    })
    registry = CheckConstraintRegistry.from_inspector(inspector)
    assert registry.tables() == ["prices"]
    c = registry.get("prices", "test_constraint")
    assert c.predicate == "(price = ANY (ARRAY[10, 20, 30]))"
    assert c.source_descriptor is None
    assert render_snapshot(registry, indent=0) == (
        'table "prices"\ntest_constraint: (price = ANY (ARRAY[10, 20, 30]))\n'
    )


def test_registry_from_inspector_limited_tables():
    inspector = FakeInspector({"prices": [{"name": "a", "sqltext": "(x)"}], "orders": [{"name": "b", "sqltext": "(y)"}]})
    registry = CheckConstraintRegistry.from_inspector(inspector, tables=["orders"])
    assert registry.tables() == ["orders"]
