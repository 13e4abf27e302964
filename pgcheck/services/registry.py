from __future__ import annotations
from typing import Iterable

import sqlalchemy as sa

from pgcheck.errors import DuplicateConstraintName
from pgcheck.schemas.descriptor import CheckConstraint


class CheckConstraintRegistry:
    """Live check constraints per table, keyed by name."""

    def __init__(self, constraints: Iterable[CheckConstraint] = ()):
        self._tables: dict[str, dict[str, CheckConstraint]] = {}
        for c in constraints:
            self.add(c)

    @classmethod
    def from_inspector(cls, inspector, tables: Iterable[str] | None = None) -> "CheckConstraintRegistry":
        """Seed from a SQLAlchemy Inspector, e.g. `sa.inspect(connection)`."""
        registry = cls()
        for table in (tables if tables is not None else inspector.get_table_names()):
            for row in inspector.get_check_constraints(table):
                if not row.get("name"):
                    continue
                registry.add(CheckConstraint(name=row["name"], table=table, predicate=row["sqltext"]))
        return registry

    @classmethod
    def from_connection(cls, connection, tables: Iterable[str] | None = None) -> "CheckConstraintRegistry":
        return cls.from_inspector(sa.inspect(connection), tables)

    def names(self, table: str) -> set[str]:
        return set(self._tables.get(table, {}))

    def get(self, table: str, name: str) -> CheckConstraint | None:
        return self._tables.get(table, {}).get(name)

    def add(self, constraint: CheckConstraint) -> None:
        by_name = self._tables.setdefault(constraint.table, {})
        if constraint.name in by_name:
            raise DuplicateConstraintName(constraint.table, constraint.name)
        by_name[constraint.name] = constraint

    def discard(self, table: str, name: str) -> CheckConstraint | None:
        by_name = self._tables.get(table)
        if not by_name:
            return None
        removed = by_name.pop(name, None)
        if not by_name:
            del self._tables[table]
        return removed

    def constraints(self, table: str) -> list[CheckConstraint]:
        return sorted(self._tables.get(table, {}).values(), key=lambda c: c.name)

    def tables(self) -> list[str]:
        return sorted(self._tables)

    def __contains__(self, key: tuple[str, str]) -> bool:
        table, name = key
        return name in self._tables.get(table, {})

    def __len__(self) -> int:
        return sum(len(v) for v in self._tables.values())
