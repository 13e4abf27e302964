from __future__ import annotations
from typing import Protocol

import sqlalchemy as sa
from sqlalchemy.schema import AddConstraint, DropConstraint

from pgcheck.schemas.descriptor import CheckConstraint as CheckConstraintEntity, descriptor_from
from pgcheck.services.compiler import compile_descriptor
from pgcheck.services.naming import SuffixSource, resolve_name
from pgcheck.services.registry import CheckConstraintRegistry


class DDLExecutor(Protocol):
    def create_check_constraint(self, table: str, name: str, predicate: str) -> None: ...

    def drop_check_constraint(self, table: str, name: str) -> None: ...


def _sql_text(predicate: str) -> sa.TextClause:
    # text() treats ":word" as a bind parameter
    return sa.text(predicate.replace(":", r"\:"))


def _table_constraint(table: str, name: str, predicate: str | None = None) -> sa.CheckConstraint:
    t = sa.Table(table, sa.MetaData())
    ck = sa.CheckConstraint(_sql_text(predicate or "true"), name=name)
    t.append_constraint(ck)
    return ck


class AlembicDDL:
    """Emit through Alembic operations; works online and with --sql."""

    def __init__(self, operations):
        self.operations = operations

    def create_check_constraint(self, table: str, name: str, predicate: str) -> None:
        self.operations.create_check_constraint(name, table, _sql_text(predicate))

    def drop_check_constraint(self, table: str, name: str) -> None:
        self.operations.drop_constraint(name, table, type_="check")


class ConnectionDDL:
    """Execute on a live SQLAlchemy connection."""

    def __init__(self, connection):
        self.connection = connection

    def create_check_constraint(self, table: str, name: str, predicate: str) -> None:
        self.connection.execute(AddConstraint(_table_constraint(table, name, predicate)))

    def drop_check_constraint(self, table: str, name: str) -> None:
        self.connection.execute(DropConstraint(_table_constraint(table, name)))


class SQLCollector:
    """Compile statements to SQL strings instead of executing them."""

    def __init__(self, dialect_name: str = "postgresql"):
        from sqlalchemy.dialects import registry
        self.dialect = registry.load(dialect_name)()
        self.statements: list[str] = []

    def _compile(self, ddl) -> str:
        return str(ddl.compile(dialect=self.dialect)).strip()

    def create_check_constraint(self, table: str, name: str, predicate: str) -> None:
        self.statements.append(self._compile(AddConstraint(_table_constraint(table, name, predicate))))

    def drop_check_constraint(self, table: str, name: str) -> None:
        self.statements.append(self._compile(DropConstraint(_table_constraint(table, name))))


def check_constraint(
    table: str,
    descriptor,
    name: str | None = None,
    registry: CheckConstraintRegistry | None = None,
    suffix_source: SuffixSource | None = None,
) -> sa.CheckConstraint:
    """
    Table-definition form, for use inside `op.create_table(...)` or `sa.Table(...)`.

    The name is resolved like any other add; with a registry the constraint is
    also recorded there.
    """
    descriptor = descriptor_from(descriptor)
    predicate = compile_descriptor(descriptor)
    existing = registry.names(table) if registry is not None else set()
    resolved = resolve_name(table, name, existing, suffix_source)
    if registry is not None:
        registry.add(CheckConstraintEntity(
            name=resolved, table=table, predicate=predicate, source_descriptor=descriptor,
        ))
    return sa.CheckConstraint(_sql_text(predicate), name=resolved)
