from __future__ import annotations
from typing import Literal

import structlog

from pgcheck.errors import InvalidOperationState, IrreversibleMigration
from pgcheck.schemas.descriptor import CheckConstraint, descriptor_from
from pgcheck.services.compiler import compile_descriptor
from pgcheck.services.naming import SuffixSource, resolve_name
from pgcheck.services.registry import CheckConstraintRegistry

log = structlog.get_logger()

OperationState = Literal["declared", "applied", "reversed", "reversal_failed"]


def _create(registry: CheckConstraintRegistry, ddl, table: str, name: str | None, descriptor,
            suffix_source: SuffixSource | None = None) -> CheckConstraint:
    """Compile, resolve the name, emit DDL, register. Nothing is emitted if the first two fail."""
    predicate = compile_descriptor(descriptor)
    resolved = resolve_name(table, name, registry.names(table), suffix_source)
    ddl.create_check_constraint(table, resolved, predicate)
    constraint = CheckConstraint(name=resolved, table=table, predicate=predicate, source_descriptor=descriptor)
    registry.add(constraint)
    return constraint


def _drop(registry: CheckConstraintRegistry, ddl, table: str, name: str) -> CheckConstraint | None:
    ddl.drop_check_constraint(table, name)
    return registry.discard(table, name)


class _Operation:
    state: OperationState

    def _require(self, *states: OperationState) -> None:
        if self.state not in states:
            raise InvalidOperationState(
                f"{type(self).__name__} on {self.table!r} is {self.state}, expected {' or '.join(states)}"
            )


class AddCheckConstraint(_Operation):
    """Add a check constraint; rolled back by dropping it by name."""

    def __init__(self, table: str, descriptor, name: str | None = None,
                 suffix_source: SuffixSource | None = None):
        self.table = table
        self.descriptor = descriptor_from(descriptor)
        self.name = name
        self.suffix_source = suffix_source
        self.constraint: CheckConstraint | None = None
        self.state: OperationState = "declared"

    @property
    def reversible(self) -> bool:
        return True

    def apply(self, registry: CheckConstraintRegistry, ddl) -> CheckConstraint:
        self._require("declared", "reversed")
        # re-applying after a rollback keeps the name resolved the first time
        name = self.constraint.name if self.constraint is not None else self.name
        self.constraint = _create(registry, ddl, self.table, name, self.descriptor, self.suffix_source)
        self.state = "applied"
        log.info("check_constraint.added", table=self.table, name=self.constraint.name,
                 predicate=self.constraint.predicate)
        return self.constraint

    def inverse(self) -> "RemoveCheckConstraint":
        if self.constraint is None and self.name is None:
            raise InvalidOperationState("anonymous constraint has no name until the add is applied")
        name = self.constraint.name if self.constraint is not None else self.name
        return RemoveCheckConstraint(self.table, name, self.descriptor)

    def reverse(self, registry: CheckConstraintRegistry, ddl) -> None:
        self._require("applied")
        _drop(registry, ddl, self.table, self.constraint.name)
        self.state = "reversed"
        log.info("check_constraint.reversed", table=self.table, name=self.constraint.name, operation="add")


class RemoveCheckConstraint(_Operation):
    """
    Remove a check constraint by name.

    Rolling back re-creates it from `descriptor`. Without a descriptor the
    rollback raises IrreversibleMigration and the operation ends in
    `reversal_failed`.
    """

    def __init__(self, table: str, name: str, descriptor=None):
        self.table = table
        self.name = name
        self.descriptor = descriptor_from(descriptor) if descriptor is not None else None
        self.removed: CheckConstraint | None = None
        self.restored: CheckConstraint | None = None
        self.state: OperationState = "declared"

    @property
    def reversible(self) -> bool:
        return self.descriptor is not None

    def apply(self, registry: CheckConstraintRegistry, ddl) -> CheckConstraint | None:
        self._require("declared", "reversed")
        if self.descriptor is not None:
            compile_descriptor(self.descriptor)
        self.removed = _drop(registry, ddl, self.table, self.name)
        self.state = "applied"
        log.info("check_constraint.removed", table=self.table, name=self.name, reversible=self.reversible)
        return self.removed

    def irreversible_error(self) -> IrreversibleMigration:
        example = self.removed.predicate if self.removed is not None else None
        return IrreversibleMigration(self.table, self.name, example)

    def inverse(self) -> AddCheckConstraint:
        if self.descriptor is None:
            raise self.irreversible_error()
        return AddCheckConstraint(self.table, self.descriptor, name=self.name)

    def reverse(self, registry: CheckConstraintRegistry, ddl) -> CheckConstraint:
        if self.state == "reversal_failed":
            raise self.irreversible_error()
        self._require("applied")
        if self.descriptor is None:
            self.state = "reversal_failed"
            err = self.irreversible_error()
            log.warning("check_constraint.irreversible", table=self.table, name=self.name)
            raise err
        self.restored = _create(registry, ddl, self.table, self.name, self.descriptor)
        self.state = "reversed"
        log.info("check_constraint.reversed", table=self.table, name=self.name, operation="remove",
                 predicate=self.restored.predicate)
        return self.restored


class Migration:
    """
    Ordered check-constraint operations of one migration.

    upgrade() applies them in declaration order, including ones rolled back
    earlier; downgrade() reverses the applied ones newest first and stops at
    the first irreversible step.
    """

    def __init__(self, name: str = "migration", suffix_source: SuffixSource | None = None):
        self.name = name
        self.suffix_source = suffix_source
        self.operations: list[AddCheckConstraint | RemoveCheckConstraint] = []

    def add_check_constraint(self, table: str, descriptor, name: str | None = None) -> AddCheckConstraint:
        op = AddCheckConstraint(table, descriptor, name=name, suffix_source=self.suffix_source)
        self.operations.append(op)
        return op

    def remove_check_constraint(self, table: str, name: str, descriptor=None) -> RemoveCheckConstraint:
        op = RemoveCheckConstraint(table, name, descriptor)
        self.operations.append(op)
        return op

    @property
    def reversible(self) -> bool:
        return all(op.reversible for op in self.operations)

    def upgrade(self, registry: CheckConstraintRegistry, ddl) -> None:
        structlog.contextvars.bind_contextvars(migration=self.name)
        try:
            for op in self.operations:
                if op.state in ("declared", "reversed"):
                    op.apply(registry, ddl)
        finally:
            structlog.contextvars.unbind_contextvars("migration")

    def downgrade(self, registry: CheckConstraintRegistry, ddl) -> None:
        structlog.contextvars.bind_contextvars(migration=self.name)
        try:
            for op in reversed(self.operations):
                if op.state in ("applied", "reversal_failed"):
                    op.reverse(registry, ddl)
        finally:
            structlog.contextvars.unbind_contextvars("migration")
