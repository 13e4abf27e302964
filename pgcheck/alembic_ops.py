"""
Alembic operations for structured check constraints.

Importing this module (e.g. from env.py) registers:

    op.add_check_constraint("prices", {"price": [10, 20, 30]}, name="test_constraint")
    op.remove_check_constraint("prices", "test_constraint", {"price": [10, 20, 30]})

Alembic only calls `reverse()` during autogenerate. A hand-written downgrade
replays the inverse explicitly, which raises IrreversibleMigration for a
remove declared without its constraint:

    def downgrade():
        op.invoke(RemoveCheckConstraintOp("prices", "test_constraint", "price > 0").reverse())

env.py should also call `pgcheck.logging_setup.configure_logging()` so the
check_constraint.* events are rendered like the rest of the application logs.
"""
from __future__ import annotations
import sqlalchemy as sa
from alembic.operations import MigrateOperation, Operations

from pgcheck.ddl import AlembicDDL
from pgcheck.services.operations import AddCheckConstraint, RemoveCheckConstraint
from pgcheck.services.registry import CheckConstraintRegistry

REGISTRY_KEY = "pgcheck_registry"


def registry_for(operations) -> CheckConstraintRegistry:
    """Per-run registry kept in the migration context; seeded from the database when online."""
    ctx = operations.migration_context
    registry = ctx.opts.get(REGISTRY_KEY)
    if registry is None:
        if ctx.as_sql or operations.get_bind() is None:
            registry = CheckConstraintRegistry()
        else:
            registry = CheckConstraintRegistry.from_inspector(sa.inspect(operations.get_bind()))
        ctx.opts[REGISTRY_KEY] = registry
    return registry


@Operations.register_operation("add_check_constraint")
class AddCheckConstraintOp(MigrateOperation):
    def __init__(self, table_name: str, constraint, name: str | None = None):
        self.command = AddCheckConstraint(table_name, constraint, name=name)

    @classmethod
    def add_check_constraint(cls, operations, table_name: str, constraint, name: str | None = None):
        """Add a CHECK constraint from a string, a column->values mapping or a list of those."""
        return operations.invoke(cls(table_name, constraint, name=name))

    def reverse(self) -> "RemoveCheckConstraintOp":
        inverse = self.command.inverse()
        return RemoveCheckConstraintOp(inverse.table, inverse.name, inverse.descriptor)


@Operations.register_operation("remove_check_constraint")
class RemoveCheckConstraintOp(MigrateOperation):
    def __init__(self, table_name: str, name: str, constraint=None):
        self.command = RemoveCheckConstraint(table_name, name, constraint)

    @classmethod
    def remove_check_constraint(cls, operations, table_name: str, name: str, constraint=None):
        """Drop a CHECK constraint; pass the constraint to keep the step reversible."""
        return operations.invoke(cls(table_name, name, constraint))

    def reverse(self) -> AddCheckConstraintOp:
        inverse = self.command.inverse()
        return AddCheckConstraintOp(inverse.table, inverse.descriptor, name=inverse.name)


@Operations.implementation_for(AddCheckConstraintOp)
def add_check_constraint(operations, operation):
    return operation.command.apply(registry_for(operations), AlembicDDL(operations))


@Operations.implementation_for(RemoveCheckConstraintOp)
def remove_check_constraint(operations, operation):
    return operation.command.apply(registry_for(operations), AlembicDDL(operations))
