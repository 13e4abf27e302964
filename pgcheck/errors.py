from __future__ import annotations


class CheckConstraintError(Exception):
    pass


class MalformedDescriptor(CheckConstraintError):
    """Empty conjunction, empty value set or an unsupported descriptor shape."""


class DuplicateConstraintName(CheckConstraintError):
    def __init__(self, table: str, name: str, reason: str = "already exists"):
        self.table = table
        self.name = name
        super().__init__(f"check constraint {name!r} on table {table!r}: {reason}")


class InvalidConstraintName(DuplicateConstraintName):
    """Explicit name is empty or longer than the database allows."""


class InvalidOperationState(CheckConstraintError):
    pass


PLACEHOLDER_EXPRESSION = "<check expression>"


class IrreversibleMigration(CheckConstraintError):
    """
    Raised when rolling back a remove that was declared without its expression.

    Carries the pieces of the corrective call so callers can render their own
    message; `message` gives the standard wording.
    """

    def __init__(self, table: str, name: str, example_expression: str | None = None):
        self.table = table
        self.name = name
        self.example_expression = example_expression or PLACEHOLDER_EXPRESSION
        super().__init__(self.message)

    @property
    def example_call(self) -> str:
        return f"remove_check_constraint({self.table!r}, {self.name!r}, {self.example_expression!r})"

    @property
    def message(self) -> str:
        return (
            "To make this migration reversible, pass the constraint to "
            f"remove_check_constraint, i.e. `{self.example_call}`"
        )
