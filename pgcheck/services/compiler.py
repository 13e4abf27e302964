from __future__ import annotations
from decimal import Decimal

from pgcheck.errors import MalformedDescriptor
from pgcheck.schemas.descriptor import ColumnInSet, Conjunction, Raw

# Canonical SQL predicate text. Identical descriptors always give identical text,
# since snapshots are compared as text across runs.
CompiledPredicate = str


def compile_descriptor(descriptor) -> CompiledPredicate:
    """
    Compile a descriptor to the predicate text PostgreSQL reports back for it.

      Raw("price > 1000")                 -> (price > 1000)
      ColumnInSet("price", [10, 20])      -> (price = ANY (ARRAY[10, 20]))
      Conjunction([Raw(a), Raw(b)])       -> ((a) AND (b))

    Raw text is wrapped exactly once, even if it already carries parentheses.
    """
    if isinstance(descriptor, Raw):
        if not descriptor.text.strip():
            raise MalformedDescriptor("raw predicate text is empty")
        return f"({descriptor.text})"

    if isinstance(descriptor, ColumnInSet):
        if not descriptor.values:
            raise MalformedDescriptor(f"value set for column {descriptor.column!r} is empty")
        values = ", ".join(render_literal(v) for v in descriptor.values)
        return f"({descriptor.column} = ANY (ARRAY[{values}]))"

    if isinstance(descriptor, Conjunction):
        if not descriptor.parts:
            raise MalformedDescriptor("conjunction needs at least one part")
        return "(" + " AND ".join(compile_descriptor(p) for p in descriptor.parts) + ")"

    raise MalformedDescriptor(f"unsupported constraint descriptor: {type(descriptor).__name__}")


def render_literal(value) -> str:
    """SQL literal for a scalar in a value set."""
    # bool first: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise MalformedDescriptor(f"non-finite number in value set: {value!r}")
        return str(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise MalformedDescriptor(f"non-finite number in value set: {value!r}")
        return repr(value)
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    raise MalformedDescriptor(f"unsupported value in set: {value!r}")
