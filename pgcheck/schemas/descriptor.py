from __future__ import annotations
from decimal import Decimal
from typing import Annotated, Any, List, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from pgcheck.errors import MalformedDescriptor

Scalar = Union[bool, int, float, Decimal, str]


class Raw(BaseModel):
    """Trusted SQL predicate fragment, used verbatim."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["raw"] = "raw"
    text: str


class ColumnInSet(BaseModel):
    """`column` equals one of `values`."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["in_set"] = "in_set"
    column: str
    values: List[Scalar]


class Conjunction(BaseModel):
    """All parts must hold; order is kept for deterministic output."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["and"] = "and"
    parts: List["ConstraintDescriptor"]


ConstraintDescriptor = Annotated[Union[Raw, ColumnInSet, Conjunction], Field(discriminator="kind")]

Conjunction.model_rebuild()

_descriptor_adapter: TypeAdapter = TypeAdapter(ConstraintDescriptor)

DESCRIPTOR_TYPES = (Raw, ColumnInSet, Conjunction)


def parse_descriptor(data: Any) -> Raw | ColumnInSet | Conjunction:
    """Validate a serialized descriptor, e.g. one loaded from JSON."""
    try:
        return _descriptor_adapter.validate_python(data)
    except ValidationError as exc:
        raise MalformedDescriptor(f"invalid serialized descriptor: {exc.error_count()} error(s)") from exc


def descriptor_from(value: Any) -> Raw | ColumnInSet | Conjunction:
    """
    Turn migration shorthand into a typed descriptor.

      "price > 1000"                    -> Raw
      {"price": [10, 20, 30]}           -> ColumnInSet
      ["price > 50", {"price": [90]}]   -> Conjunction

    A dict with several columns becomes a Conjunction of ColumnInSet in key order.
    """
    if isinstance(value, DESCRIPTOR_TYPES):
        return value
    if isinstance(value, str):
        return Raw(text=value)
    if isinstance(value, dict):
        if not value:
            raise MalformedDescriptor("column mapping must name at least one column")
        parts = [_column_in_set(column, values) for column, values in value.items()]
        return parts[0] if len(parts) == 1 else Conjunction(parts=parts)
    if isinstance(value, (list, tuple)):
        return Conjunction(parts=[descriptor_from(v) for v in value])
    raise MalformedDescriptor(f"unsupported constraint descriptor: {type(value).__name__}")


def _set_order(value: Any) -> tuple:
    return (type(value).__name__, value)


def _column_in_set(column: Any, values: Any) -> ColumnInSet:
    if not isinstance(column, str):
        raise MalformedDescriptor(f"column name must be a string, got {type(column).__name__}")
    if isinstance(values, (list, tuple, set, frozenset)):
        # sets have no stable order; mixed types group by type name
        try:
            values = sorted(values, key=_set_order) if isinstance(values, (set, frozenset)) else list(values)
        except (TypeError, ArithmeticError) as exc:
            raise MalformedDescriptor(f"value set for column {column!r} cannot be ordered") from exc
    else:
        values = [values]
    try:
        return ColumnInSet(column=column, values=values)
    except ValidationError as exc:
        raise MalformedDescriptor(f"unsupported value in set for column {column!r}") from exc


class CheckConstraint(BaseModel):
    """A check constraint attached to a table."""
    model_config = ConfigDict(frozen=True)

    name: str
    table: str
    predicate: str
    source_descriptor: ConstraintDescriptor | None = None
