from __future__ import annotations
from typing import Iterable

from pgcheck.config import settings
from pgcheck.schemas.descriptor import CheckConstraint
from pgcheck.services.registry import CheckConstraintRegistry


def render_fragment(table: str, constraints: Iterable[CheckConstraint], indent: str = "") -> str | None:
    """
    Check-constraint lines for one table's snapshot block, `name: predicate`,
    sorted by name. None when the table has no check constraints.
    """
    rows = sorted((c for c in constraints if c.table == table), key=lambda c: c.name)
    if not rows:
        return None
    return "\n".join(f"{indent}{c.name}: {c.predicate}" for c in rows)


def render_snapshot(registry: CheckConstraintRegistry, indent: int | None = None) -> str:
    """One block per table with check constraints, tables sorted by name."""
    pad = " " * (settings.snapshot_indent if indent is None else indent)
    blocks = []
    for table in registry.tables():
        fragment = render_fragment(table, registry.constraints(table), indent=pad)
        if fragment is None:
            continue
        blocks.append(f'table "{table}"\n{fragment}')
    return "\n\n".join(blocks) + ("\n" if blocks else "")
