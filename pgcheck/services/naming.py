from __future__ import annotations
import itertools
import secrets
from typing import Callable, Collection

import structlog

from pgcheck.config import settings
from pgcheck.errors import DuplicateConstraintName, InvalidConstraintName

log = structlog.get_logger()

SuffixSource = Callable[[], int]


def random_suffixes(low: int | None = None, high: int | None = None) -> SuffixSource:
    """Uniform suffixes in [low, high]; 7 to 9 digits with the default settings."""
    lo = settings.anon_suffix_min if low is None else low
    hi = settings.anon_suffix_max if high is None else high
    return lambda: lo + secrets.randbelow(hi - lo + 1)


def sequential_suffixes(start: int = 1000000) -> SuffixSource:
    """Deterministic source for tests: start, start + 1, ..."""
    counter = itertools.count(start)
    return lambda: next(counter)


def validate_name(table: str, name: str, existing_names: Collection[str]) -> str:
    if not name:
        raise InvalidConstraintName(table, name, "name must not be empty")
    if len(name) > settings.max_identifier_length:
        raise InvalidConstraintName(
            table, name, f"name longer than {settings.max_identifier_length} characters"
        )
    if name in existing_names:
        raise DuplicateConstraintName(table, name)
    return name


def resolve_name(
    table: str,
    explicit_name: str | None,
    existing_names: Collection[str],
    suffix_source: SuffixSource | None = None,
) -> str:
    """
    Return the constraint name to use on `table`.

    An explicit name is validated against `existing_names`. Without one, an
    anonymous `<table>_<digits>` name is generated, retrying on collision.
    """
    if explicit_name is not None:
        return validate_name(table, explicit_name, existing_names)

    source = suffix_source or random_suffixes()
    for attempt in range(1, settings.anon_name_attempts + 1):
        candidate = f"{table}_{source()}"
        if candidate not in existing_names:
            log.debug("check_constraint.anonymous_name", table=table, name=candidate, attempt=attempt)
            return candidate
    raise DuplicateConstraintName(
        table, f"{table}_*", f"no free anonymous name after {settings.anon_name_attempts} attempts"
    )
