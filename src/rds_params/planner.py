"""Chunk planner: splits settings into bounded-size groups for ModifyDBParameterGroup.

The planning pipeline:
1. Validate the chunk size and reject duplicate setting names
2. Collect coupled groups with two or more members present, members sorted by name
3. Emit coupled groups first, merging whole groups while they fit
4. Pack the remaining free settings in input order

A coupled group larger than the chunk size is never split; it is emitted on
its own with ``oversized=True`` so the caller can decide whether to submit it.
Apply timing plays no part in packing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rds_params.coupling import CouplingTable, build_default_coupling_table
from rds_params.errors import InvalidConfigurationError
from rds_params.models import Chunk

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from rds_params.types import Setting

logger = logging.getLogger("rds_params.planner")

# ModifyDBParameterGroup and ResetDBParameterGroup accept at most 20 parameters per call.
MAX_PARAMS_PER_CHUNK = 20


def plan_chunks(
    settings: Iterable[Setting],
    max_chunk_size: int = MAX_PARAMS_PER_CHUNK,
    *,
    coupling: CouplingTable | None = None,
) -> Iterator[Chunk]:
    """Plan the chunks for one submission pass.

    Validation happens eagerly so a bad chunk size fails at the call site;
    the chunks themselves are produced lazily.
    """
    if max_chunk_size <= 0:
        raise InvalidConfigurationError(f"max_chunk_size must be positive, got {max_chunk_size}")

    ordered = list(settings)
    _check_unique(ordered)

    table = coupling if coupling is not None else build_default_coupling_table()
    coupled_groups, free = _partition(ordered, table)
    logger.debug(
        "Planning %d settings: %d coupled group(s), %d free, max %d per chunk",
        len(ordered),
        len(coupled_groups),
        len(free),
        max_chunk_size,
    )
    return _iter_chunks(coupled_groups, free, max_chunk_size)


def _check_unique(settings: list[Setting]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for s in settings:
        if s.key in seen:
            duplicates.append(s.name)
        seen.add(s.key)
    if duplicates:
        raise InvalidConfigurationError(f"Duplicate setting name(s): {', '.join(duplicates)}")


def _partition(
    settings: list[Setting],
    table: CouplingTable,
) -> tuple[list[list[Setting]], list[Setting]]:
    """Split settings into coupled groups and free settings.

    A group binds only when at least two of its members are present; a lone
    member stays free and keeps its input position.
    """
    present: dict[str, list[Setting]] = {}
    for s in settings:
        group = table.group_for(s.name)
        if group is not None:
            present.setdefault(group.name, []).append(s)

    coupled_groups = [
        sorted(members, key=lambda s: s.key) for members in present.values() if len(members) > 1
    ]
    coupled_groups.sort(key=lambda members: members[0].key)

    coupled_keys = {s.key for members in coupled_groups for s in members}
    free = [s for s in settings if s.key not in coupled_keys]
    return coupled_groups, free


def _iter_chunks(
    coupled_groups: list[list[Setting]],
    free: list[Setting],
    max_chunk_size: int,
) -> Iterator[Chunk]:
    pending: list[Setting] = []

    for members in coupled_groups:
        if len(members) > max_chunk_size:
            if pending:
                yield Chunk(settings=pending, coupled=True)
                pending = []
            logger.warning(
                "Coupled group %s has %d members, above the chunk size of %d; "
                "submitting it whole",
                [s.name for s in members],
                len(members),
                max_chunk_size,
            )
            yield Chunk(settings=members, coupled=True, oversized=True)
            continue

        if len(pending) + len(members) > max_chunk_size:
            yield Chunk(settings=pending, coupled=True)
            pending = []
        pending.extend(members)

    if pending:
        yield Chunk(settings=pending, coupled=True)

    for start in range(0, len(free), max_chunk_size):
        yield Chunk(settings=free[start : start + max_chunk_size])
