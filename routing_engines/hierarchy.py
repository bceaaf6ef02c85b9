"""
routing_engines.hierarchy -- Bounded walk up a unit's ancestor chain.

Responsibility:
    Yield a unit's ancestors from the immediate parent to the root, using a
    caller-supplied parent lookup, and stop safely on a corrupted graph.

Architecture position:
    Engines -- pure calculation layer.  The parent lookup is injected, so
    this module performs no I/O of its own.

Invariants enforced:
    - Parent order: ancestors are produced strictly nearest-first.
    - Termination: a visited-set stops at the first repeated unit and a
      depth cap stops after ``max_depth`` ancestors.  Either way the walk
      ends and ``termination`` records why.

Failure modes:
    - Cycle or over-deep chain -> walk ends early with
      ``WalkTermination.CYCLE`` / ``WalkTermination.DEPTH_LIMIT``.
      Never raises and never loops.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from enum import Enum
from uuid import UUID

from routing_kernel.domain.org import Unit

DEFAULT_MAX_ANCESTOR_DEPTH = 64


class WalkTermination(str, Enum):
    """How an ancestor walk ended."""

    NOT_FINISHED = "not_finished"
    ROOT = "root"
    CYCLE = "cycle"
    DEPTH_LIMIT = "depth_limit"


class AncestorWalker:
    """Iterable over the ancestors of ``start_unit_id``.

    Callers may stop iterating early (the first unit with an approver
    wins); ``termination`` then stays ``NOT_FINISHED``.

    Usage::

        walker = AncestorWalker(unit.id, reader.get_unit_parent)
        for ancestor in walker:
            ...
        if walker.termination is WalkTermination.CYCLE:
            log.warning(...)
    """

    def __init__(
        self,
        start_unit_id: UUID,
        get_parent: Callable[[UUID], Unit | None],
        max_depth: int = DEFAULT_MAX_ANCESTOR_DEPTH,
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.start_unit_id = start_unit_id
        self._get_parent = get_parent
        self.max_depth = max_depth
        self.termination = WalkTermination.NOT_FINISHED
        self.visited: list[UUID] = []

    def __iter__(self) -> Iterator[Unit]:
        seen: set[UUID] = {self.start_unit_id}
        current_id = self.start_unit_id
        depth = 0
        while True:
            parent = self._get_parent(current_id)
            if parent is None:
                self.termination = WalkTermination.ROOT
                return
            if parent.id in seen:
                self.termination = WalkTermination.CYCLE
                return
            if depth >= self.max_depth:
                self.termination = WalkTermination.DEPTH_LIMIT
                return
            seen.add(parent.id)
            self.visited.append(parent.id)
            depth += 1
            yield parent
            current_id = parent.id


def ancestor_ids(
    start_unit_id: UUID,
    get_parent: Callable[[UUID], Unit | None],
    max_depth: int = DEFAULT_MAX_ANCESTOR_DEPTH,
) -> tuple[tuple[UUID, ...], WalkTermination]:
    """Exhaust the walk; return the ancestor ids and how it ended."""
    walker = AncestorWalker(start_unit_id, get_parent, max_depth)
    ids = tuple(u.id for u in walker)
    return ids, walker.termination
