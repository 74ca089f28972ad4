"""Cycle detection over prototype instantiation edges.

A prototype model whose instantiation creates a child instance records a
``(parent_model, child_model)`` edge. If those edges ever form a cycle,
instantiating any model on it would recurse without bound, so each context
validates its edge list before creating prototype children.

Validation is amortized: edges append in O(1) and the topological sort only
reruns once the list has grown since the last successful validation.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from annoctx.foundation.errors import CyclicPrototypeInstanceFound

logger = logging.getLogger(__name__)

Edge = tuple[str, str]


class CircularDependencyError(Exception):
    """Raised by :func:`toposort` when the edges form a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        cycle_str = " → ".join(cycle + cycle[:1])
        super().__init__(f"Circular dependency detected: {cycle_str}")


def toposort(edges: Iterable[Edge]) -> list[str]:
    """Order the nodes of ``edges`` so every source precedes its targets.

    Uses Kahn's algorithm. Any valid linear extension may be returned.

    Raises:
        CircularDependencyError: If a cycle exists (self-loops included).
    """
    successors: dict[str, set[str]] = defaultdict(set)
    in_degree: dict[str, int] = {}

    for source, target in edges:
        in_degree.setdefault(source, 0)
        in_degree.setdefault(target, 0)
        if target not in successors[source]:
            successors[source].add(target)
            in_degree[target] += 1

    queue: deque[str] = deque(node for node, degree in in_degree.items() if degree == 0)
    order: list[str] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, ()):
            in_degree[successor] -= 1
            if in_degree[successor] == 0:
                queue.append(successor)

    if len(order) != len(in_degree):
        remaining = set(in_degree) - set(order)
        cycle = _detect_cycle(successors, remaining)
        raise CircularDependencyError(cycle or sorted(remaining)[:3])

    return order


def _detect_cycle(successors: dict[str, set[str]], nodes: set[str]) -> list[str] | None:
    """Find one cycle among ``nodes`` using DFS."""
    WHITE, GRAY, BLACK = 0, 1, 2
    color = dict.fromkeys(nodes, WHITE)
    parent: dict[str, str | None] = dict.fromkeys(nodes)

    def dfs(node: str) -> list[str] | None:
        color[node] = GRAY
        for succ in sorted(successors.get(node, ())):
            if succ not in color:
                continue
            if color[succ] == GRAY:
                cycle = [node]
                curr = node
                while curr != succ:
                    curr = parent[curr]
                    cycle.append(curr)
                return list(reversed(cycle))
            if color[succ] == WHITE:
                parent[succ] = node
                if result := dfs(succ):
                    return result
        color[node] = BLACK
        return None

    for node in sorted(nodes):
        if color[node] == WHITE:
            if cycle := dfs(node):
                return cycle
    return None


@dataclass
class PrototypeInstanceGraph:
    """Append-only edge list with lazy cycle validation."""

    edges: list[Edge] = field(default_factory=list)
    _last_validated_size: int = 0

    def add_edge(self, source: str, target: str) -> None:
        self.edges.append((source, target))

    def validate(self) -> None:
        """Fail if the recorded edges contain a cycle.

        A failed validation leaves the watermark untouched, so the same
        cyclic state fails on every later call.

        Raises:
            CyclicPrototypeInstanceFound: With the edge list and the cycle found.
        """
        if self._last_validated_size == len(self.edges):
            return
        try:
            toposort(self.edges)
        except CircularDependencyError as e:
            logger.debug("Prototype graph validation failed: %s", e)
            raise CyclicPrototypeInstanceFound(self.edges, e.cycle) from e
        self._last_validated_size = len(self.edges)

    @property
    def is_validated(self) -> bool:
        return self._last_validated_size == len(self.edges)

    def __len__(self) -> int:
        return len(self.edges)
