"""
Dirty-Set Propagator

Reverse-edge closure over the declaration graph: if A depends on B and B is
dirty, A is dirty. Work queue + visited set, O(V+E), terminates on cycles.
"""

import warnings
from collections import deque
from collections.abc import Iterable

from codegraph_incremental.domain.graph import DependencyGraph
from codegraph_incremental.errors import GraphCycleWarning
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class DirtySetPropagator:
    """
    Staleness propagation.

    Example:
        propagator = DirtySetPropagator()
        dirty = propagator.propagate(graph, seeds=[graph.index_of("LeafC")])
        graph.names(dirty)  # {"LeafC", "LeafA", "LeafB", "Branch", "Root", "SameFile1"}
    """

    def __init__(self, warn_on_cycles: bool = True):
        self.warn_on_cycles = warn_on_cycles

    def propagate(
        self,
        graph: DependencyGraph,
        seeds: Iterable[int],
        dirty: set[int] | None = None,
    ) -> set[int]:
        """
        Extend ``dirty`` with the seeds and everything that transitively
        depends on them.

        Args:
            graph: Declaration graph
            seeds: Declarations changed directly
            dirty: Already-closed dirty set (its members are not re-expanded)

        Returns:
            New dirty set (the input set is not mutated)
        """
        result = set(dirty) if dirty else set()
        queue: deque[int] = deque()

        for seed in seeds:
            if seed not in result:
                result.add(seed)
                queue.append(seed)

        reached = set(queue)

        while queue:
            node = queue.popleft()
            for dependent in graph.dependents(node):
                if dependent not in result:
                    result.add(dependent)
                    reached.add(dependent)
                    queue.append(dependent)

        if self.warn_on_cycles and reached:
            self._report_cycles(graph, reached)

        return result

    def _report_cycles(self, graph: DependencyGraph, nodes: set[int]) -> None:
        # A cycle reached from any member is reached in full within one call
        for cycle in graph.cycles(nodes):
            members = sorted(graph.names(cycle))
            logger.warning("dependency_cycle_detected", members=members)
            warnings.warn(
                f"Dependency cycle among {', '.join(members)}; all members marked dirty",
                GraphCycleWarning,
                stacklevel=3,
            )
