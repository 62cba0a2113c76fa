"""
Compilation Unit Grouper

The compiler's unit of recompilation is the file. Any dirty declaration
pulls in its whole file, whose other declarations then propagate to their
own dependents, and so on until the file set stops growing.
"""

from collections.abc import Iterable

from codegraph_incremental.application.propagator import DirtySetPropagator
from codegraph_incremental.domain.graph import DependencyGraph
from codegraph_incremental.domain.models import GroupingResult
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class CompilationUnitGrouper:
    """
    Propagate -> expand to files -> re-seed new files -> repeat to fixpoint.

    Example:
        grouper = CompilationUnitGrouper()
        result = grouper.group(graph, dirty_files={"LeafC.sol"})
        result.dirty_files  # includes "SameFile.sol" via SameFile1 -> LeafC
    """

    def __init__(self, propagator: DirtySetPropagator | None = None):
        self.propagator = propagator or DirtySetPropagator()

    def group(self, graph: DependencyGraph, dirty_files: Iterable[str]) -> GroupingResult:
        files = set(dirty_files)
        dirty: set[int] = set()
        frontier = set(files)
        iterations = 0

        while frontier:
            iterations += 1
            seeds = [idx for path in sorted(frontier) for idx in graph.declarations_in(path)]
            closure = self.propagator.propagate(graph, seeds, dirty)

            newly_dirty = closure - dirty
            dirty = closure
            frontier = graph.owners(newly_dirty) - files
            files |= frontier

        logger.info(
            "dirty_set_computed",
            files=len(files),
            declarations=len(dirty),
            iterations=iterations,
        )
        return GroupingResult(dirty_files=files, dirty_declarations=graph.names(dirty), iterations=iterations)
