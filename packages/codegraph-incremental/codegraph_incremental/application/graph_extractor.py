"""
Graph Extractor

Compiler-reported declarations -> declaration-level DependencyGraph.

The graph must always cover the whole project. Files recompiled this round
contribute fresh compiler output; every other file contributes the metadata
cached in the fingerprint store by its last successful compile.
"""

from collections.abc import Collection, Iterable, Mapping

from codegraph_incremental.domain.graph import DependencyGraph
from codegraph_incremental.domain.models import CompilerOutput, Declaration
from codegraph_incremental.errors import BrokenReferenceError
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class GraphExtractor:
    """
    Declaration graph builder.

    Example:
        extractor = GraphExtractor()
        graph = extractor.extract({
            "Root.sol": [Declaration("Root", "Root.sol", ("Branch",))],
            "Branch.sol": [Declaration("Branch", "Branch.sol")],
        })
    """

    def extract(
        self,
        declarations_by_file: Mapping[str, Iterable[Declaration]],
        stale_files: Collection[str] = (),
        defer_unresolved: bool = False,
    ) -> DependencyGraph:
        """
        Build the dependency graph.

        Args:
            declarations_by_file: {source_path: [Declaration]}
            stale_files: Files whose metadata predates their current content.
                Unresolved names declared there are dropped instead of
                raising; those files are recompiled and revalidated anyway.
            defer_unresolved: New files without metadata may declare the missing
                name. Unresolved references from any file are dropped and the
                file is recorded in ``graph.deferred_files`` for recompilation.

        Raises:
            BrokenReferenceError: A dependency name matches no declaration
            DuplicateDeclarationError: Two declarations share one name
        """
        graph = DependencyGraph()
        pending: list[tuple[int, Declaration, str]] = []

        # Nodes first so forward references resolve regardless of file order
        for path in sorted(declarations_by_file):
            graph.add_file(path)
            for declaration in declarations_by_file[path]:
                idx = graph.add_declaration(declaration.name, path)
                pending.append((idx, declaration, path))

        dropped = 0
        for idx, declaration, path in pending:
            for dependency in declaration.depends_on:
                target = graph.index_of(dependency)
                if target is None:
                    if path in stale_files:
                        dropped += 1
                        logger.debug(
                            "stale_reference_dropped",
                            declaration=declaration.name,
                            missing=dependency,
                            source_path=path,
                        )
                        continue
                    if defer_unresolved:
                        graph.deferred_files.add(path)
                        logger.debug(
                            "reference_deferred",
                            declaration=declaration.name,
                            missing=dependency,
                            source_path=path,
                        )
                        continue
                    raise BrokenReferenceError(declaration.name, dependency, path)
                graph.add_edge(idx, target)

        logger.info(
            "dependency_graph_extracted",
            files=len(graph.files),
            declarations=len(graph),
            edges=graph.edge_count,
            dropped_edges=dropped,
            deferred_files=len(graph.deferred_files),
        )
        return graph

    @staticmethod
    def declarations_from_output(output: CompilerOutput) -> dict[str, list[Declaration]]:
        """{source_path: [Declaration]} from fresh compiler output."""
        return {
            path: [Declaration(unit.name, path, tuple(unit.depends_on)) for unit in units]
            for path, units in output.units.items()
        }

    @staticmethod
    def merge(
        cached: Mapping[str, list[Declaration]],
        fresh: Mapping[str, list[Declaration]],
        present_files: Collection[str],
    ) -> dict[str, list[Declaration]]:
        """
        Project-wide metadata: fresh output wins over cached metadata, and
        files no longer present in the project are left out.
        """
        merged = {path: list(decls) for path, decls in cached.items() if path in present_files}
        merged.update({path: list(decls) for path, decls in fresh.items()})
        return merged
