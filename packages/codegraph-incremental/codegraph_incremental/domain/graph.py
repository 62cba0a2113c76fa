"""
Declaration Dependency Graph

Arena of declarations addressed by integer index. Edge ``A -> B`` means
"A depends on B": A is stale whenever B changes.

Adjacency is kept in both directions so propagation walks reverse edges in
O(V+E) without rescanning the edge list.
"""

from collections.abc import Iterable, Iterator

import networkx as nx

from codegraph_incremental.domain.models import Declaration
from codegraph_incremental.errors import DuplicateDeclarationError


class DependencyGraph:
    """
    Declaration-level dependency graph.

    Example:
        graph = DependencyGraph()
        root = graph.add_declaration("Root", "Root.sol")
        branch = graph.add_declaration("Branch", "Branch.sol")
        graph.add_edge(root, branch)

        graph.dependents(branch)  # [root]
    """

    def __init__(self) -> None:
        self._names: list[str] = []
        self._owners: list[str] = []
        self._index: dict[str, int] = {}
        self._depends_on: list[list[int]] = []
        self._dependents: list[list[int]] = []
        self._by_file: dict[str, list[int]] = {}
        self._edge_count = 0
        # Files with references left unresolved until their next compile
        self.deferred_files: set[str] = set()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_declaration(self, name: str, source_path: str) -> int:
        """Register a declaration and return its index."""
        existing = self._index.get(name)
        if existing is not None:
            raise DuplicateDeclarationError(name, (self._owners[existing], source_path))

        idx = len(self._names)
        self._names.append(name)
        self._owners.append(source_path)
        self._depends_on.append([])
        self._dependents.append([])
        self._index[name] = idx
        self._by_file.setdefault(source_path, []).append(idx)
        return idx

    def add_file(self, source_path: str) -> None:
        """Register a file that defines no declarations."""
        self._by_file.setdefault(source_path, [])

    def add_edge(self, source: int, target: int) -> None:
        """Add ``source -> target`` (source depends on target)."""
        if target in self._depends_on[source]:
            return
        self._depends_on[source].append(target)
        self._dependents[target].append(source)
        self._edge_count += 1

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[int]:
        return iter(range(len(self._names)))

    @property
    def edge_count(self) -> int:
        return self._edge_count

    @property
    def files(self) -> set[str]:
        return set(self._by_file)

    def index_of(self, name: str) -> int | None:
        return self._index.get(name)

    def name_of(self, idx: int) -> str:
        return self._names[idx]

    def owner_of(self, idx: int) -> str:
        return self._owners[idx]

    def dependencies(self, idx: int) -> list[int]:
        return self._depends_on[idx]

    def dependents(self, idx: int) -> list[int]:
        return self._dependents[idx]

    def declarations_in(self, source_path: str) -> list[int]:
        return self._by_file.get(source_path, [])

    def names(self, indices: Iterable[int]) -> set[str]:
        return {self._names[i] for i in indices}

    def owners(self, indices: Iterable[int]) -> set[str]:
        return {self._owners[i] for i in indices}

    def declaration(self, idx: int) -> Declaration:
        return Declaration(
            name=self._names[idx],
            source_path=self._owners[idx],
            depends_on=tuple(self._names[d] for d in self._depends_on[idx]),
        )

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def to_networkx(self, nodes: Iterable[int] | None = None) -> nx.DiGraph:
        """Index-labelled DiGraph, optionally restricted to a node subset."""
        allowed = set(range(len(self._names))) if nodes is None else set(nodes)
        G = nx.DiGraph()
        G.add_nodes_from(allowed)
        for source in allowed:
            G.add_edges_from((source, target) for target in self._depends_on[source] if target in allowed)
        return G

    def cycles(self, nodes: Iterable[int] | None = None) -> list[list[int]]:
        """Strongly connected components forming a cycle (size > 1, or a self-loop)."""
        G = self.to_networkx(nodes)
        cyclic = [
            sorted(component)
            for component in nx.strongly_connected_components(G)
            if len(component) > 1 or any(G.has_edge(n, n) for n in component)
        ]
        return sorted(cyclic)
