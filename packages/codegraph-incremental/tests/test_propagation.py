"""
Dirty-Set Propagator and Compilation Unit Grouper tests

Reverse-edge closure plus the file-grouping fixpoint.
"""

import warnings

import pytest

from codegraph_incremental.application.graph_extractor import GraphExtractor
from codegraph_incremental.application.grouper import CompilationUnitGrouper
from codegraph_incremental.application.propagator import DirtySetPropagator
from codegraph_incremental.domain.models import Declaration
from codegraph_incremental.errors import GraphCycleWarning
from tests.fakes import DECLARATION_FILES, INHERITANCE_SOURCES, parse_declarations


@pytest.fixture
def inheritance_graph():
    return GraphExtractor().extract(
        {
            path: [Declaration(u.name, path, tuple(u.depends_on)) for u in parse_declarations(content)]
            for path, content in INHERITANCE_SOURCES.items()
        }
    )


def group_for(graph, *names):
    files = {DECLARATION_FILES[name] for name in names}
    return CompilationUnitGrouper().group(graph, files)


@pytest.mark.unit
class TestDirtySetPropagator:
    """Reverse-edge transitive closure"""

    def test_leaf_propagates_to_all_dependents(self, inheritance_graph):
        graph = inheritance_graph
        dirty = DirtySetPropagator().propagate(graph, [graph.index_of("LeafC")])

        assert graph.names(dirty) == {"LeafC", "LeafA", "LeafB", "Branch", "Root", "SameFile1"}

    def test_declaration_without_dependents_stays_alone(self, inheritance_graph):
        graph = inheritance_graph
        dirty = DirtySetPropagator().propagate(graph, [graph.index_of("Root")])

        assert graph.names(dirty) == {"Root"}

    def test_propagation_only_follows_real_edges(self, inheritance_graph):
        """Unrelated declarations never become dirty together"""
        graph = inheritance_graph
        dirty = DirtySetPropagator().propagate(graph, [graph.index_of("LibraryA"), graph.index_of("LeafB")])

        assert graph.names(dirty) == {"LibraryA", "LeafB", "Branch", "Root"}

    def test_existing_dirty_set_not_mutated(self, inheritance_graph):
        graph = inheritance_graph
        existing = {graph.index_of("Root")}

        result = DirtySetPropagator().propagate(graph, [graph.index_of("Branch")], existing)

        assert existing == {graph.index_of("Root")}
        assert graph.names(result) == {"Root", "Branch"}

    def test_cycle_terminates_and_marks_all_members(self):
        graph = GraphExtractor().extract(
            {
                "a.sol": [Declaration("A", "a.sol", ("B",))],
                "b.sol": [Declaration("B", "b.sol", ("C",))],
                "c.sol": [Declaration("C", "c.sol", ("A",))],
                "d.sol": [Declaration("D", "d.sol", ("B",))],
                "e.sol": [Declaration("E", "e.sol")],
            }
        )

        with pytest.warns(GraphCycleWarning, match="A, B, C"):
            dirty = DirtySetPropagator().propagate(graph, [graph.index_of("C")])

        assert graph.names(dirty) == {"A", "B", "C", "D"}

    def test_cycle_warning_can_be_disabled(self):
        graph = GraphExtractor().extract(
            {
                "a.sol": [Declaration("A", "a.sol", ("B",))],
                "b.sol": [Declaration("B", "b.sol", ("A",))],
            }
        )

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            dirty = DirtySetPropagator(warn_on_cycles=False).propagate(graph, [graph.index_of("A")])

        assert graph.names(dirty) == {"A", "B"}

    def test_no_seeds_no_dirty(self, inheritance_graph):
        assert DirtySetPropagator().propagate(inheritance_graph, []) == set()


@pytest.mark.unit
class TestCompilationUnitGrouper:
    """File-level fixpoint"""

    def test_leaf_c_scenario(self, inheritance_graph):
        """LeafC touched: everything except LibraryA, SameFile2 pulled in through its file"""
        result = group_for(inheritance_graph, "LeafC")

        assert result.dirty_declarations == {
            "LeafC",
            "LeafA",
            "LeafB",
            "Branch",
            "Root",
            "SameFile1",
            "SameFile2",
        }
        assert result.dirty_files == {
            "LeafC.sol",
            "LeafA.sol",
            "LeafB.sol",
            "Branch.sol",
            "Root.sol",
            "SameFile.sol",
        }
        assert "LibraryA.sol" not in result.dirty_files

    def test_root_scenario(self, inheritance_graph):
        result = group_for(inheritance_graph, "Root")

        assert result.dirty_files == {"Root.sol"}
        assert result.dirty_declarations == {"Root"}

    def test_library_scenario(self, inheritance_graph):
        result = group_for(inheritance_graph, "LibraryA")

        assert result.dirty_declarations == {"LibraryA", "Root"}
        assert result.dirty_files == {"LibraryA.sol", "Root.sol"}

    def test_branch_scenario(self, inheritance_graph):
        result = group_for(inheritance_graph, "Branch")

        assert result.dirty_declarations == {"Branch", "Root"}

    def test_leaf_a_scenario(self, inheritance_graph):
        result = group_for(inheritance_graph, "LeafA")

        assert result.dirty_declarations == {"LeafA", "Branch", "Root"}

    def test_same_file_declarations_dirty_together(self, inheritance_graph):
        """SameFile2 has no edges, yet shares a compilation unit with SameFile1"""
        result = group_for(inheritance_graph, "SameFile2")

        assert result.dirty_declarations == {"SameFile1", "SameFile2"}
        assert result.dirty_files == {"SameFile.sol"}

    def test_file_sharing_propagates_transitively(self):
        """
        Lib changes -> A (shared.sol) dirty -> B (shared.sol) dirty
        -> C depends on B -> C dirty, although C never touches Lib or A
        """
        graph = GraphExtractor().extract(
            {
                "lib.sol": [Declaration("Lib", "lib.sol")],
                "shared.sol": [
                    Declaration("A", "shared.sol", ("Lib",)),
                    Declaration("B", "shared.sol"),
                ],
                "c.sol": [Declaration("C", "c.sol", ("B",))],
                "unrelated.sol": [Declaration("U", "unrelated.sol")],
            }
        )

        result = CompilationUnitGrouper().group(graph, {"lib.sol"})

        assert result.dirty_files == {"lib.sol", "shared.sol", "c.sol"}
        assert result.dirty_declarations == {"Lib", "A", "B", "C"}
        assert result.iterations >= 2

    def test_new_file_outside_graph_kept(self, inheritance_graph):
        result = CompilationUnitGrouper().group(inheritance_graph, {"New.sol"})

        assert result.dirty_files == {"New.sol"}
        assert result.dirty_declarations == set()

    def test_nothing_dirty(self, inheritance_graph):
        result = CompilationUnitGrouper().group(inheritance_graph, set())

        assert result.dirty_files == set()
        assert result.iterations == 0
