"""Incremental build application services."""

from codegraph_incremental.application.change_detector import ChangeDetector
from codegraph_incremental.application.dispatcher import CompileDispatcher
from codegraph_incremental.application.graph_extractor import GraphExtractor
from codegraph_incremental.application.grouper import CompilationUnitGrouper
from codegraph_incremental.application.incremental_compiler import IncrementalCompiler
from codegraph_incremental.application.propagator import DirtySetPropagator
from codegraph_incremental.application.reconciler import ArtifactReconciler

__all__ = [
    "ArtifactReconciler",
    "ChangeDetector",
    "CompilationUnitGrouper",
    "CompileDispatcher",
    "DirtySetPropagator",
    "GraphExtractor",
    "IncrementalCompiler",
]
