"""codegraph-incremental - Incremental compilation cache.

Decides, on each compile invocation, the minimal set of source files to
resubmit to an external compiler: changed files, files declaring something
that (transitively) depends on a changed declaration, and files sharing a
compilation unit with either. Every other artifact keeps its output and
``updatedAt``.

Quick Start:
    >>> from codegraph_incremental import IncrementalCompiler, SubprocessCompiler, load_config
    >>>
    >>> config = load_config()
    >>> compiler = IncrementalCompiler(SubprocessCompiler(["solc-json"]), config)
    >>> summary = compiler.compile()
    >>> summary.recompiled_files
"""

__version__ = "0.1.0"  # Keep in sync with pyproject.toml

from codegraph_incremental.application import (
    ArtifactReconciler,
    ChangeDetector,
    CompilationUnitGrouper,
    CompileDispatcher,
    DirtySetPropagator,
    GraphExtractor,
    IncrementalCompiler,
)
from codegraph_incremental.config import FingerprintStrategy, IncrementalBuildConfig, get_config, load_config
from codegraph_incremental.domain import (
    BuildSummary,
    ChangeSet,
    CompileDiagnostic,
    CompiledUnit,
    CompilerOutput,
    Declaration,
    DependencyGraph,
    InvalidationReason,
    RebuildPlan,
    RebuildStrategy,
    SourceFile,
)
from codegraph_incremental.errors import (
    BrokenReferenceError,
    CompileDiagnosticError,
    CompilerInvocationError,
    CompileTimeoutError,
    DuplicateDeclarationError,
    GraphCycleWarning,
    IncompleteCompilerOutputError,
    IncrementalBuildError,
    ProjectLockedError,
    StoreCorruptionError,
)
from codegraph_incremental.infrastructure import SubprocessCompiler
from codegraph_incremental.ports import CompilerPort

__all__ = [
    "__version__",
    # Core
    "IncrementalCompiler",
    "GraphExtractor",
    "ChangeDetector",
    "DirtySetPropagator",
    "CompilationUnitGrouper",
    "CompileDispatcher",
    "ArtifactReconciler",
    # Compiler boundary
    "CompilerPort",
    "SubprocessCompiler",
    # Config
    "IncrementalBuildConfig",
    "FingerprintStrategy",
    "get_config",
    "load_config",
    # Models
    "BuildSummary",
    "ChangeSet",
    "CompileDiagnostic",
    "CompiledUnit",
    "CompilerOutput",
    "Declaration",
    "DependencyGraph",
    "InvalidationReason",
    "RebuildPlan",
    "RebuildStrategy",
    "SourceFile",
    # Errors
    "IncrementalBuildError",
    "BrokenReferenceError",
    "DuplicateDeclarationError",
    "GraphCycleWarning",
    "CompilerInvocationError",
    "CompileDiagnosticError",
    "CompileTimeoutError",
    "IncompleteCompilerOutputError",
    "StoreCorruptionError",
    "ProjectLockedError",
]
