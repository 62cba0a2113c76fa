"""Incremental build domain models."""

from codegraph_incremental.domain.graph import DependencyGraph
from codegraph_incremental.domain.models import (
    BuildSummary,
    ChangeSet,
    CompileDiagnostic,
    CompiledUnit,
    CompilerOutput,
    Declaration,
    GroupingResult,
    InvalidationReason,
    RebuildPlan,
    RebuildStrategy,
    ReconcileResult,
    SourceFile,
)

__all__ = [
    "BuildSummary",
    "ChangeSet",
    "CompileDiagnostic",
    "CompiledUnit",
    "CompilerOutput",
    "Declaration",
    "DependencyGraph",
    "GroupingResult",
    "InvalidationReason",
    "RebuildPlan",
    "RebuildStrategy",
    "ReconcileResult",
    "SourceFile",
]
