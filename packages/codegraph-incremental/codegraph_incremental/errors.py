"""
Standardized Error Handling for incremental builds

Provides hierarchical exception classes with error codes and context.

Only the artifact reconciler mutates persisted state, so every error raised
before reconciliation leaves the fingerprint store and artifacts untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from codegraph_incremental.domain.models import CompileDiagnostic


class IncrementalBuildError(Exception):
    """Base exception for all incremental build errors.

    Includes error code for programmatic handling and context for debugging.

    Example:
        raise IncrementalBuildError(
            code="BROKEN_REFERENCE",
            message="Unknown dependency",
            declaration="Root",
        )
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def __repr__(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r}, {ctx_str})"


# ==============================================================================
# Graph Errors
# ==============================================================================


class GraphError(IncrementalBuildError):
    """Error while building the declaration graph."""

    def __init__(self, message: str, code: str = "GRAPH_ERROR", **context: Any) -> None:
        super().__init__(code=code, message=message, **context)


class BrokenReferenceError(GraphError):
    """A dependency name does not resolve to any known declaration."""

    def __init__(self, declaration: str, missing: str, source_path: str, **context: Any) -> None:
        super().__init__(
            f"{declaration} ({source_path}) depends on unknown declaration {missing!r}",
            code="BROKEN_REFERENCE",
            declaration=declaration,
            missing=missing,
            source_path=source_path,
            **context,
        )
        self.declaration = declaration
        self.missing = missing
        self.source_path = source_path


class DuplicateDeclarationError(GraphError):
    """Two source files define a declaration with the same name."""

    def __init__(self, name: str, paths: tuple[str, str], **context: Any) -> None:
        super().__init__(
            f"Declaration {name!r} is defined in both {paths[0]} and {paths[1]}",
            code="DUPLICATE_DECLARATION",
            name=name,
            paths=paths,
            **context,
        )
        self.name = name
        self.paths = paths


class GraphCycleWarning(UserWarning):
    """Dependency cycle found during propagation (non-fatal)."""


# ==============================================================================
# Compiler Errors
# ==============================================================================


class CompilerInvocationError(IncrementalBuildError):
    """The external compiler could not produce a usable result."""

    def __init__(self, message: str, code: str = "COMPILER_INVOCATION_ERROR", **context: Any) -> None:
        super().__init__(code=code, message=message, **context)


class CompileDiagnosticError(CompilerInvocationError):
    """The compiler rejected one or more submitted files."""

    def __init__(self, diagnostics: list[CompileDiagnostic], **context: Any) -> None:
        paths = sorted({d.path for d in diagnostics})
        super().__init__(
            f"Compilation failed with {len(diagnostics)} diagnostic(s) in {', '.join(paths) or '<unknown>'}",
            code="COMPILE_DIAGNOSTIC",
            paths=paths,
            **context,
        )
        self.diagnostics = diagnostics


class CompileTimeoutError(CompilerInvocationError):
    """The compiler did not answer within the configured timeout."""

    def __init__(self, timeout_seconds: float, **context: Any) -> None:
        super().__init__(
            f"Compiler timed out after {timeout_seconds:.1f}s",
            code="COMPILE_TIMEOUT",
            timeout_seconds=timeout_seconds,
            **context,
        )
        self.timeout_seconds = timeout_seconds


class IncompleteCompilerOutputError(CompilerInvocationError):
    """The compiler answered without output for some submitted files."""

    def __init__(self, missing: list[str], **context: Any) -> None:
        super().__init__(
            f"Compiler returned no output for: {', '.join(missing)}",
            code="INCOMPLETE_OUTPUT",
            missing=missing,
            **context,
        )
        self.missing = missing


# ==============================================================================
# Storage Errors
# ==============================================================================


class StorageError(IncrementalBuildError):
    """Error reading or writing persisted build state."""

    def __init__(self, message: str, code: str = "STORAGE_ERROR", **context: Any) -> None:
        super().__init__(code=code, message=message, **context)


class StoreCorruptionError(StorageError):
    """Fingerprint store unreadable or written with another schema."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, code="STORE_CORRUPTION", **context)


class ProjectLockedError(StorageError):
    """Another invocation holds the project lock."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, code="PROJECT_LOCKED", **context)


# ==============================================================================
# Configuration Errors
# ==============================================================================


class ConfigurationError(IncrementalBuildError):
    """Error in configuration."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(code="CONFIGURATION_ERROR", message=message, **context)


__all__ = [
    "IncrementalBuildError",
    # Graph
    "GraphError",
    "BrokenReferenceError",
    "DuplicateDeclarationError",
    "GraphCycleWarning",
    # Compiler
    "CompilerInvocationError",
    "CompileDiagnosticError",
    "CompileTimeoutError",
    "IncompleteCompilerOutputError",
    # Storage
    "StorageError",
    "StoreCorruptionError",
    "ProjectLockedError",
    # Configuration
    "ConfigurationError",
]
