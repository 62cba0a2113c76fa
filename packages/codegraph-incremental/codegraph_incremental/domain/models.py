"""
Incremental Build Models

Source files, declarations, compiler output and build summaries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RebuildStrategy(str, Enum):
    """재빌드 전략"""

    FULL = "full"  # 전체 재컴파일
    PARTIAL = "partial"  # dirty 파일만
    NOOP = "noop"  # 컴파일 없음


class InvalidationReason(str, Enum):
    """Why a full rebuild was chosen"""

    FIRST_BUILD = "first_build"
    STORE_CORRUPT = "store_corrupt"
    COMPILER_VERSION_CHANGED = "compiler_version_changed"
    COMPILER_OPTIONS_CHANGED = "compiler_options_changed"
    FORCED = "forced"


@dataclass(frozen=True)
class SourceFile:
    """소스 파일 (이번 호출 동안 read-only)"""

    path: str  # project-relative POSIX path
    content: str
    fingerprint: str


@dataclass(frozen=True)
class Declaration:
    """
    선언 단위 (contract / library / interface)

    Created fresh every invocation from compiler metadata.
    """

    name: str
    source_path: str
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class CompileDiagnostic:
    """컴파일러 진단 메시지"""

    path: str
    message: str
    severity: str = "error"

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


@dataclass
class CompiledUnit:
    """One declaration as reported by the compiler."""

    name: str
    depends_on: list[str] = field(default_factory=list)
    artifact: dict[str, Any] = field(default_factory=dict)


@dataclass
class CompilerOutput:
    """
    컴파일 결과

    units: {source_path: [CompiledUnit, ...]}
    """

    compiler_version: str
    units: dict[str, list[CompiledUnit]] = field(default_factory=dict)
    diagnostics: list[CompileDiagnostic] = field(default_factory=list)

    @property
    def errors(self) -> list[CompileDiagnostic]:
        return [d for d in self.diagnostics if d.is_error]

    @property
    def warnings(self) -> list[CompileDiagnostic]:
        return [d for d in self.diagnostics if not d.is_error]


@dataclass
class ChangeSet:
    """변경된 파일 집합."""

    added: set[str] = field(default_factory=set)  # 기록 없음 (새 파일)
    modified: set[str] = field(default_factory=set)  # fingerprint 불일치
    deleted: set[str] = field(default_factory=set)  # 기록은 있으나 파일 없음
    missing_artifacts: set[str] = field(default_factory=set)  # fingerprint 일치, artifact 유실

    @property
    def dirty(self) -> set[str]:
        """재컴파일 대상 (삭제 파일 제외)."""
        return self.added | self.modified | self.missing_artifacts

    @property
    def stale(self) -> set[str]:
        """Files whose cached metadata predates their current content."""
        return self.modified

    def is_empty(self) -> bool:
        return not (self.added or self.modified or self.deleted or self.missing_artifacts)


@dataclass
class GroupingResult:
    """Fixpoint of declaration propagation and file grouping."""

    dirty_files: set[str]
    dirty_declarations: set[str]
    iterations: int = 0


@dataclass
class RebuildPlan:
    """
    재빌드 계획

    어떤 파일을 컴파일러에 다시 제출할지 결정
    """

    strategy: RebuildStrategy
    files_to_compile: set[str]
    affected_declarations: set[str]
    changes: ChangeSet
    reason: InvalidationReason | None = None

    @property
    def is_noop(self) -> bool:
        return self.strategy == RebuildStrategy.NOOP

    def summary(self) -> str:
        reason = f" ({self.reason.value})" if self.reason else ""
        return (
            f"{self.strategy.value} rebuild{reason}: "
            f"{len(self.files_to_compile)} files, "
            f"{len(self.affected_declarations)} declarations"
        )


@dataclass
class ReconcileResult:
    """Artifact reconciliation outcome."""

    written: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    updated_at: datetime | None = None


@dataclass
class BuildSummary:
    """Summary handed to the command layer."""

    strategy: RebuildStrategy
    reason: InvalidationReason | None
    recompiled_files: list[str]
    affected_declarations: list[str]
    artifacts_written: list[str] = field(default_factory=list)
    artifacts_removed: list[str] = field(default_factory=list)
    warnings: list[CompileDiagnostic] = field(default_factory=list)
    duration_ms: float = 0.0
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "reason": self.reason.value if self.reason else None,
            "recompiled_files": self.recompiled_files,
            "affected_declarations": self.affected_declarations,
            "artifacts_written": self.artifacts_written,
            "artifacts_removed": self.artifacts_removed,
            "warnings": [{"path": w.path, "message": w.message, "severity": w.severity} for w in self.warnings],
            "duration_ms": round(self.duration_ms, 3),
            "dry_run": self.dry_run,
        }
