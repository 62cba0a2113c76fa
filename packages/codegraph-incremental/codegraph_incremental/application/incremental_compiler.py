"""
Incremental Compiler

Change Detector -> Dirty-Set Propagator <-> Compilation Unit Grouper
-> Compile Dispatcher -> Artifact Reconciler.

Only files whose declarations depend (directly, transitively, or through
file sharing) on a changed file are resubmitted to the compiler. Artifacts
of every other file keep their content and ``updatedAt``.
"""

import time
import uuid
from collections.abc import Mapping

from codegraph_incremental.application.change_detector import ChangeDetector
from codegraph_incremental.application.dispatcher import CompileDispatcher
from codegraph_incremental.application.graph_extractor import GraphExtractor
from codegraph_incremental.application.grouper import CompilationUnitGrouper
from codegraph_incremental.application.reconciler import ArtifactReconciler
from codegraph_incremental.config import IncrementalBuildConfig, get_config
from codegraph_incremental.domain.models import (
    BuildSummary,
    InvalidationReason,
    RebuildPlan,
    RebuildStrategy,
    SourceFile,
)
from codegraph_incremental.errors import StoreCorruptionError
from codegraph_incremental.infrastructure.artifact_store import ArtifactStore
from codegraph_incremental.infrastructure.atomic_writer import cleanup_temp_files
from codegraph_incremental.infrastructure.fingerprint import options_hash
from codegraph_incremental.infrastructure.fingerprint_store import FingerprintStoreDocument, JsonFingerprintStore
from codegraph_incremental.infrastructure.lock import ProjectLock
from codegraph_incremental.infrastructure.source_repository import SourceRepository
from codegraph_incremental.observability import build_context, get_logger
from codegraph_incremental.ports import ClockPort, CompilerPort

logger = get_logger(__name__)


class IncrementalCompiler:
    """
    증분 컴파일러

    Usage:
        >>> compiler = IncrementalCompiler(SubprocessCompiler(["solc-json"]), config)
        >>> summary = compiler.compile()
        >>> summary.recompiled_files
        ['Branch.sol', 'LeafA.sol', ...]
        >>> # 파일 수정 없이 다시 실행
        >>> compiler.compile().strategy
        <RebuildStrategy.NOOP: 'noop'>
    """

    def __init__(
        self,
        compiler: CompilerPort,
        config: IncrementalBuildConfig | None = None,
        clock: ClockPort | None = None,
    ):
        self.config = config or get_config()
        self.compiler = compiler

        paths = self.config.paths
        self.build_dir = paths.resolve_build_dir()
        self.source_repository = SourceRepository(
            paths.resolve_sources_dir(),
            globs=paths.source_globs,
            strategy=self.config.fingerprint.strategy,
        )
        self.fingerprint_store = JsonFingerprintStore(paths.resolve_store_path())
        self.artifact_store = ArtifactStore(self.build_dir)
        self.lock = ProjectLock(
            paths.resolve_lock_path(),
            timeout_seconds=self.config.lock.timeout_seconds,
            poll_interval_seconds=self.config.lock.poll_interval_seconds,
        )

        self.extractor = GraphExtractor()
        self.detector = ChangeDetector(self.artifact_store, verify_artifacts=self.config.fingerprint.verify_artifacts)
        self.grouper = CompilationUnitGrouper()
        self.dispatcher = CompileDispatcher(compiler, timeout_seconds=self.config.compiler.timeout_seconds)
        self.reconciler = ArtifactReconciler(self.artifact_store, self.fingerprint_store, clock=clock)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(self, force: bool = False) -> RebuildPlan:
        """Compute what the next compile would resubmit, without compiling."""
        sources = self.source_repository.load()
        document, corrupt = self._load_document()
        return self._make_plan(sources, document, corrupt, force)

    def compile(self, force: bool = False, dry_run: bool = False) -> BuildSummary:
        """
        Run one incremental compile.

        Args:
            force: Recompile every file regardless of fingerprints
            dry_run: Plan only; nothing is compiled or written

        Raises:
            BrokenReferenceError: Dependency name matches no declaration
            CompileDiagnosticError: Compiler rejected a submitted file
            CompilerInvocationError: Compiler failed, timed out or answered incompletely
            ProjectLockedError: Another invocation holds the project lock
        """
        build_id = uuid.uuid4().hex[:8]
        with self.lock, build_context(build_id=build_id, project=str(self.config.paths.project_root)):
            return self._compile(force=force, dry_run=dry_run)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _compile(self, force: bool, dry_run: bool) -> BuildSummary:
        start = time.perf_counter()

        sources = self.source_repository.load()
        document, corrupt = self._load_document()
        plan = self._make_plan(sources, document, corrupt, force)
        logger.info("rebuild_planned", plan=plan.summary())

        if dry_run:
            return self._summary(plan, start, dry_run=True)

        if plan.is_noop and not plan.changes.deleted:
            logger.info("build_up_to_date")
            return self._summary(plan, start)

        cleanup_temp_files(self.build_dir)
        options = self.config.compiler.options
        output = self.dispatcher.dispatch(plan.files_to_compile, sources, options)

        # The merged graph must resolve before anything is written
        fresh = self.extractor.declarations_from_output(output) if output else {}
        self.extractor.extract(self.extractor.merge(document.cached_declarations(), fresh, sources.keys()))

        result = self.reconciler.reconcile(
            document=document,
            output=output,
            sources=sources,
            deleted_files=plan.changes.deleted,
            compiler_version=self.compiler.version,
            options_hash=options_hash(options),
            prune_unclaimed=corrupt,
        )

        summary = self._summary(plan, start)
        summary.affected_declarations = sorted(d.name for decls in fresh.values() for d in decls)
        summary.artifacts_written = sorted(result.written)
        summary.artifacts_removed = sorted(result.removed)
        summary.warnings = list(output.warnings) if output else []
        summary.duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "build_completed",
            strategy=summary.strategy.value,
            files=len(summary.recompiled_files),
            written=len(summary.artifacts_written),
            removed=len(summary.artifacts_removed),
            duration_ms=round(summary.duration_ms, 1),
        )
        return summary

    def _load_document(self) -> tuple[FingerprintStoreDocument, bool]:
        try:
            return self.fingerprint_store.load(), False
        except StoreCorruptionError as e:
            logger.warning("fingerprint_store_corrupt", error=e.message, fallback="full_rebuild")
            return FingerprintStoreDocument(), True

    def _make_plan(
        self,
        sources: Mapping[str, SourceFile],
        document: FingerprintStoreDocument,
        corrupt: bool,
        force: bool,
    ) -> RebuildPlan:
        changes = self.detector.detect(sources, document)
        reason = self._global_invalidation(document, corrupt, force)

        if not sources:
            return RebuildPlan(RebuildStrategy.NOOP, set(), set(), changes, reason)

        cached = {path: decls for path, decls in document.cached_declarations().items() if path in sources}

        if reason is not None:
            cached_names = {d.name for decls in cached.values() for d in decls}
            return RebuildPlan(RebuildStrategy.FULL, set(sources), cached_names, changes, reason)

        # New files have no metadata yet; the post-compile check decides
        graph = self.extractor.extract(cached, stale_files=changes.stale, defer_unresolved=bool(changes.added))
        grouping = self.grouper.group(graph, changes.dirty | graph.deferred_files)

        files = grouping.dirty_files & set(sources)
        strategy = RebuildStrategy.PARTIAL if files else RebuildStrategy.NOOP
        return RebuildPlan(strategy, files, grouping.dirty_declarations, changes)

    def _global_invalidation(
        self,
        document: FingerprintStoreDocument,
        corrupt: bool,
        force: bool,
    ) -> InvalidationReason | None:
        if force:
            return InvalidationReason.FORCED
        if corrupt:
            return InvalidationReason.STORE_CORRUPT
        if document.is_empty():
            return InvalidationReason.FIRST_BUILD
        if document.compiler_version != self.compiler.version:
            return InvalidationReason.COMPILER_VERSION_CHANGED
        if document.options_hash != options_hash(self.config.compiler.options):
            return InvalidationReason.COMPILER_OPTIONS_CHANGED
        return None

    @staticmethod
    def _summary(plan: RebuildPlan, start: float, dry_run: bool = False) -> BuildSummary:
        return BuildSummary(
            strategy=plan.strategy,
            reason=plan.reason,
            recompiled_files=sorted(plan.files_to_compile),
            affected_declarations=sorted(plan.affected_declarations),
            duration_ms=(time.perf_counter() - start) * 1000,
            dry_run=dry_run,
        )
