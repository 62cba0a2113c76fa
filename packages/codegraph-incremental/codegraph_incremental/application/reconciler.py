"""
Artifact Reconciler

The only writer of persisted state. Entered after a fully successful
compiler response; touches artifacts and store records of recompiled and
deleted files only.

Write order: artifacts (temp + rename each), stale artifact removal, then
the fingerprint store last. A crash before the store write leaves the old
fingerprints in place, so the affected files are simply recompiled on the
next run.
"""

from collections.abc import Collection, Mapping
from datetime import datetime, timedelta, timezone

from codegraph_incremental.domain.models import CompilerOutput, ReconcileResult, SourceFile
from codegraph_incremental.infrastructure.artifact_store import ArtifactRecord, ArtifactStore
from codegraph_incremental.infrastructure.fingerprint_store import (
    FingerprintRecord,
    FingerprintStoreDocument,
    JsonFingerprintStore,
    StoredDeclaration,
)
from codegraph_incremental.observability import get_logger
from codegraph_incremental.ports import ClockPort

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArtifactReconciler:
    """
    Merge fresh compiler output with the untouched previous build.

    Example:
        reconciler = ArtifactReconciler(artifact_store, fingerprint_store)
        result = reconciler.reconcile(
            document=document,
            output=output,
            sources=sources,
            deleted_files=changes.deleted,
            compiler_version="0.8.21",
            options_hash=options_hash(options),
        )
    """

    def __init__(
        self,
        artifact_store: ArtifactStore,
        fingerprint_store: JsonFingerprintStore,
        clock: ClockPort | None = None,
    ):
        self.artifact_store = artifact_store
        self.fingerprint_store = fingerprint_store
        self.clock = clock or utc_now

    def reconcile(
        self,
        *,
        document: FingerprintStoreDocument,
        output: CompilerOutput | None,
        sources: Mapping[str, SourceFile],
        deleted_files: Collection[str],
        compiler_version: str,
        options_hash: str,
        prune_unclaimed: bool = False,
    ) -> ReconcileResult:
        """
        Persist the outcome of one compile invocation.

        Args:
            document: Store state loaded at the start of the invocation
            output: Compiler output for the recompiled files (None if nothing compiled)
            sources: Current project sources
            deleted_files: Recorded files no longer present
            compiler_version: Version to record with the fingerprints
            options_hash: Hash of the compiler options to record
            prune_unclaimed: Also remove every artifact in the build directory
                that the fresh output does not claim (records are unknown)
        """
        updated_at = self._next_timestamp(document)
        units_by_file = output.units if output else {}
        compiled_version = output.compiler_version if output else compiler_version

        new_document = document.model_copy(deep=True)
        result = ReconcileResult(updated_at=updated_at)

        claimed = {unit.name for units in units_by_file.values() for unit in units}

        for path in sorted(units_by_file):
            units = units_by_file[path]
            for unit in units:
                self.artifact_store.write(
                    ArtifactRecord(
                        contract_name=unit.name,
                        source_path=path,
                        depends_on=list(unit.depends_on),
                        compiler={"version": compiled_version},
                        artifact=unit.artifact,
                        updated_at=updated_at,
                    )
                )
                result.written.append(unit.name)

            previous = document.records.get(path)
            if previous is not None:
                result.removed.extend(self._remove_unclaimed(previous.artifacts, claimed))

            new_document.records[path] = FingerprintRecord(
                path=path,
                fingerprint=sources[path].fingerprint,
                declarations=[StoredDeclaration(name=u.name, depends_on=list(u.depends_on)) for u in units],
                artifacts=[u.name for u in units],
                compiled_at=updated_at,
            )

        for path in sorted(deleted_files):
            previous = new_document.records.pop(path, None)
            if previous is not None:
                result.removed.extend(self._remove_unclaimed(previous.artifacts, claimed))

        if prune_unclaimed:
            result.removed.extend(self._remove_unclaimed(self.artifact_store.list_names(), claimed))

        new_document.compiler_version = compiler_version
        new_document.options_hash = options_hash
        self.fingerprint_store.save(new_document)

        logger.info(
            "artifacts_reconciled",
            files=len(units_by_file),
            written=len(result.written),
            removed=len(result.removed),
            deleted_files=len(deleted_files),
        )
        return result

    def _remove_unclaimed(self, names: list[str], claimed: set[str]) -> list[str]:
        # A name claimed by fresh output moved to another recompiled file
        removed = []
        for name in names:
            if name in claimed:
                continue
            if self.artifact_store.remove(name):
                removed.append(name)
        return removed

    def _next_timestamp(self, document: FingerprintStoreDocument) -> datetime:
        """Clock value, bumped past the newest recorded compile if needed."""
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        latest = max((r.compiled_at for r in document.records.values()), default=None)
        if latest is not None:
            if latest.tzinfo is None:
                latest = latest.replace(tzinfo=timezone.utc)
            if now <= latest:
                now = latest + timedelta(microseconds=1)
        return now
