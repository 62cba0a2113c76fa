"""Change Detector: on-disk fingerprints vs. the fingerprint store."""

from collections.abc import Mapping

from codegraph_incremental.domain.models import ChangeSet, SourceFile
from codegraph_incremental.infrastructure.artifact_store import ArtifactStore
from codegraph_incremental.infrastructure.fingerprint_store import FingerprintStoreDocument
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class ChangeDetector:
    """
    변경 감지.

    Pure: compares fingerprints already computed from the filesystem with
    the stored records. No compilation happens here.
    """

    def __init__(self, artifact_store: ArtifactStore | None = None, verify_artifacts: bool = True):
        """
        Args:
            artifact_store: Used to check that recorded artifacts still exist
            verify_artifacts: Treat a clean file with a missing artifact as dirty
        """
        self.artifact_store = artifact_store
        self.verify_artifacts = verify_artifacts and artifact_store is not None

    def detect(self, sources: Mapping[str, SourceFile], document: FingerprintStoreDocument) -> ChangeSet:
        """
        Initial dirty set.

        - no record -> added
        - fingerprint differs -> modified
        - fingerprint matches -> clean (unless an artifact vanished)
        - record without a source file -> deleted
        """
        changes = ChangeSet()

        for path, source in sources.items():
            record = document.records.get(path)
            if record is None:
                changes.added.add(path)
            elif record.fingerprint != source.fingerprint:
                changes.modified.add(path)
            elif self.verify_artifacts and self._has_missing_artifact(record.artifacts):
                changes.missing_artifacts.add(path)

        changes.deleted = set(document.records) - set(sources)

        logger.info(
            "changes_detected",
            added=len(changes.added),
            modified=len(changes.modified),
            deleted=len(changes.deleted),
            missing_artifacts=len(changes.missing_artifacts),
        )
        return changes

    def _has_missing_artifact(self, names: list[str]) -> bool:
        return any(not self.artifact_store.exists(name) for name in names)
