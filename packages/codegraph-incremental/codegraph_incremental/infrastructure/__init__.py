"""Incremental build infrastructure: persistence, locking, compiler process."""

from codegraph_incremental.infrastructure.artifact_store import ArtifactRecord, ArtifactStore
from codegraph_incremental.infrastructure.fingerprint_store import (
    FingerprintRecord,
    FingerprintStoreDocument,
    JsonFingerprintStore,
    StoredDeclaration,
)
from codegraph_incremental.infrastructure.lock import ProjectLock
from codegraph_incremental.infrastructure.source_repository import SourceRepository
from codegraph_incremental.infrastructure.subprocess_compiler import SubprocessCompiler

__all__ = [
    "ArtifactRecord",
    "ArtifactStore",
    "FingerprintRecord",
    "FingerprintStoreDocument",
    "JsonFingerprintStore",
    "ProjectLock",
    "SourceRepository",
    "StoredDeclaration",
    "SubprocessCompiler",
]
