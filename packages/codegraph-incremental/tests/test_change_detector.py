"""
Change Detector tests

Fingerprints on disk vs. records in the fingerprint store.
"""

import os
from datetime import datetime, timezone

import pytest

from codegraph_incremental.application.change_detector import ChangeDetector
from codegraph_incremental.config import FingerprintStrategy
from codegraph_incremental.infrastructure.artifact_store import ArtifactRecord, ArtifactStore
from codegraph_incremental.infrastructure.fingerprint_store import FingerprintRecord, FingerprintStoreDocument
from codegraph_incremental.infrastructure.source_repository import SourceRepository
from tests.fakes import touch_source, write_sources

COMPILED_AT = datetime(2024, 1, 1, tzinfo=timezone.utc)


def snapshot(sources, artifacts_by_path=None) -> FingerprintStoreDocument:
    """Store document that matches ``sources`` exactly."""
    artifacts_by_path = artifacts_by_path or {}
    return FingerprintStoreDocument(
        compiler_version="1.0",
        options_hash="x",
        records={
            path: FingerprintRecord(
                path=path,
                fingerprint=source.fingerprint,
                artifacts=artifacts_by_path.get(path, []),
                compiled_at=COMPILED_AT,
            )
            for path, source in sources.items()
        },
    )


@pytest.fixture
def repo_dir(tmp_path):
    directory = tmp_path / "contracts"
    write_sources(directory, {"A.sol": "contract A {}\n", "B.sol": "contract B is A {}\n"})
    return directory


@pytest.mark.unit
class TestChangeDetector:
    """Initial dirty set classification"""

    def test_no_record_is_added(self, repo_dir):
        sources = SourceRepository(repo_dir).load()

        changes = ChangeDetector().detect(sources, FingerprintStoreDocument())

        assert changes.added == {"A.sol", "B.sol"}
        assert changes.dirty == {"A.sol", "B.sol"}
        assert changes.modified == set()

    def test_unchanged_sources_are_clean(self, repo_dir):
        sources = SourceRepository(repo_dir).load()

        changes = ChangeDetector().detect(sources, snapshot(sources))

        assert changes.is_empty()
        assert changes.dirty == set()

    def test_modified_content_detected(self, repo_dir):
        repository = SourceRepository(repo_dir)
        document = snapshot(repository.load())

        touch_source(repo_dir, "A.sol")
        changes = ChangeDetector().detect(repository.load(), document)

        assert changes.modified == {"A.sol"}
        assert changes.stale == {"A.sol"}
        assert changes.dirty == {"A.sol"}

    def test_identical_rewrite_is_not_a_change_by_content(self, repo_dir):
        """Content hash ignores a rewrite that leaves the bytes unchanged"""
        repository = SourceRepository(repo_dir)
        document = snapshot(repository.load())

        (repo_dir / "A.sol").write_text("contract A {}\n", encoding="utf-8")
        changes = ChangeDetector().detect(repository.load(), document)

        assert changes.is_empty()

    def test_identical_rewrite_is_a_change_by_mtime(self, repo_dir):
        repository = SourceRepository(repo_dir, strategy=FingerprintStrategy.MTIME)
        document = snapshot(repository.load())

        path = repo_dir / "A.sol"
        stat = path.stat()
        os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
        changes = ChangeDetector().detect(repository.load(), document)

        assert changes.modified == {"A.sol"}

    def test_strategy_switch_invalidates_every_file(self, repo_dir):
        document = snapshot(SourceRepository(repo_dir).load())

        sources = SourceRepository(repo_dir, strategy=FingerprintStrategy.MTIME).load()
        changes = ChangeDetector().detect(sources, document)

        assert changes.modified == {"A.sol", "B.sol"}

    def test_record_without_file_is_deleted(self, repo_dir):
        repository = SourceRepository(repo_dir)
        document = snapshot(repository.load())

        (repo_dir / "B.sol").unlink()
        changes = ChangeDetector().detect(repository.load(), document)

        assert changes.deleted == {"B.sol"}
        assert "B.sol" not in changes.dirty
        assert not changes.is_empty()

    def test_missing_artifact_marks_file_dirty(self, repo_dir, tmp_path):
        """Given: fingerprints match / When: B's artifact vanished / Then: B is dirty"""
        artifact_store = ArtifactStore(tmp_path / "build")
        artifact_store.write(ArtifactRecord(contract_name="A", source_path="A.sol", updated_at=COMPILED_AT))
        sources = SourceRepository(repo_dir).load()
        document = snapshot(sources, {"A.sol": ["A"], "B.sol": ["B"]})

        changes = ChangeDetector(artifact_store).detect(sources, document)

        assert changes.missing_artifacts == {"B.sol"}
        assert changes.dirty == {"B.sol"}
        assert changes.stale == set()

    def test_artifact_verification_can_be_disabled(self, repo_dir, tmp_path):
        artifact_store = ArtifactStore(tmp_path / "build")
        sources = SourceRepository(repo_dir).load()
        document = snapshot(sources, {"A.sol": ["A"]})

        changes = ChangeDetector(artifact_store, verify_artifacts=False).detect(sources, document)

        assert changes.is_empty()


@pytest.mark.unit
class TestSourceRepository:
    """Source discovery"""

    def test_relative_posix_paths(self, tmp_path):
        directory = tmp_path / "contracts"
        write_sources(directory / "tokens", {"Token.sol": "contract Token {}\n"})
        write_sources(directory, {"Root.sol": "contract Root {}\n", "notes.txt": "ignored"})

        sources = SourceRepository(directory).load()

        assert set(sources) == {"Root.sol", "tokens/Token.sol"}
        assert sources["Root.sol"].fingerprint.startswith("sha256:")

    def test_missing_sources_dir_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SourceRepository(tmp_path / "nope").load()
