"""
Fingerprint Store

One JSON document per project, one record per source path:
last-known fingerprint, the declarations the file defined (cached
dependency metadata) and the artifacts it produced.

Records are created on the first successful compile of a file, overwritten
on each later compile that includes it, and removed only when the file
leaves the project.
"""

import json
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from codegraph_incremental.domain.models import Declaration
from codegraph_incremental.errors import StoreCorruptionError
from codegraph_incremental.infrastructure.atomic_writer import write_json_atomic
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)

STORE_SCHEMA_VERSION = 1


class StoredDeclaration(BaseModel):
    """Cached compiler metadata for one declaration."""

    model_config = ConfigDict(extra="forbid")

    name: str
    depends_on: list[str] = Field(default_factory=list)


class FingerprintRecord(BaseModel):
    """Persisted state of one source file."""

    model_config = ConfigDict(extra="forbid")

    path: str
    fingerprint: str
    declarations: list[StoredDeclaration] = Field(default_factory=list)
    artifacts: list[str] = Field(default_factory=list)
    compiled_at: datetime

    def to_declarations(self) -> list[Declaration]:
        return [Declaration(d.name, self.path, tuple(d.depends_on)) for d in self.declarations]


class FingerprintStoreDocument(BaseModel):
    """Whole-project fingerprint state."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int = STORE_SCHEMA_VERSION
    compiler_version: str | None = None
    options_hash: str | None = None
    records: dict[str, FingerprintRecord] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.records

    def cached_declarations(self) -> dict[str, list[Declaration]]:
        """{source_path: [Declaration]} from the previous successful run."""
        return {path: record.to_declarations() for path, record in self.records.items()}


class JsonFingerprintStore:
    """
    JSON file-based fingerprint store.

    Usage:
        store = JsonFingerprintStore(build_dir / ".fingerprints.json")
        document = store.load()
        ...
        store.save(document)
    """

    def __init__(self, path: Path):
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> FingerprintStoreDocument:
        """
        Load the store document.

        Returns:
            Empty document when no store exists yet

        Raises:
            StoreCorruptionError: Unreadable file, invalid JSON or schema mismatch
        """
        if not self.path.exists():
            return FingerprintStoreDocument()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StoreCorruptionError(f"Cannot read fingerprint store: {e}", path=str(self.path)) from e

        if not isinstance(data, dict):
            raise StoreCorruptionError("Fingerprint store is not a JSON object", path=str(self.path))

        version = data.get("schema_version")
        if version != STORE_SCHEMA_VERSION:
            raise StoreCorruptionError(
                f"Fingerprint store schema {version!r} != {STORE_SCHEMA_VERSION}",
                path=str(self.path),
                schema_version=version,
            )

        try:
            document = FingerprintStoreDocument.model_validate(data)
        except ValidationError as e:
            raise StoreCorruptionError(
                f"Fingerprint store failed validation: {e.error_count()} error(s)",
                path=str(self.path),
            ) from e

        logger.debug("fingerprint_store_loaded", path=str(self.path), records=len(document.records))
        return document

    def save(self, document: FingerprintStoreDocument) -> None:
        """Persist the document (temp file + rename)."""
        write_json_atomic(self.path, document.model_dump(mode="json"))
        logger.debug("fingerprint_store_saved", path=str(self.path), records=len(document.records))

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True
