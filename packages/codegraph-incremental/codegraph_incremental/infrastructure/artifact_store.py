"""
Artifact Store

One JSON file per declaration, keyed by declaration name, in the build
directory. ``updatedAt`` changes only when the declaration's file is
recompiled; artifacts of untouched files are never opened.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from codegraph_incremental.infrastructure.atomic_writer import write_json_atomic

ARTIFACT_SCHEMA_VERSION = 1


class ArtifactRecord(BaseModel):
    """Compiled output of one declaration."""

    model_config = ConfigDict(populate_by_name=True)

    contract_name: str = Field(alias="contractName")
    source_path: str = Field(alias="sourcePath")
    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")
    compiler: dict[str, str] = Field(default_factory=dict)
    artifact: dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(alias="updatedAt")
    schema_version: int = Field(default=ARTIFACT_SCHEMA_VERSION, alias="schemaVersion")


class ArtifactStore:
    """
    Build directory artifact files.

    Usage:
        store = ArtifactStore(Path("build/contracts"))
        store.write(record)
        store.read("Root").updated_at
    """

    SUFFIX = ".json"

    def __init__(self, build_dir: Path):
        self.build_dir = build_dir

    def path_for(self, name: str) -> Path:
        return self.build_dir / f"{name}{self.SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def write(self, record: ArtifactRecord) -> Path:
        path = self.path_for(record.contract_name)
        write_json_atomic(path, record.model_dump(mode="json", by_alias=True))
        return path

    def read(self, name: str) -> ArtifactRecord:
        return ArtifactRecord.model_validate_json(self.path_for(name).read_text(encoding="utf-8"))

    def remove(self, name: str) -> bool:
        try:
            self.path_for(name).unlink()
        except FileNotFoundError:
            return False
        return True

    def list_names(self) -> list[str]:
        """Names of all artifacts currently in the build directory."""
        if not self.build_dir.exists():
            return []
        return sorted(p.stem for p in self.build_dir.glob(f"*{self.SUFFIX}") if not p.name.startswith("."))
