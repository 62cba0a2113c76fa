"""
Centralized configuration for incremental builds

Usage:
    from codegraph_incremental.config import get_config

    config = get_config()
    config.paths.build_dir

    # Override for a specific project
    custom = IncrementalBuildConfig(paths=PathsConfig(project_root=Path("./my-project")))
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from codegraph_incremental.errors import ConfigurationError


class FingerprintStrategy(str, Enum):
    """How a source file's fingerprint is computed"""

    CONTENT_HASH = "content_hash"  # sha256 of the file content
    MTIME = "mtime"  # modification time in nanoseconds


class PathsConfig(BaseModel):
    """Project layout."""

    project_root: Path = Field(default=Path("."))
    """Root directory all other paths are relative to"""

    sources_dir: Path = Field(default=Path("contracts"))
    """Directory holding the source files"""

    source_globs: list[str] = Field(default_factory=lambda: ["**/*.sol"])
    """Glob patterns (relative to sources_dir) selecting source files"""

    build_dir: Path = Field(default=Path("build/contracts"))
    """Directory receiving one artifact file per declaration"""

    store_file: str = Field(default=".fingerprints.json")
    """Fingerprint store file name inside build_dir"""

    lock_file: str = Field(default=".incremental.lock")
    """Project lock file name inside build_dir"""

    def resolve_sources_dir(self) -> Path:
        return (self.project_root / self.sources_dir).resolve()

    def resolve_build_dir(self) -> Path:
        return (self.project_root / self.build_dir).resolve()

    def resolve_store_path(self) -> Path:
        return self.resolve_build_dir() / self.store_file

    def resolve_lock_path(self) -> Path:
        return self.resolve_build_dir() / self.lock_file


class FingerprintConfig(BaseModel):
    """Change detection settings."""

    strategy: FingerprintStrategy = Field(default=FingerprintStrategy.CONTENT_HASH)
    """Fingerprint strategy (mtime treats a rewrite with identical content as a change)"""

    verify_artifacts: bool = Field(default=True)
    """Treat a clean file as dirty when one of its recorded artifacts is missing"""


class CompilerConfig(BaseModel):
    """External compiler settings."""

    command: list[str] = Field(default_factory=list)
    """Command line of the external compiler (JSON on stdin/stdout)"""

    options: dict[str, Any] = Field(default_factory=dict)
    """Project-wide options passed through to the compiler (hashed for invalidation)"""

    timeout_seconds: float = Field(default=300.0, gt=0, le=3600)
    """Timeout for one compiler invocation"""


class LockConfig(BaseModel):
    """Project lock settings."""

    timeout_seconds: float = Field(default=30.0, ge=0, le=3600)
    """How long to wait for another invocation to finish"""

    poll_interval_seconds: float = Field(default=0.1, gt=0, le=10)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO")
    json_format: bool = Field(default=False)


class IncrementalBuildConfig(BaseSettings):
    """
    Root configuration for incremental builds.

    Can be configured via:
    - Environment variables (prefixed with CGI_)
    - Direct instantiation

    Examples:
        CGI_PATHS__BUILD_DIR=out/contracts
        CGI_FINGERPRINT__STRATEGY=mtime
        CGI_COMPILER__TIMEOUT_SECONDS=60
    """

    model_config = SettingsConfigDict(
        env_prefix="CGI_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    paths: PathsConfig = Field(default_factory=PathsConfig)
    fingerprint: FingerprintConfig = Field(default_factory=FingerprintConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(**overrides: Any) -> IncrementalBuildConfig:
    """
    Build a configuration from the environment plus explicit overrides.

    Raises:
        ConfigurationError: If a value fails validation
    """
    try:
        return IncrementalBuildConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError("Invalid incremental build configuration", errors=e.errors()) from e


@lru_cache(maxsize=1)
def get_config() -> IncrementalBuildConfig:
    """
    Get the global configuration instance.

    The configuration is cached for performance.
    To reload, call get_config.cache_clear() first.
    """
    return load_config()
