"""Project source discovery (read-only)."""

from pathlib import Path

from codegraph_incremental.config import FingerprintStrategy
from codegraph_incremental.domain.models import SourceFile
from codegraph_incremental.infrastructure.fingerprint import compute_fingerprint
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class SourceRepository:
    """
    Collects the project's source files and fingerprints them.

    Paths are reported relative to ``sources_dir`` in POSIX form so the
    fingerprint store stays portable across machines.
    """

    def __init__(
        self,
        sources_dir: Path,
        globs: list[str] | None = None,
        strategy: FingerprintStrategy = FingerprintStrategy.CONTENT_HASH,
    ):
        self.sources_dir = sources_dir
        self.globs = globs or ["**/*.sol"]
        self.strategy = strategy

    def discover(self) -> list[Path]:
        if not self.sources_dir.exists():
            raise FileNotFoundError(f"Sources directory not found: {self.sources_dir}")

        found: set[Path] = set()
        for pattern in self.globs:
            found.update(p for p in self.sources_dir.glob(pattern) if p.is_file())
        return sorted(found)

    def load(self) -> dict[str, SourceFile]:
        """{relative_path: SourceFile} for every source currently present."""
        sources: dict[str, SourceFile] = {}
        for file_path in self.discover():
            rel_path = file_path.relative_to(self.sources_dir).as_posix()
            content = file_path.read_text(encoding="utf-8")
            sources[rel_path] = SourceFile(
                path=rel_path,
                content=content,
                fingerprint=compute_fingerprint(file_path, content, self.strategy),
            )

        logger.debug("sources_loaded", count=len(sources), strategy=self.strategy.value)
        return sources
