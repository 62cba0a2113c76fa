"""Source fingerprints and option hashes."""

import hashlib
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from codegraph_incremental.config import FingerprintStrategy

HASH_PREFIX = "sha256:"
MTIME_PREFIX = "mtime:"


def content_fingerprint(content: str) -> str:
    """sha256 of the file content."""
    return HASH_PREFIX + hashlib.sha256(content.encode("utf-8")).hexdigest()


def mtime_fingerprint(path: Path) -> str:
    """Modification time in nanoseconds."""
    return f"{MTIME_PREFIX}{path.stat().st_mtime_ns}"


def compute_fingerprint(path: Path, content: str, strategy: FingerprintStrategy) -> str:
    """
    Fingerprint a source file.

    The strategy prefix is part of the value, so switching strategies makes
    every stored fingerprint differ and forces a recompile of every file.
    """
    if strategy == FingerprintStrategy.MTIME:
        return mtime_fingerprint(path)
    return content_fingerprint(content)


def options_hash(options: Mapping[str, Any]) -> str:
    """Stable hash of project-wide compiler options."""
    canonical = json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
