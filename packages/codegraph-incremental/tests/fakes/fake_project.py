"""
Fake project layout for testing

Inheritance project used throughout:

         LibraryA          LeafA
        /                /       \\
    Root --- Branch ---            --- LeafC        SameFile1 --- LeafC
                         \\       /                  SameFile2  (same file)
                           LeafB
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

INHERITANCE_SOURCES = {
    "Root.sol": (
        'import "./Branch.sol";\n'
        'import "./LibraryA.sol";\n\n'
        "contract Root is Branch {\n"
        "    using LibraryA for uint256;\n"
        "}\n"
    ),
    "Branch.sol": 'import "./LeafA.sol";\nimport "./LeafB.sol";\n\ncontract Branch is LeafA, LeafB {\n}\n',
    "LeafA.sol": 'import "./LeafC.sol";\n\ncontract LeafA is LeafC {\n}\n',
    "LeafB.sol": 'import "./LeafC.sol";\n\ncontract LeafB is LeafC {\n}\n',
    "LeafC.sol": "contract LeafC {\n}\n",
    "LibraryA.sol": "library LibraryA {\n}\n",
    "SameFile.sol": 'import "./LeafC.sol";\n\ncontract SameFile1 is LeafC {\n}\n\ncontract SameFile2 {\n}\n',
}

DECLARATION_FILES = {
    "Root": "Root.sol",
    "Branch": "Branch.sol",
    "LeafA": "LeafA.sol",
    "LeafB": "LeafB.sol",
    "LeafC": "LeafC.sol",
    "LibraryA": "LibraryA.sol",
    "SameFile1": "SameFile.sol",
    "SameFile2": "SameFile.sol",
}


class FakeClock:
    """Deterministic clock: every call is one second after the previous."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def write_sources(sources_dir: Path, sources: dict[str, str]) -> None:
    sources_dir.mkdir(parents=True, exist_ok=True)
    for name, content in sources.items():
        (sources_dir / name).write_text(content, encoding="utf-8")


def touch_source(sources_dir: Path, name: str, suffix: str = "\n// touched\n") -> None:
    """Modify a source file so its content fingerprint changes."""
    path = sources_dir / name
    path.write_text(path.read_text(encoding="utf-8") + suffix, encoding="utf-8")
