"""
Incremental Build Ports

외부 협력자(컴파일러, 저장소)의 포트(인터페이스) 정의
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Protocol

from ..domain.models import CompilerOutput


class CompilerPort(Protocol):
    """
    외부 컴파일러 포트

    Single synchronous capability: submit sources, get per-file declarations
    with their dependency names and artifacts, or diagnostics.
    """

    @property
    def version(self) -> str:
        """Compiler version (a change forces a full rebuild)"""
        ...

    def compile(self, sources: Mapping[str, str], options: Mapping[str, Any]) -> CompilerOutput:
        """Compile the given {path: content} sources"""
        ...


class ClockPort(Protocol):
    """Source of artifact ``updatedAt`` timestamps"""

    def __call__(self) -> datetime: ...
