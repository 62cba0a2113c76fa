"""
Fake Compiler for Testing

In-process CompilerPort understanding a tiny contract syntax:

    library LibraryA { }
    contract Root is Branch { using LibraryA for uint256; }

Reports every declaration with its ``is`` parents and ``using`` libraries
as dependencies. Records each invocation for assertions.
"""

import hashlib
import re
import time
from collections.abc import Mapping
from typing import Any

from codegraph_incremental.domain.models import CompileDiagnostic, CompiledUnit, CompilerOutput

_HEADER = re.compile(r"\b(contract|library|interface)\s+(\w+)(?:\s+is\s+([\w\s,]+?))?\s*\{")
_USING = re.compile(r"\busing\s+(\w+)\s+for\b")


def parse_declarations(source: str) -> list[CompiledUnit]:
    """Declarations in source order with their dependency names."""
    headers = list(_HEADER.finditer(source))
    units = []
    for i, match in enumerate(headers):
        kind, name, parents = match.groups()
        body_end = headers[i + 1].start() if i + 1 < len(headers) else len(source)
        body = source[match.end() : body_end]

        depends_on = [p.strip() for p in (parents or "").split(",") if p.strip()]
        for library in _USING.findall(body):
            if library not in depends_on:
                depends_on.append(library)

        units.append(
            CompiledUnit(
                name=name,
                depends_on=depends_on,
                artifact={
                    "kind": kind,
                    "abi": [],
                    "bytecode": "0x" + hashlib.sha256((name + body).encode()).hexdigest()[:32],
                },
            )
        )
    return units


class FakeCompiler:
    """
    Deterministic fake of the external compiler.

    Usage:
        compiler = FakeCompiler()
        output = compiler.compile({"Root.sol": "contract Root {}"}, {})
        compiler.calls  # [["Root.sol"]]
    """

    def __init__(
        self,
        version: str = "0.8.21+fake",
        delay_seconds: float = 0.0,
        omit_files: set[str] | None = None,
        warnings: dict[str, str] | None = None,
    ):
        self._version = version
        self.delay_seconds = delay_seconds
        self.omit_files = omit_files or set()
        self.warnings = warnings or {}
        self.calls: list[list[str]] = []
        self.options_seen: list[dict[str, Any]] = []

    @property
    def version(self) -> str:
        return self._version

    @version.setter
    def version(self, value: str) -> None:
        self._version = value

    @property
    def last_call(self) -> list[str]:
        return self.calls[-1] if self.calls else []

    def compile(self, sources: Mapping[str, str], options: Mapping[str, Any]) -> CompilerOutput:
        self.calls.append(sorted(sources))
        self.options_seen.append(dict(options))

        if self.delay_seconds:
            time.sleep(self.delay_seconds)

        output = CompilerOutput(compiler_version=self._version)
        for path, content in sources.items():
            if "SYNTAX_ERROR" in content:
                output.diagnostics.append(CompileDiagnostic(path=path, message="ParserError: unexpected token"))
                continue
            if path in self.warnings:
                output.diagnostics.append(CompileDiagnostic(path=path, message=self.warnings[path], severity="warning"))
            if path in self.omit_files:
                continue
            output.units[path] = parse_declarations(content)
        return output
