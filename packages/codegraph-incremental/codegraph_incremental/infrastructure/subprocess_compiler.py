"""
Subprocess Compiler Adapter

Runs an external compiler command speaking JSON:

    stdin:  {"sources": {path: content}, "options": {...}}
    stdout: {"compilerVersion": "...",
             "units": {path: [{"name": ..., "dependsOn": [...], "artifact": {...}}]},
             "diagnostics": [{"path": ..., "message": ..., "severity": "error"}]}

``<command> --version`` prints the compiler version.
"""

import json
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from codegraph_incremental.domain.models import CompileDiagnostic, CompiledUnit, CompilerOutput
from codegraph_incremental.errors import CompilerInvocationError, CompileTimeoutError
from codegraph_incremental.observability import get_logger

logger = get_logger(__name__)


class _WireUnit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    depends_on: list[str] = Field(default_factory=list, alias="dependsOn")
    artifact: dict[str, Any] = Field(default_factory=dict)


class _WireDiagnostic(BaseModel):
    path: str = "<unknown>"
    message: str
    severity: str = "error"


class _WireResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    compiler_version: str = Field(alias="compilerVersion")
    units: dict[str, list[_WireUnit]] = Field(default_factory=dict)
    diagnostics: list[_WireDiagnostic] = Field(default_factory=list)


def parse_compiler_response(raw: str) -> CompilerOutput:
    """
    Parse the compiler's JSON response.

    Raises:
        CompilerInvocationError: Response is not valid JSON or has the wrong shape
    """
    try:
        response = _WireResponse.model_validate_json(raw)
    except ValidationError as e:
        raise CompilerInvocationError(f"Malformed compiler response: {e.error_count()} error(s)") from e

    return CompilerOutput(
        compiler_version=response.compiler_version,
        units={
            path: [CompiledUnit(name=u.name, depends_on=list(u.depends_on), artifact=dict(u.artifact)) for u in units]
            for path, units in response.units.items()
        },
        diagnostics=[
            CompileDiagnostic(path=d.path, message=d.message, severity=d.severity) for d in response.diagnostics
        ],
    )


class SubprocessCompiler:
    """
    CompilerPort implementation backed by an external process.

    Example:
        compiler = SubprocessCompiler(["solc-json"], timeout_seconds=120)
        output = compiler.compile({"Root.sol": "..."}, {"optimizer": False})
    """

    def __init__(self, command: list[str], timeout_seconds: float | None = None, cwd: Path | None = None):
        if not command:
            raise CompilerInvocationError("Compiler command is empty")
        self.command = list(command)
        self.timeout_seconds = timeout_seconds
        self.cwd = cwd
        self._version: str | None = None

    @property
    def version(self) -> str:
        if self._version is None:
            proc = self._run([*self.command, "--version"], stdin=None)
            if proc.returncode != 0:
                raise CompilerInvocationError(
                    "Compiler --version failed",
                    returncode=proc.returncode,
                    stderr=proc.stderr.strip()[-2000:],
                )
            self._version = proc.stdout.strip()
        return self._version

    def compile(self, sources: Mapping[str, str], options: Mapping[str, Any]) -> CompilerOutput:
        request = json.dumps({"sources": dict(sources), "options": dict(options)})
        logger.debug("compiler_process_started", command=self.command[0], files=len(sources))

        proc = self._run(self.command, stdin=request)
        stdout = proc.stdout.strip()

        if proc.returncode != 0 and not stdout:
            raise CompilerInvocationError(
                f"Compiler exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr=proc.stderr.strip()[-2000:],
            )

        output = parse_compiler_response(stdout)
        if proc.returncode != 0 and not output.errors:
            raise CompilerInvocationError(
                f"Compiler exited with status {proc.returncode} without diagnostics",
                returncode=proc.returncode,
                stderr=proc.stderr.strip()[-2000:],
            )
        return output

    def _run(self, argv: list[str], stdin: str | None) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                argv,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                cwd=self.cwd,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CompileTimeoutError(self.timeout_seconds or 0.0, command=argv[0]) from e
        except OSError as e:
            raise CompilerInvocationError(f"Cannot start compiler: {e}", command=argv[0]) from e
