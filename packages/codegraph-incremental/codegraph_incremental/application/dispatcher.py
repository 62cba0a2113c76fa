"""
Compile Dispatcher

Exactly one external compiler call per compile request, for the grouped
dirty file set. Any failure (diagnostic, timeout, incomplete output) is
raised before anything is written.
"""

from collections.abc import Collection, Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from codegraph_incremental.domain.models import CompilerOutput, SourceFile
from codegraph_incremental.errors import (
    CompileDiagnosticError,
    CompileTimeoutError,
    IncompleteCompilerOutputError,
)
from codegraph_incremental.observability import get_logger
from codegraph_incremental.ports import CompilerPort

logger = get_logger(__name__)


class CompileDispatcher:
    """
    Example:
        dispatcher = CompileDispatcher(compiler, timeout_seconds=60)
        output = dispatcher.dispatch({"Root.sol"}, sources, options={})
        if output is None:
            ...  # nothing to compile
    """

    def __init__(self, compiler: CompilerPort, timeout_seconds: float | None = None):
        self.compiler = compiler
        self.timeout_seconds = timeout_seconds

    def dispatch(
        self,
        files: Collection[str],
        sources: Mapping[str, SourceFile],
        options: Mapping[str, Any],
    ) -> CompilerOutput | None:
        """
        Submit ``files`` to the compiler.

        Returns:
            Compiler output restricted to the submitted files, or None when
            there is nothing to compile (the compiler is not invoked)

        Raises:
            CompileDiagnosticError: The compiler reported errors
            CompileTimeoutError: No answer within ``timeout_seconds``
            IncompleteCompilerOutputError: Output lacks a submitted file
        """
        if not files:
            logger.info("compile_skipped", reason="no_dirty_files")
            return None

        payload = {path: sources[path].content for path in sorted(files)}
        logger.info("compile_dispatched", files=len(payload))

        output = self._invoke(payload, options)

        if output.errors:
            for diagnostic in output.errors:
                logger.error("compile_diagnostic", path=diagnostic.path, message=diagnostic.message)
            raise CompileDiagnosticError(output.errors)

        missing = sorted(set(payload) - set(output.units))
        if missing:
            raise IncompleteCompilerOutputError(missing)

        extra = sorted(set(output.units) - set(payload))
        if extra:
            logger.warning("compile_output_ignored", files=extra)
            output.units = {path: units for path, units in output.units.items() if path in payload}

        return output

    def _invoke(self, payload: dict[str, str], options: Mapping[str, Any]) -> CompilerOutput:
        if self.timeout_seconds is None:
            return self.compiler.compile(payload, options)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="compile")
        future = executor.submit(self.compiler.compile, payload, options)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError as e:
            logger.error("compile_timeout", timeout_seconds=self.timeout_seconds)
            raise CompileTimeoutError(self.timeout_seconds) from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
