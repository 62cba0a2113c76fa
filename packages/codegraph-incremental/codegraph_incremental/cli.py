"""
codegraph-incremental CLI

- compile: incremental compile (only what changed, plus its dependents)
- status: show what the next compile would resubmit
- clean: remove the fingerprint store and all artifacts
"""

import json
import shlex
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codegraph_incremental.application.incremental_compiler import IncrementalCompiler
from codegraph_incremental.config import FingerprintStrategy, IncrementalBuildConfig, load_config
from codegraph_incremental.domain.models import BuildSummary, RebuildPlan
from codegraph_incremental.errors import CompileDiagnosticError, ConfigurationError, IncrementalBuildError
from codegraph_incremental.infrastructure.artifact_store import ArtifactStore
from codegraph_incremental.infrastructure.fingerprint_store import JsonFingerprintStore
from codegraph_incremental.infrastructure.lock import ProjectLock
from codegraph_incremental.infrastructure.subprocess_compiler import SubprocessCompiler
from codegraph_incremental.observability import configure_logging

app = typer.Typer(name="codegraph-incremental", help="Incremental compilation cache", add_completion=False)
console = Console()


def _build_config(
    project: Path,
    sources_dir: str | None,
    build_dir: str | None,
    compiler_cmd: str | None,
    strategy: str | None,
    log_level: str | None,
) -> IncrementalBuildConfig:
    base = load_config()
    paths = base.paths.model_copy(update={"project_root": project})
    if sources_dir:
        paths = paths.model_copy(update={"sources_dir": Path(sources_dir)})
    if build_dir:
        paths = paths.model_copy(update={"build_dir": Path(build_dir)})

    compiler = base.compiler
    if compiler_cmd:
        compiler = compiler.model_copy(update={"command": shlex.split(compiler_cmd)})

    fingerprint = base.fingerprint
    if strategy:
        try:
            fingerprint = fingerprint.model_copy(update={"strategy": FingerprintStrategy(strategy)})
        except ValueError as e:
            raise ConfigurationError(f"Unknown fingerprint strategy: {strategy}") from e

    logging_config = base.logging
    if log_level:
        logging_config = logging_config.model_copy(update={"level": log_level.upper()})

    return base.model_copy(
        update={"paths": paths, "compiler": compiler, "fingerprint": fingerprint, "logging": logging_config}
    )


def _create_compiler(config: IncrementalBuildConfig) -> IncrementalCompiler:
    if not config.compiler.command:
        raise ConfigurationError("No compiler command configured (use --compiler or CGI_COMPILER__COMMAND)")
    compiler = SubprocessCompiler(
        config.compiler.command,
        timeout_seconds=config.compiler.timeout_seconds,
        cwd=config.paths.project_root,
    )
    return IncrementalCompiler(compiler, config)


def _print_plan(plan: RebuildPlan) -> None:
    console.print(f"[cyan]{plan.summary()}[/cyan]")
    for path in sorted(plan.files_to_compile):
        console.print(f"  • {path}")
    for path in sorted(plan.changes.deleted):
        console.print(f"  [dim]- {path} (deleted)[/dim]")


def _print_summary(summary: BuildSummary) -> None:
    if not summary.recompiled_files and not summary.artifacts_removed:
        console.print("[green]✅ Up to date, nothing to compile[/green]")
        return

    table = Table(title=f"{summary.strategy.value} rebuild" + (f" ({summary.reason.value})" if summary.reason else ""))
    table.add_column("Source")
    table.add_column("Status")
    for path in summary.recompiled_files:
        table.add_row(path, "dry run" if summary.dry_run else "compiled")
    console.print(table)

    if summary.artifacts_written:
        console.print(f"Artifacts written: {', '.join(summary.artifacts_written)}")
    if summary.artifacts_removed:
        console.print(f"Artifacts removed: {', '.join(summary.artifacts_removed)}")
    for warning in summary.warnings:
        console.print(f"[yellow]⚠️  {warning.path}: {escape(warning.message)}[/yellow]")
    console.print(f"Duration: {summary.duration_ms:.1f}ms")


@app.command()
def compile(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project root"),
    compiler_cmd: str = typer.Option(None, "--compiler", help="Compiler command (JSON on stdin/stdout)"),
    sources_dir: str = typer.Option(None, "--sources-dir", help="Sources directory, relative to project"),
    build_dir: str = typer.Option(None, "--build-dir", help="Artifact directory, relative to project"),
    strategy: str = typer.Option(None, "--fingerprint", help="Fingerprint strategy: content_hash/mtime"),
    all_files: bool = typer.Option(False, "--all", help="Recompile every source file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the plan without compiling"),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON"),
    log_level: str = typer.Option(None, "--log-level", help="Log level"),
):
    """
    Compile only the sources affected by changes since the last build.

    Examples:
        codegraph-incremental compile --compiler "solc-json"
        codegraph-incremental compile --all --json
    """
    try:
        config = _build_config(project, sources_dir, build_dir, compiler_cmd, strategy, log_level)
        configure_logging(config.logging.level, json_format=config.logging.json_format)
        summary = _create_compiler(config).compile(force=all_files, dry_run=dry_run)
    except CompileDiagnosticError as e:
        console.print(f"[red]❌ {escape(e.message)}[/red]")
        for diagnostic in e.diagnostics:
            console.print(f"[red]  {diagnostic.path}: {escape(diagnostic.message)}[/red]")
        raise typer.Exit(1)
    except IncrementalBuildError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        _print_summary(summary)


@app.command()
def status(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project root"),
    compiler_cmd: str = typer.Option(None, "--compiler", help="Compiler command (JSON on stdin/stdout)"),
    sources_dir: str = typer.Option(None, "--sources-dir", help="Sources directory, relative to project"),
    build_dir: str = typer.Option(None, "--build-dir", help="Artifact directory, relative to project"),
    strategy: str = typer.Option(None, "--fingerprint", help="Fingerprint strategy: content_hash/mtime"),
):
    """Show which sources the next compile would resubmit."""
    try:
        config = _build_config(project, sources_dir, build_dir, compiler_cmd, strategy, None)
        configure_logging("WARNING")
        plan = _create_compiler(config).plan()
    except IncrementalBuildError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    _print_plan(plan)


@app.command()
def clean(
    project: Path = typer.Option(Path("."), "--project", "-p", help="Project root"),
    build_dir: str = typer.Option(None, "--build-dir", help="Artifact directory, relative to project"),
):
    """Remove the fingerprint store and every artifact (next compile is a full build)."""
    config = _build_config(project, None, build_dir, None, None, None)
    lock = ProjectLock(
        config.paths.resolve_lock_path(),
        timeout_seconds=config.lock.timeout_seconds,
        poll_interval_seconds=config.lock.poll_interval_seconds,
    )
    artifacts = ArtifactStore(config.paths.resolve_build_dir())
    try:
        with lock:
            removed = [name for name in artifacts.list_names() if artifacts.remove(name)]
            JsonFingerprintStore(config.paths.resolve_store_path()).delete()
    except IncrementalBuildError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✅ Removed {len(removed)} artifact(s)[/green]")


if __name__ == "__main__":
    app()
