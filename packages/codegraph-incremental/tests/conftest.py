"""
Incremental build test fixtures
"""

from pathlib import Path

import pytest

from codegraph_incremental.application.incremental_compiler import IncrementalCompiler
from codegraph_incremental.config import IncrementalBuildConfig, LockConfig, PathsConfig
from tests.fakes import INHERITANCE_SOURCES, FakeClock, FakeCompiler, write_sources


@pytest.fixture
def project_dir(tmp_path) -> Path:
    """Inheritance project on disk"""
    root = tmp_path / "project"
    write_sources(root / "contracts", INHERITANCE_SOURCES)
    return root


@pytest.fixture
def sources_dir(project_dir) -> Path:
    return project_dir / "contracts"


@pytest.fixture
def build_dir(project_dir) -> Path:
    return project_dir / "build" / "contracts"


@pytest.fixture
def build_config(project_dir) -> IncrementalBuildConfig:
    return IncrementalBuildConfig(
        paths=PathsConfig(project_root=project_dir),
        lock=LockConfig(timeout_seconds=0),
    )


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def incremental(fake_compiler, build_config, clock) -> IncrementalCompiler:
    return IncrementalCompiler(fake_compiler, build_config, clock=clock)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (filesystem, subprocess)")
