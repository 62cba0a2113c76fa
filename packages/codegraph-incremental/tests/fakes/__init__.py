"""Fakes for incremental build tests."""

from tests.fakes.fake_compiler import FakeCompiler, parse_declarations
from tests.fakes.fake_project import (
    DECLARATION_FILES,
    INHERITANCE_SOURCES,
    FakeClock,
    touch_source,
    write_sources,
)

__all__ = [
    "DECLARATION_FILES",
    "INHERITANCE_SOURCES",
    "FakeClock",
    "FakeCompiler",
    "parse_declarations",
    "touch_source",
    "write_sources",
]
