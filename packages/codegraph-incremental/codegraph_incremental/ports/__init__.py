"""Incremental build ports."""

from .protocols import ClockPort, CompilerPort

__all__ = ["ClockPort", "CompilerPort"]
