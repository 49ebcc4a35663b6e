"""
Exception types for archlens.
"""

from __future__ import annotations


class ArchlensError(Exception):
    """Base class for all archlens errors."""


class ParseError(ArchlensError):
    """
    A single source file could not be parsed.

    Raised by parsers and caught by the scanner, which skips the file
    and keeps going.
    """

    def __init__(self, path: str, reason: str, line: int | None = None) -> None:
        self.path = path
        self.reason = reason
        self.line = line
        location = f"{path}:{line}" if line else path
        super().__init__(f"{location}: {reason}")


class ConfigError(ArchlensError):
    """Configuration file is missing or malformed."""
