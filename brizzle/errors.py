"""
Brizzle Errors - Exception hierarchy shared by the CLI and the core.
"""

from __future__ import annotations


class BrizzleError(Exception):
    """Base class for errors reported to the user by the CLI."""


class ValidationError(BrizzleError, ValueError):
    """Bad model name or field definition. Raised before any file I/O."""


class MappingError(BrizzleError):
    """A (type, dialect) pair has no column mapping. Internal defect."""


class SchemaCorruptionError(BrizzleError):
    """An existing schema file could not be read structurally."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        if path:
            message = f"{path}: {message}"
        super().__init__(message)
