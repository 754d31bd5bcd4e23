"""Exceptions raised while resolving options and generating a project.

Every error derives from ``ScaffoldError`` so the CLI entry point can map the
whole family to exit code 1 in one place.
"""

from __future__ import annotations

from pathlib import Path


class ScaffoldError(Exception):
    """Base class for every failure the generator reports to the user."""


class ConfigError(ScaffoldError):
    """Raised when a required value is missing or an input is malformed."""


class SetupCancelled(ScaffoldError):
    """Raised when the user declines to continue (e.g. refuses an overwrite)."""

    def __init__(self, message: str = "Setup cancelled") -> None:
        super().__init__(message)


class FileSystemError(ScaffoldError):
    """Raised when reading the template tree or writing the target fails."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class ExternalToolError(ScaffoldError):
    """Raised when an external tool (``git``) fails during API bootstrap."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(f"{tool}: {message}")
