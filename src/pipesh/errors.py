"""Application-level exception types for pipesh."""

from __future__ import annotations


class PipeshError(Exception):
    """Base exception for pipesh."""


class ConfigurationError(PipeshError):
    """Raised when settings cannot be loaded or fail validation."""


class ExecutionError(PipeshError):
    """Base exception for failures while realising a pipeline stage."""


class RedirectError(ExecutionError):
    """Raised when a redirection target cannot be opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SpawnError(ExecutionError):
    """Raised when a stage's process cannot be created."""

    def __init__(self, argv: list[str], reason: str) -> None:
        super().__init__(f"{argv[0] if argv else '?'}: {reason}")
        self.argv = argv
        self.reason = reason
