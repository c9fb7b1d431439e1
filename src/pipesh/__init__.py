"""pipesh - a small pipeline shell."""

from .executor import PipelineExecutor, PipelineResult
from .jobs import JobRegistry
from .parser import Command, CommandFlag, parse_command, parse_pipeline

__version__ = "0.1.0"

__all__ = [
    "Command",
    "CommandFlag",
    "JobRegistry",
    "PipelineExecutor",
    "PipelineResult",
    "parse_command",
    "parse_pipeline",
]
