"""CLI package for pipesh."""

from .app import app
from .live import run_shell
from .render import Renderer

__all__ = [
    "Renderer",
    "app",
    "run_shell",
]
