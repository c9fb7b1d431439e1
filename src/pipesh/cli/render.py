"""CLI renderer for pipesh."""

from __future__ import annotations

import sys
import threading
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape

from pipesh.jobs import BackgroundJob


class Renderer:
    """Terminal I/O: rich for output, prompt_toolkit for line input."""

    def __init__(
        self,
        prompt: str = ">>> ",
        history_file: Path | None = None,
        *,
        interactive: bool | None = None,
    ) -> None:
        self.console: Console = Console(highlight=False)
        self._prompt = prompt
        self._history_file = history_file
        self._interactive = sys.stdin.isatty() if interactive is None else interactive
        self._prompt_session: PromptSession[str] | None = None
        self._print_lock = threading.Lock()

    @property
    def interactive(self) -> bool:
        return self._interactive

    def info(self, message: str) -> None:
        """Render an info message."""
        self._print(escape(message))

    def error(self, message: str) -> None:
        """Render an error message."""
        self._print(f"[bold red]Error:[/bold red] {escape(message)}")

    def diagnostic(self, message: str) -> None:
        """Render a parse diagnostic."""
        self._print(f"[red]{escape(message)}[/red]")

    def job_finished(self, job: BackgroundJob) -> None:
        """Report a reaped background child by pid."""
        self._print(escape(f"[{job.pid}]"))

    def get_user_input(self) -> str:
        """Read one line, raising EOFError at end of input."""
        if not self._interactive:
            with self._print_lock:
                sys.stdout.write(self._prompt)
                sys.stdout.flush()
            line = sys.stdin.readline()
            if not line:
                raise EOFError
            return line
        with patch_stdout(raw=True):
            return self._session().prompt(self._prompt)

    def _session(self) -> PromptSession[str]:
        if self._prompt_session is None:
            history = FileHistory(str(self._history_file)) if self._history_file else InMemoryHistory()
            self._prompt_session = PromptSession(history=history)
        return self._prompt_session

    def _print(self, message: str) -> None:
        with self._print_lock:
            self.console.print(message)
