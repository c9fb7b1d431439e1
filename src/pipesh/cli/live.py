"""Read-execute loop."""

from __future__ import annotations

from loguru import logger

from ..executor import PipelineExecutor, PipelineResult
from .render import Renderer


def run_shell(executor: PipelineExecutor, renderer: Renderer) -> int:
    """Run the loop until end of input or `exit`; returns the exit status."""

    executor.jobs.set_listener(renderer.job_finished)
    try:
        return _run_input_loop(executor, renderer)
    finally:
        executor.jobs.set_listener(None)


def render_result(renderer: Renderer, result: PipelineResult) -> None:
    for diagnostic in result.diagnostics:
        renderer.diagnostic(diagnostic)
    for error in result.errors:
        renderer.error(error)


def _run_input_loop(executor: PipelineExecutor, renderer: Renderer) -> int:
    while True:
        try:
            line = renderer.get_user_input()
        except KeyboardInterrupt:
            continue
        except EOFError:
            if renderer.interactive:
                renderer.info("")
            return 0
        if not line.strip():
            continue

        try:
            result = executor.run_pipeline(line)
        except KeyboardInterrupt:
            renderer.info("")
            continue
        except Exception as exc:
            logger.exception("shell.line.error line={!r}", line)
            renderer.error(f"unexpected error: {exc!s}")
            continue

        render_result(renderer, result)
        if result.exit_requested:
            return result.exit_status
