"""CLI main module for pipesh."""

from __future__ import annotations

import typer

from pipesh.config import ShellSettings, get_settings
from pipesh.errors import ConfigurationError
from pipesh.executor import PipelineExecutor
from pipesh.jobs import JobRegistry
from pipesh.logging_utils import configure_logging

from .live import render_result, run_shell
from .render import Renderer

app = typer.Typer(
    name="pipesh",
    help="A small pipeline shell.",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback(invoke_without_command=True)
def main_callback(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        shell()


def _load_settings() -> ShellSettings:
    try:
        return get_settings()
    except ConfigurationError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(2) from exc


def build_executor(settings: ShellSettings) -> PipelineExecutor:
    return PipelineExecutor(
        JobRegistry(),
        max_arguments=settings.max_arguments,
        word_chars=settings.word_class,
    )


@app.command()
def shell() -> None:
    """Start the interactive shell."""
    settings = _load_settings()
    configure_logging(settings.log_level, profile="interactive")
    executor = build_executor(settings)
    renderer = Renderer(prompt=settings.prompt, history_file=settings.history_file)
    raise typer.Exit(run_shell(executor, renderer))


@app.command()
def run(line: str = typer.Argument(..., help="Command line to execute")) -> None:
    """Execute one command line and exit with its status."""
    settings = _load_settings()
    configure_logging(settings.log_level)
    executor = build_executor(settings)
    result = executor.run_pipeline(line)
    render_result(Renderer(interactive=False), result)
    raise typer.Exit(result.status)


if __name__ == "__main__":
    app()
