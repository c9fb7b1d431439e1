"""Pipeline execution.

Every stage of a line is spawned with its pipes pre-wired before any wait
happens, so a producer can never block on a full pipe whose consumer has not
been created yet.
"""

from __future__ import annotations

import errno
import os
import subprocess
import sys
from dataclasses import dataclass, field

from loguru import logger

from pipesh.builtins import BuiltinTable, default_builtins
from pipesh.errors import ExecutionError, RedirectError, SpawnError
from pipesh.jobs import JobRegistry
from pipesh.lexer import WORD_CHARS
from pipesh.parser import MAX_ARGUMENTS, Command, CommandFlag, Pipeline, parse_pipeline

EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127

_NOT_FOUND_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR})
_NOT_EXECUTABLE_ERRNOS = frozenset({errno.EACCES, errno.EPERM, errno.ENOEXEC, errno.EISDIR})


@dataclass
class StageResult:
    """Outcome of one stage."""

    command: Command
    pid: int | None = None
    returncode: int | None = None
    background: bool = False
    builtin: bool = False


_Child = tuple[StageResult, subprocess.Popen[bytes]]


@dataclass
class PipelineResult:
    """Outcome of one input line."""

    pipeline: Pipeline
    stages: list[StageResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    exit_requested: bool = False
    exit_status: int = 0

    @property
    def diagnostics(self) -> list[str]:
        return [diagnostic.render() for diagnostic in self.pipeline.diagnostics]

    @property
    def returncode(self) -> int | None:
        for stage in reversed(self.stages):
            if stage.returncode is not None:
                return stage.returncode
        return None

    @property
    def status(self) -> int:
        """Shell-style exit status for the whole line."""
        if not self.pipeline.valid:
            return 2
        if self.exit_requested:
            return self.exit_status
        returncode = self.returncode
        if returncode is None:
            return 1 if self.errors else 0
        if returncode < 0:
            return 128 - returncode
        return returncode


class PipelineExecutor:
    """Parses a line and realises it as a chain of child processes."""

    def __init__(
        self,
        jobs: JobRegistry | None = None,
        builtins: BuiltinTable | None = None,
        *,
        max_arguments: int = MAX_ARGUMENTS,
        word_chars: frozenset[str] = WORD_CHARS,
    ) -> None:
        self.jobs = jobs if jobs is not None else JobRegistry()
        self.builtins = builtins if builtins is not None else default_builtins()
        self._max_arguments = max_arguments
        self._word_chars = word_chars

    def parse(self, buffer: str, offset: int = 0) -> Pipeline:
        return parse_pipeline(buffer, offset, max_arguments=self._max_arguments, word_chars=self._word_chars)

    def run_pipeline(
        self,
        buffer: str,
        offset: int = 0,
        *,
        stdin: int | None = None,
        stdout: int | None = None,
    ) -> PipelineResult:
        """Execute the line in `buffer` from `offset`.

        `stdin` and `stdout` are optional descriptors for the outer ends of the
        pipeline; they stay owned by the caller. A line with any invalid stage
        runs nothing.
        """

        pipeline = self.parse(buffer, offset)
        result = PipelineResult(pipeline=pipeline)
        if not pipeline.valid:
            logger.debug("pipeline.rejected diagnostics={}", len(pipeline.diagnostics))
            return result
        if pipeline.is_empty:
            return result

        foreground = self._spawn_all(pipeline, result, stdin=stdin, stdout=stdout)
        try:
            for stage, process in foreground:
                stage.returncode = process.wait()
                logger.debug("pipeline.exit pid={} returncode={}", stage.pid, stage.returncode)
        except KeyboardInterrupt:
            # No foreground child may outlive the line, even one ignoring SIGINT.
            for stage, process in foreground:
                if process.poll() is None:
                    process.kill()
                stage.returncode = process.wait()
            result.errors.append("interrupted")
            logger.info("pipeline.interrupted stages={}", len(foreground))
        return result

    def _spawn_all(
        self,
        pipeline: Pipeline,
        result: PipelineResult,
        *,
        stdin: int | None,
        stdout: int | None,
    ) -> list[_Child]:
        foreground: list[_Child] = []
        # Read end of the previous stage's pipe; owned here until handed off.
        upstream: int | None = None
        sys.stdout.flush()
        try:
            for command in pipeline.stages:
                stage = StageResult(command=command, background=command.has(CommandFlag.BACKGROUND))
                read_end = write_end = None
                try:
                    if command.has(CommandFlag.HAS_PIPE_OUT):
                        read_end, write_end = _open_pipe(command.argv)
                    process = self._start_stage(
                        command,
                        stage,
                        result,
                        stdin=upstream if upstream is not None else stdin,
                        stdout=write_end if write_end is not None else stdout,
                    )
                except ExecutionError as exc:
                    result.errors.append(str(exc))
                    logger.info("pipeline.abandoned stage={!r} error={}", command.source, exc)
                    if read_end is not None:
                        os.close(read_end)
                    return foreground
                finally:
                    if write_end is not None:
                        os.close(write_end)
                    if upstream is not None:
                        os.close(upstream)
                        upstream = None

                result.stages.append(stage)
                upstream = read_end
                if process is None:
                    continue
                if stage.background:
                    self.jobs.track(process, command.source)
                else:
                    foreground.append((stage, process))
        finally:
            if upstream is not None:
                os.close(upstream)
        return foreground

    def _start_stage(
        self,
        command: Command,
        stage: StageResult,
        result: PipelineResult,
        *,
        stdin: int | None,
        stdout: int | None,
    ) -> subprocess.Popen[bytes] | None:
        argv = command.argv
        if not argv:
            return None

        builtin = self.builtins.get(argv[0])
        if builtin is not None:
            stage.builtin = True
            outcome = builtin.invoke(argv)
            stage.returncode = outcome.status
            if outcome.error:
                result.errors.append(outcome.error)
            if outcome.exit_requested:
                result.exit_requested = True
                result.exit_status = outcome.status
            return None

        opened: list[int] = []
        try:
            # Redirections take precedence over pipe wiring.
            in_path = command.redirect_in_path
            if in_path is not None:
                stdin = _open_redirect(in_path, os.O_RDONLY, opened)
            out_path = command.redirect_out_path
            if out_path is not None:
                stdout = _open_redirect(out_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, opened)
            return self._spawn(argv, stage, result, stdin=stdin, stdout=stdout)
        finally:
            for fd in opened:
                os.close(fd)

    @staticmethod
    def _spawn(
        argv: list[str],
        stage: StageResult,
        result: PipelineResult,
        *,
        stdin: int | None,
        stdout: int | None,
    ) -> subprocess.Popen[bytes] | None:
        try:
            process = subprocess.Popen(argv, stdin=stdin, stdout=stdout)  # noqa: S603
        except OSError as exc:
            if exc.errno in _NOT_FOUND_ERRNOS:
                stage.returncode = EXIT_NOT_FOUND
                result.errors.append(f"{argv[0]}: command not found")
                return None
            if exc.errno in _NOT_EXECUTABLE_ERRNOS:
                stage.returncode = EXIT_NOT_EXECUTABLE
                result.errors.append(f"{argv[0]}: cannot execute: {exc.strerror}")
                return None
            raise SpawnError(argv, exc.strerror or str(exc)) from exc
        except subprocess.SubprocessError as exc:
            raise SpawnError(argv, str(exc)) from exc

        stage.pid = process.pid
        logger.debug("pipeline.spawn pid={} argv={}", process.pid, argv)
        return process


def _open_redirect(path: str, flags: int, opened: list[int]) -> int:
    try:
        fd = os.open(path, flags, 0o666)
    except OSError as exc:
        raise RedirectError(path, exc.strerror or str(exc)) from exc
    opened.append(fd)
    return fd


def _open_pipe(argv: list[str]) -> tuple[int, int]:
    try:
        return os.pipe()
    except OSError as exc:
        raise SpawnError(argv, f"cannot create pipe: {exc.strerror or exc}") from exc
