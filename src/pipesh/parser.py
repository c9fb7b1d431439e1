"""Command and pipeline parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Flag, auto

from pipesh.lexer import WORD_CHARS, SimpleKind, Span, TokenTag, next_token

MAX_ARGUMENTS = 32


class CommandFlag(Flag):
    NONE = 0
    HAS_PIPE_OUT = auto()
    BACKGROUND = auto()
    HAS_REDIRECT_IN = auto()
    HAS_REDIRECT_OUT = auto()


@dataclass(frozen=True)
class Diagnostic:
    """A parse error tied to a buffer position."""

    position: int
    message: str
    token: str

    def render(self) -> str:
        return f'<{self.position}>: {self.message}: "{self.token}"'


@dataclass
class Command:
    """One pipeline stage, indexing the buffer it was parsed from."""

    buffer: str
    start: int
    end: int = 0
    arguments: list[Span] = field(default_factory=list)
    flags: CommandFlag = CommandFlag.NONE
    redirect_in: Span | None = None
    redirect_out: Span | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    valid: bool = True

    def has(self, flag: CommandFlag) -> bool:
        return flag in self.flags

    @property
    def argv(self) -> list[str]:
        return [span.text(self.buffer) for span in self.arguments]

    @property
    def program(self) -> str | None:
        if not self.arguments:
            return None
        return self.arguments[0].text(self.buffer)

    @property
    def redirect_in_path(self) -> str | None:
        return self.redirect_in.text(self.buffer) if self.redirect_in is not None else None

    @property
    def redirect_out_path(self) -> str | None:
        return self.redirect_out.text(self.buffer) if self.redirect_out is not None else None

    @property
    def source(self) -> str:
        return self.buffer[self.start : self.end].strip()

    def report(self, position: int, message: str, token: str) -> None:
        self.diagnostics.append(Diagnostic(position=position, message=message, token=token))

    def reject(self, position: int, message: str, token: str) -> None:
        self.report(position, message, token)
        self.valid = False


@dataclass
class Pipeline:
    """Every stage of one input line, in spawn order."""

    buffer: str
    stages: list[Command]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [diagnostic for stage in self.stages for diagnostic in stage.diagnostics]

    @property
    def valid(self) -> bool:
        return all(stage.valid for stage in self.stages)

    @property
    def is_empty(self) -> bool:
        return all(not stage.arguments for stage in self.stages)


def parse_command(
    buffer: str,
    offset: int = 0,
    *,
    max_arguments: int = MAX_ARGUMENTS,
    word_chars: frozenset[str] = WORD_CHARS,
) -> tuple[Command, int]:
    """Parse one stage starting at `offset`.

    Stops after a `|` (setting HAS_PIPE_OUT) or at end of line, and returns
    the offset just past the last consumed token on every path.
    """

    command = Command(buffer=buffer, start=offset)
    overflowed = False
    while True:
        token, offset = next_token(buffer, offset, word_chars)

        if token.is_simple(SimpleKind.END_OF_LINE):
            return _finish(command, offset)

        if token.is_simple(SimpleKind.PIPE):
            command.flags |= CommandFlag.HAS_PIPE_OUT
            return _finish(command, offset)

        if command.has(CommandFlag.BACKGROUND):
            command.reject(token.span.start, "Unexpected token after '&'", token.text(buffer))
            offset, piped = _skip_stage(buffer, offset, word_chars)
            if piped:
                command.flags |= CommandFlag.HAS_PIPE_OUT
            return _finish(command, offset)

        if token.is_simple(SimpleKind.BACKGROUND):
            command.flags |= CommandFlag.BACKGROUND
        elif token.is_simple(SimpleKind.REDIRECT_IN) or token.is_simple(SimpleKind.REDIRECT_OUT):
            target, offset = next_token(buffer, offset, word_chars)
            if target.tag is not TokenTag.IDENTIFIER:
                command.reject(
                    target.span.start,
                    f"Expected file name after '{token.text(buffer)}'. Instead, got",
                    target.text(buffer),
                )
                return _finish(command, _skip_line(buffer, offset, word_chars))
            if token.kind is SimpleKind.REDIRECT_IN:
                command.redirect_in = target.span
                command.flags |= CommandFlag.HAS_REDIRECT_IN
            else:
                command.redirect_out = target.span
                command.flags |= CommandFlag.HAS_REDIRECT_OUT
        elif token.tag is TokenTag.IDENTIFIER:
            if len(command.arguments) < max_arguments:
                command.arguments.append(token.span)
            elif not overflowed:
                overflowed = True
                command.reject(token.span.start, f"Too many arguments (limit {max_arguments})", token.text(buffer))
        else:
            command.report(token.span.start, "Unexpected token", token.text(buffer))


def parse_pipeline(
    buffer: str,
    offset: int = 0,
    *,
    max_arguments: int = MAX_ARGUMENTS,
    word_chars: frozenset[str] = WORD_CHARS,
) -> Pipeline:
    """Parse a whole line into its ordered stages."""

    stages: list[Command] = []
    while True:
        command, offset = parse_command(buffer, offset, max_arguments=max_arguments, word_chars=word_chars)
        stages.append(command)
        if not command.has(CommandFlag.HAS_PIPE_OUT):
            break

    for index, command in enumerate(stages):
        if command.arguments or not command.valid:
            continue
        if command.has(CommandFlag.HAS_PIPE_OUT):
            command.reject(command.end - 1, "Expected command before '|'", SimpleKind.PIPE.value)
        elif index > 0:
            command.reject(command.end, "Expected command after '|'. Instead, got", SimpleKind.END_OF_LINE.value)
    return Pipeline(buffer=buffer, stages=stages)


def _finish(command: Command, offset: int) -> tuple[Command, int]:
    command.end = offset
    return command, offset


def _skip_stage(buffer: str, offset: int, word_chars: frozenset[str]) -> tuple[int, bool]:
    while True:
        token, offset = next_token(buffer, offset, word_chars)
        if token.is_simple(SimpleKind.END_OF_LINE):
            return offset, False
        if token.is_simple(SimpleKind.PIPE):
            return offset, True


def _skip_line(buffer: str, offset: int, word_chars: frozenset[str]) -> int:
    while True:
        token, offset = next_token(buffer, offset, word_chars)
        if token.is_simple(SimpleKind.END_OF_LINE):
            return offset
