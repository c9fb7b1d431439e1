"""Commands interpreted by the shell process instead of being spawned."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger


@dataclass(frozen=True)
class BuiltinOutcome:
    """Result of one builtin invocation."""

    status: int = 0
    error: str | None = None
    exit_requested: bool = False


BuiltinHandler = Callable[[list[str]], BuiltinOutcome]


@dataclass(frozen=True)
class Builtin:
    """A builtin and the minimum argv length (program name included) it acts on."""

    name: str
    min_arity: int
    handler: BuiltinHandler

    def invoke(self, argv: list[str]) -> BuiltinOutcome:
        # Under-arity invocations are no-ops, e.g. a bare `cd`.
        if len(argv) < self.min_arity:
            logger.debug("builtin.noop name={} argc={}", self.name, len(argv))
            return BuiltinOutcome()
        return self.handler(argv)


class BuiltinTable:
    """Dispatch table keyed by program name, consulted before spawning."""

    def __init__(self) -> None:
        self._builtins: dict[str, Builtin] = {}

    def register(self, builtin: Builtin) -> None:
        self._builtins[builtin.name] = builtin

    def get(self, name: str | None) -> Builtin | None:
        if name is None:
            return None
        return self._builtins.get(name)

    def names(self) -> list[str]:
        return sorted(self._builtins)


def change_directory(argv: list[str]) -> BuiltinOutcome:
    target = argv[1]
    try:
        os.chdir(target)
    except OSError as exc:
        return BuiltinOutcome(status=1, error=f"cd: {target}: {exc.strerror or exc}")
    logger.info("builtin.cd cwd={}", os.getcwd())
    return BuiltinOutcome()


def exit_shell(argv: list[str]) -> BuiltinOutcome:
    if len(argv) < 2:
        return BuiltinOutcome(exit_requested=True)
    try:
        status = int(argv[1])
    except ValueError:
        return BuiltinOutcome(status=2, error=f"exit: {argv[1]}: numeric argument required")
    return BuiltinOutcome(status=status & 0xFF, exit_requested=True)


def default_builtins() -> BuiltinTable:
    table = BuiltinTable()
    table.register(Builtin("cd", 2, change_directory))
    table.register(Builtin("exit", 1, exit_shell))
    return table
