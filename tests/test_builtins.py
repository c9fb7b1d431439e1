from pathlib import Path

from pipesh.builtins import Builtin, BuiltinOutcome, change_directory, default_builtins, exit_shell


def test_default_table_names() -> None:
    table = default_builtins()
    assert table.names() == ["cd", "exit"]
    assert table.get(None) is None
    assert table.get("ls") is None


def test_under_arity_invocation_skips_handler() -> None:
    calls: list[list[str]] = []

    def _handler(argv: list[str]) -> BuiltinOutcome:
        calls.append(argv)
        return BuiltinOutcome(status=9)

    builtin = Builtin("demo", 2, _handler)
    assert builtin.invoke(["demo"]) == BuiltinOutcome()
    assert calls == []
    assert builtin.invoke(["demo", "x"]).status == 9
    assert calls == [["demo", "x"]]


def test_change_directory(workdir: Path) -> None:
    (workdir / "inner").mkdir()
    outcome = change_directory(["cd", "inner"])
    assert outcome == BuiltinOutcome()
    assert Path.cwd() == (workdir / "inner").resolve()


def test_change_directory_ignores_extra_arguments(workdir: Path) -> None:
    (workdir / "a").mkdir()
    assert change_directory(["cd", "a", "b"]).status == 0
    assert Path.cwd().name == "a"


def test_exit_without_status() -> None:
    assert exit_shell(["exit"]) == BuiltinOutcome(exit_requested=True)


def test_exit_status_is_masked_to_a_byte() -> None:
    assert exit_shell(["exit", "258"]).status == 2


def test_exit_rejects_non_numeric_status() -> None:
    outcome = exit_shell(["exit", "soon"])
    assert not outcome.exit_requested
    assert outcome.status == 2
    assert outcome.error == "exit: soon: numeric argument required"
