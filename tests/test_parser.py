import pytest

from pipesh.lexer import STRICT_WORD_CHARS
from pipesh.parser import CommandFlag, parse_command, parse_pipeline


@pytest.mark.parametrize("line", ["", " ", "  \t \n"])
def test_whitespace_only_yields_empty_command(line: str) -> None:
    command, offset = parse_command(line, 0)
    assert command.arguments == []
    assert command.flags == CommandFlag.NONE
    assert command.valid
    assert offset == len(line)


def test_redirect_before_arguments() -> None:
    command, _ = parse_command("< file.txt cat")
    assert command.has(CommandFlag.HAS_REDIRECT_IN)
    assert command.redirect_in_path == "file.txt"
    assert command.argv == ["cat"]


def test_both_redirects_and_background() -> None:
    command, _ = parse_command("sort < in.txt > out.txt &")
    assert command.argv == ["sort"]
    assert command.redirect_in_path == "in.txt"
    assert command.redirect_out_path == "out.txt"
    assert command.flags == (
        CommandFlag.HAS_REDIRECT_IN | CommandFlag.HAS_REDIRECT_OUT | CommandFlag.BACKGROUND
    )


def test_missing_redirect_target_reports_once_and_invalidates() -> None:
    command, offset = parse_command("cmd >")
    assert not command.valid
    assert len(command.diagnostics) == 1
    assert command.diagnostics[0].render() == "<5>: Expected file name after '>'. Instead, got: \"End of input\""
    assert not command.has(CommandFlag.HAS_REDIRECT_OUT)
    assert offset == 5


def test_missing_redirect_target_abandons_rest_of_line() -> None:
    pipeline = parse_pipeline("cat < | wc $bad | sort")
    assert len(pipeline.stages) == 1
    assert not pipeline.valid
    assert [d.message for d in pipeline.diagnostics] == ["Expected file name after '<'. Instead, got"]


def test_pipe_stops_stage_and_returns_following_offset() -> None:
    line = "ls -l | wc"
    command, offset = parse_command(line)
    assert command.argv == ["ls", "-l"]
    assert command.has(CommandFlag.HAS_PIPE_OUT)
    assert offset == line.index("|") + 1

    second, end = parse_command(line, offset)
    assert second.argv == ["wc"]
    assert end == len(line)


def test_unclassified_token_reports_and_keeps_stage() -> None:
    command, _ = parse_command("echo $x hi")
    assert command.valid
    assert command.argv == ["echo", "hi"]
    assert [(d.position, d.message, d.token) for d in command.diagnostics] == [(5, "Unexpected token", "$x")]


def test_argument_overflow_is_a_single_error() -> None:
    line = " ".join(["a"] * 35)
    command, offset = parse_command(line)
    assert not command.valid
    assert len(command.arguments) == 32
    assert len(command.diagnostics) == 1
    assert command.diagnostics[0].message == "Too many arguments (limit 32)"
    assert offset == len(line)


def test_argument_capacity_is_configurable() -> None:
    command, _ = parse_command("a b c", max_arguments=2)
    assert not command.valid
    assert command.argv == ["a", "b"]


def test_overflowed_stage_still_finds_the_next_stage() -> None:
    pipeline = parse_pipeline("a b c | wc", max_arguments=2)
    assert len(pipeline.stages) == 2
    assert not pipeline.stages[0].valid
    assert pipeline.stages[1].argv == ["wc"]


def test_tokens_after_background_marker_are_rejected() -> None:
    pipeline = parse_pipeline("sleep 5 & echo hi | wc")
    first, second = pipeline.stages
    assert not first.valid
    assert first.argv == ["sleep", "5"]
    assert first.diagnostics[0].message == "Unexpected token after '&'"
    assert first.diagnostics[0].token == "echo"
    assert first.has(CommandFlag.HAS_PIPE_OUT)
    assert second.argv == ["wc"]


def test_background_before_pipe_is_accepted() -> None:
    pipeline = parse_pipeline("yes & | head")
    assert pipeline.valid
    assert pipeline.stages[0].has(CommandFlag.BACKGROUND)
    assert pipeline.stages[0].has(CommandFlag.HAS_PIPE_OUT)


def test_pipeline_keeps_stage_order() -> None:
    pipeline = parse_pipeline("cat a.txt | sort | uniq > out &")
    assert [stage.argv for stage in pipeline.stages] == [["cat", "a.txt"], ["sort"], ["uniq"]]
    assert pipeline.stages[-1].redirect_out_path == "out"
    assert pipeline.stages[-1].has(CommandFlag.BACKGROUND)
    assert pipeline.valid


@pytest.mark.parametrize(
    ("line", "message"),
    [
        ("| cat", "Expected command before '|'"),
        ("ls |", "Expected command after '|'. Instead, got"),
        ("ls | | wc", "Expected command before '|'"),
    ],
)
def test_empty_stage_around_pipe_is_rejected(line: str, message: str) -> None:
    pipeline = parse_pipeline(line)
    assert not pipeline.valid
    assert [d.message for d in pipeline.diagnostics] == [message]


def test_strict_word_class_marks_paths_unclassified() -> None:
    command, _ = parse_command("cd /tmp", word_chars=STRICT_WORD_CHARS)
    assert command.argv == ["cd"]
    assert command.diagnostics[0].token == "/tmp"


def test_command_source_is_the_stage_text() -> None:
    pipeline = parse_pipeline("printf A | cat &")
    assert [stage.source for stage in pipeline.stages] == ["printf A |", "cat &"]
