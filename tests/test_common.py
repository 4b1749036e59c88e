"""Tests for utility functions in terminally."""

from __future__ import annotations

import typing as t

import pytest

from terminally import exc
from terminally.common import (
    TMUX_MIN_VERSION,
    SubprocessRunner,
    escape_format,
    has_minimum_version,
    parse_version,
    tmux_cmd,
)


def test_tmux_cmd_splits_output() -> None:
    """tmux_cmd drops trailing newlines from stdout and empty stderr lines."""
    proc = tmux_cmd(
        cmd=["tmux", "list-windows"],
        stdout="@0\n@1\n\n",
        stderr="\nwarning\n",
        returncode=0,
    )
    assert proc.stdout == ["@0", "@1"]
    assert proc.stderr == ["warning"]


def test_tmux_cmd_keeps_inner_blank_lines() -> None:
    """Blank lines inside a capture survive, only the tail is trimmed."""
    proc = tmux_cmd(cmd=["tmux", "capture-pane"], stdout="a\n\nb\n")
    assert proc.stdout == ["a", "", "b"]


def test_subprocess_runner_raises_on_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify raises if tmux command not found."""
    monkeypatch.setenv("PATH", "")
    runner = SubprocessRunner()
    with pytest.raises(exc.TmuxCommandNotFound):
        _ = runner.tmux_bin


def test_tmux_command_not_found_is_unavailable() -> None:
    """A missing binary is a flavor of an unreachable multiplexer."""
    assert issubclass(exc.TmuxCommandNotFound, exc.MultiplexerUnavailable)


@pytest.mark.asyncio
async def test_tmux_cmd_launch_failure() -> None:
    """An executable that cannot be launched raises MultiplexerUnavailable."""
    with pytest.raises(exc.MultiplexerUnavailable, match="could not launch"):
        await tmux_cmd.run("/nonexistent/terminally/tmux", "-V")


class VersionParsingFixture(t.NamedTuple):
    """Test fixture for parse_version() and has_minimum_version()."""

    test_id: str
    version: str
    expected: tuple[int, ...]
    meets_minimum: bool


VERSION_PARSING_FIXTURES: list[VersionParsingFixture] = [
    VersionParsingFixture(
        test_id="plain",
        version="tmux 3.4",
        expected=(3, 4),
        meets_minimum=True,
    ),
    VersionParsingFixture(
        test_id="letter_suffix",
        version="tmux 3.3a",
        expected=(3, 3),
        meets_minimum=True,
    ),
    VersionParsingFixture(
        test_id="next_prefix",
        version="tmux next-3.5",
        expected=(3, 5),
        meets_minimum=True,
    ),
    VersionParsingFixture(
        test_id="release_candidate",
        version="tmux 3.2-rc2",
        expected=(3, 2),
        meets_minimum=True,
    ),
    VersionParsingFixture(
        test_id="master",
        version="tmux master",
        expected=(999,),
        meets_minimum=True,
    ),
    VersionParsingFixture(
        test_id="too_old",
        version="tmux 2.9a",
        expected=(2, 9),
        meets_minimum=False,
    ),
]


@pytest.mark.parametrize(
    list(VersionParsingFixture._fields),
    VERSION_PARSING_FIXTURES,
    ids=[test.test_id for test in VERSION_PARSING_FIXTURES],
)
def test_parse_version(
    test_id: str,
    version: str,
    expected: tuple[int, ...],
    meets_minimum: bool,
) -> None:
    """Verify parse_version() and has_minimum_version()."""
    assert parse_version(version) == expected
    assert has_minimum_version(version) is meets_minimum


def test_minimum_version_is_parseable() -> None:
    """TMUX_MIN_VERSION meets itself."""
    assert has_minimum_version(f"tmux {TMUX_MIN_VERSION}")


class EscapeFormatFixture(t.NamedTuple):
    """Test fixture for escape_format()."""

    test_id: str
    name: str
    expected: str


ESCAPE_FORMAT_FIXTURES: list[EscapeFormatFixture] = [
    EscapeFormatFixture(test_id="plain", name="build", expected="build"),
    EscapeFormatFixture(test_id="hash", name="#1", expected="##1"),
    EscapeFormatFixture(
        test_id="format_variable",
        name="#{pane_id}",
        expected="##{pane_id}",
    ),
    EscapeFormatFixture(test_id="style", name="#[fg=red]x", expected="##[fg=red]x"),
    EscapeFormatFixture(test_id="already_doubled", name="##", expected="####"),
]


@pytest.mark.parametrize(
    list(EscapeFormatFixture._fields),
    ESCAPE_FORMAT_FIXTURES,
    ids=[test.test_id for test in ESCAPE_FORMAT_FIXTURES],
)
def test_escape_format(test_id: str, name: str, expected: str) -> None:
    """Verify escape_format()."""
    assert escape_format(name) == expected
