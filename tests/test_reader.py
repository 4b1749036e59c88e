"""Tests for terminally.reader."""

from __future__ import annotations

import typing as t

import pytest

from terminally import exc
from terminally.reader import RecentOutput

if t.TYPE_CHECKING:
    from terminally.manager import TerminalManager


@pytest.mark.asyncio
async def test_read_logs_tail(manager: TerminalManager) -> None:
    """Only the newest lines come back, flagged as truncated."""
    tab = await manager.create_tab()
    await manager.start_process(tab["window_id"], "seq 10")
    logs = await manager.read_logs_from_tab(tab["window_id"], lines=5)
    assert logs == {
        "content": "7\n8\n9\n10\n$",
        "returned_lines": 5,
        "truncated": True,
    }


@pytest.mark.asyncio
async def test_read_logs_not_truncated(manager: TerminalManager) -> None:
    """A short buffer is returned whole."""
    tab = await manager.create_tab()
    await manager.start_process(tab["window_id"], "echo ready")
    logs = await manager.read_logs_from_tab(tab["window_id"])
    assert logs["content"].splitlines() == ["$ echo ready", "ready", "$"]
    assert logs["returned_lines"] == 3
    assert not logs["truncated"]


@pytest.mark.asyncio
async def test_read_logs_while_running(manager: TerminalManager) -> None:
    """Logs can be polled while a program holds the foreground."""
    tab = await manager.create_tab()
    await manager.start_process(tab["window_id"], "echo serving; sleep 30")
    logs = await manager.read_logs_from_tab(tab["window_id"], lines=1)
    assert logs["content"] == "serving"
    await manager.stop_process(tab["window_id"])


@pytest.mark.asyncio
async def test_read_logs_strip_ansi(manager: TerminalManager) -> None:
    """strip_ansi removes escape sequences from the tail."""
    tab = await manager.create_tab()
    await manager.start_process(tab["window_id"], 'echo "\x1b[1mbold\x1b[0m"')
    raw = await manager.read_logs_from_tab(tab["window_id"], lines=2)
    assert "\x1b[1m" in raw["content"]
    clean = await manager.read_logs_from_tab(tab["window_id"], lines=2, strip_ansi=True)
    assert clean["content"] == "bold\n$"


@pytest.mark.asyncio
async def test_read_output_is_cleaned(manager: TerminalManager) -> None:
    """read_output drops prompts, marker lines and blank lines."""
    tab = await manager.create_tab()
    await manager.execute_command(tab["window_id"], "echo hello", 5000)
    output = (await manager.read_output(tab["window_id"]))["output"]
    assert output.splitlines() == ["hello"]


@pytest.mark.asyncio
async def test_read_output_history_limit(manager: TerminalManager) -> None:
    """history_limit reaches that many lines above the visible screen."""
    tab = await manager.create_tab()
    await manager.start_process(tab["window_id"], "seq 100")
    lines = (await manager.read_output(tab["window_id"], 10))["output"].splitlines()
    assert lines[0] == "68"
    assert lines[-1] == "100"

    everything = (await manager.read_output(tab["window_id"]))["output"].splitlines()
    assert everything == [str(n) for n in range(1, 101)]


class UnknownTabFixture(t.NamedTuple):
    """Test fixture for reads of a window that does not exist."""

    test_id: str
    method: str


UNKNOWN_TAB_FIXTURES: list[UnknownTabFixture] = [
    UnknownTabFixture(test_id="read_output", method="read_output"),
    UnknownTabFixture(test_id="read_logs", method="read_logs_from_tab"),
]


@pytest.mark.parametrize(
    list(UnknownTabFixture._fields),
    UNKNOWN_TAB_FIXTURES,
    ids=[test.test_id for test in UNKNOWN_TAB_FIXTURES],
)
@pytest.mark.asyncio
async def test_read_unknown_tab(
    manager: TerminalManager,
    test_id: str,
    method: str,
) -> None:
    """Reading an unknown id raises SessionNotFound."""
    with pytest.raises(exc.SessionNotFound):
        await getattr(manager, method)("@99")


def test_recent_output_to_dict() -> None:
    """to_dict() is the read_logs_from_tab wire shape."""
    assert RecentOutput("a", 1, False).to_dict() == {
        "content": "a",
        "returned_lines": 1,
        "truncated": False,
    }
