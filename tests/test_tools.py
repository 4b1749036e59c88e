"""Tests for terminally.tools and terminally.mcp_server."""

from __future__ import annotations

import json
import typing as t

import pytest
from mcp import types
from mcp.shared.exceptions import McpError

from terminally.config import Config
from terminally.manager import TerminalManager
from terminally.mcp_server import create_server
from terminally.test.fake import FakeTmux
from terminally.tools import (
    MULTIPLEXER_UNAVAILABLE,
    SESSION_NOT_FOUND,
    TOOLS,
    ToolDispatcher,
)

if t.TYPE_CHECKING:
    import pathlib


@pytest.fixture
def dispatcher(manager: TerminalManager) -> ToolDispatcher:
    """Return a ToolDispatcher over the fake-backed manager."""
    return ToolDispatcher(manager)


@pytest.mark.asyncio
async def test_call_round_trip(dispatcher: ToolDispatcher) -> None:
    """Every method answers with its documented result object."""
    created = await dispatcher.call("create_tab", {"name": "build"})
    assert created == {"window_id": "@1", "name": "build"}
    window_id = created["window_id"]

    tabs = (await dispatcher.call("list_tabs", {}))["tabs"]
    assert {"window_id": window_id, "name": "build", "active": True} in tabs

    result = await dispatcher.call(
        "execute_command",
        {"window_id": window_id, "command": "echo hi", "timeout_ms": 5000},
    )
    assert result == {"output": "hi", "exit_code": 0, "timed_out": False}

    output = await dispatcher.call("read_output", {"window_id": window_id})
    assert output == {"output": "hi"}

    started = await dispatcher.call(
        "start_process",
        {"window_id": window_id, "command": "sleep 30"},
    )
    assert started == {"started": True}
    stopped = await dispatcher.call("stop_process", {"window_id": window_id})
    assert stopped == {"success": True}

    logs = await dispatcher.call(
        "read_logs_from_tab",
        {"window_id": window_id, "lines": 1},
    )
    assert logs["returned_lines"] == 1

    assert await dispatcher.call("close_tab", {"window_id": window_id}) == {
        "success": True,
    }


@pytest.mark.asyncio
async def test_unknown_fields_are_ignored(dispatcher: ToolDispatcher) -> None:
    """Extra arguments do not fail a call."""
    result = await dispatcher.call("list_tabs", {"verbose": True})
    assert [tab["name"] for tab in result["tabs"]] == ["default"]


@pytest.mark.asyncio
async def test_unknown_tool(dispatcher: ToolDispatcher) -> None:
    """An unknown method is METHOD_NOT_FOUND."""
    with pytest.raises(McpError) as exc_info:
        await dispatcher.call("format_disk", {})
    assert exc_info.value.error.code == types.METHOD_NOT_FOUND


class InvalidParamsFixture(t.NamedTuple):
    """Test fixture for arguments rejected before any tmux call."""

    test_id: str
    name: str
    arguments: dict[str, t.Any] | None


INVALID_PARAMS_FIXTURES: list[InvalidParamsFixture] = [
    InvalidParamsFixture(
        test_id="missing_command",
        name="execute_command",
        arguments={"window_id": "@1"},
    ),
    InvalidParamsFixture(
        test_id="missing_window_id",
        name="close_tab",
        arguments={},
    ),
    InvalidParamsFixture(
        test_id="no_arguments",
        name="read_output",
        arguments=None,
    ),
    InvalidParamsFixture(
        test_id="timeout_not_a_number",
        name="execute_command",
        arguments={"window_id": "@1", "command": "ls", "timeout_ms": "soon"},
    ),
    InvalidParamsFixture(
        test_id="timeout_zero",
        name="execute_command",
        arguments={"window_id": "@1", "command": "ls", "timeout_ms": 0},
    ),
    InvalidParamsFixture(
        test_id="negative_lines",
        name="read_logs_from_tab",
        arguments={"window_id": "@1", "lines": -5},
    ),
    InvalidParamsFixture(
        test_id="env_not_a_mapping",
        name="create_tab",
        arguments={"env": ["A=1"]},
    ),
]


@pytest.mark.parametrize(
    list(InvalidParamsFixture._fields),
    INVALID_PARAMS_FIXTURES,
    ids=[test.test_id for test in INVALID_PARAMS_FIXTURES],
)
@pytest.mark.asyncio
async def test_invalid_params(
    dispatcher: ToolDispatcher,
    fake_tmux: FakeTmux,
    test_id: str,
    name: str,
    arguments: dict[str, t.Any] | None,
) -> None:
    """Malformed arguments are INVALID_PARAMS and never reach tmux."""
    before = len(fake_tmux.calls)
    with pytest.raises(McpError) as exc_info:
        await dispatcher.call(name, arguments)
    error = exc_info.value.error
    assert error.code == types.INVALID_PARAMS
    assert error.data == {"error": "InvalidArgument"}
    assert len(fake_tmux.calls) == before
    assert len(dispatcher.manager.mutex) == 0


@pytest.mark.asyncio
async def test_session_not_found(dispatcher: ToolDispatcher) -> None:
    """An unknown window id maps to its own code with the id attached."""
    with pytest.raises(McpError) as exc_info:
        await dispatcher.call(
            "execute_command",
            {"window_id": "@42", "command": "echo X"},
        )
    error = exc_info.value.error
    assert error.code == SESSION_NOT_FOUND
    assert error.data == {"error": "SessionNotFound", "window_id": "@42"}


@pytest.mark.asyncio
async def test_missing_cwd(dispatcher: ToolDispatcher, tmp_path: pathlib.Path) -> None:
    """A start directory that does not exist is INVALID_PARAMS."""
    with pytest.raises(McpError) as exc_info:
        await dispatcher.call("create_tab", {"cwd": str(tmp_path / "nope")})
    assert exc_info.value.error.code == types.INVALID_PARAMS
    assert exc_info.value.error.data == {"error": "InvalidArgument"}


@pytest.mark.asyncio
async def test_multiplexer_unavailable() -> None:
    """A tmux that cannot be launched has its own code."""
    manager = TerminalManager(
        Config(socket_path="/tmp/t.sock"),
        runner=FakeTmux(fail_launch=True),
    )
    with pytest.raises(McpError) as exc_info:
        await ToolDispatcher(manager).call("list_tabs", {})
    assert exc_info.value.error.code == MULTIPLEXER_UNAVAILABLE
    assert exc_info.value.error.data == {"error": "MultiplexerUnavailable"}


@pytest.mark.asyncio
async def test_internal_error(
    dispatcher: ToolDispatcher,
    fake_tmux: FakeTmux,
) -> None:
    """Unexpected tmux failures are INTERNAL_ERROR."""
    tab = await dispatcher.call("create_tab", {})
    fake_tmux.failures["capture-pane"] = "protocol version mismatch"
    with pytest.raises(McpError) as exc_info:
        await dispatcher.call("read_output", {"window_id": tab["window_id"]})
    assert exc_info.value.error.code == types.INTERNAL_ERROR
    assert exc_info.value.error.data == {"error": "InternalError"}
    assert len(dispatcher.manager.mutex) == 0


def test_list_tools(dispatcher: ToolDispatcher) -> None:
    """All eight methods are advertised with JSON schemas."""
    tools = {tool.name: tool for tool in dispatcher.list_tools()}
    assert set(tools) == {
        "create_tab",
        "list_tabs",
        "close_tab",
        "execute_command",
        "read_output",
        "read_logs_from_tab",
        "start_process",
        "stop_process",
    }
    assert set(tools) == set(TOOLS)
    schema = tools["execute_command"].inputSchema
    assert schema["required"] == ["window_id", "command"]
    assert schema["properties"]["timeout_ms"]["anyOf"][0]["exclusiveMinimum"] == 0


@pytest.mark.asyncio
async def test_server_call_tool(manager: TerminalManager) -> None:
    """Results travel as one text item holding the JSON result object."""
    server = create_server(manager)
    handler = server.request_handlers[types.CallToolRequest]
    response = await handler(
        types.CallToolRequest(
            method="tools/call",
            params=types.CallToolRequestParams(
                name="create_tab",
                arguments={"name": "build"},
            ),
        ),
    )
    result = response.root
    assert isinstance(result, types.CallToolResult)
    assert not result.isError
    (content,) = result.content
    assert isinstance(content, types.TextContent)
    assert json.loads(content.text) == {"window_id": "@1", "name": "build"}


@pytest.mark.asyncio
async def test_server_call_tool_error(manager: TerminalManager) -> None:
    """Failures leave the handler as McpError, never as a result."""
    server = create_server(manager)
    handler = server.request_handlers[types.CallToolRequest]
    with pytest.raises(McpError) as exc_info:
        await handler(
            types.CallToolRequest(
                method="tools/call",
                params=types.CallToolRequestParams(
                    name="close_tab",
                    arguments={"window_id": "@9"},
                ),
            ),
        )
    assert exc_info.value.error.code == SESSION_NOT_FOUND


@pytest.mark.asyncio
async def test_server_list_tools(manager: TerminalManager) -> None:
    """tools/list advertises the method table."""
    server = create_server(manager)
    handler = server.request_handlers[types.ListToolsRequest]
    response = await handler(types.ListToolsRequest(method="tools/list"))
    assert {tool.name for tool in response.root.tools} == set(TOOLS)
