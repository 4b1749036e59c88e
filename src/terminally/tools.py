"""RPC method table.

terminally.tools
~~~~~~~~~~~~~~~~

Each method has a pydantic request model. Arguments are validated against it
before the :class:`~terminally.manager.TerminalManager` is called, so a
malformed request never takes a window lock. Errors leave as
:exc:`mcp.shared.exceptions.McpError`, which the transport turns into JSON-RPC
error responses.
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import exc

if t.TYPE_CHECKING:
    from .manager import TerminalManager

logger = logging.getLogger(__name__)

#: JSON-RPC error code for an unknown or closed window id
SESSION_NOT_FOUND = -32001

#: JSON-RPC error code for a tmux that cannot be found or launched
MULTIPLEXER_UNAVAILABLE = -32002


class _Request(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _TabRequest(_Request):
    window_id: str = Field(description="Window id returned by create_tab, e.g. '@1'.")


class CreateTabRequest(_Request):
    name: str | None = Field(
        default=None,
        description="Display name, kept literally. Default 'tab-<epoch ms>'.",
    )
    cwd: str | None = Field(
        default=None,
        description="Start directory; must exist.",
    )
    env: dict[str, str] | None = Field(
        default=None,
        description="Environment variables exported into the new shell.",
    )
    login: bool = Field(default=False, description="Start a login shell.")


class ListTabsRequest(_Request):
    pass


class CloseTabRequest(_TabRequest):
    pass


class ExecuteCommandRequest(_TabRequest):
    command: str = Field(description="Command line, typed into the shell as is.")
    timeout_ms: int | None = Field(
        default=None,
        gt=0,
        description="Time budget in milliseconds, default 10000.",
    )
    strip_ansi: bool = Field(default=False, description="Remove ANSI escapes.")


class ReadOutputRequest(_TabRequest):
    history_limit: int | None = Field(
        default=None,
        gt=0,
        description="Lines of scrollback to include. Default: all history.",
    )


class ReadLogsFromTabRequest(_TabRequest):
    lines: int | None = Field(
        default=None,
        gt=0,
        description="Newest lines to return, default 500.",
    )
    strip_ansi: bool = Field(default=False, description="Remove ANSI escapes.")


class StartProcessRequest(_TabRequest):
    command: str = Field(description="Command line of the long-running program.")
    append_newline: bool = Field(
        default=True,
        description="Press Enter after typing the command.",
    )


class StopProcessRequest(_TabRequest):
    signal: str = Field(
        default="SIGINT",
        description="SIGINT, SIGQUIT, SIGTERM or SIGTSTP; other names send nothing.",
    )


@dataclasses.dataclass(frozen=True)
class ToolSpec:
    """One RPC method: its name, help text and request model."""

    name: str
    description: str
    request: type[_Request]

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.request.model_json_schema(),
        )


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            "create_tab",
            "Open a new terminal tab running an interactive shell.",
            CreateTabRequest,
        ),
        ToolSpec("list_tabs", "List all open terminal tabs.", ListTabsRequest),
        ToolSpec("close_tab", "Close a terminal tab.", CloseTabRequest),
        ToolSpec(
            "execute_command",
            "Run a command in a tab and wait for its output and exit code.",
            ExecuteCommandRequest,
        ),
        ToolSpec(
            "read_output",
            "Return the cleaned screen and scrollback of a tab.",
            ReadOutputRequest,
        ),
        ToolSpec(
            "read_logs_from_tab",
            "Return the newest lines of a tab, for polling long-running programs.",
            ReadLogsFromTabRequest,
        ),
        ToolSpec(
            "start_process",
            "Start a long-running program in a tab without waiting for it.",
            StartProcessRequest,
        ),
        ToolSpec(
            "stop_process",
            "Interrupt the foreground program of a tab.",
            StopProcessRequest,
        ),
    )
}


def error_data(error: Exception) -> types.ErrorData:
    """Return the JSON-RPC error for ``error``.

    >>> error_data(exc.SessionNotFound("@9")).code
    -32001
    >>> error_data(exc.InvalidArgument("bad")).code == types.INVALID_PARAMS
    True
    >>> error_data(KeyError("x")).data
    {'error': 'KeyError'}
    """
    data: dict[str, t.Any] = {"error": error.__class__.__name__}
    if isinstance(error, exc.SessionNotFound):
        code = SESSION_NOT_FOUND
        data["window_id"] = error.window_id
    elif isinstance(error, exc.MultiplexerUnavailable):
        code = MULTIPLEXER_UNAVAILABLE
    elif isinstance(error, exc.InvalidArgument):
        code = types.INVALID_PARAMS
    else:
        code = types.INTERNAL_ERROR
    return types.ErrorData(code=code, message=str(error) or repr(error), data=data)


def _validation_message(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "Invalid arguments: " + "; ".join(problems)


class ToolDispatcher:
    """Validate a method call and run it on a :class:`TerminalManager`.

    Examples
    --------
    >>> import asyncio
    >>> from terminally.config import Config
    >>> from terminally.manager import TerminalManager
    >>> from terminally.test.fake import FakeTmux
    >>> manager = TerminalManager(Config(socket_path="/tmp/t.sock"), runner=FakeTmux())
    >>> dispatcher = ToolDispatcher(manager)
    >>> async def main():
    ...     return await dispatcher.call("create_tab", {"name": "logs"})
    >>> asyncio.run(main())
    {'window_id': '@1', 'name': 'logs'}
    """

    def __init__(self, manager: TerminalManager) -> None:
        self.manager = manager

    def list_tools(self) -> list[types.Tool]:
        return [spec.to_tool() for spec in TOOLS.values()]

    async def call(
        self,
        name: str,
        arguments: t.Mapping[str, t.Any] | None,
    ) -> dict[str, t.Any]:
        """Run method ``name`` and return its result object.

        Raises
        ------
        :exc:`mcp.shared.exceptions.McpError`
            For unknown methods, invalid arguments and failed operations.
        """
        spec = TOOLS.get(name)
        if spec is None:
            raise McpError(
                types.ErrorData(
                    code=types.METHOD_NOT_FOUND,
                    message=f"Unknown tool: {name}",
                ),
            )

        try:
            request = spec.request.model_validate(dict(arguments or {}))
        except ValidationError as e:
            raise McpError(
                types.ErrorData(
                    code=types.INVALID_PARAMS,
                    message=_validation_message(e),
                    data={"error": "InvalidArgument"},
                ),
            ) from e

        method = getattr(self.manager, name)
        try:
            return await method(**request.model_dump())
        except McpError:
            raise
        except exc.TerminallyException as e:
            logger.debug("%s failed: %s", name, e)
            raise McpError(error_data(e)) from e
        except Exception as e:
            logger.exception("unexpected error in %s", name)
            raise McpError(error_data(e)) from e
