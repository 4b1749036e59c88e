"""MCP binding of the method table over stdio.

terminally.mcp_server
~~~~~~~~~~~~~~~~~~~~~

Requests and responses are line-delimited JSON-RPC on stdin/stdout. Each
result is one ``text`` content item holding the JSON-serialized result
object. Failures are JSON-RPC errors, never a successful response describing
an error.
"""

from __future__ import annotations

import json
import logging
import typing as t

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .__about__ import __title__, __version__
from .tools import ToolDispatcher

if t.TYPE_CHECKING:
    from .manager import TerminalManager

logger = logging.getLogger(__name__)


def create_server(manager: TerminalManager) -> Server[t.Any]:
    """Return an MCP :class:`~mcp.server.lowlevel.Server` serving ``manager``."""
    server: Server[t.Any] = Server(__title__, version=__version__)
    dispatcher = ToolDispatcher(manager)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return dispatcher.list_tools()

    # raw handler: an McpError raised here becomes a JSON-RPC error response
    async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
        result = await dispatcher.call(req.params.name, req.params.arguments)
        return types.ServerResult(
            types.CallToolResult(
                content=[
                    types.TextContent(type="text", text=json.dumps(result, indent=2)),
                ],
            ),
        )

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def run_stdio(manager: TerminalManager) -> None:
    """Serve ``manager`` on stdin/stdout until the input stream closes."""
    server = create_server(manager)
    async with stdio_server() as (read_stream, write_stream):
        logger.info("%s %s serving on stdio", __title__, __version__)
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )
