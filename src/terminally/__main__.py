"""Run the terminally MCP server on stdio.

terminally.__main__
~~~~~~~~~~~~~~~~~~~

stdout carries the protocol, so logs go to stderr only.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
import typing as t

from . import exc
from .__about__ import __title__, __version__
from .config import Config
from .manager import TerminalManager
from .mcp_server import run_stdio

if t.TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str) -> None:
    """Send every log record to stderr at ``level``."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=__title__,
        description="Serve tmux-backed terminal tabs over MCP (stdio).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--log-level",
        help="override TERMINALLY_LOG_LEVEL",
    )
    return parser


async def serve(config: Config) -> None:
    """Start tmux, serve until stdin closes or a signal arrives, then clean up."""
    manager = TerminalManager(config)
    await manager.start()

    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, t.cast("asyncio.Task[t.Any]", task).cancel)

    try:
        await run_stdio(manager)
    except asyncio.CancelledError:
        logger.info("shutting down")
    finally:
        await manager.stop()


def main(argv: Sequence[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    try:
        config = Config.from_env()
    except exc.InvalidArgument as e:
        print(f"{__title__}: {e}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or config.log_level)
    try:
        asyncio.run(serve(config))
    except exc.MultiplexerUnavailable as e:
        logger.error("cannot start: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
