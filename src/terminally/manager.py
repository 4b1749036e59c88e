"""Composition root of the session core.

terminally.manager
~~~~~~~~~~~~~~~~~~

:class:`TerminalManager` builds every component from a
:class:`~terminally.config.Config` and exposes the operations the RPC layer
calls. Components are passed their collaborators explicitly, so tests swap the
tmux runner for :class:`~terminally.test.fake.FakeTmux`.
"""

from __future__ import annotations

import logging
import typing as t

from .cleanup import prompt_policy_from_config
from .common import SubprocessRunner
from .config import Config
from .directory import SessionDirectory
from .executor import CommandExecutor
from .mutex import KeyedMutex
from .process import ProcessController
from .reader import OutputReader
from .server import TmuxServer

if t.TYPE_CHECKING:
    import os
    from collections.abc import Mapping

    from ._internal.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class TerminalManager:
    """All tabs of one terminally process.

    Parameters
    ----------
    config : :class:`~terminally.config.Config`, optional
        Default: :meth:`Config.from_env`.
    runner : :class:`~terminally._internal.command_runner.CommandRunner`, optional
        Default: :class:`~terminally.common.SubprocessRunner` for
        ``config.tmux_bin``.

    Examples
    --------
    >>> import asyncio
    >>> from terminally.test.fake import FakeTmux
    >>> manager = TerminalManager(Config(socket_path="/tmp/t.sock"), runner=FakeTmux())
    >>> async def main():
    ...     await manager.start()
    ...     tab = await manager.create_tab(name="build")
    ...     result = await manager.execute_command(tab["window_id"], "echo hi")
    ...     await manager.stop()
    ...     return result
    >>> asyncio.run(main())
    {'output': 'hi', 'exit_code': 0, 'timed_out': False}
    """

    def __init__(
        self,
        config: Config | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.config = config if config is not None else Config.from_env()
        self.runner = runner if runner is not None else SubprocessRunner(
            self.config.tmux_bin,
        )
        self.server = TmuxServer(
            self.runner,
            socket_path=self.config.socket_path,
            session_name=self.config.session_name,
        )
        self.mutex = KeyedMutex()
        self.directory = SessionDirectory(self.server)

        policy = prompt_policy_from_config(
            self.config.prompt_filter,
            self.config.prompt_pattern,
        )
        self.executor = CommandExecutor(
            self.server,
            self.directory,
            self.mutex,
            policy=policy,
            poll_interval=self.config.poll_interval,
        )
        self.processes = ProcessController(
            self.server,
            self.directory,
            self.mutex,
            stop_exits_shell=self.config.stop_exits_shell,
        )
        self.reader = OutputReader(
            self.server,
            self.directory,
            self.mutex,
            policy=policy,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.server!r})"

    async def start(self) -> None:
        """Check the tmux installation and start the managed session.

        Raises
        ------
        :exc:`exc.TmuxCommandNotFound`
        :exc:`exc.MultiplexerUnavailable`
        """
        version = await self.server.get_version()
        logger.info("using %s", version)
        await self.server.ensure_started()

    async def stop(self) -> None:
        """Tear down the managed tmux server. Never raises."""
        await self.server.kill()

    async def create_tab(
        self,
        name: str | None = None,
        cwd: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
        login: bool = False,
    ) -> dict[str, t.Any]:
        session = await self.directory.create(name=name, cwd=cwd, env=env, login=login)
        return {"window_id": session.window_id, "name": session.name}

    async def list_tabs(self) -> dict[str, t.Any]:
        return {"tabs": [session.to_dict() for session in await self.directory.list()]}

    async def close_tab(self, window_id: str) -> dict[str, t.Any]:
        async with self.mutex.hold(window_id):
            await self.directory.close(window_id)
        return {"success": True}

    async def execute_command(
        self,
        window_id: str,
        command: str,
        timeout_ms: int | None = None,
        strip_ansi: bool = False,
    ) -> dict[str, t.Any]:
        if timeout_ms is None:
            timeout_ms = self.config.default_timeout_ms
        result = await self.executor.execute(
            window_id,
            command,
            timeout=timeout_ms / 1000,
            strip_ansi=strip_ansi,
        )
        return result.to_dict()

    async def read_output(
        self,
        window_id: str,
        history_limit: int | None = None,
    ) -> dict[str, t.Any]:
        return {"output": await self.reader.read(window_id, history_limit)}

    async def read_logs_from_tab(
        self,
        window_id: str,
        lines: int | None = None,
        strip_ansi: bool = False,
    ) -> dict[str, t.Any]:
        if lines is None:
            lines = self.config.default_log_lines
        recent = await self.reader.read_recent(
            window_id,
            max_lines=lines,
            strip_ansi=strip_ansi,
        )
        return recent.to_dict()

    async def start_process(
        self,
        window_id: str,
        command: str,
        append_newline: bool = True,
    ) -> dict[str, t.Any]:
        return await self.processes.start(window_id, command, append_newline)

    async def stop_process(
        self,
        window_id: str,
        signal: str = "SIGINT",
    ) -> dict[str, t.Any]:
        return await self.processes.stop(window_id, signal)
