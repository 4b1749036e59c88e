"""Session directory: the tabs that exist in the managed tmux session.

terminally.directory
~~~~~~~~~~~~~~~~~~~~

Nothing is cached. Every lookup asks tmux, so answers are always current and
a window closed behind terminally's back is noticed on next use.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import re
import shlex
import time
import typing as t

from . import exc
from .common import escape_format
from .constants import WINDOW_ID_RE
from .server import is_missing_context

if t.TYPE_CHECKING:
    from collections.abc import Mapping

    from ._internal.command_runner import CommandResult
    from .server import TmuxServer

logger = logging.getLogger(__name__)

ENV_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

#: Fixed-width fields first, name last. Spaces survive any client locale.
LIST_FORMAT = "#{window_id} #{window_active} #{window_name}"


@dataclasses.dataclass(frozen=True)
class Session:
    """One interactive shell, addressed by its tmux window id."""

    window_id: str
    name: str
    active: bool = False

    def to_dict(self) -> dict[str, t.Any]:
        """Return the wire shape used by ``list_tabs``."""
        return {"window_id": self.window_id, "name": self.name, "active": self.active}


def parse_window_line(line: str) -> Session:
    """Parse one ``list-windows`` record.

    The id and the active flag never contain spaces, so the name is everything
    after the second space, spaces included.

    >>> parse_window_line("@3 1 my  tab 1")
    Session(window_id='@3', name='my  tab 1', active=True)
    >>> parse_window_line("@4 0 ")
    Session(window_id='@4', name='', active=False)
    """
    window_id, active, name = line.split(" ", 2)
    return Session(window_id=window_id, name=name, active=active == "1")


def default_tab_name() -> str:
    """Return ``tab-<epoch milliseconds>``."""
    return f"tab-{int(time.time() * 1000)}"


def login_shell() -> str:
    """Return the command line for a login shell of the user's ``$SHELL``."""
    shell = os.environ.get("SHELL") or "/bin/sh"
    return f"{shlex.quote(shell)} -l"


class SessionDirectory:
    """Create, enumerate, look up and close tabs.

    Parameters
    ----------
    server : :class:`~terminally.server.TmuxServer`
        Managed tmux server.

    Examples
    --------
    >>> import asyncio
    >>> from terminally.server import TmuxServer
    >>> from terminally.test.fake import FakeTmux
    >>> directory = SessionDirectory(TmuxServer(FakeTmux(), socket_path="/tmp/t.sock"))
    >>> async def main():
    ...     tab = await directory.create(name="build #1")
    ...     return [s.name for s in await directory.list()]
    >>> asyncio.run(main())
    ['default', 'build #1']
    """

    def __init__(self, server: TmuxServer) -> None:
        self.server = server

    async def create(
        self,
        name: str | None = None,
        cwd: str | os.PathLike[str] | None = None,
        env: Mapping[str, str] | None = None,
        login: bool = False,
    ) -> Session:
        """Open a new window and return it.

        The id comes from ``new-window -P -F '#{window_id}'`` itself, not from
        a follow-up listing, so concurrent creates cannot mix up ids.

        Parameters
        ----------
        name : str, optional
            Display name, kept literally (``#`` is escaped for tmux). Default
            ``tab-<epoch ms>``.
        cwd : str or path, optional
            Start directory; must exist.
        env : dict, optional
            Variables exported into the new shell right after it starts.
        login : bool, optional
            Start ``$SHELL -l`` instead of the default shell.

        Raises
        ------
        :exc:`exc.InvalidArgument`
            ``cwd`` does not exist or an ``env`` key is not a variable name.
        :exc:`exc.MultiplexerUnavailable`
            tmux cannot be reached.
        """
        window_name = name if name else default_tab_name()

        window_args: list[str] = ["-P", "-F#{window_id}"]
        window_args += ["-n", escape_format(window_name)]

        if cwd:
            start_directory = pathlib.Path(cwd).expanduser()
            if not start_directory.is_dir():
                msg = f"Working directory does not exist: {cwd}"
                raise exc.InvalidArgument(msg)
            window_args += ["-c", str(start_directory)]

        for key in env or {}:
            if not ENV_NAME_RE.match(key):
                msg = f"Invalid environment variable name: {key!r}"
                raise exc.InvalidArgument(msg)

        window_args += ["-t", f"{self.server.target}:"]

        if login:
            window_args.append(login_shell())

        await self.server.ensure_started()
        proc = await self.server.cmd("new-window", *window_args)
        if proc.returncode != 0 and is_missing_context(proc):
            self.server.mark_lost()
            await self.server.ensure_started()
            proc = await self.server.cmd("new-window", *window_args)

        if proc.returncode != 0 or not proc.stdout:
            msg = f"tmux new-window failed: {proc.stderr}"
            raise exc.MultiplexerUnavailable(msg)

        window_id = proc.stdout[0].strip()
        logger.info("created tab %s (%s)", window_id, window_name)

        for key, value in (env or {}).items():
            await self.server.cmd(
                "send-keys",
                "-t",
                window_id,
                "-l",
                f" export {key}={shlex.quote(str(value))}",
            )
            await self.server.cmd("send-keys", "-t", window_id, "Enter")

        return Session(window_id=window_id, name=window_name, active=True)

    async def list(self) -> list[Session]:
        """Return every window of the managed session, in index order.

        A missing managed session is created first.
        """
        await self.server.ensure_started()
        proc = await self._list_windows()
        if proc.returncode != 0 and is_missing_context(proc):
            self.server.mark_lost()
            await self.server.ensure_started()
            proc = await self._list_windows()

        if proc.returncode != 0:
            msg = f"tmux list-windows failed: {proc.stderr}"
            raise exc.MultiplexerUnavailable(msg)

        return [parse_window_line(line) for line in proc.stdout if line]

    async def get(self, window_id: str) -> Session:
        """Return the live window ``window_id``.

        Raises
        ------
        :exc:`exc.SessionNotFound`
            ``window_id`` is malformed or has no live window.
        """
        if not isinstance(window_id, str) or not WINDOW_ID_RE.match(window_id):
            raise exc.SessionNotFound(window_id)

        proc = await self._list_windows()
        if proc.returncode != 0:
            if is_missing_context(proc):
                self.server.mark_lost()
                raise exc.SessionNotFound(window_id)
            msg = f"tmux list-windows failed: {proc.stderr}"
            raise exc.MultiplexerUnavailable(msg)

        for line in proc.stdout:
            if line.split(" ", 1)[0] == window_id:
                return parse_window_line(line)
        raise exc.SessionNotFound(window_id)

    async def exists(self, window_id: str) -> bool:
        """Return True if ``window_id`` names a live window."""
        try:
            await self.get(window_id)
        except exc.SessionNotFound:
            return False
        return True

    async def close(self, window_id: str) -> None:
        """Kill the window ``window_id``.

        Raises
        ------
        :exc:`exc.SessionNotFound`
            Nothing to close; a second close of the same id lands here.
        """
        await self.get(window_id)
        proc = await self.server.cmd("kill-window", "-t", window_id)
        if proc.returncode != 0:
            raise exc.SessionNotFound(window_id)
        logger.info("closed tab %s", window_id)

    async def _list_windows(self) -> CommandResult:
        return await self.server.cmd(
            "list-windows",
            "-t",
            self.server.target,
            "-F",
            LIST_FORMAT,
        )
