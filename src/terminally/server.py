"""Wrapper for the managed tmux server.

terminally.server
~~~~~~~~~~~~~~~~~

One :class:`TmuxServer` exists per terminally process. It owns a private
socket, so the tmux server it drives never collides with a user's own tmux,
and it is handed to every component that needs tmux.
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
import re
import typing as t

from . import exc
from .common import TMUX_MIN_VERSION, has_minimum_version

if t.TYPE_CHECKING:
    from ._internal.command_runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)

#: Name of the window created together with the managed session
DEFAULT_WINDOW_NAME = "default"

#: stderr fragments tmux prints when the server or session is gone
NO_SERVER_RE = re.compile(
    r"no server running|error connecting to|server exited|lost server",
)
NO_SESSION_RE = re.compile(r"can't find session|session not found")
DUPLICATE_SESSION_RE = re.compile(r"duplicate session")


def is_missing_context(result: CommandResult) -> bool:
    """Return True if tmux failed because the server or session does not exist."""
    stderr = "\n".join(result.stderr)
    return bool(NO_SERVER_RE.search(stderr) or NO_SESSION_RE.search(stderr))


class TmuxServer:
    """The tmux server terminally manages, reached through a private socket.

    The server is started lazily: :meth:`ensure_started` creates it and the
    managed session on first use, and again if it was torn down externally.

    Parameters
    ----------
    runner : :class:`~terminally._internal.command_runner.CommandRunner`
        Executes tmux commands.
    socket_path : str
        Passed as ``tmux -S <socket_path>`` on every call.
    session_name : str
        Managed session; every tab is a window inside it.

    Examples
    --------
    >>> import asyncio
    >>> from terminally.test.fake import FakeTmux
    >>> server = TmuxServer(FakeTmux(), socket_path="/tmp/t.sock")
    >>> asyncio.run(server.ensure_started())
    >>> server.is_started
    True
    """

    def __init__(
        self,
        runner: CommandRunner,
        socket_path: str,
        session_name: str = "terminally",
    ) -> None:
        self.runner = runner
        self.socket_path = socket_path
        self.session_name = session_name
        self._started = False
        self._start_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(socket_path={self.socket_path!r})"

    @property
    def is_started(self) -> bool:
        """Return True once :meth:`ensure_started` has succeeded."""
        return self._started

    @property
    def target(self) -> str:
        """Return the ``-t`` target of the managed session."""
        return f"={self.session_name}"

    async def cmd(self, cmd: str, *args: t.Any) -> CommandResult:
        """Execute ``tmux -S <socket_path> <cmd> <args>``.

        Raises
        ------
        :exc:`exc.MultiplexerUnavailable`
            tmux could not be launched.
        """
        return await self.runner.run("-S", self.socket_path, cmd, *args)

    async def get_version(self) -> str:
        """Return ``tmux -V`` output, e.g. ``tmux 3.4``.

        Raises
        ------
        :exc:`exc.TmuxCommandNotFound`
            tmux is not installed.
        :exc:`exc.MultiplexerUnavailable`
            tmux is installed but older than :data:`TMUX_MIN_VERSION`.
        """
        proc = await self.runner.run("-V")
        if proc.returncode != 0 or not proc.stdout:
            msg = f"tmux -V failed: {proc.stderr}"
            raise exc.MultiplexerUnavailable(msg)
        version = proc.stdout[0]
        if not has_minimum_version(version):
            msg = f"terminally needs tmux {TMUX_MIN_VERSION} or newer, found {version}"
            raise exc.MultiplexerUnavailable(msg)
        return version

    async def check_installed(self) -> bool:
        """Return True if a usable tmux is installed."""
        try:
            await self.get_version()
        except exc.MultiplexerUnavailable:
            return False
        return True

    async def has_session(self) -> bool:
        """Return True if the managed session exists."""
        proc = await self.cmd("has-session", "-t", self.target)
        return proc.returncode == 0

    async def ensure_started(self) -> None:
        """Start the server and the managed session unless they already exist.

        Concurrent callers share one start-up. A ``duplicate session`` error
        from a racing creator is benign and ignored. After :meth:`mark_lost`
        the next call starts things again.
        """
        async with self._start_lock:
            if self._started:
                return

            proc = await self.cmd(
                "new-session",
                "-d",
                "-s",
                self.session_name,
                "-n",
                DEFAULT_WINDOW_NAME,
            )
            if proc.returncode != 0:
                stderr = "\n".join(proc.stderr)
                if not DUPLICATE_SESSION_RE.search(stderr):
                    msg = f"tmux new-session failed: {stderr}"
                    raise exc.MultiplexerUnavailable(msg)
                logger.debug("managed session %s already exists", self.session_name)
            else:
                logger.info(
                    "tmux server started with socket: %s",
                    self.socket_path,
                )
            self._started = True

    def mark_lost(self) -> None:
        """Forget the started state after tmux reported the server or session gone."""
        if self._started:
            logger.warning("managed tmux session %s disappeared", self.session_name)
        self._started = False

    async def kill(self) -> None:
        """Kill the tmux server and remove its socket.

        Errors are logged, not raised; this runs during shutdown.
        """
        try:
            proc = await self.cmd("kill-server")
        except exc.MultiplexerUnavailable:
            logger.exception("failed to stop tmux server")
        else:
            if proc.returncode != 0 and not is_missing_context(proc):
                logger.error("failed to stop tmux server: %s", proc.stderr)
            else:
                logger.info("tmux server stopped")
        finally:
            self._started = False
            pathlib.Path(self.socket_path).unlink(missing_ok=True)
