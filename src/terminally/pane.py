"""Keystrokes into and snapshots out of one tab.

terminally.pane
~~~~~~~~~~~~~~~

:class:`Pane` is a thin, stateless handle on the active pane of a window. It
does no locking: callers hold the window's
:class:`~terminally.mutex.KeyedMutex` entry around a sequence of calls.
"""

from __future__ import annotations

import logging
import re
import typing as t

from . import exc
from .server import is_missing_context

if t.TYPE_CHECKING:
    from ._internal.command_runner import CommandResult
    from .server import TmuxServer

logger = logging.getLogger(__name__)

NO_TARGET_RE = re.compile(r"can't find (window|pane)|no such (window|pane)")


class Pane:
    """Active pane of the window ``window_id``.

    Examples
    --------
    >>> import asyncio
    >>> from terminally.server import TmuxServer
    >>> from terminally.test.fake import FakeTmux
    >>> server = TmuxServer(FakeTmux(), socket_path="/tmp/t.sock")
    >>> async def main():
    ...     await server.ensure_started()
    ...     pane = Pane(server, "@0")
    ...     await pane.send_keys('echo "Hello world"')
    ...     return await pane.capture_pane()
    >>> asyncio.run(main())
    ['$ echo "Hello world"', 'Hello world', '$']
    """

    def __init__(self, server: TmuxServer, window_id: str) -> None:
        self.server = server
        self.window_id = window_id

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.window_id})"

    async def cmd(self, cmd: str, *args: t.Any) -> CommandResult:
        """Run ``tmux <cmd> -t <window_id> <args>``, raising on failure.

        Raises
        ------
        :exc:`exc.SessionNotFound`
            The window (or the whole server) is gone.
        :exc:`exc.InternalError`
            tmux failed for another reason.
        """
        proc = await self.server.cmd(cmd, "-t", self.window_id, *args)
        if proc.returncode == 0:
            return proc

        stderr = "\n".join(proc.stderr)
        if is_missing_context(proc):
            self.server.mark_lost()
            raise exc.SessionNotFound(self.window_id)
        if NO_TARGET_RE.search(stderr):
            raise exc.SessionNotFound(self.window_id)
        msg = f"tmux {cmd} failed for {self.window_id}: {stderr}"
        raise exc.InternalError(
            msg,
            cmd=proc.cmd,
            stdout=proc.stdout,
            stderr=proc.stderr,
            returncode=proc.returncode,
        )

    async def send_keys(
        self,
        text: str,
        enter: bool = True,
        suppress_history: bool = False,
    ) -> None:
        """Type ``text`` literally (``send-keys -l``), then Enter.

        Nothing is quoted or escaped: the shell sees exactly what a user
        typing ``text`` would produce.

        Parameters
        ----------
        text : str
            Keystrokes to type.
        enter : bool, optional
            Submit with Enter afterwards, default True.
        suppress_history : bool, optional
            Prepend a space so ``HISTCONTROL=ignorespace`` shells skip history.
        """
        prefix = " " if suppress_history else ""
        if text or prefix:
            await self.cmd("send-keys", "-l", "--", prefix + text)
        if enter:
            await self.enter()

    async def send_key(self, key: str) -> None:
        """Send one named key, e.g. ``C-c``."""
        await self.cmd("send-keys", key)

    async def enter(self) -> None:
        """Send Enter."""
        await self.send_key("Enter")

    async def capture_pane(
        self,
        start: t.Literal["-"] | int | None = None,
        end: t.Literal["-"] | int | None = None,
        *,
        escape_sequences: bool = False,
        join_wrapped: bool = True,
    ) -> list[str]:
        """Capture text from the pane, ``$ tmux capture-pane -p``.

        Parameters
        ----------
        start : str | int, optional
            First line. Zero is the first visible line, negative numbers reach
            into history, ``-`` is the start of history.
        end : str | int, optional
            Last line. ``-`` is the end of the visible pane.
        escape_sequences : bool, optional
            Keep colors and attributes as ANSI sequences (``-e``).
        join_wrapped : bool, optional
            Join lines tmux wrapped (``-J``), default True.

        Returns
        -------
        list[str]
            Captured lines, trailing blank lines of the screen removed.
        """
        cmd: list[str] = ["-p"]
        if start is not None:
            cmd.extend(["-S", str(start)])
        if end is not None:
            cmd.extend(["-E", str(end)])
        if escape_sequences:
            cmd.append("-e")
        if join_wrapped:
            cmd.append("-J")
        lines = list((await self.cmd("capture-pane", *cmd)).stdout)
        while lines and not lines[-1].strip():
            lines.pop()
        return lines
