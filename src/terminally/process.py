"""Long-running processes in a tab.

terminally.process
~~~~~~~~~~~~~~~~~~

Unlike :mod:`terminally.executor`, nothing here waits for the program: the
window's lock is held only while keys are typed. Output is observed later
through :mod:`terminally.reader`.
"""

from __future__ import annotations

import logging
import typing as t

from .constants import SIGNAL_KEYS
from .otel import start_span
from .pane import Pane

if t.TYPE_CHECKING:
    from .directory import SessionDirectory
    from .mutex import KeyedMutex
    from .server import TmuxServer

logger = logging.getLogger(__name__)


class ProcessController:
    """Start and interrupt foreground programs in a tab's shell.

    Parameters
    ----------
    server : :class:`~terminally.server.TmuxServer`
    directory : :class:`~terminally.directory.SessionDirectory`
    mutex : :class:`~terminally.mutex.KeyedMutex`
    stop_exits_shell : bool, optional
        After the signal keystroke, also type ``exit`` so the shell ends.
        Default False: the tab survives :meth:`stop`.
    """

    def __init__(
        self,
        server: TmuxServer,
        directory: SessionDirectory,
        mutex: KeyedMutex,
        stop_exits_shell: bool = False,
    ) -> None:
        self.server = server
        self.directory = directory
        self.mutex = mutex
        self.stop_exits_shell = stop_exits_shell

    async def start(
        self,
        window_id: str,
        command: str,
        append_newline: bool = True,
    ) -> dict[str, bool]:
        """Type ``command`` into ``window_id`` and return without waiting.

        Parameters
        ----------
        append_newline : bool, optional
            Submit with Enter, default True. With False the text is left on
            the command line.

        Raises
        ------
        :exc:`exc.SessionNotFound`
        """
        async with self.mutex.hold(window_id):
            with start_span("terminally.start_process", {"window_id": window_id}):
                await self.directory.get(window_id)
                await Pane(self.server, window_id).send_keys(
                    command,
                    enter=append_newline,
                )
        logger.info("started process in %s: %r", window_id, command)
        return {"started": True}

    async def stop(self, window_id: str, signal: str = "SIGINT") -> dict[str, bool]:
        """Send the keystroke for ``signal`` to the foreground program.

        ``SIGINT`` is ``C-c``, ``SIGQUIT``/``SIGTERM`` are ``C-\\``, ``SIGTSTP``
        is ``C-z``. Any other name is accepted and sends nothing.

        Raises
        ------
        :exc:`exc.SessionNotFound`
        """
        key = SIGNAL_KEYS.get(signal.upper())
        async with self.mutex.hold(window_id):
            with start_span("terminally.stop_process", {"window_id": window_id}):
                await self.directory.get(window_id)
                pane = Pane(self.server, window_id)
                if key is None:
                    logger.warning(
                        "unsupported signal %r for %s, nothing sent",
                        signal,
                        window_id,
                    )
                else:
                    await pane.send_key(key)
                if self.stop_exits_shell:
                    await pane.send_keys("exit")
        logger.info("stopped process in %s with %s", window_id, signal)
        return {"success": True}
