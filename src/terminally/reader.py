"""Read a tab's buffer without running anything.

terminally.reader
~~~~~~~~~~~~~~~~~
"""

from __future__ import annotations

import dataclasses
import logging
import typing as t

from .cleanup import HeuristicPromptPolicy, clean_lines, strip_ansi as strip_ansi_text
from .pane import Pane

if t.TYPE_CHECKING:
    from .cleanup import PromptPolicy
    from .directory import SessionDirectory
    from .mutex import KeyedMutex
    from .server import TmuxServer

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class RecentOutput:
    """The tail of a tab's buffer, as returned by ``read_logs_from_tab``."""

    content: str
    returned_lines: int
    truncated: bool

    def to_dict(self) -> dict[str, t.Any]:
        return dataclasses.asdict(self)


class OutputReader:
    """Snapshot a tab's screen and scrollback.

    Captures hold the window's lock so they never observe half of an
    injection from a concurrent :class:`~terminally.executor.CommandExecutor`.

    Parameters
    ----------
    server : :class:`~terminally.server.TmuxServer`
    directory : :class:`~terminally.directory.SessionDirectory`
    mutex : :class:`~terminally.mutex.KeyedMutex`
    policy : :class:`~terminally.cleanup.PromptPolicy`, optional
        Prompt filtering for :meth:`read`.
    """

    def __init__(
        self,
        server: TmuxServer,
        directory: SessionDirectory,
        mutex: KeyedMutex,
        policy: PromptPolicy | None = None,
    ) -> None:
        self.server = server
        self.directory = directory
        self.mutex = mutex
        self.policy = policy if policy is not None else HeuristicPromptPolicy()

    async def read(self, window_id: str, history_limit: int | None = None) -> str:
        """Return the cleaned buffer of ``window_id``.

        Parameters
        ----------
        history_limit : int, optional
            Start this many lines back in scrollback. Default: all history.

        Raises
        ------
        :exc:`exc.SessionNotFound`
        """
        async with self.mutex.hold(window_id):
            await self.directory.get(window_id)
            pane = Pane(self.server, window_id)
            if history_limit is not None:
                lines = await pane.capture_pane(start=-history_limit)
            else:
                lines = await pane.capture_pane(start="-", end="-")

        return "\n".join(clean_lines(lines, self.policy, drop_blank=True))

    async def read_recent(
        self,
        window_id: str,
        max_lines: int = 500,
        strip_ansi: bool = False,
    ) -> RecentOutput:
        """Return at most ``max_lines`` of the newest lines of ``window_id``.

        Lines are returned as the terminal shows them, prompts included, so a
        poller sees exactly what a running program printed. ``truncated`` is
        True when older history was left out.

        Raises
        ------
        :exc:`exc.SessionNotFound`
        """
        async with self.mutex.hold(window_id):
            await self.directory.get(window_id)
            lines = await Pane(self.server, window_id).capture_pane(
                start="-",
                end="-",
                escape_sequences=True,
            )

        total = len(lines)
        tail = lines[-max_lines:] if max_lines > 0 else []
        content = "\n".join(line.rstrip() for line in tail)
        if strip_ansi:
            content = strip_ansi_text(content)
        return RecentOutput(
            content=content,
            returned_lines=len(tail),
            truncated=total > len(tail),
        )
