"""Command runner protocols for tmux execution.

The session core never spawns tmux itself. It goes through an object
conforming to :class:`CommandRunner`, so tests can swap in
:class:`terminally.test.fake.FakeTmux` for a real subprocess.
"""

from __future__ import annotations

import typing as t
from typing import Protocol


class CommandResult(Protocol):
    """Protocol for command execution results.

    Attributes
    ----------
    stdout : list[str]
        Command standard output, split by lines
    stderr : list[str]
        Command standard error, split by lines, empty lines dropped
    returncode : int
        Command return code
    cmd : list[str]
        The command that was executed (for debugging)
    """

    @property
    def stdout(self) -> list[str]:
        """Command standard output, split by lines."""
        ...

    @property
    def stderr(self) -> list[str]:
        """Command standard error, split by lines."""
        ...

    @property
    def returncode(self) -> int:
        """Command return code."""
        ...

    @property
    def cmd(self) -> list[str]:
        """The command that was executed (for debugging)."""
        ...


class CommandRunner(Protocol):
    """Protocol for tmux command execution engines.

    ``run()`` must raise :exc:`terminally.exc.MultiplexerUnavailable` when the
    tmux process cannot be launched at all. A tmux process that starts and
    exits non-zero is *not* an exception at this level; callers inspect
    ``returncode`` and ``stderr``.

    Examples
    --------
    >>> from terminally.test.fake import FakeTmux
    >>> import asyncio
    >>> runner: CommandRunner = FakeTmux()
    >>> result = asyncio.run(runner.run("-V"))
    >>> result.stdout
    ['tmux 3.4']
    """

    async def run(self, *args: t.Any) -> CommandResult:
        """Execute a tmux command.

        Parameters
        ----------
        *args : str
            Command arguments to pass to tmux binary

        Returns
        -------
        CommandResult
            Object with stdout, stderr, returncode, cmd attributes
        """
        ...
