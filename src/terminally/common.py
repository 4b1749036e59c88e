"""Helper methods for running tmux.

terminally.common
~~~~~~~~~~~~~~~~~

"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import subprocess
import typing as t

from . import exc

logger = logging.getLogger(__name__)


#: Minimum version of tmux required: format expansion of ``new-window -n``
TMUX_MIN_VERSION = "3.0"


class tmux_cmd:
    """Result of one :term:`tmux(1)` invocation through :py:mod:`asyncio.subprocess`.

    Use :meth:`tmux_cmd.run` to execute; the constructor only holds a result,
    which also makes the class handy for canned results in tests.

    Examples
    --------
    >>> proc = tmux_cmd(
    ...     cmd=["tmux", "list-windows"],
    ...     stdout="@1\\n@2\\n",
    ...     stderr="",
    ...     returncode=0,
    ... )
    >>> proc.stdout
    ['@1', '@2']

    Equivalent to:

    .. code-block:: console

        $ tmux -S /tmp/terminally-....sock new-window -P -F '#{window_id}'
    """

    def __init__(
        self,
        *,
        cmd: list[str],
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode

        stdout_split = stdout.split("\n")
        # remove trailing newlines from stdout
        while stdout_split and stdout_split[-1] == "":
            stdout_split.pop()
        self.stdout = stdout_split

        stderr_split = stderr.split("\n")
        self.stderr = list(filter(None, stderr_split))  # filter empty values

    def __repr__(self) -> str:
        return (
            f"tmux_cmd(cmd={self.cmd!r}, returncode={self.returncode}, "
            f"stderr={self.stderr!r})"
        )

    @classmethod
    async def run(cls, tmux_bin: str, *args: t.Any) -> tmux_cmd:
        """Spawn ``tmux_bin`` with ``args`` and wait for it to exit.

        Raises
        ------
        :exc:`exc.MultiplexerUnavailable`
            The process could not be launched.
        """
        cmd = [str(c) for c in (tmux_bin, *args)]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except OSError as e:
            logger.exception(f"Exception for {subprocess.list2cmdline(cmd)}")
            msg = f"could not launch tmux: {e}"
            raise exc.MultiplexerUnavailable(msg) from e

        proc = cls(
            cmd=cmd,
            stdout=stdout_bytes.decode("utf-8", errors="backslashreplace"),
            stderr=stderr_bytes.decode("utf-8", errors="backslashreplace"),
            returncode=process.returncode or 0,
        )

        logger.debug(
            "self.stdout for {cmd}: {stdout}".format(
                cmd=" ".join(cmd),
                stdout=proc.stdout,
            ),
        )
        return proc


class SubprocessRunner:
    """:class:`~terminally._internal.command_runner.CommandRunner` over real tmux.

    Parameters
    ----------
    tmux_bin : str, optional
        Path or name of the tmux executable. Resolved through
        :func:`shutil.which` on first use, default ``tmux``.
    """

    def __init__(self, tmux_bin: str | None = None) -> None:
        self._tmux_bin = tmux_bin or "tmux"
        self._resolved: str | None = None

    @property
    def tmux_bin(self) -> str:
        """Absolute path of the tmux executable.

        Raises
        ------
        :exc:`exc.TmuxCommandNotFound`
        """
        if self._resolved is None:
            resolved = shutil.which(self._tmux_bin)
            if not resolved:
                raise exc.TmuxCommandNotFound(self._tmux_bin)
            self._resolved = resolved
        return self._resolved

    async def run(self, *args: t.Any) -> tmux_cmd:
        """Run ``tmux <args>``."""
        return await tmux_cmd.run(self.tmux_bin, *args)


def parse_version(version_output: str) -> tuple[int, ...]:
    """Return a comparable tuple from ``tmux -V`` output.

    Letters (``3.3a``), ``next-`` prefixes and ``-rc`` suffixes are dropped.

    >>> parse_version("tmux 3.3a")
    (3, 3)
    >>> parse_version("tmux next-3.5")
    (3, 5)
    >>> parse_version("tmux master")
    (999,)
    """
    raw = version_output.replace("tmux", "", 1).strip()
    if raw == "master":
        return (999,)
    numbers = re.findall(r"\d+", raw.split("-rc")[0])
    return tuple(int(n) for n in numbers[:2])


def has_minimum_version(version_output: str) -> bool:
    """Return True if ``tmux -V`` output meets :data:`TMUX_MIN_VERSION`.

    >>> has_minimum_version("tmux 3.4")
    True
    >>> has_minimum_version("tmux 1.8")
    False
    """
    return parse_version(version_output) >= parse_version(TMUX_MIN_VERSION)


def escape_format(text: str) -> str:
    """Escape tmux format syntax so ``text`` is stored literally.

    tmux expands ``#{...}``, ``#[...]`` and ``#X`` sequences in window names;
    a doubled ``##`` is a literal ``#``.

    >>> escape_format("build #1 #{pane_id}")
    'build ##1 ##{pane_id}'
    """
    return text.replace("#", "##")
