"""Provide exceptions used by terminally.

terminally.exc
~~~~~~~~~~~~~~

Notes
-----
Every error raised by the session core inherits from
:exc:`TerminallyException`. A command that fails *inside* a shell is not an
error: its status is reported as ``exit_code``. Likewise a bounded execution
that runs out of time reports ``timed_out`` instead of raising.
"""

from __future__ import annotations

import typing as t


class TerminallyException(Exception):
    """Base exception for all terminally errors."""


class MultiplexerUnavailable(TerminallyException):
    """Raised when the tmux server cannot be reached or its process not started."""


class TmuxCommandNotFound(MultiplexerUnavailable):
    """Raised when the tmux binary cannot be found on the system."""

    def __init__(self, tmux_bin: str | None = None, *args: object) -> None:
        if tmux_bin is not None:
            super().__init__(f"tmux executable not found: {tmux_bin}")
        else:
            super().__init__("tmux executable not found in PATH")


class SessionNotFound(TerminallyException):
    """Raised if a window id has no live backing window."""

    def __init__(self, window_id: str | None = None, *args: object) -> None:
        self.window_id = window_id
        if window_id is not None:
            super().__init__(f"Session not found: {window_id}", *args)
        else:
            super().__init__("Session not found", *args)


class InvalidArgument(TerminallyException, ValueError):
    """Raised if a request field is malformed, e.g. a missing working directory."""


class InternalError(TerminallyException):
    """Raised when tmux fails unexpectedly in the middle of an operation."""

    def __init__(
        self,
        message: str,
        *,
        cmd: t.Sequence[str] | None = None,
        stdout: t.Sequence[str] | None = None,
        stderr: t.Sequence[str] | None = None,
        returncode: int | None = None,
    ) -> None:
        super().__init__(message)
        self.cmd = list(cmd or [])
        self.stdout = list(stdout or [])
        self.stderr = list(stderr or [])
        self.returncode = returncode


class WaitTimeout(TerminallyException):
    """Raised when a function times out waiting for a condition."""
