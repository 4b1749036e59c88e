"""Bounded command execution inside a live shell.

terminally.executor
~~~~~~~~~~~~~~~~~~~

A command is typed into the tab's interactive shell between two freshly
generated markers::

     __terminally_rc=$?; echo __TERMINALLY_START_<hex>; (exit $__terminally_rc)
    <command>
     __terminally_rc=$?; echo __TERMINALLY_END_<hex>_EXIT_CODE:$__terminally_rc; (exit $__terminally_rc)

The pane is then captured every ``poll_interval`` seconds until a line
``__TERMINALLY_END_<hex>_EXIT_CODE:<digits>`` shows up or the deadline
passes. The typed end line itself never matches, it holds a variable
reference where the digits go. Saving and restoring ``$?`` around the markers
keeps the exit status visible to the next command, as if the markers were
never typed.

Markers are unique per call. A stale end marker from an abandoned call can
never complete a later one.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import re
import secrets
import typing as t

from .cleanup import (
    CONTINUATION_PROMPT,
    HeuristicPromptPolicy,
    echo_prefix,
    is_marker_line,
    strip_ansi as strip_ansi_text,
    strip_prompt,
    trim_blank_edges,
)
from .constants import INTERRUPTED_EXIT_CODE, MARKER_PREFIX, STATUS_VAR
from .otel import start_span
from .pane import Pane

if t.TYPE_CHECKING:
    from collections.abc import Sequence

    from .cleanup import PromptPolicy
    from .directory import SessionDirectory
    from .mutex import KeyedMutex
    from .server import TmuxServer

logger = logging.getLogger(__name__)


def new_marker(kind: str) -> str:
    """Return an unguessable marker token.

    >>> new_marker("START").startswith("__TERMINALLY_START_")
    True
    >>> new_marker("END") != new_marker("END")
    True
    """
    return f"{MARKER_PREFIX}{kind}_{secrets.token_hex(16)}"


@dataclasses.dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one bounded execution."""

    output: str
    exit_code: int
    timed_out: bool = False

    def to_dict(self) -> dict[str, t.Any]:
        """Return the wire shape used by ``execute_command``."""
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class MarkerMatch:
    """Where the markers of a :class:`PendingExecution` sit in a capture."""

    #: index of the printed start marker, ``-1`` if it scrolled out of history
    start: int
    #: index of the printed end marker, None while the command still runs
    end: int | None = None
    exit_code: int | None = None

    @property
    def complete(self) -> bool:
        return self.end is not None


@dataclasses.dataclass(frozen=True)
class PendingExecution:
    """One in-flight execution: command, fresh markers and deadline."""

    command: str
    start_marker: str
    end_marker: str
    deadline: float

    @classmethod
    def create(cls, command: str, deadline: float) -> PendingExecution:
        return cls(
            command=command,
            start_marker=new_marker("START"),
            end_marker=new_marker("END"),
            deadline=deadline,
        )

    @property
    def start_line(self) -> str:
        """Shell line printing the start marker, ``$?`` preserved."""
        return (
            f"{STATUS_VAR}=$?; echo {self.start_marker}; (exit ${STATUS_VAR})"
        )

    @property
    def end_line(self) -> str:
        """Shell line printing the end marker with the command's status."""
        return (
            f"{STATUS_VAR}=$?; echo {self.end_marker}_EXIT_CODE:${STATUS_VAR}; "
            f"(exit ${STATUS_VAR})"
        )

    @property
    def end_pattern(self) -> re.Pattern[str]:
        return re.compile(re.escape(self.end_marker) + r"_EXIT_CODE:(\d+)")

    def locate(self, lines: Sequence[str]) -> MarkerMatch:
        """Find the printed markers in captured ``lines``.

        >>> pending = PendingExecution.create("echo X", deadline=0)
        >>> lines = [
        ...     f"$ {pending.start_line}",
        ...     pending.start_marker,
        ...     "$ echo X",
        ...     "X",
        ...     f"$ {pending.end_line}",
        ...     f"{pending.end_marker}_EXIT_CODE:0",
        ... ]
        >>> pending.locate(lines)
        MarkerMatch(start=1, end=5, exit_code=0)
        """
        pattern = self.end_pattern
        end: int | None = None
        exit_code: int | None = None
        for index, line in enumerate(lines):
            match = pattern.search(line)
            if match:
                end, exit_code = index, int(match.group(1))
                break

        limit = len(lines) if end is None else end
        start = -1
        for index in range(limit):
            if lines[index].strip() == self.start_marker:
                start = index
                break
        return MarkerMatch(start=start, end=end, exit_code=exit_code)

    def extract(
        self,
        lines: Sequence[str],
        found: MarkerMatch,
        policy: PromptPolicy,
    ) -> str:
        """Return the command's output: lines between the markers, cleaned.

        Only rows echoing what was typed are dropped, so output that merely
        looks like a prompt (``$ 5``, ``# heading``) is kept. Output that did
        not end in a newline shares a row with the prompt in front of the end
        line or the end marker. That row keeps the text before the prompt.

        >>> from terminally.cleanup import NullPromptPolicy
        >>> pending = PendingExecution.create("printf abc", deadline=0)
        >>> lines = [
        ...     pending.start_marker,
        ...     "me@box:~$ printf abc",
        ...     f"abcme@box:~$  {pending.end_line}",
        ...     f"{pending.end_marker}_EXIT_CODE:0",
        ... ]
        >>> pending.extract(lines, pending.locate(lines), NullPromptPolicy())
        'abc'
        """
        end = len(lines) if found.end is None else found.end
        commands = self.command.splitlines()
        prompt: str | None = None
        output: list[str] = []
        for line in lines[found.start + 1 : end]:
            line = line.rstrip()
            head = echo_prefix(line, [self.end_line])
            if head is not None:
                head = strip_prompt(head, prompt, policy)
                if head:
                    output.append(head)
                continue

            head = echo_prefix(line, commands)
            if head is not None:
                if not prompt and head and found.start >= 0:
                    prompt = head
                    continue
                if head in ("", prompt, CONTINUATION_PROMPT) or policy.is_prompt(head):
                    continue

            if not is_marker_line(line):
                output.append(line)

        if found.end is not None:
            match = self.end_pattern.search(lines[found.end])
            head = lines[found.end][: match.start()].rstrip() if match else ""
            head = strip_prompt(head, prompt, policy)
            if head:
                output.append(head)
        return "\n".join(trim_blank_edges(output))


class CommandExecutor:
    """Run commands to completion in a tab's shell, within a time budget.

    Parameters
    ----------
    server : :class:`~terminally.server.TmuxServer`
    directory : :class:`~terminally.directory.SessionDirectory`
        Confirms the tab is alive before anything is typed.
    mutex : :class:`~terminally.mutex.KeyedMutex`
        Shared with every other component touching tabs.
    policy : :class:`~terminally.cleanup.PromptPolicy`, optional
        Decides which captured lines are prompts.
    poll_interval : float, optional
        Seconds between captures, default 0.05.
    """

    def __init__(
        self,
        server: TmuxServer,
        directory: SessionDirectory,
        mutex: KeyedMutex,
        policy: PromptPolicy | None = None,
        poll_interval: float = 0.05,
    ) -> None:
        self.server = server
        self.directory = directory
        self.mutex = mutex
        self.policy = policy if policy is not None else HeuristicPromptPolicy()
        self.poll_interval = poll_interval

    async def execute(
        self,
        window_id: str,
        command: str,
        timeout: float = 10.0,
        strip_ansi: bool = False,
    ) -> ExecutionResult:
        """Run ``command`` in tab ``window_id`` and return its output and status.

        A command failing in the shell is a normal result (non-zero
        ``exit_code``). Running out of ``timeout`` seconds interrupts the
        command with ``C-c`` and returns ``timed_out=True`` with exit code 130.

        Raises
        ------
        :exc:`exc.SessionNotFound`
            No live tab ``window_id``, checked before typing anything, or the
            tab vanished while the command ran.
        :exc:`exc.MultiplexerUnavailable`
            tmux could not be launched.
        """
        async with self.mutex.hold(window_id):
            with start_span("terminally.execute", {"window_id": window_id}):
                await self.directory.get(window_id)
                result = await self._run(Pane(self.server, window_id), command, timeout)

        if strip_ansi:
            result = dataclasses.replace(result, output=strip_ansi_text(result.output))
        return result

    async def _run(self, pane: Pane, command: str, timeout: float) -> ExecutionResult:
        loop = asyncio.get_running_loop()
        pending = PendingExecution.create(command, deadline=loop.time() + timeout)

        logger.debug("executing in %s: %r", pane.window_id, command)
        await pane.send_keys(pending.start_line, suppress_history=True)
        await pane.send_keys(command)
        await pane.send_keys(pending.end_line, suppress_history=True)

        while True:
            lines = await pane.capture_pane(start="-", end="-")
            found = pending.locate(lines)
            if found.complete:
                return self._completed(pane, pending, lines, found)

            remaining = pending.deadline - loop.time()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.poll_interval, remaining))

        logger.warning(
            "command in %s timed out after %.3fs, interrupting: %r",
            pane.window_id,
            timeout,
            command,
        )
        await pane.send_key("C-c")
        lines = await pane.capture_pane(start="-", end="-")
        found = pending.locate(lines)
        if found.complete:
            # finished between the last poll and the interrupt
            return self._completed(pane, pending, lines, found)

        output = pending.extract(lines, found, self.policy) if found.start >= 0 else ""
        return ExecutionResult(
            output=output,
            exit_code=INTERRUPTED_EXIT_CODE,
            timed_out=True,
        )

    def _completed(
        self,
        pane: Pane,
        pending: PendingExecution,
        lines: Sequence[str],
        found: MarkerMatch,
    ) -> ExecutionResult:
        if found.start < 0:
            logger.warning(
                "start marker for %s scrolled out of history, output truncated",
                pane.window_id,
            )
        exit_code = found.exit_code if found.exit_code is not None else 0
        if exit_code != 0:
            logger.debug(
                "command in %s exited with code %d: %r",
                pane.window_id,
                exit_code,
                pending.command,
            )
        return ExecutionResult(
            output=pending.extract(lines, found, self.policy),
            exit_code=exit_code,
        )
