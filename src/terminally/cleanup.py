"""Text cleanup for captured pane content.

terminally.cleanup
~~~~~~~~~~~~~~~~~~

Deciding which captured lines are shell prompts is environment-dependent and
heuristic. A :class:`PromptPolicy` encapsulates that decision so it can be
swapped per deployment; nothing here is a correctness guarantee. Marker lines
are parsed by :mod:`terminally.executor` *before* any of this runs.
"""

from __future__ import annotations

import re
import typing as t

from .constants import MARKER_PREFIX

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

#: ``ESC [ <params> <letter>``: colors, cursor movement, erase
ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")

#: Characters that commonly end a prompt: sh/bash ``$``, root ``#`` and the
#: starship / oh-my-zsh arrows. ``%`` and ``>`` are left out, they end too
#: much ordinary output (``100%``, ``a->b``).
PROMPT_CHARS = "$#❯➜"

#: What sh and bash print in front of continuation lines of a multi-line command
CONTINUATION_PROMPT = ">"


def strip_ansi(text: str) -> str:
    r"""Remove ANSI escape sequences.

    >>> strip_ansi("\x1b[31mRed Text\x1b[0m")
    'Red Text'
    """
    return ANSI_ESCAPE_RE.sub("", text)


class PromptPolicy(t.Protocol):
    """Decide whether a captured line is prompt noise."""

    def is_prompt(self, line: str) -> bool:
        """Return True to drop ``line`` from returned output."""
        ...


class HeuristicPromptPolicy:
    """Generic prompt detection.

    A line is a prompt when its first whitespace-delimited word ends with a
    prompt character and is either alone on the line or followed by a space:
    ``$``, ``bash-5.2$ ls``, ``user@host:~/src$ make``, ``❯ git status``.

    >>> policy = HeuristicPromptPolicy()
    >>> policy.is_prompt("bash-5.2$ echo hi")
    True
    >>> policy.is_prompt("$")
    True
    >>> policy.is_prompt("hi")
    False
    >>> policy.is_prompt("cost: 5$")
    False
    """

    def __init__(self, prompt_chars: str = PROMPT_CHARS) -> None:
        chars = re.escape(prompt_chars)
        self._pattern = re.compile(rf"^\s*\S*[{chars}](\s|$)")

    def is_prompt(self, line: str) -> bool:
        return bool(self._pattern.match(line))


class LegacyPromptPolicy:
    """Drop anything starting with ``$`` or ``#``, or containing ``➜``.

    Drops comment-like output such as ``# heading`` as well.

    >>> LegacyPromptPolicy().is_prompt("# heading")
    True
    """

    def is_prompt(self, line: str) -> bool:
        stripped = line.lstrip()
        return stripped.startswith(("$", "#")) or "➜" in line


class PatternPromptPolicy:
    """Prompt lines are those matching a user-supplied regular expression.

    >>> PatternPromptPolicy(r"^\\[\\w+@\\w+ .*\\]\\$").is_prompt("[me@box ~]$ ls")
    True
    """

    def __init__(self, pattern: str | re.Pattern[str]) -> None:
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def is_prompt(self, line: str) -> bool:
        return bool(self._pattern.search(line))


class NullPromptPolicy:
    """Keep every line."""

    def is_prompt(self, line: str) -> bool:
        return False


def prompt_policy_from_config(
    name: str = "heuristic",
    pattern: str | None = None,
) -> PromptPolicy:
    """Return the :class:`PromptPolicy` named by configuration.

    >>> isinstance(prompt_policy_from_config("none"), NullPromptPolicy)
    True
    """
    if pattern:
        return PatternPromptPolicy(pattern)
    if name == "none":
        return NullPromptPolicy()
    if name == "legacy":
        return LegacyPromptPolicy()
    return HeuristicPromptPolicy()


def is_marker_line(line: str) -> bool:
    """Return True for lines carrying a start/end marker, typed or printed."""
    return MARKER_PREFIX in line


def echo_prefix(line: str, typed: Sequence[str]) -> str | None:
    """Return what precedes an echo of one of ``typed`` at the end of ``line``.

    None if ``line`` does not end with any of them. The prefix is the prompt,
    possibly behind output that did not end in a newline.

    >>> echo_prefix("$ make test", ["make test"])
    '$'
    >>> echo_prefix("make test", ["make test"])
    ''
    >>> echo_prefix("ok", ["make test"]) is None
    True
    """
    line = line.rstrip()
    for text in typed:
        text = text.strip()
        if text and line.endswith(text):
            return line[: -len(text)].rstrip()
    return None


def strip_prompt(text: str, prompt: str | None, policy: PromptPolicy) -> str:
    """Remove a shell prompt from the end of ``text``.

    ``prompt`` is the prompt as seen in front of an echoed command. Without
    one, ``policy`` judges the whole of ``text``.

    >>> strip_prompt("abc$", "$", NullPromptPolicy())
    'abc'
    >>> strip_prompt("$", None, HeuristicPromptPolicy())
    ''
    >>> strip_prompt("abc", "$", HeuristicPromptPolicy())
    'abc'
    """
    if prompt and text.endswith(prompt):
        return text[: -len(prompt)].rstrip()
    if policy.is_prompt(text):
        return ""
    return text


def clean_lines(
    lines: Iterable[str],
    policy: PromptPolicy,
    *,
    drop_blank: bool = False,
) -> list[str]:
    """Trim trailing whitespace and drop prompt and marker lines.

    >>> clean_lines(["$ echo hi", "hi   ", "$"], HeuristicPromptPolicy())
    ['hi']
    """
    cleaned: list[str] = []
    for line in lines:
        line = line.rstrip()
        if drop_blank and not line:
            continue
        if is_marker_line(line) or policy.is_prompt(line):
            continue
        cleaned.append(line)
    return cleaned


def trim_blank_edges(lines: Sequence[str]) -> list[str]:
    """Remove empty lines at both ends.

    >>> trim_blank_edges(["", "a", "", "b", ""])
    ['a', '', 'b']
    """
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return list(lines[start:end])
