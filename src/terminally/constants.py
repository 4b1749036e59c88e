"""Constant variables for terminally."""

from __future__ import annotations

import re

#: Every marker token starts with this; cleanup drops any line containing it
MARKER_PREFIX = "__TERMINALLY_"

#: Shell variable that carries ``$?`` across the injected marker lines
STATUS_VAR = "__terminally_rc"

#: Exit code reported when a bounded execution is interrupted on timeout
INTERRUPTED_EXIT_CODE = 130

#: Window ids as tmux assigns them
WINDOW_ID_RE = re.compile(r"^@\d+$")

#: tmux key names sent for ``stop_process`` signals; unknown names send nothing
SIGNAL_KEYS: dict[str, str] = {
    "SIGINT": "C-c",
    "SIGQUIT": "C-\\",
    "SIGTERM": "C-\\",
    "SIGTSTP": "C-z",
}
