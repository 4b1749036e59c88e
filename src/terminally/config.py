"""Runtime configuration for terminally.

terminally.config
~~~~~~~~~~~~~~~~~

Settings are read from ``TERMINALLY_*`` environment variables once, by
:meth:`Config.from_env`. Components receive plain values from the resulting
:class:`Config`; nothing below the bootstrap reads the environment.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import tempfile
import typing as t
import uuid

from . import exc

logger = logging.getLogger(__name__)

#: Managed tmux session holding every tab
DEFAULT_SESSION_NAME = "terminally"

#: Seconds between buffer captures while waiting for a command to finish
DEFAULT_POLL_INTERVAL = 0.05

#: ``execute_command`` budget when the caller sends no ``timeout_ms``
DEFAULT_TIMEOUT_MS = 10000

#: ``read_logs_from_tab`` line count when the caller sends no ``lines``
DEFAULT_LOG_LINES = 500

PROMPT_FILTERS = ("heuristic", "legacy", "none")


def default_socket_path() -> str:
    """Return a private, process-unique socket path in the temp directory.

    >>> default_socket_path().endswith(".sock")
    True
    >>> default_socket_path() != default_socket_path()
    True
    """
    return str(pathlib.Path(tempfile.gettempdir()) / f"terminally-{uuid.uuid4()}.sock")


def _env_flag(environ: t.Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    msg = f"{name} must be a boolean, got {raw!r}"
    raise exc.InvalidArgument(msg)


def _env_number(
    environ: t.Mapping[str, str],
    name: str,
    default: float,
    cast: t.Callable[[str], float],
) -> t.Any:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}"
        raise exc.InvalidArgument(msg) from None
    if value <= 0:
        msg = f"{name} must be positive, got {raw!r}"
        raise exc.InvalidArgument(msg)
    return value


@dataclasses.dataclass(frozen=True)
class Config:
    """Settings for one terminally process.

    Examples
    --------
    >>> config = Config.from_env({"TERMINALLY_POLL_INTERVAL": "0.1"})
    >>> config.poll_interval
    0.1
    >>> config.session_name
    'terminally'
    """

    tmux_bin: str = "tmux"
    socket_path: str = dataclasses.field(default_factory=default_socket_path)
    session_name: str = DEFAULT_SESSION_NAME
    poll_interval: float = DEFAULT_POLL_INTERVAL
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    default_log_lines: int = DEFAULT_LOG_LINES
    prompt_filter: str = "heuristic"
    prompt_pattern: str | None = None
    stop_exits_shell: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: t.Mapping[str, str] | None = None) -> Config:
        """Build a :class:`Config` from ``environ`` (default :data:`os.environ`).

        Raises
        ------
        :exc:`exc.InvalidArgument`
            A variable is set to a malformed value.
        """
        env = os.environ if environ is None else environ

        prompt_filter = env.get("TERMINALLY_PROMPT_FILTER", "heuristic").strip().lower()
        if prompt_filter not in PROMPT_FILTERS:
            msg = (
                f"TERMINALLY_PROMPT_FILTER must be one of {', '.join(PROMPT_FILTERS)}, "
                f"got {prompt_filter!r}"
            )
            raise exc.InvalidArgument(msg)

        return cls(
            tmux_bin=env.get("TERMINALLY_TMUX") or "tmux",
            socket_path=env.get("TERMINALLY_SOCKET_PATH") or default_socket_path(),
            session_name=env.get("TERMINALLY_SESSION_NAME") or DEFAULT_SESSION_NAME,
            poll_interval=_env_number(
                env, "TERMINALLY_POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float
            ),
            default_timeout_ms=_env_number(
                env, "TERMINALLY_DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, int
            ),
            default_log_lines=_env_number(
                env, "TERMINALLY_DEFAULT_LOG_LINES", DEFAULT_LOG_LINES, int
            ),
            prompt_filter=prompt_filter,
            prompt_pattern=env.get("TERMINALLY_PROMPT_PATTERN") or None,
            stop_exits_shell=_env_flag(env, "TERMINALLY_STOP_EXITS_SHELL", False),
            log_level=(env.get("TERMINALLY_LOG_LEVEL") or "INFO").upper(),
        )
