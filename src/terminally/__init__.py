"""terminally, interactive tmux shells behind a JSON-RPC tool API."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .config import Config
from .exc import (
    InternalError,
    InvalidArgument,
    MultiplexerUnavailable,
    SessionNotFound,
    TerminallyException,
)
from .manager import TerminalManager

__all__ = (
    "Config",
    "InternalError",
    "InvalidArgument",
    "MultiplexerUnavailable",
    "SessionNotFound",
    "TerminalManager",
    "TerminallyException",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
)
