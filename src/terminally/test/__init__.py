"""Helper methods for terminally and downstream libraries."""

from __future__ import annotations

from .fake import FakeTmux
from .random import namer
from .retry import retry_until

__all__ = ["FakeTmux", "namer", "retry_until"]
