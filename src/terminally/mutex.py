"""Per-key mutual exclusion for tmux windows.

terminally.mutex
~~~~~~~~~~~~~~~~

Everything that types into or reads from one window goes through
:meth:`KeyedMutex.hold` for that window id, so at most one operation touches
a shell at a time. Operations on different ids never wait on each other.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import typing as t

if t.TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


class _KeyLock:
    __slots__ = ("holders", "lock")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        #: operations holding or waiting for ``lock``
        self.holders = 0


class KeyedMutex:
    """FIFO lock per key, created on first use and dropped once idle.

    Waiters on the same key are released in arrival order. Acquisition has no
    timeout; a caller that needs one applies it around :meth:`hold`.

    Examples
    --------
    >>> import asyncio
    >>> mutex = KeyedMutex()
    >>> order = []
    >>> async def job(n):
    ...     async with mutex.hold("@1"):
    ...         order.append(n)
    ...         await asyncio.sleep(0)
    >>> async def main():
    ...     await asyncio.gather(*(job(n) for n in range(3)))
    >>> asyncio.run(main())
    >>> order
    [0, 1, 2]
    >>> len(mutex)
    0
    """

    def __init__(self) -> None:
        self._locks: dict[str, _KeyLock] = {}

    def __len__(self) -> int:
        """Return the number of keys with a holder or waiter."""
        return len(self._locks)

    def __contains__(self, key: object) -> bool:
        return key in self._locks

    def locked(self, key: str) -> bool:
        """Return True if an operation currently holds ``key``."""
        entry = self._locks.get(key)
        return entry is not None and entry.lock.locked()

    @contextlib.asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the ``async with`` block.

        The lock is released on every exit path, exceptions and cancellation
        included.
        """
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.holders += 1
        try:
            if entry.lock.locked():
                logger.debug("waiting for lock on %s (%d queued)", key, entry.holders)
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0 and self._locks.get(key) is entry:
                del self._locks[key]
