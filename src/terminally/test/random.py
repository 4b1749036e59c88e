"""Random names for tabs created in tests."""

from __future__ import annotations

import logging
import random

from .constants import TEST_TAB_PREFIX

logger = logging.getLogger(__name__)


class RandomStrSequence:
    """Factory to generate random string."""

    def __init__(
        self,
        characters: str = "abcdefghijklmnopqrstuvwxyz0123456789_",
    ) -> None:
        """Create a random letter / number generator. 8 chars in length.

        >>> rng = RandomStrSequence()
        >>> len(next(rng))
        8
        >>> type(next(rng))
        <class 'str'>
        """
        self.characters: str = characters

    def __iter__(self) -> RandomStrSequence:
        """Return self."""
        return self

    def __next__(self) -> str:
        """Return next random string."""
        return "".join(random.sample(self.characters, k=8))


namer = RandomStrSequence()


def get_test_tab_name(prefix: str = TEST_TAB_PREFIX) -> str:
    """Return a random tab name starting with ``prefix``.

    >>> get_test_tab_name().startswith("terminally_")
    True
    """
    return prefix + next(namer)
