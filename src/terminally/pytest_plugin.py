"""terminally pytest plugin.

Fixtures come in two flavors: over :class:`~terminally.test.fake.FakeTmux`
(``fake_tmux``, ``manager``), and over a real tmux on a throwaway socket
(``tmux_server``, ``live_manager``), skipped when tmux is not installed.
"""

from __future__ import annotations

import logging
import pathlib
import shutil
import tempfile
import typing as t

import pytest
import pytest_asyncio

from terminally.common import SubprocessRunner
from terminally.config import Config
from terminally.manager import TerminalManager
from terminally.server import TmuxServer
from terminally.test.fake import FakeTmux
from terminally.test.random import namer

if t.TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)

requires_tmux = pytest.mark.skipif(
    shutil.which("tmux") is None,
    reason="tmux is not installed",
)


def make_socket_path() -> str:
    """Return a fresh socket path, short enough for ``AF_UNIX``."""
    name = f"terminally_test{next(namer)}.sock"
    return str(pathlib.Path(tempfile.gettempdir()) / name)


@pytest.fixture
def fake_tmux() -> FakeTmux:
    """Return an empty :class:`~terminally.test.fake.FakeTmux`."""
    return FakeTmux()


@pytest.fixture
def manager_config() -> Config:
    """Return the :class:`~terminally.config.Config` used by manager fixtures.

    Override to tweak settings::

        @pytest.fixture
        def manager_config(manager_config):
            return dataclasses.replace(manager_config, stop_exits_shell=True)
    """
    return Config(socket_path=make_socket_path(), poll_interval=0.01)


@pytest_asyncio.fixture
async def manager(
    fake_tmux: FakeTmux,
    manager_config: Config,
) -> AsyncIterator[TerminalManager]:
    """Return a started :class:`~terminally.manager.TerminalManager` on the fake."""
    manager = TerminalManager(manager_config, runner=fake_tmux)
    await manager.start()
    yield manager
    await manager.stop()


@pytest.fixture
def live_shell(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> None:
    """Give real tmux windows a predictable ``/bin/sh`` with a ``$`` prompt."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SHELL", "/bin/sh")
    monkeypatch.setenv("PS1", "$ ")
    monkeypatch.delenv("TMUX", raising=False)


@pytest_asyncio.fixture
async def tmux_server(live_shell: None) -> AsyncIterator[TmuxServer]:
    """Return a started :class:`~terminally.server.TmuxServer` over real tmux."""
    if shutil.which("tmux") is None:
        pytest.skip("tmux is not installed")
    server = TmuxServer(SubprocessRunner(), socket_path=make_socket_path())
    await server.ensure_started()
    yield server
    await server.kill()


@pytest_asyncio.fixture
async def live_manager(
    live_shell: None,
    manager_config: Config,
) -> AsyncIterator[TerminalManager]:
    """Return a started :class:`~terminally.manager.TerminalManager` over real tmux."""
    if shutil.which("tmux") is None:
        pytest.skip("tmux is not installed")
    manager = TerminalManager(manager_config)
    await manager.start()
    yield manager
    await manager.stop()
