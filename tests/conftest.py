"""
Shared fixtures.

The config/log directory is pointed at a throwaway folder before any
client_manager module is imported, so tests never touch the user's files.
"""

import itertools
import logging
import os
import tempfile

os.environ.setdefault("CLIENT_MANAGER_HOME", tempfile.mkdtemp(prefix="client-manager-tests-"))

import pytest

from client_manager.client_paths import BinPaths, ClientPaths
from client_manager.models import DatasetConfig, PatchCategory, PatchEdit
from client_manager.patch_catalog import PatchCatalog
from client_manager.process_registry import ProcessRegistry


ORIGINAL_IMAGE = bytes(range(256)) * 4

_pids = itertools.count(1000)


class FakeHandle:
    """Stand-in for a client process that records stop requests."""

    def __init__(self, exe_path=None, fail=False):
        self.pid = next(_pids)
        self.exe_path = exe_path
        self.fail = fail
        self.stop_calls = 0

    async def stop(self):
        self.stop_calls += 1
        if self.fail:
            raise RuntimeError(f"cannot stop {self.pid}")


class FakeLauncher:
    """Launcher that hands out FakeHandles instead of spawning processes."""

    def __init__(self):
        self.launched = []

    async def __call__(self, exe_path):
        handle = FakeHandle(exe_path)
        self.launched.append(handle)
        return handle


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def registry(launcher):
    return ProcessRegistry(launcher=launcher, launch_interval=0)


@pytest.fixture
def client_root(tmp_path):
    """A minimal client install: Wow.exe, Data/enUS and a realmlist."""
    root = tmp_path / "client"
    (root / "Data" / "enUS").mkdir(parents=True)
    (root / "Wow.exe").write_bytes(ORIGINAL_IMAGE)
    (root / "Data" / "enUS" / "realmlist.wtf").write_text("set realmlist localhost")
    return root


@pytest.fixture
def bin_root(tmp_path):
    root = tmp_path / "bin"
    (root / "addons").mkdir(parents=True)
    return root


@pytest.fixture
def client_paths(client_root):
    return ClientPaths(client_root, "A")


@pytest.fixture
def bin_paths(bin_root):
    return BinPaths(bin_root)


@pytest.fixture
def make_dataset(client_root):
    def _make(**overrides):
        values = dict(name="default", client_path=str(client_root), game_build="B1")
        values.update(overrides)
        return DatasetConfig(**values)

    return _make


@pytest.fixture
def catalog():
    return PatchCatalog(
        {
            "B1": [
                PatchCategory("core", (PatchEdit(16, (0xAB, 0xCD)),)),
                PatchCategory("extra", (PatchEdit(32, (0x01,)), PatchEdit(40, (0x02, 0x03)))),
            ]
        }
    )


@pytest.fixture
def manager_log(caplog):
    """caplog wired to the ClientManager logger, which does not propagate."""
    logger = logging.getLogger("ClientManager")
    caplog.set_level(logging.DEBUG, logger="ClientManager")
    logger.addHandler(caplog.handler)
    yield caplog
    logger.removeHandler(caplog.handler)
