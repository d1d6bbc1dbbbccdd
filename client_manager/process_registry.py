"""
Process Registry for spawned game clients.

Tracks the client processes started for each dataset so they can be counted
and stopped together. The registry is a plain object owned by whoever drives
the clients (the command loop); there is no module-level process table.

Not locked: callers must not interleave start/kill for the same dataset.
Different datasets never touch each other's entries.
"""

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

import psutil

from client_manager.constants import LAUNCH_INTERVAL
from client_manager.logger import setup_logger
from client_manager.platform_utils import COMPAT_LAUNCHER, is_native_client_platform

logger = setup_logger()


class ClientHandle(Protocol):
    """Minimal contract for a tracked client process."""

    pid: Optional[int]

    async def stop(self) -> None:
        ...


class ClientProcess:
    """A running client started through asyncio."""

    def __init__(self, process: asyncio.subprocess.Process, args: List[str]):
        self._process = process
        self.args = args

    def __repr__(self):
        return f"ClientProcess(pid={self.pid}, args={self.args!r})"

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    async def stop(self) -> None:
        """Terminate the client and anything it spawned (wine helpers)."""
        if self._process.returncode is not None:
            return

        try:
            children = psutil.Process(self.pid).children(recursive=True)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            children = []

        for child in children:
            try:
                child.terminate()
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                pass

        try:
            self._process.terminate()
        except ProcessLookupError:
            # exited between the returncode check and terminate()
            pass
        await self._process.wait()

        if children:
            await asyncio.to_thread(psutil.wait_procs, children)


async def launch_client(exe_path: Path, native: Optional[bool] = None) -> ClientProcess:
    """
    Start one client process.

    Args:
        exe_path: Path to the client executable
        native: Start the executable directly; defaults to the host platform check.
                Otherwise it is wrapped in the compatibility launcher.
    """
    if native is None:
        native = is_native_client_platform()

    exe_path = Path(exe_path)
    args = [str(exe_path)] if native else [COMPAT_LAUNCHER, str(exe_path)]
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(exe_path.parent),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    return ClientProcess(process, args)


Launcher = Callable[[Path], Awaitable[ClientHandle]]


class ProcessRegistry:
    """dataset name -> client processes started for it, in launch order."""

    def __init__(
        self,
        launcher: Launcher = launch_client,
        launch_interval: float = LAUNCH_INTERVAL,
    ):
        self._launcher = launcher
        self._launch_interval = launch_interval
        self._processes: Dict[str, List[ClientHandle]] = {}

    def count(self, dataset_name: str) -> int:
        return len(self._processes.get(dataset_name, ()))

    def handles(self, dataset_name: str) -> List[ClientHandle]:
        """Snapshot of the tracked handles for a dataset."""
        return list(self._processes.get(dataset_name, ()))

    def datasets(self) -> List[str]:
        return list(self._processes)

    async def start(self, dataset_name: str, exe_path: Path, count: int = 1) -> None:
        """
        Launch `count` clients one after another.

        Launches are spaced by the launch interval so clients don't all
        allocate their windows and file handles at once.
        """
        if count <= 0:
            return

        for _ in range(count):
            logger.info(f"Starting client for dataset {dataset_name}")
            handle = await self._launcher(exe_path)
            self._processes.setdefault(dataset_name, []).append(handle)
            await asyncio.sleep(self._launch_interval)

    async def kill(self, dataset_name: str) -> int:
        """
        Stop every client of a dataset and forget them.

        The entry is dropped even if some stops fail; the returned count is
        the number of stops attempted.
        """
        processes = self._processes.pop(dataset_name, None)
        if not processes:
            return 0

        results = await asyncio.gather(
            *(handle.stop() for handle in processes), return_exceptions=True
        )
        for handle, result in zip(processes, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Failed to stop client {handle.pid} of dataset {dataset_name}: {result}"
                )

        logger.info(f"Stopped {len(processes)} client(s) for dataset {dataset_name}")
        return len(processes)

    async def kill_all(self) -> int:
        """Stop clients of every dataset concurrently."""
        counts = await asyncio.gather(*(self.kill(name) for name in self.datasets()))
        return sum(counts)
