"""
Client lifecycle for one dataset.

`Client.startup` is what the `client` command runs: stop the dataset's
running clients, patch the executable, install addons, clear the cache,
point the realmlist at the server and start fresh clients. Each step raises
on failure and the remaining steps are skipped.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

from client_manager import patcher, slots
from client_manager.client_paths import BinPaths, ClientPaths
from client_manager.constants import DEFAULT_CLIENT_IP, DEFAULT_REALMLIST, TSADDONS_FRAMEXML_PARTS
from client_manager.errors import ClientConfigError
from client_manager.file_utils import copy_tree, make_backup, remove_tree
from client_manager.logger import setup_logger
from client_manager.models import DatasetConfig, PatchResult
from client_manager.patch_catalog import PatchCatalog, load_default_catalog
from client_manager.process_registry import ProcessRegistry

logger = setup_logger()


class Client:
    """The game client installation of a dataset and the processes run from it."""

    def __init__(
        self,
        dataset: DatasetConfig,
        registry: ProcessRegistry,
        bin_paths: BinPaths,
        catalog: Optional[PatchCatalog] = None,
    ):
        self.dataset = dataset
        self.registry = registry
        self.bin_paths = bin_paths
        self.catalog = catalog if catalog is not None else load_default_catalog()

    def __repr__(self):
        return f"Client(dataset={self.dataset.name!r})"

    @property
    def paths(self) -> ClientPaths:
        if not Path(self.dataset.client_path).exists():
            raise ClientConfigError(
                f"Invalid client for dataset {self.dataset.name}: "
                f"{self.dataset.client_path} does not exist"
            )
        return ClientPaths(self.dataset.client_path, self.dataset.dev_patch_letter)

    def verify(self) -> None:
        """Raise if the installation is missing its executable or Data folder."""
        paths = self.paths
        for path in (paths.root, paths.wow_exe, paths.data):
            if not path.exists():
                raise ClientConfigError(
                    f"Missing/broken client for dataset {self.dataset.name}: "
                    f"{path} does not exist"
                )

    def patch_dir(self) -> Path:
        paths = self.paths
        return paths.locale_dir() if self.dataset.patch_use_locale else paths.data

    def patch_path(self, letter: str) -> Path:
        paths = self.paths
        locale = paths.locale() if self.dataset.patch_use_locale else ""
        return slots.overlay_path(letter, self.dataset.patch_use_locale, paths.data, locale)

    def free_slots(self) -> List[str]:
        return slots.free_slots(self.dataset, self.paths)

    def mpq_patches(self) -> List[Path]:
        return self.paths.overlays()

    def exe_patches(self):
        return self.catalog.categories_for(self.dataset.game_build)

    async def apply_patches(self) -> PatchResult:
        return await patcher.apply_patches(self.dataset, self.paths, self.catalog, self.bin_paths)

    def install_addons(self) -> int:
        """Copy every addon folder of the distribution into Interface/AddOns."""
        source = self.bin_paths.addons
        if not source.is_dir():
            logger.debug(f"No addons to install, {source} does not exist")
            return 0

        target = self.paths.addons
        installed = 0
        for node in sorted(source.iterdir()):
            if node.is_dir():
                copy_tree(node, target / node.name)
                installed += 1
        logger.info(f"Installed {installed} addon(s) into {target}")
        return installed

    def clear_cache(self) -> bool:
        return remove_tree(self.paths.cache)

    def write_realmlist(self, ip: str = DEFAULT_CLIENT_IP) -> None:
        realmlist = self.paths.realmlist
        content = f"set realmlist {ip}"
        if realmlist.exists():
            existing = realmlist.read_text(encoding="utf-8", errors="replace").strip()
            if existing not in (DEFAULT_REALMLIST, content):
                make_backup(realmlist)
        realmlist.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote '{content}' to {realmlist}")

    async def clean_frame_xml(self) -> int:
        """Remove the generated TSAddons FrameXML from every unpacked overlay."""
        await self.kill()
        removed = 0
        for node in self.mpq_patches():
            if node.is_dir() and remove_tree(node.joinpath(*TSADDONS_FRAMEXML_PARTS)):
                removed += 1
        return removed

    async def kill(self) -> int:
        return await self.registry.kill(self.dataset.name)

    def process_count(self) -> int:
        return self.registry.count(self.dataset.name)

    async def start(self, count: int = 1) -> None:
        if count <= 0:
            return
        await self.registry.start(self.dataset.name, self.paths.wow_exe, count)

    async def startup(self, count: int = 1, ip: str = DEFAULT_CLIENT_IP) -> None:
        await self.kill()
        await self.apply_patches()
        await asyncio.to_thread(self.install_addons)
        await asyncio.to_thread(self.clear_cache)
        await asyncio.to_thread(self.write_realmlist, ip)
        await self.start(count)
