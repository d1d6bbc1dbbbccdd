"""
Client executable patcher.

Applies the patch categories enabled for a dataset to its Wow.exe:

1. capture a pristine backup (Wow.exe.clean) the first time
2. compare the backup against the known-clean digest, healing it from the
   working executable when only the latter is clean
3. truncate the image and install ClientExtensions.dll when enabled
4. write every edit of the enabled categories
5. replace Wow.exe with the result

Edits are applied on top of the current Wow.exe unless the dataset sets
patch_from_backup, so a category that is later disabled stays applied.
"""

import asyncio
from pathlib import Path

from client_manager import integrity
from client_manager.client_paths import BinPaths, ClientPaths
from client_manager.constants import CLEAN_CLIENT_MD5, EXTENSION_TRUNCATE_OFFSET
from client_manager.errors import ClientConfigError
from client_manager.file_utils import async_copy2, read_bytes, write_bytes_atomic
from client_manager.logger import setup_logger
from client_manager.models import DatasetConfig, PatchResult
from client_manager.patch_catalog import PatchCatalog

logger = setup_logger()


class ExecutableImage:
    """In-memory copy of the client executable."""

    def __init__(self, path: Path, backup_path: Path, data: bytes):
        self.path = Path(path)
        self.backup_path = Path(backup_path)
        self.buffer = bytearray(data)

    def __len__(self):
        return len(self.buffer)

    def truncate(self, size: int) -> None:
        del self.buffer[size:]

    def write(self, address: int, values) -> None:
        for offset, value in enumerate(values):
            self.buffer[address + offset] = value


async def ensure_backup(paths: ClientPaths) -> bool:
    """Copy Wow.exe to the backup path unless a backup already exists."""
    if paths.wow_exe_clean.exists():
        return False
    logger.info(f"[BACKUP] Saving pristine client executable to {paths.wow_exe_clean}")
    await async_copy2(paths.wow_exe, paths.wow_exe_clean)
    return True


async def load_source_image(dataset: DatasetConfig, paths: ClientPaths, result: PatchResult) -> ExecutableImage:
    """
    Check the backup against the clean digest and pick the bytes to patch.

    Fills in the integrity fields of `result`.
    """
    backup = await read_bytes(paths.wow_exe_clean)
    source_digest = integrity.digest(backup)
    working = None

    if source_digest != CLEAN_CLIENT_MD5:
        working = await read_bytes(paths.wow_exe)
        working_digest = integrity.digest(working)
        if working_digest == CLEAN_CLIENT_MD5:
            # A clean executable was dropped in after a dirty backup was taken
            logger.info(
                f"Working client executable is clean, replacing backup {paths.wow_exe_clean}"
            )
            await write_bytes_atomic(paths.wow_exe_clean, working)
            backup = working
            source_digest = working_digest
            result.backup_healed = True
        else:
            logger.warning(
                f"Unclean {paths.wow_exe.name} detected for dataset {dataset.name} "
                f"(hash {source_digest}, expected {CLEAN_CLIENT_MD5}). "
                f"Consider replacing it with a clean 3.3.5a client"
            )

    result.source_digest = source_digest
    result.clean = source_digest == CLEAN_CLIENT_MD5
    if result.clean:
        logger.info(f"Source client hash is {source_digest} (clean!)")
    else:
        logger.info(f"Source client hash is {source_digest}")

    if dataset.patch_from_backup or result.backup_healed:
        data = backup
    else:
        data = working if working is not None else await read_bytes(paths.wow_exe)
    return ExecutableImage(paths.wow_exe, paths.wow_exe_clean, data)


def truncate_for_extensions(dataset: DatasetConfig, image: ExecutableImage, bin_paths: BinPaths) -> None:
    """Cut the image at the extension offset once the module is known to exist."""
    source = bin_paths.extensions_dll
    if not source.exists():
        raise ClientConfigError(
            f"Dataset {dataset.name} has client extensions enabled but this "
            f"installation does not have one. Please put a working dll at {source}"
        )
    image.truncate(EXTENSION_TRUNCATE_OFFSET)


async def install_extensions(paths: ClientPaths, bin_paths: BinPaths) -> None:
    source = bin_paths.extensions_dll
    await async_copy2(source, paths.extensions_dll)
    logger.info(f"Installed {source.name} into {paths.root}")


def apply_edits(
    dataset: DatasetConfig, image: ExecutableImage, catalog: PatchCatalog, result: PatchResult
) -> None:
    selection = dataset.selection()
    categories = catalog.categories_for(dataset.game_build)
    known = {category.name for category in categories}

    for name in selection.categories:
        if name not in known:
            logger.debug(
                f"Patch '{name}' is not in the catalog for build {dataset.game_build}, skipping"
            )

    catalog.validate_bounds(dataset.game_build, len(image))

    for category in categories:
        if not selection.is_enabled(category.name):
            continue
        for edit in category.edits:
            image.write(edit.address, edit.values)
            result.edits_applied += 1
        result.applied_categories.append(category.name)


async def apply_patches(
    dataset: DatasetConfig, paths: ClientPaths, catalog: PatchCatalog, bin_paths: BinPaths
) -> PatchResult:
    """
    Patch the client executable of `dataset` in place.

    Raises:
        ClientConfigError: extensions are enabled but the module is missing
        PatchCatalogError: an edit does not fit the executable image
    """
    logger.info(f"Applying client patches for dataset {dataset.name}...")
    if not paths.wow_exe.exists():
        raise ClientConfigError(
            f"Missing/broken client for dataset {dataset.name}: {paths.wow_exe} does not exist"
        )

    result = PatchResult(source_digest="", clean=False, backup_path=str(paths.wow_exe_clean))
    result.backup_created = await ensure_backup(paths)

    image = await load_source_image(dataset, paths, result)

    extensions = dataset.selection().extensions_enabled
    if extensions:
        truncate_for_extensions(dataset, image, bin_paths)

    # edits must fit before the module or the image is written
    catalog.validate_bounds(dataset.game_build, len(image))

    if extensions:
        await install_extensions(paths, bin_paths)
        result.extensions_installed = True

    await asyncio.to_thread(apply_edits, dataset, image, catalog, result)

    await write_bytes_atomic(paths.wow_exe, bytes(image.buffer))
    logger.info(
        f"Applied {result.edits_applied} edit(s) from {len(result.applied_categories)} "
        f"patch(es) to {paths.wow_exe}"
    )
    return result
