"""
File helpers shared by the patch engine and the client lifecycle.
"""

import asyncio
import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import Optional

import aiofiles

from client_manager.logger import setup_logger

logger = setup_logger()


async def async_copy2(src: Path, dst: Path, chunk_size: int = 65536) -> None:
    """
    Async file copy that preserves metadata (similar to shutil.copy2).

    Args:
        src: Source file path
        dst: Destination file path
        chunk_size: Size of chunks for streaming copy (default 64KB)
    """
    async with aiofiles.open(src, 'rb') as fsrc:
        async with aiofiles.open(dst, 'wb') as fdst:
            while chunk := await fsrc.read(chunk_size):
                await fdst.write(chunk)

    # Copy metadata (stat info) - run in thread pool since it's sync
    await asyncio.to_thread(shutil.copystat, src, dst)


async def read_bytes(path: Path) -> bytes:
    async with aiofiles.open(path, 'rb') as f:
        return await f.read()


async def write_bytes_atomic(path: Path, data: bytes) -> None:
    """
    Replace `path` with `data` via a temp file in the same directory.

    Readers never see a half-written file; the old permissions are kept.
    """
    path = Path(path)
    original_mode = path.stat().st_mode if path.exists() else None

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        async with aiofiles.open(tmp_path, 'wb') as f:
            await f.write(data)
        if original_mode is not None:
            await asyncio.to_thread(os.chmod, tmp_path, stat.S_IMODE(original_mode))
            remove_read_only(path)
        await asyncio.to_thread(os.replace, tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def remove_read_only(file_path) -> None:
    if os.path.exists(file_path) and not os.access(file_path, os.W_OK):
        logger.info(f"Removing read-only attribute from {file_path}")
        os.chmod(file_path, stat.S_IWRITE | stat.S_IREAD)


def next_backup_path(path: Path) -> Path:
    """First unused `<name>.backup`, `<name>.backup1`, ... beside `path`."""
    candidate = path.with_name(f"{path.name}.backup")
    index = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.backup{index}")
        index += 1
    return candidate


def make_backup(path: Path) -> Optional[Path]:
    """
    Copy `path` to a fresh backup name, never overwriting older backups.

    Returns the backup path, or None when there was nothing to back up.
    """
    path = Path(path)
    if not path.exists():
        return None
    backup_path = next_backup_path(path)
    shutil.copy2(path, backup_path)
    logger.info(f"[BACKUP] Saved {path.name} as {backup_path.name}")
    return backup_path


def copy_tree(src: Path, dst: Path) -> None:
    """Copy a directory tree over `dst`, overwriting existing files."""
    shutil.copytree(src, dst, dirs_exist_ok=True)


def remove_tree(path: Path) -> bool:
    """Recursively delete `path`. Returns False when it did not exist."""
    path = Path(path)
    if not path.exists():
        return False
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()
    return True
