"""
Path layout of a client installation and of the distribution tree.

Only path arithmetic and existence checks live here; reading and writing is
done by the callers.
"""

import re
from pathlib import Path
from typing import Iterator, List, Optional

from client_manager.constants import (
    CLIENT_EXE_BACKUP_NAME,
    CLIENT_EXE_NAME,
    EXTENSION_DLL_NAME,
    OVERLAY_NAME_PATTERN,
    REALMLIST_FILE_NAME,
)
from client_manager.errors import ClientConfigError

# Client locale folders look like enUS, deDE, zhCN, ...
_LOCALE_DIR_RE = re.compile(r"^[a-z]{2}[A-Z]{2}$")
_OVERLAY_RE = re.compile(OVERLAY_NAME_PATTERN)


class ClientPaths:
    """Well-known locations inside one client installation."""

    def __init__(self, root, dev_patch_letter: str = "A"):
        self.root = Path(root)
        self.dev_patch_letter = dev_patch_letter

    def __repr__(self):
        return f"ClientPaths({str(self.root)!r})"

    @property
    def wow_exe(self) -> Path:
        return self.root / CLIENT_EXE_NAME

    @property
    def wow_exe_clean(self) -> Path:
        """Pristine backup of the executable, captured before the first patch."""
        return self.root / CLIENT_EXE_BACKUP_NAME

    @property
    def extensions_dll(self) -> Path:
        return self.root / EXTENSION_DLL_NAME

    @property
    def data(self) -> Path:
        return self.root / "Data"

    @property
    def addons(self) -> Path:
        return self.root / "Interface" / "AddOns"

    @property
    def cache(self) -> Path:
        return self.root / "Cache"

    def find_locale_dir(self) -> Optional[Path]:
        if self.data.is_dir():
            for child in sorted(self.data.iterdir()):
                if child.is_dir() and _LOCALE_DIR_RE.match(child.name):
                    return child
        return None

    def locale_dir(self) -> Path:
        """The single locale folder under Data (e.g. Data/enUS)."""
        locale_dir = self.find_locale_dir()
        if locale_dir is None:
            raise ClientConfigError(f"No locale folder found in {self.data}")
        return locale_dir

    def locale(self) -> str:
        return self.locale_dir().name

    @property
    def realmlist(self) -> Path:
        return self.locale_dir() / REALMLIST_FILE_NAME

    @property
    def dev_patch(self) -> Path:
        """Overlay the dataset builds its own development content into."""
        return self.data / f"patch-{self.dev_patch_letter.upper()}.MPQ"

    def overlays(self) -> List[Path]:
        """Overlay archives (files or unpacked folders) in Data and Data/<locale>."""
        nodes = list(_iter_overlays(self.data))
        locale_dir = self.find_locale_dir()
        if locale_dir is not None:
            nodes.extend(_iter_overlays(locale_dir))
        return nodes


class BinPaths:
    """Files shipped with this installation that get copied into clients."""

    def __init__(self, root):
        self.root = Path(root)

    @property
    def extensions_dll(self) -> Path:
        return self.root / EXTENSION_DLL_NAME

    @property
    def addons(self) -> Path:
        return self.root / "addons"


def _iter_overlays(directory: Path) -> Iterator[Path]:
    if not directory.is_dir():
        return
    for node in sorted(directory.iterdir()):
        if _OVERLAY_RE.fullmatch(node.name.lower()):
            yield node
