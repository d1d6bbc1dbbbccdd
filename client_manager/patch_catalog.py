"""
Patch catalog: the fixed byte edits known for each client build.

Catalogs are JSON documents decoded with msgspec (see models.PatchCatalogData)
and checked once when loaded, so an authoring mistake surfaces at startup
instead of silently corrupting an executable.
"""

import threading
from pathlib import Path
from typing import Mapping, Optional, Sequence, Tuple

import msgspec

from client_manager.errors import PatchCatalogError
from client_manager.logger import setup_logger
from client_manager.models import PatchCatalogData, PatchCategory, decode_json

logger = setup_logger()

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "client_patches.json"

_default_catalog: Optional["PatchCatalog"] = None
_default_catalog_lock = threading.Lock()


class PatchCatalog:
    """Immutable table of patch categories indexed by build identifier."""

    def __init__(
        self,
        builds: Mapping[str, Sequence[PatchCategory]],
        max_size: Optional[int] = None,
    ):
        self._builds = {
            str(build): tuple(categories) for build, categories in builds.items()
        }
        for build in self._builds:
            self._check_build(build, max_size)

    @classmethod
    def load(cls, path, max_size: Optional[int] = None) -> "PatchCatalog":
        """Read and validate a catalog file."""
        path = Path(path)
        try:
            data = decode_json(path.read_bytes(), type=PatchCatalogData)
        except OSError as e:
            raise PatchCatalogError(f"Cannot read patch catalog {path}: {e}") from e
        except msgspec.DecodeError as e:
            raise PatchCatalogError(f"Invalid patch catalog {path}: {e}") from e

        catalog = cls(data.builds, max_size=max_size)
        logger.debug(
            f"Loaded patch catalog {path} with builds {sorted(catalog._builds)}"
        )
        return catalog

    def builds(self) -> Tuple[str, ...]:
        return tuple(self._builds)

    def categories_for(self, build_id) -> Tuple[PatchCategory, ...]:
        """Categories for `build_id` in catalog order; unknown builds have none."""
        return self._builds.get(str(build_id), ())

    def category_names(self, build_id) -> Tuple[str, ...]:
        return tuple(category.name for category in self.categories_for(build_id))

    def validate_bounds(self, build_id, size: int) -> None:
        """Raise if any edit of `build_id` would write past `size` bytes."""
        for category in self.categories_for(build_id):
            for edit in category.edits:
                if edit.end > size:
                    raise PatchCatalogError(
                        f"Patch '{category.name}' (build {build_id}) writes "
                        f"0x{edit.address:x}-0x{edit.end - 1:x} but the image is "
                        f"only 0x{size:x} bytes"
                    )

    def _check_build(self, build_id, max_size: Optional[int]) -> None:
        # byte offset -> category that claimed it
        owners = {}
        seen_names = set()
        for category in self._builds[build_id]:
            if category.name in seen_names:
                raise PatchCatalogError(
                    f"Duplicate patch category '{category.name}' for build {build_id}"
                )
            seen_names.add(category.name)

            for edit in category.edits:
                for offset in range(edit.address, edit.end):
                    owner = owners.get(offset)
                    if owner is not None:
                        raise PatchCatalogError(
                            f"Patch '{category.name}' (build {build_id}) overlaps "
                            f"'{owner}' at 0x{offset:x}"
                        )
                    owners[offset] = category.name
        if max_size is not None:
            self.validate_bounds(build_id, max_size)


def load_default_catalog() -> PatchCatalog:
    """Load the bundled catalog once per process."""
    global _default_catalog
    with _default_catalog_lock:
        if _default_catalog is None:
            _default_catalog = PatchCatalog.load(DEFAULT_CATALOG_PATH)
        return _default_catalog
