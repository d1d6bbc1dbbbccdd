from .version import __version__
from .logger import setup_logger
from .errors import ClientManagerError, ClientConfigError, PatchCatalogError
from .constants import CLEAN_CLIENT_MD5, EXTENSION_TRUNCATE_OFFSET
from .integrity import digest, is_clean
from .patch_catalog import PatchCatalog, load_default_catalog
from .patcher import apply_patches
from .slots import SLOT_ALPHABET, free_slots, overlay_path
from .process_registry import ProcessRegistry, launch_client
from .client import Client

__all__ = [
    "__version__",
    "setup_logger",
    "ClientManagerError",
    "ClientConfigError",
    "PatchCatalogError",
    "CLEAN_CLIENT_MD5",
    "EXTENSION_TRUNCATE_OFFSET",
    "digest",
    "is_clean",
    "PatchCatalog",
    "load_default_catalog",
    "apply_patches",
    "SLOT_ALPHABET",
    "free_slots",
    "overlay_path",
    "ProcessRegistry",
    "launch_client",
    "Client",
]
