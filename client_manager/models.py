"""
msgspec-based data models for the client manager.

This module provides:
- The patch catalog structures (edits, categories, catalog documents)
- Dataset and node settings as read from the config file
- Result structures returned by the patch engine
- Convenience functions for JSON encoding/decoding
"""

import msgspec
from typing import Optional, List, Dict, Tuple

from client_manager.constants import DEFAULT_GAME_BUILD, EXTENSION_PATCH_NAME


# =============================================================================
# Global Encoders/Decoders
# =============================================================================

json_encoder = msgspec.json.Encoder()
json_decoder = msgspec.json.Decoder()


# =============================================================================
# Convenience Functions
# =============================================================================

def encode_json(obj) -> bytes:
    """
    Encode object to JSON bytes using msgspec.

    Args:
        obj: Any msgspec.Struct or serializable object

    Returns:
        JSON as bytes
    """
    return json_encoder.encode(obj)


def decode_json(data: bytes, type=None):
    """
    Decode JSON bytes to object using msgspec.

    Args:
        data: JSON as bytes
        type: Optional msgspec.Struct type for validation

    Returns:
        Decoded object (validated if type provided)

    Example:
        >>> data = b'{"builds": {"12340": []}}'
        >>> catalog = decode_json(data, type=PatchCatalogData)
    """
    if type:
        return msgspec.json.decode(data, type=type)
    return json_decoder.decode(data)


# =============================================================================
# Patch Catalog Structures
# =============================================================================

class PatchEdit(msgspec.Struct, frozen=True):
    """
    A single fixed-offset byte overwrite.

    `values` are written one after another starting at `address`.
    """
    address: int
    values: Tuple[int, ...]

    def __post_init__(self):
        if self.address < 0:
            raise ValueError(f"Patch address must be non-negative, got {self.address}")
        if not self.values:
            raise ValueError(f"Patch at 0x{self.address:x} has no values")
        for value in self.values:
            if not 0 <= value <= 0xFF:
                raise ValueError(f"Patch value {value} at 0x{self.address:x} is not a byte")

    @property
    def end(self) -> int:
        """Offset one past the last byte written by this edit."""
        return self.address + len(self.values)


class PatchCategory(msgspec.Struct, frozen=True):
    """Named, ordered group of edits that are enabled or disabled together."""
    name: str
    edits: Tuple[PatchEdit, ...] = ()


class PatchCatalogData(msgspec.Struct):
    """
    On-disk shape of a patch catalog file.

    Maps a build identifier (e.g. "12340") to its categories in catalog order.
    """
    builds: Dict[str, List[PatchCategory]]


class PatchSelection(msgspec.Struct, frozen=True):
    """Patch categories enabled for one dataset."""
    categories: Tuple[str, ...] = ()
    extensions_enabled: bool = False

    @classmethod
    def from_names(cls, names) -> "PatchSelection":
        names = tuple(names)
        return cls(categories=names, extensions_enabled=EXTENSION_PATCH_NAME in names)

    def is_enabled(self, category_name: str) -> bool:
        return category_name in self.categories


# =============================================================================
# Configuration Structures
# =============================================================================

class DatasetConfig(msgspec.Struct):
    """
    Client settings of a single dataset.

    Read from a `[Dataset.<name>]` section of the config file.
    """
    name: str
    client_path: str
    client_patches: List[str] = msgspec.field(default_factory=list)
    dev_patch_letter: str = "A"
    patch_use_locale: bool = False
    game_build: str = DEFAULT_GAME_BUILD
    patch_from_backup: bool = False

    def selection(self) -> PatchSelection:
        return PatchSelection.from_names(self.client_patches)


class NodeSettings(msgspec.Struct):
    """
    Settings shared by every dataset on this node.
    """
    default_dataset: str = "default"
    auto_start_client: int = 0
    bin_path: str = ""

    def __post_init__(self):
        if self.auto_start_client < 0:
            raise ValueError(f"AutoStartClient must be >= 0, got {self.auto_start_client}")


# =============================================================================
# Engine Results
# =============================================================================

class PatchResult(msgspec.Struct):
    """
    Results from one patch run.

    Describes which baseline was used and what was written.
    """
    source_digest: str
    clean: bool
    backup_created: bool = False
    backup_healed: bool = False
    extensions_installed: bool = False
    applied_categories: List[str] = msgspec.field(default_factory=list)
    edits_applied: int = 0
    backup_path: Optional[str] = None
