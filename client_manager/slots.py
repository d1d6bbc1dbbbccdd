"""
Overlay slot allocation.

Overlay archives are named by one letter (patch-X.MPQ). Free letters are
searched from the dataset's development letter onward, in a fixed order.
"""

import os
from pathlib import Path
from typing import List, Tuple

from client_manager.client_paths import ClientPaths
from client_manager.errors import ClientConfigError
from client_manager.models import DatasetConfig

# '4'..'8' then 'A'..'Y'. '9' and 'Z' are never handed out.
SLOT_ALPHABET: Tuple[str, ...] = tuple(
    [str(digit) for digit in range(4, 9)]
    + [chr(code) for code in range(ord("A"), ord("Z"))]
)


def overlay_path(letter: str, use_locale: bool, data_dir: Path, locale: str = "") -> Path:
    """Where the overlay for `letter` lives. Pure path arithmetic, no I/O."""
    letter = letter.upper()
    if use_locale:
        return Path(data_dir) / locale / f"patch-{locale}-{letter}.MPQ"
    return Path(data_dir) / f"patch-{letter}.MPQ"


def slot_index(letter: str, dataset_name: str) -> int:
    try:
        return SLOT_ALPHABET.index(str(letter).upper())
    except ValueError:
        raise ClientConfigError(
            f"Invalid patch letter: {letter} (in dataset {dataset_name})"
        ) from None


def free_slot_paths(dataset: DatasetConfig, paths: ClientPaths) -> List[Tuple[str, Path]]:
    """(letter, path) for every unused overlay slot from the dev letter onward."""
    start = slot_index(dataset.dev_patch_letter, dataset.name)
    locale = paths.locale() if dataset.patch_use_locale else ""
    dev_patch = os.path.abspath(paths.dev_patch)

    free = []
    for letter in SLOT_ALPHABET[start:]:
        path = overlay_path(letter, dataset.patch_use_locale, paths.data, locale)
        if path.exists() or os.path.abspath(path) == dev_patch:
            continue
        free.append((letter, path))
    return free


def free_slots(dataset: DatasetConfig, paths: ClientPaths) -> List[str]:
    """Free overlay letters in alphabet order; may be empty."""
    return [letter for letter, _ in free_slot_paths(dataset, paths)]
