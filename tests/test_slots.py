"""Overlay slot allocation."""

from pathlib import Path

import pytest

from client_manager.client_paths import ClientPaths
from client_manager.errors import ClientConfigError
from client_manager.slots import SLOT_ALPHABET, free_slot_paths, free_slots, overlay_path


class TestAlphabet:

    def test_digits_then_letters_without_9_or_z(self):
        assert SLOT_ALPHABET[:5] == ("4", "5", "6", "7", "8")
        assert SLOT_ALPHABET[5] == "A"
        assert SLOT_ALPHABET[-1] == "Y"
        assert "Z" not in SLOT_ALPHABET
        assert "9" not in SLOT_ALPHABET
        assert len(SLOT_ALPHABET) == 30


class TestOverlayPath:

    def test_plain_overlay(self):
        assert overlay_path("b", False, Path("Data")) == Path("Data") / "patch-B.MPQ"

    def test_locale_overlay(self):
        assert overlay_path("c", True, Path("Data"), "enUS") == Path("Data") / "enUS" / "patch-enUS-C.MPQ"


class TestFreeSlots:

    def test_start_letter_b_locale_scoped(self, make_dataset, client_root):
        dataset = make_dataset(dev_patch_letter="B", patch_use_locale=True)
        paths = ClientPaths(client_root, "B")

        letters = free_slots(dataset, paths)

        assert letters[0] == "B"
        assert letters == list(SLOT_ALPHABET[SLOT_ALPHABET.index("B"):])
        assert not set(letters) & {"4", "5", "6", "7", "8", "A"}

    def test_dev_patch_letter_is_excluded(self, make_dataset, client_root):
        dataset = make_dataset(dev_patch_letter="b")
        paths = ClientPaths(client_root, "b")

        letters = free_slots(dataset, paths)

        assert "B" not in letters
        assert letters[0] == "C"

    def test_existing_archives_are_skipped(self, make_dataset, client_root):
        data = client_root / "Data"
        (data / "patch-D.MPQ").write_bytes(b"")
        (data / "patch-F.MPQ").mkdir()
        dataset = make_dataset(dev_patch_letter="4")
        paths = ClientPaths(client_root, "4")

        result = free_slot_paths(dataset, paths)

        assert all(not path.exists() for _, path in result)
        letters = [letter for letter, _ in result]
        assert "D" not in letters
        assert "F" not in letters
        assert "4" not in letters
        assert letters[0] == "5"

    def test_existing_locale_archive_is_skipped(self, make_dataset, client_root):
        (client_root / "Data" / "enUS" / "patch-enUS-C.MPQ").write_bytes(b"")
        dataset = make_dataset(dev_patch_letter="B", patch_use_locale=True)

        result = free_slot_paths(dataset, ClientPaths(client_root, "B"))

        letters = [letter for letter, _ in result]
        assert letters[:2] == ["B", "D"]
        assert "C" not in letters
        assert all(not path.exists() for _, path in result)

    def test_no_free_slots(self, make_dataset, client_root):
        (client_root / "Data" / "patch-Y.MPQ").write_bytes(b"")
        dataset = make_dataset(dev_patch_letter="X")

        assert free_slots(dataset, ClientPaths(client_root, "X")) == []

    @pytest.mark.parametrize("letter", ["Z", "9", "?", "", "AB"])
    def test_invalid_start_letter(self, make_dataset, client_root, letter):
        dataset = make_dataset(name="broken", dev_patch_letter=letter)

        with pytest.raises(ClientConfigError, match="broken"):
            free_slots(dataset, ClientPaths(client_root, letter))
