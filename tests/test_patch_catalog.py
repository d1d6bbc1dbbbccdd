"""Catalog lookup and load-time validation."""

import pytest

from client_manager.errors import PatchCatalogError
from client_manager.models import PatchCategory, PatchEdit, encode_json, PatchCatalogData
from client_manager.patch_catalog import PatchCatalog, load_default_catalog


def write_catalog(path, builds):
    path.write_bytes(encode_json(PatchCatalogData(builds=builds)))
    return path


class TestLookup:

    def test_categories_in_catalog_order(self, catalog):
        assert catalog.category_names("B1") == ("core", "extra")

    def test_unknown_build_has_no_categories(self, catalog):
        assert catalog.categories_for("does-not-exist") == ()

    def test_numeric_build_matches_string_key(self):
        catalog = PatchCatalog({"12340": [PatchCategory("a", (PatchEdit(0, (1,)),))]})
        assert catalog.category_names(12340) == ("a",)


class TestValidation:

    def test_overlap_across_categories_is_rejected(self):
        with pytest.raises(PatchCatalogError, match="overlaps 'first' at 0x11"):
            PatchCatalog(
                {
                    "B1": [
                        PatchCategory("first", (PatchEdit(16, (1, 2)),)),
                        PatchCategory("second", (PatchEdit(17, (3,)),)),
                    ]
                }
            )

    def test_same_offsets_in_different_builds_are_fine(self):
        catalog = PatchCatalog(
            {
                "B1": [PatchCategory("a", (PatchEdit(16, (1,)),))],
                "B2": [PatchCategory("a", (PatchEdit(16, (2,)),))],
            }
        )
        assert set(catalog.builds()) == {"B1", "B2"}

    def test_duplicate_category_names_are_rejected(self):
        with pytest.raises(PatchCatalogError, match="Duplicate"):
            PatchCatalog(
                {
                    "B1": [
                        PatchCategory("a", (PatchEdit(0, (1,)),)),
                        PatchCategory("a", (PatchEdit(8, (1,)),)),
                    ]
                }
            )

    def test_max_size_bounds_edits(self):
        with pytest.raises(PatchCatalogError, match="only 0x10 bytes"):
            PatchCatalog({"B1": [PatchCategory("a", (PatchEdit(15, (1, 2)),))]}, max_size=16)

    def test_validate_bounds_accepts_exact_fit(self, catalog):
        catalog.validate_bounds("B1", 42)
        with pytest.raises(PatchCatalogError):
            catalog.validate_bounds("B1", 41)

    def test_negative_address_is_invalid(self):
        with pytest.raises(ValueError):
            PatchEdit(-1, (1,))

    def test_non_byte_value_is_invalid(self):
        with pytest.raises(ValueError):
            PatchEdit(0, (256,))


class TestLoad:

    def test_load_round_trips_file(self, tmp_path):
        path = write_catalog(
            tmp_path / "patches.json",
            {"B1": [PatchCategory("core", (PatchEdit(16, (0xAB, 0xCD)),))]},
        )
        catalog = PatchCatalog.load(path)
        (category,) = catalog.categories_for("B1")
        assert category.edits[0].values == (0xAB, 0xCD)

    def test_invalid_value_in_file_is_catalog_error(self, tmp_path):
        path = tmp_path / "patches.json"
        path.write_text('{"builds": {"B1": [{"name": "x", "edits": [{"address": 0, "values": [300]}]}]}}')
        with pytest.raises(PatchCatalogError, match="Invalid patch catalog"):
            PatchCatalog.load(path)

    def test_missing_file_is_catalog_error(self, tmp_path):
        with pytest.raises(PatchCatalogError, match="Cannot read"):
            PatchCatalog.load(tmp_path / "missing.json")

    def test_bundled_catalog_loads(self):
        catalog = load_default_catalog()
        assert "12340" in catalog.builds()
        assert load_default_catalog() is catalog
