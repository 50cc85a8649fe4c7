# tests/test_taxonomy.py
"""
Unit tests for the dark pattern category registry.
"""

import json

import pytest

from fairplay.errors import ConfigMissing
from fairplay.taxonomy import Category, CategoryRegistry, load_default_registry, load_registry


def _category(id, name):
    return {"id": id, "name": name, "scanDescription": f"{name} scan", "fixInstructions": f"{name} fix"}


class TestBundledTaxonomy:
    """Tests for the taxonomy shipped with the package."""

    def test_loads_six_categories(self, registry):
        """Bundled file should define the six categories in file order."""
        assert registry.ids == [
            "false_hierarchy",
            "hidden_information",
            "confirmshaming",
            "forced_action",
            "trick_questions",
            "preselected_options",
        ]

    def test_every_category_has_instructions(self, registry):
        """Every category needs text for both prompts."""
        for category in registry:
            assert category.scan_description
            assert category.fix_instructions

    def test_lookup_by_id_and_name(self, registry):
        """by_id and by_name should return the same category."""
        assert registry.by_id("confirmshaming") is registry.by_name("Confirmshaming")

    def test_lookups_are_exact(self, registry):
        """Name lookup is case-sensitive; fuzzy matching lives in the decoder."""
        assert registry.by_name("confirmshaming") is None
        assert registry.by_id("Confirmshaming") is None

    def test_contains_by_id(self, registry):
        assert "forced_action" in registry
        assert "urgency" not in registry


class TestLoadRegistry:
    """Tests for loading from mappings, JSON text and files."""

    def test_from_mapping(self):
        """Should accept an already-parsed mapping."""
        registry = load_registry({"categories": [_category("a", "Alpha")]})
        assert registry.by_id("a") == Category(id="a", name="Alpha", scan_description="Alpha scan", fix_instructions="Alpha fix")

    def test_from_json_text(self):
        """Should parse a JSON document passed as a string."""
        text = json.dumps({"categories": [_category("a", "Alpha"), _category("b", "Beta")]})
        assert load_registry(text).names == ["Alpha", "Beta"]

    def test_from_path(self, tmp_path):
        """Should read a taxonomy file from disk."""
        path = tmp_path / "categories.json"
        path.write_text(json.dumps({"categories": [_category("a", "Alpha")]}))
        assert len(load_registry(path)) == 1
        assert len(load_default_registry(str(path))) == 1

    def test_missing_file(self, tmp_path):
        """A missing file is a configuration error."""
        with pytest.raises(ConfigMissing):
            load_registry(tmp_path / "nope.json")

    def test_invalid_json(self):
        with pytest.raises(ConfigMissing):
            load_registry(b"{not json")

    def test_empty_category_list(self):
        """A taxonomy without categories is rejected."""
        with pytest.raises(ConfigMissing):
            load_registry({"categories": []})

    def test_missing_fix_instructions(self):
        """Each category needs fixInstructions."""
        with pytest.raises(ConfigMissing):
            load_registry({"categories": [{"id": "a", "name": "Alpha", "scanDescription": "x"}]})

    def test_duplicate_id(self):
        with pytest.raises(ConfigMissing, match="Duplicate category id"):
            load_registry({"categories": [_category("a", "Alpha"), _category("a", "Beta")]})

    def test_duplicate_name(self):
        with pytest.raises(ConfigMissing, match="Duplicate category name"):
            CategoryRegistry(
                [
                    Category(id="a", name="Alpha", scan_description="", fix_instructions=""),
                    Category(id="b", name="Alpha", scan_description="", fix_instructions=""),
                ]
            )
