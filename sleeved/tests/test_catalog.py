"""
Tests for the card catalog.
"""

import json

import pytest

from ..engine_core.cards import CardDefinition, CardStats, CardType, DrawCards, SpecialEffect, TriggerKind
from ..session import CardCatalog, CatalogValidationError, load_catalog, validate_catalog


class TestCardCatalog:

    def test_find(self, catalog):
        """Cards are found by id."""
        assert catalog.find("wolf").name == "Wolf"
        assert catalog.find("missing") is None

    def test_find_of_type(self, catalog):
        """Lookups by type ignore cards of other types."""
        assert catalog.find_of_type("sword", CardType.EQUIPMENT) is not None
        assert catalog.find_of_type("sword", CardType.ANIMAL) is None

    def test_from_cards_splits_by_type(self, sleeves, animals, equipment):
        """from_cards sorts cards by type."""
        catalog = CardCatalog.from_cards([*equipment, *animals, *sleeves])
        assert len(catalog.sleeves) == len(sleeves)
        assert len(catalog.animals) == len(animals)
        assert len(catalog.equipment) == len(equipment)

    def test_active_only(self, catalog):
        """Inactive cards are dropped."""
        catalog.animals.append(CardDefinition.animal("retired", "Retired", CardStats(damage=1), active=False))
        assert catalog.active_only().find("retired") is None
        assert catalog.find("retired") is not None


class TestLoadCatalog:

    def test_load_from_file(self, tmp_path):
        """Catalog loads from a JSON file."""
        path = tmp_path / "cards.json"
        path.write_text(json.dumps({"cards": [
            {"id": "s1", "type": "sleeve", "name": "Sleeve", "backgroundStats": {"damage": 1}},
            {"id": "a1", "type": "animal", "name": "Animal", "stats": {"damage": 3, "health": 4}},
        ]}))

        catalog = load_catalog(path)
        assert [c.id for c in catalog.sleeves] == ["s1"]
        assert catalog.find("a1").stats.health == 4

    def test_bare_list(self, tmp_path):
        """A bare list of cards is accepted."""
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([{"id": "e1", "type": "equipment", "name": "Sword", "stats": {"damage": 5}}]))
        assert load_catalog(path).equipment[0].id == "e1"

    def test_malformed_nested_document(self, tmp_path):
        """A non-object modifier is a ValueError, so the CLI can report it."""
        path = tmp_path / "cards.json"
        path.write_text(json.dumps([{"id": "e1", "type": "equipment", "name": "Oil", "stats": {"modifier": 5}}]))
        with pytest.raises(ValueError, match="Modifier must be an object"):
            load_catalog(path)


class TestValidateCatalog:

    def test_valid_catalog(self, catalog):
        """A well-formed catalog has no errors."""
        result = validate_catalog(catalog)
        assert result.valid
        assert result.errors == []

    def test_duplicate_ids(self, catalog):
        """Duplicate ids are errors."""
        catalog.animals.append(CardDefinition.animal("wolf", "Other Wolf"))
        result = validate_catalog(catalog)
        assert not result.valid
        assert "Duplicate card id: wolf" in result.errors

    def test_wrong_stat_blocks(self):
        """Stat blocks on the wrong card type are errors."""
        catalog = CardCatalog(
            sleeves=[CardDefinition(id="s", name="S", type=CardType.SLEEVE, stats=CardStats(damage=1))],
            animals=[CardDefinition(id="a", name="A", type=CardType.ANIMAL, background_stats=CardStats(damage=1))],
        )
        result = validate_catalog(catalog)
        assert len(result.errors) == 2

    def test_bad_draw_count(self):
        """Draw effects must draw at least one card."""
        effect = SpecialEffect(TriggerKind.IF_SURVIVES, DrawCards(0))
        catalog = CardCatalog(animals=[CardDefinition.animal("a", "A", CardStats(special_effect=effect))])
        result = validate_catalog(catalog)
        assert any("draw_cards count" in e for e in result.errors)

    def test_warnings(self):
        """Suspicious but playable cards produce warnings."""
        result = validate_catalog(CardCatalog(animals=[CardDefinition.animal("a", "A", CardStats(damage=1))]))
        assert result.valid
        assert "Catalog has no sleeves" in result.warnings
        assert "Card a: no image" in result.warnings

    def test_raise_on_error(self):
        """raise_on_error raises with the errors attached."""
        catalog = CardCatalog(animals=[CardDefinition.animal("a", "")])
        with pytest.raises(CatalogValidationError) as exc_info:
            validate_catalog(catalog, raise_on_error=True)
        assert exc_info.value.errors == ["Card a: name is required"]
