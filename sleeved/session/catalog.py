"""
Card Catalog - The card snapshot a match is played with.

Matches never read live card definitions; they get a catalog when they
start, so later edits to the card set only affect new matches.

Validates that:
1. Card ids are unique
2. Each card only carries the stat blocks its type allows
3. Effect parameters are sane (draw counts, names)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable
import json

from ..engine_core.cards import (
    CardDefinition,
    CardFormatError,
    CardStats,
    CardType,
    DrawCards,
    card_from_dict,
)


class CatalogValidationError(Exception):
    """Raised when catalog validation fails."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Catalog validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


@dataclass
class CardCatalog:
    """Cards available in a match, split by type."""
    sleeves: list[CardDefinition] = field(default_factory=list)
    animals: list[CardDefinition] = field(default_factory=list)
    equipment: list[CardDefinition] = field(default_factory=list)

    @classmethod
    def from_cards(cls, cards: Iterable[CardDefinition]) -> CardCatalog:
        catalog = cls()
        for card in cards:
            if card.type == CardType.SLEEVE:
                catalog.sleeves.append(card)
            elif card.type == CardType.ANIMAL:
                catalog.animals.append(card)
            else:
                catalog.equipment.append(card)
        return catalog

    @property
    def all_cards(self) -> list[CardDefinition]:
        return [*self.sleeves, *self.animals, *self.equipment]

    def find(self, card_id: str) -> CardDefinition | None:
        """Find a card by id in any section."""
        for card in self.all_cards:
            if card.id == card_id:
                return card
        return None

    def find_of_type(self, card_id: str, card_type: CardType) -> CardDefinition | None:
        """Find a card by id, only if it has the expected type."""
        card = self.find(card_id)
        if card is not None and card.type == card_type:
            return card
        return None

    def active_only(self) -> CardCatalog:
        """Inactive cards are left out of new matches."""
        return CardCatalog.from_cards(c for c in self.all_cards if c.active)


def load_catalog(path: str | Path) -> CardCatalog:
    """
    Load a catalog from a JSON file.

    Expected shape: {"cards": [{"id": ..., "type": "sleeve", ...}, ...]}
    A bare list of cards is accepted too.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    cards = data.get("cards", []) if isinstance(data, dict) else data
    if not isinstance(cards, list):
        raise CardFormatError("Catalog 'cards' must be a list")
    return CardCatalog.from_cards(card_from_dict(c) for c in cards)


def validate_catalog(catalog: CardCatalog, raise_on_error: bool = False) -> ValidationResult:
    """
    Validate a card catalog.

    Returns ValidationResult with errors and warnings.
    Raises CatalogValidationError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    seen: set[str] = set()
    for card in catalog.all_cards:
        if card.id in seen:
            errors.append(f"Duplicate card id: {card.id}")
        seen.add(card.id)
        errors.extend(_validate_card(card))
        warnings.extend(_card_warnings(card))

    if not catalog.sleeves:
        warnings.append("Catalog has no sleeves")
    if not catalog.animals:
        warnings.append("Catalog has no animals")

    if raise_on_error and errors:
        raise CatalogValidationError(errors)

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)


def _validate_card(card: CardDefinition) -> list[str]:
    errors = []
    prefix = f"Card {card.id}"

    if not card.name:
        errors.append(f"{prefix}: name is required")

    if card.type == CardType.SLEEVE:
        if card.stats is not None:
            errors.append(f"{prefix}: sleeves use backgroundStats/foregroundStats, not stats")
        blocks = [card.background_stats, card.foreground_stats]
    else:
        if card.background_stats is not None or card.foreground_stats is not None:
            errors.append(f"{prefix}: only sleeves have background/foreground stats")
        blocks = [card.stats]

    for stats in blocks:
        if stats is not None:
            errors.extend(_validate_stats(prefix, stats))

    return errors


def _validate_stats(prefix: str, stats: CardStats) -> list[str]:
    errors = []
    effect = stats.special_effect
    if effect is not None and isinstance(effect.effect, DrawCards) and effect.effect.count < 1:
        errors.append(f"{prefix}: draw_cards count must be at least 1")
    return errors


def _card_warnings(card: CardDefinition) -> list[str]:
    warnings = []
    if card.image_url is None:
        warnings.append(f"Card {card.id}: no image")
    blocks = (card.background_stats, card.foreground_stats)
    if card.type == CardType.SLEEVE and all(b is None or b.is_empty for b in blocks):
        warnings.append(f"Card {card.id}: sleeve defines no stats")
    return warnings
