"""
Game Rules - Scoring and dealing constants.

Rules are snapshotted when a match starts; later edits only affect new
matches. The engine treats them as read-only input.

Two scoring schemes exist:
- SURVIVAL: survivors earn pointsForSurviving, plus pointsForDefeating
  when they destroyed the opponent.
- ABSORPTION: survivors earn pointsPerAbsorbed for each point of damage
  they took, plus pointsForKill and pointsPerOverkill for each point of
  damage beyond the opponent's health when they destroyed the opponent.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any

from .cards import CardFormatError, _optional_int


class ScoringScheme(Enum):
    """Which scoring formula the combat resolver applies."""
    SURVIVAL = "survival"
    ABSORPTION = "absorption"


@dataclass(frozen=True)
class GameRules:
    """Rules configuration for a match."""
    version: int = 1

    # Scoring
    points_for_surviving: int = 1
    points_for_defeating: int = 2
    points_to_win: int = 15
    scoring: ScoringScheme = ScoringScheme.SURVIVAL

    # Card draw
    starting_equipment_hand: int = 5
    equipment_draw_per_round: int = 1
    starting_animal_hand: int = 3

    # Combat
    default_initiative: int = 0

    # Absorption scoring (v1.2.0)
    max_rounds: int = 5
    points_for_kill: int = 3
    points_per_overkill: int = 1
    points_per_absorbed: int = 1

    custom_rules: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def with_updates(self, **changes: Any) -> GameRules:
        """Return a copy with some fields replaced."""
        return replace(self, **changes)


DEFAULT_GAME_RULES = GameRules()

# Scoring constants that may not go below zero
_NON_NEGATIVE = (
    "points_for_surviving",
    "points_for_defeating",
    "points_for_kill",
    "points_per_overkill",
    "points_per_absorbed",
)


# camelCase document key -> dataclass field
_KEY_MAP = {
    "version": "version",
    "pointsForSurviving": "points_for_surviving",
    "pointsForDefeating": "points_for_defeating",
    "pointsToWin": "points_to_win",
    "scoring": "scoring",
    "startingEquipmentHand": "starting_equipment_hand",
    "equipmentDrawPerRound": "equipment_draw_per_round",
    "startingAnimalHand": "starting_animal_hand",
    "defaultInitiative": "default_initiative",
    "maxRounds": "max_rounds",
    "pointsForKill": "points_for_kill",
    "pointsPerOverkill": "points_per_overkill",
    "pointsPerAbsorbed": "points_per_absorbed",
    "customRules": "custom_rules",
}


def rules_from_dict(data: dict[str, Any]) -> GameRules:
    """
    Build GameRules from a rules document.

    Missing keys fall back to the defaults. Unknown keys (id, updatedAt,
    updatedBy, ...) are ignored.
    """
    if not isinstance(data, dict):
        raise CardFormatError(f"Rules must be an object, got {data!r}")

    kwargs: dict[str, Any] = {}
    for key, attr in _KEY_MAP.items():
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if attr == "scoring":
            try:
                kwargs[attr] = ScoringScheme(value)
            except ValueError:
                raise CardFormatError(f"Unknown scoring scheme '{value}'")
        elif attr == "custom_rules":
            kwargs[attr] = dict(value)
        else:
            number = _optional_int(data, key)
            if attr in _NON_NEGATIVE and number < 0:
                raise CardFormatError(f"'{key}' must not be negative, got {value!r}")
            kwargs[attr] = number
    return GameRules(**kwargs)


def rules_to_dict(rules: GameRules) -> dict[str, Any]:
    reverse = {attr: key for key, attr in _KEY_MAP.items()}
    result: dict[str, Any] = {}
    for f in fields(rules):
        value = getattr(rules, f.name)
        if isinstance(value, Enum):
            value = value.value
        result[reverse[f.name]] = value
    return result
