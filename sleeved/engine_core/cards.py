"""
Cards - Card definitions, stat blocks and special effects.

A composed card is built from up to four kinds of layers:
- Sleeve background stats (easily overwritten)
- Animal stats
- Equipment stats (any number, stacked bottom to top)
- Sleeve foreground stats (guaranteed overwrite)

Every stat on a layer is optional. None means "this layer does not
define the stat", which is different from defining it as zero.

The dict helpers read and write the camelCase documents the card
store hands us (e.g. {"backgroundStats": {"damage": 2}}).
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class CardFormatError(ValueError):
    """Raised when a card or stat document has the wrong shape."""


class CardType(Enum):
    """The three kinds of card that make up a composition."""
    SLEEVE = "sleeve"
    ANIMAL = "animal"
    EQUIPMENT = "equipment"


class StatType(Enum):
    """Stats that modifiers can target."""
    DAMAGE = "damage"
    HEALTH = "health"


class TriggerKind(Enum):
    """When a special effect's condition is checked."""
    ON_PLAY = "on_play"  # When the card is committed
    IF_SURVIVES = "if_survives"
    IF_DESTROYED = "if_destroyed"
    IF_DEFEATS = "if_defeats"
    IF_DOESNT_DEFEAT = "if_doesnt_defeat"


class EffectTiming(Enum):
    """When the effect resolves in the game flow."""
    ON_PLAY = "on_play"
    POST_COMBAT = "post_combat"
    END_OF_ROUND = "end_of_round"


# =============================================================================
# Effect actions
# =============================================================================

@dataclass(frozen=True)
class DrawCards:
    """Draw cards from the player's equipment deck."""
    count: int

    action_type = "draw_cards"


@dataclass(frozen=True)
class ModifyInitiative:
    """Adjust initiative for the next round only."""
    amount: int

    action_type = "modify_initiative"


@dataclass(frozen=True)
class AddPersistentModifier:
    """Add a standing bonus/penalty to every future card of the player."""
    stat: StatType
    amount: int

    action_type = "add_persistent_modifier"


EffectAction = Union[DrawCards, ModifyInitiative, AddPersistentModifier]


@dataclass(frozen=True)
class Modifier:
    """Additive adjustment that only affects the current composed card."""
    type: StatType
    amount: int


@dataclass(frozen=True)
class SpecialEffect:
    """
    A trigger plus the action it fires.

    Only one special effect is active per composed card; higher layers
    overwrite lower layers' effects just like other stats.
    """
    trigger: TriggerKind
    effect: EffectAction
    timing: EffectTiming | None = None

    def __post_init__(self):
        if self.timing is None:
            timing = (
                EffectTiming.ON_PLAY if self.trigger == TriggerKind.ON_PLAY
                else EffectTiming.POST_COMBAT
            )
            object.__setattr__(self, "timing", timing)


@dataclass(frozen=True)
class PersistentModifier:
    """
    A standing additive bonus/penalty carried across rounds.

    Accumulated by the match orchestrator; the engine only reads them.
    """
    stat: StatType
    amount: int
    source_round: int = 0


@dataclass(frozen=True)
class CardStats:
    """Stats that can appear on one layer. All fields are optional."""
    damage: int | None = None
    health: int | None = None
    modifier: Modifier | None = None
    special_effect: SpecialEffect | None = None
    initiative: int | None = None

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.damage, self.health, self.modifier,
                self.special_effect, self.initiative,
            )
        )


@dataclass(frozen=True)
class CardDefinition:
    """
    A card from the catalog.

    Tagged on `type`: sleeves carry background_stats/foreground_stats,
    animals and equipment carry stats. Use the factories rather than
    filling the wrong blocks by hand.
    """
    id: str
    name: str
    type: CardType
    description: str = ""
    image_url: str | None = None
    active: bool = True

    # Sleeves only
    background_stats: CardStats | None = None
    foreground_stats: CardStats | None = None

    # Animals and equipment only
    stats: CardStats | None = None

    @classmethod
    def sleeve(
        cls,
        card_id: str,
        name: str,
        background: CardStats | None = None,
        foreground: CardStats | None = None,
        **kwargs: Any,
    ) -> CardDefinition:
        """Factory for a sleeve card."""
        return cls(
            id=card_id,
            name=name,
            type=CardType.SLEEVE,
            background_stats=background,
            foreground_stats=foreground,
            **kwargs,
        )

    @classmethod
    def animal(cls, card_id: str, name: str, stats: CardStats | None = None, **kwargs: Any) -> CardDefinition:
        """Factory for an animal card."""
        return cls(id=card_id, name=name, type=CardType.ANIMAL, stats=stats, **kwargs)

    @classmethod
    def equipment(cls, card_id: str, name: str, stats: CardStats | None = None, **kwargs: Any) -> CardDefinition:
        """Factory for an equipment card."""
        return cls(id=card_id, name=name, type=CardType.EQUIPMENT, stats=stats, **kwargs)


# =============================================================================
# Dict conversion
# =============================================================================

def _enum_value(enum_cls, value: Any, what: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(e.value for e in enum_cls)
        raise CardFormatError(f"Unknown {what} '{value}' (expected one of: {valid})")


def _optional_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CardFormatError(f"'{key}' must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise CardFormatError(f"'{key}' must be a whole number, got {value!r}")
    return int(value)


def effect_action_from_dict(data: dict[str, Any]) -> EffectAction:
    """Parse {"type": "draw_cards", "count": 2} style action documents."""
    if not isinstance(data, dict):
        raise CardFormatError(f"Effect action must be an object, got {data!r}")
    action_type = data.get("type")
    if action_type == DrawCards.action_type:
        return DrawCards(count=_optional_int(data, "count") or 0)
    if action_type == ModifyInitiative.action_type:
        return ModifyInitiative(amount=_optional_int(data, "amount") or 0)
    if action_type == AddPersistentModifier.action_type:
        return AddPersistentModifier(
            stat=_enum_value(StatType, data.get("stat"), "stat"),
            amount=_optional_int(data, "amount") or 0,
        )
    raise CardFormatError(f"Unknown effect action type '{action_type}'")


def effect_action_to_dict(action: EffectAction) -> dict[str, Any]:
    if isinstance(action, DrawCards):
        return {"type": action.action_type, "count": action.count}
    if isinstance(action, ModifyInitiative):
        return {"type": action.action_type, "amount": action.amount}
    return {"type": action.action_type, "stat": action.stat.value, "amount": action.amount}


def special_effect_from_dict(data: dict[str, Any]) -> SpecialEffect:
    if not isinstance(data, dict):
        raise CardFormatError(f"Special effect must be an object, got {data!r}")
    timing = data.get("timing")
    return SpecialEffect(
        trigger=_enum_value(TriggerKind, data.get("trigger"), "trigger"),
        effect=effect_action_from_dict(data.get("effect")),
        timing=_enum_value(EffectTiming, timing, "timing") if timing is not None else None,
    )


def special_effect_to_dict(effect: SpecialEffect) -> dict[str, Any]:
    return {
        "trigger": effect.trigger.value,
        "effect": effect_action_to_dict(effect.effect),
        "timing": effect.timing.value,
    }


def card_stats_from_dict(data: dict[str, Any] | None) -> CardStats | None:
    """Parse a stat block. Missing keys stay None."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise CardFormatError(f"Stat block must be an object, got {data!r}")

    modifier = None
    if data.get("modifier") is not None:
        raw = data["modifier"]
        if not isinstance(raw, dict):
            raise CardFormatError(f"Modifier must be an object, got {raw!r}")
        modifier = Modifier(
            type=_enum_value(StatType, raw.get("type"), "modifier type"),
            amount=_optional_int(raw, "amount") or 0,
        )

    special_effect = None
    if data.get("specialEffect") is not None:
        special_effect = special_effect_from_dict(data["specialEffect"])

    return CardStats(
        damage=_optional_int(data, "damage"),
        health=_optional_int(data, "health"),
        modifier=modifier,
        special_effect=special_effect,
        initiative=_optional_int(data, "initiative"),
    )


def card_stats_to_dict(stats: CardStats | None) -> dict[str, Any] | None:
    """Serialize a stat block, omitting undefined stats."""
    if stats is None:
        return None
    result: dict[str, Any] = {}
    if stats.damage is not None:
        result["damage"] = stats.damage
    if stats.health is not None:
        result["health"] = stats.health
    if stats.modifier is not None:
        result["modifier"] = {"type": stats.modifier.type.value, "amount": stats.modifier.amount}
    if stats.special_effect is not None:
        result["specialEffect"] = special_effect_to_dict(stats.special_effect)
    if stats.initiative is not None:
        result["initiative"] = stats.initiative
    return result


def card_from_dict(data: dict[str, Any]) -> CardDefinition:
    """Build a CardDefinition from a card document."""
    if not isinstance(data, dict):
        raise CardFormatError(f"Card must be an object, got {data!r}")
    if not data.get("id"):
        raise CardFormatError("Card is missing 'id'")

    card_type = _enum_value(CardType, data.get("type"), "card type")
    return CardDefinition(
        id=str(data["id"]),
        name=str(data.get("name", "")),
        type=card_type,
        description=str(data.get("description") or ""),
        image_url=data.get("imageUrl"),
        active=bool(data.get("active", True)),
        background_stats=card_stats_from_dict(data.get("backgroundStats")),
        foreground_stats=card_stats_from_dict(data.get("foregroundStats")),
        stats=card_stats_from_dict(data.get("stats")),
    )


def card_to_dict(card: CardDefinition) -> dict[str, Any]:
    result: dict[str, Any] = {
        "id": card.id,
        "type": card.type.value,
        "name": card.name,
        "description": card.description,
        "imageUrl": card.image_url,
        "active": card.active,
    }
    if card.background_stats is not None:
        result["backgroundStats"] = card_stats_to_dict(card.background_stats)
    if card.foreground_stats is not None:
        result["foregroundStats"] = card_stats_to_dict(card.foreground_stats)
    if card.stats is not None:
        result["stats"] = card_stats_to_dict(card.stats)
    return result


def persistent_modifier_from_dict(data: dict[str, Any]) -> PersistentModifier:
    if not isinstance(data, dict):
        raise CardFormatError(f"Persistent modifier must be an object, got {data!r}")
    return PersistentModifier(
        stat=_enum_value(StatType, data.get("stat"), "stat"),
        amount=_optional_int(data, "amount") or 0,
        source_round=_optional_int(data, "sourceRound") or 0,
    )


def persistent_modifier_to_dict(modifier: PersistentModifier) -> dict[str, Any]:
    return {
        "stat": modifier.stat.value,
        "amount": modifier.amount,
        "sourceRound": modifier.source_round,
    }
