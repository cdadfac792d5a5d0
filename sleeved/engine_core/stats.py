"""
Stat Resolution - Layers a composed card's stats into final values.

Layering order (bottom to top):
1. Sleeve background stats
2. Animal stats
3. Equipment stats (in the order given)
4. Sleeve foreground stats

Then, additively:
5. Persistent modifiers
6. The topmost card modifier
7. Initiative modifier from last round's effects

Damage and health are floored at 0 at the end. Initiative is not.

Design principles:
- Pure functions, no state, no I/O
- A layer only overwrites the stats it defines (None never overwrites)
- The same resolver serves authoritative resolution and previews
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Sequence

from .cards import (
    CardDefinition,
    CardStats,
    Modifier,
    PersistentModifier,
    SpecialEffect,
    StatType,
)


@dataclass(frozen=True)
class ResolvedStats:
    """Final, fully merged profile of a composed card."""
    damage: int = 0
    health: int = 0
    initiative: int = 0
    modifier: Modifier | None = None
    special_effect: SpecialEffect | None = None


def merge_stats(base: CardStats, overlay: CardStats) -> CardStats:
    """
    Merge overlay on top of base.

    Only fields the overlay defines are taken from it; an explicit 0
    still counts as defined.
    """
    return CardStats(
        damage=overlay.damage if overlay.damage is not None else base.damage,
        health=overlay.health if overlay.health is not None else base.health,
        modifier=overlay.modifier if overlay.modifier is not None else base.modifier,
        special_effect=(
            overlay.special_effect if overlay.special_effect is not None
            else base.special_effect
        ),
        initiative=overlay.initiative if overlay.initiative is not None else base.initiative,
    )


def stat_layers(
    sleeve: CardDefinition | None,
    animal: CardDefinition | None,
    equipment: Sequence[CardDefinition] = (),
) -> list[CardStats]:
    """Stat blocks of a composition in layering order (bottom first)."""
    layers: list[CardStats] = []
    if sleeve is not None and sleeve.background_stats is not None:
        layers.append(sleeve.background_stats)
    if animal is not None and animal.stats is not None:
        layers.append(animal.stats)
    for equip in equipment:
        if equip.stats is not None:
            layers.append(equip.stats)
    if sleeve is not None and sleeve.foreground_stats is not None:
        layers.append(sleeve.foreground_stats)
    return layers


def resolve_stats(
    sleeve: CardDefinition | None,
    animal: CardDefinition | None,
    equipment: Sequence[CardDefinition] = (),
    persistent_modifiers: Iterable[PersistentModifier] = (),
    initiative_modifier: int = 0,
) -> ResolvedStats:
    """
    Resolve final stats from a card composition.

    Sleeve and animal may be None for previews of incomplete
    compositions; the missing layer just contributes nothing.
    """
    stats = CardStats()
    for layer in stat_layers(sleeve, animal, equipment):
        stats = merge_stats(stats, layer)

    damage = stats.damage if stats.damage is not None else 0
    health = stats.health if stats.health is not None else 0
    initiative = stats.initiative if stats.initiative is not None else 0
    modifier = stats.modifier
    special_effect = stats.special_effect

    for mod in persistent_modifiers:
        if mod.stat == StatType.DAMAGE:
            damage += mod.amount
        elif mod.stat == StatType.HEALTH:
            health += mod.amount

    if modifier is not None:
        if modifier.type == StatType.DAMAGE:
            damage += modifier.amount
        elif modifier.type == StatType.HEALTH:
            health += modifier.amount

    initiative += initiative_modifier

    return ResolvedStats(
        damage=max(0, damage),
        health=max(0, health),
        initiative=initiative,
        modifier=modifier,
        special_effect=special_effect,
    )


# =============================================================================
# Stat attribution (which layer contributes what)
# =============================================================================

class LayerType(Enum):
    """Position of a layer in the composition stack."""
    SLEEVE_BG = "sleeve_bg"
    ANIMAL = "animal"
    EQUIPMENT = "equipment"
    SLEEVE_FG = "sleeve_fg"
    PERSISTENT = "persistent"
    INITIATIVE_MOD = "initiative_mod"


@dataclass(frozen=True)
class StatLayerInfo:
    """What one layer contributes."""
    layer_type: LayerType
    card_id: str
    card_name: str
    damage: int | None = None
    health: int | None = None
    initiative: int | None = None
    modifier: Modifier | None = None
    special_effect: SpecialEffect | None = None
    is_additive: bool = False  # Adds to stats instead of overwriting
    source_round: int | None = None


@dataclass
class ActiveLayers:
    """Id of the layer whose value wins, per stat."""
    damage: str | None = None
    health: str | None = None
    initiative: str | None = None
    modifier: str | None = None
    special_effect: str | None = None


@dataclass
class StatAttribution:
    layers: list[StatLayerInfo] = field(default_factory=list)
    active_layer: ActiveLayers = field(default_factory=ActiveLayers)


def _overwrite_layer(
    attribution: StatAttribution,
    layer_type: LayerType,
    card_id: str,
    card_name: str,
    stats: CardStats,
) -> None:
    attribution.layers.append(StatLayerInfo(
        layer_type=layer_type,
        card_id=card_id,
        card_name=card_name,
        damage=stats.damage,
        health=stats.health,
        initiative=stats.initiative,
        modifier=stats.modifier,
        special_effect=stats.special_effect,
    ))
    active = attribution.active_layer
    for name in ("damage", "health", "initiative", "modifier", "special_effect"):
        if getattr(stats, name) is not None:
            setattr(active, name, card_id)


def stat_attribution(
    sleeve: CardDefinition | None,
    animal: CardDefinition | None,
    equipment: Sequence[CardDefinition] = (),
    persistent_modifiers: Iterable[PersistentModifier] = (),
    initiative_modifier: int = 0,
) -> StatAttribution:
    """
    Break a composition down by layer for display.

    Uses the same precedence as resolve_stats. Persistent modifiers and
    the initiative modifier are listed as additive layers; they never
    "win" a stat.
    """
    attribution = StatAttribution()

    if sleeve is not None and sleeve.background_stats is not None:
        _overwrite_layer(
            attribution, LayerType.SLEEVE_BG,
            f"{sleeve.id}_bg", f"{sleeve.name} (BG)", sleeve.background_stats,
        )

    if animal is not None and animal.stats is not None:
        _overwrite_layer(attribution, LayerType.ANIMAL, animal.id, animal.name, animal.stats)

    for equip in equipment:
        if equip.stats is not None:
            _overwrite_layer(attribution, LayerType.EQUIPMENT, equip.id, equip.name, equip.stats)

    if sleeve is not None and sleeve.foreground_stats is not None:
        _overwrite_layer(
            attribution, LayerType.SLEEVE_FG,
            f"{sleeve.id}_fg", f"{sleeve.name} (FG)", sleeve.foreground_stats,
        )

    for mod in persistent_modifiers:
        attribution.layers.append(StatLayerInfo(
            layer_type=LayerType.PERSISTENT,
            card_id=f"persistent_{mod.source_round}_{mod.stat.value}",
            card_name=f"Round {mod.source_round}",
            damage=mod.amount if mod.stat == StatType.DAMAGE else None,
            health=mod.amount if mod.stat == StatType.HEALTH else None,
            is_additive=True,
            source_round=mod.source_round,
        ))

    if initiative_modifier != 0:
        attribution.layers.append(StatLayerInfo(
            layer_type=LayerType.INITIATIVE_MOD,
            card_id="initiative_modifier",
            card_name="Initiative Bonus",
            initiative=initiative_modifier,
            is_additive=True,
        ))

    return attribution

