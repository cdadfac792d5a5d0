"""
Engine Core - Pure rules for composing cards and resolving combat.

The engine is stateless:
1. resolve_stats layers a composition into ResolvedStats
2. resolve_combat fights two ResolvedStats and scores the round
3. the effect engine decides which special effects fire
4. calculate_elo_change rates the finished game

Nothing here performs I/O or keeps state between calls.
"""

from .cards import (
    CardType,
    StatType,
    TriggerKind,
    EffectTiming,
    DrawCards,
    ModifyInitiative,
    AddPersistentModifier,
    EffectAction,
    Modifier,
    SpecialEffect,
    PersistentModifier,
    CardStats,
    CardDefinition,
    CardFormatError,
    card_from_dict,
    card_to_dict,
)
from .rules import GameRules, ScoringScheme, DEFAULT_GAME_RULES, rules_from_dict, rules_to_dict
from .stats import ResolvedStats, merge_stats, resolve_stats, stat_attribution, StatAttribution
from .combat import Combatant, RoundOutcome, TriggeredEffect, CombatResult, resolve_combat
from .effects import evaluate, should_trigger, format_effect_action, format_trigger_name
from .elo import GameResult, EloChange, calculate_elo_change, DEFAULT_ELO

__all__ = [
    "CardType",
    "StatType",
    "TriggerKind",
    "EffectTiming",
    "DrawCards",
    "ModifyInitiative",
    "AddPersistentModifier",
    "EffectAction",
    "Modifier",
    "SpecialEffect",
    "PersistentModifier",
    "CardStats",
    "CardDefinition",
    "CardFormatError",
    "card_from_dict",
    "card_to_dict",
    "GameRules",
    "ScoringScheme",
    "DEFAULT_GAME_RULES",
    "rules_from_dict",
    "rules_to_dict",
    "ResolvedStats",
    "merge_stats",
    "resolve_stats",
    "stat_attribution",
    "StatAttribution",
    "Combatant",
    "RoundOutcome",
    "TriggeredEffect",
    "CombatResult",
    "resolve_combat",
    "evaluate",
    "should_trigger",
    "format_effect_action",
    "format_trigger_name",
    "GameResult",
    "EloChange",
    "calculate_elo_change",
    "DEFAULT_ELO",
]
