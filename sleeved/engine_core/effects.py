"""
Effect Engine - Decides whether a card's special effect fires.

The engine only answers "does it fire?" and hands the action back
unchanged. Applying the action (drawing cards, storing a persistent
modifier, shifting next round's initiative) is the match
orchestrator's job.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .cards import (
    AddPersistentModifier,
    DrawCards,
    EffectAction,
    ModifyInitiative,
    TriggerKind,
)

if TYPE_CHECKING:
    from .combat import RoundOutcome


TRIGGER_NAMES = {
    TriggerKind.ON_PLAY: "On Play",
    TriggerKind.IF_SURVIVES: "If Survives",
    TriggerKind.IF_DESTROYED: "If Destroyed",
    TriggerKind.IF_DEFEATS: "If Defeats",
    TriggerKind.IF_DOESNT_DEFEAT: "If Doesn't Defeat",
}


def should_trigger(trigger: TriggerKind, outcome: RoundOutcome) -> bool:
    """Check a trigger condition against the card's own round outcome."""
    if trigger == TriggerKind.ON_PLAY:
        return True
    if trigger == TriggerKind.IF_SURVIVES:
        return outcome.survived
    if trigger == TriggerKind.IF_DESTROYED:
        return not outcome.survived
    if trigger == TriggerKind.IF_DEFEATS:
        return outcome.defeated
    if trigger == TriggerKind.IF_DOESNT_DEFEAT:
        return not outcome.defeated
    return False


def evaluate(
    trigger: TriggerKind,
    effect: EffectAction,
    own_outcome: RoundOutcome,
) -> EffectAction | None:
    """Return the effect action if its trigger matched, else None."""
    if should_trigger(trigger, own_outcome):
        return effect
    return None


def _signed(amount: int) -> str:
    return f"+{amount}" if amount > 0 else str(amount)


def format_effect_action(action: EffectAction) -> str:
    """Human-readable description of an effect action."""
    if isinstance(action, DrawCards):
        noun = "card" if action.count == 1 else "cards"
        return f"Draw {action.count} {noun}"
    if isinstance(action, ModifyInitiative):
        return f"{_signed(action.amount)} Initiative next round"
    if isinstance(action, AddPersistentModifier):
        return f"{_signed(action.amount)} {action.stat.value} permanent"
    return str(action)


def format_trigger_name(trigger: TriggerKind) -> str:
    return TRIGGER_NAMES.get(trigger, trigger.value)
