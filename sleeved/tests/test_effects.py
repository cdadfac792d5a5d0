"""
Tests for the effect engine.
"""

import pytest

from ..engine_core.cards import (
    AddPersistentModifier,
    DrawCards,
    ModifyInitiative,
    StatType,
    TriggerKind,
)
from ..engine_core.combat import RoundOutcome
from ..engine_core.effects import (
    evaluate,
    format_effect_action,
    format_trigger_name,
    should_trigger,
)


SURVIVED_WITH_KILL = RoundOutcome(survived=True, final_health=3, defeated=True)
SURVIVED_NO_KILL = RoundOutcome(survived=True, final_health=3, defeated=False)
DESTROYED_WITH_KILL = RoundOutcome(survived=False, final_health=0, defeated=True)
DESTROYED_NO_KILL = RoundOutcome(survived=False, final_health=0, defeated=False)


class TestShouldTrigger:
    """Trigger conditions against the card's own outcome."""

    @pytest.mark.parametrize("outcome,expected", [
        (SURVIVED_WITH_KILL, {TriggerKind.ON_PLAY, TriggerKind.IF_SURVIVES, TriggerKind.IF_DEFEATS}),
        (SURVIVED_NO_KILL, {TriggerKind.ON_PLAY, TriggerKind.IF_SURVIVES, TriggerKind.IF_DOESNT_DEFEAT}),
        (DESTROYED_WITH_KILL, {TriggerKind.ON_PLAY, TriggerKind.IF_DESTROYED, TriggerKind.IF_DEFEATS}),
        (DESTROYED_NO_KILL, {TriggerKind.ON_PLAY, TriggerKind.IF_DESTROYED, TriggerKind.IF_DOESNT_DEFEAT}),
    ])
    def test_trigger_table(self, outcome, expected):
        """Each trigger fires on the right outcome."""
        fired = {trigger for trigger in TriggerKind if should_trigger(trigger, outcome)}
        assert fired == expected


class TestEvaluate:
    """evaluate() hands back the action unchanged or None."""

    def test_returns_action_when_triggered(self):
        """evaluate returns the action when it triggers."""
        action = AddPersistentModifier(StatType.HEALTH, 2)
        assert evaluate(TriggerKind.IF_SURVIVES, action, SURVIVED_NO_KILL) is action

    def test_if_defeats_without_kill_is_none(self):
        """evaluate returns None when nothing triggers."""
        for outcome in (SURVIVED_NO_KILL, DESTROYED_NO_KILL):
            assert evaluate(TriggerKind.IF_DEFEATS, DrawCards(1), outcome) is None


class TestFormatting:
    """Human-readable effect descriptions."""

    def test_draw_cards(self):
        """Draw actions read naturally."""
        assert format_effect_action(DrawCards(1)) == "Draw 1 card"
        assert format_effect_action(DrawCards(3)) == "Draw 3 cards"

    def test_modify_initiative(self):
        """Initiative actions show a sign."""
        assert format_effect_action(ModifyInitiative(2)) == "+2 Initiative next round"
        assert format_effect_action(ModifyInitiative(-1)) == "-1 Initiative next round"

    def test_persistent_modifier(self):
        """Persistent modifiers name the stat."""
        assert format_effect_action(AddPersistentModifier(StatType.DAMAGE, 1)) == "+1 damage permanent"

    def test_trigger_names(self):
        """Triggers have display names."""
        assert format_trigger_name(TriggerKind.IF_DOESNT_DEFEAT) == "If Doesn't Defeat"
        assert format_trigger_name(TriggerKind.ON_PLAY) == "On Play"
