"""
Pytest fixtures for Sleeved tests.
"""

import random

import pytest

from ..engine_core.cards import (
    AddPersistentModifier,
    CardDefinition,
    CardStats,
    DrawCards,
    Modifier,
    ModifyInitiative,
    SpecialEffect,
    StatType,
    TriggerKind,
)
from ..engine_core.rules import GameRules
from ..session import CardCatalog, Match


@pytest.fixture
def rules() -> GameRules:
    """Default rules."""
    return GameRules()


@pytest.fixture
def sleeves() -> list[CardDefinition]:
    return [
        CardDefinition.sleeve(
            "sleeve_iron", "Iron Sleeve",
            background=CardStats(damage=2, health=3),
            foreground=CardStats(initiative=1),
            image_url="iron.png",
        ),
        CardDefinition.sleeve(
            "sleeve_swift", "Swift Sleeve",
            foreground=CardStats(
                initiative=3,
                special_effect=SpecialEffect(TriggerKind.IF_SURVIVES, ModifyInitiative(1)),
            ),
            image_url="swift.png",
        ),
    ]


@pytest.fixture
def animals() -> list[CardDefinition]:
    return [
        CardDefinition.animal("wolf", "Wolf", CardStats(damage=5, health=6, initiative=2), image_url="wolf.png"),
        CardDefinition.animal("bear", "Bear", CardStats(damage=7, health=10), image_url="bear.png"),
        CardDefinition.animal("fox", "Fox", CardStats(damage=3, health=4, initiative=4), image_url="fox.png"),
        CardDefinition.animal(
            "owl", "Owl",
            CardStats(
                damage=2, health=5,
                special_effect=SpecialEffect(TriggerKind.IF_DESTROYED, DrawCards(2)),
            ),
            image_url="owl.png",
        ),
        CardDefinition.animal("boar", "Boar", CardStats(damage=6, health=7), image_url="boar.png"),
        CardDefinition.animal("hare", "Hare", CardStats(damage=1, health=3, initiative=5), image_url="hare.png"),
        CardDefinition.animal("badger", "Badger", CardStats(damage=4, health=8), image_url="badger.png"),
        CardDefinition.animal("lynx", "Lynx", CardStats(damage=5, health=5, initiative=3), image_url="lynx.png"),
    ]


@pytest.fixture
def equipment() -> list[CardDefinition]:
    return [
        CardDefinition.equipment("sword", "Sword", CardStats(damage=8), image_url="sword.png"),
        CardDefinition.equipment("shield", "Shield", CardStats(health=12), image_url="shield.png"),
        CardDefinition.equipment(
            "whetstone", "Whetstone",
            CardStats(modifier=Modifier(StatType.DAMAGE, 2)),
            image_url="whetstone.png",
        ),
        CardDefinition.equipment(
            "trophy", "Trophy",
            CardStats(special_effect=SpecialEffect(
                TriggerKind.IF_DEFEATS, AddPersistentModifier(StatType.DAMAGE, 1),
            )),
            image_url="trophy.png",
        ),
        CardDefinition.equipment("boots", "Boots", CardStats(initiative=6), image_url="boots.png"),
        CardDefinition.equipment("helmet", "Helmet", CardStats(health=4), image_url="helmet.png"),
    ]


@pytest.fixture
def catalog(sleeves, animals, equipment) -> CardCatalog:
    """A small catalog with every kind of card."""
    return CardCatalog(sleeves=sleeves, animals=animals, equipment=equipment)


@pytest.fixture
def match(catalog: CardCatalog, rules: GameRules) -> Match:
    """A fresh, deterministically shuffled match between alice and bob."""
    return Match.start(
        match_id="test_match",
        player_ids=["alice", "bob"],
        catalog=catalog,
        rules=rules,
        rng=random.Random(7),
    )
