"""
Combat Resolution - Resolves one round between two composed cards.

Combat rules:
- Equal initiative: both attack simultaneously, survival is checked
  after both hits land
- Different initiative: higher attacks first; the defender only
  counterattacks if it survives the first hit
- 0 damage means no damage dealt (tanks that can't attack are allowed)
- Health at 0 counts as destroyed

After outcomes are fixed, each side's special effect is checked against
its own outcome (see effects.py).

The resolver trusts its inputs: ResolvedStats are already floored by
resolve_stats, so nothing here is re-validated.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .cards import EffectAction, TriggerKind
from .effects import evaluate, format_effect_action
from .rules import GameRules, ScoringScheme
from .stats import ResolvedStats


@dataclass(frozen=True)
class Combatant:
    """One side of a combat: who is playing and their resolved card."""
    player_id: str
    stats: ResolvedStats


@dataclass(frozen=True)
class RoundOutcome:
    """
    Outcome for one player in a round.

    Invariants:
    - survived is False => points_earned == 0 and kill_bonus == 0
    - defeated is True => the opponent's survived is False
    """
    survived: bool
    final_health: int
    damage_dealt: int = 0
    damage_absorbed: int = 0
    kill_bonus: int = 0
    points_earned: int = 0
    defeated: bool = False


@dataclass(frozen=True)
class TriggeredEffect:
    """A special effect whose trigger matched this round."""
    player_id: str
    trigger: TriggerKind
    effect: EffectAction


@dataclass(frozen=True)
class CombatSide:
    outcome: RoundOutcome
    effect_triggered: TriggeredEffect | None = None


@dataclass
class CombatResult:
    """Result of resolve_combat for both players plus a readable trace."""
    player1: CombatSide
    player2: CombatSide
    combat_log: list[str] = field(default_factory=list)

    @property
    def is_draw(self) -> bool:
        """Neither card survived, or both did without a kill."""
        return self.player1.outcome.survived == self.player2.outcome.survived


@dataclass
class _Exchange:
    """Mutable health bookkeeping while blows are traded."""
    health1: int
    health2: int
    dealt1: int = 0
    dealt2: int = 0


def _exchange(p1: Combatant, p2: Combatant, log: list[str]) -> _Exchange:
    s1, s2 = p1.stats, p2.stats
    ex = _Exchange(health1=s1.health, health2=s2.health)

    if s1.initiative == s2.initiative:
        log.append(f"Initiative tied ({s1.initiative}) - Simultaneous attack!")
        ex.health1 -= s2.damage
        ex.health2 -= s1.damage
        ex.dealt1 = s1.damage
        ex.dealt2 = s2.damage
        log.append(f"{p1.player_id} deals {s1.damage} damage ({s2.health} -> {ex.health2})")
        log.append(f"{p2.player_id} deals {s2.damage} damage ({s1.health} -> {ex.health1})")
        return ex

    first_is_p1 = s1.initiative > s2.initiative
    attacker, defender = (p1, p2) if first_is_p1 else (p2, p1)
    log.append(
        f"{attacker.player_id} has higher initiative "
        f"({attacker.stats.initiative} > {defender.stats.initiative})"
    )

    defender_health = defender.stats.health - attacker.stats.damage
    attacker_health = attacker.stats.health
    attacker_dealt = attacker.stats.damage
    defender_dealt = 0
    log.append(
        f"{attacker.player_id} attacks first: {attacker.stats.damage} damage "
        f"({defender.stats.health} -> {defender_health})"
    )

    if defender_health > 0:
        attacker_health -= defender.stats.damage
        defender_dealt = defender.stats.damage
        log.append(
            f"{defender.player_id} counterattacks: {defender.stats.damage} damage "
            f"({attacker.stats.health} -> {attacker_health})"
        )
    else:
        log.append(f"{defender.player_id} is destroyed before attacking!")

    if first_is_p1:
        ex.health1, ex.health2 = attacker_health, defender_health
        ex.dealt1, ex.dealt2 = attacker_dealt, defender_dealt
    else:
        ex.health1, ex.health2 = defender_health, attacker_health
        ex.dealt1, ex.dealt2 = defender_dealt, attacker_dealt
    return ex


def _score(
    rules: GameRules,
    survived: bool,
    defeated: bool,
    damage_dealt: int,
    damage_taken: int,
    opponent_health: int,
) -> tuple[int, int, int]:
    """Return (points, absorbed, kill_bonus) for one side."""
    if not survived:
        return 0, 0, 0

    if rules.scoring == ScoringScheme.ABSORPTION:
        absorbed_points = damage_taken * rules.points_per_absorbed
        kill_bonus = 0
        if defeated:
            overkill = max(0, damage_dealt - opponent_health)
            kill_bonus = rules.points_for_kill + overkill * rules.points_per_overkill
        return absorbed_points + kill_bonus, damage_taken, kill_bonus

    kill_bonus = rules.points_for_defeating if defeated else 0
    return rules.points_for_surviving + kill_bonus, damage_taken, kill_bonus


def _triggered(player: Combatant, outcome: RoundOutcome) -> TriggeredEffect | None:
    effect = player.stats.special_effect
    if effect is None:
        return None
    action = evaluate(effect.trigger, effect.effect, outcome)
    if action is None:
        return None
    return TriggeredEffect(player_id=player.player_id, trigger=effect.trigger, effect=action)


def resolve_combat(player1: Combatant, player2: Combatant, rules: GameRules) -> CombatResult:
    """
    Resolve combat between two players' resolved stats.

    Pure: the same inputs always give the same result.
    """
    s1, s2 = player1.stats, player2.stats
    log: list[str] = [
        "=== ROUND START ===",
        f"{player1.player_id}: {s1.damage} DMG, {s1.health} HP, {s1.initiative} INIT",
        f"{player2.player_id}: {s2.damage} DMG, {s2.health} HP, {s2.initiative} INIT",
    ]

    for player in (player1, player2):
        effect = player.stats.special_effect
        if effect is not None and effect.trigger == TriggerKind.ON_PLAY:
            log.append(f"{player.player_id} triggers ON_PLAY: {format_effect_action(effect.effect)}")

    log.append("=== COMBAT ===")
    ex = _exchange(player1, player2, log)

    survived1 = ex.health1 > 0
    survived2 = ex.health2 > 0
    defeated1 = not survived2
    defeated2 = not survived1

    # Damage taken is whatever the opponent actually got to deal
    points1, absorbed1, kill1 = _score(rules, survived1, defeated1, ex.dealt1, ex.dealt2, s2.health)
    points2, absorbed2, kill2 = _score(rules, survived2, defeated2, ex.dealt2, ex.dealt1, s1.health)

    outcome1 = RoundOutcome(
        survived=survived1,
        final_health=max(0, ex.health1),
        damage_dealt=ex.dealt1,
        damage_absorbed=absorbed1,
        kill_bonus=kill1,
        points_earned=points1,
        defeated=defeated1,
    )
    outcome2 = RoundOutcome(
        survived=survived2,
        final_health=max(0, ex.health2),
        damage_dealt=ex.dealt2,
        damage_absorbed=absorbed2,
        kill_bonus=kill2,
        points_earned=points2,
        defeated=defeated2,
    )

    log.append("=== RESULTS ===")
    for player, outcome in ((player1, outcome1), (player2, outcome2)):
        status = "SURVIVED" if outcome.survived else "DESTROYED"
        log.append(f"{player.player_id}: {status} ({outcome.final_health} HP)")

    effect1 = _triggered(player1, outcome1)
    effect2 = _triggered(player2, outcome2)
    for triggered in (effect1, effect2):
        if triggered is not None and triggered.trigger != TriggerKind.ON_PLAY:
            log.append(
                f"{triggered.player_id} triggers {triggered.trigger.value.upper()}: "
                f"{format_effect_action(triggered.effect)}"
            )

    log.append("=== SCORING ===")
    for player, outcome in ((player1, outcome1), (player2, outcome2)):
        if outcome.survived:
            log.append(
                f"{player.player_id}: {outcome.points_earned} points "
                f"(absorbed: {outcome.damage_absorbed}, kill: {outcome.kill_bonus})"
            )
        else:
            log.append(f"{player.player_id}: 0 points (destroyed)")

    return CombatResult(
        player1=CombatSide(outcome=outcome1, effect_triggered=effect1),
        player2=CombatSide(outcome=outcome2, effect_triggered=effect2),
        combat_log=log,
    )
