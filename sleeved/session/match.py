"""
Match - In-memory orchestration of a 1v1 match around the pure engine.

The match owns everything the engine deliberately does not:
- hands, decks and discards (shared animal deck, per-player equipment)
- sleeve rotation
- persistent modifiers and next-round initiative modifiers
- scores, round history and the end of the match

Round flow:
1. Each player commits a sleeve, an animal and 0..n equipment
2. The commit snapshots resolve_stats() for that player
3. When both have committed, resolve_combat() runs
4. Cards are cleaned up, triggered effects applied, then hands refilled
5. The match ends on points_to_win, max_rounds or a surrender
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence
import random

from loguru import logger

from ..engine_core.cards import (
    AddPersistentModifier,
    CardType,
    DrawCards,
    ModifyInitiative,
    PersistentModifier,
)
from ..engine_core.combat import Combatant, CombatResult, RoundOutcome, TriggeredEffect, resolve_combat
from ..engine_core.elo import DEFAULT_ELO, EloChange, GameResult, calculate_elo_change
from ..engine_core.rules import GameRules
from ..engine_core.stats import ResolvedStats, resolve_stats
from .catalog import CardCatalog


class MatchStatus(Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class GameEndReason(Enum):
    POINTS = "points"
    ROUNDS = "rounds"
    SURRENDER = "surrender"


class CommitErrorCode(Enum):
    MATCH_NOT_ACTIVE = "MATCH_NOT_ACTIVE"
    NOT_A_PLAYER = "NOT_A_PLAYER"
    ALREADY_COMMITTED = "ALREADY_COMMITTED"
    INVALID_SELECTION = "INVALID_SELECTION"


@dataclass(frozen=True)
class CommittedCard:
    """A composed card locked in for the round, with its stat snapshot."""
    sleeve_id: str
    animal_id: str
    equipment_ids: tuple[str, ...]
    final_stats: ResolvedStats


@dataclass
class PlayerRating:
    elo: int = DEFAULT_ELO
    games_played: int = 0


@dataclass
class PlayerMatchState:
    """Private per-player state for a match."""
    player_id: str

    # Hands
    animal_hand: list[str] = field(default_factory=list)
    equipment_hand: list[str] = field(default_factory=list)

    # Equipment deck/discard
    equipment_deck: list[str] = field(default_factory=list)
    equipment_discard: list[str] = field(default_factory=list)

    # Sleeve tracking
    available_sleeves: list[str] = field(default_factory=list)
    used_sleeves: list[str] = field(default_factory=list)

    # From special effects
    persistent_modifiers: list[PersistentModifier] = field(default_factory=list)
    initiative_modifier: int = 0  # Next round only

    # Current round
    current_commit: CommittedCard | None = None
    score: int = 0

    @property
    def has_committed(self) -> bool:
        return self.current_commit is not None


@dataclass
class RoundRecord:
    """Complete result of a resolved round."""
    round_number: int
    commits: dict[str, CommittedCard]
    results: dict[str, RoundOutcome]
    effects_triggered: list[TriggeredEffect]
    combat_log: list[str] = field(default_factory=list)


@dataclass
class CommitResult:
    """
    Result of a commit.

    Contains:
    - Whether the commit was accepted
    - The committed card (with its resolved stats)
    - The resolved round, if this commit completed it
    - Error message and code otherwise
    """
    success: bool
    commit: CommittedCard | None = None
    both_committed: bool = False
    round_record: RoundRecord | None = None
    error: str | None = None
    error_code: CommitErrorCode | None = None

    @classmethod
    def failure(cls, error: str, error_code: CommitErrorCode) -> CommitResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)


def _take(cards: list[str], count: int) -> tuple[list[str], list[str]]:
    """Deal up to count cards from the top. Returns (dealt, remaining)."""
    count = max(0, min(count, len(cards)))
    return cards[:count], cards[count:]


def _shuffled(cards: Sequence[str], rng: random.Random) -> list[str]:
    result = list(cards)
    rng.shuffle(result)
    return result


@dataclass
class Match:
    """
    A 1v1 match.

    Not thread-safe on its own; MatchManager serializes access.
    """
    match_id: str
    player_ids: tuple[str, str]
    rules: GameRules
    catalog: CardCatalog
    players: dict[str, PlayerMatchState]

    # Shared animal state
    animal_deck: list[str] = field(default_factory=list)
    animal_discard: list[str] = field(default_factory=list)

    status: MatchStatus = MatchStatus.ACTIVE
    current_round: int = 1
    rounds: list[RoundRecord] = field(default_factory=list)
    winner: str | None = None
    is_draw: bool = False
    end_reason: GameEndReason | None = None

    # Ratings before the match; Elo changes are filled in when it ends
    ratings: dict[str, PlayerRating] = field(default_factory=dict)
    elo_changes: dict[str, EloChange] = field(default_factory=dict)

    rng: random.Random = field(default_factory=random.Random, repr=False)

    @classmethod
    def start(
        cls,
        match_id: str,
        player_ids: Sequence[str],
        catalog: CardCatalog,
        rules: GameRules,
        rng: random.Random | None = None,
        ratings: dict[str, PlayerRating] | None = None,
    ) -> Match:
        """
        Set up a new match.

        Every player gets all sleeves and a shuffled personal equipment
        deck; animals come from one shared shuffled deck.
        """
        if len(player_ids) != 2 or player_ids[0] == player_ids[1]:
            raise ValueError("A match needs exactly two distinct players")

        rng = rng or random.Random()
        catalog = catalog.active_only()
        sleeve_ids = [c.id for c in catalog.sleeves]
        equipment_ids = [c.id for c in catalog.equipment]
        animal_deck = _shuffled([c.id for c in catalog.animals], rng)

        players: dict[str, PlayerMatchState] = {}
        for player_id in player_ids:
            deck = _shuffled(equipment_ids, rng)
            hand, deck = _take(deck, rules.starting_equipment_hand)
            animals, animal_deck = _take(animal_deck, rules.starting_animal_hand)
            players[player_id] = PlayerMatchState(
                player_id=player_id,
                animal_hand=animals,
                equipment_hand=hand,
                equipment_deck=deck,
                available_sleeves=list(sleeve_ids),
            )

        match = cls(
            match_id=match_id,
            player_ids=(player_ids[0], player_ids[1]),
            rules=rules,
            catalog=catalog,
            players=players,
            animal_deck=animal_deck,
            ratings=dict(ratings or {}),
            rng=rng,
        )
        logger.info(
            f"Match {match_id} started: {player_ids[0]} vs {player_ids[1]} "
            f"({len(sleeve_ids)} sleeves, {len(catalog.animals)} animals, {len(equipment_ids)} equipment)"
        )
        return match

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_active(self) -> bool:
        return self.status == MatchStatus.ACTIVE

    @property
    def scores(self) -> dict[str, int]:
        return {pid: self.players[pid].score for pid in self.player_ids}

    def opponent_of(self, player_id: str) -> str:
        p1, p2 = self.player_ids
        return p2 if player_id == p1 else p1

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(
        self,
        player_id: str,
        sleeve_id: str,
        animal_id: str,
        equipment_ids: Sequence[str] = (),
    ) -> CommitResult:
        """
        Commit a composed card for the current round.

        When both players have committed, the round is resolved and the
        RoundRecord is returned on the result.
        """
        error = self._validate_commit(player_id, sleeve_id, animal_id, equipment_ids)
        if error is not None:
            logger.debug(f"Match {self.match_id}: rejected commit from {player_id}: {error[0]}")
            return CommitResult.failure(*error)

        state = self.players[player_id]
        sleeve = self.catalog.find_of_type(sleeve_id, CardType.SLEEVE)
        animal = self.catalog.find_of_type(animal_id, CardType.ANIMAL)
        equipment = [self.catalog.find_of_type(eid, CardType.EQUIPMENT) for eid in equipment_ids]

        final_stats = resolve_stats(
            sleeve,
            animal,
            equipment,
            state.persistent_modifiers,
            state.initiative_modifier,
        )
        commit = CommittedCard(
            sleeve_id=sleeve_id,
            animal_id=animal_id,
            equipment_ids=tuple(equipment_ids),
            final_stats=final_stats,
        )
        state.current_commit = commit
        logger.debug(f"Match {self.match_id}: {player_id} committed for round {self.current_round}")

        opponent = self.players[self.opponent_of(player_id)]
        if not opponent.has_committed:
            return CommitResult(success=True, commit=commit, both_committed=False)

        record = self._resolve_round()
        return CommitResult(success=True, commit=commit, both_committed=True, round_record=record)

    def _validate_commit(
        self,
        player_id: str,
        sleeve_id: str,
        animal_id: str,
        equipment_ids: Sequence[str],
    ) -> tuple[str, CommitErrorCode] | None:
        """Return (message, code) if the commit is invalid, None if valid."""
        if not self.is_active:
            return "Match is not active", CommitErrorCode.MATCH_NOT_ACTIVE

        state = self.players.get(player_id)
        if state is None:
            return f"{player_id} is not a player in this match", CommitErrorCode.NOT_A_PLAYER

        if state.has_committed:
            return "Already committed this round", CommitErrorCode.ALREADY_COMMITTED

        if sleeve_id not in state.available_sleeves:
            return "Selected sleeve is not available", CommitErrorCode.INVALID_SELECTION
        if animal_id not in state.animal_hand:
            return "Selected animal is not in hand", CommitErrorCode.INVALID_SELECTION

        in_hand = Counter(state.equipment_hand)
        for equip_id, count in Counter(equipment_ids).items():
            if in_hand[equip_id] < count:
                return f"Equipment {equip_id} is not in hand", CommitErrorCode.INVALID_SELECTION

        if self.catalog.find_of_type(sleeve_id, CardType.SLEEVE) is None:
            return f"Sleeve {sleeve_id} not found in catalog", CommitErrorCode.INVALID_SELECTION
        if self.catalog.find_of_type(animal_id, CardType.ANIMAL) is None:
            return f"Animal {animal_id} not found in catalog", CommitErrorCode.INVALID_SELECTION
        for equip_id in equipment_ids:
            if self.catalog.find_of_type(equip_id, CardType.EQUIPMENT) is None:
                return f"Equipment {equip_id} not found in catalog", CommitErrorCode.INVALID_SELECTION

        return None

    # =========================================================================
    # Round resolution
    # =========================================================================

    def _resolve_round(self) -> RoundRecord:
        p1_id, p2_id = self.player_ids
        p1, p2 = self.players[p1_id], self.players[p2_id]
        commit1, commit2 = p1.current_commit, p2.current_commit

        combat: CombatResult = resolve_combat(
            Combatant(player_id=p1_id, stats=commit1.final_stats),
            Combatant(player_id=p2_id, stats=commit2.final_stats),
            self.rules,
        )
        effects = [
            side.effect_triggered
            for side in (combat.player1, combat.player2)
            if side.effect_triggered is not None
        ]

        record = RoundRecord(
            round_number=self.current_round,
            commits={p1_id: commit1, p2_id: commit2},
            results={p1_id: combat.player1.outcome, p2_id: combat.player2.outcome},
            effects_triggered=effects,
            combat_log=combat.combat_log,
        )
        self.rounds.append(record)

        p1.score += combat.player1.outcome.points_earned
        p2.score += combat.player2.outcome.points_earned

        # Both animals reach the discard before anyone refills
        for state in (p1, p2):
            self._cleanup(state)
        for state in (p1, p2):
            self._apply_effects(state, [e for e in effects if e.player_id == state.player_id])
        for state in (p1, p2):
            self._refill_animals(state)

        logger.info(
            f"Match {self.match_id} round {self.current_round}: "
            f"{p1_id} +{combat.player1.outcome.points_earned} ({p1.score}), "
            f"{p2_id} +{combat.player2.outcome.points_earned} ({p2.score}), "
            f"{len(effects)} effect(s)"
        )

        self._check_end()
        if self.is_active:
            for state in (p1, p2):
                self._draw_equipment(state, self.rules.equipment_draw_per_round)
            self.current_round += 1

        return record

    def _cleanup(self, state: PlayerMatchState) -> None:
        """Move the committed cards out of hand and reset per-round state."""
        commit = state.current_commit

        state.available_sleeves.remove(commit.sleeve_id)
        state.used_sleeves.append(commit.sleeve_id)
        if not state.available_sleeves:
            # All sleeves used: they all come back
            state.available_sleeves = state.used_sleeves
            state.used_sleeves = []

        state.animal_hand.remove(commit.animal_id)
        self.animal_discard.append(commit.animal_id)

        for equip_id in commit.equipment_ids:
            state.equipment_hand.remove(equip_id)
            state.equipment_discard.append(equip_id)

        state.initiative_modifier = 0
        state.current_commit = None

    def _apply_effects(self, state: PlayerMatchState, effects: list[TriggeredEffect]) -> None:
        for triggered in effects:
            action = triggered.effect
            if isinstance(action, AddPersistentModifier):
                state.persistent_modifiers.append(PersistentModifier(
                    stat=action.stat,
                    amount=action.amount,
                    source_round=self.current_round,
                ))
            elif isinstance(action, ModifyInitiative):
                state.initiative_modifier += action.amount
            elif isinstance(action, DrawCards):
                drawn = self._draw_equipment(state, action.count)
                if drawn < action.count:
                    logger.debug(
                        f"Match {self.match_id}: {state.player_id} drew {drawn}/{action.count} "
                        "(deck and discard exhausted)"
                    )

    def _draw_equipment(self, state: PlayerMatchState, count: int) -> int:
        """
        Draw equipment into hand.

        The discard is reshuffled into the deck when the deck runs out.
        Returns the number of cards actually drawn.
        """
        drawn = 0
        while drawn < count:
            if not state.equipment_deck:
                if not state.equipment_discard:
                    break
                state.equipment_deck = _shuffled(state.equipment_discard, self.rng)
                state.equipment_discard = []
            state.equipment_hand.append(state.equipment_deck.pop(0))
            drawn += 1
        return drawn

    def _refill_animals(self, state: PlayerMatchState) -> None:
        needed = self.rules.starting_animal_hand - len(state.animal_hand)
        if needed <= 0:
            return
        if len(self.animal_deck) < needed and self.animal_discard:
            self.animal_deck.extend(_shuffled(self.animal_discard, self.rng))
            self.animal_discard = []
        dealt, self.animal_deck = _take(self.animal_deck, needed)
        state.animal_hand.extend(dealt)

    # =========================================================================
    # End of match
    # =========================================================================

    def _check_end(self) -> None:
        p1_id, p2_id = self.player_ids
        s1, s2 = self.players[p1_id].score, self.players[p2_id].score

        if s1 >= self.rules.points_to_win or s2 >= self.rules.points_to_win:
            reason = GameEndReason.POINTS
        elif self.current_round >= self.rules.max_rounds:
            reason = GameEndReason.ROUNDS
        else:
            return

        if s1 == s2:
            self._finish(reason, winner=None)
        else:
            self._finish(reason, winner=p1_id if s1 > s2 else p2_id)

    def surrender(self, player_id: str) -> bool:
        """End the match with the opponent as winner. Returns False if not possible."""
        if not self.is_active or player_id not in self.players:
            return False
        self._finish(GameEndReason.SURRENDER, winner=self.opponent_of(player_id))
        return True

    def _finish(self, reason: GameEndReason, winner: str | None) -> None:
        self.status = MatchStatus.FINISHED
        self.end_reason = reason
        self.winner = winner
        self.is_draw = winner is None

        for player_id in self.player_ids:
            state = self.players[player_id]
            state.current_commit = None

        if self.ratings:
            self._rate()

        logger.info(
            f"Match {self.match_id} finished ({reason.value}): "
            + (f"winner {winner}" if winner else "draw")
        )

    def _rate(self) -> None:
        p1_id, p2_id = self.player_ids
        r1 = self.ratings.get(p1_id, PlayerRating())
        r2 = self.ratings.get(p2_id, PlayerRating())

        if self.is_draw:
            results = {p1_id: GameResult.DRAW, p2_id: GameResult.DRAW}
        else:
            loser = self.opponent_of(self.winner)
            results = {self.winner: GameResult.WIN, loser: GameResult.LOSS}

        self.elo_changes = {
            p1_id: calculate_elo_change(r1.elo, r2.elo, r1.games_played, results[p1_id]),
            p2_id: calculate_elo_change(r2.elo, r1.elo, r2.games_played, results[p2_id]),
        }
