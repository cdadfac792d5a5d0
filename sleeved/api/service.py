"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Translates API requests into engine calls
2. Looks cards up in the server catalog (or request-supplied cards)
3. Manages matches through the MatchManager
4. Formats engine results as response schemas

This layer is framework-agnostic. Failures come back as ErrorResponse
objects rather than exceptions, so any web framework can map them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..engine_core.cards import (
    CardDefinition,
    CardFormatError,
    CardType,
    EffectAction,
    Modifier,
    SpecialEffect,
    card_from_dict,
    card_to_dict,
    effect_action_to_dict,
    persistent_modifier_from_dict,
    persistent_modifier_to_dict,
    special_effect_to_dict,
)
from ..engine_core.combat import Combatant, RoundOutcome, TriggeredEffect, resolve_combat
from ..engine_core.effects import format_effect_action
from ..engine_core.elo import GameResult, calculate_elo_change
from ..engine_core.rules import DEFAULT_GAME_RULES, GameRules, rules_from_dict, rules_to_dict
from ..engine_core.stats import ResolvedStats, resolve_stats, stat_attribution
from ..session import CardCatalog, CommittedCard, Match, MatchManager, PlayerRating, RoundRecord
from .schemas import (
    ActiveLayerModel,
    AttributionResponse,
    CardListResponse,
    CardModel,
    CombatSideModel,
    CommitRequest,
    CommitResponse,
    CommittedCardModel,
    CompositionRequest,
    CreateMatchRequest,
    EffectActionModel,
    EloChangeModel,
    EloRequest,
    EloResponse,
    ErrorCode,
    ErrorResponse,
    MatchResponse,
    ModifierModel,
    PersistentModifierModel,
    PlayerStateResponse,
    PlayerSummary,
    ResolvedStatsModel,
    RoundOutcomeModel,
    RoundResultModel,
    RulesModel,
    SimulateRequest,
    SimulateResponse,
    SpecialEffectModel,
    StatLayerModel,
    SurrenderRequest,
    TriggeredEffectModel,
)


class _RequestError(Exception):
    """Internal: aborts a request with an ErrorResponse."""

    def __init__(self, error_code: ErrorCode, message: str):
        self.error_code = error_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=str(self), error_code=self.error_code)


# =============================================================================
# Conversion helpers
# =============================================================================

def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _snake(key: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in key)


def _rekey(value: Any, convert) -> Any:
    if isinstance(value, dict):
        return {convert(k): _rekey(v, convert) for k, v in value.items()}
    if isinstance(value, list):
        return [_rekey(v, convert) for v in value]
    return value


def card_from_model(model: CardModel) -> CardDefinition:
    return card_from_dict(_rekey(model.model_dump(exclude_none=True), _camel))


def card_to_model(card: CardDefinition) -> CardModel:
    return CardModel.model_validate(_rekey(card_to_dict(card), _snake))


def rules_from_model(model: RulesModel) -> GameRules:
    return rules_from_dict(_rekey(model.model_dump(), _camel))


def rules_to_model(rules: GameRules) -> RulesModel:
    data = _rekey(rules_to_dict(rules), _snake)
    data.pop("custom_rules", None)
    return RulesModel.model_validate(data)


def _modifier_model(modifier: Modifier | None) -> ModifierModel | None:
    if modifier is None:
        return None
    return ModifierModel(type=modifier.type.value, amount=modifier.amount)


def _effect_model(effect: SpecialEffect | None) -> SpecialEffectModel | None:
    if effect is None:
        return None
    return SpecialEffectModel.model_validate(special_effect_to_dict(effect))


def _action_model(action: EffectAction) -> EffectActionModel:
    return EffectActionModel.model_validate(effect_action_to_dict(action))


def stats_to_model(stats: ResolvedStats) -> ResolvedStatsModel:
    return ResolvedStatsModel(
        damage=stats.damage,
        health=stats.health,
        initiative=stats.initiative,
        modifier=_modifier_model(stats.modifier),
        special_effect=_effect_model(stats.special_effect),
    )


def outcome_to_model(outcome: RoundOutcome) -> RoundOutcomeModel:
    return RoundOutcomeModel(
        survived=outcome.survived,
        final_health=outcome.final_health,
        damage_dealt=outcome.damage_dealt,
        damage_absorbed=outcome.damage_absorbed,
        kill_bonus=outcome.kill_bonus,
        points_earned=outcome.points_earned,
        defeated=outcome.defeated,
    )


def triggered_to_model(triggered: TriggeredEffect | None) -> TriggeredEffectModel | None:
    if triggered is None:
        return None
    return TriggeredEffectModel(
        player_id=triggered.player_id,
        trigger=triggered.trigger.value,
        effect=_action_model(triggered.effect),
        description=format_effect_action(triggered.effect),
    )


def commit_to_model(commit: CommittedCard) -> CommittedCardModel:
    return CommittedCardModel(
        sleeve_id=commit.sleeve_id,
        animal_id=commit.animal_id,
        equipment_ids=list(commit.equipment_ids),
        final_stats=stats_to_model(commit.final_stats),
    )


def round_to_model(record: RoundRecord) -> RoundResultModel:
    return RoundResultModel(
        round_number=record.round_number,
        commits={pid: commit_to_model(c) for pid, c in record.commits.items()},
        results={pid: outcome_to_model(o) for pid, o in record.results.items()},
        effects_triggered=[triggered_to_model(e) for e in record.effects_triggered],
        combat_log=record.combat_log,
    )


def match_to_model(match: Match) -> MatchResponse:
    elo_changes = {}
    for player_id, change in match.elo_changes.items():
        previous = match.ratings.get(player_id, PlayerRating()).elo
        elo_changes[player_id] = EloChangeModel(
            previous_elo=previous,
            new_elo=change.new_elo,
            change=change.elo_change,
        )

    return MatchResponse(
        match_id=match.match_id,
        status=match.status.value,
        current_round=match.current_round,
        max_rounds=match.rules.max_rounds,
        points_to_win=match.rules.points_to_win,
        scores=match.scores,
        players=[
            PlayerSummary(
                player_id=state.player_id,
                score=state.score,
                has_committed=state.has_committed,
                animal_hand_size=len(state.animal_hand),
                equipment_hand_size=len(state.equipment_hand),
            )
            for state in (match.players[pid] for pid in match.player_ids)
        ],
        winner=match.winner,
        is_draw=match.is_draw,
        end_reason=match.end_reason.value if match.end_reason else None,
        rounds=[round_to_model(r) for r in match.rounds],
        elo_changes=elo_changes,
    )


# =============================================================================
# Service
# =============================================================================

@dataclass
class EngineService:
    """
    Main API service.

    Usage:
        service = EngineService(catalog=load_catalog("cards.json"))

        # Preview a composition
        stats = service.resolve(CompositionRequest(sleeve_id="s1", animal_id="a1"))

        # Play a match
        match = service.create_match(CreateMatchRequest(player_ids=["alice", "bob"]))
        service.commit(match.match_id, CommitRequest(...))
    """
    catalog: CardCatalog = field(default_factory=CardCatalog)
    rules: GameRules = DEFAULT_GAME_RULES
    match_manager: MatchManager = field(default_factory=MatchManager)

    # -------------------------------------------------------------------------
    # Catalog / rules
    # -------------------------------------------------------------------------

    def list_cards(self) -> CardListResponse:
        cards = [card_to_model(c) for c in self.catalog.all_cards]
        return CardListResponse(cards=cards, count=len(cards))

    def get_rules(self) -> RulesModel:
        return rules_to_model(self.rules)

    # -------------------------------------------------------------------------
    # Resolution / simulation
    # -------------------------------------------------------------------------

    def _lookup(self, card_id: str, expected: CardType, extra: dict[str, CardDefinition]) -> CardDefinition:
        card = extra.get(card_id) or self.catalog.find(card_id)
        if card is None:
            raise _RequestError(ErrorCode.UNKNOWN_CARD, f"Card {card_id} not found")
        if card.type != expected:
            raise _RequestError(
                ErrorCode.UNKNOWN_CARD,
                f"Card {card_id} is a {card.type.value}, expected {expected.value}",
            )
        return card

    def _composition(self, request: CompositionRequest):
        try:
            extra = {c.id: card_from_model(c) for c in request.cards}
            modifiers = [
                persistent_modifier_from_dict(_rekey(m.model_dump(), _camel))
                for m in request.persistent_modifiers
            ]
        except CardFormatError as e:
            raise _RequestError(ErrorCode.VALIDATION_ERROR, str(e))

        sleeve = self._lookup(request.sleeve_id, CardType.SLEEVE, extra) if request.sleeve_id else None
        animal = self._lookup(request.animal_id, CardType.ANIMAL, extra) if request.animal_id else None
        equipment = [self._lookup(eid, CardType.EQUIPMENT, extra) for eid in request.equipment_ids]
        return sleeve, animal, equipment, modifiers

    def resolve(self, request: CompositionRequest) -> ResolvedStatsModel | ErrorResponse:
        """Resolve a composition's final stats."""
        try:
            sleeve, animal, equipment, modifiers = self._composition(request)
        except _RequestError as e:
            return e.to_response()
        stats = resolve_stats(sleeve, animal, equipment, modifiers, request.initiative_modifier)
        return stats_to_model(stats)

    def attribution(self, request: CompositionRequest) -> AttributionResponse | ErrorResponse:
        """Per-layer breakdown of a composition, for stat tables."""
        try:
            sleeve, animal, equipment, modifiers = self._composition(request)
        except _RequestError as e:
            return e.to_response()

        attribution = stat_attribution(sleeve, animal, equipment, modifiers, request.initiative_modifier)
        resolved = resolve_stats(sleeve, animal, equipment, modifiers, request.initiative_modifier)
        active = attribution.active_layer
        return AttributionResponse(
            layers=[
                StatLayerModel(
                    layer_type=layer.layer_type.value,
                    card_id=layer.card_id,
                    card_name=layer.card_name,
                    damage=layer.damage,
                    health=layer.health,
                    initiative=layer.initiative,
                    modifier=_modifier_model(layer.modifier),
                    special_effect=_effect_model(layer.special_effect),
                    is_additive=layer.is_additive,
                    source_round=layer.source_round,
                )
                for layer in attribution.layers
            ],
            active_layer=ActiveLayerModel(
                damage=active.damage,
                health=active.health,
                initiative=active.initiative,
                modifier=active.modifier,
                special_effect=active.special_effect,
            ),
            resolved=stats_to_model(resolved),
        )

    def simulate(self, request: SimulateRequest) -> SimulateResponse | ErrorResponse:
        """
        Theorycraft a round: resolve both compositions and fight them.

        Nothing is stored.
        """
        try:
            rules = rules_from_model(request.rules) if request.rules else self.rules
            p1 = self._composition(request.player1)
            p2 = self._composition(request.player2)
        except CardFormatError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        except _RequestError as e:
            return e.to_response()

        stats1 = resolve_stats(*p1, request.player1.initiative_modifier)
        stats2 = resolve_stats(*p2, request.player2.initiative_modifier)
        result = resolve_combat(
            Combatant(player_id=request.player1.player_id, stats=stats1),
            Combatant(player_id=request.player2.player_id, stats=stats2),
            rules,
        )
        return SimulateResponse(
            player1=CombatSideModel(
                player_id=request.player1.player_id,
                stats=stats_to_model(stats1),
                outcome=outcome_to_model(result.player1.outcome),
                effect_triggered=triggered_to_model(result.player1.effect_triggered),
            ),
            player2=CombatSideModel(
                player_id=request.player2.player_id,
                stats=stats_to_model(stats2),
                outcome=outcome_to_model(result.player2.outcome),
                effect_triggered=triggered_to_model(result.player2.effect_triggered),
            ),
            combat_log=result.combat_log,
        )

    def elo(self, request: EloRequest) -> EloResponse:
        change = calculate_elo_change(
            request.self_rating,
            request.opponent_rating,
            request.self_games_played,
            GameResult(request.result),
        )
        return EloResponse(new_elo=change.new_elo, elo_change=change.elo_change)

    # -------------------------------------------------------------------------
    # Matches
    # -------------------------------------------------------------------------

    def create_match(self, request: CreateMatchRequest) -> MatchResponse | ErrorResponse:
        """Start a match with the server catalog and rules."""
        active = self.catalog.active_only()
        if not active.sleeves or not active.animals:
            return ErrorResponse(
                error="Catalog needs at least one active sleeve and one active animal",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        ratings = None
        if request.ratings is not None:
            ratings = {
                pid: PlayerRating(elo=r.elo, games_played=r.games_played)
                for pid, r in request.ratings.items()
            }

        try:
            match = self.match_manager.create_match(
                request.player_ids,
                catalog=self.catalog,
                rules=self.rules,
                seed=request.seed,
                ratings=ratings,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.VALIDATION_ERROR)
        return match_to_model(match)

    def _not_found(self, match_id: str) -> ErrorResponse:
        return ErrorResponse(error=f"Match {match_id} not found", error_code=ErrorCode.MATCH_NOT_FOUND)

    def get_match(self, match_id: str) -> MatchResponse | ErrorResponse:
        match = self.match_manager.get_match(match_id)
        if match is None:
            return self._not_found(match_id)
        with self.match_manager.lock():
            return match_to_model(match)

    def get_player_state(self, match_id: str, player_id: str) -> PlayerStateResponse | ErrorResponse:
        match = self.match_manager.get_match(match_id)
        if match is None:
            return self._not_found(match_id)
        with self.match_manager.lock():
            state = match.players.get(player_id)
            if state is None:
                return ErrorResponse(
                    error=f"{player_id} is not a player in this match",
                    error_code=ErrorCode.NOT_A_PLAYER,
                )
            return PlayerStateResponse(
                match_id=match_id,
                player_id=player_id,
                animal_hand=list(state.animal_hand),
                equipment_hand=list(state.equipment_hand),
                equipment_deck_size=len(state.equipment_deck),
                equipment_discard_size=len(state.equipment_discard),
                available_sleeves=list(state.available_sleeves),
                used_sleeves=list(state.used_sleeves),
                persistent_modifiers=[
                    PersistentModifierModel.model_validate(_rekey(persistent_modifier_to_dict(m), _snake))
                    for m in state.persistent_modifiers
                ],
                initiative_modifier=state.initiative_modifier,
                current_commit=commit_to_model(state.current_commit) if state.current_commit else None,
            )

    def commit(self, match_id: str, request: CommitRequest) -> CommitResponse | ErrorResponse:
        """Commit a composed card; resolves the round when both have committed."""
        match = self.match_manager.get_match(match_id)
        if match is None:
            return self._not_found(match_id)

        with self.match_manager.lock():
            result = match.commit(
                request.player_id,
                request.sleeve_id,
                request.animal_id,
                request.equipment_ids,
            )
            if not result.success:
                return ErrorResponse(
                    error=result.error,
                    error_code=ErrorCode(result.error_code.value),
                )
            return CommitResponse(
                success=True,
                both_committed=result.both_committed,
                final_stats=stats_to_model(result.commit.final_stats),
                round_result=round_to_model(result.round_record) if result.round_record else None,
                match=match_to_model(match),
            )

    def surrender(self, match_id: str, request: SurrenderRequest) -> MatchResponse | ErrorResponse:
        match = self.match_manager.get_match(match_id)
        if match is None:
            return self._not_found(match_id)

        with self.match_manager.lock():
            if request.player_id not in match.players:
                return ErrorResponse(
                    error=f"{request.player_id} is not a player in this match",
                    error_code=ErrorCode.NOT_A_PLAYER,
                )
            if not match.surrender(request.player_id):
                return ErrorResponse(error="Match is not active", error_code=ErrorCode.MATCH_NOT_ACTIVE)
            logger.info(f"Match {match_id}: {request.player_id} surrendered")
            return match_to_model(match)

    def end_match(self, match_id: str) -> bool:
        return self.match_manager.end_match(match_id)

    def list_matches(self) -> list[str]:
        return self.match_manager.list_active_matches()
