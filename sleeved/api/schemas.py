"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between clients (game, admin playtest
page) and the engine. Field names are snake_case.

Error Codes:
- MATCH_NOT_FOUND: Match does not exist or has been removed
- MATCH_NOT_ACTIVE: Match already finished
- NOT_A_PLAYER: Player id is not part of the match
- ALREADY_COMMITTED: Player already committed this round
- INVALID_SELECTION: Sleeve/animal/equipment not available to the player
- UNKNOWN_CARD: Card id not found in the catalog or request
- VALIDATION_ERROR: Malformed request data
"""

from enum import Enum
from typing import Literal, Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    MATCH_NOT_FOUND = "MATCH_NOT_FOUND"
    MATCH_NOT_ACTIVE = "MATCH_NOT_ACTIVE"
    NOT_A_PLAYER = "NOT_A_PLAYER"
    ALREADY_COMMITTED = "ALREADY_COMMITTED"
    INVALID_SELECTION = "INVALID_SELECTION"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class MatchStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"


StatName = Literal["damage", "health"]
CardTypeName = Literal["sleeve", "animal", "equipment"]
TriggerName = Literal["on_play", "if_survives", "if_destroyed", "if_defeats", "if_doesnt_defeat"]


# =============================================================================
# Card Models
# =============================================================================

class ModifierModel(BaseModel):
    type: StatName
    amount: int


class EffectActionModel(BaseModel):
    """One of draw_cards{count}, modify_initiative{amount}, add_persistent_modifier{stat, amount}."""
    type: Literal["draw_cards", "modify_initiative", "add_persistent_modifier"]
    count: Optional[int] = None
    amount: Optional[int] = None
    stat: Optional[StatName] = None


class SpecialEffectModel(BaseModel):
    trigger: TriggerName
    effect: EffectActionModel
    timing: Optional[Literal["on_play", "post_combat", "end_of_round"]] = None


class CardStatsModel(BaseModel):
    """Stat block. Omitted fields are undefined, not zero."""
    damage: Optional[int] = None
    health: Optional[int] = None
    modifier: Optional[ModifierModel] = None
    special_effect: Optional[SpecialEffectModel] = None
    initiative: Optional[int] = None


class CardModel(BaseModel):
    id: str
    name: str
    type: CardTypeName
    description: str = ""
    image_url: Optional[str] = None
    active: bool = True
    background_stats: Optional[CardStatsModel] = None
    foreground_stats: Optional[CardStatsModel] = None
    stats: Optional[CardStatsModel] = None


class PersistentModifierModel(BaseModel):
    stat: StatName
    amount: int
    source_round: int = 0


class RulesModel(BaseModel):
    """Game rules. Omitted fields take the defaults."""
    version: int = 1
    points_for_surviving: int = Field(1, ge=0)
    points_for_defeating: int = Field(2, ge=0)
    points_to_win: int = Field(15, ge=1)
    scoring: Literal["survival", "absorption"] = "survival"
    starting_equipment_hand: int = Field(5, ge=0)
    equipment_draw_per_round: int = Field(1, ge=0)
    starting_animal_hand: int = Field(3, ge=1)
    default_initiative: int = 0
    max_rounds: int = Field(5, ge=1)
    points_for_kill: int = Field(3, ge=0)
    points_per_overkill: int = Field(1, ge=0)
    points_per_absorbed: int = Field(1, ge=0)


# =============================================================================
# Resolution Models
# =============================================================================

class CompositionRequest(BaseModel):
    """
    A card composition to resolve.

    Card ids are looked up in `cards` first, then in the server catalog.
    Sleeve and animal may be omitted for previews.
    """
    sleeve_id: Optional[str] = None
    animal_id: Optional[str] = None
    equipment_ids: list[str] = Field(default_factory=list, description="Bottom to top")
    persistent_modifiers: list[PersistentModifierModel] = Field(default_factory=list)
    initiative_modifier: int = 0
    cards: list[CardModel] = Field(default_factory=list, description="Extra cards for theorycraft")


class ResolvedStatsModel(BaseModel):
    damage: int = Field(ge=0)
    health: int = Field(ge=0)
    initiative: int
    modifier: Optional[ModifierModel] = None
    special_effect: Optional[SpecialEffectModel] = None


class StatLayerModel(BaseModel):
    layer_type: Literal["sleeve_bg", "animal", "equipment", "sleeve_fg", "persistent", "initiative_mod"]
    card_id: str
    card_name: str
    damage: Optional[int] = None
    health: Optional[int] = None
    initiative: Optional[int] = None
    modifier: Optional[ModifierModel] = None
    special_effect: Optional[SpecialEffectModel] = None
    is_additive: bool = False
    source_round: Optional[int] = None


class ActiveLayerModel(BaseModel):
    damage: Optional[str] = None
    health: Optional[str] = None
    initiative: Optional[str] = None
    modifier: Optional[str] = None
    special_effect: Optional[str] = None


class AttributionResponse(BaseModel):
    layers: list[StatLayerModel]
    active_layer: ActiveLayerModel
    resolved: ResolvedStatsModel


# =============================================================================
# Combat Models
# =============================================================================

class SimulatedPlayer(CompositionRequest):
    player_id: str


class SimulateRequest(BaseModel):
    player1: SimulatedPlayer
    player2: SimulatedPlayer
    rules: Optional[RulesModel] = None


class RoundOutcomeModel(BaseModel):
    survived: bool
    final_health: int = Field(ge=0)
    damage_dealt: int = Field(ge=0)
    damage_absorbed: int = Field(ge=0)
    kill_bonus: int = Field(ge=0)
    points_earned: int = Field(ge=0)
    defeated: bool


class TriggeredEffectModel(BaseModel):
    player_id: str
    trigger: TriggerName
    effect: EffectActionModel
    description: str = ""


class CombatSideModel(BaseModel):
    player_id: str
    stats: ResolvedStatsModel
    outcome: RoundOutcomeModel
    effect_triggered: Optional[TriggeredEffectModel] = None


class SimulateResponse(BaseModel):
    player1: CombatSideModel
    player2: CombatSideModel
    combat_log: list[str]


# =============================================================================
# Elo Models
# =============================================================================

class EloRequest(BaseModel):
    self_rating: int
    opponent_rating: int
    self_games_played: int = Field(0, ge=0)
    result: Literal["win", "loss", "draw"]


class EloResponse(BaseModel):
    new_elo: int
    elo_change: int


# =============================================================================
# Match Models
# =============================================================================

class RatingModel(BaseModel):
    elo: int = 1500
    games_played: int = Field(0, ge=0)


class CreateMatchRequest(BaseModel):
    player_ids: list[str] = Field(min_length=2, max_length=2)
    seed: Optional[int] = Field(None, description="Seed for deterministic shuffling")
    ratings: Optional[dict[str, RatingModel]] = Field(None, description="Enables Elo on finish")


class CommitRequest(BaseModel):
    player_id: str
    sleeve_id: str
    animal_id: str
    equipment_ids: list[str] = Field(default_factory=list, description="Bottom to top")


class SurrenderRequest(BaseModel):
    player_id: str


class CommittedCardModel(BaseModel):
    sleeve_id: str
    animal_id: str
    equipment_ids: list[str]
    final_stats: ResolvedStatsModel


class RoundResultModel(BaseModel):
    round_number: int
    commits: dict[str, CommittedCardModel]
    results: dict[str, RoundOutcomeModel]
    effects_triggered: list[TriggeredEffectModel] = Field(default_factory=list)
    combat_log: list[str] = Field(default_factory=list)


class PlayerSummary(BaseModel):
    """Public view of a player (no hand contents)."""
    player_id: str
    score: int
    has_committed: bool
    animal_hand_size: int
    equipment_hand_size: int


class PlayerStateResponse(BaseModel):
    """Private view of a player's hand and modifiers."""
    match_id: str
    player_id: str
    animal_hand: list[str]
    equipment_hand: list[str]
    equipment_deck_size: int
    equipment_discard_size: int
    available_sleeves: list[str]
    used_sleeves: list[str]
    persistent_modifiers: list[PersistentModifierModel]
    initiative_modifier: int
    current_commit: Optional[CommittedCardModel] = None


class EloChangeModel(BaseModel):
    previous_elo: int
    new_elo: int
    change: int


class MatchResponse(BaseModel):
    match_id: str
    status: MatchStatus
    current_round: int
    max_rounds: int
    points_to_win: int
    scores: dict[str, int]
    players: list[PlayerSummary]
    winner: Optional[str] = None
    is_draw: bool = False
    end_reason: Optional[Literal["points", "rounds", "surrender"]] = None
    rounds: list[RoundResultModel] = Field(default_factory=list)
    elo_changes: dict[str, EloChangeModel] = Field(default_factory=dict)


class CommitResponse(BaseModel):
    success: bool
    both_committed: bool
    final_stats: ResolvedStatsModel
    round_result: Optional[RoundResultModel] = None
    match: MatchResponse


class MatchListResponse(BaseModel):
    matches: list[str]
    count: int


class EndMatchResponse(BaseModel):
    success: bool
    match_id: str


class CardListResponse(BaseModel):
    cards: list[CardModel]
    count: int


# =============================================================================
# Error / System Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    service: str = "sleeved-engine"
    version: str
