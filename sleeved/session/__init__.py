"""Match orchestration - decks, hands, rounds and scores around the engine."""

from .catalog import (
    CardCatalog,
    CatalogValidationError,
    ValidationResult,
    load_catalog,
    validate_catalog,
)
from .match import (
    Match,
    MatchStatus,
    GameEndReason,
    CommitErrorCode,
    CommitResult,
    CommittedCard,
    PlayerMatchState,
    PlayerRating,
    RoundRecord,
)
from .manager import MatchManager

__all__ = [
    "CardCatalog",
    "CatalogValidationError",
    "ValidationResult",
    "load_catalog",
    "validate_catalog",
    "Match",
    "MatchStatus",
    "GameEndReason",
    "CommitErrorCode",
    "CommitResult",
    "CommittedCard",
    "PlayerMatchState",
    "PlayerRating",
    "RoundRecord",
    "MatchManager",
]
