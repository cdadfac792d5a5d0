"""
Elo rating calculation.

Standard logistic Elo with an experience-dependent K-factor: new players
(fewer than GAMES_UNTIL_ESTABLISHED games) move faster.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import math


DEFAULT_ELO = 1500

K_FACTOR_NEW = 40
K_FACTOR_ESTABLISHED = 20
GAMES_UNTIL_ESTABLISHED = 30


class GameResult(Enum):
    """Game result from one player's perspective."""
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"

    @property
    def actual_score(self) -> float:
        return {GameResult.WIN: 1.0, GameResult.LOSS: 0.0, GameResult.DRAW: 0.5}[self]


@dataclass(frozen=True)
class EloChange:
    new_elo: int
    elo_change: int


def k_factor(games_played: int) -> int:
    """K=40 for players with fewer than 30 games, K=20 after that."""
    return K_FACTOR_NEW if games_played < GAMES_UNTIL_ESTABLISHED else K_FACTOR_ESTABLISHED


def expected_score(player_elo: float, opponent_elo: float) -> float:
    """Probability of winning: 1 / (1 + 10^((opponent - player) / 400))."""
    return 1 / (1 + math.pow(10, (opponent_elo - player_elo) / 400))


def new_rating(old_rating: int, expected: float, actual: float, k: int) -> int:
    """Rating after a game, rounded half up to the nearest integer."""
    return math.floor(old_rating + k * (actual - expected) + 0.5)


def calculate_elo_change(
    self_rating: int,
    opponent_rating: int,
    self_games_played: int,
    result: GameResult,
) -> EloChange:
    """
    Calculate a player's rating change after a game.

    Ratings are not clamped.
    """
    expected = expected_score(self_rating, opponent_rating)
    updated = new_rating(self_rating, expected, result.actual_score, k_factor(self_games_played))
    return EloChange(new_elo=updated, elo_change=updated - self_rating)
