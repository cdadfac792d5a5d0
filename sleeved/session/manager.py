"""
Match Manager - Creates and tracks in-memory matches.

PERSISTENCE RULES:
- No database: matches live in memory only
- A match is removed when it is ended or cleaned up
- Rules and catalog are snapshotted per match at creation
"""

from __future__ import annotations
from typing import Sequence
import random
import threading
import uuid

from loguru import logger

from ..engine_core.rules import DEFAULT_GAME_RULES, GameRules
from .catalog import CardCatalog
from .match import Match, PlayerRating


class MatchManager:
    """
    Manages matches.

    Responsibilities:
    - Create matches from a catalog and rules
    - Track active matches
    - Clean up finished matches

    All access goes through one lock so request handlers can share it.
    """

    def __init__(self):
        self._matches: dict[str, Match] = {}
        self._lock = threading.Lock()

    def create_match(
        self,
        player_ids: Sequence[str],
        catalog: CardCatalog,
        rules: GameRules = DEFAULT_GAME_RULES,
        seed: int | None = None,
        ratings: dict[str, PlayerRating] | None = None,
    ) -> Match:
        """
        Create a new match.

        Args:
            player_ids: The two players
            catalog: Card snapshot to play with
            rules: Rules snapshot
            seed: Optional seed for deterministic shuffling
            ratings: Optional pre-match ratings; enables Elo on finish

        Returns:
            New active Match
        """
        match_id = str(uuid.uuid4())
        match = Match.start(
            match_id=match_id,
            player_ids=player_ids,
            catalog=catalog,
            rules=rules,
            rng=random.Random(seed),
            ratings=ratings,
        )
        with self._lock:
            self._matches[match_id] = match
        return match

    def get_match(self, match_id: str) -> Match | None:
        """Get a match by ID."""
        with self._lock:
            return self._matches.get(match_id)

    def lock(self) -> threading.Lock:
        """Lock to hold while mutating a match obtained from get_match."""
        return self._lock

    def end_match(self, match_id: str) -> bool:
        """Remove a match from memory. Returns False if it did not exist."""
        with self._lock:
            match = self._matches.pop(match_id, None)
        if match is None:
            return False
        logger.info(f"Match {match_id} removed")
        return True

    def list_active_matches(self) -> list[str]:
        """List IDs of active matches."""
        with self._lock:
            return [mid for mid, match in self._matches.items() if match.is_active]

    def cleanup_finished(self) -> int:
        """Drop finished matches. Returns how many were removed."""
        with self._lock:
            finished = [mid for mid, match in self._matches.items() if not match.is_active]
            for match_id in finished:
                del self._matches[match_id]
        if finished:
            logger.info(f"Cleaned up {len(finished)} finished match(es)")
        return len(finished)
