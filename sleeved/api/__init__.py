"""
API Module - HTTP interface to the engine.

Clients use it to:
1. Preview and theorycraft compositions (resolve, attribution, simulate)
2. Create matches and commit cards round by round
3. Compute rating updates

All state is in memory and match-scoped.
"""

from .schemas import (
    # Requests
    CompositionRequest,
    SimulateRequest,
    EloRequest,
    CreateMatchRequest,
    CommitRequest,
    SurrenderRequest,
    # Responses
    ResolvedStatsModel,
    AttributionResponse,
    SimulateResponse,
    EloResponse,
    MatchResponse,
    CommitResponse,
    PlayerStateResponse,
    ErrorResponse,
    ErrorCode,
)
from .service import EngineService
from .app import create_app

__all__ = [
    # Requests
    "CompositionRequest",
    "SimulateRequest",
    "EloRequest",
    "CreateMatchRequest",
    "CommitRequest",
    "SurrenderRequest",
    # Responses
    "ResolvedStatsModel",
    "AttributionResponse",
    "SimulateResponse",
    "EloResponse",
    "MatchResponse",
    "CommitResponse",
    "PlayerStateResponse",
    "ErrorResponse",
    "ErrorCode",
    # Service
    "EngineService",
    "create_app",
]
