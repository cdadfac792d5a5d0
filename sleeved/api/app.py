"""
FastAPI Application - REST API for the game client and playtest tools.

Endpoints:
    POST   /api/v1/resolve                      Resolve a composition's stats
    POST   /api/v1/attribution                  Per-layer stat breakdown
    POST   /api/v1/simulate                     Fight two compositions (nothing stored)
    POST   /api/v1/elo                          Compute a rating update
    GET    /api/v1/rules                        Current game rules
    GET    /api/v1/cards                        Card catalog
    POST   /api/v1/matches                      Create a match
    GET    /api/v1/matches                      List active matches
    GET    /api/v1/matches/{id}                 Get match status
    GET    /api/v1/matches/{id}/players/{pid}   Get a player's hand and modifiers
    POST   /api/v1/matches/{id}/commit          Commit a composed card
    POST   /api/v1/matches/{id}/surrender       Surrender a match
    DELETE /api/v1/matches/{id}                 Remove a match

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Union
import json
import os

from loguru import logger

# Environment configuration
SLEEVED_ENV = os.getenv("SLEEVED_ENV", "development")
SLEEVED_CATALOG_FILE = os.getenv("SLEEVED_CATALOG_FILE", None)
SLEEVED_RULES_FILE = os.getenv("SLEEVED_RULES_FILE", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


def _default_service():
    """Build an EngineService from the configured catalog and rules files."""
    from ..engine_core.rules import DEFAULT_GAME_RULES, rules_from_dict
    from ..session import CardCatalog, load_catalog
    from .service import EngineService

    catalog = load_catalog(SLEEVED_CATALOG_FILE) if SLEEVED_CATALOG_FILE else CardCatalog()
    rules = DEFAULT_GAME_RULES
    if SLEEVED_RULES_FILE:
        with open(SLEEVED_RULES_FILE) as f:
            rules = rules_from_dict(json.load(f))

    logger.info(
        f"Engine service ({SLEEVED_ENV}): {len(catalog.all_cards)} cards, "
        f"rules v{rules.version}, scoring={rules.scoring.value}"
    )
    return EngineService(catalog=catalog, rules=rules)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional EngineService instance (built from the
            environment configuration if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from .schemas import (
        # Request models
        CompositionRequest,
        SimulateRequest,
        EloRequest,
        CreateMatchRequest,
        CommitRequest,
        SurrenderRequest,
        # Response models
        ResolvedStatsModel,
        AttributionResponse,
        SimulateResponse,
        EloResponse,
        RulesModel,
        CardListResponse,
        MatchResponse,
        MatchListResponse,
        PlayerStateResponse,
        CommitResponse,
        EndMatchResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Sleeved Potential Engine API",
        description="""
Rules engine for Sleeved Potential: stat layering, combat resolution,
special effects, Elo ratings and in-memory matches.

## Error Codes

| Code | Description |
|------|-------------|
| `MATCH_NOT_FOUND` | Match does not exist or was removed |
| `MATCH_NOT_ACTIVE` | Match already finished |
| `NOT_A_PLAYER` | Player is not part of the match |
| `ALREADY_COMMITTED` | Player already committed this round |
| `INVALID_SELECTION` | Card not available to the player |
| `UNKNOWN_CARD` | Card id not found |
| `VALIDATION_ERROR` | Malformed request data |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    engine_service = service or _default_service()

    # =========================================================================
    # Error helpers
    # =========================================================================

    not_found_codes = {ErrorCode.MATCH_NOT_FOUND, ErrorCode.UNKNOWN_CARD}

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: dict | None = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_service(response: ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code in not_found_codes else 400
        return make_error_response(
            response.error_code,
            response.error,
            status_code=status_code,
            details=response.details,
        )

    # =========================================================================
    # Engine Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/resolve",
        response_model=ResolvedStatsModel,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
        summary="Resolve a composition's final stats",
    )
    async def resolve(request: CompositionRequest) -> Union[ResolvedStatsModel, JSONResponse]:
        """
        Layer sleeve background, animal, equipment (bottom to top) and
        sleeve foreground, then apply persistent modifiers, the topmost
        modifier and the initiative modifier.
        """
        response = engine_service.resolve(request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.post(
        "/api/v1/attribution",
        response_model=AttributionResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
        summary="Break a composition down by layer",
    )
    async def attribution(request: CompositionRequest) -> Union[AttributionResponse, JSONResponse]:
        """Which layer provides each final stat, for stat tables."""
        response = engine_service.attribution(request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.post(
        "/api/v1/simulate",
        response_model=SimulateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Engine"],
        summary="Resolve one round between two compositions",
    )
    async def simulate(request: SimulateRequest) -> Union[SimulateResponse, JSONResponse]:
        """Theorycraft a round. Nothing is stored."""
        response = engine_service.simulate(request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.post(
        "/api/v1/elo",
        response_model=EloResponse,
        tags=["Engine"],
        summary="Compute a rating update",
    )
    async def elo(request: EloRequest) -> EloResponse:
        return engine_service.elo(request)

    @app.get(
        "/api/v1/rules",
        response_model=RulesModel,
        tags=["Engine"],
        summary="Current game rules",
    )
    async def get_rules() -> RulesModel:
        return engine_service.get_rules()

    @app.get(
        "/api/v1/cards",
        response_model=CardListResponse,
        tags=["Engine"],
        summary="List the card catalog",
    )
    async def list_cards() -> CardListResponse:
        return engine_service.list_cards()

    # =========================================================================
    # Match Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/matches",
        response_model=MatchResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Create a new match",
    )
    async def create_match(request: CreateMatchRequest) -> Union[MatchResponse, JSONResponse]:
        """
        Create a 1v1 match with the server catalog and rules.

        Pass `seed` for deterministic shuffling and `ratings` to have
        Elo changes computed when the match ends.
        """
        response = engine_service.create_match(request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.get(
        "/api/v1/matches",
        response_model=MatchListResponse,
        tags=["Matches"],
        summary="List active matches",
    )
    async def list_matches() -> MatchListResponse:
        matches = engine_service.list_matches()
        return MatchListResponse(matches=matches, count=len(matches))

    @app.get(
        "/api/v1/matches/{match_id}",
        response_model=MatchResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get match status",
    )
    async def get_match(match_id: str) -> Union[MatchResponse, JSONResponse]:
        """Scores, round history and, once finished, winner and Elo changes."""
        response = engine_service.get_match(match_id)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.get(
        "/api/v1/matches/{match_id}/players/{player_id}",
        response_model=PlayerStateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Get a player's private state",
    )
    async def get_player_state(match_id: str, player_id: str) -> Union[PlayerStateResponse, JSONResponse]:
        response = engine_service.get_player_state(match_id, player_id)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/commit",
        response_model=CommitResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Commit a composed card for the current round",
    )
    async def commit(match_id: str, request: CommitRequest) -> Union[CommitResponse, JSONResponse]:
        """
        Lock in a sleeve, an animal and equipment (bottom to top).

        When the second player commits, the round resolves and the
        response includes `round_result`.
        """
        response = engine_service.commit(match_id, request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.post(
        "/api/v1/matches/{match_id}/surrender",
        response_model=MatchResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Matches"],
        summary="Surrender a match",
    )
    async def surrender(match_id: str, request: SurrenderRequest) -> Union[MatchResponse, JSONResponse]:
        response = engine_service.surrender(match_id, request)
        if isinstance(response, ErrorResponse):
            return from_service(response)
        return response

    @app.delete(
        "/api/v1/matches/{match_id}",
        response_model=EndMatchResponse,
        tags=["Matches"],
        summary="Remove a match",
    )
    async def end_match(match_id: str) -> EndMatchResponse:
        """Remove a match from memory."""
        success = engine_service.end_match(match_id)
        return EndMatchResponse(success=success, match_id=match_id)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(version=__version__)

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Sleeved Potential Engine API",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn sleeved.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
