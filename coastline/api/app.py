"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /api/v1/health                           Health check
    GET    /api/v1/structures                       Buildable structure catalog
    GET    /api/v1/events                           Climate event catalog
    POST   /api/v1/sessions                         Create (or resume) a game session
    GET    /api/v1/sessions                         List active sessions
    GET    /api/v1/sessions/{id}                    Get session status
    DELETE /api/v1/sessions/{id}                    End session
    GET    /api/v1/sessions/{id}/state              Get game state
    POST   /api/v1/sessions/{id}/turn               Advance one turn
    POST   /api/v1/sessions/{id}/structures         Place a structure
    POST   /api/v1/sessions/{id}/save               Save the game
    POST   /api/v1/sessions/{id}/load               Load the saved game
    GET    /api/v1/sessions/{id}/export             Export the game
    POST   /api/v1/sessions/{id}/import             Import an exported game
    POST   /api/v1/sessions/{id}/climate/refresh    Refresh climate data
    GET    /api/v1/sessions/{id}/summary            State summary (and advice)
    GET    /api/v1/stats                            Session history for a profile
    DELETE /api/v1/stats                            Clear session history

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Annotated, Union
import logging
import os

# Environment configuration
COASTLINE_ENV = os.getenv("COASTLINE_ENV", "development")
COASTLINE_SAVE_DIR = os.getenv("COASTLINE_SAVE_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        PlaceStructureRequest,
        ImportRequest,
        # Response models
        ActionResponse,
        ClearStatsResponse,
        ClimateRefreshResponse,
        EndSessionResponse,
        ErrorResponse,
        EventListResponse,
        ExportResponse,
        GameStateResponse,
        HealthResponse,
        LoadResponse,
        SaveResponse,
        SessionListResponse,
        SessionResponse,
        StatsResponse,
        StructureListResponse,
        SummaryResponse,
        TurnResponse,
        # Enums
        ErrorCode,
    )

    app = FastAPI(
        title="Coastline API",
        description="""
City-resilience game engine: build on a 6x6 coastal grid and survive
rising seas, storms and heat waves until 2060.

## Turn Flow

1. Place structures with `POST /structures`
2. End the turn with `POST /turn`
3. The response lists climate events that fired, floods, achievements
   and, when the game ends, the outcome and score

Every turn is saved automatically to the session's profile.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_DIFFICULTY` | Unknown difficulty preset |
| `INVALID_ACTION` | Placement rejected |
| `GAME_OVER` | The game has already ended |
| `NO_SAVED_GAME` | Nothing to load |
| `VALIDATION_ERROR` | Imported data failed validation |
| `STORAGE_ERROR` | Storage could not be written |
        """,
        version="1.0.0",
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
    if service is None:
        from ..climate_data import NasaClimateDataProvider, StaticClimateDataProvider
        from ..persistence import FileStorage, MemoryStorage
        from ..session import SessionManager

        storage = FileStorage(COASTLINE_SAVE_DIR) if COASTLINE_SAVE_DIR else MemoryStorage()
        provider = NasaClimateDataProvider() if COASTLINE_ENV == "production" else StaticClimateDataProvider()
        service = APIService(session_manager=SessionManager(storage=storage, climate_provider=provider))
        logger.info("Coastline API (%s), saves in %s", COASTLINE_ENV, COASTLINE_SAVE_DIR or "memory")
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        status_code = 404 if error.error_code == ErrorCode.SESSION_NOT_FOUND else 400
        return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Health / catalog
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="coastline", version="1.0.0")

    @app.get(
        "/api/v1/structures",
        response_model=StructureListResponse,
        tags=["Catalog"],
        summary="List buildable structures",
    )
    async def list_structures() -> StructureListResponse:
        return api_service.list_structures()

    @app.get(
        "/api/v1/events",
        response_model=EventListResponse,
        tags=["Catalog"],
        summary="List climate event rules",
    )
    async def list_events() -> EventListResponse:
        return api_service.list_events()

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={400: {"model": ErrorResponse, "description": "Unknown difficulty"}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(request: CreateSessionRequest) -> Union[SessionResponse, JSONResponse]:
        """
        Create a new game session.

        With `resume=true` the profile's saved game is continued if there is one.
        """
        return respond(api_service.create_session(request))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get session status",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a game session",
    )
    async def end_session(
        session_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndSessionResponse:
        """End a game session. Its save is kept."""
        success = api_service.end_session(session_id, reason)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/state",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the current game state",
    )
    async def get_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game_state(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/turn",
        response_model=TurnResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Advance one turn",
    )
    async def advance_turn(session_id: str) -> Union[TurnResponse, JSONResponse]:
        """
        Simulate one turn: climate events, income, achievements and end
        conditions. Calling it after the game has ended is a no-op.
        """
        return respond(api_service.advance_turn(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/structures",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Placement rejected"},
            404: {"model": ErrorResponse},
        },
        tags=["Game"],
        summary="Place a structure on a cell",
    )
    async def place_structure(
        session_id: str,
        request: PlaceStructureRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.place_structure(session_id, request))

    # =========================================================================
    # Persistence Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/save",
        response_model=SaveResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Persistence"],
        summary="Save the game",
    )
    async def save_game(session_id: str) -> Union[SaveResponse, JSONResponse]:
        return respond(api_service.save(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/load",
        response_model=LoadResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Persistence"],
        summary="Load the saved game",
    )
    async def load_game(session_id: str) -> Union[LoadResponse, JSONResponse]:
        return respond(api_service.load(session_id))

    @app.get(
        "/api/v1/sessions/{session_id}/export",
        response_model=ExportResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Persistence"],
        summary="Export the game",
    )
    async def export_game(session_id: str) -> Union[ExportResponse, JSONResponse]:
        return respond(api_service.export_snapshot(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/import",
        response_model=ActionResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Import failed validation"},
            404: {"model": ErrorResponse},
        },
        tags=["Persistence"],
        summary="Import an exported game",
    )
    async def import_game(session_id: str, request: ImportRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Replace the session's game with an exported one.

        Invalid data is rejected with `VALIDATION_ERROR` and the existing
        save is left unchanged.
        """
        return respond(api_service.import_snapshot(session_id, request))

    @app.get(
        "/api/v1/stats",
        response_model=StatsResponse,
        tags=["Persistence"],
        summary="Session history for a profile",
    )
    async def get_stats(
        profile: Annotated[str, Query(pattern=r"^[A-Za-z0-9_-]+$")] = "default",
    ) -> StatsResponse:
        return api_service.get_stats(profile)

    @app.delete(
        "/api/v1/stats",
        response_model=ClearStatsResponse,
        tags=["Persistence"],
        summary="Clear session history for a profile",
    )
    async def clear_stats(
        profile: Annotated[str, Query(pattern=r"^[A-Za-z0-9_-]+$")] = "default",
    ) -> ClearStatsResponse:
        return api_service.clear_stats(profile)

    # =========================================================================
    # Climate / Advisor Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/climate/refresh",
        response_model=ClimateRefreshResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Climate"],
        summary="Refresh climate data",
    )
    async def refresh_climate(session_id: str) -> Union[ClimateRefreshResponse, JSONResponse]:
        """
        Fetch fresh climate data and merge it into the game's snapshot.

        Parts that could not be fetched keep their last-known values.
        """
        return respond(await api_service.refresh_climate(session_id))

    @app.get(
        "/api/v1/sessions/{session_id}/summary",
        response_model=SummaryResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Climate"],
        summary="State summary for advisors",
    )
    async def get_summary(
        session_id: str,
        advise: Annotated[bool, Query(description="Include advisor recommendations")] = False,
    ) -> Union[SummaryResponse, JSONResponse]:
        return respond(api_service.get_summary(session_id, advise))

    return app


# For running directly: uvicorn coastline.api.app:app
app = create_app()
