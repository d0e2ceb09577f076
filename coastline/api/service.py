"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to session calls
2. Manages sessions
3. Formats engine results as response schemas

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Errors are returned as ErrorResponse values, never raised.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .schemas import (
    # Requests
    CreateSessionRequest,
    PlaceStructureRequest,
    ImportRequest,
    # Responses
    ActionResponse,
    ClearStatsResponse,
    ClimateRefreshResponse,
    ErrorResponse,
    EventListResponse,
    ExportResponse,
    GameStateResponse,
    LoadResponse,
    SaveResponse,
    SessionResponse,
    StatsResponse,
    StructureListResponse,
    SummaryResponse,
    TurnResponse,
    # Shared
    CellInfo,
    ResourcesInfo,
    StructureInfo,
    # Enums
    ErrorCode,
    SessionStatus,
)
from ..catalog.config import DEFAULT_CONFIG
from ..catalog.event_dsl import default_catalog
from ..catalog.structures import STRUCTURES
from ..engine_core.action import TurnOutcome
from ..engine_core.end_conditions import calculate_score, current_sea_level
from ..session import DEFAULT_PROFILE, Session, SessionManager, SessionState, persistence_for_profile

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(CreateSessionRequest())

        # Build, then end the turn
        service.place_structure(session_id, PlaceStructureRequest(kind="seawall", row=4, col=0))
        turn_response = service.advance_turn(session_id)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, request: CreateSessionRequest) -> SessionResponse | ErrorResponse:
        try:
            session = self.session_manager.create_session(
                difficulty=request.difficulty,
                profile=request.profile,
                resume=request.resume,
                seed=request.seed,
            )
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_DIFFICULTY)
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def end_session(self, session_id: str, reason: str = "user_ended") -> bool:
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Game
    # =========================================================================

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._build_game_state(session)

    def advance_turn(self, session_id: str) -> TurnResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        outcome = session.game.advance_turn()
        session.refresh_status()
        return self._turn_to_response(session, outcome)

    def place_structure(
        self,
        session_id: str,
        request: PlaceStructureRequest,
    ) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        result = session.game.place_structure(request.kind, request.row, request.col)
        if not result.success:
            code = ErrorCode.GAME_OVER if result.error_code == "GAME_OVER" else ErrorCode.INVALID_ACTION
            return ErrorResponse(
                error=result.error or "Action rejected",
                error_code=code,
                details={"reason": result.error_code},
            )
        return ActionResponse(
            success=True,
            changes=result.state_changes,
            game_state=self._build_game_state(session),
        )

    def list_structures(self) -> StructureListResponse:
        return StructureListResponse(structures=[
            StructureInfo(**kind.to_dict()) for kind in STRUCTURES.values()
        ])

    def list_events(self) -> EventListResponse:
        return EventListResponse(events=[rule.to_dict() for rule in default_catalog()])

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self, session_id: str) -> SaveResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        if not session.game.save():
            return ErrorResponse(error="Game could not be saved", error_code=ErrorCode.STORAGE_ERROR)
        return SaveResponse(success=True, save_info=session.game.persistence.save_info())

    def load(self, session_id: str) -> LoadResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        if not session.game.load():
            return ErrorResponse(error="No saved game to load", error_code=ErrorCode.NO_SAVED_GAME)
        session.state = SessionState.ACTIVE
        session.refresh_status()
        return LoadResponse(loaded=True, game_state=self._build_game_state(session))

    def export_snapshot(self, session_id: str) -> ExportResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        snapshot = session.game.export_snapshot()
        if snapshot is None:
            return ErrorResponse(error="Game could not be exported", error_code=ErrorCode.STORAGE_ERROR)
        return ExportResponse(session_id=session_id, snapshot=snapshot)

    def import_snapshot(self, session_id: str, request: ImportRequest) -> ActionResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)

        result = session.game.import_snapshot(request.snapshot)
        if not result.success:
            code = ErrorCode.VALIDATION_ERROR if result.error_code == "VALIDATION_ERROR" else ErrorCode.STORAGE_ERROR
            return ErrorResponse(
                error=result.error or "Import rejected",
                error_code=code,
                details={"errors": result.state_changes},
            )
        session.state = SessionState.ACTIVE
        session.refresh_status()
        return ActionResponse(
            success=True,
            changes=result.state_changes,
            game_state=self._build_game_state(session),
        )

    def get_stats(self, profile: str = DEFAULT_PROFILE) -> StatsResponse:
        persistence = persistence_for_profile(self.session_manager.storage, DEFAULT_CONFIG, profile)
        summary = persistence.stats_summary()
        return StatsResponse(profile=profile, sessions=persistence.load_stats(), **summary)

    def clear_stats(self, profile: str = DEFAULT_PROFILE) -> ClearStatsResponse:
        persistence = persistence_for_profile(self.session_manager.storage, DEFAULT_CONFIG, profile)
        return ClearStatsResponse(success=persistence.clear_stats(), profile=profile)

    # =========================================================================
    # Climate data and advice
    # =========================================================================

    async def refresh_climate(self, session_id: str) -> ClimateRefreshResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        report = await session.game.refresh_climate_data_async()
        snapshot = session.game.state.environmental_snapshot
        return ClimateRefreshResponse(
            session_id=session_id,
            updated=report.updated,
            failed=report.failed,
            environmental_snapshot=snapshot.to_dict() if snapshot is not None else None,
        )

    def get_summary(self, session_id: str, advise: bool = False) -> SummaryResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        advice = None
        if advise:
            result = session.game.advise()
            advice = result.text if result.success else None
        return SummaryResponse(
            session_id=session_id,
            summary=session.game.summary().to_dict(),
            advice=advice,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_status(self, session: Session) -> SessionStatus:
        return SessionStatus(session.refresh_status().value)

    def _session_to_response(self, session: Session) -> SessionResponse:
        state = session.game.state
        return SessionResponse(
            session_id=session.session_id,
            status=self._session_status(session),
            difficulty=session.metadata.get("difficulty", session.game.config.difficulty),
            profile=session.profile,
            resumed=session.metadata.get("resumed", False),
            turn=state.turn,
            year=state.current_year,
            created_at=session.created_at,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        state = session.game.state
        snapshot = state.environmental_snapshot
        return GameStateResponse(
            session_id=session.session_id,
            status=self._session_status(session),
            turn=state.turn,
            year=state.current_year,
            resources=ResourcesInfo(**state.resources()),
            board=[
                [
                    CellInfo(row=r, col=c, type=cell.type.value, structure=cell.structure, flooded=cell.flooded)
                    for c, cell in enumerate(row)
                ]
                for r, row in enumerate(state.board)
            ],
            selected_cell=state.selected_cell,
            game_over=state.game_over,
            outcome=state.outcome.value if state.outcome else None,
            score=calculate_score(state),
            sea_level_rise=round(current_sea_level(state), 3),
            achievements=list(state.achievements),
            environmental_snapshot=snapshot.to_dict() if snapshot is not None else None,
        )

    def _turn_to_response(self, session: Session, outcome: TurnOutcome) -> TurnResponse:
        return TurnResponse(
            session_id=session.session_id,
            status=outcome.status.value,
            turn=outcome.turn,
            year=outcome.year,
            tags=[tag.value for tag in outcome.tags],
            fired_rules=outcome.fired_rules,
            rule_errors=[str(e) for e in outcome.errors],
            flooded_cells=outcome.flooded_cells,
            unlocked_achievements=outcome.unlocked_achievements,
            external_event=outcome.external_event,
            score=outcome.score,
            checkpointed=outcome.checkpointed,
            game_state=self._build_game_state(session),
        )
