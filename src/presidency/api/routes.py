"""HTTP routes for the presidency API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from presidency.api.runtime import (
    ActionRequest,
    ApiState,
    DuplicateAchievementError,
    MatchNotFoundError,
    PresidencyService,
    SessionClosedError,
    SessionNotFoundError,
)
from presidency.database import check_database_health
from presidency.domain.deltas import lookup_delta
from presidency.domain.enums import ActionCategory
from presidency.domain.errors import InvalidVectorState, SerializationFailure, UnknownActionKey

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class StatsPayload(BaseModel):
    approval: int
    stability: int
    economy: int
    justice: int
    power: int
    chaos: int
    laws: int
    crises: int


class RebellionPayload(BaseModel):
    active: bool
    intensity: int


class GameOverPayload(BaseModel):
    over: bool
    reason: str | None


class AchievementPayload(BaseModel):
    key: str
    description: str
    unlocked_at: str


class SessionSummary(BaseModel):
    id: str
    player_name: str
    country: str
    difficulty: str
    chaos_threshold: int
    started_at: str
    ended_at: str | None
    stats: StatsPayload


class StatsResponse(BaseModel):
    stats: StatsPayload
    rebellion: RebellionPayload
    game_over: GameOverPayload


class ActionResponse(StatsResponse):
    achievements: list[AchievementPayload]
    recognised: bool
    method: str | None


class TimelineEntry(BaseModel):
    id: int
    type: str
    description: str
    at: str


class StartSessionRequest(BaseModel):
    player_name: str = Field(default="Player", min_length=1)
    country: str = Field(default="Republic", min_length=1)
    difficulty: str = Field(default="normal", min_length=1)
    chaos_threshold: int | None = Field(default=None, gt=0)


class ActionBody(BaseModel):
    key: str = Field(min_length=1)
    method: str | None = None
    target: str | None = None
    description: str | None = None


class UnlockRequest(BaseModel):
    key: str = Field(min_length=1)
    description: str | None = None


class FinalArchiveResponse(BaseModel):
    archive_id: str
    glyphs: str


class ExportArchiveResponse(BaseModel):
    archive_id: str
    glyphs_sample: str
    glyphs_length: int


class DeltaBody(BaseModel):
    """Raw stat adjustment sent by a multiplayer client."""

    model_config = ConfigDict(extra="forbid")

    approval: int | None = None
    stability: int | None = None
    economy: int | None = None
    justice: int | None = None
    power: int | None = None
    chaos: int | None = None
    laws: int | None = Field(default=None, ge=0)
    crises: int | None = Field(default=None, ge=0)

    def as_delta(self) -> dict[str, int]:
        return self.model_dump(exclude_none=True)


class StartMatchRequest(BaseModel):
    session_a_id: str
    session_b_id: str
    mode: str = Field(default="versus", min_length=1)


class UpdateMatchRequest(BaseModel):
    delta_a: DeltaBody | None = None
    delta_b: DeltaBody | None = None
    end: bool = False


class MatchResponse(BaseModel):
    match_id: str
    session_a_id: str
    session_b_id: str
    mode: str
    ended: bool
    stats_a: StatsPayload | None = None
    stats_b: StatsPayload | None = None


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _corrupt_state(exc: InvalidVectorState) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"stored session state is invalid: {exc}",
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rules_version": state.settings.rules_version,
        "database": check_database_health(state.engine),
    }


@router.get("/rules")
async def rules_overview(state: ApiStateDep) -> dict[str, object]:
    """Expose the delta tables and crisis method modifiers."""

    deltas = state.rules.deltas
    return {
        "tables": {
            str(category): {key: dict(delta) for key, delta in deltas.table_for(category).items()}
            for category in ActionCategory
        },
        "fallbacks": {str(category): dict(delta) for category, delta in deltas.fallbacks.items()},
        "methods": {str(method): dict(delta) for method, delta in deltas.methods.items()},
    }


@router.get("/rules/{category}/{key}")
async def rule_detail(category: ActionCategory, key: str, state: ApiStateDep) -> dict[str, object]:
    try:
        delta = lookup_delta(category, key, rules=state.rules.deltas)
    except UnknownActionKey as exc:
        raise _not_found(exc) from exc
    return {"category": str(category), "key": key, "delta": dict(delta)}


@router.post("/sessions", response_model=SessionSummary, status_code=status.HTTP_201_CREATED)
async def start_session(request: StartSessionRequest, state: ApiStateDep) -> SessionSummary:
    payload = state.presidency.start_session(
        player_name=request.player_name,
        country=request.country,
        difficulty=request.difficulty,
        chaos_threshold=request.chaos_threshold,
    )
    return SessionSummary.model_validate(payload)


@router.get("/sessions/{session_id}", response_model=SessionSummary)
async def get_session(session_id: str, state: ApiStateDep) -> SessionSummary:
    try:
        payload = state.presidency.get_session(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    return SessionSummary.model_validate(payload)


@router.get("/sessions/{session_id}/stats", response_model=StatsResponse)
async def get_stats(session_id: str, state: ApiStateDep) -> StatsResponse:
    try:
        payload = state.presidency.get_stats(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    return StatsResponse.model_validate(payload)


@router.post("/sessions/{session_id}/actions/{category}", response_model=ActionResponse)
async def resolve_action(
    session_id: str,
    category: ActionCategory,
    body: ActionBody,
    state: ApiStateDep,
) -> ActionResponse:
    action = ActionRequest(
        category=category,
        key=body.key,
        method=body.method,
        target=body.target,
        description=body.description,
    )
    try:
        outcome = await state.locks.run([session_id], state.presidency.act, session_id, action)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    return ActionResponse.model_validate(PresidencyService.to_outcome_dict(outcome))


@router.get("/sessions/{session_id}/timeline", response_model=list[TimelineEntry])
async def timeline(session_id: str, state: ApiStateDep) -> list[TimelineEntry]:
    try:
        rows = state.presidency.list_timeline(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    return [TimelineEntry.model_validate(row) for row in rows]


@router.get("/sessions/{session_id}/achievements", response_model=list[AchievementPayload])
async def list_achievements(session_id: str, state: ApiStateDep) -> list[AchievementPayload]:
    try:
        rows = state.presidency.list_achievements(session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    return [AchievementPayload.model_validate(row) for row in rows]


@router.post(
    "/sessions/{session_id}/achievements",
    response_model=AchievementPayload,
    status_code=status.HTTP_201_CREATED,
)
async def unlock_achievement(
    session_id: str, request: UnlockRequest, state: ApiStateDep
) -> AchievementPayload:
    try:
        achievement = await state.locks.run(
            [session_id],
            state.presidency.unlock_achievement,
            session_id,
            request.key,
            request.description,
        )
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except DuplicateAchievementError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return AchievementPayload.model_validate(PresidencyService.to_achievement_dict(achievement))


@router.post("/sessions/{session_id}/end", response_model=FinalArchiveResponse)
async def end_session(session_id: str, state: ApiStateDep) -> FinalArchiveResponse:
    try:
        result = await state.locks.run([session_id], state.presidency.end_session, session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    except SerializationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return FinalArchiveResponse(archive_id=result.archive_id, glyphs=result.glyphs)


@router.post(
    "/sessions/{session_id}/archives",
    response_model=ExportArchiveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def export_archive(session_id: str, state: ApiStateDep) -> ExportArchiveResponse:
    try:
        result = await state.locks.run([session_id], state.presidency.export_archive, session_id)
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    except SerializationFailure as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    return ExportArchiveResponse(
        archive_id=result.archive_id,
        glyphs_sample=result.glyphs[: state.settings.archive_sample_length],
        glyphs_length=len(result.glyphs),
    )


@router.post("/matches", response_model=MatchResponse, status_code=status.HTTP_201_CREATED)
async def start_match(request: StartMatchRequest, state: ApiStateDep) -> MatchResponse:
    try:
        payload = await state.locks.run(
            [request.session_a_id, request.session_b_id],
            state.matches.start_match,
            request.session_a_id,
            request.session_b_id,
            request.mode,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except SessionNotFoundError as exc:
        raise _not_found(exc) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return MatchResponse.model_validate(payload)


@router.post("/matches/{match_id}/update", response_model=MatchResponse)
async def update_match(
    match_id: str, request: UpdateMatchRequest, state: ApiStateDep
) -> MatchResponse:
    try:
        participants = state.matches.participants(match_id)
        payload = await state.locks.run(
            participants,
            state.matches.update_match,
            match_id,
            request.delta_a.as_delta() if request.delta_a else None,
            request.delta_b.as_delta() if request.delta_b else None,
            request.end,
        )
    except MatchNotFoundError as exc:
        raise _not_found(exc) from exc
    except SessionClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InvalidVectorState as exc:
        raise _corrupt_state(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return MatchResponse.model_validate(payload)
