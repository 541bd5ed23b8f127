"""Game API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from api.schemas import (
    ActionRequest,
    GameStateResponse,
    NewGameResponse,
    ReplayListResponse,
    StartGameRequest,
    SuperMatchRequest,
    SwitchRequest,
)
from api.session import TableSession, extract_session_id, get_registry
from bjstats.game import BlackjackTable, EventType, Phase

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_table_session(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableSession:
    """Resolve the signed X-Session-ID header to a live session."""
    raw_id = extract_session_id(session_id)
    if raw_id is None:
        raise HTTPException(status_code=401, detail="Invalid session")
    session = get_registry().get(raw_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session")
    return session


SessionDep = Annotated[TableSession, Depends(get_table_session)]


def _state_response(table: BlackjackTable) -> GameStateResponse:
    """Convert the table snapshot to a response."""
    return GameStateResponse.model_validate(table.snapshot())


def _last_rejection(table: BlackjackTable) -> str:
    """Message of the most recent rejection event."""
    event = table.events.last(EventType.INVALID_ACTION, EventType.INSUFFICIENT_FUNDS)
    if event is None:
        return "Action not allowed"
    return event.data.get("message", "Action not allowed")


def _check(table: BlackjackTable, accepted: bool) -> GameStateResponse:
    """Map an engine rejection to HTTP 400, otherwise return the new state."""
    if not accepted:
        raise HTTPException(status_code=400, detail=_last_rejection(table))
    return _state_response(table)


@router.post("/new")
async def new_game() -> NewGameResponse:
    """Open a new session with a table in setup."""
    token, _ = get_registry().create()
    return NewGameResponse(session_id=token)


@router.post("/start")
async def start_game(request: StartGameRequest, session: SessionDep) -> GameStateResponse:
    """Configure the table and start play."""
    registry = get_registry()
    async with session.lock:
        if session.table.phase != Phase.SETUP:
            raise HTTPException(status_code=400, detail="Game already started")
        try:
            table_config = registry.table_config(
                variant=request.variant,
                num_decks=request.num_decks,
                ai_players=request.ai_players,
                auto_bet=request.auto_bet,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        session.replace_table(registry.build_table(table_config))
        return _check(session.table, session.table.start_game())


@router.get("/state")
async def get_state(session: SessionDep) -> GameStateResponse:
    """Get current table state."""
    async with session.lock:
        return _state_response(session.table)


@router.post("/bet")
async def place_bet(session: SessionDep) -> GameStateResponse:
    """Place the round's bets and deal."""
    async with session.lock:
        return _check(session.table, session.table.place_bet())


@router.post("/super-match")
async def super_match(request: SuperMatchRequest, session: SessionDep) -> GameStateResponse:
    """Answer the Super Match offer."""
    async with session.lock:
        table = session.table
        accepted = table.place_super_match_bet() if request.take else table.skip_super_match_bet()
        return _check(table, accepted)


@router.post("/switch")
async def switch(request: SwitchRequest, session: SessionDep) -> GameStateResponse:
    """Swap or keep the two Switch hands."""
    async with session.lock:
        table = session.table
        accepted = table.choose_switch() if request.swap else table.keep_hands()
        return _check(table, accepted)


@router.post("/action")
async def player_action(request: ActionRequest, session: SessionDep) -> GameStateResponse:
    """Execute a player action."""
    async with session.lock:
        return _check(session.table, session.table.player_action(request.action))


@router.post("/next-round")
async def next_round(session: SessionDep) -> GameStateResponse:
    """Clear the table and open betting again."""
    async with session.lock:
        return _check(session.table, session.table.next_round())


@router.post("/reset")
async def reset_game(session: SessionDep) -> GameStateResponse:
    """Abandon the round and go back to setup."""
    async with session.lock:
        return _check(session.table, session.table.reset_to_setup())


@router.get("/replays")
async def get_replays(session: SessionDep) -> ReplayListResponse:
    """Recent round replays."""
    async with session.lock:
        return ReplayListResponse(replays=[r.to_dict() for r in session.table.replays])
