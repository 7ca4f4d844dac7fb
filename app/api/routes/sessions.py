# app/api/routes/sessions.py

from fastapi import APIRouter, status
from typing import List, Optional
from infrastructure.redis_connection import get_redis
from services.game_service import GameService
from services.nickname_service import NicknameService
from services.event_publisher import EventPublisher
from schemas.ludo_schema import (
    CreateSessionRequest,
    RollRequest,
    MoveRequest,
    ColorRequest,
    UpdateNicknameRequest,
    SessionCreatedResponse,
    SessionListing,
    SessionStateResponse,
    RollResponse,
    MoveResponse,
    ColorResponse,
    NicknameResponse,
    PlayersChangedEvent,
)
from exceptions.domain_exceptions import NotFoundException
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=List[SessionListing])
async def list_sessions():
    """
    List ongoing sessions with their number of connected players
    """
    return await GameService.list_sessions(get_redis())


@router.post("", response_model=SessionCreatedResponse)
async def create_session(request: CreateSessionRequest):
    """
    Get a session id to connect to.

    - **quick_game**: reuse the fullest open session when there is one
    """
    session_id = await GameService.create_session_id(get_redis(), request.quick_game)
    return SessionCreatedResponse(session_id=session_id)


@router.get("/{session_id}", response_model=SessionStateResponse)
async def get_session(session_id: str):
    """
    Public state of a session: counters and board, player ids hidden
    """
    return await GameService.get_public_state(get_redis(), session_id)


@router.post("/{session_id}/roll", response_model=RollResponse)
async def roll(session_id: str, request: RollRequest):
    """
    Roll the dice for the player whose turn it is.

    A roll of 0 means no move was possible and the turn passed on.
    """
    result = await GameService.roll(get_redis(), session_id, request.player_id)
    await EventPublisher.publish(session_id, result["events"])
    return RollResponse(roll=result["roll"])


@router.post("/{session_id}/move", response_model=MoveResponse)
async def move(session_id: str, request: MoveRequest):
    """
    Move a pawn by the granted roll. `success` is false when the move is
    not allowed; the roll then stays available for another pawn.
    """
    result = await GameService.move_pawn(get_redis(), session_id, request.player_id, request.pawn)
    await EventPublisher.publish(session_id, result["events"])
    return MoveResponse(success=result["success"])


@router.post("/{session_id}/color", response_model=ColorResponse)
async def get_color(session_id: str, request: ColorRequest):
    """
    Color assigned to a player
    """
    color = await GameService.get_color(get_redis(), session_id, request.player_id)
    return ColorResponse(color=color)


# Players

@router.get("/{session_id}/players/nicknames", response_model=List[Optional[str]])
async def get_nicknames(session_id: str):
    """
    Nicknames in color order; null for free or vacated colors
    """
    return await NicknameService.get_session_nicknames(get_redis(), session_id)


@router.get("/{session_id}/players/{player_id}/nickname", response_model=NicknameResponse)
async def get_nickname(session_id: str, player_id: int):
    nickname = await NicknameService.get_nickname(get_redis(), session_id, player_id)
    if nickname is None:
        raise NotFoundException(
            message="Nickname not set",
            details={"player_id": player_id}
        )
    return NicknameResponse(nickname=nickname)


@router.put("/{session_id}/players/{player_id}/nickname", response_model=NicknameResponse, status_code=status.HTTP_200_OK)
async def update_nickname(session_id: str, player_id: int, request: UpdateNicknameRequest):
    nickname = await NicknameService.update_nickname(get_redis(), session_id, player_id, request.nickname)
    await EventPublisher.publish(session_id, [PlayersChangedEvent()])
    return NicknameResponse(nickname=nickname)
