# app/schemas/ludo_schema.py

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import ClassVar, List, Optional


PAWNS_PER_SLOT = 4
HOME = -1


# Occupants
class OccupantKind(str, Enum):
    PLAYER = "player"
    GHOST = "ghost"


class Occupant(BaseModel):
    """
    Owner of a slot: either a connected player or the ghost left behind
    when a player disconnects. Ghost ids are strictly negative and unique
    within their session.
    """
    model_config = ConfigDict(frozen=True)

    kind: OccupantKind
    id: int

    @classmethod
    def player(cls, player_id: int) -> "Occupant":
        return cls(kind=OccupantKind.PLAYER, id=player_id)

    @classmethod
    def ghost(cls, ghost_id: int) -> "Occupant":
        if ghost_id >= 0:
            raise ValueError("Ghost ids must be negative")
        return cls(kind=OccupantKind.GHOST, id=ghost_id)

    @property
    def is_ghost(self) -> bool:
        return self.kind == OccupantKind.GHOST


# Stored rows
class SessionInfo(BaseModel):
    """Per-session counters. The current turn is derived from these, never stored."""
    session_id: str
    start_color: int = Field(..., ge=0, le=3)
    move_count: int = Field(0, ge=0)
    six_count: int = Field(0, ge=0)
    consecutive_six_count: int = Field(0, ge=0)
    last_ghost_id: int = Field(0, le=0, description="Most recently minted ghost id (0 = none yet)")


class SlotState(BaseModel):
    """One color's seat: its occupant, granted roll and pawn positions."""
    session_id: str
    occupant: Occupant
    color: int = Field(..., ge=0, le=3)
    pending_roll: int = Field(0, ge=0, le=6)
    pawns: List[int] = Field(default_factory=lambda: [HOME] * PAWNS_PER_SLOT)


# Request schemas
class CreateSessionRequest(BaseModel):
    """Request a session id, optionally matching into an open session"""
    quick_game: bool = Field(..., description="Join the fullest open session instead of a fresh one")


class RollRequest(BaseModel):
    player_id: int


class MoveRequest(BaseModel):
    player_id: int
    pawn: int = Field(..., description="Pawn index 0-3")


class ColorRequest(BaseModel):
    player_id: int


class UpdateNicknameRequest(BaseModel):
    nickname: str = Field(..., min_length=1, max_length=15)


# Response schemas
class SessionCreatedResponse(BaseModel):
    session_id: str


class SessionListing(BaseModel):
    """An open session and the number of real occupants in it"""
    session_id: str
    players: int


class PublicSessionInfo(BaseModel):
    session_id: str
    start_color: int
    move_count: int
    six_count: int
    consecutive_six_count: int
    current_color: int


class PublicSlot(BaseModel):
    """Slot with the occupant identifier redacted"""
    color: int
    vacant: bool
    pending_roll: int
    pawns: List[int]


class SessionStateResponse(BaseModel):
    info: PublicSessionInfo
    board: List[PublicSlot]


class RollResponse(BaseModel):
    roll: int = Field(..., description="Rolled value, or 0 when the turn was skipped")


class MoveResponse(BaseModel):
    success: bool


class ColorResponse(BaseModel):
    color: int


class NicknameResponse(BaseModel):
    nickname: str


class LudoErrorResponse(BaseModel):
    """Error payload for the live channel"""
    error: str
    details: Optional[dict] = None


# Event schemas (for Socket.IO broadcasts)
class LudoEvent(BaseModel):
    event_name: ClassVar[str] = ""


class RollEvent(LudoEvent):
    event_name: ClassVar[str] = "roll"
    occupant: int
    roll: int


class PawnMoveEvent(LudoEvent):
    event_name: ClassVar[str] = "pawn_move"
    color: int
    pawn: int
    position: int


class CaptureEvent(LudoEvent):
    event_name: ClassVar[str] = "capture"
    capturing_color: int
    captured_color: int
    captured_pawn: int


class VictoryEvent(LudoEvent):
    event_name: ClassVar[str] = "victory"
    occupant: int
    color: int
    color_name: str
    nickname: Optional[str] = None


class PlayerIdEvent(LudoEvent):
    event_name: ClassVar[str] = "player_id"
    occupant: int


class PlayersChangedEvent(LudoEvent):
    event_name: ClassVar[str] = "players_changed"
