# app/services/game_service.py

import asyncio
import random
import weakref
from typing import Dict, Any, Optional, List, Tuple
from redis.asyncio import Redis
from schemas.ludo_schema import (
    SessionInfo,
    SlotState,
    Occupant,
    SessionListing,
    SessionStateResponse,
    PublicSessionInfo,
    PublicSlot,
    PlayersChangedEvent,
    VictoryEvent,
)
from services.games.ludo_engine import LudoEngine
from services.session_store import SessionStore
from services.nickname_service import NicknameService
from exceptions.domain_exceptions import (
    InvalidRequestException,
    SessionNotFoundException,
    OccupantNotInSessionException,
    NotYourTurnException,
    SessionNotStartedException,
)
import logging

logger = logging.getLogger(__name__)


class GameService:
    """
    Service running Ludo sessions stored in Redis.

    Every mutating operation loads the session, runs it through LudoEngine
    and commits the result in one transaction while holding that session's
    lock, so operations on one session never interleave. The events the
    engine produced are returned for the caller to broadcast.
    """

    SESSION_ID_DIGITS = 5
    PAWNS = 4

    # A lock lives only while someone holds or awaits it
    _locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @staticmethod
    def _session_lock(session_id: str) -> asyncio.Lock:
        lock = GameService._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            GameService._locks[session_id] = lock
        return lock

    @staticmethod
    def _validate_session_id(session_id: Any):
        if not isinstance(session_id, str) or not session_id.strip():
            raise InvalidRequestException(
                message="Invalid game id",
                details={"session_id": session_id}
            )

    @staticmethod
    def _validate_player_id(player_id: Any):
        if isinstance(player_id, bool) or not isinstance(player_id, int) or player_id <= 0:
            raise InvalidRequestException(
                message="Invalid player id",
                details={"player_id": player_id}
            )

    @staticmethod
    async def _load(redis: Redis, session_id: str) -> Tuple[SessionInfo, List[SlotState]]:
        session = await SessionStore.load_session(redis, session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        board = await SessionStore.load_board(redis, session_id)
        return session, board

    @staticmethod
    def _seated_slot(engine: LudoEngine, session_id: str, player_id: int) -> SlotState:
        if not engine.is_started:
            raise SessionNotStartedException(session_id, len(engine.board))

        slot = engine.slot_for(Occupant.player(player_id))
        if slot is None:
            logger.debug(f"Player {player_id} not in game {session_id}")
            raise OccupantNotInSessionException(session_id, player_id)
        return slot

    # ========== Slot lifecycle ==========

    @staticmethod
    async def join_session(
        redis: Redis,
        session_id: str,
        rng: Optional[random.Random] = None
    ) -> Dict[str, Any]:
        """
        Seat a new player in a session, creating the session if needed.

        Returns:
            Dictionary with the new player_id, their color and the events
            to broadcast

        Raises:
            InvalidRequestException: malformed session id
            SessionFullException: no free or ghost slot left
        """
        GameService._validate_session_id(session_id)
        player_id = await SessionStore.next_player_id(redis)

        async with GameService._session_lock(session_id):
            session = await SessionStore.load_session(redis, session_id)
            created = session is None
            if created:
                session = LudoEngine.create_session(session_id, rng)
                board: List[SlotState] = []
            else:
                board = await SessionStore.load_board(redis, session_id)

            engine = LudoEngine(session, board, rng)
            slot = engine.join(Occupant.player(player_id))
            await SessionStore.save(redis, session, board)

        if created:
            logger.info(f"New game: {session_id} was created!")

        await NicknameService.create_nickname(redis, session_id, player_id)
        logger.info(f"Player {player_id} joined game {session_id} as color {slot.color}!")

        return {
            "session_id": session_id,
            "player_id": player_id,
            "color": slot.color,
            "created": created,
            "events": [PlayersChangedEvent()],
        }

    @staticmethod
    async def leave_session(redis: Redis, session_id: str, player_id: int) -> Dict[str, Any]:
        """
        Vacate a player's slot, leaving a ghost behind. Deletes the session
        once at most one real player remains.

        Returns:
            Dictionary with session_deleted flag and the events to broadcast
        """
        GameService._validate_session_id(session_id)
        GameService._validate_player_id(player_id)
        logger.info(f"Player {player_id} left the game!")

        deleted = False
        async with GameService._session_lock(session_id):
            session = await SessionStore.load_session(redis, session_id)
            if session is not None:
                board = await SessionStore.load_board(redis, session_id)
                engine = LudoEngine(session, board)
                seated = engine.slot_for(Occupant.player(player_id)) is not None
                deleted = engine.leave(Occupant.player(player_id))
                if deleted:
                    await SessionStore.delete_session(redis, session_id)
                elif seated:
                    await SessionStore.save(redis, session, board)

        await NicknameService.remove_nickname(redis, session_id, player_id)

        return {
            "session_id": session_id,
            "session_deleted": deleted,
            "events": [PlayersChangedEvent()],
        }

    # ========== Actions ==========

    @staticmethod
    async def roll(
        redis: Redis,
        session_id: str,
        player_id: int,
        rng: Optional[random.Random] = None
    ) -> Dict[str, Any]:
        """
        Roll the dice for a player whose turn it is.

        Returns:
            Dictionary with the roll (0 = turn skipped) and the events to
            broadcast

        Raises:
            SessionNotFoundException, SessionNotStartedException,
            OccupantNotInSessionException, NotYourTurnException
        """
        GameService._validate_session_id(session_id)
        GameService._validate_player_id(player_id)

        async with GameService._session_lock(session_id):
            session, board = await GameService._load(redis, session_id)
            engine = LudoEngine(session, board, rng)
            slot = GameService._seated_slot(engine, session_id, player_id)

            validation = engine.validate_roll(slot)
            if not validation.valid:
                raise NotYourTurnException(
                    message=validation.error_message,
                    details={"session_id": session_id, "player_id": player_id, "color": slot.color}
                )

            roll = engine.apply_roll(slot)
            await SessionStore.save(redis, session, board)

        return {
            "roll": roll,
            "events": engine.events,
        }

    @staticmethod
    async def move_pawn(redis: Redis, session_id: str, player_id: int, pawn: int) -> Dict[str, Any]:
        """
        Move one of the player's pawns by the currently granted roll.

        Returns:
            Dictionary with success flag and the events to broadcast. An
            illegal move yields success=False and leaves the roll granted.
        """
        GameService._validate_session_id(session_id)
        GameService._validate_player_id(player_id)
        if isinstance(pawn, bool) or not isinstance(pawn, int) or not 0 <= pawn < GameService.PAWNS:
            raise InvalidRequestException(
                message="Invalid request",
                details={"pawn": pawn}
            )

        async with GameService._session_lock(session_id):
            session, board = await GameService._load(redis, session_id)
            engine = LudoEngine(session, board)
            slot = GameService._seated_slot(engine, session_id, player_id)

            validation = engine.validate_move(slot)
            if not validation.valid:
                raise NotYourTurnException(
                    message=validation.error_message,
                    details={"session_id": session_id, "player_id": player_id}
                )

            success = engine.apply_pawn_move(slot, pawn, slot.pending_roll)
            if success:
                await SessionStore.save(redis, session, board)

        for event in engine.events:
            if isinstance(event, VictoryEvent):
                event.nickname = await NicknameService.get_nickname(redis, session_id, event.occupant)

        return {
            "success": success,
            "events": engine.events,
        }

    # ========== Queries ==========

    @staticmethod
    async def get_public_state(redis: Redis, session_id: str) -> SessionStateResponse:
        """Session info and board with occupant identifiers redacted"""
        GameService._validate_session_id(session_id)
        session, board = await GameService._load(redis, session_id)

        info = PublicSessionInfo(
            session_id=session.session_id,
            start_color=session.start_color,
            move_count=session.move_count,
            six_count=session.six_count,
            consecutive_six_count=session.consecutive_six_count,
            current_color=LudoEngine.current_color(session),
        )
        public_board = [
            PublicSlot(
                color=slot.color,
                vacant=slot.occupant.is_ghost,
                pending_roll=slot.pending_roll,
                pawns=list(slot.pawns),
            )
            for slot in board
        ]
        return SessionStateResponse(info=info, board=public_board)

    @staticmethod
    async def get_color(redis: Redis, session_id: str, player_id: int) -> int:
        GameService._validate_session_id(session_id)
        GameService._validate_player_id(player_id)

        slot = await SessionStore.find_slot(redis, session_id, Occupant.player(player_id))
        if slot is None:
            raise OccupantNotInSessionException(session_id, player_id)
        return slot.color

    # ========== Registry ==========

    @staticmethod
    async def list_sessions(redis: Redis) -> List[SessionListing]:
        """Live sessions with their number of real occupants"""
        listings = []
        for session_id in await SessionStore.list_session_ids(redis):
            board = await SessionStore.load_board(redis, session_id)
            players = sum(1 for slot in board if not slot.occupant.is_ghost)
            if players > 0:
                listings.append(SessionListing(session_id=session_id, players=players))
        return listings

    @staticmethod
    def _generate_session_id(rng: Optional[random.Random] = None) -> str:
        """Random 5 digit id, zero padded"""
        upper = 10 ** GameService.SESSION_ID_DIGITS - 1
        return str((rng or random).randint(0, upper)).zfill(GameService.SESSION_ID_DIGITS)

    @staticmethod
    async def create_session_id(
        redis: Redis,
        quick_game: bool,
        rng: Optional[random.Random] = None
    ) -> str:
        """
        Pick a session id for a client about to join.

        With quick_game the fullest session that still has room is
        preferred; otherwise, or if none is open, a fresh unused id is
        generated.
        """
        if quick_game:
            open_sessions = [
                listing for listing in await GameService.list_sessions(redis)
                if listing.players < LudoEngine.COLORS
            ]
            if open_sessions:
                best = max(open_sessions, key=lambda listing: listing.players)
                return best.session_id

        while True:
            session_id = GameService._generate_session_id(rng)
            if not await SessionStore.session_exists(redis, session_id):
                return session_id
