# app/services/nickname_service.py

from typing import List, Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError
from schemas.ludo_schema import Occupant
from services.session_store import SessionStore
from services.games.ludo_engine import LudoEngine
from exceptions.domain_exceptions import (
    InvalidRequestException,
    OccupantNotInSessionException,
    StorageFailureException,
)
from config.settings import settings
import logging

logger = logging.getLogger(__name__)


class NicknameService:
    """
    Display names of seated players. Each session keeps its own hash, which
    expires and is deleted together with the session.
    """

    @staticmethod
    async def create_nickname(
        redis: Redis,
        session_id: str,
        player_id: int,
        nickname: Optional[str] = None
    ) -> str:
        nickname = nickname or settings.DEFAULT_NICKNAME
        key = SessionStore.nicknames_key(session_id)
        try:
            async with redis.pipeline(transaction=True) as pipe:
                pipe.hset(key, str(player_id), nickname)
                pipe.expire(key, settings.SESSION_TTL_SECONDS)
                await pipe.execute()
        except RedisError as e:
            logger.error(f"Error creating nickname for player {player_id}: {e}")
            raise StorageFailureException(message="Error creating player nickname") from e
        return nickname

    @staticmethod
    async def get_nickname(redis: Redis, session_id: str, player_id: int) -> Optional[str]:
        try:
            return await redis.hget(SessionStore.nicknames_key(session_id), str(player_id))
        except RedisError as e:
            logger.error(f"Error getting nickname for player {player_id}: {e}")
            raise StorageFailureException(message="Error fetching nickname") from e

    @staticmethod
    async def update_nickname(redis: Redis, session_id: str, player_id: int, nickname: str) -> str:
        """
        Rename a player seated in `session_id`.

        Raises:
            InvalidRequestException: empty or too long nickname
            OccupantNotInSessionException: player has no slot in the session
        """
        nickname = (nickname or "").strip()
        if not nickname or len(nickname) > settings.NICKNAME_MAX_LENGTH:
            raise InvalidRequestException(
                message="Invalid request",
                details={"nickname": nickname, "max_length": settings.NICKNAME_MAX_LENGTH}
            )

        slot = await SessionStore.find_slot(redis, session_id, Occupant.player(player_id))
        if slot is None:
            raise OccupantNotInSessionException(session_id, player_id)

        try:
            await redis.hset(SessionStore.nicknames_key(session_id), str(player_id), nickname)
        except RedisError as e:
            logger.error(f"Error updating player nickname: {e}")
            raise StorageFailureException(message="Database error") from e

        logger.info(f"Player {player_id} in session {session_id} is now '{nickname}'")
        return nickname

    @staticmethod
    async def remove_nickname(redis: Redis, session_id: str, player_id: int):
        try:
            await redis.hdel(SessionStore.nicknames_key(session_id), str(player_id))
        except RedisError as e:
            logger.error(f"Error removing nickname for player {player_id}: {e}")
            raise StorageFailureException(message="Error removing player nickname") from e

    @staticmethod
    async def get_session_nicknames(redis: Redis, session_id: str) -> List[Optional[str]]:
        """Nicknames in color order; None for ghosts and colors nobody took yet"""
        board = await SessionStore.load_board(redis, session_id)
        by_color = {slot.color: slot for slot in board}

        names: List[Optional[str]] = []
        for color in range(LudoEngine.COLORS):
            slot = by_color.get(color)
            if slot is None or slot.occupant.is_ghost:
                names.append(None)
            else:
                names.append(await NicknameService.get_nickname(redis, session_id, slot.occupant.id))
        return names
