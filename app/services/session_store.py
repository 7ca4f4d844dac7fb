# app/services/session_store.py

import json
from contextlib import asynccontextmanager
from typing import List, Optional
from redis.asyncio import Redis
from redis.exceptions import RedisError
from schemas.ludo_schema import SessionInfo, SlotState, Occupant
from exceptions.domain_exceptions import StorageFailureException
from config.settings import settings
import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _storage_guard(operation: str, session_id: Optional[str] = None):
    """Translate Redis errors into StorageFailureException"""
    try:
        yield
    except RedisError as e:
        logger.error(f"Storage failure during {operation} (session {session_id}): {e}", exc_info=True)
        raise StorageFailureException(
            message="Storage failure",
            details={"operation": operation, "session_id": session_id}
        ) from e


class SessionStore:
    """
    Redis persistence for Ludo sessions.

    Layout:
    - ludo_session:{id}    JSON session row
    - ludo_slots:{id}      hash of color -> JSON slot row
    - ludo_nicknames:{id}  hash of player id -> nickname
    - ludo_sessions        set of live session ids
    - ludo_player_seq      counter handing out player ids
    """

    SESSION_KEY_PREFIX = "ludo_session:"
    SLOTS_KEY_PREFIX = "ludo_slots:"
    SESSIONS_SET_KEY = "ludo_sessions"
    PLAYER_SEQ_KEY = "ludo_player_seq"
    NICKNAMES_KEY_PREFIX = "ludo_nicknames:"

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"{SessionStore.SESSION_KEY_PREFIX}{session_id}"

    @staticmethod
    def _slots_key(session_id: str) -> str:
        return f"{SessionStore.SLOTS_KEY_PREFIX}{session_id}"

    @staticmethod
    def nicknames_key(session_id: str) -> str:
        return f"{SessionStore.NICKNAMES_KEY_PREFIX}{session_id}"

    @staticmethod
    async def next_player_id(redis: Redis) -> int:
        """Allocate a new positive player id"""
        async with _storage_guard("next_player_id"):
            return int(await redis.incr(SessionStore.PLAYER_SEQ_KEY))

    @staticmethod
    async def load_session(redis: Redis, session_id: str) -> Optional[SessionInfo]:
        async with _storage_guard("load_session", session_id):
            raw = await redis.get(SessionStore._session_key(session_id))

        if not raw:
            return None
        return SessionInfo(**json.loads(raw))

    @staticmethod
    async def load_board(redis: Redis, session_id: str) -> List[SlotState]:
        """All slots of a session, ordered by color"""
        async with _storage_guard("load_board", session_id):
            rows = await redis.hgetall(SessionStore._slots_key(session_id))

        board = [SlotState(**json.loads(raw)) for raw in rows.values()]
        board.sort(key=lambda slot: slot.color)
        return board

    @staticmethod
    async def find_slot(redis: Redis, session_id: str, occupant: Occupant) -> Optional[SlotState]:
        board = await SessionStore.load_board(redis, session_id)
        return next((slot for slot in board if slot.occupant == occupant), None)

    @staticmethod
    async def save(redis: Redis, session: SessionInfo, board: List[SlotState]):
        """
        Write the session row and all of its slots in one transaction, so
        other readers never see half of a mutation.
        """
        session_key = SessionStore._session_key(session.session_id)
        slots_key = SessionStore._slots_key(session.session_id)
        ttl = settings.SESSION_TTL_SECONDS

        async with _storage_guard("save", session.session_id):
            async with redis.pipeline(transaction=True) as pipe:
                pipe.set(session_key, session.model_dump_json(), ex=ttl)
                if board:
                    pipe.hset(
                        slots_key,
                        mapping={str(slot.color): slot.model_dump_json() for slot in board}
                    )
                    pipe.expire(slots_key, ttl)
                pipe.expire(SessionStore.nicknames_key(session.session_id), ttl)
                pipe.sadd(SessionStore.SESSIONS_SET_KEY, session.session_id)
                await pipe.execute()

    @staticmethod
    async def delete_session(redis: Redis, session_id: str):
        """Delete a session together with its slots and nicknames"""
        async with _storage_guard("delete_session", session_id):
            async with redis.pipeline(transaction=True) as pipe:
                pipe.delete(SessionStore._session_key(session_id))
                pipe.delete(SessionStore._slots_key(session_id))
                pipe.delete(SessionStore.nicknames_key(session_id))
                pipe.srem(SessionStore.SESSIONS_SET_KEY, session_id)
                await pipe.execute()

        logger.info(f"Game: {session_id} was deleted!")

    @staticmethod
    async def session_exists(redis: Redis, session_id: str) -> bool:
        async with _storage_guard("session_exists", session_id):
            return bool(await redis.exists(SessionStore._session_key(session_id)))

    @staticmethod
    async def list_session_ids(redis: Redis) -> List[str]:
        """Ids of live sessions; ids whose rows expired are pruned on the way"""
        async with _storage_guard("list_session_ids"):
            session_ids = sorted(await redis.smembers(SessionStore.SESSIONS_SET_KEY))
            live = []
            for session_id in session_ids:
                if await redis.exists(SessionStore._session_key(session_id)):
                    live.append(session_id)
                else:
                    await redis.srem(SessionStore.SESSIONS_SET_KEY, session_id)
            return live
