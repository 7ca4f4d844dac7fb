# app/api/socketio/ludo_namespace.py

from infrastructure.socketio_manager import (
    sio,
    manager,
    BaseNamespace,
    extract_session_id_from_environ,
)
from infrastructure.redis_connection import get_redis
from services.game_service import GameService
from services.event_publisher import EventPublisher, LUDO_NAMESPACE
from schemas.ludo_schema import (
    PlayerIdEvent,
    RollResponse,
    MoveResponse,
    LudoErrorResponse,
)
from exceptions.domain_exceptions import DomainException, SessionFullException, StorageFailureException
import logging

logger = logging.getLogger(__name__)


class LudoNamespace(BaseNamespace):
    """
    Socket.IO namespace for live Ludo sessions.

    Connecting with `?session_id=<id>` seats the client in that session
    (creating it if needed) and subscribes it to the session's room.
    Disconnecting vacates the slot.
    """

    async def _emit_error(self, sid, error: str, details=None):
        error_response = LudoErrorResponse(error=error, details=details)
        await self.emit("ludo_error", error_response.model_dump(mode='json'), room=sid)

    async def handle_connect(self, sid, environ):
        """Join the requested session"""
        session_id = extract_session_id_from_environ(environ)
        if not session_id:
            logger.warning(f"Connection attempt without session id from {sid}")
            await self._emit_error(sid, "Invalid request", {"message": "session_id query parameter required"})
            return False

        redis = get_redis()
        try:
            joined = await GameService.join_session(redis, session_id)
        except SessionFullException as e:
            logger.info(f"Rejected {sid}: session {session_id} is full")
            await self._emit_error(sid, e.message, e.details)
            return False
        except DomainException as e:
            await self._emit_error(sid, e.message, e.details)
            return False

        player_id = joined["player_id"]
        manager.connect(sid, session_id, player_id)
        await self.enter_room(sid, session_id)

        # Only the joiner learns its own id
        await self.emit(
            PlayerIdEvent.event_name,
            PlayerIdEvent(occupant=player_id).model_dump(mode='json'),
            room=sid
        )
        await EventPublisher.publish(session_id, joined["events"])
        return True

    async def handle_disconnect(self, sid):
        """Vacate the slot held by this connection"""
        membership = manager.disconnect(sid)
        if membership is None:
            return

        session_id, player_id = membership
        try:
            result = await GameService.leave_session(get_redis(), session_id, player_id)
        except StorageFailureException:
            # A failed leave commits nothing; leaving twice is a no-op
            logger.warning(f"Leave of player {player_id} from session {session_id} failed, retrying once")
            result = await GameService.leave_session(get_redis(), session_id, player_id)
        await EventPublisher.publish(session_id, result["events"])

    async def on_roll(self, sid, data=None):
        """
        Roll the dice.

        Event: roll
        Data: {}
        """
        membership = manager.get_membership(sid)
        if membership is None:
            await self._emit_error(sid, "Player not in game!")
            return

        session_id, player_id = membership
        try:
            result = await GameService.roll(get_redis(), session_id, player_id)
            await self.emit("roll_result", RollResponse(roll=result["roll"]).model_dump(mode='json'), room=sid)
            await EventPublisher.publish(session_id, result["events"])

        except DomainException as e:
            await self._emit_error(sid, e.message, e.details)

        except Exception as e:
            logger.error(f"Error doing dice roll: {e}", exc_info=True)
            await self._emit_error(sid, "Error doing dice roll!")

    async def on_move_pawn(self, sid, data):
        """
        Move a pawn by the granted roll.

        Event: move_pawn
        Data: {pawn: int}
        """
        membership = manager.get_membership(sid)
        if membership is None:
            await self._emit_error(sid, "Player not in game!")
            return

        session_id, player_id = membership
        pawn = (data or {}).get("pawn")
        try:
            result = await GameService.move_pawn(get_redis(), session_id, player_id, pawn)
            await self.emit("move_result", MoveResponse(success=result["success"]).model_dump(mode='json'), room=sid)
            await EventPublisher.publish(session_id, result["events"])

        except DomainException as e:
            await self._emit_error(sid, e.message, e.details)

        except Exception as e:
            logger.error(f"Error moving pawn: {e}", exc_info=True)
            await self._emit_error(sid, "Error moving pawn!")


# Register the namespace
sio.register_namespace(LudoNamespace(LUDO_NAMESPACE))
