# app/services/event_publisher.py

from typing import Iterable
from schemas.ludo_schema import LudoEvent
import logging

logger = logging.getLogger(__name__)

LUDO_NAMESPACE = "/ludo"


class EventPublisher:
    """Broadcasts engine events to the Socket.IO room of their session"""

    @staticmethod
    async def publish(session_id: str, events: Iterable[LudoEvent]):
        """
        Emit events in order to every subscriber of `session_id`.
        Delivery is best effort: subscribers that already left miss them.
        """
        from infrastructure.socketio_manager import sio

        for event in events:
            await sio.emit(
                event.event_name,
                event.model_dump(mode='json'),
                room=session_id,
                namespace=LUDO_NAMESPACE,
            )
            logger.debug(f"Published {event.event_name} to session {session_id}")
