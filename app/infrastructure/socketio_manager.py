# app/infrastructure/socketio_manager.py

import socketio
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs
import logging

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks which session and player every Socket.IO connection belongs to"""

    def __init__(self):
        # Maps socket id (sid) to (ludo session id, player id).
        # Room membership itself is tracked by Socket.IO.
        self.sid_to_membership: Dict[str, Tuple[str, int]] = {}

    def connect(self, sid: str, session_id: str, player_id: int):
        """Register a connection seated in a session"""
        self.sid_to_membership[sid] = (session_id, player_id)
        logger.info(f"Connection {sid} is player {player_id} in session {session_id}")

    def disconnect(self, sid: str) -> Optional[Tuple[str, int]]:
        """
        Unregister a connection.

        Returns:
            The (session id, player id) it held, or None if it was already
            unregistered. Callers run the leave path only on a non-None
            result, so it happens once per connection.
        """
        membership = self.sid_to_membership.pop(sid, None)
        if membership is None:
            return None

        session_id, player_id = membership
        logger.info(f"Connection {sid} (player {player_id}) left session {session_id}")
        return membership

    def get_membership(self, sid: str) -> Optional[Tuple[str, int]]:
        return self.sid_to_membership.get(sid)


def extract_session_id_from_environ(environ: dict) -> Optional[str]:
    """
    Extract the ludo session id from the connection query string
    (`/socket.io/?session_id=01234`)

    Args:
        environ: ASGI environ dict

    Returns:
        Session id string if found, None otherwise
    """
    query_string = environ.get('QUERY_STRING', '')
    if not query_string:
        return None

    params = parse_qs(query_string)
    session_id = params.get('session_id', [None])[0]
    return session_id.strip() if session_id and session_id.strip() else None


# Create global Socket.IO server with proper configuration
sio = socketio.AsyncServer(
    async_mode='asgi',
    cors_allowed_origins='*',
    logger=True,
    engineio_logger=False,
    ping_timeout=60,
    ping_interval=25
)

# Global connection manager instance
manager = ConnectionManager()


class BaseNamespace(socketio.AsyncNamespace):
    """
    Base namespace that centralizes the connection lifecycle.

    Subclasses implement `handle_connect(self, sid, environ)` returning
    False to reject the connection, and `handle_disconnect(self, sid)`.
    """

    async def on_connect(self, sid, environ):
        if hasattr(self, 'handle_connect'):
            try:
                return await self.handle_connect(sid, environ)
            except Exception:
                logger.exception('Error in handle_connect hook')
                await self.emit('ludo_error', {'error': 'Failed to join game'}, room=sid)
                return False
        return True

    async def on_disconnect(self, sid, reason=None):
        logger.info(f"Client disconnected from {self.namespace}: {sid}")
        if hasattr(self, 'handle_disconnect'):
            try:
                await self.handle_disconnect(sid)
            except Exception:
                logger.exception('Error in handle_disconnect hook')
