# app/api/socketio/__init__.py

"""
Socket.IO namespaces for real-time features

Active namespaces:
- /ludo: Live Ludo sessions (one room per session id)
"""

from infrastructure.socketio_manager import sio, manager

# Import namespaces to register them
from .ludo_namespace import LudoNamespace


__all__ = ['sio', 'manager', 'LudoNamespace']
