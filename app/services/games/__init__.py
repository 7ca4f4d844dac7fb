# app/services/games/__init__.py

from services.games.ludo_engine import LudoEngine, MoveValidationResult
from services.games.ludo_board import COLOR_NAMES, can_move, has_legal_move, check_capture

__all__ = ["LudoEngine", "MoveValidationResult", "COLOR_NAMES", "can_move", "has_legal_move", "check_capture"]
