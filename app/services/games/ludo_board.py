# app/services/games/ludo_board.py

"""
Board geometry and move legality for Ludo sessions.

Positions are absolute cells:
- -1 is home (pawn not deployed yet)
- 0-51 is the shared ring
- each color owns five private home-stretch cells starting at
  HOME_STRETCH_START[color]

Progress ("distance") is measured per color: 0 at home or on the entry
cell, 1-50 along the ring, 51-55 inside the home stretch, 55 being the
final cell.
"""

from typing import List, Optional, Tuple
from schemas.ludo_schema import SlotState, HOME
import logging

logger = logging.getLogger(__name__)


RING_SIZE = 52
ENTRY_CELLS = (0, 13, 26, 39)
HOME_STRETCH_START = (52, 57, 62, 67)
LAST_RING_DISTANCE = 50
FINAL_DISTANCE = 55
DEPLOY_ROLL = 6
COLOR_NAMES = ("BLUE", "GREEN", "RED", "YELLOW")


def is_ring_cell(position: int) -> bool:
    return 0 <= position < RING_SIZE


def distance_from_start(color: int, position: int) -> int:
    """Convert an absolute cell into the color's progress along its path"""
    if position == HOME:
        return 0
    if is_ring_cell(position):
        return (position - ENTRY_CELLS[color]) % RING_SIZE
    return LAST_RING_DISTANCE + 1 + (position - HOME_STRETCH_START[color])


def absolute_from_distance(color: int, distance: int) -> int:
    """Inverse of distance_from_start"""
    if distance < 0 or distance > FINAL_DISTANCE:
        raise ValueError(f"Distance {distance} is outside the path (0-{FINAL_DISTANCE})")
    if distance == 0:
        return HOME
    if distance <= LAST_RING_DISTANCE:
        return (ENTRY_CELLS[color] + distance) % RING_SIZE
    return HOME_STRETCH_START[color] + (distance - LAST_RING_DISTANCE - 1)


def _ring_transit_blocked(board: List[SlotState], slot: SlotState, position: int, spaces: int) -> bool:
    """
    True if an opponent pawn sits strictly between `position` and the
    ring cell `spaces` ahead. The landing cell itself never blocks.
    """
    if spaces == 0 or position == HOME:
        return False

    end = (position + spaces) % RING_SIZE
    for other in board:
        if other.color == slot.color:
            continue
        for pawn in other.pawns:
            if not is_ring_cell(pawn):
                continue
            if end > position:
                if position < pawn < end:
                    logger.debug(f"Pawn at {position} blocked by {pawn} over {spaces} spaces")
                    return True
            elif pawn < end or pawn > position:
                logger.debug(f"Pawn at {position} blocked by {pawn} over {spaces} spaces (wrapping)")
                return True
    return False


def _home_stretch_blocked(slot: SlotState, distance: int, spaces: int) -> bool:
    """True if the move would pass or land on another own pawn inside the home stretch"""
    stretch_from = max(distance, LAST_RING_DISTANCE)
    landing = distance + spaces
    if landing <= stretch_from:
        return False

    for pawn in slot.pawns:
        if stretch_from < distance_from_start(slot.color, pawn) <= landing:
            return True
    return False


def can_move(board: List[SlotState], slot: SlotState, position: int, roll: int) -> bool:
    """Whether a pawn of `slot` standing on `position` may advance by `roll`"""
    # Deployment
    if position == HOME:
        return roll == DEPLOY_ROLL

    distance = distance_from_start(slot.color, position)
    ring_spaces = min(roll, max(LAST_RING_DISTANCE - distance, 0))

    if _ring_transit_blocked(board, slot, position, ring_spaces):
        return False

    if _home_stretch_blocked(slot, distance, roll):
        logger.debug(f"Pawn at {position} blocked by own pawn in home stretch")
        return False

    return True


def has_legal_move(board: List[SlotState], slot: SlotState, roll: int) -> bool:
    return any(can_move(board, slot, pawn, roll) for pawn in slot.pawns)


def check_capture(board: List[SlotState], slot: SlotState, landing: int) -> Optional[Tuple[SlotState, int]]:
    """
    Find the opponent pawn on `landing`, if any.

    Returns:
        (victim slot, pawn index) or None. Home-stretch cells never capture.
    """
    if not is_ring_cell(landing):
        return None

    for other in board:
        if other.color == slot.color:
            continue
        for index, pawn in enumerate(other.pawns):
            if pawn == landing:
                return other, index
    return None
