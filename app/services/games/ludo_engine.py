# app/services/games/ludo_engine.py

from typing import List, Optional
import random
from schemas.ludo_schema import (
    SessionInfo,
    SlotState,
    Occupant,
    HOME,
    LudoEvent,
    RollEvent,
    PawnMoveEvent,
    CaptureEvent,
    VictoryEvent,
)
from services.games.ludo_board import (
    ENTRY_CELLS,
    LAST_RING_DISTANCE,
    FINAL_DISTANCE,
    DEPLOY_ROLL,
    COLOR_NAMES,
    distance_from_start,
    absolute_from_distance,
    can_move,
    has_legal_move,
    check_capture,
)
from exceptions.domain_exceptions import SessionFullException
import logging

logger = logging.getLogger(__name__)


class MoveValidationResult:
    """Result of checking whether an action is allowed right now"""

    def __init__(self, valid: bool, error_message: Optional[str] = None):
        self.valid = valid
        self.error_message = error_message


class LudoEngine:
    """
    Rule engine for a single Ludo session.

    Works on in-memory copies of the session row and its slots (the
    "board"), mutating them in place and collecting the events that
    subscribers should see. Persisting the result is the caller's job.

    Rules:
    - 4 colors, 4 pawns each, 52-cell shared ring + 5-cell home stretch
    - a 6 deploys a pawn onto the color's entry cell
    - a 6 grants an extra turn; a third consecutive 6 with every pawn
      deployed forfeits the turn
    - an opponent pawn anywhere between start and landing blocks the move
    - landing on an opponent's ring cell sends it home
    - reaching progress 55 wins; overshooting sends the pawn home
    """

    COLORS = 4
    MAX_CONSECUTIVE_SIXES = 2
    SKIPPED_ROLL = 0

    def __init__(
        self,
        session: SessionInfo,
        board: List[SlotState],
        rng: Optional[random.Random] = None
    ):
        self.session = session
        self.board = board
        self.rng = rng or random
        self.events: List[LudoEvent] = []

    @classmethod
    def create_session(cls, session_id: str, rng: Optional[random.Random] = None) -> SessionInfo:
        """Fresh session row with a uniformly random starting color"""
        start_color = (rng or random).randint(0, cls.COLORS - 1)
        return SessionInfo(session_id=session_id, start_color=start_color)

    # ========== Turn sequencing ==========

    @staticmethod
    def current_color(session: SessionInfo) -> int:
        """Color whose turn it is. Sixes hold the color steady by cancelling out a move."""
        return (session.start_color + session.move_count - session.six_count) % LudoEngine.COLORS

    @property
    def is_started(self) -> bool:
        return len(self.board) == self.COLORS

    def slot_for(self, occupant: Occupant) -> Optional[SlotState]:
        return next((slot for slot in self.board if slot.occupant == occupant), None)

    def validate_roll(self, slot: SlotState) -> MoveValidationResult:
        if slot.pending_roll > 0:
            return MoveValidationResult(False, "You already rolled!")

        current = self.current_color(self.session)
        if slot.color != current:
            return MoveValidationResult(False, f"Not your turn! It's {COLOR_NAMES[current]}'s turn")

        return MoveValidationResult(True)

    def validate_move(self, slot: SlotState) -> MoveValidationResult:
        if slot.pending_roll < 1:
            return MoveValidationResult(False, "Not your turn!")
        return MoveValidationResult(True)

    def _consume_turn(self, slot: SlotState):
        slot.pending_roll = 0
        self.session.move_count += 1
        self.session.consecutive_six_count = 0

    # ========== Rolling ==========

    def _roll_dice(self) -> int:
        """Roll a six-sided die"""
        return self.rng.randint(1, 6)

    def apply_roll(self, slot: SlotState) -> int:
        """
        Roll for `slot` and either grant the value as its balance or skip
        the turn.

        Returns:
            The rolled value, or 0 when the turn was consumed without a move
        """
        roll = self._roll_dice()
        logger.debug(f"Session {self.session.session_id}: color {slot.color} rolled {roll}")

        if roll != DEPLOY_ROLL:
            self.session.consecutive_six_count = 0

        all_deployed = all(pawn != HOME for pawn in slot.pawns)

        if not has_legal_move(self.board, slot, roll):
            self._consume_turn(slot)
            roll = self.SKIPPED_ROLL
        elif (roll == DEPLOY_ROLL and all_deployed
                and self.session.consecutive_six_count == self.MAX_CONSECUTIVE_SIXES):
            logger.debug(f"Session {self.session.session_id}: third six in a row, turn forfeited")
            self._consume_turn(slot)
            roll = self.SKIPPED_ROLL
        else:
            if roll == DEPLOY_ROLL:
                self.session.six_count += 1
                self.session.consecutive_six_count += 1
            slot.pending_roll = roll

        self.events.append(RollEvent(occupant=slot.occupant.id, roll=roll))
        return roll

    # ========== Moving ==========

    def _capture_at(self, slot: SlotState, landing: int):
        capture = check_capture(self.board, slot, landing)
        if capture is None:
            return

        victim, pawn_index = capture
        victim.pawns[pawn_index] = HOME
        logger.info(
            f"Session {self.session.session_id}: {COLOR_NAMES[slot.color]} captured "
            f"{COLOR_NAMES[victim.color]} pawn {pawn_index} at {landing}"
        )
        self.events.append(CaptureEvent(
            capturing_color=slot.color,
            captured_color=victim.color,
            captured_pawn=pawn_index,
        ))

    def apply_pawn_move(self, slot: SlotState, pawn_index: int, spaces: int) -> bool:
        """
        Move one pawn of `slot` forward by `spaces`.

        Returns:
            True if the move was committed, False if it is not allowed
            (nothing is changed in that case)
        """
        position = slot.pawns[pawn_index]

        if position == HOME:
            if spaces != DEPLOY_ROLL:
                logger.debug("Can't move, not enough power to deploy")
                return False

            new_position = ENTRY_CELLS[slot.color]
            self._capture_at(slot, new_position)
        else:
            if not can_move(self.board, slot, position, spaces):
                return False

            distance = distance_from_start(slot.color, position) + spaces
            if distance > LAST_RING_DISTANCE:
                if distance == FINAL_DISTANCE:
                    logger.info(
                        f"Player {slot.occupant.id} ({COLOR_NAMES[slot.color]}) "
                        f"won session {self.session.session_id}"
                    )
                    self.events.append(VictoryEvent(
                        occupant=slot.occupant.id,
                        color=slot.color,
                        color_name=COLOR_NAMES[slot.color],
                    ))
                elif distance > FINAL_DISTANCE:
                    # Overshoot, back to start
                    distance = 0
            else:
                self._capture_at(slot, absolute_from_distance(slot.color, distance))

            new_position = absolute_from_distance(slot.color, distance)

        slot.pawns[pawn_index] = new_position
        slot.pending_roll = 0
        self.session.move_count += 1

        self.events.append(PawnMoveEvent(color=slot.color, pawn=pawn_index, position=new_position))
        return True

    # ========== Slot lifecycle ==========

    def join(self, occupant: Occupant) -> SlotState:
        """
        Seat `occupant`: reclaim the most recently vacated ghost slot, or
        open the next color.

        Raises:
            SessionFullException: four real occupants already seated
        """
        existing = self.slot_for(occupant)
        if existing is not None:
            return existing

        ghosts = [slot for slot in self.board if slot.occupant.is_ghost]
        if ghosts:
            # Ghost ids decrease over time, so the lowest one left most recently
            slot = min(ghosts, key=lambda s: s.occupant.id)
            logger.info(
                f"Player {occupant.id} reclaimed ghost slot {slot.occupant.id} "
                f"({COLOR_NAMES[slot.color]}) in session {self.session.session_id}"
            )
            slot.occupant = occupant
            return slot

        if len(self.board) >= self.COLORS:
            raise SessionFullException(self.session.session_id)

        slot = SlotState(
            session_id=self.session.session_id,
            occupant=occupant,
            color=len(self.board),
        )
        self.board.append(slot)
        return slot

    def real_occupants(self) -> int:
        return sum(1 for slot in self.board if not slot.occupant.is_ghost)

    def leave(self, occupant: Occupant) -> bool:
        """
        Turn the occupant's slot into a ghost.

        Returns:
            True if the session should now be deleted (at most one real
            occupant remains). Unknown occupants change nothing.
        """
        slot = self.slot_for(occupant)
        if slot is None:
            return False

        ghost_id = self.session.last_ghost_id - 1
        self.session.last_ghost_id = ghost_id
        slot.occupant = Occupant.ghost(ghost_id)

        return self.real_occupants() <= 1
