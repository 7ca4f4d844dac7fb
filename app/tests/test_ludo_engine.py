# app/tests/test_ludo_engine.py

import pytest
from services.games.ludo_engine import LudoEngine
from schemas.ludo_schema import (
    Occupant,
    HOME,
    RollEvent,
    PawnMoveEvent,
    CaptureEvent,
    VictoryEvent,
)
from exceptions.domain_exceptions import SessionFullException
from test_helpers import FixedDice, make_session, make_board


def _events_of(engine, event_type):
    return [event for event in engine.events if isinstance(event, event_type)]


class TestLudoEngine:
    """Comprehensive tests for LudoEngine"""

    # ========== Turn Sequencing Tests ==========

    def test_current_color_formula(self):
        session = make_session(start_color=2, move_count=3, six_count=1)
        assert LudoEngine.current_color(session) == 0

    def test_create_session_draws_start_color(self):
        session = LudoEngine.create_session("12345", FixedDice(3))

        assert session.session_id == "12345"
        assert session.start_color == 3
        assert session.move_count == 0
        assert session.six_count == 0
        assert session.consecutive_six_count == 0

    def test_turn_cycles_through_colors(self):
        """Skipped turns advance the color one by one"""
        session = make_session(start_color=0)
        board = make_board()
        seen = []

        for _ in range(5):
            color = LudoEngine.current_color(session)
            seen.append(color)
            engine = LudoEngine(session, board, FixedDice(3))
            assert engine.apply_roll(board[color]) == 0

        assert seen == [0, 1, 2, 3, 0]
        assert session.move_count == 5

    def test_validate_roll_wrong_color(self):
        session = make_session(start_color=1)
        board = make_board()
        engine = LudoEngine(session, board)

        validation = engine.validate_roll(board[0])
        assert validation.valid is False
        assert "not your turn" in validation.error_message.lower()
        assert engine.validate_roll(board[1]).valid is True

    def test_validate_roll_with_pending_balance(self):
        session = make_session(start_color=0)
        board = make_board()
        board[0].pending_roll = 4
        engine = LudoEngine(session, board)

        validation = engine.validate_roll(board[0])
        assert validation.valid is False
        assert "already rolled" in validation.error_message.lower()

    def test_validate_move_requires_balance(self):
        session = make_session()
        board = make_board()
        engine = LudoEngine(session, board)

        assert engine.validate_move(board[0]).valid is False
        board[0].pending_roll = 2
        assert engine.validate_move(board[0]).valid is True

    # ========== Dice Rolling Tests ==========

    def test_dice_roll_range(self):
        engine = LudoEngine(make_session(), make_board())

        for _ in range(100):
            assert 1 <= engine._roll_dice() <= 6

    def test_roll_grants_balance(self):
        session = make_session()
        board = make_board({0: [5, HOME, HOME, HOME]})
        engine = LudoEngine(session, board, FixedDice(4))

        assert engine.apply_roll(board[0]) == 4
        assert board[0].pending_roll == 4
        assert session.move_count == 0
        assert engine.events == [RollEvent(occupant=1, roll=4)]

    def test_six_grants_extra_turn(self):
        session = make_session()
        board = make_board()
        engine = LudoEngine(session, board, FixedDice(6))

        assert engine.apply_roll(board[0]) == 6
        assert session.six_count == 1
        assert session.consecutive_six_count == 1

        assert engine.apply_pawn_move(board[0], 0, 6) is True
        assert session.move_count == 1
        # The six cancels out the move, so the same color rolls again
        assert LudoEngine.current_color(session) == 0

    def test_non_six_resets_consecutive_sixes(self):
        session = make_session(consecutive_six_count=2)
        board = make_board({0: [5, HOME, HOME, HOME]})
        engine = LudoEngine(session, board, FixedDice(3))

        assert engine.apply_roll(board[0]) == 3
        assert session.consecutive_six_count == 0

    def test_no_legal_move_skips_turn(self):
        session = make_session()
        board = make_board()
        engine = LudoEngine(session, board, FixedDice(4))

        assert engine.apply_roll(board[0]) == 0
        assert board[0].pending_roll == 0
        assert session.move_count == 1
        assert engine.events == [RollEvent(occupant=1, roll=0)]
        assert LudoEngine.current_color(session) == 1

    def test_fully_blocked_board_skips_turn(self):
        # Every blue pawn has a red pawn right in front of it
        session = make_session()
        board = make_board({
            0: [5, 20, 30, 40],
            2: [6, 21, 31, 41],
        })
        engine = LudoEngine(session, board, FixedDice(3))

        assert engine.apply_roll(board[0]) == 0
        assert session.move_count == 1
        assert board[0].pawns == [5, 20, 30, 40]

    def test_blocked_six_resets_consecutive_sixes(self):
        session = make_session(consecutive_six_count=1, six_count=1)
        board = make_board({
            0: [5, 20, 30, 40],
            2: [6, 21, 31, 41],
        })
        engine = LudoEngine(session, board, FixedDice(6))

        assert engine.apply_roll(board[0]) == 0
        assert session.consecutive_six_count == 0
        assert session.six_count == 1
        assert session.move_count == 1

    def test_third_six_in_a_row_forfeits_turn(self):
        session = make_session()
        board = make_board({0: [1, 2, 3, 4]})
        engine = LudoEngine(session, board, FixedDice(6, 6, 6))

        for expected_consecutive in (1, 2):
            assert engine.apply_roll(board[0]) == 6
            assert session.consecutive_six_count == expected_consecutive
            assert engine.apply_pawn_move(board[0], 0, 6) is True

        move_count = session.move_count
        assert engine.apply_roll(board[0]) == 0
        assert session.consecutive_six_count == 0
        assert session.move_count == move_count + 1
        assert board[0].pending_roll == 0
        assert session.six_count == 2
        assert LudoEngine.current_color(session) == 1

    def test_six_cap_needs_all_pawns_deployed(self):
        session = make_session(consecutive_six_count=2, six_count=2)
        board = make_board({0: [1, 2, 3, HOME]})
        engine = LudoEngine(session, board, FixedDice(6))

        assert engine.apply_roll(board[0]) == 6
        assert board[0].pending_roll == 6

    # ========== Movement Tests ==========

    def test_deploy_with_six(self):
        session = make_session(start_color=1)
        board = make_board()
        board[1].pending_roll = 6
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[1], 2, 6) is True
        assert board[1].pawns == [HOME, HOME, 13, HOME]
        assert board[1].pending_roll == 0
        assert engine.events == [PawnMoveEvent(color=1, pawn=2, position=13)]

    def test_deploy_requires_six(self):
        session = make_session()
        board = make_board()
        board[0].pending_roll = 5
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 5) is False
        assert board[0].pawns[0] == HOME
        assert board[0].pending_roll == 5
        assert session.move_count == 0
        assert engine.events == []

    def test_deploy_captures_on_entry_cell(self):
        session = make_session(start_color=1)
        board = make_board({0: [13, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[1], 0, 6) is True
        assert board[0].pawns[0] == HOME
        assert _events_of(engine, CaptureEvent) == [
            CaptureEvent(capturing_color=1, captured_color=0, captured_pawn=0)
        ]

    def test_move_on_ring(self):
        session = make_session()
        board = make_board({0: [5, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 3) is True
        assert board[0].pawns[0] == 8
        assert session.move_count == 1

    def test_capture_sends_opponent_home(self):
        session = make_session()
        board = make_board({0: [10, HOME, HOME, HOME], 2: [HOME, 13, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 3) is True
        assert board[0].pawns[0] == 13
        assert board[2].pawns[1] == HOME
        assert _events_of(engine, CaptureEvent) == [
            CaptureEvent(capturing_color=0, captured_color=2, captured_pawn=1)
        ]
        # Capture is reported before the move itself
        assert isinstance(engine.events[0], CaptureEvent)
        assert engine.events[1] == PawnMoveEvent(color=0, pawn=0, position=13)

    def test_blocked_move_changes_nothing(self):
        session = make_session()
        board = make_board({0: [5, HOME, HOME, HOME], 1: [7, HOME, HOME, HOME]})
        board[0].pending_roll = 4
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 4) is False
        assert board[0].pawns[0] == 5
        assert board[0].pending_roll == 4
        assert session.move_count == 0

    def test_entering_home_stretch_never_captures(self):
        session = make_session()
        board = make_board({0: [49, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 4) is True
        assert board[0].pawns[0] == 54
        assert _events_of(engine, CaptureEvent) == []

    def test_win_on_exact_roll(self):
        session = make_session()
        board = make_board({0: [54, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 2) is True
        assert board[0].pawns[0] == 56
        victories = _events_of(engine, VictoryEvent)
        assert len(victories) == 1
        assert victories[0].occupant == 1
        assert victories[0].color == 0
        assert victories[0].color_name == "BLUE"
        assert engine.events[-1] == PawnMoveEvent(color=0, pawn=0, position=56)

    def test_overshoot_returns_pawn_home(self):
        session = make_session()
        board = make_board({0: [54, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.apply_pawn_move(board[0], 0, 4) is True
        assert board[0].pawns[0] == HOME
        assert _events_of(engine, VictoryEvent) == []
        assert session.move_count == 1

    def test_opening_scenario(self):
        """Blue starts, deploys with a six, moves six more, then hands over after a three"""
        session = make_session(start_color=0)
        board = make_board()
        slot = board[0]
        engine = LudoEngine(session, board, FixedDice(6, 6, 3))

        assert engine.apply_roll(slot) == 6
        assert engine.apply_pawn_move(slot, 0, slot.pending_roll) is True
        assert slot.pawns[0] == 0
        assert session.move_count == 1
        assert LudoEngine.current_color(session) == 0

        assert engine.apply_roll(slot) == 6
        assert engine.apply_pawn_move(slot, 0, slot.pending_roll) is True
        assert slot.pawns[0] == 6
        assert session.move_count == 2
        assert LudoEngine.current_color(session) == 0

        assert engine.apply_roll(slot) == 3
        assert engine.apply_pawn_move(slot, 0, slot.pending_roll) is True
        assert slot.pawns[0] == 9
        assert LudoEngine.current_color(session) == 1

    # ========== Slot Lifecycle Tests ==========

    def test_join_assigns_colors_in_order(self):
        session = make_session()
        board = []
        engine = LudoEngine(session, board)

        colors = [engine.join(Occupant.player(player_id)).color for player_id in (10, 20, 30, 40)]

        assert colors == [0, 1, 2, 3]
        assert engine.is_started is True

    def test_join_is_idempotent(self):
        engine = LudoEngine(make_session(), [])

        first = engine.join(Occupant.player(10))
        again = engine.join(Occupant.player(10))

        assert first is again
        assert len(engine.board) == 1

    def test_full_session_rejects_join(self):
        engine = LudoEngine(make_session(), make_board())

        with pytest.raises(SessionFullException):
            engine.join(Occupant.player(99))

    def test_leave_leaves_ghost_and_join_reclaims_it(self):
        session = make_session()
        board = make_board({2: [7, HOME, HOME, HOME]})
        engine = LudoEngine(session, board)

        assert engine.leave(Occupant.player(3)) is False
        assert board[2].occupant == Occupant.ghost(-1)
        assert session.last_ghost_id == -1
        assert engine.real_occupants() == 3

        slot = engine.join(Occupant.player(99))
        assert slot.color == 2
        assert slot.pawns == [7, HOME, HOME, HOME]
        assert len(board) == 4

    def test_most_recent_ghost_reclaimed_first(self):
        session = make_session()
        board = make_board()
        engine = LudoEngine(session, board)

        engine.leave(Occupant.player(1))
        engine.leave(Occupant.player(3))
        assert board[0].occupant.id == -1
        assert board[2].occupant.id == -2

        assert engine.join(Occupant.player(50)).color == 2
        assert engine.join(Occupant.player(51)).color == 0

    def test_ghost_ids_never_reused(self):
        session = make_session()
        board = make_board()
        engine = LudoEngine(session, board)

        engine.leave(Occupant.player(1))
        engine.join(Occupant.player(50))
        engine.leave(Occupant.player(50))

        assert board[0].occupant == Occupant.ghost(-2)

    def test_leave_reports_when_session_should_end(self):
        engine = LudoEngine(make_session(), make_board())

        assert engine.leave(Occupant.player(1)) is False
        assert engine.leave(Occupant.player(2)) is False
        assert engine.leave(Occupant.player(3)) is True

    def test_leave_unknown_occupant_changes_nothing(self):
        session = make_session()
        engine = LudoEngine(session, make_board())

        assert engine.leave(Occupant.player(77)) is False
        assert session.last_ghost_id == 0
