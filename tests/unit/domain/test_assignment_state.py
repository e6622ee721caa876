"""Tests for AssignmentState restore/normalization."""

from admission_crm.domain.entities.assignment_state import AssignmentState, normalize_cursor

PROGRAMS = ["X", "Y"]


def test_restored_keeps_valid_cursors():
    state = AssignmentState.restored({"X": 2, "Y": 1}, PROGRAMS, roster_size=3)
    assert state.cursors == {"X": 2, "Y": 1}


def test_restored_wraps_out_of_range_cursor():
    state = AssignmentState.restored({"X": 7}, PROGRAMS, roster_size=3)
    assert state.cursor_for("X") == 1
    assert state.cursor_for("Y") == 0


def test_restored_drops_unknown_programs():
    state = AssignmentState.restored({"X": 1, "Retired": 4}, PROGRAMS, roster_size=3)
    assert set(state.cursors) == {"X", "Y"}


def test_restored_ignores_corrupt_values():
    raw = {"X": "2", "Y": -1}
    state = AssignmentState.restored(raw, PROGRAMS, roster_size=3)
    assert state.cursors == {"X": 0, "Y": 0}


def test_restored_from_non_mapping():
    for raw in (None, [], "garbage", 42):
        assert AssignmentState.restored(raw, PROGRAMS, roster_size=3).cursors == {"X": 0, "Y": 0}


def test_normalize_cursor():
    assert normalize_cursor(4, 3) == 1
    assert normalize_cursor(None, 3) == 0
    assert normalize_cursor(True, 3) == 0
    assert normalize_cursor(-2, 3) == 0


def test_local_advance():
    state = AssignmentState()
    state.advance("X", 2)
    assert state.cursor_for("X") == 2
    assert state.cursor_for("Y") == 0
