"""Gameplay tests for GameSession."""

import random

import numpy as np
import pytest

from salvo.config import GameConfig, ShipSpec
from salvo.engine.session import (
    MSG_ALREADY_GUESSED,
    MSG_HIT,
    MSG_INVALID_INPUT,
    MSG_MALFORMED,
    MSG_MISS,
    MSG_OUT_OF_RANGE,
    MSG_WON,
    CellView,
    GameSession,
    GuessOutcome,
    SessionPhase,
)
from salvo.engine.ship import Fleet, Orientation, Ship
from salvo.errors import ConfigurationError, SessionNotStartedError


def _session_with(*ships: Ship, grid_size: int = 10) -> GameSession:
    session = GameSession(grid_size=grid_size, fleet=[ship.size for ship in ships])
    session.load_fleet(Fleet(ships))
    return session


@pytest.fixture
def four_cell_session() -> GameSession:
    return _session_with(Ship(0, 4, Orientation.HORIZONTAL, (20, 21, 22, 23)))


def test_new_session_is_idle_until_reset() -> None:
    session = GameSession(rng=1)
    assert session.phase is SessionPhase.IDLE
    with pytest.raises(SessionNotStartedError):
        session.submit_guess("A1")
    assert not session.is_over
    assert session.message == ""
    assert session.max_guess_length == 4
    for attribute in ("fleet", "ship_cells", "guessed_cells", "hit_cells", "remaining_cells", "sunk_ships"):
        with pytest.raises(SessionNotStartedError):
            getattr(session, attribute)
    with pytest.raises(SessionNotStartedError):
        session.snapshot()


def test_reset_places_default_fleet() -> None:
    session = GameSession(rng=7)
    session.reset()
    assert session.phase is SessionPhase.IN_PROGRESS
    assert [len(cells) for cells in session.ship_cells] == [5, 4, 4]
    assert sum(len(cells) for cells in session.remaining_cells.values()) == 13
    assert session.guessed_cells == []
    assert session.message == ""


def test_single_cell_ship_win() -> None:
    session = _session_with(Ship(0, 1, Orientation.HORIZONTAL, (0,)))
    result = session.submit_guess("A1")
    assert result.outcome is GuessOutcome.WON
    assert session.message == MSG_WON
    assert session.remaining_cells == {0: set()}
    assert session.phase is SessionPhase.WON


def test_hit_removes_cell_from_remaining(four_cell_session: GameSession) -> None:
    result = four_cell_session.submit_guess("C1")
    assert result.outcome is GuessOutcome.HIT
    assert result.cell == 20
    assert result.ship is four_cell_session.fleet[0]
    assert four_cell_session.message == MSG_HIT
    assert four_cell_session.remaining_cells[0] == {21, 22, 23}
    assert four_cell_session.hit_cells == {20}


def test_sinking_ship_announces_its_number() -> None:
    session = _session_with(
        Ship(0, 4, Orientation.HORIZONTAL, (20, 21, 22, 23)),
        Ship(1, 3, Orientation.HORIZONTAL, (1, 2, 3)),
    )
    for guess in ("C1", "C2", "C3"):
        assert session.submit_guess(guess).outcome is GuessOutcome.HIT
    result = session.submit_guess("C4")
    assert result.outcome is GuessOutcome.SUNK
    assert session.message == "You sank ship #1!"
    assert session.sunk_ships == {0}
    assert session.phase is SessionPhase.IN_PROGRESS


def test_last_ship_sunk_reports_win_instead_of_sink(four_cell_session: GameSession) -> None:
    for guess in ("C1", "C2", "C3"):
        four_cell_session.submit_guess(guess)
    result = four_cell_session.submit_guess("C4")
    assert result.outcome is GuessOutcome.WON
    assert four_cell_session.message == MSG_WON
    assert four_cell_session.sunk_ships == {0}


def test_out_of_range_guess_is_not_recorded(four_cell_session: GameSession) -> None:
    result = four_cell_session.submit_guess("Z1")
    assert result.outcome is GuessOutcome.OUT_OF_RANGE
    assert four_cell_session.message == MSG_OUT_OF_RANGE
    assert four_cell_session.guessed_cells == []


def test_malformed_guess_has_distinct_message(four_cell_session: GameSession) -> None:
    result = four_cell_session.submit_guess("Z1A")
    assert result.outcome is GuessOutcome.MALFORMED
    assert four_cell_session.message == MSG_MALFORMED
    assert MSG_MALFORMED != MSG_OUT_OF_RANGE
    assert four_cell_session.guessed_cells == []


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_blank_guess_is_invalid_input(four_cell_session: GameSession, raw) -> None:
    result = four_cell_session.submit_guess(raw)
    assert result.outcome is GuessOutcome.INVALID_INPUT
    assert four_cell_session.message == MSG_INVALID_INPUT
    assert four_cell_session.guessed_cells == []


def test_repeat_guess_is_rejected_without_side_effects(four_cell_session: GameSession) -> None:
    four_cell_session.submit_guess("C1")
    remaining_before = four_cell_session.remaining_cells

    result = four_cell_session.submit_guess("c1")
    assert result.outcome is GuessOutcome.ALREADY_GUESSED
    assert four_cell_session.message == MSG_ALREADY_GUESSED
    assert four_cell_session.guessed_cells == [20]
    assert four_cell_session.remaining_cells == remaining_before


def test_repeat_miss_is_rejected(four_cell_session: GameSession) -> None:
    assert four_cell_session.submit_guess("J10").outcome is GuessOutcome.MISS
    assert four_cell_session.message == MSG_MISS
    assert four_cell_session.submit_guess("J10").outcome is GuessOutcome.ALREADY_GUESSED
    assert four_cell_session.guessed_cells == [99]


def test_guess_history_grows_by_one_per_accepted_guess() -> None:
    session = GameSession(rng=11)
    session.reset()
    rng = random.Random(5)
    inputs = ["", "Q", "A0", "K1", "B2", "B2", "??"] + [
        f"{row}{col}" for row in "ABCDEFGHIJ" for col in range(1, 11)
    ]
    rng.shuffle(inputs)

    previous = 0
    for raw in inputs:
        if session.is_over:
            break
        result = session.submit_guess(raw)
        size = len(session.guessed_cells)
        assert size == previous + (1 if result.outcome.accepted else 0)
        previous = size
    assert session.is_over


def test_each_guess_replaces_message(four_cell_session: GameSession) -> None:
    four_cell_session.submit_guess("C1")
    assert four_cell_session.message == MSG_HIT
    four_cell_session.submit_guess("A1")
    assert four_cell_session.message == MSG_MISS
    four_cell_session.submit_guess("A1")
    assert four_cell_session.message == MSG_ALREADY_GUESSED


def test_guesses_after_win_change_nothing() -> None:
    session = _session_with(Ship(0, 1, Orientation.HORIZONTAL, (0,)))
    session.submit_guess("A1")
    result = session.submit_guess("B1")
    assert result.outcome is GuessOutcome.GAME_OVER
    assert session.message == MSG_WON
    assert session.guessed_cells == [0]
    assert session.phase is SessionPhase.WON


def test_reset_replaces_state() -> None:
    session = GameSession(grid_size=4, fleet=[1], rng=3)
    session.reset()
    for raw in ("A1", "A2", "A3", "A4", "B1", "B2", "B3", "B4",
                "C1", "C2", "C3", "C4", "D1", "D2", "D3", "D4"):
        if session.is_over:
            break
        session.submit_guess(raw)
    assert session.is_over

    session.reset()
    assert session.phase is SessionPhase.IN_PROGRESS
    assert session.guessed_cells == []
    assert session.sunk_ships == set()
    assert session.message == ""
    assert all(len(cells) == 1 for cells in session.remaining_cells.values())


def test_overlong_column_guess_is_out_of_range(four_cell_session: GameSession) -> None:
    result = four_cell_session.submit_guess("A" + "1" * 5000)
    assert result.outcome is GuessOutcome.OUT_OF_RANGE
    assert four_cell_session.message == MSG_OUT_OF_RANGE
    assert four_cell_session.guessed_cells == []


def test_load_fleet_rejects_invalid_layout() -> None:
    session = GameSession(grid_size=10, fleet=[2])
    with pytest.raises(ConfigurationError):
        session.load_fleet(Fleet((Ship(0, 2, Orientation.HORIZONTAL, (9, 10)),)))
    assert session.phase is SessionPhase.IDLE


def test_session_rejects_infeasible_config() -> None:
    with pytest.raises(ConfigurationError):
        GameSession(grid_size=3, fleet=[4])
    with pytest.raises(ConfigurationError):
        GameSession(grid_size=2, fleet=[0])
    with pytest.raises(ConfigurationError):
        GameSession(grid_size=10, fleet=[2.5])


def test_session_uses_config_fleet_names() -> None:
    config = GameConfig(grid_size=6, fleet=[ShipSpec(identity=1, name="Carrier", size=5)])
    session = GameSession(config=config, rng=2)
    session.reset()
    assert session.fleet[0].name == "Carrier"


def test_sessions_are_independent() -> None:
    first = _session_with(Ship(0, 1, Orientation.HORIZONTAL, (0,)))
    second = _session_with(Ship(0, 1, Orientation.HORIZONTAL, (0,)))
    first.submit_guess("A1")
    assert first.is_over
    assert not second.is_over
    assert second.guessed_cells == []


def test_max_guess_length() -> None:
    assert GameSession(grid_size=10, fleet=[1]).max_guess_length == 4
    assert GameSession(grid_size=3, fleet=[1]).max_guess_length == 2


def test_snapshot_grid_view(four_cell_session: GameSession) -> None:
    four_cell_session.submit_guess("C1")
    four_cell_session.submit_guess("A1")
    snapshot = four_cell_session.snapshot()

    assert snapshot.guessed_cells == (20, 0)
    assert snapshot.hit_cells == {20}
    assert snapshot.remaining_cells == (frozenset({21, 22, 23}),)

    hidden = snapshot.as_grid()
    assert hidden.shape == (10, 10)
    assert hidden[2, 0] == CellView.HIT
    assert hidden[0, 0] == CellView.MISS
    assert hidden[2, 1] == CellView.UNKNOWN
    assert int(np.count_nonzero(hidden)) == 2

    revealed = snapshot.as_grid(reveal=True)
    assert revealed[2, 1] == CellView.SHIP
    assert revealed[2, 0] == CellView.HIT
