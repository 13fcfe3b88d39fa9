"""Single-player game session: move resolution and win detection."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Sequence, cast

import numpy as np
import numpy.typing as npt

from salvo.config import GameConfig, ShipSpec
from salvo.errors import ConfigurationError, SessionNotStartedError
from salvo.telemetry import get_meter, get_tracer

from .coordinates import CoordinateStatus, parse_coordinate
from .placement import ShipEntry, as_ship_spec, place_fleet, validate_fleet
from .ship import Fleet, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.session")
meter = get_meter("salvo.engine.session")

GUESS_COUNTER = meter.create_counter(
    "salvo_engine_guesses",
    unit="1",
    description="Guesses submitted to a GameSession, by outcome",
)

MSG_INVALID_INPUT = "Please enter a valid cell number"
MSG_MALFORMED = "Please enter a valid cell like A1 or J10"
MSG_OUT_OF_RANGE = "Please enter a valid cell within the grid coordinate range"
MSG_ALREADY_GUESSED = "You already hit this cell"
MSG_HIT = "You hit a ship!"
MSG_MISS = "You missed!"
MSG_WON = "You won!"


def sunk_message(ship: Ship) -> str:
    return f"You sank ship #{ship.number}!"


def _fleet_specs(entries: Sequence[ShipEntry]) -> list[ShipSpec]:
    return [as_ship_spec(ordinal, entry) for ordinal, entry in enumerate(entries)]


class SessionPhase(Enum):
    """Lifecycle of a session."""

    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    WON = "won"


class GuessOutcome(Enum):
    """Classification of a submitted guess."""

    INVALID_INPUT = "invalid_input"
    MALFORMED = "malformed"
    OUT_OF_RANGE = "out_of_range"
    ALREADY_GUESSED = "already_guessed"
    HIT = "hit"
    SUNK = "sunk"
    MISS = "miss"
    WON = "won"
    GAME_OVER = "game_over"

    @property
    def accepted(self) -> bool:
        """Whether the guess was recorded."""
        return self in (GuessOutcome.HIT, GuessOutcome.SUNK, GuessOutcome.MISS, GuessOutcome.WON)


class CellView(IntEnum):
    """Cell values in :meth:`SessionSnapshot.as_grid`."""

    UNKNOWN = 0
    MISS = 1
    HIT = 2
    SHIP = 3


@dataclass(frozen=True)
class GuessResult:
    outcome: GuessOutcome
    message: str
    cell: int | None = None
    ship: Ship | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of a session for renderers."""

    grid_size: int
    phase: SessionPhase
    message: str
    ship_cells: tuple[tuple[int, ...], ...]
    guessed_cells: tuple[int, ...]
    hit_cells: frozenset[int]
    remaining_cells: tuple[frozenset[int], ...]
    sunk_ships: frozenset[int]

    @property
    def is_over(self) -> bool:
        return self.phase is SessionPhase.WON

    def as_grid(self, reveal: bool = False) -> npt.NDArray[np.int8]:
        """Cell states as a ``grid_size x grid_size`` array of :class:`CellView`.

        Unhit ship cells are shown as SHIP only when `reveal` is set.
        """
        grid = np.full(self.grid_size * self.grid_size, CellView.UNKNOWN, dtype=np.int8)
        if reveal:
            for cells in self.ship_cells:
                grid[np.asarray(cells, dtype=np.intp)] = CellView.SHIP
        grid[np.asarray(self.guessed_cells, dtype=np.intp)] = CellView.MISS
        grid[np.asarray(sorted(self.hit_cells), dtype=np.intp)] = CellView.HIT
        return grid.reshape(self.grid_size, self.grid_size)


class GameSession:
    """Owns one game: the fleet, the guesses so far, and the status message.

    A new session is idle; call :meth:`reset` (random layout) or
    :meth:`load_fleet` (fixed layout) to start playing.
    Until then every read of game state raises
    :class:`SessionNotStartedError`; `phase`, `message`, `is_over`,
    `grid_size` and `max_guess_length` are always available.
    """

    def __init__(
        self,
        grid_size: int | None = None,
        fleet: Sequence[ShipEntry] | None = None,
        rng: random.Random | int | None = None,
        config: GameConfig | None = None,
    ) -> None:
        if config is None:
            overrides: dict[str, object] = {}
            if grid_size is not None:
                overrides["grid_size"] = grid_size
            if fleet is not None:
                overrides["fleet"] = _fleet_specs(fleet)
            config = GameConfig.build(**overrides)
        self.config = config
        self.grid_size: int = config.grid_size
        self._rng = rng if isinstance(rng, random.Random) else random.Random(rng)

        self.phase: SessionPhase = SessionPhase.IDLE
        self.message: str = ""
        self._fleet: Fleet | None = None
        self._guessed: dict[int, None] = {}
        self._remaining: dict[int, set[int]] = {}
        self._sunk: set[int] = set()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def reset(self) -> None:
        """Start a new game with a freshly placed random fleet."""
        with tracer.start_as_current_span("session.reset") as span:
            fleet = place_fleet(
                self.grid_size,
                self.config.fleet,
                rng=self._rng,
                max_attempts=self.config.max_placement_attempts,
            )
            self._start(fleet)
            span.set_attribute("fleet.ships", len(fleet))

    def load_fleet(self, fleet: Fleet) -> None:
        """Start a new game with a caller-supplied layout."""
        ok, reason = validate_fleet(fleet, self.grid_size)
        if not ok:
            logger.error("fleet_rejected", extra={"reason": reason, "grid_size": self.grid_size})
            raise ConfigurationError(reason)
        self._start(fleet)

    def _start(self, fleet: Fleet) -> None:
        self._fleet = fleet
        self._guessed = {}
        self._remaining = {ship.ordinal: set(ship.cells) for ship in fleet}
        self._sunk = set()
        self.message = ""
        self.phase = SessionPhase.IN_PROGRESS
        logger.info(
            "session_started",
            extra={"grid_size": self.grid_size, "ships": len(fleet), "cells": fleet.total_cells},
        )

    # ------------------------------------------------------------------ #
    # Moves
    # ------------------------------------------------------------------ #
    def submit_guess(self, raw_text: str | None) -> GuessResult:
        """Resolve one guess and update the status message.

        Bad input is reported through the returned outcome and message, never
        raised. Raises :class:`SessionNotStartedError` on an idle session.
        """
        with tracer.start_as_current_span("session.submit_guess") as span:
            fleet = self._require_fleet()
            if self.phase is SessionPhase.WON:
                logger.debug("guess_ignored_game_over", extra={"raw": raw_text})
                return GuessResult(GuessOutcome.GAME_OVER, self.message)

            result = self._resolve(fleet, raw_text or "")
            self.message = result.message
            span.set_attribute("guess.outcome", result.outcome.value)
            if result.cell is not None:
                span.set_attribute("guess.cell", result.cell)
            GUESS_COUNTER.add(1, attributes={"outcome": result.outcome.value})
            return result

    def _resolve(self, fleet: Fleet, raw_text: str) -> GuessResult:
        if not raw_text.strip():
            logger.info("guess_rejected", extra={"reason": "blank"})
            return GuessResult(GuessOutcome.INVALID_INPUT, MSG_INVALID_INPUT)

        parsed = parse_coordinate(raw_text, self.grid_size)
        if parsed.status is CoordinateStatus.MALFORMED:
            logger.info("guess_rejected", extra={"reason": "malformed", "raw": raw_text})
            return GuessResult(GuessOutcome.MALFORMED, MSG_MALFORMED)
        if parsed.status is CoordinateStatus.OUT_OF_RANGE:
            logger.info("guess_rejected", extra={"reason": "out_of_range", "raw": raw_text})
            return GuessResult(GuessOutcome.OUT_OF_RANGE, MSG_OUT_OF_RANGE)

        cell = cast(int, parsed.index)
        if cell in self._guessed:
            logger.info("guess_duplicate", extra={"cell": cell})
            return GuessResult(GuessOutcome.ALREADY_GUESSED, MSG_ALREADY_GUESSED, cell)

        self._guessed[cell] = None
        ship = fleet.owner_of(cell)
        if ship is None:
            logger.info("guess_miss", extra={"cell": cell})
            return GuessResult(GuessOutcome.MISS, MSG_MISS, cell)

        remaining = self._remaining[ship.ordinal]
        remaining.discard(cell)
        result = GuessResult(GuessOutcome.HIT, MSG_HIT, cell, ship)
        logger.info("guess_hit", extra={"cell": cell, "ordinal": ship.ordinal})

        if not remaining and ship.ordinal not in self._sunk:
            self._sunk.add(ship.ordinal)
            result = GuessResult(GuessOutcome.SUNK, sunk_message(ship), cell, ship)
            logger.info("ship_sunk", extra={"ordinal": ship.ordinal, "ship_name": ship.name})

        if all(not cells for cells in self._remaining.values()):
            self.phase = SessionPhase.WON
            result = GuessResult(GuessOutcome.WON, MSG_WON, cell, ship)
            logger.info("game_won", extra={"guesses": len(self._guessed)})
        return result

    # ------------------------------------------------------------------ #
    # Read surface
    # ------------------------------------------------------------------ #
    def _require_fleet(self) -> Fleet:
        if self._fleet is None:
            logger.error("session_not_started")
            raise SessionNotStartedError("Call reset() before playing.")
        return self._fleet

    @property
    def fleet(self) -> Fleet:
        return self._require_fleet()

    @property
    def is_over(self) -> bool:
        return self.phase is SessionPhase.WON

    @property
    def ship_cells(self) -> list[list[int]]:
        return [list(ship.cells) for ship in self._require_fleet()]

    @property
    def guessed_cells(self) -> list[int]:
        self._require_fleet()
        return list(self._guessed)

    @property
    def hit_cells(self) -> set[int]:
        occupied = self._require_fleet().occupied_cells()
        return {cell for cell in self._guessed if cell in occupied}

    @property
    def remaining_cells(self) -> dict[int, set[int]]:
        self._require_fleet()
        return {ordinal: set(cells) for ordinal, cells in self._remaining.items()}

    @property
    def sunk_ships(self) -> set[int]:
        self._require_fleet()
        return set(self._sunk)

    @property
    def max_guess_length(self) -> int:
        """Longest useful guess text: digits of the cell count plus a row letter."""
        return len(str(self.grid_size * self.grid_size)) + 1

    def snapshot(self) -> SessionSnapshot:
        fleet = self._require_fleet()
        return SessionSnapshot(
            grid_size=self.grid_size,
            phase=self.phase,
            message=self.message,
            ship_cells=tuple(ship.cells for ship in fleet),
            guessed_cells=tuple(self._guessed),
            hit_cells=frozenset(self.hit_cells),
            remaining_cells=tuple(frozenset(self._remaining[ship.ordinal]) for ship in fleet),
            sunk_ships=frozenset(self._sunk),
        )
