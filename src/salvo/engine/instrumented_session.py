"""GameSession with per-game tracing, metrics and logging."""

from __future__ import annotations

import time

from salvo.engine.session import GameSession, GuessOutcome, GuessResult
from salvo.engine.ship import Fleet
from salvo.errors import ConfigurationError
from salvo.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedGameSession(GameSession):
    """Wraps GameSession so each game is one span with completion metrics."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("salvo.engine.instrumented")
        self._tracer = get_tracer("salvo.engine")
        self._game_span_cm = None
        self._game_span = None
        self._game_start_time: float | None = None
        self._game_id_counter = 0

    def reset(self) -> None:
        self._start_game_span()
        try:
            with self._tracer.start_as_current_span("salvo.engine.reset") as span:
                super().reset()
                span.set_attribute("ships", len(self.fleet))
        except ConfigurationError:
            self._close_game_span()
            raise
        record_game_metric("salvo_game_started_total", 1, {"grid_size": self.grid_size})
        self._logger.info("Game %d started on a %dx%d grid", self._game_id_counter, self.grid_size, self.grid_size)

    def load_fleet(self, fleet: Fleet) -> None:
        self._start_game_span()
        try:
            super().load_fleet(fleet)
        except ConfigurationError:
            self._close_game_span()
            raise
        record_game_metric("salvo_game_started_total", 1, {"grid_size": self.grid_size})

    def submit_guess(self, raw_text: str | None) -> GuessResult:
        with self._tracer.start_as_current_span("salvo.engine.submit_guess") as span:
            span.set_attribute("game.id", self._game_id_counter)
            result = super().submit_guess(raw_text)
            span.set_attribute("outcome", result.outcome.value)

            record_game_metric("salvo_guesses_total", 1, {"outcome": result.outcome.value})
            if result.outcome is GuessOutcome.SUNK:
                record_game_metric("salvo_ships_sunk_total", 1)
            if result.outcome is GuessOutcome.WON:
                self._finish_game()
            return result

    def _start_game_span(self) -> None:
        self._close_game_span()
        self._game_start_time = time.perf_counter()
        self._game_id_counter += 1
        self._game_span_cm = self._tracer.start_as_current_span("salvo.engine.game")
        self._game_span = self._game_span_cm.__enter__()
        self._game_span.set_attribute("game.id", self._game_id_counter)

    def _finish_game(self) -> None:
        duration = (time.perf_counter() - self._game_start_time) if self._game_start_time else 0.0
        guesses = len(self.guessed_cells)
        accuracy = len(self.hit_cells) / guesses if guesses else 0.0

        record_game_metric("salvo_game_completed_total", 1, {"grid_size": self.grid_size})
        record_game_metric("salvo_game_duration_seconds", duration)
        record_game_metric("salvo_game_guesses", guesses)

        with self._tracer.start_as_current_span("salvo.engine.game_complete") as span:
            span.set_attribute("game.id", self._game_id_counter)
            span.set_attribute("guesses", guesses)
            span.set_attribute("accuracy", accuracy)
            span.set_attribute("duration_ms", duration * 1000)

        if self._game_span is not None:
            self._game_span.set_attribute("guesses", guesses)
            self._game_span.set_attribute("duration_ms", duration * 1000)

        self._logger.info("Game won. guesses=%d accuracy=%.2f duration_s=%.3f", guesses, accuracy, duration)
        self._close_game_span()

    def _close_game_span(self) -> None:
        if self._game_span_cm is not None:
            self._game_span_cm.__exit__(None, None, None)
            self._game_span_cm = None
            self._game_span = None
