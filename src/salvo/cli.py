"""Command-line driver for a single-player game of salvo."""

from __future__ import annotations

import argparse
import logging
from typing import Callable, Sequence

from salvo.config import GameConfig, parse_fleet
from salvo.engine.coordinates import format_label
from salvo.engine.instrumented_session import InstrumentedGameSession
from salvo.engine.session import CellView, GameSession, SessionSnapshot
from salvo.errors import ConfigurationError
from salvo.telemetry import TelemetryConfig, configure_console_logging, init_telemetry

logger = logging.getLogger(__name__)

SYMBOLS = {
    CellView.UNKNOWN: ".",
    CellView.MISS: "o",
    CellView.HIT: "X",
    CellView.SHIP: "S",
}

QUIT_WORDS = {"q", "quit", "exit"}


def format_board(snapshot: SessionSnapshot, reveal: bool = False) -> str:
    """Render the grid with row letters and column numbers."""
    size = snapshot.grid_size
    grid = snapshot.as_grid(reveal=reveal)

    header = ["   "]
    row_lines: list[str] = []
    for index in range(size * size):
        label = format_label(index, size)
        if label.is_first_row:
            header.append(f"{label.column:>3}")
        if label.is_first_column:
            row_lines.append(f"{label.row_letter:>2} ")
        row, col = divmod(index, size)
        row_lines[-1] += f"{SYMBOLS[CellView(int(grid[row, col]))]:>3}"
    return "\n".join(["".join(header), *row_lines])


def _prompt_restart(read: Callable[[str], str]) -> bool:
    while True:
        raw = read("Play again? [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"} | QUIT_WORDS:
            return False
        print("Please answer with 'y' or 'n'.")


def play_game(
    session: GameSession,
    reveal: bool = False,
    read: Callable[[str], str] | None = None,
) -> int:
    """Run games on `session` until the player quits. Returns games won."""
    read = read or input
    print("Welcome to salvo!\n")
    wins = 0
    session.reset()
    while True:
        snapshot = session.snapshot()
        print(format_board(snapshot, reveal=reveal or snapshot.is_over))
        if session.message:
            print(f"\n{session.message}")

        if session.is_over:
            wins += 1
            if not _prompt_restart(read):
                return wins
            session.reset()
            continue

        raw = read("\nEnter a cell (e.g. A6) or 'q' to quit: ")
        if raw.strip().lower() in QUIT_WORDS:
            print("Goodbye!")
            return wins
        session.submit_guess(raw)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play salvo via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--grid-size", type=int, default=None, help="Side length of the square grid (1-26)."
    )
    parser.add_argument(
        "--fleet",
        default=None,
        help="Fleet definition such as 'Carrier:5,Destroyer:2' (default: SALVO_FLEET or built-in).",
    )
    parser.add_argument(
        "--reveal", action="store_true", help="Show ship positions while playing (debug)."
    )
    parser.add_argument(
        "--telemetry", action="store_true", help="Enable OpenTelemetry export from the environment."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log engine events to stderr.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_console_logging(logging.INFO if args.verbose else logging.WARNING)

    if args.telemetry:
        telemetry = init_telemetry(TelemetryConfig.from_env())
        if telemetry.enable_logging:
            from opentelemetry.instrumentation.logging import LoggingInstrumentor

            LoggingInstrumentor().instrument()

    try:
        overrides = {"grid_size": args.grid_size}
        if args.fleet:
            overrides["fleet"] = parse_fleet(args.fleet)
        config = GameConfig.from_env(**overrides)
    except ConfigurationError as exc:
        logger.error("invalid_configuration", extra={"error": str(exc)})
        print(f"Invalid configuration: {exc}")
        return 2

    session = InstrumentedGameSession(config=config, rng=args.seed)
    try:
        play_game(session, reveal=args.reveal)
    except (EOFError, KeyboardInterrupt):
        print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
