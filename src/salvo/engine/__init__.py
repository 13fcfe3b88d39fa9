"""Rules engine: fleet placement, coordinates and game sessions."""

from .coordinates import (
    CellLabel,
    CoordinateStatus,
    ParsedCoordinate,
    format_coordinate,
    format_label,
    parse_coordinate,
)
from .placement import place_fleet, validate_fleet
from .session import GameSession, GuessOutcome, GuessResult, SessionPhase, SessionSnapshot
from .ship import Fleet, Orientation, Ship

__all__ = [
    "CellLabel",
    "CoordinateStatus",
    "Fleet",
    "GameSession",
    "GuessOutcome",
    "GuessResult",
    "Orientation",
    "ParsedCoordinate",
    "SessionPhase",
    "SessionSnapshot",
    "Ship",
    "format_coordinate",
    "format_label",
    "parse_coordinate",
    "place_fleet",
    "validate_fleet",
]
