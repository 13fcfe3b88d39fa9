"""Conversion between cell indices and display coordinates like ``"C4"``."""

from __future__ import annotations

import re
import string
from dataclasses import dataclass
from enum import Enum

ROW_LETTERS = string.ascii_uppercase

# One row letter followed by a column number, nothing else.
COORDINATE_RE = re.compile(r"^([A-Z])([0-9]+)$")


class CoordinateStatus(Enum):
    VALID = "valid"
    MALFORMED = "malformed"
    OUT_OF_RANGE = "out_of_range"


@dataclass(frozen=True)
class ParsedCoordinate:
    """Result of parsing player text; `index` is set only when valid."""

    status: CoordinateStatus
    index: int | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is CoordinateStatus.VALID


@dataclass(frozen=True)
class CellLabel:
    """Display metadata for one grid cell."""

    row_letter: str
    column: int
    is_first_column: bool
    is_first_row: bool

    @property
    def coordinate(self) -> str:
        return f"{self.row_letter}{self.column}"


def index_to_rowcol(index: int, grid_size: int) -> tuple[int, int]:
    return divmod(index, grid_size)


def rowcol_to_index(row: int, col: int, grid_size: int) -> int:
    return row * grid_size + col


def format_coordinate(index: int, grid_size: int) -> str:
    """Convert a cell index to its display coordinate, e.g. 13 -> ``"B4"``."""
    row, col = index_to_rowcol(index, grid_size)
    return f"{ROW_LETTERS[row]}{col + 1}"


def parse_coordinate(text: str, grid_size: int) -> ParsedCoordinate:
    """Convert a coordinate like ``"A1"`` or ``"J10"`` to a cell index.

    Surrounding whitespace is ignored and letters are upper-cased. Text that
    is not one letter followed by digits is MALFORMED; a well-formed
    coordinate outside the grid is OUT_OF_RANGE.
    """
    match = COORDINATE_RE.match(text.strip().upper())
    if match is None:
        return ParsedCoordinate(CoordinateStatus.MALFORMED)

    digits = match.group(2).lstrip("0") or "0"
    # A column wider than the grid's own digit count can never be on it.
    if len(digits) > len(str(grid_size)):
        return ParsedCoordinate(CoordinateStatus.OUT_OF_RANGE)

    row = ROW_LETTERS.index(match.group(1))
    col = int(digits) - 1
    if not (0 <= row < grid_size and 0 <= col < grid_size):
        return ParsedCoordinate(CoordinateStatus.OUT_OF_RANGE)
    return ParsedCoordinate(CoordinateStatus.VALID, rowcol_to_index(row, col, grid_size))


def format_label(index: int, grid_size: int) -> CellLabel:
    """Row letter, column number and header flags for the cell at `index`.

    The row letter header belongs on the first column and the column number
    header on the first row.
    """
    row, col = index_to_rowcol(index, grid_size)
    return CellLabel(
        row_letter=ROW_LETTERS[row],
        column=col + 1,
        is_first_column=col == 0,
        is_first_row=row == 0,
    )
