"""Ship and fleet domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def step(self, grid_size: int) -> int:
        """Index distance between consecutive cells of a run."""
        return 1 if self is Orientation.HORIZONTAL else grid_size


@dataclass(frozen=True)
class Ship:
    """A placed ship. Cells are stored in run order."""

    ordinal: int
    size: int
    orientation: Orientation
    cells: tuple[int, ...]
    name: str = "Ship"

    def __post_init__(self) -> None:
        if len(self.cells) != self.size:
            raise ValueError(f"ship of size {self.size} given {len(self.cells)} cells")

    def __contains__(self, cell: object) -> bool:
        return cell in self.cells

    @property
    def number(self) -> int:
        """One-based position in the fleet, as shown to the player."""
        return self.ordinal + 1

    @property
    def anchor(self) -> int:
        return self.cells[0]


@dataclass(frozen=True)
class Fleet:
    """Ordered collection of ships with O(1) cell ownership lookup."""

    ships: tuple[Ship, ...]
    _owners: dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        owners: dict[int, int] = {}
        for ship in self.ships:
            for cell in ship.cells:
                owners.setdefault(cell, ship.ordinal)
        object.__setattr__(self, "_owners", owners)

    def __iter__(self) -> Iterator[Ship]:
        return iter(self.ships)

    def __len__(self) -> int:
        return len(self.ships)

    def __getitem__(self, ordinal: int) -> Ship:
        return self.ships[ordinal]

    def owner_of(self, cell: int) -> Ship | None:
        """Return the ship occupying `cell`, if any."""
        ordinal = self._owners.get(cell)
        return None if ordinal is None else self.ships[ordinal]

    def occupied_cells(self) -> frozenset[int]:
        return frozenset(self._owners)

    @property
    def total_cells(self) -> int:
        return sum(ship.size for ship in self.ships)
