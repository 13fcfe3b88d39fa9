"""Random, non-overlapping fleet placement on a square grid."""

from __future__ import annotations

import logging
import random
from typing import Iterable, Sequence, Union

from pydantic import ValidationError

from salvo.config import DEFAULT_MAX_PLACEMENT_ATTEMPTS, MAX_GRID_SIZE, ShipSpec
from salvo.errors import ConfigurationError
from salvo.telemetry import get_meter, get_tracer

from .ship import Fleet, Orientation, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("salvo.engine.placement")
meter = get_meter("salvo.engine.placement")

PLACEMENT_COUNTER = meter.create_counter(
    "salvo_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ShipEntry = Union[int, ShipSpec]


def pick_orientation(rng: random.Random) -> Orientation:
    """Draw an orientation, horizontal or vertical with equal probability."""
    return Orientation.HORIZONTAL if rng.randrange(2) == 0 else Orientation.VERTICAL


def pick_anchor(grid_size: int, rng: random.Random) -> int:
    """Draw a cell index uniformly from the whole grid."""
    return rng.randrange(grid_size * grid_size)


def is_overflowing(orientation: Orientation, grid_size: int, size: int, anchor: int) -> bool:
    """True when a run of `size` cells from `anchor` would leave the grid."""
    if orientation is Orientation.HORIZONTAL:
        return anchor % grid_size + size > grid_size
    return anchor // grid_size + size > grid_size


def generate_run(anchor: int, size: int, grid_size: int, orientation: Orientation) -> list[int]:
    """Cells covered by a ship of `size` starting at `anchor`.

    Returns an empty list when the run would overflow the grid.
    """
    if is_overflowing(orientation, grid_size, size, anchor):
        return []
    step = orientation.step(grid_size)
    return [anchor + offset * step for offset in range(size)]


def is_clashing(run: Iterable[int], occupied: set[int] | frozenset[int]) -> bool:
    """True when any cell of `run` is already occupied."""
    return any(cell in occupied for cell in run)


def check_feasible(grid_size: int, sizes: Sequence[int]) -> None:
    """Reject configurations that can never be placed."""
    if not 1 <= grid_size <= MAX_GRID_SIZE:
        raise ConfigurationError(f"grid size must be between 1 and {MAX_GRID_SIZE}, got {grid_size}")
    if not sizes:
        raise ConfigurationError("fleet must contain at least one ship")
    for size in sizes:
        if size < 1:
            raise ConfigurationError(f"ship size must be at least 1, got {size}")
        if size > grid_size:
            raise ConfigurationError(f"ship of size {size} does not fit a {grid_size}x{grid_size} grid")
    if sum(sizes) > grid_size * grid_size:
        raise ConfigurationError(
            f"fleet needs {sum(sizes)} cells but the grid only has {grid_size * grid_size}"
        )


def as_ship_spec(ordinal: int, entry: ShipEntry) -> ShipSpec:
    """Normalise a fleet entry; a bare size becomes an unnamed ship."""
    if isinstance(entry, ShipSpec):
        return entry
    try:
        return ShipSpec(identity=ordinal + 1, size=entry)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid ship size {entry!r}") from exc


def place_ship(
    ordinal: int,
    spec: ShipSpec,
    grid_size: int,
    occupied: set[int],
    rng: random.Random,
    max_attempts: int = DEFAULT_MAX_PLACEMENT_ATTEMPTS,
) -> Ship:
    """Rejection-sample a position for one ship that avoids `occupied`."""
    for attempt in range(1, max_attempts + 1):
        orientation = pick_orientation(rng)
        anchor = pick_anchor(grid_size, rng)
        while is_overflowing(orientation, grid_size, spec.size, anchor):
            anchor = pick_anchor(grid_size, rng)
        run = generate_run(anchor, spec.size, grid_size, orientation)

        if is_clashing(run, occupied):
            PLACEMENT_COUNTER.add(1, attributes={"result": "clash"})
            continue

        PLACEMENT_COUNTER.add(1, attributes={"result": "success"})
        logger.debug(
            "ship_placed",
            extra={
                "ordinal": ordinal,
                "ship_name": spec.name,
                "size": spec.size,
                "orientation": orientation.value,
                "anchor": anchor,
                "attempts": attempt,
            },
        )
        return Ship(
            ordinal=ordinal,
            size=spec.size,
            orientation=orientation,
            cells=tuple(run),
            name=spec.name,
        )

    logger.error(
        "ship_placement_exhausted",
        extra={"ordinal": ordinal, "size": spec.size, "max_attempts": max_attempts},
    )
    raise ConfigurationError(
        f"could not place ship #{ordinal + 1} (size {spec.size}) in {max_attempts} attempts"
    )


def place_fleet(
    grid_size: int,
    ship_sizes: Sequence[ShipEntry],
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_MAX_PLACEMENT_ATTEMPTS,
) -> Fleet:
    """Place every ship, in order, at a random non-overlapping position.

    `ship_sizes` holds plain sizes or :class:`ShipSpec` entries. Raises
    :class:`ConfigurationError` for configurations that cannot be placed.
    """
    specs = [as_ship_spec(ordinal, entry) for ordinal, entry in enumerate(ship_sizes)]
    check_feasible(grid_size, [spec.size for spec in specs])
    rng = rng or random.Random()

    with tracer.start_as_current_span("placement.place_fleet") as span:
        span.set_attribute("grid.size", grid_size)
        span.set_attribute("fleet.ships", len(specs))

        occupied: set[int] = set()
        ships: list[Ship] = []
        for ordinal, spec in enumerate(specs):
            ship = place_ship(ordinal, spec, grid_size, occupied, rng, max_attempts)
            occupied.update(ship.cells)
            ships.append(ship)

        logger.info(
            "fleet_placed",
            extra={"grid_size": grid_size, "ships": len(ships), "cells": len(occupied)},
        )
        return Fleet(tuple(ships))


def validate_fleet(fleet: Fleet, grid_size: int) -> tuple[bool, str]:
    """Check every layout rule. Returns ``(ok, reason)``."""
    if not fleet.ships:
        return False, "Fleet is empty"
    seen: set[int] = set()
    for position, ship in enumerate(fleet):
        label = f"Ship #{position + 1}"
        if ship.ordinal != position:
            return False, f"{label} has ordinal {ship.ordinal}"
        if ship.size < 1:
            return False, f"{label} has size {ship.size}"
        if any(not 0 <= cell < grid_size * grid_size for cell in ship.cells):
            return False, f"{label} lies outside the grid"
        expected = generate_run(ship.anchor, ship.size, grid_size, ship.orientation)
        if list(ship.cells) != expected:
            return False, f"{label} is not a contiguous {ship.orientation.value} run"
        if is_clashing(ship.cells, seen):
            return False, f"{label} overlaps another ship"
        seen.update(ship.cells)
    return True, ""
