"""Game configuration: grid size and fleet definition."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError, model_validator

from salvo.errors import ConfigurationError

MAX_GRID_SIZE = 26
DEFAULT_GRID_SIZE = 10
DEFAULT_MAX_PLACEMENT_ATTEMPTS = 10_000


class ShipSpec(BaseModel):
    """One entry of the fleet definition."""

    model_config = {"frozen": True}

    identity: int
    name: str = "Ship"
    size: int = Field(ge=1)


DEFAULT_FLEET: tuple[ShipSpec, ...] = (
    ShipSpec(identity=1, name="Battleship", size=5),
    ShipSpec(identity=2, name="Destroyer", size=4),
    ShipSpec(identity=3, name="Destroyer", size=4),
)


class GameConfig(BaseModel):
    """Runtime configuration for a game session."""

    grid_size: int = Field(default=DEFAULT_GRID_SIZE, ge=1, le=MAX_GRID_SIZE)
    fleet: list[ShipSpec] = Field(default_factory=lambda: list(DEFAULT_FLEET))
    max_placement_attempts: int = Field(default=DEFAULT_MAX_PLACEMENT_ATTEMPTS, ge=1)

    @model_validator(mode="after")
    def _fleet_fits_grid(self) -> "GameConfig":
        if not self.fleet:
            raise ValueError("fleet must contain at least one ship")
        for spec in self.fleet:
            if spec.size > self.grid_size:
                raise ValueError(
                    f"ship {spec.name!r} of size {spec.size} does not fit a "
                    f"{self.grid_size}x{self.grid_size} grid"
                )
        total = sum(spec.size for spec in self.fleet)
        if total > self.grid_size * self.grid_size:
            raise ValueError(
                f"fleet needs {total} cells but the grid only has {self.grid_size ** 2}"
            )
        return self

    @property
    def ship_sizes(self) -> list[int]:
        return [spec.size for spec in self.fleet]

    @classmethod
    def build(cls, **values: Any) -> "GameConfig":
        """Validate `values`, reporting failures as :class:`ConfigurationError`."""
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> "GameConfig":
        """Construct config from `SALVO_*` env vars, then apply overrides."""

        data: Dict[str, Any] = {}

        grid_size = os.getenv("SALVO_GRID_SIZE")
        if grid_size:
            data["grid_size"] = grid_size

        fleet = os.getenv("SALVO_FLEET")
        if fleet:
            data["fleet"] = parse_fleet(fleet)

        attempts = os.getenv("SALVO_MAX_PLACEMENT_ATTEMPTS")
        if attempts:
            data["max_placement_attempts"] = attempts

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls.build(**data)


def parse_fleet(text: str) -> list[ShipSpec]:
    """Parse a fleet definition such as ``"Carrier:5,Destroyer:2"``.

    A bare number is accepted as a size for an unnamed ship.
    """
    specs: list[ShipSpec] = []
    for identity, part in enumerate(filter(None, (p.strip() for p in text.split(","))), start=1):
        name, _, size = part.rpartition(":")
        try:
            specs.append(ShipSpec(identity=identity, name=name.strip() or "Ship", size=int(size)))
        except (ValueError, ValidationError) as exc:
            raise ConfigurationError(f"invalid fleet entry {part!r}") from exc
    if not specs:
        raise ConfigurationError("fleet definition is empty")
    return specs


@lru_cache(maxsize=1)
def load_game_config() -> GameConfig:
    """Load and cache the game config from the environment."""

    return GameConfig.from_env()
