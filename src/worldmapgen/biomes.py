"""Biome classification: match each tile against TileType climate ranges."""

from collections.abc import Sequence
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field, model_validator

from .grid import NO_TILE_TYPE


class ValueRange(BaseModel, frozen=True):
    """Closed interval [min, max].

    May also be written as a two-element list, e.g. ``[0, 2500]``.
    """

    min: float
    max: float

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("A range needs exactly two values: [min, max]")
            return {"min": data[0], "max": data[1]}
        return data

    def contains(self, values: NDArray[np.float64]) -> NDArray[np.bool_]:
        """Elementwise inclusive membership test."""
        return (values >= self.min) & (values <= self.max)


def _in_any(ranges: Sequence[ValueRange], values: NDArray[np.float64]) -> NDArray[np.bool_]:
    mask = np.zeros(np.shape(values), dtype=bool)
    for value_range in ranges:
        mask |= value_range.contains(values)
    return mask


class TileType(BaseModel, frozen=True):
    """A kind of tile and the climate where it can appear.

    A tile matches when its elevation lies in any elevation range, its
    temperature in any temperature range and its precipitation in any
    precipitation range.
    """

    name: str = Field(description="Name of the tile type")
    elevation: list[ValueRange] = Field(
        default_factory=list, description="Elevation ranges in metres above sea level"
    )
    temperature: list[ValueRange] = Field(
        default_factory=list, description="Temperature ranges in °C"
    )
    precipitation: list[ValueRange] = Field(
        default_factory=list, description="Precipitation ranges in mm/yr"
    )
    sprite: str | None = Field(
        default=None, description="Opaque visual asset reference for renderers"
    )

    @property
    def max_elevation(self) -> float:
        """Highest elevation bound, or -inf without elevation ranges."""
        return max((r.max for r in self.elevation), default=float("-inf"))

    def matches(
        self,
        elevation: NDArray[np.float64],
        temperature: NDArray[np.float64],
        precipitation: NDArray[np.float64],
    ) -> NDArray[np.bool_]:
        """Mask of tiles whose climate lies within this type's ranges."""
        return (
            _in_any(self.elevation, elevation)
            & _in_any(self.temperature, temperature)
            & _in_any(self.precipitation, precipitation)
        )


def max_elevation(tile_types: Sequence[TileType]) -> float:
    """Highest elevation bound declared by any tile type."""
    return max((t.max_elevation for t in tile_types), default=float("-inf"))


def match_tile_types(
    tile_types: Sequence[TileType],
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    precipitation: NDArray[np.float64],
) -> NDArray[np.bool_]:
    """Stack of match masks, shape (len(tile_types), height, width)."""
    if not tile_types:
        return np.zeros((0, *np.shape(elevation)), dtype=bool)
    return np.stack(
        [t.matches(elevation, temperature, precipitation) for t in tile_types]
    )


def classify_biomes(
    tile_types: Sequence[TileType],
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    precipitation: NDArray[np.float64],
    rng: np.random.Generator,
) -> NDArray[np.int64]:
    """Assign a tile type index to every tile.

    Among all matching types one is chosen uniformly at random. Tiles are
    visited in row-major order and each tile with at least one candidate
    consumes exactly one draw from ``rng``.

    Args:
        tile_types: Candidate tile types.
        elevation: Elevation field (m).
        temperature: Temperature field (°C).
        precipitation: Precipitation field (mm/yr).
        rng: Random number generator for tie-breaks.

    Returns:
        Array of tile type indices, NO_TILE_TYPE where nothing matched.
    """
    matches = match_tile_types(tile_types, elevation, temperature, precipitation)
    result = np.full(np.shape(elevation), NO_TILE_TYPE, dtype=np.int64)
    counts = matches.sum(axis=0)
    matched = counts > 0
    if not np.any(matched):
        return result

    # The n-th candidate of a tile is where the running count first reaches n+1
    picks = rng.integers(0, counts[matched])
    running = np.cumsum(matches, axis=0)[:, matched]
    result[matched] = np.argmax(running == (picks + 1)[np.newaxis, :], axis=0)
    return result


def _tile_type(
    name: str,
    elevation: list[tuple[float, float]],
    temperature: list[tuple[float, float]],
    precipitation: list[tuple[float, float]],
) -> TileType:
    return TileType(
        name=name,
        elevation=[ValueRange(min=lo, max=hi) for lo, hi in elevation],
        temperature=[ValueRange(min=lo, max=hi) for lo, hi in temperature],
        precipitation=[ValueRange(min=lo, max=hi) for lo, hi in precipitation],
    )


def default_tile_types() -> list[TileType]:
    """An earth-like set of tile types.

    The highest elevation bound (6000 m) sets the top of the heightmap.
    """
    deep = -1.0e6
    wet = 1.0e6
    return [
        _tile_type("ocean", [(deep, 0.0)], [(-2.0, 100.0)], [(0.0, wet)]),
        _tile_type("sea_ice", [(deep, 0.0)], [(-273.0, -2.0)], [(0.0, wet)]),
        _tile_type("ice_cap", [(0.0, 6000.0)], [(-273.0, -10.0)], [(0.0, wet)]),
        _tile_type("tundra", [(0.0, 2500.0)], [(-10.0, 0.0)], [(0.0, wet)]),
        _tile_type("mountain", [(2500.0, 6000.0)], [(-10.0, 100.0)], [(0.0, wet)]),
        _tile_type("desert", [(0.0, 2500.0)], [(0.0, 100.0)], [(0.0, 250.0)]),
        _tile_type("grassland", [(0.0, 2500.0)], [(0.0, 20.0)], [(250.0, 750.0)]),
        _tile_type("savanna", [(0.0, 2500.0)], [(20.0, 100.0)], [(250.0, 750.0)]),
        _tile_type(
            "temperate_forest", [(0.0, 2500.0)], [(0.0, 20.0)], [(750.0, wet)]
        ),
        _tile_type("rainforest", [(0.0, 2500.0)], [(20.0, 100.0)], [(750.0, wet)]),
    ]
