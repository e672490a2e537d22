"""Per-tile map data stored as parallel numpy arrays."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Tile type index of a tile that matched no TileType
NO_TILE_TYPE = -1

# Nearest-ocean coordinate of a tile whose nearest ocean is unknown
UNKNOWN_OCEAN = -1


@dataclass(frozen=True)
class Tile:
    """Read-only view of one grid cell."""

    x: int
    y: int
    elevation: float  # metres; <= 0 is ocean
    temperature: float  # °C
    precipitation: float  # mm/yr
    nearest_ocean: tuple[int, int] | None
    tile_type: int | None

    @property
    def is_ocean(self) -> bool:
        return self.elevation <= 0.0


class TileGrid:
    """All per-tile fields of a map, indexed ``[y, x]``.

    Each stage of the pipeline fills in one or more arrays in place.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        shape = (height, width)
        self.elevation: NDArray[np.float64] = np.zeros(shape, dtype=np.float64)
        self.temperature: NDArray[np.float64] = np.zeros(shape, dtype=np.float64)
        self.precipitation: NDArray[np.float64] = np.zeros(shape, dtype=np.float64)
        self.nearest_ocean_x: NDArray[np.int64] = np.full(
            shape, UNKNOWN_OCEAN, dtype=np.int64
        )
        self.nearest_ocean_y: NDArray[np.int64] = np.full(
            shape, UNKNOWN_OCEAN, dtype=np.int64
        )
        self.tile_type: NDArray[np.int64] = np.full(shape, NO_TILE_TYPE, dtype=np.int64)

    @property
    def shape(self) -> tuple[int, int]:
        return (self.height, self.width)

    @property
    def size(self) -> int:
        return self.width * self.height

    @property
    def is_ocean(self) -> NDArray[np.bool_]:
        """Mask of tiles at or below sea level."""
        return self.elevation <= 0.0

    @property
    def is_land(self) -> NDArray[np.bool_]:
        return self.elevation > 0.0

    def has_nearest_ocean(self, x: int, y: int) -> bool:
        return (
            self.nearest_ocean_x[y, x] != UNKNOWN_OCEAN
            and self.nearest_ocean_y[y, x] != UNKNOWN_OCEAN
        )

    def tile(self, x: int, y: int) -> Tile:
        """Return a snapshot of the tile at (x, y)."""
        nearest = None
        if self.has_nearest_ocean(x, y):
            nearest = (int(self.nearest_ocean_x[y, x]), int(self.nearest_ocean_y[y, x]))
        type_index = int(self.tile_type[y, x])
        return Tile(
            x=x,
            y=y,
            elevation=float(self.elevation[y, x]),
            temperature=float(self.temperature[y, x]),
            precipitation=float(self.precipitation[y, x]),
            nearest_ocean=nearest,
            tile_type=None if type_index == NO_TILE_TYPE else type_index,
        )
