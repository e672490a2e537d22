"""Grid topology: coordinate wrapping and toroidal distances."""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

# Returned by wrap_coord when a coordinate falls off a non-wrapping edge
NO_NEIGHBOR = -1

# 4-neighbourhood offsets (dx, dy): up, down, left, right
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


def wrap_coord(coord: int, length: int, wrap: bool) -> int:
    """Map a coordinate onto an axis of the given length.

    Args:
        coord: Coordinate, possibly outside [0, length).
        length: Number of cells on the axis.
        wrap: Whether the axis wraps around.

    Returns:
        The coordinate itself if in range, ``coord % length`` if the axis
        wraps, otherwise NO_NEIGHBOR.
    """
    if 0 <= coord < length:
        return coord
    if wrap:
        return coord % length
    return NO_NEIGHBOR


def toroidal_delta(a: float, b: float, length: float, wrap: bool) -> float:
    """Distance between two coordinates on one axis.

    On a wrapping axis the shorter way around is used.
    """
    delta = abs(a - b)
    if wrap:
        return min(delta, length - delta)
    return delta


@dataclass(frozen=True)
class GridTopology:
    """Shape, wrapping and physical scale of a tile grid."""

    width: int
    height: int
    wrap_x: bool = False
    wrap_y: bool = False
    scale_x: float = 1.0  # km per tile
    scale_y: float = 1.0

    def wrap(self, x: int, y: int) -> tuple[int, int] | None:
        """Wrap a tile coordinate, or None if it is off the map."""
        wx = wrap_coord(x, self.width, self.wrap_x)
        wy = wrap_coord(y, self.height, self.wrap_y)
        if wx == NO_NEIGHBOR or wy == NO_NEIGHBOR:
            return None
        return wx, wy

    def neighbors(self, x: int, y: int) -> list[tuple[int, int]]:
        """Return the 4-connected neighbours of a tile, respecting wrap.

        Neighbours that wrap back onto the tile itself are dropped.
        """
        result = []
        for dx, dy in NEIGHBOR_OFFSETS:
            wrapped = self.wrap(x + dx, y + dy)
            if wrapped is not None and wrapped != (x, y) and wrapped not in result:
                result.append(wrapped)
        return result

    def distance_squared_km(self, x0: int, y0: int, x1: int, y1: int) -> float:
        """Squared physical distance between two tiles in km²."""
        dx = toroidal_delta(x0, x1, self.width, self.wrap_x) * self.scale_x
        dy = toroidal_delta(y0, y1, self.height, self.wrap_y) * self.scale_y
        return dx * dx + dy * dy

    def distance_km(self, x0: int, y0: int, x1: int, y1: int) -> float:
        """Physical distance between two tiles in km."""
        return self.distance_squared_km(x0, y0, x1, y1) ** 0.5

    def distance_km_array(
        self,
        x0: NDArray[np.int64],
        y0: NDArray[np.int64],
        x1: NDArray[np.int64],
        y1: NDArray[np.int64],
    ) -> NDArray[np.float64]:
        """Vectorised distance_km over arrays of tile coordinates."""
        dx = np.abs(x0 - x1).astype(np.float64)
        dy = np.abs(y0 - y1).astype(np.float64)
        if self.wrap_x:
            dx = np.minimum(dx, self.width - dx)
        if self.wrap_y:
            dy = np.minimum(dy, self.height - dy)
        return np.hypot(dx * self.scale_x, dy * self.scale_y)
