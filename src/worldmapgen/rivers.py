"""River network: steepest-descent river walks on the corner (dual) grid.

Corner (cx, cy) is the vertex at the top-left of tile (cx, cy); it touches
tiles (cx-1, cy-1), (cx, cy-1), (cx-1, cy) and (cx, cy). A wrapping axis
has as many corners as tiles, a non-wrapping one has one more.
"""

import math
from enum import IntFlag

import numpy as np
import structlog
from numpy.typing import NDArray

from .climate import KM_TO_M
from .config import RiverConfig
from .topology import NO_NEIGHBOR, GridTopology, wrap_coord

logger = structlog.get_logger()


class Direction(IntFlag):
    """Connection bits of a river corner."""

    NONE = 0
    UP = 1
    DOWN = 2
    LEFT = 4
    RIGHT = 8


# Search order for the steepest descent; the first of equal slopes wins
DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)

# Corner offsets (dx, dy); UP is towards row y-1
DIRECTION_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

OPPOSITE: dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

# Tile offsets of the four tiles around a corner
_SURROUNDING_TILES = ((-1, -1), (0, -1), (-1, 0), (0, 0))


def corner_shape(width: int, height: int, wrap_x: bool, wrap_y: bool) -> tuple[int, int]:
    """Logical corner grid shape (height, width) for a tile grid."""
    return (height if wrap_y else height + 1), (width if wrap_x else width + 1)


class CornerGrid:
    """Corner elevation, precipitation and ocean adjacency.

    Each corner averages the tiles around it; at a non-wrapping edge fewer
    than four tiles contribute.
    """

    def __init__(
        self,
        elevation: NDArray[np.float64],
        precipitation: NDArray[np.float64],
        topology: GridTopology,
    ) -> None:
        self.topology = topology
        self.height, self.width = corner_shape(
            topology.width, topology.height, topology.wrap_x, topology.wrap_y
        )

        cys, cxs = np.meshgrid(np.arange(self.height), np.arange(self.width), indexing="ij")
        elevation_sum = np.zeros(cxs.shape, dtype=np.float64)
        precipitation_sum = np.zeros(cxs.shape, dtype=np.float64)
        count = np.zeros(cxs.shape, dtype=np.int64)
        ocean_adjacent = np.zeros(cxs.shape, dtype=bool)

        for dx, dy in _SURROUNDING_TILES:
            tx, valid_x = _tile_index(cxs + dx, topology.width, topology.wrap_x)
            ty, valid_y = _tile_index(cys + dy, topology.height, topology.wrap_y)
            valid = valid_x & valid_y
            tile_elevation = elevation[ty, tx]
            elevation_sum += np.where(valid, tile_elevation, 0.0)
            precipitation_sum += np.where(valid, precipitation[ty, tx], 0.0)
            count += valid
            ocean_adjacent |= valid & (tile_elevation <= 0.0)

        self.elevation = elevation_sum / count
        self.precipitation = precipitation_sum / count
        self.ocean_adjacent = ocean_adjacent

    def neighbor(self, cx: int, cy: int, direction: Direction) -> tuple[int, int] | None:
        """Adjacent corner in a direction, or None past a non-wrapping edge."""
        dx, dy = DIRECTION_DELTAS[direction]
        nx = wrap_coord(cx + dx, self.width, self.topology.wrap_x)
        ny = wrap_coord(cy + dy, self.height, self.topology.wrap_y)
        if nx == NO_NEIGHBOR or ny == NO_NEIGHBOR:
            return None
        return nx, ny

    def spacing_m(self, direction: Direction) -> float:
        """Physical distance between adjacent corners in metres."""
        if direction in (Direction.LEFT, Direction.RIGHT):
            return self.topology.scale_x * KM_TO_M
        return self.topology.scale_y * KM_TO_M

    def steepest_descent(self, cx: int, cy: int) -> tuple[Direction | None, float]:
        """Direction and slope of the steepest strictly downhill neighbour.

        Returns:
            Tuple of (direction, slope in m/m); (None, 0.0) when no
            neighbour is lower.
        """
        here = float(self.elevation[cy, cx])
        best: Direction | None = None
        best_slope = 0.0
        for direction in DIRECTIONS:
            target = self.neighbor(cx, cy, direction)
            if target is None or target == (cx, cy):
                continue
            nx, ny = target
            slope = (here - float(self.elevation[ny, nx])) / self.spacing_m(direction)
            if slope > best_slope:
                best = direction
                best_slope = slope
        return best, best_slope


def _tile_index(
    coords: NDArray[np.int64], length: int, wrap: bool
) -> tuple[NDArray[np.int64], NDArray[np.bool_]]:
    if wrap:
        return coords % length, np.ones(coords.shape, dtype=bool)
    valid = (coords >= 0) & (coords < length)
    return np.clip(coords, 0, length - 1), valid


class RiverNetwork:
    """Sparse connection masks of the corners a river passes through."""

    def __init__(self, width: int, height: int, wrap_x: bool = False, wrap_y: bool = False):
        self.width = width
        self.height = height
        self.wrap_x = wrap_x
        self.wrap_y = wrap_y
        self.corner_height, self.corner_width = corner_shape(width, height, wrap_x, wrap_y)
        self._masks: dict[int, Direction] = {}

    def __len__(self) -> int:
        return len(self._masks)

    def _index(self, cx: int, cy: int) -> int:
        return cy * self.corner_width + cx

    def has_river(self, cx: int, cy: int) -> bool:
        return self._index(cx, cy) in self._masks

    def mask_at(self, cx: int, cy: int) -> Direction:
        return self._masks.get(self._index(cx, cy), Direction.NONE)

    def link(self, a: tuple[int, int], b: tuple[int, int], direction: Direction) -> None:
        """Connect corner ``a`` to corner ``b`` lying ``direction`` of it.

        Both ends are updated.
        """
        ia = self._index(*a)
        ib = self._index(*b)
        self._masks[ia] = self._masks.get(ia, Direction.NONE) | direction
        self._masks[ib] = self._masks.get(ib, Direction.NONE) | OPPOSITE[direction]

    def corners(self) -> list[tuple[int, int, Direction]]:
        """All river corners as (cx, cy, mask) in row-major order."""
        return [
            (index % self.corner_width, index // self.corner_width, mask)
            for index, mask in sorted(self._masks.items())
        ]

    def to_array(self) -> NDArray[np.uint8]:
        """Masks on the logical corner grid, shape (corner_height, corner_width)."""
        result = np.zeros((self.corner_height, self.corner_width), dtype=np.uint8)
        flat = result.reshape(-1)
        for index, mask in self._masks.items():
            flat[index] = int(mask)
        return result

    def to_physical_array(self) -> NDArray[np.uint8]:
        """Masks on every drawn vertex, shape (height + 1, width + 1).

        A corner on a wrapped edge appears on both opposite edges, so one
        logical corner can occupy up to four physical positions.
        """
        logical = self.to_array()
        xs = np.arange(self.width + 1) % self.corner_width
        ys = np.arange(self.height + 1) % self.corner_height
        return logical[np.ix_(ys, xs)]

    @classmethod
    def from_array(
        cls, masks: NDArray[np.integer], width: int, height: int, wrap_x: bool, wrap_y: bool
    ) -> "RiverNetwork":
        """Rebuild a network from a logical mask array."""
        network = cls(width, height, wrap_x, wrap_y)
        if masks.shape != (network.corner_height, network.corner_width):
            raise ValueError(
                f"Mask array shape {masks.shape} does not match corner grid "
                f"{(network.corner_height, network.corner_width)}"
            )
        for index, value in enumerate(masks.reshape(-1).tolist()):
            if value:
                network._masks[index] = Direction(value)
        return network


def river_probability(precipitation: float, slope: float, config: RiverConfig) -> float:
    """Chance of a river source at a corner, in [0, 1) for non-negative inputs."""
    return (
        4.0
        / (math.pi * math.pi)
        * math.atan(config.rainfall_multiplier * precipitation)
        * math.atan(config.slope_multiplier * slope)
    )


def generate_rivers(
    elevation: NDArray[np.float64],
    precipitation: NDArray[np.float64],
    topology: GridTopology,
    config: RiverConfig,
    rng: np.random.Generator,
) -> RiverNetwork:
    """Seed rivers on the corner grid and walk each one downhill.

    Corners are visited in row-major order. Each corner that is not next
    to the ocean and carries no river yet consumes one uniform draw and
    becomes a source with probability ``river_probability``. A walk follows
    the steepest descent, linking corners as it goes, and stops at a corner
    next to the ocean, at a pit, or after joining an existing river.

    Args:
        elevation: Tile elevation (m).
        precipitation: Tile precipitation (mm/yr).
        topology: Grid shape, wrapping and tile scale.
        config: River parameters.
        rng: Generator for the source draws.

    Returns:
        The river network.
    """
    corners = CornerGrid(elevation, precipitation, topology)
    network = RiverNetwork(topology.width, topology.height, topology.wrap_x, topology.wrap_y)
    sources = 0

    for cy in range(corners.height):
        for cx in range(corners.width):
            if corners.ocean_adjacent[cy, cx] or network.has_river(cx, cy):
                continue
            _, slope = corners.steepest_descent(cx, cy)
            probability = river_probability(float(corners.precipitation[cy, cx]), slope, config)
            if rng.random() >= probability:
                continue
            sources += 1
            _walk_river(corners, network, (cx, cy))

    logger.debug("rivers_traced", sources=sources, river_corners=len(network))
    return network


def _walk_river(corners: CornerGrid, network: RiverNetwork, start: tuple[int, int]) -> None:
    current = start
    while not corners.ocean_adjacent[current[1], current[0]]:
        direction, _ = corners.steepest_descent(*current)
        if direction is None:
            return
        target = corners.neighbor(current[0], current[1], direction)
        # Elevation strictly falls along the walk, so it cannot revisit a corner
        merged = network.has_river(*target)
        network.link(current, target, direction)
        if merged:
            return
        current = target
