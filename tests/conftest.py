"""Shared test fixtures for map generation tests."""

import numpy as np
import pytest

from worldmapgen.biomes import TileType, ValueRange
from worldmapgen.config import MapParameters
from worldmapgen.rivers import OPPOSITE, CornerGrid, RiverNetwork
from worldmapgen.topology import GridTopology


@pytest.fixture
def catch_all_type() -> TileType:
    """Tile type whose ranges cover every possible tile."""
    everything = [ValueRange(min=-1.0e300, max=1.0e300)]
    return TileType(
        name="anything",
        elevation=everything,
        temperature=everything,
        precipitation=everything,
    )


@pytest.fixture
def small_params() -> MapParameters:
    """24x12 east-west wrapping map with a fixed seed."""
    return MapParameters(width=24, height=12, wrap_x=True, wrap_y=False, seed=42)


@pytest.fixture
def torus() -> GridTopology:
    """6x4 grid wrapping on both axes, 100 km tiles."""
    return GridTopology(
        width=6, height=4, wrap_x=True, wrap_y=True, scale_x=100.0, scale_y=100.0
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


def assert_symmetric(network: RiverNetwork, corners: CornerGrid) -> None:
    """Every link recorded at a corner is recorded back at its neighbour."""
    for cx, cy, mask in network.corners():
        assert mask, f"corner ({cx}, {cy}) stored without links"
        for direction in OPPOSITE:
            if mask & direction:
                target = corners.neighbor(cx, cy, direction)
                assert target is not None
                assert network.mask_at(*target) & OPPOSITE[direction]
