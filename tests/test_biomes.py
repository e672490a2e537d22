"""Tests for tile types and biome classification."""

import numpy as np
import pytest
from pydantic import ValidationError

from worldmapgen.biomes import (
    TileType,
    ValueRange,
    classify_biomes,
    default_tile_types,
    match_tile_types,
    max_elevation,
)
from worldmapgen.grid import NO_TILE_TYPE


def _fields(shape=(4, 5)):
    elevation = np.linspace(-1000.0, 3000.0, shape[0] * shape[1]).reshape(shape)
    temperature = np.full(shape, 15.0)
    precipitation = np.full(shape, 800.0)
    return elevation, temperature, precipitation


class TestValueRange:
    """Tests for ValueRange."""

    def test_from_pair(self) -> None:
        """A two-element list is accepted as [min, max]."""
        value_range = ValueRange.model_validate([0, 2500])
        assert (value_range.min, value_range.max) == (0.0, 2500.0)

    def test_bad_pair(self) -> None:
        """Lists of any other length are rejected."""
        with pytest.raises(ValidationError):
            ValueRange.model_validate([1, 2, 3])

    def test_contains_inclusive(self) -> None:
        """Both bounds are inside the range."""
        value_range = ValueRange(min=0.0, max=10.0)
        result = value_range.contains(np.array([-0.1, 0.0, 5.0, 10.0, 10.1]))
        assert result.tolist() == [False, True, True, True, False]


class TestTileType:
    """Tests for TileType matching."""

    def test_any_range_matches(self) -> None:
        """Several ranges of one attribute form a union."""
        tile_type = TileType(
            name="shores",
            elevation=[[-10, 0], [100, 200]],
            temperature=[[-50, 50]],
            precipitation=[[0, 5000]],
        )
        elevation = np.array([-5.0, 50.0, 150.0])
        result = tile_type.matches(elevation, np.zeros(3), np.full(3, 100.0))
        assert result.tolist() == [True, False, True]

    def test_empty_attribute_never_matches(self) -> None:
        """A type without precipitation ranges matches nothing."""
        tile_type = TileType(name="void", elevation=[[-1, 1]], temperature=[[-1, 1]])
        assert not tile_type.matches(np.zeros(3), np.zeros(3), np.zeros(3)).any()

    def test_max_elevation(self) -> None:
        """The top of the heightmap is the highest elevation bound of any type."""
        types = [
            TileType(name="low", elevation=[[0, 100]]),
            TileType(name="high", elevation=[[50, 4000], [0, 10]]),
        ]
        assert max_elevation(types) == 4000.0
        assert max_elevation([]) == float("-inf")


class TestClassifyBiomes:
    """Tests for classify_biomes."""

    def test_catch_all_assigns_every_tile(self, catch_all_type: TileType) -> None:
        """A type covering everything leaves no tile unassigned."""
        result = classify_biomes(
            [catch_all_type], *_fields(), rng=np.random.default_rng(0)
        )
        assert np.all(result == 0)

    def test_unmatched_is_null(self) -> None:
        """Tiles matching no type get NO_TILE_TYPE."""
        peaks = TileType(
            name="peaks",
            elevation=[[2000, 9000]],
            temperature=[[-100, 100]],
            precipitation=[[0, 9000]],
        )
        elevation, temperature, precipitation = _fields()
        result = classify_biomes(
            [peaks], elevation, temperature, precipitation, np.random.default_rng(0)
        )
        np.testing.assert_array_equal(result == 0, elevation >= 2000.0)
        assert np.all(result[elevation < 2000.0] == NO_TILE_TYPE)

    def test_no_types(self) -> None:
        """Without tile types every tile is unmatched."""
        result = classify_biomes([], *_fields(), rng=np.random.default_rng(0))
        assert np.all(result == NO_TILE_TYPE)

    def test_ties_pick_among_candidates(self, catch_all_type: TileType) -> None:
        """Overlapping types are chosen at random among the matches only."""
        never = TileType(name="never", elevation=[[1.0e9, 2.0e9]])
        types = [catch_all_type, never, catch_all_type.model_copy(update={"name": "also"})]
        result = classify_biomes(
            types, *_fields((20, 20)), rng=np.random.default_rng(7)
        )
        assert set(np.unique(result).tolist()) == {0, 2}

    def test_deterministic(self, catch_all_type: TileType) -> None:
        """The same generator state gives the same choices."""
        types = [catch_all_type, catch_all_type.model_copy(update={"name": "twin"})]
        a = classify_biomes(types, *_fields(), rng=np.random.default_rng(3))
        b = classify_biomes(types, *_fields(), rng=np.random.default_rng(3))
        np.testing.assert_array_equal(a, b)

    def test_match_stack_shape(self, catch_all_type: TileType) -> None:
        """One mask per tile type."""
        masks = match_tile_types([catch_all_type] * 3, *_fields())
        assert masks.shape == (3, 4, 5)


class TestDefaultTileTypes:
    """Tests for the built-in tile types."""

    def test_names_unique(self) -> None:
        names = [t.name for t in default_tile_types()]
        assert len(names) == len(set(names))

    def test_heightmap_top(self) -> None:
        """The default set tops out at 6000 m."""
        assert max_elevation(default_tile_types()) == 6000.0

    def test_land_climates_covered(self) -> None:
        """Every land climate within the usual bounds has a tile type."""
        gen = np.random.default_rng(11)
        elevation = gen.uniform(0.0, 6000.0, size=500)
        temperature = gen.uniform(-60.0, 45.0, size=500)
        precipitation = gen.uniform(0.0, 5000.0, size=500)
        result = classify_biomes(
            default_tile_types(), elevation, temperature, precipitation, gen
        )
        assert np.all(result != NO_TILE_TYPE)
