"""Tests for the generation pipeline."""

import random
from pathlib import Path

import numpy as np
import pytest
from conftest import assert_symmetric

from worldmapgen.biomes import TileType
from worldmapgen.config import ClimateConfig, MapParameters, OrographyConfig
from worldmapgen.exceptions import InvalidParametersError
from worldmapgen.generator import (
    SEED_MASK,
    GenerationContext,
    dump_debug_images,
    generate_map,
    resolve_seed,
)
from worldmapgen.grid import NO_TILE_TYPE
from worldmapgen.rivers import CornerGrid
from worldmapgen.topology import GridTopology


class TestSeed:
    """Tests for seed resolution."""

    def test_explicit_wins(self) -> None:
        assert resolve_seed(MapParameters(seed=1), 2) == 2

    def test_parameters_next(self) -> None:
        assert resolve_seed(MapParameters(seed=1)) == 1

    def test_clock_fallback(self) -> None:
        """Without any seed a 32-bit seed is derived from the clock."""
        seed = resolve_seed(MapParameters())
        assert 0 <= seed <= SEED_MASK

    def test_result_reports_seed(self) -> None:
        """The seed used is returned even when none was given."""
        params = MapParameters(width=8, height=4)
        result = generate_map(params)
        again = generate_map(params, seed=result.seed)
        np.testing.assert_array_equal(result.grid.elevation, again.grid.elevation)


class TestGenerationContext:
    """Tests for GenerationContext."""

    def test_rejects_empty_grid(self) -> None:
        """A grid without tiles cannot be generated."""
        with pytest.raises(InvalidParametersError):
            GenerationContext(params=MapParameters(width=0), seed=1)

    def test_topology_from_parameters(self) -> None:
        params = MapParameters(width=10, height=5, wrap_y=True, tile_scale_x=3.0)
        ctx = GenerationContext(params=params, seed=1)
        assert (ctx.topology.width, ctx.topology.height) == (10, 5)
        assert ctx.topology.wrap_x and ctx.topology.wrap_y
        assert ctx.topology.scale_x == 3.0


class TestGenerateMap:
    """Tests for generate_map."""

    def test_deterministic(self, small_params: MapParameters) -> None:
        """Same parameters and seed give identical maps."""
        a = generate_map(small_params)
        b = generate_map(small_params)
        for name in ("elevation", "temperature", "precipitation", "tile_type"):
            np.testing.assert_array_equal(getattr(a.grid, name), getattr(b.grid, name))
        np.testing.assert_array_equal(a.rivers.to_array(), b.rivers.to_array())
        assert a.seed == b.seed == 42

    def test_different_seeds_differ(self, small_params: MapParameters) -> None:
        a = generate_map(small_params, seed=1)
        b = generate_map(small_params, seed=2)
        assert not np.array_equal(a.grid.elevation, b.grid.elevation)

    def test_four_by_four_half_ocean(self) -> None:
        """A 4x4 x-wrapping map at 50% ocean has exactly 8 ocean tiles."""
        params = MapParameters(
            width=4, height=4, wrap_x=True, wrap_y=False, ocean_fraction=0.5
        )
        result = generate_map(params, seed=17)
        assert np.count_nonzero(result.grid.elevation <= 0.0) == 8

    @pytest.mark.parametrize("wrap_x, wrap_y", [(False, False), (True, False), (True, True)])
    def test_ocean_fraction_exact(self, wrap_x: bool, wrap_y: bool) -> None:
        params = MapParameters(
            width=20, height=10, wrap_x=wrap_x, wrap_y=wrap_y, ocean_fraction=0.65
        )
        result = generate_map(params, seed=3)
        assert np.count_nonzero(result.grid.is_ocean) == 130

    def test_physical_bounds(self, small_params: MapParameters) -> None:
        """Temperatures stay above absolute zero and rain is never negative."""
        result = generate_map(small_params)
        assert np.all(result.grid.temperature > -273.15)
        assert np.all(result.grid.precipitation >= 0.0)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_precipitation_finite_near_saturation_pole(self, seed: int) -> None:
        """Rain stays finite when -const2 starts inside the temperature range."""
        params = MapParameters(
            width=32,
            height=16,
            wrap_x=True,
            climate=ClimateConfig(equator_temperature=30.0, pole_temperature=5.0),
            orography=OrographyConfig(saturation_pressure_const2=-10.0),
        )
        result = generate_map(params, seed=seed)
        assert np.all(np.isfinite(result.grid.precipitation))

    def test_nearest_ocean_filled(self, small_params: MapParameters) -> None:
        """With ocean on the map every tile knows its nearest ocean tile."""
        grid = generate_map(small_params).grid
        assert np.all(grid.nearest_ocean_x >= 0)
        assert np.all(grid.elevation[grid.nearest_ocean_y, grid.nearest_ocean_x] <= 0.0)

    def test_rivers_symmetric(self) -> None:
        """River links are always reciprocal."""
        params = MapParameters(
            width=32, height=16, wrap_x=True, wrap_y=True, ocean_fraction=0.4
        )
        result = generate_map(params, seed=11)
        topology = GridTopology(32, 16, wrap_x=True, wrap_y=True, scale_x=100.0, scale_y=100.0)
        corners = CornerGrid(result.grid.elevation, result.grid.precipitation, topology)
        assert_symmetric(result.rivers, corners)

    def test_catch_all_type(self, catch_all_type: TileType) -> None:
        """A single all-covering type is assigned to every tile."""
        params = MapParameters(width=12, height=6, tile_types=[catch_all_type])
        result = generate_map(params, seed=5)
        assert np.all(result.grid.tile_type == 0)
        assert result.tile_type_counts() == {"anything": 72}

    def test_unmatched_tiles_are_null(self) -> None:
        """Tiles no type accepts stay unassigned."""
        land_only = TileType(
            name="land",
            elevation=[[0.0, 5000.0]],
            temperature=[[-300.0, 300.0]],
            precipitation=[[0.0, 1.0e9]],
        )
        params = MapParameters(width=12, height=6, tile_types=[land_only])
        result = generate_map(params, seed=5)
        ocean = result.grid.elevation < 0.0
        assert np.all(result.grid.tile_type[ocean] == NO_TILE_TYPE)
        y, x = np.argwhere(ocean)[0]
        assert result.tile_type_at(int(x), int(y)) is None
        assert result.grid.tile(int(x), int(y)).tile_type is None

    def test_tile_type_counts_cover_grid(self, small_params: MapParameters) -> None:
        result = generate_map(small_params)
        assert sum(result.tile_type_counts().values()) == result.grid.size

    def test_returns_clamped_parameters(self) -> None:
        """The result carries the parameters actually used."""
        result = generate_map(MapParameters(width=0, height=3), seed=1)
        assert result.parameters.width == 1
        assert result.grid.shape == (3, 1)

    def test_warnings_reported(self) -> None:
        """Suspicious parameters still generate but are reported."""
        climate = ClimateConfig(equator_temperature=-10.0, pole_temperature=20.0)
        result = generate_map(MapParameters(width=8, height=4, climate=climate), seed=1)
        assert [w.field for w in result.warnings] == ["climate.pole_temperature"]

    def test_invalid_parameters_raise(self) -> None:
        with pytest.raises(InvalidParametersError) as exc_info:
            generate_map(MapParameters(tile_types=[]), seed=1)
        assert exc_info.value.errors

    def test_ambient_random_state_untouched(self, small_params: MapParameters) -> None:
        """Global numpy and stdlib random streams are not consumed."""
        np.random.seed(123)
        random.seed(123)
        generate_map(small_params)
        observed = (np.random.random(), random.random())

        np.random.seed(123)
        random.seed(123)
        assert observed == (np.random.random(), random.random())


class TestDebugImages:
    """Tests for dump_debug_images."""

    def test_writes_images(self, tmp_path: Path) -> None:
        pytest.importorskip("matplotlib")
        dump_debug_images(
            tmp_path / "debug",
            elevation=np.random.default_rng(0).random((4, 8)),
            land=np.ones((4, 8), dtype=bool),
        )
        assert (tmp_path / "debug" / "elevation.png").exists()
        assert (tmp_path / "debug" / "land.png").exists()

    def test_generate_map_dumps(self, tmp_path: Path, small_params: MapParameters) -> None:
        pytest.importorskip("matplotlib")
        generate_map(small_params, debug_output_dir=tmp_path)
        assert (tmp_path / "rivers.png").exists()
