"""Tests for the tile grid."""

import numpy as np

from worldmapgen.grid import NO_TILE_TYPE, UNKNOWN_OCEAN, TileGrid


class TestTileGrid:
    """Tests for TileGrid."""

    def test_empty_grid(self) -> None:
        """A new grid has no assigned types or nearest ocean tiles."""
        grid = TileGrid(5, 3)
        assert grid.shape == (3, 5)
        assert grid.size == 15
        assert np.all(grid.tile_type == NO_TILE_TYPE)
        assert np.all(grid.nearest_ocean_x == UNKNOWN_OCEAN)

    def test_ocean_and_land_masks(self) -> None:
        """Sea level itself counts as ocean."""
        grid = TileGrid(3, 1)
        grid.elevation[0] = [-1.0, 0.0, 1.0]
        assert grid.is_ocean[0].tolist() == [True, True, False]
        np.testing.assert_array_equal(grid.is_land, ~grid.is_ocean)


class TestTile:
    """Tests for the per-tile view."""

    def test_view_values(self) -> None:
        grid = TileGrid(2, 2)
        grid.elevation[1, 0] = 250.0
        grid.temperature[1, 0] = 12.5
        grid.precipitation[1, 0] = 900.0
        grid.nearest_ocean_x[1, 0] = 1
        grid.nearest_ocean_y[1, 0] = 0
        grid.tile_type[1, 0] = 3

        tile = grid.tile(0, 1)
        assert (tile.x, tile.y) == (0, 1)
        assert tile.elevation == 250.0
        assert tile.temperature == 12.5
        assert tile.precipitation == 900.0
        assert tile.nearest_ocean == (1, 0)
        assert tile.tile_type == 3
        assert not tile.is_ocean

    def test_unassigned_view(self) -> None:
        """Unknown values come back as None."""
        tile = TileGrid(2, 2).tile(1, 1)
        assert tile.nearest_ocean is None
        assert tile.tile_type is None
        assert tile.is_ocean
