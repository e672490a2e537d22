"""Tests for saving and loading maps."""

import json
from pathlib import Path

import numpy as np
import pytest

from worldmapgen.config import ClimateConfig, MapParameters
from worldmapgen.exceptions import MapFileError
from worldmapgen.generator import generate_map
from worldmapgen.persistence import TILE_ARRAYS, load_map, save_map


class TestSaveLoad:
    """Tests for save_map and load_map."""

    def test_round_trip(self, tmp_path: Path, small_params: MapParameters) -> None:
        """A loaded map equals the saved one."""
        result = generate_map(small_params)
        path = tmp_path / "map.npz"
        save_map(path, result)
        loaded = load_map(path)

        for name in TILE_ARRAYS:
            np.testing.assert_array_equal(getattr(loaded.grid, name), getattr(result.grid, name))
        np.testing.assert_array_equal(loaded.rivers.to_array(), result.rivers.to_array())
        assert loaded.seed == result.seed
        assert loaded.sea_level == result.sea_level
        assert loaded.parameters == result.parameters
        assert loaded.tile_type_counts() == result.tile_type_counts()

    def test_warnings_kept(self, tmp_path: Path) -> None:
        climate = ClimateConfig(equator_temperature=0.0, pole_temperature=5.0)
        result = generate_map(MapParameters(width=6, height=4, climate=climate), seed=2)
        path = tmp_path / "warm_poles.npz"
        save_map(path, result)
        assert load_map(path).warnings == result.warnings

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_map(tmp_path / "nothing.npz")

    def test_missing_arrays(self, tmp_path: Path) -> None:
        """Files without the map arrays are rejected."""
        path = tmp_path / "other.npz"
        np.savez_compressed(path, floor=np.zeros((2, 2)))
        with pytest.raises(MapFileError):
            load_map(path)

    def test_wrong_version(self, tmp_path: Path, small_params: MapParameters) -> None:
        """Files from an unknown format version are rejected."""
        result = generate_map(small_params)
        path = tmp_path / "map.npz"
        save_map(path, result)

        with np.load(path) as data:
            arrays = {name: data[name] for name in data.files}
        metadata = json.loads(arrays["metadata"].tobytes().decode("utf-8"))
        metadata["version"] = 99
        arrays["metadata"] = np.array(json.dumps(metadata).encode("utf-8"))
        np.savez_compressed(path, **arrays)

        with pytest.raises(MapFileError):
            load_map(path)
