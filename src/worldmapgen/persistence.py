"""Map persistence: save and load generated maps."""

import json
from datetime import datetime, timezone
from pathlib import Path

import numpy as np
import structlog

from .config import MapParameters
from .exceptions import MapFileError
from .generator import GenerationResult
from .grid import TileGrid
from .rivers import RiverNetwork
from .validation import ParameterWarning

logger = structlog.get_logger()

FORMAT_VERSION = 1

TILE_ARRAYS = (
    "elevation",
    "temperature",
    "precipitation",
    "nearest_ocean_x",
    "nearest_ocean_y",
    "tile_type",
)


def save_map(path: Path, result: GenerationResult) -> None:
    """Save a generated map to disk.

    Uses numpy's compressed .npz format; parameters and other metadata are
    stored as an embedded JSON document.

    Args:
        path: Output path (should end with .npz).
        result: Generation result to save.
    """
    params = result.parameters
    metadata = {
        "version": FORMAT_VERSION,
        "seed": result.seed,
        "width": params.width,
        "height": params.height,
        "sea_level": result.sea_level,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "parameters": params.model_dump(),
        "warnings": [list(w) for w in result.warnings],
    }

    arrays = {name: getattr(result.grid, name) for name in TILE_ARRAYS}
    np.savez_compressed(
        path,
        rivers=result.rivers.to_array(),
        metadata=json.dumps(metadata).encode("utf-8"),
        **arrays,
    )

    file_size = path.stat().st_size / 1024
    logger.info("map_saved", path=str(path), size_kb=round(file_size, 1))


def load_map(path: Path) -> GenerationResult:
    """Load a map saved by save_map.

    Args:
        path: Path to .npz file.

    Returns:
        The restored GenerationResult.

    Raises:
        FileNotFoundError: If file doesn't exist.
        MapFileError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Map file not found: {path}")

    with np.load(path) as data:
        missing = [name for name in (*TILE_ARRAYS, "rivers", "metadata") if name not in data]
        if missing:
            raise MapFileError(f"Invalid map file: missing {', '.join(missing)}")

        metadata = json.loads(data["metadata"].tobytes().decode("utf-8"))
        if metadata.get("version") != FORMAT_VERSION:
            raise MapFileError(
                f"Unsupported map file version: {metadata.get('version')}"
            )

        params = MapParameters.model_validate(metadata["parameters"])
        grid = TileGrid(params.width, params.height)
        for name in TILE_ARRAYS:
            array = data[name]
            if array.shape != grid.shape:
                raise MapFileError(
                    f"Invalid map file: '{name}' has shape {array.shape}, "
                    f"expected {grid.shape}"
                )
            setattr(grid, name, array)

        try:
            rivers = RiverNetwork.from_array(
                data["rivers"], params.width, params.height, params.wrap_x, params.wrap_y
            )
        except ValueError as e:
            raise MapFileError(f"Invalid map file: {e}") from e

    logger.info("map_loaded", path=str(path), width=params.width, height=params.height)
    return GenerationResult(
        parameters=params,
        seed=metadata["seed"],
        grid=grid,
        rivers=rivers,
        sea_level=metadata["sea_level"],
        warnings=[ParameterWarning(*w) for w in metadata.get("warnings", [])],
    )
