"""Main map generation orchestration."""

import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import structlog
from numpy.typing import NDArray

from .biomes import classify_biomes, max_elevation
from .climate import compute_precipitation, compute_temperature
from .config import MapParameters
from .elevation import generate_elevation
from .exceptions import InvalidParametersError
from .grid import NO_TILE_TYPE, TileGrid
from .hydrology import apply_orographic_rainfall, attenuate_rainfall, compute_nearest_ocean
from .rivers import RiverNetwork, generate_rivers
from .topology import GridTopology
from .validation import ParameterWarning, check_parameters, clamp_parameters

logger = structlog.get_logger()

SEED_MASK = 0xFFFFFFFF


def resolve_seed(params: MapParameters, seed: int | None = None) -> int:
    """Pick the seed for a run: explicit argument, then parameters, then clock."""
    if seed is not None:
        return seed
    if params.seed is not None:
        return params.seed
    return time.time_ns() & SEED_MASK


@dataclass
class GenerationContext:
    """State shared by every stage of one generation run."""

    params: MapParameters
    seed: int
    topology: GridTopology = field(init=False)
    rng: np.random.Generator = field(init=False)

    def __post_init__(self) -> None:
        if self.params.width < 1 or self.params.height < 1:
            raise InvalidParametersError(
                [f"Map size must be positive, got {self.params.width}x{self.params.height}"]
            )
        self.topology = GridTopology(
            width=self.params.width,
            height=self.params.height,
            wrap_x=self.params.wrap_x,
            wrap_y=self.params.wrap_y,
            scale_x=self.params.tile_scale_x,
            scale_y=self.params.tile_scale_y,
        )
        self.rng = np.random.default_rng(self.seed)


class GenerationResult:
    """Result of map generation."""

    def __init__(
        self,
        parameters: MapParameters,
        seed: int,
        grid: TileGrid,
        rivers: RiverNetwork,
        sea_level: float,
        warnings: list[ParameterWarning] | None = None,
    ):
        self.parameters = parameters
        self.seed = seed
        self.grid = grid
        self.rivers = rivers
        self.sea_level = sea_level
        self.warnings = warnings or []

    def tile_type_at(self, x: int, y: int) -> str | None:
        """Name of the tile type at (x, y), or None if nothing matched."""
        index = int(self.grid.tile_type[y, x])
        if index == NO_TILE_TYPE:
            return None
        return self.parameters.tile_types[index].name

    def tile_type_counts(self) -> dict[str | None, int]:
        """Number of tiles of each tile type name; None counts unmatched tiles."""
        counts: dict[str | None, int] = {}
        for index, count in sorted(Counter(self.grid.tile_type.reshape(-1).tolist()).items()):
            name = None if index == NO_TILE_TYPE else self.parameters.tile_types[index].name
            counts[name] = counts.get(name, 0) + count
        return counts


def generate_map(
    params: MapParameters,
    seed: int | None = None,
    debug_output_dir: Path | None = None,
) -> GenerationResult:
    """Generate a complete map.

    Parameters are clamped and checked first; the stages then run in
    order: elevation, temperature, precipitation, rivers, biomes.

    Args:
        params: Map parameters.
        seed: Overrides ``params.seed`` when given.
        debug_output_dir: If set, stage arrays are rendered here.

    Returns:
        GenerationResult with the clamped parameters and the seed used.

    Raises:
        InvalidParametersError: If the parameters cannot produce a map.
    """
    params = clamp_parameters(params)
    validation = check_parameters(params)
    if not validation.passed:
        raise InvalidParametersError(validation.errors)

    ctx = GenerationContext(params=params, seed=resolve_seed(params, seed))
    grid = TileGrid(params.width, params.height)

    logger.info(
        "generation_started",
        width=params.width,
        height=params.height,
        wrap_x=params.wrap_x,
        wrap_y=params.wrap_y,
        seed=ctx.seed,
    )

    # Elevation
    grid.elevation, sea_level = generate_elevation(
        params.width,
        params.height,
        params.tile_scale_x,
        params.tile_scale_y,
        params.noise_scale,
        params.wrap_x,
        params.wrap_y,
        params.ocean_fraction,
        max_elevation(params.tile_types),
        ctx.rng,
    )
    logger.info(
        "elevation_generated",
        sea_level=round(sea_level, 4),
        ocean_tiles=int(np.count_nonzero(grid.is_ocean)),
    )

    # Temperature
    grid.temperature = compute_temperature(grid.elevation, params.climate)
    logger.info(
        "temperature_computed",
        min=round(float(grid.temperature.min()), 2),
        max=round(float(grid.temperature.max()), 2),
    )

    # Precipitation
    grid.precipitation = compute_precipitation(
        params.height, params.width, params.climate, params.rainfall
    )
    grid.nearest_ocean_x, grid.nearest_ocean_y = compute_nearest_ocean(
        grid.elevation, ctx.topology
    )
    grid.precipitation = attenuate_rainfall(
        grid.precipitation,
        grid.elevation,
        grid.nearest_ocean_x,
        grid.nearest_ocean_y,
        ctx.topology,
        params.rainfall.ocean_e_folding_distance,
    )
    grid.precipitation = apply_orographic_rainfall(
        grid.precipitation,
        grid.elevation,
        grid.temperature,
        ctx.topology,
        params.climate,
        params.orography,
        params.rotate_west,
    )
    logger.info(
        "precipitation_computed",
        mean=round(float(grid.precipitation.mean()), 2),
        max=round(float(grid.precipitation.max()), 2),
    )

    # Rivers
    rivers = generate_rivers(
        grid.elevation, grid.precipitation, ctx.topology, params.rivers, ctx.rng
    )
    logger.info("rivers_generated", river_corners=len(rivers))

    # Biomes
    grid.tile_type = classify_biomes(
        params.tile_types, grid.elevation, grid.temperature, grid.precipitation, ctx.rng
    )

    result = GenerationResult(
        parameters=params,
        seed=ctx.seed,
        grid=grid,
        rivers=rivers,
        sea_level=sea_level,
        warnings=validation.warnings,
    )
    logger.info("biomes_classified", counts=result.tile_type_counts())

    if debug_output_dir is not None:
        dump_debug_images(
            Path(debug_output_dir),
            elevation=grid.elevation,
            temperature=grid.temperature,
            precipitation=grid.precipitation,
            tile_type=grid.tile_type,
            rivers=rivers.to_physical_array() > 0,
        )

    return result


def dump_debug_images(output_dir: Path, **arrays: NDArray) -> None:
    """Save arrays as images for debugging.

    Args:
        output_dir: Directory to save images.
        **arrays: Named arrays to save.
    """
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("debug_images_skipped", reason="matplotlib not available")
        return

    output_dir.mkdir(parents=True, exist_ok=True)

    for name, arr in arrays.items():
        fig, ax = plt.subplots(figsize=(10, 10))

        # Row 0 is the south pole
        if arr.dtype == bool:
            ax.imshow(arr, cmap="binary", origin="lower")
        elif np.issubdtype(arr.dtype, np.integer):
            ax.imshow(arr, cmap="tab20", origin="lower", interpolation="nearest")
        else:
            ax.imshow(arr, cmap="terrain", origin="lower")

        ax.set_title(name)
        ax.axis("off")

        fig.savefig(output_dir / f"{name}.png", dpi=150, bbox_inches="tight")
        plt.close(fig)

    logger.info("debug_images_saved", output_dir=str(output_dir))
