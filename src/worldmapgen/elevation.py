"""Elevation: seamless noise heightmap calibrated to an ocean fraction."""

import math

import numpy as np
from numpy.typing import NDArray

from .noise import seamless_noise

# Noise offsets are drawn from [0, NOISE_OFFSET_RANGE); the permutation
# table repeats every 256 lattice cells
NOISE_OFFSET_RANGE = 256.0


def noise_dimensions(wrap_x: bool, wrap_y: bool) -> int:
    """Number of noise inputs: one per plain axis, two per wrapping axis."""
    return (2 if wrap_x else 1) + (2 if wrap_y else 1)


def draw_noise_offsets(
    rng: np.random.Generator, wrap_x: bool, wrap_y: bool
) -> NDArray[np.float64]:
    """Random translation of the sampled noise region, one per input."""
    return rng.uniform(0.0, NOISE_OFFSET_RANGE, size=noise_dimensions(wrap_x, wrap_y))


def noise_spans(
    width: int,
    height: int,
    tile_scale_x: float,
    tile_scale_y: float,
    noise_scale: float,
) -> tuple[float, float]:
    """Noise units covered by each axis.

    The longer physical dimension spans ``noise_scale`` units.
    """
    width_km = width * tile_scale_x
    height_km = height * tile_scale_y
    longest = max(width_km, height_km)
    return width_km / longest * noise_scale, height_km / longest * noise_scale


def sample_raw_elevation(
    width: int,
    height: int,
    tile_scale_x: float,
    tile_scale_y: float,
    noise_scale: float,
    wrap_x: bool,
    wrap_y: bool,
    offsets: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Sample raw noise for every tile.

    Args:
        width: Map width in tiles.
        height: Map height in tiles.
        tile_scale_x: Kilometres per tile on X.
        tile_scale_y: Kilometres per tile on Y.
        noise_scale: Noise units spanned by the longer dimension.
        wrap_x: Whether X wraps seamlessly.
        wrap_y: Whether Y wraps seamlessly.
        offsets: Per-input translation from draw_noise_offsets.

    Returns:
        Raw noise, shape (height, width), roughly in [0, 1].
    """
    span_x, span_y = noise_spans(width, height, tile_scale_x, tile_scale_y, noise_scale)
    ys, xs = np.meshgrid(np.arange(height), np.arange(width), indexing="ij")
    return np.asarray(
        seamless_noise(xs, ys, width, height, span_x, span_y, wrap_x, wrap_y, offsets),
        dtype=np.float64,
    )


def calibrate_elevation(
    raw: NDArray[np.float64],
    ocean_fraction: float,
    max_elevation: float,
) -> tuple[NDArray[np.float64], float]:
    """Convert raw noise into elevation in metres.

    Elevation is ``(raw - sea_level) * max_elevation / (1 - sea_level)``, so
    a raw value of 1 reaches the highest elevation any tile type allows.
    Exactly ``floor(N * ocean_fraction)`` tiles end up at or below zero:
    the tile at the sea-level rank and everything above it is land.

    Args:
        raw: Raw noise field.
        ocean_fraction: Target fraction of ocean tiles in [0, 1).
        max_elevation: Highest land elevation (m), must be positive.

    Returns:
        Tuple of (elevation field, sea level in raw noise units).
    """
    size = raw.size
    ocean_count = min(int(math.floor(size * ocean_fraction)), size - 1)
    order = np.argsort(raw, axis=None, kind="stable")
    sea_level = float(raw.flat[order[ocean_count]])

    scale = max_elevation / max(1.0 - sea_level, np.finfo(np.float64).eps)
    elevation = (raw - sea_level) * scale

    # Ties and the sea-level tile itself sit at exactly zero; lift land ranks
    # so the ocean count is exact
    flat = elevation.reshape(-1)
    land = order[ocean_count:]
    flat[land] = np.maximum(flat[land], np.nextafter(0.0, 1.0))
    return flat.reshape(raw.shape), sea_level


def generate_elevation(
    width: int,
    height: int,
    tile_scale_x: float,
    tile_scale_y: float,
    noise_scale: float,
    wrap_x: bool,
    wrap_y: bool,
    ocean_fraction: float,
    max_elevation: float,
    rng: np.random.Generator,
) -> tuple[NDArray[np.float64], float]:
    """Draw noise offsets, sample noise and calibrate it.

    Returns:
        Tuple of (elevation field, sea level in raw noise units).
    """
    offsets = draw_noise_offsets(rng, wrap_x, wrap_y)
    raw = sample_raw_elevation(
        width, height, tile_scale_x, tile_scale_y, noise_scale, wrap_x, wrap_y, offsets
    )
    return calibrate_elevation(raw, ocean_fraction, max_elevation)
