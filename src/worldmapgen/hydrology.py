"""Hydrology: ocean-distance rainfall attenuation and orographic rainfall."""

import math
from collections import deque

import numpy as np
from numpy.typing import NDArray

from .climate import CELSIUS_TO_KELVIN, KM_TO_M, latitude, sea_level_temperature
from .config import ClimateConfig, OrographyConfig
from .grid import UNKNOWN_OCEAN
from .topology import GridTopology


def compute_nearest_ocean(
    elevation: NDArray[np.float64],
    topology: GridTopology,
) -> tuple[NDArray[np.int64], NDArray[np.int64]]:
    """Find the nearest ocean tile of every tile.

    Label-correcting relaxation seeded with every ocean tile: a tile is
    re-queued whenever a neighbour offers a strictly closer ocean tile, so
    it may be processed more than once. Distances are physical and respect
    wrapping.

    Args:
        elevation: Elevation field; tiles <= 0 are ocean.
        topology: Grid shape, wrapping and tile scale.

    Returns:
        Tuple of (nearest_x, nearest_y) arrays, UNKNOWN_OCEAN where no ocean
        tile is reachable.
    """
    shape = elevation.shape
    nearest_x = np.full(shape, UNKNOWN_OCEAN, dtype=np.int64)
    nearest_y = np.full(shape, UNKNOWN_OCEAN, dtype=np.int64)

    ocean_ys, ocean_xs = np.nonzero(elevation <= 0.0)
    nearest_x[ocean_ys, ocean_xs] = ocean_xs
    nearest_y[ocean_ys, ocean_xs] = ocean_ys

    queue: deque[tuple[int, int]] = deque(zip(ocean_xs.tolist(), ocean_ys.tolist()))

    while queue:
        x, y = queue.popleft()
        ox = int(nearest_x[y, x])
        oy = int(nearest_y[y, x])

        for nx, ny in topology.neighbors(x, y):
            current_x = int(nearest_x[ny, nx])
            if current_x != UNKNOWN_OCEAN:
                current = topology.distance_squared_km(
                    nx, ny, current_x, int(nearest_y[ny, nx])
                )
                if current <= topology.distance_squared_km(nx, ny, ox, oy):
                    continue
            nearest_x[ny, nx] = ox
            nearest_y[ny, nx] = oy
            queue.append((nx, ny))

    return nearest_x, nearest_y


def attenuate_rainfall(
    precipitation: NDArray[np.float64],
    elevation: NDArray[np.float64],
    nearest_x: NDArray[np.int64],
    nearest_y: NDArray[np.int64],
    topology: GridTopology,
    e_folding_distance: float,
) -> NDArray[np.float64]:
    """Reduce land precipitation with distance from the ocean.

    Land tiles are divided by ``exp(distance / e_folding_distance)``; tiles
    without a known nearest ocean keep their precipitation.

    Returns:
        Attenuated precipitation field.
    """
    result = precipitation.copy()
    target = (elevation > 0.0) & (nearest_x != UNKNOWN_OCEAN)
    if not np.any(target):
        return result

    ys, xs = np.nonzero(target)
    distance = topology.distance_km_array(xs, ys, nearest_x[target], nearest_y[target])
    result[target] = result[target] / np.exp(distance / e_folding_distance)
    return result


def wind_blows_east(lat: float, climate: ClimateConfig, rotate_west: bool) -> bool:
    """Prevailing wind direction at a latitude in radians.

    Between the high and low pressure latitudes the wind blows east;
    elsewhere it blows west. A westward-rotating planet swaps the two.
    """
    lat_deg = abs(math.degrees(lat))
    between = climate.high_pressure_latitude <= lat_deg <= climate.low_pressure_latitude
    return between != rotate_west


def apply_orographic_rainfall(
    precipitation: NDArray[np.float64],
    elevation: NDArray[np.float64],
    temperature: NDArray[np.float64],
    topology: GridTopology,
    climate: ClimateConfig,
    orography: OrographyConfig,
    rotate_west: bool,
) -> NDArray[np.float64]:
    """Add rainfall where wind is forced up (or remove it where it descends).

    Each row is swept downwind. A land tile gains
    ``multiplier * exp(saturation - elevation * divisor * lapse / T²) * rise``
    where ``saturation = c1 * T_sea / (c2 + T_sea)``, ``T`` is the tile's
    temperature in kelvins and ``rise`` is the elevation gain from the
    upwind tile (ocean counts as 0 m) per metre of horizontal distance.
    The first tile of a row is skipped unless the row wraps, in which case
    the last tile of the sweep is upwind of it.

    Args:
        precipitation: Precipitation field to add to.
        elevation: Elevation field (m).
        temperature: Temperature field (°C).
        topology: Grid shape, wrapping and tile scale.
        climate: Climate parameters.
        orography: Orographic precipitation parameters.
        rotate_west: Whether the planet rotates west.

    Returns:
        New precipitation field, clamped to be non-negative.
    """
    height, width = elevation.shape
    result = precipitation.copy()

    lat = latitude(np.arange(height), height)
    sea_temp = sea_level_temperature(lat, climate)
    saturation = (
        orography.saturation_pressure_const1
        * sea_temp
        / (orography.saturation_pressure_const2 + sea_temp)
    )
    moisture = orography.moisture_scale_height_divisor * climate.temperature_lapse_rate
    run_m = topology.scale_x * KM_TO_M

    for y in range(height):
        if wind_blows_east(float(lat[y]), climate, rotate_west):
            order = list(range(width))
        else:
            order = list(range(width - 1, -1, -1))

        row_elevation = elevation[y].tolist()
        kelvin = temperature[y] + CELSIUS_TO_KELVIN
        row_rate = np.exp(saturation[y] - elevation[y] * moisture / (kelvin * kelvin)).tolist()

        if topology.wrap_x:
            prev = max(row_elevation[order[-1]], 0.0)
            sweep = order
        else:
            prev = max(row_elevation[order[0]], 0.0)
            sweep = order[1:]

        for x in sweep:
            e = row_elevation[x]
            if e > 0.0:
                result[y, x] += (
                    orography.condensation_rate_multiplier * row_rate[x] * (e - prev) / run_m
                )
            prev = max(e, 0.0)

    return np.maximum(result, 0.0)
