"""Latitude-driven temperature and baseline precipitation."""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .config import ClimateConfig, RainfallConfig

# Difference between °C and K
CELSIUS_TO_KELVIN = 273.15

# Metres per kilometre
KM_TO_M = 1000.0

# Lowest representable temperature above absolute zero, in °C
MIN_TEMPERATURE = math.nextafter(-CELSIUS_TO_KELVIN, math.inf)


def latitude(y: ArrayLike, height: int) -> NDArray[np.float64]:
    """Latitude in radians of tile row ``y``; row 0 is at -π/2."""
    return (np.asarray(y, dtype=np.float64) / height - 0.5) * math.pi


def sea_level_temperature(lat: ArrayLike, config: ClimateConfig) -> NDArray[np.float64]:
    """Sea-level temperature (°C) at a latitude in radians."""
    sin_lat = np.sin(np.asarray(lat, dtype=np.float64))
    spread = config.equator_temperature - config.pole_temperature
    return config.equator_temperature - spread * sin_lat * sin_lat


def compute_temperature(
    elevation: NDArray[np.float64],
    config: ClimateConfig,
) -> NDArray[np.float64]:
    """Temperature field from latitude and elevation.

    Land tiles lose ``elevation * lapse_rate``; ocean tiles keep their
    sea-level temperature. Results stay strictly above absolute zero.

    Args:
        elevation: Elevation field (m), shape (height, width).
        config: Climate parameters.

    Returns:
        Temperature field in °C.
    """
    height = elevation.shape[0]
    lat = latitude(np.arange(height), height)
    temperature = np.broadcast_to(
        sea_level_temperature(lat, config)[:, np.newaxis], elevation.shape
    ).copy()
    land = elevation > 0.0
    temperature[land] -= elevation[land] * config.temperature_lapse_rate
    return np.maximum(temperature, MIN_TEMPERATURE)


def _peak(lat: NDArray[np.float64], center: float, peak: float, evenness: float):
    return peak / (1.0 + ((lat - center) / evenness) ** 2)


def baseline_rainfall(lat: ArrayLike, climate: ClimateConfig, rainfall: RainfallConfig):
    """Precipitation (mm/yr) from latitude alone.

    Sums a peak at the equator and two mirrored peaks at the low pressure
    latitudes.
    """
    lat = np.asarray(lat, dtype=np.float64)
    low = math.radians(climate.low_pressure_latitude)
    mid = rainfall.mid_latitude_rainfall
    mid_evenness = rainfall.mid_latitude_rainfall_evenness
    return (
        _peak(lat, 0.0, rainfall.equator_rainfall, rainfall.equator_rainfall_evenness)
        + _peak(lat, low, mid, mid_evenness)
        + _peak(lat, -low, mid, mid_evenness)
    )


def compute_precipitation(
    height: int,
    width: int,
    climate: ClimateConfig,
    rainfall: RainfallConfig,
) -> NDArray[np.float64]:
    """Latitude-only precipitation field, clamped to be non-negative."""
    lat = latitude(np.arange(height), height)
    rows = np.maximum(baseline_rainfall(lat, climate, rainfall), 0.0)
    return np.broadcast_to(rows[:, np.newaxis], (height, width)).copy()
