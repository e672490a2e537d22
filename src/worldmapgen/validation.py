"""Parameter validation: clamping pre-pass and configuration warnings."""

import math
import sys
from typing import NamedTuple

import structlog

from .biomes import TileType, ValueRange, max_elevation
from .climate import MIN_TEMPERATURE
from .config import MapParameters

logger = structlog.get_logger()

FLOAT_MAX = sys.float_info.max

# Smallest positive float, used to keep divisors away from zero
EPSILON = math.ulp(0.0)

# Minimum gap (degrees C) between -saturation_pressure_const2 and any
# sea-level temperature
SATURATION_MARGIN = 1.0


class ParameterWarning(NamedTuple):
    """A suspicious but legal parameter value."""

    field: str
    message: str


class ValidationResult:
    """Result of parameter validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[ParameterWarning] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, field: str, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(ParameterWarning(field, message))


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _clamp_range(value_range: ValueRange, high: float = math.inf) -> ValueRange:
    low = _clamp(value_range.min, -math.inf, high)
    return ValueRange(min=low, max=_clamp(value_range.max, low, high))


def _clamp_tile_type(tile_type: TileType) -> TileType:
    return tile_type.model_copy(
        update={
            # The highest elevation bound scales the heightmap, so keep it finite
            "elevation": [_clamp_range(r, FLOAT_MAX) for r in tile_type.elevation],
            "temperature": [_clamp_range(r) for r in tile_type.temperature],
            "precipitation": [_clamp_range(r) for r in tile_type.precipitation],
        }
    )


def clamp_parameters(params: MapParameters) -> MapParameters:
    """Restrict parameters to values generation can handle.

    Never fails and never mutates ``params``.

    Args:
        params: Parameters as supplied.

    Returns:
        A clamped copy of the parameters.
    """
    width = max(params.width, 1)
    height = max(params.height, 1)
    cells = width * height

    climate = params.climate
    high_lat = _clamp(climate.high_pressure_latitude, 0.0, 90.0)
    low_lat = _clamp(climate.low_pressure_latitude, high_lat, 90.0)
    equator_temp = max(climate.equator_temperature, MIN_TEMPERATURE)
    pole_temp = max(climate.pole_temperature, MIN_TEMPERATURE)

    rainfall = params.rainfall
    e_folding = rainfall.ocean_e_folding_distance
    if e_folding == 0.0:
        e_folding = EPSILON

    # The saturation pressure term divides by (const2 + T); keep -const2 at
    # least SATURATION_MARGIN beyond the end of the sea-level temperature
    # range farther from zero, which keeps T / (const2 + T) below 1
    const2 = params.orography.saturation_pressure_const2
    low_temp = min(equator_temp, pole_temp)
    high_temp = max(equator_temp, pole_temp)
    if low_temp - SATURATION_MARGIN < -const2 < high_temp + SATURATION_MARGIN:
        if high_temp >= -low_temp:
            const2 = -(high_temp + SATURATION_MARGIN)
        else:
            const2 = SATURATION_MARGIN - low_temp

    return params.model_copy(
        update={
            "width": width,
            "height": height,
            "tile_scale_x": _clamp(params.tile_scale_x, EPSILON, FLOAT_MAX / width),
            "tile_scale_y": _clamp(params.tile_scale_y, EPSILON, FLOAT_MAX / height),
            "ocean_fraction": _clamp(params.ocean_fraction, 0.0, 1.0 - 1.0 / cells),
            "climate": climate.model_copy(
                update={
                    "high_pressure_latitude": high_lat,
                    "low_pressure_latitude": low_lat,
                    "equator_temperature": equator_temp,
                    "pole_temperature": pole_temp,
                }
            ),
            "rainfall": rainfall.model_copy(
                update={
                    "equator_rainfall": max(rainfall.equator_rainfall, 0.0),
                    "mid_latitude_rainfall": max(rainfall.mid_latitude_rainfall, 0.0),
                    # Evenness is squared, so negative values need not be kept
                    "equator_rainfall_evenness": max(
                        rainfall.equator_rainfall_evenness, EPSILON
                    ),
                    "mid_latitude_rainfall_evenness": max(
                        rainfall.mid_latitude_rainfall_evenness, EPSILON
                    ),
                    "ocean_e_folding_distance": e_folding,
                }
            ),
            "orography": params.orography.model_copy(
                update={"saturation_pressure_const2": const2}
            ),
            "rivers": params.rivers.model_copy(
                update={
                    "rainfall_multiplier": max(params.rivers.rainfall_multiplier, 0.0),
                    "slope_multiplier": max(params.rivers.slope_multiplier, 0.0),
                }
            ),
            "tile_types": [_clamp_tile_type(t) for t in params.tile_types],
        }
    )


def check_parameters(params: MapParameters) -> ValidationResult:
    """Collect errors and warnings about a parameter set.

    Args:
        params: Parameters, normally already clamped.

    Returns:
        ValidationResult; errors make generation impossible, warnings flag
        values that invert real-world relationships.
    """
    result = ValidationResult()

    if params.width < 1 or params.height < 1:
        result.add_error(
            f"Map size must be positive, got {params.width}x{params.height}"
        )

    if not params.tile_types:
        result.add_error("At least one tile type is required")
    elif max_elevation(params.tile_types) <= 0.0:
        result.add_error(
            "The highest tile type elevation must be above sea level"
        )

    climate = params.climate
    if climate.pole_temperature > climate.equator_temperature:
        result.add_warning(
            "climate.pole_temperature",
            "Pole temperature is greater than equator temperature.",
        )
    if climate.temperature_lapse_rate < 0.0:
        result.add_warning(
            "climate.temperature_lapse_rate",
            "Temperature lapse rate is negative. Temperature will rise "
            "with elevation.",
        )
    if params.rainfall.ocean_e_folding_distance < 0.0:
        result.add_warning(
            "rainfall.ocean_e_folding_distance",
            "Precipitation e-folding distance from the ocean is negative. "
            "Precipitation will rise with distance from the ocean.",
        )
    if params.orography.condensation_rate_multiplier < 0.0:
        result.add_warning(
            "orography.condensation_rate_multiplier",
            "Condensation rate multiplier is negative. Orographic "
            "precipitation will be inverted.",
        )

    for i, tile_type in enumerate(params.tile_types):
        prefix = f"tile_types[{i}]"
        if any(r.min < 0.0 < r.max for r in tile_type.elevation):
            result.add_warning(
                f"{prefix}.elevation",
                f"Tile type '{tile_type.name}' includes both positive and "
                "negative elevations, mixing land and ocean.",
            )
        for attribute in ("elevation", "temperature", "precipitation"):
            if not getattr(tile_type, attribute):
                result.add_warning(
                    f"{prefix}.{attribute}",
                    f"Tile type '{tile_type.name}' has no {attribute} ranges "
                    "and can never be assigned.",
                )

    for warning in result.warnings:
        logger.warning("parameter_warning", field=warning.field, message=warning.message)
    for error in result.errors:
        logger.error("parameter_error", message=error)

    return result
