"""Map generation parameters and TOML loading."""

import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

from .biomes import TileType, default_tile_types


class ClimateConfig(BaseModel, frozen=True):
    """Latitude and temperature parameters."""

    high_pressure_latitude: float = Field(
        default=30.0,
        description="Latitude (degrees, both hemispheres) of high pressure; "
        "wind direction changes here",
    )
    low_pressure_latitude: float = Field(
        default=60.0,
        description="Latitude (degrees, both hemispheres) of low pressure; "
        "wind direction changes and precipitation peaks here",
    )
    equator_temperature: float = Field(
        default=30.0, description="Sea-level temperature at the equator (°C)"
    )
    pole_temperature: float = Field(
        default=-30.0, description="Sea-level temperature at the poles (°C)"
    )
    temperature_lapse_rate: float = Field(
        default=0.0065, description="Temperature drop with elevation (K/m)"
    )


class RainfallConfig(BaseModel, frozen=True):
    """Latitude and ocean-distance precipitation parameters."""

    equator_rainfall: float = Field(
        default=2000.0, description="Precipitation peak at the equator (mm/yr)"
    )
    equator_rainfall_evenness: float = Field(
        default=0.15,
        description="Width of the equatorial peak (radians of latitude); "
        "higher means precipitation falls off more slowly",
    )
    mid_latitude_rainfall: float = Field(
        default=1000.0,
        description="Precipitation peak at the low pressure latitude (mm/yr)",
    )
    mid_latitude_rainfall_evenness: float = Field(
        default=0.2,
        description="Width of the mid-latitude peaks (radians of latitude)",
    )
    ocean_e_folding_distance: float = Field(
        default=1500.0,
        description="Distance from the ocean (km) over which precipitation "
        "falls by a factor of e",
    )


class OrographyConfig(BaseModel, frozen=True):
    """Orographic (wind and elevation driven) precipitation parameters."""

    condensation_rate_multiplier: float = Field(
        default=20000.0, description="Multiplier for orographic precipitation"
    )
    saturation_pressure_const1: float = Field(
        default=17.67,
        description="Saturation vapour pressure constant; increases orographic "
        "precipitation",
    )
    saturation_pressure_const2: float = Field(
        default=243.5,
        description="Saturation vapour pressure constant (°C); decreases "
        "orographic precipitation",
    )
    moisture_scale_height_divisor: float = Field(
        default=5000.0,
        description="Moisture scale height constant; decreases orographic "
        "precipitation",
    )


class RiverConfig(BaseModel, frozen=True):
    """River formation parameters."""

    rainfall_multiplier: float = Field(
        default=0.001,
        description="Higher values make rivers more likely as precipitation rises",
    )
    slope_multiplier: float = Field(
        default=10.0,
        description="Higher values make rivers more likely on steeper downslopes",
    )


class MapParameters(BaseModel, frozen=True):
    """Complete map generation configuration."""

    width: int = Field(default=128, description="Number of tiles on the X axis")
    height: int = Field(default=64, description="Number of tiles on the Y axis")
    wrap_x: bool = Field(default=True, description="Wrap the map on the X axis")
    wrap_y: bool = Field(default=False, description="Wrap the map on the Y axis")
    tile_scale_x: float = Field(default=100.0, description="Kilometres per tile on X")
    tile_scale_y: float = Field(default=100.0, description="Kilometres per tile on Y")
    ocean_fraction: float = Field(
        default=0.6, description="Fraction of tiles at or below sea level [0, 1)"
    )
    noise_scale: float = Field(
        default=4.0,
        description="Noise units spanned by the longer map dimension; higher "
        "values give smaller features",
    )
    seed: int | None = Field(
        default=None, description="Random seed (None = derive from the clock)"
    )
    rotate_west: bool = Field(
        default=False,
        description="Rotate the planet west instead of east, flipping winds",
    )

    climate: ClimateConfig = Field(default_factory=ClimateConfig)
    rainfall: RainfallConfig = Field(default_factory=RainfallConfig)
    orography: OrographyConfig = Field(default_factory=OrographyConfig)
    rivers: RiverConfig = Field(default_factory=RiverConfig)
    tile_types: list[TileType] = Field(default_factory=default_tile_types)


def load_parameters(config_path: Path) -> MapParameters:
    """Load map parameters from a TOML file.

    Args:
        config_path: Path to the TOML config file.

    Returns:
        Parsed MapParameters.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        tomllib.TOMLDecodeError: If TOML is malformed.
        pydantic.ValidationError: If values have the wrong types.
    """
    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return MapParameters.model_validate(data)


def configs_dir() -> Path:
    """Directory holding the bundled TOML configs."""
    return Path(__file__).parent / "configs"


def list_configs() -> list[str]:
    """List available config names."""
    directory = configs_dir()
    if not directory.exists():
        return []
    return sorted(p.stem for p in directory.glob("*.toml"))


def find_config(name: str) -> Path:
    """Find a config file by name or path.

    A name containing a path separator or ending in ``.toml`` is used as a
    path; otherwise it is looked up among the bundled configs.

    Raises:
        FileNotFoundError: If config file is not found.
    """
    if "/" in name or name.endswith(".toml"):
        path = Path(name)
        if path.exists():
            return path
        raise FileNotFoundError(f"Config file not found: {name}")

    config_path = configs_dir() / f"{name}.toml"
    if config_path.exists():
        return config_path

    raise FileNotFoundError(
        f"Config '{name}' not found in {configs_dir()}. "
        f"Available configs: {list_configs()}"
    )
