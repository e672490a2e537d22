"""Procedural tile-based planetary map generation."""

from .biomes import TileType, ValueRange, classify_biomes, default_tile_types
from .config import (
    ClimateConfig,
    MapParameters,
    OrographyConfig,
    RainfallConfig,
    RiverConfig,
    find_config,
    load_parameters,
)
from .exceptions import InvalidParametersError, MapFileError, MapGenError
from .generator import GenerationContext, GenerationResult, generate_map
from .grid import NO_TILE_TYPE, Tile, TileGrid
from .persistence import load_map, save_map
from .rivers import CornerGrid, Direction, RiverNetwork
from .topology import GridTopology
from .validation import (
    ParameterWarning,
    ValidationResult,
    check_parameters,
    clamp_parameters,
)

__all__ = [
    # Parameters
    "MapParameters",
    "ClimateConfig",
    "RainfallConfig",
    "OrographyConfig",
    "RiverConfig",
    "TileType",
    "ValueRange",
    "default_tile_types",
    "load_parameters",
    "find_config",
    # Validation
    "clamp_parameters",
    "check_parameters",
    "ValidationResult",
    "ParameterWarning",
    # Generation
    "GenerationContext",
    "GenerationResult",
    "generate_map",
    "classify_biomes",
    # Data
    "GridTopology",
    "Tile",
    "TileGrid",
    "NO_TILE_TYPE",
    "CornerGrid",
    "Direction",
    "RiverNetwork",
    # Persistence
    "save_map",
    "load_map",
    # Exceptions
    "MapGenError",
    "InvalidParametersError",
    "MapFileError",
]
