"""
Cube Module: cube-wide color assignment.

Re-derives a consistent color for all 54 tiles once six faces are solved
and exports the result for a two-phase solver.
"""

from src.cube.color_assignment import SearchState, assign_cube_colors
from src.cube.config_loader import CubeConfig, get_default_config, load_config
from src.cube.processor import CubeColorProcessor, process_cube
from src.cube.types import (
    CubeAssignmentResult,
    CubeFailureReason,
    FaceName,
    TileLocation,
)
from src.cube.validation import is_tile_colors_valid, to_facelet_string

__all__ = [
    "CubeColorProcessor",
    "process_cube",
    "assign_cube_colors",
    "SearchState",
    "CubeConfig",
    "load_config",
    "get_default_config",
    "CubeAssignmentResult",
    "CubeFailureReason",
    "FaceName",
    "TileLocation",
    "is_tile_colors_valid",
    "to_facelet_string",
]
