"""
Shared Utilities

Constants used across the face and cube modules.
"""

from src.utils.constants import (
    CENTER_INDEX,
    GRID_SIZE,
    NUM_FACES,
    NUM_TILES,
    TILES_PER_COLOR,
    TILES_PER_FACE,
)

__all__ = [
    "CENTER_INDEX",
    "GRID_SIZE",
    "NUM_FACES",
    "NUM_TILES",
    "TILES_PER_COLOR",
    "TILES_PER_FACE",
]
