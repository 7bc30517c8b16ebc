"""
Cube-level validity checks and export.
"""

import logging
from collections import Counter
from typing import Dict, Tuple

from src.common.colors import TileColor
from src.cube.types import FACELET_ORDER, FaceName, TileArray
from src.utils.constants import CENTER_INDEX, GRID_SIZE, TILES_PER_COLOR

logger = logging.getLogger(__name__)


def is_tile_colors_valid(tile_arrays: Dict[FaceName, TileArray]) -> Tuple[bool, str]:
    """
    Check that a six-face color assignment describes a plausible cube.

    Every face must be present and fully colored, each color must appear
    exactly nine times and the six center tiles must be distinct.

    Args:
        tile_arrays: 3x3 tile colors per face, indexed [n][m].

    Returns:
        Tuple of (is_valid, reason).

    Example:
        >>> valid, reason = is_tile_colors_valid(result.tile_arrays)
        >>> print(reason)
        Valid
    """
    missing = [face.name for face in FaceName if face not in tile_arrays]
    if missing:
        return False, f"Missing faces: {', '.join(missing)}"

    counts: Counter = Counter()
    for face in FaceName:
        grid = tile_arrays[face]
        if len(grid) != GRID_SIZE or any(len(row) != GRID_SIZE for row in grid):
            return False, f"Face {face.name} is not a 3x3 grid"
        for row in grid:
            for color in row:
                if color is None:
                    return False, f"Face {face.name} has unassigned tiles"
                counts[color] += 1

    wrong = [f"{c.name}={counts[c]}" for c in TileColor if counts[c] != TILES_PER_COLOR]
    if wrong:
        return False, f"Color counts are not {TILES_PER_COLOR} each: {', '.join(wrong)}"

    centers = [tile_arrays[face][CENTER_INDEX][CENTER_INDEX] for face in FaceName]
    if len(set(centers)) != len(centers):
        return False, "Two faces share a center color"

    return True, "Valid"


def to_facelet_string(tile_arrays: Dict[FaceName, TileArray]) -> str:
    """
    Export the cube as a 54-character facelet string.

    Faces are written in U R F D L B order, each face with m as the outer
    and n as the inner index. Every tile is written as the letter of the
    face whose center carries its color.

    Raises:
        ValueError: If the tile arrays do not form a valid cube.
    """
    valid, reason = is_tile_colors_valid(tile_arrays)
    if not valid:
        raise ValueError(f"Cannot export invalid cube: {reason}")

    face_of_color = {
        tile_arrays[face][CENTER_INDEX][CENTER_INDEX]: face for face in FaceName
    }

    chars = []
    for face in FACELET_ORDER:
        grid = tile_arrays[face]
        for m in range(GRID_SIZE):
            for n in range(GRID_SIZE):
                chars.append(face_of_color[grid[n][m]].symbol)

    facelets = "".join(chars)
    logger.debug(f"Facelet string: {facelets}")
    return facelets
