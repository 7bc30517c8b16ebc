"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import numpy as np
import pytest

from src.common.colors import TileColor
from src.cube.types import FaceName

GRID_ORIGIN = 100.0
GRID_SPACING = 50.0
TILE_HALF_SIZE = 20


def _square(cx: float, cy: float, half: float = TILE_HALF_SIZE) -> np.ndarray:
    # Vertex order: top-left, top-right, bottom-right, bottom-left
    return np.array(
        [
            [cx - half, cy - half],
            [cx + half, cy - half],
            [cx + half, cy + half],
            [cx - half, cy + half],
        ],
        dtype=np.float64,
    )


def _grid_center(n: int, m: int):
    return GRID_ORIGIN + GRID_SPACING * n, GRID_ORIGIN + GRID_SPACING * m


@pytest.fixture
def make_square():
    """Factory for axis-aligned square tile candidates (40x40 px by default)."""
    return _square


@pytest.fixture
def grid_center():
    """Factory for the synthetic grid center of cell [n][m]."""
    return _grid_center


@pytest.fixture
def grid_squares():
    """
    Nine square candidates laid out on an exact grid.

    Origin (100, 100), spacing 50 px, alpha axis along +x, beta axis along +y.
    Returned as a dict keyed by (n, m).
    """
    return {
        (n, m): _square(*_grid_center(n, m)) for n in range(3) for m in range(3)
    }


@pytest.fixture
def face_colors():
    """A 3x3 face color layout indexed [n][m] using all six colors."""
    return [
        [TileColor.RED, TileColor.ORANGE, TileColor.YELLOW],
        [TileColor.GREEN, TileColor.BLUE, TileColor.WHITE],
        [TileColor.RED, TileColor.GREEN, TileColor.WHITE],
    ]


@pytest.fixture
def face_image(face_colors):
    """BGR raster with the face_colors tiles painted on the synthetic grid."""
    image = np.full((300, 300, 3), 128, dtype=np.uint8)
    for n in range(3):
        for m in range(3):
            cx, cy = (int(v) for v in _grid_center(n, m))
            r, g, b = face_colors[n][m].rgb
            image[
                cy - TILE_HALF_SIZE : cy + TILE_HALF_SIZE,
                cx - TILE_HALF_SIZE : cx + TILE_HALF_SIZE,
            ] = (b, g, r)
    return image


SOLVED_FACE_COLORS = {
    FaceName.UP: TileColor.WHITE,
    FaceName.DOWN: TileColor.YELLOW,
    FaceName.LEFT: TileColor.GREEN,
    FaceName.RIGHT: TileColor.BLUE,
    FaceName.FRONT: TileColor.RED,
    FaceName.BACK: TileColor.ORANGE,
}


@pytest.fixture
def solved_cube_colors():
    """Tile colors of a solved cube, per face, indexed [n][m]."""
    return {
        face: [[color] * 3 for _ in range(3)]
        for face, color in SOLVED_FACE_COLORS.items()
    }


@pytest.fixture
def scrambled_cube_colors(solved_cube_colors):
    """
    A cube with tiles exchanged between faces.

    Every color still appears nine times and the centers are untouched.
    UP[0][0] is RED and FRONT[0][0] is WHITE.
    """
    cube = {face: [row[:] for row in grid] for face, grid in solved_cube_colors.items()}
    swaps = [
        ((FaceName.UP, 0, 0), (FaceName.FRONT, 0, 0)),
        ((FaceName.DOWN, 2, 2), (FaceName.BACK, 0, 2)),
        ((FaceName.LEFT, 0, 1), (FaceName.RIGHT, 2, 1)),
        ((FaceName.UP, 2, 1), (FaceName.LEFT, 1, 0)),
    ]
    for (fa, na, ma), (fb, nb, mb) in swaps:
        cube[fa][na][ma], cube[fb][nb][mb] = cube[fb][nb][mb], cube[fa][na][ma]
    return cube


@pytest.fixture
def cube_samples():
    """Factory converting per-face tile colors into exact RGB samples."""

    def _samples(cube_colors):
        return {
            face: [[np.array(color.rgb, dtype=np.float64) for color in row] for row in grid]
            for face, grid in cube_colors.items()
        }

    return _samples
