"""
Reference tile colors and color-space helpers.

The six reference colors are fixed RGB triples calibrated against real
cube stickers under daylight. Per-face classification compares measured
samples against them in YUV space; the cube-wide optimizer compares them
in RGB space.
"""

import zlib
from enum import Enum
from typing import Sequence, Tuple, Union

import numpy as np

ColorLike = Union[Sequence[float], np.ndarray]

# RGB -> YUV (BT.601 analog). Rows produce Y, U, V.
_RGB_TO_YUV = np.array(
    [
        [0.299, 0.587, 0.114],
        [-0.147, -0.289, 0.436],
        [0.615, -0.515, -0.100],
    ],
    dtype=np.float64,
)


class TileColor(Enum):
    """The six cube tile colors with their reference RGB values."""

    RED = ("R", (180.0, 20.0, 30.0))
    ORANGE = ("O", (240.0, 120.0, 0.0))
    YELLOW = ("Y", (230.0, 230.0, 80.0))
    GREEN = ("G", (0.0, 140.0, 60.0))
    BLUE = ("B", (0.0, 60.0, 220.0))
    WHITE = ("W", (225.0, 255.0, 255.0))

    def __init__(self, symbol: str, rgb: Tuple[float, float, float]):
        self.symbol = symbol
        self.rgb = rgb

    @property
    def rgb_array(self) -> np.ndarray:
        """Reference color as a float64 array [R, G, B]."""
        return np.array(self.rgb, dtype=np.float64)

    @property
    def yuv(self) -> np.ndarray:
        """Reference color converted to [Y, U, V]."""
        return rgb_to_yuv(self.rgb)

    @property
    def stable_hash(self) -> int:
        """Process-independent 32-bit hash of the color (CRC32 of its name)."""
        return zlib.crc32(self.name.encode("ascii")) & 0xFFFFFFFF

    @classmethod
    def from_symbol(cls, symbol: str) -> "TileColor":
        """
        Look up a color by its one-letter symbol.

        Raises:
            ValueError: If no color uses the symbol.
        """
        for color in cls:
            if color.symbol == symbol.upper():
                return color
        raise ValueError(f"Unknown tile color symbol: {symbol!r}")


def rgb_to_yuv(rgb: ColorLike) -> np.ndarray:
    """
    Convert an RGB triple to YUV.

    Only the first three components are used, so RGBA samples can be
    passed directly.

    Args:
        rgb: Color as [R, G, B] (or [R, G, B, A]) in range 0-255.

    Returns:
        Array [Y, U, V] as float64.

    Example:
        >>> rgb_to_yuv([255, 255, 255])[0]
        255.0
    """
    rgb_arr = np.asarray(rgb, dtype=np.float64)[:3]
    return _RGB_TO_YUV @ rgb_arr


def color_distance(color1: ColorLike, color2: ColorLike) -> float:
    """
    Euclidean distance between the first three components of two colors.

    Args:
        color1: First color (RGB or YUV, extra components ignored).
        color2: Second color in the same space.

    Returns:
        Distance as a non-negative float.
    """
    a = np.asarray(color1, dtype=np.float64)[:3]
    b = np.asarray(color2, dtype=np.float64)[:3]
    return float(np.linalg.norm(a - b))
