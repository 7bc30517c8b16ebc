"""
Common type definitions for the cube state reconstruction engine.

Pydantic value types shared by the face and cube modules: the source raster
the tile colors are sampled from, and sub-pixel 2D points for tile centers
and lattice predictions.
"""

from typing import Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, Field, field_validator

VALID_CHANNEL_COUNTS = (1, 3, 4)


class ImageBuffer(BaseModel):
    """
    Validated source raster in OpenCV layout.

    Attributes:
        data: uint8 array of shape (H, W) or (H, W, C) with C in {1, 3, 4}.

    Example:
        >>> frame = ImageBuffer(data=cv2.imread("frame.png"))
        >>> window = frame.sample_window(Point(x=120.4, y=87.9), 10)
    """

    data: np.ndarray = Field(..., description="Raster data as numpy array")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("data")
    @classmethod
    def _validate_raster(cls, v: np.ndarray) -> np.ndarray:
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")
        if v.size == 0:
            raise ValueError("Raster is empty")
        if v.ndim not in (2, 3):
            raise ValueError(f"Expected a 2D or 3D raster, got shape {v.shape}")
        if v.ndim == 3 and v.shape[2] not in VALID_CHANNEL_COUNTS:
            raise ValueError(f"Expected 1, 3, or 4 channels, got {v.shape[2]}")
        if v.dtype != np.uint8:
            raise ValueError(f"Expected uint8 raster, got {v.dtype}")
        return v

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """1 for grayscale, otherwise the size of the last axis."""
        return 1 if self.data.ndim == 2 else int(self.data.shape[2])

    def sample_window(self, center: "Point", half_size: int) -> Optional[np.ndarray]:
        """
        Extract the square window of side 2*half_size centered on a point.

        The window spans rows [y - h, y + h) and columns [x - h, x + h),
        with the center truncated to integer pixel coordinates.

        Args:
            center: Window center in pixel coordinates.
            half_size: Half of the window side length.

        Returns:
            View into the raster, or None if any part of the window falls
            outside it.
        """
        x = int(center.x)
        y = int(center.y)
        top, bottom = y - half_size, y + half_size
        left, right = x - half_size, x + half_size

        if top < 0 or left < 0 or bottom > self.height or right > self.width:
            return None

        return self.data[top:bottom, left:right]

    def __repr__(self) -> str:
        return f"ImageBuffer(shape={self.data.shape}, dtype={self.data.dtype})"


class Point(BaseModel):
    """
    Sub-pixel 2D point in raster coordinates (x right, y down).

    Example:
        >>> Point.from_numpy(np.array([150, 250])).to_tuple()
        (150.0, 250.0)
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v: Union[int, float, np.number]) -> float:
        """Accept Python and numpy numeric scalars."""
        if isinstance(v, (int, float, np.number)):
            return float(v)
        raise ValueError(f"Coordinate must be numeric, got {type(v)}")

    @classmethod
    def from_numpy(cls, arr: np.ndarray) -> "Point":
        """
        Create a Point from an array of shape (2,).

        Raises:
            ValueError: If the array shape is not (2,).
        """
        arr = np.asarray(arr)
        if arr.shape != (2,):
            raise ValueError(f"Expected array of shape (2,), got {arr.shape}")
        return cls(x=float(arr[0]), y=float(arr[1]))

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def __repr__(self) -> str:
        return f"Point(x={self.x:.1f}, y={self.y:.1f})"
