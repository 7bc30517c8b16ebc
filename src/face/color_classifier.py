"""
Per-face color classification.

Samples the raster at each predicted tile center and classifies the samples
against the six reference colors in two passes:

1. Chroma-only nearest neighbour (U, V), insensitive to exposure.
2. Full YUV nearest neighbour after adding a luminance bias estimated from
   the pass-1 result, excluding the warm pair that pass 1 tends to confuse.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from src.common.colors import TileColor, rgb_to_yuv
from src.common.types import ImageBuffer, Point
from src.face.config_loader import ColorConfig
from src.face.types import ColorClassification, Lattice
from src.utils.constants import GRID_SIZE

logger = logging.getLogger(__name__)

# cv2 conversion to RGB keyed by (channels, raster channel order)
_TO_RGB_CODES = {
    (3, "bgr"): cv2.COLOR_BGR2RGB,
    (4, "bgr"): cv2.COLOR_BGRA2RGB,
    (4, "rgb"): cv2.COLOR_RGBA2RGB,
    (1, "bgr"): cv2.COLOR_GRAY2RGB,
    (1, "rgb"): cv2.COLOR_GRAY2RGB,
}


def sample_tile_color(
    image: ImageBuffer,
    center: Point,
    half_window: int,
    channel_order: str = "bgr",
) -> np.ndarray:
    """
    Mean RGB color of the (2h x 2h) window centered on a tile.

    Args:
        image: Source raster.
        center: Predicted tile center (pixel coordinates).
        half_window: Half side of the averaging window.
        channel_order: Channel order of the raster ("bgr" or "rgb").

    Returns:
        Array [R, G, B] as float64. A zero sample is returned when the
        window leaves the raster.
    """
    window = image.sample_window(center, half_window)
    if window is None:
        logger.warning(
            f"Sample window at ({center.x:.0f}, {center.y:.0f}) exceeds raster "
            f"{image.width}x{image.height}, using zero sample"
        )
        return np.zeros(3, dtype=np.float64)

    window = np.ascontiguousarray(window)
    code = _TO_RGB_CODES.get((image.channels, channel_order))
    if code is not None:
        window = cv2.cvtColor(window, code)

    mean = cv2.mean(window)
    return np.array(mean[:3], dtype=np.float64)


def _nearest_color(yuv: np.ndarray, use_luma: bool) -> Tuple[TileColor, float]:
    """Return (color, distance) of the closest reference; ties keep the first."""
    best_color = None
    best_distance = math.inf
    for color in TileColor:
        delta = color.yuv - yuv
        if not use_luma:
            delta = delta[1:]
        distance = float(np.sqrt(np.sum(delta * delta)))
        if distance < best_distance:
            best_color = color
            best_distance = distance
    return best_color, best_distance


def classify_face_colors(
    measured: List[List[np.ndarray]],
    excluded_from_bias: Optional[Sequence[TileColor]] = None,
) -> ColorClassification:
    """
    Classify a 3x3 grid of measured RGB samples.

    Args:
        measured: RGB samples indexed [n][m].
        excluded_from_bias: Pass-1 colors ignored by the luminance bias
            estimate. Defaults to (RED, ORANGE).

    Returns:
        ColorClassification with final colors, pass-2 errors and diagnostics.

    Example:
        >>> samples = [[TileColor.RED.rgb_array] * 3 for _ in range(3)]
        >>> result = classify_face_colors(samples)
        >>> result.observed[0][0]
        <TileColor.RED: ('R', (180.0, 20.0, 30.0))>
    """
    if excluded_from_bias is None:
        excluded_from_bias = (TileColor.RED, TileColor.ORANGE)
    excluded = set(excluded_from_bias)

    yuv = [[rgb_to_yuv(measured[n][m]) for m in range(GRID_SIZE)] for n in range(GRID_SIZE)]

    # Pass 1: chroma only
    observed = [
        [_nearest_color(yuv[n][m], use_luma=False)[0] for m in range(GRID_SIZE)]
        for n in range(GRID_SIZE)
    ]

    luma_offsets = [
        observed[n][m].yuv[0] - yuv[n][m][0]
        for n in range(GRID_SIZE)
        for m in range(GRID_SIZE)
        if observed[n][m] not in excluded
    ]
    luminance_bias = float(np.mean(luma_offsets)) if luma_offsets else 0.0

    color_error_before = sum(
        float(np.linalg.norm(observed[n][m].yuv - yuv[n][m]))
        for n in range(GRID_SIZE)
        for m in range(GRID_SIZE)
    )

    # Pass 2: full YUV with bias added to measured luma
    color_errors = [[0.0] * GRID_SIZE for _ in range(GRID_SIZE)]
    reclassified = 0
    for n in range(GRID_SIZE):
        for m in range(GRID_SIZE):
            biased = yuv[n][m].copy()
            biased[0] += luminance_bias
            color, distance = _nearest_color(biased, use_luma=True)
            if color != observed[n][m]:
                logger.debug(
                    f"Tile [{n}][{m}] reclassified {observed[n][m].name} -> {color.name}"
                )
                observed[n][m] = color
                reclassified += 1
            color_errors[n][m] = distance

    color_error_after = sum(sum(row) for row in color_errors)

    logger.debug(
        f"Luminance bias={luminance_bias:.1f}, error before={color_error_before:.1f}, "
        f"after={color_error_after:.1f}, reclassified={reclassified}"
    )

    return ColorClassification(
        observed=observed,
        measured=[[np.asarray(measured[n][m], dtype=np.float64)[:3] for m in range(GRID_SIZE)]
                  for n in range(GRID_SIZE)],
        color_errors=color_errors,
        luminance_bias=luminance_bias,
        color_error_before=color_error_before,
        color_error_after=color_error_after,
        reclassified_count=reclassified,
    )


def classify_face(
    image: Union[ImageBuffer, np.ndarray], lattice: Lattice, config: ColorConfig
) -> ColorClassification:
    """
    Sample every predicted tile center of a solved lattice and classify it.

    Args:
        image: Source raster (numpy array or ImageBuffer).
        lattice: Solved face lattice.
        config: Sampling window, channel order and bias exclusions.

    Returns:
        ColorClassification for the face.
    """
    if not isinstance(image, ImageBuffer):
        image = ImageBuffer(data=image)

    measured = [
        [
            sample_tile_color(
                image,
                lattice.tile_center(n, m),
                config.sample_half_window,
                config.raster_channel_order,
            )
            for m in range(GRID_SIZE)
        ]
        for n in range(GRID_SIZE)
    ]
    return classify_face_colors(measured, config.bias_excluded_colors)


def _rotate_right_32(value: int, shift: int) -> int:
    value &= 0xFFFFFFFF
    return ((value >> shift) | (value << (32 - shift))) & 0xFFFFFFFF


def compute_face_hash(tile_array: List[List[TileColor]]) -> int:
    """
    Fingerprint of a face's tile colors.

    Folds each tile's stable color hash into the running value with XOR
    after a 32-bit rotate right by one, scanning n then m. Identical color
    layouts always produce the same value, across processes.
    """
    hash_code = 0
    for n in range(GRID_SIZE):
        for m in range(GRID_SIZE):
            hash_code = tile_array[n][m].stable_hash ^ _rotate_right_32(hash_code, 1)
    return hash_code
