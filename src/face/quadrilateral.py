"""
Quadrilateral qualification for the Face module.

Validates raw polygon candidates produced by the contour detector and
derives the per-tile geometry (center, area, side-pair directions and
lengths) consumed by the layout and lattice stages.
"""

import logging
import math
from typing import List, Sequence

import cv2
import numpy as np

from src.common.types import Point
from src.face.config_loader import QuadrilateralConfig
from src.face.types import Quadrilateral, QuadrilateralStatus
from src.utils.constants import QUADRILATERAL_NUM_VERTICES

logger = logging.getLogger(__name__)


def line_length(p1: np.ndarray, p2: np.ndarray) -> float:
    """Euclidean distance between two 2D points."""
    return float(math.hypot(p2[0] - p1[0], p2[1] - p1[1]))


def triangle_area(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
    """
    Area of a triangle using Heron's formula.

    A negative radicand (collinear points plus floating point error) is
    clamped to zero.

    Example:
        >>> triangle_area(np.array([0, 0]), np.array([4, 0]), np.array([0, 3]))
        6.0
    """
    ab = line_length(a, b)
    bc = line_length(b, c)
    ca = line_length(c, a)
    s = (ab + bc + ca) / 2.0
    radicand = s * (s - ab) * (s - bc) * (s - ca)
    return math.sqrt(max(radicand, 0.0))


def quadrilateral_area(vertices: np.ndarray) -> float:
    """
    Area of a convex quadrilateral as two triangles sharing diagonal 0-2.

    Args:
        vertices: Array of shape (4, 2).

    Returns:
        Area in squared pixels.
    """
    v0, v1, v2, v3 = vertices
    return triangle_area(v0, v1, v2) + triangle_area(v0, v3, v2)


def _rotate_to_min_y(vertices: np.ndarray) -> np.ndarray:
    """Rotate vertex order so the first vertex with minimum Y comes first."""
    start = int(np.argmin(vertices[:, 1]))
    return np.roll(vertices, -start, axis=0)


def qualify_quadrilateral(
    quad: Quadrilateral, min_area: float, max_area: float
) -> QuadrilateralStatus:
    """
    Qualify a single candidate and fill in its derived geometry.

    Checks run in order and stop at the first failure:
    1. Centroid (always computed)
    2. Vertex count must be 4
    3. Polygon must be convex
    4. Area must lie in [min_area, max_area]
    5. Winding: after rotating the minimum-Y vertex to the front, vertex 1
       must not lie left of vertex 3
    6. Side-pair angles (radians), lengths and gamma ratio

    Args:
        quad: Candidate quadrilateral (modified in place).
        min_area: Minimum accepted area (px^2).
        max_area: Maximum accepted area (px^2).

    Returns:
        The status assigned to the quadrilateral.
    """
    if quad.num_vertices > 0:
        quad.center = Point.from_numpy(quad.vertices.mean(axis=0))

    if quad.num_vertices != QUADRILATERAL_NUM_VERTICES:
        quad.status = QuadrilateralStatus.NOT_4_POINTS
        return quad.status

    contour = quad.vertices.astype(np.float32).reshape(-1, 1, 2)
    if not cv2.isContourConvex(contour):
        quad.status = QuadrilateralStatus.NOT_CONVEX
        return quad.status

    quad.area = quadrilateral_area(quad.vertices)
    if quad.area < min_area or quad.area > max_area:
        quad.status = QuadrilateralStatus.AREA
        return quad.status

    quad.vertices = _rotate_to_min_y(quad.vertices)
    v0, v1, v2, v3 = quad.vertices

    # Coordinate comparison only; reliable for near axis-aligned tiles
    if v1[0] < v3[0]:
        quad.status = QuadrilateralStatus.CLOCKWISE
        return quad.status

    alpha_vec = (v1 - v0) + (v2 - v3)
    beta_vec = (v2 - v1) + (v3 - v0)
    quad.alpha_angle = math.atan2(alpha_vec[1], alpha_vec[0])
    quad.beta_angle = math.atan2(beta_vec[1], beta_vec[0])

    quad.alpha_length = (line_length(v0, v1) + line_length(v3, v2)) / 2.0
    quad.beta_length = (line_length(v0, v3) + line_length(v1, v2)) / 2.0
    quad.gamma_ratio = quad.beta_length / quad.alpha_length

    quad.status = QuadrilateralStatus.VALID
    return quad.status


def qualify_quadrilaterals(
    quads: Sequence[Quadrilateral], config: QuadrilateralConfig
) -> List[Quadrilateral]:
    """
    Qualify every candidate and return the VALID ones in input order.

    Args:
        quads: Candidate quadrilaterals (statuses updated in place).
        config: Area bounds.

    Returns:
        List of quadrilaterals with status VALID.
    """
    valid = []
    for i, quad in enumerate(quads):
        status = qualify_quadrilateral(quad, config.min_area, config.max_area)
        logger.debug(f"Candidate {i}: {quad!r}")
        if status == QuadrilateralStatus.VALID:
            valid.append(quad)

    logger.info(f"Qualified {len(valid)}/{len(quads)} quadrilateral candidates")
    return valid
