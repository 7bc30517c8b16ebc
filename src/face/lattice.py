"""
Lattice fitting and relocation loop for the Face module.

The lattice models each tile center as

    center(n, m) = origin + n * L * (cos a, sin a) + m * gamma * L * (cos b, sin b)

with the angles and gamma fixed per attempt. Origin and L are solved by
least squares over the occupied grid cells. When the residual is too large,
the worst-placed quadrilateral is moved towards the cell the lattice
predicts for it and the fit is repeated.
"""

import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from src.face.types import (
    FaceRecognitionStatus,
    Lattice,
    LatticeFit,
    QuadrilateralGrid,
    RelocationMove,
)
from src.utils.constants import GRID_SIZE

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def fit_lattice(
    grid: QuadrilateralGrid,
    alpha_angle: float,
    beta_angle: float,
    gamma_ratio: float,
) -> LatticeFit:
    """
    Least-squares fit of origin and alpha spacing to the occupied cells.

    Each occupied cell [n][m] contributes two rows:
        x: [1, 0, n cos(alpha) + gamma m cos(beta)]
        y: [0, 1, n sin(alpha) + gamma m sin(beta)]

    Args:
        grid: 3x3 quadrilateral grid indexed [n][m].
        alpha_angle: Alpha axis direction (radians).
        beta_angle: Beta axis direction (radians).
        gamma_ratio: beta spacing / alpha spacing.

    Returns:
        LatticeFit; valid is False for an empty grid, a failed solve or any
        non-finite value.
    """
    cos_a, sin_a = math.cos(alpha_angle), math.sin(alpha_angle)
    cos_b, sin_b = math.cos(beta_angle), math.sin(beta_angle)

    rows = []
    targets = []
    cells = []
    for n in range(GRID_SIZE):
        for m in range(GRID_SIZE):
            quad = grid[n][m]
            if quad is None:
                continue
            rows.append([1.0, 0.0, n * cos_a + gamma_ratio * m * cos_b])
            targets.append(quad.center.x)
            rows.append([0.0, 1.0, n * sin_a + gamma_ratio * m * sin_b])
            targets.append(quad.center.y)
            cells.append((n, m))

    invalid = LatticeFit(
        origin_x=math.nan, origin_y=math.nan, alpha_length=math.nan,
        sigma=math.nan, valid=False,
    )
    if not cells:
        logger.error("Lattice fit attempted on an empty grid")
        return invalid

    a_matrix = np.array(rows, dtype=np.float64)
    y_vector = np.array(targets, dtype=np.float64)

    try:
        solution, _, _, _ = np.linalg.lstsq(a_matrix, y_vector, rcond=None)
    except np.linalg.LinAlgError as e:
        logger.error(f"Lattice least-squares solve failed: {e}")
        return invalid

    residuals = y_vector - a_matrix @ solution
    sigma = float(np.sqrt(np.sum(residuals * residuals)))
    origin_x, origin_y, alpha_length = (float(v) for v in solution)

    if not all(math.isfinite(v) for v in (origin_x, origin_y, alpha_length, sigma)):
        logger.error("Lattice fit produced non-finite values")
        return invalid

    error_vectors: List[List[Optional[Tuple[float, float]]]] = [
        [None] * GRID_SIZE for _ in range(GRID_SIZE)
    ]
    for i, (n, m) in enumerate(cells):
        error_vectors[n][m] = (float(residuals[2 * i]), float(residuals[2 * i + 1]))

    return LatticeFit(
        origin_x=origin_x,
        origin_y=origin_y,
        alpha_length=alpha_length,
        sigma=sigma,
        valid=True,
        error_vectors=error_vectors,
    )


def find_relocation_move(
    grid: QuadrilateralGrid, lattice: Lattice
) -> Optional[RelocationMove]:
    """
    Find where the worst-placed quadrilateral wants to move.

    The occupied cell with the largest Euclidean deviation from its predicted
    center is selected. Its deviation is projected onto the alpha and beta
    directions, divided by the respective spacing and rounded to obtain an
    index correction. The target is clamped to the grid.

    Returns:
        The proposed move, or None if the target equals the source cell.
    """
    largest_error = -math.inf
    source = None
    deviation = (0.0, 0.0)
    for n in range(GRID_SIZE):
        for m in range(GRID_SIZE):
            quad = grid[n][m]
            if quad is None:
                continue
            predicted = lattice.tile_center(n, m)
            dx = quad.center.x - predicted.x
            dy = quad.center.y - predicted.y
            error = math.hypot(dx, dy)
            if error > largest_error:
                largest_error = error
                source = (n, m)
                deviation = (dx, dy)

    if source is None:
        return None

    dx, dy = deviation
    alpha_error = dx * math.cos(lattice.alpha_angle) + dy * math.sin(lattice.alpha_angle)
    beta_error = dx * math.cos(lattice.beta_angle) + dy * math.sin(lattice.beta_angle)

    delta_n = _round_half_up(alpha_error / lattice.alpha_length)
    delta_m = _round_half_up(beta_error / lattice.beta_length)
    target = (
        min(max(source[0] + delta_n, 0), GRID_SIZE - 1),
        min(max(source[1] + delta_m, 0), GRID_SIZE - 1),
    )

    logger.debug(
        f"Tile at [{source[0]}][{source[1]}] error={largest_error:.1f} "
        f"alpha error={alpha_error:.1f} beta error={beta_error:.1f} "
        f"correction=[{delta_n}][{delta_m}]"
    )

    if target == source:
        return None

    return RelocationMove(
        source=source, target=target, alpha_error=alpha_error, beta_error=beta_error
    )


def _swap(grid: QuadrilateralGrid, move: RelocationMove) -> None:
    (sn, sm), (tn, tm) = move.source, move.target
    grid[sn][sm], grid[tn][tm] = grid[tn][tm], grid[sn][sm]


def solve_face_lattice(
    grid: QuadrilateralGrid,
    alpha_angle: float,
    beta_angle: float,
    gamma_ratio: float,
    threshold: float,
    max_moves: int,
) -> Tuple[FaceRecognitionStatus, Optional[Lattice]]:
    """
    Fit the lattice and relocate misplaced quadrilaterals until converged.

    The grid is modified in place by the swaps. Terminal statuses:
    SOLVED, BLOCKED, UNSTABLE, INCOMPLETE and INVALID_MATH. At most
    max_moves + 1 swaps are performed.

    Args:
        grid: 3x3 quadrilateral grid indexed [n][m].
        alpha_angle: Alpha axis direction (radians).
        beta_angle: Beta axis direction (radians).
        gamma_ratio: beta spacing / alpha spacing.
        threshold: Sigma at or below which the face is solved.
        max_moves: Relocation move cap.

    Returns:
        Tuple of (status, lattice). The lattice is None only for
        INVALID_MATH on the initial fit.
    """
    fit = fit_lattice(grid, alpha_angle, beta_angle, gamma_ratio)
    if not fit.valid:
        return FaceRecognitionStatus.INVALID_MATH, None

    lattice = Lattice.from_fit(fit, alpha_angle, beta_angle, gamma_ratio)
    logger.debug(
        f"Initial fit: origin=({lattice.origin_x:.1f}, {lattice.origin_y:.1f}) "
        f"L={lattice.alpha_length:.1f} sigma={lattice.sigma:.2f}"
    )

    move_count = 0
    last_sigma = lattice.sigma
    while lattice.sigma > threshold:
        if move_count > max_moves:
            logger.warning(f"Relocation INCOMPLETE after {move_count} moves")
            return FaceRecognitionStatus.INCOMPLETE, lattice

        move = find_relocation_move(grid, lattice)
        if move is None:
            logger.warning(f"Relocation BLOCKED at sigma={lattice.sigma:.2f}")
            return FaceRecognitionStatus.BLOCKED, lattice

        _swap(grid, move)
        move_count += 1
        logger.info(
            f"Move {move_count}: swapped [{move.source[0]}][{move.source[1]}] "
            f"with [{move.target[0]}][{move.target[1]}]"
        )

        fit = fit_lattice(grid, alpha_angle, beta_angle, gamma_ratio)
        if not fit.valid:
            return FaceRecognitionStatus.INVALID_MATH, lattice

        lattice = Lattice.from_fit(fit, alpha_angle, beta_angle, gamma_ratio, move_count)
        if lattice.sigma > last_sigma:
            logger.warning(
                f"Relocation UNSTABLE: sigma {last_sigma:.2f} -> {lattice.sigma:.2f}"
            )
            return FaceRecognitionStatus.UNSTABLE, lattice
        last_sigma = lattice.sigma

    logger.info(f"Lattice solved: sigma={lattice.sigma:.2f} after {move_count} moves")
    return FaceRecognitionStatus.SOLVED, lattice
