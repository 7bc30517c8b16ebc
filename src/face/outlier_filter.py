"""
Orientation outlier filter for the Face module.

Drops quadrilaterals whose side-pair directions disagree with the group
consensus (median angle) by more than a tolerance.
"""

import logging
from typing import List, Sequence, Tuple

from src.face.types import Quadrilateral, QuadrilateralStatus
from src.utils.constants import MIN_QUADRILATERALS_FOR_LAYOUT

logger = logging.getLogger(__name__)


def median_angles(quads: Sequence[Quadrilateral]) -> Tuple[float, float]:
    """
    Return (median_alpha, median_beta).

    Each angle is sorted independently and the element at index len // 2
    is taken, so even-sized lists yield the upper central element.
    """
    mid = len(quads) // 2
    alphas = sorted(q.alpha_angle for q in quads)
    betas = sorted(q.beta_angle for q in quads)
    return alphas[mid], betas[mid]


def remove_outlier_quadrilaterals(
    quads: Sequence[Quadrilateral], tolerance: float
) -> List[Quadrilateral]:
    """
    Remove quadrilaterals whose alpha or beta angle deviates from the median.

    Single pass: the medians are not recomputed after removal. Lists with
    fewer than 3 quadrilaterals are returned unchanged.

    Args:
        quads: VALID quadrilaterals.
        tolerance: Maximum allowed deviation in radians.

    Returns:
        New list with the surviving quadrilaterals. Removed ones are
        marked OUTLIER.

    Example:
        >>> survivors = remove_outlier_quadrilaterals(valid, math.radians(10))
    """
    if len(quads) < MIN_QUADRILATERALS_FOR_LAYOUT:
        return list(quads)

    median_alpha, median_beta = median_angles(quads)

    survivors = []
    for quad in quads:
        alpha_dev = abs(quad.alpha_angle - median_alpha)
        beta_dev = abs(quad.beta_angle - median_beta)
        if alpha_dev > tolerance or beta_dev > tolerance:
            quad.status = QuadrilateralStatus.OUTLIER
            logger.warning(
                f"Outlier removed at ({quad.center.x:.0f}, {quad.center.y:.0f}): "
                f"alpha dev={alpha_dev:.3f} rad, beta dev={beta_dev:.3f} rad"
            )
            continue
        survivors.append(quad)

    return survivors
