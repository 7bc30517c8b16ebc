"""
Tile layout partitioner for the Face module.

Sorts surviving quadrilaterals into a 3x3 grid by projecting their centers
onto the alpha and beta axes and splitting each axis into three contiguous
groups with minimal within-group spread.
"""

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from src.face.types import (
    CellAssignment,
    CellAssignmentKind,
    Quadrilateral,
    TileLayout,
)
from src.utils.constants import GRID_SIZE, MIN_QUADRILATERALS_FOR_LAYOUT

logger = logging.getLogger(__name__)


def _group_cost(values: np.ndarray) -> float:
    """Sum of squared pairwise differences within one group."""
    k = len(values)
    if k < 2:
        return 0.0
    # sum_{i<j} (x_i - x_j)^2 == k * sum(x^2) - (sum x)^2
    return float(k * np.sum(values * values) - np.sum(values) ** 2)


def partition_into_three(coords: Sequence[float]) -> List[int]:
    """
    Split 1D coordinates into low / mid / high groups.

    Values are stably sorted and every split pair (p, q) with
    1 <= p < q <= n - 1 is scored by the sum of the within-group costs.
    The first pair with the lowest score wins.

    Args:
        coords: Axis projections, one per quadrilateral.

    Returns:
        Group index (0, 1 or 2) per input coordinate, in input order.

    Raises:
        ValueError: If fewer than 3 coordinates are given.

    Example:
        >>> partition_into_three([0.0, 101.0, 49.0, 1.0, 100.0, 50.0])
        [0, 2, 1, 0, 2, 1]
    """
    n = len(coords)
    if n < MIN_QUADRILATERALS_FOR_LAYOUT:
        raise ValueError(
            f"Need at least {MIN_QUADRILATERALS_FOR_LAYOUT} coordinates to partition, got {n}"
        )

    values = np.asarray(coords, dtype=np.float64)
    order = np.argsort(values, kind="stable")
    ordered = values[order]

    best_score = math.inf
    best_split = (1, 2)
    for p in range(1, n - 1):
        low_cost = _group_cost(ordered[:p])
        for q in range(p + 1, n):
            score = low_cost + _group_cost(ordered[p:q]) + _group_cost(ordered[q:])
            if score < best_score:
                best_score = score
                best_split = (p, q)

    p, q = best_split
    groups = [0] * n
    for rank, index in enumerate(order):
        groups[int(index)] = 0 if rank < p else (1 if rank < q else 2)

    logger.debug(f"Partition split at ({p}, {q}), score={best_score:.1f}")
    return groups


def project_centers(
    quads: Sequence[Quadrilateral], alpha_angle: float, beta_angle: float
) -> Tuple[List[float], List[float]]:
    """Project quadrilateral centers onto the alpha and beta axis directions."""
    cos_a, sin_a = math.cos(alpha_angle), math.sin(alpha_angle)
    cos_b, sin_b = math.cos(beta_angle), math.sin(beta_angle)
    alpha_coords = [q.center.x * cos_a + q.center.y * sin_a for q in quads]
    beta_coords = [q.center.x * cos_b + q.center.y * sin_b for q in quads]
    return alpha_coords, beta_coords


def format_layout_table(layout: TileLayout) -> str:
    """Render the layout as a text table (rows are m, columns are n)."""
    lines = [" m:n|" + "|".join(f"{n:^13}" for n in range(GRID_SIZE)) + "|"]
    for m in range(GRID_SIZE):
        row = []
        for n in range(GRID_SIZE):
            cell = layout.cells[n][m]
            quad = cell.chosen
            if quad is None:
                row.append(f"{'-':^13}")
            else:
                mark = "*" if cell.kind == CellAssignmentKind.CONFLICT else " "
                row.append(f"{quad.center.x:5.0f},{quad.center.y:5.0f}{mark} ")
        lines.append(f" {m}  |" + "|".join(row) + "|")
    return "\n".join(lines)


def do_initial_layout(
    quads: Sequence[Quadrilateral], alpha_angle: float, beta_angle: float
) -> TileLayout:
    """
    Place quadrilaterals into a 3x3 grid.

    Cell [n][m] receives every quadrilateral that falls in alpha-group n and
    beta-group m. If more than one lands in a cell, the first in input
    order occupies it and the cell is tagged CONFLICT.

    Args:
        quads: Filtered VALID quadrilaterals (at least 3).
        alpha_angle: Averaged alpha angle of the face (radians).
        beta_angle: Averaged beta angle of the face (radians).

    Returns:
        TileLayout with tagged cells and the chosen grid.

    Raises:
        ValueError: If fewer than 3 quadrilaterals are given.
    """
    alpha_coords, beta_coords = project_centers(quads, alpha_angle, beta_angle)
    alpha_groups = partition_into_three(alpha_coords)
    beta_groups = partition_into_three(beta_coords)

    buckets: List[List[List[Quadrilateral]]] = [
        [[] for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)
    ]
    for quad, n, m in zip(quads, alpha_groups, beta_groups):
        buckets[n][m].append(quad)

    cells = [
        [CellAssignment.from_candidates(buckets[n][m]) for m in range(GRID_SIZE)]
        for n in range(GRID_SIZE)
    ]
    grid = [[cells[n][m].chosen for m in range(GRID_SIZE)] for n in range(GRID_SIZE)]
    layout = TileLayout(cells=cells, grid=grid)

    for n in range(GRID_SIZE):
        for m in range(GRID_SIZE):
            if cells[n][m].kind == CellAssignmentKind.CONFLICT:
                logger.warning(
                    f"Cell [{n}][{m}] received {len(cells[n][m].candidates)} "
                    "quadrilaterals, keeping the first"
                )

    logger.debug(f"Initial layout:\n{format_layout_table(layout)}")
    return layout
