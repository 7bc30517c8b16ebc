"""
Data types and structures for the Face module.

Provides type-safe containers for quadrilateral candidates, the 3x3 tile
layout, the lattice fit, per-face color classification and the face result.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from src.common.colors import TileColor
from src.common.types import Point
from src.utils.constants import GRID_SIZE


class QuadrilateralStatus(Enum):
    """Qualification outcome of a quadrilateral candidate."""

    NOT_PROCESSED = "Not Processed"
    NOT_4_POINTS = "Not 4 Points"
    NOT_CONVEX = "Not Convex"
    AREA = "Area Out Of Range"
    CLOCKWISE = "Clockwise"
    OUTLIER = "Outlier"
    VALID = "Valid"


class FaceRecognitionStatus(Enum):
    """Face recognition outcomes."""

    UNKNOWN = "Unknown"
    INSUFFICIENT = "Insufficient"  # Too few quadrilaterals to attempt a solution
    BAD_METRICS = "Bad Metrics"  # Averaged angles / gamma are not usable
    INADEQUATE = "Inadequate"  # A grid row or column has no quadrilateral
    INVALID_MATH = "Invalid Math"  # Least squares produced NaN
    BLOCKED = "Blocked"  # No improving relocation move exists
    UNSTABLE = "Unstable"  # Last relocation increased sigma
    INCOMPLETE = "Incomplete"  # Relocation move cap exceeded
    SOLVED = "Solved"


class CellAssignmentKind(Enum):
    """How many candidates the layout partitioner placed in a grid cell."""

    UNASSIGNED = "Unassigned"
    SINGLE = "Single"
    CONFLICT = "Conflict"


@dataclass(eq=False)
class Quadrilateral:
    """
    A candidate tile: 4-vertex polygon detected in the raster.

    Attributes:
        vertices: Vertex array of shape (k, 2) in detection order. Reordered
            so that vertex 0 has the minimum Y once qualification passes
            the winding step.
        center: Centroid (mean of all vertices).
        area: Area in px^2 (Heron's formula over two triangles).
        alpha_angle: Direction of the first side pair, radians.
        beta_angle: Direction of the second side pair, radians.
        alpha_length: Average length of the first side pair.
        beta_length: Average length of the second side pair.
        gamma_ratio: beta_length / alpha_length.
        status: Qualification status.
    """

    vertices: np.ndarray
    center: Point = field(default_factory=lambda: Point(x=0.0, y=0.0))
    area: float = 0.0
    alpha_angle: float = 0.0
    beta_angle: float = 0.0
    alpha_length: float = 0.0
    beta_length: float = 0.0
    gamma_ratio: float = 0.0
    status: QuadrilateralStatus = QuadrilateralStatus.NOT_PROCESSED

    @classmethod
    def from_points(cls, points: Sequence) -> "Quadrilateral":
        """
        Create an unprocessed quadrilateral from polygon points.

        Accepts an (k, 2) array-like or an OpenCV contour of shape (k, 1, 2).

        Raises:
            ValueError: If the points cannot be shaped into (k, 2).
        """
        arr = np.asarray(points, dtype=np.float64)
        if arr.ndim == 3 and arr.shape[1] == 1:
            arr = arr.reshape(-1, 2)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError(f"Expected polygon points with shape (k, 2), got {arr.shape}")
        return cls(vertices=arr.copy())

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    def is_valid(self) -> bool:
        return self.status == QuadrilateralStatus.VALID

    def __repr__(self) -> str:
        return (
            f"Quadrilateral(center=({self.center.x:.0f}, {self.center.y:.0f}), "
            f"area={self.area:.0f}, "
            f"alpha={math.degrees(self.alpha_angle):.0f}deg, "
            f"beta={math.degrees(self.beta_angle):.0f}deg, "
            f"status={self.status.name})"
        )


@dataclass
class CellAssignment:
    """
    Tagged outcome of placing quadrilaterals into one grid cell.

    The first candidate wins; remaining candidates of a CONFLICT are kept so
    a better tie-break can be substituted without changing the interface.
    """

    kind: CellAssignmentKind
    candidates: Tuple[Quadrilateral, ...] = ()

    @classmethod
    def from_candidates(cls, candidates: Sequence[Quadrilateral]) -> "CellAssignment":
        candidates = tuple(candidates)
        if not candidates:
            return cls(kind=CellAssignmentKind.UNASSIGNED)
        if len(candidates) == 1:
            return cls(kind=CellAssignmentKind.SINGLE, candidates=candidates)
        return cls(kind=CellAssignmentKind.CONFLICT, candidates=candidates)

    @property
    def chosen(self) -> Optional[Quadrilateral]:
        """Quadrilateral occupying the cell, or None if unassigned."""
        return self.candidates[0] if self.candidates else None


# 3x3 grid indexed [n][m]: n along the alpha axis, m along the beta axis.
QuadrilateralGrid = List[List[Optional[Quadrilateral]]]


def empty_grid() -> QuadrilateralGrid:
    """Create an empty 3x3 quadrilateral grid."""
    return [[None] * GRID_SIZE for _ in range(GRID_SIZE)]


@dataclass
class TileLayout:
    """
    Result of the tile layout partitioner.

    Attributes:
        cells: 3x3 tagged cell assignments, indexed [n][m].
        grid: 3x3 chosen quadrilateral per cell (None where unassigned).
    """

    cells: List[List[CellAssignment]]
    grid: QuadrilateralGrid

    @property
    def is_adequate(self) -> bool:
        """True if every row and every column holds at least one quadrilateral."""
        for i in range(GRID_SIZE):
            if all(self.grid[i][j] is None for j in range(GRID_SIZE)):
                return False
            if all(self.grid[j][i] is None for j in range(GRID_SIZE)):
                return False
        return True

    @property
    def conflict_count(self) -> int:
        return sum(
            1
            for row in self.cells
            for cell in row
            if cell.kind == CellAssignmentKind.CONFLICT
        )

    @property
    def occupied_count(self) -> int:
        return sum(1 for row in self.grid for quad in row if quad is not None)


@dataclass
class LatticeFit:
    """
    Least-squares lattice fit of a (partial) 3x3 grid.

    Attributes:
        origin_x: X of the center of tile [0][0].
        origin_y: Y of the center of tile [0][0].
        alpha_length: Lattice spacing along the alpha axis.
        sigma: Root-sum-of-squares of the residual vector.
        valid: False if any solved value or sigma is NaN.
        error_vectors: Residual (dx, dy) per occupied cell, indexed [n][m].
    """

    origin_x: float
    origin_y: float
    alpha_length: float
    sigma: float
    valid: bool
    error_vectors: List[List[Optional[Tuple[float, float]]]] = field(
        default_factory=lambda: [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
    )


@dataclass
class Lattice:
    """Affine lattice predicting each grid cell's pixel-space center."""

    origin_x: float
    origin_y: float
    alpha_angle: float
    beta_angle: float
    alpha_length: float
    beta_length: float
    gamma_ratio: float
    sigma: float
    move_count: int = 0

    @classmethod
    def from_fit(
        cls,
        fit: LatticeFit,
        alpha_angle: float,
        beta_angle: float,
        gamma_ratio: float,
        move_count: int = 0,
    ) -> "Lattice":
        return cls(
            origin_x=fit.origin_x,
            origin_y=fit.origin_y,
            alpha_angle=alpha_angle,
            beta_angle=beta_angle,
            alpha_length=fit.alpha_length,
            beta_length=gamma_ratio * fit.alpha_length,
            gamma_ratio=gamma_ratio,
            sigma=fit.sigma,
            move_count=move_count,
        )

    def tile_center(self, n: int, m: int) -> Point:
        """Predicted pixel-space center of tile [n][m]."""
        return Point(
            x=self.origin_x
            + n * self.alpha_length * math.cos(self.alpha_angle)
            + m * self.beta_length * math.cos(self.beta_angle),
            y=self.origin_y
            + n * self.alpha_length * math.sin(self.alpha_angle)
            + m * self.beta_length * math.sin(self.beta_angle),
        )


@dataclass
class RelocationMove:
    """A swap proposed by the relocation loop."""

    source: Tuple[int, int]
    target: Tuple[int, int]
    alpha_error: float
    beta_error: float


@dataclass
class ColorClassification:
    """
    Per-face two-pass color classification result.

    Attributes:
        observed: Final color per cell, indexed [n][m].
        measured: Measured RGB sample per cell (zeros when out of bounds).
        color_errors: Pass-2 YUV distance of the final color per cell.
        luminance_bias: Luma correction added to measured Y in pass 2.
        color_error_before: Total YUV error of pass-1 colors, no bias.
        color_error_after: Total YUV error of final colors, with bias.
        reclassified_count: Cells whose color changed in pass 2.
    """

    observed: List[List[TileColor]]
    measured: List[List[np.ndarray]]
    color_errors: List[List[float]]
    luminance_bias: float
    color_error_before: float
    color_error_after: float
    reclassified_count: int


@dataclass
class Face:
    """
    Output of the face recognition pipeline for one frame.

    Attributes:
        status: Face recognition outcome.
        quadrilaterals: All input candidates with their final statuses.
        grid: 3x3 quadrilateral layout (after relocation), indexed [n][m].
        lattice: Solved lattice (None if the fit never produced one).
        observed_tile_array: 3x3 tile colors (None until SOLVED).
        measured_color_array: 3x3 raw RGB samples (None until SOLVED).
        color_classification: Diagnostics of the color classifier.
        hash_code: Fingerprint of the observed colors (0 until SOLVED).
    """

    status: FaceRecognitionStatus = FaceRecognitionStatus.UNKNOWN
    quadrilaterals: List[Quadrilateral] = field(default_factory=list)
    grid: QuadrilateralGrid = field(default_factory=empty_grid)
    lattice: Optional[Lattice] = None
    observed_tile_array: List[List[Optional[TileColor]]] = field(
        default_factory=lambda: [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
    )
    measured_color_array: List[List[Optional[np.ndarray]]] = field(
        default_factory=lambda: [[None] * GRID_SIZE for _ in range(GRID_SIZE)]
    )
    color_classification: Optional[ColorClassification] = None
    hash_code: int = 0

    def is_solved(self) -> bool:
        """Check if the face was fully recognized."""
        return self.status == FaceRecognitionStatus.SOLVED

    def get_status_message(self) -> str:
        """Get human-readable status message."""
        if self.is_solved():
            return "Face solved"

        valid_count = sum(1 for q in self.quadrilaterals if q.is_valid())
        status_messages = {
            FaceRecognitionStatus.INSUFFICIENT: (
                f"Only {valid_count} valid quadrilateral(s) available"
            ),
            FaceRecognitionStatus.BAD_METRICS: "Averaged face metrics are not usable",
            FaceRecognitionStatus.INADEQUATE: (
                "Layout leaves a grid row or column empty"
            ),
            FaceRecognitionStatus.INVALID_MATH: "Lattice fit produced invalid math",
            FaceRecognitionStatus.BLOCKED: (
                f"Relocation blocked (sigma={self.lattice.sigma:.1f})"
                if self.lattice
                else "Relocation blocked"
            ),
            FaceRecognitionStatus.UNSTABLE: (
                f"Relocation diverged (sigma={self.lattice.sigma:.1f})"
                if self.lattice
                else "Relocation diverged"
            ),
            FaceRecognitionStatus.INCOMPLETE: (
                f"Relocation did not converge after {self.lattice.move_count} moves"
                if self.lattice
                else "Relocation did not converge"
            ),
        }

        return status_messages.get(self.status, f"Status: {self.status.value}")
