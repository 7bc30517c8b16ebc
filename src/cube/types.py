"""
Data types and structures for the Cube module.

Provides type-safe containers for face identities, tile locations and the
result of the cube-wide color assignment.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from src.common.colors import TileColor
from src.utils.constants import CENTER_INDEX

TileArray = List[List[Optional[TileColor]]]


class FaceName(Enum):
    """Cube faces in optimizer scan order."""

    UP = "U"
    DOWN = "D"
    LEFT = "L"
    RIGHT = "R"
    FRONT = "F"
    BACK = "B"

    @property
    def symbol(self) -> str:
        return self.value


# Face order of the facelet notation used by two-phase solvers
FACELET_ORDER = [
    FaceName.UP,
    FaceName.RIGHT,
    FaceName.FRONT,
    FaceName.DOWN,
    FaceName.LEFT,
    FaceName.BACK,
]


class CubeFailureReason(Enum):
    """Reasons the cube-wide assignment did not produce a valid cube."""

    NONE = "None"
    MISSING_FACES = "Missing Faces"
    UNASSIGNED_TILES = "Unassigned Tiles"
    COLOR_COUNT_MISMATCH = "Color Count Mismatch"
    DUPLICATE_CENTER_COLORS = "Duplicate Center Colors"


@dataclass(frozen=True)
class TileLocation:
    """Position of one tile on the cube."""

    face: FaceName
    n: int
    m: int

    @property
    def is_center(self) -> bool:
        return self.n == CENTER_INDEX and self.m == CENTER_INDEX

    def __repr__(self) -> str:
        return f"{self.face.symbol}[{self.n}][{self.m}]"


@dataclass
class CubeAssignmentResult:
    """
    Output of the cube-wide color assignment.

    Attributes:
        success: True if every color is used exactly nine times and the six
            centers are distinct.
        failure_reason: Why the assignment is not valid (NONE on success).
        tile_arrays: Assigned 3x3 tile colors per face, indexed [n][m].
        total_cost: Sum of the RGB distances of all assigned tiles.
        color_counts: Number of tiles assigned to each color.
        max_depth_reached: Deepest search frame stack seen.
        evaluations: Total tentative assignments evaluated.
        search_truncated: True if a depth or evaluation cap was hit.
    """

    success: bool
    failure_reason: CubeFailureReason
    tile_arrays: Dict[FaceName, TileArray] = field(default_factory=dict)
    total_cost: float = 0.0
    color_counts: Dict[TileColor, int] = field(default_factory=dict)
    max_depth_reached: int = 0
    evaluations: int = 0
    search_truncated: bool = False

    def is_valid(self) -> bool:
        """Check if the assignment satisfies the cube invariant."""
        return self.success

    def get_error_message(self) -> str:
        """Get human-readable error message."""
        if self.success:
            return "Cube colors assigned"

        error_messages = {
            CubeFailureReason.MISSING_FACES: (
                f"Expected 6 faces with 3x3 samples, got {len(self.tile_arrays)}"
            ),
            CubeFailureReason.UNASSIGNED_TILES: "Some tiles could not be assigned a color",
            CubeFailureReason.COLOR_COUNT_MISMATCH: (
                "Color counts are not nine each: "
                + ", ".join(f"{c.name}={k}" for c, k in self.color_counts.items())
            ),
            CubeFailureReason.DUPLICATE_CENTER_COLORS: "Two faces share a center color",
        }

        return error_messages.get(self.failure_reason, "Unknown error")
