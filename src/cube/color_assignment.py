"""
Cube-wide color assignment optimizer.

Re-derives the colors of all 54 tiles so that each reference color is used
exactly nine times and the six centers are distinct, while keeping the sum
of RGB distances between measured samples and assigned colors low.

Tiles are placed one at a time in face / row / column order. Placing a tile
into a full color group evicts the group's worst-fitting member, which is
then re-homed with that color blacklisted. The search for each tile runs on
an explicit stack of frames; the cheapest complete state seen during the
search is committed before moving to the next tile. This is a greedy local
search, not an exhaustive solver.
"""

import bisect
import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from src.common.colors import TileColor, color_distance
from src.cube.config_loader import AssignmentConfig
from src.cube.types import (
    CubeAssignmentResult,
    CubeFailureReason,
    FaceName,
    TileArray,
    TileLocation,
)
from src.utils.constants import GRID_SIZE, NUM_TILES, TILES_PER_COLOR

logger = logging.getLogger(__name__)

MeasuredColors = Dict[FaceName, Sequence[Sequence[Sequence[float]]]]

# (error, scan index, location); the scan index keeps entries totally ordered
_GroupEntry = Tuple[float, int, TileLocation]


@dataclass
class _Snapshot:
    assignment: Dict[TileLocation, Optional[TileColor]]
    groups: Dict[TileColor, List[_GroupEntry]]
    total_error: float
    center_counts: Dict[TileColor, int]


class SearchState:
    """
    Working state of the color assignment search.

    Holds the current assignment, per-color groups sorted by
    (error, scan index), the running error sum over assigned tiles and the
    number of centers using each color.
    """

    def __init__(
        self,
        locations: Sequence[TileLocation],
        errors: Dict[TileLocation, Dict[TileColor, float]],
    ):
        self.locations = list(locations)
        self.errors = errors
        self.scan_index = {loc: i for i, loc in enumerate(self.locations)}
        self.assignment: Dict[TileLocation, Optional[TileColor]] = {
            loc: None for loc in self.locations
        }
        self.groups: Dict[TileColor, List[_GroupEntry]] = {c: [] for c in TileColor}
        self.total_error = 0.0
        self.center_counts: Dict[TileColor, int] = {c: 0 for c in TileColor}

    def _entry(self, location: TileLocation, color: TileColor) -> _GroupEntry:
        return (self.errors[location][color], self.scan_index[location], location)

    def assign(self, location: TileLocation, color: TileColor) -> None:
        if self.assignment[location] is not None:
            raise ValueError(f"Tile {location!r} is already assigned")
        self.assignment[location] = color
        bisect.insort(self.groups[color], self._entry(location, color))
        self.total_error += self.errors[location][color]
        if location.is_center:
            self.center_counts[color] += 1

    def unassign(self, location: TileLocation) -> TileColor:
        color = self.assignment[location]
        if color is None:
            raise ValueError(f"Tile {location!r} is not assigned")
        group = self.groups[color]
        index = bisect.bisect_left(group, self._entry(location, color))
        del group[index]
        self.assignment[location] = None
        self.total_error -= self.errors[location][color]
        if location.is_center:
            self.center_counts[color] -= 1
        return color

    def group_size(self, color: TileColor) -> int:
        return len(self.groups[color])

    def largest_error_member(self, color: TileColor) -> TileLocation:
        """Member of the color group with the largest error (latest scan on ties)."""
        return self.groups[color][-1][2]

    def centers_distinct(self) -> bool:
        return all(count <= 1 for count in self.center_counts.values())

    def cost(self) -> float:
        """Total error of assigned tiles, infinite if two centers share a color."""
        if not self.centers_distinct():
            return math.inf
        return self.total_error

    def snapshot(self) -> _Snapshot:
        return _Snapshot(
            assignment=dict(self.assignment),
            groups={c: list(g) for c, g in self.groups.items()},
            total_error=self.total_error,
            center_counts=dict(self.center_counts),
        )

    def restore(self, snapshot: _Snapshot) -> None:
        self.assignment = dict(snapshot.assignment)
        self.groups = {c: list(g) for c, g in snapshot.groups.items()}
        self.total_error = snapshot.total_error
        self.center_counts = dict(snapshot.center_counts)


@dataclass
class _SearchFrame:
    """One level of the eviction chain for a tile placement."""

    location: TileLocation
    blacklist: FrozenSet[TileColor]
    candidates: List[TileColor]
    index: int = 0
    # (color, evicted tile) whose child frame is in progress
    pending: Optional[Tuple[TileColor, TileLocation]] = None

    @classmethod
    def create(
        cls, location: TileLocation, blacklist: FrozenSet[TileColor]
    ) -> "_SearchFrame":
        return cls(
            location=location,
            blacklist=blacklist,
            candidates=[c for c in TileColor if c not in blacklist],
        )


@dataclass
class _SearchStats:
    evaluations: int = 0
    max_depth_reached: int = 0
    truncated: bool = False
    best_cost: float = math.inf
    best: Optional[_Snapshot] = field(default=None, repr=False)


def _place_tile(
    state: SearchState, location: TileLocation, config: AssignmentConfig
) -> _SearchStats:
    """
    Search placements of one tile and commit the cheapest valid state found.

    If no valid state is found the tile stays unassigned.
    """
    stats = _SearchStats(best=state.snapshot())
    stack = [_SearchFrame.create(location, frozenset())]
    stats.max_depth_reached = 1

    while stack:
        frame = stack[-1]

        if frame.pending is not None:
            # Child frame finished: put the evicted tile back, then undo
            # this frame's tentative assignment.
            color, evicted = frame.pending
            frame.pending = None
            state.assign(evicted, color)
            state.unassign(frame.location)
            continue

        if frame.index >= len(frame.candidates):
            stack.pop()
            continue

        if stats.evaluations >= config.max_evaluations_per_tile:
            stats.truncated = True
            break

        color = frame.candidates[frame.index]
        frame.index += 1
        state.assign(frame.location, color)
        stats.evaluations += 1

        if state.group_size(color) <= TILES_PER_COLOR:
            cost = state.cost()
            if cost < stats.best_cost:
                stats.best_cost = cost
                stats.best = state.snapshot()
            state.unassign(frame.location)
            continue

        if len(stack) >= config.max_search_depth:
            stats.truncated = True
            state.unassign(frame.location)
            continue

        evicted = state.largest_error_member(color)
        state.unassign(evicted)
        frame.pending = (color, evicted)
        stack.append(_SearchFrame.create(evicted, frame.blacklist | {color}))
        stats.max_depth_reached = max(stats.max_depth_reached, len(stack))

    state.restore(stats.best)
    return stats


def _validate_measured(measured: MeasuredColors) -> Optional[Dict[FaceName, np.ndarray]]:
    """Return measured samples as (3, 3, 3) arrays, or None if malformed."""
    samples = {}
    for face in FaceName:
        if face not in measured or measured[face] is None:
            return None
        try:
            arr = np.asarray(measured[face], dtype=np.float64)
        except (TypeError, ValueError):
            return None
        if arr.ndim != 3 or arr.shape[:2] != (GRID_SIZE, GRID_SIZE) or arr.shape[2] < 3:
            return None
        samples[face] = arr[:, :, :3]
    return samples


def _tile_arrays(state: SearchState) -> Dict[FaceName, TileArray]:
    arrays = {face: [[None] * GRID_SIZE for _ in range(GRID_SIZE)] for face in FaceName}
    for loc, color in state.assignment.items():
        arrays[loc.face][loc.n][loc.m] = color
    return arrays


def assign_cube_colors(
    measured: MeasuredColors, config: Optional[AssignmentConfig] = None
) -> CubeAssignmentResult:
    """
    Assign a reference color to each of the 54 tiles.

    Args:
        measured: Per face, a 3x3 grid of measured RGB samples indexed [n][m].
        config: Search guards. Defaults to AssignmentConfig().

    Returns:
        CubeAssignmentResult. success is True only if all tiles are assigned,
        every color is used exactly nine times and the six centers are
        distinct.

    Example:
        >>> result = assign_cube_colors({face: samples[face] for face in FaceName})
        >>> if result.is_valid():
        ...     print(result.tile_arrays[FaceName.UP][1][1])
    """
    if config is None:
        config = AssignmentConfig()

    samples = _validate_measured(measured)
    if samples is None:
        logger.warning("Cube assignment requires 3x3 samples for all six faces")
        return CubeAssignmentResult(
            success=False, failure_reason=CubeFailureReason.MISSING_FACES
        )

    locations = [
        TileLocation(face, n, m)
        for face in FaceName
        for n in range(GRID_SIZE)
        for m in range(GRID_SIZE)
    ]
    errors = {
        loc: {
            color: color_distance(samples[loc.face][loc.n][loc.m], color.rgb)
            for color in TileColor
        }
        for loc in locations
    }

    state = SearchState(locations, errors)
    evaluations = 0
    max_depth = 0
    truncated = False
    for location in locations:
        stats = _place_tile(state, location, config)
        evaluations += stats.evaluations
        max_depth = max(max_depth, stats.max_depth_reached)
        truncated = truncated or stats.truncated
        if state.assignment[location] is None:
            logger.warning(f"No valid color found for tile {location!r}")

    counts = Counter(c for c in state.assignment.values() if c is not None)
    color_counts = {color: counts.get(color, 0) for color in TileColor}
    assigned = sum(color_counts.values())

    if assigned != NUM_TILES:
        reason = CubeFailureReason.UNASSIGNED_TILES
    elif any(count != TILES_PER_COLOR for count in color_counts.values()):
        reason = CubeFailureReason.COLOR_COUNT_MISMATCH
    elif not state.centers_distinct():
        reason = CubeFailureReason.DUPLICATE_CENTER_COLORS
    else:
        reason = CubeFailureReason.NONE

    if truncated:
        logger.warning("Color search hit a depth or evaluation cap")

    result = CubeAssignmentResult(
        success=reason == CubeFailureReason.NONE,
        failure_reason=reason,
        tile_arrays=_tile_arrays(state),
        total_cost=state.total_error,
        color_counts=color_counts,
        max_depth_reached=max_depth,
        evaluations=evaluations,
        search_truncated=truncated,
    )

    if result.success:
        logger.info(
            f"Cube colors assigned: cost={result.total_cost:.1f}, "
            f"evaluations={evaluations}, max depth={max_depth}"
        )
    else:
        logger.warning(f"Cube color assignment failed: {result.get_error_message()}")

    return result
