"""
Shared Constants for the Cube State Reconstruction Engine

This module contains constants used across multiple modules to ensure
consistency and avoid duplication.
"""

# ============================================================================
# Cube Geometry Constants
# ============================================================================
GRID_SIZE = 3  # Tiles per face edge (3x3 cube)
TILES_PER_FACE = GRID_SIZE * GRID_SIZE
NUM_FACES = 6
NUM_TILES = NUM_FACES * TILES_PER_FACE  # 54 tiles over the whole cube
TILES_PER_COLOR = 9  # Each reference color covers exactly one face worth of tiles
CENTER_INDEX = 1  # Index (n and m) of the center tile of a face

# ============================================================================
# Quadrilateral Constants
# ============================================================================
QUADRILATERAL_NUM_VERTICES = 4
MIN_QUADRILATERALS_FOR_LAYOUT = 3  # Partitioning into 3 groups needs 3 members

# ============================================================================
# Color Sampling Constants
# ============================================================================
DEFAULT_SAMPLE_HALF_WINDOW = 10  # 20x20 px averaging window per tile
