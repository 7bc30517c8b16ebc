"""
Face Module: per-frame recognition of one cube face.

Turns quadrilateral candidates from a contour detector into a 3x3 tile
lattice and classifies the color of each tile.
"""

from src.face.color_classifier import (
    classify_face,
    classify_face_colors,
    compute_face_hash,
    sample_tile_color,
)
from src.face.config_loader import FaceConfig, get_default_config, load_config
from src.face.lattice import find_relocation_move, fit_lattice, solve_face_lattice
from src.face.outlier_filter import remove_outlier_quadrilaterals
from src.face.processor import FaceProcessor, process_face
from src.face.quadrilateral import (
    qualify_quadrilateral,
    qualify_quadrilaterals,
    quadrilateral_area,
)
from src.face.tile_layout import do_initial_layout, partition_into_three
from src.face.types import (
    CellAssignment,
    CellAssignmentKind,
    ColorClassification,
    Face,
    FaceRecognitionStatus,
    Lattice,
    LatticeFit,
    Quadrilateral,
    QuadrilateralStatus,
    RelocationMove,
    TileLayout,
)

__all__ = [
    "FaceProcessor",
    "process_face",
    "FaceConfig",
    "load_config",
    "get_default_config",
    "qualify_quadrilateral",
    "qualify_quadrilaterals",
    "quadrilateral_area",
    "remove_outlier_quadrilaterals",
    "do_initial_layout",
    "partition_into_three",
    "fit_lattice",
    "find_relocation_move",
    "solve_face_lattice",
    "sample_tile_color",
    "classify_face",
    "classify_face_colors",
    "compute_face_hash",
    "CellAssignment",
    "CellAssignmentKind",
    "ColorClassification",
    "Face",
    "FaceRecognitionStatus",
    "Lattice",
    "LatticeFit",
    "Quadrilateral",
    "QuadrilateralStatus",
    "RelocationMove",
    "TileLayout",
]
