"""
Main processor for the Cube module.

Runs the cube-wide color assignment once all six faces are solved and
writes the consistent colors back onto the faces.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from src.cube.color_assignment import assign_cube_colors
from src.cube.config_loader import CubeConfig, load_config
from src.cube.types import CubeAssignmentResult, CubeFailureReason, FaceName
from src.cube.validation import is_tile_colors_valid
from src.face.color_classifier import compute_face_hash
from src.face.types import Face

logger = logging.getLogger(__name__)


class CubeColorProcessor:
    """
    Assigns globally consistent tile colors across six solved faces.

    Example:
        >>> processor = CubeColorProcessor()
        >>> result = processor.process(faces)
        >>> if result.is_valid():
        ...     print(to_facelet_string(result.tile_arrays))
    """

    def __init__(
        self,
        config: Optional[CubeConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the cube processor.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def process(self, faces: Dict[FaceName, Face]) -> CubeAssignmentResult:
        """
        Assign colors to all 54 tiles.

        Args:
            faces: Solved face per face identity.

        Returns:
            CubeAssignmentResult. On success each face's observed tile array
            and hash code are replaced by the assignment.
        """
        logger.info("=" * 60)
        logger.info("Starting Cube Color Assignment")
        logger.info("=" * 60)

        missing = [
            name.name for name in FaceName
            if name not in faces or not faces[name].is_solved()
        ]
        if missing:
            logger.warning(f"Cube assignment REJECTED: faces not solved: {missing}")
            return CubeAssignmentResult(
                success=False, failure_reason=CubeFailureReason.MISSING_FACES
            )

        measured = {name: faces[name].measured_color_array for name in FaceName}
        result = assign_cube_colors(measured, self.config.assignment)
        if not result.success:
            return result

        valid, reason = is_tile_colors_valid(result.tile_arrays)
        if not valid:
            # Same invariant as the optimizer success check
            raise RuntimeError(f"Optimizer returned an invalid cube: {reason}")

        for name in FaceName:
            face = faces[name]
            face.observed_tile_array = result.tile_arrays[name]
            face.hash_code = compute_face_hash(face.observed_tile_array)

        logger.info("=" * 60)
        logger.info(f"Cube PASSED: total cost={result.total_cost:.1f}")
        logger.info("=" * 60)
        return result


def process_cube(
    faces: Dict[FaceName, Face], config: Optional[CubeConfig] = None
) -> CubeAssignmentResult:
    """Convenience function for one-off cube color assignment."""
    processor = CubeColorProcessor(config=config)
    return processor.process(faces)
