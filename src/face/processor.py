"""
Main processor for the Face module.

Orchestrates the per-frame face recognition pipeline:
1. Quadrilateral qualification
2. Orientation outlier filter
3. Face metrics (averaged angles and gamma ratio)
4. Initial 3x3 tile layout
5. Lattice fit and relocation loop
6. Tile color classification and face hash

Implements fail-fast strategy: stops at first failure.
"""

import logging
import math
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from src.face.color_classifier import classify_face, compute_face_hash
from src.face.config_loader import FaceConfig, load_config
from src.face.lattice import solve_face_lattice
from src.face.outlier_filter import remove_outlier_quadrilaterals
from src.face.quadrilateral import qualify_quadrilaterals
from src.face.tile_layout import do_initial_layout
from src.face.types import Face, FaceRecognitionStatus, Quadrilateral

logger = logging.getLogger(__name__)

QuadrilateralInput = Union[Quadrilateral, np.ndarray, Sequence]


def calculate_face_metrics(
    quads: Sequence[Quadrilateral],
) -> Optional[Tuple[float, float, float]]:
    """
    Average alpha angle, beta angle and gamma ratio over the quadrilaterals.

    Returns:
        Tuple (alpha, beta, gamma), or None if the averages are not finite
        or gamma is not positive.
    """
    count = len(quads)
    alpha = sum(q.alpha_angle for q in quads) / count
    beta = sum(q.beta_angle for q in quads) / count
    gamma = sum(q.gamma_ratio for q in quads) / count

    logger.info(
        f"Face metrics: alpha={math.degrees(alpha):.0f}deg "
        f"beta={math.degrees(beta):.0f}deg gamma={gamma:.2f}"
    )

    if not all(math.isfinite(v) for v in (alpha, beta, gamma)) or gamma <= 0:
        return None
    return alpha, beta, gamma


class FaceProcessor:
    """
    Main processor for recognizing one cube face in a frame.

    Example:
        >>> processor = FaceProcessor()
        >>> face = processor.process(quadrilaterals, frame)
        >>> if face.is_solved():
        ...     print(face.observed_tile_array)
    """

    def __init__(
        self,
        config: Optional[FaceConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the face processor.

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

    def process(
        self, quadrilaterals: Sequence[QuadrilateralInput], image: np.ndarray
    ) -> Face:
        """
        Execute the complete face recognition pipeline.

        Args:
            quadrilaterals: Candidate polygons from the contour detector, as
                Quadrilateral objects or (4, 2) point arrays in pixel
                coordinates.
            image: Source raster used for color sampling.

        Returns:
            Face with the recognition status and, when SOLVED, the observed
            tile colors, measured samples and hash.

        Raises:
            ValueError: If a candidate cannot be shaped into (k, 2) points or
                the raster is not a valid uint8 image.
        """
        logger.info("=" * 60)
        logger.info("Starting Face Recognition Pipeline")
        logger.info("=" * 60)

        quads = [
            q if isinstance(q, Quadrilateral) else Quadrilateral.from_points(q)
            for q in quadrilaterals
        ]
        face = Face(quadrilaterals=quads)
        quad_config = self.config.quadrilateral

        # Stage 1: Qualification
        logger.info("[Stage 1/6] Quadrilateral Qualification")
        valid = qualify_quadrilaterals(quads, quad_config)

        # Stage 2: Outlier filter
        logger.info("[Stage 2/6] Outlier Filter")
        tolerance = math.radians(quad_config.angle_outlier_tolerance_deg)
        survivors = remove_outlier_quadrilaterals(valid, tolerance)

        if len(survivors) < quad_config.min_quadrilaterals:
            logger.warning(
                f"Pipeline REJECTED at Stage 2: {len(survivors)} quadrilateral(s) "
                f"< minimum {quad_config.min_quadrilaterals}"
            )
            face.status = FaceRecognitionStatus.INSUFFICIENT
            return face

        # Stage 3: Face metrics
        logger.info("[Stage 3/6] Face Metrics")
        metrics = calculate_face_metrics(survivors)
        if metrics is None:
            logger.warning("Pipeline REJECTED at Stage 3: Bad Metrics")
            face.status = FaceRecognitionStatus.BAD_METRICS
            return face
        alpha, beta, gamma = metrics

        # Stage 4: Layout
        logger.info("[Stage 4/6] Tile Layout")
        layout = do_initial_layout(survivors, alpha, beta)
        face.grid = layout.grid
        if not layout.is_adequate:
            logger.warning("Pipeline REJECTED at Stage 4: Inadequate Layout")
            face.status = FaceRecognitionStatus.INADEQUATE
            return face

        # Stage 5: Lattice
        logger.info("[Stage 5/6] Lattice Fit")
        status, lattice = solve_face_lattice(
            face.grid,
            alpha,
            beta,
            gamma,
            self.config.lattice.face_lms_threshold,
            self.config.lattice.max_relocation_moves,
        )
        face.lattice = lattice
        if status != FaceRecognitionStatus.SOLVED:
            logger.warning(f"Pipeline REJECTED at Stage 5: {status.name}")
            face.status = status
            return face

        # Stage 6: Colors
        logger.info("[Stage 6/6] Tile Color Classification")
        classification = classify_face(image, lattice, self.config.color)
        face.color_classification = classification
        face.observed_tile_array = classification.observed
        face.measured_color_array = classification.measured
        face.hash_code = compute_face_hash(classification.observed)
        face.status = FaceRecognitionStatus.SOLVED

        logger.info("=" * 60)
        logger.info(f"Pipeline PASSED: face hash={face.hash_code:#010x}")
        logger.info("=" * 60)

        return face


def process_face(
    quadrilaterals: Sequence[QuadrilateralInput],
    image: np.ndarray,
    config: Optional[FaceConfig] = None,
) -> Face:
    """
    Convenience function for one-off face recognition.

    Example:
        >>> face = process_face(quadrilaterals, frame)
        >>> print(face.get_status_message())
    """
    processor = FaceProcessor(config=config)
    return processor.process(quadrilaterals, image)
