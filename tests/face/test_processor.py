"""
Integration tests for the face recognition pipeline.
"""

import math

import pytest

import src.face.processor as processor_module
from src.face.config_loader import FaceConfig, LatticeConfig
from src.face.processor import FaceProcessor, calculate_face_metrics, process_face
from src.face.types import (
    CellAssignment,
    FaceRecognitionStatus,
    Quadrilateral,
    QuadrilateralStatus,
    TileLayout,
    empty_grid,
)


@pytest.fixture
def processor():
    return FaceProcessor(config=FaceConfig())


def _ordered_squares(grid_squares):
    return [grid_squares[(n, m)] for n in range(3) for m in range(3)]


class TestCalculateFaceMetrics:
    """Tests for calculate_face_metrics."""

    def test_arithmetic_means(self):
        """Test that angles and gamma are plain means."""
        quads = []
        for alpha, beta, gamma in [(0.0, 1.5, 1.0), (0.2, 1.7, 1.2)]:
            quad = Quadrilateral.from_points([[0, 0], [1, 0], [1, 1], [0, 1]])
            quad.alpha_angle, quad.beta_angle, quad.gamma_ratio = alpha, beta, gamma
            quads.append(quad)

        alpha, beta, gamma = calculate_face_metrics(quads)

        assert alpha == pytest.approx(0.1)
        assert beta == pytest.approx(1.6)
        assert gamma == pytest.approx(1.1)

    def test_non_finite_rejected(self):
        """Test that NaN metrics are reported as unusable."""
        quad = Quadrilateral.from_points([[0, 0], [1, 0], [1, 1], [0, 1]])
        quad.alpha_angle = math.nan
        quad.gamma_ratio = 1.0

        assert calculate_face_metrics([quad]) is None

    def test_non_positive_gamma_rejected(self):
        """Test that gamma <= 0 is reported as unusable."""
        quad = Quadrilateral.from_points([[0, 0], [1, 0], [1, 1], [0, 1]])

        assert calculate_face_metrics([quad]) is None


class TestFaceProcessor:
    """Tests for FaceProcessor.process."""

    def test_init_loads_default_config(self):
        """Test that the processor loads the bundled config when none is given."""
        assert FaceProcessor().config == FaceConfig()

    def test_solved_face(self, processor, grid_squares, face_image, face_colors):
        """Test a clean synthetic face end to end."""
        face = processor.process(_ordered_squares(grid_squares), face_image)

        assert face.status == FaceRecognitionStatus.SOLVED
        assert face.is_solved()
        assert face.observed_tile_array == face_colors
        assert face.lattice.move_count == 0
        assert face.lattice.sigma == pytest.approx(0.0, abs=1e-6)
        assert face.hash_code != 0
        assert face.get_status_message() == "Face solved"
        assert all(q.status == QuadrilateralStatus.VALID for q in face.quadrilaterals)

    def test_input_order_does_not_matter(self, processor, grid_squares, face_image):
        """Test that shuffled candidates produce the same face."""
        squares = _ordered_squares(grid_squares)

        face_a = processor.process(squares, face_image)
        face_b = processor.process(list(reversed(squares)), face_image)

        assert face_a.observed_tile_array == face_b.observed_tile_array
        assert face_a.hash_code == face_b.hash_code

    def test_noise_candidates_ignored(
        self, processor, grid_squares, face_image, face_colors, make_square
    ):
        """Test that rejected candidates do not disturb the result."""
        squares = _ordered_squares(grid_squares)
        noise = [
            make_square(20, 20, half=5),
            [[0, 0], [90, 0], [0, 90]],
        ]

        face = processor.process(squares + noise, face_image)

        assert face.status == FaceRecognitionStatus.SOLVED
        assert face.observed_tile_array == face_colors
        assert face.quadrilaterals[9].status == QuadrilateralStatus.AREA
        assert face.quadrilaterals[10].status == QuadrilateralStatus.NOT_4_POINTS

    def test_partial_face_solved(self, processor, grid_squares, face_image, face_colors):
        """Test that corners and center alone are enough to sample all nine tiles."""
        squares = [
            grid_squares[key]
            for key in [(0, 0), (2, 0), (0, 2), (2, 2), (1, 1)]
        ]

        face = processor.process(squares, face_image)

        assert face.status == FaceRecognitionStatus.SOLVED
        assert face.observed_tile_array == face_colors

    def test_insufficient_after_outlier_filter(self, processor, face_image, make_square):
        """Test that two aligned squares and a rotated one are insufficient."""
        quads = [
            make_square(100, 100),
            make_square(150, 100),
            [[200, 70], [230, 100], [200, 130], [170, 100]],
        ]

        face = processor.process(quads, face_image)

        assert face.status == FaceRecognitionStatus.INSUFFICIENT
        assert face.quadrilaterals[2].status == QuadrilateralStatus.OUTLIER
        assert "2 valid" in face.get_status_message()
        assert face.hash_code == 0

    def test_bad_metrics(self, processor, grid_squares, face_image, monkeypatch):
        """Test that unusable metrics stop the pipeline."""
        monkeypatch.setattr(processor_module, "calculate_face_metrics", lambda quads: None)

        face = processor.process(_ordered_squares(grid_squares), face_image)

        assert face.status == FaceRecognitionStatus.BAD_METRICS

    def test_inadequate_layout(self, processor, grid_squares, face_image, monkeypatch):
        """Test that a layout with empty columns stops the pipeline."""

        def fake_layout(quads, alpha, beta):
            grid = empty_grid()
            grid[0][0], grid[1][0], grid[2][0] = quads[:3]
            cells = [
                [CellAssignment.from_candidates([q] if q is not None else []) for q in row]
                for row in grid
            ]
            return TileLayout(cells=cells, grid=grid)

        monkeypatch.setattr(processor_module, "do_initial_layout", fake_layout)

        face = processor.process(_ordered_squares(grid_squares), face_image)

        assert face.status == FaceRecognitionStatus.INADEQUATE
        assert face.lattice is None

    def test_blocked_relocation(self, grid_squares, face_image, make_square):
        """Test that an unreachable threshold ends in BLOCKED."""
        config = FaceConfig(lattice=LatticeConfig(face_lms_threshold=1.0))
        squares = _ordered_squares(grid_squares)
        squares[4] = make_square(160, 150)

        face = FaceProcessor(config=config).process(squares, face_image)

        assert face.status == FaceRecognitionStatus.BLOCKED
        assert face.lattice is not None
        assert "blocked" in face.get_status_message()
        assert face.observed_tile_array[0][0] is None

    def test_invalid_candidate_shape_raises(self, processor, face_image):
        """Test that malformed polygons raise."""
        with pytest.raises(ValueError, match="Expected polygon points"):
            processor.process([[1, 2, 3]], face_image)


class TestProcessFace:
    """Tests for the process_face convenience function."""

    def test_process_face(self, grid_squares, face_image, face_colors):
        """Test one-off processing with an explicit config."""
        face = process_face(_ordered_squares(grid_squares), face_image, FaceConfig())

        assert face.is_solved()
        assert face.observed_tile_array == face_colors
