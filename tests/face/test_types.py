"""
Unit tests for face module data types.
"""

import math

import pytest

from src.face.types import (
    CellAssignment,
    CellAssignmentKind,
    Face,
    FaceRecognitionStatus,
    Lattice,
    LatticeFit,
    Quadrilateral,
    QuadrilateralStatus,
)


class TestCellAssignment:
    """Tests for CellAssignment.from_candidates."""

    def _quad(self):
        return Quadrilateral.from_points([[0, 0], [1, 0], [1, 1], [0, 1]])

    def test_unassigned(self):
        cell = CellAssignment.from_candidates([])

        assert cell.kind == CellAssignmentKind.UNASSIGNED
        assert cell.chosen is None

    def test_single(self):
        quad = self._quad()
        cell = CellAssignment.from_candidates([quad])

        assert cell.kind == CellAssignmentKind.SINGLE
        assert cell.chosen is quad

    def test_conflict_first_wins(self):
        first, second = self._quad(), self._quad()
        cell = CellAssignment.from_candidates([first, second])

        assert cell.kind == CellAssignmentKind.CONFLICT
        assert cell.chosen is first
        assert len(cell.candidates) == 2


class TestLattice:
    """Tests for Lattice."""

    def test_from_fit_derives_beta_length(self):
        """Test that beta spacing is gamma times alpha spacing."""
        fit = LatticeFit(origin_x=10.0, origin_y=20.0, alpha_length=30.0, sigma=1.5, valid=True)

        lattice = Lattice.from_fit(fit, 0.0, math.pi / 2, 1.5, move_count=2)

        assert lattice.beta_length == pytest.approx(45.0)
        assert lattice.sigma == 1.5
        assert lattice.move_count == 2

    def test_tile_center_rotated_axes(self):
        """Test predicted centers on a lattice rotated by 30 degrees."""
        alpha = math.radians(30)
        lattice = Lattice(
            origin_x=0.0, origin_y=0.0, alpha_angle=alpha, beta_angle=alpha + math.pi / 2,
            alpha_length=10.0, beta_length=10.0, gamma_ratio=1.0, sigma=0.0,
        )

        center = lattice.tile_center(1, 1)

        assert center.x == pytest.approx(10 * math.cos(alpha) - 10 * math.sin(alpha))
        assert center.y == pytest.approx(10 * math.sin(alpha) + 10 * math.cos(alpha))


class TestFace:
    """Tests for Face."""

    def test_defaults(self):
        """Test that a fresh face is unknown with empty arrays."""
        face = Face()

        assert face.status == FaceRecognitionStatus.UNKNOWN
        assert not face.is_solved()
        assert face.hash_code == 0
        assert all(c is None for row in face.observed_tile_array for c in row)
        assert all(q is None for row in face.grid for q in row)

    def test_status_messages(self):
        """Test human-readable messages for failure statuses."""
        quad = Quadrilateral.from_points([[0, 0], [1, 0], [1, 1], [0, 1]])
        quad.status = QuadrilateralStatus.VALID
        face = Face(status=FaceRecognitionStatus.INSUFFICIENT, quadrilaterals=[quad])

        assert face.get_status_message() == "Only 1 valid quadrilateral(s) available"

        face.status = FaceRecognitionStatus.INCOMPLETE
        assert face.get_status_message() == "Relocation did not converge"

        face.lattice = Lattice(
            origin_x=0.0, origin_y=0.0, alpha_angle=0.0, beta_angle=math.pi / 2,
            alpha_length=10.0, beta_length=10.0, gamma_ratio=1.0, sigma=50.0, move_count=6,
        )
        assert face.get_status_message() == "Relocation did not converge after 6 moves"
