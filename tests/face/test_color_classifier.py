"""
Unit tests for per-face color sampling, classification and hashing.
"""

import numpy as np
import pytest

from src.common.colors import TileColor
from src.common.types import ImageBuffer, Point
from src.face.color_classifier import (
    classify_face,
    classify_face_colors,
    compute_face_hash,
    sample_tile_color,
)
from src.face.config_loader import ColorConfig
from src.face.types import Lattice


def _reference_samples(colors):
    return [[color.rgb_array for color in row] for row in colors]


def _grid_lattice():
    return Lattice(
        origin_x=100.0, origin_y=100.0, alpha_angle=0.0, beta_angle=np.pi / 2,
        alpha_length=50.0, beta_length=50.0, gamma_ratio=1.0, sigma=0.0,
    )


class TestSampleTileColor:
    """Tests for sample_tile_color."""

    def test_bgr_raster_converted_to_rgb(self):
        """Test that a BGR raster is sampled as RGB."""
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        image[:, :] = (30, 20, 180)

        sample = sample_tile_color(ImageBuffer(data=image), Point(x=50, y=50), 10)

        np.testing.assert_allclose(sample, [180.0, 20.0, 30.0])

    def test_rgb_raster_unchanged(self):
        """Test that channel_order='rgb' keeps the channel order."""
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        image[:, :] = (180, 20, 30)

        sample = sample_tile_color(
            ImageBuffer(data=image), Point(x=50, y=50), 10, channel_order="rgb"
        )

        np.testing.assert_allclose(sample, [180.0, 20.0, 30.0])

    def test_window_mean(self):
        """Test that the sample is the mean over the window."""
        image = np.zeros((100, 100, 3), dtype=np.uint8)
        # Left half of the window white, right half black
        image[40:60, 40:50] = 255

        sample = sample_tile_color(ImageBuffer(data=image), Point(x=50, y=50), 10)

        np.testing.assert_allclose(sample, [127.5, 127.5, 127.5])

    def test_out_of_bounds_returns_zero(self):
        """Test that a window leaving the raster yields a zero sample."""
        image = np.full((100, 100, 3), 200, dtype=np.uint8)

        sample = sample_tile_color(ImageBuffer(data=image), Point(x=95, y=50), 10)

        np.testing.assert_allclose(sample, [0.0, 0.0, 0.0])

    def test_grayscale_broadcast(self):
        """Test that grayscale rasters give equal RGB components."""
        image = np.full((100, 100), 90, dtype=np.uint8)

        sample = sample_tile_color(ImageBuffer(data=image), Point(x=50, y=50), 10)

        np.testing.assert_allclose(sample, [90.0, 90.0, 90.0])

    def test_bgra_alpha_dropped(self):
        """Test that BGRA rasters are converted and alpha is ignored."""
        image = np.zeros((100, 100, 4), dtype=np.uint8)
        image[:, :] = (220, 60, 0, 17)

        sample = sample_tile_color(ImageBuffer(data=image), Point(x=50, y=50), 10)

        np.testing.assert_allclose(sample, [0.0, 60.0, 220.0])


class TestClassifyFaceColors:
    """Tests for the two-pass classifier."""

    def test_reference_colors_are_exact(self, face_colors):
        """Test that exact reference samples classify with zero error."""
        result = classify_face_colors(_reference_samples(face_colors))

        assert result.observed == face_colors
        assert result.luminance_bias == pytest.approx(0.0, abs=1e-9)
        assert result.color_error_after == pytest.approx(0.0, abs=1e-9)
        assert result.reclassified_count == 0

    def test_idempotent(self, face_colors):
        """Test that classifying reference values of the result reproduces it."""
        first = classify_face_colors(_reference_samples(face_colors))
        second = classify_face_colors(_reference_samples(first.observed))

        assert second.observed == first.observed

    def test_bias_zero_when_all_excluded(self):
        """Test that the bias is zero when every pass-1 color is excluded."""
        samples = [[np.array([150.0, 10.0, 20.0])] * 3 for _ in range(3)]

        result = classify_face_colors(samples)

        assert result.luminance_bias == 0.0
        assert all(c == TileColor.RED for row in result.observed for c in row)

    def test_uniform_darkening_corrected(self, face_colors):
        """Test that a uniformly darker face keeps its colors."""
        samples = [
            [np.clip(color.rgb_array * 0.85, 0, 255) for color in row]
            for row in face_colors
        ]

        result = classify_face_colors(samples)

        assert result.observed == face_colors
        assert result.luminance_bias > 0

    def test_custom_bias_exclusions(self):
        """Test that an empty exclusion list lets red tiles drive the bias."""
        samples = [[np.array([150.0, 10.0, 20.0])] * 3 for _ in range(3)]

        result = classify_face_colors(samples, excluded_from_bias=[])

        assert result.luminance_bias > 0

    def test_errors_before_and_after(self):
        """Test that diagnostics are non-negative and errors are per cell."""
        samples = [[np.array([200.0, 200.0, 90.0])] * 3 for _ in range(3)]

        result = classify_face_colors(samples)

        assert result.color_error_before >= 0
        assert result.color_error_after == pytest.approx(
            sum(sum(row) for row in result.color_errors)
        )


class TestClassifyFace:
    """Tests for classify_face."""

    def test_painted_face(self, face_image, face_colors):
        """Test sampling a painted BGR raster at the lattice centers."""
        result = classify_face(face_image, _grid_lattice(), ColorConfig())

        assert result.observed == face_colors
        np.testing.assert_allclose(result.measured[0][0], TileColor.RED.rgb_array)


class TestComputeFaceHash:
    """Tests for compute_face_hash."""

    def test_deterministic(self, face_colors):
        """Test that identical layouts hash identically."""
        copy = [row[:] for row in face_colors]

        assert compute_face_hash(face_colors) == compute_face_hash(copy)

    def test_fits_in_32_bits(self, face_colors):
        """Test that the hash is an unsigned 32-bit value."""
        value = compute_face_hash(face_colors)

        assert 0 <= value <= 0xFFFFFFFF

    def test_layout_changes_hash(self, face_colors):
        """Test that moving a tile changes the hash."""
        changed = [row[:] for row in face_colors]
        changed[0][0], changed[0][1] = changed[0][1], changed[0][0]

        assert compute_face_hash(changed) != compute_face_hash(face_colors)
