"""
Unit tests for homography module.

Tests the 4-point perspective solver against OpenCV and its failure modes.
"""

import cv2
import numpy as np
import pytest

from src.common.types import Quad
from src.rectification.homography import (
    PerspectiveTransform,
    get_rectification_transform,
    solve_homography,
)
from src.rectification.types import DegenerateTransform

SKEWED_SRC = np.array([[60, 50], [330, 70], [350, 260], [40, 240]], dtype=np.float64)
RECT_DST = np.array([[0, 0], [270, 0], [270, 190], [0, 190]], dtype=np.float64)


class TestSolveHomography:
    """Test suite for solve_homography function."""

    def test_maps_source_corners_onto_destination(self):
        transform = solve_homography(SKEWED_SRC, RECT_DST)

        np.testing.assert_allclose(transform.apply(SKEWED_SRC), RECT_DST, atol=1e-8)

    def test_matches_opencv(self):
        """Test that the solver agrees with cv2.getPerspectiveTransform."""
        transform = solve_homography(SKEWED_SRC, RECT_DST)
        expected = cv2.getPerspectiveTransform(
            SKEWED_SRC.astype(np.float32), RECT_DST.astype(np.float32)
        )

        np.testing.assert_allclose(transform.matrix, expected, rtol=1e-5, atol=1e-7)

    def test_bottom_right_entry_is_one(self):
        transform = solve_homography(SKEWED_SRC, RECT_DST)
        assert transform.matrix[2, 2] == 1.0

    def test_axis_aligned_rectangle_is_identity(self):
        quad = Quad.from_points([[0, 0], [100, 0], [100, 50], [0, 50]])
        transform = get_rectification_transform(quad, 100, 50)

        np.testing.assert_allclose(transform.matrix, np.eye(3), atol=1e-9)

    def test_inverse_round_trip(self):
        transform = solve_homography(SKEWED_SRC, RECT_DST)
        inverse = transform.inverse()

        np.testing.assert_allclose(inverse.apply(RECT_DST), SKEWED_SRC, atol=1e-6)
        assert inverse.matrix[2, 2] == pytest.approx(1.0)

    def test_list_input(self):
        transform = solve_homography(SKEWED_SRC.tolist(), RECT_DST.tolist())
        assert isinstance(transform, PerspectiveTransform)

    def test_invalid_point_count(self):
        with pytest.raises(ValueError, match="Expected 4 source and 4 destination"):
            solve_homography(SKEWED_SRC[:3], RECT_DST[:3])

    def test_three_collinear_points_rejected(self):
        """Test DegenerateTransform when a corner lies on a diagonal."""
        src = np.array([[0, 0], [100, 0], [100, 100], [50, 50]], dtype=np.float64)

        with pytest.raises(DegenerateTransform, match="collinear"):
            solve_homography(src, RECT_DST)

    def test_duplicate_points_rejected(self):
        src = np.array([[0, 0], [100, 0], [100, 0], [0, 100]], dtype=np.float64)

        with pytest.raises(DegenerateTransform, match="identical"):
            solve_homography(src, RECT_DST)

    def test_degenerate_is_value_error(self):
        """Test that callers catching ValueError also see degenerate transforms."""
        src = np.array([[0, 0], [1, 1], [2, 2], [3, 3]], dtype=np.float64)

        with pytest.raises(ValueError):
            solve_homography(src, RECT_DST)


class TestPerspectiveTransform:
    """Test suite for PerspectiveTransform class."""

    def test_rejects_non_square_matrix(self):
        with pytest.raises(ValueError, match="Expected a 3x3 matrix"):
            PerspectiveTransform(np.eye(2))

    def test_apply_single_point(self):
        translate = PerspectiveTransform(
            np.array([[1, 0, 5], [0, 1, -3], [0, 0, 1]], dtype=np.float64)
        )
        np.testing.assert_allclose(translate.apply([2.0, 2.0]), [[7.0, -1.0]])

    def test_singular_matrix_has_no_inverse(self):
        singular = PerspectiveTransform(np.zeros((3, 3)))

        with pytest.raises(DegenerateTransform, match="not invertible"):
            singular.inverse()
