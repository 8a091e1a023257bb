"""
Perspective Transform Solver

Computes the projective transform (homography) that maps the four document
corners onto the corners of an upright output rectangle.

Each correspondence (x, y) -> (u, v) contributes two linear equations in the
eight unknown matrix entries h0..h7 (h8 is fixed to 1):

    u = (h0*x + h1*y + h2) / (h6*x + h7*y + 1)
    v = (h3*x + h4*y + h5) / (h6*x + h7*y + 1)

Four correspondences give an 8x8 system solved with numpy.linalg.solve.
"""

import logging
from itertools import combinations
from typing import Union

import numpy as np

from src.common.types import Quad
from src.rectification.types import DegenerateTransform

logger = logging.getLogger(__name__)

# Relative tolerance for collinearity, scaled by the squared extent of the points
COLLINEARITY_EPSILON = 1e-9


class PerspectiveTransform:
    """
    A 3x3 homogeneous matrix with the bottom-right entry normalized to 1.

    Example:
        >>> transform = PerspectiveTransform(np.eye(3))
        >>> transform.apply([[10.0, 20.0]])
        array([[10., 20.]])
    """

    def __init__(self, matrix: np.ndarray):
        matrix = np.asarray(matrix, dtype=np.float64)
        if matrix.shape != (3, 3):
            raise ValueError(f"Expected a 3x3 matrix, got shape {matrix.shape}")
        self.matrix = matrix

    def apply(self, points: Union[np.ndarray, list]) -> np.ndarray:
        """
        Map points of shape (N, 2) through the transform.

        Returns:
            Array of shape (N, 2) with the projected coordinates.
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        homogeneous = np.hstack([pts, np.ones((len(pts), 1))]) @ self.matrix.T
        return homogeneous[:, :2] / homogeneous[:, 2:3]

    def inverse(self) -> "PerspectiveTransform":
        """
        Return the inverse transform, normalized so its last entry is 1.

        Raises:
            DegenerateTransform: If the matrix is singular.
        """
        try:
            inv = np.linalg.inv(self.matrix)
        except np.linalg.LinAlgError as e:
            raise DegenerateTransform(f"Transform is not invertible: {e}") from e
        if abs(inv[2, 2]) > 1e-12:
            inv = inv / inv[2, 2]
        return PerspectiveTransform(inv)

    def __repr__(self) -> str:
        return f"PerspectiveTransform({np.array2string(self.matrix, precision=4)})"


def _check_non_degenerate(src: np.ndarray) -> None:
    """
    Reject point sets for which no unique homography exists.

    Raises:
        DegenerateTransform: If two points coincide or three are collinear.
    """
    extent = float(np.ptp(src, axis=0).max())
    tolerance = COLLINEARITY_EPSILON * max(extent, 1.0) ** 2

    for i, j in combinations(range(4), 2):
        if np.allclose(src[i], src[j], atol=1e-9):
            raise DegenerateTransform(f"Corner points {i} and {j} are identical")

    for i, j, k in combinations(range(4), 3):
        v1 = src[j] - src[i]
        v2 = src[k] - src[i]
        cross = v1[0] * v2[1] - v1[1] * v2[0]
        if abs(cross) <= tolerance:
            raise DegenerateTransform(
                f"Corner points {i}, {j}, {k} are collinear - "
                "cannot compute perspective transform"
            )


def solve_homography(
    src_points: Union[np.ndarray, list], dst_points: Union[np.ndarray, list]
) -> PerspectiveTransform:
    """
    Solve the unique homography mapping 4 source points onto 4 destination points.

    Args:
        src_points: Array of shape (4, 2).
        dst_points: Array of shape (4, 2), in the same order as src_points.

    Returns:
        PerspectiveTransform with T(src[i]) == dst[i].

    Raises:
        ValueError: If either input is not of shape (4, 2).
        DegenerateTransform: If the linear system is singular.
    """
    src = np.asarray(src_points, dtype=np.float64)
    dst = np.asarray(dst_points, dtype=np.float64)

    if src.shape != (4, 2) or dst.shape != (4, 2):
        raise ValueError(
            f"Expected 4 source and 4 destination points with shape (4, 2), "
            f"got {src.shape} and {dst.shape}"
        )

    _check_non_degenerate(src)

    A = np.zeros((8, 8), dtype=np.float64)
    b = np.zeros(8, dtype=np.float64)
    for i, ((x, y), (u, v)) in enumerate(zip(src, dst)):
        A[2 * i] = [x, y, 1, 0, 0, 0, -u * x, -u * y]
        A[2 * i + 1] = [0, 0, 0, x, y, 1, -v * x, -v * y]
        b[2 * i] = u
        b[2 * i + 1] = v

    try:
        h = np.linalg.solve(A, b)
    except np.linalg.LinAlgError as e:
        raise DegenerateTransform(f"Singular perspective system: {e}") from e

    matrix = np.append(h, 1.0).reshape(3, 3)

    if not np.all(np.isfinite(matrix)) or abs(np.linalg.det(matrix)) < 1e-12:
        raise DegenerateTransform("Perspective transform is not invertible")

    logger.debug(f"Solved homography:\n{matrix}")

    return PerspectiveTransform(matrix)


def get_rectification_transform(
    corners: Quad, width: int, height: int
) -> PerspectiveTransform:
    """
    Transform mapping the document corners onto a width x height rectangle.

    TL -> (0, 0), TR -> (width, 0), BR -> (width, height), BL -> (0, height).
    """
    dst = np.array(
        [
            [0, 0],  # Top-Left
            [width, 0],  # Top-Right
            [width, height],  # Bottom-Right
            [0, height],  # Bottom-Left
        ],
        dtype=np.float64,
    )
    return solve_homography(corners.to_numpy(), dst)
