"""
Geometric helper functions for the Rectification module.

Computes edge lengths and the integer output size of the rectified page
before any transform is solved.
"""

import logging
import math
from typing import Tuple

from src.common.types import Point, Quad
from src.rectification.types import InvalidGeometry, SizeRounding

logger = logging.getLogger(__name__)


def distance(a: Point, b: Point) -> float:
    """Euclidean distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def calculate_edge_lengths(corners: Quad) -> Tuple[float, float, float, float]:
    """
    Calculate the length of all 4 edges of the corner quadrilateral.

    Returns:
        Tuple of (top_edge, right_edge, bottom_edge, left_edge) lengths.

    Example:
        >>> quad = Quad.from_points([[0, 0], [300, 0], [300, 100], [0, 100]])
        >>> calculate_edge_lengths(quad)
        (300.0, 100.0, 300.0, 100.0)
    """
    top_edge = distance(corners.top_left, corners.top_right)
    right_edge = distance(corners.top_right, corners.bottom_right)
    bottom_edge = distance(corners.bottom_left, corners.bottom_right)
    left_edge = distance(corners.top_left, corners.bottom_left)

    logger.debug(
        f"Edge lengths - Top: {top_edge:.1f}, Right: {right_edge:.1f}, "
        f"Bottom: {bottom_edge:.1f}, Left: {left_edge:.1f}"
    )

    return top_edge, right_edge, bottom_edge, left_edge


def _to_pixels(length: float, rounding: SizeRounding) -> int:
    if rounding == SizeRounding.ROUND:
        return int(math.floor(length + 0.5))
    return int(math.floor(length))


def calculate_output_size(
    corners: Quad, rounding: SizeRounding = SizeRounding.FLOOR
) -> Tuple[int, int]:
    """
    Calculate the integer width and height of the rectified page.

    A skewed photo makes opposite edges unequal. The shorter edge of each
    pair is used so the page is never upsampled past its tightest edge.

    Args:
        corners: Document corners in TL, TR, BR, BL order.
        rounding: How fractional edge lengths become pixel counts.

    Returns:
        Tuple of (width, height) in pixels.

    Raises:
        InvalidGeometry: If width or height rounds to 0.
    """
    top, right, bottom, left = calculate_edge_lengths(corners)

    width = _to_pixels(min(top, bottom), rounding)
    height = _to_pixels(min(left, right), rounding)

    if width < 1 or height < 1:
        raise InvalidGeometry(
            f"Output dimensions too small: width={width}, height={height}. "
            "Corners may be coincident or collinear."
        )

    logger.debug(f"Output dimensions ({rounding.value}): {width} x {height}")

    return width, height
