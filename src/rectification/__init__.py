"""
Document Rectification

Warps a photographed document, delimited by four corner points, into an
upright rectangle as if it had been photographed straight-on.

Pipeline stages:
1. Source preparation (EXIF rotation, optional downscaling)
2. Output size from the shorter of each pair of opposite edges
3. Perspective transform from the 4 corner correspondences
4. Bilinear warp into the output rectangle
"""

from src.rectification.color_filter import apply_color_filter
from src.rectification.config_loader import load_config
from src.rectification.geometry import calculate_output_size, distance
from src.rectification.homography import PerspectiveTransform, solve_homography
from src.rectification.processor import Rectifier, rectify
from src.rectification.types import (
    DegenerateTransform,
    Document,
    FilterParams,
    InvalidGeometry,
    RectificationConfig,
    RectifiedResult,
    RectifyError,
    UnsupportedFormat,
)
from src.rectification.warp import warp_perspective

__all__ = [
    "Rectifier",
    "rectify",
    "load_config",
    "distance",
    "calculate_output_size",
    "solve_homography",
    "warp_perspective",
    "apply_color_filter",
    "PerspectiveTransform",
    "RectificationConfig",
    "RectifiedResult",
    "Document",
    "FilterParams",
    "RectifyError",
    "InvalidGeometry",
    "DegenerateTransform",
    "UnsupportedFormat",
]
