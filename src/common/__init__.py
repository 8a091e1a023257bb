"""
Common types shared across the rectification pipeline.

This module provides the standardized value types (image buffers, points and
corner quadrilaterals) passed between the host glue and the rectifier.
"""

from src.common.types import ImageBuffer, Point, Quad

__all__ = ["ImageBuffer", "Point", "Quad"]
