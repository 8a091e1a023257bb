"""
Common type definitions for the document rectification pipeline.

This module provides Pydantic-based type definitions for the core value types
used throughout the pipeline: image buffers, points and corner quadrilaterals.

All types are immutable once constructed:
- Points and quads are frozen models (attribute assignment raises)
- Image buffers hold a read-only view of the caller's array
"""

from typing import Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

SUPPORTED_CHANNELS = (1, 3, 4)


class ImageBuffer(BaseModel):
    """
    Read-only wrapper for decoded image arrays (numpy.ndarray).

    The rectifier only reads the source pixels, so the wrapped array is
    exposed through a non-writeable view. The caller's array is not copied.

    Attributes:
        data: The underlying numpy array containing image data.
            Shape: (H, W, C) for color images, (H, W) for grayscale.
            Dtype: uint8 (0-255).

    Example:
        >>> image = np.zeros((480, 640, 4), dtype=np.uint8)
        >>> img_buffer = ImageBuffer(data=image)
        >>> print(img_buffer.height, img_buffer.width)  # 480, 640
    """

    data: np.ndarray = Field(..., description="Image data as numpy array")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    @field_validator("data")
    @classmethod
    def _validate_image(cls, v: np.ndarray) -> np.ndarray:
        """
        Validate that the numpy array has a supported pixel layout.

        Raises:
            ValueError: If array is not a supported image format.
        """
        if not isinstance(v, np.ndarray):
            raise ValueError(f"Expected numpy.ndarray, got {type(v)}")

        if v.size == 0:
            raise ValueError("Image array is empty")

        if v.ndim not in (2, 3):
            raise ValueError(
                f"Expected 2D (grayscale) or 3D (color) image, got shape {v.shape}"
            )

        if v.ndim == 3 and v.shape[2] not in SUPPORTED_CHANNELS:
            raise ValueError(
                f"Expected 1, 3, or 4 channels for color image, got {v.shape[2]}"
            )

        if v.dtype != np.uint8:
            raise ValueError(
                f"Expected uint8 dtype for image, got {v.dtype}. "
                "Images should be in range [0, 255]"
            )

        view = v.view()
        view.flags.writeable = False
        return view

    @property
    def shape(self) -> Tuple[int, ...]:
        """Get image shape (H, W) or (H, W, C)."""
        return self.data.shape

    @property
    def height(self) -> int:
        """Get image height in pixels."""
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        """Get image width in pixels."""
        return int(self.data.shape[1])

    @property
    def channels(self) -> int:
        """Get number of channels (1 for grayscale, 3 for RGB, 4 for RGBA)."""
        if self.data.ndim == 2:
            return 1
        return int(self.data.shape[2])

    def to_numpy(self) -> np.ndarray:
        """Get the (read-only) underlying numpy array."""
        return self.data

    def __repr__(self) -> str:
        return f"ImageBuffer(shape={self.shape}, dtype={self.data.dtype})"


class Point(BaseModel):
    """
    Immutable 2D point (x, y) with floating point coordinates.

    Example:
        >>> point = Point(x=100.5, y=200)
        >>> point.distance_to(Point(x=100.5, y=210))
        10.0
    """

    x: float = Field(..., description="X-coordinate (horizontal)")
    y: float = Field(..., description="Y-coordinate (vertical)")

    model_config = ConfigDict(frozen=True)

    @field_validator("x", "y", mode="before")
    @classmethod
    def _convert_to_float(cls, v: Union[int, float, np.number]) -> float:
        if isinstance(v, (int, float, np.number)) and not isinstance(v, bool):
            return float(v)
        raise ValueError(f"Coordinate must be numeric, got {type(v)}")

    @classmethod
    def from_list(cls, coords: Sequence[float]) -> "Point":
        """
        Create Point from a sequence [x, y].

        Raises:
            ValueError: If the sequence does not contain exactly 2 elements.
        """
        if len(coords) != 2:
            raise ValueError(f"Expected list with 2 elements, got {len(coords)}")
        return cls(x=coords[0], y=coords[1])

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Convert Point to a numpy array of shape (2,)."""
        return np.array([self.x, self.y], dtype=dtype)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Point") -> float:
        """
        Calculate Euclidean distance to another point.

        Args:
            other: Target point.

        Returns:
            Euclidean distance as float.
        """
        dx = self.x - other.x
        dy = self.y - other.y
        return float(np.sqrt(dx * dx + dy * dy))

    def scale(self, factor: float) -> "Point":
        """Return a new point with both coordinates multiplied by factor."""
        return Point(x=self.x * factor, y=self.y * factor)

    def __repr__(self) -> str:
        return f"Point(x={self.x}, y={self.y})"


class Quad(BaseModel):
    """
    Four document corners in canonical order.

    The order is Top-Left, Top-Right, Bottom-Right, Bottom-Left. No convexity
    or ordering checks are performed; callers hand over corners that already
    describe a simple quadrilateral.

    Example:
        >>> quad = Quad.from_points([[0, 0], [100, 0], [100, 50], [0, 50]])
        >>> quad.to_numpy().shape
        (4, 2)
    """

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_points(cls, points: Union[np.ndarray, Sequence[Sequence[float]]]) -> "Quad":
        """
        Create a Quad from 4 [x, y] pairs ordered TL, TR, BR, BL.

        Raises:
            ValueError: If input does not have shape (4, 2).
        """
        pts = np.asarray(points, dtype=np.float64)
        if pts.shape != (4, 2):
            raise ValueError(
                f"Expected exactly 4 points with shape (4, 2), got shape {pts.shape}"
            )
        tl, tr, br, bl = (Point.from_list(p.tolist()) for p in pts)
        return cls(top_left=tl, top_right=tr, bottom_right=br, bottom_left=bl)

    @property
    def corners(self) -> Tuple[Point, Point, Point, Point]:
        """Corners as a tuple (TL, TR, BR, BL)."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def to_numpy(self, dtype: type = np.float64) -> np.ndarray:
        """Convert to an array of shape (4, 2) in TL, TR, BR, BL order."""
        return np.array([p.to_tuple() for p in self.corners], dtype=dtype)

    def scale(self, factor: float) -> "Quad":
        """Return a new Quad with every corner scaled by factor."""
        return Quad(
            top_left=self.top_left.scale(factor),
            top_right=self.top_right.scale(factor),
            bottom_right=self.bottom_right.scale(factor),
            bottom_left=self.bottom_left.scale(factor),
        )

    def __repr__(self) -> str:
        return (
            f"Quad(TL={self.top_left.to_tuple()}, TR={self.top_right.to_tuple()}, "
            f"BR={self.bottom_right.to_tuple()}, BL={self.bottom_left.to_tuple()})"
        )
