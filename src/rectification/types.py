"""
Data types and structures for the Rectification module.

Provides type-safe containers for configuration, results and the error
hierarchy surfaced to callers.
"""

from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional

import numpy as np

from src.common.types import Quad


class RectifyError(ValueError):
    """Base class for all rectification failures."""


class InvalidGeometry(RectifyError):
    """Corners produce a zero-width or zero-height output rectangle."""


class DegenerateTransform(RectifyError):
    """The 4-point perspective system is singular (collinear/coincident corners)."""


class UnsupportedFormat(RectifyError):
    """The source buffer's dtype or channel layout is not recognized."""


class SizeRounding(Enum):
    """Policy for converting edge lengths to integer pixel counts."""

    FLOOR = "floor"
    ROUND = "round"


class Interpolation(Enum):
    """Resampling kernels supported by the warp."""

    LINEAR = "linear"
    NEAREST = "nearest"


VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass
class GeometryConfig:
    """Configuration for output size computation."""

    size_rounding: SizeRounding = SizeRounding.FLOOR


@dataclass
class PreprocessingConfig:
    """Configuration for pre-warp image preparation."""

    max_content_size: Optional[int] = 4000  # None disables downscaling


@dataclass
class ProcessingConfig:
    """Configuration for the warp kernel."""

    warp_interpolation: Interpolation = Interpolation.LINEAR
    num_workers: Optional[int] = None  # None -> os.cpu_count()
    band_height: int = 64  # Rows per worker task


@dataclass
class RectificationConfig:
    """Complete rectification module configuration."""

    geometry: GeometryConfig
    preprocessing: PreprocessingConfig
    processing: ProcessingConfig

    @classmethod
    def default(cls) -> "RectificationConfig":
        return cls(
            geometry=GeometryConfig(),
            preprocessing=PreprocessingConfig(),
            processing=ProcessingConfig(),
        )


@dataclass(frozen=True)
class FilterParams:
    """
    Parameters of the optional color post-pass.

    Attributes:
        contrast: Multiplier around mid-gray (1.0 = unchanged).
        brightness: Offset added to every color channel, in 0-255 units.
        saturation: 0.0 = grayscale, 1.0 = unchanged, >1.0 = boosted.
    """

    contrast: float = 1.0
    brightness: float = 0.0
    saturation: float = 1.0

    def is_identity(self) -> bool:
        return self.contrast == 1.0 and self.brightness == 0.0 and self.saturation == 1.0


@dataclass(frozen=True)
class Document:
    """
    A photographed page awaiting rectification.

    Corner adjustments never mutate a Document; they produce a new one.
    """

    corners: Quad
    color_filter: Optional[FilterParams] = None
    original_photo_path: Optional[Path] = None

    def with_corners(self, corners: Quad) -> "Document":
        return replace(self, corners=corners)

    def with_color_filter(self, color_filter: Optional[FilterParams]) -> "Document":
        return replace(self, color_filter=color_filter)


@dataclass
class RectifiedResult:
    """
    Output from the rectification pipeline.

    Attributes:
        image: Newly allocated uint8 array (height, width[, channels]) in the
            source buffer's channel layout. Owned by the caller.
        width: Output width in pixels.
        height: Output height in pixels.
        transform: 3x3 matrix mapping (downscaled) source coordinates to
            output coordinates.
        scale_factor: Integer downscale factor applied before warping (1 = none).
        rotation: Clockwise rotation in degrees applied before warping.
    """

    image: np.ndarray
    width: int
    height: int
    transform: np.ndarray
    scale_factor: int = 1
    rotation: int = 0

    @property
    def channels(self) -> int:
        return 1 if self.image.ndim == 2 else int(self.image.shape[2])
