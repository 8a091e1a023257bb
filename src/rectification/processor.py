"""
Main processor for the Rectification module.

Orchestrates the complete pipeline:
1. Buffer format validation
2. Rotation and downscaling of the source
3. Output size computation
4. Perspective transform solving
5. Warp into the output rectangle

Implements fail-fast strategy: the first failure raises and no partial
buffer is returned.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import numpy as np
from pydantic import ValidationError

from src.common.types import ImageBuffer, Quad
from src.rectification.color_filter import apply_color_filter
from src.rectification.config_loader import load_config
from src.rectification.geometry import calculate_output_size
from src.rectification.homography import get_rectification_transform
from src.rectification.preprocessing import prepare_source
from src.rectification.types import (
    DegenerateTransform,
    Document,
    InvalidGeometry,
    RectificationConfig,
    RectifiedResult,
    UnsupportedFormat,
)
from src.rectification.warp import warp_perspective

logger = logging.getLogger(__name__)

# Marks "take max_content_size from the configuration"; None disables downscaling
_FROM_CONFIG = object()


def _as_image_buffer(image: Union[ImageBuffer, np.ndarray]) -> ImageBuffer:
    if isinstance(image, ImageBuffer):
        return image
    try:
        return ImageBuffer(data=image)
    except ValidationError as e:
        message = "; ".join(err["msg"] for err in e.errors())
        raise UnsupportedFormat(f"Unsupported image buffer: {message}") from e


def _as_quad(corners: Union[Quad, np.ndarray, list]) -> Quad:
    if isinstance(corners, Quad):
        return corners
    return Quad.from_points(corners)


class Rectifier:
    """
    Perspective rectification of photographed documents.

    Example:
        >>> rectifier = Rectifier()
        >>> image = cv2.cvtColor(cv2.imread("page.jpg"), cv2.COLOR_BGR2RGB)
        >>> corners = Quad.from_points([[120, 80], [900, 110], [880, 1300], [90, 1250]])
        >>> result = rectifier.rectify(image, corners)
        >>> result.image.shape
        (1170, 780, 3)
    """

    def __init__(
        self,
        config: Optional[RectificationConfig] = None,
        config_path: Optional[Path] = None,
    ):
        """
        Initialize the rectifier.

        Args:
            config: Pre-loaded configuration object. If None, will load from file.
            config_path: Path to config file. If None, uses default location.
        """
        if config is not None:
            self.config = config
            logger.info("Using provided configuration")
        else:
            self.config = load_config(config_path) if config_path else load_config()
            logger.info("Loaded configuration from file")

    def rectify(
        self,
        image: Union[ImageBuffer, np.ndarray],
        corners: Union[Quad, np.ndarray, list],
        rotation: int = 0,
        max_content_size=_FROM_CONFIG,
        corner_scale: float = 1.0,
    ) -> RectifiedResult:
        """
        Warp the quadrilateral delimited by the corners into an upright rectangle.

        Args:
            image: Decoded source pixels (uint8, 1/3/4 channels). Not modified.
            corners: Corners TL, TR, BR, BL in coordinates of the rotated image,
                expressed in preview space when corner_scale != 1.
            rotation: Clockwise rotation (0, 90, 180, 270) baked in before
                the corners are applied.
            max_content_size: Longest source side before subsampling. Defaults
                to the configured value; None disables downscaling.
            corner_scale: Multiplier mapping corner coordinates to image pixels.

        Returns:
            RectifiedResult holding the newly allocated output image.

        Raises:
            UnsupportedFormat: If the buffer layout is not supported.
            InvalidGeometry: If the output width or height rounds to 0.
            DegenerateTransform: If the corners admit no unique homography.
            ValueError: If rotation or corner_scale is invalid.
        """
        if max_content_size is _FROM_CONFIG:
            max_content_size = self.config.preprocessing.max_content_size

        buffer = _as_image_buffer(image)
        quad = _as_quad(corners)

        logger.info(
            f"Rectifying {buffer.width}x{buffer.height}x{buffer.channels} image "
            f"(rotation={rotation}, max_content_size={max_content_size})"
        )

        source, quad, factor = prepare_source(
            buffer.to_numpy(),
            quad,
            rotation=rotation,
            max_content_size=max_content_size,
            corner_scale=corner_scale,
        )
        logger.debug(f"Corners in source space: {quad}")

        try:
            width, height = calculate_output_size(
                quad, self.config.geometry.size_rounding
            )
            transform = get_rectification_transform(quad, width, height)
        except (InvalidGeometry, DegenerateTransform) as e:
            logger.warning(f"Rectification rejected: {e}")
            raise

        processing = self.config.processing
        output = warp_perspective(
            source,
            transform,
            width,
            height,
            interpolation=processing.warp_interpolation,
            num_workers=processing.num_workers,
            band_height=processing.band_height,
        )

        logger.info(f"Successfully rectified document to {width}x{height} rectangle")

        return RectifiedResult(
            image=output,
            width=width,
            height=height,
            transform=transform.matrix,
            scale_factor=factor,
            rotation=rotation,
        )

    def process_document(
        self,
        image: Union[ImageBuffer, np.ndarray],
        document: Document,
        rotation: int = 0,
        corner_scale: float = 1.0,
    ) -> RectifiedResult:
        """
        Rectify a document and apply its color filter, if any.

        The filter runs on the rectified pixels only; geometry is unaffected.
        """
        result = self.rectify(
            image, document.corners, rotation=rotation, corner_scale=corner_scale
        )
        if document.color_filter is not None:
            result.image = apply_color_filter(result.image, document.color_filter)
        return result


def rectify(
    image: Union[ImageBuffer, np.ndarray],
    corners: Union[Quad, np.ndarray, list],
    rotation: int = 0,
    max_content_size=_FROM_CONFIG,
    corner_scale: float = 1.0,
    config: Optional[RectificationConfig] = None,
) -> RectifiedResult:
    """
    Convenience function for one-shot rectification.

    Uses the built-in default configuration when config is None.

    Example:
        >>> corners = [[0, 0], [100, 0], [100, 50], [0, 50]]
        >>> result = rectify(image, corners, max_content_size=None)
        >>> (result.width, result.height)
        (100, 50)
    """
    rectifier = Rectifier(config=config or RectificationConfig.default())
    return rectifier.rectify(
        image,
        corners,
        rotation=rotation,
        max_content_size=max_content_size,
        corner_scale=corner_scale,
    )
