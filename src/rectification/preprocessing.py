"""
Pre-warp image preparation.

Bakes the EXIF rotation into the pixel data and bounds the working size of
very large photos. Both steps run before corner coordinates are applied,
because corners are defined on the upright (rotated) image.
"""

import logging
from typing import Optional, Tuple

import cv2
import numpy as np

from src.common.types import Quad
from src.rectification.types import VALID_ROTATIONS

logger = logging.getLogger(__name__)

_CV2_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate_image(image: np.ndarray, rotation: int) -> np.ndarray:
    """
    Rotate an image clockwise by a multiple of 90 degrees.

    Rotations of 90 and 270 swap width and height. A rotation of 0 returns
    the input array itself.

    Raises:
        ValueError: If rotation is not one of 0, 90, 180, 270.
    """
    if rotation not in VALID_ROTATIONS:
        raise ValueError(
            f"Invalid rotation: {rotation}. Must be one of {list(VALID_ROTATIONS)}"
        )

    if rotation == 0:
        return image

    rotated = cv2.rotate(image, _CV2_ROTATIONS[rotation])
    # cv2 drops a trailing singleton channel axis
    if image.ndim == 3 and rotated.ndim == 2:
        rotated = rotated[..., np.newaxis]

    logger.debug(
        f"Rotated image by {rotation} deg: {image.shape[1]}x{image.shape[0]} -> "
        f"{rotated.shape[1]}x{rotated.shape[0]}"
    )
    return rotated


def compute_downscale_factor(
    width: int, height: int, max_content_size: Optional[int]
) -> int:
    """
    Integer subsampling factor that bounds the longer image side.

    Returns floor(longer / max_content_size), at least 1. A max_content_size
    of None or 0 disables downscaling.
    """
    if not max_content_size:
        return 1
    return max(1, max(width, height) // max_content_size)


def downscale_image(image: np.ndarray, factor: int) -> np.ndarray:
    """
    Shrink an image by an integer factor using area interpolation.

    Raises:
        ValueError: If factor is smaller than 1.
    """
    if factor < 1:
        raise ValueError(f"Downscale factor must be at least 1, got {factor}")
    if factor == 1:
        return image

    h, w = image.shape[:2]
    new_w, new_h = max(1, w // factor), max(1, h // factor)
    resized = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
    if image.ndim == 3 and resized.ndim == 2:
        resized = resized[..., np.newaxis]

    logger.info(f"Downscaled source by {factor}: {w}x{h} -> {new_w}x{new_h}")
    return resized


def prepare_source(
    image: np.ndarray,
    corners: Quad,
    rotation: int = 0,
    max_content_size: Optional[int] = None,
    corner_scale: float = 1.0,
) -> Tuple[np.ndarray, Quad, int]:
    """
    Rotate and downscale the source, keeping the corners in the same space.

    Args:
        image: Decoded source pixels, before EXIF rotation.
        corners: Corners in preview coordinates of the rotated image.
        rotation: Clockwise EXIF rotation in degrees.
        max_content_size: Longest allowed side; None disables downscaling.
        corner_scale: Multiplier from preview to full-image coordinates.

    Returns:
        Tuple of (prepared image, corners in prepared image space, factor).
    """
    rotated = rotate_image(image, rotation)

    if corner_scale <= 0:
        raise ValueError(f"corner_scale must be positive, got {corner_scale}")
    image_corners = corners.scale(corner_scale) if corner_scale != 1.0 else corners

    h, w = rotated.shape[:2]
    factor = compute_downscale_factor(w, h, max_content_size)
    if factor == 1:
        return rotated, image_corners, 1

    return downscale_image(rotated, factor), image_corners.scale(1.0 / factor), factor
