"""
Color filter post-pass.

Applies contrast, brightness and saturation adjustments to an already
rectified page through a single 4x5 color matrix (RGBA rows, plus offset
column). Independent of the geometric pipeline.
"""

import logging

import cv2
import numpy as np

from src.rectification.types import FilterParams

logger = logging.getLogger(__name__)

# Luminance weights used for desaturation
LUMA_R = 0.213
LUMA_G = 0.715
LUMA_B = 0.072

MID_GRAY = 128.0


def saturation_matrix(saturation: float) -> np.ndarray:
    """4x5 matrix interpolating between grayscale (0.0) and identity (1.0)."""
    s = saturation
    inv = 1.0 - s
    r, g, b = LUMA_R * inv, LUMA_G * inv, LUMA_B * inv
    return np.array(
        [
            [r + s, g, b, 0, 0],
            [r, g + s, b, 0, 0],
            [r, g, b + s, 0, 0],
            [0, 0, 0, 1, 0],
        ],
        dtype=np.float64,
    )


def contrast_brightness_matrix(contrast: float, brightness: float) -> np.ndarray:
    """4x5 matrix scaling color channels around mid-gray, then offsetting."""
    offset = MID_GRAY * (1.0 - contrast) + brightness
    return np.array(
        [
            [contrast, 0, 0, 0, offset],
            [0, contrast, 0, 0, offset],
            [0, 0, contrast, 0, offset],
            [0, 0, 0, 1, 0],
        ],
        dtype=np.float64,
    )


def concat_color_matrices(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """Matrix equivalent to applying `first` and then `second`."""
    a = np.vstack([first, [0, 0, 0, 0, 1]])
    b = np.vstack([second, [0, 0, 0, 0, 1]])
    return (b @ a)[:4]


def build_color_matrix(params: FilterParams) -> np.ndarray:
    """
    Compose the full 4x5 color matrix for the given parameters.

    Raises:
        ValueError: If contrast or saturation is negative.
    """
    if params.contrast < 0:
        raise ValueError(f"contrast cannot be negative, got {params.contrast}")
    if params.saturation < 0:
        raise ValueError(f"saturation cannot be negative, got {params.saturation}")

    return concat_color_matrices(
        saturation_matrix(params.saturation),
        contrast_brightness_matrix(params.contrast, params.brightness),
    )


def apply_color_filter(image: np.ndarray, params: FilterParams) -> np.ndarray:
    """
    Apply the color filter to a uint8 image, returning a new array.

    Grayscale images only receive contrast and brightness. The alpha channel
    of RGBA images is left untouched.

    Args:
        image: uint8 array (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).
        params: Filter parameters.

    Returns:
        Filtered uint8 array with the same shape as the input.
    """
    matrix = build_color_matrix(params)

    if params.is_identity():
        return image.copy()

    channels = 1 if image.ndim == 2 else image.shape[2]
    src = image.astype(np.float32)

    if channels == 1:
        gain = params.contrast
        offset = MID_GRAY * (1.0 - params.contrast) + params.brightness
        filtered = src * gain + offset
    elif channels == 3:
        # Drop the alpha row/column, keep the offset column
        m = np.hstack([matrix[:3, :3], matrix[:3, 4:5]]).astype(np.float32)
        filtered = cv2.transform(src, m)
    else:
        filtered = cv2.transform(src, matrix.astype(np.float32))

    logger.debug(
        f"Applied color filter: contrast={params.contrast}, "
        f"brightness={params.brightness}, saturation={params.saturation}"
    )

    return np.clip(np.rint(filtered), 0, 255).astype(np.uint8).reshape(image.shape)
