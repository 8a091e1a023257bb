"""
Perspective Warp Kernel

Resamples a source image into an upright output rectangle by mapping every
destination pixel back through the inverse transform.

Conventions:
- Pixel centers sit at integer coordinates, so an identity transform copies
  the source exactly.
- Source coordinates outside the image are clamped to the nearest edge pixel.
- Rows are processed in independent bands; bands may run on a thread pool
  since numpy releases the GIL during the heavy array operations.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from src.rectification.homography import PerspectiveTransform
from src.rectification.types import Interpolation

logger = logging.getLogger(__name__)

# Guard against division by ~0 for points mapped near the horizon line
_W_EPSILON = 1e-12


def _map_rows(
    inverse: np.ndarray, width: int, row_start: int, row_stop: int
) -> tuple[np.ndarray, np.ndarray]:
    """Source coordinates (sx, sy) for destination rows [row_start, row_stop)."""
    xs = np.arange(width, dtype=np.float64)
    ys = np.arange(row_start, row_stop, dtype=np.float64)
    grid_x, grid_y = np.meshgrid(xs, ys)

    sx = inverse[0, 0] * grid_x + inverse[0, 1] * grid_y + inverse[0, 2]
    sy = inverse[1, 0] * grid_x + inverse[1, 1] * grid_y + inverse[1, 2]
    w = inverse[2, 0] * grid_x + inverse[2, 1] * grid_y + inverse[2, 2]
    w = np.where(np.abs(w) < _W_EPSILON, _W_EPSILON, w)

    return sx / w, sy / w


def _sample_nearest(source: np.ndarray, sx: np.ndarray, sy: np.ndarray) -> np.ndarray:
    h, w = source.shape[:2]
    xi = np.clip(np.rint(sx), 0, w - 1).astype(np.intp)
    yi = np.clip(np.rint(sy), 0, h - 1).astype(np.intp)
    return source[yi, xi]


def _sample_bilinear(source: np.ndarray, sx: np.ndarray, sy: np.ndarray) -> np.ndarray:
    """
    Weighted average of the 4 nearest source pixels, per channel.

    Coordinates are clamped first, which replicates edge pixels outward.
    """
    h, w = source.shape[:2]
    sx = np.clip(sx, 0, w - 1)
    sy = np.clip(sy, 0, h - 1)

    x0 = np.floor(sx).astype(np.intp)
    y0 = np.floor(sy).astype(np.intp)
    x1 = np.minimum(x0 + 1, w - 1)
    y1 = np.minimum(y0 + 1, h - 1)

    fx = sx - x0
    fy = sy - y0
    if source.ndim == 3:
        fx = fx[..., np.newaxis]
        fy = fy[..., np.newaxis]

    p00 = source[y0, x0].astype(np.float64)
    p01 = source[y0, x1].astype(np.float64)
    p10 = source[y1, x0].astype(np.float64)
    p11 = source[y1, x1].astype(np.float64)

    top = p00 * (1.0 - fx) + p01 * fx
    bottom = p10 * (1.0 - fx) + p11 * fx
    blended = top * (1.0 - fy) + bottom * fy

    return np.clip(np.rint(blended), 0, 255).astype(np.uint8)


def _warp_band(
    source: np.ndarray,
    output: np.ndarray,
    inverse: np.ndarray,
    row_start: int,
    row_stop: int,
    interpolation: Interpolation,
) -> None:
    width = output.shape[1]
    sx, sy = _map_rows(inverse, width, row_start, row_stop)
    # Non-finite coordinates only occur for degenerate inputs; clamp them away
    sx = np.nan_to_num(sx, nan=0.0, posinf=source.shape[1] - 1, neginf=0.0)
    sy = np.nan_to_num(sy, nan=0.0, posinf=source.shape[0] - 1, neginf=0.0)

    if interpolation == Interpolation.NEAREST:
        output[row_start:row_stop] = _sample_nearest(source, sx, sy)
    else:
        output[row_start:row_stop] = _sample_bilinear(source, sx, sy)


def warp_perspective(
    source: np.ndarray,
    transform: PerspectiveTransform,
    width: int,
    height: int,
    interpolation: Interpolation = Interpolation.LINEAR,
    num_workers: Optional[int] = None,
    band_height: int = 64,
) -> np.ndarray:
    """
    Warp the source image into a width x height output.

    Args:
        source: uint8 array (H, W) or (H, W, C). Read, never modified.
        transform: Forward transform mapping source to output coordinates.
        width: Output width in pixels.
        height: Output height in pixels.
        interpolation: Bilinear (default) or nearest-neighbor sampling.
        num_workers: Worker threads for the row bands. None uses
            os.cpu_count(); 1 scans all bands on the calling thread.
        band_height: Number of output rows handled per task.

    Returns:
        Newly allocated uint8 array (height, width[, C]).
    """
    if width < 1 or height < 1:
        raise ValueError(f"Output size must be positive, got {width}x{height}")
    if band_height < 1:
        raise ValueError(f"band_height must be at least 1, got {band_height}")

    inverse = transform.inverse().matrix
    output = np.empty((height, width) + source.shape[2:], dtype=np.uint8)

    bands = [
        (start, min(start + band_height, height))
        for start in range(0, height, band_height)
    ]
    workers = num_workers or os.cpu_count() or 1
    workers = min(workers, len(bands))

    logger.debug(
        f"Warping to {width}x{height} ({interpolation.value}) "
        f"in {len(bands)} band(s) on {workers} worker(s)"
    )

    if workers == 1:
        for start, stop in bands:
            _warp_band(source, output, inverse, start, stop, interpolation)
        return output

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(
                _warp_band, source, output, inverse, start, stop, interpolation
            )
            for start, stop in bands
        ]
        for future in futures:
            future.result()

    return output
