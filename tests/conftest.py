"""
Pytest Configuration and Shared Fixtures

This file contains pytest configuration and fixtures that are available
to all test modules.
"""

import numpy as np
import pytest

from src.rectification.types import (
    GeometryConfig,
    PreprocessingConfig,
    ProcessingConfig,
    RectificationConfig,
)


@pytest.fixture
def random_image():
    """Fixture providing a reproducible noisy RGB image (H=40, W=60)."""
    rng = np.random.default_rng(seed=42)
    return rng.integers(0, 256, size=(40, 60, 3), dtype=np.uint8)


@pytest.fixture
def gradient_image():
    """Fixture providing a smooth RGB gradient (H=400, W=600)."""
    height, width = 400, 600
    ys, xs = np.mgrid[0:height, 0:width]

    image = np.empty((height, width, 3), dtype=np.uint8)
    image[..., 0] = np.round(xs * 255.0 / (width - 1)).astype(np.uint8)
    image[..., 1] = np.round(ys * 255.0 / (height - 1)).astype(np.uint8)
    image[..., 2] = 128
    return image


@pytest.fixture
def sample_document_image():
    """Fixture providing a white photo with a skewed dark page drawn on it."""
    import cv2

    image = np.full((300, 400, 3), 255, dtype=np.uint8)
    pts = np.array([[60, 50], [330, 70], [350, 260], [40, 240]], dtype=np.int32)
    cv2.fillPoly(image, [pts], (50, 50, 50))

    return image, pts.astype(np.float64)


@pytest.fixture
def single_thread_config():
    """Fixture providing a config with downscaling disabled and one worker."""
    return RectificationConfig(
        geometry=GeometryConfig(),
        preprocessing=PreprocessingConfig(max_content_size=None),
        processing=ProcessingConfig(num_workers=1),
    )
