"""
I/O Utilities

File input/output operations used by the command-line host. The rectifier
itself never touches files.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
import yaml
from PIL import Image

logger = logging.getLogger(__name__)

EXIF_ORIENTATION_TAG = 0x0112

# EXIF orientation value -> clockwise rotation in degrees
EXIF_ROTATIONS = {3: 180, 6: 90, 8: 270}


def exif_rotation(image: Image.Image) -> int:
    """Clockwise rotation encoded in the EXIF orientation tag (0 if absent)."""
    orientation = image.getexif().get(EXIF_ORIENTATION_TAG, 1)
    return EXIF_ROTATIONS.get(orientation, 0)


def load_image(file_path: Path) -> Tuple[np.ndarray, int]:
    """
    Decode an image file and report its EXIF rotation.

    The rotation is returned, not applied, so the caller can bake it in
    before applying corner coordinates.

    Args:
        file_path: Image file path.

    Returns:
        Tuple of (uint8 RGB, RGBA or grayscale array, rotation in degrees).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is empty.
        PermissionError: If the file cannot be read.
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File doesn't exist - {file_path}")

    if file_path.stat().st_size == 0:
        raise ValueError(f"File is empty {file_path}")

    if not os.access(file_path, os.R_OK):
        raise PermissionError(f"You don't have permission to read {file_path}")

    with Image.open(file_path) as img:
        rotation = exif_rotation(img)
        if img.mode not in ("L", "RGB", "RGBA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        pixels = np.array(img, dtype=np.uint8)

    logger.debug(
        f"Loaded {file_path.name}: {pixels.shape[1]}x{pixels.shape[0]}, "
        f"rotation={rotation}"
    )
    return pixels, rotation


def save_image(image: np.ndarray, file_path: Path, quality: int = 95) -> None:
    """Save an RGB, RGBA or grayscale uint8 array, creating parent directories."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    if image.ndim == 3 and image.shape[2] == 1:
        image = image[..., 0]

    img = Image.fromarray(image)
    if img.mode == "RGBA" and file_path.suffix.lower() in (".jpg", ".jpeg"):
        img = img.convert("RGB")
    img.save(file_path, quality=quality)


def make_output_path(
    directory: Path, page_number: int, now: Optional[datetime] = None
) -> Path:
    """Timestamped output path SCAN-<yyyyMMddHHmmss><page>.jpg inside directory."""
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    return Path(directory) / f"SCAN-{stamp}{page_number}.jpg"


def load_yaml(file_path: Path) -> Dict[str, Any]:
    """Load YAML file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)
