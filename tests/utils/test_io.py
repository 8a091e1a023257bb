"""
Unit tests for I/O utilities.
"""

from datetime import datetime
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from src.utils.io import (
    EXIF_ORIENTATION_TAG,
    load_image,
    load_yaml,
    make_output_path,
    save_image,
)


def _write_jpeg(path: Path, orientation: int = 1) -> None:
    img = Image.new("RGB", (30, 20), color=(10, 200, 30))
    exif = Image.Exif()
    exif[EXIF_ORIENTATION_TAG] = orientation
    img.save(path, exif=exif)


class TestLoadImage:
    """Tests for load_image function."""

    @pytest.mark.parametrize(
        "orientation, rotation", [(1, 0), (3, 180), (6, 90), (8, 270), (2, 0)]
    )
    def test_reports_exif_rotation(self, tmp_path, orientation, rotation):
        path = tmp_path / "photo.jpg"
        _write_jpeg(path, orientation)

        pixels, found = load_image(path)

        assert found == rotation
        # Rotation is reported, not applied
        assert pixels.shape == (20, 30, 3)
        assert pixels.dtype == np.uint8

    def test_png_without_exif(self, tmp_path):
        path = tmp_path / "page.png"
        Image.new("RGBA", (8, 6), color=(1, 2, 3, 4)).save(path)

        pixels, rotation = load_image(path)

        assert rotation == 0
        assert pixels.shape == (6, 8, 4)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="File doesn't exist"):
            load_image(tmp_path / "missing.jpg")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.jpg"
        path.touch()

        with pytest.raises(ValueError, match="File is empty"):
            load_image(path)


class TestSaveImage:
    """Tests for save_image function."""

    def test_round_trip_png(self, tmp_path, random_image):
        path = tmp_path / "nested" / "out.png"

        save_image(random_image, path)
        pixels, _ = load_image(path)

        np.testing.assert_array_equal(pixels, random_image)

    def test_rgba_saved_as_jpeg(self, tmp_path):
        image = np.zeros((5, 5, 4), dtype=np.uint8)
        path = tmp_path / "out.jpg"

        save_image(image, path)

        with Image.open(path) as img:
            assert img.mode == "RGB"

    def test_single_channel_axis(self, tmp_path):
        image = np.full((5, 7, 1), 42, dtype=np.uint8)
        path = tmp_path / "gray.png"

        save_image(image, path)
        pixels, _ = load_image(path)

        assert pixels.shape == (5, 7)


def test_make_output_path():
    now = datetime(2024, 3, 9, 14, 5, 7)

    path = make_output_path(Path("/tmp/scans"), 2, now=now)

    assert path == Path("/tmp/scans/SCAN-202403091405072.jpg")


def test_load_yaml(tmp_path):
    path = tmp_path / "corners.yaml"
    path.write_text("top_left: [1, 2]\n", encoding="utf-8")

    assert load_yaml(path) == {"top_left": [1, 2]}
