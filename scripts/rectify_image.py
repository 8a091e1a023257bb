#!/usr/bin/env python3
"""
Document Rectification Script

Crops a photographed document out of an image and warps it into an upright
rectangle, given its four corners.

Usage:
    # Corners on the command line (TL, TR, BR, BL as x y pairs)
    python scripts/rectify_image.py photo.jpg \
        --corners 120 80 900 110 880 1300 90 1250 --output page.jpg

    # Corners from a YAML file with top_left/top_right/bottom_right/bottom_left
    python scripts/rectify_image.py photo.jpg --corners-file corners.yaml

    # Corners picked on a preview 4x smaller than the photo, with a filter
    python scripts/rectify_image.py photo.jpg --corners 30 20 225 27 220 325 22 312 \
        --corner-scale 4 --contrast 1.3 --saturation 0
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.common.types import Quad  # noqa: E402
from src.rectification import (  # noqa: E402
    Document,
    FilterParams,
    Rectifier,
    RectifyError,
    load_config,
)
from src.utils.io import (  # noqa: E402
    load_image,
    load_yaml,
    make_output_path,
    save_image,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

CORNER_KEYS = ["top_left", "top_right", "bottom_right", "bottom_left"]


def load_corners(args: argparse.Namespace) -> Quad:
    """Build the corner Quad from --corners or --corners-file."""
    if args.corners_file is not None:
        raw = load_yaml(args.corners_file)
        return Quad.from_points([raw[key] for key in CORNER_KEYS])

    values = args.corners
    return Quad.from_points([values[i : i + 2] for i in range(0, 8, 2)])


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rectify a photographed document given its 4 corners",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("image", type=Path, help="Path to the source photo")

    corners = parser.add_mutually_exclusive_group(required=True)
    corners.add_argument(
        "--corners",
        type=float,
        nargs=8,
        metavar=("TLX", "TLY", "TRX", "TRY", "BRX", "BRY", "BLX", "BLY"),
        help="Corner coordinates in TL, TR, BR, BL order",
    )
    corners.add_argument(
        "--corners-file",
        type=Path,
        help="YAML file with top_left/top_right/bottom_right/bottom_left [x, y]",
    )

    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output path (default: timestamped SCAN-*.jpg next to the input)",
    )
    parser.add_argument(
        "--page", type=int, default=1, help="Page number used in default output name"
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="Rectification config YAML"
    )
    parser.add_argument(
        "--rotation",
        type=int,
        choices=[0, 90, 180, 270],
        default=None,
        help="Clockwise rotation to apply (default: read from EXIF)",
    )
    parser.add_argument(
        "--max-content-size",
        type=int,
        default=None,
        help="Longest side before downscaling (0 disables; default: from config)",
    )
    parser.add_argument(
        "--corner-scale",
        type=float,
        default=1.0,
        help="Multiplier from corner coordinates to image pixels",
    )
    parser.add_argument("--contrast", type=float, default=1.0)
    parser.add_argument("--brightness", type=float, default=0.0)
    parser.add_argument("--saturation", type=float, default=1.0)

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for document rectification."""
    args = parse_args(argv)

    config = load_config(args.config) if args.config else load_config()
    if args.max_content_size is not None:
        config.preprocessing.max_content_size = args.max_content_size or None

    image, exif_rotation = load_image(args.image)
    rotation = exif_rotation if args.rotation is None else args.rotation

    color_filter = FilterParams(
        contrast=args.contrast,
        brightness=args.brightness,
        saturation=args.saturation,
    )
    document = Document(
        corners=load_corners(args),
        color_filter=None if color_filter.is_identity() else color_filter,
        original_photo_path=args.image,
    )

    try:
        result = Rectifier(config=config).process_document(
            image, document, rotation=rotation, corner_scale=args.corner_scale
        )
    except RectifyError as e:
        logger.error(f"Rectification failed: {e}")
        return 1

    output = args.output or make_output_path(args.image.parent, args.page)
    save_image(result.image, output)
    logger.info(f"Saved {result.width}x{result.height} page to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
