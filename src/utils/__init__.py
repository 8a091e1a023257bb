"""
Shared Utilities

File handling used by the scripts around the rectifier.
"""

from src.utils.io import load_image, make_output_path, save_image

__all__ = [
    "load_image",
    "save_image",
    "make_output_path",
]
