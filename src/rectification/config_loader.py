"""
Configuration loader for the Rectification module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from src.rectification.types import (
    GeometryConfig,
    Interpolation,
    PreprocessingConfig,
    ProcessingConfig,
    RectificationConfig,
    SizeRounding,
)

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> RectificationConfig:
    """
    Load rectification configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated RectificationConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.preprocessing.max_content_size)
        4000
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading rectification config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded rectification configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _parse_config(raw: Dict[str, Any]) -> RectificationConfig:
    """Parse raw dictionary into structured config objects."""
    rounding = raw["geometry"]["size_rounding"]
    interpolation = raw["processing"]["warp_interpolation"]

    valid_roundings = [r.value for r in SizeRounding]
    if rounding not in valid_roundings:
        raise ValueError(
            f"Invalid size_rounding: {rounding}. Must be one of {valid_roundings}"
        )

    valid_interpolations = [i.value for i in Interpolation]
    if interpolation not in valid_interpolations:
        raise ValueError(
            f"Invalid warp_interpolation: {interpolation}. "
            f"Must be one of {valid_interpolations}"
        )

    return RectificationConfig(
        geometry=GeometryConfig(size_rounding=SizeRounding(rounding)),
        preprocessing=PreprocessingConfig(
            max_content_size=_optional_int(
                raw["preprocessing"]["max_content_size"]
            ),
        ),
        processing=ProcessingConfig(
            warp_interpolation=Interpolation(interpolation),
            num_workers=_optional_int(raw["processing"]["num_workers"]),
            band_height=int(raw["processing"]["band_height"]),
        ),
    )


def _validate_config(config: RectificationConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    max_size = config.preprocessing.max_content_size
    if max_size is not None and max_size < 1:
        raise ValueError("max_content_size must be at least 1 (or null to disable)")

    workers = config.processing.num_workers
    if workers is not None and workers < 1:
        raise ValueError("num_workers must be at least 1 (or null for cpu count)")

    if config.processing.band_height < 1:
        raise ValueError("band_height must be at least 1")

    logger.debug("Configuration validation passed")
