"""
Configuration loader for the Face module.

Loads and validates configuration from config.yaml using Pydantic models
for field bounds and defaults.
"""

import logging
from pathlib import Path
from typing import List

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from src.common.colors import TileColor
from src.utils.constants import DEFAULT_SAMPLE_HALF_WINDOW

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

VALID_CHANNEL_ORDERS = ["bgr", "rgb"]


class QuadrilateralConfig(BaseModel):
    """Quadrilateral qualification and outlier filtering.

    Attributes:
        min_area: Minimum accepted candidate area (px^2)
        max_area: Maximum accepted candidate area (px^2)
        angle_outlier_tolerance_deg: Max deviation from the median angle (degrees)
        min_quadrilaterals: Minimum surviving candidates to attempt a layout
    """

    min_area: float = Field(default=1000.0, ge=0.0)
    max_area: float = Field(default=10000.0, gt=0.0)
    angle_outlier_tolerance_deg: float = Field(default=10.0, gt=0.0, le=90.0)
    min_quadrilaterals: int = Field(default=3, ge=3)

    @model_validator(mode="after")
    def _check_area_range(self) -> "QuadrilateralConfig":
        if self.min_area >= self.max_area:
            raise ValueError(
                f"min_area ({self.min_area}) must be less than max_area ({self.max_area})"
            )
        return self


class LatticeConfig(BaseModel):
    """Lattice fit convergence.

    Attributes:
        face_lms_threshold: Sigma (px) at or below which the face is solved
        max_relocation_moves: Relocation swaps allowed before INCOMPLETE
    """

    face_lms_threshold: float = Field(default=35.0, gt=0.0)
    max_relocation_moves: int = Field(default=5, ge=0)


class ColorConfig(BaseModel):
    """Per-face color classification.

    Attributes:
        sample_half_window: Half side of the averaging window (px)
        raster_channel_order: Channel order of the source raster
        bias_excluded_colors: Colors ignored by the luminance bias estimate
    """

    sample_half_window: int = Field(default=DEFAULT_SAMPLE_HALF_WINDOW, ge=1)
    raster_channel_order: str = "bgr"
    bias_excluded_colors: List[TileColor] = [TileColor.RED, TileColor.ORANGE]

    @field_validator("raster_channel_order")
    @classmethod
    def _check_channel_order(cls, v: str) -> str:
        v = v.lower()
        if v not in VALID_CHANNEL_ORDERS:
            raise ValueError(
                f"Invalid raster_channel_order: {v}. Must be one of {VALID_CHANNEL_ORDERS}"
            )
        return v

    @field_validator("bias_excluded_colors", mode="before")
    @classmethod
    def _parse_colors(cls, v: List) -> List[TileColor]:
        colors = []
        for item in v:
            if isinstance(item, TileColor):
                colors.append(item)
                continue
            try:
                colors.append(TileColor[str(item).upper()])
            except KeyError as e:
                raise ValueError(f"Unknown tile color: {item}") from e
        return colors


class FaceConfig(BaseModel):
    """Complete face module configuration."""

    quadrilateral: QuadrilateralConfig = QuadrilateralConfig()
    lattice: LatticeConfig = LatticeConfig()
    color: ColorConfig = ColorConfig()


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> FaceConfig:
    """
    Load face configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated FaceConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or has out-of-range fields.

    Example:
        >>> config = load_config()
        >>> print(config.lattice.face_lms_threshold)
        35.0
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading face config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        config = FaceConfig(**raw_config)
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e

    logger.info("Successfully loaded face configuration")
    return config


def get_default_config() -> FaceConfig:
    """Get default configuration from the bundled config.yaml file."""
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return FaceConfig()
