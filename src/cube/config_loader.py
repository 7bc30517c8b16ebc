"""
Configuration loader for the Cube module.

Loads and validates configuration from config.yaml using Pydantic models.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class AssignmentConfig(BaseModel):
    """Search guards of the color assignment optimizer.

    Attributes:
        max_search_depth: Maximum number of stacked search frames per tile
        max_evaluations_per_tile: Maximum tentative assignments per tile
    """

    max_search_depth: int = Field(default=7, ge=1)
    max_evaluations_per_tile: int = Field(default=100000, ge=1)


class CubeConfig(BaseModel):
    """Complete cube module configuration."""

    assignment: AssignmentConfig = AssignmentConfig()


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> CubeConfig:
    """
    Load cube configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated CubeConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading cube config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f) or {}

    try:
        config = CubeConfig(**raw_config)
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e

    logger.info("Successfully loaded cube configuration")
    return config


def get_default_config() -> CubeConfig:
    """Get default configuration from the bundled config.yaml file."""
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return CubeConfig()
