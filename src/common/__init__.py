"""
Common types and utilities shared across all modules.

This module provides the value types and reference color table used by both
the per-frame face recognition module and the cube-wide color assignment.
"""

from src.common.colors import TileColor, color_distance, rgb_to_yuv
from src.common.types import ImageBuffer, Point

__all__ = ["ImageBuffer", "Point", "TileColor", "color_distance", "rgb_to_yuv"]
