"""Utility components for the bhumi engine."""

from bhumi.utils.logging import setup_logging, get_logger
from bhumi.utils.color import parse_color, normalize_color
from bhumi.utils.profiler import FrameProfiler

__all__ = [
    "setup_logging",
    "get_logger",
    "parse_color",
    "normalize_color",
    "FrameProfiler",
]
