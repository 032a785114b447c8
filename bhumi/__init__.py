"""
bhumi - small real-time 3D engine.

A drone rigid body in a static room, simulated at a fixed timestep and
software-rasterized into a 320x240 RGBA pixel buffer that pluggable
backends present.
"""

__version__ = "0.1.0"

from bhumi.config import EngineConfig, load_config
from bhumi.core.camera import Camera
from bhumi.core.input_event import CameraMode, InputEvent, InputKind
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.core.world import World
from bhumi.errors import (
    BhumiError, ConfigurationError, PresentError, PhysicsDivergence,
    BufferBoundsError, FrozenBufferError,
)
from bhumi.loop import FrameLoop, TickResult
from bhumi.rendering.overlay import StatusOverlay
from bhumi.rendering.rasterizer import Rasterizer

__all__ = [
    "EngineConfig",
    "load_config",
    "Camera",
    "CameraMode",
    "InputEvent",
    "InputKind",
    "PixelBuffer",
    "World",
    "BhumiError",
    "ConfigurationError",
    "PresentError",
    "PhysicsDivergence",
    "BufferBoundsError",
    "FrozenBufferError",
    "FrameLoop",
    "TickResult",
    "StatusOverlay",
    "Rasterizer",
]
