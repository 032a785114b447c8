"""
Core components: buffer, math, geometry and rigid-body state.

World and Camera read their settings from bhumi.config, which itself builds
on this package; import them from bhumi.core.world / bhumi.core.camera (or
the top-level bhumi package).
"""

from bhumi.core.pixel_buffer import PixelBuffer, WIDTH, HEIGHT
from bhumi.core.input_event import InputEvent, InputKind, CameraMode
from bhumi.core.geometry import Box, RoomSpec, build_room, floor
from bhumi.core.rigidbody import RigidBody, Pose
from bhumi.core.collision import Contact

__all__ = [
    "PixelBuffer",
    "WIDTH",
    "HEIGHT",
    "InputEvent",
    "InputKind",
    "CameraMode",
    "Box",
    "RoomSpec",
    "build_room",
    "floor",
    "RigidBody",
    "Pose",
    "Contact",
]
