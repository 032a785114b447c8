"""
Input events and camera modes.

Backends translate device input into InputEvent values; the frame loop is the
only consumer. Events are immutable and carry no device detail.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np


class CameraMode(Enum):
    """How the camera pose is derived each frame."""
    FIRST_PERSON = "first"
    THIRD_PERSON = "third"
    FREE_CAM = "free"

    @classmethod
    def parse(cls, value) -> "CameraMode":
        """Accept a CameraMode, its value ("first") or its name ("FIRST_PERSON")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text.lower())
        except ValueError:
            return cls[text.upper()]


class InputKind(Enum):
    """Closed set of input event kinds."""
    THRUST_UP = "thrust_up"
    THRUST_DOWN = "thrust_down"
    THRUST_LEFT = "thrust_left"
    THRUST_RIGHT = "thrust_right"
    THRUST_FORWARD = "thrust_forward"
    THRUST_BACKWARD = "thrust_backward"
    YAW_LEFT = "yaw_left"
    YAW_RIGHT = "yaw_right"
    PITCH_UP = "pitch_up"
    PITCH_DOWN = "pitch_down"
    ROLL_LEFT = "roll_left"
    ROLL_RIGHT = "roll_right"
    CAMERA_MODE = "camera_mode"
    RESET = "reset"
    STOP = "stop"
    EXIT = "exit"

    @property
    def is_thrust(self) -> bool:
        return self in THRUST_DIRECTIONS

    @property
    def is_steer(self) -> bool:
        return self in STEER_AXES


# Body-frame unit vectors (+Z forward, +Y up, right = -X).
THRUST_DIRECTIONS = {
    InputKind.THRUST_UP: np.array([0.0, 1.0, 0.0]),
    InputKind.THRUST_DOWN: np.array([0.0, -1.0, 0.0]),
    InputKind.THRUST_LEFT: np.array([1.0, 0.0, 0.0]),
    InputKind.THRUST_RIGHT: np.array([-1.0, 0.0, 0.0]),
    InputKind.THRUST_FORWARD: np.array([0.0, 0.0, 1.0]),
    InputKind.THRUST_BACKWARD: np.array([0.0, 0.0, -1.0]),
}

# Body-frame torque axes. Positive rotation about +Y turns +Z toward +X (left).
STEER_AXES = {
    InputKind.YAW_LEFT: np.array([0.0, 1.0, 0.0]),
    InputKind.YAW_RIGHT: np.array([0.0, -1.0, 0.0]),
    InputKind.PITCH_UP: np.array([-1.0, 0.0, 0.0]),
    InputKind.PITCH_DOWN: np.array([1.0, 0.0, 0.0]),
    InputKind.ROLL_LEFT: np.array([0.0, 0.0, -1.0]),
    InputKind.ROLL_RIGHT: np.array([0.0, 0.0, 1.0]),
}


@dataclass(frozen=True)
class InputEvent:
    """
    A single input event.

    Only CAMERA_MODE carries a payload (the requested mode).
    """
    kind: InputKind
    mode: Optional[CameraMode] = None

    def __post_init__(self):
        if self.kind is InputKind.CAMERA_MODE and self.mode is None:
            raise ValueError("CAMERA_MODE event requires a mode")
        if self.kind is not InputKind.CAMERA_MODE and self.mode is not None:
            raise ValueError(f"{self.kind.name} event takes no mode")

    @classmethod
    def camera_mode(cls, mode) -> "InputEvent":
        return cls(InputKind.CAMERA_MODE, CameraMode.parse(mode))

    @classmethod
    def of(cls, kind) -> "InputEvent":
        """Build a payload-free event from an InputKind or its value string."""
        return cls(kind if isinstance(kind, InputKind) else InputKind(kind))

    def to_dict(self) -> dict:
        data = {'kind': self.kind.value}
        if self.mode is not None:
            data['mode'] = self.mode.value
        return data

    def __str__(self) -> str:
        if self.mode is not None:
            return f"{self.kind.name}({self.mode.name})"
        return self.kind.name
