"""
Camera pose, modes and projection.

Modes:
    FIRST_PERSON: eye at the drone centre, looking along the drone's +Z.
    THIRD_PERSON: eye at drone + R(drone) * offset, pulled in along the
                  offset ray when a box is in the way, looking at the drone.
    FREE_CAM:     eye flown independently by fly(); the drone is ignored.
"""

import math
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from bhumi.config import CameraConfig
from bhumi.core.geometry import Box
from bhumi.core.input_event import CameraMode, InputEvent, THRUST_DIRECTIONS, STEER_AXES
from bhumi.core.pixel_buffer import WIDTH, HEIGHT
from bhumi.core.rigidbody import Pose
from bhumi.core.transforms import (
    FORWARD, UP, Mat4, look_at, normalize, perspective, quat_from_axis_angle,
    quat_identity, quat_look_rotation, quat_multiply, quat_normalize, quat_rotate,
    ndc_to_viewport,
)
from bhumi.errors import ConfigurationError
from bhumi.utils.logging import get_logger

logger = get_logger(__name__)


class Camera:
    """
    Perspective camera targeting a width x height pixel buffer.

    Args:
        config: Camera settings (defaults if None)
        width: Target buffer width in pixels
        height: Target buffer height in pixels

    Raises:
        ConfigurationError: If fov is outside (0, 180) degrees or the planes
            do not satisfy 0 < near < far
    """

    def __init__(self, config: Optional[CameraConfig] = None,
                 width: int = WIDTH, height: int = HEIGHT):
        config = config or CameraConfig()
        try:
            config.validate()
        except ConfigurationError as e:
            logger.error(f"Invalid camera configuration: {e}")
            raise

        self.config = config
        self.width = width
        self.height = height
        self.fov_deg = config.fov_deg
        self.near = config.near
        self.far = config.far
        self.offset = np.array(config.third_person_offset, dtype=float)

        self.mode = config.mode
        self.position = np.zeros(3)
        self.orientation = quat_identity()
        self.velocity = np.zeros(3)  # free-cam only

    @property
    def aspect(self) -> float:
        return self.width / self.height

    # ── Basis ──────────────────────────────────────────────

    @property
    def forward(self) -> np.ndarray:
        return quat_rotate(self.orientation, FORWARD)

    @property
    def up(self) -> np.ndarray:
        return quat_rotate(self.orientation, UP)

    @property
    def right(self) -> np.ndarray:
        return np.cross(self.forward, self.up)

    @property
    def pose(self) -> Pose:
        return Pose(self.position.copy(), self.orientation.copy())

    # ── Mode ───────────────────────────────────────────────

    def set_mode(self, mode):
        """Switch mode. Takes effect at the next pose update; FREE_CAM starts from the current pose."""
        mode = CameraMode.parse(mode)
        if mode is self.mode:
            return
        logger.info(f"Camera mode: {self.mode.value} -> {mode.value}")
        self.mode = mode
        self.velocity = np.zeros(3)

    # ── Pose updates ───────────────────────────────────────

    def update_from_body(self, pose: Pose, obstacles: Sequence[Box] = ()):
        """
        Slave the camera to the drone pose (FIRST_PERSON / THIRD_PERSON).

        Does nothing in FREE_CAM.

        Args:
            pose: Drone pose
            obstacles: Boxes the third-person offset ray must not pass through
        """
        if self.mode is CameraMode.FREE_CAM:
            return

        target = np.asarray(pose.position, dtype=float)
        if self.mode is CameraMode.FIRST_PERSON:
            self.position = target.copy()
            self.orientation = quat_normalize(pose.orientation)
            return

        offset_world = quat_rotate(pose.orientation, self.offset)
        length = float(np.linalg.norm(offset_world))
        if length < 1e-9:
            self.position = target.copy()
            self.orientation = quat_normalize(pose.orientation)
            return

        direction = offset_world / length
        distance = self._clear_distance(target, direction, length, obstacles)
        self.position = target + direction * distance

        if distance < 1e-6:
            self.orientation = quat_normalize(pose.orientation)
        else:
            self.orientation = quat_look_rotation(target - self.position, UP)

    def _clear_distance(self, origin: np.ndarray, direction: np.ndarray,
                        length: float, obstacles: Sequence[Box]) -> float:
        """Offset length shortened so the eye stays clearance short of the first box hit."""
        margin = self.config.clearance
        distance = length
        for box in obstacles:
            hit = box.raycast(origin, direction)
            if hit is not None and hit < length + margin:
                distance = min(distance, max(0.0, hit - margin))
        if distance < length:
            logger.debug(f"Third-person offset clamped {length:.2f} -> {distance:.2f}")
        return distance

    def fly(self, events: Iterable[InputEvent], dt: float):
        """
        Integrate the free camera from one frame's thrust and steer events.

        Thrust events accelerate along camera-local axes. Steer events rotate
        the camera at freecam_turn_rate. Ignored outside FREE_CAM.
        """
        if self.mode is not CameraMode.FREE_CAM:
            return
        cfg = self.config

        local_accel = np.zeros(3)
        for event in events:
            if event.kind in THRUST_DIRECTIONS:
                local_accel = local_accel + THRUST_DIRECTIONS[event.kind]
            elif event.kind in STEER_AXES:
                turn = quat_from_axis_angle(STEER_AXES[event.kind], cfg.freecam_turn_rate * dt)
                self.orientation = quat_normalize(quat_multiply(self.orientation, turn))

        accel = quat_rotate(self.orientation, local_accel) * cfg.freecam_accel
        self.velocity = (self.velocity + accel * dt) / (1.0 + cfg.freecam_damping * dt)
        self.position = self.position + self.velocity * dt

    def place(self, position: Sequence[float], target: Optional[Sequence[float]] = None):
        """Put the eye at position, optionally looking at target."""
        self.position = np.asarray(position, dtype=float).copy()
        if target is not None:
            self.orientation = quat_look_rotation(np.asarray(target, dtype=float) - self.position, UP)

    # ── Matrices ───────────────────────────────────────────

    def view_matrix(self) -> Mat4:
        return look_at(self.position, self.position + self.forward, normalize(self.up, UP))

    def projection_matrix(self) -> Mat4:
        return perspective(math.radians(self.fov_deg), self.aspect, self.near, self.far)

    def view_projection_matrix(self) -> Mat4:
        return self.projection_matrix() @ self.view_matrix()

    def project(self, point: Sequence[float]) -> Optional[Tuple[float, float, float]]:
        """
        World point to pixel coordinates.

        Returns:
            (x, y, ndc_z), or None if the point is at or behind the eye plane
        """
        clip = self.view_projection_matrix() @ np.append(np.asarray(point, dtype=float), 1.0)
        w = clip[3]
        if w <= 1e-12:
            return None
        ndc = clip[:3] / w
        px = ndc_to_viewport(ndc[np.newaxis, :], self.width, self.height)[0]
        return (float(px[0]), float(px[1]), float(px[2]))

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'position': self.position.tolist(),
            'orientation': self.orientation.tolist(),
            'fov_deg': self.fov_deg,
            'near': self.near,
            'far': self.far,
        }
