"""
Rigid body state for the drone.

The body is a sphere for collision purposes and carries a full 3D pose.
Forces and torques are stored as pending values. Every World.step() reads
them; the frame loop clears them once per tick.
"""

import math
from dataclasses import dataclass, field

import numpy as np

from bhumi.core.transforms import (
    Quat, Vec3, quat_identity, quat_normalize, quat_to_matrix, vec3,
)


@dataclass
class Pose:
    """Position and orientation of a body (or camera)."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=quat_identity)

    def rotation(self) -> np.ndarray:
        return quat_to_matrix(self.orientation)

    def copy(self) -> "Pose":
        return Pose(self.position.copy(), self.orientation.copy())


@dataclass
class BodySnapshot:
    """Frozen copy of the integrable state, used for divergence recovery."""
    position: np.ndarray
    velocity: np.ndarray
    orientation: np.ndarray
    angular_velocity: np.ndarray


@dataclass
class RigidBody:
    """
    The simulated drone.

    Attributes:
        position: World position of the sphere centre (m)
        velocity: Linear velocity (m/s)
        orientation: Unit quaternion [w, x, y, z], body -> world
        angular_velocity: World-frame angular velocity (rad/s)
        mass: kg
        radius: Bounding-sphere radius (m)
    """
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    orientation: np.ndarray = field(default_factory=quat_identity)
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    mass: float = 1.0
    radius: float = 0.35

    # Accumulated for the next step, world frame
    pending_force: np.ndarray = field(default_factory=lambda: np.zeros(3), repr=False)
    pending_torque: np.ndarray = field(default_factory=lambda: np.zeros(3), repr=False)
    # Force applied during the last completed step (status overlay)
    last_force: np.ndarray = field(default_factory=lambda: np.zeros(3), repr=False)

    spawn_position: np.ndarray = field(default=None, repr=False)
    spawn_orientation: np.ndarray = field(default=None, repr=False)

    def __post_init__(self):
        if not (self.mass > 0 and math.isfinite(self.mass)):
            raise ValueError(f"Body mass must be positive, got {self.mass}")
        if not (self.radius > 0 and math.isfinite(self.radius)):
            raise ValueError(f"Body radius must be positive, got {self.radius}")
        self.position = vec3(self.position)
        self.velocity = vec3(self.velocity)
        self.angular_velocity = vec3(self.angular_velocity)
        self.orientation = quat_normalize(np.asarray(self.orientation, dtype=float))
        if self.spawn_position is None:
            self.spawn_position = self.position.copy()
        if self.spawn_orientation is None:
            self.spawn_orientation = self.orientation.copy()

    @property
    def inertia(self) -> float:
        """Scalar moment of inertia of a solid sphere, 2/5 m r^2."""
        return 0.4 * self.mass * self.radius * self.radius

    @property
    def pose(self) -> Pose:
        return Pose(self.position.copy(), self.orientation.copy())

    def rotation(self) -> np.ndarray:
        return quat_to_matrix(self.orientation)

    def body_to_world(self, v: Vec3) -> Vec3:
        return self.rotation() @ np.asarray(v, dtype=float)

    # ── Force accumulation ─────────────────────────────────

    def add_force(self, force: Vec3):
        self.pending_force = self.pending_force + np.asarray(force, dtype=float)

    def add_torque(self, torque: Vec3):
        self.pending_torque = self.pending_torque + np.asarray(torque, dtype=float)

    def clear_pending(self):
        self.pending_force = np.zeros(3)
        self.pending_torque = np.zeros(3)

    # ── State management ───────────────────────────────────

    def snapshot(self) -> BodySnapshot:
        return BodySnapshot(self.position.copy(), self.velocity.copy(),
                            self.orientation.copy(), self.angular_velocity.copy())

    def restore(self, snap: BodySnapshot):
        self.position = snap.position.copy()
        self.velocity = snap.velocity.copy()
        self.orientation = snap.orientation.copy()
        self.angular_velocity = snap.angular_velocity.copy()

    def is_finite(self) -> bool:
        return bool(
            np.all(np.isfinite(self.position)) and
            np.all(np.isfinite(self.velocity)) and
            np.all(np.isfinite(self.orientation)) and
            np.all(np.isfinite(self.angular_velocity))
        )

    def stop(self):
        """Zero both velocities and any pending input."""
        self.velocity = np.zeros(3)
        self.angular_velocity = np.zeros(3)
        self.clear_pending()

    def respawn(self):
        """Back to the spawn pose, at rest."""
        self.stop()
        self.position = self.spawn_position.copy()
        self.orientation = self.spawn_orientation.copy()
        self.last_force = np.zeros(3)

    def state_vector(self) -> np.ndarray:
        """Concatenated position, velocity, orientation, angular velocity (13 values)."""
        return np.concatenate((self.position, self.velocity,
                               self.orientation, self.angular_velocity))

    def to_dict(self) -> dict:
        return {
            'position': self.position.tolist(),
            'velocity': self.velocity.tolist(),
            'orientation': self.orientation.tolist(),
            'angular_velocity': self.angular_velocity.tolist(),
            'mass': self.mass,
            'radius': self.radius,
        }

