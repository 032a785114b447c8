"""
World: static geometry, the drone, and the fixed-step physics clock.

World.step() advances exactly one fixed timestep. The frame loop decides how
many steps to run per rendered frame; World itself has no notion of wall time.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from bhumi.config import PhysicsConfig
from bhumi.core.collision import Contact, find_contacts, min_separation, resolve_collisions
from bhumi.core.geometry import Box
from bhumi.core.input_event import InputKind, THRUST_DIRECTIONS, STEER_AXES
from bhumi.core.rigidbody import RigidBody
from bhumi.core.transforms import quat_from_euler, quat_integrate
from bhumi.errors import PhysicsDivergence
from bhumi.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class WorldStatus:
    """Physics values exposed to the status overlay."""
    position: tuple
    velocity: tuple
    thrust: float
    sim_time: float
    step_count: int


class World:
    """
    Static boxes plus one rigid-body drone.

    Args:
        geometry: Static boxes, in contact resolution order
        config: Physics settings (defaults if None)
        drone: Pre-built body. If None, one is spawned from the config.
    """

    def __init__(self, geometry: Sequence[Box] = (),
                 config: Optional[PhysicsConfig] = None,
                 drone: Optional[RigidBody] = None):
        self.config = config or PhysicsConfig()
        self._geometry: tuple = tuple(geometry)
        if drone is None:
            drone = RigidBody(
                position=np.array(self.config.spawn_position, dtype=float),
                orientation=quat_from_euler(yaw=math.radians(self.config.spawn_yaw_deg)),
                mass=self.config.mass,
                radius=self.config.radius,
            )
        self.drone = drone
        self.gravity = np.array(self.config.gravity, dtype=float)
        self.dt = float(self.config.dt)

        self.sim_time = 0.0
        self.step_count = 0
        self.divergence_count = 0
        self._last_contacts: List[Contact] = []

        logger.debug(f"World created: {len(self._geometry)} boxes, "
                     f"drone at {self.drone.position.tolist()}, dt={self.dt:.5f}s")

    @property
    def geometry(self) -> tuple:
        """Static boxes (immutable)."""
        return self._geometry

    # ── Input ──────────────────────────────────────────────

    def apply_thrust(self, direction: Union[InputKind, Sequence[float]]):
        """
        Add a thrust force for the current tick.

        Args:
            direction: A THRUST_* kind or a body-frame direction vector. The
                force magnitude is physics.thrust_force regardless of the
                vector's length.
        """
        if isinstance(direction, InputKind):
            if direction not in THRUST_DIRECTIONS:
                raise ValueError(f"{direction.name} is not a thrust event")
            body_dir = THRUST_DIRECTIONS[direction]
        else:
            body_dir = np.asarray(direction, dtype=float)
            norm = float(np.linalg.norm(body_dir))
            if not math.isfinite(norm) or norm == 0.0:
                logger.warning(f"Ignoring degenerate thrust direction {body_dir.tolist()}")
                return
            body_dir = body_dir / norm
        self.drone.add_force(self.drone.body_to_world(body_dir) * self.config.thrust_force)

    def apply_steer(self, kind: InputKind):
        """Add a body-frame steering torque (yaw, pitch or roll) for the current tick."""
        if kind not in STEER_AXES:
            raise ValueError(f"{kind.name} is not a steering event")
        self.drone.add_torque(self.drone.body_to_world(STEER_AXES[kind]) * self.config.steer_torque)

    def clear_inputs(self):
        """Drop this tick's thrust and steering. Called once per frame by the loop."""
        self.drone.clear_pending()

    def reset_drone(self):
        self.drone.respawn()
        self._last_contacts = []
        logger.info(f"Drone reset to {self.drone.position.tolist()}")

    def stop_drone(self):
        self.drone.stop()
        logger.debug("Drone stopped")

    # ── Simulation ─────────────────────────────────────────

    def step(self):
        """
        Advance the simulation by exactly one fixed timestep.

        Pending thrust and steering act on every step until clear_inputs().
        """
        body = self.drone
        dt = self.dt
        cfg = self.config
        last_good = body.snapshot()
        force, torque = body.pending_force.copy(), body.pending_torque.copy()

        try:
            # NaN/inf are caught by the divergence check, not by numpy warnings
            with np.errstate(all="ignore"):
                self._integrate(body, force, torque, dt)
                self._last_contacts = resolve_collisions(
                    body, self._geometry, cfg.solver_iterations, cfg.restitution, cfg.friction
                )
            self._check_divergence()
            body.last_force = force
            if self._last_contacts:
                logger.debug(f"Step {self.step_count}: contacts with "
                             f"{[c.geometry_name for c in self._last_contacts]}")
        except PhysicsDivergence as e:
            body.restore(last_good)
            body.velocity = np.zeros(3)
            body.angular_velocity = np.zeros(3)
            body.last_force = np.zeros(3)
            body.clear_pending()
            self._last_contacts = []
            self.divergence_count += 1
            logger.warning(f"Physics diverged at step {self.step_count}: {e}. "
                           f"Drone restored to last good state.")

        self.sim_time += dt
        self.step_count += 1

    def _integrate(self, body: RigidBody, force: np.ndarray, torque: np.ndarray, dt: float):
        cfg = self.config

        # Linear: semi-implicit Euler
        accel = self.gravity + force / body.mass
        body.velocity = body.velocity + accel * dt
        body.velocity = body.velocity / (1.0 + cfg.linear_damping * dt)
        body.position = body.position + body.velocity * dt

        # Angular
        body.angular_velocity = body.angular_velocity + (torque / body.inertia) * dt
        body.angular_velocity = body.angular_velocity / (1.0 + cfg.angular_damping * dt)
        body.orientation = quat_integrate(body.orientation, body.angular_velocity, dt)

    def _check_divergence(self):
        if not self.drone.is_finite():
            raise PhysicsDivergence(f"non-finite drone state {self.drone.state_vector().tolist()}")

    # ── Queries ────────────────────────────────────────────

    def contacts(self) -> List[Contact]:
        """Contacts of the drone at its current position, in geometry order."""
        return find_contacts(self.drone, self._geometry)

    @property
    def last_contacts(self) -> List[Contact]:
        """Contacts resolved during the first solver pass of the last step."""
        return list(self._last_contacts)

    def min_separation(self) -> float:
        return min_separation(self.drone.position, self.drone.radius, self._geometry)

    def status(self) -> WorldStatus:
        body = self.drone
        return WorldStatus(
            position=tuple(float(v) for v in body.position),
            velocity=tuple(float(v) for v in body.velocity),
            thrust=float(np.linalg.norm(body.last_force)),
            sim_time=self.sim_time,
            step_count=self.step_count,
        )
