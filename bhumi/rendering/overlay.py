"""
Status overlay: per-frame values that accompany the pixel buffer.

The overlay is never drawn into the buffer by the engine. Backends decide
how (and whether) to show it.
"""

from dataclasses import dataclass
from typing import List, Tuple

from bhumi.core.input_event import CameraMode

Vec3Tuple = Tuple[float, float, float]


@dataclass(frozen=True)
class StatusOverlay:
    """
    Snapshot of engine state for one presented frame.

    Attributes:
        position: Drone position (m)
        velocity: Drone velocity (m/s)
        thrust: Magnitude of the thrust force applied in the last step (N)
        sim_time: Simulation time (s)
        step_count: Physics steps taken so far
        camera_mode: Camera mode used for the frame
        frame_index: Rendered frame number
    """
    position: Vec3Tuple
    velocity: Vec3Tuple
    thrust: float
    sim_time: float
    step_count: int
    camera_mode: CameraMode
    frame_index: int = 0

    @property
    def speed(self) -> float:
        return sum(v * v for v in self.velocity) ** 0.5

    def to_dict(self) -> dict:
        return {
            'position': list(self.position),
            'velocity': list(self.velocity),
            'thrust': self.thrust,
            'sim_time': self.sim_time,
            'step_count': self.step_count,
            'camera_mode': self.camera_mode.value,
            'frame_index': self.frame_index,
        }

    def lines(self) -> List[str]:
        """Human-readable lines for text display."""
        x, y, z = self.position
        return [
            f"pos  {x:+6.2f} {y:+6.2f} {z:+6.2f} m",
            f"vel  {self.speed:5.2f} m/s  thrust {self.thrust:5.1f} N",
            f"t    {self.sim_time:7.2f} s  cam {self.camera_mode.value}",
        ]
