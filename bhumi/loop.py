"""
Frame loop: input -> fixed physics steps -> camera -> render -> present.

The loop owns the wall clock and the fixed-timestep accumulator. Physics
advances in whole steps of physics.dt; leftover time is carried to the next
frame, and at most loop.max_catchup_steps steps run per frame. When the cap
is hit the whole-step backlog is dropped (logged at debug level), keeping
only the sub-step remainder.
"""

import math
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from bhumi.config import EngineConfig
from bhumi.core.camera import Camera
from bhumi.core.input_event import CameraMode, InputEvent, InputKind
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.core.world import World
from bhumi.errors import PresentError
from bhumi.rendering.backend.base import Backend
from bhumi.rendering.overlay import StatusOverlay
from bhumi.rendering.rasterizer import Rasterizer
from bhumi.utils.logging import get_logger
from bhumi.utils.profiler import FrameProfiler

logger = get_logger(__name__)


@dataclass
class TickResult:
    """What happened during one tick."""
    steps: int = 0
    events: int = 0
    dropped_time: float = 0.0
    presented: bool = False
    exit_requested: bool = False
    status: Optional[StatusOverlay] = None


class FrameLoop:
    """
    Drives one session.

    Args:
        world: Simulation state
        camera: View into the world
        rasterizer: Renders world + camera into the pixel buffer
        backend: Presentation device
        config: Engine settings (defaults if None)
        clock: Monotonic time source in seconds
        sleep: Pacing delay function
        profiler: Optional per-section frame timing
        buffer: Pixel buffer to reuse (a new one if None)
    """

    def __init__(self, world: World, camera: Camera, rasterizer: Rasterizer,
                 backend: Backend, config: Optional[EngineConfig] = None,
                 clock: Callable[[], float] = time.perf_counter,
                 sleep: Callable[[float], None] = time.sleep,
                 profiler: Optional[FrameProfiler] = None,
                 buffer: Optional[PixelBuffer] = None):
        self.world = world
        self.camera = camera
        self.rasterizer = rasterizer
        self.backend = backend
        self.config = config or EngineConfig()
        self.clock = clock
        self.sleep = sleep
        self.profiler = profiler
        self.buffer = buffer or PixelBuffer(camera.width, camera.height)

        self.fixed_dt = world.dt
        self.max_catchup_steps = self.config.loop.max_catchup_steps
        self.present_retries = self.config.loop.present_retries
        self.accumulator = 0.0
        self.dropped_time = 0.0
        self.frame_index = 0
        self.exit_requested = False

    # ── Input ──────────────────────────────────────────────

    def _poll(self) -> List[InputEvent]:
        try:
            return list(self.backend.poll_input())
        except Exception as e:
            logger.error(f"Input poll failed, skipping input this frame: {e}")
            return []

    def apply_events(self, events: List[InputEvent]) -> List[InputEvent]:
        """
        Apply events in order.

        Returns:
            Thrust/steer events meant for the free camera this frame

        Stops at EXIT; events after it are discarded.
        """
        fly_events: List[InputEvent] = []
        for event in events:
            kind = event.kind
            if kind is InputKind.EXIT:
                logger.info("Exit requested")
                self.exit_requested = True
                break
            elif kind is InputKind.CAMERA_MODE:
                self.camera.set_mode(event.mode)
            elif kind is InputKind.RESET:
                self.world.reset_drone()
            elif kind is InputKind.STOP:
                self.world.stop_drone()
            elif kind.is_thrust or kind.is_steer:
                if self.camera.mode is CameraMode.FREE_CAM:
                    fly_events.append(event)
                elif kind.is_thrust:
                    self.world.apply_thrust(kind)
                else:
                    self.world.apply_steer(kind)
        return fly_events

    # ── Physics ────────────────────────────────────────────

    def advance(self, frame_dt: float) -> int:
        """Add frame time to the accumulator and run the whole steps it covers (capped)."""
        self.accumulator += max(0.0, frame_dt)
        steps = 0
        while self.accumulator >= self.fixed_dt and steps < self.max_catchup_steps:
            self.world.step()
            self.accumulator -= self.fixed_dt
            steps += 1

        if self.accumulator >= self.fixed_dt:
            remainder = math.fmod(self.accumulator, self.fixed_dt)
            dropped = self.accumulator - remainder
            self.dropped_time += dropped
            self.accumulator = remainder
            logger.debug(f"Catch-up cap ({self.max_catchup_steps} steps) hit, "
                         f"dropped {dropped * 1000:.1f}ms of simulation time")
        return steps

    # ── Tick ───────────────────────────────────────────────

    def tick(self, frame_dt: float) -> TickResult:
        """Run one frame with frame_dt seconds of wall time elapsed."""
        result = TickResult()
        prof = self.profiler
        if prof:
            prof.begin_frame()

        events = self._poll()
        result.events = len(events)
        fly_events = self.apply_events(events)
        if self.backend.should_exit():
            self.exit_requested = True
        if prof:
            prof.mark("input")
        if self.exit_requested:
            result.exit_requested = True
            if prof:
                prof.end_frame()
            return result

        dropped_before = self.dropped_time
        result.steps = self.advance(frame_dt)
        # held input lasts one tick, however many steps it ran
        self.world.clear_inputs()
        result.dropped_time = self.dropped_time - dropped_before
        if prof:
            prof.mark("physics")

        if self.camera.mode is CameraMode.FREE_CAM:
            self.camera.fly(fly_events, frame_dt)
        else:
            self.camera.update_from_body(self.world.drone.pose, self.world.geometry)

        self.buffer.thaw()
        status = self.rasterizer.render(self.world, self.camera, self.buffer, self.frame_index)
        self.buffer.freeze()
        result.status = status
        if prof:
            prof.mark("render")

        result.presented = self._present(status)
        if prof:
            prof.mark("present")
            prof.end_frame(physics_steps=result.steps)

        self.frame_index += 1
        result.exit_requested = self.exit_requested
        return result

    def _present(self, status: StatusOverlay) -> bool:
        attempts = self.present_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                self.backend.present(self.buffer, status)
                return True
            except PresentError as e:
                logger.warning(f"Present failed (attempt {attempt}/{attempts}): {e}")
        logger.error("Backend cannot present frames, stopping")
        self.exit_requested = True
        return False

    # ── Run ────────────────────────────────────────────────

    def run(self, max_frames: Optional[int] = None) -> int:
        """
        Open the backend and loop until exit.

        Args:
            max_frames: Stop after this many ticks (None for no limit)

        Returns:
            Number of frames rendered
        """
        lockstep = self.config.loop.lockstep
        period = 0.0 if lockstep else self.config.loop.frame_period

        self.backend.open()
        logger.info(f"Starting frame loop: dt={self.fixed_dt * 1000:.2f}ms, "
                    f"target {self.config.loop.target_fps:g} FPS, camera={self.camera.mode.value}"
                    f"{', lockstep' if lockstep else ''}")
        last = self.clock()
        ticks = 0
        try:
            while not self.exit_requested and not self.backend.should_exit():
                if max_frames is not None and ticks >= max_frames:
                    break
                frame_start = self.clock()
                frame_dt = self.fixed_dt if lockstep else frame_start - last
                last = frame_start

                self.tick(frame_dt)
                ticks += 1
                if self.exit_requested:
                    break

                if period > 0.0:
                    remaining = period - (self.clock() - frame_start)
                    if remaining > 0.0:
                        self.sleep(remaining)

        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.backend.close()
            logger.info(f"Frame loop stopped after {self.frame_index} frames, "
                        f"{self.world.step_count} steps, sim time {self.world.sim_time:.2f}s")
        return self.frame_index
