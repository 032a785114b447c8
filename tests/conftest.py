"""Shared fixtures for the bhumi test suite."""

import numpy as np
import pytest

from bhumi.config import CameraConfig, EngineConfig, PhysicsConfig
from bhumi.core.camera import Camera
from bhumi.core.geometry import build_room, floor
from bhumi.core.input_event import CameraMode
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.core.world import World
from bhumi.loop import FrameLoop
from bhumi.rendering.backend.headless import HeadlessBackend
from bhumi.rendering.rasterizer import Rasterizer

DT = 1.0 / 60.0


class FakeClock:
    """Manual clock; sleep() advances it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def buffer():
    return PixelBuffer()


@pytest.fixture
def room_world():
    """Drone resting in mid-air in the default 10x10x6 room."""
    return World(build_room(), PhysicsConfig(spawn_position=(0.0, 3.0, 0.0)))


@pytest.fixture
def floor_world():
    """Single floor slab (top at y=0), drone dropped from y=5."""
    return World([floor()], PhysicsConfig(spawn_position=(0.0, 5.0, 0.0)))


@pytest.fixture
def weightless_world():
    """No geometry, no gravity, no damping: pure integration checks."""
    return World([], PhysicsConfig(gravity=(0.0, 0.0, 0.0), linear_damping=0.0,
                                   angular_damping=0.0, spawn_position=(0.0, 0.0, 0.0)))


@pytest.fixture
def camera():
    return Camera()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_loop(fake_clock):
    """Factory: FrameLoop over a room world with a headless backend."""

    def _make(backend=None, mode=CameraMode.THIRD_PERSON, physics=None, **loop_overrides):
        config = EngineConfig()
        if physics is not None:
            config.physics = physics
        config.camera = CameraConfig(mode=mode)
        for key, value in loop_overrides.items():
            setattr(config.loop, key, value)
        world = World(build_room(), config.physics)
        camera = Camera(config.camera)
        camera.update_from_body(world.drone.pose, world.geometry)
        backend = backend if backend is not None else HeadlessBackend()
        return FrameLoop(world, camera, Rasterizer(config.render), backend, config,
                         clock=fake_clock, sleep=fake_clock.sleep)

    return _make


def assert_vec_close(actual, expected, atol=1e-9):
    np.testing.assert_allclose(np.asarray(actual, dtype=float),
                               np.asarray(expected, dtype=float), atol=atol)
