"""Tests for presentation backends and the status overlay."""

import numpy as np
import pytest

from bhumi.core.input_event import CameraMode, InputEvent, InputKind
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.errors import PresentError
from bhumi.rendering.backend import Backend, HeadlessBackend
from bhumi.rendering.overlay import StatusOverlay


def _overlay(**overrides):
    values = dict(position=(1.0, 2.0, 3.0), velocity=(3.0, 4.0, 0.0), thrust=15.0,
                  sim_time=1.5, step_count=90, camera_mode=CameraMode.THIRD_PERSON)
    values.update(overrides)
    return StatusOverlay(**values)


def test_headless_satisfies_protocol():
    assert isinstance(HeadlessBackend(), Backend)


def test_scripted_polls_then_empty():
    backend = HeadlessBackend(script=[[InputEvent(InputKind.THRUST_UP)], []])
    backend.queue(InputEvent(InputKind.RESET))
    assert backend.poll_input() == [InputEvent(InputKind.THRUST_UP)]
    assert backend.poll_input() == []
    assert backend.poll_input() == [InputEvent(InputKind.RESET)]
    assert backend.poll_input() == []
    assert backend.polls == 4


def test_present_keeps_a_copy(buffer):
    backend = HeadlessBackend(keep_frames=2)
    backend.open()
    buffer.set(0, 0, (255, 0, 0))
    backend.present(buffer, _overlay())
    buffer.set(0, 0, (0, 255, 0))

    assert tuple(backend.last_frame[0, 0]) == (255, 0, 0, 255)
    assert backend.last_overlay.step_count == 90

    for _ in range(3):
        backend.present(buffer)
    assert len(backend.frames) == 2
    assert backend.presented == 4


def test_max_frames_requests_exit(buffer):
    backend = HeadlessBackend(max_frames=2)
    backend.present(buffer)
    assert not backend.should_exit()
    backend.present(buffer)
    assert backend.should_exit()


def test_scripted_present_failures(buffer):
    backend = HeadlessBackend(fail_presents=2, fail_after=1)
    backend.present(buffer)
    for _ in range(2):
        with pytest.raises(PresentError):
            backend.present(buffer)
    backend.present(buffer)
    assert backend.presented == 2
    assert backend.present_calls == 4


def test_close_is_idempotent():
    backend = HeadlessBackend()
    backend.close()
    assert backend.closed_count == 0
    backend.open()
    backend.close()
    backend.close()
    assert backend.closed_count == 1
    assert not backend.is_open


def test_overlay_lines_and_dict():
    overlay = _overlay(frame_index=4)
    assert overlay.speed == pytest.approx(5.0)
    lines = overlay.lines()
    assert len(lines) == 3
    assert "+1.00" in lines[0]
    assert "15.0 N" in lines[1]
    assert "third" in lines[2]
    assert overlay.to_dict()['camera_mode'] == "third"
    assert overlay.to_dict()['frame_index'] == 4


def test_pygame_backend_requires_open():
    pytest.importorskip("pygame")
    from bhumi.rendering.backend.pygame_backend import HELD_KEYS, PygameBackend

    backend = PygameBackend(scale=2)
    assert backend.window_size == (640, 480)
    assert backend.poll_input() == []
    with pytest.raises(PresentError):
        backend.present(PixelBuffer())
    backend.close()
    assert not backend.should_exit()
    assert len(set(HELD_KEYS.values())) == 12
