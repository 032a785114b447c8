"""Tests for camera modes, third-person clamping, free flight and projection."""

import math

import numpy as np
import pytest

from bhumi.config import CameraConfig
from bhumi.core.camera import Camera
from bhumi.core.geometry import build_room
from bhumi.core.input_event import CameraMode, InputEvent, InputKind
from bhumi.core.rigidbody import Pose
from bhumi.core.transforms import quat_from_euler, quat_identity, quat_rotate, FORWARD
from bhumi.errors import ConfigurationError

from conftest import DT, assert_vec_close


def _pose(position, yaw=0.0):
    return Pose(np.array(position, dtype=float), quat_from_euler(yaw=yaw))


@pytest.mark.parametrize("mode", list(CameraMode))
def test_look_direction_projects_inside_viewport(room_world, mode):
    camera = Camera(CameraConfig(mode=mode))
    if mode is CameraMode.FREE_CAM:
        camera.place([1.0, 2.0, -1.0], target=[0.0, 1.0, 3.0])
    else:
        camera.update_from_body(room_world.drone.pose, room_world.geometry)

    for distance in (camera.near * 1.01, 1.0, 10.0, camera.far * 0.99):
        point = camera.position + camera.forward * distance
        projected = camera.project(point)
        assert projected is not None
        x, y, z = projected
        assert 0.0 <= x < camera.width
        assert 0.0 <= y < camera.height
        assert x == pytest.approx(160.0, abs=1e-6)
        assert y == pytest.approx(120.0, abs=1e-6)
        assert -1.0 <= z <= 1.0


def test_first_person_uses_drone_pose():
    camera = Camera(CameraConfig(mode=CameraMode.FIRST_PERSON))
    pose = _pose([1.0, 2.0, 3.0], yaw=0.4)
    camera.update_from_body(pose)
    assert_vec_close(camera.position, pose.position)
    assert_vec_close(camera.forward, quat_rotate(pose.orientation, FORWARD))


def test_third_person_offset_behind_and_above():
    camera = Camera(CameraConfig(mode=CameraMode.THIRD_PERSON))
    drone = np.array([0.0, 3.0, 0.0])
    camera.update_from_body(Pose(drone, quat_identity()), build_room())

    assert_vec_close(camera.position, [0.0, 4.0, -2.5])
    expected_forward = (drone - camera.position) / np.linalg.norm(drone - camera.position)
    assert_vec_close(camera.forward, expected_forward, atol=1e-9)


def test_third_person_offset_follows_yaw():
    camera = Camera(CameraConfig(mode=CameraMode.THIRD_PERSON))
    camera.update_from_body(_pose([0.0, 3.0, 0.0], yaw=math.pi / 2), build_room())
    # facing +X, so "behind" is -X
    assert_vec_close(camera.position, [-2.5, 4.0, 0.0], atol=1e-9)


def test_third_person_offset_is_clamped_by_wall():
    room = build_room()
    camera = Camera(CameraConfig(mode=CameraMode.THIRD_PERSON, clearance=0.2))
    drone = np.array([0.0, 3.0, -4.0])
    camera.update_from_body(Pose(drone, quat_identity()), room)

    full = np.array([0.0, 1.0, -2.5])
    pulled = camera.position - drone
    assert 0.0 < np.linalg.norm(pulled) < np.linalg.norm(full)
    # still along the offset ray
    np.testing.assert_allclose(np.cross(pulled, full), 0.0, atol=1e-9)
    # in front of the south wall's inner face, with clearance
    assert camera.position[2] > -5.0
    assert not any(box.contains(camera.position) for box in room)


def test_invalid_projection_parameters_raise():
    for kwargs in ({"fov_deg": 0.0}, {"fov_deg": 180.0}, {"near": 0.0},
                   {"near": 5.0, "far": 5.0}, {"near": 10.0, "far": 1.0}):
        with pytest.raises(ConfigurationError):
            Camera(CameraConfig(**kwargs))


def test_mode_switch_to_free_cam_keeps_pose():
    camera = Camera(CameraConfig(mode=CameraMode.THIRD_PERSON))
    camera.update_from_body(_pose([0.0, 3.0, 0.0]), build_room())
    before = camera.position.copy()

    camera.set_mode("free")
    assert camera.mode is CameraMode.FREE_CAM
    assert camera.to_dict()["mode"] == CameraMode.FREE_CAM.value
    camera.update_from_body(_pose([2.0, 2.0, 2.0]))
    assert_vec_close(camera.position, before)


def test_free_cam_flies_forward():
    camera = Camera(CameraConfig(mode=CameraMode.FREE_CAM))
    forward = [InputEvent(InputKind.THRUST_FORWARD)]
    for _ in range(30):
        camera.fly(forward, DT)
    assert camera.position[2] > 0.05
    assert abs(camera.position[0]) < 1e-12
    assert camera.velocity[2] > 0.0

    # damping brings it to rest without input
    for _ in range(600):
        camera.fly([], DT)
    assert np.linalg.norm(camera.velocity) < 1e-3


def test_free_cam_yaw_left_turns_toward_plus_x():
    camera = Camera(CameraConfig(mode=CameraMode.FREE_CAM))
    for _ in range(10):
        camera.fly([InputEvent(InputKind.YAW_LEFT)], DT)
    assert camera.forward[0] > 0.0


def test_fly_is_ignored_outside_free_cam():
    camera = Camera(CameraConfig(mode=CameraMode.FIRST_PERSON))
    camera.fly([InputEvent(InputKind.THRUST_FORWARD)] * 5, 1.0)
    assert_vec_close(camera.position, np.zeros(3))


def test_point_behind_eye_does_not_project(camera):
    camera.place([0.0, 0.0, 0.0], target=[0.0, 0.0, 1.0])
    assert camera.project([0.0, 0.0, -1.0]) is None
    assert camera.project([0.0, 0.0, 1.0]) is not None
