"""Tests for quaternion and matrix helpers."""

import math

import numpy as np
import pytest

from bhumi.core.transforms import (
    FORWARD, RIGHT, UP, look_at, ndc_to_viewport, perspective, quat_from_axis_angle,
    quat_from_euler, quat_from_matrix, quat_identity, quat_integrate, quat_look_rotation,
    quat_multiply, quat_rotate, quat_to_matrix, ray_box_intersection, transform_points,
)


def test_body_axes():
    np.testing.assert_allclose(RIGHT, [-1.0, 0.0, 0.0])
    np.testing.assert_allclose(quat_to_matrix(quat_identity()), np.identity(3))


def test_yaw_left_turns_forward_toward_plus_x():
    q = quat_from_euler(yaw=math.pi / 2)
    np.testing.assert_allclose(quat_rotate(q, FORWARD), [1.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(quat_rotate(q, UP), UP, atol=1e-12)


def test_pitch_up_raises_the_nose():
    q = quat_from_euler(pitch=-math.pi / 2)
    np.testing.assert_allclose(quat_rotate(q, FORWARD), [0.0, 1.0, 0.0], atol=1e-12)


def test_multiply_composes_rotations():
    a = quat_from_axis_angle(UP, 0.3)
    b = quat_from_axis_angle(UP, 0.4)
    np.testing.assert_allclose(quat_multiply(a, b), quat_from_axis_angle(UP, 0.7), atol=1e-12)


def test_matrix_round_trip():
    q = quat_from_euler(yaw=0.7, pitch=-0.4, roll=2.9)
    back = quat_from_matrix(quat_to_matrix(q))
    # q and -q are the same rotation
    assert np.allclose(back, q, atol=1e-9) or np.allclose(back, -q, atol=1e-9)


def test_integrate_turns_by_rate_times_dt():
    q = quat_integrate(quat_identity(), np.array([0.0, math.pi, 0.0]), 0.5)
    np.testing.assert_allclose(quat_rotate(q, FORWARD), [1.0, 0.0, 0.0], atol=1e-12)
    assert np.linalg.norm(q) == pytest.approx(1.0)


def test_look_rotation_points_forward():
    target = np.array([1.0, -2.0, 3.0])
    q = quat_look_rotation(target)
    np.testing.assert_allclose(quat_rotate(q, FORWARD), target / np.linalg.norm(target), atol=1e-12)
    # body up stays in the vertical plane containing forward
    assert quat_rotate(q, UP)[1] > 0.0


def test_look_rotation_straight_down_is_valid():
    q = quat_look_rotation(np.array([0.0, -1.0, 0.0]))
    np.testing.assert_allclose(quat_rotate(q, FORWARD), [0.0, -1.0, 0.0], atol=1e-12)
    assert np.all(np.isfinite(q))


def test_look_at_maps_target_down_negative_z():
    view = look_at(np.zeros(3), np.array([0.0, 0.0, 1.0]))
    p = transform_points(view, [[0.0, 0.0, 5.0], [-1.0, 0.0, 5.0]])
    np.testing.assert_allclose(p[0], [0.0, 0.0, -5.0, 1.0], atol=1e-12)
    # world -X is screen right when facing +Z
    assert p[1][0] == pytest.approx(1.0)


def test_perspective_depth_range():
    near, far = 0.1, 100.0
    proj = perspective(math.radians(60), 4 / 3, near, far)
    for depth, expected in ((near, -1.0), (far, 1.0)):
        clip = proj @ np.array([0.0, 0.0, -depth, 1.0])
        assert clip[3] == pytest.approx(depth)
        assert clip[2] / clip[3] == pytest.approx(expected)


def test_viewport_transform():
    ndc = np.array([[0.0, 0.0], [-1.0, 1.0], [1.0, -1.0]])
    np.testing.assert_allclose(ndc_to_viewport(ndc, 320, 240),
                               [[160.0, 120.0], [0.0, 0.0], [320.0, 240.0]])


def test_ray_box_intersection():
    lo, hi = np.array([2.0, -1.0, -1.0]), np.array([3.0, 1.0, 1.0])
    assert ray_box_intersection(np.zeros(3), np.array([1.0, 0.0, 0.0]), lo, hi) == pytest.approx(2.0)
    assert ray_box_intersection(np.zeros(3), np.array([-1.0, 0.0, 0.0]), lo, hi) is None
    assert ray_box_intersection(np.zeros(3), np.array([0.0, 1.0, 0.0]), lo, hi) is None
    assert ray_box_intersection(np.array([2.5, 0.0, 0.0]), np.array([1.0, 0.0, 0.0]), lo, hi) == 0.0
