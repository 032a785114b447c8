"""Tests for the physics world, contacts and static geometry."""

import math

import numpy as np
import pytest

from bhumi.config import PhysicsConfig
from bhumi.core.collision import Contact, resolve_contact, sphere_vs_box
from bhumi.core.geometry import Box, RoomSpec, build_room, floor
from bhumi.core.input_event import InputKind
from bhumi.core.rigidbody import RigidBody
from bhumi.core.transforms import FORWARD, quat_rotate
from bhumi.core.world import World

from conftest import DT, assert_vec_close


# ── Geometry ───────────────────────────────────────────────

def test_room_order_and_extent():
    room = build_room()
    assert [box.name for box in room] == [
        "floor", "ceiling", "wall_west", "wall_east", "wall_south", "wall_north",
    ]
    assert room[0].max_corner[1] == 0.0
    assert room[1].min_corner[1] == 6.0
    assert room[2].max_corner[0] == -5.0
    assert room[3].min_corner[0] == 5.0
    assert room[4].max_corner[2] == -5.0
    assert room[5].min_corner[2] == 5.0


def test_room_extra_boxes_come_last():
    pillar = Box((1.0, 0.0, 1.0), (2.0, 6.0, 2.0), "pillar")
    room = build_room(RoomSpec(extra_boxes=[pillar]))
    assert len(room) == 7
    assert room[-1] is pillar


def test_box_rejects_empty_extent():
    with pytest.raises(ValueError):
        Box((0.0, 0.0, 0.0), (1.0, 0.0, 1.0))


def test_box_queries():
    box = Box((0.0, 0.0, 0.0), (2.0, 2.0, 2.0), "cube", color="#ff0000")
    assert box.color == (255, 0, 0, 255)
    assert_vec_close(box.center, [1.0, 1.0, 1.0])
    assert box.contains([1.0, 2.0, 1.0])
    assert box.distance([4.0, 1.0, 1.0]) == pytest.approx(2.0)
    assert box.distance([1.0, 1.0, 1.0]) == pytest.approx(-1.0)
    assert box.raycast([-1.0, 1.0, 1.0], [1.0, 0.0, 0.0]) == pytest.approx(1.0)
    assert len(box.corners()) == 8
    assert Box.from_dict(box.to_dict()) == box


def test_floor_top_is_at_zero():
    slab = floor()
    assert slab.max_corner[1] == 0.0
    assert slab.name == "floor"


# ── Contacts ───────────────────────────────────────────────

def test_touching_is_not_a_contact():
    assert sphere_vs_box([0.0, 0.35, 0.0], 0.35, floor()) is None
    contact = sphere_vs_box([0.0, 0.3, 0.0], 0.35, floor(), index=4)
    assert contact.penetration == pytest.approx(0.05)
    assert contact.normal == pytest.approx((0.0, 1.0, 0.0))
    assert contact.geometry_index == 4


def test_centre_inside_box_pushes_out_nearest_face():
    box = Box((0.0, 0.0, 0.0), (2.0, 2.0, 2.0))
    contact = sphere_vs_box([1.9, 1.0, 1.0], 0.35, box)
    assert contact.normal == (1.0, 0.0, 0.0)
    assert contact.penetration == pytest.approx(0.45)


def test_contacts_reported_in_geometry_order():
    world = World(build_room(), PhysicsConfig(spawn_position=(-4.8, 0.2, 0.0)))
    contacts = world.contacts()
    assert [c.geometry_index for c in contacts] == [0, 2]
    assert [c.geometry_name for c in contacts] == ["floor", "wall_west"]


@pytest.mark.parametrize("restitution, expected", [
    (0.0, (0.4, 0.0, 0.0)),
    (0.5, (0.1, 1.0, 0.0)),
])
def test_resolve_contact_restitution_and_friction(restitution, expected):
    body = RigidBody(position=[0.0, 0.25, 0.0], velocity=[1.0, -2.0, 0.0])
    contact = Contact((0.0, 1.0, 0.0), 0.1, 0, "floor", (0.0, 0.0, 0.0))
    resolve_contact(body, contact, restitution=restitution, friction=0.3)
    assert_vec_close(body.position, [0.0, 0.35, 0.0])
    assert_vec_close(body.velocity, expected)


def test_separating_velocity_is_kept():
    body = RigidBody(position=[0.0, 0.25, 0.0], velocity=[1.0, 2.0, 0.0])
    resolve_contact(body, Contact((0.0, 1.0, 0.0), 0.1, 0, "floor", (0.0, 0.0, 0.0)))
    assert_vec_close(body.velocity, [1.0, 2.0, 0.0])


# ── Stepping ───────────────────────────────────────────────

def test_step_advances_fixed_time(room_world):
    for _ in range(3):
        room_world.step()
    assert room_world.step_count == 3
    assert room_world.sim_time == pytest.approx(3 * DT)


def test_thrust_acts_on_every_step_until_cleared(weightless_world):
    world = weightless_world
    world.apply_thrust(InputKind.THRUST_UP)
    world.step()
    assert world.drone.velocity[1] == pytest.approx(15.0 * DT)
    assert world.status().thrust == pytest.approx(15.0)

    world.step()
    assert world.drone.velocity[1] == pytest.approx(30.0 * DT)

    world.clear_inputs()
    world.step()
    assert world.drone.velocity[1] == pytest.approx(30.0 * DT)
    assert world.status().thrust == 0.0


def test_thrust_is_body_relative(weightless_world):
    world = weightless_world
    world.apply_thrust(InputKind.THRUST_LEFT)
    world.step()
    # body left is world +X at identity orientation
    assert world.drone.velocity[0] == pytest.approx(15.0 * DT)
    assert abs(world.drone.velocity[2]) < 1e-12


def test_thrust_vector_is_scaled_to_thrust_force(weightless_world):
    world = weightless_world
    world.apply_thrust([0.0, 0.0, 10.0])
    world.step()
    assert world.drone.velocity[2] == pytest.approx(15.0 * DT)


def test_degenerate_thrust_is_ignored(weightless_world, caplog):
    world = weightless_world
    world.apply_thrust([0.0, 0.0, 0.0])
    world.step()
    assert_vec_close(world.drone.velocity, np.zeros(3))
    assert "degenerate thrust" in caplog.text


def test_non_thrust_kind_is_rejected(weightless_world):
    with pytest.raises(ValueError):
        weightless_world.apply_thrust(InputKind.YAW_LEFT)
    with pytest.raises(ValueError):
        weightless_world.apply_steer(InputKind.THRUST_UP)


def test_yaw_left_turns_nose_toward_plus_x(weightless_world):
    world = weightless_world
    world.apply_steer(InputKind.YAW_LEFT)
    for _ in range(10):
        world.step()
    nose = quat_rotate(world.drone.orientation, FORWARD)
    assert nose[0] > 0.0
    assert np.linalg.norm(world.drone.orientation) == pytest.approx(1.0)


def test_drone_comes_to_rest_on_floor(floor_world):
    world = floor_world
    for _ in range(300):
        world.step()
    assert world.drone.position[1] == pytest.approx(0.35, abs=1e-3)
    for _ in range(60):
        world.step()
        assert world.drone.position[1] == pytest.approx(0.35, abs=1e-3)
    assert abs(world.drone.velocity[1]) < 1e-6


def test_thrust_into_wall_never_leaves_drone_inside(room_world, caplog):
    caplog.set_level("DEBUG", logger="bhumi")
    world = room_world
    for _ in range(240):
        world.apply_thrust(InputKind.THRUST_LEFT)
        world.step()
        world.clear_inputs()
        assert world.min_separation() >= -1e-9
    assert world.drone.position[0] == pytest.approx(5.0 - 0.35, abs=1e-6)
    assert "wall_east" in [c.geometry_name for c in world.last_contacts]
    assert "contacts with" in caplog.text


def test_same_inputs_give_identical_state():
    script = [InputKind.THRUST_FORWARD, InputKind.YAW_LEFT, InputKind.THRUST_UP,
              InputKind.ROLL_RIGHT, InputKind.THRUST_LEFT]
    worlds = [World(build_room(), PhysicsConfig(spawn_position=(0.0, 3.0, 0.0)))
              for _ in range(2)]
    for i in range(200):
        kind = script[i % len(script)]
        for world in worlds:
            if kind.is_thrust:
                world.apply_thrust(kind)
            else:
                world.apply_steer(kind)
            world.step()
            world.clear_inputs()
    assert np.array_equal(worlds[0].drone.state_vector(), worlds[1].drone.state_vector())


def test_divergence_restores_last_good_state(room_world, caplog):
    world = room_world
    world.step()
    before = world.drone.position.copy()

    world.drone.add_force([math.nan, 0.0, 0.0])
    world.step()

    assert world.drone.is_finite()
    assert_vec_close(world.drone.position, before)
    assert_vec_close(world.drone.velocity, np.zeros(3))
    assert world.divergence_count == 1
    assert_vec_close(world.drone.pending_force, np.zeros(3))
    assert world.step_count == 2
    assert "Physics diverged" in caplog.text

    # keeps running afterwards
    world.step()
    assert world.drone.is_finite()


def test_reset_and_stop(room_world):
    world = room_world
    for _ in range(20):
        world.apply_thrust(InputKind.THRUST_FORWARD)
        world.step()
        world.clear_inputs()
    world.stop_drone()
    assert_vec_close(world.drone.velocity, np.zeros(3))

    world.reset_drone()
    assert_vec_close(world.drone.position, [0.0, 3.0, 0.0])
    assert_vec_close(world.drone.velocity, np.zeros(3))
    assert world.status().thrust == 0.0
    assert world.drone.to_dict()["position"] == pytest.approx([0.0, 3.0, 0.0])

def test_geometry_is_immutable(room_world):
    assert isinstance(room_world.geometry, tuple)
    with pytest.raises(Exception):
        room_world.geometry[0].min_corner = (0.0, 0.0, 0.0)


def test_invalid_body_parameters():
    with pytest.raises(ValueError):
        RigidBody(mass=0.0)
    with pytest.raises(ValueError):
        RigidBody(radius=-1.0)
