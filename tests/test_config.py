"""Tests for YAML configuration loading and validation."""

from pathlib import Path

import pytest
import yaml

from bhumi.config import (
    CameraConfig, EngineConfig, LoopConfig, PhysicsConfig, load_config,
)
from bhumi.core.geometry import build_room
from bhumi.core.input_event import CameraMode
from bhumi.errors import ConfigurationError

SAMPLE = Path(__file__).resolve().parent.parent / "config" / "bhumi.yaml"


def _write(tmp_path, text):
    path = tmp_path / "engine.yaml"
    path.write_text(text)
    return path


def test_defaults():
    config = load_config(None)
    assert config.physics.dt == pytest.approx(1.0 / 60.0)
    assert config.physics.gravity == (0.0, -9.80665, 0.0)
    assert config.camera.mode is CameraMode.THIRD_PERSON
    assert config.camera.fov_deg == 60.0
    assert config.loop.max_catchup_steps == 5
    assert config.loop.frame_period == pytest.approx(1.0 / 60.0)
    assert len(build_room(config.room.to_room_spec())) == 6


def test_sample_file_loads():
    config = load_config(SAMPLE)
    assert config.physics.spawn_position == (0.0, 1.5, -3.0)
    assert config.render.background_color == (20, 20, 30, 255)
    assert config.render.nose_color == (255, 210, 0, 255)

    boxes = build_room(config.room.to_room_spec())
    assert [b.name for b in boxes[6:]] == ["pillar", "table"]
    assert boxes[6].color == (0x6E, 0x8C, 0xA0, 255)


def test_partial_file_keeps_other_defaults(tmp_path):
    path = _write(tmp_path, "camera:\n  mode: first\n  fov_deg: 75\nloop:\n  target_fps: 0\n")
    config = load_config(path)
    assert config.camera.mode is CameraMode.FIRST_PERSON
    assert config.camera.fov_deg == 75.0
    assert config.camera.near == 0.1
    assert config.loop.frame_period == 0.0
    assert config.physics.thrust_force == 15.0


def test_empty_file_gives_defaults(tmp_path):
    assert load_config(_write(tmp_path, "")) == EngineConfig()


def test_unknown_keys_are_logged_and_ignored(tmp_path, caplog):
    path = _write(tmp_path, "physics:\n  dt: 0.01\n  warp: 9\nextras:\n  a: 1\n")
    config = load_config(path)
    assert config.physics.dt == 0.01
    assert "warp" in caplog.text
    assert "extras" in caplog.text


@pytest.mark.parametrize("text", [
    "camera:\n  fov_deg: 0\n",
    "camera:\n  fov_deg: 180\n",
    "camera:\n  near: 0\n",
    "camera:\n  near: 5\n  far: 5\n",
    "camera:\n  mode: sideways\n",
    "physics:\n  dt: -0.1\n",
    "physics:\n  gravity: [0, 1]\n",
    "physics:\n  solver_iterations: 0\n",
    "physics:\n  restitution: 1.5\n",
    "physics: 3\n",
    "loop:\n  max_catchup_steps: 0\n",
    "render:\n  background_color: nope\n",
    "render:\n  ambient: 2\n",
    "room:\n  obstacles:\n    - {min: [0, 0, 0], max: [0, 1, 1]}\n",
    "room:\n  obstacles:\n    - {min: [0, 0, 0]}\n",
    "- just\n- a list\n",
])
def test_invalid_values_raise(tmp_path, text):
    with pytest.raises(ConfigurationError):
        load_config(_write(tmp_path, text))


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.yaml")


def test_unparsable_file_raises(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to parse"):
        load_config(_write(tmp_path, "physics: [1, 2\n"))


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        CameraConfig(fov_deg=-1).validate()


def test_dump_and_reload(tmp_path):
    config = load_config(SAMPLE)
    path = tmp_path / "dumped.yaml"
    path.write_text(yaml.safe_dump(config.to_dict()))
    assert load_config(path) == config


def test_section_validation_normalises_types():
    physics = PhysicsConfig(gravity=[0, -1, 0], dt=1).validate()
    assert physics.gravity == (0.0, -1.0, 0.0)
    assert isinstance(physics.dt, float)

    loop = LoopConfig(present_retries=0).validate()
    assert loop.present_retries == 0
    with pytest.raises(ConfigurationError):
        LoopConfig(max_catchup_steps=2.5).validate()
