"""
Engine configuration.

Settings are grouped into sections matching the YAML file layout:

    physics:
      dt: 0.0166667
      gravity: [0, -9.80665, 0]
      thrust_force: 15.0
    camera:
      mode: third
      fov_deg: 60
    loop:
      target_fps: 60
      max_catchup_steps: 5
    render:
      background_color: "#14141E"
      wireframe: false
    room:
      width: 10
      depth: 10
      height: 6

Every key is optional. Unknown keys are logged and ignored; invalid values
raise ConfigurationError.
"""

import math
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from bhumi.core.geometry import (
    Box, RoomSpec, DEFAULT_FLOOR_COLOR, DEFAULT_WALL_COLOR, DEFAULT_CEILING_COLOR,
)
from bhumi.core.input_event import CameraMode
from bhumi.errors import ConfigurationError
from bhumi.utils.color import Color, parse_color
from bhumi.utils.logging import get_logger

logger = get_logger(__name__)

Vec3Tuple = Tuple[float, float, float]

STANDARD_GRAVITY = 9.80665


def _vec3(value, key: str) -> Vec3Tuple:
    try:
        values = tuple(float(v) for v in value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a list of 3 numbers, got {value!r}")
    if len(values) != 3 or not all(math.isfinite(v) for v in values):
        raise ConfigurationError(f"{key} must be 3 finite numbers, got {value!r}")
    return values


def _color(value, key: str) -> Color:
    try:
        return parse_color(value)
    except ValueError as e:
        raise ConfigurationError(f"{key}: {e}")


def _positive(value, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")
    if not (number > 0 and math.isfinite(number)):
        raise ConfigurationError(f"{key} must be positive, got {value!r}")
    return number


def _non_negative(value, key: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{key} must be a number, got {value!r}")
    if not (number >= 0 and math.isfinite(number)):
        raise ConfigurationError(f"{key} must be >= 0, got {value!r}")
    return number


def _int_at_least(value, key: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{key} must be >= {minimum}, got {value}")
    return value


def _known_keys(section: str, data: dict, cls) -> dict:
    """Split off and log keys the section dataclass does not define."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Section '{section}' must be a mapping, got {type(data).__name__}")
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        logger.warning(f"Ignoring unknown {section} keys: {', '.join(unknown)}")
    return {k: v for k, v in data.items() if k in names}


@dataclass
class PhysicsConfig:
    """Rigid-body and integration settings."""
    dt: float = 1.0 / 60.0
    gravity: Vec3Tuple = (0.0, -STANDARD_GRAVITY, 0.0)
    thrust_force: float = 15.0          # N per thrust event
    steer_torque: float = 0.5           # N*m per steer event
    mass: float = 1.0                   # kg
    radius: float = 0.35                # m, bounding sphere
    linear_damping: float = 0.5         # 1/s
    angular_damping: float = 4.0        # 1/s
    restitution: float = 0.0
    friction: float = 0.3
    solver_iterations: int = 4
    spawn_position: Vec3Tuple = (0.0, 1.5, 0.0)
    spawn_yaw_deg: float = 0.0

    def validate(self) -> "PhysicsConfig":
        self.dt = _positive(self.dt, "physics.dt")
        self.gravity = _vec3(self.gravity, "physics.gravity")
        self.thrust_force = _non_negative(self.thrust_force, "physics.thrust_force")
        self.steer_torque = _non_negative(self.steer_torque, "physics.steer_torque")
        self.mass = _positive(self.mass, "physics.mass")
        self.radius = _positive(self.radius, "physics.radius")
        self.linear_damping = _non_negative(self.linear_damping, "physics.linear_damping")
        self.angular_damping = _non_negative(self.angular_damping, "physics.angular_damping")
        self.restitution = _non_negative(self.restitution, "physics.restitution")
        if self.restitution > 1.0:
            raise ConfigurationError(f"physics.restitution must be <= 1, got {self.restitution}")
        self.friction = _non_negative(self.friction, "physics.friction")
        self.solver_iterations = _int_at_least(self.solver_iterations, "physics.solver_iterations", 1)
        self.spawn_position = _vec3(self.spawn_position, "physics.spawn_position")
        self.spawn_yaw_deg = float(self.spawn_yaw_deg)
        return self

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "PhysicsConfig":
        return cls(**_known_keys("physics", data, cls)).validate()


@dataclass
class CameraConfig:
    """Camera projection and follow settings."""
    mode: CameraMode = CameraMode.THIRD_PERSON
    fov_deg: float = 60.0
    near: float = 0.1
    far: float = 100.0
    third_person_offset: Vec3Tuple = (0.0, 1.0, -2.5)   # body frame: up 1 m, back 2.5 m
    clearance: float = 0.2
    freecam_accel: float = 8.0          # m/s^2 per held direction
    freecam_damping: float = 3.0        # 1/s
    freecam_turn_rate: float = 1.5      # rad/s per held steer key

    def validate(self) -> "CameraConfig":
        try:
            self.mode = CameraMode.parse(self.mode)
        except (KeyError, ValueError):
            raise ConfigurationError(f"camera.mode must be one of first/third/free, got {self.mode!r}")
        try:
            self.fov_deg = float(self.fov_deg)
            self.near = float(self.near)
            self.far = float(self.far)
        except (TypeError, ValueError):
            raise ConfigurationError("camera.fov_deg, near and far must be numbers")
        if not 0.0 < self.fov_deg < 180.0:
            raise ConfigurationError(f"camera.fov_deg must be in (0, 180), got {self.fov_deg}")
        if not 0.0 < self.near < self.far or not math.isfinite(self.far):
            raise ConfigurationError(
                f"camera planes must satisfy 0 < near < far, got near={self.near}, far={self.far}"
            )
        self.third_person_offset = _vec3(self.third_person_offset, "camera.third_person_offset")
        self.clearance = _non_negative(self.clearance, "camera.clearance")
        self.freecam_accel = _non_negative(self.freecam_accel, "camera.freecam_accel")
        self.freecam_damping = _non_negative(self.freecam_damping, "camera.freecam_damping")
        self.freecam_turn_rate = _non_negative(self.freecam_turn_rate, "camera.freecam_turn_rate")
        return self

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CameraConfig":
        return cls(**_known_keys("camera", data, cls)).validate()


@dataclass
class LoopConfig:
    """Frame pacing and fault tolerance."""
    target_fps: float = 60.0
    max_catchup_steps: int = 5
    present_retries: int = 1
    lockstep: bool = False              # one fixed step per frame, no wall clock or pacing

    def validate(self) -> "LoopConfig":
        self.target_fps = _non_negative(self.target_fps, "loop.target_fps")
        self.max_catchup_steps = _int_at_least(self.max_catchup_steps, "loop.max_catchup_steps", 1)
        self.present_retries = _int_at_least(self.present_retries, "loop.present_retries", 0)
        self.lockstep = bool(self.lockstep)
        return self

    @property
    def frame_period(self) -> float:
        """Seconds per frame, 0.0 when pacing is disabled (target_fps = 0)."""
        return 1.0 / self.target_fps if self.target_fps > 0 else 0.0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "LoopConfig":
        return cls(**_known_keys("loop", data, cls)).validate()


@dataclass
class RenderConfig:
    """Rasterizer appearance."""
    background_color: Color = (20, 20, 30, 255)
    drone_color: Color = (220, 40, 40, 255)
    nose_color: Color = (255, 210, 0, 255)
    light_direction: Vec3Tuple = (0.3, 1.0, 0.5)    # toward the light
    ambient: float = 0.35
    wireframe: bool = False
    wireframe_color: Color = (255, 255, 255, 255)
    window_scale: int = 3

    def validate(self) -> "RenderConfig":
        self.background_color = _color(self.background_color, "render.background_color")
        self.drone_color = _color(self.drone_color, "render.drone_color")
        self.nose_color = _color(self.nose_color, "render.nose_color")
        self.wireframe_color = _color(self.wireframe_color, "render.wireframe_color")
        self.light_direction = _vec3(self.light_direction, "render.light_direction")
        if not any(self.light_direction):
            raise ConfigurationError("render.light_direction must be non-zero")
        self.ambient = _non_negative(self.ambient, "render.ambient")
        if self.ambient > 1.0:
            raise ConfigurationError(f"render.ambient must be <= 1, got {self.ambient}")
        self.wireframe = bool(self.wireframe)
        self.window_scale = _int_at_least(self.window_scale, "render.window_scale", 1)
        return self

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RenderConfig":
        return cls(**_known_keys("render", data, cls)).validate()


@dataclass
class RoomConfig:
    """Room dimensions, colors and extra obstacles."""
    width: float = 10.0
    depth: float = 10.0
    height: float = 6.0
    thickness: float = 1.0
    floor_color: Color = DEFAULT_FLOOR_COLOR
    wall_color: Color = DEFAULT_WALL_COLOR
    ceiling_color: Color = DEFAULT_CEILING_COLOR
    obstacles: List[dict] = field(default_factory=list)

    def validate(self) -> "RoomConfig":
        self.width = _positive(self.width, "room.width")
        self.depth = _positive(self.depth, "room.depth")
        self.height = _positive(self.height, "room.height")
        self.thickness = _positive(self.thickness, "room.thickness")
        self.floor_color = _color(self.floor_color, "room.floor_color")
        self.wall_color = _color(self.wall_color, "room.wall_color")
        self.ceiling_color = _color(self.ceiling_color, "room.ceiling_color")
        if not isinstance(self.obstacles, list):
            raise ConfigurationError("room.obstacles must be a list")
        for i, entry in enumerate(self.obstacles):
            self._obstacle(i, entry)
        return self

    @staticmethod
    def _obstacle(index: int, entry: Any) -> Box:
        if not isinstance(entry, dict) or 'min' not in entry or 'max' not in entry:
            raise ConfigurationError(f"room.obstacles[{index}] needs 'min' and 'max'")
        try:
            return Box.from_dict({
                'name': entry.get('name', f"obstacle_{index}"),
                'min': _vec3(entry['min'], f"room.obstacles[{index}].min"),
                'max': _vec3(entry['max'], f"room.obstacles[{index}].max"),
                'color': entry.get('color', DEFAULT_WALL_COLOR),
            })
        except ValueError as e:
            raise ConfigurationError(f"room.obstacles[{index}]: {e}")

    def to_room_spec(self) -> RoomSpec:
        return RoomSpec(
            width=self.width,
            depth=self.depth,
            height=self.height,
            thickness=self.thickness,
            floor_color=self.floor_color,
            wall_color=self.wall_color,
            ceiling_color=self.ceiling_color,
            extra_boxes=[self._obstacle(i, e) for i, e in enumerate(self.obstacles)],
        )

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RoomConfig":
        return cls(**_known_keys("room", data, cls)).validate()


SECTIONS = ('physics', 'camera', 'loop', 'render', 'room')


@dataclass
class EngineConfig:
    """All engine settings, one attribute per YAML section."""
    physics: PhysicsConfig = field(default_factory=PhysicsConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    room: RoomConfig = field(default_factory=RoomConfig)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EngineConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config root must be a mapping, got {type(data).__name__}")
        unknown = sorted(set(data) - set(SECTIONS))
        if unknown:
            logger.warning(f"Ignoring unknown config sections: {', '.join(unknown)}")
        return cls(
            physics=PhysicsConfig.from_dict(data.get('physics')),
            camera=CameraConfig.from_dict(data.get('camera')),
            loop=LoopConfig.from_dict(data.get('loop')),
            render=RenderConfig.from_dict(data.get('render')),
            room=RoomConfig.from_dict(data.get('room')),
        )

    def validate(self) -> "EngineConfig":
        for name in SECTIONS:
            getattr(self, name).validate()
        return self

    def to_dict(self) -> dict:
        """Plain-data form, suitable for yaml.safe_dump."""
        data = asdict(self)
        data['camera']['mode'] = self.camera.mode.value
        for section in data.values():
            for key, value in section.items():
                if isinstance(value, tuple):
                    section[key] = list(value)
        return data


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: YAML file path. None returns the defaults.

    Returns:
        Validated EngineConfig

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    if not path:
        logger.info("No config file specified, using defaults")
        return EngineConfig()

    config_file = Path(path)
    if not config_file.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}")

    config = EngineConfig.from_dict(data)
    logger.info(f"Config loaded from {path}: dt={config.physics.dt:.4f}s, "
                f"fps={config.loop.target_fps}, camera={config.camera.mode.value}")
    return config
