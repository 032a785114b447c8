"""
bhumi entry point.

Builds a session (world, camera, rasterizer, backend, frame loop) from the
YAML config and command-line overrides, then runs it.

Usage:
    bhumi                              # pygame window, default room
    bhumi -c config/bhumi.yaml -v
    bhumi --backend headless --frames 600 --lockstep
"""

import argparse
import sys
from typing import List, Optional

from bhumi.config import EngineConfig, load_config
from bhumi.core.camera import Camera
from bhumi.core.geometry import build_room
from bhumi.core.input_event import CameraMode
from bhumi.core.world import World
from bhumi.errors import BhumiError, ConfigurationError
from bhumi.loop import FrameLoop
from bhumi.rendering.backend.base import Backend
from bhumi.rendering.backend.headless import HeadlessBackend
from bhumi.rendering.rasterizer import Rasterizer
from bhumi.utils.logging import setup_logging, get_logger
from bhumi.utils.profiler import FrameProfiler

BACKENDS = ("pygame", "headless")


def create_backend(name: str, config: EngineConfig,
                   max_frames: Optional[int] = None) -> Backend:
    """
    Instantiate a backend by name.

    Raises:
        ConfigurationError: If the name is unknown
    """
    if name == "headless":
        return HeadlessBackend(max_frames=max_frames)
    if name == "pygame":
        # pygame is only loaded when a window is requested
        from bhumi.rendering.backend.pygame_backend import PygameBackend
        return PygameBackend(scale=config.render.window_scale)
    raise ConfigurationError(f"Unknown backend '{name}' (choose from {', '.join(BACKENDS)})")


def build_loop(config: EngineConfig, backend: Backend,
               profiler: Optional[FrameProfiler] = None) -> FrameLoop:
    """Wire world, camera and rasterizer for one session."""
    world = World(build_room(config.room.to_room_spec()), config.physics)
    camera = Camera(config.camera)
    camera.update_from_body(world.drone.pose, world.geometry)
    rasterizer = Rasterizer(config.render)
    return FrameLoop(world, camera, rasterizer, backend, config, profiler=profiler)


def apply_overrides(config: EngineConfig, args: argparse.Namespace) -> EngineConfig:
    """Command-line options win over file values."""
    if args.fps is not None:
        config.loop.target_fps = args.fps
    if args.camera is not None:
        config.camera.mode = CameraMode.parse(args.camera)
    if args.no_gravity:
        config.physics.gravity = (0.0, 0.0, 0.0)
    if args.lockstep:
        config.loop.lockstep = True
    if args.wireframe:
        config.render.wireframe = True
    return config.validate()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bhumi",
        description="bhumi - fly a drone around a room in a 320x240 software-rendered 3D view"
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to engine configuration YAML"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file"
    )
    parser.add_argument(
        "--backend", "-b",
        choices=BACKENDS,
        default="pygame",
        help="Presentation backend (default: pygame)"
    )
    parser.add_argument(
        "--frames", "-n",
        type=int,
        default=None,
        help="Stop after this many frames"
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Target frame rate, 0 to disable pacing (default: from config, 60)"
    )
    parser.add_argument(
        "--camera",
        choices=[mode.value for mode in CameraMode],
        default=None,
        help="Initial camera mode (default: from config, third)"
    )
    parser.add_argument(
        "--no-gravity",
        action="store_true",
        help="Disable gravity (free exploration)"
    )
    parser.add_argument(
        "--lockstep",
        action="store_true",
        help="Advance exactly one physics step per frame, ignoring wall time"
    )
    parser.add_argument(
        "--wireframe",
        action="store_true",
        help="Overlay box edges"
    )
    parser.add_argument(
        "--profile",
        nargs="?",
        const=5.0,
        type=float,
        metavar="INTERVAL",
        help="Enable frame profiling (optional: report interval in seconds, default 5)"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the bhumi engine. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=args.log_file)
    logger = get_logger(__name__)

    try:
        config = apply_overrides(load_config(args.config), args)
        backend = create_backend(args.backend, config, max_frames=args.frames)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    profiler = FrameProfiler(interval=args.profile) if args.profile is not None else None
    loop = build_loop(config, backend, profiler)

    try:
        loop.run(max_frames=args.frames)
    except BhumiError as e:
        logger.error(f"Engine error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
