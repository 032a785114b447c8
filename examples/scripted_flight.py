#!/usr/bin/env python3
"""
Scripted flight example, no window needed.

This example demonstrates:
1. Building a session from the config file
2. Driving the drone with a scripted input sequence
3. Switching camera modes mid-flight
4. Reading the status overlay and the presented frames

Run from the repository root:
    python examples/scripted_flight.py
"""

from bhumi import CameraMode, InputEvent, InputKind, load_config
from bhumi.app import build_loop
from bhumi.rendering.backend.headless import HeadlessBackend
from bhumi.utils.logging import setup_logging

UP = InputEvent(InputKind.THRUST_UP)
FORWARD = InputEvent(InputKind.THRUST_FORWARD)
YAW_LEFT = InputEvent(InputKind.YAW_LEFT)


def build_script():
    script = []
    script += [[UP]] * 60                     # climb for one second
    script += [[FORWARD, UP]] * 90            # cruise forward, holding altitude
    script += [[InputEvent.camera_mode(CameraMode.FIRST_PERSON)]]
    script += [[YAW_LEFT, UP]] * 60           # turn left
    script += [[InputEvent.camera_mode(CameraMode.THIRD_PERSON)]]
    script += [[]] * 120                      # let it settle on the floor
    script += [[InputEvent(InputKind.EXIT)]]
    return script


def main():
    setup_logging(verbose=False)

    config = load_config("config/bhumi.yaml")
    config.loop.lockstep = True

    backend = HeadlessBackend(script=build_script(), keep_frames=1)
    loop = build_loop(config, backend)

    print("Flying...")
    frames = loop.run()

    overlay = backend.last_overlay
    print(f"\nRendered {frames} frames, {loop.world.step_count} physics steps")
    if overlay is not None:
        for line in overlay.lines():
            print(f"  {line}")
        print(f"\nStatus: {overlay.to_dict()}")

    frame = backend.last_frame
    if frame is not None:
        print(f"Last frame: {frame.shape}, mean color {frame[..., :3].mean(axis=(0, 1)).round(1)}")

    print("Done!")


if __name__ == "__main__":
    main()
