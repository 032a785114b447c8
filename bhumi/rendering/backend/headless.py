"""
Headless backend: scripted input, captured output.

Used for tests, batch runs and CI, where no display exists.
"""

import collections
from typing import Deque, Iterable, List, Optional, Sequence

import numpy as np

from bhumi.core.input_event import InputEvent
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.errors import PresentError
from bhumi.rendering.overlay import StatusOverlay
from bhumi.utils.logging import get_logger

logger = get_logger(__name__)


class HeadlessBackend:
    """
    Backend without a display.

    Args:
        script: Per-poll event lists. Poll n returns script[n]; polls past
            the end return no events.
        max_frames: Request exit after this many successful presents
            (None for no limit).
        keep_frames: How many presented frames to keep as numpy copies.
        fail_presents: Number of present() calls, starting at fail_after,
            that raise PresentError.
        fail_after: Index of the first present() call that fails.
    """

    def __init__(self, script: Optional[Sequence[Iterable[InputEvent]]] = None,
                 max_frames: Optional[int] = None, keep_frames: int = 8,
                 fail_presents: int = 0, fail_after: int = 0):
        self._script: Deque[List[InputEvent]] = collections.deque(
            list(events) for events in (script or [])
        )
        self.max_frames = max_frames
        self.frames: Deque[np.ndarray] = collections.deque(maxlen=keep_frames)
        self.overlays: Deque[StatusOverlay] = collections.deque(maxlen=keep_frames)

        self._fail_presents = fail_presents
        self._fail_after = fail_after

        self.is_open = False
        self.opened_count = 0
        self.closed_count = 0
        self.present_calls = 0
        self.presented = 0
        self.polls = 0
        self._exit = False

    # ── Lifecycle ──────────────────────────────────────────────

    def open(self) -> None:
        self.is_open = True
        self.opened_count += 1
        logger.info("Headless backend opened")

    def close(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        self.closed_count += 1
        logger.info(f"Headless backend closed after {self.presented} frames")

    # ── Frame exchange ─────────────────────────────────────────

    def present(self, buffer: PixelBuffer, status: Optional[StatusOverlay] = None) -> None:
        call = self.present_calls
        self.present_calls += 1
        if self._fail_after <= call < self._fail_after + self._fail_presents:
            raise PresentError(f"Headless present {call} failed (scripted)")

        self.frames.append(np.array(buffer.pixels))
        if status is not None:
            self.overlays.append(status)
        self.presented += 1
        if self.max_frames is not None and self.presented >= self.max_frames:
            self.request_exit()

    def poll_input(self) -> List[InputEvent]:
        self.polls += 1
        if self._script:
            return self._script.popleft()
        return []

    def should_exit(self) -> bool:
        return self._exit

    # ── Helpers ────────────────────────────────────────────────

    def request_exit(self):
        self._exit = True

    def queue(self, *events: InputEvent):
        """Append one poll's worth of events to the script."""
        self._script.append(list(events))

    @property
    def last_frame(self) -> Optional[np.ndarray]:
        return self.frames[-1] if self.frames else None

    @property
    def last_overlay(self) -> Optional[StatusOverlay]:
        return self.overlays[-1] if self.overlays else None
