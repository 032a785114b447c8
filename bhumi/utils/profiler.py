"""
Frame profiler for the engine loop.

Lightweight section timing, reported through the logger every few seconds.

Usage:
    profiler = FrameProfiler(interval=5.0)

    # In the frame loop:
    profiler.begin_frame()
    poll_input()
    profiler.mark("input")
    step_physics()
    profiler.mark("physics")
    ...
    profiler.end_frame(physics_steps=2)
"""

import time
import collections
from typing import Callable, Dict, List

from bhumi.utils.logging import get_logger

logger = get_logger(__name__)


class _Stats:
    """Rolling statistics over a fixed-size window."""

    __slots__ = ("_values",)

    def __init__(self, window: int = 300):
        self._values = collections.deque(maxlen=window)

    def add(self, value: float):
        self._values.append(value)

    @property
    def count(self) -> int:
        return len(self._values)

    @property
    def max(self) -> float:
        return max(self._values) if self._values else 0.0

    @property
    def avg(self) -> float:
        return sum(self._values) / len(self._values) if self._values else 0.0

    @property
    def p95(self) -> float:
        if not self._values:
            return 0.0
        sorted_vals = sorted(self._values)
        idx = int(len(sorted_vals) * 0.95)
        return sorted_vals[min(idx, len(sorted_vals) - 1)]


def _fmt_ms(seconds: float) -> str:
    return f"{seconds * 1000:.2f}ms"


class FrameProfiler:
    """Collects per-frame section timings and logs periodic summaries.

    Sections are created on first use by mark(name) or record(name, t)
    between begin_frame() and end_frame().

    Args:
        interval: Seconds between summary log outputs.
        window: Number of recent samples kept per section.
        clock: Time source, injectable for tests.
    """

    def __init__(self, interval: float = 5.0, window: int = 300,
                 clock: Callable[[], float] = time.perf_counter):
        self._interval = interval
        self._window = window
        self._clock = clock

        self._sections: Dict[str, _Stats] = {}
        self._section_order: List[str] = []
        self._frame_stats = _Stats(window)
        self._step_stats = _Stats(window)

        self._frame_start: float = 0.0
        self._last_mark: float = 0.0

        self._last_report: float = clock()
        self._frame_count: int = 0
        self.reports: int = 0

    def begin_frame(self):
        """Call at the start of each frame tick."""
        now = self._clock()
        self._frame_start = now
        self._last_mark = now

    def mark(self, section: str):
        """Record time since the last mark (or begin_frame) under a section name."""
        now = self._clock()
        self.record(section, now - self._last_mark)
        self._last_mark = now

    def record(self, section: str, seconds: float):
        """Record an externally measured duration for a section."""
        if section not in self._sections:
            self._sections[section] = _Stats(self._window)
            self._section_order.append(section)
        self._sections[section].add(seconds)

    def end_frame(self, physics_steps: int = 0):
        """Call at the end of each frame tick. Triggers periodic reporting."""
        now = self._clock()
        self._frame_stats.add(now - self._frame_start)
        self._step_stats.add(float(physics_steps))
        self._frame_count += 1

        if now - self._last_report >= self._interval:
            self._report(now - self._last_report)
            self._last_report = now

    def section_average(self, section: str) -> float:
        """Average duration in seconds of a section, 0.0 if never recorded."""
        stats = self._sections.get(section)
        return stats.avg if stats else 0.0

    def _report(self, elapsed: float):
        if self._frame_stats.count == 0:
            return

        fps = self._frame_count / elapsed if elapsed > 0 else 0.0
        lines = [
            f"=== PROFILE ({self._frame_count} frames, {fps:.1f} FPS, "
            f"{self._step_stats.avg:.2f} steps/frame) ===",
            f"  {'Section':<12s} {'avg':>8s} {'p95':>8s} {'max':>8s}",
        ]
        for name in self._section_order:
            s = self._sections[name]
            if s.count > 0:
                lines.append(
                    f"  {name:<12s} {_fmt_ms(s.avg):>8s} {_fmt_ms(s.p95):>8s} {_fmt_ms(s.max):>8s}"
                )
        s = self._frame_stats
        lines.append(
            f"  {'TOTAL':<12s} {_fmt_ms(s.avg):>8s} {_fmt_ms(s.p95):>8s} {_fmt_ms(s.max):>8s}"
        )

        logger.info("\n".join(lines))
        self.reports += 1
        self._frame_count = 0
