"""
Backend protocol.

Isolates presentation behind the Backend interface so the engine never
depends on a concrete device (window, terminal, GPU surface, test harness).
"""

from typing import List, Optional, Protocol, runtime_checkable

from bhumi.core.input_event import InputEvent
from bhumi.core.pixel_buffer import PixelBuffer
from bhumi.rendering.overlay import StatusOverlay


@runtime_checkable
class Backend(Protocol):
    """Protocol for presentation backends."""

    # ── Lifecycle ──────────────────────────────────────────────

    def open(self) -> None:
        """Acquire the display resource. Called once before the first frame."""
        ...

    def close(self) -> None:
        """Release the display resource. Safe to call more than once."""
        ...

    # ── Frame exchange ─────────────────────────────────────────

    def present(self, buffer: PixelBuffer, status: Optional[StatusOverlay] = None) -> None:
        """
        Show a completed, frozen frame.

        Raises:
            PresentError: If the output device is gone
        """
        ...

    def poll_input(self) -> List[InputEvent]:
        """Events accumulated since the last poll, in order. Never blocks."""
        ...

    def should_exit(self) -> bool:
        """True once the device wants the session to end. Sticky."""
        ...
