"""
Fixed-size RGBA framebuffer.

The buffer is the only thing the engine hands to a presentation backend.
It is written by the rasterizer, frozen, presented, and thawed by the frame
loop before the next render.
"""

from typing import Iterator, Tuple

import numpy as np

from bhumi.errors import BufferBoundsError, FrozenBufferError
from bhumi.utils.color import Color, BLACK, normalize_color

WIDTH = 320
HEIGHT = 240


def bresenham(x0: int, y0: int, x1: int, y1: int) -> Iterator[Tuple[int, int]]:
    """Integer points of the line from (x0, y0) to (x1, y1), both ends included."""
    x0, y0, x1, y1 = int(x0), int(y0), int(x1), int(y1)
    dx = abs(x1 - x0)
    dy = -abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx + dy

    while True:
        yield x0, y0
        if x0 == x1 and y0 == y1:
            return
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x0 += sx
        if e2 <= dx:
            err += dx
            y0 += sy


class PixelBuffer:
    """
    320x240 RGBA pixel buffer backed by a (height, width, 4) uint8 array.

    Indexed access (get/set) is strict: any coordinate outside
    0 <= x < width, 0 <= y < height raises BufferBoundsError and leaves the
    buffer untouched. Drawing primitives (draw_line, fill_rect) clip instead.
    """

    def __init__(self, width: int = WIDTH, height: int = HEIGHT):
        if width <= 0 or height <= 0:
            raise ValueError(f"Buffer size must be positive, got {width}x{height}")
        self._width = int(width)
        self._height = int(height)
        self._data = np.zeros((self._height, self._width, 4), dtype=np.uint8)
        self._data[:, :, 3] = 255
        self._frozen = False

    # ── Properties ─────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        return (self._width, self._height)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the (height, width, 4) array."""
        view = self._data.view()
        view.flags.writeable = False
        return view

    def writable_pixels(self) -> np.ndarray:
        """Writable array for bulk writes by the rasterizer."""
        self._check_writable()
        return self._data

    # ── Freeze protocol ────────────────────────────────────

    def freeze(self):
        """Mark the buffer read-only while a backend consumes it."""
        self._frozen = True

    def thaw(self):
        self._frozen = False

    def _check_writable(self):
        if self._frozen:
            raise FrozenBufferError("Pixel buffer is frozen while being presented")

    def _check_bounds(self, x: int, y: int):
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise BufferBoundsError(
                f"Pixel ({x}, {y}) outside buffer {self._width}x{self._height}"
            )

    # ── Indexed access ─────────────────────────────────────

    def get(self, x: int, y: int) -> Color:
        """
        Read one pixel.

        Raises:
            BufferBoundsError: If (x, y) is outside the buffer
        """
        self._check_bounds(x, y)
        r, g, b, a = self._data[y, x]
        return (int(r), int(g), int(b), int(a))

    def set(self, x: int, y: int, color: Color):
        """
        Write one pixel.

        Raises:
            BufferBoundsError: If (x, y) is outside the buffer
            FrozenBufferError: If the buffer is frozen
        """
        self._check_bounds(x, y)
        self._check_writable()
        self._data[y, x] = normalize_color(color)

    def clear(self, color: Color = BLACK):
        self._check_writable()
        self._data[:, :] = normalize_color(color)

    # ── Drawing primitives ─────────────────────────────────

    def draw_line(self, x0: int, y0: int, x1: int, y1: int, color: Color):
        """Bresenham line. Pixels falling outside the buffer are skipped."""
        self._check_writable()
        rgba = normalize_color(color)
        for x, y in bresenham(x0, y0, x1, y1):
            if 0 <= x < self._width and 0 <= y < self._height:
                self._data[y, x] = rgba

    def fill_rect(self, x: int, y: int, w: int, h: int, color: Color):
        """Filled rectangle with its top-left corner at (x, y), clamped to the buffer."""
        self._check_writable()
        x0, y0 = max(0, int(x)), max(0, int(y))
        x1, y1 = min(self._width, int(x) + int(w)), min(self._height, int(y) + int(h))
        if x0 >= x1 or y0 >= y1:
            return
        self._data[y0:y1, x0:x1] = normalize_color(color)

    # ── Export ─────────────────────────────────────────────

    def tobytes(self) -> bytes:
        """Row-major RGBA bytes, as expected by pygame.image.frombuffer."""
        return self._data.tobytes()

    def copy(self) -> "PixelBuffer":
        """Unfrozen deep copy."""
        clone = PixelBuffer(self._width, self._height)
        clone._data[...] = self._data
        return clone

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "writable"
        return f"PixelBuffer({self._width}x{self._height}, {state})"
