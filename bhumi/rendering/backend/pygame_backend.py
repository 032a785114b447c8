"""
Pygame window backend.

Shows the 320x240 buffer scaled up in a window and turns keyboard state into
input events. Held keys produce thrust/steer events on every poll; key
presses produce one-shot events.

Keys:
    W/S  forward/backward    A/D  left/right    Space/C  up/down
    I/K  pitch up/down       J/L  yaw left/right U/O  roll left/right
    1/2/3  first/third/free camera   0  reset   9  stop   Esc/Q  exit
"""

import logging
from typing import List, Optional, Tuple

import pygame

from bhumi.core.input_event import CameraMode, InputEvent, InputKind
from bhumi.core.pixel_buffer import PixelBuffer, WIDTH, HEIGHT
from bhumi.errors import PresentError
from bhumi.rendering.overlay import StatusOverlay

logger = logging.getLogger(__name__)

HELD_KEYS = {
    pygame.K_w: InputKind.THRUST_FORWARD,
    pygame.K_s: InputKind.THRUST_BACKWARD,
    pygame.K_a: InputKind.THRUST_LEFT,
    pygame.K_d: InputKind.THRUST_RIGHT,
    pygame.K_SPACE: InputKind.THRUST_UP,
    pygame.K_c: InputKind.THRUST_DOWN,
    pygame.K_i: InputKind.PITCH_UP,
    pygame.K_k: InputKind.PITCH_DOWN,
    pygame.K_j: InputKind.YAW_LEFT,
    pygame.K_l: InputKind.YAW_RIGHT,
    pygame.K_u: InputKind.ROLL_LEFT,
    pygame.K_o: InputKind.ROLL_RIGHT,
}

PRESSED_KEYS = {
    pygame.K_1: InputEvent.camera_mode(CameraMode.FIRST_PERSON),
    pygame.K_2: InputEvent.camera_mode(CameraMode.THIRD_PERSON),
    pygame.K_3: InputEvent.camera_mode(CameraMode.FREE_CAM),
    pygame.K_0: InputEvent(InputKind.RESET),
    pygame.K_9: InputEvent(InputKind.STOP),
    pygame.K_ESCAPE: InputEvent(InputKind.EXIT),
    pygame.K_q: InputEvent(InputKind.EXIT),
}

OVERLAY_COLOR = (230, 230, 230)
OVERLAY_BACKGROUND = (0, 0, 0)


class PygameBackend:
    """
    Windowed backend using pygame.

    Args:
        scale: Integer window scale factor over the 320x240 buffer
        show_overlay: Draw the status overlay as text
        title: Window caption
    """

    def __init__(self, scale: int = 3, show_overlay: bool = True, title: str = "bhumi"):
        self.scale = max(1, int(scale))
        self.show_overlay = show_overlay
        self.title = title
        self.screen: Optional[pygame.Surface] = None
        self._fonts: dict = {}  # Cache for fonts
        self._exit = False

    @property
    def window_size(self) -> Tuple[int, int]:
        return (WIDTH * self.scale, HEIGHT * self.scale)

    # ── Lifecycle ──────────────────────────────────────────────

    def open(self) -> None:
        """Initialize pygame and create the window."""
        pygame.init()
        self.screen = pygame.display.set_mode(self.window_size)
        pygame.display.set_caption(self.title)
        logger.info(f"Pygame window opened: {self.window_size[0]}x{self.window_size[1]} "
                    f"(scale {self.scale})")

    def close(self) -> None:
        """Cleanup and quit pygame."""
        if self.screen is None:
            return
        self.screen = None
        self._fonts.clear()
        pygame.quit()
        logger.info("Pygame window closed")

    # ── Frame exchange ─────────────────────────────────────────

    def present(self, buffer: PixelBuffer, status: Optional[StatusOverlay] = None) -> None:
        if self.screen is None:
            raise PresentError("Pygame window is not open")
        try:
            frame = pygame.image.frombuffer(buffer.tobytes(), buffer.size, 'RGBA')
            if self.scale != 1:
                frame = pygame.transform.scale(frame, self.window_size)
            self.screen.blit(frame, (0, 0))
            if self.show_overlay and status is not None:
                self._draw_overlay(status)
            pygame.display.flip()
        except pygame.error as e:
            raise PresentError(f"Pygame present failed: {e}") from e

    def poll_input(self) -> List[InputEvent]:
        if self.screen is None:
            return []
        events: List[InputEvent] = []
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._exit = True
                events.append(InputEvent(InputKind.EXIT))
            elif event.type == pygame.KEYDOWN and event.key in PRESSED_KEYS:
                events.append(PRESSED_KEYS[event.key])

        held = pygame.key.get_pressed()
        for key, kind in HELD_KEYS.items():
            if held[key]:
                events.append(InputEvent(kind))
        return events

    def should_exit(self) -> bool:
        return self._exit

    # ── Text ───────────────────────────────────────────────────

    def _draw_overlay(self, status: StatusOverlay, font_size: int = 20):
        if font_size not in self._fonts:
            self._fonts[font_size] = pygame.font.Font(None, font_size)
        font = self._fonts[font_size]

        y = 4
        for line in status.lines():
            text_surface = font.render(line, True, OVERLAY_COLOR, OVERLAY_BACKGROUND)
            self.screen.blit(text_surface, (4, y))
            y += text_surface.get_height() + 2
