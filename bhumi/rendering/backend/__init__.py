"""Backend protocol and implementations."""

from bhumi.rendering.backend.base import Backend
from bhumi.rendering.backend.headless import HeadlessBackend

# PygameBackend needs a pygame install with video support; import it from
# bhumi.rendering.backend.pygame_backend where a window is wanted.

__all__ = [
    "Backend",
    "HeadlessBackend",
]
