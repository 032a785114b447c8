"""
Software rasterizer: World + Camera -> PixelBuffer.

Pipeline per frame:
    1. Clear the color buffer to the background and the depth buffer to +inf.
    2. Build world-space triangles: 12 per static box, plus the drone mesh
       (skipped in FIRST_PERSON, where the eye is inside the drone).
    3. Transform to clip space, trivially reject against the six frustum
       planes, clip exactly against near and far.
    4. Fill each remaining triangle over its screen bounding box (clamped to
       the buffer) using edge functions at pixel centres, depth-tested on
       ndc z. Side planes are handled by that scissor, not by clipping.
    5. Optionally overlay depth-tested wireframe edges of the boxes.

Faces are flat shaded and double-sided; the room is seen from inside.
"""

import math
from typing import Optional, Sequence

import numpy as np

from bhumi.config import RenderConfig
from bhumi.core.camera import Camera
from bhumi.core.geometry import Box
from bhumi.core.input_event import CameraMode
from bhumi.core.pixel_buffer import PixelBuffer, bresenham
from bhumi.core.transforms import Mat4, normalize, ndc_to_viewport, transform_points
from bhumi.core.world import World
from bhumi.rendering.clipping import clip_polygon_depth, clip_segment, trivially_rejected
from bhumi.rendering.meshes import BOX_EDGES, TriangleBatch, box_mesh, drone_mesh
from bhumi.rendering.overlay import StatusOverlay
from bhumi.utils.color import Color, as_array, normalize_color
from bhumi.utils.logging import get_logger

logger = get_logger(__name__)

# Minimum |2 * area| in pixels^2 for a triangle to be filled
_MIN_AREA = 1e-9
# Wireframe depth bias in ndc units, so edges win over their own faces
_LINE_DEPTH_BIAS = 1e-3


class Rasterizer:
    """
    Z-buffered triangle rasterizer.

    Args:
        config: Render settings (defaults if None)
    """

    def __init__(self, config: Optional[RenderConfig] = None):
        self.config = config or RenderConfig()
        self._light = normalize(np.array(self.config.light_direction, dtype=float))
        self._depth = np.full((0, 0), np.inf)

        self._static_key: Optional[tuple] = None
        self._static_mesh = TriangleBatch.empty()

        # Per-frame counters
        self.triangles_submitted = 0
        self.triangles_drawn = 0
        self.pixels_written = 0

    @property
    def depth(self) -> np.ndarray:
        """Read-only view of the last depth buffer (ndc z, +inf where empty)."""
        view = self._depth.view()
        view.flags.writeable = False
        return view

    # ── Frame ──────────────────────────────────────────────

    def begin_frame(self, buffer: PixelBuffer):
        """Clear color and depth. Must precede any draw call of a frame."""
        if self._depth.shape != (buffer.height, buffer.width):
            self._depth = np.full((buffer.height, buffer.width), np.inf)
        else:
            self._depth.fill(np.inf)
        buffer.clear(self.config.background_color)
        self.triangles_submitted = 0
        self.triangles_drawn = 0
        self.pixels_written = 0

    def render(self, world: World, camera: Camera, buffer: PixelBuffer,
               frame_index: int = 0) -> StatusOverlay:
        """
        Draw the world as seen by camera into buffer.

        Returns:
            Status overlay for the frame
        """
        self.begin_frame(buffer)
        view_proj = camera.view_projection_matrix()

        batches = [self._static_batch(world.geometry)]
        if camera.mode is not CameraMode.FIRST_PERSON:
            batches.append(drone_mesh(world.drone.pose, world.drone.radius,
                                      self.config.drone_color, self.config.nose_color))
        self.draw_batch(TriangleBatch.concatenate(batches), view_proj, buffer)

        if self.config.wireframe:
            self.draw_wireframe(world.geometry, view_proj, buffer, self.config.wireframe_color)

        logger.debug(f"Rendered frame {frame_index}: {self.triangles_drawn}/"
                     f"{self.triangles_submitted} triangles, {self.pixels_written} px")

        status = world.status()
        return StatusOverlay(
            position=status.position,
            velocity=status.velocity,
            thrust=status.thrust,
            sim_time=status.sim_time,
            step_count=status.step_count,
            camera_mode=camera.mode,
            frame_index=frame_index,
        )

    def _static_batch(self, geometry: Sequence[Box]) -> TriangleBatch:
        key = tuple(geometry)
        if key != self._static_key:
            self._static_mesh = TriangleBatch.concatenate([box_mesh(b) for b in geometry])
            self._static_key = key
        return self._static_mesh

    # ── Triangles ──────────────────────────────────────────

    def shade(self, batch: TriangleBatch) -> np.ndarray:
        """Flat-shaded RGBA per triangle: ambient + diffuse on |n . light|."""
        ambient = self.config.ambient
        lambert = np.abs(batch.normals @ self._light)
        intensity = ambient + (1.0 - ambient) * lambert
        colors = batch.colors.astype(float)
        colors[:, :3] *= intensity[:, np.newaxis]
        return np.clip(np.rint(colors), 0, 255).astype(np.uint8)

    def draw_batch(self, batch: TriangleBatch, view_proj: Mat4, buffer: PixelBuffer):
        if not len(batch):
            return
        pixels = buffer.writable_pixels()
        colors = self.shade(batch)
        clip = transform_points(view_proj, batch.vertices.reshape(-1, 3)).reshape(-1, 3, 4)
        for tri, color in zip(clip, colors):
            self._draw_clip_triangle(tri, color, pixels)

    def draw_triangle(self, vertices: Sequence[Sequence[float]], color: Color,
                      view_proj: Mat4, buffer: PixelBuffer):
        """Draw one unshaded world-space triangle with the current depth buffer."""
        clip = transform_points(view_proj, np.asarray(vertices, dtype=float))
        self._draw_clip_triangle(clip, as_array(normalize_color(color)), buffer.writable_pixels())

    def _draw_clip_triangle(self, clip: np.ndarray, color: np.ndarray, pixels: np.ndarray):
        self.triangles_submitted += 1
        if trivially_rejected(clip):
            return

        z, w = clip[:, 2], clip[:, 3]
        if np.all(z >= -w) and np.all(z <= w):
            polygon = clip
        else:
            polygon = clip_polygon_depth(clip)
            if len(polygon) < 3:
                return

        self.triangles_drawn += 1
        for k in range(1, len(polygon) - 1):
            self._fill(polygon[[0, k, k + 1]], color, pixels)

    def _fill(self, clip: np.ndarray, color: np.ndarray, pixels: np.ndarray):
        """Scan-convert one near/far-clipped clip-space triangle."""
        height, width = self._depth.shape
        w = clip[:, 3]
        if np.any(w <= 1e-12):
            return
        ndc = clip[:, :3] / w[:, np.newaxis]
        screen = ndc_to_viewport(ndc, width, height)
        (x0, y0, z0), (x1, y1, z1), (x2, y2, z2) = screen

        area = (x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0)
        if abs(area) < _MIN_AREA:
            return

        # Pixel i is covered when its centre i + 0.5 is inside
        xmin = max(0, math.ceil(min(x0, x1, x2) - 0.5))
        xmax = min(width - 1, math.floor(max(x0, x1, x2) - 0.5))
        ymin = max(0, math.ceil(min(y0, y1, y2) - 0.5))
        ymax = min(height - 1, math.floor(max(y0, y1, y2) - 0.5))
        if xmin > xmax or ymin > ymax:
            return

        px, py = np.meshgrid(np.arange(xmin, xmax + 1) + 0.5,
                             np.arange(ymin, ymax + 1) + 0.5)
        l0 = ((x2 - x1) * (py - y1) - (y2 - y1) * (px - x1)) / area
        l1 = ((x0 - x2) * (py - y2) - (y0 - y2) * (px - x2)) / area
        l2 = 1.0 - l0 - l1

        inside = (l0 >= 0.0) & (l1 >= 0.0) & (l2 >= 0.0)
        if not inside.any():
            return

        depth = np.clip(l0 * z0 + l1 * z1 + l2 * z2, -1.0, 1.0)
        depth_block = self._depth[ymin:ymax + 1, xmin:xmax + 1]
        visible = inside & (depth < depth_block)

        depth_block[visible] = depth[visible]
        pixels[ymin:ymax + 1, xmin:xmax + 1][visible] = color
        self.pixels_written += int(visible.sum())

    # ── Wireframe ──────────────────────────────────────────

    def draw_wireframe(self, geometry: Sequence[Box], view_proj: Mat4,
                       buffer: PixelBuffer, color: Color):
        """Depth-tested box edges drawn over the filled scene."""
        pixels = buffer.writable_pixels()
        rgba = as_array(normalize_color(color))
        height, width = self._depth.shape

        for box in geometry:
            clip = transform_points(view_proj, box.corners())
            for a, b in BOX_EDGES:
                segment = clip_segment(clip[a], clip[b])
                if segment is None:
                    continue
                ends = np.array([p[:3] / p[3] for p in segment])
                (sx0, sy0, sz0), (sx1, sy1, sz1) = ndc_to_viewport(ends, width, height)
                points = list(bresenham(math.floor(sx0), math.floor(sy0),
                                        math.floor(sx1), math.floor(sy1)))
                last = max(1, len(points) - 1)
                for i, (x, y) in enumerate(points):
                    if not (0 <= x < width and 0 <= y < height):
                        continue
                    z = sz0 + (sz1 - sz0) * (i / last)
                    if z <= self._depth[y, x] + _LINE_DEPTH_BIAS:
                        pixels[y, x] = rgba
                        self.pixels_written += 1
