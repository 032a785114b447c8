"""Rendering: rasterizer, meshes, clipping, status overlay and backends."""

from bhumi.rendering.overlay import StatusOverlay
from bhumi.rendering.rasterizer import Rasterizer
from bhumi.rendering.meshes import TriangleBatch, box_mesh, drone_mesh

__all__ = [
    "StatusOverlay",
    "Rasterizer",
    "TriangleBatch",
    "box_mesh",
    "drone_mesh",
]
