"""
Triangle meshes for the scene.

A TriangleBatch holds world-space triangles with one face normal and one
RGBA color per triangle, ready for flat shading.
"""

from dataclasses import dataclass
from typing import List

import numpy as np

from bhumi.core.geometry import Box
from bhumi.core.rigidbody import Pose
from bhumi.core.transforms import quat_rotate
from bhumi.utils.color import Color

# Corner index bits: 1 = max x, 2 = max y, 4 = max z (matches Box.corners)
# Each face: two triangles wound counter-clockwise seen from outside.
_BOX_FACES = (
    ((0, 2, 6), (0, 6, 4)),   # -X
    ((1, 5, 7), (1, 7, 3)),   # +X
    ((0, 4, 5), (0, 5, 1)),   # -Y
    ((2, 3, 7), (2, 7, 6)),   # +Y
    ((0, 1, 3), (0, 3, 2)),   # -Z
    ((4, 6, 7), (4, 7, 5)),   # +Z
)
_BOX_NORMALS = (
    (-1.0, 0.0, 0.0), (1.0, 0.0, 0.0),
    (0.0, -1.0, 0.0), (0.0, 1.0, 0.0),
    (0.0, 0.0, -1.0), (0.0, 0.0, 1.0),
)
# Twelve edges as corner pairs (differ in exactly one bit)
BOX_EDGES = tuple((a, a | bit) for bit in (1, 2, 4) for a in range(8) if not a & bit)


@dataclass
class TriangleBatch:
    """(N, 3, 3) vertices, (N, 3) normals, (N, 4) uint8 colors."""
    vertices: np.ndarray
    normals: np.ndarray
    colors: np.ndarray

    def __len__(self) -> int:
        return self.vertices.shape[0]

    @classmethod
    def empty(cls) -> "TriangleBatch":
        return cls(np.zeros((0, 3, 3)), np.zeros((0, 3)), np.zeros((0, 4), dtype=np.uint8))

    @classmethod
    def concatenate(cls, batches: List["TriangleBatch"]) -> "TriangleBatch":
        batches = [b for b in batches if len(b)]
        if not batches:
            return cls.empty()
        return cls(
            np.concatenate([b.vertices for b in batches]),
            np.concatenate([b.normals for b in batches]),
            np.concatenate([b.colors for b in batches]),
        )


def box_mesh(box: Box) -> TriangleBatch:
    """Twelve triangles covering the six faces of a box."""
    corners = box.corners()
    tris, normals = [], []
    for face, normal in zip(_BOX_FACES, _BOX_NORMALS):
        for tri in face:
            tris.append(corners[list(tri)])
            normals.append(normal)
    colors = np.tile(np.asarray(box.color, dtype=np.uint8), (12, 1))
    return TriangleBatch(np.array(tris), np.array(normals), colors)


def _octahedron_sphere(subdivisions: int = 1):
    """Unit sphere approximated by a subdivided octahedron. Returns (N, 3, 3)."""
    px, nx = np.array([1.0, 0, 0]), np.array([-1.0, 0, 0])
    py, ny = np.array([0, 1.0, 0]), np.array([0, -1.0, 0])
    pz, nz = np.array([0, 0, 1.0]), np.array([0, 0, -1.0])
    tris = [
        (px, py, pz), (pz, py, nx), (nx, py, nz), (nz, py, px),
        (px, pz, ny), (pz, nx, ny), (nx, nz, ny), (nz, px, ny),
    ]
    for _ in range(subdivisions):
        finer = []
        for a, b, c in tris:
            ab = (a + b) / np.linalg.norm(a + b)
            bc = (b + c) / np.linalg.norm(b + c)
            ca = (c + a) / np.linalg.norm(c + a)
            finer.extend([(a, ab, ca), (ab, b, bc), (ca, bc, c), (ab, bc, ca)])
        tris = finer
    return np.array(tris)


_UNIT_SPHERE = _octahedron_sphere(1)


def _face_normals(vertices: np.ndarray) -> np.ndarray:
    n = np.cross(vertices[:, 1] - vertices[:, 0], vertices[:, 2] - vertices[:, 0])
    lengths = np.linalg.norm(n, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return n / lengths


def drone_mesh(pose: Pose, radius: float, body_color: Color, nose_color: Color) -> TriangleBatch:
    """
    Drone body (low-poly sphere) plus a nose fin marking body +Z.

    The nose is a flat triangle in the body's horizontal plane, pointing
    forward from the sphere surface.
    """
    local = _UNIT_SPHERE * radius
    nose = np.array([[
        [0.35 * radius, 0.0, 0.8 * radius],
        [0.0, 0.0, 1.8 * radius],
        [-0.35 * radius, 0.0, 0.8 * radius],
    ]])
    local = np.concatenate((local, nose))

    flat = quat_rotate(pose.orientation, local.reshape(-1, 3)) + np.asarray(pose.position, dtype=float)
    vertices = flat.reshape(-1, 3, 3)

    colors = np.tile(np.asarray(body_color, dtype=np.uint8), (len(vertices), 1))
    colors[-1] = np.asarray(nose_color, dtype=np.uint8)
    return TriangleBatch(vertices, _face_normals(vertices), colors)
