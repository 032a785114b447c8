"""
Homogeneous clip-space clipping.

Points are (x, y, z, w) after the view-projection transform. Inside the
frustum means -w <= x, y, z <= w. Near and far are clipped exactly
(Sutherland-Hodgman); the side planes are only used for trivial rejection,
the rasterizer scissors them per pixel. Wireframe segments are clipped
against all six planes.
"""

from typing import Optional, Tuple

import numpy as np

# Plane coefficients a: signed distance d = a . p, inside when d >= 0
NEAR_PLANE = np.array([0.0, 0.0, 1.0, 1.0])    # z + w >= 0
FAR_PLANE = np.array([0.0, 0.0, -1.0, 1.0])    # w - z >= 0

FRUSTUM_PLANES = np.array([
    [1.0, 0.0, 0.0, 1.0],    # left:   x + w >= 0
    [-1.0, 0.0, 0.0, 1.0],   # right:  w - x >= 0
    [0.0, 1.0, 0.0, 1.0],    # bottom: y + w >= 0
    [0.0, -1.0, 0.0, 1.0],   # top:    w - y >= 0
    NEAR_PLANE,
    FAR_PLANE,
])


def trivially_rejected(clip: np.ndarray) -> bool:
    """True when every vertex lies outside one and the same frustum plane."""
    distances = clip @ FRUSTUM_PLANES.T        # (n_vertices, 6)
    return bool(np.any(np.all(distances < 0.0, axis=0)))


def clip_polygon_plane(polygon: np.ndarray, plane: np.ndarray) -> np.ndarray:
    """
    Sutherland-Hodgman against one plane.

    Args:
        polygon: (n, 4) clip-space vertices in order
        plane: (4,) coefficients, inside where plane . v >= 0

    Returns:
        (m, 4) clipped polygon, m == 0 when nothing remains
    """
    n = len(polygon)
    if n == 0:
        return polygon
    d = polygon @ plane
    out = []
    for i in range(n):
        j = (i + 1) % n
        a, b = polygon[i], polygon[j]
        da, db = d[i], d[j]
        if da >= 0.0:
            out.append(a)
        if (da >= 0.0) != (db >= 0.0):
            t = da / (da - db)
            out.append(a + t * (b - a))
    if not out:
        return np.zeros((0, 4))
    return np.array(out)


def clip_polygon_depth(polygon: np.ndarray) -> np.ndarray:
    """Clip a polygon to near and far planes."""
    polygon = clip_polygon_plane(np.asarray(polygon, dtype=float), NEAR_PLANE)
    if len(polygon) < 3:
        return np.zeros((0, 4))
    polygon = clip_polygon_plane(polygon, FAR_PLANE)
    if len(polygon) < 3:
        return np.zeros((0, 4))
    return polygon


def clip_segment(a: np.ndarray, b: np.ndarray,
                 planes: np.ndarray = FRUSTUM_PLANES) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """Liang-Barsky clip of a clip-space segment, or None if fully outside."""
    t0, t1 = 0.0, 1.0
    for plane in planes:
        da, db = float(a @ plane), float(b @ plane)
        if da < 0.0 and db < 0.0:
            return None
        if da < 0.0:
            t0 = max(t0, da / (da - db))
        elif db < 0.0:
            t1 = min(t1, da / (da - db))
    if t0 > t1:
        return None
    return a + t0 * (b - a), a + t1 * (b - a)
