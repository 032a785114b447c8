"""
3D math for the engine: vectors, unit quaternions and 4x4 matrices.

Conventions:
    - Right-handed world, +Y up.
    - Body frame: +Z forward, +Y up, so body right is forward x up = -X.
    - Quaternions are numpy arrays [w, x, y, z].
    - View space looks down -Z (OpenGL); clip space keeps -w <= z <= w,
      ndc z in [-1, 1].
"""

import math
from typing import Optional

import numpy as np

Vec3 = np.ndarray  # shape (3,), dtype float
Quat = np.ndarray  # shape (4,), dtype float, [w, x, y, z]
Mat4 = np.ndarray  # shape (4, 4), dtype float

EPS = 1e-12

FORWARD = np.array([0.0, 0.0, 1.0])
UP = np.array([0.0, 1.0, 0.0])
RIGHT = np.cross(FORWARD, UP)  # (-1, 0, 0)


def vec3(x) -> Vec3:
    """Coerce any 3-sequence to a float array of shape (3,)."""
    return np.asarray(x, dtype=float).reshape(3).copy()


def normalize(v: Vec3, fallback: Optional[Vec3] = None) -> Vec3:
    """Unit vector along v. Degenerate or non-finite input returns fallback (or +Z)."""
    v = np.asarray(v, dtype=float)
    n = float(np.linalg.norm(v))
    if not math.isfinite(n) or n < EPS:
        return (FORWARD if fallback is None else np.asarray(fallback, dtype=float)).copy()
    return v / n


# ── Quaternions ────────────────────────────────────────────

def quat_identity() -> Quat:
    return np.array([1.0, 0.0, 0.0, 0.0])


def quat_normalize(q: Quat) -> Quat:
    q = np.asarray(q, dtype=float)
    n = float(np.linalg.norm(q))
    if not math.isfinite(n) or n < EPS:
        return quat_identity()
    return q / n


def quat_multiply(a: Quat, b: Quat) -> Quat:
    """Hamilton product a * b (apply b first, then a)."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ])


def quat_from_axis_angle(axis: Vec3, angle: float) -> Quat:
    axis = normalize(axis)
    half = 0.5 * float(angle)
    s = math.sin(half)
    return np.array([math.cos(half), axis[0] * s, axis[1] * s, axis[2] * s])


def quat_from_euler(yaw: float = 0.0, pitch: float = 0.0, roll: float = 0.0) -> Quat:
    """Yaw about +Y, then pitch about body +X, then roll about body +Z."""
    q_yaw = quat_from_axis_angle(UP, yaw)
    q_pitch = quat_from_axis_angle(np.array([1.0, 0.0, 0.0]), pitch)
    q_roll = quat_from_axis_angle(FORWARD, roll)
    return quat_normalize(quat_multiply(quat_multiply(q_yaw, q_pitch), q_roll))


def quat_to_matrix(q: Quat) -> np.ndarray:
    """3x3 rotation matrix. Columns are the body axes expressed in world space."""
    w, x, y, z = quat_normalize(q)
    return np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
    ])


def quat_from_matrix(m: np.ndarray) -> Quat:
    """Unit quaternion from a 3x3 rotation matrix (Shepperd's method)."""
    m = np.asarray(m, dtype=float)
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = 2.0 * math.sqrt(trace + 1.0)
        q = [0.25 * s,
             (m[2, 1] - m[1, 2]) / s,
             (m[0, 2] - m[2, 0]) / s,
             (m[1, 0] - m[0, 1]) / s]
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = [(m[2, 1] - m[1, 2]) / s,
             0.25 * s,
             (m[0, 1] + m[1, 0]) / s,
             (m[0, 2] + m[2, 0]) / s]
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = [(m[0, 2] - m[2, 0]) / s,
             (m[0, 1] + m[1, 0]) / s,
             0.25 * s,
             (m[1, 2] + m[2, 1]) / s]
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = [(m[1, 0] - m[0, 1]) / s,
             (m[0, 2] + m[2, 0]) / s,
             (m[1, 2] + m[2, 1]) / s,
             0.25 * s]
    return quat_normalize(np.array(q))


def quat_rotate(q: Quat, v: Vec3) -> Vec3:
    """Rotate a vector (or an (N, 3) array of vectors) by q."""
    m = quat_to_matrix(q)
    v = np.asarray(v, dtype=float)
    return v @ m.T


def quat_integrate(q: Quat, omega: Vec3, dt: float) -> Quat:
    """Advance orientation by a world-frame angular velocity over dt."""
    omega = np.asarray(omega, dtype=float)
    rate = float(np.linalg.norm(omega))
    if rate < EPS:
        return quat_normalize(q)
    dq = quat_from_axis_angle(omega / rate, rate * dt)
    return quat_normalize(quat_multiply(dq, q))


def quat_look_rotation(forward: Vec3, up: Vec3 = UP) -> Quat:
    """Orientation whose body +Z points along forward, with body +Y as close to up as possible."""
    f = normalize(forward)
    x_axis = np.cross(up, f)
    if float(np.linalg.norm(x_axis)) < 1e-9:
        # Looking straight along up: pick any perpendicular reference.
        x_axis = np.cross(np.array([0.0, 0.0, 1.0]) if abs(f[1]) > 0.5 else UP, f)
    x_axis = normalize(x_axis)
    y_axis = np.cross(f, x_axis)
    return quat_from_matrix(np.column_stack((x_axis, y_axis, f)))


# ── Matrices ───────────────────────────────────────────────

def look_at(eye: Vec3, target: Vec3, up: Vec3 = UP) -> Mat4:
    """Right-handed view matrix (camera looks down -Z in view space)."""
    eye = np.asarray(eye, dtype=float)
    z_axis = normalize(eye - np.asarray(target, dtype=float))
    x_axis = np.cross(up, z_axis)
    if float(np.linalg.norm(x_axis)) < 1e-9:
        x_axis = np.cross(np.array([0.0, 0.0, 1.0]) if abs(z_axis[1]) > 0.5 else UP, z_axis)
    x_axis = normalize(x_axis)
    y_axis = np.cross(z_axis, x_axis)

    view = np.identity(4)
    view[0, :3] = x_axis
    view[1, :3] = y_axis
    view[2, :3] = z_axis
    view[0, 3] = -float(np.dot(x_axis, eye))
    view[1, 3] = -float(np.dot(y_axis, eye))
    view[2, 3] = -float(np.dot(z_axis, eye))
    return view


def perspective(fov_y: float, aspect: float, near: float, far: float) -> Mat4:
    """OpenGL-style perspective projection. fov_y in radians."""
    f = 1.0 / math.tan(0.5 * fov_y)
    proj = np.zeros((4, 4))
    proj[0, 0] = f / aspect
    proj[1, 1] = f
    proj[2, 2] = (far + near) / (near - far)
    proj[2, 3] = 2.0 * far * near / (near - far)
    proj[3, 2] = -1.0
    return proj


def transform_points(matrix: Mat4, points: np.ndarray) -> np.ndarray:
    """Apply a 4x4 matrix to (N, 3) points, returning (N, 4) homogeneous coordinates."""
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    homogeneous = np.hstack((points, np.ones((points.shape[0], 1))))
    return homogeneous @ matrix.T


def ndc_to_viewport(ndc: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Map normalized device coordinates to buffer pixel coordinates.

    x' = (ndc_x + 1) / 2 * width
    y' = (1 - ndc_y) / 2 * height

    Args:
        ndc: (N, 2+) array of ndc coordinates; extra columns are passed through

    Returns:
        (N, 2+) array in pixel space
    """
    ndc = np.asarray(ndc, dtype=float)
    out = ndc.copy()
    out[..., 0] = (ndc[..., 0] + 1.0) * 0.5 * width
    out[..., 1] = (1.0 - ndc[..., 1]) * 0.5 * height
    return out


def ray_box_intersection(origin: Vec3, direction: Vec3,
                         box_min: Vec3, box_max: Vec3) -> Optional[float]:
    """
    Slab test of a ray against an axis-aligned box.

    Args:
        origin: Ray origin
        direction: Ray direction (need not be unit length; t is in its units)
        box_min, box_max: Box corners

    Returns:
        Smallest t >= 0 where the ray enters the box, 0.0 if the origin is
        inside, or None if the ray misses.
    """
    t_near, t_far = -math.inf, math.inf
    for axis in range(3):
        o, d = float(origin[axis]), float(direction[axis])
        lo, hi = float(box_min[axis]), float(box_max[axis])
        if abs(d) < EPS:
            if o < lo or o > hi:
                return None
            continue
        t1, t2 = (lo - o) / d, (hi - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None
    if t_far < 0.0:
        return None
    return max(t_near, 0.0)

