"""
Sphere-vs-box narrow phase and contact resolution.

Contacts are small value objects. Resolution is positional (push the sphere
out along the normal by the full penetration) followed by a velocity
projection that removes the approaching normal component, scaled by
restitution, and a Coulomb friction clamp on the tangential component.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from bhumi.core.geometry import Box
from bhumi.core.rigidbody import RigidBody

EPS = 1e-12

_AXES = np.identity(3)


@dataclass(frozen=True)
class Contact:
    """
    One sphere-box contact.

    Attributes:
        normal: Unit vector from the geometry toward the sphere centre
        penetration: Overlap depth (> 0)
        geometry_index: Position of the box in the world's geometry list
        geometry_name: Box name, for logs
        point: Contact point on the box surface
    """
    normal: tuple
    penetration: float
    geometry_index: int
    geometry_name: str
    point: tuple

    @property
    def normal_array(self) -> np.ndarray:
        return np.array(self.normal)


def sphere_vs_box(center: np.ndarray, radius: float, box: Box,
                  index: int = 0) -> Optional[Contact]:
    """
    Contact between a sphere and an axis-aligned box, or None if separated.

    Touching (distance == radius) is not a contact. When the centre is inside
    the box the sphere is pushed out through the nearest face.
    """
    c = np.asarray(center, dtype=float)
    lo, hi = box.lo, box.hi
    closest = box.closest_point(c)
    delta = c - closest
    dist = float(np.linalg.norm(delta))

    if dist > EPS:
        if dist >= radius:
            return None
        normal = delta / dist
        return Contact(tuple(normal), radius - dist, index, box.name, tuple(closest))

    # Centre inside the box: minimum push-out axis
    to_lo = c - lo
    to_hi = hi - c
    best_axis, best_sign, best_depth = 0, -1.0, math.inf
    for axis in range(3):
        if to_lo[axis] < best_depth:
            best_axis, best_sign, best_depth = axis, -1.0, float(to_lo[axis])
        if to_hi[axis] < best_depth:
            best_axis, best_sign, best_depth = axis, 1.0, float(to_hi[axis])

    normal = best_sign * _AXES[best_axis]
    point = c.copy()
    point[best_axis] = hi[best_axis] if best_sign > 0 else lo[best_axis]
    return Contact(tuple(normal), radius + best_depth, index, box.name, tuple(point))


def find_contacts(body: RigidBody, boxes: Sequence[Box]) -> List[Contact]:
    """All current contacts of the body, in geometry order."""
    contacts = []
    for index, box in enumerate(boxes):
        contact = sphere_vs_box(body.position, body.radius, box, index)
        if contact is not None:
            contacts.append(contact)
    return contacts


def resolve_contact(body: RigidBody, contact: Contact,
                    restitution: float = 0.0, friction: float = 0.3):
    """
    Apply one contact to the body in place.

    Args:
        body: Body to correct
        contact: Contact computed for the body's current position
        restitution: 0 removes the approaching normal velocity, 1 reflects it
        friction: Coulomb coefficient. Tangential speed drops by at most
            friction times the normal velocity change.
    """
    n = contact.normal_array
    body.position = body.position + n * contact.penetration

    vn = float(np.dot(body.velocity, n))
    if vn >= 0.0:
        return

    tangential = body.velocity - vn * n
    normal_change = -(1.0 + restitution) * vn

    speed_t = float(np.linalg.norm(tangential))
    if speed_t > EPS and friction > 0.0:
        reduction = min(speed_t, friction * normal_change)
        tangential = tangential * (1.0 - reduction / speed_t)

    body.velocity = tangential - restitution * vn * n


def resolve_collisions(body: RigidBody, boxes: Sequence[Box], iterations: int = 4,
                       restitution: float = 0.0, friction: float = 0.3) -> List[Contact]:
    """
    Iteratively separate the body from every box.

    Each pass walks the boxes in insertion order, recomputing the contact
    against the already-corrected position.

    Returns:
        Contacts resolved during the first pass
    """
    first_pass: List[Contact] = []
    for iteration in range(iterations):
        resolved_any = False
        for index, box in enumerate(boxes):
            contact = sphere_vs_box(body.position, body.radius, box, index)
            if contact is None:
                continue
            resolve_contact(body, contact, restitution, friction)
            resolved_any = True
            if iteration == 0:
                first_pass.append(contact)
        if not resolved_any:
            break
    return first_pass


def min_separation(center: np.ndarray, radius: float, boxes: Sequence[Box]) -> float:
    """Smallest surface gap between the sphere and any box (negative when overlapping)."""
    if not boxes:
        return math.inf
    return min(box.distance(center) for box in boxes) - radius
