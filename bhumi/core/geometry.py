"""
Static geometry: immutable axis-aligned boxes and the room builder.

Boxes are both collision volumes and render surfaces. Their order in the
world is their resolution order for contacts.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from bhumi.core.transforms import ray_box_intersection
from bhumi.utils.color import Color, parse_color

Point3 = Tuple[float, float, float]

DEFAULT_FLOOR_COLOR: Color = (90, 90, 110, 255)
DEFAULT_WALL_COLOR: Color = (150, 140, 120, 255)
DEFAULT_CEILING_COLOR: Color = (200, 200, 210, 255)


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned box between two corners.

    Attributes:
        min_corner: (x, y, z) of the lowest corner
        max_corner: (x, y, z) of the highest corner
        name: Label used in logs and contacts
        color: RGBA fill color for rendering
    """
    min_corner: Point3
    max_corner: Point3
    name: str = "box"
    color: Color = DEFAULT_WALL_COLOR

    def __post_init__(self):
        lo = tuple(float(v) for v in self.min_corner)
        hi = tuple(float(v) for v in self.max_corner)
        if len(lo) != 3 or len(hi) != 3:
            raise ValueError("Box corners must be 3D points")
        if any(a >= b for a, b in zip(lo, hi)):
            raise ValueError(f"Box '{self.name}' has empty extent: {lo} -> {hi}")
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, 'min_corner', lo)
        object.__setattr__(self, 'max_corner', hi)
        object.__setattr__(self, 'color', parse_color(self.color))

    @property
    def lo(self) -> np.ndarray:
        return np.array(self.min_corner)

    @property
    def hi(self) -> np.ndarray:
        return np.array(self.max_corner)

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.lo + self.hi)

    @property
    def half_extents(self) -> np.ndarray:
        return 0.5 * (self.hi - self.lo)

    def contains(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=float)
        return bool(np.all(p >= self.lo) and np.all(p <= self.hi))

    def closest_point(self, point: Sequence[float]) -> np.ndarray:
        return np.clip(np.asarray(point, dtype=float), self.lo, self.hi)

    def distance(self, point: Sequence[float]) -> float:
        """Signed distance from point to the box surface (negative inside)."""
        p = np.asarray(point, dtype=float)
        q = np.abs(p - self.center) - self.half_extents
        outside = float(np.linalg.norm(np.maximum(q, 0.0)))
        inside = min(float(np.max(q)), 0.0)
        return outside + inside

    def raycast(self, origin: Sequence[float], direction: Sequence[float]) -> Optional[float]:
        """Entry distance along direction, or None. See ray_box_intersection."""
        return ray_box_intersection(np.asarray(origin, dtype=float),
                                    np.asarray(direction, dtype=float),
                                    self.lo, self.hi)

    def corners(self) -> np.ndarray:
        """(8, 3) corner array; bit i of the index selects max on axis i."""
        lo, hi = self.lo, self.hi
        return np.array([
            [hi[0] if i & 1 else lo[0],
             hi[1] if i & 2 else lo[1],
             hi[2] if i & 4 else lo[2]]
            for i in range(8)
        ])

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'min': list(self.min_corner),
            'max': list(self.max_corner),
            'color': list(self.color),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Box":
        return cls(
            min_corner=tuple(data['min']),
            max_corner=tuple(data['max']),
            name=data.get('name', 'box'),
            color=data.get('color', DEFAULT_WALL_COLOR),
        )


@dataclass
class RoomSpec:
    """Interior dimensions of a room centred on the origin, floor top at y=0."""
    width: float = 10.0     # along X
    depth: float = 10.0     # along Z
    height: float = 6.0     # along Y
    thickness: float = 1.0  # slab thickness
    floor_color: Color = DEFAULT_FLOOR_COLOR
    wall_color: Color = DEFAULT_WALL_COLOR
    ceiling_color: Color = DEFAULT_CEILING_COLOR
    extra_boxes: List[Box] = field(default_factory=list)


def build_room(room: Optional[RoomSpec] = None) -> List[Box]:
    """
    Build the six slabs of a closed room, followed by any extra boxes.

    Order: floor, ceiling, west (-X), east (+X), south (-Z), north (+Z), extras.
    Wall slabs extend through the floor and ceiling slabs so corners are closed.
    """
    room = room or RoomSpec()
    hx, hz, h, t = 0.5 * room.width, 0.5 * room.depth, room.height, room.thickness
    if min(hx, hz, h, t) <= 0:
        raise ValueError("Room dimensions must be positive")

    boxes = [
        Box((-hx - t, -t, -hz - t), (hx + t, 0.0, hz + t), "floor", room.floor_color),
        Box((-hx - t, h, -hz - t), (hx + t, h + t, hz + t), "ceiling", room.ceiling_color),
        Box((-hx - t, -t, -hz - t), (-hx, h + t, hz + t), "wall_west", room.wall_color),
        Box((hx, -t, -hz - t), (hx + t, h + t, hz + t), "wall_east", room.wall_color),
        Box((-hx, -t, -hz - t), (hx, h + t, -hz), "wall_south", room.wall_color),
        Box((-hx, -t, hz), (hx, h + t, hz + t), "wall_north", room.wall_color),
    ]
    boxes.extend(room.extra_boxes)
    return boxes


def floor(half_size: float = 50.0, thickness: float = 1.0,
          color: Color = DEFAULT_FLOOR_COLOR) -> Box:
    """A single large floor slab with its top face at y=0."""
    return Box((-half_size, -thickness, -half_size), (half_size, 0.0, half_size),
               "floor", color)
