from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Sequence, Tuple

import numpy as np

if TYPE_CHECKING:
    from .pieces import Piece

Point = Tuple[float, float]


class InvalidGeometryError(ValueError):
    """Polygon input that the engine cannot reason about (too few or non-finite vertices)."""


@dataclass(frozen=True)
class Pose:
    position: Point
    rotation: float
    pivot: Point = (0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", (float(self.position[0]), float(self.position[1])))
        object.__setattr__(self, "pivot", (float(self.pivot[0]), float(self.pivot[1])))
        object.__setattr__(self, "rotation", normalize_angle(self.rotation))

    def moved_to(self, position: Point) -> "Pose":
        return Pose(position, self.rotation, self.pivot)

    def rotated_to(self, rotation: float) -> "Pose":
        return Pose(self.position, rotation, self.pivot)


@dataclass(frozen=True)
class Edge:
    a: Point
    b: Point
    length: float
    angle: float
    mid: Point


def validate_polygon(points: Sequence[Point]) -> List[Point]:
    if points is None or len(points) < 3:
        n = 0 if points is None else len(points)
        raise InvalidGeometryError(f"polygon needs at least 3 vertices, got {n}")
    out: List[Point] = []
    for p in points:
        if len(p) != 2:
            raise InvalidGeometryError(f"vertex {p!r} is not a 2D point")
        x, y = float(p[0]), float(p[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidGeometryError(f"vertex {p!r} is not finite")
        out.append((x, y))
    return out


def normalize_angle(angle_deg: float) -> float:
    a = float(angle_deg) % 360.0
    # -1e-15 % 360.0 rounds up to 360.0
    if a >= 360.0:
        a = 0.0
    return a


def angle_diff(a: float, b: float) -> float:
    d = abs(float(a) - float(b)) % 360.0
    if d > 180.0:
        d = 360.0 - d
    return d


def distance(p: Point, q: Point) -> float:
    return float(np.hypot(p[0] - q[0], p[1] - q[1]))


def transform_points(points: Sequence[Point], pose: Pose) -> List[Point]:
    """Rotate local points about the pose pivot, then translate by its position.

    Precondition: ``points`` holds at least three vertices. Vertex order and
    count are preserved.
    """
    ang = np.deg2rad(pose.rotation)
    c = float(np.cos(ang))
    s = float(np.sin(ang))
    cx, cy = pose.pivot
    px, py = pose.position
    out = []
    for x, y in points:
        rx = x - cx
        ry = y - cy
        out.append((rx * c - ry * s + px, rx * s + ry * c + py))
    return out


def world_points(piece: "Piece") -> List[Point]:
    return transform_points(piece.points, piece.pose)


def edges_of(points: Sequence[Point]) -> List[Edge]:
    edges: List[Edge] = []
    n = len(points)
    for i in range(n):
        ax, ay = points[i]
        bx, by = points[(i + 1) % n]
        dx = bx - ax
        dy = by - ay
        edges.append(
            Edge(
                a=(ax, ay),
                b=(bx, by),
                length=float(np.hypot(dx, dy)),
                angle=float(np.degrees(np.arctan2(dy, dx))),
                mid=((ax + bx) / 2.0, (ay + by) / 2.0),
            )
        )
    return edges


def signed_area(points: Sequence[Point]) -> float:
    area = 0.0
    n = len(points)
    for i in range(n):
        x1, y1 = points[i]
        x2, y2 = points[(i + 1) % n]
        area += (x1 * y2) - (x2 * y1)
    return area * 0.5


def polygon_area(points: Sequence[Point]) -> float:
    if len(points) < 3:
        return 0.0
    return abs(signed_area(points))


def polygon_bounds(polygons: Iterable[Sequence[Point]]) -> Tuple[float, float, float, float]:
    minx = miny = float("inf")
    maxx = maxy = float("-inf")
    for pts in polygons:
        for x, y in pts:
            minx = min(minx, x)
            miny = min(miny, y)
            maxx = max(maxx, x)
            maxy = max(maxy, y)
    return minx, miny, maxx, maxy
