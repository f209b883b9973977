from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Sequence, Tuple

from shapely.geometry import Polygon

from . import config
from .geometry import InvalidGeometryError, Point, Pose, polygon_bounds, transform_points, validate_polygon


@dataclass
class Piece:
    id: int
    points: Tuple[Point, ...]
    pose: Pose
    color: str = "#000000"
    placed: bool = False
    area: float = field(init=False)

    def __post_init__(self) -> None:
        self.points = tuple(validate_polygon(self.points))
        poly = Polygon(self.points)
        # computed once; local polygons never change after creation
        self.area = float(poly.area)
        if poly.is_empty or self.area <= 0.0:
            raise InvalidGeometryError(f"piece {self.id} has zero area")

    def with_pose(self, pose: Pose) -> "Piece":
        return replace(self, pose=pose)


@dataclass(frozen=True)
class TargetPolygon:
    id: int
    points: Tuple[Point, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(validate_polygon(self.points)))


# (id, grid points, color, grid position, grid pivot)
_TANGRAM_LAYOUT: List[Tuple[int, List[Point], str, Point, Point]] = [
    (1, [(0, 0), (4, 0), (2, 2)], "#c62828", (0, -1), (2, 1)),
    (2, [(0, 0), (2, 2), (0, 4)], "#ff8f00", (-1, 0), (1, 2)),
    (3, [(4, 0), (4, 2), (3, 1)], "#00acc1", (1.5, -1), (3.5, 1)),
    (4, [(2, 2), (3, 1), (4, 2), (3, 3)], "#7cb342", (1, 0), (3, 2)),
    (5, [(2, 2), (3, 3), (1, 3)], "#d81b60", (0, 0.5), (2, 2.5)),
    (6, [(1, 3), (3, 3), (2, 4), (0, 4)], "#7e57c2", (-0.5, 1.5), (1.5, 3.5)),
    (7, [(4, 2), (4, 4), (2, 4)], "#fdd835", (1.5, 1.5), (3.5, 3.5)),
]


def align_center(points: Iterable[Point], width: float, height: float) -> Tuple[float, float]:
    """Offset that moves the bounding-box center of ``points`` onto the canvas center."""
    minx, miny, maxx, maxy = polygon_bounds([list(points)])
    if not math.isfinite(minx):
        return 0.0, 0.0
    cx = (minx + maxx) / 2.0
    cy = (miny + maxy) / 2.0
    return width / 2.0 - cx, height / 2.0 - cy


def default_tangram(width: float, height: float) -> List[Piece]:
    """The seven standard pieces, laid out in the left half of a ``width`` x ``height`` canvas
    and then shifted right by half the canvas width."""
    g = config.GRID_CELL
    pieces: List[Piece] = []
    for pid, pts, color, (x, y), (cx, cy) in _TANGRAM_LAYOUT:
        pose = Pose((x * g, y * g), 0.0, (cx * g, cy * g))
        pieces.append(Piece(pid, tuple((px * g, py * g) for px, py in pts), pose, color))

    all_pts = [p for pc in pieces for p in transform_points(pc.points, pc.pose)]
    dx, dy = align_center(all_pts, width * 0.5, height)
    for pc in pieces:
        px, py = pc.pose.position
        pc.pose = pc.pose.moved_to((px + dx + width * 0.5, py + dy))
    return pieces


def targets_from_grid(
    grid_targets: Sequence[Dict], width: float, height: float
) -> List[TargetPolygon]:
    """Grid-unit target records ``{"id", "points"}`` -> pixel targets centered on the canvas.

    ``points`` may be a list of pairs or a flat ``[x0, y0, x1, y1, ...]`` list.
    """
    g = config.GRID_CELL
    scaled: List[Tuple[int, List[Point]]] = []
    for t in grid_targets:
        pts = _as_pairs(t["points"])
        scaled.append((int(t["id"]), [(x * g, y * g) for x, y in pts]))
    if not scaled:
        return []
    dx, dy = align_center([p for _, pts in scaled for p in pts], width, height)
    return [TargetPolygon(tid, tuple((x + dx, y + dy) for x, y in pts)) for tid, pts in scaled]


def targets_to_grid(pieces: Sequence[Piece]) -> List[Dict]:
    g = config.GRID_CELL
    out: List[Dict] = []
    for idx, pc in enumerate(pieces):
        pts = transform_points(pc.points, pc.pose)
        out.append(
            {
                "id": idx + 1,
                "points": [(_round2(x / g), _round2(y / g)) for x, y in pts],
            }
        )
    return out


def _round2(v: float) -> float:
    # half-up, matching how stored grid coordinates were produced
    return math.floor(v * 100.0 + 0.5) / 100.0


def _as_pairs(values: Sequence) -> List[Point]:
    if values and not isinstance(values[0], (list, tuple)):
        if len(values) % 2 != 0:
            raise InvalidGeometryError("flat point list has odd length")
        return [(float(values[i]), float(values[i + 1])) for i in range(0, len(values), 2)]
    return [(float(x), float(y)) for x, y in values]
