from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from . import config
from .geometry import InvalidGeometryError, Point, polygon_area, polygon_bounds, signed_area, validate_polygon


def _axes(pts: Sequence[Point]) -> List[Tuple[float, float]]:
    axes = []
    n = len(pts)
    for i in range(n):
        x1, y1 = pts[i]
        x2, y2 = pts[(i + 1) % n]
        dx = x2 - x1
        dy = y2 - y1
        if dx == 0.0 and dy == 0.0:
            continue
        axes.append((-dy, dx))
    return axes


def _project(pts: Sequence[Point], axis: Tuple[float, float]) -> Tuple[float, float]:
    ax, ay = axis
    lo = hi = pts[0][0] * ax + pts[0][1] * ay
    for x, y in pts[1:]:
        d = x * ax + y * ay
        if d < lo:
            lo = d
        elif d > hi:
            hi = d
    return lo, hi


def polygons_intersect(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """Separating-axis test over the edge normals of both (convex) polygons.

    Projections that only touch count as separated, so pieces resting edge to
    edge never reach the exact overlap step.
    """
    for axis in _axes(a) + _axes(b):
        lo_a, hi_a = _project(a, axis)
        lo_b, hi_b = _project(b, axis)
        if hi_a <= lo_b or hi_b <= lo_a:
            return False
    return True


def _inside(p: Point, a: Point, b: Point, orient: float) -> bool:
    cross = (b[0] - a[0]) * (p[1] - a[1]) - (b[1] - a[1]) * (p[0] - a[0])
    return cross * orient >= 0.0


def _line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Point]:
    x1, y1 = p1
    x2, y2 = p2
    x3, y3 = p3
    x4, y4 = p4
    den = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(den) < config.CLIP_EPS:
        return None
    px = ((x1 * y2 - y1 * x2) * (x3 - x4) - (x1 - x2) * (x3 * y4 - y3 * x4)) / den
    py = ((x1 * y2 - y1 * x2) * (y3 - y4) - (y1 - y2) * (x3 * y4 - y3 * x4)) / den
    return px, py


def clip_polygon(subject: Sequence[Point], clip: Sequence[Point]) -> List[Point]:
    """Sutherland-Hodgman: clip ``subject`` by each edge of the convex ``clip`` polygon in order.

    Either winding of ``clip`` is accepted. Returns an empty list as soon as
    nothing of the subject survives a clip edge.
    """
    orient = 1.0 if signed_area(clip) >= 0.0 else -1.0
    output = list(subject)
    n = len(clip)
    for i in range(n):
        if not output:
            return []
        a = clip[i]
        b = clip[(i + 1) % n]
        working = output
        output = []
        for j in range(len(working)):
            cur = working[j]
            prev = working[j - 1]
            cur_in = _inside(cur, a, b, orient)
            prev_in = _inside(prev, a, b, orient)
            if cur_in:
                if not prev_in:
                    hit = _line_intersection(prev, cur, a, b)
                    if hit is not None:
                        output.append(hit)
                output.append(cur)
            elif prev_in:
                hit = _line_intersection(prev, cur, a, b)
                if hit is not None:
                    output.append(hit)
    return output


def overlap_area(a: Sequence[Point], b: Sequence[Point]) -> float:
    return polygon_area(clip_polygon(a, b))


def is_blocked(
    candidate: Sequence[Point],
    others: Sequence[Sequence[Point]],
    candidate_area: float,
    allow_threshold: Optional[float] = None,
) -> bool:
    """Decide whether moving a piece to ``candidate`` must be rejected.

    A pair blocks when the two polygons intersect and their overlap is *below*
    ``allow_threshold`` of ``candidate_area``; larger overlaps are let through.
    Bad input never blocks.
    """
    if allow_threshold is None:
        allow_threshold = config.ALLOW_THRESHOLD
    if not others or candidate_area <= 0.0:
        return False
    try:
        cand = validate_polygon(candidate)
    except InvalidGeometryError as exc:
        config.log_step(f"collision candidate invalid: {exc}")
        return False

    cb = polygon_bounds([cand])
    for idx, other in enumerate(others):
        try:
            pts = validate_polygon(other)
        except InvalidGeometryError as exc:
            config.log_step(f"collision other={idx} skipped: {exc}")
            continue
        ob = polygon_bounds([pts])
        if ob[0] > cb[2] or ob[2] < cb[0] or ob[1] > cb[3] or ob[3] < cb[1]:
            continue
        if not polygons_intersect(cand, pts):
            continue
        ratio = overlap_area(cand, pts) / candidate_area
        if ratio < allow_threshold:
            config.log_step(f"collision blocked by other={idx} ratio={ratio:.3f}")
            return True
    return False
