from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import config
from .geometry import (
    Edge,
    InvalidGeometryError,
    Pose,
    angle_diff,
    distance,
    edges_of,
    normalize_angle,
    transform_points,
    validate_polygon,
)
from .pieces import Piece, TargetPolygon

MATCHED = "matched"
NO_CANDIDATE = "no_candidate"
INVALID_INPUT = "invalid_input"


@dataclass(frozen=True)
class SnapResult:
    pose: Optional[Pose]
    reason: str
    piece_edge: int = -1
    target_edge: int = -1

    @property
    def matched(self) -> bool:
        return self.pose is not None


def _target_edges(targets: Sequence[TargetPolygon]) -> List[Edge]:
    edges: List[Edge] = []
    for t in targets:
        edges.extend(edges_of(validate_polygon(t.points)))
    return edges


def _matching_edge(rotated: List[Edge], te: Edge) -> Optional[Edge]:
    for re in rotated:
        if (
            distance(re.mid, te.mid) < config.SNAP_MAX_MIDPOINT_DIST
            and abs(re.length - te.length) < config.SNAP_MAX_LENGTH_DIFF
        ):
            return re
    return None


def _endpoint_error(edge: Edge, shift: Tuple[float, float], te: Edge) -> float:
    dx, dy = shift
    a = (edge.a[0] + dx, edge.a[1] + dy)
    b = (edge.b[0] + dx, edge.b[1] + dy)
    direct = max(distance(a, te.a), distance(b, te.b))
    reverse = max(distance(a, te.b), distance(b, te.a))
    return min(direct, reverse)


def search_snap(piece: Piece, targets: Sequence[TargetPolygon]) -> SnapResult:
    """Look for an edge of ``piece`` that can be rotated and shifted onto a target edge.

    Piece edges are tried in vertex order against the target edges of every
    polygon in the order given; the first pair that passes every tolerance
    wins, so the search order is part of the contract. The piece is never
    modified. ``reason`` tells a tolerance miss (``no_candidate``) apart from
    unusable input (``invalid_input``).
    """
    try:
        local = validate_polygon(piece.points)
        target_edges = _target_edges(targets)
    except InvalidGeometryError as exc:
        config.log_step(f"snap piece={getattr(piece, 'id', '?')} invalid: {exc}")
        return SnapResult(None, INVALID_INPUT)

    if not target_edges:
        return SnapResult(None, NO_CANDIDATE)

    pose = piece.pose
    piece_edges = edges_of(transform_points(local, pose))

    for pi, pe in enumerate(piece_edges):
        for ti, te in enumerate(target_edges):
            if abs(pe.length - te.length) > config.SNAP_MAX_LENGTH_DIFF:
                continue
            flipped = (pe.angle + 180.0) % 360.0
            d1 = angle_diff(pe.angle, te.angle)
            d2 = angle_diff(flipped, te.angle)
            if d1 > config.SNAP_MAX_ANGLE_DIFF and d2 > config.SNAP_MAX_ANGLE_DIFF:
                continue
            chosen = pe.angle if d1 <= d2 else flipped
            rotation = normalize_angle(pose.rotation + te.angle - chosen)

            trial = Pose(pose.position, rotation, pose.pivot)
            matched = _matching_edge(edges_of(transform_points(local, trial)), te)
            if matched is None:
                continue

            shift = (te.mid[0] - matched.mid[0], te.mid[1] - matched.mid[1])
            if _endpoint_error(matched, shift, te) > config.SNAP_MAX_ENDPOINT_DIST:
                continue

            x, y = pose.position
            snapped = Pose((x + shift[0], y + shift[1]), rotation, pose.pivot)
            config.log_step(
                f"snap piece={piece.id} edge={pi} -> target edge={ti} rot={rotation:.2f} "
                f"shift=({shift[0]:.2f},{shift[1]:.2f})"
            )
            return SnapResult(snapped, MATCHED, pi, ti)

    return SnapResult(None, NO_CANDIDATE)


def find_snap(piece: Piece, targets: Sequence[TargetPolygon]) -> Optional[Pose]:
    return search_snap(piece, targets).pose
