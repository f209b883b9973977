from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config
from .collision import is_blocked
from .coverage import coverage, render_thumbnail
from .geometry import Point, Pose, world_points
from .pieces import Piece, TargetPolygon, default_tangram, targets_from_grid, targets_to_grid
from .snap import search_snap


class PuzzleSession:
    """Puzzle state for one board: the pieces, the target silhouette and the current coverage.

    Owned by a single UI loop and passed to whatever handles pointer events.
    Each method applies its result before returning, so a rejected drag move
    leaves the piece exactly where it was.
    """

    def __init__(
        self,
        pieces: Optional[Iterable[Piece]] = None,
        targets: Optional[Iterable[TargetPolygon]] = None,
        mask_size: Optional[Tuple[int, int]] = None,
    ) -> None:
        config._apply_engine_env()
        self.pieces: List[Piece] = list(pieces or [])
        self.targets: List[TargetPolygon] = list(targets or [])
        if mask_size is None:
            mask_size = (config.COVERAGE_MASK_W, config.COVERAGE_MASK_H)
        self.mask_width, self.mask_height = mask_size
        self.coverage = 0
        self.recompute_coverage()

    @classmethod
    def with_default_pieces(
        cls, width: float, height: float, targets: Optional[Iterable[TargetPolygon]] = None
    ) -> "PuzzleSession":
        return cls(default_tangram(width, height), targets)

    def piece(self, piece_id: int) -> Piece:
        for pc in self.pieces:
            if pc.id == piece_id:
                return pc
        raise KeyError(piece_id)

    def set_targets(self, targets: Iterable[TargetPolygon]) -> int:
        self.targets = list(targets)
        return self.recompute_coverage()

    def load_grid_targets(self, grid_targets: Sequence[Dict], width: float, height: float) -> int:
        return self.set_targets(targets_from_grid(grid_targets, width, height))

    def reset_pieces(self, width: float, height: float) -> int:
        self.pieces = default_tangram(width, height)
        return self.recompute_coverage()

    def bring_to_top(self, piece_id: int) -> None:
        pc = self.piece(piece_id)
        self.pieces = [p for p in self.pieces if p.id != piece_id] + [pc]

    def drag_start(self, piece_id: int) -> None:
        self.bring_to_top(piece_id)

    def drag_move(self, piece_id: int, position: Point) -> bool:
        pc = self.piece(piece_id)
        candidate = pc.pose.moved_to(position)
        cand_pts = world_points(pc.with_pose(candidate))
        others = [world_points(p) for p in self.pieces if p.id != piece_id]
        if is_blocked(cand_pts, others, pc.area):
            return False
        pc.pose = candidate
        return True

    def drag_end(self, piece_id: int, position: Point) -> Optional[Pose]:
        pc = self.piece(piece_id)
        pc.pose = pc.pose.moved_to(position)
        result = search_snap(pc, self.targets)
        if result.matched:
            pc.pose = result.pose
            pc.placed = True
        else:
            pc.placed = False
        self.recompute_coverage()
        return result.pose

    def rotate(self, piece_id: int, step: Optional[float] = None) -> Pose:
        if step is None:
            step = config.ROTATE_STEP
        pc = self.piece(piece_id)
        pc.pose = pc.pose.rotated_to(pc.pose.rotation + step)
        self.recompute_coverage()
        return pc.pose

    def recompute_coverage(self) -> int:
        self.coverage = coverage(self.pieces, self.targets, self.mask_width, self.mask_height)
        return self.coverage

    def export_targets(self) -> List[Dict]:
        """Current piece layout as grid-unit targets, ready to be stored as a new puzzle."""
        return targets_to_grid(self.pieces)

    def thumbnail(self, width: Optional[int] = None, height: Optional[int] = None) -> str:
        return render_thumbnail(self.targets, width, height)
