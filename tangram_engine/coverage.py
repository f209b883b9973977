from __future__ import annotations

import base64
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from . import config
from .geometry import InvalidGeometryError, Point, polygon_bounds, validate_polygon, world_points
from .pieces import Piece, TargetPolygon

Bounds = Tuple[float, float, float, float]


def _fit_scale(bounds: Bounds, width: int, height: int, pad: float) -> float:
    minx, miny, maxx, maxy = bounds
    content_w = max(1.0, maxx - minx)
    content_h = max(1.0, maxy - miny)
    return min((width - pad * 2) / content_w, (height - pad * 2) / content_h)


def rasterize(
    polygons: Sequence[Sequence[Point]],
    origin: Tuple[float, float],
    scale: float,
    pad: float,
    shape: Tuple[int, int],
    img: Optional[np.ndarray] = None,
    color=255,
) -> np.ndarray:
    """Fill ``polygons`` into ``img`` (a fresh ``uint8`` mask of ``shape`` when omitted).

    World point ``p`` lands on pixel ``(p - origin) * scale + pad``. Each
    polygon is filled on its own so overlapping polygons merge.
    """
    if img is None:
        img = np.zeros(shape, dtype=np.uint8)
    for pts in polygons:
        pts_scaled = _to_fixed(pts, origin, scale, pad)
        cv2.fillPoly(img, [pts_scaled], color, cv2.LINE_8, config.RASTER_SHIFT)
    return img


def _to_fixed(pts: Sequence[Point], origin: Tuple[float, float], scale: float, pad: float) -> np.ndarray:
    # pixel coordinates with RASTER_SHIFT fractional bits
    ox, oy = origin
    k = float(1 << config.RASTER_SHIFT)
    return np.array(
        [[round(((x - ox) * scale + pad) * k), round(((y - oy) * scale + pad) * k)] for x, y in pts],
        dtype=np.int32,
    )


def coverage(
    pieces: Sequence[Piece],
    targets: Sequence[TargetPolygon],
    mask_width: Optional[int] = None,
    mask_height: Optional[int] = None,
) -> int:
    """Percent (0-100) of target-silhouette pixels also covered by ``pieces``.

    Targets and pieces are drawn into two masks sharing one scale/offset that
    fits the target bounding box into the mask. Everything is recomputed on
    each call.
    """
    w = int(mask_width if mask_width is not None else config.COVERAGE_MASK_W)
    h = int(mask_height if mask_height is not None else config.COVERAGE_MASK_H)
    if not pieces or not targets or w <= 0 or h <= 0:
        return 0

    try:
        target_pts = [validate_polygon(t.points) for t in targets]
    except InvalidGeometryError as exc:
        config.log_step(f"coverage targets invalid: {exc}")
        return 0
    piece_pts: List[List[Point]] = []
    for pc in pieces:
        if pc is None:
            continue
        piece_pts.append(world_points(pc))

    bounds = polygon_bounds(target_pts)
    minx, miny, maxx, maxy = bounds
    if not all(math.isfinite(v) for v in bounds) or maxx - minx <= 0 or maxy - miny <= 0:
        return 0

    pad = config.COVERAGE_PAD
    scale = _fit_scale(bounds, w, h, pad)
    if scale <= 0:
        return 0

    mask_a = rasterize(target_pts, (minx, miny), scale, pad, (h, w))
    mask_b = rasterize(piece_pts, (minx, miny), scale, pad, (h, w))

    a_on = mask_a > 0
    target_pixels = int(np.count_nonzero(a_on))
    if target_pixels == 0:
        return 0
    covered = int(np.count_nonzero(a_on & (mask_b > 0)))
    pct = int(math.floor(covered * 100.0 / target_pixels + 0.5))
    config.log_step(f"coverage {covered}/{target_pixels} px -> {pct}%")
    return pct


def render_thumbnail(
    targets: Sequence[TargetPolygon],
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> str:
    """PNG data URL of the target silhouette, or ``""`` when there is nothing to draw."""
    w = int(width if width is not None else config.THUMB_W)
    h = int(height if height is not None else config.THUMB_H)
    if not targets or w <= 0 or h <= 0:
        return ""
    try:
        polys = [validate_polygon(t.points) for t in targets]
    except InvalidGeometryError as exc:
        config.log_step(f"thumbnail targets invalid: {exc}")
        return ""
    bounds = polygon_bounds(polys)
    if not all(math.isfinite(v) for v in bounds):
        return ""

    pad = config.THUMB_PAD
    scale = _fit_scale(bounds, w, h, pad)
    img = np.full((h, w, 3), config.THUMB_BG, dtype=np.uint8)
    rasterize(polys, (bounds[0], bounds[1]), scale, pad, (h, w), img=img, color=config.THUMB_FILL)
    for pts in polys:
        outline = _to_fixed(pts, (bounds[0], bounds[1]), scale, pad)
        cv2.polylines(img, [outline], True, (0, 0, 0), 1, cv2.LINE_AA, config.RASTER_SHIFT)

    ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise RuntimeError("imencode PNG failed")
    return "data:image/png;base64," + base64.b64encode(buf).decode("utf-8")
