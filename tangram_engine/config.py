from __future__ import annotations

import os
import time

SNAP_MAX_LENGTH_DIFF = 12.0
SNAP_MAX_ANGLE_DIFF = 10.0
SNAP_MAX_MIDPOINT_DIST = 18.0
SNAP_MAX_ENDPOINT_DIST = 20.0

ALLOW_THRESHOLD = 0.15
CLIP_EPS = 1e-10

COVERAGE_MASK_W = 200
COVERAGE_MASK_H = 160
COVERAGE_PAD = 4
# fractional bits handed to cv2.fillPoly
RASTER_SHIFT = 4

THUMB_W = 160
THUMB_H = 120
THUMB_PAD = 8
THUMB_BG = (255, 255, 255)
THUMB_FILL = (26, 26, 26)

GRID_CELL = 100
ROTATE_STEP = 45.0

DEBUG = os.getenv("TANGRAM_DEBUG", "0").strip().lower() in ("1", "true", "yes", "on")


def _apply_engine_env() -> None:
    global SNAP_MAX_LENGTH_DIFF, SNAP_MAX_ANGLE_DIFF, SNAP_MAX_MIDPOINT_DIST, SNAP_MAX_ENDPOINT_DIST
    global ALLOW_THRESHOLD, COVERAGE_MASK_W, COVERAGE_MASK_H, ROTATE_STEP
    if "TANGRAM_SNAP_LENGTH" in os.environ:
        SNAP_MAX_LENGTH_DIFF = float(os.environ["TANGRAM_SNAP_LENGTH"])
    if "TANGRAM_SNAP_ANGLE" in os.environ:
        SNAP_MAX_ANGLE_DIFF = float(os.environ["TANGRAM_SNAP_ANGLE"])
    if "TANGRAM_SNAP_MIDPOINT" in os.environ:
        SNAP_MAX_MIDPOINT_DIST = float(os.environ["TANGRAM_SNAP_MIDPOINT"])
    if "TANGRAM_SNAP_ENDPOINT" in os.environ:
        SNAP_MAX_ENDPOINT_DIST = float(os.environ["TANGRAM_SNAP_ENDPOINT"])
    if "TANGRAM_ALLOW_THRESHOLD" in os.environ:
        ALLOW_THRESHOLD = float(os.environ["TANGRAM_ALLOW_THRESHOLD"])
    if "TANGRAM_MASK_W" in os.environ:
        COVERAGE_MASK_W = int(float(os.environ["TANGRAM_MASK_W"]))
    if "TANGRAM_MASK_H" in os.environ:
        COVERAGE_MASK_H = int(float(os.environ["TANGRAM_MASK_H"]))
    if "TANGRAM_ROTATE_STEP" in os.environ:
        ROTATE_STEP = float(os.environ["TANGRAM_ROTATE_STEP"])


def log_step(msg: str) -> None:
    if not DEBUG:
        return
    ts = time.strftime("%H:%M:%S")
    print(f"[{ts}] {msg}")
