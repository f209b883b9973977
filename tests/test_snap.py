"""Tests for edge snapping onto the target silhouette."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from tangram_engine import config
from tangram_engine.geometry import Pose, angle_diff
from tangram_engine.pieces import Piece, TargetPolygon
from tangram_engine.snap import INVALID_INPUT, MATCHED, NO_CANDIDATE, find_snap, search_snap

SIDE = [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0)]


def _square_target(x0, y0, tid=1, side=100.0):
    return TargetPolygon(tid, [(x0, y0), (x0 + side, y0), (x0 + side, y0 + side), (x0, y0 + side)])


def _square_piece(position, rotation=0.0):
    return Piece(1, SIDE, Pose(position, rotation, (50.0, 50.0)))


def test_nearby_square_snaps_by_translation():
    piece = _square_piece((205.0, 198.0))
    pose = find_snap(piece, [_square_target(150.0, 150.0)])
    assert pose is not None
    assert pose.position == pytest.approx((200.0, 200.0))
    assert pose.rotation == pytest.approx(0.0)
    assert pose.pivot == (50.0, 50.0)


def test_small_rotation_is_corrected():
    piece = _square_piece((203.0, 201.0), rotation=3.0)
    pose = find_snap(piece, [_square_target(150.0, 150.0)])
    assert pose is not None
    assert angle_diff(pose.rotation, 0.0) < 1e-6
    assert pose.position == pytest.approx((200.0, 200.0), abs=1e-6)


def test_snap_does_not_mutate_piece():
    piece = _square_piece((205.0, 198.0))
    find_snap(piece, [_square_target(150.0, 150.0)])
    assert piece.pose.position == (205.0, 198.0)
    assert piece.placed is False


def test_snap_is_idempotent():
    targets = [_square_target(150.0, 150.0)]
    piece = _square_piece((208.0, 193.0), rotation=356.0)
    first = find_snap(piece, targets)
    assert first is not None

    again = find_snap(piece.with_pose(first), targets)
    assert again is not None
    dx = again.position[0] - first.position[0]
    dy = again.position[1] - first.position[1]
    assert abs(dx) < 1e-6 and abs(dy) < 1e-6
    assert angle_diff(again.rotation, first.rotation) < 1e-6


def _base_target(base):
    # long apex sides so only the base edge can pair with the piece
    return TargetPolygon(1, [(100.0, 300.0), (100.0 + base, 300.0), (100.0 + base / 2.0, 0.0)])


def _bar_piece(base):
    # 100 x 40 bar whose first edge is centered under the target base
    return Piece(1, [(0.0, 0.0), (100.0, 0.0), (100.0, 40.0), (0.0, 40.0)], Pose((100.0 + base / 2.0, 320.0), 0.0, (50.0, 20.0)))


def test_length_within_tolerance_matches():
    res = search_snap(_bar_piece(111.0), [_base_target(111.0)])
    assert res.reason == MATCHED
    assert (res.piece_edge, res.target_edge) == (0, 0)
    assert res.pose.position == pytest.approx((155.5, 320.0))


def test_length_beyond_tolerance_does_not_match():
    res = search_snap(_bar_piece(113.0), [_base_target(113.0)])
    assert res.pose is None
    assert res.reason == NO_CANDIDATE


def test_angle_beyond_tolerance_does_not_match():
    piece = _square_piece((200.0, 200.0), rotation=30.0)
    assert find_snap(piece, [_square_target(150.0, 150.0)]) is None


def test_far_away_piece_does_not_match():
    piece = _square_piece((600.0, 600.0))
    assert find_snap(piece, [_square_target(150.0, 150.0)]) is None


def test_first_supplied_target_wins():
    piece = _square_piece((205.0, 198.0))
    near = _square_target(150.0, 150.0, tid=1)
    other = _square_target(160.0, 146.0, tid=2)

    assert find_snap(piece, [near, other]).position == pytest.approx((200.0, 200.0))
    assert find_snap(piece, [other, near]).position == pytest.approx((210.0, 196.0))


def test_reversed_edge_orientation_matches():
    # clockwise target: its first edge runs right-to-left
    target = TargetPolygon(1, [(250.0, 150.0), (150.0, 150.0), (150.0, 250.0), (250.0, 250.0)])
    pose = find_snap(_square_piece((204.0, 203.0)), [target])
    assert pose is not None
    assert angle_diff(pose.rotation, 0.0) < 1e-6 or angle_diff(pose.rotation, 180.0) < 1e-6
    assert pose.position == pytest.approx((200.0, 200.0), abs=1e-6)


def test_no_targets_is_no_candidate():
    res = search_snap(_square_piece((0.0, 0.0)), [])
    assert res.pose is None
    assert res.reason == NO_CANDIDATE
    assert find_snap(_square_piece((0.0, 0.0)), []) is None


def test_malformed_target_is_reported_as_invalid():
    broken = SimpleNamespace(id=9, points=[(0.0, 0.0), (1.0, 1.0)])
    res = search_snap(_square_piece((0.0, 0.0)), [broken])
    assert res.pose is None
    assert res.reason == INVALID_INPUT


def test_tolerances_read_from_config(monkeypatch):
    monkeypatch.setattr(config, "SNAP_MAX_LENGTH_DIFF", 15.0)
    res = search_snap(_bar_piece(113.0), [_base_target(113.0)])
    assert res.reason == MATCHED


def test_debug_logging_reports_match(monkeypatch, capsys):
    monkeypatch.setattr(config, "DEBUG", True)
    find_snap(_square_piece((205.0, 198.0)), [_square_target(150.0, 150.0)])
    out = capsys.readouterr().out
    assert "snap piece=1" in out
    assert out.startswith("[")
