# glass_solver/test_metrics.py

from __future__ import annotations

import pytest

from glass_solver.metrics import (
    analyze_plate,
    compute_waste_quality,
    group_shelves,
    is_reusable,
    lower_bound_plates,
)
from glass_solver.packer import pack
from glass_solver.types import CutRequest, PlacedPiece, expand_requests


def test_reusable_threshold_is_inclusive():
    assert is_reusable(2000.0)
    assert not is_reusable(1999.99)
    assert is_reusable(500.0, min_area=500.0)


def test_single_piece_leaves_tail_and_bottom():
    a = analyze_plate([PlacedPiece("P#1", "P", 0, 0, 100, 100)], 260, 180)
    rects = sorted((w.x, w.y, w.width, w.height) for w in a.waste_areas)
    assert rects == [(0, 100, 260, 80), (100, 0, 160, 100)]
    assert all(w.reusable for w in a.waste_areas)
    assert a.utilization == pytest.approx(10000 / 46800 * 100)
    assert a.waste_percentage == pytest.approx(100 - a.utilization)


def test_short_piece_strip_and_gap_are_waste():
    pieces = [
        PlacedPiece("A#1", "A", 0, 0, 60, 40),
        PlacedPiece("B#1", "B", 70, 0, 20, 20),
    ]
    a = analyze_plate(pieces, 100, 100)
    rects = sorted((w.x, w.y, w.width, w.height) for w in a.waste_areas)
    assert rects == [
        (0, 40, 100, 60),    # bottom remainder
        (60, 0, 10, 40),     # gap between A and B
        (70, 20, 20, 20),    # under B
        (90, 0, 10, 40),     # shelf tail
    ]
    covered = sum(p.area for p in pieces) + sum(w.area for w in a.waste_areas)
    assert covered == pytest.approx(100 * 100)


def test_pieces_and_waste_tile_the_plate():
    reqs = [CutRequest(f"R{i}", 13 + 9 * i, 11 + 5 * i, quantity=2) for i in range(7)]
    for plate in pack(expand_requests(reqs), 150, 120):
        total = plate.used_area + plate.waste_area
        assert total == pytest.approx(plate.area)


def test_out_of_bounds_placement_is_rejected():
    with pytest.raises(ValueError):
        analyze_plate([PlacedPiece("X#1", "X", 50, 0, 60, 10)], 100, 100)


def test_group_shelves_orders_top_to_bottom():
    pieces = [
        PlacedPiece("c", "c", 0, 50, 10, 10),
        PlacedPiece("b", "b", 20, 0, 10, 30),
        PlacedPiece("a", "a", 0, 0, 20, 50),
    ]
    shelves = group_shelves(pieces)
    assert [s.y for s in shelves] == [0, 50]
    assert [p.id for p in shelves[0].pieces] == ["a", "b"]
    assert shelves[0].height == 50


def test_waste_quality_picks_largest_reusable():
    plates = pack(expand_requests([CutRequest("P", 100, 100)]), 260, 180)
    wq = compute_waste_quality(plates)
    assert wq.reusable_waste_pieces == 2
    assert wq.largest_waste_piece.area == 260 * 80
    assert wq.reusable_waste_area == pytest.approx(260 * 80 + 160 * 100)


def test_waste_quality_without_reusable_waste():
    plates = pack(expand_requests([CutRequest("A", 50, 50, quantity=4)]), 100, 100)
    wq = compute_waste_quality(plates)
    assert wq.reusable_waste_pieces == 0
    assert wq.largest_waste_piece is None


def test_lower_bound_plates():
    assert lower_bound_plates(0, 100, 100) == 0
    assert lower_bound_plates(10000, 100, 100) == 1
    assert lower_bound_plates(10001, 100, 100) == 2
    assert lower_bound_plates(1, 100, 100) == 1
