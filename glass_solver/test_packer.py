# glass_solver/test_packer.py

from __future__ import annotations

import pytest

from glass_solver.errors import PieceExceedsPlateError
from glass_solver.packer import pack, placeable
from glass_solver.types import CutRequest, PieceInstance, check_no_overlap, expand_requests


def _pieces(*requests: CutRequest):
    return expand_requests(requests)


def test_pieces_fill_shelves_left_to_right_then_down():
    plates = pack(_pieces(CutRequest("A", 50, 50, quantity=4)), 100, 100)
    assert len(plates) == 1
    coords = [(p.x, p.y) for p in plates[0].pieces]
    assert coords == [(0, 0), (50, 0), (0, 50), (50, 50)]
    assert not any(p.rotated for p in plates[0].pieces)


def test_second_plate_opened_when_no_shelf_fits():
    plates = pack(_pieces(CutRequest("Q", 60, 60, quantity=2)), 100, 100)
    assert [p.plate_number for p in plates] == [1, 2]
    assert all(len(p.pieces) == 1 for p in plates)


def test_rotation_fallback_sets_flag_and_swaps_dims():
    plates = pack(_pieces(CutRequest("R", 80, 30)), 50, 100)
    (piece,) = plates[0].pieces
    assert piece.rotated
    assert (piece.width, piece.height) == (30, 80)


def test_rotation_disabled_raises_before_packing():
    with pytest.raises(PieceExceedsPlateError) as exc:
        pack(_pieces(CutRequest("R", 80, 30)), 50, 100, allow_rotation=False)
    assert exc.value.request_ids == ["R"]


def test_locked_piece_is_not_rotated():
    pieces = _pieces(CutRequest("L", 80, 30, can_rotate=False))
    with pytest.raises(PieceExceedsPlateError):
        pack(pieces, 50, 100)
    assert not placeable(pieces[0], 50, 100)


def test_turned_instance_reports_rotation_relative_to_request():
    (inst,) = _pieces(CutRequest("T", 30, 80))
    plates = pack([inst.turn()], 100, 100)
    (piece,) = plates[0].pieces
    assert piece.rotated
    assert (piece.width, piece.height) == (80, 30)


def test_shelf_grows_to_tallest_piece():
    reqs = (CutRequest("A", 60, 40), CutRequest("B", 30, 20), CutRequest("C", 100, 10, can_rotate=False))
    plates = pack(_pieces(*reqs), 100, 100)
    by_id = {p.request_id: p for p in plates[0].pieces}
    assert by_id["B"].y == 0
    assert (by_id["C"].x, by_id["C"].y) == (0, 40)
    assert not by_id["C"].rotated


def test_rotated_piece_fills_shelf_tail():
    reqs = (CutRequest("A", 60, 40), CutRequest("B", 30, 20), CutRequest("C", 100, 10))
    plates = pack(_pieces(*reqs), 100, 100)
    c = {p.request_id: p for p in plates[0].pieces}["C"]
    assert (c.x, c.y) == (90, 0)
    assert c.rotated
    assert (c.width, c.height) == (10, 100)


def test_no_overlap_and_every_piece_placed():
    reqs = [CutRequest(f"R{i}", 20 + 7 * i, 15 + 11 * i, quantity=3) for i in range(6)]
    pieces = expand_requests(reqs)
    plates = pack(pieces, 120, 90)
    check_no_overlap(plates)
    placed = sorted(p.id for plate in plates for p in plate.pieces)
    assert placed == sorted(p.uid for p in pieces)


def test_empty_input_gives_no_plates():
    assert pack([], 100, 100) == ()


def test_piece_instance_turn_is_involution():
    inst = PieceInstance("X#1", "X", 10, 20)
    assert inst.turn().turn() == inst
