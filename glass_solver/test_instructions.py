# glass_solver/test_instructions.py

from __future__ import annotations

from glass_solver.instructions import plan_instructions, plate_instructions
from glass_solver.metrics import build_plate
from glass_solver.packer import pack
from glass_solver.types import CutRequest, PlacedPiece, expand_requests
from glass_solver.validate import replay_cuts


def _packed(W, H, *requests):
    return pack(expand_requests(requests), W, H)


def test_exact_fit_needs_three_cuts():
    (plate,) = _packed(100, 100, CutRequest("A", 50, 50, quantity=4))
    cuts = plate_instructions(plate)
    assert [(c.type, c.coord, c.start, c.end) for c in cuts] == [
        ("horizontal", 50, 0, 100),
        ("vertical", 50, 0, 50),
        ("vertical", 50, 50, 100),
    ]
    assert replay_cuts(plate, cuts) == []


def test_shorter_piece_gets_trim_cut():
    (plate,) = _packed(100, 100, CutRequest("A", 60, 40), CutRequest("B", 30, 20))
    cuts = plate_instructions(plate)
    assert [(c.type, c.coord) for c in cuts] == [
        ("horizontal", 40),
        ("vertical", 60),
        ("vertical", 90),
        ("horizontal", 20),
    ]
    trim = cuts[-1]
    assert (trim.start, trim.end) == (60, 90)
    assert trim.resulting_piece.piece_id == "B#1"
    assert cuts[1].resulting_piece.piece_id == "A#1"
    assert cuts[2].resulting_piece is None
    assert replay_cuts(plate, cuts) == []


def test_gap_between_pieces_is_cut_off():
    plate = build_plate(
        1,
        [PlacedPiece("A#1", "A", 0, 0, 60, 40), PlacedPiece("B#1", "B", 70, 0, 20, 20)],
        100,
        100,
    )
    cuts = plate_instructions(plate)
    assert [c.coord for c in cuts if c.type == "vertical"] == [60, 70, 90]
    assert "gap" in cuts[2].description
    assert replay_cuts(plate, cuts) == []


def test_empty_band_above_shelf_is_dropped():
    plate = build_plate(1, [PlacedPiece("A#1", "A", 0, 30, 100, 40)], 100, 100)
    cuts = plate_instructions(plate)
    assert [(c.type, c.coord) for c in cuts] == [("horizontal", 30), ("horizontal", 70)]
    assert cuts[1].resulting_piece.piece_id == "A#1"
    assert replay_cuts(plate, cuts) == []


def test_whole_plate_piece_needs_no_cut():
    (plate,) = _packed(100, 100, CutRequest("FULL", 100, 100))
    assert plate_instructions(plate) == []


def test_trailing_piece_noted_on_shared_cut():
    (plate,) = _packed(90, 100, CutRequest("S", 30, 100, quantity=3))
    cuts = plate_instructions(plate)
    assert len(cuts) == 2
    assert cuts[1].resulting_piece.piece_number == 2
    assert "also frees piece #3" in cuts[1].description


def test_steps_and_piece_numbers_run_across_plates():
    plates = _packed(100, 100, CutRequest("Q", 60, 60, quantity=2))
    cuts = plan_instructions(plates)
    assert [c.step for c in cuts] == [1, 2, 3, 4]
    assert [c.plate_number for c in cuts] == [1, 1, 2, 2]
    numbers = [c.resulting_piece.piece_number for c in cuts if c.resulting_piece]
    assert numbers == [1, 2]
    assert all(c.description.startswith(f"Plate {c.plate_number}: ") for c in cuts)


def test_per_plate_steps_restart():
    plates = _packed(100, 100, CutRequest("Q", 60, 60, quantity=2))
    cuts = plan_instructions(plates, per_plate_steps=True)
    assert [c.step for c in cuts] == [1, 2, 1, 2]
    numbers = [c.resulting_piece.piece_number for c in cuts if c.resulting_piece]
    assert numbers == [1, 2]


def test_random_plans_replay_cleanly():
    reqs = [CutRequest(f"R{i}", 17 + 9 * i, 12 + 13 * i, quantity=2) for i in range(8)]
    plates = pack(expand_requests(reqs), 200, 150)
    cuts = plan_instructions(plates)
    for plate in plates:
        assert replay_cuts(plate, cuts) == []
    freed = [c.resulting_piece for c in cuts if c.resulting_piece]
    assert len({rp.piece_number for rp in freed}) == len(freed)
