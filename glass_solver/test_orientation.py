# glass_solver/test_orientation.py

from __future__ import annotations

import pytest

from glass_solver.orientation import (
    DisplayOrientation,
    parse_orientation,
    transform_instructions,
    transform_pieces,
    transform_result,
)
from glass_solver.strategies import Strategy, run_strategy
from glass_solver.types import CutInstruction, CutRequest, PlacedPiece, expand_requests

PIECE = PlacedPiece("A#1", "A", 0, 0, 30, 20)


@pytest.mark.parametrize(
    "orientation,xy",
    [
        ("TOP_LEFT", (0, 0)),
        ("TOP_RIGHT", (70, 0)),
        ("BOTTOM_LEFT", (0, 30)),
        ("BOTTOM_RIGHT", (70, 30)),
    ],
)
def test_piece_mirrored_to_corner(orientation, xy):
    (moved,) = transform_pieces([PIECE], 100, 50, orientation)
    assert (moved.x, moved.y) == xy
    assert (moved.width, moved.height) == (30, 20)


def test_mirroring_twice_restores_layout():
    pieces = [PIECE, PlacedPiece("B#1", "B", 30, 0, 40, 50)]
    for o in DisplayOrientation:
        assert transform_pieces(transform_pieces(pieces, 100, 50, o), 100, 50, o) == pieces


def test_cut_coordinates_and_spans_mirrored():
    cut = CutInstruction(step=1, plate_number=1, type="vertical", coord=30, start=0, end=20)
    (tr,) = transform_instructions([cut], 100, 50, "TOP_RIGHT")
    assert (tr.coord, tr.start, tr.end) == (70, 0, 20)
    (bl,) = transform_instructions([cut], 100, 50, "BOTTOM_LEFT")
    assert (bl.coord, bl.start, bl.end) == (30, 30, 50)
    assert "x=30" in bl.description and "from 30 to 50" in bl.description


def test_horizontal_cut_mirrored():
    cut = CutInstruction(step=1, plate_number=1, type="horizontal", coord=20, start=0, end=30)
    (br,) = transform_instructions([cut], 100, 50, DisplayOrientation.BOTTOM_RIGHT)
    assert (br.coord, br.start, br.end) == (30, 70, 100)


def test_result_transform_keeps_totals():
    res = run_strategy(expand_requests([CutRequest("A", 60, 40), CutRequest("B", 30, 20)]), 100, 100,
                       Strategy("BY_HEIGHT_DESC"))
    shown = transform_result(res, "BOTTOM_RIGHT")
    assert shown.total_plates == res.total_plates
    assert shown.total_guillotine_cuts == res.total_guillotine_cuts
    assert shown.average_utilization == res.average_utilization
    assert [c.step for c in shown.instructions] == [c.step for c in res.instructions]
    a = next(p for p in shown.plates[0].pieces if p.request_id == "A")
    assert (a.x, a.y) == (40, 60)
    assert transform_result(res, "TOP_LEFT") == res


def test_parse_orientation():
    assert parse_orientation("bottom-left") is DisplayOrientation.BOTTOM_LEFT
    with pytest.raises(ValueError):
        parse_orientation("CENTER")
