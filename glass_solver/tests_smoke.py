# glass_solver/tests_smoke.py
# Very small smoke tests you can run with:
#   python -m glass_solver.tests_smoke
# or through pytest.
#
# These are not full unit tests, but they quickly tell you if
# packing, cut instructions, scoring and validation are wired correctly.

from __future__ import annotations

from glass_solver.errors import PieceExceedsPlateError
from glass_solver.optimizer import optimize
from glass_solver.types import CutRequest


def test_exact_fit() -> None:
    res = optimize([CutRequest("A", 50, 50, quantity=4)], 100, 100, enable_refinement=False)
    p = res.primary

    assert res.validation.is_valid
    assert p.total_plates == 1
    assert p.plates[0].utilization == 100.0
    assert len(p.plates[0].pieces) == 4
    assert p.plates[0].waste_areas == ()
    assert p.total_guillotine_cuts == 3


def test_oversized_piece_rejected() -> None:
    try:
        optimize([CutRequest("BIG", 300, 50)], 260, 180)
    except PieceExceedsPlateError as e:
        assert e.request_ids == ["BIG"]
    else:
        raise AssertionError("oversized piece was accepted")


def test_forced_second_plate() -> None:
    res = optimize([CutRequest("Q", 60, 60, quantity=2)], 100, 100, enable_refinement=False)
    assert res.primary.total_plates == 2
    assert res.validation.is_valid


def test_reusable_waste() -> None:
    res = optimize([CutRequest("P", 100, 100)], 260, 180, enable_refinement=False)
    waste = res.primary.plates[0].waste_areas
    assert any(w.reusable for w in waste)
    assert res.primary.waste_quality.largest_waste_piece is not None


def main() -> None:
    print("Running smoke tests...")
    test_exact_fit()
    test_oversized_piece_rejected()
    test_forced_second_plate()
    test_reusable_waste()
    print("OK")


if __name__ == "__main__":
    main()
