# glass_solver/packer.py
# Greedy shelf (strip) packer with guillotine guarantee.
#
# Pieces are placed left-to-right on horizontal shelves, shelves stacked
# top-to-bottom, plates opened as needed. Every placement boundary lines up
# with a shelf boundary, so each plate can be cut with one horizontal cut per
# shelf and vertical cuts inside the shelf.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .config import DEFAULTS
from .errors import ErrorKind, PieceExceedsPlateError, ValidationIssue
from .metrics import build_plate
from .types import EPS, PieceInstance, PlacedPiece, PlateOptimization, fits_plate


@dataclass
class _OpenPlate:
    pieces: List[PlacedPiece] = field(default_factory=list)
    shelf_y: float = 0.0
    shelf_h: float = 0.0
    cursor_x: float = 0.0

    def close_shelf(self) -> None:
        self.shelf_y += self.shelf_h
        self.shelf_h = 0.0
        self.cursor_x = 0.0

    def shelf_is_empty(self) -> bool:
        return self.cursor_x <= EPS


def can_rotate(piece: PieceInstance, allow_rotation: bool) -> bool:
    return allow_rotation and piece.can_rotate and abs(piece.width - piece.height) > EPS


def placeable(piece: PieceInstance, plate_w: float, plate_h: float, allow_rotation: bool = True) -> bool:
    """True if the piece fits an empty plate under the rotation rule."""
    if fits_plate(piece.width, piece.height, plate_w, plate_h):
        return True
    return can_rotate(piece, allow_rotation) and fits_plate(piece.height, piece.width, plate_w, plate_h)


def oversized_issues(
    pieces: Sequence[PieceInstance],
    plate_w: float,
    plate_h: float,
    allow_rotation: bool = True,
) -> List[ValidationIssue]:
    """One issue per request that has a piece no plate could hold."""
    issues: List[ValidationIssue] = []
    seen = set()
    for p in pieces:
        if p.request_id in seen or placeable(p, plate_w, plate_h, allow_rotation):
            continue
        seen.add(p.request_id)
        rule = "any orientation" if (allow_rotation and p.can_rotate) else "its fixed orientation"
        issues.append(
            ValidationIssue(
                level="ERROR",
                kind=ErrorKind.PIECE_EXCEEDS_PLATE,
                message=(
                    f"Request {p.request_id!r} ({p.width:g}x{p.height:g}) does not fit "
                    f"plate {plate_w:g}x{plate_h:g} in {rule}"
                ),
                piece_id=p.request_id,
            )
        )
    return issues


def _try_place(plate: _OpenPlate, piece: PieceInstance, w: float, h: float,
               plate_w: float, plate_h: float, rotated: bool) -> Optional[PlacedPiece]:
    if plate.cursor_x + w > plate_w + EPS or plate.shelf_y + h > plate_h + EPS:
        return None
    placed = PlacedPiece(
        id=piece.uid,
        request_id=piece.request_id,
        x=plate.cursor_x,
        y=plate.shelf_y,
        width=w,
        height=h,
        rotated=rotated != piece.turned,
    )
    plate.pieces.append(placed)
    plate.cursor_x += w
    plate.shelf_h = max(plate.shelf_h, h)
    return placed


def _place_on_shelf(plate: _OpenPlate, piece: PieceInstance, plate_w: float, plate_h: float,
                    allow_rotation: bool) -> Optional[PlacedPiece]:
    # Given orientation first, then the 90° rotation.
    placed = _try_place(plate, piece, piece.width, piece.height, plate_w, plate_h, rotated=False)
    if placed is None and can_rotate(piece, allow_rotation):
        placed = _try_place(plate, piece, piece.height, piece.width, plate_w, plate_h, rotated=True)
    return placed


def pack(
    pieces: Sequence[PieceInstance],
    plate_w: float,
    plate_h: float,
    *,
    allow_rotation: bool = True,
    reusable_min_area: float = DEFAULTS.reusable_waste_min_area,
) -> Tuple[PlateOptimization, ...]:
    """
    Pack pieces in the given order onto as many plates as needed.

    `pieces` width/height are taken as the preferred orientation. The
    `rotated` flag of a placement is relative to the original request
    (pre-turned instances count as rotated).

    Raises PieceExceedsPlateError (before any packing) when a piece cannot
    fit an empty plate.
    """
    issues = oversized_issues(pieces, plate_w, plate_h, allow_rotation)
    if issues:
        raise PieceExceedsPlateError(issues, "Pieces larger than the plate:")

    closed: List[_OpenPlate] = []
    plate = _OpenPlate()

    for piece in pieces:
        placed = _place_on_shelf(plate, piece, plate_w, plate_h, allow_rotation)
        if placed is None and not plate.shelf_is_empty():
            plate.close_shelf()
            placed = _place_on_shelf(plate, piece, plate_w, plate_h, allow_rotation)
        if placed is None:
            closed.append(plate)
            plate = _OpenPlate()
            placed = _place_on_shelf(plate, piece, plate_w, plate_h, allow_rotation)
        if placed is None:
            # placeable() said yes, so an empty plate must take it
            raise RuntimeError(f"Packer failed to place {piece.uid} on an empty plate")

    if plate.pieces:
        closed.append(plate)

    return tuple(
        build_plate(i, p.pieces, plate_w, plate_h, reusable_min_area=reusable_min_area)
        for i, p in enumerate(closed, start=1)
    )
