# glass_solver/instructions.py
# Turn shelf placements into an ordered list of guillotine cuts.
#
# Per plate, shelves are processed top-to-bottom:
#   1) horizontal cut dropping an empty band above the shelf (if any)
#   2) full-width horizontal cut at the shelf bottom (unless it is the plate edge)
#   3) left-to-right vertical cuts at piece edges (gaps are cut off too)
#   4) horizontal trim cut under pieces shorter than the shelf
# Every cut spans the full sub-rectangle it is applied to.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .metrics import group_shelves
from .types import EPS, CutInstruction, PlacedPiece, PlateOptimization, ResultingPiece


@dataclass
class _Draft:
    plate_number: int
    type: str
    coord: float
    start: float
    end: float
    description: str
    resulting_piece: Optional[ResultingPiece] = None
    extra: str = ""

    def freeze(self, step: int) -> CutInstruction:
        return CutInstruction(
            step=step,
            plate_number=self.plate_number,
            type=self.type,
            coord=self.coord,
            start=self.start,
            end=self.end,
            description=self.description + self.extra,
            resulting_piece=self.resulting_piece,
        )


def _piece_label(rp: ResultingPiece) -> str:
    return f"piece #{rp.piece_number} ({rp.piece_id}, {rp.width:g}x{rp.height:g} cm)"


class _PlateCutter:
    """Collects drafts for one plate; `next_piece` keeps numbering global."""

    def __init__(self, plate: PlateOptimization, next_piece: int):
        self.plate = plate
        self.next_piece = next_piece
        self.drafts: List[_Draft] = []

    def _emit(self, type_: str, coord: float, start: float, end: float, text: str) -> int:
        self.drafts.append(
            _Draft(
                plate_number=self.plate.plate_number,
                type=type_,
                coord=coord,
                start=start,
                end=end,
                description=f"Plate {self.plate.plate_number}: {text}",
            )
        )
        return len(self.drafts) - 1

    def _free(self, idx: Optional[int], piece: PlacedPiece) -> None:
        rp = ResultingPiece(
            piece_number=self.next_piece,
            piece_id=piece.id,
            width=piece.width,
            height=piece.height,
        )
        self.next_piece += 1
        if idx is None:
            # piece is the whole plate, nothing to cut
            return
        d = self.drafts[idx]
        if d.resulting_piece is None:
            d.resulting_piece = rp
            d.description += f" -> {_piece_label(rp)}"
        else:
            d.extra += f"; also frees {_piece_label(rp)}"

    def run(self) -> List[_Draft]:
        W, H = self.plate.width, self.plate.height
        top = 0.0
        last: Optional[int] = None

        for shelf in group_shelves(self.plate.pieces):
            if shelf.y > top + EPS:
                last = self._emit(
                    "horizontal", shelf.y, 0.0, W,
                    f"Horizontal cut at y={shelf.y:g} cm across {W:g} cm (drop empty band)",
                )
                top = shelf.y
            if shelf.bottom < H - EPS:
                last = self._emit(
                    "horizontal", shelf.bottom, 0.0, W,
                    f"Horizontal cut at y={shelf.bottom:g} cm across {W:g} cm (shelf {shelf.height:g} cm)",
                )
                top = shelf.bottom

            region = last   # cut that produced the current band remainder
            left = 0.0
            for p in shelf.pieces:
                if p.x > left + EPS:
                    region = self._emit(
                        "vertical", p.x, shelf.y, shelf.bottom,
                        f"Vertical cut at x={p.x:g} cm over {shelf.height:g} cm (cut off gap)",
                    )
                freeing = region
                if p.right < W - EPS:
                    region = self._emit(
                        "vertical", p.right, shelf.y, shelf.bottom,
                        f"Vertical cut at x={p.right:g} cm over {shelf.height:g} cm",
                    )
                    freeing = region
                if p.height < shelf.height - EPS:
                    freeing = self._emit(
                        "horizontal", p.bottom, p.x, p.right,
                        f"Horizontal trim cut at y={p.bottom:g} cm over {p.width:g} cm",
                    )
                self._free(freeing, p)
                left = p.right

        return self.drafts


def plate_instructions(
    plate: PlateOptimization,
    start_step: int = 1,
    first_piece_number: int = 1,
) -> List[CutInstruction]:
    drafts = _PlateCutter(plate, first_piece_number).run()
    return [d.freeze(start_step + k) for k, d in enumerate(drafts)]


def plan_instructions(
    plates: Sequence[PlateOptimization],
    per_plate_steps: bool = False,
) -> Tuple[CutInstruction, ...]:
    """
    Cut list for a whole plan. Steps run globally across plates unless
    `per_plate_steps` restarts them at 1 on each plate; piece numbers are
    always global.
    """
    out: List[CutInstruction] = []
    next_piece = 1
    for plate in plates:
        cutter = _PlateCutter(plate, next_piece)
        drafts = cutter.run()
        next_piece = cutter.next_piece
        first = 1 if per_plate_steps else len(out) + 1
        out.extend(d.freeze(first + k) for k, d in enumerate(drafts))
    return tuple(out)
