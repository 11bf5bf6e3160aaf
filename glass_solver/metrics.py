# glass_solver/metrics.py
# Waste analysis for shelf-packed plates:
# - waste rectangles (shelf tails, strips under short pieces, gaps, bottom remainder)
# - utilization / waste percentage per plate
# - plan totals and reusable-waste quality
#
# These metrics work for any shelf-structured layout (greedy packer or CP-SAT).

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from .config import DEFAULTS
from .types import EPS, PlacedPiece, PlateOptimization, Rect, WasteArea, WasteQuality


@dataclass(frozen=True)
class Shelf:
    y: float
    height: float
    pieces: Tuple[PlacedPiece, ...]   # sorted left-to-right

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass(frozen=True)
class PlateAnalysis:
    waste_areas: Tuple[WasteArea, ...]
    utilization: float
    waste_percentage: float


def _validate_within_plate(pieces: Iterable[PlacedPiece], plate_w: float, plate_h: float) -> None:
    for p in pieces:
        if p.x < -EPS or p.y < -EPS:
            raise ValueError(f"Negative placement for {p.id}: ({p.x},{p.y})")
        if p.right > plate_w + EPS or p.bottom > plate_h + EPS:
            raise ValueError(
                f"Placement out of plate bounds for {p.id}: "
                f"({p.x},{p.y},{p.width},{p.height}) plate=({plate_w},{plate_h})"
            )


def group_shelves(pieces: Sequence[PlacedPiece]) -> List[Shelf]:
    """Group pieces by shelf (shared top edge), top-to-bottom."""
    shelves: List[Shelf] = []
    current: List[PlacedPiece] = []
    for p in sorted(pieces, key=lambda p: (p.y, p.x)):
        if current and abs(p.y - current[0].y) > EPS:
            shelves.append(_make_shelf(current))
            current = []
        current.append(p)
    if current:
        shelves.append(_make_shelf(current))
    return shelves


def _make_shelf(pieces: List[PlacedPiece]) -> Shelf:
    return Shelf(
        y=pieces[0].y,
        height=max(p.height for p in pieces),
        pieces=tuple(sorted(pieces, key=lambda p: p.x)),
    )


def compute_waste_rects(pieces: Sequence[PlacedPiece], plate_w: float, plate_h: float) -> List[Rect]:
    """
    Empty rectangles left by the shelf structure. Together with the pieces
    they tile the plate exactly.
    """
    rects: List[Rect] = []
    cursor_y = 0.0
    for shelf in group_shelves(pieces):
        if shelf.y > cursor_y + EPS:
            rects.append(Rect(0.0, cursor_y, plate_w, shelf.y - cursor_y))

        cursor_x = 0.0
        for p in shelf.pieces:
            if p.x > cursor_x + EPS:
                rects.append(Rect(cursor_x, shelf.y, p.x - cursor_x, shelf.height))
            if p.height < shelf.height - EPS:
                rects.append(Rect(p.x, p.bottom, p.width, shelf.bottom - p.bottom))
            cursor_x = max(cursor_x, p.right)

        # shelf tail
        if cursor_x < plate_w - EPS:
            rects.append(Rect(cursor_x, shelf.y, plate_w - cursor_x, shelf.height))
        cursor_y = max(cursor_y, shelf.bottom)

    # bottom remainder
    if cursor_y < plate_h - EPS:
        rects.append(Rect(0.0, cursor_y, plate_w, plate_h - cursor_y))
    return rects


def is_reusable(area: float, min_area: float = DEFAULTS.reusable_waste_min_area) -> bool:
    return area >= min_area


def analyze_plate(
    pieces: Sequence[PlacedPiece],
    plate_w: float,
    plate_h: float,
    *,
    reusable_min_area: float = DEFAULTS.reusable_waste_min_area,
) -> PlateAnalysis:
    """Waste rectangles + utilization for one plate."""
    _validate_within_plate(pieces, plate_w, plate_h)
    waste = tuple(
        WasteArea(r.x, r.y, r.width, r.height, reusable=is_reusable(r.area, reusable_min_area))
        for r in compute_waste_rects(pieces, plate_w, plate_h)
    )
    used = sum(p.area for p in pieces)
    total = plate_w * plate_h
    utilization = used / total * 100.0
    if utilization > 100.0 + 1e-6:
        # Overlaps could cause this too, but should be prevented upstream.
        raise ValueError(f"Used area exceeds plate area (used={used} > total={total}).")
    return PlateAnalysis(
        waste_areas=waste,
        utilization=utilization,
        waste_percentage=100.0 - utilization,
    )


def build_plate(
    plate_number: int,
    pieces: Sequence[PlacedPiece],
    plate_w: float,
    plate_h: float,
    *,
    reusable_min_area: float = DEFAULTS.reusable_waste_min_area,
) -> PlateOptimization:
    analysis = analyze_plate(pieces, plate_w, plate_h, reusable_min_area=reusable_min_area)
    return PlateOptimization(
        plate_number=plate_number,
        width=plate_w,
        height=plate_h,
        pieces=tuple(pieces),
        waste_areas=analysis.waste_areas,
        utilization=analysis.utilization,
        waste_percentage=analysis.waste_percentage,
    )


def average_utilization(plates: Sequence[PlateOptimization]) -> float:
    if not plates:
        return 0.0
    return sum(p.utilization for p in plates) / len(plates)


def total_waste_area(plates: Sequence[PlateOptimization]) -> float:
    """Plate area not covered by pieces, summed over plates (cm²)."""
    return sum(p.area - p.used_area for p in plates)


def compute_waste_quality(plates: Sequence[PlateOptimization]) -> WasteQuality:
    reusable = [w for p in plates for w in p.waste_areas if w.reusable]
    largest = None
    for w in reusable:
        if largest is None or w.area > largest.area:
            largest = w
    return WasteQuality(
        reusable_waste_pieces=len(reusable),
        reusable_waste_area=sum(w.area for w in reusable),
        largest_waste_piece=largest,
    )


def lower_bound_plates(total_piece_area: float, plate_w: float, plate_h: float) -> int:
    """Area lower bound on plate count (at least 1 when there is anything to cut)."""
    if total_piece_area <= 0:
        return 0
    ratio = total_piece_area / (plate_w * plate_h)
    n = int(ratio)
    if ratio - n > 1e-9:
        n += 1
    return max(1, n)
