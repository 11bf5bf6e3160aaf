# glass_solver/report.py
# Plain-text report helpers:
# - pretty-print placements and cut lists
# - printable job report (summary, per-plate details, hints)

from __future__ import annotations

from typing import Iterable, List

from .optimizer import EnhancedOptimizationResult, insights
from .types import CutInstruction, OptimizationResult, PlacedPiece, PlateOptimization
from .utils import sort_cuts_readable, sort_pieces_readable


def format_placements(pieces: Iterable[PlacedPiece]) -> List[str]:
    return [
        f"  {p.id:20s} x={p.x:7.1f} y={p.y:7.1f} w={p.width:7.1f} h={p.height:7.1f} "
        f"{'R' if p.rotated else ' '}"
        for p in pieces
    ]


def format_cuts(cuts: Iterable[CutInstruction]) -> List[str]:
    return [f"  {c.step:4d}. {c.description}" for c in cuts]


def format_plate(plate: PlateOptimization, cuts: Iterable[CutInstruction] = ()) -> List[str]:
    reusable = [w for w in plate.waste_areas if w.reusable]
    lines = [
        f"=== Plate {plate.plate_number} ({plate.width:g}x{plate.height:g} cm) ===",
        f"Pieces: {len(plate.pieces)}  Utilization: {plate.utilization:.1f}%  "
        f"Waste: {plate.waste_percentage:.1f}%",
        f"Reusable offcuts: " + (
            ", ".join(f"{w.width:g}x{w.height:g}" for w in reusable) if reusable else "none"
        ),
        "-- Placements --",
    ]
    lines += format_placements(sort_pieces_readable(list(plate.pieces)))
    own = [c for c in cuts if c.plate_number == plate.plate_number]
    if own:
        lines.append("-- Cuts --")
        lines += format_cuts(sort_cuts_readable(own))
    return lines


def format_result(result: OptimizationResult) -> str:
    lines = [
        f"Strategy: {result.strategy.name}",
        f"Plates: {result.total_plates}  Avg utilization: {result.average_utilization:.1f}%  "
        f"Total waste: {result.total_waste:,.0f} cm²  Cuts: {result.total_guillotine_cuts}",
    ]
    for plate in result.plates:
        lines += format_plate(plate, result.instructions)
    return "\n".join(lines)


def format_report(res: EnhancedOptimizationResult, *, title: str = "Glass cutting plan") -> str:
    """Printable report: insights, validation findings, then the primary plan."""
    lines = [title, "=" * len(title)]
    lines += insights(res)
    if res.validation.errors or res.validation.warnings:
        lines.append("")
        lines.append("Validation findings:")
        lines += [f"  {l}" for l in res.validation.lines()]
    if res.alternatives:
        lines.append("")
        lines.append("Alternatives:")
        for k, (alt, sc) in enumerate(zip(res.alternatives, res.alternative_scores)):
            lines.append(
                f"  [{k}] {alt.strategy.name}: plates={alt.total_plates} "
                f"util={alt.average_utilization:.1f}% cuts={alt.total_guillotine_cuts} "
                f"score={sc.total_score:.1f}"
            )
    if not res.primary.is_empty():
        lines.append("")
        lines.append(format_result(res.primary))
    return "\n".join(lines)

