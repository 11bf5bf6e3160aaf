# glass_solver/validate.py
# Validation utilities:
# - request pre-validation (before any packing)
# - placements fit within the plate, no overlap per plate
# - tiling: pieces + waste areas cover the plate exactly
# - conservation and rotation consistency against the requests
# - cut replay: every cut must split a whole existing sub-rectangle
#
# Returns issue lists; raise_on_errors() turns them into exceptions.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULTS, OptimizerConfig, resolve_config
from .errors import ErrorKind, ValidationIssue, raise_on_errors
from .packer import oversized_issues
from .types import (
    EPS,
    CutInstruction,
    CutRequest,
    OptimizationResult,
    PlateOptimization,
    Rect,
    count_by_request,
    expand_requests,
    find_overlaps,
    request_issues,
)

_TILING = ErrorKind.TILING_INVARIANT_VIOLATION


def _err(message: str, kind: ErrorKind = _TILING, plate_number: Optional[int] = None,
         piece_id: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(level="ERROR", message=message, kind=kind, plate_number=plate_number, piece_id=piece_id)


def _warn(message: str, plate_number: Optional[int] = None) -> ValidationIssue:
    return ValidationIssue(level="WARN", message=message, plate_number=plate_number)


# ----------------------------
# Inputs
# ----------------------------

def request_input_issues(requests: Sequence[CutRequest], plate_w: float, plate_h: float) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for label, v in (("width", plate_w), ("height", plate_h)):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not v > 0 or v == float("inf"):
            issues.append(_err(f"Plate {label} must be a positive number, got {v!r}", ErrorKind.INVALID_INPUT))
    if not requests:
        issues.append(_err("No cut requests given", ErrorKind.INVALID_INPUT))
    seen = set()
    for r in requests:
        issues.extend(request_issues(r))
        if r.id in seen:
            issues.append(_err(f"Duplicate request id {r.id!r}", ErrorKind.INVALID_INPUT, piece_id=r.id))
        seen.add(r.id)
    return issues


def prevalidate(requests: Sequence[CutRequest], plate_w: float, plate_h: float) -> None:
    """
    Fail fast before packing:
      InvalidInputError       bad plate / request values, duplicate ids, empty list
      PieceExceedsPlateError  a request does not fit the plate in any allowed orientation
    """
    issues = request_input_issues(requests, plate_w, plate_h)
    raise_on_errors(issues)
    raise_on_errors(oversized_issues(expand_requests(requests), plate_w, plate_h, allow_rotation=True))


# ----------------------------
# Geometry
# ----------------------------

def validate_bounds(plate: PlateOptimization) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for p in plate.pieces:
        if p.width <= 0 or p.height <= 0:
            issues.append(_err(f"Non-positive size for placement: {p.width}x{p.height}",
                               plate_number=plate.plate_number, piece_id=p.id))
        if p.x < -EPS or p.y < -EPS or p.right > plate.width + EPS or p.bottom > plate.height + EPS:
            issues.append(
                _err(
                    f"Placement out of plate bounds: x={p.x:g}, y={p.y:g}, w={p.width:g}, h={p.height:g}, "
                    f"plate={plate.width:g}x{plate.height:g}",
                    plate_number=plate.plate_number,
                    piece_id=p.id,
                )
            )
    return issues


def validate_no_overlap(plate: PlateOptimization) -> List[ValidationIssue]:
    return [
        _err(f"Overlap: {a.id} ({a.x:g},{a.y:g},{a.right:g},{a.bottom:g}) with "
             f"{b.id} ({b.x:g},{b.y:g},{b.right:g},{b.bottom:g})",
             plate_number=plate.plate_number, piece_id=a.id)
        for a, b in find_overlaps(list(plate.pieces))
    ]


def validate_tiling(plate: PlateOptimization, area_tolerance: float = DEFAULTS.area_tolerance) -> List[ValidationIssue]:
    """Pieces + waste areas must cover the plate with no gap and no overlap."""
    issues: List[ValidationIssue] = []
    board = Rect(0.0, 0.0, plate.width, plate.height)
    rects: List[Tuple[str, Rect]] = [(p.id, p.rect()) for p in plate.pieces]
    rects += [(f"waste@({w.x:g},{w.y:g})", w.rect()) for w in plate.waste_areas]

    for label, r in rects:
        if not board.contains(r):
            issues.append(_err(f"{label} lies outside the plate", plate_number=plate.plate_number))
    for i in range(len(rects)):
        for j in range(i + 1, len(rects)):
            if rects[i][1].overlaps(rects[j][1]):
                issues.append(
                    _err(f"{rects[i][0]} overlaps {rects[j][0]}", plate_number=plate.plate_number)
                )

    covered = sum(r.area for _, r in rects)
    if abs(covered - board.area) > area_tolerance * max(1.0, board.area):
        issues.append(
            _err(
                f"Pieces + waste cover {covered:.6f} cm² of {board.area:.6f} cm² (gap or overlap)",
                plate_number=plate.plate_number,
            )
        )
    expected_util = plate.used_area / board.area * 100.0
    if abs(plate.utilization - expected_util) > 1e-6:
        issues.append(
            _err(f"Utilization {plate.utilization:.4f}% does not match placements ({expected_util:.4f}%)",
                 plate_number=plate.plate_number)
        )
    return issues


# ----------------------------
# Against requests
# ----------------------------

def validate_conservation(result: OptimizationResult, requests: Sequence[CutRequest]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    pieces = result.all_pieces()
    counts = count_by_request(pieces)
    wanted: Dict[str, int] = {r.id: r.quantity for r in requests}
    for rid, qty in wanted.items():
        got = counts.get(rid, 0)
        if got != qty:
            issues.append(_err(f"Request {rid!r}: placed {got} of {qty}", piece_id=rid))
    for rid in counts:
        if rid not in wanted:
            issues.append(_err(f"Placed pieces for unknown request {rid!r}", piece_id=rid))
    ids = [p.id for p in pieces]
    if len(set(ids)) != len(ids):
        issues.append(_err("Piece ids are not unique across the plan"))
    return issues


def validate_rotation(result: OptimizationResult, requests: Sequence[CutRequest]) -> List[ValidationIssue]:
    by_id = {r.id: r for r in requests}
    issues: List[ValidationIssue] = []
    for plate in result.plates:
        for p in plate.pieces:
            r = by_id.get(p.request_id)
            if r is None:
                continue
            want = (r.height, r.width) if p.rotated else (r.width, r.height)
            if abs(p.width - want[0]) > EPS or abs(p.height - want[1]) > EPS:
                issues.append(
                    _err(
                        f"Placed {p.width:g}x{p.height:g} (rotated={p.rotated}) does not match "
                        f"request {r.width:g}x{r.height:g}",
                        plate_number=plate.plate_number,
                        piece_id=p.id,
                    )
                )
            if p.rotated and not r.can_rotate:
                issues.append(
                    _err("Piece rotated although its request forbids rotation",
                         plate_number=plate.plate_number, piece_id=p.id)
                )
    return issues


# ----------------------------
# Cuts
# ----------------------------

def _close(a: float, b: float) -> bool:
    return abs(a - b) <= 1e-7


def _split(region: Rect, cut: CutInstruction) -> Optional[Tuple[Rect, Rect]]:
    """Both halves if the cut spans the whole region, else None."""
    if cut.type == "horizontal":
        if not (_close(cut.start, region.x) and _close(cut.end, region.right)):
            return None
        if not (region.y + EPS < cut.coord < region.bottom - EPS):
            return None
        top = Rect(region.x, region.y, region.width, cut.coord - region.y)
        return top, Rect(region.x, cut.coord, region.width, region.bottom - cut.coord)
    if not (_close(cut.start, region.y) and _close(cut.end, region.bottom)):
        return None
    if not (region.x + EPS < cut.coord < region.right - EPS):
        return None
    left = Rect(region.x, region.y, cut.coord - region.x, region.height)
    return left, Rect(cut.coord, region.y, region.right - cut.coord, region.height)


def replay_cuts(plate: PlateOptimization, instructions: Iterable[CutInstruction]) -> List[ValidationIssue]:
    """
    Apply the plate's cuts in order to the whole plate; each must split one
    existing sub-rectangle edge to edge. Afterwards every piece must be one of
    the resulting rectangles.
    """
    issues: List[ValidationIssue] = []
    regions: List[Rect] = [Rect(0.0, 0.0, plate.width, plate.height)]
    for cut in instructions:
        if cut.plate_number != plate.plate_number:
            continue
        for k, region in enumerate(regions):
            halves = _split(region, cut)
            if halves is not None:
                regions[k:k + 1] = list(halves)
                break
        else:
            issues.append(
                _err(f"Cut step {cut.step} ({cut.type} at {cut.coord:g}, {cut.start:g}..{cut.end:g}) "
                     f"does not span a whole remaining piece of glass",
                     plate_number=plate.plate_number)
            )
    for p in plate.pieces:
        r = p.rect()
        if not any(_close(q.x, r.x) and _close(q.y, r.y) and _close(q.right, r.right)
                   and _close(q.bottom, r.bottom) for q in regions):
            issues.append(_err("Piece is not freed by the cut sequence", plate_number=plate.plate_number,
                               piece_id=p.id))
    return issues


# ----------------------------
# Whole plan
# ----------------------------

@dataclass(frozen=True)
class ValidationReport:
    is_valid: bool
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()
    checked: bool = True     # False when validation was switched off

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> "ValidationReport":
        issues = list(issues)
        errors = tuple(i for i in issues if i.is_error())
        warnings = tuple(i for i in issues if not i.is_error())
        return cls(is_valid=not errors, errors=errors, warnings=warnings)

    def lines(self) -> List[str]:
        return [i.format() for i in self.errors + self.warnings]


def plan_errors(result: OptimizationResult, requests: Sequence[CutRequest]) -> List[ValidationIssue]:
    """Hard invariants only (no warnings)."""
    issues: List[ValidationIssue] = []
    for plate in result.plates:
        issues.extend(validate_bounds(plate))
        issues.extend(validate_no_overlap(plate))
        issues.extend(validate_tiling(plate))
        issues.extend(replay_cuts(plate, result.instructions))
    issues.extend(validate_conservation(result, requests))
    issues.extend(validate_rotation(result, requests))
    if len(result.instructions) != result.total_guillotine_cuts:
        issues.append(_err(f"total_guillotine_cuts={result.total_guillotine_cuts} but "
                           f"{len(result.instructions)} instructions"))
    return issues


def plan_warnings(result: OptimizationResult, config: Optional[OptimizerConfig] = None) -> List[ValidationIssue]:
    cfg = resolve_config(config)
    issues: List[ValidationIssue] = []
    if not result.plates:
        issues.append(_warn("Plan has 0 plates."))
        return issues
    if result.average_utilization < cfg.low_utilization_warning:
        issues.append(
            _warn(f"Average utilization {result.average_utilization:.1f}% is below "
                  f"{cfg.low_utilization_warning:g}%")
        )
    last = result.plates[-1]
    if len(result.plates) > 1 and last.utilization < cfg.last_plate_warning:
        issues.append(
            _warn(f"Last plate is only {last.utilization:.1f}% used", plate_number=last.plate_number)
        )
    return issues


def validate_result(
    result: OptimizationResult,
    requests: Sequence[CutRequest],
    config: Optional[OptimizerConfig] = None,
) -> ValidationReport:
    return ValidationReport.from_issues(plan_errors(result, requests) + plan_warnings(result, config))
