# glass_solver/types.py
# Core data structures for glass plate cutting (guillotine / shelf planning).
# Keep this file dependency-light so it can be imported everywhere.
#
# Units are centimetres. Coordinates use the canonical TOP_LEFT frame:
# origin at the top-left plate corner, x to the right, y downwards.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import InvalidInputError, ValidationIssue, ErrorKind

EPS = 1e-9


# ----------------------------
# Geometry
# ----------------------------

@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in plate coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def overlaps(self, other: "Rect", eps: float = EPS) -> bool:
        # positive-area intersection only; shared edges are fine
        return (
            self.x < other.right - eps
            and self.right > other.x + eps
            and self.y < other.bottom - eps
            and self.bottom > other.y + eps
        )

    def contains(self, other: "Rect", eps: float = EPS) -> bool:
        return (
            other.x >= self.x - eps
            and other.y >= self.y - eps
            and other.right <= self.right + eps
            and other.bottom <= self.bottom + eps
        )


# ----------------------------
# Inputs
# ----------------------------

@dataclass(frozen=True)
class CutRequest:
    """A requested rectangle of glass (cm)."""
    id: str
    width: float
    height: float
    quantity: int = 1

    # False pins the orientation (grain / patterned glass)
    can_rotate: bool = True

    def __post_init__(self):
        issues = request_issues(self)
        if issues:
            raise InvalidInputError(issues)

    @property
    def area(self) -> float:
        return self.width * self.height


def request_issues(req: CutRequest) -> List[ValidationIssue]:
    """Input problems of a single request (empty if OK)."""
    issues: List[ValidationIssue] = []
    for label, value in (("width", req.width), ("height", req.height)):
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
            issues.append(
                ValidationIssue(
                    level="ERROR",
                    kind=ErrorKind.INVALID_INPUT,
                    message=f"Request {req.id!r}: {label} must be a positive number, got {value!r}",
                    piece_id=req.id,
                )
            )
    if isinstance(req.quantity, bool) or not isinstance(req.quantity, int) or req.quantity < 1:
        issues.append(
            ValidationIssue(
                level="ERROR",
                kind=ErrorKind.INVALID_INPUT,
                message=f"Request {req.id!r}: quantity must be an integer >= 1, got {req.quantity!r}",
                piece_id=req.id,
            )
        )
    return issues


@dataclass(frozen=True)
class PieceInstance:
    """A single physical piece (expanded from quantity)."""
    uid: str              # unique id, e.g. "V1#3"
    request_id: str
    width: float
    height: float
    can_rotate: bool = True
    order: int = 0        # position in the expanded list (stable tie-break)
    turned: bool = False  # width/height already swapped vs. the request

    @property
    def area(self) -> float:
        return self.width * self.height

    def turn(self) -> "PieceInstance":
        return PieceInstance(
            uid=self.uid,
            request_id=self.request_id,
            width=self.height,
            height=self.width,
            can_rotate=self.can_rotate,
            order=self.order,
            turned=not self.turned,
        )


def expand_requests(requests: Iterable[CutRequest]) -> List[PieceInstance]:
    """Expand quantity into unique instances (stable order)."""
    out: List[PieceInstance] = []
    for r in requests:
        for k in range(1, r.quantity + 1):
            out.append(
                PieceInstance(
                    uid=f"{r.id}#{k}",
                    request_id=r.id,
                    width=r.width,
                    height=r.height,
                    can_rotate=r.can_rotate,
                    order=len(out),
                )
            )
    return out


def fits_plate(width: float, height: float, plate_w: float, plate_h: float) -> bool:
    return width <= plate_w + EPS and height <= plate_h + EPS


# ----------------------------
# Outputs / plan objects
# ----------------------------

@dataclass(frozen=True)
class PlacedPiece:
    """Piece placed on a plate; width/height are as placed (after rotation)."""
    id: str
    request_id: str
    x: float
    y: float
    width: float
    height: float
    rotated: bool = False

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class WasteArea:
    """Empty rectangle left on a plate after cutting."""
    x: float
    y: float
    width: float
    height: float
    reusable: bool = False

    @property
    def area(self) -> float:
        return self.width * self.height

    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class PlateOptimization:
    """One used plate: placements + waste + utilization."""
    plate_number: int     # 1-based, assignment order
    width: float
    height: float
    pieces: Tuple[PlacedPiece, ...] = ()
    waste_areas: Tuple[WasteArea, ...] = ()
    utilization: float = 0.0
    waste_percentage: float = 100.0

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def used_area(self) -> float:
        return sum(p.area for p in self.pieces)

    @property
    def waste_area(self) -> float:
        return sum(w.area for w in self.waste_areas)


@dataclass(frozen=True)
class ResultingPiece:
    piece_number: int
    piece_id: str
    width: float
    height: float


@dataclass(frozen=True)
class CutInstruction:
    """
    One guillotine cut, executable in step order.
      - horizontal: coord is y, segment runs x=[start, end]
      - vertical:   coord is x, segment runs y=[start, end]
    """
    step: int
    plate_number: int
    type: str             # "horizontal" or "vertical"
    coord: float
    start: float
    end: float
    description: str = ""
    resulting_piece: Optional[ResultingPiece] = None

    def __post_init__(self):
        if self.type not in ("horizontal", "vertical"):
            raise ValueError("CutInstruction.type must be 'horizontal' or 'vertical'")
        if self.end - self.start <= EPS:
            raise ValueError(f"Cut segment length is zero (start={self.start}, end={self.end})")

    def length(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class StrategyInfo:
    name: str
    description: str = ""


@dataclass(frozen=True)
class WasteQuality:
    reusable_waste_pieces: int = 0
    reusable_waste_area: float = 0.0
    largest_waste_piece: Optional[WasteArea] = None


@dataclass(frozen=True)
class OptimizationResult:
    """Full cutting plan across plates."""
    plate_width: float
    plate_height: float
    total_plates: int
    plates: Tuple[PlateOptimization, ...]
    average_utilization: float
    total_waste: float                       # cm²
    instructions: Tuple[CutInstruction, ...]
    total_guillotine_cuts: int
    strategy: StrategyInfo
    waste_quality: WasteQuality = field(default_factory=WasteQuality)

    def all_pieces(self) -> List[PlacedPiece]:
        return [p for plate in self.plates for p in plate.pieces]

    def piece_count(self) -> int:
        return sum(len(p.pieces) for p in self.plates)

    def is_empty(self) -> bool:
        return self.total_plates == 0


def empty_result(plate_w: float, plate_h: float, strategy: StrategyInfo) -> OptimizationResult:
    """Clearly flagged empty plan (used when no strategy was feasible)."""
    return OptimizationResult(
        plate_width=plate_w,
        plate_height=plate_h,
        total_plates=0,
        plates=(),
        average_utilization=0.0,
        total_waste=0.0,
        instructions=(),
        total_guillotine_cuts=0,
        strategy=strategy,
        waste_quality=WasteQuality(),
    )


# ----------------------------
# Helper utilities
# ----------------------------

def find_overlaps(pieces: List[PlacedPiece]) -> List[Tuple[PlacedPiece, PlacedPiece]]:
    """All overlapping pairs on one plate."""
    out: List[Tuple[PlacedPiece, PlacedPiece]] = []
    for i in range(len(pieces)):
        a = pieces[i].rect()
        for j in range(i + 1, len(pieces)):
            if a.overlaps(pieces[j].rect()):
                out.append((pieces[i], pieces[j]))
    return out


def check_no_overlap(plates: Iterable[PlateOptimization]) -> None:
    """
    Simple validator: raise if any overlap detected (per plate).
    This is useful for unit tests and sanity checks.
    """
    for plate in plates:
        for a, b in find_overlaps(list(plate.pieces)):
            raise ValueError(
                f"Overlap on plate {plate.plate_number}: {a.id} ({a.x},{a.y},{a.right},{a.bottom}) "
                f"with {b.id} ({b.x},{b.y},{b.right},{b.bottom})"
            )


def count_by_request(pieces: Iterable[PlacedPiece]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for p in pieces:
        counts[p.request_id] = counts.get(p.request_id, 0) + 1
    return counts
