# glass_solver/errors.py
# Error taxonomy shared by the optimizer:
# - ErrorKind: what went wrong (user input vs. internal defect)
# - ValidationIssue: one finding, collected into lists before raising
# - OptimizationError and subclasses: raised with the collected issues
#
# Errors subclass ValueError so callers that only know "bad input" keep working.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class ErrorKind(str, Enum):
    INVALID_INPUT = "INVALID_INPUT"
    PIECE_EXCEEDS_PLATE = "PIECE_EXCEEDS_PLATE"
    TILING_INVARIANT_VIOLATION = "TILING_INVARIANT_VIOLATION"
    SCORING_DEGENERATE = "SCORING_DEGENERATE"


@dataclass(frozen=True)
class ValidationIssue:
    level: str   # "ERROR" or "WARN"
    message: str
    kind: Optional[ErrorKind] = None
    plate_number: Optional[int] = None
    piece_id: Optional[str] = None

    def is_error(self) -> bool:
        return self.level.upper() == "ERROR"

    def format(self) -> str:
        bits = [f"[{self.level}]"]
        if self.plate_number is not None:
            bits.append(f"plate={self.plate_number}")
        if self.piece_id is not None:
            bits.append(f"piece={self.piece_id}")
        return " ".join(bits) + f" :: {self.message}"


class OptimizationError(ValueError):
    """Base error; carries the issues that caused it."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, issues: Iterable[ValidationIssue], headline: str = ""):
        self.issues: Tuple[ValidationIssue, ...] = tuple(issues)
        head = headline or f"{self.kind.value}: {len(self.issues)} issue(s)"
        super().__init__(head + "\n" + "\n".join(i.format() for i in self.issues))


class InvalidInputError(OptimizationError):
    kind = ErrorKind.INVALID_INPUT


class PieceExceedsPlateError(OptimizationError):
    kind = ErrorKind.PIECE_EXCEEDS_PLATE

    @property
    def request_ids(self) -> List[str]:
        out: List[str] = []
        for i in self.issues:
            if i.piece_id is not None and i.piece_id not in out:
                out.append(i.piece_id)
        return out


class TilingInvariantError(OptimizationError):
    kind = ErrorKind.TILING_INVARIANT_VIOLATION


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    """Raise the most specific error for the ERROR-level issues (if any)."""
    errs = [i for i in issues if i.is_error()]
    if not errs:
        return
    kinds = {e.kind for e in errs}
    if ErrorKind.INVALID_INPUT in kinds:
        raise InvalidInputError(errs, "Validation failed:")
    if ErrorKind.PIECE_EXCEEDS_PLATE in kinds:
        raise PieceExceedsPlateError(errs, "Validation failed:")
    if ErrorKind.TILING_INVARIANT_VIOLATION in kinds:
        raise TilingInvariantError(errs, "Validation failed:")
    raise OptimizationError(errs, "Validation failed:")
