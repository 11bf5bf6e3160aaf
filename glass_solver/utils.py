# glass_solver/utils.py
# Small utilities used across the project:
# - readable sorting helpers
# - JSON-friendly conversion of dataclasses / enums
#
# Keeps dependencies minimal (stdlib only).

from __future__ import annotations

from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List

from .types import CutInstruction, PlacedPiece


def to_jsonable(obj: Any) -> Any:
    """Convert dataclasses, enums and other objects to JSON-serializable structures."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(x) for x in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj


def sort_pieces_readable(pieces: List[PlacedPiece]) -> List[PlacedPiece]:
    """
    Stable readable ordering: by y, then x, then piece id.
    Helpful for debugging diffs.
    """
    return sorted(pieces, key=lambda p: (p.y, p.x, p.id))


def sort_cuts_readable(cuts: List[CutInstruction]) -> List[CutInstruction]:
    """Execution order: plate, then step."""
    return sorted(cuts, key=lambda c: (c.plate_number, c.step))
