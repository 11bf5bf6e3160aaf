# glass_solver/orientation.py
# Display-only remapping of finished plans to the corner the operator
# measures from. Pure functions returning mirrored copies; the optimizer
# never sees the result.
#
#   TOP_LEFT      identity (canonical frame)
#   TOP_RIGHT     mirror x:  x' = W - x - w
#   BOTTOM_LEFT   mirror y:  y' = H - y - h
#   BOTTOM_RIGHT  mirror both

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import List, Sequence, Tuple, Union

from .types import CutInstruction, OptimizationResult, PlacedPiece, PlateOptimization, WasteArea


class DisplayOrientation(str, Enum):
    TOP_LEFT = "TOP_LEFT"
    TOP_RIGHT = "TOP_RIGHT"
    BOTTOM_LEFT = "BOTTOM_LEFT"
    BOTTOM_RIGHT = "BOTTOM_RIGHT"


def parse_orientation(value: Union[str, DisplayOrientation]) -> DisplayOrientation:
    if isinstance(value, DisplayOrientation):
        return value
    try:
        return DisplayOrientation(str(value).strip().upper().replace("-", "_"))
    except ValueError:
        raise ValueError(f"Unknown display orientation: {value!r}") from None


def _flips(orientation: Union[str, DisplayOrientation]) -> Tuple[bool, bool]:
    o = parse_orientation(orientation)
    return (
        o in (DisplayOrientation.TOP_RIGHT, DisplayOrientation.BOTTOM_RIGHT),
        o in (DisplayOrientation.BOTTOM_LEFT, DisplayOrientation.BOTTOM_RIGHT),
    )


def _map_rect(x: float, y: float, w: float, h: float, W: float, H: float,
              fx: bool, fy: bool) -> Tuple[float, float]:
    return (W - x - w if fx else x, H - y - h if fy else y)


def transform_pieces(
    pieces: Sequence[PlacedPiece], plate_w: float, plate_h: float, orientation: Union[str, DisplayOrientation]
) -> List[PlacedPiece]:
    fx, fy = _flips(orientation)
    out = []
    for p in pieces:
        x, y = _map_rect(p.x, p.y, p.width, p.height, plate_w, plate_h, fx, fy)
        out.append(dataclasses.replace(p, x=x, y=y))
    return out


def transform_waste_areas(
    waste: Sequence[WasteArea], plate_w: float, plate_h: float, orientation: Union[str, DisplayOrientation]
) -> List[WasteArea]:
    fx, fy = _flips(orientation)
    out = []
    for w in waste:
        x, y = _map_rect(w.x, w.y, w.width, w.height, plate_w, plate_h, fx, fy)
        out.append(dataclasses.replace(w, x=x, y=y))
    return out


def _describe(ins: CutInstruction) -> str:
    axis = "y" if ins.type == "horizontal" else "x"
    text = (f"Plate {ins.plate_number}: {ins.type.capitalize()} cut at {axis}={ins.coord:g} cm "
            f"from {ins.start:g} to {ins.end:g} cm")
    rp = ins.resulting_piece
    if rp is not None:
        text += f" -> piece #{rp.piece_number} ({rp.piece_id}, {rp.width:g}x{rp.height:g} cm)"
    return text


def transform_instructions(
    instructions: Sequence[CutInstruction], plate_w: float, plate_h: float,
    orientation: Union[str, DisplayOrientation],
) -> List[CutInstruction]:
    """Mirror cut coordinates; descriptions are rebuilt in the new frame."""
    fx, fy = _flips(orientation)
    if not (fx or fy):
        return list(instructions)
    out = []
    for ins in instructions:
        # horizontal: coord is y, span along x; vertical: coord is x, span along y
        flip_coord, flip_span = (fy, fx) if ins.type == "horizontal" else (fx, fy)
        size_coord, size_span = (plate_h, plate_w) if ins.type == "horizontal" else (plate_w, plate_h)
        coord = size_coord - ins.coord if flip_coord else ins.coord
        start, end = (size_span - ins.end, size_span - ins.start) if flip_span else (ins.start, ins.end)
        moved = dataclasses.replace(ins, coord=coord, start=start, end=end)
        out.append(dataclasses.replace(moved, description=_describe(moved)))
    return out


def transform_plate(plate: PlateOptimization, orientation: Union[str, DisplayOrientation]) -> PlateOptimization:
    return dataclasses.replace(
        plate,
        pieces=tuple(transform_pieces(plate.pieces, plate.width, plate.height, orientation)),
        waste_areas=tuple(transform_waste_areas(plate.waste_areas, plate.width, plate.height, orientation)),
    )


def transform_result(result: OptimizationResult, orientation: Union[str, DisplayOrientation]) -> OptimizationResult:
    """Whole plan in display coordinates (copy)."""
    W, H = result.plate_width, result.plate_height
    plates = tuple(transform_plate(p, orientation) for p in result.plates)
    largest = result.waste_quality.largest_waste_piece
    wq = result.waste_quality
    if largest is not None:
        wq = dataclasses.replace(wq, largest_waste_piece=transform_waste_areas([largest], W, H, orientation)[0])
    return dataclasses.replace(
        result,
        plates=plates,
        instructions=tuple(transform_instructions(result.instructions, W, H, orientation)),
        waste_quality=wq,
    )
