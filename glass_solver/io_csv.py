# glass_solver/io_csv.py
# CSV import/export helpers:
# - read a cut list (id,width,height,quantity[,can_rotate])
# - export placements, cut instructions, waste areas and per-plate summary
#
# (Drawings are handled in plotting.py.)

from __future__ import annotations

import csv
from pathlib import Path
from typing import List

from .types import CutRequest, OptimizationResult


def parse_bool(s: str) -> bool:
    s = str(s).strip().lower()
    if s in ("1", "true", "yes", "y", "t"):
        return True
    if s in ("0", "false", "no", "n", "f"):
        return False
    raise ValueError(f"Invalid bool: {s}")


def read_cuts_csv(path: str | Path) -> List[CutRequest]:
    """
    Header required. Columns: id (or name), width (or w), height (or h),
    optional quantity (or qty), optional can_rotate. Blank ids are skipped.
    """
    path = Path(path)
    requests: List[CutRequest] = []
    with path.open("r", newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        cols = set(reader.fieldnames or [])
        if not ({"id", "name"} & cols and {"width", "w"} & cols and {"height", "h"} & cols):
            raise ValueError("CSV must contain at least columns: id, width, height")
        for line, row in enumerate(reader, start=2):
            rid = (row.get("id") or row.get("name") or "").strip()
            if not rid:
                continue
            try:
                w = float(row.get("width") or row.get("w"))
                h = float(row.get("height") or row.get("h"))
                qty_f = float(row.get("quantity") or row.get("qty") or "1")
            except (TypeError, ValueError):
                raise ValueError(f"{path.name}:{line}: bad number in row {row}") from None
            if not qty_f.is_integer():
                raise ValueError(f"{path.name}:{line}: quantity must be a whole number, got {qty_f:g}")
            qty = int(qty_f)
            can_rotate = parse_bool(row.get("can_rotate") or "1")
            requests.append(CutRequest(id=rid, width=w, height=h, quantity=qty, can_rotate=can_rotate))
    return requests


def write_cuts_csv(requests: List[CutRequest], path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["id", "width", "height", "quantity", "can_rotate"])
        for r in requests:
            w.writerow([r.id, repr(r.width), repr(r.height), r.quantity, int(bool(r.can_rotate))])


def export_placements_csv(result: OptimizationResult, path: str | Path) -> None:
    """Placements in plate coordinates (cm, top-left origin)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["plate_number", "piece_id", "request_id", "x", "y", "width", "height", "rotated"]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for plate in result.plates:
            for p in plate.pieces:
                w.writerow(
                    {
                        "plate_number": plate.plate_number,
                        "piece_id": p.id,
                        "request_id": p.request_id,
                        "x": p.x,
                        "y": p.y,
                        "width": p.width,
                        "height": p.height,
                        "rotated": int(bool(p.rotated)),
                    }
                )


def export_cuts_csv(result: OptimizationResult, path: str | Path) -> None:
    """
    Cut list in execution order:
      - horizontal: coord=y, start/end along x
      - vertical:   coord=x, start/end along y
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["step", "plate_number", "type", "coord", "start", "end", "length",
                  "piece_number", "piece_id", "description"]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for c in result.instructions:
            rp = c.resulting_piece
            w.writerow(
                {
                    "step": c.step,
                    "plate_number": c.plate_number,
                    "type": c.type,
                    "coord": c.coord,
                    "start": c.start,
                    "end": c.end,
                    "length": c.length(),
                    "piece_number": rp.piece_number if rp else "",
                    "piece_id": rp.piece_id if rp else "",
                    "description": c.description,
                }
            )


def export_waste_csv(result: OptimizationResult, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["plate_number", "x", "y", "width", "height", "area_cm2", "reusable"]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for plate in result.plates:
            for a in plate.waste_areas:
                w.writerow(
                    {
                        "plate_number": plate.plate_number,
                        "x": a.x,
                        "y": a.y,
                        "width": a.width,
                        "height": a.height,
                        "area_cm2": a.area,
                        "reusable": int(a.reusable),
                    }
                )


def export_summary_csv(result: OptimizationResult, path: str | Path) -> None:
    """One-row-per-plate summary (useful for quick costing)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = ["plate_number", "plate_w", "plate_h", "num_pieces", "num_cuts",
                  "utilization_pct", "waste_pct", "waste_area_cm2", "reusable_waste_pieces"]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for plate in result.plates:
            w.writerow(
                {
                    "plate_number": plate.plate_number,
                    "plate_w": plate.width,
                    "plate_h": plate.height,
                    "num_pieces": len(plate.pieces),
                    "num_cuts": sum(1 for c in result.instructions if c.plate_number == plate.plate_number),
                    "utilization_pct": round(plate.utilization, 4),
                    "waste_pct": round(plate.waste_percentage, 4),
                    "waste_area_cm2": plate.area - plate.used_area,
                    "reusable_waste_pieces": sum(1 for a in plate.waste_areas if a.reusable),
                }
            )


def export_all(result: OptimizationResult, out_dir: str | Path, prefix: str = "plan") -> List[Path]:
    """Export placements, cuts, waste and per-plate summary into out_dir."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    paths = [
        out_dir / f"{prefix}_placements.csv",
        out_dir / f"{prefix}_cuts.csv",
        out_dir / f"{prefix}_waste.csv",
        out_dir / f"{prefix}_summary.csv",
    ]
    export_placements_csv(result, paths[0])
    export_cuts_csv(result, paths[1])
    export_waste_csv(result, paths[2])
    export_summary_csv(result, paths[3])
    return paths
