# glass_solver/io_json.py
# JSON input/output:
# - load a cutting job (plate + cuts + settings)
# - plan <-> dict conversion that round-trips exactly
# - a small JSON-file project repository (save/load/list/delete)
#
# Expected job JSON shape:
# {
#   "plate": {"width": 260, "height": 180},
#   "cuts": [{"id": "V1", "width": 80, "height": 60, "quantity": 2, "can_rotate": true}, ...],
#   "settings": {"context": "BALANCED", "max_alternatives": 8, "display_orientation": "TOP_LEFT",
#                "dedup_by_layout": false}
# }

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .optimizer import EnhancedOptimizationResult
from .orientation import DisplayOrientation, parse_orientation
from .types import (
    CutInstruction,
    CutRequest,
    OptimizationResult,
    PlacedPiece,
    PlateOptimization,
    ResultingPiece,
    StrategyInfo,
    WasteArea,
    WasteQuality,
)
from .utils import to_jsonable


@dataclass(frozen=True)
class JobSpec:
    plate_w: float
    plate_h: float
    requests: List[CutRequest]
    settings: Dict[str, Any] = field(default_factory=dict)


def _first(d: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def request_from_dict(it: Dict[str, Any]) -> CutRequest:
    rid = str(_first(it, "id", "name", default="")).strip()
    if not rid:
        raise ValueError(f"Cut missing id/name: {it}")
    try:
        w = float(_first(it, "width", "w"))
        h = float(_first(it, "height", "h"))
    except (TypeError, ValueError):
        raise ValueError(f"Cut {rid!r} needs numeric width/height: {it}") from None
    qty = _first(it, "quantity", "qty", "count", default=1)
    if isinstance(qty, float) and qty.is_integer():
        qty = int(qty)
    return CutRequest(
        id=rid,
        width=w,
        height=h,
        quantity=qty,
        can_rotate=bool(_first(it, "can_rotate", "canRotate", default=True)),
    )


def request_to_dict(r: CutRequest) -> Dict[str, Any]:
    return {"id": r.id, "width": r.width, "height": r.height, "quantity": r.quantity, "can_rotate": r.can_rotate}


def load_job_json(path: str | Path) -> JobSpec:
    """
    Load job definition from JSON.
    - "plate" may be {"width","height"} or {"w","h"}; missing -> ValueError
    - "cuts" (or "items") entries accept width/w, height/h, quantity/qty/count
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    plate = data.get("plate") or {}
    if not plate:
        raise ValueError("JSON missing 'plate' (need width/height).")
    plate_w = float(_first(plate, "width", "w"))
    plate_h = float(_first(plate, "height", "h"))

    items = data.get("cuts") or data.get("items") or []
    if not items:
        raise ValueError("JSON missing 'cuts'.")

    return JobSpec(
        plate_w=plate_w,
        plate_h=plate_h,
        requests=[request_from_dict(it) for it in items],
        settings=dict(data.get("settings") or {}),
    )


# ----------------------------
# Plan <-> dict
# ----------------------------

def result_to_dict(result: OptimizationResult) -> Dict[str, Any]:
    return to_jsonable(result)


def _waste_from(d: Optional[Dict[str, Any]]) -> Optional[WasteArea]:
    if d is None:
        return None
    return WasteArea(x=d["x"], y=d["y"], width=d["width"], height=d["height"], reusable=bool(d["reusable"]))


def _plate_from(d: Dict[str, Any]) -> PlateOptimization:
    return PlateOptimization(
        plate_number=int(d["plate_number"]),
        width=d["width"],
        height=d["height"],
        pieces=tuple(
            PlacedPiece(
                id=p["id"],
                request_id=p["request_id"],
                x=p["x"],
                y=p["y"],
                width=p["width"],
                height=p["height"],
                rotated=bool(p["rotated"]),
            )
            for p in d["pieces"]
        ),
        waste_areas=tuple(_waste_from(w) for w in d["waste_areas"]),
        utilization=d["utilization"],
        waste_percentage=d["waste_percentage"],
    )


def _instruction_from(d: Dict[str, Any]) -> CutInstruction:
    rp = d.get("resulting_piece")
    return CutInstruction(
        step=int(d["step"]),
        plate_number=int(d["plate_number"]),
        type=d["type"],
        coord=d["coord"],
        start=d["start"],
        end=d["end"],
        description=d.get("description", ""),
        resulting_piece=ResultingPiece(**rp) if rp is not None else None,
    )


def result_from_dict(d: Dict[str, Any]) -> OptimizationResult:
    wq = d.get("waste_quality") or {}
    return OptimizationResult(
        plate_width=d["plate_width"],
        plate_height=d["plate_height"],
        total_plates=int(d["total_plates"]),
        plates=tuple(_plate_from(p) for p in d["plates"]),
        average_utilization=d["average_utilization"],
        total_waste=d["total_waste"],
        instructions=tuple(_instruction_from(i) for i in d["instructions"]),
        total_guillotine_cuts=int(d["total_guillotine_cuts"]),
        strategy=StrategyInfo(**d["strategy"]),
        waste_quality=WasteQuality(
            reusable_waste_pieces=int(wq.get("reusable_waste_pieces", 0)),
            reusable_waste_area=wq.get("reusable_waste_area", 0.0),
            largest_waste_piece=_waste_from(wq.get("largest_waste_piece")),
        ),
    )


def enhanced_to_dict(res: EnhancedOptimizationResult) -> Dict[str, Any]:
    """Export form of a full optimizer answer (not meant to be read back)."""
    return to_jsonable(res)


def save_json(payload: Any, path: str | Path, *, indent: int = 2) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(to_jsonable(payload), f, ensure_ascii=False, indent=indent)


# ----------------------------
# Projects
# ----------------------------

@dataclass(frozen=True)
class ProjectRecord:
    project_name: str
    plate_width: float
    plate_height: float
    cuts_requested: Tuple[CutRequest, ...]
    optimization_result: OptimizationResult
    display_orientation: DisplayOrientation = DisplayOrientation.TOP_LEFT
    id: str = ""
    created_at: str = ""
    updated_at: str = ""


def record_to_dict(rec: ProjectRecord) -> Dict[str, Any]:
    return {
        "id": rec.id,
        "project_name": rec.project_name,
        "plate_width": rec.plate_width,
        "plate_height": rec.plate_height,
        "cuts_requested": [request_to_dict(r) for r in rec.cuts_requested],
        "optimization_result": result_to_dict(rec.optimization_result),
        "display_orientation": rec.display_orientation.value,
        "created_at": rec.created_at,
        "updated_at": rec.updated_at,
    }


def record_from_dict(d: Dict[str, Any]) -> ProjectRecord:
    return ProjectRecord(
        id=d.get("id", ""),
        project_name=d["project_name"],
        plate_width=d["plate_width"],
        plate_height=d["plate_height"],
        cuts_requested=tuple(request_from_dict(r) for r in d["cuts_requested"]),
        optimization_result=result_from_dict(d["optimization_result"]),
        display_orientation=parse_orientation(d.get("display_orientation", "TOP_LEFT")),
        created_at=d.get("created_at", ""),
        updated_at=d.get("updated_at", ""),
    )


_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonProjectRepository:
    """One JSON file per project under `root`."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, project_id: str) -> Path:
        if not _ID_RE.match(project_id or ""):
            raise ValueError(f"Invalid project id: {project_id!r}")
        return self.root / f"{project_id}.json"

    def save(self, record: ProjectRecord) -> str:
        """Store (or overwrite) a project; assigns id / timestamps. Returns the id."""
        now = datetime.now(timezone.utc).isoformat()
        pid = record.id or uuid.uuid4().hex
        stored = ProjectRecord(
            id=pid,
            project_name=record.project_name,
            plate_width=record.plate_width,
            plate_height=record.plate_height,
            cuts_requested=tuple(record.cuts_requested),
            optimization_result=record.optimization_result,
            display_orientation=parse_orientation(record.display_orientation),
            created_at=record.created_at or now,
            updated_at=now,
        )
        save_json(record_to_dict(stored), self._path(pid))
        return pid

    def load(self, project_id: str) -> ProjectRecord:
        path = self._path(project_id)
        if not path.exists():
            raise KeyError(f"No project with id {project_id!r}")
        with path.open("r", encoding="utf-8") as f:
            return record_from_dict(json.load(f))

    def list_projects(self) -> List[ProjectRecord]:
        """Newest first."""
        out = [self.load(p.stem) for p in self.root.glob("*.json") if _ID_RE.match(p.stem)]
        return sorted(out, key=lambda r: r.updated_at, reverse=True)

    def delete(self, project_id: str) -> bool:
        path = self._path(project_id)
        if not path.exists():
            return False
        path.unlink()
        return True
