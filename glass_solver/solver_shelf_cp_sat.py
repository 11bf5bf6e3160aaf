# glass_solver/solver_shelf_cp_sat.py
# CP-SAT (OR-Tools) shelf model used to refine a greedy plan:
# - take the two least-utilized plates of a plan,
# - try to place ALL of their pieces on one plate with a shelf structure
#   (horizontal bands, pieces left-to-right inside a band),
# - keep the merged plan only if it still passes every plan check.
#
# Lengths are scaled to integers (SCALE units per cm). Piece sizes round up and
# plate sizes round down, so an integer-feasible layout is feasible in cm too.

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ortools.sat.python import cp_model

from .config import DEFAULTS, OptimizerConfig, resolve_config
from .logger import LOGGER
from .metrics import build_plate, lower_bound_plates
from .strategies import assemble_result
from .types import CutRequest, OptimizationResult, PieceInstance, PlacedPiece, PlateOptimization, StrategyInfo
from .validate import plan_errors

MERGE_SUFFIX = "+MERGE"


@dataclass(frozen=True)
class SolverParams:
    time_limit_s: float = DEFAULTS.refine_time_limit_s
    scale: int = DEFAULTS.cp_sat_scale
    workers: int = DEFAULTS.cp_sat_workers

    # Limit shelves to keep model small; if None, uses len(pieces)
    max_shelves: Optional[int] = None


def _scaled_up(v: float, scale: int) -> int:
    return int(math.ceil(v * scale - 1e-6))


def _scaled_down(v: float, scale: int) -> int:
    return int(math.floor(v * scale + 1e-6))


def solve_single_plate_shelves(
    pieces: Sequence[PieceInstance],
    plate_w: float,
    plate_h: float,
    params: Optional[SolverParams] = None,
) -> Optional[List[PlacedPiece]]:
    """
    Place ALL pieces on ONE plate using shelf structure.
    Returns placements (cm, top-left frame) or None if no layout was found in time.
    """
    params = params or SolverParams()
    scale = int(params.scale)
    W, H = _scaled_down(plate_w, scale), _scaled_down(plate_h, scale)

    n = len(pieces)
    if n == 0:
        return []
    dims = [(_scaled_up(p.width, scale), _scaled_up(p.height, scale)) for p in pieces]

    max_shelves = params.max_shelves if params.max_shelves is not None else n
    max_shelves = max(1, min(max_shelves, n))

    m = cp_model.CpModel()

    # Rotation decision (only meaningful if piece can rotate)
    rot = []
    for i, p in enumerate(pieces):
        w0, h0 = dims[i]
        if p.can_rotate and w0 != h0:
            rot.append(m.NewBoolVar(f"rot[{i}]"))
        else:
            rot.append(m.NewConstant(0))

    # Effective dims via linearization: w = w0 + rot*(h0-w0), h = h0 + rot*(w0-h0)
    w_eff = []
    h_eff = []
    for i in range(n):
        w0, h0 = dims[i]
        wv = m.NewIntVar(0, max(w0, h0), f"w[{i}]")
        hv = m.NewIntVar(0, max(w0, h0), f"h[{i}]")
        m.Add(wv == w0 + (h0 - w0) * rot[i])
        m.Add(hv == h0 + (w0 - h0) * rot[i])
        w_eff.append(wv)
        h_eff.append(hv)

    # Every piece goes to exactly one shelf
    in_shelf = [[m.NewBoolVar(f"in_shelf[{i},{s}]") for s in range(max_shelves)] for i in range(n)]
    for i in range(n):
        m.AddExactlyOne(in_shelf[i])

    shelf_h = [m.NewIntVar(0, H, f"shelf_h[{s}]") for s in range(max_shelves)]
    shelf_used = [m.NewBoolVar(f"shelf_used[{s}]") for s in range(max_shelves)]
    for s in range(max_shelves):
        m.Add(sum(in_shelf[i][s] for i in range(n)) >= 1).OnlyEnforceIf(shelf_used[s])
        m.Add(sum(in_shelf[i][s] for i in range(n)) == 0).OnlyEnforceIf(shelf_used[s].Not())
        for i in range(n):
            m.Add(shelf_h[s] >= h_eff[i]).OnlyEnforceIf(in_shelf[i][s])
        m.Add(shelf_h[s] == 0).OnlyEnforceIf(shelf_used[s].Not())

    # Used shelves first (symmetry break)
    for s in range(max_shelves - 1):
        m.Add(shelf_used[s] >= shelf_used[s + 1])

    # Shelves stacked top-down
    shelf_y0 = [m.NewIntVar(0, H, f"shelf_y0[{s}]") for s in range(max_shelves)]
    m.Add(shelf_y0[0] == 0)
    for s in range(1, max_shelves):
        m.Add(shelf_y0[s] == shelf_y0[s - 1] + shelf_h[s - 1])
    total_height = m.NewIntVar(0, H, "total_height")
    m.Add(total_height == shelf_y0[max_shelves - 1] + shelf_h[max_shelves - 1])

    # Left-to-right inside a shelf: 1D no-overlap with optional intervals
    x = [m.NewIntVar(0, W, f"x[{i}]") for i in range(n)]
    for i in range(n):
        m.Add(x[i] + w_eff[i] <= W)
    for s in range(max_shelves):
        intervals = []
        for i in range(n):
            end = m.NewIntVar(0, W, f"end[{i},{s}]")
            m.Add(end == x[i] + w_eff[i])
            intervals.append(m.NewOptionalIntervalVar(x[i], w_eff[i], end, in_shelf[i][s], f"itv[{i},{s}]"))
        m.AddNoOverlap(intervals)

    # Fewer shelves (= fewer full-width cuts) first, then a lower stack
    # (bigger reusable remainder at the bottom).
    num_shelves_used = m.NewIntVar(0, max_shelves, "num_shelves_used")
    m.Add(num_shelves_used == sum(shelf_used))
    m.Minimize(num_shelves_used * (H + 1) + total_height)

    solver = cp_model.CpSolver()
    solver.parameters.max_time_in_seconds = float(max(0.01, params.time_limit_s))
    solver.parameters.num_workers = int(params.workers)

    status = solver.Solve(m)
    if status not in (cp_model.OPTIMAL, cp_model.FEASIBLE):
        LOGGER.debug(f"CP-SAT merge: no layout ({solver.StatusName(status)})")
        return None

    placements: List[PlacedPiece] = []
    for i, p in enumerate(pieces):
        shelf = next(s for s in range(max_shelves) if solver.Value(in_shelf[i][s]) == 1)
        ri = int(solver.Value(rot[i])) == 1
        w, h = (p.height, p.width) if ri else (p.width, p.height)
        placements.append(
            PlacedPiece(
                id=p.uid,
                request_id=p.request_id,
                x=solver.Value(x[i]) / scale,
                y=solver.Value(shelf_y0[shelf]) / scale,
                width=w,
                height=h,
                rotated=ri,
            )
        )
    placements.sort(key=lambda p: (p.y, p.x))
    return placements


def _instances_from_plates(
    plates: Sequence[PlateOptimization],
    can_rotate: Dict[str, bool],
) -> List[PieceInstance]:
    """Placed pieces back to request-oriented instances."""
    out: List[PieceInstance] = []
    for plate in plates:
        for p in plate.pieces:
            w, h = (p.height, p.width) if p.rotated else (p.width, p.height)
            out.append(
                PieceInstance(
                    uid=p.id,
                    request_id=p.request_id,
                    width=w,
                    height=h,
                    can_rotate=can_rotate.get(p.request_id, p.rotated),
                    order=len(out),
                )
            )
    return out


def _merged_strategy(info: StrategyInfo) -> StrategyInfo:
    if info.name.endswith(MERGE_SUFFIX):
        return info
    return StrategyInfo(
        name=info.name + MERGE_SUFFIX,
        description=(info.description + "; two plates merged by CP-SAT").strip("; "),
    )


def merge_lowest_plates(
    result: OptimizationResult,
    requests: Sequence[CutRequest],
    *,
    time_limit_s: float,
    config: Optional[OptimizerConfig] = None,
    per_plate_steps: bool = False,
) -> Optional[OptimizationResult]:
    """One merge round; None when skipped, infeasible or rejected."""
    cfg = resolve_config(config)
    W, H = result.plate_width, result.plate_height
    plates = list(result.plates)
    if len(plates) < 2:
        return None
    used = sum(p.used_area for p in plates)
    if len(plates) <= lower_bound_plates(used, W, H):
        return None

    pair = sorted(plates, key=lambda p: (p.utilization, p.plate_number))[:2]
    if sum(p.used_area for p in pair) > W * H + 1e-9:
        return None
    n_pieces = sum(len(p.pieces) for p in pair)
    if n_pieces > cfg.refine_max_pieces:
        LOGGER.debug(f"CP-SAT merge skipped: {n_pieces} pieces > {cfg.refine_max_pieces}")
        return None

    can_rotate = {r.id: r.can_rotate for r in requests}
    placements = solve_single_plate_shelves(
        _instances_from_plates(pair, can_rotate),
        W,
        H,
        SolverParams(time_limit_s=time_limit_s),
    )
    if placements is None:
        return None

    # Merged plate takes the slot of the first of the pair; renumber the rest.
    first = min(p.plate_number for p in pair)
    dropped = {p.plate_number for p in pair} - {first}
    new_plates: List[PlateOptimization] = []
    for plate in plates:
        if plate.plate_number in dropped:
            continue
        pieces = placements if plate.plate_number == first else list(plate.pieces)
        new_plates.append(
            build_plate(len(new_plates) + 1, pieces, W, H, reusable_min_area=cfg.reusable_waste_min_area)
        )

    merged = assemble_result(new_plates, W, H, _merged_strategy(result.strategy), per_plate_steps=per_plate_steps)
    errors = plan_errors(merged, requests)
    if errors:
        LOGGER.warn(f"CP-SAT merge rejected, {len(errors)} plan error(s): {errors[0].format()}")
        return None
    return merged


def refine(
    result: OptimizationResult,
    requests: Sequence[CutRequest],
    *,
    config: Optional[OptimizerConfig] = None,
    time_limit_s: Optional[float] = None,
    max_rounds: Optional[int] = None,
    per_plate_steps: bool = False,
) -> Optional[OptimizationResult]:
    """
    Repeatedly merge the two least-utilized plates within a wall-clock budget.
    Returns the improved plan, or None if nothing could be merged.
    """
    cfg = resolve_config(config)
    budget = cfg.refine_time_limit_s if time_limit_s is None else float(time_limit_s)
    rounds = cfg.refine_max_rounds if max_rounds is None else int(max_rounds)

    t0 = time.perf_counter()
    best: Optional[OptimizationResult] = None
    current = result
    for k in range(rounds):
        remaining = budget - (time.perf_counter() - t0)
        if remaining <= 0:
            LOGGER.debug(f"Refinement budget exhausted after {k} round(s)")
            break
        merged = merge_lowest_plates(
            current, requests, time_limit_s=remaining, config=cfg, per_plate_steps=per_plate_steps
        )
        if merged is None:
            break
        LOGGER.debug(f"Refinement round {k + 1}: {current.total_plates} -> {merged.total_plates} plates")
        best = current = merged
    return best
