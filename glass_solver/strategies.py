# glass_solver/strategies.py
# Strategy generator: run the shelf packer under several deterministic
# piece orderings / rotation policies and collect distinct plans.
#
# A strategy = ordering + rotation policy:
#   ALLOW      rotation fallback when the given orientation does not fit
#   NONE       never rotate (grain / pattern glass); skipped if infeasible
#   LANDSCAPE  turn rotatable pieces long side horizontal first, fallback allowed

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import OptimizerConfig, resolve_config
from .errors import ErrorKind, InvalidInputError, PieceExceedsPlateError, ValidationIssue
from .instructions import plan_instructions
from .logger import LOGGER
from .metrics import average_utilization, compute_waste_quality, total_waste_area
from .packer import pack
from .types import (
    CutRequest,
    OptimizationResult,
    PieceInstance,
    PlateOptimization,
    StrategyInfo,
    expand_requests,
)

SortKey = Callable[[PieceInstance], Tuple[float, ...]]

ORDERINGS: Dict[str, SortKey] = {
    "BY_HEIGHT_DESC": lambda p: (-p.height, -p.width),
    "BY_WIDTH_DESC": lambda p: (-p.width, -p.height),
    "BY_AREA_DESC": lambda p: (-p.area, -max(p.width, p.height)),
    "BY_LONG_SIDE_DESC": lambda p: (-max(p.width, p.height), -min(p.width, p.height)),
    "BY_PERIMETER_DESC": lambda p: (-(p.width + p.height), -max(p.width, p.height)),
}

ORDERING_TEXT = {
    "BY_HEIGHT_DESC": "tallest pieces first, compact shelves",
    "BY_WIDTH_DESC": "widest pieces first, fewer and wider shelves",
    "BY_AREA_DESC": "largest area first, fewer plates for mixed sizes",
    "BY_LONG_SIDE_DESC": "longest side first",
    "BY_PERIMETER_DESC": "largest perimeter first",
}

ROTATION_POLICIES = ("ALLOW", "NONE", "LANDSCAPE")


@dataclass(frozen=True)
class Strategy:
    ordering: str
    rotation: str = "ALLOW"

    def __post_init__(self):
        if self.ordering not in ORDERINGS:
            raise ValueError(f"Unknown ordering: {self.ordering!r}")
        if self.rotation not in ROTATION_POLICIES:
            raise ValueError(f"Unknown rotation policy: {self.rotation!r}")

    @property
    def name(self) -> str:
        if self.rotation == "NONE":
            return f"NO_ROTATION_{self.ordering}"
        if self.rotation == "LANDSCAPE":
            return f"LANDSCAPE_{self.ordering}"
        return self.ordering

    @property
    def allow_rotation(self) -> bool:
        return self.rotation != "NONE"

    def info(self) -> StrategyInfo:
        text = ORDERING_TEXT[self.ordering]
        if self.rotation == "NONE":
            text += "; rotation disabled"
        elif self.rotation == "LANDSCAPE":
            text += "; pieces pre-turned landscape"
        else:
            text += "; rotation fallback"
        return StrategyInfo(name=self.name, description=text.capitalize())


def default_strategies() -> List[Strategy]:
    """Evaluation order; earlier strategies win ties during de-duplication."""
    return [
        Strategy("BY_HEIGHT_DESC"),
        Strategy("BY_AREA_DESC"),
        Strategy("BY_WIDTH_DESC"),
        Strategy("BY_HEIGHT_DESC", "LANDSCAPE"),
        Strategy("BY_LONG_SIDE_DESC"),
        Strategy("BY_PERIMETER_DESC"),
        Strategy("BY_AREA_DESC", "LANDSCAPE"),
        Strategy("BY_HEIGHT_DESC", "NONE"),
        Strategy("BY_WIDTH_DESC", "NONE"),
        Strategy("BY_AREA_DESC", "NONE"),
    ]


def strategy_by_name(name: str) -> Strategy:
    for s in all_strategies():
        if s.name == name:
            return s
    raise ValueError(f"Unknown strategy: {name!r}")


def all_strategies() -> List[Strategy]:
    return [Strategy(o, r) for r in ROTATION_POLICIES for o in ORDERINGS]


def order_pieces(pieces: Sequence[PieceInstance], strategy: Strategy) -> List[PieceInstance]:
    work = list(pieces)
    if strategy.rotation == "LANDSCAPE":
        work = [p.turn() if (p.can_rotate and p.height > p.width) else p for p in work]
    # sorted() is stable, so equal keys keep request order
    return sorted(work, key=ORDERINGS[strategy.ordering])


def assemble_result(
    plates: Sequence[PlateOptimization],
    plate_w: float,
    plate_h: float,
    strategy: StrategyInfo,
    *,
    per_plate_steps: bool = False,
) -> OptimizationResult:
    """Plates -> full plan (cut list, totals, waste quality)."""
    plates = tuple(plates)
    instructions = plan_instructions(plates, per_plate_steps=per_plate_steps)
    return OptimizationResult(
        plate_width=plate_w,
        plate_height=plate_h,
        total_plates=len(plates),
        plates=plates,
        average_utilization=average_utilization(plates),
        total_waste=total_waste_area(plates),
        instructions=instructions,
        total_guillotine_cuts=len(instructions),
        strategy=strategy,
        waste_quality=compute_waste_quality(plates),
    )


def run_strategy(
    pieces: Sequence[PieceInstance],
    plate_w: float,
    plate_h: float,
    strategy: Strategy,
    *,
    config: Optional[OptimizerConfig] = None,
    per_plate_steps: bool = False,
) -> OptimizationResult:
    """Pack -> analyze -> cut list for one strategy. Raises PieceExceedsPlateError if infeasible."""
    cfg = resolve_config(config)
    plates = pack(
        order_pieces(pieces, strategy),
        plate_w,
        plate_h,
        allow_rotation=strategy.allow_rotation,
        reusable_min_area=cfg.reusable_waste_min_area,
    )
    return assemble_result(plates, plate_w, plate_h, strategy.info(), per_plate_steps=per_plate_steps)


def dedup_key(result: OptimizationResult, by_layout: bool = False) -> Tuple:
    key: Tuple = (result.total_plates, round(result.average_utilization, 2))
    if by_layout:
        key += (result.total_guillotine_cuts, result.waste_quality.reusable_waste_pieces)
    return key


@dataclass(frozen=True)
class Generation:
    results: Tuple[OptimizationResult, ...]
    evaluated: int       # strategies actually packed
    skipped: Tuple[str, ...] = ()   # infeasible strategy names
    budget_exhausted: bool = False


def generate_all(
    requests: Sequence[CutRequest],
    plate_w: float,
    plate_h: float,
    *,
    max_alternatives: int = 8,
    strategies: Optional[Sequence[Strategy]] = None,
    config: Optional[OptimizerConfig] = None,
    time_budget_s: Optional[float] = None,
    per_plate_steps: bool = False,
) -> Generation:
    if isinstance(max_alternatives, bool) or not isinstance(max_alternatives, int) or max_alternatives < 1:
        raise InvalidInputError(
            [ValidationIssue("ERROR", f"max_alternatives must be an integer >= 1, got {max_alternatives!r}",
                             kind=ErrorKind.INVALID_INPUT)]
        )
    cfg = resolve_config(config)
    budget = cfg.strategy_time_budget_s if time_budget_s is None else time_budget_s
    pieces = expand_requests(requests)
    strats = list(strategies) if strategies is not None else default_strategies()

    t0 = time.perf_counter()
    results: List[OptimizationResult] = []
    seen = set()
    skipped: List[str] = []
    evaluated = 0
    exhausted = False

    for k, strat in enumerate(strats):
        if k > 0 and time.perf_counter() - t0 > budget:
            LOGGER.debug(f"Strategy budget {budget:g}s exhausted after {evaluated} strategies")
            exhausted = True
            break
        try:
            res = run_strategy(pieces, plate_w, plate_h, strat, config=cfg, per_plate_steps=per_plate_steps)
        except PieceExceedsPlateError as e:
            LOGGER.debug(f"Strategy {strat.name} infeasible: {', '.join(e.request_ids)}")
            skipped.append(strat.name)
            continue
        evaluated += 1
        key = dedup_key(res, cfg.dedup_by_layout)
        if key in seen:
            LOGGER.debug(f"Strategy {strat.name} duplicates an earlier plan {key}")
            continue
        seen.add(key)
        results.append(res)
        LOGGER.debug(
            f"Strategy {strat.name}: plates={res.total_plates} "
            f"util={res.average_utilization:.2f}% cuts={res.total_guillotine_cuts}"
        )

    if len(results) > max_alternatives:
        keep = sorted(range(len(results)), key=lambda i: results[i].total_plates)[:max_alternatives]
        results = [results[i] for i in sorted(keep)]

    return Generation(
        results=tuple(results),
        evaluated=evaluated,
        skipped=tuple(skipped),
        budget_exhausted=exhausted,
    )


def generate(
    requests: Sequence[CutRequest],
    plate_w: float,
    plate_h: float,
    *,
    max_alternatives: int = 8,
    strategies: Optional[Sequence[Strategy]] = None,
    config: Optional[OptimizerConfig] = None,
    time_budget_s: Optional[float] = None,
    per_plate_steps: bool = False,
) -> Tuple[OptimizationResult, ...]:
    """
    Distinct candidate plans, in strategy order (not yet ranked).
    Empty when no strategy is feasible.
    """
    return generate_all(
        requests,
        plate_w,
        plate_h,
        max_alternatives=max_alternatives,
        strategies=strategies,
        config=config,
        time_budget_s=time_budget_s,
        per_plate_steps=per_plate_steps,
    ).results
