# glass_solver/scoring.py
# Quality scoring of a plan (0..100) under a business context.
#
#   compactness  fewer plates (vs. area lower bound) and higher utilization
#   waste        less waste, and what is left is reusable / in one big piece
#   cut          fewer guillotine cuts beyond the unavoidable n - plates
#   confidence   agreement of the best candidates' totals

from __future__ import annotations

import statistics
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Union

from .config import DEFAULTS, OptimizerConfig, clamp, resolve_config
from .errors import ErrorKind, InvalidInputError, ValidationIssue
from .metrics import lower_bound_plates
from .types import OptimizationResult


class OptimizationContext(str, Enum):
    PRODUCTION = "PRODUCTION"
    EXPENSIVE_MATERIAL = "EXPENSIVE_MATERIAL"
    QUICK_CUT = "QUICK_CUT"
    BALANCED = "BALANCED"


def parse_context(value: Union[str, OptimizationContext]) -> OptimizationContext:
    if isinstance(value, OptimizationContext):
        return value
    try:
        return OptimizationContext(str(value).strip().upper())
    except ValueError:
        raise InvalidInputError(
            [ValidationIssue("ERROR", f"Unknown optimization context {value!r}; "
                                      f"expected one of {[c.value for c in OptimizationContext]}",
                             kind=ErrorKind.INVALID_INPUT)]
        ) from None


@dataclass(frozen=True)
class QualityScore:
    total_score: float
    compactness_score: float
    waste_score: float
    cut_score: float
    confidence: float

    def with_confidence(self, confidence: float) -> "QualityScore":
        return QualityScore(
            total_score=self.total_score,
            compactness_score=self.compactness_score,
            waste_score=self.waste_score,
            cut_score=self.cut_score,
            confidence=confidence,
        )


ZERO_SCORE = QualityScore(0.0, 0.0, 0.0, 0.0, 0.0)


def compactness_score(result: OptimizationResult, config: Optional[OptimizerConfig] = None) -> float:
    cfg = resolve_config(config)
    if result.total_plates == 0:
        return 0.0
    used = sum(p.used_area for p in result.plates)
    lb = lower_bound_plates(used, result.plate_width, result.plate_height)
    plate_part = min(1.0, lb / result.total_plates)
    util_part = clamp(result.average_utilization / 100.0, 0.0, 1.0)
    return 100.0 * (cfg.compactness_plate_weight * plate_part
                    + cfg.compactness_util_weight * util_part)


def waste_score(result: OptimizationResult, config: Optional[OptimizerConfig] = None) -> float:
    cfg = resolve_config(config)
    if result.total_plates == 0:
        return 0.0
    total_area = result.total_plates * result.plate_width * result.plate_height
    waste_fraction = clamp(result.total_waste / total_area, 0.0, 1.0)
    wq = result.waste_quality
    if result.total_waste <= 1e-9:
        reusable_share = largest_share = 1.0
    else:
        reusable_share = clamp(wq.reusable_waste_area / result.total_waste, 0.0, 1.0)
        largest = wq.largest_waste_piece.area if wq.largest_waste_piece is not None else 0.0
        largest_share = clamp(largest / result.total_waste, 0.0, 1.0)
    return 100.0 * (cfg.waste_low_weight * (1.0 - waste_fraction)
                    + cfg.waste_reusable_weight * reusable_share
                    + cfg.waste_largest_weight * largest_share)


def cut_score(result: OptimizationResult, config: Optional[OptimizerConfig] = None) -> float:
    cfg = resolve_config(config)
    n = result.piece_count()
    if n == 0:
        return 0.0
    # n - plates cuts are the minimum to free n pieces
    excess = result.total_guillotine_cuts - max(0, n - result.total_plates)
    return 100.0 * clamp(1.0 - excess / (cfg.cut_slack_per_piece * n), 0.0, 1.0)


def confidence(totals: Sequence[float]) -> float:
    """
    Deterministic agreement of the top candidates:
    100 - 2 * stddev(top-5 totals), damped when fewer than 3 candidates exist.
    """
    if not totals:
        return 0.0
    top = sorted(totals, reverse=True)[: DEFAULTS.confidence_top_k]
    spread = statistics.pstdev(top) if len(top) > 1 else 0.0
    base = clamp(100.0 - DEFAULTS.confidence_spread_factor * spread, 0.0, 100.0)
    coverage = 0.5 + 0.5 * min(1.0, len(totals) / DEFAULTS.confidence_min_candidates)
    return base * coverage


def confidence_level(value: float) -> str:
    if value >= DEFAULTS.confidence_high:
        return "HIGH"
    if value >= DEFAULTS.confidence_medium:
        return "MEDIUM"
    return "LOW"


def score(
    result: OptimizationResult,
    context: Union[str, OptimizationContext] = OptimizationContext.BALANCED,
    *,
    peers: Optional[Sequence[float]] = None,
    config: Optional[OptimizerConfig] = None,
) -> QualityScore:
    """
    Score one plan. `peers` are the total scores of all competing candidates
    (this one included) used for confidence; without them confidence only
    reflects a single candidate.
    """
    cfg = resolve_config(config)
    ctx = parse_context(context)
    if result.total_plates == 0:
        return ZERO_SCORE
    wc, ww, wk = cfg.weights_for(ctx.value)
    c, w, k = compactness_score(result, cfg), waste_score(result, cfg), cut_score(result, cfg)
    total = clamp(wc * c + ww * w + wk * k, 0.0, 100.0)
    conf = confidence(list(peers) if peers is not None else [total])
    return QualityScore(
        total_score=total,
        compactness_score=c,
        waste_score=w,
        cut_score=k,
        confidence=conf,
    )


def score_all(
    results: Sequence[OptimizationResult],
    context: Union[str, OptimizationContext] = OptimizationContext.BALANCED,
    *,
    config: Optional[OptimizerConfig] = None,
) -> List[QualityScore]:
    """Score every candidate; all share the confidence of the set."""
    raw = [score(r, context, config=config) for r in results]
    conf = confidence([s.total_score for s in raw])
    return [s.with_confidence(conf) for s in raw]
