# glass_solver/optimizer.py
# Optimization orchestrator ("enhanced" entry point):
#   pre-validate -> classify -> generate strategies -> score -> refine
#   -> rank -> validate -> suggestions
#
# The result is immutable; select() returns a new ranking instead of
# swapping entries in place.

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from .classify import RequestProfile, classify
from .config import DEFAULT_CONFIG, OptimizerConfig, resolve_config
from .errors import ErrorKind, InvalidInputError, ValidationIssue
from .logger import LOGGER
from .profile import Profiler
from .scoring import (
    ZERO_SCORE,
    OptimizationContext,
    QualityScore,
    confidence,
    confidence_level,
    parse_context,
    score,
    score_all,
)
from .solver_shelf_cp_sat import refine
from .strategies import Strategy, generate_all, run_strategy
from .types import CutRequest, OptimizationResult, StrategyInfo, empty_result, expand_requests
from .validate import ValidationReport, prevalidate, validate_result


@dataclass(frozen=True)
class Suggestion:
    type: str          # ROTATION | LAST_PLATE | WASTE_REUSE | CONTEXT | PLATE_SIZE
    description: str


@dataclass(frozen=True)
class OptimizationMetadata:
    confidence_level: str
    context: OptimizationContext
    strategies_evaluated: int = 0
    refinement_applied: bool = False
    elapsed_s: float = 0.0
    phase_seconds: Dict[str, float] = field(default_factory=dict)
    config: OptimizerConfig = DEFAULT_CONFIG


@dataclass(frozen=True)
class EnhancedOptimizationResult:
    primary: OptimizationResult
    primary_score: QualityScore
    alternatives: Tuple[OptimizationResult, ...]
    alternative_scores: Tuple[QualityScore, ...]
    profile: RequestProfile
    metadata: OptimizationMetadata
    validation: ValidationReport
    suggestions: Tuple[Suggestion, ...] = ()
    requests: Tuple[CutRequest, ...] = ()

    def ranked(self) -> List[Tuple[OptimizationResult, QualityScore]]:
        return [(self.primary, self.primary_score)] + list(zip(self.alternatives, self.alternative_scores))

    def is_degenerate(self) -> bool:
        return self.primary.is_empty()


# ----------------------------
# Suggestions
# ----------------------------

def _rotation_suggestion(
    requests: Sequence[CutRequest],
    primary: OptimizationResult,
    cfg: OptimizerConfig,
) -> Optional[Suggestion]:
    locked = [r for r in requests if not r.can_rotate and r.width != r.height]
    if not locked:
        return None
    unlocked = [dataclasses.replace(r, can_rotate=True) for r in requests]
    pieces = expand_requests(unlocked)
    best = min(
        run_strategy(pieces, primary.plate_width, primary.plate_height, Strategy(o), config=cfg).total_plates
        for o in ("BY_HEIGHT_DESC", "BY_AREA_DESC", "BY_WIDTH_DESC")
    )
    saved = primary.total_plates - best
    if saved <= 0:
        return None
    ids = ", ".join(r.id for r in locked)
    return Suggestion(
        "ROTATION",
        f"Allowing rotation for {ids} could save {saved} plate(s) ({primary.total_plates} -> {best}).",
    )


def _context_suggestion(
    ranked: Sequence[Tuple[OptimizationResult, QualityScore]],
    ctx: OptimizationContext,
    cfg: OptimizerConfig,
) -> Optional[Suggestion]:
    if len(ranked) < 2:
        return None
    primary = ranked[0][0]
    for other in OptimizationContext:
        if other == ctx:
            continue
        best = max((r for r, _ in ranked), key=lambda r: score(r, other, config=cfg).total_score)
        if best is not primary and best.strategy.name != primary.strategy.name:
            return Suggestion(
                "CONTEXT",
                f"Context {other.value} would pick {best.strategy.name} "
                f"({best.total_plates} plates, {best.total_guillotine_cuts} cuts) instead of "
                f"{primary.strategy.name} ({primary.total_plates} plates, {primary.total_guillotine_cuts} cuts).",
            )
    return None


def build_suggestions(
    requests: Sequence[CutRequest],
    ranked: Sequence[Tuple[OptimizationResult, QualityScore]],
    profile: RequestProfile,
    ctx: OptimizationContext,
    config: Optional[OptimizerConfig] = None,
) -> Tuple[Suggestion, ...]:
    """Descriptive, non-binding hints about the chosen plan."""
    cfg = resolve_config(config)
    if not ranked or ranked[0][0].is_empty():
        return ()
    primary = ranked[0][0]
    out: List[Suggestion] = []

    rot = _rotation_suggestion(requests, primary, cfg)
    if rot is not None:
        out.append(rot)

    last = primary.plates[-1]
    if primary.total_plates > 1 and last.utilization < cfg.last_plate_warning:
        ids = sorted({p.request_id for p in last.pieces})
        out.append(
            Suggestion(
                "LAST_PLATE",
                f"Plate {last.plate_number} is only {last.utilization:.1f}% used "
                f"({', '.join(ids)}); postponing or combining these pieces with another job saves a plate.",
            )
        )

    wq = primary.waste_quality
    if wq.reusable_waste_pieces > 0 and wq.largest_waste_piece is not None:
        lw = wq.largest_waste_piece
        out.append(
            Suggestion(
                "WASTE_REUSE",
                f"{wq.reusable_waste_pieces} reusable offcut(s) totalling {wq.reusable_waste_area:,.0f} cm²; "
                f"largest {lw.width:g}x{lw.height:g} cm on plate "
                f"{_plate_of_waste(primary, lw)} can be stored for later jobs.",
            )
        )

    ctx_hint = _context_suggestion(ranked, ctx, cfg)
    if ctx_hint is not None:
        out.append(ctx_hint)

    if primary.total_plates > profile.theoretical_min_plates:
        out.append(
            Suggestion(
                "PLATE_SIZE",
                f"Plan uses {primary.total_plates} plates while the area bound is "
                f"{profile.theoretical_min_plates}; a different plate size may cut waste.",
            )
        )
    return tuple(out)


def _plate_of_waste(result: OptimizationResult, waste) -> int:
    for plate in result.plates:
        if waste in plate.waste_areas:
            return plate.plate_number
    return 0


# ----------------------------
# Orchestrator
# ----------------------------

def _degenerate(
    requests: Sequence[CutRequest],
    plate_w: float,
    plate_h: float,
    profile: RequestProfile,
    ctx: OptimizationContext,
    evaluated: int,
    prof: Profiler,
    t0: float,
    cfg: OptimizerConfig,
) -> EnhancedOptimizationResult:
    msg = "No feasible strategy produced a plan"
    LOGGER.warn(msg)
    return EnhancedOptimizationResult(
        primary=empty_result(plate_w, plate_h, StrategyInfo("NONE", msg)),
        primary_score=ZERO_SCORE,
        alternatives=(),
        alternative_scores=(),
        profile=profile,
        metadata=OptimizationMetadata(
            confidence_level="LOW",
            context=ctx,
            strategies_evaluated=evaluated,
            elapsed_s=time.perf_counter() - t0,
            phase_seconds=prof.as_dict(),
            config=cfg,
        ),
        validation=ValidationReport(
            is_valid=False,
            errors=(ValidationIssue("ERROR", msg, kind=ErrorKind.SCORING_DEGENERATE),),
        ),
        requests=tuple(requests),
    )


def optimize(
    requests: Sequence[CutRequest],
    plate_w: float,
    plate_h: float,
    *,
    context: Union[str, OptimizationContext] = OptimizationContext.BALANCED,
    max_alternatives: int = 8,
    enable_refinement: bool = True,
    enable_validation: bool = True,
    config: Optional[OptimizerConfig] = None,
    strategies: Optional[Sequence[Strategy]] = None,
    per_plate_steps: bool = False,
) -> EnhancedOptimizationResult:
    """
    Best plan + ranked alternatives for a cut list.

    Raises InvalidInputError / PieceExceedsPlateError for bad input. A run in
    which no strategy is feasible returns an empty plan flagged with a
    SCORING_DEGENERATE validation error instead of raising.
    """
    t0 = time.perf_counter()
    cfg = resolve_config(config)
    ctx = parse_context(context)
    if isinstance(max_alternatives, bool) or not isinstance(max_alternatives, int) or max_alternatives < 1:
        raise InvalidInputError(
            [ValidationIssue("ERROR", f"max_alternatives must be an integer >= 1, got {max_alternatives!r}",
                             kind=ErrorKind.INVALID_INPUT)]
        )
    requests = tuple(requests)
    prof = Profiler()

    with prof.phase("prevalidate"):
        prevalidate(requests, plate_w, plate_h)
    with prof.phase("classify"):
        profile = classify(requests, plate_w, plate_h)
    LOGGER.debug(f"Profile {profile.type.value}: {profile.piece_count} pieces, "
                 f"area bound {profile.theoretical_min_plates} plate(s)")

    with prof.phase("generate"):
        gen = generate_all(
            requests,
            plate_w,
            plate_h,
            max_alternatives=max_alternatives,
            strategies=strategies,
            config=cfg,
            per_plate_steps=per_plate_steps,
        )
    if not gen.results:
        return _degenerate(requests, plate_w, plate_h, profile, ctx, gen.evaluated, prof, t0, cfg)

    with prof.phase("score"):
        candidates = list(gen.results)
        scores = score_all(candidates, ctx, config=cfg)
        ranked = sorted(zip(candidates, scores), key=lambda rs: -rs[1].total_score)

    refined_applied = False
    if enable_refinement:
        with prof.phase("refine"):
            refined = refine(ranked[0][0], requests, config=cfg, per_plate_steps=per_plate_steps)
            if refined is not None:
                s = score(refined, ctx, config=cfg)
                if s.total_score > ranked[0][1].total_score:
                    LOGGER.info(f"Refinement: {ranked[0][0].total_plates} -> {refined.total_plates} plates")
                    ranked.insert(0, (refined, s))
                    ranked = ranked[:max_alternatives]
                    refined_applied = True
                else:
                    LOGGER.debug("Refinement did not improve the score; discarded")
        conf = confidence([s.total_score for _, s in ranked])
        ranked = [(r, s.with_confidence(conf)) for r, s in ranked]

    primary, primary_score = ranked[0]

    if enable_validation:
        with prof.phase("validate"):
            report = validate_result(primary, requests, cfg)
        for e in report.errors:
            LOGGER.error(e.format())
    else:
        report = ValidationReport(is_valid=True, checked=False)

    with prof.phase("suggest"):
        suggestions = build_suggestions(requests, ranked, profile, ctx, cfg)

    return EnhancedOptimizationResult(
        primary=primary,
        primary_score=primary_score,
        alternatives=tuple(r for r, _ in ranked[1:]),
        alternative_scores=tuple(s for _, s in ranked[1:]),
        profile=profile,
        metadata=OptimizationMetadata(
            confidence_level=confidence_level(primary_score.confidence),
            context=ctx,
            strategies_evaluated=gen.evaluated,
            refinement_applied=refined_applied,
            elapsed_s=time.perf_counter() - t0,
            phase_seconds=prof.as_dict(),
            config=cfg,
        ),
        validation=report,
        suggestions=suggestions,
        requests=requests,
    )


def select(result: EnhancedOptimizationResult, index: int) -> EnhancedOptimizationResult:
    """
    Promote alternative `index` (0-based) to primary; the previous primary and
    the other alternatives are re-ranked by score. Returns a new object.
    """
    if not 0 <= index < len(result.alternatives):
        raise IndexError(f"Alternative index {index} out of range (0..{len(result.alternatives) - 1})")
    chosen = (result.alternatives[index], result.alternative_scores[index])
    rest = [(result.primary, result.primary_score)] + [
        rs for k, rs in enumerate(zip(result.alternatives, result.alternative_scores)) if k != index
    ]
    rest.sort(key=lambda rs: -rs[1].total_score)

    report = result.validation
    if report.checked and result.requests:
        report = validate_result(chosen[0], result.requests, result.metadata.config)

    return dataclasses.replace(
        result,
        primary=chosen[0],
        primary_score=chosen[1],
        alternatives=tuple(r for r, _ in rest),
        alternative_scores=tuple(s for _, s in rest),
        validation=report,
    )


def insights(result: EnhancedOptimizationResult) -> List[str]:
    """Human-readable summary lines."""
    p, s, md = result.primary, result.primary_score, result.metadata
    lines = [
        f"Profile: {result.profile.type.value} ({result.profile.piece_count} pieces, "
        f"{result.profile.unique_sizes} sizes)",
        f"Context: {md.context.value}",
    ]
    if result.is_degenerate():
        lines.append("No feasible plan was found.")
        return lines
    lines += [
        f"Strategy: {p.strategy.name} - {p.strategy.description}",
        f"Plates: {p.total_plates} (area bound {result.profile.theoretical_min_plates})",
        f"Average utilization: {p.average_utilization:.1f}%",
        f"Total waste: {p.total_waste:,.0f} cm², reusable offcuts: {p.waste_quality.reusable_waste_pieces}",
        f"Guillotine cuts: {p.total_guillotine_cuts}",
        f"Score: {s.total_score:.1f} (compactness {s.compactness_score:.1f}, waste {s.waste_score:.1f}, "
        f"cuts {s.cut_score:.1f})",
        f"Confidence: {s.confidence:.1f} ({md.confidence_level}), "
        f"{md.strategies_evaluated} strategies evaluated, {len(result.alternatives)} alternative(s)",
    ]
    if md.refinement_applied:
        lines.append("CP-SAT refinement merged plates.")
    if not result.validation.checked:
        lines.append("Validation: skipped")
    elif result.validation.is_valid:
        lines.append(f"Validation: OK ({len(result.validation.warnings)} warning(s))")
    else:
        lines.append(f"Validation: {len(result.validation.errors)} error(s)")
    lines += [f"Hint: {sg.description}" for sg in result.suggestions]
    return lines
