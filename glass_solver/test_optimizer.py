# glass_solver/test_optimizer.py

from __future__ import annotations

import pytest

from glass_solver.classify import ProfileType
from glass_solver.config import OptimizerConfig
from glass_solver.errors import ErrorKind, InvalidInputError
from glass_solver.optimizer import insights, optimize, select
from glass_solver.sample_data import RandomCutsConfig, generate_random_cuts
from glass_solver.scoring import OptimizationContext
from glass_solver.strategies import Strategy
from glass_solver.types import CutRequest, count_by_request

TALL = [CutRequest("S", 30, 80, quantity=3)]
LAYOUT = OptimizerConfig(dedup_by_layout=True)


def test_exact_fit_answer():
    res = optimize([CutRequest("A", 50, 50, quantity=4)], 100, 100)
    assert res.primary.total_plates == 1
    assert res.primary_score.total_score == pytest.approx(100.0)
    assert res.alternatives == ()
    assert res.profile.type is ProfileType.UNIFORM
    assert res.metadata.context is OptimizationContext.BALANCED
    assert res.metadata.confidence_level == "MEDIUM"
    assert not res.metadata.refinement_applied
    assert res.validation.is_valid
    assert res.suggestions == ()


def test_alternatives_ranked_by_score():
    res = optimize(TALL, 100, 100, enable_refinement=False, config=LAYOUT)
    assert res.primary.strategy.name == "BY_HEIGHT_DESC"
    assert [a.strategy.name for a in res.alternatives] == ["LANDSCAPE_BY_HEIGHT_DESC"]
    totals = [s.total_score for _, s in res.ranked()]
    assert totals == sorted(totals, reverse=True)
    assert res.metadata.strategies_evaluated == 10


def test_same_input_same_answer():
    reqs = generate_random_cuts(RandomCutsConfig(seed=11))
    a = optimize(reqs, 260, 180, enable_refinement=False)
    b = optimize(reqs, 260, 180, enable_refinement=False)
    assert a.primary == b.primary
    assert a.alternatives == b.alternatives
    assert a.primary_score == b.primary_score


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_random_jobs_place_every_piece(seed):
    reqs = generate_random_cuts(RandomCutsConfig(seed=seed))
    res = optimize(reqs, 260, 180, enable_refinement=False)
    assert res.validation.is_valid, res.validation.lines()
    for plan, _ in res.ranked():
        assert count_by_request(plan.all_pieces()) == {r.id: r.quantity for r in reqs}


def test_refinement_runs_on_random_job():
    reqs = generate_random_cuts(RandomCutsConfig(seed=3))
    res = optimize(reqs, 260, 180)
    assert res.validation.is_valid
    assert "refine" in res.metadata.phase_seconds
    if res.metadata.refinement_applied:
        assert res.primary.strategy.name.endswith("+MERGE")


def test_max_alternatives_validated():
    with pytest.raises(InvalidInputError):
        optimize(TALL, 100, 100, max_alternatives=0)


def test_unknown_context_rejected():
    with pytest.raises(InvalidInputError):
        optimize(TALL, 100, 100, context="CHEAPEST")


def test_no_feasible_strategy_gives_flagged_empty_plan():
    res = optimize(
        [CutRequest("T", 40, 80)],
        100,
        50,
        strategies=[Strategy("BY_HEIGHT_DESC", "NONE")],
    )
    assert res.is_degenerate()
    assert res.primary.total_plates == 0
    assert res.primary.strategy.name == "NONE"
    assert res.primary_score.total_score == 0.0
    assert not res.validation.is_valid
    assert res.validation.errors[0].kind is ErrorKind.SCORING_DEGENERATE
    assert "No feasible plan" in "\n".join(insights(res))


def test_select_promotes_alternative():
    res = optimize(TALL, 100, 100, enable_refinement=False, config=LAYOUT)
    picked = select(res, 0)
    assert picked.primary.strategy.name == "LANDSCAPE_BY_HEIGHT_DESC"
    assert [a.strategy.name for a in picked.alternatives] == ["BY_HEIGHT_DESC"]
    assert picked.validation.is_valid
    # original untouched
    assert res.primary.strategy.name == "BY_HEIGHT_DESC"
    with pytest.raises(IndexError):
        select(res, 1)


def test_select_keeps_skipped_validation():
    res = optimize(TALL, 100, 100, enable_refinement=False, enable_validation=False, config=LAYOUT)
    assert not res.validation.checked
    assert not select(res, 0).validation.checked


def test_select_revalidates_with_run_config():
    cfg = OptimizerConfig(dedup_by_layout=True, low_utilization_warning=80.0)
    res = optimize(TALL, 100, 100, enable_refinement=False, config=cfg)
    assert res.metadata.config is cfg
    picked = select(res, 0)
    assert picked.validation.is_valid
    assert any("below 80%" in w.message for w in picked.validation.warnings)


def test_partial_context_weights_do_not_break_optimize():
    cfg = OptimizerConfig(dedup_by_layout=True, context_weights={"PRODUCTION": (0.5, 0.2, 0.3)})
    res = optimize(TALL, 100, 100, context="PRODUCTION", enable_refinement=False, config=cfg)
    assert res.primary.total_plates == 1
    assert len(res.alternatives) == 1


def test_default_dedup_leaves_no_alternative_for_equal_plans():
    res = optimize(TALL, 100, 100, enable_refinement=False)
    assert res.alternatives == ()
    assert res.metadata.strategies_evaluated == 10


def test_rotation_suggestion_for_locked_pieces():
    reqs = [CutRequest("P", 60, 40, quantity=3, can_rotate=False)]
    res = optimize(reqs, 100, 60, enable_refinement=False)
    assert res.primary.total_plates == 3
    kinds = [s.type for s in res.suggestions]
    assert "ROTATION" in kinds
    assert "PLATE_SIZE" in kinds


def test_waste_reuse_suggestion():
    res = optimize([CutRequest("P", 100, 100)], 260, 180, enable_refinement=False)
    assert any(s.type == "WASTE_REUSE" for s in res.suggestions)


def test_insights_summary():
    res = optimize([CutRequest("A", 50, 50, quantity=4)], 100, 100, enable_refinement=False)
    lines = insights(res)
    assert "Profile: UNIFORM (4 pieces, 1 sizes)" in lines
    assert "Plates: 1 (area bound 1)" in lines
    assert any(line.startswith("Confidence:") for line in lines)


def test_phase_timings_recorded():
    res = optimize(TALL, 100, 100, enable_refinement=False)
    for name in ("prevalidate", "classify", "generate", "score", "validate", "suggest"):
        assert name in res.metadata.phase_seconds
    assert res.metadata.elapsed_s >= 0.0
