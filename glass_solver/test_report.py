# glass_solver/test_report.py
# Presentation helpers: text report, drawings, sample jobs, profiling.

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from glass_solver.config import OptimizerConfig  # noqa: E402
from glass_solver.optimizer import optimize  # noqa: E402
from glass_solver.plotting import PlotStyle, plot_result, save_result_png  # noqa: E402
from glass_solver.profile import Profiler  # noqa: E402
from glass_solver.report import format_cuts, format_report, format_result  # noqa: E402
from glass_solver.sample_data import (  # noqa: E402
    RandomCutsConfig,
    add_job_prefix,
    generate_random_cuts,
    merge_jobs,
)
from glass_solver.types import CutRequest  # noqa: E402
from glass_solver.utils import sort_cuts_readable, to_jsonable  # noqa: E402


@pytest.fixture(scope="module")
def answer():
    cfg = OptimizerConfig(dedup_by_layout=True)
    return optimize([CutRequest("S", 30, 80, quantity=3)], 100, 100, enable_refinement=False, config=cfg)


def test_report_lists_plan_and_alternatives(answer):
    text = format_report(answer, title="Job 42")
    assert text.startswith("Job 42\n======")
    assert "Alternatives:" in text
    assert "[0] LANDSCAPE_BY_HEIGHT_DESC" in text
    assert "-- Cuts --" in text


def test_result_text_has_every_cut(answer):
    text = format_result(answer.primary)
    for line in format_cuts(answer.primary.instructions):
        assert line in text


def test_plot_has_one_axis_per_plate(answer):
    fig = plot_result(answer.primary, style=PlotStyle(show_grid=True))
    try:
        assert answer.primary.total_plates == 1
        assert len(fig.axes) == 1
    finally:
        plt.close(fig)


def test_save_png(answer, tmp_path):
    path = tmp_path / "plan.png"
    save_result_png(answer.primary, str(path))
    assert path.stat().st_size > 0


def test_sample_jobs_are_seeded():
    a = generate_random_cuts(RandomCutsConfig(seed=5))
    b = generate_random_cuts(RandomCutsConfig(seed=5))
    assert a == b
    assert [r.id for r in a] == [f"G{i:02d}" for i in range(1, 13)]
    assert a != generate_random_cuts(RandomCutsConfig(seed=6))


def test_merge_jobs_with_prefixes():
    a = add_job_prefix([CutRequest("W1", 10, 10)], "J1")
    b = add_job_prefix([CutRequest("W1", 20, 20)], "J2")
    assert [r.id for r in merge_jobs(a, b)] == ["J1_W1", "J2_W1"]


def test_profiler_phases():
    prof = Profiler()
    with prof.phase("pack"):
        pass
    assert set(prof.as_dict()) == {"pack"}
    assert "TOTAL" in prof.report()


def test_jsonable_and_cut_order(answer):
    payload = to_jsonable(answer)
    assert payload["metadata"]["context"] == "BALANCED"
    cuts = list(reversed(answer.primary.instructions))
    assert [c.step for c in sort_cuts_readable(cuts)] == [1, 2, 3, 4]
