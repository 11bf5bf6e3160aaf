# glass_solver/test_cli.py

from __future__ import annotations

import json

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from glass_solver import logger  # noqa: E402
from glass_solver.cli import build_argparser, main  # noqa: E402
from glass_solver.io_csv import write_cuts_csv  # noqa: E402
from glass_solver.io_json import JsonProjectRepository  # noqa: E402
from glass_solver.types import CutRequest  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    logger.set_enabled(True)
    logger.set_verbose(False)


def _cuts_file(tmp_path, requests):
    path = tmp_path / "cuts.csv"
    write_cuts_csv(requests, path)
    return path


def test_source_is_required():
    with pytest.raises(SystemExit):
        build_argparser().parse_args([])


def test_cuts_csv_run_prints_report(tmp_path, capsys):
    path = _cuts_file(tmp_path, [CutRequest("A", 50, 50, quantity=4)])
    main(["--cuts", str(path), "--plate", "100x100", "--no_refine", "--quiet"])
    out = capsys.readouterr().out
    assert "Glass cutting plan: cuts" in out
    assert "Plates: 1" in out
    assert "=== Plate 1 (100x100 cm) ===" in out


def test_exports_and_project(tmp_path, capsys):
    path = _cuts_file(tmp_path, [CutRequest("A", 60, 40, quantity=2), CutRequest("B", 30, 20)])
    out_dir = tmp_path / "out"
    projects = tmp_path / "projects"
    main([
        "--cuts", str(path),
        "--plate", "100x100",
        "--no_refine",
        "--quiet",
        "--out", str(out_dir),
        "--prefix", "job",
        "--png", str(tmp_path / "plan.png"),
        "--project_dir", str(projects),
        "--project_name", "Test job",
        "--orientation", "BOTTOM_LEFT",
    ])
    assert (out_dir / "job_placements.csv").exists()
    assert (out_dir / "job_cuts.csv").exists()
    payload = json.loads((out_dir / "job_result.json").read_text(encoding="utf-8"))
    assert payload["primary"]["total_plates"] == 1
    assert (tmp_path / "plan.png").stat().st_size > 0
    (rec,) = JsonProjectRepository(projects).list_projects()
    assert rec.project_name == "Test job"
    assert rec.display_orientation.value == "BOTTOM_LEFT"


def test_job_json_settings_used(tmp_path, capsys):
    job = tmp_path / "job.json"
    job.write_text(json.dumps({
        "plate": {"width": 100, "height": 100},
        "cuts": [{"id": "S", "width": 30, "height": 80, "quantity": 3}],
        "settings": {"context": "QUICK_CUT", "max_alternatives": 1},
    }), encoding="utf-8")
    main(["--job", str(job), "--no_refine", "--quiet"])
    out = capsys.readouterr().out
    assert "Context: QUICK_CUT" in out
    assert "Alternatives:" not in out


def test_sample_run(capsys):
    main(["--sample", "7", "--no_refine", "--quiet", "--alternatives", "2"])
    out = capsys.readouterr().out
    assert "Glass cutting plan: sample" in out


def test_oversized_piece_exits_with_code_2(tmp_path):
    path = _cuts_file(tmp_path, [CutRequest("BIG", 300, 300)])
    with pytest.raises(SystemExit) as exc:
        main(["--cuts", str(path), "--quiet"])
    assert exc.value.code == 2


def test_bad_plate_text_exits_with_code_2(tmp_path):
    path = _cuts_file(tmp_path, [CutRequest("A", 10, 10)])
    with pytest.raises(SystemExit) as exc:
        main(["--cuts", str(path), "--plate", "wide", "--quiet"])
    assert exc.value.code == 2


def test_missing_file(tmp_path):
    with pytest.raises(SystemExit):
        main(["--cuts", str(tmp_path / "nope.csv"), "--quiet"])


def test_several_cut_lists_are_merged_with_prefixes(tmp_path, capsys):
    a = tmp_path / "north.csv"
    b = tmp_path / "south.csv"
    write_cuts_csv([CutRequest("W1", 50, 50, quantity=2)], a)
    write_cuts_csv([CutRequest("W1", 50, 50, quantity=2)], b)
    main(["--cuts", str(a), str(b), "--plate", "100x100", "--no_refine", "--quiet"])
    out = capsys.readouterr().out
    assert "Glass cutting plan: north+south" in out
    assert "north_W1#1" in out
    assert "south_W1#2" in out
    assert "Plates: 1" in out


def test_strategy_option_limits_the_run(tmp_path, capsys):
    path = _cuts_file(tmp_path, [CutRequest("S", 30, 80, quantity=3)])
    main([
        "--cuts", str(path),
        "--plate", "100x100",
        "--no_refine",
        "--quiet",
        "--strategy", "landscape_by_height_desc",
    ])
    out = capsys.readouterr().out
    assert "Strategy: LANDSCAPE_BY_HEIGHT_DESC" in out
    assert "1 strategies evaluated" in out


def test_unknown_strategy_exits_with_code_2(tmp_path):
    path = _cuts_file(tmp_path, [CutRequest("A", 10, 10)])
    with pytest.raises(SystemExit) as exc:
        main(["--cuts", str(path), "--strategy", "FASTEST", "--quiet"])
    assert exc.value.code == 2
