# glass_solver/test_io.py

from __future__ import annotations

import csv
import json

import pytest

from glass_solver.io_csv import export_all, parse_bool, read_cuts_csv, write_cuts_csv
from glass_solver.io_json import (
    JsonProjectRepository,
    ProjectRecord,
    load_job_json,
    request_from_dict,
    result_from_dict,
    result_to_dict,
)
from glass_solver.orientation import DisplayOrientation
from glass_solver.strategies import Strategy, run_strategy
from glass_solver.types import CutRequest, expand_requests

REQS = [CutRequest("A", 60, 40, quantity=2), CutRequest("B", 30, 20, quantity=3, can_rotate=False)]


def _plan():
    return run_strategy(expand_requests(REQS), 100, 100, Strategy("BY_HEIGHT_DESC"))


# ----------------------------
# JSON
# ----------------------------

def test_load_job_json(tmp_path):
    path = tmp_path / "job.json"
    path.write_text(json.dumps({
        "plate": {"w": 260, "h": 180},
        "cuts": [
            {"id": "W1", "width": 80, "height": 120, "quantity": 2},
            {"name": "W2", "w": 50, "h": 50, "qty": 1.0, "can_rotate": False},
        ],
        "settings": {"context": "QUICK_CUT"},
    }), encoding="utf-8")
    job = load_job_json(path)
    assert (job.plate_w, job.plate_h) == (260.0, 180.0)
    assert job.requests == [CutRequest("W1", 80, 120, 2), CutRequest("W2", 50, 50, 1, can_rotate=False)]
    assert job.settings == {"context": "QUICK_CUT"}


def test_load_job_json_requires_plate(tmp_path):
    path = tmp_path / "job.json"
    path.write_text(json.dumps({"cuts": [{"id": "A", "width": 1, "height": 1}]}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_job_json(path)


def test_request_needs_id():
    with pytest.raises(ValueError):
        request_from_dict({"width": 10, "height": 10})


def test_result_json_round_trip():
    res = _plan()
    payload = json.loads(json.dumps(result_to_dict(res)))
    assert result_from_dict(payload) == res


def test_project_repository(tmp_path):
    repo = JsonProjectRepository(tmp_path / "projects")
    rec = ProjectRecord(
        project_name="Kitchen windows",
        plate_width=100,
        plate_height=100,
        cuts_requested=tuple(REQS),
        optimization_result=_plan(),
        display_orientation=DisplayOrientation.BOTTOM_LEFT,
    )
    pid = repo.save(rec)
    loaded = repo.load(pid)
    assert loaded.id == pid
    assert loaded.project_name == "Kitchen windows"
    assert loaded.cuts_requested == tuple(REQS)
    assert loaded.optimization_result == rec.optimization_result
    assert loaded.display_orientation is DisplayOrientation.BOTTOM_LEFT
    assert loaded.created_at and loaded.updated_at

    # saving again keeps id and creation time
    assert repo.save(loaded) == pid
    assert repo.load(pid).created_at == loaded.created_at
    assert [r.id for r in repo.list_projects()] == [pid]

    assert repo.delete(pid)
    assert not repo.delete(pid)
    with pytest.raises(KeyError):
        repo.load(pid)


def test_project_id_is_checked(tmp_path):
    repo = JsonProjectRepository(tmp_path)
    with pytest.raises(ValueError):
        repo.load("../etc/passwd")


# ----------------------------
# CSV
# ----------------------------

def test_parse_bool():
    assert parse_bool("yes") and parse_bool("1") and parse_bool(" True ")
    assert not parse_bool("0") and not parse_bool("n")
    with pytest.raises(ValueError):
        parse_bool("maybe")


def test_cuts_csv_round_trip(tmp_path):
    path = tmp_path / "cuts.csv"
    write_cuts_csv(REQS, path)
    assert read_cuts_csv(path) == REQS


def test_cuts_csv_aliases_and_defaults(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("name,w,h\nP1,40,30\n,1,1\n", encoding="utf-8")
    assert read_cuts_csv(path) == [CutRequest("P1", 40, 30)]


def test_cuts_csv_missing_columns(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("id,width\nA,10\n", encoding="utf-8")
    with pytest.raises(ValueError):
        read_cuts_csv(path)


def test_cuts_csv_bad_number(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("id,width,height\nA,ten,10\n", encoding="utf-8")
    with pytest.raises(ValueError, match="cuts.csv:2"):
        read_cuts_csv(path)


def test_cuts_csv_keeps_full_precision(tmp_path):
    path = tmp_path / "cuts.csv"
    reqs = [CutRequest("F", 123.456789, 45.6789012, quantity=2)]
    write_cuts_csv(reqs, path)
    assert read_cuts_csv(path) == reqs


def test_cuts_csv_fractional_quantity(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("id,width,height,quantity\nA,10,10,2\nB,10,10,2.5\n", encoding="utf-8")
    with pytest.raises(ValueError, match="cuts.csv:3: quantity must be a whole number"):
        read_cuts_csv(path)
    path.write_text("id,width,height,quantity\nA,10,10,3.0\n", encoding="utf-8")
    assert read_cuts_csv(path)[0].quantity == 3


def test_export_all(tmp_path):
    res = _plan()
    paths = export_all(res, tmp_path / "out", prefix="job")
    assert [p.name for p in paths] == [
        "job_placements.csv",
        "job_cuts.csv",
        "job_waste.csv",
        "job_summary.csv",
    ]
    with paths[0].open(newline="", encoding="utf-8") as f:
        assert len(list(csv.DictReader(f))) == res.piece_count()
    with paths[1].open(newline="", encoding="utf-8") as f:
        assert len(list(csv.DictReader(f))) == res.total_guillotine_cuts
    with paths[3].open(newline="", encoding="utf-8") as f:
        assert len(list(csv.DictReader(f))) == res.total_plates
