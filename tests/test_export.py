"""Tests for the offline tools that read the checkpoint logs (CSV export, progress viewer)."""

import csv
import json
from pathlib import Path

import pytest

from hotline_scraper.checkpoint_viewer import summarize
from hotline_scraper.export import export_csv, filter_records
from hotline_scraper.models import UnitRecord


@pytest.fixture
def checkpoint_dir(tmp_path: Path) -> Path:
    state = tmp_path / "state"
    state.mkdir()
    (state / "processed_hanumbers.json").write_text(json.dumps(["100", "101", "102"]))
    (state / "processed_models.json").write_text(json.dumps([
        {"year": "2020", "make": "Honda", "model": "Civic", "engine": "1.5L L4 Turbo",
         "completed_at": "2026-10-01T09:00:00+00:00", "documents_discovered": 2},
        {"year": "2020", "make": "Honda", "model": "Accord", "engine": "2.0L L4",
         "completed_at": "2026-10-03T09:00:00+00:00", "documents_discovered": 1},
        {"year": "2020", "make": "Toyota", "model": "Camry", "engine": "2.5L L4",
         "processedAt": "2026-10-05T09:00:00.000Z", "urlsProcessed": 0},
    ]))
    return state


def test_export_all_units(checkpoint_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "units.csv"
    assert export_csv(out, checkpoint_dir) == 3
    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["model"] for r in rows] == ["Civic", "Accord", "Camry"]
    assert rows[0]["documents_discovered"] == "2"
    assert rows[2]["completed_at"] == "2026-10-05T09:00:00.000Z"


def test_export_filters(checkpoint_dir: Path, tmp_path: Path) -> None:
    out = tmp_path / "honda.csv"
    assert export_csv(out, checkpoint_dir, make="Honda", since="2026-10-02") == 1
    assert export_csv(tmp_path / "none.csv", checkpoint_dir, model="Pilot") == 0
    assert not (tmp_path / "none.csv").exists()


def test_filter_records_date_window() -> None:
    records = [
        UnitRecord("2020", "Honda", "Civic", "1.5L", "2026-10-01T00:00:00+00:00", 1),
        UnitRecord("2020", "Honda", "Fit", "1.5L", "2026-10-09T00:00:00+00:00", 1),
    ]
    assert filter_records(records, until="2026-10-05") == records[:1]
    assert filter_records(records, since="2026-10-05") == records[1:]


def test_summarize_progress(checkpoint_dir: Path, tmp_path: Path) -> None:
    output = tmp_path / "output"
    output.mkdir()
    (output / "HANumber_100_2020_Honda_Civic.html").write_text("<p></p>")

    lines = summarize(checkpoint_dir, output)

    assert lines[0] == "Visited HANumbers: 3"
    assert lines[1] == "Completed units: 3"
    assert "  2020 Honda: 2 units, 3 documents listed" in lines
    assert "  2020 Toyota: 1 units, 0 documents listed" in lines
    assert lines[-2].startswith("Last completed: 2020 Toyota Camry 2.5L L4")
    assert lines[-1] == f"Document files in {output}: 1"


def test_summarize_first_run(tmp_path: Path) -> None:
    lines = summarize(tmp_path / "state", tmp_path / "missing")
    assert lines == [
        "Visited HANumbers: 0",
        "Completed units: 0",
        f"Document files in {tmp_path / 'missing'}: 0",
    ]
