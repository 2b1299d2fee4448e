"""End-to-end tests for the sample replay CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from conftest import metres_to_degrees
from run_tracker import main as cli


def _write_samples(path: Path, count: int = 400) -> None:
    step = metres_to_degrees(10.0)
    rows = [
        {
            "latitude": 0.0,
            "longitude": i * step,
            "accuracy": 5.0,
            "timestamp_ms": 1_700_000_000_000 + i * 3000,
            "altitude": 50.0 + (i % 10),
            "speed": 3.3,
        }
        for i in range(count)
    ]
    # one teleport that must be rejected
    rows[count // 2]["longitude"] += 0.05
    pd.DataFrame(rows).sample(frac=1.0, random_state=7).to_csv(path, index=False)


def test_read_samples_sorts_and_handles_optional_columns(tmp_path: Path) -> None:
    path = tmp_path / "samples.csv"
    pd.DataFrame(
        {
            "latitude": [1.0, 1.0],
            "longitude": [2.0, 2.0001],
            "accuracy": [4.0, 6.0],
            "timestamp_ms": [2000, 1000],
        }
    ).to_csv(path, index=False)
    samples = cli.read_samples(path)
    assert [s.timestamp_ms for s in samples] == [1000, 2000]
    assert samples[0].speed_mps is None
    assert samples[0].altitude is None


def test_read_samples_requires_columns(tmp_path: Path) -> None:
    path = tmp_path / "bad.csv"
    pd.DataFrame({"latitude": [1.0]}).to_csv(path, index=False)
    with pytest.raises(ValueError):
        cli.read_samples(path)


def test_main_prints_summary_and_exports(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    samples = tmp_path / "samples.csv"
    workbook = tmp_path / "runs.xlsx"
    _write_samples(samples)

    code = cli.main(["--samples", str(samples), "--export", str(workbook)])

    assert code == 0
    report = json.loads(capsys.readouterr().out)
    assert 3.8 < report["distance_km"] < 4.0
    assert [split["km"] for split in report["splits"]] == [1, 2, 3, 4]
    assert report["route_matched"] is False
    assert workbook.is_file()
    runs = pd.read_excel(workbook, sheet_name="Runs")
    assert len(runs) == 1


def test_main_reports_missing_file(tmp_path: Path) -> None:
    assert cli.main(["--samples", str(tmp_path / "missing.csv")]) == 1


def test_match_flag_skipped_without_token(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    samples = tmp_path / "samples.csv"
    _write_samples(samples, count=50)
    monkeypatch.setattr(cli, "MAPBOX_ACCESS_TOKEN", "")

    def _fail(*_args, **_kwargs):
        raise AssertionError("map matching should not run")

    monkeypatch.setattr(cli, "MapMatchingOrchestrator", _fail)
    assert cli.main(["--samples", str(samples), "--match"]) == 0
    assert json.loads(capsys.readouterr().out)["route_matched"] is False
