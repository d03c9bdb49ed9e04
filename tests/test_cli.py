from __future__ import annotations

import argparse
import importlib.util
import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

DOCUMENT = {
    "u1": {
        "2025-06-06": {
            "start": "2025-06-06T09:00:00.000Z",
            "breaks": [{"start": "2025-06-06T12:00:00.000Z", "end": None}],
            "end": "2025-06-06T17:00:00.000Z",
            "state": "ended",
            "summaryMessageId": "55",
        },
        "2025-06-07": {
            "start": "2025-06-07T09:00:00.000Z",
            "breaks": [],
            "end": None,
            "state": "started",
            "summaryMessageId": None,
        },
    },
    "u2": {},
}


def load_diag(module_name: str):
    module_path = Path(__file__).resolve().parents[1] / "scripts" / "worklog_diag.py"
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    assert spec and spec.loader
    diag = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(diag)
    return diag


@pytest.fixture
def data_file(monkeypatch, tmp_path: Path) -> Path:
    path = tmp_path / "timeData.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")
    monkeypatch.setenv("WORKLOG_DATA_FILE", str(path))
    return path


def test_diagnostics_cli_handles_corrupt_store(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[1]
    data = tmp_path / "timeData.json"
    data.write_text("[not json", encoding="utf-8")
    env = os.environ.copy()
    env["PYTHONPATH"] = f"{repo_root / 'src'}" + os.pathsep + env.get("PYTHONPATH", "")
    env["WORKLOG_DATA_FILE"] = str(data)
    process = subprocess.run(
        [sys.executable, str(repo_root / "scripts" / "worklog_diag.py"), "summary"],
        cwd=str(tmp_path),
        capture_output=True,
        text=True,
        env=env,
    )
    assert process.returncode != 0
    assert "Store unavailable" in process.stdout


def test_summary_reports_state_counts(data_file: Path, capsys) -> None:
    diag = load_diag("worklog_diag_summary_module")

    diag.cmd_summary(argparse.Namespace())

    payload = json.loads(capsys.readouterr().out)
    assert payload["users_total"] == 2
    assert payload["records_total"] == 2
    assert payload["state_counts"]["ended"] == 1
    assert payload["state_counts"]["started"] == 1


def test_show_json(data_file: Path, capsys) -> None:
    diag = load_diag("worklog_diag_show_module")

    diag.cmd_show(argparse.Namespace(user="u1", date="2025-06-06", json=True))

    payload = json.loads(capsys.readouterr().out)
    assert payload["summaryMessageId"] == "55"
    assert payload["breaks"][0]["end"] is None


def test_show_text_and_missing(data_file: Path, capsys) -> None:
    diag = load_diag("worklog_diag_show_text_module")

    diag.cmd_show(argparse.Namespace(user="u1", date="2025-06-07", json=False))
    output = capsys.readouterr().out
    assert "u1 2025-06-07 [started]" in output
    assert "end:   N/A" in output

    with pytest.raises(SystemExit):
        diag.cmd_show(argparse.Namespace(user="u2", date="2025-06-07", json=False))


def test_dangling_lists_open_breaks_after_end(data_file: Path, capsys) -> None:
    diag = load_diag("worklog_diag_dangling_module")

    diag.cmd_dangling(argparse.Namespace())

    payload = json.loads(capsys.readouterr().out)
    assert payload == [
        {
            "user_id": "u1",
            "date": "2025-06-06",
            "break_number": 1,
            "break_start": "2025-06-06T12:00:00.000Z",
            "end": "2025-06-06T17:00:00.000Z",
        }
    ]


def test_users(data_file: Path, capsys) -> None:
    diag = load_diag("worklog_diag_users_module")

    diag.main(["users"])

    lines = capsys.readouterr().out.splitlines()
    assert lines == ["u1: 2 day(s)", "u2: 0 day(s)"]
