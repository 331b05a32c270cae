# ABOUTME: Verifies the learner report CLI exposes its commands and writes JSON exports.
# ABOUTME: Runs the Typer app in-process against a temporary results file.

import json
import tempfile
from pathlib import Path

from typer.testing import CliRunner

from scripts import learner_report

REPO_CONFIG = Path(__file__).resolve().parents[1] / "configs" / "engine.yaml"

RECORDS = [
    {
        "id": f"x{i}",
        "date": f"2024-05-{i + 1:02d}T09:00:00Z",
        "score": 55 + 3 * i,
        "questions_answered": 20,
        "questions_correct": 11 + i,
        "total_time": 900,
        "topics_covered": ["calculus"] if i % 2 else ["algebra", "geometry"],
        "difficulty_level": "medium",
    }
    for i in range(8)
]


def test_cli_has_summary_gaps_and_export_commands():
    app = learner_report.app
    command_names = {cmd.name or cmd.callback.__name__ for cmd in app.registered_commands}
    assert {"summary", "gaps", "export"} <= command_names


def test_export_writes_report_json():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmp:
        results_path = Path(tmp) / "results.json"
        results_path.write_text(json.dumps(RECORDS), encoding="utf-8")
        output = Path(tmp) / "out" / "report.json"

        result = runner.invoke(
            learner_report.app,
            [
                "export",
                "--results-path", str(results_path),
                "--output", str(output),
                "--config", str(REPO_CONFIG),
                "--hours-per-week", "30",
                "--start", "2024-05-03",
            ],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert len(payload["performance"]["trends"]) == 6
        assert all(week["hours"] <= 30 or len(week["topics"]) == 1 for week in payload["study_plan"])


def test_date_only_end_keeps_results_later_that_day():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmp:
        results_path = Path(tmp) / "results.json"
        results_path.write_text(json.dumps(RECORDS), encoding="utf-8")
        output = Path(tmp) / "report.json"

        result = runner.invoke(
            learner_report.app,
            [
                "export",
                "--results-path", str(results_path),
                "--output", str(output),
                "--config", str(REPO_CONFIG),
                "--end", "2024-05-02",
            ],
        )

        assert result.exit_code == 0, result.output
        trends = json.loads(output.read_text(encoding="utf-8"))["performance"]["trends"]
        assert [t["date"][:10] for t in trends] == ["2024-05-01", "2024-05-02"]

        # An explicit time is still an exact bound.
        result = runner.invoke(
            learner_report.app,
            [
                "export",
                "--results-path", str(results_path),
                "--output", str(output),
                "--config", str(REPO_CONFIG),
                "--end", "2024-05-02T08:00:00Z",
            ],
        )
        assert result.exit_code == 0, result.output
        assert len(json.loads(output.read_text(encoding="utf-8"))["performance"]["trends"]) == 1


def test_summary_and_gaps_render():
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as tmp:
        results_path = Path(tmp) / "results.json"
        results_path.write_text(json.dumps(RECORDS), encoding="utf-8")
        args = ["--results-path", str(results_path), "--config", str(REPO_CONFIG)]

        summary = runner.invoke(learner_report.app, ["summary", *args])
        assert summary.exit_code == 0, summary.output
        assert "Loaded 8 exam results" in summary.output

        gaps = runner.invoke(learner_report.app, ["gaps", *args])
        assert gaps.exit_code == 0, gaps.output


def test_missing_results_file_exits_with_error():
    runner = CliRunner()
    result = runner.invoke(learner_report.app, ["summary", "--results-path", "does/not/exist.json"])
    assert result.exit_code == 1
