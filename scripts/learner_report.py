# ABOUTME: Provides a CLI that summarizes a learner's exam history with the analytics engine.
# ABOUTME: Renders metrics, trends, gaps, and study plans, and exports the full JSON report.

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from src.analytics.config import EngineConfig, load_engine_config
from src.analytics.data_pipeline import filter_by_date_range, load_exam_results
from src.analytics.report import build_learner_report, to_serializable
from src.analytics.schemas import ExamResult

console = Console()
app = typer.Typer(help="Turn a learner's exam history into performance analytics and study plans.")


def _default_results_path() -> Path:
    return Path("data/exam_results.json")


def _load(results_path: Path, start: Optional[str], end: Optional[str]) -> List[ExamResult]:
    if not results_path.exists():
        console.print(f"[red]Missing exam results at {results_path}[/red]")
        raise typer.Exit(code=1)
    try:
        results = load_exam_results(results_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--results-path") from exc

    typer.echo(f"[report] Loaded {len(results)} exam results from {results_path}")
    start_bound = _parse_bound(start, "--start")
    end_bound = _parse_bound(end, "--end", end_of_day=True)
    filtered = filter_by_date_range(results, start_bound, end_bound)
    if len(filtered) != len(results):
        typer.echo(f"[report] Kept {len(filtered)} results inside the date range")
    return filtered


def _parse_bound(value: Optional[str], hint: str, end_of_day: bool = False) -> Optional[datetime]:
    if value is None:
        return None
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        raise typer.BadParameter(f"Could not parse date '{value}'.", param_hint=hint)
    if end_of_day and ":" not in value:
        # A bare date covers the whole day.
        ts = ts.normalize() + pd.Timedelta(days=1) - pd.Timedelta(microseconds=1)
    return ts.to_pydatetime()


def _config(config_path: Optional[Path], hours_per_week: Optional[float]) -> EngineConfig:
    try:
        cfg = load_engine_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    if hours_per_week is not None:
        if hours_per_week <= 0:
            raise typer.BadParameter("Must be positive.", param_hint="--hours-per-week")
        cfg = EngineConfig(
            hours_per_week=hours_per_week,
            moving_average_window=cfg.moving_average_window,
            prerequisites=cfg.prerequisites,
            concept_relationships=cfg.concept_relationships,
        )
    return cfg


@app.command()
def summary(
    results_path: Path = typer.Option(_default_results_path(), "--results-path", help="Exam results file (csv, json, parquet)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML; defaults to configs/engine.yaml."),
    start: Optional[str] = typer.Option(None, "--start", help="Only include results on or after this date."),
    end: Optional[str] = typer.Option(None, "--end", help="Only include results on or before this date."),
) -> None:
    """
    Show overall metrics, per-topic performance, and the score trend.
    """
    results = _load(results_path, start, end)
    report = build_learner_report(results, _config(config_path, None))
    overall = report.performance.overall

    console.rule("[bold blue]Learner Performance Summary[/bold blue]")
    metrics_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Accuracy", "Avg Time (s)", "Improvement", "Consistency", "Efficiency", "Streak"):
        metrics_table.add_column(column)
    metrics_table.add_row(
        f"{overall.accuracy:.2f}",
        f"{overall.average_time:.2f}",
        f"{overall.improvement:+.2f}",
        f"{overall.consistency:.2f}",
        f"{overall.efficiency:.2f}",
        str(overall.streak),
    )
    console.print(metrics_table)

    console.print()
    console.print("[bold green]Topics[/bold green]")
    topic_table = Table(show_header=True, header_style="bold magenta")
    topic_table.add_column("Topic")
    topic_table.add_column("Accuracy")
    topic_table.add_column("Mastery")
    topic_table.add_column("Questions")
    for topic in sorted(report.performance.by_topic, key=lambda t: t.mastery_level, reverse=True):
        topic_table.add_row(topic.topic, f"{topic.metrics.accuracy:.2f}", f"{topic.mastery_level:.2f}", str(topic.question_count))
    console.print(topic_table)

    trend = report.trend
    console.print()
    console.print(
        f"[bold]Trend:[/] {trend.direction} ({trend.strength}), slope {trend.slope:+.2f}, "
        f"R² {trend.r_squared:.2f}, confidence {trend.confidence:.0f}%, next score ≈ {trend.prediction:.1f}"
    )
    for anomaly in report.patterns.anomalies:
        console.print(
            f"[yellow]Anomaly {anomaly.date:%Y-%m-%d}: {anomaly.actual_score:.0f} vs {anomaly.expected_score:.0f}[/yellow]"
            f" → {', '.join(anomaly.possible_causes)}"
        )


@app.command()
def gaps(
    results_path: Path = typer.Option(_default_results_path(), "--results-path", help="Exam results file (csv, json, parquet)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML; defaults to configs/engine.yaml."),
    hours_per_week: Optional[float] = typer.Option(None, "--hours-per-week", help="Weekly study budget for the plan."),
    start: Optional[str] = typer.Option(None, "--start", help="Only include results on or after this date."),
    end: Optional[str] = typer.Option(None, "--end", help="Only include results on or before this date."),
) -> None:
    """
    List knowledge gaps, learning paths, and the weekly study plan.
    """
    results = _load(results_path, start, end)
    report = build_learner_report(results, _config(config_path, hours_per_week))
    analysis = report.gap_analysis

    console.rule("[bold blue]Knowledge Gaps[/bold blue]")
    gap_table = Table(show_header=True, header_style="bold magenta")
    gap_table.add_column("Topic")
    gap_table.add_column("Severity")
    gap_table.add_column("Accuracy")
    gap_table.add_column("Improvement Needed")
    gap_table.add_column("Next Action")
    for severity, color, bucket in (
        ("critical", "red", analysis.critical_gaps),
        ("moderate", "orange3", analysis.moderate_gaps),
        ("minor", "yellow", analysis.minor_gaps),
    ):
        for gap in bucket:
            gap_table.add_row(
                gap.topic,
                f"[{color}]{severity}[/{color}]",
                f"{gap.accuracy_rate:.0%}",
                f"{gap.improvement_needed:.2f}",
                gap.recommended_actions[0] if gap.recommended_actions else "",
            )
    console.print(gap_table)

    if analysis.mastery_areas:
        mastered = ", ".join(m.topic for m in analysis.mastery_areas)
        console.print(f"[green]✅ Mastered: {mastered}[/green]")

    console.print()
    console.print("[bold yellow]Learning Paths[/bold yellow]")
    path_table = Table(show_header=True, header_style="bold magenta")
    path_table.add_column("Topic")
    path_table.add_column("Current → Target")
    path_table.add_column("Hours")
    path_table.add_column("Prerequisites")
    for path in report.learning_paths:
        path_table.add_row(
            path.topic,
            f"{path.current_level:.0f} → {path.target_level:.0f}",
            str(path.estimated_time),
            ", ".join(path.prerequisites) or "-",
        )
    console.print(path_table)

    console.print()
    console.print("[bold yellow]Study Plan[/bold yellow]")
    plan_table = Table(show_header=True, header_style="bold magenta")
    plan_table.add_column("Week")
    plan_table.add_column("Topics")
    plan_table.add_column("Hours")
    plan_table.add_column("Focus")
    for week in report.study_plan:
        plan_table.add_row(str(week.week), ", ".join(week.topics), str(week.hours), week.focus)
    console.print(plan_table)

    for conceptual in report.conceptual_gaps:
        console.print(f"  → conceptual gap: {conceptual}")


@app.command()
def export(
    results_path: Path = typer.Option(_default_results_path(), "--results-path", help="Exam results file (csv, json, parquet)."),
    output: Path = typer.Option(Path("reports/learner_report.json"), "--output", help="Where to write the JSON report."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML; defaults to configs/engine.yaml."),
    hours_per_week: Optional[float] = typer.Option(None, "--hours-per-week", help="Weekly study budget for the plan."),
    start: Optional[str] = typer.Option(None, "--start", help="Only include results on or after this date."),
    end: Optional[str] = typer.Option(None, "--end", help="Only include results on or before this date."),
) -> None:
    """
    Write the complete learner report as JSON.
    """
    results = _load(results_path, start, end)
    report = build_learner_report(results, _config(config_path, hours_per_week))

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(to_serializable(report), indent=2, ensure_ascii=False), encoding="utf-8")
    console.print(f"[bold]Wrote report for {len(results):,} exam results to {output}[/bold]")


if __name__ == "__main__":
    app()
