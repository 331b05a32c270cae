# ABOUTME: Tests the performance metrics calculator over synthetic exam histories.
# ABOUTME: Covers overall metrics, group-bys, period comparison, and study efficiency.

from datetime import date, datetime, timedelta, timezone

import pytest

from src.analytics.metrics import (
    calculate_comparison,
    calculate_detailed_performance,
    calculate_overall_metrics,
    calculate_study_efficiency,
)
from src.analytics.schemas import ExamResult, PerformanceMetrics

BASE = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


def _exam(day, score, answered=10, correct=None, total_time=600, topics=("algebra",), difficulty="medium", hour=9):
    if correct is None:
        correct = round(answered * score / 100)
    return ExamResult(
        id=f"exam-{day}-{hour}",
        date=BASE + timedelta(days=day, hours=hour - 9),
        score=score,
        questions_answered=answered,
        questions_correct=correct,
        total_time=total_time,
        topics_covered=tuple(topics),
        difficulty_level=difficulty,
    )


def test_empty_results_give_zeroed_metrics_with_full_consistency():
    metrics = calculate_overall_metrics([])
    assert metrics == PerformanceMetrics(
        accuracy=0.0, average_time=0.0, improvement=0.0, consistency=100.0, efficiency=0.0, streak=0
    )


def test_improvement_compares_chronological_halves():
    # Supplied out of order on purpose.
    results = [_exam(1, 90), _exam(0, 50)]
    assert calculate_overall_metrics(results).improvement == 40.0


def test_identical_scores_are_perfectly_consistent():
    results = [_exam(day, 72) for day in range(6)]
    assert calculate_overall_metrics(results).consistency == 100.0


def test_accuracy_and_average_time_use_question_totals():
    results = [
        _exam(0, 70, answered=10, correct=7, total_time=300),
        _exam(1, 50, answered=10, correct=5, total_time=300),
    ]
    metrics = calculate_overall_metrics(results)
    assert metrics.accuracy == 60.0
    assert metrics.average_time == 30.0
    # stddev 10 -> 100 - 10/50*100
    assert metrics.consistency == 80.0


def test_efficiency_guards_zero_duration_sessions():
    timed = _exam(0, 80, answered=10, total_time=600)
    untimed = _exam(1, 80, answered=10, total_time=0)
    assert calculate_overall_metrics([timed]).efficiency == 0.8
    assert calculate_overall_metrics([timed, untimed]).efficiency == 0.4


def test_metrics_stay_within_percentage_bounds():
    results = [_exam(0, 0, correct=0), _exam(1, 100, correct=10), _exam(2, 0, correct=0), _exam(3, 100, correct=10)]
    detailed = calculate_detailed_performance(results)
    assert 0 <= detailed.overall.accuracy <= 100
    assert 0 <= detailed.overall.consistency <= 100
    for topic in detailed.by_topic:
        assert 0 <= topic.mastery_level <= 100


def test_streak_counts_consecutive_passing_days():
    results = [_exam(0, 80), _exam(1, 75), _exam(2, 90)]
    assert calculate_overall_metrics(results).streak == 3


def test_streak_stops_at_low_score_or_break():
    assert calculate_overall_metrics([_exam(0, 80), _exam(1, 60), _exam(2, 90)]).streak == 1
    assert calculate_overall_metrics([_exam(0, 80), _exam(4, 90)]).streak == 1


def test_streak_respects_reference_time():
    results = [_exam(0, 80), _exam(1, 85)]
    assert calculate_overall_metrics(results, as_of=BASE + timedelta(days=2)).streak == 2
    assert calculate_overall_metrics(results, as_of=BASE + timedelta(days=5)).streak == 0


def test_topic_groups_include_multi_topic_results():
    results = [
        _exam(0, 60, topics=("algebra", "geometry")),
        _exam(1, 80, topics=("algebra",)),
    ]
    by_topic = {t.topic: t for t in calculate_detailed_performance(results).by_topic}

    assert set(by_topic) == {"algebra", "geometry"}
    assert by_topic["algebra"].question_count == 20
    assert by_topic["geometry"].question_count == 10
    assert by_topic["algebra"].last_practiced == BASE + timedelta(days=1)
    algebra = by_topic["algebra"]
    assert algebra.mastery_level == pytest.approx(algebra.metrics.accuracy * algebra.metrics.consistency / 100, abs=0.01)


def test_difficulty_buckets_always_present():
    results = [_exam(0, 90, difficulty="Easy"), _exam(1, 60, difficulty="easy")]
    buckets = calculate_detailed_performance(results).by_difficulty

    assert [b.difficulty for b in buckets] == ["easy", "medium", "hard"]
    easy, medium, hard = buckets
    assert easy.success_rate == 50.0
    assert easy.average_attempts == 2
    assert medium.success_rate == 0.0
    assert hard.question_count == 0


def test_time_periods_grouped_by_calendar_day_ascending():
    results = [_exam(2, 70), _exam(0, 60, hour=8), _exam(0, 80, hour=18)]
    periods = calculate_detailed_performance(results).by_time_period

    assert [p.date for p in periods] == [date(2024, 1, 1), date(2024, 1, 3)]
    assert periods[0].exams_taken == 2
    assert periods[0].total_time == 1200
    assert all(p.period == "daily" for p in periods)


def test_trends_are_sorted_by_date():
    results = [_exam(3, 70), _exam(1, 60), _exam(2, 65)]
    trends = calculate_detailed_performance(results).trends
    assert [t.score for t in trends] == [60, 65, 70]
    assert trends[0].time_spent == 600


def test_comparison_reports_improving_and_declining_areas():
    current = [_exam(5, 80, correct=8, total_time=300)]
    previous = [_exam(0, 60, correct=6, total_time=600)]
    comparison = calculate_comparison(current, previous)

    assert comparison.change_percentage == pytest.approx(33.33, abs=0.01)
    assert comparison.improvement_areas == ("accuracy", "speed")
    assert comparison.declining_areas == ()


def test_comparison_with_empty_previous_period():
    comparison = calculate_comparison([_exam(0, 50, correct=5)], [])
    assert comparison.change_percentage == 0.0
    assert "accuracy" in comparison.improvement_areas
    # average time went from 0 to 60 s per question
    assert "speed" in comparison.declining_areas


def test_optimal_duration_tie_goes_to_first_seen_bucket():
    results = [
        _exam(0, 80, total_time=1500),
        _exam(1, 80, total_time=600),
    ]
    assert calculate_study_efficiency(results).optimal_study_duration == 20
    assert calculate_study_efficiency(list(reversed(results))).optimal_study_duration == 10


def test_study_efficiency_defaults_for_empty_input():
    efficiency = calculate_study_efficiency([])
    assert efficiency.optimal_study_duration == 30
    assert efficiency.fatigue_indicators == ()
    assert efficiency.questions_per_hour == 0.0


def test_study_efficiency_rates_buckets_and_fatigue():
    results = [
        _exam(0, 90, answered=20, total_time=1200, hour=8),
        _exam(1, 60, answered=40, total_time=4200, hour=20),
        _exam(2, 70, answered=20, total_time=1500, hour=14),
    ]
    efficiency = calculate_study_efficiency(results)

    assert efficiency.questions_per_hour == pytest.approx(80 / (6900 / 3600), abs=0.01)
    assert efficiency.optimal_study_duration == 20
    assert efficiency.peak_performance_times == ("8:00", "14:00", "20:00")

    (fatigue,) = efficiency.fatigue_indicators
    assert fatigue.session_duration == 4200
    assert fatigue.accuracy_decline == 20
    assert fatigue.response_time_increase == 45
    assert fatigue.error_rate_increase == 20
