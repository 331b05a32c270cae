# ABOUTME: Tests personalized and contextual recommendations built from metrics and gaps.
# ABOUTME: Ensures actions, goals, review dates, and boosters follow the learner's numbers.

from datetime import date, timedelta

import pytest

from src.analytics.gaps import analyze_knowledge_gaps
from src.analytics.recommendation import (
    generate_contextual_recommendations,
    generate_personalized_recommendations,
    review_interval_days,
)
from src.analytics.schemas import DetailedPerformance, PerformanceMetrics, TopicPerformance

AS_OF = date(2024, 5, 6)


def _performance(**overrides):
    values = dict(accuracy=60.0, average_time=150.0, improvement=5.0, consistency=50.0, efficiency=1.0, streak=4)
    values.update(overrides)
    return DetailedPerformance(
        overall=PerformanceMetrics(**values),
        by_topic=(),
        by_difficulty=(),
        by_time_period=(),
        trends=(),
    )


def _topic(name, accuracy, consistency):
    return TopicPerformance(
        topic=name,
        metrics=PerformanceMetrics(accuracy=accuracy, average_time=30.0, consistency=consistency),
        question_count=20,
        time_spent=600.0,
        mastery_level=accuracy * consistency / 100,
    )


def _gap_analysis():
    # a -> critical (1.0), b -> moderate (0.49)
    return analyze_knowledge_gaps([_topic("a", 20, 40), _topic("b", 65, 60)])


def test_immediate_actions_follow_gaps_speed_and_consistency():
    recs = generate_personalized_recommendations(_performance(), _gap_analysis(), AS_OF)
    assert [a.id for a in recs.immediate_actions] == ["critical_gap_a", "improve_speed", "build_consistency"]
    assert "20% accuracy" in recs.immediate_actions[0].description


def test_no_immediate_actions_for_steady_fast_learner():
    performance = _performance(average_time=40.0, consistency=90.0)
    recs = generate_personalized_recommendations(performance, analyze_knowledge_gaps([]), AS_OF)
    assert recs.immediate_actions == ()


def test_weekly_goals_targets():
    accuracy, speed, coverage = generate_personalized_recommendations(
        _performance(), _gap_analysis(), AS_OF
    ).weekly_goals

    assert (accuracy.goal_type, accuracy.target_value) == ("accuracy", 65.0)
    assert accuracy.progress_percentage == pytest.approx(92.31, abs=0.01)
    assert (speed.goal_type, speed.target_value, speed.progress_percentage) == ("speed", 135.0, 90.0)
    assert (coverage.goal_type, coverage.target_value) == ("coverage", 2.0)


def test_study_strategy_and_review_schedule():
    strategy = generate_personalized_recommendations(_performance(), _gap_analysis(), AS_OF).study_strategy

    assert strategy.primary_approach == "gap_focused_learning"
    assert strategy.secondary_techniques == (
        "concept_reinforcement",
        "error_analysis",
        "spaced_repetition",
        "active_recall",
    )
    assert strategy.focus_areas == ("a", "b")
    assert strategy.time_allocation == {"a": 67, "b": 33}

    schedule = strategy.review_schedule
    assert schedule.daily_review == ("a",)
    assert schedule.weekly_review == ("b",)
    assert schedule.monthly_review == ("a", "b")
    dates = {item.topic: (item.interval_days, item.next_review_date) for item in schedule.spaced_repetition}
    assert dates == {"a": (1, AS_OF + timedelta(days=1)), "b": (3, AS_OF + timedelta(days=3))}


def test_review_interval_shrinks_with_need():
    assert [review_interval_days(x) for x in (0.9, 0.7, 0.5, 0.1)] == [1, 1, 3, 7]


def test_motivation_boosters():
    recs = generate_personalized_recommendations(_performance(), _gap_analysis(), AS_OF)
    assert [b.type for b in recs.motivation_boosters] == ["progress", "achievement"]

    quiet = generate_personalized_recommendations(_performance(improvement=-3.0, streak=1), _gap_analysis(), AS_OF)
    assert quiet.motivation_boosters == ()
    assert "motivation_techniques" in quiet.study_strategy.secondary_techniques


def test_contextual_recommendations_by_activity():
    (slow_down,) = generate_contextual_recommendations("studying", _performance())
    assert slow_down.id == "study_context_slow_down"
    assert generate_contextual_recommendations("studying", _performance(accuracy=85.0)) == ()
    assert generate_contextual_recommendations("taking_exam", _performance())[0].category == "time_management"
    assert generate_contextual_recommendations("reviewing_results", _performance())[0].estimated_time == 15
    assert generate_contextual_recommendations("planning", _performance()) == ()

    with pytest.raises(ValueError):
        generate_contextual_recommendations("sleeping", _performance())
