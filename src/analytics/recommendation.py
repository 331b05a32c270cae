# ABOUTME: Turns detailed performance and gap analysis into personalized study recommendations.
# ABOUTME: Produces immediate actions, weekly goals, a study strategy, and motivation boosters.

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Sequence, Tuple

from .gaps import CRITICAL_THRESHOLD, MODERATE_THRESHOLD
from .schemas import (
    ActionableRecommendation,
    DetailedPerformance,
    GapAnalysis,
    KnowledgeGap,
    MotivationBooster,
    PersonalizedRecommendations,
    ReviewSchedule,
    SpacedRepetitionItem,
    StudyStrategy,
    WeeklyGoal,
)

SLOW_RESPONSE_SECONDS = 120
LOW_CONSISTENCY = 70
MAX_IMMEDIATE_ACTIONS = 4
CONTEXT_ACTIVITIES = ("studying", "taking_exam", "reviewing_results", "planning")


def generate_personalized_recommendations(
    performance: DetailedPerformance,
    gap_analysis: GapAnalysis,
    as_of: date,
) -> PersonalizedRecommendations:
    """
    Build the full recommendation bundle for one learner.

    ``as_of`` anchors the spaced-repetition review dates.
    """

    gaps = _all_gaps(gap_analysis)
    return PersonalizedRecommendations(
        immediate_actions=_immediate_actions(performance, gap_analysis),
        weekly_goals=_weekly_goals(performance, gaps),
        study_strategy=_study_strategy(performance, gap_analysis, as_of),
        motivation_boosters=_motivation_boosters(performance, gap_analysis),
    )


def generate_contextual_recommendations(
    activity: str, performance: DetailedPerformance
) -> Tuple[ActionableRecommendation, ...]:
    if activity not in CONTEXT_ACTIVITIES:
        raise ValueError(f"Unsupported activity '{activity}'. Expected one of: {', '.join(CONTEXT_ACTIVITIES)}.")

    if activity == "studying":
        if performance.overall.accuracy >= 70:
            return ()
        return (
            ActionableRecommendation(
                id="study_context_slow_down",
                title="Slow Down and Focus",
                description="Your accuracy is below 70%. Take time to understand each concept.",
                category="study_technique",
                priority="high",
                estimated_time=0,
                expected_impact=50,
                difficulty="easy",
                steps=("Read questions carefully", "Think before answering", "Review explanations"),
                success_metrics=("Improved accuracy in next 5 questions",),
            ),
        )
    if activity == "taking_exam":
        return (
            ActionableRecommendation(
                id="exam_context_time_management",
                title="Monitor Your Pace",
                description="Keep track of time to ensure you complete all questions.",
                category="time_management",
                priority="medium",
                estimated_time=0,
                expected_impact=30,
                difficulty="easy",
                steps=(
                    "Check time every 10 questions",
                    "Skip difficult questions initially",
                    "Return to skipped questions",
                ),
                success_metrics=("Complete exam within time limit",),
            ),
        )
    if activity == "reviewing_results":
        return (
            ActionableRecommendation(
                id="review_context_analyze_mistakes",
                title="Analyze Your Mistakes",
                description="Understanding why you got questions wrong is key to improvement.",
                category="study_technique",
                priority="high",
                estimated_time=15,
                expected_impact=70,
                difficulty="medium",
                steps=(
                    "Review each incorrect answer",
                    "Identify knowledge gaps",
                    "Note common mistake patterns",
                ),
                success_metrics=("Identify 3 improvement areas",),
            ),
        )
    # planning
    return ()


def review_interval_days(improvement: float) -> int:
    if improvement >= CRITICAL_THRESHOLD:
        return 1
    if improvement >= MODERATE_THRESHOLD:
        return 3
    return 7


def _all_gaps(gap_analysis: GapAnalysis) -> List[KnowledgeGap]:
    return list(gap_analysis.critical_gaps) + list(gap_analysis.moderate_gaps) + list(gap_analysis.minor_gaps)


def _immediate_actions(
    performance: DetailedPerformance, gap_analysis: GapAnalysis
) -> Tuple[ActionableRecommendation, ...]:
    overall = performance.overall
    actions: List[ActionableRecommendation] = []

    if gap_analysis.critical_gaps:
        top = gap_analysis.critical_gaps[0]
        actions.append(
            ActionableRecommendation(
                id=f"critical_gap_{top.topic}",
                title=f"Address Critical Gap in {top.topic}",
                description=(
                    f"Your performance in {top.topic} needs immediate attention with "
                    f"{round(top.accuracy_rate * 100)}% accuracy"
                ),
                category="knowledge_gap",
                priority="high",
                estimated_time=120,
                expected_impact=85,
                difficulty="medium",
                steps=(
                    "Review fundamental concepts",
                    "Practice 10 basic questions",
                    "Identify specific problem areas",
                    "Create a focused study plan",
                ),
                success_metrics=("Achieve 70%+ accuracy", "Complete 20+ practice questions"),
            )
        )

    if overall.average_time > SLOW_RESPONSE_SECONDS:
        actions.append(
            ActionableRecommendation(
                id="improve_speed",
                title="Improve Response Speed",
                description=f"Your average response time of {round(overall.average_time)}s can be optimized",
                category="study_technique",
                priority="medium",
                estimated_time=60,
                expected_impact=60,
                difficulty="easy",
                steps=(
                    "Practice timed questions daily",
                    "Use elimination techniques",
                    "Build topic familiarity",
                    "Set time limits for practice",
                ),
                success_metrics=("Reduce average time by 20%", "Maintain accuracy above 75%"),
            )
        )

    if overall.consistency < LOW_CONSISTENCY:
        actions.append(
            ActionableRecommendation(
                id="build_consistency",
                title="Build Study Consistency",
                description=f"Your score consistency of {round(overall.consistency)}% needs improvement",
                category="time_management",
                priority="high",
                estimated_time=15,
                expected_impact=75,
                difficulty="easy",
                steps=(
                    "Set a daily 15-minute minimum",
                    "Choose a consistent study time",
                    "Track your daily practice",
                    "Start with easy topics",
                ),
                success_metrics=("Study 7 days in a row", "Keep consistency above 80%"),
            )
        )

    return tuple(actions[:MAX_IMMEDIATE_ACTIONS])


def _weekly_goals(performance: DetailedPerformance, gaps: Sequence[KnowledgeGap]) -> Tuple[WeeklyGoal, ...]:
    overall = performance.overall

    target_accuracy = min(100.0, overall.accuracy + 5)
    accuracy_progress = overall.accuracy / target_accuracy * 100 if target_accuracy > 0 else 0.0

    target_time = max(30.0, overall.average_time * 0.9)
    speed_progress = target_time / overall.average_time * 100 if overall.average_time > 0 else 100.0

    return (
        WeeklyGoal(
            goal_type="accuracy",
            target_value=round(target_accuracy, 2),
            current_value=overall.accuracy,
            progress_percentage=round(accuracy_progress, 2),
            recommended_actions=("Focus on weak topics", "Review incorrect answers", "Practice similar questions"),
        ),
        WeeklyGoal(
            goal_type="speed",
            target_value=round(target_time, 2),
            current_value=overall.average_time,
            progress_percentage=round(min(100.0, speed_progress), 2),
            recommended_actions=("Practice timed questions", "Use quick elimination methods", "Build automatic responses"),
        ),
        WeeklyGoal(
            goal_type="coverage",
            target_value=float(min(5, len(gaps))),
            current_value=0.0,
            progress_percentage=0.0,
            recommended_actions=("Practice one new topic daily", "Mix easy and difficult questions", "Track topic completion"),
        ),
    )


def _study_strategy(
    performance: DetailedPerformance, gap_analysis: GapAnalysis, as_of: date
) -> StudyStrategy:
    overall = performance.overall
    gaps = _all_gaps(gap_analysis)

    if len(gaps) > len(gap_analysis.mastery_areas):
        approach = "gap_focused_learning"
    elif overall.consistency < 60:
        approach = "consistency_building"
    elif overall.average_time > SLOW_RESPONSE_SECONDS:
        approach = "speed_optimization"
    else:
        approach = "balanced_practice"

    techniques: List[str] = []
    if overall.accuracy < 70:
        techniques += ["concept_reinforcement", "error_analysis"]
    if overall.improvement < 0:
        techniques += ["motivation_techniques", "study_method_variation"]
    techniques += ["spaced_repetition", "active_recall"]

    by_need = sorted(gaps, key=lambda g: g.improvement_needed, reverse=True)
    total_need = sum(g.improvement_needed for g in gaps)
    allocation: Dict[str, int] = {
        g.topic: int(round(g.improvement_needed / total_need * 100)) if total_need > 0 else 0 for g in gaps
    }

    return StudyStrategy(
        primary_approach=approach,
        secondary_techniques=tuple(techniques),
        focus_areas=tuple(g.topic for g in by_need[:3]),
        time_allocation=allocation,
        review_schedule=_review_schedule(gap_analysis, as_of),
    )


def _review_schedule(gap_analysis: GapAnalysis, as_of: date) -> ReviewSchedule:
    gaps = _all_gaps(gap_analysis)
    mastery_topics = [m.topic for m in gap_analysis.mastery_areas]

    daily = [g.topic for g in gap_analysis.critical_gaps[:2]]
    weekly = [g.topic for g in gap_analysis.moderate_gaps[:3]] + mastery_topics[:2]
    monthly = list(dict.fromkeys([g.topic for g in gaps] + mastery_topics))

    spaced = []
    for gap in gaps:
        interval = review_interval_days(gap.improvement_needed)
        spaced.append(
            SpacedRepetitionItem(
                topic=gap.topic,
                next_review_date=as_of + timedelta(days=interval),
                interval_days=interval,
                difficulty_level=gap.improvement_needed,
            )
        )

    return ReviewSchedule(
        daily_review=tuple(daily),
        weekly_review=tuple(weekly),
        monthly_review=tuple(monthly),
        spaced_repetition=tuple(spaced),
    )


def _motivation_boosters(
    performance: DetailedPerformance, gap_analysis: GapAnalysis
) -> Tuple[MotivationBooster, ...]:
    overall = performance.overall
    boosters: List[MotivationBooster] = []

    mastered = len(gap_analysis.mastery_areas)
    if mastered:
        plural = "s" if mastered > 1 else ""
        boosters.append(
            MotivationBooster(
                type="achievement",
                message=f"Excellent! You've mastered {mastered} topic{plural}",
                action_trigger="Continue building on your strengths",
            )
        )

    if overall.improvement > 0:
        boosters.append(
            MotivationBooster(
                type="progress",
                message=f"You're improving! Your scores have risen by {round(overall.improvement)} points",
                action_trigger="Keep up the momentum",
            )
        )

    if overall.streak > 3:
        boosters.append(
            MotivationBooster(
                type="achievement",
                message=f"Amazing {overall.streak}-exam passing streak!",
                action_trigger="Don't break the chain",
            )
        )

    return tuple(boosters)
