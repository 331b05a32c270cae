# ABOUTME: Defines canonical data structures shared by the analytics engine.
# ABOUTME: Centralizes exam result, metric, trend, and gap record definitions.

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple

DIFFICULTY_LEVELS = ("easy", "medium", "hard")


@dataclass(frozen=True)
class ExamResult:
    """One completed exam attempt, as handed over by the ingestion boundary."""

    id: str
    date: datetime
    score: float
    questions_answered: int
    questions_correct: int
    total_time: float  # seconds
    topics_covered: Tuple[str, ...] = ()
    difficulty_level: str = "medium"


@dataclass(frozen=True)
class PerformanceMetrics:
    accuracy: float = 0.0
    average_time: float = 0.0
    improvement: float = 0.0
    consistency: float = 0.0
    efficiency: float = 0.0
    streak: int = 0


@dataclass(frozen=True)
class TopicPerformance:
    topic: str
    metrics: PerformanceMetrics
    question_count: int
    time_spent: float
    mastery_level: float
    last_practiced: Optional[datetime] = None


@dataclass(frozen=True)
class DifficultyPerformance:
    difficulty: str
    metrics: PerformanceMetrics
    question_count: int
    success_rate: float
    average_attempts: int


@dataclass(frozen=True)
class TimeBasedPerformance:
    period: str
    date: date
    metrics: PerformanceMetrics
    exams_taken: int
    total_time: float


@dataclass(frozen=True)
class PerformanceTrend:
    """Chronological projection of an exam result consumed by the trend analyzer."""

    date: datetime
    score: float
    questions_answered: float
    time_spent: float
    topics_covered: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DetailedPerformance:
    overall: PerformanceMetrics
    by_topic: Tuple[TopicPerformance, ...]
    by_difficulty: Tuple[DifficultyPerformance, ...]
    by_time_period: Tuple[TimeBasedPerformance, ...]
    trends: Tuple[PerformanceTrend, ...]


@dataclass(frozen=True)
class PerformanceComparison:
    current_period: PerformanceMetrics
    previous_period: PerformanceMetrics
    change_percentage: float
    improvement_areas: Tuple[str, ...]
    declining_areas: Tuple[str, ...]


@dataclass(frozen=True)
class FatigueIndicator:
    session_duration: float
    accuracy_decline: float
    response_time_increase: float
    error_rate_increase: float


@dataclass(frozen=True)
class StudyEfficiency:
    questions_per_hour: float
    accuracy_per_minute: float
    optimal_study_duration: int
    fatigue_indicators: Tuple[FatigueIndicator, ...]
    peak_performance_times: Tuple[str, ...]


@dataclass(frozen=True)
class TrendAnalysis:
    direction: str  # improving | declining | stable
    strength: str  # weak | moderate | strong
    confidence: float
    slope: float
    r_squared: float
    prediction: float


@dataclass(frozen=True)
class WeeklyPattern:
    day_of_week: int  # Sunday=0 ... Saturday=6
    average_performance: float
    consistency: float
    activity_level: int


@dataclass(frozen=True)
class SeasonalTrend:
    period: str  # Jan ... Dec
    trend_direction: str  # up | down | stable
    magnitude: float
    confidence: float


@dataclass(frozen=True)
class PerformanceCycle:
    cycle_length: int
    peak_performance_day: int
    low_performance_day: int
    amplitude: float


@dataclass(frozen=True)
class Anomaly:
    date: datetime
    expected_score: float
    actual_score: float
    deviation: float
    possible_causes: Tuple[str, ...]


@dataclass(frozen=True)
class PatternDetection:
    weekly_patterns: Tuple[WeeklyPattern, ...] = ()
    seasonal_trends: Tuple[SeasonalTrend, ...] = ()
    performance_cycles: Tuple[PerformanceCycle, ...] = ()
    anomalies: Tuple[Anomaly, ...] = ()


@dataclass(frozen=True)
class KnowledgeGap:
    topic: str
    difficulty_level: str
    accuracy_rate: float
    question_count: int
    improvement_needed: float
    recommended_actions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TopicMastery:
    topic: str
    mastery_level: float
    questions_attempted: int
    questions_correct: int
    average_time: float
    last_practiced: Optional[datetime]
    improvement_rate: float


@dataclass(frozen=True)
class GapAnalysis:
    critical_gaps: Tuple[KnowledgeGap, ...] = ()
    moderate_gaps: Tuple[KnowledgeGap, ...] = ()
    minor_gaps: Tuple[KnowledgeGap, ...] = ()
    mastery_areas: Tuple[TopicMastery, ...] = ()
    improvement_priority: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LearningPath:
    topic: str
    current_level: float
    target_level: float
    estimated_time: int  # hours
    prerequisites: Tuple[str, ...] = ()
    recommended_actions: Tuple[str, ...] = ()
    difficulty_progression: Tuple[str, ...] = ()


@dataclass(frozen=True)
class StudyWeek:
    week: int
    topics: Tuple[str, ...]
    hours: int
    focus: str


@dataclass(frozen=True)
class ActionableRecommendation:
    id: str
    title: str
    description: str
    category: str
    priority: str
    estimated_time: int  # minutes
    expected_impact: int
    difficulty: str
    steps: Tuple[str, ...] = ()
    success_metrics: Tuple[str, ...] = ()


@dataclass(frozen=True)
class WeeklyGoal:
    goal_type: str
    target_value: float
    current_value: float
    progress_percentage: float
    recommended_actions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SpacedRepetitionItem:
    topic: str
    next_review_date: date
    interval_days: int
    difficulty_level: float


@dataclass(frozen=True)
class ReviewSchedule:
    daily_review: Tuple[str, ...] = ()
    weekly_review: Tuple[str, ...] = ()
    monthly_review: Tuple[str, ...] = ()
    spaced_repetition: Tuple[SpacedRepetitionItem, ...] = ()


@dataclass(frozen=True)
class StudyStrategy:
    primary_approach: str
    secondary_techniques: Tuple[str, ...]
    focus_areas: Tuple[str, ...]
    time_allocation: Dict[str, int] = field(default_factory=dict)
    review_schedule: ReviewSchedule = field(default_factory=ReviewSchedule)


@dataclass(frozen=True)
class MotivationBooster:
    type: str
    message: str
    action_trigger: str


@dataclass(frozen=True)
class PersonalizedRecommendations:
    immediate_actions: Tuple[ActionableRecommendation, ...]
    weekly_goals: Tuple[WeeklyGoal, ...]
    study_strategy: StudyStrategy
    motivation_boosters: Tuple[MotivationBooster, ...]
