# ABOUTME: Orchestrates the analytics engine into a single learner report.
# ABOUTME: Runs metrics, trends, gaps, and recommendations and serializes results to plain JSON types.

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional, Sequence, Tuple

from .config import EngineConfig
from .gaps import analyze_knowledge_gaps, detect_conceptual_gaps, generate_learning_paths, generate_study_plan
from .metrics import calculate_detailed_performance, calculate_study_efficiency
from .recommendation import generate_personalized_recommendations
from .schemas import (
    DetailedPerformance,
    ExamResult,
    GapAnalysis,
    LearningPath,
    PatternDetection,
    PerformanceTrend,
    PersonalizedRecommendations,
    StudyEfficiency,
    StudyWeek,
    TrendAnalysis,
)
from .trends import analyze_performance_trend, calculate_moving_average, detect_patterns


@dataclass(frozen=True)
class LearnerReport:
    as_of: datetime
    performance: DetailedPerformance
    trend: TrendAnalysis
    patterns: PatternDetection
    moving_average: Tuple[PerformanceTrend, ...]
    efficiency: StudyEfficiency
    gap_analysis: GapAnalysis
    learning_paths: Tuple[LearningPath, ...]
    study_plan: Tuple[StudyWeek, ...]
    conceptual_gaps: Tuple[str, ...]
    recommendations: PersonalizedRecommendations


def build_learner_report(
    results: Sequence[ExamResult],
    config: Optional[EngineConfig] = None,
    as_of: Optional[datetime] = None,
) -> LearnerReport:
    """
    Run every engine component over one learner's exam history.

    Metrics feed the trend analyzer (via the trend series) and the gap
    detector (via per-topic performance). ``as_of`` anchors the streak and
    review dates; it defaults to the most recent result.
    """

    config = config or EngineConfig()
    if as_of is None:
        as_of = max((r.date for r in results), default=None) or datetime.now(timezone.utc)

    performance = calculate_detailed_performance(results, as_of)
    gap_analysis = analyze_knowledge_gaps(performance.by_topic)

    return LearnerReport(
        as_of=as_of,
        performance=performance,
        trend=analyze_performance_trend(performance.trends),
        patterns=detect_patterns(performance.trends),
        moving_average=calculate_moving_average(performance.trends, config.moving_average_window),
        efficiency=calculate_study_efficiency(results),
        gap_analysis=gap_analysis,
        learning_paths=generate_learning_paths(gap_analysis, config.prerequisites),
        study_plan=generate_study_plan(gap_analysis, config.hours_per_week, config.prerequisites),
        conceptual_gaps=detect_conceptual_gaps(performance.by_topic, config.concept_relationships),
        recommendations=generate_personalized_recommendations(performance, gap_analysis, as_of.date()),
    )


def to_serializable(value: Any) -> Any:
    """
    Convert engine output into JSON-ready primitives.

    Dataclasses become dicts, tuples become lists, and dates become ISO strings.
    """

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_serializable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_serializable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_serializable(v) for v in value]
    if hasattr(value, "item"):
        # numpy scalars
        return value.item()
    return value
