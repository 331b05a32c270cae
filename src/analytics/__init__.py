# ABOUTME: Makes the learner analytics engine importable as one package.
# ABOUTME: Re-exports the schema types and the top-level engine entrypoints.

from .schemas import ExamResult, PerformanceMetrics, PerformanceTrend, TopicPerformance
from .metrics import calculate_detailed_performance, calculate_overall_metrics
from .trends import analyze_performance_trend, detect_patterns
from .gaps import analyze_knowledge_gaps, generate_learning_paths, generate_study_plan
from .report import build_learner_report, to_serializable

__all__ = [
    "ExamResult",
    "PerformanceMetrics",
    "PerformanceTrend",
    "TopicPerformance",
    "calculate_detailed_performance",
    "calculate_overall_metrics",
    "analyze_performance_trend",
    "detect_patterns",
    "analyze_knowledge_gaps",
    "generate_learning_paths",
    "generate_study_plan",
    "build_learner_report",
    "to_serializable",
]
