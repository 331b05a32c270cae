# ABOUTME: Classifies topics into knowledge gaps and mastery areas from per-topic metrics.
# ABOUTME: Ranks gaps, builds learning paths, packs weekly study plans, and finds conceptual gaps.

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .schemas import (
    GapAnalysis,
    KnowledgeGap,
    LearningPath,
    StudyWeek,
    TopicMastery,
    TopicPerformance,
)

GAP_ACCURACY_THRESHOLD = 80.0
MASTERY_THRESHOLD = 80.0
MASTERY_MIN_QUESTIONS = 2
CRITICAL_THRESHOLD = 0.7
MODERATE_THRESHOLD = 0.4
TARGET_LEVEL = 85.0
CONCEPT_WEAK_ACCURACY = 70.0
RELATED_WEAK_ACCURACY = 60.0

DIFFICULTY_TIME_MULTIPLIER = {"hard": 1.5, "medium": 1.2, "easy": 1.0}

DEFAULT_PREREQUISITES: Dict[str, Tuple[str, ...]] = {
    "advanced_calculus": ("basic_calculus", "algebra"),
    "organic_chemistry": ("general_chemistry", "basic_chemistry"),
    "data_structures": ("programming_basics", "algorithms"),
    "machine_learning": ("statistics", "linear_algebra", "programming"),
    "physics_mechanics": ("mathematics", "basic_physics"),
    "advanced_grammar": ("basic_grammar", "vocabulary"),
    "essay_writing": ("basic_writing", "grammar", "reading_comprehension"),
}

DIFFICULTY_PROGRESSIONS: Dict[str, Tuple[str, ...]] = {
    "easy": (
        "Review basic concepts",
        "Practice simple questions",
        "Build confidence with repetition",
        "Gradually increase complexity",
    ),
    "medium": (
        "Strengthen foundational knowledge",
        "Practice mixed difficulty questions",
        "Focus on problem-solving strategies",
        "Apply concepts to new scenarios",
        "Master advanced applications",
    ),
    "hard": (
        "Start with prerequisite topics",
        "Break down complex concepts",
        "Practice with guided examples",
        "Work through step-by-step solutions",
        "Gradually remove guidance",
        "Practice independently",
        "Master advanced variations",
    ),
}


def analyze_knowledge_gaps(topic_performances: Sequence[TopicPerformance]) -> GapAnalysis:
    """
    Split topics into gap buckets and mastery areas.

    Every topic under 80% accuracy becomes exactly one gap, bucketed by
    ``improvement_needed``: critical (>= 0.7), moderate (>= 0.4) or minor.
    """

    gaps = [_build_gap(p) for p in topic_performances if p.metrics.accuracy < GAP_ACCURACY_THRESHOLD]

    critical: List[KnowledgeGap] = []
    moderate: List[KnowledgeGap] = []
    minor: List[KnowledgeGap] = []
    for gap in gaps:
        if gap.improvement_needed >= CRITICAL_THRESHOLD:
            critical.append(gap)
        elif gap.improvement_needed >= MODERATE_THRESHOLD:
            moderate.append(gap)
        else:
            minor.append(gap)

    ranked = sorted(gaps, key=priority_score, reverse=True)
    return GapAnalysis(
        critical_gaps=tuple(critical),
        moderate_gaps=tuple(moderate),
        minor_gaps=tuple(minor),
        mastery_areas=_mastery_areas(topic_performances),
        improvement_priority=tuple(gap.topic for gap in ranked),
    )


def improvement_needed(performance: TopicPerformance) -> float:
    metrics = performance.metrics
    accuracy_gap = (85 - metrics.accuracy) / 85
    consistency_gap = (80 - metrics.consistency) / 80
    speed_penalty = 0.3 if metrics.average_time > 120 else 0.0
    return max(0.0, min(1.0, accuracy_gap + consistency_gap + speed_penalty))


def priority_score(gap: KnowledgeGap) -> float:
    score = gap.improvement_needed * 100
    score += min(20, gap.question_count * 2)

    if gap.accuracy_rate < 0.3:
        score += 30
    elif gap.accuracy_rate < 0.5:
        score += 20
    elif gap.accuracy_rate < 0.7:
        score += 10

    if gap.difficulty_level == "hard":
        score += 15
    elif gap.difficulty_level == "medium":
        score += 10
    return score


def recommended_actions(performance: TopicPerformance) -> Tuple[str, ...]:
    metrics = performance.metrics
    actions: List[str] = []

    if metrics.accuracy < 50:
        actions += [
            "Review fundamental concepts",
            "Start with easier questions",
            "Seek additional learning resources",
        ]
    elif metrics.accuracy < 70:
        actions += [
            "Practice more questions in this topic",
            "Focus on understanding common mistakes",
            "Review incorrect answers",
        ]
    else:
        actions += ["Practice advanced questions", "Focus on speed improvement"]

    if metrics.average_time > 180:
        actions += [
            "Practice time management techniques",
            "Use elimination strategies",
            "Build topic familiarity through repetition",
        ]

    if metrics.consistency < 60:
        actions += [
            "Establish regular practice schedule",
            "Focus on consistent study environment",
            "Track daily progress",
        ]

    if performance.question_count < 10:
        actions += ["Increase practice volume", "Attempt more questions in this topic"]

    return tuple(actions[:4])


def generate_learning_paths(
    gap_analysis: GapAnalysis,
    prerequisites: Optional[Mapping[str, Sequence[str]]] = None,
) -> Tuple[LearningPath, ...]:
    """
    Build one learning path per critical or moderate gap, widest gap first.

    ``prerequisites`` maps normalized topic keys (lower case, underscores) to
    prerequisite topics; unknown topics get none.
    """

    table = DEFAULT_PREREQUISITES if prerequisites is None else prerequisites
    paths = [
        _build_learning_path(gap, table)
        for gap in tuple(gap_analysis.critical_gaps) + tuple(gap_analysis.moderate_gaps)
    ]
    return tuple(sorted(paths, key=lambda p: p.target_level - p.current_level, reverse=True))


def generate_study_plan(
    gap_analysis: GapAnalysis,
    hours_per_week: float = 10,
    prerequisites: Optional[Mapping[str, Sequence[str]]] = None,
) -> Tuple[StudyWeek, ...]:
    """
    Greedily pack learning paths into weeks of at most ``hours_per_week`` hours.

    A path that does not fit closes the current week and opens the next one.
    A path longer than the weekly budget gets a week of its own.
    """

    critical = {gap.topic for gap in gap_analysis.critical_gaps}
    moderate = {gap.topic for gap in gap_analysis.moderate_gaps}

    weeks: List[StudyWeek] = []
    topics: List[str] = []
    used = 0

    def close_week() -> None:
        if topics:
            weeks.append(
                StudyWeek(
                    week=len(weeks) + 1,
                    topics=tuple(topics),
                    hours=used,
                    focus=_week_focus(topics, critical, moderate),
                )
            )

    for path in generate_learning_paths(gap_analysis, prerequisites):
        if topics and used + path.estimated_time > hours_per_week:
            close_week()
            topics, used = [], 0
        topics.append(path.topic)
        used += path.estimated_time

    close_week()
    return tuple(weeks)


def detect_conceptual_gaps(
    topic_performances: Sequence[TopicPerformance],
    concept_relationships: Mapping[str, Sequence[str]],
) -> Tuple[str, ...]:
    by_topic = {p.topic: p for p in topic_performances}
    found: Dict[str, None] = {}
    for performance in topic_performances:
        if performance.metrics.accuracy >= CONCEPT_WEAK_ACCURACY:
            continue
        for concept in concept_relationships.get(performance.topic, ()):
            related = by_topic.get(concept)
            if related is None or related.metrics.accuracy < RELATED_WEAK_ACCURACY:
                found[f"{performance.topic} → {concept}"] = None
    return tuple(found)


def normalize_topic_key(topic: str) -> str:
    return "_".join(topic.lower().split())


def _build_gap(performance: TopicPerformance) -> KnowledgeGap:
    accuracy = performance.metrics.accuracy
    if accuracy < 50:
        difficulty = "hard"
    elif accuracy < 70:
        difficulty = "medium"
    else:
        difficulty = "easy"

    return KnowledgeGap(
        topic=performance.topic,
        difficulty_level=difficulty,
        accuracy_rate=round(accuracy / 100, 2),
        question_count=performance.question_count,
        improvement_needed=round(improvement_needed(performance), 2),
        recommended_actions=recommended_actions(performance),
    )


def _mastery_areas(topic_performances: Sequence[TopicPerformance]) -> Tuple[TopicMastery, ...]:
    mastered = [
        p
        for p in topic_performances
        if p.metrics.accuracy >= MASTERY_THRESHOLD
        and p.mastery_level >= MASTERY_THRESHOLD
        and p.question_count >= MASTERY_MIN_QUESTIONS
    ]
    areas = [
        TopicMastery(
            topic=p.topic,
            mastery_level=p.mastery_level,
            questions_attempted=p.question_count,
            questions_correct=int(round(p.metrics.accuracy / 100 * p.question_count)),
            average_time=p.metrics.average_time,
            last_practiced=p.last_practiced,
            improvement_rate=p.metrics.improvement,
        )
        for p in mastered
    ]
    return tuple(sorted(areas, key=lambda m: m.mastery_level, reverse=True))


def _build_learning_path(gap: KnowledgeGap, prerequisites: Mapping[str, Sequence[str]]) -> LearningPath:
    multiplier = DIFFICULTY_TIME_MULTIPLIER.get(gap.difficulty_level, 1.2)
    estimated = int(round((10 + gap.improvement_needed * 20) * multiplier))
    return LearningPath(
        topic=gap.topic,
        current_level=round(gap.accuracy_rate * 100, 2),
        target_level=TARGET_LEVEL,
        estimated_time=estimated,
        prerequisites=tuple(prerequisites.get(normalize_topic_key(gap.topic), ())),
        recommended_actions=gap.recommended_actions,
        difficulty_progression=DIFFICULTY_PROGRESSIONS.get(gap.difficulty_level, DIFFICULTY_PROGRESSIONS["medium"]),
    )


def _week_focus(topics: Sequence[str], critical: set, moderate: set) -> str:
    if any(topic in critical for topic in topics):
        return "Critical improvement"
    if any(topic in moderate for topic in topics):
        return "Skill building"
    return "Refinement and mastery"
