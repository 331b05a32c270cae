# ABOUTME: Loads engine configuration from YAML with in-code defaults.
# ABOUTME: Supplies study-plan budget, smoothing window, prerequisites, and concept graph.

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence, Tuple

import yaml

from .gaps import DEFAULT_PREREQUISITES, normalize_topic_key

DEFAULT_CONFIG_PATH = Path("configs/engine.yaml")


@dataclass(frozen=True)
class EngineConfig:
    hours_per_week: float = 10
    moving_average_window: int = 7
    prerequisites: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: dict(DEFAULT_PREREQUISITES))
    concept_relationships: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


def load_engine_config(path: Optional[Path] = None) -> EngineConfig:
    """
    Read engine settings from a YAML file.

    Missing keys fall back to the defaults on ``EngineConfig``. A missing
    file is an error only when the path was given explicitly.
    """

    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return EngineConfig()

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    defaults = EngineConfig()
    plan_cfg = cfg.get("study_plan", {}) or {}
    trend_cfg = cfg.get("trends", {}) or {}

    hours_per_week = float(plan_cfg.get("hours_per_week", defaults.hours_per_week))
    if hours_per_week <= 0:
        raise ValueError(f"study_plan.hours_per_week must be positive, got {hours_per_week}.")
    window = int(trend_cfg.get("moving_average_window", defaults.moving_average_window))
    if window < 1:
        raise ValueError(f"trends.moving_average_window must be positive, got {window}.")

    prerequisites = dict(defaults.prerequisites)
    prerequisites.update(
        {normalize_topic_key(topic): tuple(reqs) for topic, reqs in _as_graph(cfg.get("prerequisites")).items()}
    )

    return EngineConfig(
        hours_per_week=hours_per_week,
        moving_average_window=window,
        prerequisites=prerequisites,
        concept_relationships=_as_graph(cfg.get("concept_relationships")),
    )


def _as_graph(raw: Optional[Mapping[str, Sequence[str]]]) -> Dict[str, Tuple[str, ...]]:
    if not raw:
        return {}
    return {str(node): tuple(str(n) for n in (neighbors or ())) for node, neighbors in raw.items()}
