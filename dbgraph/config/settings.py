"""
Analysis Settings

Heuristic thresholds used by the analyzers. Values come from defaults,
environment variables or a YAML file.
"""

import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict

import yaml


ENV_PREFIX = "DBGRAPH_"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX + name} must be an integer, got '{raw}'")


@dataclass
class AnalysisSettings:
    """Tunable analysis thresholds."""

    # Total degree (fan-in + fan-out) at which a node counts as a god object
    god_object_threshold: int = 15

    # Weakly connected components smaller than this are reported as islands
    island_size_cutoff: int = 3

    # Cascade warnings mention the row count above this many rows
    cascade_row_threshold: int = 1000

    # Views reached at this depth or deeper get a coupling warning
    view_coupling_min_depth: int = 2

    @classmethod
    def from_env(cls) -> "AnalysisSettings":
        """Load settings from environment variables."""
        return cls(
            god_object_threshold=_env_int("GOD_OBJECT_THRESHOLD", 15),
            island_size_cutoff=_env_int("ISLAND_SIZE_CUTOFF", 3),
            cascade_row_threshold=_env_int("CASCADE_ROW_THRESHOLD", 1000),
            view_coupling_min_depth=_env_int("VIEW_COUPLING_MIN_DEPTH", 2),
        )

    @classmethod
    def from_yaml(cls, filepath: str) -> "AnalysisSettings":
        """Load settings from a YAML mapping; unknown keys are rejected."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Settings file must contain a mapping: {filepath}")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisSettings":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        values = {}
        for key, value in data.items():
            try:
                values[key] = int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer, got {value!r}") from None
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
