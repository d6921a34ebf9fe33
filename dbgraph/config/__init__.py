"""
Configuration Package

Analysis thresholds loaded from defaults, environment or YAML.
"""

from .settings import AnalysisSettings

__all__ = [
    "AnalysisSettings",
]
