"""
Analysis Package

Algorithms over the schema dependency graph and execution-plan trees.
"""

from .analyzer import SchemaAnalyzer
from .coupling_detector import CouplingDetector
from .cycle_detector import CycleDetector
from .impact_analyzer import ImpactAnalyzer
from .index_checker import IndexHygieneChecker, fk_columns, is_fk_covered
from .models import (
    GodObject,
    GraphStats,
    ImpactNode,
    ImpactReport,
    ImpactWarning,
    IndexReport,
    NodeRank,
    SchemaAnalysisResult,
    WarningKind,
    WarningSeverity,
)
from .structural_analyzer import StructuralAnalyzer
from .trace_aggregator import TraceAggregator

__all__ = [
    "SchemaAnalyzer",
    "StructuralAnalyzer",
    "CycleDetector",
    "IndexHygieneChecker",
    "CouplingDetector",
    "ImpactAnalyzer",
    "TraceAggregator",
    "fk_columns",
    "is_fk_covered",
    "GraphStats",
    "NodeRank",
    "IndexReport",
    "GodObject",
    "ImpactNode",
    "ImpactReport",
    "ImpactWarning",
    "WarningKind",
    "WarningSeverity",
    "SchemaAnalysisResult",
]
