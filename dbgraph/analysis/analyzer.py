"""
Schema Analyzer

Facade running the topology analysis and the health checks (cycles, index
hygiene, god objects) over one graph, plus impact and trace entry points
sharing the same settings.

Usage:
    analyzer = SchemaAnalyzer(AnalysisSettings.from_env())
    result = analyzer.analyze(graph)
    report = analyzer.impact(graph, "orders")
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_model import Graph
from dbgraph.core.trace_model import ExplainOutput, TraceResult
from .coupling_detector import CouplingDetector
from .cycle_detector import CycleDetector
from .impact_analyzer import ImpactAnalyzer
from .index_checker import IndexHygieneChecker
from .models import ImpactReport, SchemaAnalysisResult
from .structural_analyzer import StructuralAnalyzer
from .trace_aggregator import TraceAggregator


class SchemaAnalyzer:
    """Runs every analyzer with one set of thresholds."""

    def __init__(self, settings: Optional[AnalysisSettings] = None) -> None:
        self.settings = settings or AnalysisSettings()
        self.logger = logging.getLogger(__name__)

        self.structural = StructuralAnalyzer(self.settings)
        self.cycles = CycleDetector()
        self.index_checker = IndexHygieneChecker()
        self.coupling = CouplingDetector(self.settings)
        self.impact_analyzer = ImpactAnalyzer(self.settings)
        self.trace_aggregator = TraceAggregator()

    def analyze(self, graph: Graph) -> SchemaAnalysisResult:
        """Topology metrics and schema health report."""
        self.logger.info(f"Running schema analysis on {graph!r}")
        return SchemaAnalysisResult(
            timestamp=datetime.now().isoformat(),
            stats=self.structural.analyze(graph),
            cycles=self.cycles.detect(graph),
            index_report=self.index_checker.check(graph),
            god_objects=self.coupling.detect(graph),
            settings=self.settings.to_dict(),
        )

    def impact(self, graph: Graph, name_or_id: str) -> ImpactReport:
        """
        Impact tree of an object given by id or bare name.

        Raises:
            KeyError: If no node matches
        """
        node = graph.find_node(name_or_id)
        if node is None:
            raise KeyError(f"Table or view '{name_or_id}' not found in the graph")
        return self.impact_analyzer.build_tree(graph, node.id)

    def trace(self, output: ExplainOutput) -> TraceResult:
        return self.trace_aggregator.aggregate(output)
