"""
Coupling Detector

Flags "god objects": tables or views whose combined fan-in and fan-out
reaches a fixed threshold. A plain degree heuristic, not an outlier test;
the threshold is AnalysisSettings.god_object_threshold.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_model import Graph
from .models import GodObject


class CouplingDetector:

    def __init__(self, settings: Optional[AnalysisSettings] = None) -> None:
        self.settings = settings or AnalysisSettings()
        self.logger = logging.getLogger(__name__)

    @property
    def threshold(self) -> int:
        return self.settings.god_object_threshold

    def detect(self, graph: Graph) -> List[GodObject]:
        """Nodes with in + out degree >= threshold, highest degree first."""
        in_degree, out_degree = graph.degrees()

        gods = []
        for nid in graph.nodes:
            total = in_degree[nid] + out_degree[nid]
            if total >= self.threshold:
                gods.append(GodObject(
                    id=nid,
                    degree=total,
                    dependents=in_degree[nid],
                    dependencies=out_degree[nid],
                ))

        gods.sort(key=lambda g: (-g.degree, g.id))
        self.logger.info(f"Found {len(gods)} god object(s) at threshold {self.threshold}")
        return gods
