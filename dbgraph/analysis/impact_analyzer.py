"""
Impact Analyzer

Builds the reverse-dependency tree of a schema object: everything that would
be affected if the object were dropped or altered. While expanding the tree,
structural risks are recorded as warnings:

    Cascade        (High)   - ON DELETE CASCADE foreign key into the object
    View coupling  (Medium) - view that depends on the object indirectly
    Missing index  (Medium) - foreign key without a covering index

Each object appears once, at the depth where the depth-first expansion first
reaches it.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import List, Optional

from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_model import DependencyType, Edge, Graph
from .index_checker import fk_columns, is_fk_covered
from .models import (
    ImpactNode,
    ImpactReport,
    ImpactWarning,
    WarningKind,
    WarningSeverity,
)


class ImpactAnalyzer:
    """
    Reverse-dependency tree construction with risk annotations.

    Usage:
        report = ImpactAnalyzer().build_tree(graph, "public.users")
        for warning in report.warnings:
            print(warning)
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None) -> None:
        self.settings = settings or AnalysisSettings()
        self.logger = logging.getLogger(__name__)

    def build_tree(self, graph: Graph, target_id: str) -> ImpactReport:
        """
        Expand everything that depends on ``target_id``.

        Args:
            graph: Populated schema graph
            target_id: Id (schema.name) of the object being changed

        Returns:
            ImpactReport with the tree, counts and warnings

        Raises:
            KeyError: If target_id is not a node of the graph
        """
        target = graph.get_node(target_id)
        if target is None:
            raise KeyError(f"Unknown schema object: '{target_id}'")

        self.logger.info(f"Building impact tree for {target_id}")
        reverse = graph.reverse_adjacency()

        root = self._make_node(graph, target_id, depth=0)
        report = ImpactReport(root=root)
        by_type: Counter = Counter()
        visited = {target_id}

        # explicit stack replaying recursive pre-order expansion
        stack = [(root, iter(reverse.get(target_id, [])))]
        while stack:
            parent, edges = stack[-1]
            descended = False
            for edge in edges:
                source_id = edge.source_id
                if source_id in visited:
                    continue
                visited.add(source_id)

                child = self._make_node(graph, source_id, depth=parent.depth + 1, edge=edge)
                parent.children.append(child)
                report.total_affected += 1
                by_type[child.type.value] += 1
                report.max_depth = max(report.max_depth, child.depth)
                report.warnings.extend(self._warnings_for(graph, parent, child, edge))

                stack.append((child, iter(reverse.get(source_id, []))))
                descended = True
                break
            if not descended:
                stack.pop()

        report.by_type = dict(by_type)
        self.logger.info(
            f"Impact of {target_id}: {report.total_affected} object(s), "
            f"{report.max_depth} level(s), {len(report.warnings)} warning(s)"
        )
        return report

    def downstream(self, graph: Graph, *node_ids: str) -> List[str]:
        """Flat set of dependents of any of ``node_ids`` (breadth-first order)."""
        return graph.get_downstream(*node_ids)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _make_node(graph: Graph, nid: str, depth: int, edge: Optional[Edge] = None) -> ImpactNode:
        node = graph.nodes[nid]
        return ImpactNode(
            id=nid,
            type=node.type,
            size=node.size,
            row_count=node.row_count,
            depth=depth,
            arrival_edge=edge,
        )

    def _warnings_for(self, graph: Graph, parent: ImpactNode, child: ImpactNode,
                      edge: Edge) -> List[ImpactWarning]:
        warnings: List[ImpactWarning] = []

        if edge.type == DependencyType.FOREIGN_KEY and edge.is_cascade:
            message = (
                f"Cascade Delete: Deleting '{parent.id}' will recursively delete "
                f"rows in '{child.id}'"
            )
            if child.row_count > self.settings.cascade_row_threshold:
                message += f" (~{child.row_count} rows potentially locked/deleted)"
            warnings.append(ImpactWarning(
                kind=WarningKind.CASCADE,
                severity=WarningSeverity.HIGH,
                source_id=child.id,
                target_id=parent.id,
                message=message + ".",
            ))

        if edge.type == DependencyType.VIEW_DEPENDS and child.depth >= self.settings.view_coupling_min_depth:
            warnings.append(ImpactWarning(
                kind=WarningKind.VIEW_COUPLING,
                severity=WarningSeverity.MEDIUM,
                source_id=child.id,
                target_id=parent.id,
                message=(
                    f"View Coupling: '{child.id}' is {child.depth} levels removed "
                    f"but will break on schema change."
                ),
            ))

        if edge.type == DependencyType.FOREIGN_KEY:
            columns = fk_columns(edge)
            if columns is not None and not is_fk_covered(graph.get_node(child.id), columns):
                warnings.append(ImpactWarning(
                    kind=WarningKind.MISSING_INDEX,
                    severity=WarningSeverity.MEDIUM,
                    source_id=child.id,
                    target_id=parent.id,
                    message=(
                        f"Missing Index: '{child.id}({','.join(columns)})' is not indexed. "
                        f"Cascade/Delete operations will be slow."
                    ),
                ))

        return warnings
