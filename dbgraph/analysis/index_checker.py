"""
Index Hygiene Checker

Flags foreign keys whose referencing columns are not the leading columns of
any index on the referencing table. Such keys force sequential scans on the
child table for every delete or key update of the parent.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from dbgraph.core.graph_model import FK_COLUMNS_KEY, DependencyType, Edge, Graph, Node
from .models import IndexReport


def fk_columns(edge: Edge) -> Optional[List[str]]:
    """
    Foreign-key column list from edge metadata.

    Accepts a list or a comma-separated string; returns None when unknown.
    """
    raw = edge.metadata.get(FK_COLUMNS_KEY)
    if not raw:
        return None
    if isinstance(raw, str):
        columns = [c.strip() for c in raw.split(",") if c.strip()]
    else:
        columns = [str(c) for c in raw]
    return columns or None


def is_fk_covered(node: Optional[Node], columns: List[str]) -> bool:
    """True when some index of ``node`` starts with ``columns`` in order."""
    if node is None:
        return False
    n = len(columns)
    return any(len(index) >= n and list(index[:n]) == columns for index in node.indexes)


def format_fk(edge: Edge, columns: List[str]) -> str:
    return f"{edge.source_id}({','.join(columns)}) -> {edge.target_id}"


class IndexHygieneChecker:
    """Checks every FOREIGN_KEY edge for a supporting index."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def check(self, graph: Graph) -> IndexReport:
        report = IndexReport()

        for edge in graph.iter_edges():
            if edge.type != DependencyType.FOREIGN_KEY:
                continue
            report.total_foreign_keys += 1

            columns = fk_columns(edge)
            if columns is None:
                report.skipped_foreign_keys += 1
                continue

            report.checked_foreign_keys += 1
            if is_fk_covered(graph.get_node(edge.source_id), columns):
                report.indexed_foreign_keys += 1
            else:
                report.missing_indexes.append(format_fk(edge, columns))

        if report.skipped_foreign_keys:
            self.logger.debug(
                f"Skipped {report.skipped_foreign_keys} foreign key(s) without column metadata"
            )
        self.logger.info(
            f"Index hygiene: {report.indexed_foreign_keys}/{report.checked_foreign_keys} "
            f"foreign keys indexed"
        )
        return report
