"""
Graph Exporter

Exports schema Graph instances through networkx:
- NetworkX (MultiDiGraph object)
- GraphML (for Gephi, yEd)
- JSON node-link data
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

import networkx as nx

from .graph_model import FK_COLUMNS_KEY, Graph


class GraphExporter:
    """
    Exports schema graphs to networkx and networkx file formats.

    Parallel dependencies are preserved: every Edge becomes one MultiDiGraph
    edge keyed by its position in the source's adjacency list.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def to_networkx(self, graph: Graph) -> nx.MultiDiGraph:
        """Convert a Graph to a networkx MultiDiGraph"""
        G = nx.MultiDiGraph(**{k: v for k, v in graph.metadata.items()
                               if isinstance(v, (str, int, float, bool))})

        for nid, node in graph.nodes.items():
            G.add_node(
                nid,
                type=node.type.value,
                schema=node.schema,
                name=node.name,
                size=node.size,
                row_count=node.row_count,
                indexes=";".join(",".join(cols) for cols in node.indexes),
            )

        for source_id, edges in graph.edges.items():
            for key, edge in enumerate(edges):
                G.add_edge(
                    source_id,
                    edge.target_id,
                    key=key,
                    type=edge.type.value,
                    constraint_name=edge.constraint_name,
                    delete_rule=edge.delete_rule,
                    fk_columns=self._flatten_columns(edge.metadata.get(FK_COLUMNS_KEY)),
                )

        self.logger.debug(f"Converted {graph!r} to MultiDiGraph")
        return G

    def export_graphml(self, graph: Graph, filepath: str) -> str:
        """Export a Graph to GraphML format"""
        self.logger.info(f"Exporting to GraphML: {filepath}")

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        nx.write_graphml(self.to_networkx(graph), str(path))
        return str(path)

    def export_json(self, graph: Graph, filepath: str, indent: int = 2) -> str:
        """Export a Graph as networkx node-link JSON"""
        self.logger.info(f"Exporting to JSON: {filepath}")

        data: Dict[str, Any] = nx.node_link_data(self.to_networkx(graph), edges="links")
        data['_export'] = {
            'format': 'node-link',
            'exported_at': datetime.now(timezone.utc).isoformat(),
            'statistics': graph.get_statistics(),
        }

        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, default=str)
        return str(path)

    def export(self, graph: Graph, filepath: str) -> str:
        """Pick the format from the file extension (.graphml, else JSON)."""
        if Path(filepath).suffix.lower() == '.graphml':
            return self.export_graphml(graph, filepath)
        return self.export_json(graph, filepath)

    @staticmethod
    def _flatten_columns(columns: Any) -> str:
        if not columns:
            return ""
        if isinstance(columns, str):
            return columns
        return ",".join(str(c) for c in columns)
