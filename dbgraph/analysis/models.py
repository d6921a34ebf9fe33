"""
Analysis Domain Models

Result structures returned by the analyzers: topology statistics, index
hygiene, coupling, impact trees and the combined schema report.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from dbgraph.core.graph_model import Edge, NodeType


# ---------------------------------------------------------------------------
# Topology
# ---------------------------------------------------------------------------

# Risk tiers of a ranked node: centrality above MED/HIGH, or a hub with
# more than CRITICAL_IN dependents and CRITICAL_OUT dependencies
RISK_MED_CENTRALITY = 5
RISK_HIGH_CENTRALITY = 10
RISK_CRITICAL_IN = 5
RISK_CRITICAL_OUT = 2


@dataclass
class NodeRank:
    """Topological importance of one node."""
    id: str
    type: NodeType
    in_degree: int
    out_degree: int
    rows: int
    centrality: float

    @property
    def risk(self) -> str:
        if self.in_degree > RISK_CRITICAL_IN and self.out_degree > RISK_CRITICAL_OUT:
            return "CRITICAL"
        if self.centrality > RISK_HIGH_CENTRALITY:
            return "HIGH"
        if self.centrality > RISK_MED_CENTRALITY:
            return "MED"
        return "LOW"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "in_degree": self.in_degree,
            "out_degree": self.out_degree,
            "rows": self.rows,
            "centrality": self.centrality,
            "risk": self.risk,
        }


@dataclass
class GraphStats:
    """Topology metrics of a schema graph."""
    nodes: int = 0
    edges: int = 0
    density: float = 0.0
    components: int = 0
    max_centrality: float = 0.0
    central_node: Optional[str] = None
    longest_path: int = 0
    deepest_chain: List[str] = field(default_factory=list)
    isolated_nodes: List[str] = field(default_factory=list)
    isolated_groups: List[List[str]] = field(default_factory=list)
    top_nodes: List[NodeRank] = field(default_factory=list)
    node_types: Dict[str, int] = field(default_factory=dict)
    edge_types: Dict[str, int] = field(default_factory=dict)

    def top(self, n: int = 10) -> List[NodeRank]:
        return self.top_nodes[:n]

    def to_dict(self, top_n: Optional[int] = None) -> Dict[str, Any]:
        ranks = self.top_nodes if top_n is None else self.top_nodes[:top_n]
        return {
            "nodes": self.nodes,
            "edges": self.edges,
            "density": round(self.density, 6),
            "components": self.components,
            "max_centrality": self.max_centrality,
            "central_node": self.central_node,
            "longest_path": self.longest_path,
            "deepest_chain": list(self.deepest_chain),
            "isolated_nodes": list(self.isolated_nodes),
            "isolated_groups": [list(g) for g in self.isolated_groups],
            "top_nodes": [r.to_dict() for r in ranks],
            "node_types": dict(self.node_types),
            "edge_types": dict(self.edge_types),
        }


# ---------------------------------------------------------------------------
# Index hygiene / coupling
# ---------------------------------------------------------------------------

@dataclass
class IndexReport:
    """Foreign keys with and without a supporting index."""
    total_foreign_keys: int = 0
    checked_foreign_keys: int = 0
    indexed_foreign_keys: int = 0
    skipped_foreign_keys: int = 0
    missing_indexes: List[str] = field(default_factory=list)

    @property
    def all_indexed(self) -> bool:
        return self.checked_foreign_keys > 0 and not self.missing_indexes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_foreign_keys": self.total_foreign_keys,
            "checked_foreign_keys": self.checked_foreign_keys,
            "indexed_foreign_keys": self.indexed_foreign_keys,
            "skipped_foreign_keys": self.skipped_foreign_keys,
            "missing_indexes": list(self.missing_indexes),
        }


@dataclass
class GodObject:
    """Node with excessive connectivity."""
    id: str
    degree: int
    dependents: int
    dependencies: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "degree": self.degree,
            "dependents": self.dependents,
            "dependencies": self.dependencies,
        }


# ---------------------------------------------------------------------------
# Impact
# ---------------------------------------------------------------------------

class WarningSeverity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"


class WarningKind(str, Enum):
    CASCADE = "cascade"
    VIEW_COUPLING = "view_coupling"
    MISSING_INDEX = "missing_index"


@dataclass
class ImpactWarning:
    """Structural risk found while expanding an impact tree."""
    kind: WarningKind
    severity: WarningSeverity
    source_id: str
    target_id: str
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "source_id": self.source_id,
            "target_id": self.target_id,
            "message": self.message,
        }


@dataclass
class ImpactNode:
    """Node of a reverse-dependency tree."""
    id: str
    type: NodeType
    size: str
    row_count: int
    depth: int
    arrival_edge: Optional[Edge] = None
    children: List[ImpactNode] = field(default_factory=list)

    def walk(self):
        """Yield this node and its descendants in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def to_dict(self) -> Dict[str, Any]:
        edge = self.arrival_edge
        return {
            "id": self.id,
            "type": self.type.value,
            "size": self.size,
            "row_count": self.row_count,
            "depth": self.depth,
            "edge": {
                "type": edge.type.value,
                "constraint_name": edge.constraint_name,
                "delete_rule": edge.delete_rule,
            } if edge else None,
            "children": [c.to_dict() for c in self.children],
        }


@dataclass
class ImpactReport:
    """Everything affected by a change to ``root``."""
    root: ImpactNode
    total_affected: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    max_depth: int = 0
    warnings: List[ImpactWarning] = field(default_factory=list)

    def affected_ids(self) -> List[str]:
        return [n.id for n in self.root.walk() if n.depth > 0]

    def get_warnings(self, kind: WarningKind) -> List[ImpactWarning]:
        return [w for w in self.warnings if w.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.root.id,
            "total_affected": self.total_affected,
            "by_type": dict(self.by_type),
            "max_depth": self.max_depth,
            "warnings": [w.to_dict() for w in self.warnings],
            "tree": self.root.to_dict(),
        }


# ---------------------------------------------------------------------------
# Combined report
# ---------------------------------------------------------------------------

@dataclass
class SchemaAnalysisResult:
    """Topology plus health checks for one schema graph."""
    timestamp: str
    stats: GraphStats
    cycles: List[List[str]]
    index_report: IndexReport
    god_objects: List[GodObject]
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    def to_dict(self, top_n: Optional[int] = None) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "topology": self.stats.to_dict(top_n=top_n),
            "cycles": [list(c) for c in self.cycles],
            "index_hygiene": self.index_report.to_dict(),
            "god_objects": [g.to_dict() for g in self.god_objects],
            "settings": dict(self.settings),
        }
