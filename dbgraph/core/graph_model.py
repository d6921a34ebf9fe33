"""
Graph Model

Data structures for representing a relational schema as a dependency graph:

Vertices:
- Node: {id = schema.name, schema, name, type (TABLE|VIEW|TRIGGER), size, row_count, indexes}

Edges (source depends on target):
- FOREIGN_KEY    (Table → referenced Table): {constraint_name, delete_rule, metadata.fk_columns}
- VIEW_DEPENDS   (View → Table/View)
- TRIGGER_ACTION (Trigger → Table)
- INHERITANCE    (Partition/Child → Parent)

The Graph is built once per analysis by a schema source, queried by the
analyzers in dbgraph.analysis, and discarded.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


# Edge metadata key holding the ordered foreign-key column list
FK_COLUMNS_KEY = "fk_columns"


# =============================================================================
# Enumerations
# =============================================================================

class NodeType(str, Enum):
    """Kind of database object"""
    TABLE = "TABLE"
    VIEW = "VIEW"
    TRIGGER = "TRIGGER"


class DependencyType(str, Enum):
    """Kind of dependency between two objects"""
    FOREIGN_KEY = "FOREIGN_KEY"
    VIEW_DEPENDS = "VIEW_DEPENDS"
    TRIGGER_ACTION = "TRIGGER_ACTION"
    INHERITANCE = "INHERITANCE"


class DeleteRule(str, Enum):
    """Referential action of a foreign key"""
    CASCADE = "CASCADE"
    RESTRICT = "RESTRICT"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    NO_ACTION = "NO ACTION"


# =============================================================================
# Vertex / Edge
# =============================================================================

@dataclass
class Node:
    """Database object vertex"""
    id: str
    schema: str
    name: str
    type: NodeType = NodeType.TABLE
    size: str = ""
    row_count: int = 0
    indexes: List[List[str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'schema': self.schema,
            'name': self.name,
            'type': self.type.value,
            'size': self.size,
            'row_count': self.row_count,
            'indexes': [list(cols) for cols in self.indexes],
        }


@dataclass
class Edge:
    """Directed dependency: source depends on target"""
    source_id: str
    target_id: str
    type: DependencyType
    constraint_name: str = ""
    delete_rule: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_cascade(self) -> bool:
        return self.delete_rule.upper() == DeleteRule.CASCADE.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.source_id,
            'to': self.target_id,
            'type': self.type.value,
            'constraint_name': self.constraint_name,
            'delete_rule': self.delete_rule,
            'metadata': dict(self.metadata),
        }


# =============================================================================
# Graph
# =============================================================================

def node_id(schema: str, name: str) -> str:
    """Build the unique id of a database object"""
    return f"{schema}.{name}"


class Graph:
    """
    Adjacency-list graph of a database schema.

    Invariants:
    - every edge endpoint exists in ``nodes``
    - add_node never overwrites a non-empty size or non-zero row count
    """

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self.edges: Dict[str, List[Edge]] = {}
        self.metadata: Dict[str, Any] = {}

    # Mutation
    def add_node(self, schema: str, name: str, node_type: NodeType = NodeType.TABLE,
                 size: str = "", row_count: int = 0) -> Node:
        """Insert a node, or backfill missing size/row count of an existing one."""
        nid = node_id(schema, name)
        node = self.nodes.get(nid)
        if node is None:
            node = Node(id=nid, schema=schema, name=name, type=NodeType(node_type),
                        size=size, row_count=row_count)
            self.nodes[nid] = node
            return node

        if not node.size and size:
            node.size = size
        if node.row_count == 0 and row_count:
            node.row_count = row_count
        return node

    def add_index(self, schema: str, name: str, columns: List[str]) -> None:
        node = self.nodes.get(node_id(schema, name))
        if node is not None:
            node.indexes.append(list(columns))

    def add_edge(self, source_schema: str, source_name: str,
                 target_schema: str, target_name: str,
                 dep_type: DependencyType, constraint_name: str = "",
                 delete_rule: str = "", metadata: Optional[Dict[str, Any]] = None) -> Edge:
        """
        Append a dependency edge, creating missing endpoints as tables.

        Duplicate edges are kept; callers that need uniqueness dedupe first.

        Returns:
            The newly appended Edge
        """
        source_id = node_id(source_schema, source_name)
        target_id = node_id(target_schema, target_name)

        if source_id not in self.nodes:
            self.add_node(source_schema, source_name, NodeType.TABLE)
        if target_id not in self.nodes:
            self.add_node(target_schema, target_name, NodeType.TABLE)

        edge = Edge(
            source_id=source_id,
            target_id=target_id,
            type=DependencyType(dep_type),
            constraint_name=constraint_name or "",
            delete_rule=delete_rule or "",
            metadata=dict(metadata) if metadata else {},
        )
        self.edges.setdefault(source_id, []).append(edge)
        return edge

    # Queries
    def get_node(self, nid: str) -> Optional[Node]:
        return self.nodes.get(nid)

    def has_node(self, nid: str) -> bool:
        return nid in self.nodes

    def find_node(self, name_or_id: str) -> Optional[Node]:
        """Resolve an exact id first, then the first node whose bare name matches."""
        if name_or_id in self.nodes:
            return self.nodes[name_or_id]
        for node in self.nodes.values():
            if node.name == name_or_id:
                return node
        return None

    def get_outgoing(self, nid: str) -> List[Edge]:
        return self.edges.get(nid, [])

    def iter_edges(self) -> Iterator[Edge]:
        for edges in self.edges.values():
            yield from edges

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.edges.values())

    def degrees(self) -> Tuple[Dict[str, int], Dict[str, int]]:
        """Return (in_degree, out_degree) for every node, parallel edges counted."""
        in_degree = {nid: 0 for nid in self.nodes}
        out_degree = {nid: 0 for nid in self.nodes}
        for source_id, edges in self.edges.items():
            out_degree[source_id] += len(edges)
            for edge in edges:
                in_degree[edge.target_id] += 1
        return in_degree, out_degree

    def reverse_adjacency(self) -> Dict[str, List[Edge]]:
        """Map each target id to the edges whose source depends on it."""
        reverse: Dict[str, List[Edge]] = {}
        for edge in self.iter_edges():
            reverse.setdefault(edge.target_id, []).append(edge)
        return reverse

    def get_downstream(self, *node_ids: str) -> List[str]:
        """
        Everything that depends on any of ``node_ids``, directly or transitively.

        Breadth-first over reverse edges. The sources themselves are excluded;
        unknown ids contribute nothing.

        Returns:
            Impacted node ids in discovery order
        """
        reverse = self.reverse_adjacency()
        visited = set(node_ids)
        queue = deque(node_ids)
        impacted: List[str] = []

        while queue:
            current = queue.popleft()
            for edge in reverse.get(current, []):
                dependent = edge.source_id
                if dependent not in visited:
                    visited.add(dependent)
                    impacted.append(dependent)
                    queue.append(dependent)

        return impacted

    # Serialization
    def to_dict(self) -> Dict[str, Any]:
        return {
            'metadata': self.metadata,
            'nodes': [n.to_dict() for n in self.nodes.values()],
            'edges': [e.to_dict() for e in self.iter_edges()],
        }

    def get_statistics(self) -> Dict[str, Any]:
        node_types = {t.value: 0 for t in NodeType}
        for node in self.nodes.values():
            node_types[node.type.value] += 1
        edge_types = {t.value: 0 for t in DependencyType}
        for edge in self.iter_edges():
            edge_types[edge.type.value] += 1
        return {
            'num_nodes': self.node_count,
            'num_edges': self.edge_count,
            'nodes_by_type': node_types,
            'edges_by_type': edge_types,
        }

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"
