"""
Core Package

Schema graph model, snapshot builder, exporter and execution-plan model.
"""

from .graph_builder import SchemaGraphBuilder, ValidationResult
from .graph_exporter import GraphExporter
from .graph_model import (
    FK_COLUMNS_KEY,
    DeleteRule,
    DependencyType,
    Edge,
    Graph,
    Node,
    NodeType,
    node_id,
)
from .trace_model import ExplainOutput, PlanNode, TraceResult, load_explain

__all__ = [
    "Graph",
    "Node",
    "Edge",
    "NodeType",
    "DependencyType",
    "DeleteRule",
    "FK_COLUMNS_KEY",
    "node_id",
    "SchemaGraphBuilder",
    "ValidationResult",
    "GraphExporter",
    "PlanNode",
    "ExplainOutput",
    "TraceResult",
    "load_explain",
]
