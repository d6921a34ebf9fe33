"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for the dbgraph test suite.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "impact"        # Run only impact tests
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from dbgraph.core.graph_model import DependencyType, Graph, NodeType


FK = DependencyType.FOREIGN_KEY
VIEW = DependencyType.VIEW_DEPENDS


# =============================================================================
# Graph Fixtures
# =============================================================================

@pytest.fixture
def empty_graph() -> Graph:
    return Graph()


@pytest.fixture
def chain_graph() -> Graph:
    """Strict chain A -> B -> C -> D -> E"""
    g = Graph()
    names = ["A", "B", "C", "D", "E"]
    for src, tgt in zip(names, names[1:]):
        g.add_edge("public", src, "public", tgt, FK)
    return g


@pytest.fixture
def shop_graph() -> Graph:
    """
    Small storefront schema:

        orders       -FK CASCADE->  users
        order_items  -FK CASCADE->  orders     (no index on order_id)
        payments     -FK RESTRICT-> orders     (indexed)
        user_summary -VIEW->        users
        order_report -VIEW->        user_summary, orders
        audit_log                              (isolated)
    """
    g = Graph()
    g.add_node("public", "users", NodeType.TABLE, "1 MB", 5000)
    g.add_node("public", "orders", NodeType.TABLE, "8 MB", 20000)
    g.add_node("public", "order_items", NodeType.TABLE, "", 100)
    g.add_node("public", "payments", NodeType.TABLE, "", 800)
    g.add_node("public", "user_summary", NodeType.VIEW)
    g.add_node("public", "order_report", NodeType.VIEW)
    g.add_node("public", "audit_log", NodeType.TABLE)

    g.add_index("public", "users", ["id"])
    g.add_index("public", "orders", ["id"])
    g.add_index("public", "orders", ["user_id", "created_at"])
    g.add_index("public", "payments", ["order_id"])

    g.add_edge("public", "orders", "public", "users", FK,
               "orders_user_id_fkey", "CASCADE", {"fk_columns": ["user_id"]})
    g.add_edge("public", "order_items", "public", "orders", FK,
               "order_items_order_id_fkey", "CASCADE", {"fk_columns": "order_id"})
    g.add_edge("public", "payments", "public", "orders", FK,
               "payments_order_id_fkey", "RESTRICT", {"fk_columns": ["order_id"]})
    g.add_edge("public", "user_summary", "public", "users", VIEW)
    g.add_edge("public", "order_report", "public", "user_summary", VIEW)
    g.add_edge("public", "order_report", "public", "orders", VIEW)
    return g


@pytest.fixture
def cyclic_graph() -> Graph:
    """Triangle a -> b -> c -> a, self loop on s, acyclic tail x -> y"""
    g = Graph()
    g.add_edge("app", "a", "app", "b", FK)
    g.add_edge("app", "b", "app", "c", FK)
    g.add_edge("app", "c", "app", "a", FK)
    g.add_edge("app", "s", "app", "s", FK)
    g.add_edge("app", "x", "app", "y", FK)
    g.add_edge("app", "x", "app", "a", FK)
    return g


# =============================================================================
# Snapshot Fixtures
# =============================================================================

@pytest.fixture
def snapshot_data() -> Dict[str, Any]:
    """Catalog snapshot equivalent to a small live introspection"""
    return {
        "metadata": {"database": "shop"},
        "nodes": [
            {"schema": "public", "name": "users", "type": "TABLE", "size": "1 MB", "row_count": 5000},
            {"schema": "public", "name": "orders", "type": "TABLE", "size": "8 MB", "row_count": 20000},
            {"schema": "public", "name": "order_items", "type": "TABLE", "row_count": -1},
            {"schema": "public", "name": "audit_log", "type": "TABLE", "row_count": 0},
            {"schema": "public", "name": "user_summary", "type": "VIEW"},
            {"schema": "public", "name": "sales_mv", "type": "MATERIALIZED VIEW"},
        ],
        "indexes": [
            {"schema": "public", "table": "users", "columns": ["id"]},
            {"schema": "public", "table": "orders", "columns": ["user_id", "created_at"]},
        ],
        "foreign_keys": [
            {"schema": "public", "table": "orders", "ref_schema": "public", "ref_table": "users",
             "constraint_name": "orders_user_id_fkey", "delete_rule": "CASCADE",
             "columns": ["user_id"]},
            {"schema": "public", "table": "order_items", "ref_schema": "public", "ref_table": "orders",
             "constraint_name": "order_items_order_id_fkey", "delete_rule": "cascade",
             "columns": "order_id"},
        ],
        "views": [
            {"schema": "public", "view": "user_summary", "ref_schema": "public", "ref_table": "users"},
            {"schema": "public", "view": "user_summary", "ref_schema": "public", "ref_table": "users"},
            {"schema": "public", "view": "sales_mv", "ref_schema": "public", "ref_table": "orders"},
        ],
        "triggers": [
            {"schema": "public", "table": "orders", "trigger": "orders_audit",
             "body": "BEGIN INSERT INTO audit_log VALUES (NEW.id); RETURN NEW; END;"},
        ],
        "inheritance": [
            {"parent_schema": "public", "parent": "orders",
             "child_schema": "public", "child": "orders_2024"},
        ],
    }


@pytest.fixture
def snapshot_file(tmp_path, snapshot_data) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data))
    return path


# =============================================================================
# Execution Plan Fixtures
# =============================================================================

@pytest.fixture
def explain_payload() -> list:
    """EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) output with a three-node plan"""
    return [{
        "Plan": {
            "Node Type": "Hash Join",
            "Join Type": "Inner",
            "Startup Cost": 1.5,
            "Total Cost": 42.25,
            "Plan Rows": 100,
            "Actual Rows": 97,
            "Actual Loops": 1,
            "Shared Hit Blocks": 10,
            "Shared Read Blocks": 1,
            "Plans": [
                {
                    "Node Type": "Seq Scan",
                    "Relation Name": "orders",
                    "Alias": "o",
                    "Startup Cost": 0.0,
                    "Total Cost": 20.0,
                    "Plan Rows": 1000,
                    "Filter": "(status = 'open'::text)",
                    "Shared Hit Blocks": 3,
                    "Shared Read Blocks": 0,
                },
                {
                    "Node Type": "Index Scan",
                    "Relation Name": "users",
                    "Alias": "users",
                    "Index Name": "users_pkey",
                    "Index Cond": "(id = o.user_id)",
                    "Shared Hit Blocks": 2,
                    "Shared Read Blocks": 4,
                },
            ],
        },
        "Planning Time": 0.25,
        "Execution Time": 1.75,
    }]


@pytest.fixture
def explain_file(tmp_path, explain_payload) -> Path:
    path = tmp_path / "explain.json"
    path.write_text(json.dumps(explain_payload))
    return path
