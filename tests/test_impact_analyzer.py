"""
Unit Tests for dbgraph/analysis/impact_analyzer.py

Tests for:
    - Impact tree shape (pre-order, first visit wins)
    - Counts, depth and per-type breakdown
    - Cascade / view coupling / missing index warnings
"""

import pytest

from dbgraph.analysis.impact_analyzer import ImpactAnalyzer
from dbgraph.analysis.models import WarningKind, WarningSeverity
from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_model import DependencyType, Graph, NodeType


FK = DependencyType.FOREIGN_KEY


@pytest.fixture
def analyzer() -> ImpactAnalyzer:
    return ImpactAnalyzer()


@pytest.fixture
def users_report(analyzer, shop_graph):
    return analyzer.build_tree(shop_graph, "public.users")


# =============================================================================
# Tree
# =============================================================================

class TestImpactTree:
    """Tests for tree construction."""

    def test_root(self, users_report):
        root = users_report.root
        assert root.id == "public.users"
        assert root.depth == 0
        assert root.arrival_edge is None
        assert root.row_count == 5000

    def test_preorder_ids(self, users_report):
        assert users_report.affected_ids() == [
            "public.orders",
            "public.order_items",
            "public.payments",
            "public.order_report",
            "public.user_summary",
        ]

    def test_first_visit_wins(self, users_report):
        """order_report is reached through orders first, not through user_summary."""
        by_id = {n.id: n for n in users_report.root.walk()}
        assert by_id["public.order_report"].depth == 2
        assert by_id["public.user_summary"].children == []

    def test_arrival_edges(self, users_report):
        orders = users_report.root.children[0]
        assert orders.arrival_edge.constraint_name == "orders_user_id_fkey"
        assert orders.arrival_edge.target_id == "public.users"

    def test_counts(self, users_report):
        assert users_report.total_affected == 5
        assert users_report.max_depth == 2
        assert users_report.by_type == {"TABLE": 3, "VIEW": 2}

    def test_leaf_target(self, analyzer, shop_graph):
        report = analyzer.build_tree(shop_graph, "public.audit_log")
        assert report.total_affected == 0
        assert report.max_depth == 0
        assert report.warnings == []
        assert report.root.children == []

    def test_unknown_target(self, analyzer, shop_graph):
        with pytest.raises(KeyError):
            analyzer.build_tree(shop_graph, "public.nope")

    def test_cycle_terminates(self, analyzer, cyclic_graph):
        report = analyzer.build_tree(cyclic_graph, "app.a")
        assert set(report.affected_ids()) == {"app.b", "app.c", "app.x"}
        assert "app.a" not in report.affected_ids()

    def test_matches_downstream_set(self, analyzer, shop_graph):
        """The tree covers exactly the downstream set."""
        for nid in shop_graph.nodes:
            report = analyzer.build_tree(shop_graph, nid)
            assert set(report.affected_ids()) == set(shop_graph.get_downstream(nid))

    def test_deep_tree_no_recursion_limit(self, analyzer):
        g = Graph()
        for i in range(3000):
            g.add_edge("s", f"t{i + 1}", "s", f"t{i}", FK)
        report = analyzer.build_tree(g, "s.t0")
        assert report.total_affected == 3000
        assert report.max_depth == 3000

    def test_to_dict(self, users_report):
        d = users_report.to_dict()
        assert d["target"] == "public.users"
        assert d["tree"]["children"][0]["id"] == "public.orders"
        assert d["tree"]["children"][0]["edge"]["delete_rule"] == "CASCADE"
        assert d["tree"]["edge"] is None


# =============================================================================
# Warnings
# =============================================================================

class TestImpactWarnings:
    """Tests for structural warnings."""

    def test_warning_order(self, users_report):
        kinds = [(w.kind, w.source_id) for w in users_report.warnings]
        assert kinds == [
            (WarningKind.CASCADE, "public.orders"),
            (WarningKind.CASCADE, "public.order_items"),
            (WarningKind.MISSING_INDEX, "public.order_items"),
            (WarningKind.VIEW_COUPLING, "public.order_report"),
        ]

    def test_cascade_with_row_estimate(self, users_report):
        warning = users_report.get_warnings(WarningKind.CASCADE)[0]
        assert warning.severity == WarningSeverity.HIGH
        assert warning.message == (
            "Cascade Delete: Deleting 'public.users' will recursively delete rows in "
            "'public.orders' (~20000 rows potentially locked/deleted)."
        )

    def test_cascade_small_table(self, users_report):
        warning = users_report.get_warnings(WarningKind.CASCADE)[1]
        assert "rows potentially" not in warning.message
        assert warning.target_id == "public.orders"

    def test_str_has_severity(self, users_report):
        assert str(users_report.warnings[0]).startswith("[High] Cascade Delete")
        assert str(users_report.warnings[-1]).startswith("[Medium] View Coupling")

    def test_missing_index_message(self, users_report):
        warning = users_report.get_warnings(WarningKind.MISSING_INDEX)[0]
        assert warning.message.startswith("Missing Index: 'public.order_items(order_id)'")

    def test_view_at_depth_one_not_flagged(self, analyzer, empty_graph):
        empty_graph.add_node("s", "v", NodeType.VIEW)
        empty_graph.add_edge("s", "v", "s", "t", DependencyType.VIEW_DEPENDS)
        report = analyzer.build_tree(empty_graph, "s.t")
        assert report.get_warnings(WarningKind.VIEW_COUPLING) == []

    def test_view_coupling_depth(self, users_report):
        warning = users_report.get_warnings(WarningKind.VIEW_COUPLING)[0]
        assert "is 2 levels removed" in warning.message

    def test_cascade_only_on_foreign_keys(self, analyzer, empty_graph):
        empty_graph.add_edge("s", "v", "s", "t", DependencyType.VIEW_DEPENDS, delete_rule="CASCADE")
        report = analyzer.build_tree(empty_graph, "s.t")
        assert report.get_warnings(WarningKind.CASCADE) == []

    def test_fk_without_columns_no_index_warning(self, analyzer, empty_graph):
        empty_graph.add_edge("s", "child", "s", "parent", FK, "c_fkey", "NO ACTION")
        report = analyzer.build_tree(empty_graph, "s.parent")
        assert report.warnings == []

    def test_custom_thresholds(self, shop_graph):
        settings = AnalysisSettings(cascade_row_threshold=50, view_coupling_min_depth=3)
        report = ImpactAnalyzer(settings).build_tree(shop_graph, "public.users")
        cascades = report.get_warnings(WarningKind.CASCADE)
        assert "~100 rows" in cascades[1].message
        assert report.get_warnings(WarningKind.VIEW_COUPLING) == []


class TestDownstream:
    def test_delegates_to_graph(self, analyzer, shop_graph):
        assert analyzer.downstream(shop_graph, "public.orders") == \
            shop_graph.get_downstream("public.orders")
