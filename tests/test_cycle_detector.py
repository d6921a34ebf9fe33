"""
Unit Tests for dbgraph/analysis/cycle_detector.py
"""

import networkx as nx
import pytest

from dbgraph.analysis.cycle_detector import CycleDetector
from dbgraph.core.graph_exporter import GraphExporter
from dbgraph.core.graph_model import DependencyType, Graph


FK = DependencyType.FOREIGN_KEY


@pytest.fixture
def detector() -> CycleDetector:
    return CycleDetector()


def networkx_cycles(graph: Graph):
    """Cyclic SCCs as computed by networkx."""
    G = GraphExporter().to_networkx(graph)
    self_loops = {u for u, v in nx.selfloop_edges(G)}
    return {
        frozenset(c) for c in nx.strongly_connected_components(G)
        if len(c) > 1 or next(iter(c)) in self_loops
    }


class TestCycleDetector:
    """Tests for Tarjan SCC cycle detection."""

    def test_triangle(self, detector):
        g = Graph()
        g.add_edge("s", "a", "s", "b", FK)
        g.add_edge("s", "b", "s", "c", FK)
        g.add_edge("s", "c", "s", "a", FK)
        assert detector.detect(g) == [["s.a", "s.b", "s.c"]]

    def test_self_loop(self, detector):
        g = Graph()
        g.add_edge("s", "a", "s", "a", FK)
        assert detector.detect(g) == [["s.a"]]

    def test_acyclic(self, detector, chain_graph):
        assert detector.detect(chain_graph) == []

    def test_empty(self, detector, empty_graph):
        assert detector.detect(empty_graph) == []

    def test_two_node_cycle(self, detector):
        g = Graph()
        g.add_edge("s", "employees", "s", "departments", FK)
        g.add_edge("s", "departments", "s", "employees", FK)
        assert detector.detect(g) == [["s.departments", "s.employees"]]

    def test_mixed_graph(self, detector, cyclic_graph):
        """Triangle and self loop are found; the acyclic tail is not."""
        cycles = detector.detect(cyclic_graph)
        assert sorted(cycles) == [["app.a", "app.b", "app.c"], ["app.s"]]

    def test_matches_networkx(self, detector, cyclic_graph, shop_graph):
        shop_graph.add_edge("public", "users", "public", "order_report", DependencyType.VIEW_DEPENDS)
        for graph in (cyclic_graph, shop_graph):
            found = {frozenset(c) for c in detector.detect(graph)}
            assert found == networkx_cycles(graph)

    def test_back_edge_on_chain(self, detector, chain_graph):
        chain_graph.add_edge("public", "E", "public", "A", FK)
        assert detector.detect(chain_graph) == [
            ["public.A", "public.B", "public.C", "public.D", "public.E"]
        ]

    def test_deep_cycle_no_recursion_limit(self, detector):
        g = Graph()
        n = 5000
        for i in range(n):
            g.add_edge("s", f"t{i}", "s", f"t{(i + 1) % n}", FK)
        cycles = detector.detect(g)
        assert len(cycles) == 1
        assert len(cycles[0]) == n
