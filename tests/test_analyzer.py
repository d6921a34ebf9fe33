"""
Integration Tests for the SchemaAnalyzer facade
"""

import json

import pytest

from dbgraph.analysis import SchemaAnalyzer
from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_builder import SchemaGraphBuilder
from dbgraph.core.trace_model import ExplainOutput


@pytest.fixture
def analyzer() -> SchemaAnalyzer:
    return SchemaAnalyzer()


class TestSchemaAnalyzer:
    """Tests for the combined analysis entry points."""

    def test_analyze_shop(self, analyzer, shop_graph):
        result = analyzer.analyze(shop_graph)
        assert result.stats.nodes == 7
        assert not result.has_cycles
        assert result.index_report.missing_indexes == ["public.order_items(order_id) -> public.orders"]
        assert result.god_objects == []
        assert result.settings["god_object_threshold"] == 15

    def test_analyze_snapshot(self, analyzer, snapshot_data):
        graph = SchemaGraphBuilder().build_from_dict(snapshot_data)
        result = analyzer.analyze(graph)
        assert result.stats.node_types["TRIGGER"] == 1
        assert result.stats.edge_types["INHERITANCE"] == 1
        assert result.index_report.missing_indexes == ["public.order_items(order_id) -> public.orders"]

    def test_settings_shared(self, shop_graph):
        analyzer = SchemaAnalyzer(AnalysisSettings(god_object_threshold=4))
        assert [g.id for g in analyzer.analyze(shop_graph).god_objects] == ["public.orders"]

    def test_to_dict_json(self, analyzer, cyclic_graph):
        d = json.loads(json.dumps(analyzer.analyze(cyclic_graph).to_dict(top_n=3)))
        assert len(d["topology"]["top_nodes"]) == 3
        assert ["app.a", "app.b", "app.c"] in d["cycles"]

    def test_impact_by_name(self, analyzer, shop_graph):
        assert analyzer.impact(shop_graph, "users").root.id == "public.users"

    def test_impact_unknown(self, analyzer, shop_graph):
        with pytest.raises(KeyError):
            analyzer.impact(shop_graph, "ghost")

    def test_trace(self, analyzer, explain_payload):
        result = analyzer.trace(ExplainOutput.from_json(explain_payload))
        assert (result.cache_hits, result.disk_reads) == (15, 5)
