"""
Structural Analyzer

Computes topology metrics of a schema dependency graph:
- Density (parallel edges counted)
- Degree centrality ranking (in + out degree)
- Weakly connected components and small islands
- Longest dependency chain (cycle-safe, memoized DFS)
- Object / dependency type distribution

All traversals use explicit stacks and queues so deep schemas do not hit
the interpreter recursion limit.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional, Tuple

from dbgraph.config.settings import AnalysisSettings
from dbgraph.core.graph_model import Graph
from .models import GraphStats, NodeRank


class StructuralAnalyzer:
    """
    Analyses graph structure to compute topological metrics.

    Ranking ties are broken by ascending node id so repeated runs over the
    same schema produce identical reports.
    """

    def __init__(self, settings: Optional[AnalysisSettings] = None) -> None:
        self.settings = settings or AnalysisSettings()
        self.logger = logging.getLogger(__name__)

    def analyze(self, graph: Graph) -> GraphStats:
        """
        Compute all topology metrics.

        Args:
            graph: Populated schema graph

        Returns:
            GraphStats (zero-valued for an empty graph)
        """
        self.logger.info(f"Analyzing topology of {graph!r}")

        stats = GraphStats(nodes=graph.node_count, edges=graph.edge_count)
        stats.density = self.density(graph)

        stats.top_nodes = self.rank_nodes(graph)
        if stats.top_nodes and stats.top_nodes[0].centrality > 0:
            stats.central_node = stats.top_nodes[0].id
            stats.max_centrality = stats.top_nodes[0].centrality

        components, isolated_nodes, isolated_groups = self.find_components(graph)
        stats.components = len(components)
        stats.isolated_nodes = isolated_nodes
        stats.isolated_groups = isolated_groups

        stats.longest_path, stats.deepest_chain = self.longest_chain(graph)

        distribution = graph.get_statistics()
        stats.node_types = distribution['nodes_by_type']
        stats.edge_types = distribution['edges_by_type']

        self.logger.debug(
            f"Topology: density={stats.density:.4f}, components={stats.components}, "
            f"longest_path={stats.longest_path}"
        )
        return stats

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    @staticmethod
    def density(graph: Graph) -> float:
        n = graph.node_count
        if n <= 1:
            return 0.0
        return graph.edge_count / (n * (n - 1))

    def rank_nodes(self, graph: Graph) -> List[NodeRank]:
        """All nodes by descending degree centrality, then ascending id."""
        in_degree, out_degree = graph.degrees()
        ranks = [
            NodeRank(
                id=nid,
                type=node.type,
                in_degree=in_degree[nid],
                out_degree=out_degree[nid],
                rows=node.row_count,
                centrality=float(in_degree[nid] + out_degree[nid]),
            )
            for nid, node in graph.nodes.items()
        ]
        ranks.sort(key=lambda r: (-r.centrality, r.id))
        return ranks

    def find_components(self, graph: Graph) -> Tuple[List[List[str]], List[str], List[List[str]]]:
        """
        Weakly connected components by BFS over an undirected view.

        Returns:
            (components, isolated_nodes, isolated_groups)
        """
        undirected: Dict[str, List[str]] = {nid: [] for nid in graph.nodes}
        for edge in graph.iter_edges():
            undirected[edge.source_id].append(edge.target_id)
            undirected[edge.target_id].append(edge.source_id)

        visited = set()
        components: List[List[str]] = []
        isolated_nodes: List[str] = []
        isolated_groups: List[List[str]] = []

        for start in sorted(graph.nodes):
            if start in visited:
                continue
            visited.add(start)
            if not undirected[start]:
                isolated_nodes.append(start)

            members = [start]
            queue = deque([start])
            while queue:
                current = queue.popleft()
                for neighbor in undirected[current]:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        members.append(neighbor)
                        queue.append(neighbor)

            components.append(members)
            if len(members) < self.settings.island_size_cutoff:
                isolated_groups.append(members)

        return components, isolated_nodes, isolated_groups

    def longest_chain(self, graph: Graph) -> Tuple[int, List[str]]:
        """
        Longest directed dependency chain, counting nodes (a leaf is 1).

        An edge back onto the current path contributes 0, so cycles terminate
        with a finite length.

        Returns:
            (length, node ids along one longest chain)
        """
        memo: Dict[str, int] = {}
        next_hop: Dict[str, str] = {}

        for start in graph.nodes:
            if start not in memo:
                self._chain_depth(graph, start, memo, next_hop)

        if not memo:
            return 0, []

        # first node with the maximum depth, in insertion order
        head = max(graph.nodes, key=lambda nid: memo[nid])
        chain = [head]
        seen = {head}
        while chain[-1] in next_hop and next_hop[chain[-1]] not in seen:
            hop = next_hop[chain[-1]]
            chain.append(hop)
            seen.add(hop)
        return memo[head], chain

    @staticmethod
    def _chain_depth(graph: Graph, start: str, memo: Dict[str, int],
                     next_hop: Dict[str, str]) -> int:
        on_path = {start}
        best = {start: 0}
        stack = [(start, iter(graph.get_outgoing(start)))]

        while stack:
            current, edges = stack[-1]
            descended = False
            for edge in edges:
                target = edge.target_id
                if target in memo:
                    depth = memo[target]
                elif target in on_path:
                    depth = 0
                else:
                    on_path.add(target)
                    best[target] = 0
                    stack.append((target, iter(graph.get_outgoing(target))))
                    descended = True
                    break
                if depth > best[current]:
                    best[current] = depth
                    next_hop[current] = target
            if descended:
                continue

            stack.pop()
            on_path.discard(current)
            memo[current] = 1 + best[current]
            if stack:
                parent = stack[-1][0]
                if memo[current] > best[parent]:
                    best[parent] = memo[current]
                    next_hop[parent] = current

        return memo[start]
