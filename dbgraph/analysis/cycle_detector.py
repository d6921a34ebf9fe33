"""
Cycle Detector

Finds circular dependencies with Tarjan's strongly-connected-components
algorithm. Edge direction is "depends on"; a component is reported when it
holds more than one node, or a single node with a self-loop.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from dbgraph.core.graph_model import Graph


class CycleDetector:
    """Tarjan SCC over the schema graph, O(V + E), no native recursion."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def detect(self, graph: Graph) -> List[List[str]]:
        """
        Find all circular dependency groups.

        Returns:
            One sorted list of node ids per cyclic SCC, in discovery order
        """
        index = 0
        indices: Dict[str, int] = {}
        low_link: Dict[str, int] = {}
        stack: List[str] = []
        on_stack: Set[str] = set()
        cycles: List[List[str]] = []

        for root in graph.nodes:
            if root in indices:
                continue

            indices[root] = low_link[root] = index
            index += 1
            stack.append(root)
            on_stack.add(root)
            work = [(root, iter(graph.get_outgoing(root)))]

            while work:
                v, edges = work[-1]
                descended = False
                for edge in edges:
                    w = edge.target_id
                    if w not in indices:
                        indices[w] = low_link[w] = index
                        index += 1
                        stack.append(w)
                        on_stack.add(w)
                        work.append((w, iter(graph.get_outgoing(w))))
                        descended = True
                        break
                    if w in on_stack:
                        low_link[v] = min(low_link[v], indices[w])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low_link[parent] = min(low_link[parent], low_link[v])

                if low_link[v] == indices[v]:
                    component = []
                    while True:
                        w = stack.pop()
                        on_stack.discard(w)
                        component.append(w)
                        if w == v:
                            break
                    if self._is_cycle(graph, component):
                        cycles.append(sorted(component))

        self.logger.info(f"Found {len(cycles)} circular dependency group(s)")
        return cycles

    @staticmethod
    def _is_cycle(graph: Graph, component: List[str]) -> bool:
        if len(component) > 1:
            return True
        nid = component[0]
        return any(edge.target_id == nid for edge in graph.get_outgoing(nid))
