"""
Trace Aggregator

Sums buffer statistics over an execution-plan tree and combines them with
planning and execution time into a TraceResult.
"""

from __future__ import annotations

import logging
from typing import Optional

from dbgraph.core.trace_model import ExplainOutput, PlanNode, TraceResult


SEQ_SCAN = "Seq Scan"


class TraceAggregator:

    def __init__(self) -> None:
        self.logger = logging.getLogger(__name__)

    def aggregate(self, output: ExplainOutput) -> TraceResult:
        """
        Summarize a parsed EXPLAIN result.

        A missing plan contributes nothing; timings are still reported.
        """
        result = TraceResult(
            planning_time=output.planning_time,
            execution_time=output.execution_time,
            total_time=output.planning_time + output.execution_time,
            root=output.plan,
        )
        self.walk(output.plan, result)

        self.logger.info(
            f"Trace: {result.total_time:.2f} ms, {result.cache_hits} cache hits, "
            f"{result.disk_reads} disk reads over {result.node_count} plan node(s)"
        )
        return result

    @staticmethod
    def walk(root: Optional[PlanNode], result: TraceResult) -> None:
        """Add every node's counters under ``root`` into ``result``."""
        stack = [root] if root is not None else []
        while stack:
            node = stack.pop()
            result.node_count += 1
            result.cache_hits += node.shared_hit_blocks
            result.disk_reads += node.shared_read_blocks
            result.local_hits += node.local_hit_blocks
            result.local_reads += node.local_read_blocks
            result.temp_reads += node.temp_read_blocks
            result.temp_writes += node.temp_written_blocks
            if node.node_type == SEQ_SCAN and node.relation_name:
                result.seq_scans.append(node.relation_name)
            stack.extend(reversed(node.children))
