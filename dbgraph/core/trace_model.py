"""
Trace Model

Query-execution-plan structures parsed from PostgreSQL
``EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON)`` output:

- PlanNode:      one operator of the plan tree with costs, rows and buffer counters
- ExplainOutput: top-level {planning_time, execution_time, plan}
- TraceResult:   aggregated summary produced by TraceAggregator
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


@dataclass
class PlanNode:
    """Single node of an execution plan"""
    node_type: str
    strategy: str = ""
    startup_cost: float = 0.0
    total_cost: float = 0.0
    plan_rows: float = 0.0
    actual_rows: float = 0.0
    actual_loops: float = 0.0
    relation_name: str = ""
    schema: str = ""
    alias: str = ""
    index_name: str = ""
    index_condition: str = ""
    filter: str = ""
    shared_hit_blocks: int = 0
    shared_read_blocks: int = 0
    local_hit_blocks: int = 0
    local_read_blocks: int = 0
    temp_read_blocks: int = 0
    temp_written_blocks: int = 0
    children: List['PlanNode'] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PlanNode':
        """Create a PlanNode (and its subtree) from an EXPLAIN JSON plan object"""
        if not isinstance(data, dict):
            raise ValueError(f"Plan node must be an object, got {type(data).__name__}")
        if 'Node Type' not in data:
            raise ValueError("Plan node is missing 'Node Type'")
        return cls(
            node_type=data['Node Type'],
            strategy=data.get('Strategy', ''),
            startup_cost=float(data.get('Startup Cost', 0.0)),
            total_cost=float(data.get('Total Cost', 0.0)),
            plan_rows=float(data.get('Plan Rows', 0.0)),
            actual_rows=float(data.get('Actual Rows', 0.0)),
            actual_loops=float(data.get('Actual Loops', 0.0)),
            relation_name=data.get('Relation Name', ''),
            schema=data.get('Schema', ''),
            alias=data.get('Alias', ''),
            index_name=data.get('Index Name', ''),
            index_condition=data.get('Index Cond', ''),
            filter=data.get('Filter', ''),
            shared_hit_blocks=int(data.get('Shared Hit Blocks', 0)),
            shared_read_blocks=int(data.get('Shared Read Blocks', 0)),
            local_hit_blocks=int(data.get('Local Hit Blocks', 0)),
            local_read_blocks=int(data.get('Local Read Blocks', 0)),
            temp_read_blocks=int(data.get('Temp Read Blocks', 0)),
            temp_written_blocks=int(data.get('Temp Written Blocks', 0)),
            children=[cls.from_dict(child) for child in data.get('Plans') or []],
        )

    def describe(self) -> str:
        """One-line label, e.g. ``Seq Scan on orders o``"""
        desc = self.node_type
        if self.strategy:
            desc += f" ({self.strategy})"
        if self.relation_name:
            desc += f" on {self.relation_name}"
            if self.alias and self.alias != self.relation_name:
                desc += f" {self.alias}"
        return desc

    def to_dict(self) -> Dict[str, Any]:
        return {
            'node_type': self.node_type,
            'strategy': self.strategy,
            'startup_cost': self.startup_cost,
            'total_cost': self.total_cost,
            'plan_rows': self.plan_rows,
            'actual_rows': self.actual_rows,
            'actual_loops': self.actual_loops,
            'relation_name': self.relation_name,
            'schema': self.schema,
            'alias': self.alias,
            'index_name': self.index_name,
            'index_condition': self.index_condition,
            'filter': self.filter,
            'shared_hit_blocks': self.shared_hit_blocks,
            'shared_read_blocks': self.shared_read_blocks,
            'local_hit_blocks': self.local_hit_blocks,
            'local_read_blocks': self.local_read_blocks,
            'temp_read_blocks': self.temp_read_blocks,
            'temp_written_blocks': self.temp_written_blocks,
            'children': [c.to_dict() for c in self.children],
        }


@dataclass
class ExplainOutput:
    """Top-level EXPLAIN result"""
    planning_time: float = 0.0
    execution_time: float = 0.0
    plan: Optional[PlanNode] = None

    @classmethod
    def from_json(cls, data: Union[List[Any], Dict[str, Any]]) -> 'ExplainOutput':
        """
        Parse EXPLAIN JSON.

        PostgreSQL returns ``[{"Plan": ..., "Planning Time": ..., "Execution Time": ...}]``;
        a bare object is accepted as well.
        """
        if isinstance(data, list):
            if not data:
                raise ValueError("Empty explain result")
            data = data[0]
        if not isinstance(data, dict):
            raise ValueError(f"Explain output must be an object, got {type(data).__name__}")

        plan_data = data.get('Plan')
        return cls(
            planning_time=float(data.get('Planning Time', 0.0)),
            execution_time=float(data.get('Execution Time', 0.0)),
            plan=PlanNode.from_dict(plan_data) if plan_data is not None else None,
        )


@dataclass
class TraceResult:
    """Aggregated performance data of a traced query"""
    planning_time: float = 0.0
    execution_time: float = 0.0
    total_time: float = 0.0
    cache_hits: int = 0
    disk_reads: int = 0
    local_hits: int = 0
    local_reads: int = 0
    temp_reads: int = 0
    temp_writes: int = 0
    node_count: int = 0
    seq_scans: List[str] = field(default_factory=list)
    root: Optional[PlanNode] = None

    @property
    def cache_hit_ratio(self) -> float:
        """Shared-buffer hit percentage, 0 when no I/O was recorded"""
        total = self.cache_hits + self.disk_reads
        if total == 0:
            return 0.0
        return self.cache_hits / total * 100.0

    @property
    def is_warm(self) -> bool:
        return self.cache_hits > 0 and self.disk_reads == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'planning_time': self.planning_time,
            'execution_time': self.execution_time,
            'total_time': self.total_time,
            'cache_hits': self.cache_hits,
            'disk_reads': self.disk_reads,
            'cache_hit_ratio': round(self.cache_hit_ratio, 2),
            'local_hits': self.local_hits,
            'local_reads': self.local_reads,
            'temp_reads': self.temp_reads,
            'temp_writes': self.temp_writes,
            'node_count': self.node_count,
            'seq_scans': list(self.seq_scans),
            'plan': self.root.to_dict() if self.root else None,
        }


def load_explain(filepath: str) -> ExplainOutput:
    """Read an EXPLAIN JSON file"""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {filepath}")
    with open(path, 'r', encoding='utf-8') as f:
        return ExplainOutput.from_json(json.load(f))
