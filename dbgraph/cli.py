"""
dbgraph CLI
Dependency-graph analysis of relational database schemas.

Works on schema snapshots (JSON or YAML catalog dumps) and on PostgreSQL
EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) output.

Commands:
    analyze     - Topology metrics and schema health report
    summary     - Ranked topology table with risk tiers
    impact      - Reverse-dependency tree and structural warnings for one object
    downstream  - Flat list of everything depending on the given objects
    trace       - Latency and buffer summary of an execution plan

Usage:
    dbgraph analyze snapshot.json
    dbgraph analyze snapshot.yaml --top 5 --export output/schema.graphml
    dbgraph summary snapshot.json --limit 20
    dbgraph impact snapshot.json public.users
    dbgraph downstream snapshot.json users orders
    dbgraph trace explain.json --json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from dbgraph import __version__
from dbgraph.analysis import SchemaAnalyzer
from dbgraph.analysis.models import ImpactNode, ImpactReport, NodeRank, SchemaAnalysisResult
from dbgraph.config import AnalysisSettings
from dbgraph.core import (
    DependencyType,
    Graph,
    GraphExporter,
    NodeType,
    PlanNode,
    SchemaGraphBuilder,
    TraceResult,
    load_explain,
)


logger = logging.getLogger("dbgraph")

RULE = "-" * 80

# Display limits of the text report
SUMMARY_LIMIT = 10
ISLAND_LIMIT = 5
MISSING_INDEX_LIMIT = 5
DENSE_THRESHOLD = 0.1


# ---------------------------------------------------------------------------
# CLI Argument Parsing
# ---------------------------------------------------------------------------

def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per analysis."""
    parser = argparse.ArgumentParser(
        prog="dbgraph",
        description="Dependency-graph analysis of relational database schemas.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s analyze snapshot.json                 Schema health report
  %(prog)s analyze snapshot.json --json          Report as JSON
  %(prog)s analyze snapshot.json -e out.graphml  Also export the graph
  %(prog)s summary snapshot.json --all          Risk table of every object
  %(prog)s impact snapshot.json users            Blast radius of 'users'
  %(prog)s downstream snapshot.json a b          Everything depending on a or b
  %(prog)s trace explain.json                    Execution plan summary
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    options = common.add_argument_group("Options")
    options.add_argument("--config", "-c", metavar="FILE",
                         help="YAML settings file (default: DBGRAPH_* environment variables)")
    options.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    analyze = commands.add_parser("analyze", parents=[common],
                                  help="Topology metrics and schema health report")
    analyze.add_argument("snapshot", help="Schema snapshot (.json, .yaml, .yml)")
    analyze.add_argument("--top", "-n", type=positive_int, default=10, metavar="N",
                         help="Number of ranked objects to report (default: 10)")
    analyze.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    analyze.add_argument("--export", "-e", metavar="FILE",
                         help="Export the graph (.graphml, else node-link JSON)")
    analyze.set_defaults(handler=cmd_analyze)

    summary = commands.add_parser("summary", parents=[common],
                                  help="Ranked topology table with risk tiers")
    summary.add_argument("snapshot", help="Schema snapshot (.json, .yaml, .yml)")
    limits = summary.add_mutually_exclusive_group()
    limits.add_argument("--limit", "-l", type=positive_int, default=SUMMARY_LIMIT, metavar="N",
                        help=f"Number of objects to list (default: {SUMMARY_LIMIT})")
    limits.add_argument("--all", action="store_true", help="List every object")
    summary.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    summary.set_defaults(handler=cmd_summary)

    impact = commands.add_parser("impact", parents=[common],
                                 help="Impact tree and structural warnings for one object")
    impact.add_argument("snapshot", help="Schema snapshot (.json, .yaml, .yml)")
    impact.add_argument("target", help="Object id (schema.name) or bare name")
    impact.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    impact.set_defaults(handler=cmd_impact)

    downstream = commands.add_parser("downstream", parents=[common],
                                     help="Everything that depends on the given objects")
    downstream.add_argument("snapshot", help="Schema snapshot (.json, .yaml, .yml)")
    downstream.add_argument("targets", nargs="+", metavar="TARGET",
                            help="Object ids (schema.name) or bare names")
    downstream.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    downstream.set_defaults(handler=cmd_downstream)

    trace = commands.add_parser("trace", parents=[common],
                                help="Latency and buffer summary of an execution plan")
    trace.add_argument("explain", help="EXPLAIN (ANALYZE, BUFFERS, FORMAT JSON) output file")
    trace.add_argument("--json", action="store_true", help="Print results as JSON to stdout")
    trace.set_defaults(handler=cmd_trace)

    return parser


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_settings(args: argparse.Namespace) -> AnalysisSettings:
    if args.config:
        return AnalysisSettings.from_yaml(args.config)
    return AnalysisSettings.from_env()


def load_graph(path: str) -> Graph:
    """Build the graph of a snapshot file, logging any skipped records."""
    builder = SchemaGraphBuilder()
    graph = builder.auto_build(path)
    for error in builder.validation.errors:
        logger.warning(f"Skipped record: {error}")
    for warning in builder.validation.warnings:
        logger.debug(warning)
    for info in builder.validation.info:
        logger.debug(info)
    return graph


def format_rows(count: int) -> str:
    if count > 1000:
        return f"{count / 1000.0:.1f}k rows"
    return f"{count} rows"


# ---------------------------------------------------------------------------
# analyze
# ---------------------------------------------------------------------------

def cmd_analyze(args: argparse.Namespace) -> int:
    graph = load_graph(args.snapshot)
    result = SchemaAnalyzer(load_settings(args)).analyze(graph)

    if args.export:
        path = GraphExporter().export(graph, args.export)
        logger.info(f"Graph exported to: {path}")

    if args.json:
        print(json.dumps(result.to_dict(top_n=args.top), indent=2, default=str))
    else:
        print_analysis(graph, result, args.top)
    return 0


def print_analysis(graph: Graph, result: SchemaAnalysisResult, top_n: int) -> None:
    stats = result.stats
    label = graph.metadata.get("database") or graph.metadata.get("name") or "snapshot"
    print(f"DB: {label} | Objects: {stats.nodes}")
    print(RULE)

    print("\nTOPOLOGICAL CONTEXT")
    print("Graph Type:  Directed Multigraph")
    dense = "Dense" if stats.density > DENSE_THRESHOLD else "Sparse"
    print(f"Density:     {stats.density:.3f} ({dense})")
    print(f"Components:  {stats.components} Isolated Sub-graphs")
    print(f"Centrality:  {stats.central_node or '-'} ({stats.max_centrality:.2f})")

    print("\nOBJECT DISTRIBUTION")
    print(f"Tables:      {stats.node_types.get(NodeType.TABLE.value, 0)}")
    print(f"Views:       {stats.node_types.get(NodeType.VIEW.value, 0)}")
    print(f"Triggers:    {stats.node_types.get(NodeType.TRIGGER.value, 0)}")

    print("\nDEPENDENCY VECTORS")
    print(f"Foreign Keys:       {stats.edge_types.get(DependencyType.FOREIGN_KEY.value, 0)} edges")
    print(f"View Definitions:   {stats.edge_types.get(DependencyType.VIEW_DEPENDS.value, 0)} edges")
    print(f"Trigger Actions:    {stats.edge_types.get(DependencyType.TRIGGER_ACTION.value, 0)} edges")
    print(f"Inheritance:        {stats.edge_types.get(DependencyType.INHERITANCE.value, 0)} edges")

    if stats.top_nodes:
        print(f"\nMOST CONNECTED (top {top_n})")
        for rank in stats.top(top_n):
            print(f"   {rank.id:<40} {rank.type.value:<8} in={rank.in_degree:<4} "
                  f"out={rank.out_degree:<4} {format_rows(rank.rows)}")

    print("\nISOLATED SUB-GRAPHS (Island Detection)")
    if stats.isolated_groups:
        for i, group in enumerate(stats.isolated_groups[:ISLAND_LIMIT], 1):
            print(f"{i}. Cluster:  {', '.join(group)}")
        if len(stats.isolated_groups) > ISLAND_LIMIT:
            print(f"   ... and {len(stats.isolated_groups) - ISLAND_LIMIT} more")
    else:
        print("None")

    print("\nSCHEMA LINEAGE DEPTH")
    print(f"Deepest Chain:  {stats.longest_path} Levels")
    if len(stats.deepest_chain) > 1:
        print(f"                {' -> '.join(stats.deepest_chain)}")

    print("\nSCHEMA HEALTH REPORT")
    print(RULE)
    if result.cycles:
        print(f"CRITICAL: Found {len(result.cycles)} circular dependencies (Cycles)!")
        for i, cycle in enumerate(result.cycles, 1):
            print(f"   {i}. [{' '.join(cycle)}]")
    else:
        print("No circular dependencies detected.")

    report = result.index_report
    if report.missing_indexes:
        print(f"\nPERFORMANCE RISKS: Found {len(report.missing_indexes)} FKs missing indexes")
        for miss in report.missing_indexes[:MISSING_INDEX_LIMIT]:
            print(f"   - {miss}")
        if len(report.missing_indexes) > MISSING_INDEX_LIMIT:
            print(f"   ... and {len(report.missing_indexes) - MISSING_INDEX_LIMIT} more")
        print("   (Suggestion: Add indexes to valid FK columns to prevent locking issues)")
    elif report.checked_foreign_keys:
        print(f"\nIndex Hygiene: All {report.checked_foreign_keys} checked FKs are indexed.")
    else:
        print("\nNo Foreign Keys found to check.")
    if report.skipped_foreign_keys:
        print(f"   ({report.skipped_foreign_keys} FKs without column metadata were skipped)")

    if result.god_objects:
        print(f"\nCOMPLEXITY RISKS: Found {len(result.god_objects)} 'God Objects' (High Coupling)")
        for god in result.god_objects:
            print(f"   - {god.id} (Connected to {god.degree} others: "
                  f"{god.dependents} in, {god.dependencies} out)")
        print("   (Suggestion: Consider splitting these tables to reduce architectural coupling)")
    else:
        print("\nArchitecture: No 'God Objects' detected.")
    print(RULE)


# ---------------------------------------------------------------------------
# summary
# ---------------------------------------------------------------------------

def cmd_summary(args: argparse.Namespace) -> int:
    graph = load_graph(args.snapshot)
    stats = SchemaAnalyzer(load_settings(args)).structural.analyze(graph)
    ranks = stats.top_nodes if args.all else stats.top(args.limit)

    if args.json:
        print(json.dumps({"total": len(stats.top_nodes),
                          "nodes": [rank.to_dict() for rank in ranks]}, indent=2))
    else:
        print_summary(ranks, len(stats.top_nodes))
    return 0


def print_summary(ranks: List[NodeRank], total: int) -> None:
    print("ARCHITECTURAL TOPOLOGY (Top Impact)")
    print(RULE)
    print(f"{'OBJECT NAME':<30} {'TYPE':<10} {'IN/OUT':<10} {'ROWS':<10} {'IMPACT':<10} {'RISK':<10}")
    print(RULE)
    for rank in ranks:
        # Triggers and unmaterialized views carry no rows
        if rank.type == NodeType.TRIGGER or (rank.type == NodeType.VIEW and rank.rows == 0):
            rows = "-"
        else:
            rows = str(rank.rows)
        in_out = f"{rank.in_degree}/{rank.out_degree}"
        print(f"{rank.id:<30} {rank.type.value[:8]:<10} {in_out:<10} "
              f"{rows:<10} {rank.centrality:<10.2f} {rank.risk:<10}".rstrip())
    print(RULE)
    if total > len(ranks):
        print(f"... and {total - len(ranks)} more. Use --all or --limit to see more.")


# ---------------------------------------------------------------------------
# impact / downstream
# ---------------------------------------------------------------------------

def cmd_impact(args: argparse.Namespace) -> int:
    graph = load_graph(args.snapshot)
    report = SchemaAnalyzer(load_settings(args)).impact(graph, args.target)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        print_impact(report)
    return 0


def print_impact(report: ImpactReport) -> None:
    root = report.root
    print(f"Target: {root.id} ({format_rows(root.row_count)})")
    print(RULE)

    print(f"\nIMPACT RADIUS: {report.max_depth} Levels Deep")
    counts = ", ".join(f"{count} {kind.lower()}s" for kind, count in sorted(report.by_type.items()))
    print(f"Total Affected Objects: {report.total_affected}" + (f" ({counts})" if counts else ""))

    print("\nTREE VIEW")
    for line in render_impact_tree(root):
        print(line)

    if report.warnings:
        print("\nSTRUCTURAL WARNINGS")
        for warning in report.warnings:
            print(warning)


def render_impact_tree(root: ImpactNode) -> List[str]:
    lines = [f"{root.id} ({format_rows(root.row_count)})"]
    stack = [(child, "", i == len(root.children) - 1)
             for i, child in reversed(list(enumerate(root.children)))]
    while stack:
        node, prefix, is_last = stack.pop()
        marker = "└──" if is_last else "├──"

        meta = ""
        edge = node.arrival_edge
        if edge is not None:
            if edge.type == DependencyType.FOREIGN_KEY:
                meta = f"[FK: {edge.constraint_name}]"
                if edge.is_cascade:
                    meta += " (CASCADE)"
            elif edge.type == DependencyType.VIEW_DEPENDS:
                meta = "(View)"
            elif edge.type == DependencyType.TRIGGER_ACTION:
                meta = "(Trigger)"
            else:
                meta = "(Partition)"
        rows = f"({format_rows(node.row_count)}) " if node.type == NodeType.TABLE else ""
        lines.append(f"{prefix}{marker} {node.id} {rows}{meta}".rstrip())

        child_prefix = prefix + ("    " if is_last else "│   ")
        for i in reversed(range(len(node.children))):
            stack.append((node.children[i], child_prefix, i == len(node.children) - 1))
    return lines


def cmd_downstream(args: argparse.Namespace) -> int:
    graph = load_graph(args.snapshot)

    ids = []
    for target in args.targets:
        node = graph.find_node(target)
        if node is None:
            logger.warning(f"Object '{target}' not found in the graph, ignoring")
            continue
        ids.append(node.id)

    impacted = graph.get_downstream(*ids)
    if args.json:
        print(json.dumps({"sources": ids, "downstream": impacted}, indent=2))
    else:
        for nid in impacted:
            print(nid)
        logger.info(f"{len(impacted)} object(s) depend on {', '.join(ids) or 'nothing'}")
    return 0


# ---------------------------------------------------------------------------
# trace
# ---------------------------------------------------------------------------

def cmd_trace(args: argparse.Namespace) -> int:
    output = load_explain(args.explain)
    result = SchemaAnalyzer(load_settings(args)).trace(output)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        print_trace(result)
    return 0


def print_trace(result: TraceResult) -> None:
    print("TRACE")
    print(RULE)

    print("LATENCY")
    print(f"Planning Time:   {result.planning_time:.2f} ms")
    print(f"Execution Time:  {result.execution_time:.2f} ms")
    print(f"Total Time:      {result.total_time:.2f} ms")
    print()

    print("I/O & MEMORY (BUFFERS)")
    print(f"Cache Hits:      {result.cache_hits}  ({result.cache_hit_ratio:.1f}%)")
    print(f"Disk Reads:      {result.disk_reads}")
    if result.temp_reads or result.temp_writes:
        print(f"Temp Blocks:     {result.temp_reads} read, {result.temp_writes} written")
    print()

    print("EXECUTION PATH")
    print(RULE)
    for line in render_plan_tree(result.root):
        print(line)
    print(RULE)

    if result.is_warm:
        print('This query is "warm". All data was found in RAM (Shared Buffers).')
    elif result.disk_reads > 0:
        print('This query is "cold" or data is too large for cache. Physical disk I/O was required.')
    else:
        print("No I/O activity recorded (likely constants or metadata query).")


def render_plan_tree(root: Optional[PlanNode]) -> List[str]:
    lines: List[str] = []
    stack = [(root, "", True)] if root is not None else []
    while stack:
        node, prefix, is_last = stack.pop()
        cost = f"(cost={node.startup_cost:.2f}..{node.total_cost:.2f} rows={node.plan_rows:.0f})"
        lines.append(f"{prefix}-> {node.describe()} {cost}")

        child_prefix = prefix + ("    " if is_last else "|   ")
        if node.node_type == "Seq Scan":
            lines.append(f"{child_prefix}Warning: Full table scan.")
        if node.index_condition:
            lines.append(f"{child_prefix}Index Cond: {node.index_condition}")
        if node.filter:
            lines.append(f"{child_prefix}Filter: {node.filter}")

        for i in reversed(range(len(node.children))):
            stack.append((node.children[i], child_prefix, i == len(node.children) - 1))
    return lines


# ---------------------------------------------------------------------------
# Entry Point
# ---------------------------------------------------------------------------

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        return args.handler(args)
    except KeyError as exc:
        # KeyError str() wraps the message in quotes
        logger.error(exc.args[0] if exc.args else exc)
        return 1
    except (ValueError, FileNotFoundError) as exc:
        logger.error(exc)
        if args.verbose:
            logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
