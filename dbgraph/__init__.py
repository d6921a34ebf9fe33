"""
dbgraph - dependency-graph analysis of relational database schemas.

Builds a directed graph of tables, views and triggers, then answers
structural questions about it: topology metrics, circular dependencies,
unindexed foreign keys, over-coupled objects, the blast radius of a change,
and buffer/timing summaries of query execution plans.
"""

__version__ = "0.1.0"
