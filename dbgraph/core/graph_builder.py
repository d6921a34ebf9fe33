"""
Schema Graph Builder

Builds Graph instances from schema snapshots:
- Python dictionaries
- JSON files
- YAML files

A snapshot is the catalog data a live introspection would return, laid out
as record lists:

    {
      "metadata":     {...},
      "nodes":        [{"schema", "name", "type", "size", "row_count"}],
      "indexes":      [{"schema", "table", "columns"}],
      "foreign_keys": [{"schema", "table", "ref_schema", "ref_table",
                        "constraint_name", "delete_rule", "columns"}],
      "views":        [{"schema", "view", "ref_schema", "ref_table"}],
      "triggers":     [{"schema", "table", "trigger", "body"}],
      "inheritance":  [{"parent_schema", "parent", "child_schema", "child"}]
    }

Bad records are reported in a ValidationResult and skipped; they never abort
the build.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from .graph_model import FK_COLUMNS_KEY, DependencyType, Graph, NodeType, node_id


# Record list -> fields every record of that list must carry
SNAPSHOT_SECTIONS: Dict[str, Tuple[str, ...]] = {
    'nodes': ('schema', 'name'),
    'indexes': ('schema', 'table', 'columns'),
    'foreign_keys': ('schema', 'table', 'ref_schema', 'ref_table'),
    'views': ('schema', 'view', 'ref_schema', 'ref_table'),
    'triggers': ('schema', 'table', 'trigger'),
    'inheritance': ('parent_schema', 'parent', 'child_schema', 'child'),
}

# Catalog relation kinds that map to VIEW vertices
VIEW_KINDS = {'VIEW', 'MATERIALIZED VIEW'}

FUNCTION_CALL = "Function Call"


# =============================================================================
# Validation Result
# =============================================================================

class ValidationResult:
    """Problems found while validating or building a snapshot"""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.info: List[str] = []
        self.schema_errors: List[str] = []

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0 and len(self.schema_errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.info.append(msg)

    def add_schema_error(self, msg: str) -> None:
        self.schema_errors.append(msg)

    def merge(self, other: 'ValidationResult') -> None:
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        self.info.extend(other.info)
        self.schema_errors.extend(other.schema_errors)

    def summary(self, limit: int = 5) -> str:
        lines = [f"Valid: {self.is_valid}"]
        for title, items in (("Schema Errors", self.schema_errors),
                             ("Errors", self.errors),
                             ("Warnings", self.warnings)):
            if not items:
                continue
            lines.append(f"{title} ({len(items)}):")
            lines.extend(f"  - {item}" for item in items[:limit])
            if len(items) > limit:
                lines.append(f"  ... and {len(items) - limit} more")
        return '\n'.join(lines)

    def to_dict(self) -> Dict:
        return {
            'is_valid': self.is_valid,
            'schema_errors': self.schema_errors,
            'errors': self.errors,
            'warnings': self.warnings,
            'info': self.info,
        }

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


# =============================================================================
# Builder
# =============================================================================

class SchemaGraphBuilder:
    """
    Builds a schema Graph from snapshot data.

    Sections are applied in catalog order: objects, indexes, foreign keys,
    view dependencies, triggers, inheritance. Later sections auto-create the
    endpoints they reference.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.validation: ValidationResult = ValidationResult()

    # -------------------------------------------------------------------------
    # Build from Dictionary
    # -------------------------------------------------------------------------

    def build_from_dict(self, data: Dict) -> Graph:
        """
        Build a Graph from a snapshot dictionary

        Args:
            data: Snapshot with any of the record lists listed in the module docstring

        Returns:
            Graph instance; problems are left in ``self.validation``
        """
        self.validation = ValidationResult()
        graph = Graph()
        graph.metadata = dict(data.get('metadata') or {})

        self._build_nodes(graph, self._records(data, 'nodes'))
        self._build_indexes(graph, self._records(data, 'indexes'))
        self._build_foreign_keys(graph, self._records(data, 'foreign_keys'))
        self._build_views(graph, self._records(data, 'views'))
        self._build_triggers(graph, self._records(data, 'triggers'))
        self._build_inheritance(graph, self._records(data, 'inheritance'))

        stats = graph.get_statistics()
        self.logger.info(
            f"Built graph: {stats['num_nodes']} objects, {stats['num_edges']} dependencies "
            f"({len(self.validation.errors)} errors, {len(self.validation.warnings)} warnings)"
        )
        return graph

    def _records(self, data: Dict, section: str) -> List[Any]:
        records = data.get(section) or []
        if not isinstance(records, list):
            self.validation.add_error(f"{section}: Expected array, got {type(records).__name__}")
            return []
        return records

    def _missing_fields(self, section: str, i: int, record: Any) -> bool:
        if not isinstance(record, dict):
            self.validation.add_error(f"{section}[{i}]: Expected object, got {type(record).__name__}")
            return True
        missing = [key for key in SNAPSHOT_SECTIONS[section] if not record.get(key)]
        if missing:
            self.validation.add_error(f"{section}[{i}]: Missing field(s) {', '.join(missing)}")
            return True
        return False

    def _bad_columns(self, section: str, i: int, rec: Dict) -> bool:
        columns = rec.get('columns')
        if columns is not None and not isinstance(columns, (list, str)):
            self.validation.add_error(f"{section}[{i}].columns: Expected array or string")
            return True
        return False

    def _build_nodes(self, graph: Graph, records: List[Dict]) -> None:
        for i, rec in enumerate(records):
            if self._missing_fields('nodes', i, rec):
                continue

            kind = str(rec.get('type') or NodeType.TABLE.value).upper()
            if kind in VIEW_KINDS:
                node_type = NodeType.VIEW
            elif kind == NodeType.TRIGGER.value:
                node_type = NodeType.TRIGGER
            else:
                if kind != NodeType.TABLE.value:
                    self.validation.add_info(f"nodes[{i}]: Relation kind '{kind}' treated as TABLE")
                node_type = NodeType.TABLE

            try:
                row_count = int(rec.get('row_count') or 0)
            except (TypeError, ValueError):
                self.validation.add_warning(
                    f"nodes[{i}]: Invalid row_count '{rec.get('row_count')}', using 0"
                )
                row_count = 0
            # un-analyzed relations report -1
            row_count = max(row_count, 0)

            nid = node_id(rec['schema'], rec['name'])
            if graph.has_node(nid):
                self.validation.add_warning(f"Object '{nid}': Duplicate entry, backfilling only")
            graph.add_node(rec['schema'], rec['name'], node_type,
                           size=str(rec.get('size') or ""), row_count=row_count)

    def _build_indexes(self, graph: Graph, records: List[Dict]) -> None:
        for i, rec in enumerate(records):
            if self._missing_fields('indexes', i, rec):
                continue
            if self._bad_columns('indexes', i, rec):
                continue
            columns = self._column_list(rec['columns'])
            if not graph.has_node(node_id(rec['schema'], rec['table'])):
                self.validation.add_warning(
                    f"indexes[{i}]: Unknown table '{node_id(rec['schema'], rec['table'])}', index ignored"
                )
                continue
            graph.add_index(rec['schema'], rec['table'], columns)

    def _build_foreign_keys(self, graph: Graph, records: List[Dict]) -> None:
        for i, rec in enumerate(records):
            if self._missing_fields('foreign_keys', i, rec):
                continue
            if self._bad_columns('foreign_keys', i, rec):
                continue
            graph.add_node(rec['schema'], rec['table'], NodeType.TABLE)
            graph.add_node(rec['ref_schema'], rec['ref_table'], NodeType.TABLE)

            metadata = {}
            if rec.get('columns'):
                metadata[FK_COLUMNS_KEY] = self._column_list(rec['columns'])
            else:
                self.validation.add_info(
                    f"foreign_keys[{i}]: No columns for "
                    f"'{rec.get('constraint_name') or node_id(rec['schema'], rec['table'])}', "
                    f"index hygiene will skip it"
                )

            graph.add_edge(
                rec['schema'], rec['table'], rec['ref_schema'], rec['ref_table'],
                DependencyType.FOREIGN_KEY,
                constraint_name=rec.get('constraint_name') or "",
                delete_rule=str(rec.get('delete_rule') or "").upper(),
                metadata=metadata,
            )

    def _build_views(self, graph: Graph, records: List[Dict]) -> None:
        seen = set()
        for i, rec in enumerate(records):
            if self._missing_fields('views', i, rec):
                continue
            graph.add_node(rec['schema'], rec['view'], NodeType.VIEW)
            graph.add_node(rec['ref_schema'], rec['ref_table'], NodeType.TABLE)

            key = f"{rec['schema']}.{rec['view']}->{rec['ref_schema']}.{rec['ref_table']}"
            if key in seen:
                self.logger.debug(f"Skipping duplicate view dependency {key}")
                continue
            seen.add(key)

            graph.add_edge(rec['schema'], rec['view'], rec['ref_schema'], rec['ref_table'],
                           DependencyType.VIEW_DEPENDS)

    def _build_triggers(self, graph: Graph, records: List[Dict]) -> None:
        for i, rec in enumerate(records):
            if self._missing_fields('triggers', i, rec):
                continue
            schema, table, trigger = rec['schema'], rec['table'], rec['trigger']
            graph.add_node(schema, trigger, NodeType.TRIGGER)
            graph.add_edge(schema, trigger, schema, table, DependencyType.TRIGGER_ACTION)

            body = rec.get('body')
            if body:
                self._scan_function_body(graph, schema, table, trigger, body)

    def _scan_function_body(self, graph: Graph, schema: str, table: str,
                            trigger: str, body: str) -> None:
        """
        Link a trigger to every table or view whose name occurs in its function body.

        Plain substring match, case-insensitive; not a SQL parser.
        """
        upper_body = body.upper()
        owner_id = node_id(schema, table)
        for nid, node in list(graph.nodes.items()):
            if nid == owner_id or node.type == NodeType.TRIGGER:
                continue
            if node.name.upper() in upper_body:
                self.logger.debug(f"Trigger {schema}.{trigger} body references {nid}")
                graph.add_edge(schema, trigger, node.schema, node.name,
                               DependencyType.TRIGGER_ACTION, constraint_name=FUNCTION_CALL)

    def _build_inheritance(self, graph: Graph, records: List[Dict]) -> None:
        for i, rec in enumerate(records):
            if self._missing_fields('inheritance', i, rec):
                continue
            graph.add_edge(rec['child_schema'], rec['child'], rec['parent_schema'], rec['parent'],
                           DependencyType.INHERITANCE)

    @staticmethod
    def _column_list(columns: Any) -> List[str]:
        if isinstance(columns, str):
            return [c.strip() for c in columns.split(',') if c.strip()]
        return [str(c) for c in columns]

    # -------------------------------------------------------------------------
    # Build from files
    # -------------------------------------------------------------------------

    def build_from_json(self, filepath: str) -> Graph:
        """
        Build a Graph from a JSON snapshot file

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self.logger.info(f"Building graph from JSON: {filepath}")

        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        return self.build_from_dict(self._require_mapping(data, filepath))

    def build_from_yaml(self, filepath: str) -> Graph:
        """
        Build a Graph from a YAML snapshot file

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        self.logger.info(f"Building graph from YAML: {filepath}")

        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        return self.build_from_dict(self._require_mapping(data, filepath))

    def auto_build(self, filepath: str) -> Graph:
        """Pick the loader from the file extension (.yaml/.yml, else JSON)."""
        ext = Path(filepath).suffix.lower()
        if ext in ('.yaml', '.yml'):
            return self.build_from_yaml(filepath)
        return self.build_from_json(filepath)

    @staticmethod
    def _require_mapping(data: Any, filepath: str) -> Dict:
        if not isinstance(data, dict):
            raise ValueError(f"Snapshot {filepath} must contain an object, got {type(data).__name__}")
        return data

    # -------------------------------------------------------------------------
    # Schema Validation
    # -------------------------------------------------------------------------

    def validate_schema(self, data: Dict) -> ValidationResult:
        """
        Check snapshot structure without building anything

        Args:
            data: Snapshot dictionary

        Returns:
            ValidationResult with schema errors if any
        """
        result = ValidationResult()

        if not isinstance(data, dict):
            result.add_schema_error(f"Snapshot: Expected object, got {type(data).__name__}")
            return result

        if 'metadata' in data and not isinstance(data['metadata'], dict):
            result.add_schema_error(f"metadata: Expected object, got {type(data['metadata']).__name__}")

        if not any(data.get(section) for section in SNAPSHOT_SECTIONS):
            result.add_warning("Snapshot contains no records")

        for section, required in SNAPSHOT_SECTIONS.items():
            records = data.get(section)
            if records is None:
                continue
            if not isinstance(records, list):
                result.add_schema_error(f"{section}: Expected array, got {type(records).__name__}")
                continue
            for i, rec in enumerate(records):
                if not isinstance(rec, dict):
                    result.add_schema_error(f"{section}[{i}]: Expected object, got {type(rec).__name__}")
                    continue
                for key in required:
                    if key not in rec:
                        result.add_schema_error(f"{section}[{i}]: Missing required '{key}' field")

        for section in ('indexes', 'foreign_keys'):
            records = data.get(section)
            if not isinstance(records, list):
                continue
            for i, rec in enumerate(records):
                if isinstance(rec, dict) and rec.get('columns') is not None \
                        and not isinstance(rec['columns'], (list, str)):
                    result.add_schema_error(f"{section}[{i}].columns: Expected array or string")

        return result

    def build_from_dict_validated(self, data: Dict) -> Tuple[Graph, ValidationResult]:
        """
        Build a Graph after schema validation

        Returns:
            Tuple of (Graph, ValidationResult). The graph is empty when the
            snapshot fails schema validation.
        """
        schema_result = self.validate_schema(data)

        if not schema_result.is_valid:
            self.validation = schema_result
            return Graph(), schema_result

        graph = self.build_from_dict(data)
        schema_result.merge(self.validation)
        return graph, schema_result
