"""Schema artifact loading.

Reads either the normalized artifact written by ``tools/parse_model.py`` or a
raw Power BI model definition (``Model.bim``) and coerces every field once,
so the rest of the application only sees :class:`SchemaDocument` objects.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import yaml

from ..core.config import DEFAULT_DATASET_NAME
from ..core.exceptions import SchemaLoadError
from .models import (
    DEFAULT_CROSS_FILTERING,
    ColumnInfo,
    MeasureInfo,
    Relationship,
    SchemaDocument,
    SchemaMetadata,
    TableInfo,
)

logger = logging.getLogger(__name__)

SYSTEM_TABLE_PREFIXES = ("DateTableTemplate",)


def _load_payload(path: str) -> Any:
    with open(path, "r", encoding="utf-8-sig") as handle:
        if path.lower().endswith((".yaml", ".yml")):
            return yaml.safe_load(handle)
        return json.load(handle)


def _coerce_text(value: Any) -> str:
    """Coerce a loosely typed model field into display text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return "\n".join(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def _is_hidden(item: dict[str, Any]) -> bool:
    return item.get("isHidden") is True


def _parse_column(item: Any) -> ColumnInfo | None:
    if not isinstance(item, dict):
        return None
    name = _coerce_text(item.get("name"))
    if not name or _is_hidden(item) or item.get("type") == "rowNumber":
        return None
    return ColumnInfo(
        name=name,
        data_type=_coerce_text(item.get("dataType")) or "unknown",
        description=_coerce_text(item.get("description")),
        source_column=_coerce_text(item.get("sourceColumn")) or name,
        format_string=_coerce_text(item.get("formatString")),
        data_category=_coerce_text(item.get("dataCategory")),
    )


def _parse_measure(item: Any, table_name: str) -> MeasureInfo | None:
    if not isinstance(item, dict):
        return None
    name = _coerce_text(item.get("name"))
    if not name:
        return None
    return MeasureInfo(
        name=name,
        table=table_name,
        expression=_coerce_text(item.get("expression")),
        description=_coerce_text(item.get("description")),
        format_string=_coerce_text(item.get("formatString")),
        display_folder=_coerce_text(item.get("displayFolder")),
    )


def _parse_relationship(item: Any) -> Relationship | None:
    if not isinstance(item, dict):
        return None
    from_table = _coerce_text(item.get("fromTable"))
    to_table = _coerce_text(item.get("toTable"))
    if not from_table or not to_table:
        return None
    return Relationship(
        name=_coerce_text(item.get("name")) or f"{from_table} → {to_table}",
        from_table=from_table,
        from_column=_coerce_text(item.get("fromColumn")),
        to_table=to_table,
        to_column=_coerce_text(item.get("toColumn")),
        cross_filtering_behavior=_coerce_text(item.get("crossFilteringBehavior")) or DEFAULT_CROSS_FILTERING,
        is_active=item.get("isActive") is not False,
    )


def _as_list(value: Any, field_name: str) -> list[Any]:
    """Return a list-valued field; a missing field is an empty list.

    Raises:
        SchemaLoadError: If the field is present but not a list
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaLoadError(f"'{field_name}' must be a list, got {type(value).__name__}")
    return value


def _iter_raw_tables(tables_payload: Any) -> list[tuple[str, dict[str, Any]]]:
    """Return (name, table payload) pairs for both artifact shapes."""
    if isinstance(tables_payload, dict):
        return [
            (str(name), item)
            for name, item in tables_payload.items()
            if isinstance(item, dict)
        ]
    if isinstance(tables_payload, list):
        return [
            (_coerce_text(item.get("name")), item)
            for item in tables_payload
            if isinstance(item, dict)
        ]
    raise SchemaLoadError("'tables' must be a mapping or a list")


def parse_schema_payload(payload: Any, source: str = "") -> SchemaDocument:
    """Build a SchemaDocument from a decoded artifact.

    Raises:
        SchemaLoadError: If the payload does not have the expected structure
    """
    if not isinstance(payload, dict):
        raise SchemaLoadError("Schema artifact must be a JSON/YAML object")

    # Model.bim wraps everything in a "model" object
    if isinstance(payload.get("model"), dict) and "tables" not in payload:
        model = payload["model"]
        payload = {
            "datasetName": model.get("name"),
            "tables": model.get("tables", []),
            "relationships": model.get("relationships", []),
            "metadata": {"version": payload.get("compatibilityLevel", "unknown")},
        }

    if "tables" not in payload:
        raise SchemaLoadError("Schema artifact has no 'tables'")

    dataset_name = _coerce_text(payload.get("datasetName") or payload.get("name")) or DEFAULT_DATASET_NAME

    raw_tables: list[tuple[str, dict[str, Any]]] = []
    for name, item in _iter_raw_tables(payload.get("tables")):
        if not name:
            logger.warning("Skipping table without a name")
            continue
        if _is_hidden(item) or name.startswith(SYSTEM_TABLE_PREFIXES):
            logger.debug(f"Skipping hidden table: {name}")
            continue
        raw_tables.append((name, item))

    # Single pass: every table gets its measure list up front, and each measure
    # goes into that list and the global index together.
    table_measures: dict[str, list[MeasureInfo]] = {name: [] for name, _ in raw_tables}
    measures: dict[str, MeasureInfo] = {}

    def _register(measure: MeasureInfo) -> None:
        if measure.name in measures:
            logger.warning(f"Duplicate measure '{measure.name}' in table '{measure.table}', keeping the first")
            return
        measures[measure.name] = measure
        table_measures[measure.table].append(measure)

    for name, item in raw_tables:
        for raw_measure in _as_list(item.get("measures"), f"tables.{name}.measures"):
            measure = _parse_measure(raw_measure, name)
            if measure is None:
                logger.warning(f"Skipping malformed measure in table '{name}'")
                continue
            _register(measure)

    # Normalized artifacts also carry a global index; pick up anything the
    # table lists missed as long as its table survived filtering.
    global_measures = payload.get("measures")
    if isinstance(global_measures, dict):
        for measure_name, item in global_measures.items():
            if not isinstance(item, dict) or measure_name in measures:
                continue
            table_name = _coerce_text(item.get("table"))
            if table_name not in table_measures:
                continue
            measure = _parse_measure({**item, "name": item.get("name") or measure_name}, table_name)
            if measure is not None:
                _register(measure)

    tables: dict[str, TableInfo] = {}
    for name, item in raw_tables:
        raw_columns = _as_list(item.get("columns"), f"tables.{name}.columns")
        columns = tuple(
            column
            for column in (_parse_column(raw) for raw in raw_columns)
            if column is not None
        )
        tables[name] = TableInfo(
            name=name,
            columns=columns,
            measures=tuple(table_measures[name]),
            description=_coerce_text(item.get("description")),
            is_hidden=False,
        )

    relationships: list[Relationship] = []
    for raw in _as_list(payload.get("relationships"), "relationships"):
        relationship = _parse_relationship(raw)
        if relationship is None:
            logger.warning("Skipping relationship without endpoints")
            continue
        relationships.append(relationship)

    raw_metadata = payload.get("metadata") if isinstance(payload.get("metadata"), dict) else {}
    metadata = SchemaMetadata(
        parsed_at=_coerce_text(raw_metadata.get("parsedAt")) or None,
        version=_coerce_text(raw_metadata.get("version")) or "unknown",
        source=source,
    )

    return SchemaDocument(
        dataset_name=dataset_name,
        tables=tables,
        measures=measures,
        relationships=tuple(relationships),
        metadata=metadata,
    )


def load_schema_document(path: str) -> SchemaDocument:
    """Strictly load a schema artifact from disk.

    Raises:
        SchemaLoadError: If the file is missing, unreadable or malformed
    """
    resolved = os.path.abspath(path)
    if not os.path.exists(resolved):
        raise SchemaLoadError(f"Schema artifact not found: {resolved}")

    try:
        payload = _load_payload(resolved)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SchemaLoadError(f"Failed to parse schema artifact {resolved}: {e}") from e

    return parse_schema_payload(payload, source=resolved)


def fallback_schema(core_table: str) -> SchemaDocument:
    """Minimal single-table schema used when no artifact can be loaded."""
    columns = (
        ColumnInfo(name="Cơ sở", data_type="int64", source_column="Cơ sở"),
        ColumnInfo(name="Chỉ tiêu", data_type="string", source_column="Chỉ tiêu"),
        ColumnInfo(name="Month", data_type="dateTime", source_column="Month"),
        ColumnInfo(name="Value", data_type="double", source_column="Value"),
        ColumnInfo(name="id", data_type="double", source_column="id"),
    )
    return SchemaDocument(
        dataset_name=DEFAULT_DATASET_NAME,
        tables={core_table: TableInfo(name=core_table, columns=columns)},
        metadata=SchemaMetadata(source="fallback"),
    )


def document_to_payload(document: SchemaDocument) -> dict[str, Any]:
    """Serialize a document into the normalized artifact layout."""
    tables: dict[str, Any] = {}
    for name, table in document.tables.items():
        tables[name] = {
            "columns": [
                {
                    "name": column.name,
                    "dataType": column.data_type,
                    "description": column.description,
                    "sourceColumn": column.source_column,
                    "formatString": column.format_string,
                    "dataCategory": column.data_category,
                }
                for column in table.columns
            ],
            "measures": [
                {
                    "name": measure.name,
                    "expression": measure.expression,
                    "description": measure.description,
                    "formatString": measure.format_string,
                    "displayFolder": measure.display_folder,
                }
                for measure in table.measures
            ],
            "description": table.description,
            "isHidden": False,
        }

    measures = {
        name: {
            "table": measure.table,
            "name": measure.name,
            "expression": measure.expression,
            "description": measure.description,
            "formatString": measure.format_string,
            "displayFolder": measure.display_folder,
        }
        for name, measure in document.measures.items()
    }

    relationships = [
        {
            "name": rel.name,
            "fromTable": rel.from_table,
            "fromColumn": rel.from_column,
            "toTable": rel.to_table,
            "toColumn": rel.to_column,
            "crossFilteringBehavior": rel.cross_filtering_behavior,
            "isActive": rel.is_active,
        }
        for rel in document.relationships
    ]

    return {
        "datasetName": document.dataset_name,
        "tables": tables,
        "measures": measures,
        "relationships": relationships,
        "metadata": {
            "parsedAt": document.metadata.parsed_at,
            "version": document.metadata.version,
            "statistics": {
                "tables": len(document.tables),
                "measures": len(document.measures),
                "relationships": len(document.relationships),
                "totalColumns": document.total_columns,
            },
        },
    }
