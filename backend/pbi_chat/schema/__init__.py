"""Schema management module.

Contains the schema document model, artifact loading and the schema store.
"""

from .graph import build_adjacency, neighbor_tables
from .loader import (
    document_to_payload,
    fallback_schema,
    load_schema_document,
    parse_schema_payload,
)
from .models import (
    ColumnInfo,
    MeasureInfo,
    Relationship,
    RelevantSubset,
    SchemaDocument,
    SchemaMetadata,
    SchemaStatistics,
    TableInfo,
)
from .store import SchemaStore

__all__ = [
    "build_adjacency",
    "neighbor_tables",
    "document_to_payload",
    "fallback_schema",
    "load_schema_document",
    "parse_schema_payload",
    "ColumnInfo",
    "MeasureInfo",
    "Relationship",
    "RelevantSubset",
    "SchemaDocument",
    "SchemaMetadata",
    "SchemaStatistics",
    "TableInfo",
    "SchemaStore",
]
