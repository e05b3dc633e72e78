from __future__ import annotations

import logging
import os
import threading
from typing import Any

from ..core.config import DEFAULT_CORE_TABLE
from ..core.exceptions import SchemaLoadError
from .loader import fallback_schema, load_schema_document
from .models import SchemaDocument, SchemaStatistics, TableInfo

logger = logging.getLogger(__name__)


class SchemaStore:
    """Holds the active schema document.

    Readers take the current reference and work on it; ``refresh`` builds a
    complete new document before swapping the reference, so a reader never
    sees a partially loaded schema.
    """

    def __init__(self, path: str, core_table: str = DEFAULT_CORE_TABLE) -> None:
        self.path = path
        self.core_table = core_table
        self._document: SchemaDocument | None = None
        self._refresh_lock = threading.Lock()

    @property
    def document(self) -> SchemaDocument:
        document = self._document
        if document is None:
            with self._refresh_lock:
                if self._document is None:
                    self._document = self.load()
                document = self._document
        return document

    def load(self) -> SchemaDocument:
        """Load the artifact, substituting the fallback schema on any failure."""
        if not os.path.exists(self.path):
            logger.warning(f"Schema artifact not found at {self.path}. Using fallback schema (run tools/parse_model.py)")
            return fallback_schema(self.core_table)

        try:
            document = load_schema_document(self.path)
        except SchemaLoadError as exc:
            logger.error(f"Error loading schema: {exc}. Using fallback schema")
            return fallback_schema(self.core_table)

        stats = _statistics(document, initialized=True)
        logger.info(f"Schema loaded: {document.dataset_name}")
        logger.info(
            f"{stats.tables} tables, {stats.measures} measures, {stats.relationships} relationships"
        )
        if self.core_table not in document.tables:
            logger.warning(f"Core table '{self.core_table}' is not in the loaded schema")
        return document

    def refresh(self) -> SchemaStatistics:
        """Reload the artifact and publish it.

        Raises:
            SchemaLoadError: If the artifact cannot be loaded; the previous
                document stays active.
        """
        logger.info("Refreshing schema...")
        with self._refresh_lock:
            try:
                document = load_schema_document(self.path)
            except SchemaLoadError as exc:
                logger.error(f"Schema refresh failed, keeping current schema: {exc}")
                raise
            self._document = document
        logger.info(f"Schema refreshed: {len(document.tables)} tables")
        return self.statistics()

    def statistics(self) -> SchemaStatistics:
        document = self.document
        return _statistics(document, initialized=document.metadata.source != "fallback")

    def table_names(self) -> list[str]:
        return list(self.document.tables.keys())

    def table_info(self, name: str) -> TableInfo | None:
        return self.document.tables.get(name)

    def search_measures(self, keyword: str) -> list[dict[str, Any]]:
        """Measures whose name or description contains the keyword (case-insensitive)."""
        needle = keyword.lower()
        results: list[dict[str, Any]] = []
        for name, info in self.document.measures.items():
            if needle in name.lower() or needle in (info.description or "").lower():
                results.append(
                    {
                        "name": name,
                        "table": info.table,
                        "description": info.description,
                        "format_string": info.format_string,
                        "display_folder": info.display_folder,
                    }
                )
        return results

    def measures_by_table(self) -> dict[str, list[dict[str, str]]]:
        document = self.document
        grouped: dict[str, list[dict[str, str]]] = {
            info.table: [] for info in document.measures.values()
        }
        for name, info in document.measures.items():
            grouped[info.table].append(
                {
                    "name": name,
                    "description": info.description,
                    "format_string": info.format_string,
                }
            )
        return grouped


def _statistics(document: SchemaDocument, initialized: bool) -> SchemaStatistics:
    return SchemaStatistics(
        tables=len(document.tables),
        measures=len(document.measures),
        relationships=len(document.relationships),
        total_columns=document.total_columns,
        parsed_at=document.metadata.parsed_at,
        dataset_name=document.dataset_name,
        initialized=initialized,
        source=document.metadata.source,
    )
