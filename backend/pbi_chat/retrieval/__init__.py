"""Retrieval module for selecting and formatting the relevant schema.

This module provides:
- concepts: financial concept groups and their synonyms
- relevance: keyword/lexical measure matching with relationship expansion
- schema_knowledge: prompt formatting for tables and measures
"""

from .concepts import CONCEPT_KEYWORDS, detect_concepts
from .relevance import MAX_RELATED_TABLES, SHORT_TOKEN_MAX_LENGTH, select_relevant_schema
from .schema_knowledge import (
    EXPRESSION_MAX_CHARS,
    EXPRESSION_PREVIEW_CHARS,
    MAX_TABLE_MEASURES,
    format_expression,
    format_measure,
    format_table_schema,
)

__all__ = [
    # concepts.py
    "CONCEPT_KEYWORDS",
    "detect_concepts",
    # relevance.py
    "MAX_RELATED_TABLES",
    "SHORT_TOKEN_MAX_LENGTH",
    "select_relevant_schema",
    # schema_knowledge.py
    "EXPRESSION_MAX_CHARS",
    "EXPRESSION_PREVIEW_CHARS",
    "MAX_TABLE_MEASURES",
    "format_expression",
    "format_measure",
    "format_table_schema",
]
