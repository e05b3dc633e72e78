"""Power BI financial chat assistant.

This package answers free-text financial questions (Vietnamese or English)
about a Power BI semantic model: it selects the relevant part of the schema,
compiles a DAX-authoring prompt for Claude, runs the generated DAX through the
Power BI REST API and has Claude narrate the result.

Package Structure:
    core/       - Core infrastructure (config, Power BI client, models, exceptions)
    schema/     - Schema document, artifact loading and the schema store
    retrieval/  - Relevant schema selection and prompt formatting of the schema
    llm/        - LLM interaction (client, prompts, DAX generation, answers)
"""

from .core.config import Settings, get_settings
from .core.exceptions import LLMError, QueryExecutionError, SchemaLoadError
from .core.models import ChatRequest, ChatResponse
from .core.powerbi import QueryResult, execute_dax_query

from .schema.models import (
    ColumnInfo,
    MeasureInfo,
    Relationship,
    RelevantSubset,
    SchemaDocument,
    SchemaStatistics,
    TableInfo,
)
from .schema.store import SchemaStore

from .retrieval.relevance import select_relevant_schema

from .llm.client import call_claude
from .llm.prompt_builder import build_dynamic_prompt

from .orchestrator import ChatOutcome, answer_question

__all__ = [
    # Core
    "Settings",
    "get_settings",
    "LLMError",
    "QueryExecutionError",
    "SchemaLoadError",
    "ChatRequest",
    "ChatResponse",
    "QueryResult",
    "execute_dax_query",
    # Schema
    "ColumnInfo",
    "MeasureInfo",
    "Relationship",
    "RelevantSubset",
    "SchemaDocument",
    "SchemaStatistics",
    "TableInfo",
    "SchemaStore",
    # Retrieval / LLM
    "select_relevant_schema",
    "call_claude",
    "build_dynamic_prompt",
    # Pipeline
    "ChatOutcome",
    "answer_question",
]
