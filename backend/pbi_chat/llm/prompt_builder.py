"""Dynamic system prompt built from the schema slice relevant to a question."""

from __future__ import annotations

import logging

from ..core.config import DEFAULT_CORE_TABLE
from ..retrieval.relevance import select_relevant_schema
from ..retrieval.schema_knowledge import format_measure, format_table_schema
from ..schema.models import RelevantSubset, SchemaDocument
from .prompts import DAX_RULES, OUTPUT_FORMAT, PROMPT_HEADER

logger = logging.getLogger(__name__)


def render_prompt(dataset_name: str, relevant: RelevantSubset) -> str:
    """Render a relevant subset plus the fixed DAX rules and output format."""
    parts = [PROMPT_HEADER.format(dataset_name=dataset_name)]

    for table in relevant.tables.values():
        parts.append(format_table_schema(table))

    if relevant.relevant_measures:
        parts.append(f"💡 **RELEVANT MEASURES ({len(relevant.relevant_measures)}):**")
        for measure_name in relevant.relevant_measures:
            parts.append(format_measure(relevant.measures[measure_name]))

    parts.append(DAX_RULES.strip("\n"))
    parts.append(OUTPUT_FORMAT.strip("\n"))
    return "\n\n".join(parts)


def build_dynamic_prompt(
    document: SchemaDocument,
    question: str,
    core_table: str = DEFAULT_CORE_TABLE,
) -> str:
    """Compile the system prompt for one question."""
    relevant = select_relevant_schema(document, question, core_table=core_table)
    prompt = render_prompt(document.dataset_name, relevant)
    logger.info(f"Dynamic prompt built ({len(prompt) / 1024:.2f} KB)")
    return prompt
