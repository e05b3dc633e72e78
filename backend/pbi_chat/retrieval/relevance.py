"""Relevant schema selection using concept keywords + lexical matching.

Recall matters more than precision here: a measure left out of the prompt
cannot be used by the model, while an extra one only costs prompt space.
Both strategies are OR-combined and the result is widened by one hop of
active relationships, capped at ``MAX_RELATED_TABLES``.
"""

from __future__ import annotations

import logging

from ..core.config import DEFAULT_CORE_TABLE
from ..schema.graph import build_adjacency, neighbor_tables
from ..schema.models import MeasureInfo, RelevantSubset, SchemaDocument
from .concepts import CONCEPT_KEYWORDS, contains_any, detect_concepts

logger = logging.getLogger(__name__)

# Known tables taken from the one-hop neighbour pool (already selected ones included)
MAX_RELATED_TABLES = 3

# Words of this length or shorter are ignored by the lexical fallback
SHORT_TOKEN_MAX_LENGTH = 2


def _tokenize(text: str) -> list[str]:
    return [word for word in text.split() if len(word) > SHORT_TOKEN_MAX_LENGTH]


def _matches_concept(question_concepts: list[str], name: str, description: str) -> bool:
    for concept in question_concepts:
        synonyms = CONCEPT_KEYWORDS[concept]
        if contains_any(name, synonyms) or contains_any(description, synonyms):
            return True
    return False


def _matches_lexical(question_tokens: list[str], name: str) -> bool:
    measure_tokens = _tokenize(name)
    return any(
        measure_word in question_word or question_word in measure_word
        for question_word in question_tokens
        for measure_word in measure_tokens
    )


def _is_relevant(measure_name: str, info: MeasureInfo, question_concepts: list[str], question_tokens: list[str]) -> bool:
    name = (measure_name or "").lower()
    description = info.description.lower() if isinstance(info.description, str) else ""
    if _matches_concept(question_concepts, name, description):
        return True
    return _matches_lexical(question_tokens, name)


def select_relevant_schema(
    document: SchemaDocument,
    question: str,
    core_table: str = DEFAULT_CORE_TABLE,
    seed_core_table: bool = True,
) -> RelevantSubset:
    """Select the tables and measures a question needs.

    Args:
        document: Loaded schema document
        question: Free-text user question
        core_table: Table that is always included
        seed_core_table: Whether the core table also seeds relationship
            expansion (so its neighbours are pulled in even when nothing matched)

    Returns:
        RelevantSubset with tables in admission order and measures in
        discovery order
    """
    question_lower = (question or "").lower()
    question_concepts = detect_concepts(question_lower)
    question_tokens = _tokenize(question_lower)

    relevant_measures: list[str] = []
    # dict keys keep insertion order
    candidates: dict[str, None] = {}

    for measure_name, info in document.measures.items():
        try:
            if _is_relevant(measure_name, info, question_concepts, question_tokens) and info.table:
                relevant_measures.append(measure_name)
                candidates[info.table] = None
        except Exception as exc:
            logger.warning(f"Error processing measure {measure_name!r}: {exc}")
            continue

    matched_tables = list(candidates)
    candidates[core_table] = None
    seeds = list(candidates) if seed_core_table else matched_tables

    # Every known table in the neighbour pool uses a slot, including tables
    # that are already candidates.
    adjacency = build_adjacency(document.relationships)
    expanded: list[str] = []
    used_slots = 0
    for table in neighbor_tables(adjacency, seeds):
        if used_slots >= MAX_RELATED_TABLES:
            break
        if table not in document.tables:
            continue
        used_slots += 1
        if table not in candidates:
            expanded.append(table)
            candidates[table] = None

    subset = RelevantSubset(relevant_measures=relevant_measures, expanded_tables=expanded)
    for table_name in candidates:
        table = document.tables.get(table_name)
        if table is not None:
            subset.tables[table_name] = table
    for measure_name in relevant_measures:
        subset.measures[measure_name] = document.measures[measure_name]

    logger.info(
        f"Relevant schema: {len(subset.tables)} tables, {len(relevant_measures)} measures "
        f"({len(expanded)} via relationships)"
    )
    return subset
