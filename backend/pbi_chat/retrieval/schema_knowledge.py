"""Schema formatting for LLM prompts.

Renders tables and measures of a relevant subset as prompt text. All limits
below are fixed so prompt size stays within the token budget.
"""

from __future__ import annotations

import re

from ..schema.models import MeasureInfo, TableInfo

# Measure names listed under each table (structural summary, not relevance)
MAX_TABLE_MEASURES = 5

# Expressions are cut to this many characters in the prompt
EXPRESSION_PREVIEW_CHARS = 200

# Expressions longer than this are left out entirely
EXPRESSION_MAX_CHARS = 500

_NEWLINES_RE = re.compile(r"\n+")


def format_table_schema(table: TableInfo) -> str:
    """Format one table: columns plus a capped list of its own measures."""
    lines = [f"**Table: {table.name}**"]

    if table.description:
        lines.append(f"Description: {table.description}")

    lines.append("Columns:")
    for col in table.columns:
        col_line = f"  - {col.name} ({col.data_type})"
        if col.description:
            col_line += f" - {col.description}"
        lines.append(col_line)

    if table.measures:
        lines.append("")
        lines.append(f"Table Measures ({len(table.measures)}):")
        for measure in table.measures[:MAX_TABLE_MEASURES]:
            measure_line = f"  - {measure.name}"
            if measure.format_string:
                measure_line += f" ({measure.format_string})"
            lines.append(measure_line)
        hidden = len(table.measures) - MAX_TABLE_MEASURES
        if hidden > 0:
            lines.append(f"  ... +{hidden} more")

    return "\n".join(lines)


def format_expression(expression: str) -> str | None:
    """Prompt preview of a DAX expression, or None when it should be omitted."""
    if not expression or len(expression) > EXPRESSION_MAX_CHARS:
        return None
    preview = _NEWLINES_RE.sub(" ", expression.strip())[:EXPRESSION_PREVIEW_CHARS]
    if len(expression) > EXPRESSION_PREVIEW_CHARS:
        preview += "..."
    return preview


def format_measure(measure: MeasureInfo) -> str:
    lines = [f"**{measure.name}**", f"  Table: {measure.table}"]
    if measure.description:
        lines.append(f"  Description: {measure.description}")
    if measure.format_string:
        lines.append(f"  Format: {measure.format_string}")
    preview = format_expression(measure.expression)
    if preview:
        lines.append(f"  Expression: {preview}")
    return "\n".join(lines)
