"""Answer composition: grounding block for query rows and the narration call."""

from __future__ import annotations

from datetime import datetime
import logging
import re
from typing import Any, Callable

from ..core.powerbi import QueryResult
from .prompts import ANALYSIS_REQUEST

logger = logging.getLogger(__name__)

# Maximum rows to send to LLM for answer composition
MAX_ROWS_FOR_LLM = 50

# 1 tỷ đồng
BILLION = 1_000_000_000

NO_DATA_MESSAGE = "⚠️ Query không trả về dữ liệu."

_COLUMN_PREFIX_RE = re.compile(r"^.*?\[|\]$")
_LEAKED_DAX_RE = re.compile(r"```(?:dax)?\s*EVALUATE.*?```", re.IGNORECASE | re.DOTALL)
_QUERY_BANNER_RE = re.compile(r"📌 \*\*Query:\*\*.*?\n", re.IGNORECASE)
_RETRIEVED_BANNER_RE = re.compile(r"✅ \*\*Retrieved.*?\n", re.IGNORECASE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _group_vi(value: float) -> str:
    """Format a number with Vietnamese separators: 1.234.567,5"""
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text.replace(",", "\0").replace(".", ",").replace("\0", ".")


def clean_column_name(key: str) -> str:
    """'Table'[Column] / Table[Column] / [Column] -> Column"""
    return _COLUMN_PREFIX_RE.sub("", key)


def format_value(column: str, value: Any) -> Any:
    if column == "Value" and _is_number(value):
        return f"{value / BILLION:.2f} tỷ đồng ({_group_vi(value)} đồng)"
    if column == "Month" and value:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return value
        return f"{parsed.month:02d}/{parsed.year}"
    lowered = column.lower()
    if _is_number(value) and ("rate" in lowered or "ratio" in lowered or "%" in lowered):
        return f"{value * 100:.2f}%"
    return value


def format_query_result(result: QueryResult, max_rows: int = MAX_ROWS_FOR_LLM) -> str:
    """Format query rows as the grounding block for the narration call."""
    if not result.rows:
        return NO_DATA_MESSAGE

    sample_rows = result.rows[:max_rows]
    lines = [f"📊 **DỮ LIỆU TỪ POWER BI ({result.row_count} rows):**", ""]

    for index, row in enumerate(sample_rows, start=1):
        lines.append(f"**Row {index}:**")
        for key, value in row.items():
            column = clean_column_name(key)
            lines.append(f"  - {column}: {format_value(column, value)}")
        lines.append("")

    if result.row_count > len(sample_rows):
        logger.info(f"Truncating results from {result.row_count} to {len(sample_rows)} rows for LLM")
        lines.append(f"Note: Showing first {len(sample_rows)} of {result.row_count} total rows.")
        lines.append("")

    lines.append("⚠️ **CRITICAL:** Sử dụng ĐÚNG số liệu từ data trên. KHÔNG đoán mò!")
    lines.append('Ví dụ: Nếu Value = 478978249082 → phải viết "478.98 tỷ đồng"')
    return "\n".join(lines) + "\n"


def clean_response(text: str) -> str:
    """Remove DAX and technical banners that leaked into the answer."""
    cleaned = _LEAKED_DAX_RE.sub("", text)
    cleaned = _QUERY_BANNER_RE.sub("", cleaned)
    cleaned = _RETRIEVED_BANNER_RE.sub("", cleaned)
    cleaned = _BLANK_LINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def compose_answer(
    question: str,
    system_prompt: str,
    data_context: str,
    generate: Callable[[str, str], str],
) -> str:
    """Ask the model to narrate the formatted query results."""
    logger.info("Composing answer from query results")
    content = generate(
        system_prompt,
        ANALYSIS_REQUEST.format(question=question, data_context=data_context),
    )
    answer = clean_response(content)
    logger.info(f"Composed answer length: {len(answer)} chars")
    return answer
