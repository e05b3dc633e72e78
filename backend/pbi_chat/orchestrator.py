"""Question answering pipeline: prompt -> DAX -> Power BI -> narration."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Callable

from .core.exceptions import QueryExecutionError
from .core.powerbi import QueryResult
from .llm.answer_composer import MAX_ROWS_FOR_LLM, compose_answer, format_query_result
from .llm.dax_generator import generate_dax
from .llm.prompt_builder import build_dynamic_prompt
from .schema.models import SchemaDocument

logger = logging.getLogger(__name__)

NO_DAX_MESSAGE = (
    "Không thể tạo DAX query từ câu hỏi của bạn. "
    "Vui lòng hỏi rõ ràng hơn về dữ liệu tài chính."
)
QUERY_FAILED_MESSAGE = (
    "Lỗi khi thực thi query:\n\n{error}\n\nVui lòng thử lại hoặc hỏi câu hỏi khác."
)

Generate = Callable[[str, str], str]
Execute = Callable[[str], QueryResult]


@dataclass
class ChatOutcome:
    success: bool
    response: str
    data: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    warnings: list[str] = field(default_factory=list)


def answer_question(
    question: str,
    document: SchemaDocument,
    core_table: str,
    generate: Generate,
    execute: Execute,
    max_rows_for_llm: int = MAX_ROWS_FOR_LLM,
    generate_query: Generate | None = None,
) -> ChatOutcome:
    """Answer a question end to end.

    ``generate`` and ``execute`` are the language-model and Power BI
    capabilities; ``generate_query`` replaces ``generate`` for the DAX call
    when given. LLM failures propagate as ``LLMError``, query failures are
    reported in the outcome.
    """
    system_prompt = build_dynamic_prompt(document, question, core_table=core_table)

    # Stage 1: DAX generation
    dax = generate_dax(question, system_prompt, generate_query or generate)
    if dax is None:
        return ChatOutcome(success=False, response=NO_DAX_MESSAGE, warnings=["no_dax"])

    # Stage 2: Execution
    try:
        result = execute(dax)
    except QueryExecutionError as exc:
        logger.error(f"Query execution failed: {exc}")
        return ChatOutcome(
            success=False,
            response=QUERY_FAILED_MESSAGE.format(error=exc),
            warnings=["query_failed"],
        )
    logger.info(f"Query executed: {result.row_count} rows returned")

    # Stage 3: Narration grounded on the returned rows
    data_context = format_query_result(result, max_rows=max_rows_for_llm)
    answer = compose_answer(question, system_prompt, data_context, generate)

    warnings: list[str] = []
    if not result.rows:
        warnings.append("empty_result")
    if result.row_count > max_rows_for_llm:
        warnings.append(f"results_truncated: {max_rows_for_llm}")

    return ChatOutcome(
        success=True,
        response=answer,
        data=result.rows,
        row_count=result.row_count,
        warnings=warnings,
    )
