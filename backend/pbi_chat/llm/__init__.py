"""LLM interaction module.

Contains the Claude client, prompts, and specialized LLM operations:
- Dynamic prompt compilation
- DAX generation
- Answer composition
"""

from .answer_composer import MAX_ROWS_FOR_LLM, clean_response, compose_answer, format_query_result
from .client import LLMError, call_claude
from .dax_generator import extract_dax, generate_dax
from .prompt_builder import build_dynamic_prompt, render_prompt
from .prompts import ANALYSIS_REQUEST, DAX_REQUEST, DAX_RULES, OUTPUT_FORMAT, PROMPT_HEADER

__all__ = [
    "MAX_ROWS_FOR_LLM",
    "clean_response",
    "compose_answer",
    "format_query_result",
    "LLMError",
    "call_claude",
    "extract_dax",
    "generate_dax",
    "build_dynamic_prompt",
    "render_prompt",
    "ANALYSIS_REQUEST",
    "DAX_REQUEST",
    "DAX_RULES",
    "OUTPUT_FORMAT",
    "PROMPT_HEADER",
]
