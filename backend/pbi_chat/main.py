from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from functools import partial
import logging
import os
import re
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .core import (
    ChatRequest,
    ChatResponse,
    LLMError,
    SchemaLoadError,
    execute_dax_query,
    get_settings,
)
from .llm import call_claude
from .orchestrator import answer_question
from .schema import SchemaStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Power BI Financial Chat", version="0.1.0")
settings = get_settings()

store = SchemaStore(settings.schema_path, core_table=settings.core_table)

# CORS configuration
cors_origins = [origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)


# --- Structured Error Response ---

class ErrorDetail(BaseModel):
    error_code: str
    message: str
    details: dict[str, Any] | None = None


def raise_error(status_code: int, error_code: str, message: str, details: dict | None = None):
    """Raise HTTPException with structured error detail."""
    raise HTTPException(
        status_code=status_code,
        detail=ErrorDetail(error_code=error_code, message=message, details=details).model_dump()
    )


# --- Input Sanitization ---

# Maximum message length to prevent abuse
MAX_MESSAGE_LENGTH = 2000

# Patterns that might indicate prompt injection attempts
SUSPICIOUS_PATTERNS = [
    r"ignore\s+(previous|all|above)\s+instructions?",
    r"disregard\s+(previous|all|above)",
    r"forget\s+(everything|all)",
    r"new\s+instructions?:",
    r"system\s*:",
    r"assistant\s*:",
]


def sanitize_user_input(message: str) -> str:
    """Truncate the message, drop code fences and log injection-like input."""
    if not message:
        return ""

    sanitized = message[:MAX_MESSAGE_LENGTH]
    sanitized = re.sub(r"```", "", sanitized)

    # Log if suspicious patterns detected (but still allow the message)
    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, sanitized, re.IGNORECASE | re.DOTALL):
            logger.warning(f"Suspicious pattern detected in user input: {pattern}")
            break

    return sanitized.strip()


# --- Startup Events ---

@app.on_event("startup")
def _load_schema() -> None:
    logger.info("Loading schema on startup...")
    stats = store.statistics()
    logger.info(f"Schema ready: {stats.tables} tables, {stats.measures} measures (source={stats.source})")


# --- Health ---

@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/chat/health")
def chat_health() -> dict[str, Any]:
    return {
        "success": True,
        "status": "Chat API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# --- Chat ---

@app.get("/api/chat")
def chat_info() -> dict[str, Any]:
    return {
        "success": True,
        "message": "Power BI Chat API is running",
        "endpoint": "POST /api/chat",
        "usage": 'Send POST request with body: {"message": "your question"}',
    }


@app.post("/api/chat", response_model=ChatResponse)
def chat(request: ChatRequest) -> ChatResponse:
    message = sanitize_user_input(request.message)
    if not message:
        raise_error(400, "empty_message", "Message is required")

    logger.info(f"Chat request: {message[:100]}...")

    try:
        outcome = answer_question(
            message,
            store.document,
            core_table=store.core_table,
            generate=call_claude,
            execute=execute_dax_query,
            max_rows_for_llm=settings.max_rows_for_llm,
            generate_query=partial(call_claude, max_tokens=settings.claude_query_max_tokens),
        )
    except LLMError as exc:
        logger.error(f"LLM error during chat: {exc}")
        raise_error(502, "llm_error", f"LLM service error: {exc}")

    logger.info("Chat response complete")
    return ChatResponse(**asdict(outcome))


# --- Schema Introspection ---

@app.get("/api/chat/measures/search")
def search_measures(q: str = Query(default="", description="Keyword, e.g. ros")) -> dict[str, Any]:
    if not q:
        raise_error(
            400,
            "missing_query",
            'Query parameter "q" is required',
            {"example": "/api/chat/measures/search?q=ros"},
        )
    results = store.search_measures(q)
    return {"success": True, "query": q, "results": results, "count": len(results)}


@app.get("/api/chat/measures/by-table")
def measures_by_table() -> dict[str, Any]:
    grouped = store.measures_by_table()
    return {
        "success": True,
        "data": grouped,
        "table_count": len(grouped),
        "total_measures": sum(len(measures) for measures in grouped.values()),
    }


@app.get("/api/chat/schema/stats")
def schema_stats() -> dict[str, Any]:
    return {"success": True, **asdict(store.statistics())}


@app.get("/api/chat/schema/tables")
def schema_tables() -> dict[str, Any]:
    tables = store.table_names()
    return {"success": True, "tables": tables, "count": len(tables)}


@app.get("/api/chat/schema/table/{table_name}")
def schema_table(table_name: str) -> dict[str, Any]:
    table = store.table_info(table_name)
    if table is None:
        raise_error(404, "table_not_found", f'Table "{table_name}" not found')

    info = asdict(table)
    return {
        "success": True,
        "table_name": table_name,
        "description": info["description"],
        "columns": info["columns"],
        "measures": info["measures"],
        "column_count": len(table.columns),
        "measure_count": len(table.measures),
    }


@app.post("/api/chat/schema/refresh")
def schema_refresh() -> dict[str, Any]:
    try:
        stats = store.refresh()
    except SchemaLoadError as exc:
        raise_error(500, "schema_refresh_failed", f"Schema refresh failed: {exc}")
    return {"success": True, "message": "Schema refreshed successfully", **asdict(stats)}
