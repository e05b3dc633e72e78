from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = ""


class ChatResponse(BaseModel):
    success: bool
    response: str = ""
    data: list[dict[str, Any]] = Field(default_factory=list)
    row_count: int = 0
    warnings: list[str] = Field(default_factory=list)
