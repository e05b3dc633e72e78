"""Custom exceptions for the application."""

from __future__ import annotations


class SchemaLoadError(Exception):
    """Raised when the schema artifact cannot be read or has the wrong shape."""

    pass


class LLMError(Exception):
    """Raised when LLM returns unexpected response format or fails."""

    pass


class QueryExecutionError(Exception):
    """Raised when a DAX query fails against the Power BI dataset."""

    pass
