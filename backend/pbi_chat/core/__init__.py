"""Core infrastructure module.

Contains configuration, the Power BI query client, API models and exceptions.
"""

from .config import (
    DEFAULT_CORE_TABLE,
    DEFAULT_DATASET_NAME,
    Settings,
    get_settings,
)
from .exceptions import LLMError, QueryExecutionError, SchemaLoadError
from .models import ChatRequest, ChatResponse
from .powerbi import (
    QueryResult,
    clear_token_cache,
    execute_dax_query,
    get_access_token,
    get_workspace_id,
)

__all__ = [
    # Config
    "DEFAULT_CORE_TABLE",
    "DEFAULT_DATASET_NAME",
    "Settings",
    "get_settings",
    # Exceptions
    "LLMError",
    "QueryExecutionError",
    "SchemaLoadError",
    # Models
    "ChatRequest",
    "ChatResponse",
    # Power BI
    "QueryResult",
    "clear_token_cache",
    "execute_dax_query",
    "get_access_token",
    "get_workspace_id",
]
