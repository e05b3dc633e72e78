"""Power BI REST client for executing DAX queries against the dataset."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Any, Optional

import httpx

from .config import Settings, get_settings
from .exceptions import QueryExecutionError

logger = logging.getLogger(__name__)

# Refresh the access token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60

_token_lock = threading.Lock()
_token_cache: dict[str, Any] = {
    "access_token": None,
    "expires_at": 0.0,
    "workspace_id": None,
}


@dataclass
class QueryResult:
    """Rows returned by a DAX query."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


def clear_token_cache() -> None:
    """Forget the cached access token and workspace id."""
    with _token_lock:
        _token_cache["access_token"] = None
        _token_cache["expires_at"] = 0.0
        _token_cache["workspace_id"] = None


def get_access_token(settings: Optional[Settings] = None) -> str:
    """Acquire an app-only token with the client-credentials flow.

    The token is cached until shortly before it expires.
    """
    settings = settings or get_settings()

    with _token_lock:
        token = _token_cache.get("access_token")
        if token and time.time() < _token_cache.get("expires_at", 0.0):
            return token

        try:
            response = httpx.post(
                f"{settings.powerbi_authority}/oauth2/v2.0/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": settings.powerbi_client_id,
                    "client_secret": settings.powerbi_client_secret,
                    "scope": settings.powerbi_scope,
                },
                timeout=settings.powerbi_timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Error acquiring Power BI token: {e}")
            raise QueryExecutionError("Failed to authenticate with Power BI") from e

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.error("Token response did not contain an access_token")
            raise QueryExecutionError("Failed to authenticate with Power BI")

        expires_in = int(payload.get("expires_in", 3600) or 3600)
        _token_cache["access_token"] = token
        _token_cache["expires_at"] = time.time() + expires_in - TOKEN_EXPIRY_MARGIN
        logger.info("Access token acquired successfully")
        return token


def get_workspace_id(settings: Optional[Settings] = None) -> str:
    """Resolve the configured workspace name to its id (cached)."""
    settings = settings or get_settings()

    with _token_lock:
        cached = _token_cache.get("workspace_id")
    if cached:
        return cached

    token = get_access_token(settings)
    try:
        response = httpx.get(
            f"{settings.powerbi_api_url}/groups",
            headers={"Authorization": f"Bearer {token}"},
            timeout=settings.powerbi_timeout,
        )
        response.raise_for_status()
        groups = response.json().get("value", [])
    except (httpx.HTTPError, ValueError, AttributeError) as e:
        logger.error(f"Error listing Power BI workspaces: {e}")
        raise QueryExecutionError(f"Failed to list Power BI workspaces: {e}") from e

    wanted = settings.powerbi_workspace_name.lower()
    for group in groups:
        if str(group.get("name", "")).lower() == wanted:
            workspace_id = group.get("id")
            logger.info(f"Found workspace: {group.get('name')} ({workspace_id})")
            with _token_lock:
                _token_cache["workspace_id"] = workspace_id
            return workspace_id

    raise QueryExecutionError(f"Workspace '{settings.powerbi_workspace_name}' not found")


def _status_message(status_code: int) -> str | None:
    if status_code == 400:
        return "Invalid DAX query syntax"
    if status_code == 401:
        return "Authentication failed - check your credentials"
    if status_code == 404:
        return "Dataset not found - check your dataset ID"
    return None


def execute_dax_query(dax_query: str, settings: Optional[Settings] = None) -> QueryResult:
    """Execute a DAX query through the executeQueries endpoint.

    Args:
        dax_query: DAX query text starting with EVALUATE
        settings: Optional settings override

    Returns:
        QueryResult with the rows of the first result table

    Raises:
        QueryExecutionError: If authentication, transport or the query fails
    """
    settings = settings or get_settings()
    token = get_access_token(settings)
    workspace_id = get_workspace_id(settings)

    url = (
        f"{settings.powerbi_api_url}/groups/{workspace_id}"
        f"/datasets/{settings.powerbi_dataset_id}/executeQueries"
    )
    payload = {
        "queries": [{"query": dax_query}],
        "serializerSettings": {"includeNulls": True},
    }

    logger.info(f"Executing DAX query on dataset {settings.powerbi_dataset_id}")
    logger.debug(f"DAX: {dax_query[:200]}...")

    try:
        response = httpx.post(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=settings.powerbi_timeout,
        )
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error(f"Power BI query timed out after {settings.powerbi_timeout}s")
        raise QueryExecutionError(f"Query timed out after {settings.powerbi_timeout}s") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"Power BI HTTP error: {status} - {e.response.text[:200]}")
        raise QueryExecutionError(_status_message(status) or f"Power BI request failed with status {status}") from e
    except httpx.HTTPError as e:
        logger.error(f"Power BI request failed: {e}")
        raise QueryExecutionError(f"Power BI request failed: {e}") from e

    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"Failed to parse Power BI response as JSON: {response.text[:200]}")
        raise QueryExecutionError("Invalid response from Power BI API") from e

    results = data.get("results") if isinstance(data, dict) else None
    if not results or not isinstance(results, list) or not isinstance(results[0], dict):
        raise QueryExecutionError("Invalid response from Power BI API")

    result = results[0]
    error = result.get("error")
    if error:
        message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
        raise QueryExecutionError(f"DAX Query Error: {message}")

    tables = result.get("tables") or [{}]
    if not isinstance(tables, list) or not isinstance(tables[0], dict):
        raise QueryExecutionError("Invalid response from Power BI API")
    raw_rows = tables[0].get("rows") or []
    if not isinstance(raw_rows, list) or not all(isinstance(row, dict) for row in raw_rows):
        raise QueryExecutionError("Invalid response from Power BI API")
    rows = [dict(row) for row in raw_rows]
    columns = list(rows[0].keys()) if rows else []

    logger.info(f"Query executed successfully, returned {len(rows)} rows")
    return QueryResult(rows=rows, columns=columns)
