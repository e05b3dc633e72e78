"""Tests for the Power BI REST client with a mocked transport."""

from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from pbi_chat.core import powerbi
from pbi_chat.core.config import get_settings
from pbi_chat.core.exceptions import QueryExecutionError


@pytest.fixture
def settings():
    return replace(
        get_settings(),
        powerbi_tenant_id="tenant-1",
        powerbi_client_id="client-1",
        powerbi_client_secret="secret",
        powerbi_workspace_name="Finance",
        powerbi_dataset_id="ds-1",
        powerbi_api_url="https://api.powerbi.test/v1.0/myorg",
        powerbi_authority_host="https://login.test",
    )


@pytest.fixture(autouse=True)
def _reset_cache():
    powerbi.clear_token_cache()
    yield
    powerbi.clear_token_cache()


class FakeTransport:
    """Stands in for httpx.post / httpx.get and records requests."""

    def __init__(self, query_response=None):
        self.query_response = query_response or httpx.Response(
            200, json={"results": [{"tables": [{"rows": [{"'Facts'[Value]": 10, "'Facts'[Dept]": None}]}]}]}
        )
        self.requests: list[tuple[str, str, dict]] = []

    def post(self, url, **kwargs):
        self.requests.append(("POST", url, kwargs))
        if url.endswith("/oauth2/v2.0/token"):
            response = httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        else:
            response = self.query_response
        response.request = httpx.Request("POST", url)
        return response

    def get(self, url, **kwargs):
        self.requests.append(("GET", url, kwargs))
        response = httpx.Response(200, json={"value": [{"id": "ws-1", "name": "finance"}]})
        response.request = httpx.Request("GET", url)
        return response


@pytest.fixture
def transport(monkeypatch):
    fake = FakeTransport()
    monkeypatch.setattr(httpx, "post", fake.post)
    monkeypatch.setattr(httpx, "get", fake.get)
    return fake


class TestAuthentication:

    def test_token_request(self, settings, transport):
        assert powerbi.get_access_token(settings) == "tok"
        method, url, kwargs = transport.requests[0]
        assert url == "https://login.test/tenant-1/oauth2/v2.0/token"
        assert kwargs["data"]["grant_type"] == "client_credentials"
        assert kwargs["data"]["scope"] == "https://analysis.windows.net/powerbi/api/.default"

    def test_token_cached(self, settings, transport):
        powerbi.get_access_token(settings)
        powerbi.get_access_token(settings)
        assert len(transport.requests) == 1

    def test_token_failure(self, settings, monkeypatch):
        def failing(url, **kwargs):
            response = httpx.Response(401, json={"error": "invalid_client"})
            response.request = httpx.Request("POST", url)
            return response

        monkeypatch.setattr(httpx, "post", failing)
        with pytest.raises(QueryExecutionError, match="Failed to authenticate"):
            powerbi.get_access_token(settings)

    def test_workspace_lookup_case_insensitive(self, settings, transport):
        assert powerbi.get_workspace_id(settings) == "ws-1"
        get_request = [r for r in transport.requests if r[0] == "GET"][0]
        assert get_request[2]["headers"]["Authorization"] == "Bearer tok"

    def test_workspace_not_found(self, settings, transport):
        with pytest.raises(QueryExecutionError, match="not found"):
            powerbi.get_workspace_id(replace(settings, powerbi_workspace_name="Other"))


class TestExecuteDaxQuery:

    def test_rows(self, settings, transport):
        result = powerbi.execute_dax_query("EVALUATE 'Facts'", settings)
        assert result.rows == [{"'Facts'[Value]": 10, "'Facts'[Dept]": None}]
        assert result.columns == ["'Facts'[Value]", "'Facts'[Dept]"]
        assert result.row_count == 1

        method, url, kwargs = transport.requests[-1]
        assert url == "https://api.powerbi.test/v1.0/myorg/groups/ws-1/datasets/ds-1/executeQueries"
        assert kwargs["json"] == {
            "queries": [{"query": "EVALUATE 'Facts'"}],
            "serializerSettings": {"includeNulls": True},
        }

    def test_empty_table(self, settings, monkeypatch):
        fake = FakeTransport(httpx.Response(200, json={"results": [{"tables": [{"rows": []}]}]}))
        monkeypatch.setattr(httpx, "post", fake.post)
        monkeypatch.setattr(httpx, "get", fake.get)
        result = powerbi.execute_dax_query("EVALUATE 'Facts'", settings)
        assert result.rows == []
        assert result.columns == []

    def test_query_error(self, settings, monkeypatch):
        fake = FakeTransport(httpx.Response(200, json={"results": [{"error": {"message": "Column not found"}}]}))
        monkeypatch.setattr(httpx, "post", fake.post)
        monkeypatch.setattr(httpx, "get", fake.get)
        with pytest.raises(QueryExecutionError, match="DAX Query Error: Column not found"):
            powerbi.execute_dax_query("EVALUATE 'Facts'", settings)

    @pytest.mark.parametrize(
        "body",
        [
            {"results": ["oops"]},
            {"results": [{"tables": ["oops"]}]},
            {"results": [{"tables": [{"rows": ["oops"]}]}]},
            {"results": []},
            ["not", "a", "dict"],
        ],
    )
    def test_malformed_payload(self, settings, monkeypatch, body):
        fake = FakeTransport(httpx.Response(200, json=body))
        monkeypatch.setattr(httpx, "post", fake.post)
        monkeypatch.setattr(httpx, "get", fake.get)
        with pytest.raises(QueryExecutionError, match="Invalid response from Power BI API"):
            powerbi.execute_dax_query("EVALUATE 'Facts'", settings)

    @pytest.mark.parametrize(
        "status,message",
        [
            (400, "Invalid DAX query syntax"),
            (401, "Authentication failed"),
            (404, "Dataset not found"),
            (503, "status 503"),
        ],
    )
    def test_http_errors(self, settings, monkeypatch, status, message):
        fake = FakeTransport(httpx.Response(status, text="error"))
        monkeypatch.setattr(httpx, "post", fake.post)
        monkeypatch.setattr(httpx, "get", fake.get)
        with pytest.raises(QueryExecutionError, match=message):
            powerbi.execute_dax_query("EVALUATE 'Facts'", settings)

    def test_timeout(self, settings, transport, monkeypatch):
        token_post = transport.post

        def post(url, **kwargs):
            if url.endswith("executeQueries"):
                raise httpx.ReadTimeout("timed out")
            return token_post(url, **kwargs)

        monkeypatch.setattr(httpx, "post", post)
        with pytest.raises(QueryExecutionError, match="timed out"):
            powerbi.execute_dax_query("EVALUATE 'Facts'", settings)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
