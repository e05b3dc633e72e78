"""Application configuration loaded from environment variables."""

from __future__ import annotations

from dataclasses import dataclass
import os

from dotenv import load_dotenv

load_dotenv(override=True)

# Primary fact table of the financial model; always part of the prompt schema
DEFAULT_CORE_TABLE = "A1_KQKD (month)"
DEFAULT_DATASET_NAME = "QUAN TRI TAI CHINH"


@dataclass(frozen=True)
class Settings:
    """Application settings."""
    # Claude (Anthropic Messages API)
    anthropic_api_key: str
    anthropic_base_url: str
    claude_model: str
    claude_max_tokens: int
    claude_query_max_tokens: int
    request_timeout: int

    # Schema
    schema_path: str
    core_table: str

    # Power BI
    powerbi_tenant_id: str
    powerbi_client_id: str
    powerbi_client_secret: str
    powerbi_workspace_name: str
    powerbi_dataset_id: str
    powerbi_api_url: str
    powerbi_authority_host: str
    powerbi_timeout: int

    # Answer composition
    max_rows_for_llm: int

    @property
    def powerbi_authority(self) -> str:
        return f"{self.powerbi_authority_host}/{self.powerbi_tenant_id}"

    @property
    def powerbi_scope(self) -> str:
        return "https://analysis.windows.net/powerbi/api/.default"


def get_settings() -> Settings:
    """Load settings from environment variables."""
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    default_schema = os.path.join(base_dir, "schema", "schema-parsed.json")

    return Settings(
        # Claude
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com").rstrip("/"),
        claude_model=os.getenv("CLAUDE_MODEL", "claude-sonnet-4-20250514"),
        claude_max_tokens=int(os.getenv("CLAUDE_MAX_TOKENS", "4096")),
        claude_query_max_tokens=int(os.getenv("CLAUDE_QUERY_MAX_TOKENS", "2048")),
        request_timeout=int(os.getenv("REQUEST_TIMEOUT", "90")),

        # Schema
        schema_path=os.getenv("SCHEMA_PATH", default_schema),
        core_table=os.getenv("CORE_TABLE", DEFAULT_CORE_TABLE),

        # Power BI
        powerbi_tenant_id=os.getenv("POWERBI_TENANT_ID", ""),
        powerbi_client_id=os.getenv("POWERBI_CLIENT_ID", ""),
        powerbi_client_secret=os.getenv("POWERBI_CLIENT_SECRET", ""),
        powerbi_workspace_name=os.getenv("POWERBI_WORKSPACE_NAME", ""),
        powerbi_dataset_id=os.getenv("POWERBI_DATASET_ID", ""),
        powerbi_api_url=os.getenv("POWERBI_API_URL", "https://api.powerbi.com/v1.0/myorg").rstrip("/"),
        powerbi_authority_host=os.getenv(
            "POWERBI_AUTHORITY_HOST", "https://login.microsoftonline.com"
        ).rstrip("/"),
        powerbi_timeout=int(os.getenv("POWERBI_TIMEOUT", "30")),

        max_rows_for_llm=int(os.getenv("MAX_ROWS_FOR_LLM", "50")),
    )
