"""Centralized configuration for sse-ledger using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strictly typed configuration loaded from ``SSE_LEDGER_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SSE_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Ledger backend
    ledger_backend: Literal["memory", "sqlite"] = Field(
        default="memory", description="Ledger implementation: in-process memory or a SQLite file"
    )
    sqlite_path: Path = Field(default=Path("sse_ledger.db"), description="SQLite database file for the sqlite backend")

    # Core behaviour
    concurrent_batches: bool = Field(
        default=True, description="Run the segment and index halves of a store request concurrently"
    )
    max_query_tokens: int = Field(default=256, ge=1, description="Maximum number of tokens accepted per search")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    # Observability
    service_name: str = Field(default="sse-ledger", min_length=1, description="Service name for traces and metrics")

    @model_validator(mode="after")
    def _check_sqlite_path(self) -> "Settings":
        if self.ledger_backend == "sqlite" and not str(self.sqlite_path).strip():
            raise ValueError("SSE_LEDGER_SQLITE_PATH must be set when SSE_LEDGER_LEDGER_BACKEND=sqlite")
        return self

    def uses_sqlite(self) -> bool:
        """Check whether the SQLite backend is configured."""
        return self.ledger_backend == "sqlite"
