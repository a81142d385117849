"""Configuration management.

Uses pydantic-settings for type-safe configuration from environment variables.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Prefix: TABLEREPLAY_
    """

    model_config = SettingsConfigDict(
        env_prefix="TABLEREPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Table naming
    case_sensitive_table_names: bool = Field(
        default=False,
        description="Whether table names are matched case-sensitively in datasets and sequencing",
    )
    qualified_table_names: bool = Field(
        default=False,
        description="Assemble schema-qualified 'schema.table' names during sequencing",
    )
    default_schema: str | None = Field(
        default=None,
        description="Schema used for table names without an explicit schema prefix",
    )

    # Streaming
    column_sensing: bool = Field(
        default=False,
        description="Discover table columns from rows (buffers one table at a time)",
    )
    csv_null_strings: list[str] = Field(
        default_factory=lambda: ["null"],
        description="CSV literals that are read as null",
    )
    csv_fetch_size: int = Field(
        default=1000,
        description="Rows fetched from DuckDB per batch when streaming CSV files",
    )
    query_fetch_size: int = Field(
        default=1000,
        description="Rows fetched per partition when streaming query results",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")  # 'json' or 'console'


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
