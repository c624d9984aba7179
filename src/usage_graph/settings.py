from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UsageGraphSettings(BaseSettings):
    """Unified configuration for the usage graph.

    Environment variables are prefixed with USAGE_GRAPH_. List values are
    read as JSON, e.g. USAGE_GRAPH_SOURCE_TYPES='["node", "block_content"]'.
    """

    model_config = SettingsConfigDict(env_prefix="USAGE_GRAPH_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")
    db_path: str = Field(default="~/.usage_graph/usage.db")

    # --- Tracking (empty list = everything enabled) ---
    source_types: list[str] = Field(default_factory=list)
    target_types: list[str] = Field(default_factory=list)
    methods: list[str] = Field(default_factory=list, description="Enabled extractor ids")
    track_base_slots: bool = Field(
        default=False, description="Also scan non-configurable (base) slots"
    )
    site_domains: list[str] = Field(
        default_factory=list,
        description="host[/base-path] entries whose absolute links count as internal",
    )

    # --- Recompute ---
    recompute_batch_size: int = Field(default=10, ge=1)

    # --- HTTP ---
    bind_host: str = "0.0.0.0"
    bind_port: int = 8089
    api_key: str | None = Field(default=None, description="If set, require X-API-Key")


settings = UsageGraphSettings()
