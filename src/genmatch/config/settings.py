"""Application settings and configuration management."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Generative provider
    llm_provider: str = Field(
        default="openai",
        description="Generative provider: openai, openrouter, anthropic, ollama or none",
    )
    llm_api_key: str | None = Field(default=None, description="API key for the generative provider")
    llm_base_url: str | None = Field(
        default=None,
        description="Override base URL for OpenAI-compatible endpoints",
    )
    llm_models: str = Field(
        default="gpt-4o-mini,gpt-4o,gpt-3.5-turbo",
        description="Comma-separated candidate model ids, tried in order",
    )
    llm_timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    search_query_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    search_query_max_tokens: int = Field(default=1500, ge=100, le=8192)
    match_analysis_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    match_analysis_max_tokens: int = Field(default=800, ge=100, le=8192)
    ollama_base_url: str = Field(default="http://localhost:11434")

    # Search limits
    search_max_name_variations: int = Field(default=12, ge=1, le=50)
    search_max_location_variations: int = Field(default=3, ge=1, le=20)
    search_max_time_ranges: int = Field(default=3, ge=1, le=10)
    search_max_requests: int = Field(default=30, ge=1, le=500)
    search_request_delay_ms: int = Field(default=300, ge=0, le=10000)
    search_provider_timeout_seconds: float = Field(default=30.0, ge=1.0, le=600.0)
    search_overall_deadline_seconds: float = Field(default=60.0, ge=1.0, le=1800.0)
    search_result_limit: int = Field(default=20, ge=1, le=500)

    # Provider toggles
    source_familysearch: bool = Field(default=True)
    source_wikitree: bool = Field(default=True)
    source_chronicling_america: bool = Field(default=True)
    source_findagrave: bool = Field(default=False)
    source_newspapers: bool = Field(default=False)
    enable_mock_sources: bool = Field(
        default=False,
        description="Enable providers that have no real integration yet",
    )

    # Provider credentials and endpoints
    familysearch_client_id: str | None = Field(default=None)
    familysearch_client_secret: str | None = Field(default=None)
    familysearch_base_url: str = Field(default="https://api.familysearch.org")
    wikitree_base_url: str = Field(default="https://api.wikitree.com/api.php")
    wikitree_app_id: str = Field(default="GenMatch")
    chronicling_america_base_url: str = Field(default="https://chroniclingamerica.loc.gov")

    # Rejection ledger
    rejection_db_path: str = Field(
        default="~/.genmatch/rejections.db",
        description="Path to rejection ledger database",
    )
    rejection_ledger_cap: int = Field(default=1000, ge=1, le=100000)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/genmatch.log", description="Main log file")
    llm_log_file: str = Field(
        default="logs/llm_interactions.log",
        description="Generative provider request/response log",
    )

    @field_validator("rejection_db_path")
    @classmethod
    def expand_user_path(cls, v: str) -> str:
        """Expand user home directory in paths."""
        return str(Path(v).expanduser())

    @field_validator("llm_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        """Lowercase provider names so env values are case-insensitive."""
        return v.strip().lower()

    @property
    def model_candidates(self) -> list[str]:
        """Ordered list of model ids for the generative cascade."""
        return [m.strip() for m in self.llm_models.split(",") if m.strip()]

    def enabled_sources(self) -> dict[str, bool]:
        """Provider toggle map keyed by provider name."""
        return {
            "familysearch": self.source_familysearch,
            "wikitree": self.source_wikitree,
            "chronicling_america": self.source_chronicling_america,
            "findagrave": self.source_findagrave or self.enable_mock_sources,
            "newspapers": self.source_newspapers or self.enable_mock_sources,
        }


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
