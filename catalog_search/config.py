"""
Catalog Search - Configuration

Pydantic Settings for all configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional, Literal
from pathlib import Path


class BackendSettings(BaseSettings):
    """Search backend (Solr) configuration."""
    base_url: str = Field("http://localhost:8983/solr", alias="SOLR_BASE_URL")
    catalog_collection: str = Field("catalogPreview", alias="SOLR_CATALOG_COLLECTION")
    rules_collection: str = Field("rulePreview", alias="SOLR_RULES_COLLECTION")
    locales: List[str] = Field(default_factory=lambda: ["en_US"], alias="SEARCH_LOCALES")
    timeout_ms: int = Field(10000, alias="SOLR_TIMEOUT_MS")

    model_config = {"env_prefix": "", "extra": "ignore"}


class SearchSettings(BaseSettings):
    """Query composition and spell-correction configuration."""
    minimum_match: str = Field("2<-1 5<80%", alias="SEARCH_MINIMUM_MATCH")
    group_sorting_enabled: bool = Field(True, alias="SEARCH_GROUP_SORTING_ENABLED")
    default_locale: str = Field("en_US", alias="SEARCH_DEFAULT_LOCALE")
    evaluation_collection: str = Field(
        "catalogEvaluation", alias="SEARCH_EVALUATION_COLLECTION"
    )

    model_config = {"env_prefix": "", "extra": "ignore"}


class SiteSettings(BaseSettings):
    """Default site context used when a caller passes none."""
    site_id: Optional[str] = Field(None, alias="SITE_ID")
    catalog_id: Optional[str] = Field(None, alias="SITE_CATALOG_ID")

    model_config = {"env_prefix": "", "extra": "ignore"}


class RulesSettings(BaseSettings):
    """Merchandising rule source configuration."""
    rules_file: Optional[Path] = Field(None, alias="RULES_FILE")

    model_config = {"env_prefix": "", "extra": "ignore"}


class MCPSettings(BaseSettings):
    """MCP server configuration."""
    transport: Literal["sse", "stdio"] = Field("sse", alias="MCP_TRANSPORT")
    port: int = Field(8080, alias="MCP_PORT")
    host: str = Field("0.0.0.0", alias="MCP_HOST")

    model_config = {"env_prefix": "", "extra": "ignore"}


class CacheSettings(BaseSettings):
    """Caching configuration."""
    enabled: bool = Field(True, alias="CACHE_ENABLED")
    ttl_rules: int = Field(300, alias="CACHE_TTL_RULES_SECONDS")
    max_entries: int = Field(1000, alias="CACHE_MAX_ENTRIES")

    model_config = {"env_prefix": "", "extra": "ignore"}


class LogSettings(BaseSettings):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", alias="LOG_LEVEL"
    )
    format: Literal["json", "text"] = Field("text", alias="LOG_FORMAT")

    model_config = {"env_prefix": "", "extra": "ignore"}


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""
    backend: BackendSettings = Field(default_factory=BackendSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    site: SiteSettings = Field(default_factory=SiteSettings)
    rules: RulesSettings = Field(default_factory=RulesSettings)
    mcp: MCPSettings = Field(default_factory=MCPSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = {"env_prefix": "", "extra": "ignore"}


def get_settings() -> Settings:
    """Load settings from environment variables."""
    from dotenv import load_dotenv
    load_dotenv()
    return Settings()
