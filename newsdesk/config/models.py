"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsdesk", description="Database name")
    user: str = Field("newsdesk", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(
        "NEWSDESK_DB_PASSWORD", description="Environment variable for password"
    )
    min_size: int = Field(1, description="Minimum pool size", ge=1)
    max_size: int = Field(10, description="Maximum pool size", ge=1)


class ProviderConfig(BaseModel):
    """External news provider configuration."""

    base_url: str = Field(
        "https://google-news13.p.rapidapi.com", description="Provider base URL"
    )
    host: str = Field("google-news13.p.rapidapi.com", description="Value of the x-rapidapi-host header")
    language: str = Field("es-AR", description="Language/region query parameter")
    api_key_env: Optional[str] = Field("RAPIDAPI_KEY", description="Environment variable for API key")
    api_key: Optional[str] = Field(None, description="API key (prefer api_key_env)")
    timeout: float = Field(30.0, description="Request timeout in seconds", gt=0)


class ResolverConfig(BaseModel):
    """Thumbnail redirect resolution."""

    timeout: float = Field(10.0, description="Request timeout in seconds", gt=0)
    max_redirects: int = Field(5, description="Redirects followed before giving up", ge=0)


class IngestionConfig(BaseModel):
    """Ingestion run policy."""

    enforce_cooldown: bool = Field(True, description="Refuse runs inside the cooldown window")
    cooldown_days: int = Field(10, description="Days between successful runs", ge=0)
    category_delay: float = Field(1.0, description="Seconds to wait between categories", ge=0.0)
    advisory_lock: bool = Field(
        False, description="Coalesce runs across processes with a Postgres advisory lock"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def check_pool_fits_run_lock(self) -> "ConfigModel":
        """The advisory lock pins one pooled connection for the whole run."""
        if self.ingestion.advisory_lock and self.postgres.max_size < 2:
            raise ValueError("ingestion.advisory_lock needs postgres.max_size of at least 2")
        return self
