"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("myfeed", description="Database name")
    user: str = Field("myfeed", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")
    min_size: int = Field(1, description="Minimum pooled connections", ge=1)
    max_size: int = Field(10, description="Maximum pooled connections", ge=1)


class PollerConfig(BaseModel):
    """Poll scheduler configuration."""

    interval_seconds: float = Field(60.0, description="Seconds between poll cycles", gt=0)
    connect_timeout: float = Field(5.0, description="HTTP connect timeout in seconds", gt=0)
    request_timeout: float = Field(30.0, description="HTTP read/write timeout in seconds", gt=0)
    default_ttl_minutes: int = Field(60, description="TTL used when a feed reports none", ge=0)
    status_buffer: int = Field(128, description="Status events buffered per subscriber", ge=1)
    user_agent: str = Field("myfeed/0.1 (+feed poller)", description="User-Agent for outgoing requests")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Console log level")
    log_dir: Optional[str] = Field(None, description="Directory for rotating log files")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    poller: PollerConfig = Field(default_factory=PollerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
