"""Configuration management using pydantic-settings."""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")

    # Storage Configuration
    database_path: str = Field(default="./data/chemlab.db", description="DuckDB database file")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[str] = Field(default="./logs/app.log", description="Log file path")

    # Query Cache Configuration (sizes in entries, TTLs in seconds)
    chemical_cache_size: int = Field(default=50, description="Chemical listing cache capacity")
    chemical_cache_ttl: float = Field(default=300, description="Chemical listing cache TTL")
    equipment_cache_size: int = Field(default=50, description="Equipment listing cache capacity")
    equipment_cache_ttl: float = Field(default=300, description="Equipment listing cache TTL")
    search_cache_size: int = Field(default=30, description="Search result cache capacity")
    search_cache_ttl: float = Field(default=180, description="Search result cache TTL")

    # Chatbot Configuration
    message_max_length: int = Field(default=1000, description="Maximum chat message length")
    search_result_limit: int = Field(default=20, description="Maximum search results per query")
    low_stock_threshold: float = Field(default=10, description="Quantity at or below which a chemical is low")
    expiry_warning_days: int = Field(default=30, description="Days ahead to warn about expiring chemicals")


# Global settings instance
settings = Settings()
