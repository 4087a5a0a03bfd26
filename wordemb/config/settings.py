"""
Configuration management using Pydantic.
Provides validation and type safety for store, ingestion and logging settings.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

IDENTIFIER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


class StoreSettings(BaseSettings):
    """Persistent store layout and lookup configuration."""

    table_name: str = Field(
        default="fasttext", pattern=IDENTIFIER_PATTERN, description="Table holding word/emb rows"
    )
    index_name: str = Field(
        default="ind_word", pattern=IDENTIFIER_PATTERN, description="Lookup index on the word column"
    )
    byte_order: Literal["big", "little"] = Field(
        default="big", description="Byte order of the float32 values in stored blobs"
    )
    insert_batch_size: int = Field(default=1000, ge=1, description="Rows per put_many call")
    cache_size: int = Field(
        default=0, ge=0, description="LRU cache entries for decoded vectors (0 disables)"
    )

    model_config = SettingsConfigDict(env_prefix="WORDEMB_STORE_")


class IngestionSettings(BaseSettings):
    """Corpus ingestion configuration."""

    queue_size: int = Field(
        default=1024,
        ge=0,
        description="Capacity of the producer/consumer record queue (0 reads lazily, no thread)",
    )
    encoding: str = Field(default="utf-8", description="Text encoding of corpus files")
    log_every: int = Field(default=100_000, ge=1, description="Log progress every N records")

    model_config = SettingsConfigDict(env_prefix="WORDEMB_INGEST_")


class LoggingSettings(BaseSettings):
    """Log output configuration."""

    log_file: str = Field(default="./logs/wordemb_log.jsonl", description="Log file path")
    format: Literal["json", "console"] = Field(default="json")
    log_level: str = Field(default="INFO")
    rotate_method: Literal["size", "time", "midnight", "none"] = Field(default="midnight")
    rotate_size: int = Field(default=100 * 1024 * 1024, description="Bytes before size rotation")
    enable_queue: bool = Field(default=True, description="Write logs through a QueueListener")

    model_config = SettingsConfigDict(env_prefix="WORDEMB_LOG_")


class Settings(BaseSettings):
    """Main application settings."""

    store: StoreSettings = Field(default_factory=StoreSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_nested_delimiter="__", extra="ignore"
    )


# Global settings instance
settings = Settings()
