from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Identity
    app_name: str = Field("semantics-service", alias="APP_NAME")
    service_version: str = Field("0.1.0", alias="SERVICE_VERSION")
    node_name: str = Field("unknown", alias="NODE_NAME")
    port: int = Field(8390, alias="PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    public_base_path: str = Field("/api/v2", alias="PUBLIC_BASE_PATH")

    # Event store
    mongo_uri: str = Field(
        "mongodb://localhost:27017",
        validation_alias=AliasChoices("MONGO_URI", "MONGODB_URI", "DATABASE_URL"),
    )
    mongo_db: str = Field("facebook", alias="MONGO_DB")
    store_timeout_sec: float = Field(10.0, alias="STORE_TIMEOUT_SEC")

    labels_collection: str = Field("labels", alias="LABELS_COLLECTION")
    semantics_collection: str = Field("semantics", alias="SEMANTICS_COLLECTION")
    metadata_collection: str = Field("metadata2", alias="METADATA_COLLECTION")
    summary_collection: str = Field("summary", alias="SUMMARY_COLLECTION")
    contributor_field: str = Field("pseudo", alias="CONTRIBUTOR_FIELD")

    # Listing defaults
    listing_default_amount: int = Field(100, alias="LISTING_DEFAULT_AMOUNT")
    joined_default_amount: int = Field(13, alias="JOINED_DEFAULT_AMOUNT")
    enrich_hold_back_days: int = Field(2, alias="ENRICH_HOLD_BACK_DAYS")

    # Ranked keywords
    loud_window_hours: int = Field(48, alias="LOUD_WINDOW_HOURS")
    loud_max_entries: int = Field(2000, alias="LOUD_MAX_ENTRIES")

    # Language snapshot
    snapshot_window_hours: int = Field(48, alias="SNAPSHOT_WINDOW_HOURS")
    snapshot_ttl_minutes: int = Field(60 * 12, alias="SNAPSHOT_TTL_MINUTES")
    snapshot_max_entries: int = Field(60000, alias="SNAPSHOT_MAX_ENTRIES")
    snapshot_top_n: int = Field(13, alias="SNAPSHOT_TOP_N")

    # Optional mirror of computed snapshots for other readers
    snapshot_mirror_redis_url: Optional[str] = Field(None, alias="SNAPSHOT_MIRROR_REDIS_URL")
    snapshot_mirror_prefix: str = Field("semantics:langinfo", alias="SNAPSHOT_MIRROR_PREFIX")

    # Static keyword lists
    keywords_dir: str = Field("rss/keywords", alias="KEYWORDS_DIR")

    @field_validator("public_base_path")
    @classmethod
    def _normalize_base_path(cls, v: str) -> str:
        if not v:
            return ""
        base = v.strip()
        if not base.startswith("/"):
            base = f"/{base}"
        if base != "/" and base.endswith("/"):
            base = base.rstrip("/")
        return "" if base == "/" else base

    @field_validator(
        "listing_default_amount",
        "joined_default_amount",
        "loud_max_entries",
        "snapshot_max_entries",
        "snapshot_top_n",
        "snapshot_ttl_minutes",
    )
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
