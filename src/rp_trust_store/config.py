"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so TRUST_STORE__PEM_URL maps
to trust_store.pem_url, STORAGE__DIRECTORY to storage.directory, etc.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rp_trust_store.adapters.file_cache import CACHE_FILE
from rp_trust_store.adapters.http_client import CONNECT_TIMEOUT_SECONDS, READ_TIMEOUT_SECONDS
from rp_trust_store.domain.models import CachePolicy

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class TrustStoreSettings(BaseModel):
    """Remote RP certificate bundle and cache write policy."""

    pem_url: str = Field(description="URL of the PEM relying-party certificate bundle")
    cache_policy: CachePolicy = Field(
        default=CachePolicy.WRITE_THROUGH,
        description="write_through caches every non-blank body before parsing; "
        "write_after_parse caches only bundles that parsed",
    )

    @field_validator("pem_url")
    @classmethod
    def validate_scheme(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"pem_url must be an http(s) URL, got {value!r}")
        return value


class StorageSettings(BaseModel):
    """App-private storage holding the single cache slot."""

    directory: Path = Field(default=Path("data"), description="Private storage directory")
    cache_file: str = Field(default=CACHE_FILE, description="Cache slot file name")

    @field_validator("cache_file")
    @classmethod
    def validate_bare_name(cls, value: str) -> str:
        if Path(value).name != value or value in ("", ".", ".."):
            raise ValueError(f"cache_file must be a bare file name, got {value!r}")
        return value


class HttpSettings(BaseModel):
    """Fixed timeouts for the bundle download."""

    connect_timeout_seconds: float = Field(default=CONNECT_TIMEOUT_SECONDS, gt=0)
    read_timeout_seconds: float = Field(default=READ_TIMEOUT_SECONDS, gt=0)


class SchedulerSettings(BaseModel):
    """
    Refresh schedule as a standard 5-field cron expression.

    Format: minute hour day-of-month month day-of-week
    Examples:
      "0 */6 * * *"  — every 6 hours (default)
      "0 3 * * *"    — daily at 03:00
    """

    cron: str = Field(
        default="0 */6 * * *",
        description="Cron expression (5 fields: minute hour dom month dow)",
    )

    @field_validator("cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        """Reject expressions that don't have exactly 5 space-separated fields."""
        fields = value.strip().split()
        if len(fields) != 5:
            raise ValueError(
                f"Cron expression must have exactly 5 fields "
                f"(minute hour dom month dow), got {len(fields)}: {value!r}"
            )
        return value.strip()


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    trust_store: TrustStoreSettings
    storage: StorageSettings = Field(default_factory=lambda: StorageSettings())
    http: HttpSettings = Field(default_factory=lambda: HttpSettings())
    scheduler: SchedulerSettings = Field(default_factory=lambda: SchedulerSettings())

    run_on_startup: bool = Field(default=True)
    log_level: str = Field(default="INFO")
