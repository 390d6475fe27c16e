"""
Centralized client settings using Pydantic.

Environment variables are read once and validated. Per-SDK processing options
(archival, extra URL parameters) live in ``ProcessingSettings`` and are passed
explicitly to the factory instead of being read from the environment.
"""

from __future__ import annotations

from functools import lru_cache
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SERVER_URL = "http://cloud.ocrsdk.com"
DEFAULT_USER_AGENT = "ocrsdk python client"


class OcrSdkSettings(BaseSettings):
    """Recognition service connection and polling configuration."""

    model_config = SettingsConfigDict(env_prefix="OCRSDK_", env_file=".env", extra="ignore")

    SERVER_URL: str = Field(default=DEFAULT_SERVER_URL)
    APPLICATION_ID: str = Field(default="")
    PASSWORD: SecretStr = Field(default=SecretStr(""))
    USER_AGENT: str = Field(default=DEFAULT_USER_AGENT)
    # The service asks for at least 2 seconds between status requests
    POLL_INTERVAL_SECONDS: float = Field(default=5.0, ge=2.0)
    FIRST_POLL_DELAY_SECONDS: float | None = Field(default=None, ge=2.0)
    POLL_TIMEOUT_SECONDS: float | None = Field(default=None, gt=0)
    REQUEST_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)
    VERIFY_SSL: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=False)

    @property
    def first_poll_delay(self) -> float:
        if self.FIRST_POLL_DELAY_SECONDS is None:
            return self.POLL_INTERVAL_SECONDS
        return self.FIRST_POLL_DELAY_SECONDS


class S3Settings(BaseSettings):
    """S3/MinIO storage configuration for the archival upload."""

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")

    S3_ENDPOINT: str = "s3.amazonaws.com"
    S3_ACCESS_KEY: str = ""
    S3_SECRET_KEY: SecretStr = SecretStr("")
    S3_SECURE: bool = True
    S3_REGION: str | None = None
    S3_VERIFY_SSL: bool = True


class ArchiveSettings(BaseModel):
    """Destination of the optional pre-submission archival upload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bucket: str
    key_prefix: str = Field(default="", alias="keyPrefix")

    def object_key(self, file_stem: str) -> str:
        prefix = self.key_prefix.strip("/")
        return f"{prefix}/{file_stem}" if prefix else file_stem


class ProcessingSettings(BaseModel):
    """Per-client processing behavior.

    Accepts both the snake_case names and the camelCase keys used by callers
    that configure the client from JSON (``uploadToArchive``, ``urlParams``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    upload_to_archive: bool = Field(default=False, alias="uploadToArchive")
    archive: ArchiveSettings | None = None
    url_params: dict[str, str] = Field(default_factory=dict, alias="urlParams")

    @model_validator(mode="after")
    def _archive_destination_required(self) -> "ProcessingSettings":
        if self.upload_to_archive and self.archive is None:
            raise ValueError("uploadToArchive requires an archive section with a bucket")
        return self

    @property
    def archival_enabled(self) -> bool:
        return self.upload_to_archive and self.archive is not None

    def as_url_params(self, extra: dict[str, str] | None = None) -> str:
        """Serialize the URL parameters as ``k=v`` pairs joined with ``&``."""
        params = dict(self.url_params)
        if extra:
            params.update(extra)
        return "&".join(
            f"{quote(str(key), safe='')}={quote(str(value), safe=',')}"
            for key, value in params.items()
        )


@lru_cache(maxsize=1)
def get_settings() -> OcrSdkSettings:
    return OcrSdkSettings()


@lru_cache(maxsize=1)
def get_s3_settings() -> S3Settings:
    return S3Settings()
