"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables (and an optional .env
file) with defaults suitable for a local MinIO container. Mock mode swaps
the object store for an in-memory one.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.upload.models import DAY_IN_MINUTES, ProviderConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables of the same
    name, upper-cased (e.g. UPLOAD_BUCKET).
    """

    api_title: str = "MinIO Upload Provider"
    api_version: str = "v1"

    # Object storage
    upload_endpoint: str = Field(
        default="http://localhost:9000",
        description="Base URL of the S3-compatible store. Also used to build public object URLs."
    )
    upload_access_key_id: Optional[str] = Field(
        default=None,
        description="Access key. If unset, boto3 resolves credentials from its own chain."
    )
    upload_secret_access_key: Optional[str] = Field(
        default=None,
        description="Secret key paired with upload_access_key_id."
    )
    upload_bucket: str = Field(
        default="uploads",
        description="Bucket new uploads are written to."
    )
    upload_expires: int = Field(
        default=DAY_IN_MINUTES,
        ge=0,
        description="Minutes signed links stay valid. 0 stores objects public-read and returns plain URLs."
    )
    upload_region: Optional[str] = Field(
        default=None,
        description="Region passed to the client. MinIO accepts any value."
    )
    storage_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory object store instead of a real bucket."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def provider_config(self) -> ProviderConfig:
        """Build the provider configuration from these settings."""
        return ProviderConfig(
            endpoint=self.upload_endpoint,
            bucket=self.upload_bucket,
            access_key_id=self.upload_access_key_id,
            secret_access_key=self.upload_secret_access_key,
            expires=self.upload_expires,
            region=self.upload_region,
        )

    def validate_required_fields(self) -> list[str]:
        """
        Return the names of required settings that are missing.

        Credentials are never required: boto3 can find them elsewhere.
        Nothing is required in mock mode.
        """
        missing = []

        if self.storage_mock_mode:
            return missing

        if not self.upload_endpoint.strip():
            missing.append("UPLOAD_ENDPOINT")
        if not self.upload_bucket.strip():
            missing.append("UPLOAD_BUCKET")
        if bool(self.upload_access_key_id) != bool(self.upload_secret_access_key):
            missing.append("UPLOAD_ACCESS_KEY_ID and UPLOAD_SECRET_ACCESS_KEY must be set together")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. Tests can call
    get_settings.cache_clear() to reload.
    """
    return Settings()
