import tempfile
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class S3Config(BaseSettings):
    """S3 configuration for standardized recordings."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "recordings"

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Service settings"""

    app_name: str = "Recording Service API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Scratch space for engine input/output files
    temp_dir: str = Field(default_factory=tempfile.gettempdir)

    # Analysis limits
    max_file_size_bytes: int = 100 * 1024 * 1024
    max_duration_seconds: int = 600

    # Canonical format
    target_sample_rate: int = 16000
    target_channels: int = 1

    batch_group_size: int = Field(default=3, ge=1)

    # 0 means no limit
    max_upload_mb: int = Field(default=0, ge=0)

    storage_backend: Literal["memory", "s3"] = "memory"
    s3: S3Config = Field(default_factory=S3Config)

    model_config = SettingsConfigDict(
        env_prefix="RECORDING_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
