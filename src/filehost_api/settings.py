# src/filehost_api/settings.py
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "video/mp4"]


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Environment variables (highest priority)
    2. .env file (if exists)
    3. Default values in this class (lowest priority)

    Usage:
        from filehost_api.settings import get_settings
        settings = get_settings()
        bucket_name = settings.s3_bucket_name
    """

    # Application Settings
    app_name: str = Field(
        default="filehost-api",
        description="Application name"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    # Deployment Mode
    deployment_mode: str = Field(
        default="local-dev",
        description="Deployment mode: local-dev, aws-mock, or aws-prod"
    )

    # AWS Core Settings
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_DEFAULT_REGION"
    )

    aws_access_key_id: Optional[str] = Field(
        default=None,
        alias="AWS_ACCESS_KEY_ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default=None,
        alias="AWS_SECRET_ACCESS_KEY"
    )

    aws_endpoint_url: Optional[str] = Field(
        default=None,
        alias="AWS_ENDPOINT_URL",
        description="Custom S3 endpoint (MinIO, moto server)"
    )

    # S3 Configuration
    s3_bucket_name: str = Field(
        default="filehost-uploads",
        description="S3 bucket for uploaded files"
    )

    s3_key_prefix: str = Field(
        default="uploads",
        description="Key prefix for uploaded objects"
    )

    # Blob I/O bounds
    blob_connect_timeout_seconds: float = Field(default=5.0, gt=0)
    blob_read_timeout_seconds: float = Field(default=30.0, gt=0)
    blob_max_attempts: int = Field(default=3, ge=1)

    # Local Storage Configuration
    storage_dir: str = Field(
        default="storage",
        description="Local blob directory used in local-dev mode"
    )

    # Record store
    mongodb_uri: Optional[str] = Field(
        default=None,
        alias="MONGODB_URI",
        description="MongoDB connection string; SQLite is used when unset"
    )

    mongodb_database: str = Field(default="filehost")

    sqlite_db_path: str = Field(
        default="filehost.db",
        description="SQLite document store path"
    )

    record_store_timeout_seconds: float = Field(default=5.0, gt=0)

    # Credentials
    jwt_secret: str = Field(
        default=DEV_JWT_SECRET,
        alias="JWT_SECRET"
    )

    jwt_algorithm: str = Field(default="HS256")

    auth_scheme: str = Field(default="Bearer")

    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        description="Lifetime of tokens minted by the issue-token command"
    )

    # Upload policy
    max_upload_bytes: int = Field(default=DEFAULT_MAX_UPLOAD_BYTES, gt=0)

    allowed_mime_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_MIME_TYPES)
    )

    # HTTP
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator('deployment_mode', mode='before')
    @classmethod
    def normalize_deployment_mode(cls, v):
        """Normalize deployment mode values for backwards compatibility."""
        if v:
            mode_mapping = {
                "local-mock": "local-dev",
                "cloud": "aws-prod",
            }
            return mode_mapping.get(v, v)
        return v

    @field_validator('deployment_mode')
    @classmethod
    def validate_deployment_mode(cls, v):
        """Validate deployment mode is one of the allowed values."""
        valid_modes = ["local-dev", "aws-mock", "aws-prod"]
        if v not in valid_modes:
            raise ValueError(f"Invalid deployment_mode: {v}. Must be one of {valid_modes}")
        return v

    @model_validator(mode='after')
    def check_production_secret(self) -> "Settings":
        if self.deployment_mode == "aws-prod" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set in aws-prod mode")
        return self

    @property
    def uses_s3(self) -> bool:
        return self.deployment_mode in ["aws-mock", "aws-prod"]

    @property
    def record_store_backend(self) -> str:
        return "mongodb" if self.mongodb_uri else "sqlite"

    def public_summary(self) -> dict:
        """Non-secret view of the configuration, for logs and the CLI."""
        return {
            "app_name": self.app_name,
            "deployment_mode": self.deployment_mode,
            "aws_region": self.aws_region,
            "aws_endpoint_url": self.aws_endpoint_url,
            "s3_bucket_name": self.s3_bucket_name,
            "storage_dir": self.storage_dir,
            "record_store": self.record_store_backend,
            "mongodb_database": self.mongodb_database if self.mongodb_uri else None,
            "sqlite_db_path": None if self.mongodb_uri else self.sqlite_db_path,
            "max_upload_bytes": self.max_upload_bytes,
            "allowed_mime_types": self.allowed_mime_types,
            "log_level": self.log_level,
        }

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=(".env", ".env.local-dev", ".env.aws-mock", ".env.aws-prod"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
