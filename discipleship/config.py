"""Application configuration."""

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_JWT_SECRET = "development-secret-change-in-production"

# LOG_LEVEL accepts the pino-style names as well as the stdlib ones
_LOG_LEVELS = {
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Discipleship API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3001, ge=1, le=65535, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # AWS
    aws_region: str = Field(default="us-east-1", alias="AWS_REGION")
    aws_access_key_id: str | None = Field(default=None, alias="AWS_ACCESS_KEY_ID")
    aws_secret_access_key: str | None = Field(default=None, alias="AWS_SECRET_ACCESS_KEY")

    # DynamoDB
    dynamodb_endpoint: str | None = Field(
        default=None,
        alias="DYNAMODB_ENDPOINT",
        description="Endpoint override for DynamoDB Local or LocalStack",
    )
    dynamodb_table_prefix: str = Field(default="apostolic-path", alias="DYNAMODB_TABLE_PREFIX")

    # Cognito (not used by the API yet)
    cognito_user_pool_id: str | None = Field(default=None, alias="COGNITO_USER_POOL_ID")
    cognito_client_id: str | None = Field(default=None, alias="COGNITO_CLIENT_ID")
    cognito_region: str | None = Field(default=None, alias="COGNITO_REGION")

    # S3 (not used by the API yet)
    s3_bucket: str | None = Field(default=None, alias="S3_BUCKET")
    s3_endpoint: str | None = Field(default=None, alias="S3_ENDPOINT")

    # JWT
    jwt_secret_key: str = Field(
        default=DEVELOPMENT_JWT_SECRET, min_length=16, alias="JWT_SECRET_KEY"
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_days: int = Field(default=7, ge=1, alias="ACCESS_TOKEN_EXPIRE_DAYS")

    # Password hashing
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, alias="BCRYPT_ROUNDS")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    # Logging
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and validate the log level name."""
        level = str(v).strip().lower()
        if level not in _LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse to run production with the development JWT secret."""
        if self.is_production and self.jwt_secret_key == DEVELOPMENT_JWT_SECRET:
            raise ValueError("JWT_SECRET_KEY must be set in production")
        return self

    @property
    def logging_level(self) -> int:
        """Get the stdlib logging level for LOG_LEVEL."""
        return _LOG_LEVELS[self.log_level]

    @property
    def uvicorn_log_level(self) -> str:
        """Get the uvicorn log level name for LOG_LEVEL."""
        return logging.getLevelName(self.logging_level).lower()

    @property
    def table_name(self) -> str:
        """Name of the single DynamoDB table."""
        return f"{self.dynamodb_table_prefix}-main"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
