"""Configuration management for s3-publisher."""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    log_level: str = "INFO"
    otel_enabled: bool = False
    otel_service_name: str = "s3-publisher"

    max_workers: int = 4
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    region_name: str = "us-east-1"
    endpoint_url: Optional[str] = None

    model_config = {
        "env_prefix": "S3_PUBLISHER_",
        "case_sensitive": False,
    }


settings = Settings()
