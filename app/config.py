"""Application configuration loaded from environment variables."""

import tempfile
from pathlib import Path

from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field


class Settings(BaseSettings):
    """Central configuration for the image-to-PDF service."""

    # hCaptcha
    hcaptcha_secret: str = Field(default="", description="hCaptcha secret key")
    hcaptcha_verify_url: str = Field(
        default="https://api.hcaptcha.com/siteverify", description="hCaptcha siteverify endpoint"
    )
    hcaptcha_timeout: float = Field(default=10.0, description="Verification request timeout (s)")

    # Uploads
    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024, description="Aggregate size ceiling for uploaded files per request"
    )
    max_field_bytes: int = Field(default=64 * 1024, description="Size ceiling for a single form field")

    # Storage
    temp_dir: str = Field(
        default=str(Path(tempfile.gettempdir()) / "docgen"),
        description="Directory for staged uploads and generated documents",
    )

    # API
    api_host: str = Field(default="::", description="API host")
    api_port: int = Field(
        default=3000,
        validation_alias=AliasChoices("api_port", "port"),
        description="API port",
    )
    api_version: str = Field(default="1.0.1", description="Value of the x-api-version header")
    log_level: str = Field(default="INFO", description="Root log level")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "frozen": True,
        "populate_by_name": True,
    }

    @property
    def temp_path(self) -> Path:
        return Path(self.temp_dir)
