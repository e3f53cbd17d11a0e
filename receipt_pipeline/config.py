"""Service configuration and logging setup."""

import logging
from typing import Optional

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_VISION_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"


class Settings(BaseSettings):
    """Settings read from the environment (and an optional .env file)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Remote OCR
    google_cloud_vision_api_key: str = ""
    vision_endpoint: str = DEFAULT_VISION_ENDPOINT
    vision_timeout_s: float = 30.0

    # Local OCR
    tesseract_cmd: Optional[str] = None
    ocr_language: str = "eng"

    # Receipt extraction
    warranty_years: int = 1

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # HTTP service
    host: str = "0.0.0.0"
    port: int = 8080
    dev_mode: bool = False


def get_settings() -> Settings:
    """Build settings from the current environment.

    Not cached: adapters resolve credentials at call time.
    """
    return Settings()


def configure_logging(level: str = "INFO", json: bool = True) -> None:
    """Install the structlog processor chain used by the service."""
    logging.basicConfig(format="%(message)s", level=level.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
