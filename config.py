"""Application configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, model_validator

load_dotenv()

_PROJECT_ROOT = Path(__file__).resolve().parent

logger = logging.getLogger(__name__)


class Config(BaseModel):
    """Centralised app configuration backed by env vars."""

    # Loyverse POS
    loyverse_api_token: str = ""
    loyverse_api_url: str = "https://api.loyverse.com/v1.0"

    # App paths
    database_path: str = str(_PROJECT_ROOT / "data" / "inventory.db")
    barcode_output_dir: str = str(_PROJECT_ROOT / "data" / "barcodes")

    # SKU allocation
    allocation_max_attempts: int = 3
    db_busy_timeout: float = 5.0

    # Flask
    flask_host: str = "127.0.0.1"
    flask_port: int = 5000
    flask_debug: bool = True
    flask_secret_key: str = "change-me-in-production"  # noqa: S105
    cors_origins: list[str] = ["http://localhost:5173"]

    @model_validator(mode="after")
    def _check_fields(self) -> Config:
        """Reject unusable allocation settings and warn on missing tokens."""
        if self.allocation_max_attempts < 1:
            msg = "allocation_max_attempts must be at least 1"
            raise ValueError(msg)
        if not self.loyverse_api_token:
            logger.warning("LOYVERSE_API_TOKEN is not set, POS sync will fail")
        return self

    @classmethod
    def from_env(cls) -> Config:
        """Build config from environment variables."""
        cors_raw = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        cors_origins = [o.strip() for o in cors_raw.split(",") if o.strip()]

        return cls(
            loyverse_api_token=os.getenv("LOYVERSE_API_TOKEN", ""),
            loyverse_api_url=os.getenv("LOYVERSE_API_URL", "https://api.loyverse.com/v1.0"),
            database_path=os.getenv("DATABASE_PATH", str(_PROJECT_ROOT / "data" / "inventory.db")),
            barcode_output_dir=os.getenv(
                "BARCODE_OUTPUT_DIR", str(_PROJECT_ROOT / "data" / "barcodes")
            ),
            allocation_max_attempts=int(os.getenv("ALLOCATION_MAX_ATTEMPTS", "3")),
            db_busy_timeout=float(os.getenv("DB_BUSY_TIMEOUT", "5.0")),
            flask_host=os.getenv("FLASK_HOST", "127.0.0.1"),
            flask_port=int(os.getenv("FLASK_PORT", "5000")),
            flask_debug=os.getenv("FLASK_DEBUG", "true").lower() in ("1", "true", "yes"),
            flask_secret_key=os.getenv("FLASK_SECRET_KEY", "change-me-in-production"),
            cors_origins=cors_origins,
        )


settings = Config.from_env()
