"""
==============================================================================
Application Settings Module
==============================================================================

Configuration management using Pydantic Settings.

A single cached Settings instance is shared by the scanner, the remote
client and the product/history service.

Configuration Priority (highest to lowest):
------------------------------------------
1. Environment variables
2. .env file
3. Default values

Sections:
---------
- Application / server
- Database and product catalog (service side)
- Decoder tuning (threshold, run floor, code length, scan line)
- Capture (facing mode, camera indexes, tick interval)
- Remote service (mode, base URL, timeout, external product source)

==============================================================================
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Module logger
logger = logging.getLogger(__name__)


FACING_MODES = {"environment", "user"}
REMOTE_MODES = {"lookup", "history"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_name: Display name for the application
        app_env: Environment mode (development/staging/production)
        debug: Enable debug mode for verbose logging
        host: Server bind address
        port: Server port number
        database_url: SQLAlchemy database connection string
        products_file: Path to the product catalog JSON
        cors_origins: Allowed CORS origins (JSON array string)
        scan_threshold: Brightness cutoff between bar and space
        scan_min_runs: Minimum runs on the scan line to attempt decoding
        scan_min_code_length: Minimum decoded digits for a candidate
        scan_row: Scan line index (None = vertical middle)
        scan_flush_trailing_run: Append the final run of the scan line
        frame_interval_seconds: Pause between capture ticks
        facing_mode: Camera facing mode ("environment" or "user")
        environment_camera_index: Device index of the rear camera
        user_camera_index: Device index of the front camera
        remote_mode: "lookup" (product lookup) or "history" (record + history)
        remote_base_url: Base URL of the product/history service
        remote_timeout_seconds: HTTP timeout for remote calls
        fetch_external_product: Fetch a product hint before lookup
        product_source_url: External product database endpoint
    """

    # =========================================================================
    # PYDANTIC SETTINGS CONFIGURATION
    # =========================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True,
    )

    # =========================================================================
    # APPLICATION SETTINGS
    # =========================================================================
    app_name: str = Field(
        default="Barcode Product Service",
        description="Display name for the application"
    )

    app_env: str = Field(
        default="development",
        description="Environment mode: development, staging, production"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode for verbose logging"
    )

    # =========================================================================
    # SERVER SETTINGS
    # =========================================================================
    host: str = Field(default="0.0.0.0", description="Server bind address")

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port number"
    )

    # =========================================================================
    # DATABASE / CATALOG SETTINGS
    # =========================================================================
    database_url: str = Field(
        default="sqlite:///./storage/db/barcodes.db",
        description="SQLAlchemy database connection string"
    )

    products_file: str = Field(
        default="data/products.json",
        description="Path to product catalog JSON"
    )

    cors_origins: str = Field(
        default='["*"]',
        description="Allowed CORS origins as JSON array string"
    )

    # =========================================================================
    # DECODER SETTINGS
    # =========================================================================
    scan_threshold: int = Field(
        default=128,
        ge=0,
        le=255,
        description="Brightness cutoff: below is bar (0), at or above is space (1)"
    )

    scan_min_runs: int = Field(
        default=30,
        ge=4,
        description="Minimum runs on the scan line before decoding"
    )

    scan_min_code_length: int = Field(
        default=8,
        ge=1,
        description="Minimum decoded digits for a candidate code"
    )

    scan_row: Optional[int] = Field(
        default=None,
        ge=0,
        description="Scan line index (default: middle row)"
    )

    scan_flush_trailing_run: bool = Field(
        default=False,
        description="Append the last run of the scan line to the sequence"
    )

    # =========================================================================
    # CAPTURE SETTINGS
    # =========================================================================
    frame_interval_seconds: float = Field(
        default=0.03,
        ge=0.0,
        le=5.0,
        description="Pause between capture ticks"
    )

    facing_mode: str = Field(
        default="environment",
        description="Camera facing mode: environment or user"
    )

    environment_camera_index: int = Field(default=0, ge=0)
    user_camera_index: int = Field(default=1, ge=0)

    # =========================================================================
    # REMOTE SERVICE SETTINGS
    # =========================================================================
    remote_mode: str = Field(
        default="lookup",
        description="Remote contract: lookup or history"
    )

    remote_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of the product/history service"
    )

    remote_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="HTTP timeout for remote service calls"
    )

    fetch_external_product: bool = Field(
        default=False,
        description="Fetch product data from the external source before lookup"
    )

    product_source_url: str = Field(
        default="https://world.openfoodfacts.org/api/v2/product",
        description="External product database endpoint"
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================
    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, value: str) -> str:
        """Normalize application environment, defaulting unknown values."""
        valid_envs = {"development", "staging", "production"}
        normalized = value.lower().strip()

        if normalized not in valid_envs:
            logger.warning(
                f"Unknown environment '{value}', defaulting to 'development'"
            )
            return "development"

        return normalized

    @field_validator("facing_mode")
    @classmethod
    def validate_facing_mode(cls, value: str) -> str:
        """
        Validate camera facing mode.

        Raises:
            ValueError: If mode is not environment/user
        """
        normalized = value.lower().strip()
        if normalized not in FACING_MODES:
            raise ValueError(
                f"Unsupported facing mode: {value}. "
                f"Supported: {', '.join(sorted(FACING_MODES))}"
            )
        return normalized

    @field_validator("remote_mode")
    @classmethod
    def validate_remote_mode(cls, value: str) -> str:
        """
        Validate remote service contract mode.

        Raises:
            ValueError: If mode is not lookup/history
        """
        normalized = value.lower().strip()
        if normalized not in REMOTE_MODES:
            raise ValueError(
                f"Unsupported remote mode: {value}. "
                f"Supported: {', '.join(sorted(REMOTE_MODES))}"
            )
        return normalized

    @field_validator("remote_base_url", "product_source_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Remove trailing slash so paths can be appended."""
        return value.rstrip("/")

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"

    @property
    def products_path(self) -> Path:
        """Products file as Path object."""
        return Path(self.products_file)

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Parse CORS origins from JSON string to list.

        Returns:
            List of allowed origin strings
        """
        try:
            origins = json.loads(self.cors_origins)
            if isinstance(origins, list):
                return origins
            return ["*"]
        except json.JSONDecodeError:
            logger.warning(
                f"Invalid CORS origins JSON: {self.cors_origins}, "
                "defaulting to ['*']"
            )
            return ["*"]

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================
    def get_database_path(self) -> Optional[Path]:
        """
        Extract database file path for SQLite databases.

        Returns:
            Path to database file, or None for non-SQLite/in-memory databases
        """
        if self.database_url.startswith("sqlite:///"):
            db_path = self.database_url.replace("sqlite:///", "")
            if db_path.startswith("./"):
                db_path = db_path[2:]
            return Path(db_path)
        return None

    def ensure_directories(self) -> None:
        """Create the database directory (SQLite only)."""
        db_path = self.get_database_path()
        if db_path:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug("Required directories created/verified")

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"Settings(app_name={self.app_name!r}, "
            f"app_env={self.app_env!r}, "
            f"remote_mode={self.remote_mode!r}, "
            f"debug={self.debug})"
        )


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the global Settings instance (singleton pattern).

    Returns:
        Global Settings instance
    """
    settings = Settings()

    if settings.debug:
        logger.info(f"Configuration loaded: {settings}")

    return settings
