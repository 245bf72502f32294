from pathlib import Path
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    database_path: str = "./data/playlists.db"
    log_level: str = "INFO"

    playlist_refresh_enabled: bool = True
    playlist_refresh_cron: str = "0 4 * * *"  # Daily at 4 AM
    playlist_refresh_misfire_grace_sec: int = 3600  # Allow 1 hour to run missed jobs

    playlist_download_timeout_sec: float = 120.0
    playlist_download_max_retries: int = 3
    playlist_download_backoff_factor: float = 2.0
    playlist_parse_timeout_sec: int = 300  # 0 disables timeout

    playlist_insert_chunk_size: int = 1000

    default_page_size: int = 20
    max_page_size: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, value: str) -> str:
        """Validate database path is accessible."""
        path = Path(value)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            return value
        except (OSError, PermissionError) as exc:
            raise ValueError(f"Cannot access database path '{value}': {exc}") from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level name."""
        normalized = value.upper()
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("playlist_refresh_cron")
    @classmethod
    def validate_cron_expression(cls, value: str) -> str:
        """Validate cron expression is valid."""
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator("playlist_refresh_misfire_grace_sec", "playlist_parse_timeout_sec")
    @classmethod
    def validate_non_negative_seconds(cls, value: int, info) -> int:
        """Validate second-based settings where 0 is meaningful."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator(
        "playlist_download_max_retries",
        "playlist_insert_chunk_size",
        "default_page_size",
        "max_page_size",
    )
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("playlist_download_timeout_sec")
    @classmethod
    def validate_download_timeout(cls, value: float) -> float:
        """Ensure the HTTP timeout is positive."""
        if value <= 0:
            raise ValueError("playlist_download_timeout_sec must be > 0")
        return value

    @field_validator("playlist_download_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, value: float) -> float:
        """Ensure the backoff multiplier is at least 1."""
        if value < 1:
            raise ValueError("playlist_download_backoff_factor must be >= 1")
        return value

    @model_validator(mode="after")
    def validate_page_sizes(self):
        """Validate cross-field configuration."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                "default_page_size must not exceed max_page_size"
            )

        if not self.playlist_refresh_enabled:
            logger.warning(
                "Scheduled playlist refresh disabled - playlists refresh only on request"
            )

        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Database: %s", self.database_path)
        logger.info("  Log Level: %s", self.log_level)
        logger.info(
            "  Refresh Schedule: %s",
            self.playlist_refresh_cron if self.playlist_refresh_enabled else "disabled",
        )
        logger.info("  Refresh Misfire Grace: %ss", self.playlist_refresh_misfire_grace_sec)
        logger.info(
            "  Download: timeout=%.1fs retries=%s backoff=%.1f",
            self.playlist_download_timeout_sec,
            self.playlist_download_max_retries,
            self.playlist_download_backoff_factor,
        )
        logger.info(
            "  Parse Timeout: %s seconds",
            self.playlist_parse_timeout_sec or "disabled",
        )
        logger.info("  Insert Batch Size: %s", self.playlist_insert_chunk_size)
        logger.info(
            "  Page Size: default=%s max=%s",
            self.default_page_size,
            self.max_page_size,
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
