from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from croniter import croniter
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    default_playlist_url: str = "https://cwdiptvb.github.io/tv_channles.m3u"
    schedule_source_base_url: str = "https://www.tvpassport.com"
    guide_timezone: str = "America/Chicago"  # All guide timestamps use this zone
    guide_cache_ttl_sec: int = 600
    guide_cache_max_age_sec: int = 300  # Public Cache-Control max-age
    playlist_timeout_sec: float = 15.0
    search_timeout_sec: float = 15.0
    schedule_timeout_sec: float = 20.0
    schedule_days: int = 1
    match_threshold: float = 0.45
    station_search_concurrency: int = 0  # 0 starts every search at once
    channel_aliases_path: str | None = None
    guide_warm_cron: str | None = None  # e.g. "*/9 * * * *", unset disables
    guide_warm_misfire_grace_sec: int = 300
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("default_playlist_url", "schedule_source_base_url")
    @classmethod
    def validate_http_url(cls, value: str, info) -> str:
        """Validate upstream URLs are HTTP/HTTPS."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value.rstrip("/") if info.field_name == "schedule_source_base_url" else value

    @field_validator("guide_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate the guide timezone is a known IANA zone."""
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Invalid guide_timezone '{value}': {exc}") from exc
        return value

    @field_validator(
        "guide_cache_ttl_sec",
        "playlist_timeout_sec",
        "search_timeout_sec",
        "schedule_timeout_sec",
    )
    @classmethod
    def validate_positive(cls, value, info):
        """Ensure TTLs and timeouts are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator(
        "guide_cache_max_age_sec",
        "station_search_concurrency",
        "guide_warm_misfire_grace_sec",
    )
    @classmethod
    def validate_non_negative(cls, value: int, info) -> int:
        """Ensure counters and grace periods are non-negative."""
        if value < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return value

    @field_validator("schedule_days")
    @classmethod
    def validate_schedule_days(cls, value: int) -> int:
        """Validate the number of listing days requested per station."""
        if not 1 <= value <= 14:
            raise ValueError("schedule_days must be between 1 and 14")
        return value

    @field_validator("match_threshold")
    @classmethod
    def validate_match_threshold(cls, value: float) -> float:
        """Validate the matcher acceptance threshold."""
        if not 0 < value < 1:
            raise ValueError("match_threshold must be between 0 and 1 (exclusive)")
        return value

    @field_validator("channel_aliases_path")
    @classmethod
    def validate_aliases_path(cls, value: str | None) -> str | None:
        """Validate an alias table override points at a readable file."""
        if value and not Path(value).is_file():
            raise ValueError(f"channel_aliases_path does not exist: {value}")
        return value or None

    @field_validator("guide_warm_cron")
    @classmethod
    def validate_cron_expression(cls, value: str | None) -> str | None:
        """Validate cron expression is valid."""
        if not value:
            return None
        try:
            croniter(value)
            return value
        except (ValueError, KeyError) as exc:
            raise ValueError(f"Invalid cron expression '{value}': {exc}") from exc

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate logging level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return value

    @model_validator(mode="after")
    def validate_cache_configuration(self):
        """Validate cross-field configuration."""
        if self.guide_cache_max_age_sec > self.guide_cache_ttl_sec:
            raise ValueError(
                "guide_cache_max_age_sec must not exceed guide_cache_ttl_sec"
            )

        if self.schedule_days > 1:
            logger.warning(
                "schedule_days=%s: the schedule source only serves the current listing page",
                self.schedule_days,
            )

        return self

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Default Playlist: %s", self.default_playlist_url)
        logger.info("  Schedule Source: %s", self.schedule_source_base_url)
        logger.info("  Guide Timezone: %s", self.guide_timezone)
        logger.info(
            "  Guide Cache: ttl=%ss max-age=%ss",
            self.guide_cache_ttl_sec,
            self.guide_cache_max_age_sec,
        )
        logger.info(
            "  Timeouts: playlist=%.1fs search=%.1fs schedule=%.1fs",
            self.playlist_timeout_sec,
            self.search_timeout_sec,
            self.schedule_timeout_sec,
        )
        logger.info("  Match Threshold: %.2f", self.match_threshold)
        logger.info(
            "  Station Search Concurrency: %s",
            self.station_search_concurrency or "unbounded",
        )
        logger.info(
            "  Channel Aliases: %s", self.channel_aliases_path or "bundled table"
        )
        logger.info("  Guide Warm-up: %s", self.guide_warm_cron or "disabled")


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
