"""
Log formatting shared by the guide build and the app lifecycle.
"""
import logging
from datetime import datetime, timezone

import httpx


BANNER = "=" * 60


def log_banner(logger: logging.Logger, message: str, level: int = logging.INFO) -> None:
    """Log a message framed by separator lines."""
    logger.log(level, BANNER)
    logger.log(level, message)
    logger.log(level, BANNER)


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    logger.info("Starting: %s", section_name)


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    logger.info("Completed: %s", section_name)


def log_channel_progress(logger: logging.Logger, idx: int, total: int, name: str) -> None:
    """
    Log schedule retrieval progress for one channel.

    Args:
        logger: Logger instance
        idx: Position among resolved channels (1-based)
        total: Number of channels with a resolved station
        name: Channel display name
    """
    logger.info("Fetching schedule %s/%s: %s", idx, total, name)


def log_build_start(logger: logging.Logger) -> None:
    log_banner(logger, f"Guide build started at {datetime.now(timezone.utc).isoformat()}")


def log_build_summary(
    logger: logging.Logger,
    channels_count: int,
    resolved_count: int,
    programmes_count: int
) -> None:
    logger.info(
        "Guide summary - Channels: %s, Resolved: %s, Programmes: %s",
        channels_count,
        resolved_count,
        programmes_count,
    )


def sanitize_url_for_logging(url: str) -> str:
    """Mask playlist credentials (user:pass@host) before logging a URL."""
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return url
    if not parsed.userinfo:
        return url
    return str(parsed.copy_with(username="***", password="***"))
