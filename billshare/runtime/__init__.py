"""Runtime infrastructure for billshare.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings via get_settings(), Settings
- The receipt extraction client and its session throttle

Usage:
    from billshare.runtime import get_logger, get_settings

    logger = get_logger(__name__)
    settings = get_settings()
    print(settings.extraction_url, settings.language)
"""

from billshare.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from billshare.runtime.settings import (
    SUPPORTED_LANGUAGES,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Settings
    "SUPPORTED_LANGUAGES",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
