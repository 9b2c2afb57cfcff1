"""Client configuration.

Configuration is an immutable value passed to the client at construction.
``ClientConfig.from_env()`` applies environment overrides:

    CLOUD_ASSIST_DISCOVERY_URL: Discovery document URL
    CLOUD_ASSIST_CONSOLE_URL: Console base URL used for investigation links
    CLOUD_ASSIST_COMPANION_URL: Cloud AI Companion API base URL
    CLOUD_ASSIST_TIMEOUT: HTTP request timeout in seconds
    CLOUD_ASSIST_PAGE_SIZE: Page size for listing investigations
    CLOUD_ASSIST_DEBUG_LOG_DIR: Directory for request/response capture
    CLOUD_ASSIST_MAX_POLLING_ATTEMPTS: Attempt budget for run_investigation
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional

from cloud_assist_lib import __version__
from cloud_assist_lib.constants import (
    BACKOFF_FACTOR,
    COMPANION_API_URL,
    CONSOLE_BASE_URL,
    DEFAULT_PAGE_SIZE,
    DISCOVERY_API_URL,
    INITIAL_BACKOFF_SECONDS,
    MAX_BACKOFF_SECONDS,
    MAX_POLLING_ATTEMPTS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollingPolicy:
    """Bounded exponential backoff for long-running operations."""

    max_attempts: int = MAX_POLLING_ATTEMPTS
    initial_backoff_seconds: float = INITIAL_BACKOFF_SECONDS
    max_backoff_seconds: float = MAX_BACKOFF_SECONDS
    backoff_factor: float = BACKOFF_FACTOR

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_backoff_seconds < 0 or self.max_backoff_seconds < 0:
            raise ValueError("backoff durations must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")


@dataclass(frozen=True)
class ClientConfig:
    """Settings for InvestigationClient and its transport."""

    discovery_url: str = DISCOVERY_API_URL
    console_base_url: str = CONSOLE_BASE_URL
    companion_api_url: str = COMPANION_API_URL
    user_agent: str = f"cloud-assist-lib/{__version__}"
    timeout_seconds: float = 30.0
    page_size: int = DEFAULT_PAGE_SIZE
    debug_log_dir: Optional[str] = None
    polling: PollingPolicy = field(default_factory=PollingPolicy)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from defaults plus environment overrides."""
        config = cls()
        overrides = {}

        discovery_url = os.getenv("CLOUD_ASSIST_DISCOVERY_URL")
        if discovery_url:
            overrides["discovery_url"] = discovery_url

        console_url = os.getenv("CLOUD_ASSIST_CONSOLE_URL")
        if console_url:
            overrides["console_base_url"] = console_url.rstrip("/")

        companion_url = os.getenv("CLOUD_ASSIST_COMPANION_URL")
        if companion_url:
            overrides["companion_api_url"] = companion_url.rstrip("/")

        debug_dir = os.getenv("CLOUD_ASSIST_DEBUG_LOG_DIR")
        if debug_dir:
            overrides["debug_log_dir"] = debug_dir

        timeout = _env_number("CLOUD_ASSIST_TIMEOUT", float)
        if timeout is not None:
            overrides["timeout_seconds"] = timeout

        page_size = _env_number("CLOUD_ASSIST_PAGE_SIZE", int)
        if page_size is not None:
            overrides["page_size"] = page_size

        max_attempts = _env_number("CLOUD_ASSIST_MAX_POLLING_ATTEMPTS", int)
        if max_attempts is not None:
            overrides["polling"] = replace(config.polling, max_attempts=max_attempts)

        return replace(config, **overrides)


def _env_number(env_key: str, cast):
    value = os.getenv(env_key)
    if not value:
        return None
    try:
        number = cast(value)
    except ValueError:
        logger.warning(f"Invalid value in {env_key}: {value}")
        return None
    if number <= 0:
        logger.warning(f"Ignoring non-positive {env_key}: {value}")
        return None
    return number
