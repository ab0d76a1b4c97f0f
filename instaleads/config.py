"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic_settings import BaseSettings


class ProxyMode(str, Enum):
    """Proxy selection strategy."""
    ROUND_ROBIN = "round_robin"
    RANDOM = "random"
    NONE = "none"


class SessionBackend(str, Enum):
    """Where browser storage state is persisted between runs."""
    SQLITE = "sqlite"
    NONE = "none"


class LogFormat(str, Enum):
    """Log output format."""
    JSON = "json"
    CONSOLE = "console"


class ScraperConfig(BaseSettings):
    """Configuration for the instaleads search and enrichment pipeline."""

    # Browser settings
    headless: bool = False
    browser_channels: list[str] = ["chrome", "msedge"]
    browser_timeout_ms: int = 30000
    navigation_timeout_ms: int = 60000

    # Search pagination
    max_pages: int = 3
    results_timeout_ms: int = 15000
    results_deadline_ms: int = 30000
    next_page_timeout_ms: int = 3000

    # Profile enrichment
    max_profiles: int = 25
    profile_delay_ms: int = 3500
    profile_jitter_ms: int = 3000
    profile_timeout_ms: int = 15000

    # Captcha handling
    captcha_observe_ms: int = 1200
    captcha_poll_interval_ms: int = 1800
    captcha_clear_checks: int = 3
    interactive: bool = True

    # Proxy settings
    proxy_mode: ProxyMode = ProxyMode.NONE
    proxy_urls: list[str] = []
    proxy_geo: str | None = None

    # Session persistence
    session_backend: SessionBackend = SessionBackend.SQLITE
    session_ttl_seconds: int = 7 * 24 * 3600
    sqlite_path: str = ".instaleads_sessions.db"
    instagram_sessionid: str | None = None

    # Output
    output_dir: str = "output"

    # Logging
    log_level: str = "INFO"
    log_format: LogFormat = LogFormat.CONSOLE

    model_config = {
        "env_prefix": "INSTALEADS_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }
