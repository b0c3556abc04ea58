from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional
import os

from seoaudit.constants import (
    DEFAULT_CRAWL_CONCURRENCY,
    DEFAULT_MAX_PAGES_TO_CRAWL,
    DEFAULT_NAVIGATION_TIMEOUT_SECONDS,
    DEFAULT_SETTLE_DELAY_SECONDS,
    DEFAULT_USER_AGENT,
    DESKTOP_VIEWPORT_HEIGHT,
    DESKTOP_VIEWPORT_WIDTH,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///seo_audit.db")

    # Fix generation
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_MODEL = os.getenv("LLM_MODEL")
    LLM_PROVIDER = os.getenv("LLM_PROVIDER", "anthropic")

    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)
    CRAWL_DEPTH_DEFAULT = os.getenv("CRAWL_DEPTH_DEFAULT", str(DEFAULT_MAX_PAGES_TO_CRAWL))
    CRAWL_CONCURRENCY = os.getenv("CRAWL_CONCURRENCY", str(DEFAULT_CRAWL_CONCURRENCY))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_MODULE_LEVELS = os.getenv("LOG_MODULE_LEVELS", "")


settings = Settings()


def _env_number(name: str, default, cast=int):
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class CrawlConfig:
    """Configuration for a single site crawl."""
    max_pages: int = DEFAULT_MAX_PAGES_TO_CRAWL
    concurrency: int = DEFAULT_CRAWL_CONCURRENCY
    timeout: float = DEFAULT_NAVIGATION_TIMEOUT_SECONDS  # seconds
    settle_delay: float = DEFAULT_SETTLE_DELAY_SECONDS  # seconds
    headless: bool = True
    user_agent: str = DEFAULT_USER_AGENT
    viewport_width: int = DESKTOP_VIEWPORT_WIDTH
    viewport_height: int = DESKTOP_VIEWPORT_HEIGHT

    def __post_init__(self):
        if self.max_pages < 1:
            raise ValueError(f"max_pages must be at least 1, got {self.max_pages}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    @property
    def timeout_ms(self) -> int:
        """Navigation timeout in milliseconds (Playwright units)."""
        return int(self.timeout * 1000)

    @classmethod
    def from_env(cls) -> "CrawlConfig":
        """Load crawl configuration from environment variables.

        Returns:
            CrawlConfig: Configuration instance with values from environment
        """
        return cls(
            max_pages=_env_number("CRAWL_DEPTH_DEFAULT", DEFAULT_MAX_PAGES_TO_CRAWL),
            concurrency=_env_number("CRAWL_CONCURRENCY", DEFAULT_CRAWL_CONCURRENCY),
            timeout=_env_number("CRAWL_TIMEOUT", DEFAULT_NAVIGATION_TIMEOUT_SECONDS, cast=float),
            headless=os.getenv("CRAWL_HEADLESS", "true").lower() not in ("0", "false", "no"),
            user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
        )
