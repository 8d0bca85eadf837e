"""Environment-driven settings shared by the API and CLI so upstream behavior stays configurable."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from dateutil import tz
from pydantic_settings import BaseSettings, SettingsConfigDict

from finboard.core.errors import ConfigurationError

_DEGRADED_QUOTE_POLICIES = ("show", "hide")


@dataclass(frozen=True, slots=True)
class UpstreamConfig:
    """Connection options for one upstream provider."""

    base_url: str
    api_key: str
    timeout_ms: int

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a local .env file."""

    APP_NAME: str = "Finboard"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    CORS_ALLOW_ORIGINS: str = "*"
    CALENDAR_BASE_URL: str = "https://www.forexfactory.com"
    CALENDAR_TIMEZONE: str = "UTC"
    QUOTES_BASE_URL: str = "https://query1.finance.yahoo.com"
    NEWS_BASE_URL: str = "https://newsapi.org/v2"
    NEWS_API_KEY: str = ""
    NEWS_ENABLED: bool = False
    SIGNALS_BASE_URL: str = ""
    UPSTREAM_TIMEOUT_MS: int = 10000
    QUOTES_MAX_CONCURRENCY: int = 8
    DEGRADED_QUOTE_POLICY: str = "show"
    FALLBACK_SEED: int | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def cors_origins(self) -> tuple[str, ...]:
        """Return normalized origin list from CORS_ALLOW_ORIGINS."""

        return self._split_csv(self.CORS_ALLOW_ORIGINS, transform=str.strip)

    def calendar_upstream(self) -> UpstreamConfig:
        return UpstreamConfig(
            base_url=self._base_url(self.CALENDAR_BASE_URL, "CALENDAR_BASE_URL"),
            api_key="",
            timeout_ms=self._timeout_ms(),
        )

    def quotes_upstream(self) -> UpstreamConfig:
        return UpstreamConfig(
            base_url=self._base_url(self.QUOTES_BASE_URL, "QUOTES_BASE_URL"),
            api_key="",
            timeout_ms=self._timeout_ms(),
        )

    def news_upstream(self) -> UpstreamConfig:
        """Return news provider options; an enabled provider without a key is a startup error."""

        api_key = self.NEWS_API_KEY.strip()
        if self.NEWS_ENABLED and not api_key:
            raise ConfigurationError("NEWS_API_KEY is required when NEWS_ENABLED is true")
        return UpstreamConfig(
            base_url=self._base_url(self.NEWS_BASE_URL, "NEWS_BASE_URL"),
            api_key=api_key,
            timeout_ms=self._timeout_ms(),
        )

    def signals_upstream(self) -> UpstreamConfig | None:
        """Return the signals server options, or ``None`` when no server is configured."""

        if not self.SIGNALS_BASE_URL.strip():
            return None
        return UpstreamConfig(
            base_url=self._base_url(self.SIGNALS_BASE_URL, "SIGNALS_BASE_URL"),
            api_key="",
            timeout_ms=self._timeout_ms(),
        )

    def degraded_quote_policy(self) -> str:
        policy = self.DEGRADED_QUOTE_POLICY.strip().lower()
        if policy not in _DEGRADED_QUOTE_POLICIES:
            raise ConfigurationError(
                f"DEGRADED_QUOTE_POLICY must be one of {_DEGRADED_QUOTE_POLICIES}, got {policy!r}"
            )
        return policy

    def calendar_tzinfo(self):
        """Return the timezone calendar wall-clock times are published in."""

        tzinfo = tz.gettz(self.CALENDAR_TIMEZONE.strip() or "UTC")
        if tzinfo is None:
            raise ConfigurationError(f"unknown CALENDAR_TIMEZONE {self.CALENDAR_TIMEZONE!r}")
        return tzinfo

    def quotes_max_concurrency(self) -> int:
        return max(1, self.QUOTES_MAX_CONCURRENCY)

    def check(self) -> None:
        """Fail fast on configuration that would otherwise break at request time."""

        self.calendar_upstream()
        self.quotes_upstream()
        self.news_upstream()
        self.signals_upstream()
        self.degraded_quote_policy()
        self.calendar_tzinfo()

    def _timeout_ms(self) -> int:
        if self.UPSTREAM_TIMEOUT_MS <= 0:
            raise ConfigurationError("UPSTREAM_TIMEOUT_MS must be positive")
        return self.UPSTREAM_TIMEOUT_MS

    @staticmethod
    def _base_url(value: str, name: str) -> str:
        base_url = value.strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"{name} must be an http(s) URL, got {value!r}")
        return base_url

    @staticmethod
    def _split_csv(value: str, transform: Callable[[str], str]) -> tuple[str, ...]:
        """Split comma-separated values while removing empty entries and duplicates."""

        items: list[str] = []
        seen: set[str] = set()

        for raw in value.split(","):
            item = transform(raw.strip())
            if not item or item in seen:
                continue
            seen.add(item)
            items.append(item)

        return tuple(items)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings to avoid repeated environment parsing."""

    return Settings()
