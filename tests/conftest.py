"""Shared fixtures: isolated settings, a frozen clock and mock upstream transports."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from finboard.core.config import Settings
from finboard.pipeline.aggregator import MarketDataAggregator
from finboard.pipeline.upstream import UpstreamClient, build_http_client

FIXED_NOW = datetime(2025, 11, 19, 9, 0, tzinfo=timezone.utc)


def _chart_payload(price: Any, previous_close: Any, volume: Any = 1000) -> dict[str, Any]:
    return {
        "chart": {
            "result": [
                {
                    "meta": {
                        "regularMarketPrice": price,
                        "previousClose": previous_close,
                        "regularMarketVolume": volume,
                    }
                }
            ],
            "error": None,
        }
    }


@pytest.fixture
def chart_payload() -> Callable[..., dict[str, Any]]:
    """Build a minimal chart response for one symbol."""

    return _chart_payload


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        LOG_LEVEL="WARNING",
        CALENDAR_BASE_URL="https://calendar.test",
        QUOTES_BASE_URL="https://quotes.test",
        NEWS_BASE_URL="https://news.test/v2",
        NEWS_API_KEY="test-key",
        NEWS_ENABLED=True,
        SIGNALS_BASE_URL="https://signals.test",
        UPSTREAM_TIMEOUT_MS=500,
        FALLBACK_SEED=7,
    )


@pytest.fixture
def run_feed(settings: Settings, fixed_now: Callable[[], datetime]):
    """Run one aggregator call against a mock transport and return its result."""

    def _run(
        handler: Callable[[httpx.Request], Any],
        call: Callable[[MarketDataAggregator], Awaitable[Any]],
        custom_settings: Settings | None = None,
    ) -> Any:
        active = custom_settings or settings

        async def _main() -> Any:
            timeout_s = active.quotes_upstream().timeout_s
            async with build_http_client(timeout_s, transport=httpx.MockTransport(handler)) as http:
                client = UpstreamClient(http, timeout_s=timeout_s)
                aggregator = MarketDataAggregator(active, client, now=fixed_now)
                return await call(aggregator)

        return asyncio.run(_main())

    return _run
