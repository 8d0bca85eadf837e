"""Fetch, normalize and fall back: one uniform accessor per market-data domain."""

import asyncio
import logging
import random
from typing import Any

from finboard.core.config import Settings
from finboard.core.errors import MalformedPayloadError, UpstreamError
from finboard.core.symbols import parse_category, symbols_for
from finboard.core.time_utils import Clock, utc_now
from finboard.core.types import CalendarWeek, EconomicEvent, Feed, MarketCategory, NewsItem, Quote, TradingSignal
from finboard.pipeline import fallback
from finboard.pipeline.calendar import normalize_calendar
from finboard.pipeline.news import extract_articles, normalize_news
from finboard.pipeline.quotes import assemble_quotes, normalize_quote
from finboard.pipeline.signals import extract_signals, normalize_signals
from finboard.pipeline.upstream import UpstreamClient, calendar_url, news_url, quote_url, signals_url

logger = logging.getLogger(__name__)

_QUOTE_PARAMS = {"interval": "1d", "range": "1d"}


class MarketDataAggregator:
    """Serves quotes, calendar events and news, never raising for upstream problems.

    Each accessor follows the same sequence: fetch the raw payload, run it
    through the domain normalizer, and serve synthetic data from
    :mod:`finboard.pipeline.fallback` when the fetch failed or nothing usable
    came back. Fallback feeds are flagged ``degraded``.
    """

    def __init__(
        self,
        settings: Settings,
        client: UpstreamClient,
        *,
        now: Clock = utc_now,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._now = now
        self._rng = rng or random.Random(settings.FALLBACK_SEED)
        self._calendar = settings.calendar_upstream()
        self._quotes = settings.quotes_upstream()
        self._news = settings.news_upstream()
        self._signals = settings.signals_upstream()
        self._tzinfo = settings.calendar_tzinfo()
        self._degraded_policy = settings.degraded_quote_policy()

    async def get_quotes(self, category: "MarketCategory | str") -> Feed[Quote]:
        market = parse_category(category)
        symbols = symbols_for(market)

        semaphore = asyncio.Semaphore(self._settings.quotes_max_concurrency())
        outcomes = await asyncio.gather(
            *(self._fetch_quote(symbol, semaphore) for symbol in symbols),
            return_exceptions=True,
        )
        quotes, failed = assemble_quotes(symbols, outcomes)
        notes = [f"symbol_failed:{symbol}" for symbol in failed]

        if self._degraded_policy == "hide":
            hidden = [quote.symbol for quote in quotes if quote.degraded]
            quotes = [quote for quote in quotes if not quote.degraded]
            notes.extend(f"symbol_hidden:{symbol}" for symbol in hidden)

        if not quotes:
            reason = "all_symbols_failed" if failed else "empty_result"
            return self._fallback_quotes(market, reason, notes)

        logger.info(
            "quotes_served",
            extra={"category": market.value, "served": len(quotes), "failed": len(failed)},
        )
        return Feed(
            items=tuple(quotes),
            degraded=any(quote.degraded for quote in quotes),
            source="upstream",
            notes=tuple(notes),
        )

    async def get_calendar(self, week: "CalendarWeek | str | None" = None) -> Feed[EconomicEvent]:
        selected = CalendarWeek.parse(week)
        url = calendar_url(self._calendar.base_url, selected)

        try:
            payload = await self._client.get_xml(url)
            batch = normalize_calendar(payload, now=self._now, tzinfo=self._tzinfo)
        except UpstreamError as exc:
            return self._fallback_calendar(selected, _error_note(exc), exc)

        if not batch.events:
            return self._fallback_calendar(selected, "empty_result")

        notes = tuple(f"record_skipped:{skipped.index}" for skipped in batch.skipped)
        return Feed(items=batch.events, degraded=False, source="upstream", notes=notes)

    async def get_news(self, category: str | None = None) -> Feed[NewsItem]:
        wanted = (category or "business").strip().lower()

        if not self._settings.NEWS_ENABLED:
            return self._fallback_news(wanted, "news_disabled")

        params = {"category": wanted, "apiKey": self._news.api_key, "language": "en"}
        try:
            payload = await self._client.get_json(news_url(self._news.base_url), params=params)
            items = normalize_news(extract_articles(payload), default_category=wanted, now=self._now)
        except UpstreamError as exc:
            return self._fallback_news(wanted, _error_note(exc), exc)

        if not items:
            return self._fallback_news(wanted, "empty_result")
        return Feed(items=tuple(items), degraded=False, source="upstream")

    async def get_signals(self) -> Feed[TradingSignal]:
        """Serve trade ideas from the signals server.

        There is no synthetic signal set: when the server is unconfigured or
        failing the fallback feed is empty. An empty upstream list is a normal
        "no signals right now" answer, not a failure.
        """

        if self._signals is None:
            return self._fallback_signals("signals_disabled")

        try:
            payload = await self._client.get_json(signals_url(self._signals.base_url))
            batch = normalize_signals(extract_signals(payload), now=self._now)
        except UpstreamError as exc:
            return self._fallback_signals(_error_note(exc), exc)

        notes = tuple(f"record_skipped:{skipped.index}" for skipped in batch.skipped)
        return Feed(items=batch.signals, degraded=False, source="upstream", notes=notes)

    async def _fetch_quote(self, symbol: str, semaphore: asyncio.Semaphore) -> Quote:
        async with semaphore:
            payload = await self._client.get_json(
                quote_url(self._quotes.base_url, symbol),
                params=_QUOTE_PARAMS,
            )
        return normalize_quote(symbol, payload)

    def _fallback_quotes(self, market: MarketCategory, reason: str, notes: list[str]) -> Feed[Quote]:
        logger.warning("feed_fallback", extra={"domain": "quotes", "category": market.value, "reason": reason})
        return Feed(
            items=tuple(fallback.demo_quotes(market)),
            degraded=True,
            source="fallback",
            notes=(reason, *notes),
        )

    def _fallback_calendar(
        self,
        week: CalendarWeek,
        reason: str,
        exc: Exception | None = None,
    ) -> Feed[EconomicEvent]:
        logger.warning(
            "feed_fallback",
            extra={"domain": "calendar", "week": week.value, "reason": reason, "error": _describe(exc)},
        )
        return Feed(
            items=tuple(fallback.demo_calendar(now=self._now, rng=self._rng)),
            degraded=True,
            source="fallback",
            notes=(reason,),
        )

    def _fallback_news(self, category: str, reason: str, exc: Exception | None = None) -> Feed[NewsItem]:
        logger.warning(
            "feed_fallback",
            extra={"domain": "news", "category": category, "reason": reason, "error": _describe(exc)},
        )
        return Feed(
            items=tuple(fallback.demo_news(category, now=self._now)),
            degraded=True,
            source="fallback",
            notes=(reason,),
        )

    def _fallback_signals(self, reason: str, exc: Exception | None = None) -> Feed[TradingSignal]:
        logger.warning("feed_fallback", extra={"domain": "signals", "reason": reason, "error": _describe(exc)})
        return Feed(items=(), degraded=True, source="fallback", notes=(reason,))


def _error_note(exc: UpstreamError) -> str:
    if isinstance(exc, MalformedPayloadError):
        return "malformed_payload"
    return "transport_error"


def _describe(exc: Any) -> str | None:
    if exc is None:
        return None
    return f"{type(exc).__name__}: {exc}"
