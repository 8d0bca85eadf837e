"""One-shot snapshot that runs a single feed accessor and prints JSON lines for each record."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from finboard.core.config import Settings, get_settings
from finboard.core.errors import ConfigurationError
from finboard.core.formatting import (
    format_change,
    format_currency,
    format_number,
    format_percent,
    format_time_ago,
)
from finboard.core.logging import configure_logging
from finboard.core.symbols import price_decimals
from finboard.core.time_utils import utc_now
from finboard.core.types import (
    EconomicEvent,
    Feed,
    MarketCategory,
    NewsItem,
    Quote,
    TradingSignal,
    record_to_dict,
)
from finboard.pipeline.aggregator import MarketDataAggregator
from finboard.pipeline.upstream import UpstreamClient, build_http_client

_DOMAINS = ("quotes", "calendar", "news", "signals")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="finboard-snapshot", description=__doc__)
    parser.add_argument("domain", choices=_DOMAINS)
    parser.add_argument(
        "--category",
        default=None,
        help="market category for quotes (crypto, forex, indices, commodities) or news category",
    )
    parser.add_argument("--week", default="this", choices=("this", "next", "last"))
    return parser.parse_args(argv)


def quote_line(quote: Quote) -> dict[str, Any]:
    decimals = price_decimals(quote.symbol)
    line = record_to_dict(quote)
    line["display"] = {
        "price": format_currency(quote.price, decimals),
        "change": format_change(quote.change, decimals),
        "change_percent": format_percent(quote.change_percent),
        "volume": format_number(quote.volume, 0),
    }
    return line


def event_line(event: EconomicEvent) -> dict[str, Any]:
    line = record_to_dict(event)
    line["display"] = {"when": event.occurs_at.strftime("%a %d %b %H:%M")}
    return line


def news_line(item: NewsItem) -> dict[str, Any]:
    line = record_to_dict(item)
    line["display"] = {"age": format_time_ago(item.published_at, utc_now())}
    return line


def signal_line(signal: TradingSignal) -> dict[str, Any]:
    decimals = price_decimals(signal.symbol)
    line = record_to_dict(signal)
    display = {
        "type": signal.signal_type.replace("_", " "),
        "price": format_currency(signal.current_price, decimals),
        "strength": f"{round(signal.strength * 100)}%",
        "age": format_time_ago(signal.generated_at, utc_now()),
    }
    if signal.has_levels:
        display["entry"] = format_currency(signal.entry_price, decimals)
        display["stop"] = format_currency(signal.stop_loss, decimals)
        display["target"] = format_currency(signal.take_profit, decimals)
    else:
        display["status"] = "Waiting for breakout"
    line["display"] = display
    return line


def _emit(payload: dict[str, Any]) -> None:
    line = json.dumps(payload, ensure_ascii=True, separators=(",", ":"))
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def emit_feed(domain: str, feed: Feed[Any]) -> None:
    for item in feed.items:
        if isinstance(item, Quote):
            _emit(quote_line(item))
        elif isinstance(item, EconomicEvent):
            _emit(event_line(item))
        elif isinstance(item, TradingSignal):
            _emit(signal_line(item))
        else:
            _emit(news_line(item))
    _emit(
        {
            "type": "summary",
            "domain": domain,
            "count": len(feed.items),
            "degraded": feed.degraded,
            "source": feed.source,
            "notes": list(feed.notes),
        }
    )


async def run_snapshot(settings: Settings, args: argparse.Namespace, transport: Any = None) -> Feed[Any]:
    upstream = settings.quotes_upstream()
    async with build_http_client(upstream.timeout_s, transport=transport) as http:
        aggregator = MarketDataAggregator(settings, UpstreamClient(http, timeout_s=upstream.timeout_s))
        if args.domain == "quotes":
            return await aggregator.get_quotes(args.category or MarketCategory.CRYPTO)
        if args.domain == "calendar":
            return await aggregator.get_calendar(args.week)
        if args.domain == "signals":
            return await aggregator.get_signals()
        return await aggregator.get_news(args.category)


def main(argv: list[str] | None = None) -> int:
    """Fetch one feed and print it; upstream failures still exit 0 with fallback data."""

    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, service="snapshot")
    logger = logging.getLogger(__name__)

    try:
        settings.check()
    except ConfigurationError as exc:
        logger.error("snapshot_invalid_config", extra={"error": str(exc)})
        return 1

    if args.domain == "quotes" and args.category:
        try:
            MarketCategory(args.category.lower())
        except ValueError:
            logger.error("snapshot_invalid_category", extra={"category": args.category})
            return 2

    try:
        feed = asyncio.run(run_snapshot(settings, args))
    except KeyboardInterrupt:
        return 0

    emit_feed(args.domain, feed)
    logger.info(
        "snapshot_complete",
        extra={"domain": args.domain, "count": len(feed.items), "degraded": feed.degraded},
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
