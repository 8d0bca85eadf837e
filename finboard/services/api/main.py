"""FastAPI service exposing the calendar proxy and the normalized market-data feeds."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finboard.core.config import Settings, get_settings
from finboard.core.errors import UpstreamError
from finboard.core.logging import configure_logging
from finboard.core.symbols import parse_category
from finboard.core.time_utils import isoformat_utc, utc_now
from finboard.core.types import CalendarWeek, feed_to_dict
from finboard.pipeline.aggregator import MarketDataAggregator
from finboard.pipeline.upstream import UpstreamClient, build_http_client, calendar_url, event_url

logger = logging.getLogger(__name__)


def _gateway_error(summary: str, exc: UpstreamError) -> JSONResponse:
    logger.error(
        "gateway_upstream_failed",
        extra={"summary": summary, "url": exc.url, "error": str(exc), "error_type": type(exc).__name__},
    )
    return JSONResponse(status_code=500, content={"error": summary, "message": str(exc)})


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app; ``transport`` replaces the network for tests."""

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, service="api")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Validate configuration and own the shared HTTP client for the app lifetime."""

        settings.check()
        calendar = settings.calendar_upstream()
        http = build_http_client(calendar.timeout_s, transport=transport)
        client = UpstreamClient(http, timeout_s=calendar.timeout_s)
        app.state.settings = settings
        app.state.client = client
        app.state.aggregator = MarketDataAggregator(settings, client)
        logger.info(
            "api_startup",
            extra={
                "env": settings.ENV,
                "version": settings.VERSION,
                "news_enabled": settings.NEWS_ENABLED,
                "signals_enabled": settings.signals_upstream() is not None,
                "timeout_ms": calendar.timeout_ms,
            },
        )
        try:
            yield
        finally:
            await http.aclose()
            logger.info("api_shutdown")

    app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins()),
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        """Return process liveness status."""

        return {"status": "OK", "timestamp": isoformat_utc(utc_now())}

    @app.get("/version")
    def version() -> dict[str, str]:
        """Return application metadata from shared settings."""

        return {
            "name": settings.APP_NAME,
            "version": settings.VERSION,
            "env": settings.ENV,
        }

    @app.get("/calendar")
    async def calendar(request: Request, week: str | None = None) -> Any:
        """Proxy the weekly calendar XML as JSON without normalizing it."""

        selected = CalendarWeek.parse(week)
        url = calendar_url(settings.calendar_upstream().base_url, selected)
        try:
            return await request.app.state.client.get_xml(url)
        except UpstreamError as exc:
            return _gateway_error("Failed to fetch calendar data", exc)

    @app.get("/event/{event_id}")
    async def event(request: Request, event_id: str) -> Any:
        url = event_url(settings.calendar_upstream().base_url, event_id, kind="event")
        try:
            return await request.app.state.client.get_document(url)
        except UpstreamError as exc:
            return _gateway_error("Failed to fetch event data", exc)

    @app.get("/history/{event_id}")
    async def history(request: Request, event_id: str) -> Any:
        url = event_url(settings.calendar_upstream().base_url, event_id, kind="history")
        try:
            return await request.app.state.client.get_document(url)
        except UpstreamError as exc:
            return _gateway_error("Failed to fetch event history", exc)

    @app.get("/feeds/quotes/{category}")
    async def quotes_feed(request: Request, category: str) -> dict[str, Any]:
        aggregator: MarketDataAggregator = request.app.state.aggregator
        try:
            market = parse_category(category)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=f"unknown market category {category!r}") from exc
        return feed_to_dict(await aggregator.get_quotes(market))

    @app.get("/feeds/calendar")
    async def calendar_feed(request: Request, week: str | None = None) -> dict[str, Any]:
        aggregator: MarketDataAggregator = request.app.state.aggregator
        return feed_to_dict(await aggregator.get_calendar(week))

    @app.get("/feeds/news")
    async def news_feed(request: Request, category: str | None = None) -> dict[str, Any]:
        aggregator: MarketDataAggregator = request.app.state.aggregator
        return feed_to_dict(await aggregator.get_news(category))

    @app.get("/feeds/signals")
    async def signals_feed(request: Request) -> dict[str, Any]:
        aggregator: MarketDataAggregator = request.app.state.aggregator
        return feed_to_dict(await aggregator.get_signals())

    return app


app = create_app()
