"""News normalization by coalescing provider-specific article fields."""

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser

from finboard.core.errors import MalformedPayloadError
from finboard.core.time_utils import Clock, utc_now
from finboard.core.types import NewsItem

logger = logging.getLogger(__name__)

PLACEHOLDER_IMAGE_URL = (
    "https://images.unsplash.com/photo-1588681664899-f142ff2dc9b1"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=500&q=80"
)
UNKNOWN_SOURCE = "Unknown Source"
DEFAULT_CATEGORY = "General"
DEFAULT_TITLE = "Untitled"
DEFAULT_URL = "#"

# First non-empty candidate wins.
TITLE_FIELDS = ("title", "headline", "name")
DESCRIPTION_FIELDS = ("description", "summary", "snippet", "content")
URL_FIELDS = ("url", "link", "article_url")
IMAGE_FIELDS = ("urlToImage", "image_url", "image", "imageUrl", "thumbnail", "banner_image")
PUBLISHED_FIELDS = ("publishedAt", "pubDate", "published_at", "time_published", "datetime")
SOURCE_FIELDS = ("source", "source_id", "provider")
CATEGORY_FIELDS = ("category", "categories")

_ARTICLE_CONTAINERS = ("articles", "results", "data", "feed", "items")


def extract_articles(payload: Any) -> list[Any]:
    """Return the article list from a bare array or a provider envelope."""

    if payload is None:
        return []
    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, Mapping):
        for key in _ARTICLE_CONTAINERS:
            value = payload.get(key)
            if isinstance(value, list):
                return list(value)
        if payload.get("status") == "error":
            raise MalformedPayloadError(f"news provider error: {payload.get('message', 'unknown')}")
        return []
    raise MalformedPayloadError(f"news payload has unexpected type {type(payload).__name__}")


def coalesce(article: Mapping[str, Any], candidates: Sequence[str]) -> str | None:
    """Return the first candidate field holding a non-empty string."""

    for name in candidates:
        text = _text(article.get(name))
        if text:
            return text
    return None


def parse_published_at(value: Any) -> datetime | None:
    """Parse ISO, RFC-822, ``YYYYMMDDTHHMMSS`` or epoch-second timestamps into aware UTC."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None
    if text.isdigit() and len(text) > 8:
        return parse_published_at(int(text))
    try:
        parsed = date_parser.parse(text)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_article(
    article: Any,
    *,
    default_category: str | None = None,
    now: Clock = utc_now,
) -> NewsItem:
    if not isinstance(article, Mapping):
        logger.warning("news_article_not_object", extra={"type": type(article).__name__})
        article = {}

    published_at = None
    for name in PUBLISHED_FIELDS:
        published_at = parse_published_at(article.get(name))
        if published_at is not None:
            break

    return NewsItem(
        title=coalesce(article, TITLE_FIELDS) or DEFAULT_TITLE,
        description=coalesce(article, DESCRIPTION_FIELDS) or "",
        url=coalesce(article, URL_FIELDS) or DEFAULT_URL,
        image_url=coalesce(article, IMAGE_FIELDS) or PLACEHOLDER_IMAGE_URL,
        published_at=published_at or now(),
        source_name=_source_name(article) or UNKNOWN_SOURCE,
        category=coalesce(article, CATEGORY_FIELDS) or default_category or DEFAULT_CATEGORY,
    )


def normalize_news(
    articles: Sequence[Any],
    *,
    default_category: str | None = None,
    now: Clock = utc_now,
) -> list[NewsItem]:
    """Normalize every article; missing fields get defaults so nothing is dropped."""

    return [
        normalize_article(article, default_category=default_category, now=now)
        for article in articles
    ]


def _source_name(article: Mapping[str, Any]) -> str | None:
    source = article.get("source")
    if isinstance(source, Mapping):
        name = _text(source.get("name")) or _text(source.get("id"))
        if name:
            return name
    return coalesce(article, SOURCE_FIELDS)


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, bool)):
        return None
    if isinstance(value, list):
        for item in value:
            text = _text(item)
            if text:
                return text
        return None
    text = str(value).strip()
    return text or None
