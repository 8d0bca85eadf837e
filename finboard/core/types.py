"""Canonical records shared by normalizers, fallbacks and consumers."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from finboard.core.time_utils import isoformat_utc

T = TypeVar("T")


class MarketCategory(str, Enum):
    CRYPTO = "crypto"
    FOREX = "forex"
    INDICES = "indices"
    COMMODITIES = "commodities"


class Impact(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class CalendarWeek(str, Enum):
    THIS = "this"
    NEXT = "next"
    LAST = "last"

    @classmethod
    def parse(cls, value: "str | CalendarWeek | None") -> "CalendarWeek":
        """Resolve a week selector, treating anything unrecognized as the current week."""

        if isinstance(value, CalendarWeek):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.THIS


@dataclass(frozen=True, slots=True)
class Quote:
    """Normalized price snapshot for one ticker."""

    symbol: str
    display_name: str
    price: float
    previous_close: float
    change: float
    change_percent: float
    volume: int
    degraded: bool = False


@dataclass(frozen=True, slots=True)
class EconomicEvent:
    """Normalized economic calendar entry."""

    id: str
    occurs_at: datetime
    currency: str
    title: str
    impact: Impact
    actual: float | None
    forecast: float | None
    previous: float | None
    country: str


@dataclass(frozen=True, slots=True)
class NewsItem:
    """Normalized article, independent of the provider schema."""

    title: str
    description: str
    url: str
    image_url: str
    published_at: datetime
    source_name: str
    category: str


@dataclass(frozen=True, slots=True)
class TradingSignal:
    """Normalized trade idea from the signals server.

    ``entry_price``, ``stop_loss`` and ``take_profit`` are all set or all
    ``None``; a signal without levels is still waiting for a breakout.
    """

    symbol: str
    name: str
    signal_type: str
    generated_at: datetime
    current_price: float
    entry_price: float | None
    stop_loss: float | None
    take_profit: float | None
    strength: float
    timeframe: str
    risk_level: str

    @property
    def has_levels(self) -> bool:
        return self.entry_price is not None


@dataclass(frozen=True, slots=True)
class SkippedRecord:
    """A source record dropped from a batch and why."""

    index: int
    reason: str


@dataclass(frozen=True, slots=True)
class CalendarBatch:
    """Outcome of folding a calendar payload into events."""

    events: tuple[EconomicEvent, ...]
    skipped: tuple[SkippedRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class SignalBatch:
    signals: tuple[TradingSignal, ...]
    skipped: tuple[SkippedRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class Feed(Generic[T]):
    """Records served to consumers, flagged when they came from the fallback path."""

    items: tuple[T, ...]
    degraded: bool = False
    source: str = "upstream"
    notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def record_to_dict(record: Any) -> dict[str, Any]:
    """Convert a canonical record into JSON-ready primitives."""

    payload = asdict(record)
    for key, value in payload.items():
        if isinstance(value, Enum):
            payload[key] = value.value
        elif isinstance(value, datetime):
            payload[key] = isoformat_utc(value)
    return payload


def feed_to_dict(feed: Feed[Any]) -> dict[str, Any]:
    return {
        "degraded": feed.degraded,
        "source": feed.source,
        "notes": list(feed.notes),
        "count": len(feed.items),
        "items": [record_to_dict(item) for item in feed.items],
    }
