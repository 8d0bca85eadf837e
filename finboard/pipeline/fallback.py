"""Synthetic demo datasets served when an upstream fails or yields nothing."""

import random
from datetime import datetime, time, timedelta
from typing import Any

from finboard.core.symbols import parse_category
from finboard.core.time_utils import Clock, utc_now
from finboard.core.types import EconomicEvent, Impact, MarketCategory, NewsItem, Quote
from finboard.pipeline.quotes import build_quote

DEMO_DAYS = 7
EVENTS_PER_DAY = (2, 5)
FIRST_SLOT_HOUR = 8
LAST_SLOT_HOUR = 16

DEMO_IMPACTS = (Impact.HIGH, Impact.MEDIUM, Impact.LOW)
DEMO_CURRENCIES = ("USD", "EUR", "GBP", "JPY", "CAD", "AUD", "NZD", "CHF")
DEMO_EVENT_TYPES = (
    "Interest Rate Decision",
    "GDP",
    "CPI",
    "Employment Change",
    "Retail Sales",
    "PMI",
    "Trade Balance",
    "Central Bank Speech",
)
CURRENCY_COUNTRIES = {
    "USD": "US",
    "EUR": "EU",
    "GBP": "UK",
    "JPY": "JP",
    "CAD": "CA",
    "AUD": "AU",
    "NZD": "NZ",
    "CHF": "CH",
}

# (symbol, price, previous close, volume)
_DEMO_QUOTES: dict[MarketCategory, tuple[tuple[str, float, float, int], ...]] = {
    MarketCategory.CRYPTO: (
        ("BTC-USD", 43250.50, 42100.00, 28500000000),
        ("ETH-USD", 2280.75, 2315.20, 12400000000),
        ("SOL-USD", 98.42, 94.10, 2100000000),
        ("XRP-USD", 0.6215, 0.6302, 1350000000),
    ),
    MarketCategory.FOREX: (
        ("EURUSD=X", 1.0892, 1.0875, 0),
        ("GBPUSD=X", 1.2705, 1.2731, 0),
        ("JPY=X", 148.12, 147.65, 0),
        ("AUDUSD=X", 0.6584, 0.6569, 0),
    ),
    MarketCategory.INDICES: (
        ("^GSPC", 4783.45, 4756.50, 3850000000),
        ("^DJI", 37592.98, 37440.34, 310000000),
        ("^IXIC", 15011.35, 14963.87, 5200000000),
        ("^FTSE", 7694.19, 7723.07, 610000000),
    ),
    MarketCategory.COMMODITIES: (
        ("GC=F", 2051.60, 2043.20, 182000),
        ("SI=F", 23.18, 23.41, 54000),
        ("CL=F", 72.45, 71.77, 310000),
        ("NG=F", 2.61, 2.74, 145000),
    ),
}

_IMAGE_BASE = "https://images.unsplash.com/photo-{}?ixlib=rb-4.0.3&auto=format&fit=crop&w=500&q=80"

# (title, description, image id, source, category, hours ago)
_CURATED_ARTICLES: tuple[tuple[str, str, str, str, str, int], ...] = (
    (
        "Bitcoin Surges Past $40,000 as Institutional Adoption Grows",
        "Major financial institutions continue to expand cryptocurrency offerings, driving prices higher amid increasing adoption.",
        "1620336655055-bd87ca8f1370",
        "Financial Times",
        "crypto",
        2,
    ),
    (
        "Federal Reserve Holds Rates Steady, Signals Caution on Inflation",
        "The Federal Reserve maintained interest rates at current levels while acknowledging persistent inflationary pressures in the economy.",
        "1590283603385-17ffb3a7f29f",
        "Bloomberg",
        "finance",
        4,
    ),
    (
        "Tech Stocks Rally as Earnings Season Exceeds Expectations",
        "Technology companies report stronger-than-expected earnings, driving a broad rally in tech stocks across major indices.",
        "1611974789855-9c2a0a7236a3",
        "CNBC",
        "business",
        6,
    ),
    (
        "Oil Prices Volatile Amid Middle East Tensions and Supply Concerns",
        "Crude oil prices swing wildly as geopolitical tensions rise and OPEC+ considers production adjustments.",
        "1603665274855-b4f1e5e0ba27",
        "Reuters",
        "business",
        8,
    ),
    (
        "Euro Strengthens Against Dollar as ECB Hints at Policy Shift",
        "The European Central Bank signals a more hawkish stance, boosting the euro against major currencies.",
        "1553877522-43269d4ea984",
        "Financial Times",
        "finance",
        10,
    ),
    (
        "New AI Trading Platform Promises Revolution in Algorithmic Trading",
        "A startup unveils a new artificial intelligence platform that claims to predict market movements with unprecedented accuracy.",
        "1677442135135-416f8aa26a5b",
        "TechCrunch",
        "technology",
        12,
    ),
    (
        "Housing Market Shows Signs of Cooling After Record Year",
        "After unprecedented growth, housing market indicators suggest a return to more normal patterns.",
        "1560518883-ce09059eeffa",
        "Bloomberg",
        "economics",
        14,
    ),
    (
        "Central Banks Explore Digital Currencies as Crypto Adoption Grows",
        "Major central banks worldwide are accelerating research into central bank digital currencies (CBDCs) as cryptocurrency adoption continues to expand.",
        "1622630998477-20aa696ecb05",
        "Wall Street Journal",
        "crypto",
        16,
    ),
)

_GENERAL_ARTICLES: tuple[tuple[str, str, str, str, str, int], ...] = (
    (
        "Stock Markets Reach Record Highs Amid Economic Recovery",
        "Global stock markets continue their upward trajectory as economic indicators show strong recovery signals.",
        "1611974789855-9c2a0a7236a3",
        "MarketWatch",
        "business",
        2,
    ),
    (
        "Cryptocurrency Regulations Expected to Tighten Following G20 Meeting",
        "Finance ministers from G20 countries discuss coordinated approach to cryptocurrency regulation.",
        "1620336655055-bd87ca8f1370",
        "Reuters",
        "crypto",
        5,
    ),
    (
        "Housing Market Shows Signs of Cooling After Record Year",
        "After unprecedented growth, housing market indicators suggest a return to more normal patterns.",
        "1560518883-ce09059eeffa",
        "Bloomberg",
        "economics",
        8,
    ),
)

MIN_DEMO_ARTICLES = 3


def demo_quotes(category: "MarketCategory | str") -> list[Quote]:
    """Return the fixed demo quotes for a category."""

    return [
        build_quote(symbol, price, previous_close, volume)
        for symbol, price, previous_close, volume in _DEMO_QUOTES[parse_category(category)]
    ]


def demo_calendar(*, now: Clock = utc_now, rng: random.Random | None = None) -> list[EconomicEvent]:
    """Generate a week of plausible calendar events starting today."""

    rng = rng or random.Random()
    current = now()
    start = datetime.combine(current.date(), time(0, 0), tzinfo=current.tzinfo)
    events: list[EconomicEvent] = []

    for day_offset in range(DEMO_DAYS):
        day = start + timedelta(days=day_offset)
        day_events: list[EconomicEvent] = []
        for n in range(rng.randint(*EVENTS_PER_DAY)):
            impact = rng.choice(DEMO_IMPACTS)
            currency = rng.choice(DEMO_CURRENCIES)
            event_type = rng.choice(DEMO_EVENT_TYPES)
            occurs_at = day.replace(
                hour=rng.randint(FIRST_SLOT_HOUR, LAST_SLOT_HOUR),
                minute=rng.choice((0, 30)),
            )
            figures = _demo_figures(rng) if impact is Impact.HIGH else (None, None, None)
            day_events.append(
                EconomicEvent(
                    id=f"sample-{day_offset}-{n}",
                    occurs_at=occurs_at,
                    currency=currency,
                    title=f"{currency} {event_type}",
                    impact=impact,
                    actual=figures[0],
                    forecast=figures[1],
                    previous=figures[2],
                    country=CURRENCY_COUNTRIES[currency],
                )
            )
        day_events.sort(key=lambda event: event.occurs_at)
        events.extend(day_events)

    return events


def demo_news(category: str | None = None, *, now: Clock = utc_now) -> list[NewsItem]:
    """Return curated articles for a category, or the general set when too few match."""

    current = now()
    wanted = (category or "all").strip().lower()
    if wanted == "all":
        selected = _CURATED_ARTICLES
    else:
        selected = tuple(article for article in _CURATED_ARTICLES if article[4] == wanted)
    if len(selected) < MIN_DEMO_ARTICLES:
        selected = _GENERAL_ARTICLES

    return [_article(entry, current) for entry in selected]


def _demo_figures(rng: random.Random) -> tuple[float, float, float]:
    return tuple(round(rng.uniform(0, 5), 1) for _ in range(3))  # type: ignore[return-value]


def _article(entry: tuple[Any, ...], current: datetime) -> NewsItem:
    title, description, image_id, source, category, hours_ago = entry
    return NewsItem(
        title=title,
        description=description,
        url="#",
        image_url=_IMAGE_BASE.format(image_id),
        published_at=current - timedelta(hours=hours_ago),
        source_name=source,
        category=category,
    )
