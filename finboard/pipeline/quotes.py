"""Quote normalization from chart payloads, including the zero previous-close guard."""

import logging
import math
from collections.abc import Sequence
from typing import Any

from finboard.core.errors import MalformedPayloadError
from finboard.core.symbols import symbol_name
from finboard.core.types import Quote

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _as_volume(value: Any) -> int:
    number = _as_float(value)
    if number is None or number < 0:
        return 0
    return int(number)


def extract_quote_fields(payload: Any) -> tuple[float, float | None, int]:
    """Pull (price, previous_close, volume) out of a chart response.

    The response is expected as ``{"chart": {"result": [{"meta": {...}}]}}``.
    A missing or non-finite price makes the whole payload unusable; a missing
    previous close is returned as ``None`` so the caller can degrade instead.
    """

    if not isinstance(payload, dict):
        raise MalformedPayloadError("quote payload is not an object")

    chart = payload.get("chart")
    if not isinstance(chart, dict):
        raise MalformedPayloadError("quote payload has no chart object")
    if chart.get("error"):
        raise MalformedPayloadError(f"chart error: {chart['error']}")

    result = chart.get("result")
    if not isinstance(result, list) or not result or not isinstance(result[0], dict):
        raise MalformedPayloadError("chart result is empty")

    meta = result[0].get("meta")
    if not isinstance(meta, dict):
        raise MalformedPayloadError("chart result has no meta object")

    price = _as_float(meta.get("regularMarketPrice"))
    if price is None:
        raise MalformedPayloadError("regularMarketPrice is missing or not a number")

    return price, _as_float(meta.get("previousClose")), _as_volume(meta.get("regularMarketVolume"))


def build_quote(
    symbol: str,
    price: float,
    previous_close: float | None,
    volume: int = 0,
    display_name: str | None = None,
) -> Quote:
    """Create a quote with derived change fields; zero or missing previous close degrades it."""

    prev = previous_close or 0.0
    change = price - prev
    if prev == 0:
        change_percent = 0.0
        degraded = True
    else:
        change_percent = change / prev * 100
        degraded = False

    return Quote(
        symbol=symbol,
        display_name=display_name or symbol_name(symbol),
        price=price,
        previous_close=prev,
        change=change,
        change_percent=change_percent,
        volume=max(0, int(volume or 0)),
        degraded=degraded,
    )


def normalize_quote(symbol: str, payload: Any) -> Quote:
    price, previous_close, volume = extract_quote_fields(payload)
    quote = build_quote(symbol, price, previous_close, volume)
    if quote.degraded:
        logger.info("quote_degraded", extra={"symbol": symbol, "previous_close": previous_close})
    return quote


def assemble_quotes(
    symbols: Sequence[str],
    outcomes: Sequence[Quote | BaseException],
) -> tuple[list[Quote], list[str]]:
    """Join per-symbol outcomes in input order, dropping the ones that failed."""

    if len(symbols) != len(outcomes):
        raise ValueError("symbols and outcomes must have the same length")

    quotes: list[Quote] = []
    failed: list[str] = []
    for symbol, outcome in zip(symbols, outcomes):
        if isinstance(outcome, Quote):
            quotes.append(outcome)
            continue
        failed.append(symbol)
        logger.warning(
            "quote_fetch_failed",
            extra={"symbol": symbol, "error": str(outcome), "error_type": type(outcome).__name__},
        )
    return quotes, failed
