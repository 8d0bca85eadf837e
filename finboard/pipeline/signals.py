"""Trading signal normalization.

Signals come from a separate signals server as a JSON array of trade ideas
keyed in camelCase (``currentPrice``, ``stopLoss``, ``riskLevel``). A record
without a symbol or a usable current price is skipped; everything else gets a
default so one sloppy field never drops a signal.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from finboard.core.errors import MalformedPayloadError, RecordParseError
from finboard.core.symbols import symbol_name
from finboard.core.time_utils import Clock, utc_now
from finboard.core.types import SignalBatch, SkippedRecord, TradingSignal
from finboard.pipeline.calendar import parse_number
from finboard.pipeline.news import parse_published_at

logger = logging.getLogger(__name__)

DEFAULT_SIGNAL_TYPE = "NEUTRAL"
DEFAULT_RISK_LEVEL = "Medium"

_SIGNAL_CONTAINERS = ("signals", "data", "results")


def extract_signals(payload: Any) -> list[Any]:
    if payload is None:
        return []
    if isinstance(payload, list):
        return list(payload)
    if isinstance(payload, Mapping):
        for key in _SIGNAL_CONTAINERS:
            value = payload.get(key)
            if isinstance(value, list):
                return list(value)
        return []
    raise MalformedPayloadError(f"signals payload has unexpected type {type(payload).__name__}")


def parse_strength(value: Any) -> float:
    """Read strength as a 0..1 fraction; whole percentages such as ``72`` or ``"72%"`` are scaled down."""

    number = parse_number(value)
    if number is None:
        return 0.0
    if number > 1:
        number /= 100
    return min(1.0, max(0.0, number))


def normalize_signal(record: Any, *, now: Clock = utc_now) -> TradingSignal:
    if not isinstance(record, Mapping):
        raise RecordParseError(f"signal record has unexpected type {type(record).__name__}")

    def field(*names: str) -> Any:
        for name in names:
            value = record.get(name)
            if value is not None and value != "":
                return value
        return None

    symbol = _text(field("symbol", "ticker"))
    if not symbol:
        raise RecordParseError("signal has no symbol")
    current_price = parse_number(field("currentPrice", "current_price", "price"))
    if current_price is None:
        raise RecordParseError(f"signal for {symbol} has no usable current price")

    levels = tuple(
        parse_number(field(*names))
        for names in (
            ("entryPrice", "entry_price", "entry"),
            ("stopLoss", "stop_loss", "stop"),
            ("takeProfit", "take_profit", "target"),
        )
    )
    # Partial or zero levels cannot be traded; treat them as absent.
    if any(level is None or level <= 0 for level in levels):
        levels = (None, None, None)

    signal_type = _text(field("type", "signal_type", "signal")) or DEFAULT_SIGNAL_TYPE
    risk_level = _text(field("riskLevel", "risk_level", "risk")) or DEFAULT_RISK_LEVEL

    return TradingSignal(
        symbol=symbol,
        name=_text(field("name", "display_name")) or symbol_name(symbol),
        signal_type=signal_type.upper().replace(" ", "_").replace("-", "_"),
        generated_at=parse_published_at(field("timestamp", "generated_at", "time")) or now(),
        current_price=current_price,
        entry_price=levels[0],
        stop_loss=levels[1],
        take_profit=levels[2],
        strength=parse_strength(field("strength", "confidence")),
        timeframe=_text(field("timeframe", "interval")) or "",
        risk_level=risk_level.capitalize(),
    )


def normalize_signals(records: Sequence[Any], *, now: Clock = utc_now) -> SignalBatch:
    signals: list[TradingSignal] = []
    skipped: list[SkippedRecord] = []

    for index, record in enumerate(records):
        try:
            signals.append(normalize_signal(record, now=now))
        except (RecordParseError, ValueError, TypeError) as exc:
            skipped.append(SkippedRecord(index=index, reason=str(exc)))
            logger.warning("signal_record_skipped", extra={"index": index, "reason": str(exc)})

    logger.info(
        "signals_normalized",
        extra={"records": len(records), "signals": len(signals), "skipped": len(skipped)},
    )
    return SignalBatch(signals=tuple(signals), skipped=tuple(skipped))


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (Mapping, list, bool)):
        return None
    text = str(value).strip()
    return text or None
