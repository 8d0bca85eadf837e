"""Snapshot CLI tests: display lines, JSON output and argument handling."""

import argparse
import asyncio
import json

import httpx

from finboard.core.types import Feed
from finboard.pipeline.quotes import build_quote
from finboard.pipeline.signals import normalize_signal
from finboard.services.snapshot.main import emit_feed, main, quote_line, run_snapshot, signal_line


def test_quote_line_formats_forex_to_four_places() -> None:
    line = quote_line(build_quote("EURUSD=X", 1.0892, 1.0875, 0))

    assert line["symbol"] == "EURUSD=X"
    assert line["display"]["price"] == "$1.0892"
    assert line["display"]["change"] == "+$0.0017"
    assert line["display"]["volume"] == "0"


def test_emit_feed_writes_records_then_summary(capsys) -> None:
    feed = Feed(
        items=(build_quote("BTC-USD", 105.0, 100.0, 1500),),
        degraded=False,
        source="upstream",
        notes=("symbol_failed:ETH-USD",),
    )

    emit_feed("quotes", feed)

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert len(lines) == 2
    assert lines[0]["display"] == {
        "price": "$105.00",
        "change": "+$5.00",
        "change_percent": "+5.00%",
        "volume": "1,500",
    }
    assert lines[1] == {
        "type": "summary",
        "domain": "quotes",
        "count": 1,
        "degraded": False,
        "source": "upstream",
        "notes": ["symbol_failed:ETH-USD"],
    }


def test_run_snapshot_falls_back_when_upstream_is_down(settings) -> None:
    args = argparse.Namespace(domain="calendar", category=None, week="this")
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    feed = asyncio.run(run_snapshot(settings, args, transport=transport))

    assert feed.source == "fallback"
    assert 14 <= len(feed.items) <= 35


def test_run_snapshot_quotes(settings, chart_payload) -> None:
    args = argparse.Namespace(domain="quotes", category="indices", week="this")
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json=chart_payload(4783.45, 4756.5)))

    feed = asyncio.run(run_snapshot(settings, args, transport=transport))

    assert feed.source == "upstream"
    assert feed.items[0].symbol == "^GSPC"


def test_unknown_quote_category_exits_2(capsys) -> None:
    assert main(["quotes", "--category", "stocks"]) == 2
    assert capsys.readouterr().out == ""


def test_signal_line_shows_levels_or_waiting_status() -> None:
    with_levels = normalize_signal(
        {"type": "STRONG_BUY", "symbol": "EURUSD=X", "currentPrice": 1.0892, "entryPrice": 1.088,
         "stopLoss": 1.084, "takeProfit": 1.096, "strength": 0.72},
    )
    waiting = normalize_signal({"type": "BUY", "symbol": "BTC-USD", "currentPrice": 43250.5})

    levels_display = signal_line(with_levels)["display"]
    waiting_display = signal_line(waiting)["display"]

    assert levels_display["type"] == "STRONG BUY"
    assert levels_display["entry"] == "$1.0880"
    assert levels_display["strength"] == "72%"
    assert "status" not in levels_display
    assert waiting_display["status"] == "Waiting for breakout"
    assert waiting_display["price"] == "$43,250.50"
