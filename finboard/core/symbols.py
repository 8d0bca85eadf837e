"""Static ticker catalog: display order per market category and human-readable names."""

from finboard.core.types import MarketCategory

MARKET_SYMBOLS: dict[MarketCategory, tuple[str, ...]] = {
    MarketCategory.CRYPTO: (
        "BTC-USD",
        "ETH-USD",
        "SOL-USD",
        "BNB-USD",
        "XRP-USD",
        "ADA-USD",
        "DOGE-USD",
        "AVAX-USD",
    ),
    MarketCategory.FOREX: (
        "EURUSD=X",
        "GBPUSD=X",
        "JPY=X",
        "AUDUSD=X",
        "CADUSD=X",
        "CHFUSD=X",
        "CNYUSD=X",
        "NZDUSD=X",
    ),
    MarketCategory.INDICES: (
        "^GSPC",
        "^DJI",
        "^IXIC",
        "^RUT",
        "^FTSE",
        "^N225",
        "^HSI",
        "^STOXX50E",
    ),
    MarketCategory.COMMODITIES: (
        "GC=F",
        "SI=F",
        "CL=F",
        "NG=F",
        "ZC=F",
        "ZS=F",
        "KE=F",
        "HG=F",
    ),
}

SYMBOL_NAMES: dict[str, str] = {
    "BTC-USD": "Bitcoin",
    "ETH-USD": "Ethereum",
    "SOL-USD": "Solana",
    "BNB-USD": "Binance Coin",
    "XRP-USD": "Ripple",
    "ADA-USD": "Cardano",
    "DOGE-USD": "Dogecoin",
    "AVAX-USD": "Avalanche",
    "EURUSD=X": "EUR/USD",
    "GBPUSD=X": "GBP/USD",
    "JPY=X": "USD/JPY",
    "AUDUSD=X": "AUD/USD",
    "CADUSD=X": "CAD/USD",
    "CHFUSD=X": "CHF/USD",
    "CNYUSD=X": "CNY/USD",
    "NZDUSD=X": "NZD/USD",
    "^GSPC": "S&P 500",
    "^DJI": "Dow Jones",
    "^IXIC": "NASDAQ",
    "^RUT": "Russell 2000",
    "^FTSE": "FTSE 100",
    "^N225": "Nikkei 225",
    "^HSI": "Hang Seng",
    "^STOXX50E": "STOXX 50",
    "GC=F": "Gold",
    "SI=F": "Silver",
    "CL=F": "Crude Oil",
    "NG=F": "Natural Gas",
    "ZC=F": "Corn",
    "ZS=F": "Soybeans",
    "KE=F": "Wheat",
    "HG=F": "Copper",
}


def parse_category(category: "MarketCategory | str") -> MarketCategory:
    """Return the enum member for a category name, raising ValueError when unknown."""

    if isinstance(category, MarketCategory):
        return category
    return MarketCategory(str(category).strip().lower())


def symbols_for(category: "MarketCategory | str") -> tuple[str, ...]:
    return MARKET_SYMBOLS[parse_category(category)]


def symbol_name(symbol: str) -> str:
    return SYMBOL_NAMES.get(symbol, symbol)


def price_decimals(symbol: str) -> int:
    # Forex pairs quote to four places.
    return 4 if "=X" in symbol else 2
