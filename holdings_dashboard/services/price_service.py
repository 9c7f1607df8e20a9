from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from holdings_dashboard.config import settings
from holdings_dashboard.integrations.market_data.yfinance_client import YFinanceClient
from holdings_dashboard.models.quote import PriceQuote

logger = logging.getLogger(__name__)


def parse_tickers(raw: str | None) -> list[str]:
    if not raw:
        return []
    return unique_symbols(raw.split(","))


def unique_symbols(symbols: Iterable[str | None]) -> list[str]:
    out: list[str] = []
    for symbol in symbols:
        clean = (symbol or "").strip().upper()
        if clean and clean not in out:
            out.append(clean)
    return out


class PriceService:
    def __init__(self, client: YFinanceClient | None = None, max_workers: int | None = None) -> None:
        self.client = client or YFinanceClient()
        self.max_workers = max(1, max_workers or settings.quote_max_workers)

    def _fetch_one(self, symbol: str) -> tuple[str, PriceQuote | None, str | None]:
        try:
            quote = self.client.fetch_quote(symbol)
        except Exception as exc:
            logger.warning("Quote fetch failed", extra={"symbol": symbol, "error": str(exc)})
            return symbol, None, str(exc) or "Unknown error"
        return symbol, quote, None

    def get_prices(self, symbols: Iterable[str | None]) -> tuple[dict[str, PriceQuote], dict[str, str]]:
        """Fetch all quotes in parallel; failures are reported per symbol instead of raised."""
        clean = unique_symbols(symbols)
        prices: dict[str, PriceQuote] = {}
        errors: dict[str, str] = {}
        if not clean:
            return prices, errors

        workers = min(self.max_workers, len(clean))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="quote-fetch") as pool:
            results = list(pool.map(self._fetch_one, clean))

        for symbol, quote, error in results:
            if quote is not None:
                prices[symbol] = quote
            else:
                errors[symbol] = error or "Unknown error"
        return prices, errors

    def get_price(self, symbol: str) -> float | None:
        prices, _ = self.get_prices([symbol])
        quote = prices.get(symbol.strip().upper())
        return quote.price if quote else None
