from __future__ import annotations

import logging

import pandas as pd
import yfinance as yf

from holdings_dashboard.config import settings
from holdings_dashboard.models.quote import PriceQuote
from holdings_dashboard.utils.time import as_of_date

logger = logging.getLogger(__name__)


class YFinanceClient:
    def __init__(self, period: str | None = None) -> None:
        self.period = period or settings.quote_period

    def fetch_closes(self, symbol: str, period: str | None = None) -> pd.DataFrame:
        logger.info("Fetching yfinance daily closes", extra={"symbol": symbol, "period": period or self.period})
        ticker = yf.Ticker(symbol)
        df = ticker.history(interval="1d", period=period or self.period, auto_adjust=False)
        if df is None or df.empty:
            raise ValueError(f"No price data returned for {symbol}")

        out = df.reset_index().rename(columns={"Datetime": "timestamp", "Date": "timestamp", "Close": "close"})
        missing = [c for c in ("timestamp", "close") if c not in out.columns]
        if missing:
            raise ValueError(f"Missing price columns for {symbol}: {missing}")

        out["close"] = pd.to_numeric(out["close"], errors="coerce")
        out = out.dropna(subset=["close"]).sort_values("timestamp").reset_index(drop=True)
        out = out[out["close"] > 0]
        if out.empty:
            raise ValueError(f"No valid closes after cleaning for {symbol}")
        return out[["timestamp", "close"]]

    def fetch_quote(self, symbol: str) -> PriceQuote:
        df = self.fetch_closes(symbol)
        latest = df.iloc[-1]
        return PriceQuote(
            symbol=symbol,
            price=float(latest["close"]),
            as_of=as_of_date(latest["timestamp"]),
        )
