import pandas as pd
import pytest

from holdings_dashboard.integrations.market_data.yfinance_client import YFinanceClient
from holdings_dashboard.models.quote import PriceQuote
from holdings_dashboard.services.price_service import PriceService, parse_tickers, unique_symbols


class FakeClient:
    def __init__(self, prices: dict[str, float]) -> None:
        self.prices = prices
        self.calls: list[str] = []

    def fetch_quote(self, symbol: str) -> PriceQuote:
        self.calls.append(symbol)
        if symbol not in self.prices:
            raise ValueError(f"No price data returned for {symbol}")
        return PriceQuote(symbol=symbol, price=self.prices[symbol], as_of="2026-10-16")


def test_parse_tickers() -> None:
    assert parse_tickers(None) == []
    assert parse_tickers(" , ") == []
    assert parse_tickers("vti, qqq,VTI,,") == ["VTI", "QQQ"]


def test_unique_symbols_skips_blanks() -> None:
    assert unique_symbols(["a", None, "", " A ", "b"]) == ["A", "B"]


def test_get_prices_reports_failures_per_symbol() -> None:
    client = FakeClient({"VTI": 250.0, "QQQ": 450.0})
    service = PriceService(client=client, max_workers=4)

    prices, errors = service.get_prices(["vti", "QQQ", "NOPE", "vti"])

    assert {k: v.price for k, v in prices.items()} == {"VTI": 250.0, "QQQ": 450.0}
    assert errors == {"NOPE": "No price data returned for NOPE"}
    assert sorted(client.calls) == ["NOPE", "QQQ", "VTI"]


def test_get_prices_with_nothing_to_fetch() -> None:
    client = FakeClient({})
    prices, errors = PriceService(client=client).get_prices([None, " "])

    assert prices == {}
    assert errors == {}
    assert client.calls == []


def test_get_price() -> None:
    service = PriceService(client=FakeClient({"VTI": 250.0}))

    assert service.get_price("vti") == 250.0
    assert service.get_price("XYZ") is None


def test_yfinance_client_uses_last_valid_close(monkeypatch) -> None:
    frame = pd.DataFrame(
        {"Close": [100.0, 101.5, float("nan")]},
        index=pd.DatetimeIndex(["2026-10-14", "2026-10-15", "2026-10-16"], name="Date"),
    )

    class FakeTicker:
        def __init__(self, symbol: str) -> None:
            self.symbol = symbol

        def history(self, **kwargs) -> pd.DataFrame:
            return frame

    monkeypatch.setattr("holdings_dashboard.integrations.market_data.yfinance_client.yf.Ticker", FakeTicker)

    quote = YFinanceClient(period="5d").fetch_quote("VTI")

    assert quote.price == 101.5
    assert quote.as_of == "2026-10-15"


def test_yfinance_client_raises_on_empty_history(monkeypatch) -> None:
    class EmptyTicker:
        def __init__(self, symbol: str) -> None:
            pass

        def history(self, **kwargs) -> pd.DataFrame:
            return pd.DataFrame()

    monkeypatch.setattr("holdings_dashboard.integrations.market_data.yfinance_client.yf.Ticker", EmptyTicker)

    with pytest.raises(ValueError):
        YFinanceClient().fetch_quote("VTI")
