from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


@pytest.fixture
def fake_quotes(monkeypatch) -> dict[str, float]:
    """Replace the yfinance lookup with a dict of symbol -> last close."""
    from holdings_dashboard.integrations.market_data.yfinance_client import YFinanceClient
    from holdings_dashboard.models.quote import PriceQuote

    prices: dict[str, float] = {}

    def fetch_quote(self, symbol: str) -> PriceQuote:
        if symbol not in prices:
            raise ValueError(f"No price data returned for {symbol}")
        return PriceQuote(symbol=symbol, price=prices[symbol], as_of="2026-10-16")

    monkeypatch.setattr(YFinanceClient, "fetch_quote", fetch_quote)
    return prices


@pytest.fixture
def test_ctx(tmp_path, monkeypatch, fake_quotes) -> Generator[dict, None, None]:
    import holdings_dashboard.models.db as db_module
    from holdings_dashboard.models.db import Base

    db_file = tmp_path / "test.db"
    test_url = f"sqlite:///{db_file}"
    engine = create_engine(test_url, connect_args={"check_same_thread": False}, future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    monkeypatch.setattr(db_module, "engine", engine, raising=False)
    monkeypatch.setattr(db_module, "SessionLocal", TestingSessionLocal, raising=False)

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    from holdings_dashboard.app import app

    with TestClient(app) as client:
        yield {
            "client": client,
            "session_local": TestingSessionLocal,
            "engine": engine,
            "quotes": fake_quotes,
        }

    Base.metadata.drop_all(bind=engine)
