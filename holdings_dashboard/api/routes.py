from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from holdings_dashboard.models.db import get_db_session
from holdings_dashboard.models.schemas import (
    BaselineRequest,
    BaselineResponse,
    ClearHoldingsResponse,
    ContributionSchedulesResponse,
    HoldingResponse,
    HoldingsResponse,
    HoldingsSyncRequest,
    HoldingsSyncResponse,
    MetricsResponse,
    MetricValue,
    NotesUpdateRequest,
    PortfolioSummaryResponse,
    PriceItem,
    PricesResponse,
    SuccessResponse,
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionsResponse,
)
from holdings_dashboard.services.baseline_service import BaselineInput, BaselineService
from holdings_dashboard.services.holdings_service import HoldingsService, to_holding_item
from holdings_dashboard.services.ledger_service import LedgerService, to_transaction_item
from holdings_dashboard.services.metrics_service import MetricsService
from holdings_dashboard.services.price_service import PriceService, parse_tickers
from holdings_dashboard.utils.validation import InvalidInputError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["holdings-dashboard"])

price_service = PriceService()
metrics_service = MetricsService(price_service)
holdings_service = HoldingsService(price_service)
baseline_service = BaselineService(price_service)
ledger_service = LedgerService()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/holdings", response_model=HoldingsResponse)
def list_holdings(db: Session = Depends(get_db_session)):
    rows = holdings_service.list_holdings(db)
    return HoldingsResponse(holdings=[to_holding_item(row) for row in rows])


@router.post("/holdings", response_model=HoldingsSyncResponse)
def sync_holdings(payload: HoldingsSyncRequest, db: Session = Depends(get_db_session)):
    try:
        saved, removed = holdings_service.sync_rows(db, payload.holdings)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return HoldingsSyncResponse(count=saved, removed=removed)


@router.delete("/holdings", response_model=ClearHoldingsResponse)
def clear_holdings(db: Session = Depends(get_db_session)):
    return ClearHoldingsResponse(deleted=holdings_service.clear_all(db))


@router.get("/holdings/{ticker}", response_model=HoldingResponse)
def get_holding(ticker: str, db: Session = Depends(get_db_session)):
    try:
        row = holdings_service.get_by_ticker(db, ticker)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if row is None:
        raise HTTPException(status_code=404, detail=f"No holding found for {ticker.strip().upper()}")
    return HoldingResponse(holding=to_holding_item(row))


@router.put("/holdings/{holding_id}/notes", response_model=SuccessResponse)
def update_holding_notes(holding_id: int, payload: NotesUpdateRequest, db: Session = Depends(get_db_session)):
    if not holdings_service.update_notes(db, holding_id, payload.notes):
        raise HTTPException(status_code=404, detail="Holding not found")
    return SuccessResponse()


@router.get("/portfolio/summary", response_model=PortfolioSummaryResponse)
def portfolio_summary(db: Session = Depends(get_db_session)):
    return holdings_service.summary(db)


@router.get("/prices", response_model=PricesResponse)
def get_prices(tickers: str | None = Query(default=None, description="Comma separated symbols, e.g. VTI,QQQ")):
    symbols = parse_tickers(tickers)
    if not symbols:
        return JSONResponse(
            status_code=400,
            content={"success": False, "prices": {}, "errors": {"_global": "Missing tickers query parameter"}},
        )

    quotes, errors = price_service.get_prices(symbols)
    if errors:
        logger.info("Some prices unavailable", extra={"requested": len(symbols), "failed": sorted(errors)})
    return PricesResponse(
        success=bool(quotes),
        prices={symbol: PriceItem(price=q.price, as_of=q.as_of) for symbol, q in quotes.items()},
        errors=errors,
    )


@router.get("/metrics", response_model=MetricsResponse)
def get_metrics():
    metrics, success = metrics_service.get_metrics()
    return MetricsResponse(
        success=success,
        metrics={key: MetricValue(value=m["value"], as_of=m["as_of"]) for key, m in metrics.items()},
    )


@router.post("/transactions", response_model=TransactionCreateResponse)
def create_transaction(payload: TransactionCreateRequest, db: Session = Depends(get_db_session)):
    try:
        transaction_id = ledger_service.create_transaction(db, payload)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return TransactionCreateResponse(transaction_id=transaction_id)


@router.get("/transactions", response_model=TransactionsResponse)
def list_transactions(
    account_id: int | None = Query(default=None, alias="accountId"),
    transaction_type: str | None = Query(default=None, alias="transactionType"),
    db: Session = Depends(get_db_session),
):
    rows = ledger_service.list_transactions(db, account_id=account_id, transaction_type=transaction_type)
    return TransactionsResponse(transactions=[to_transaction_item(row) for row in rows])


@router.post("/baseline", response_model=BaselineResponse)
def create_baseline(payload: BaselineRequest, db: Session = Depends(get_db_session)):
    data = BaselineInput(
        account_type=payload.account_type,
        account_value=payload.account_value,
        known_shares=payload.shares,
        ticker_symbol=payload.ticker,
        account_label=payload.account_label,
        has_contrib=bool(payload.has_contrib),
        contrib_amount=payload.contrib_amount,
        contrib_frequency=payload.contrib_frequency,
        notes=payload.notes,
    )
    try:
        created = baseline_service.create_baseline(db, data)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return BaselineResponse(**created)


@router.get("/contribution-schedules", response_model=ContributionSchedulesResponse)
def list_contribution_schedules(db: Session = Depends(get_db_session)):
    return ContributionSchedulesResponse(schedules=ledger_service.list_schedules(db))
