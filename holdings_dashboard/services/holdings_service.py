from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from holdings_dashboard.config import settings
from holdings_dashboard.models.schemas import HoldingItem, HoldingRowInput, PortfolioSummaryResponse
from holdings_dashboard.models.tables import Account, Holding
from holdings_dashboard.services.aggregation import HoldingPosition, evaluate_holdings, portfolio_totals
from holdings_dashboard.services.price_service import PriceService
from holdings_dashboard.utils.validation import (
    InvalidInputError,
    is_blank,
    normalize_symbol,
    require_non_negative,
)

logger = logging.getLogger(__name__)


def _account_label(account: Account | None) -> str | None:
    if account is None:
        return None
    return account.nickname or account.account_type


def to_holding_item(row: Holding) -> HoldingItem:
    return HoldingItem(
        id=row.id,
        account_id=row.account_id,
        symbol=row.symbol,
        account_type=row.account.account_type if row.account else None,
        nickname=row.account.nickname if row.account else None,
        total_shares=row.total_shares,
        total_cost_basis=row.total_cost_basis or 0.0,
        price_paid=row.price_paid,
        avg_cost_per_share=row.avg_cost_per_share,
        is_baseline=bool(row.is_baseline),
        cost_basis_is_proxy=bool(row.cost_basis_is_proxy),
        notes=row.notes,
    )


def to_position(row: Holding) -> HoldingPosition:
    return HoldingPosition(
        symbol=row.symbol,
        total_shares=row.total_shares,
        total_cost_basis=row.total_cost_basis or 0.0,
        account_label=_account_label(row.account),
        holding_id=row.id,
        notes=row.notes,
        cost_basis_is_proxy=bool(row.cost_basis_is_proxy),
    )


class HoldingsService:
    def __init__(self, price_service: PriceService | None = None) -> None:
        self.price_service = price_service or PriceService()

    def list_holdings(self, db: Session, user_id: int | None = None) -> list[Holding]:
        user_id = user_id if user_id is not None else settings.default_user_id
        return db.execute(
            select(Holding)
            .options(joinedload(Holding.account))
            .where(Holding.user_id == user_id)
            .order_by(Holding.symbol.asc(), Holding.id.asc())
        ).scalars().all()

    def get_by_ticker(self, db: Session, ticker: str, user_id: int | None = None) -> Holding | None:
        user_id = user_id if user_id is not None else settings.default_user_id
        symbol = normalize_symbol(ticker)
        if symbol is None:
            raise InvalidInputError("ticker is required.")
        return db.execute(
            select(Holding)
            .options(joinedload(Holding.account))
            .where(Holding.user_id == user_id, Holding.symbol == symbol)
            .order_by(Holding.id.asc())
        ).scalars().first()

    def _get_or_create_account(self, db: Session, account_type: str, user_id: int) -> Account:
        account = db.execute(
            select(Account)
            .where(Account.user_id == user_id, Account.account_type == account_type)
            .order_by(Account.id.asc())
        ).scalars().first()
        if account is not None:
            return account
        account = Account(user_id=user_id, account_type=account_type, currency=settings.default_currency)
        db.add(account)
        db.flush()
        return account

    @staticmethod
    def _clean_row(row: HoldingRowInput) -> tuple[str, str, float, float] | None:
        if all(is_blank(v) for v in (row.account_type, row.ticker, row.shares, row.price_paid)):
            return None
        account_type = (row.account_type or "").strip()
        symbol = normalize_symbol(row.ticker)
        if not account_type or symbol is None:
            raise InvalidInputError("accountType and ticker are required for each holding row.")
        shares = require_non_negative(row.shares if not is_blank(row.shares) else 0, "shares")
        price_paid = require_non_negative(row.price_paid if not is_blank(row.price_paid) else 0, "pricePaid")
        return account_type, symbol, shares, price_paid

    def sync_rows(self, db: Session, rows: list[HoldingRowInput], user_id: int | None = None) -> tuple[int, int]:
        """Replace the manually entered holdings with ``rows``.

        Rows are upserted by (account type, ticker). Manual holdings missing from
        the payload are removed; baseline holdings are left alone. An empty
        payload clears every holding. Returns (saved, removed).
        """
        user_id = user_id if user_id is not None else settings.default_user_id
        if not rows:
            removed = self.clear_all(db, user_id=user_id)
            return 0, removed

        cleaned = [c for c in (self._clean_row(r) for r in rows) if c is not None]

        try:
            kept_ids: set[int] = set()
            for account_type, symbol, shares, price_paid in cleaned:
                account = self._get_or_create_account(db, account_type, user_id)
                holding = db.execute(
                    select(Holding).where(
                        Holding.user_id == user_id,
                        Holding.account_id == account.id,
                        Holding.symbol == symbol,
                        Holding.is_baseline.is_(False),
                    )
                ).scalars().first()
                if holding is None:
                    holding = Holding(user_id=user_id, account_id=account.id, symbol=symbol, is_baseline=False)
                    db.add(holding)
                holding.total_shares = shares
                holding.price_paid = price_paid
                holding.avg_cost_per_share = price_paid
                holding.total_cost_basis = shares * price_paid
                db.flush()
                kept_ids.add(holding.id)

            stale = select(Holding.id).where(Holding.user_id == user_id, Holding.is_baseline.is_(False))
            if kept_ids:
                stale = stale.where(Holding.id.not_in(sorted(kept_ids)))
            stale_ids = db.execute(stale).scalars().all()
            if stale_ids:
                db.execute(delete(Holding).where(Holding.id.in_(stale_ids)))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Holdings sync rolled back", extra={"rows": len(cleaned)})
            raise

        logger.info("Holdings synced", extra={"saved": len(kept_ids), "removed": len(stale_ids)})
        return len(kept_ids), len(stale_ids)

    def clear_all(self, db: Session, user_id: int | None = None) -> int:
        user_id = user_id if user_id is not None else settings.default_user_id
        result = db.execute(delete(Holding).where(Holding.user_id == user_id))
        db.commit()
        logger.info("Holdings cleared", extra={"deleted": result.rowcount})
        return result.rowcount or 0

    def update_notes(self, db: Session, holding_id: int, notes: str | None, user_id: int | None = None) -> bool:
        user_id = user_id if user_id is not None else settings.default_user_id
        holding = db.get(Holding, holding_id)
        if holding is None or holding.user_id != user_id:
            return False
        holding.notes = (notes or "").strip() or None
        db.commit()
        return True

    def positions(self, db: Session, user_id: int | None = None) -> list[HoldingPosition]:
        return [to_position(row) for row in self.list_holdings(db, user_id=user_id)]

    def summary(self, db: Session, user_id: int | None = None) -> PortfolioSummaryResponse:
        positions = self.positions(db, user_id=user_id)
        quotes, errors = self.price_service.get_prices(p.symbol for p in positions)
        prices = {symbol: quote.price for symbol, quote in quotes.items()}
        views = evaluate_holdings(positions, prices)
        return PortfolioSummaryResponse(
            holdings=views,
            totals=portfolio_totals(views),
            price_errors=errors,
        )
