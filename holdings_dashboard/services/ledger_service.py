from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from holdings_dashboard.config import settings
from holdings_dashboard.models.schemas import ContributionScheduleItem, TransactionCreateRequest, TransactionItem
from holdings_dashboard.models.tables import Account, ContributionSchedule, Holding, Transaction
from holdings_dashboard.utils.validation import (
    InvalidInputError,
    is_blank,
    normalize_symbol,
    parse_optional_number,
    require_non_negative,
    require_positive,
)

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("BUY", "SELL", "DIVIDEND", "CONTRIBUTION", "BASELINE")
SHARE_EPSILON = 1e-9


def calc_total(transaction_type: str, shares: float | None, price: float | None, fees: float | None) -> float | None:
    if shares is None or price is None:
        return None
    gross = shares * price
    fees = fees or 0.0
    return gross + fees if transaction_type == "BUY" else gross - fees


def _parse_date(raw: str | None) -> date:
    try:
        return date.fromisoformat(str(raw).strip()[:10])
    except ValueError as exc:
        raise InvalidInputError("transactionDate must be a date in YYYY-MM-DD format.") from exc


def _parse_account_id(raw) -> int:
    try:
        account_id = int(str(raw).strip())
    except ValueError as exc:
        raise InvalidInputError("accountId must be an integer.") from exc
    if account_id <= 0:
        raise InvalidInputError("accountId must be an integer.")
    return account_id


def to_transaction_item(row: Transaction) -> TransactionItem:
    return TransactionItem(
        id=row.id,
        account_id=row.account_id,
        account_type=row.account.account_type if row.account else None,
        nickname=row.account.nickname if row.account else None,
        symbol=row.symbol,
        transaction_type=row.transaction_type,
        transaction_date=row.transaction_date,
        shares=row.shares,
        price=row.price,
        fees=row.fees or 0.0,
        total=calc_total(row.transaction_type, row.shares, row.price, row.fees),
        notes=row.notes,
    )


class LedgerService:
    def validate(self, payload: TransactionCreateRequest) -> dict:
        if is_blank(payload.account_id) or is_blank(payload.transaction_type) or is_blank(payload.transaction_date):
            raise InvalidInputError("accountId, transactionType, and transactionDate are required.")

        tx_type = payload.transaction_type.strip().upper()
        if tx_type not in TRANSACTION_TYPES:
            raise InvalidInputError(f"transactionType must be one of: {', '.join(TRANSACTION_TYPES)}.")

        symbol = normalize_symbol(payload.symbol)
        if tx_type == "BASELINE":
            shares = parse_optional_number(payload.shares, "shares")
            price = parse_optional_number(payload.price, "price")
        else:
            if symbol is None or is_blank(payload.shares) or is_blank(payload.price):
                raise InvalidInputError("symbol, shares, and price are required for non-baseline transactions.")
            shares = require_positive(payload.shares, "shares")
            price = require_positive(payload.price, "price")

        fees = require_non_negative(payload.fees, "fees") if not is_blank(payload.fees) else 0.0
        return {
            "account_id": _parse_account_id(payload.account_id),
            "symbol": symbol,
            "transaction_type": tx_type,
            "transaction_date": _parse_date(payload.transaction_date),
            "shares": shares,
            "price": price,
            "fees": fees,
            "notes": (payload.notes or "").strip() or None,
        }

    def _position_holding(self, db: Session, user_id: int, account_id: int, symbol: str) -> Holding | None:
        return db.execute(
            select(Holding)
            .where(
                Holding.user_id == user_id,
                Holding.account_id == account_id,
                Holding.symbol == symbol,
                Holding.is_baseline.is_(False),
            )
            .order_by(Holding.id.asc())
        ).scalars().first()

    def _apply_to_holding(self, db: Session, user_id: int, data: dict) -> None:
        tx_type = data["transaction_type"]
        if tx_type not in ("BUY", "SELL"):
            return

        shares, price, fees = data["shares"], data["price"], data["fees"]
        holding = self._position_holding(db, user_id, data["account_id"], data["symbol"])

        if tx_type == "BUY":
            if holding is None:
                holding = Holding(
                    user_id=user_id,
                    account_id=data["account_id"],
                    symbol=data["symbol"],
                    total_shares=0.0,
                    total_cost_basis=0.0,
                    is_baseline=False,
                )
                db.add(holding)
            new_shares = (holding.total_shares or 0.0) + shares
            holding.total_cost_basis = (holding.total_cost_basis or 0.0) + shares * price + fees
            holding.total_shares = new_shares
            holding.avg_cost_per_share = holding.total_cost_basis / new_shares
            holding.price_paid = holding.avg_cost_per_share
            return

        held = (holding.total_shares or 0.0) if holding is not None else 0.0
        if holding is None or shares > held + SHARE_EPSILON:
            raise InvalidInputError(f"Cannot sell {shares:g} shares of {data['symbol']}; only {held:g} held.")
        remaining = max(held - shares, 0.0)
        if remaining <= SHARE_EPSILON:
            holding.total_shares = 0.0
            holding.total_cost_basis = 0.0
            return
        # Selling keeps the average cost; basis shrinks with the share count.
        avg = holding.avg_cost_per_share or (holding.total_cost_basis / held)
        holding.total_shares = remaining
        holding.total_cost_basis = avg * remaining

    def create_transaction(self, db: Session, payload: TransactionCreateRequest, user_id: int | None = None) -> int:
        user_id = user_id if user_id is not None else settings.default_user_id
        data = self.validate(payload)

        account = db.get(Account, data["account_id"])
        if account is None or account.user_id != user_id:
            raise InvalidInputError("accountId does not match a known account.")

        try:
            self._apply_to_holding(db, user_id, data)
            tx = Transaction(user_id=user_id, **data)
            db.add(tx)
            db.commit()
        except InvalidInputError:
            db.rollback()
            raise
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Transaction insert rolled back", extra={"account_id": data["account_id"]})
            raise

        logger.info(
            "Transaction recorded",
            extra={"transaction_id": tx.id, "type": data["transaction_type"], "symbol": data["symbol"]},
        )
        return tx.id

    def list_transactions(
        self,
        db: Session,
        account_id: int | None = None,
        transaction_type: str | None = None,
        user_id: int | None = None,
    ) -> list[Transaction]:
        user_id = user_id if user_id is not None else settings.default_user_id
        stmt = select(Transaction).options(joinedload(Transaction.account)).where(Transaction.user_id == user_id)
        if account_id is not None:
            stmt = stmt.where(Transaction.account_id == account_id)
        if transaction_type:
            stmt = stmt.where(Transaction.transaction_type == transaction_type.strip().upper())
        stmt = stmt.order_by(Transaction.transaction_date.desc(), Transaction.id.desc())
        return db.execute(stmt).scalars().all()

    def list_schedules(self, db: Session, user_id: int | None = None) -> list[ContributionScheduleItem]:
        user_id = user_id if user_id is not None else settings.default_user_id
        rows = db.execute(
            select(ContributionSchedule)
            .options(joinedload(ContributionSchedule.account))
            .where(ContributionSchedule.user_id == user_id)
            .order_by(ContributionSchedule.id.asc())
        ).scalars().all()
        return [
            ContributionScheduleItem(
                schedule_id=row.id,
                account_id=row.account_id,
                amount=row.amount,
                frequency=row.frequency,
                created_at=row.created_at,
                account_type=row.account.account_type if row.account else None,
                nickname=row.account.nickname if row.account else None,
            )
            for row in rows
        ]
