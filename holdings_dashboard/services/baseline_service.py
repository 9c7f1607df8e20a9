from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from holdings_dashboard.config import settings
from holdings_dashboard.models.tables import Account, ContributionSchedule, Holding, Transaction
from holdings_dashboard.services.price_service import PriceService
from holdings_dashboard.utils.time import today_utc
from holdings_dashboard.utils.validation import (
    InvalidInputError,
    is_blank,
    normalize_symbol,
    parse_optional_number,
    require_positive,
)

logger = logging.getLogger(__name__)

BASELINE_TRANSACTION_TYPE = "BASELINE"
BASELINE_DEFAULT_NOTE = "Baseline imported balance"
SHARE_DECIMALS = 6


@dataclass(frozen=True)
class BaselineInput:
    account_type: str | None
    account_value: object
    known_shares: object = None
    ticker_symbol: str | None = None
    live_price: float | None = None
    account_label: str | None = None
    has_contrib: bool = False
    contrib_amount: object = None
    contrib_frequency: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BaselineDerivation:
    account_value: float
    total_shares: float | None
    avg_cost_per_share: float | None
    price_paid_used_as_proxy: bool


def derive_baseline(data: BaselineInput) -> BaselineDerivation:
    """Work out share count and per-share cost for a lump-sum account balance.

    With a known share count the balance is spread over those shares. Without
    one, today's price (when a ticker and a positive live price are available)
    stands in for the purchase price, so the result cannot support real gain
    figures. Otherwise the holding stays a value-only placeholder.
    """
    if is_blank(data.account_value):
        raise InvalidInputError("accountValue is required.")
    account_value = require_positive(data.account_value, "accountValue")

    if not is_blank(data.known_shares):
        known_shares = require_positive(data.known_shares, "shares")
        return BaselineDerivation(
            account_value=account_value,
            total_shares=known_shares,
            avg_cost_per_share=account_value / known_shares,
            price_paid_used_as_proxy=False,
        )

    live_price = parse_optional_number(data.live_price, "livePrice")
    if not is_blank(data.ticker_symbol) and live_price is not None and live_price > 0:
        return BaselineDerivation(
            account_value=account_value,
            total_shares=round(account_value / live_price, SHARE_DECIMALS),
            avg_cost_per_share=live_price,
            price_paid_used_as_proxy=True,
        )

    return BaselineDerivation(
        account_value=account_value,
        total_shares=None,
        avg_cost_per_share=None,
        price_paid_used_as_proxy=False,
    )


class BaselineService:
    def __init__(self, price_service: PriceService | None = None) -> None:
        self.price_service = price_service or PriceService()

    def _resolve_live_price(self, symbol: str) -> float | None:
        try:
            return self.price_service.get_price(symbol)
        except Exception as exc:
            logger.warning("Baseline live price lookup failed", extra={"symbol": symbol, "error": str(exc)})
            return None

    def prepare(self, data: BaselineInput) -> tuple[BaselineInput, BaselineDerivation]:
        """Validate the payload, look up a live price when it is needed, and derive."""
        account_type = (data.account_type or "").strip()
        if not account_type:
            raise InvalidInputError("accountType and accountValue are required.")
        symbol = normalize_symbol(data.ticker_symbol)

        contrib_amount = None
        contrib_frequency = (data.contrib_frequency or "").strip() or None
        if data.has_contrib and not is_blank(data.contrib_amount) and contrib_frequency:
            contrib_amount = require_positive(data.contrib_amount, "contribAmount")

        live_price = data.live_price
        # Only pay for a quote when the balance cannot be split over known shares.
        if live_price is None and symbol and is_blank(data.known_shares) and not is_blank(data.account_value):
            require_positive(data.account_value, "accountValue")
            live_price = self._resolve_live_price(symbol)

        clean = BaselineInput(
            account_type=account_type,
            account_value=data.account_value,
            known_shares=data.known_shares,
            ticker_symbol=symbol,
            live_price=live_price,
            account_label=(data.account_label or "").strip() or None,
            has_contrib=bool(data.has_contrib and contrib_amount is not None),
            contrib_amount=contrib_amount,
            contrib_frequency=contrib_frequency if contrib_amount is not None else None,
            notes=(data.notes or "").strip() or None,
        )
        return clean, derive_baseline(clean)

    def create_baseline(self, db: Session, data: BaselineInput, user_id: int | None = None) -> dict[str, int | None]:
        clean, derived = self.prepare(data)
        user_id = user_id if user_id is not None else settings.default_user_id

        try:
            account = Account(
                user_id=user_id,
                account_type=clean.account_type,
                nickname=clean.account_label,
                currency=settings.default_currency,
            )
            db.add(account)
            db.flush()

            holding = Holding(
                user_id=user_id,
                account_id=account.id,
                symbol=clean.ticker_symbol,
                price_paid=derived.avg_cost_per_share,
                total_cost_basis=derived.account_value,
                total_shares=derived.total_shares,
                avg_cost_per_share=derived.avg_cost_per_share,
                is_baseline=True,
                cost_basis_is_proxy=derived.price_paid_used_as_proxy,
                notes=clean.notes,
            )
            db.add(holding)

            tx = Transaction(
                user_id=user_id,
                account_id=account.id,
                symbol=clean.ticker_symbol,
                transaction_type=BASELINE_TRANSACTION_TYPE,
                transaction_date=today_utc(),
                shares=derived.total_shares,
                price=derived.avg_cost_per_share,
                fees=0.0,
                notes=clean.notes or BASELINE_DEFAULT_NOTE,
            )
            db.add(tx)

            schedule = None
            if clean.has_contrib:
                schedule = ContributionSchedule(
                    user_id=user_id,
                    account_id=account.id,
                    amount=float(clean.contrib_amount),
                    frequency=clean.contrib_frequency,
                )
                db.add(schedule)

            db.flush()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Baseline creation rolled back", extra={"account_type": clean.account_type})
            raise

        logger.info(
            "Baseline account created",
            extra={
                "account_id": account.id,
                "holding_id": holding.id,
                "price_proxy": derived.price_paid_used_as_proxy,
            },
        )
        return {
            "account_id": account.id,
            "holding_id": holding.id,
            "transaction_id": tx.id,
            "schedule_id": schedule.id if schedule is not None else None,
        }
