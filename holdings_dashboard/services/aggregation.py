"""Per-holding valuation and portfolio totals.

A holding is evaluated by running an ordered list of rules over a mutable
working state. Order matters: later rules read flags set by earlier ones.

1. classify_baseline       shares missing/zero but cost basis entered -> baseline snapshot
2. value_baseline_snapshot the entered amount is today's value; infer shares from the live price
3. impute_price            baseline or proxy cost + known symbol -> identity resolved, gain unknowable
4. compute_market_gain     regular positions: value = price * shares, gain against cost basis
5. withhold_proxy_gain     cost basis was today's price at import: no real gain exists
6. suppress_noise          sub-cent or sub-0.1% gains snap to exactly zero
7. classify_display        positive / negative / neutral with a half-cent deadband

``has_resolved_identity`` drives the "Needs Details" badge and
``has_trustworthy_gain_data`` decides whether gain figures are shown. A
price-imputed baseline has the first but never the second.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from holdings_dashboard.models.schemas import DisplayClass, HoldingView, PortfolioTotals
from holdings_dashboard.utils.validation import InvalidInputError, parse_number, parse_optional_number

GAIN_NOISE_ABS = 0.01
GAIN_NOISE_PCT = 0.1
DISPLAY_DEADBAND = 0.005
TOTALS_DEADBAND = 0.01

UNKNOWN_SYMBOL_LABEL = "UNKNOWN"
UNKNOWN_ACCOUNT_LABEL = "Unknown Account"
MISSING_DETAILS_MESSAGE = (
    "This holding is missing details regarding this investment. "
    "Please add its details so we can show accurate gains."
)


@dataclass(frozen=True)
class HoldingPosition:
    symbol: str | None
    total_shares: float | None
    total_cost_basis: float
    account_label: str | None = None
    holding_id: int | None = None
    notes: str | None = None
    cost_basis_is_proxy: bool = False

    def __post_init__(self) -> None:
        shares = parse_optional_number(self.total_shares, "total_shares")
        cost = parse_number(self.total_cost_basis if self.total_cost_basis is not None else 0.0, "total_cost_basis")
        if cost < 0:
            raise InvalidInputError("total_cost_basis must not be negative.")
        symbol = (self.symbol or "").strip().upper() or None
        object.__setattr__(self, "total_shares", shares)
        object.__setattr__(self, "total_cost_basis", cost)
        object.__setattr__(self, "symbol", symbol)
        object.__setattr__(self, "cost_basis_is_proxy", bool(self.cost_basis_is_proxy))


@dataclass
class _Evaluation:
    position: HoldingPosition
    price: float | None
    shares: float | None
    current_value: float | None = None
    gain: float | None = None
    gain_pct: float | None = None
    is_baseline_like: bool = False
    is_price_imputed: bool = False
    display_class: DisplayClass = "neutral"

    @property
    def has_symbol(self) -> bool:
        return self.position.symbol is not None


def classify_baseline(ev: _Evaluation) -> None:
    shares = ev.shares
    ev.is_baseline_like = (shares is None or shares <= 0) and ev.position.total_cost_basis > 0


def value_baseline_snapshot(ev: _Evaluation) -> None:
    if not ev.is_baseline_like:
        return
    if ev.has_symbol and ev.price is not None:
        ev.shares = ev.position.total_cost_basis / ev.price
    ev.current_value = ev.position.total_cost_basis
    ev.gain = None
    ev.gain_pct = None


def impute_price(ev: _Evaluation) -> None:
    baseline_priced = ev.is_baseline_like and ev.price is not None
    ev.is_price_imputed = ev.has_symbol and (baseline_priced or ev.position.cost_basis_is_proxy)


def compute_market_gain(ev: _Evaluation) -> None:
    if ev.is_baseline_like or ev.price is None or not ev.shares or ev.shares <= 0:
        return
    cost = ev.position.total_cost_basis
    ev.current_value = ev.price * ev.shares
    ev.gain = ev.current_value - cost
    ev.gain_pct = ev.gain / cost * 100 if cost > 0 else None


def withhold_proxy_gain(ev: _Evaluation) -> None:
    if ev.position.cost_basis_is_proxy:
        ev.gain = None
        ev.gain_pct = None


def suppress_noise(ev: _Evaluation) -> None:
    if ev.gain is None:
        return
    tiny_gain = abs(ev.gain) < GAIN_NOISE_ABS
    # No cost basis means no percentage; such gains are not reported either.
    tiny_pct = ev.gain_pct is None or abs(ev.gain_pct) < GAIN_NOISE_PCT
    if tiny_gain or tiny_pct:
        ev.gain = 0.0
        ev.gain_pct = 0.0


def classify_display(ev: _Evaluation) -> None:
    ev.display_class = classify_gain(ev.gain, DISPLAY_DEADBAND)


RULES: tuple[Callable[[_Evaluation], None], ...] = (
    classify_baseline,
    value_baseline_snapshot,
    impute_price,
    compute_market_gain,
    withhold_proxy_gain,
    suppress_noise,
    classify_display,
)


def classify_gain(gain: float | None, deadband: float = DISPLAY_DEADBAND) -> DisplayClass:
    if gain is None:
        return "neutral"
    if gain > deadband:
        return "positive"
    if gain < -deadband:
        return "negative"
    return "neutral"


def _validated_price(current_price) -> float | None:
    price = parse_optional_number(current_price, "current_price")
    if price is not None and price <= 0:
        # A zero or negative quote is no quote at all.
        return None
    return price


def evaluate_holding(position: HoldingPosition, current_price: float | None) -> HoldingView:
    ev = _Evaluation(position=position, price=_validated_price(current_price), shares=position.total_shares)
    for rule in RULES:
        rule(ev)

    is_unknown = not ev.has_symbol
    has_resolved_identity = not is_unknown and (not ev.is_baseline_like or ev.is_price_imputed)
    has_trustworthy_gain_data = (
        ev.gain is not None and not ev.is_baseline_like and not ev.is_price_imputed and not is_unknown
    )
    needs_details = not has_resolved_identity

    return HoldingView(
        holding_id=position.holding_id,
        symbol=position.symbol,
        display_symbol=position.symbol or UNKNOWN_SYMBOL_LABEL,
        account_label=position.account_label or UNKNOWN_ACCOUNT_LABEL,
        total_shares=ev.shares,
        total_cost_basis=position.total_cost_basis,
        current_price=ev.price,
        current_value=ev.current_value,
        gain=ev.gain,
        gain_pct=ev.gain_pct,
        is_unknown=is_unknown,
        # Legacy display flag: an imputed baseline no longer reads as "baseline".
        is_baseline_like=ev.is_baseline_like and not ev.is_price_imputed,
        is_price_imputed=ev.is_price_imputed,
        has_resolved_identity=has_resolved_identity,
        has_trustworthy_gain_data=has_trustworthy_gain_data,
        needs_details=needs_details,
        details_message=MISSING_DETAILS_MESSAGE if needs_details else None,
        display_class=ev.display_class,
        notes=position.notes,
    )


def evaluate_holdings(
    positions: Iterable[HoldingPosition],
    prices: Mapping[str, float],
) -> list[HoldingView]:
    return [evaluate_holding(p, prices.get(p.symbol) if p.symbol else None) for p in positions]


def _totals_value(view: HoldingView) -> float:
    if view.current_value is not None:
        return view.current_value
    # No live valuation: fall back to what the user entered.
    return view.total_cost_basis if view.total_cost_basis > 0 else 0.0


def portfolio_totals(views: Iterable[HoldingView]) -> PortfolioTotals:
    total_value = 0.0
    total_cost = 0.0
    count = 0
    for view in views:
        value = _totals_value(view)
        if value > 0 or view.total_cost_basis > 0:
            total_value += value
            total_cost += view.total_cost_basis
            count += 1

    total_gain = total_value - total_cost
    total_gain_pct = total_gain / total_cost * 100 if total_cost > 0 else 0.0
    return PortfolioTotals(
        total_value=total_value,
        total_cost_basis=total_cost,
        total_gain=total_gain,
        total_gain_pct=total_gain_pct,
        holdings_count=count,
        display_class=classify_gain(total_gain, TOTALS_DEADBAND),
    )
