from __future__ import annotations

import datetime as dt
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Raw numeric form fields arrive as numbers, numeric strings or blanks; they are
# parsed by utils.validation so bad input gets a readable 400 instead of a 422.
NumberInput = Optional[Union[float, str]]

DisplayClass = Literal["positive", "negative", "neutral"]


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HoldingItem(ApiModel):
    id: int
    account_id: int | None = None
    symbol: str | None = None
    account_type: str | None = None
    nickname: str | None = None
    total_shares: float | None = None
    total_cost_basis: float = 0.0
    price_paid: float | None = None
    avg_cost_per_share: float | None = None
    is_baseline: bool = False
    cost_basis_is_proxy: bool = False
    notes: str | None = None


class HoldingsResponse(ApiModel):
    success: bool = True
    holdings: list[HoldingItem]


class HoldingResponse(ApiModel):
    success: bool = True
    holding: HoldingItem


class HoldingRowInput(ApiModel):
    account_type: str | None = None
    ticker: str | None = None
    shares: NumberInput = None
    price_paid: NumberInput = None


class HoldingsSyncRequest(ApiModel):
    holdings: list[HoldingRowInput] = Field(default_factory=list)


class HoldingsSyncResponse(ApiModel):
    success: bool = True
    count: int
    removed: int = 0


class ClearHoldingsResponse(ApiModel):
    success: bool = True
    deleted: int


class NotesUpdateRequest(ApiModel):
    notes: str | None = None


class SuccessResponse(ApiModel):
    success: bool = True


class TransactionCreateRequest(ApiModel):
    account_id: Optional[Union[int, str]] = None
    symbol: str | None = None
    transaction_type: str | None = None
    transaction_date: str | None = None
    shares: NumberInput = None
    price: NumberInput = None
    fees: NumberInput = None
    notes: str | None = None


class TransactionCreateResponse(ApiModel):
    success: bool = True
    transaction_id: int


class TransactionItem(ApiModel):
    id: int
    account_id: int
    account_type: str | None = None
    nickname: str | None = None
    symbol: str | None = None
    transaction_type: str
    transaction_date: dt.date
    shares: float | None = None
    price: float | None = None
    fees: float = 0.0
    total: float | None = None
    notes: str | None = None


class TransactionsResponse(ApiModel):
    success: bool = True
    transactions: list[TransactionItem]


class BaselineRequest(ApiModel):
    account_type: str | None = None
    account_label: str | None = None
    ticker: str | None = None
    account_value: NumberInput = None
    shares: NumberInput = None
    has_contrib: bool | None = None
    contrib_amount: NumberInput = None
    contrib_frequency: str | None = None
    notes: str | None = None


class BaselineResponse(ApiModel):
    success: bool = True
    account_id: int
    holding_id: int
    transaction_id: int
    schedule_id: int | None = None


class ContributionScheduleItem(ApiModel):
    schedule_id: int
    account_id: int
    amount: float
    frequency: str
    created_at: dt.datetime
    account_type: str | None = None
    nickname: str | None = None


class ContributionSchedulesResponse(ApiModel):
    success: bool = True
    schedules: list[ContributionScheduleItem]


class PriceItem(ApiModel):
    price: float
    as_of: str | None = None


class PricesResponse(ApiModel):
    success: bool
    prices: dict[str, PriceItem] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)


class MetricValue(ApiModel):
    value: float
    as_of: str | None = None


class MetricsResponse(ApiModel):
    success: bool
    metrics: dict[str, MetricValue] = Field(default_factory=dict)


class HoldingView(ApiModel):
    holding_id: int | None = None
    symbol: str | None = None
    display_symbol: str
    account_label: str
    total_shares: float | None = None
    total_cost_basis: float = 0.0
    current_price: float | None = None
    current_value: float | None = None
    gain: float | None = None
    gain_pct: float | None = None
    is_unknown: bool = False
    is_baseline_like: bool = False
    is_price_imputed: bool = False
    has_resolved_identity: bool = True
    has_trustworthy_gain_data: bool = False
    needs_details: bool = False
    details_message: str | None = None
    display_class: DisplayClass = "neutral"
    notes: str | None = None


class PortfolioTotals(ApiModel):
    total_value: float = 0.0
    total_cost_basis: float = 0.0
    total_gain: float = 0.0
    total_gain_pct: float = 0.0
    holdings_count: int = 0
    display_class: DisplayClass = "neutral"


class PortfolioSummaryResponse(ApiModel):
    success: bool = True
    holdings: list[HoldingView]
    totals: PortfolioTotals
    price_errors: dict[str, str] = Field(default_factory=dict)
