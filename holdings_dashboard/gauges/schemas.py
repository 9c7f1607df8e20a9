from __future__ import annotations

from pydantic import Field

from holdings_dashboard.models.schemas import ApiModel


class ThresholdItem(ApiModel):
    label: str
    range: str


class GaugeTile(ApiModel):
    key: str
    title: str
    help_url: str | None = None
    display_value: str
    value: float | None = None
    needle_angle: float | None = None
    zone: str | None = None
    as_of: str | None = None
    neutral: bool = False
    available: bool = True
    manual: bool = False
    thresholds: list[ThresholdItem] = Field(default_factory=list)


class GaugesResponse(ApiModel):
    success: bool
    tiles: list[GaugeTile]
