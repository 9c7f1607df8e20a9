from __future__ import annotations

from dataclasses import dataclass

from holdings_dashboard.gauges.segments import MetricBand, validate_bands

HEALTHY = "healthy"
CAUTION = "caution"
RISK = "risk"


@dataclass(frozen=True)
class MetricConfig:
    key: str
    title: str
    bands: tuple[MetricBand, ...]
    thresholds: tuple[tuple[str, str], ...]
    display_style: str = "decimal2"
    help_url: str | None = None
    manual: bool = False
    manual_min: float | None = None
    manual_max: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "bands", validate_bands(self.bands))


SHILLER = MetricConfig(
    key="shiller",
    title="Shiller CAPE® Ratio",
    help_url="https://www.longtermtrends.net/sp500-price-earnings-shiller-pe-ratio/",
    bands=(
        MetricBand(5, 20, -90, -30, HEALTHY),
        MetricBand(20, 30, -30, 30, CAUTION),
        MetricBand(30, 50, 30, 90, RISK),
    ),
    thresholds=(("Healthy", "5–19.99"), ("Caution", "20–29.99"), ("Risk", "≥ 30")),
    manual=True,
    manual_min=5.0,
    manual_max=50.0,
)

BREADTH = MetricConfig(
    key="breadth",
    title="Market Breadth",
    bands=(
        MetricBand(0.00, 0.27, 30, 90, RISK),
        MetricBand(0.27, 0.30, -30, 30, CAUTION),
        MetricBand(0.30, 0.40, -90, -30, HEALTHY),
    ),
    thresholds=(("Healthy", "30–40%"), ("Caution", "27–29.99%"), ("Risk", "0–26.99%")),
    display_style="percent",
)

SPREADS = MetricConfig(
    key="spreads",
    title="Credit Spreads",
    bands=(
        MetricBand(0.75, 0.90, 30, 90, RISK),
        MetricBand(0.90, 0.95, -30, 30, CAUTION),
        MetricBand(0.95, 1.10, -90, -30, HEALTHY),
    ),
    thresholds=(("Healthy", "0.95–1.10"), ("Caution", "0.90–0.9499"), ("Risk", "0.75–0.8999")),
)

YIELD_CURVE = MetricConfig(
    key="yield",
    title="Yield Curve",
    bands=(
        MetricBand(0.75, 0.90, 30, 90, RISK),
        MetricBand(0.90, 1.15, -30, 30, CAUTION),
        MetricBand(1.15, 1.40, -90, -30, HEALTHY),
    ),
    thresholds=(("Healthy", "1.15–1.40"), ("Caution", "0.90–1.1499"), ("Risk", "0.75–0.8999")),
)

VIX = MetricConfig(
    key="vix",
    title="VIX",
    bands=(
        MetricBand(10, 22, -90, -30, HEALTHY),
        MetricBand(22, 28, -30, 30, CAUTION),
        MetricBand(28, 40, 30, 90, RISK),
    ),
    thresholds=(("Healthy", "10–21.99"), ("Caution", "22–27.99"), ("Risk", "≥ 28")),
    display_style="decimal1",
)

METRIC_CONFIGS: tuple[MetricConfig, ...] = (SHILLER, BREADTH, SPREADS, YIELD_CURVE, VIX)


def get_metric_config(key: str) -> MetricConfig:
    for cfg in METRIC_CONFIGS:
        if cfg.key == key:
            return cfg
    raise KeyError(key)
