from __future__ import annotations

from collections.abc import Mapping

from holdings_dashboard.gauges.catalog import METRIC_CONFIGS, MetricConfig
from holdings_dashboard.gauges.schemas import GaugeTile, ThresholdItem
from holdings_dashboard.gauges.segments import angle_for, zone_for
from holdings_dashboard.utils.validation import InvalidInputError, parse_number

DEFAULT_VALUE = 0.0


def format_metric_value(cfg: MetricConfig, value: float) -> str:
    if cfg.display_style == "percent":
        return f"{round(value * 100)}%"
    if cfg.display_style == "decimal1":
        return f"{value:.1f}"
    return f"{value:.2f}"


def _default_display(cfg: MetricConfig) -> str:
    return "0.0%" if cfg.display_style == "percent" else "0.0"


def validate_manual_value(cfg: MetricConfig, raw) -> float:
    value = parse_number(raw, cfg.title)
    low = cfg.manual_min if cfg.manual_min is not None else cfg.bands[0].min
    high = cfg.manual_max if cfg.manual_max is not None else cfg.bands[-1].max
    if value < low or value > high:
        raise InvalidInputError(f"{cfg.title} must be between {low:g} and {high:g}.")
    return value


def render_tile(cfg: MetricConfig, value: float | None, as_of: str | None = None) -> GaugeTile:
    thresholds = [ThresholdItem(label=label, range=rng) for label, rng in cfg.thresholds]

    if value is None and cfg.manual:
        # Manually entered metric with nothing entered yet: grey arc, no needle.
        return GaugeTile(
            key=cfg.key,
            title=cfg.title,
            help_url=cfg.help_url,
            display_value=_default_display(cfg),
            neutral=True,
            available=False,
            manual=True,
            thresholds=thresholds,
        )

    available = value is not None
    shown = value if value is not None else DEFAULT_VALUE
    return GaugeTile(
        key=cfg.key,
        title=cfg.title,
        help_url=cfg.help_url,
        display_value=format_metric_value(cfg, shown) if available else _default_display(cfg),
        value=value,
        needle_angle=round(angle_for(shown, cfg.bands), 4),
        zone=zone_for(shown, cfg.bands) if available else None,
        as_of=as_of,
        available=available,
        manual=cfg.manual,
        thresholds=thresholds,
    )


def render_board(
    metrics: Mapping[str, Mapping],
    manual_values: Mapping[str, float] | None = None,
    configs: tuple[MetricConfig, ...] = METRIC_CONFIGS,
) -> list[GaugeTile]:
    """Build one tile per config from live metrics (``{key: {value, as_of}}``) and manual entries."""
    manual_values = manual_values or {}
    tiles: list[GaugeTile] = []
    for cfg in configs:
        if cfg.manual:
            raw = manual_values.get(cfg.key)
            value = validate_manual_value(cfg, raw) if raw is not None else None
            tiles.append(render_tile(cfg, value))
            continue
        live = metrics.get(cfg.key) or {}
        tiles.append(render_tile(cfg, live.get("value"), live.get("as_of")))
    return tiles
