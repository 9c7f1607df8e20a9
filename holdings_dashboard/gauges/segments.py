"""Map a metric value onto a semicircular gauge needle.

A gauge is described by an ordered list of bands. Each band maps the numeric
interval ``[min, max]`` linearly onto the rotation range
``[angle_from, angle_to]`` (degrees, 0 = needle straight up, -90 = far left,
+90 = far right).
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from holdings_dashboard.utils.validation import InvalidInputError, parse_number


@dataclass(frozen=True)
class MetricBand:
    min: float
    max: float
    angle_from: float
    angle_to: float
    zone: str | None = None


def validate_bands(bands: Sequence[MetricBand]) -> tuple[MetricBand, ...]:
    """Reject band lists that are empty, unsorted or overlapping."""
    if not bands:
        raise InvalidInputError("A gauge needs at least one band.")
    ordered = tuple(bands)
    for prev, nxt in zip(ordered, ordered[1:]):
        if nxt.min < prev.min:
            raise InvalidInputError(f"Bands must be sorted by min: {nxt.min} follows {prev.min}.")
        if nxt.min < prev.max:
            raise InvalidInputError(f"Bands overlap: [{prev.min}, {prev.max}] and [{nxt.min}, {nxt.max}].")
    return ordered


def _match_band(value: float, bands: Sequence[MetricBand]) -> MetricBand | None:
    # First match wins when bands share a boundary.
    for band in bands:
        if band.min <= value <= band.max:
            return band
    return None


def angle_for(value, bands: Sequence[MetricBand], previous: float = 0.0) -> float:
    if not bands:
        raise InvalidInputError("A gauge needs at least one band.")
    value = parse_number(value, "value")

    first, last = bands[0], bands[-1]
    if value <= first.min:
        return first.angle_from
    if value >= last.max:
        return last.angle_to

    band = _match_band(value, bands)
    if band is None:
        # Value fell in a gap between bands: leave the needle where it was.
        return previous

    span = band.max - band.min
    if span <= 0:
        return band.angle_from

    t = (value - band.min) / span
    return band.angle_from + t * (band.angle_to - band.angle_from)


def zone_for(value, bands: Sequence[MetricBand]) -> str | None:
    if not bands:
        return None
    value = parse_number(value, "value")
    if value <= bands[0].min:
        return bands[0].zone
    if value >= bands[-1].max:
        return bands[-1].zone
    band = _match_band(value, bands)
    return band.zone if band else None
