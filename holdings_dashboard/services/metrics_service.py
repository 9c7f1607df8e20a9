from __future__ import annotations

import logging
from dataclasses import dataclass

from holdings_dashboard.services.price_service import PriceService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MacroRatio:
    key: str
    symbol: str
    divisor: str | None = None


MACRO_RATIOS: tuple[MacroRatio, ...] = (
    MacroRatio("breadth", "RSP", "SPY"),
    MacroRatio("spreads", "HYG", "IEF"),
    MacroRatio("yield", "TLT", "SGOV"),
    MacroRatio("vix", "^VIX"),
)


class MetricsService:
    def __init__(self, price_service: PriceService | None = None, ratios: tuple[MacroRatio, ...] = MACRO_RATIOS) -> None:
        self.price_service = price_service or PriceService()
        self.ratios = ratios

    def get_metrics(self) -> tuple[dict[str, dict], bool]:
        symbols: list[str] = []
        for ratio in self.ratios:
            symbols.append(ratio.symbol)
            if ratio.divisor:
                symbols.append(ratio.divisor)

        prices, errors = self.price_service.get_prices(symbols)

        metrics: dict[str, dict] = {}
        success = True
        for ratio in self.ratios:
            quote = prices.get(ratio.symbol)
            if ratio.divisor is None:
                if quote is None:
                    success = False
                    continue
                metrics[ratio.key] = {"value": quote.price, "as_of": quote.as_of}
                continue

            divisor = prices.get(ratio.divisor)
            if quote is None or divisor is None or divisor.price <= 0:
                success = False
                continue
            metrics[ratio.key] = {"value": quote.price / divisor.price, "as_of": quote.as_of}

        if errors:
            logger.warning("Macro metrics incomplete", extra={"errors": errors, "available": sorted(metrics)})
        return metrics, success
