from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query

from holdings_dashboard.api.routes import metrics_service
from holdings_dashboard.gauges.render import render_board
from holdings_dashboard.gauges.schemas import GaugesResponse
from holdings_dashboard.utils.validation import InvalidInputError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/gauges", tags=["gauges"])


def build_gauges(shiller: str | None = None) -> GaugesResponse:
    metrics, success = metrics_service.get_metrics()
    manual = {"shiller": shiller} if shiller not in (None, "") else {}
    tiles = render_board(metrics, manual_values=manual)
    return GaugesResponse(success=success, tiles=tiles)


@router.get("", response_model=GaugesResponse)
def get_gauges(shiller: str | None = Query(default=None, description="Manually entered Shiller CAPE value")):
    try:
        return build_gauges(shiller)
    except InvalidInputError as exc:
        logger.info("Rejected manual gauge value", extra={"shiller": shiller, "error": str(exc)})
        raise HTTPException(status_code=400, detail=str(exc)) from exc
