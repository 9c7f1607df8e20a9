from __future__ import annotations

import logging
import time
from pathlib import Path

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from holdings_dashboard.api.routes import holdings_service, router
from holdings_dashboard.config import settings
from holdings_dashboard.gauges.routes import build_gauges
from holdings_dashboard.gauges.routes import router as gauges_router
from holdings_dashboard.models.db import get_db_session, init_db
from holdings_dashboard.utils.validation import InvalidInputError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

app = FastAPI(
    title=settings.app_name,
    description="Personal holdings dashboard with macro risk gauges and baseline account imports",
    version="0.1.0",
    debug=settings.app_debug,
)
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")


@app.on_event("startup")
def startup_event() -> None:
    max_attempts = 5
    delay_seconds = 2
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            init_db()
            logger.info("Database initialization completed", extra={"attempt": attempt})
            return
        except SQLAlchemyError as exc:
            last_error = exc
            logger.exception(
                "Database initialization failed",
                extra={"attempt": attempt, "max_attempts": max_attempts},
            )
            if attempt < max_attempts:
                time.sleep(delay_seconds)

    raise RuntimeError("Database initialization failed after retries") from last_error


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(status_code=422, content={"success": False, "message": "; ".join(problems)})


@app.exception_handler(InvalidInputError)
def invalid_input_handler(_request: Request, exc: InvalidInputError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "message": str(exc)})


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error", exc_info=exc, extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"success": False, "message": "Database error"})


app.include_router(router)
app.include_router(gauges_router)


@app.get("/", response_class=HTMLResponse)
def home(
    request: Request,
    shiller: str | None = Query(default=None),
    db: Session = Depends(get_db_session),
):
    context: dict = {"app_name": settings.app_name, "error": None}
    try:
        context["gauges"] = build_gauges(shiller)
    except InvalidInputError as exc:
        context["error"] = str(exc)
        context["gauges"] = build_gauges(None)

    context["summary"] = holdings_service.summary(db)
    return templates.TemplateResponse(request, "index.html", context)

