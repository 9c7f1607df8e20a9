from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote_plus


def _get_first_set(*env_names: str) -> str:
    for env_name in env_names:
        value = os.getenv(env_name, "").strip()
        if value:
            return value
    return ""


def _normalize_database_url(raw_url: str) -> str:
    if not raw_url:
        return raw_url
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg2://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg2://", 1)
    return raw_url


def _with_sslmode_if_needed(db_url: str) -> str:
    if not db_url.startswith("postgresql") or "sslmode=" in db_url:
        return db_url
    lowered = db_url.lower()
    if "localhost" in lowered or "127.0.0.1" in lowered:
        return db_url
    sep = "&" if "?" in db_url else "?"
    return f"{db_url}{sep}sslmode=require"


def _build_database_url() -> str:
    explicit = _get_first_set("DATABASE_URL", "DATABASE_PUBLIC_URL")
    if explicit:
        return _with_sslmode_if_needed(_normalize_database_url(explicit))

    host = _get_first_set("PGHOST")
    port = _get_first_set("PGPORT") or "5432"
    user = _get_first_set("PGUSER")
    password = _get_first_set("PGPASSWORD")
    database = _get_first_set("PGDATABASE")
    if host and user and database:
        pwd = quote_plus(password)
        url = f"postgresql+psycopg2://{user}:{pwd}@{host}:{port}/{database}"
        return _with_sslmode_if_needed(url)

    # Local dev fallback when no server database is configured.
    sqlite_file = Path(os.getenv("SQLITE_DB_PATH", "./holdings.db")).as_posix()
    if sqlite_file.startswith("/"):
        return f"sqlite:///{sqlite_file}"
    return f"sqlite:///./{sqlite_file.lstrip('./')}"


@dataclass(frozen=True)
class Settings:
    app_name: str = os.getenv("APP_NAME", "holdings_dashboard")
    app_debug: bool = os.getenv("APP_DEBUG", "false").lower() == "true"
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", "3000"))

    database_url: str = _build_database_url()

    default_user_id: int = int(os.getenv("DEFAULT_USER_ID", "1"))
    default_currency: str = os.getenv("DEFAULT_CURRENCY", "USD").strip().upper() or "USD"

    quote_max_workers: int = int(os.getenv("QUOTE_MAX_WORKERS", "8"))
    quote_period: str = os.getenv("QUOTE_PERIOD", "5d")


settings = Settings()
