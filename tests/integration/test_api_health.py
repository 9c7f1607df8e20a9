from fastapi.testclient import TestClient

from holdings_dashboard.app import app


client = TestClient(app)


def test_health() -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_init_db_creates_current_holdings_columns(test_ctx) -> None:
    from sqlalchemy import inspect

    from holdings_dashboard.models.db import Base, init_db

    engine = test_ctx["engine"]
    Base.metadata.drop_all(bind=engine)

    init_db()

    columns = {col["name"] for col in inspect(engine).get_columns("holdings")}
    assert {"is_baseline", "cost_basis_is_proxy", "notes"} <= columns
