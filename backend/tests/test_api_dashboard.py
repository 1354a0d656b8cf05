"""Tests for summary, table, portfolio, price and sync endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from portfolio_dashboard.main import app
from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.models.database import Base
from portfolio_dashboard.models.document import StoredDocument  # noqa: F401
from portfolio_dashboard.models.holdings import Portfolio
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.exceptions import RemoteSyncError
from portfolio_dashboard.services.market_data import RefreshResult
from portfolio_dashboard.services.price_cache import PriceSnapshot
from portfolio_dashboard.services.remote_sync import github_sync_service
from portfolio_dashboard.services.repository import DocumentRepository


@pytest_asyncio.fixture
async def dashboard():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    dashboard = await Dashboard.load(DocumentRepository(session_factory))
    await dashboard.store.replace(
        Portfolio.model_validate(
            {
                "mutualFunds": [
                    {"name": "HDFC Flexi Cap", "schemeCode": "118955", "owner": "Mahesh",
                     "units": 500, "purchaseNAV": 45.23, "invested": 22615},
                    {"name": "Axis Bluechip", "schemeCode": "120465", "owner": "Mahesh",
                     "units": 100, "purchaseNAV": 40, "invested": 4000},
                ],
                "stocks": [
                    {"name": "Apple", "symbol": "AAPL", "exchange": "NASDAQ",
                     "units": 5, "avgPrice": 150, "invested": 750},
                ],
            }
        )
    )
    dashboard.prices.set("118955", PriceSnapshot(price=50.0))
    dashboard.prices.set("120465", PriceSnapshot(price=35.0, change=-0.5, change_pct=-1.41))

    app.dependency_overrides[get_dashboard] = lambda: dashboard
    yield dashboard
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest_asyncio.fixture
async def client(dashboard):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_summary(client):
    resp = await client.get("/api/summary")
    assert resp.status_code == 200
    data = resp.json()
    assert [b["key"] for b in data["buckets"]] == ["mf-primary", "stocks-nas"]
    us = data["buckets"][1]
    assert us["invested"] == 750 * 84
    assert us["label"] == "US Equity"
    assert data["fx_rate"] == 84.0
    assert data["total"]["invested"] == round(22615 + 4000 + 750 * 84, 2)
    assert [c["key"] for c in data["cards"]] == ["total", "mf", "stocks"]


class TestTables:
    @pytest.mark.asyncio
    async def test_list_tables(self, client):
        resp = await client.get("/api/tables")
        assert resp.status_code == 200
        counts = {t["table_id"]: t["count"] for t in resp.json()}
        assert counts == {
            "fd": 0, "mf-primary": 2, "mf-family": 0,
            "stocks-nse": 0, "stocks-nas": 1, "gold": 0,
        }

    @pytest.mark.asyncio
    async def test_get_table_default_sort(self, client):
        resp = await client.get("/api/tables/mf-primary")
        assert resp.status_code == 200
        data = resp.json()
        assert data["sort_column"] == "invested"
        assert data["ascending"] is False
        assert [r["cells"]["name"] for r in data["rows"]] == ["HDFC Flexi Cap", "Axis Bluechip"]
        assert data["rows"][0]["is_live"] is True
        assert "_actions" in [c["key"] for c in data["columns"]]
        assert "_actions" not in [c["key"] for c in data["all_columns"]]

    @pytest.mark.asyncio
    async def test_empty_table(self, client):
        data = (await client.get("/api/tables/gold")).json()
        assert data["is_empty"] is True
        assert data["has_category_filter"] is False

    @pytest.mark.asyncio
    async def test_unknown_table(self, client):
        resp = await client.get("/api/tables/crypto")
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_sort_toggles(self, client):
        data = (await client.post("/api/tables/mf-primary/sort", json={"column": "invested"})).json()
        assert data["ascending"] is True
        assert data["rows"][0]["cells"]["name"] == "Axis Bluechip"

        data = (await client.post("/api/tables/mf-primary/sort", json={"column": "name"})).json()
        assert data["sort_column"] == "name"
        assert data["ascending"] is True

    @pytest.mark.asyncio
    async def test_filter(self, client):
        resp = await client.put("/api/tables/mf-primary/filter", json={"query": "HDFC"})
        data = resp.json()
        assert data["matched_count"] == 1
        assert data["total_count"] == 2

        resp = await client.put("/api/tables/mf-primary/filter", json={"query": "", "category": "loss"})
        data = resp.json()
        assert [r["cells"]["name"] for r in data["rows"]] == ["Axis Bluechip"]
        assert data["category"] == "loss"

        resp = await client.put("/api/tables/mf-primary/filter", json={"query": "zzz"})
        assert resp.json()["no_results"] is True

    @pytest.mark.asyncio
    async def test_column_visibility(self, client, dashboard):
        resp = await client.put("/api/tables/mf-primary/columns/units", json={"visible": False})
        assert resp.status_code == 200
        data = resp.json()
        assert "units" not in [c["key"] for c in data["columns"]]
        hidden = next(c for c in data["all_columns"] if c["key"] == "units")
        assert hidden["visible"] is False

        saved = await dashboard.repository.load_column_visibility()
        assert saved == {"mf-primary": {"units": False}}

        resp = await client.put("/api/tables/mf-primary/columns/bogus", json={"visible": False})
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_portfolio_export(client):
    resp = await client.get("/api/portfolio")
    assert resp.status_code == 200
    assert resp.json()["mutualFunds"][0]["purchaseNAV"] == 45.23

    resp = await client.get("/api/portfolio/export")
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    assert "portfolio.json" in resp.headers["content-disposition"]
    assert resp.json()["stocks"][0]["symbol"] == "AAPL"


@pytest.mark.asyncio
async def test_list_prices(client):
    resp = await client.get("/api/prices")
    assert resp.status_code == 200
    data = resp.json()
    assert [p["key"] for p in data] == ["118955", "120465"]
    assert data[1]["change_pct"] == -1.41


@pytest.mark.asyncio
async def test_refresh_prices(client, dashboard):
    result = RefreshResult(updated=["118955"], failed=["AAPL"])
    with patch(
        "portfolio_dashboard.api.prices.market_data_service.refresh_all",
        new=AsyncMock(return_value=result),
    ) as refresh:
        resp = await client.post("/api/prices/refresh")
    assert resp.status_code == 200
    assert resp.json() == {"updated": ["118955"], "failed": ["AAPL"]}
    refresh.assert_awaited_once_with(dashboard.portfolio, dashboard.prices)


class TestSync:
    @pytest.mark.asyncio
    async def test_not_configured(self, client):
        with patch.object(github_sync_service, "token", ""):
            resp = await client.post("/api/sync/github")
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_success(self, client):
        with patch.object(github_sync_service, "token", "t"), \
                patch.object(github_sync_service, "repo", "me/portfolio"), \
                patch.object(github_sync_service, "push", new=AsyncMock(return_value="abc")) as push:
            resp = await client.post("/api/sync/github")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "commit_sha": "abc"}
        document = push.await_args.args[0]
        assert document["mutualFunds"][0]["schemeCode"] == "118955"

    @pytest.mark.asyncio
    async def test_bad_token(self, client):
        error = RemoteSyncError("Update failed", 401)
        with patch.object(github_sync_service, "token", "t"), \
                patch.object(github_sync_service, "repo", "me/portfolio"), \
                patch.object(github_sync_service, "push", new=AsyncMock(side_effect=error)):
            resp = await client.post("/api/sync/github")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_remote_failure(self, client):
        error = RemoteSyncError("Update failed", 500)
        with patch.object(github_sync_service, "token", "t"), \
                patch.object(github_sync_service, "repo", "me/portfolio"), \
                patch.object(github_sync_service, "push", new=AsyncMock(side_effect=error)):
            resp = await client.post("/api/sync/github")
        assert resp.status_code == 502
