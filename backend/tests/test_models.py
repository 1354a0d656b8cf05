"""Tests for holding models and the stored document table."""

from datetime import date

import pytest
import pytest_asyncio
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from portfolio_dashboard.models.database import Base
from portfolio_dashboard.models.document import StoredDocument
from portfolio_dashboard.models.holdings import (
    AssetClass,
    FixedDeposit,
    GoldHolding,
    MutualFundHolding,
    Portfolio,
    StockHolding,
    infer_asset_class,
    parse_holding,
    resolve_asset_class,
)


@pytest_asyncio.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session() as session:
        yield session
    await engine.dispose()


@pytest.mark.asyncio
async def test_create_stored_document(db_session):
    db_session.add(StoredDocument(key="portfolio_data_v1", payload={"stocks": [{"symbol": "TCS.NS"}]}))
    await db_session.commit()

    result = await db_session.get(StoredDocument, "portfolio_data_v1")
    assert result is not None
    assert result.payload["stocks"][0]["symbol"] == "TCS.NS"
    assert result.updated_at


class TestShapeInference:
    def test_scheme_code_means_mutual_fund(self):
        assert infer_asset_class({"schemeCode": "118955", "symbol": "X"}) is AssetClass.MUTUAL_FUND

    def test_symbol_with_avg_price_is_stock(self):
        assert infer_asset_class({"symbol": "TCS.NS", "avgPrice": 3500}) is AssetClass.STOCK

    def test_symbol_alone_is_gold(self):
        assert infer_asset_class({"symbol": "SGBAUG27"}) is AssetClass.GOLD

    def test_maturity_date_is_fixed_deposit(self):
        assert infer_asset_class({"maturityDate": "2025-01-01"}) is AssetClass.FIXED_DEPOSIT

    def test_unknown_shape(self):
        assert infer_asset_class({"name": "something"}) is None

    def test_snake_case_keys(self):
        assert infer_asset_class({"symbol": "INFY", "avg_price": 1}) is AssetClass.STOCK

    def test_explicit_tag_wins(self):
        assert resolve_asset_class({"assetClass": "gold", "schemeCode": "1"}) is AssetClass.GOLD
        assert resolve_asset_class({"asset_class": "bogus"}) is None
        assert resolve_asset_class(StockHolding()) is AssetClass.STOCK


class TestParseHolding:
    def test_camel_case_document(self):
        mf = parse_holding(
            {"name": "HDFC", "schemeCode": "118955", "owner": "Mahesh",
             "units": "500", "purchaseNAV": 45.23, "invested": 22615}
        )
        assert isinstance(mf, MutualFundHolding)
        assert mf.units == 500
        assert mf.purchase_nav == 45.23

    def test_blank_amounts_become_zero(self):
        fd = parse_holding(
            {"bank": "SBI", "invested": "", "rate": None, "maturityDate": "2025-01-01", "startDate": ""},
            AssetClass.FIXED_DEPOSIT,
        )
        assert isinstance(fd, FixedDeposit)
        assert fd.invested == 0.0
        assert fd.rate == 0.0
        assert fd.start_date is None
        assert fd.maturity_date == date(2025, 1, 1)

    def test_blank_manual_value_is_none(self):
        gold = parse_holding({"symbol": "GOLDBEES.NS", "manualCurrentValue": ""})
        assert isinstance(gold, GoldHolding)
        assert gold.manual_current_value is None

    def test_undeterminable_record(self):
        with pytest.raises(ValueError):
            parse_holding({"name": "x"})

    def test_invalid_field(self):
        with pytest.raises(ValidationError):
            parse_holding({"symbol": "AAPL", "exchange": "LSE"}, AssetClass.STOCK)

    def test_tag_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            parse_holding({"assetClass": "mf"}, AssetClass.STOCK)


def test_portfolio_document_uses_camel_case():
    portfolio = Portfolio(
        mutual_funds=[MutualFundHolding(name="HDFC", scheme_code="1", purchase_nav=10)]
    )
    doc = portfolio.to_document()
    assert set(doc) == {"fixedDeposits", "mutualFunds", "stocks", "gold"}
    assert doc["mutualFunds"][0]["schemeCode"] == "1"
    assert doc["mutualFunds"][0]["purchaseNAV"] == 10
    assert Portfolio.model_validate(doc) == portfolio


def test_collection_is_live_list():
    portfolio = Portfolio()
    portfolio.collection("gold").append(GoldHolding(name="SGB"))
    assert len(portfolio.gold) == 1
    assert len(portfolio.holdings()) == 1
