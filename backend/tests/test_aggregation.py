"""Tests for asset-class buckets and portfolio totals."""

from datetime import date

import pytest

from portfolio_dashboard.models.holdings import Portfolio
from portfolio_dashboard.services.aggregation import (
    BUCKETS,
    get_asset_totals,
    get_portfolio_total,
    summarize,
)
from portfolio_dashboard.services.price_cache import LivePriceCache, PriceSnapshot

TODAY = date(2024, 12, 31)


@pytest.fixture
def portfolio():
    return Portfolio.model_validate(
        {
            "fixedDeposits": [
                {
                    "bank": "SBI",
                    "invested": 100000,
                    "rate": 7.3,
                    "startDate": "2024-01-01",
                    "maturityDate": "2025-01-01",
                }
            ],
            "mutualFunds": [
                {"name": "HDFC Flexi Cap", "schemeCode": "118955", "owner": "Mahesh",
                 "units": 500, "purchaseNAV": 45.23, "invested": 22615},
                {"name": "Axis Bluechip", "schemeCode": "120465", "owner": "Family",
                 "units": 100, "purchaseNAV": 40, "invested": 4000},
                {"name": "Parag Parikh", "schemeCode": "122639", "owner": "Spouse",
                 "units": 10, "purchaseNAV": 60, "invested": 600},
            ],
            "stocks": [
                {"name": "TCS", "symbol": "TCS.NS", "exchange": "NSE",
                 "units": 10, "avgPrice": 3500, "invested": 35000},
                {"name": "Apple", "symbol": "AAPL", "exchange": "NASDAQ",
                 "units": 5, "avgPrice": 150, "invested": 750},
            ],
            "gold": [
                {"name": "SGB 2027", "type": "SGB", "symbol": "SGBAUG27",
                 "units": 10, "purchasePrice": 5000, "invested": 50000,
                 "manualCurrentValue": 62000},
            ],
        }
    )


@pytest.fixture
def prices():
    cache = LivePriceCache(fx_key="USDINR=X", fx_fallback=84.0)
    cache.set("118955", PriceSnapshot(price=50.0))
    cache.set("AAPL", PriceSnapshot(price=200.0))
    return cache


def test_bucket_order(portfolio, prices):
    buckets = get_asset_totals(portfolio, prices, TODAY)
    assert [b.key for b in buckets] == [
        "fd", "mf-primary", "mf-family", "stocks-nse", "stocks-nas", "gold"
    ]
    assert [b.key for b in buckets] == [d.key for d in BUCKETS]


def test_empty_buckets_skipped(prices):
    portfolio = Portfolio.model_validate(
        {"stocks": [{"symbol": "TCS.NS", "units": 1, "avgPrice": 10, "invested": 10}]}
    )
    buckets = get_asset_totals(portfolio, prices, TODAY)
    assert [b.key for b in buckets] == ["stocks-nse"]


def test_every_fund_lands_in_exactly_one_bucket(portfolio, prices):
    buckets = {b.key: b for b in get_asset_totals(portfolio, prices, TODAY)}
    assert len(buckets["mf-primary"].holdings) == 1
    # any owner other than the primary one counts as family
    assert len(buckets["mf-family"].holdings) == 2
    assert buckets["mf-family"].invested == 4600


def test_foreign_bucket_converted(portfolio, prices):
    buckets = {b.key: b for b in get_asset_totals(portfolio, prices, TODAY)}
    us = buckets["stocks-nas"]
    assert us.invested == pytest.approx(750 * 84)
    assert us.current_value == pytest.approx(1000 * 84)
    assert us.return_pct == pytest.approx(250 / 750 * 100)


def test_bucket_values(portfolio, prices):
    buckets = {b.key: b for b in get_asset_totals(portfolio, prices, TODAY)}
    assert buckets["fd"].current_value == pytest.approx(107300)
    assert buckets["mf-primary"].gain_loss == pytest.approx(2385)
    assert buckets["stocks-nse"].gain_loss == 0
    assert buckets["gold"].current_value == 62000


def test_total_is_sum_of_buckets(portfolio, prices):
    buckets = get_asset_totals(portfolio, prices, TODAY)
    total = get_portfolio_total(buckets)
    assert total.invested == pytest.approx(sum(b.invested for b in buckets))
    assert total.current_value == pytest.approx(sum(b.current_value for b in buckets))
    assert total.gain_loss == pytest.approx(total.current_value - total.invested)


def test_empty_portfolio_total():
    total = get_portfolio_total([])
    assert total.invested == 0
    assert total.return_pct == 0


def test_summary_cards(portfolio, prices):
    summary = summarize(portfolio, prices, TODAY)
    cards = {c.key: c for c in summary.cards}
    assert list(cards) == ["total", "fd", "mf", "stocks", "gold"]
    assert cards["total"].current_value == pytest.approx(summary.total.current_value)
    assert cards["mf"].invested == pytest.approx(22615 + 4600)
    assert cards["stocks"].invested == pytest.approx(35000 + 750 * 84)
