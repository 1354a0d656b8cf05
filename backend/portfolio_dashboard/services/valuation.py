"""Holding valuation.

Turns a stored holding plus the live price cache into current value, gain/loss
and return.

Fixed deposits accrue simple interest by elapsed days:
    accrued = invested * rate / 100 * elapsed_days / 365

Funds, stocks and gold are marked to the live price when one is cached, else to
their cost basis:
    current_value = (live_price or cost_price) * units

A gold holding with a manual current value uses that value instead.
Return is gain_loss / invested * 100, and 0 when nothing was invested.

Foreign-exchange stocks are valued in their native currency; conversion to the
reporting currency is left to the caller (see to_reporting_currency).
"""

import math
from dataclasses import dataclass
from datetime import date

from portfolio_dashboard.config import FOREIGN_EXCHANGE
from portfolio_dashboard.models.holdings import (
    AssetClass,
    FixedDeposit,
    GoldHolding,
    Holding,
    MutualFundHolding,
    StockHolding,
)
from portfolio_dashboard.services.price_cache import LivePriceCache

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class HoldingValuation:
    current_value: float
    gain_loss: float
    return_pct: float
    current_price: float | None = None
    is_live: bool = False
    is_manual: bool = False
    days_left: int | None = None
    elapsed_days: int | None = None


def return_pct(gain_loss: float, invested: float) -> float:
    if not invested:
        return 0.0
    pct = gain_loss / invested * 100
    return pct if math.isfinite(pct) else 0.0


def _days_between(later: date | None, earlier: date | None) -> int:
    if later is None or earlier is None:
        return 0
    return max(0, (later - earlier).days)


def value_fixed_deposit(fd: FixedDeposit, today: date | None = None) -> HoldingValuation:
    today = today or date.today()
    elapsed = _days_between(today, fd.start_date)
    days_left = _days_between(fd.maturity_date, today)
    accrued = fd.invested * (fd.rate / 100) * (elapsed / DAYS_PER_YEAR)
    current_value = fd.invested + accrued
    gain_loss = current_value - fd.invested
    return HoldingValuation(
        current_value=current_value,
        gain_loss=gain_loss,
        return_pct=return_pct(gain_loss, fd.invested),
        days_left=days_left,
        elapsed_days=elapsed,
    )


def _mark_to_price(
    units: float, invested: float, cost_price: float, live_price: float | None
) -> HoldingValuation:
    current_price = live_price if live_price is not None else cost_price
    current_value = current_price * units
    gain_loss = current_value - invested
    return HoldingValuation(
        current_value=current_value,
        gain_loss=gain_loss,
        return_pct=return_pct(gain_loss, invested),
        current_price=current_price,
        is_live=live_price is not None,
    )


def value_mutual_fund(mf: MutualFundHolding, prices: LivePriceCache) -> HoldingValuation:
    return _mark_to_price(mf.units, mf.invested, mf.purchase_nav, prices.price(mf.scheme_code))


def value_stock(stock: StockHolding, prices: LivePriceCache) -> HoldingValuation:
    return _mark_to_price(stock.units, stock.invested, stock.avg_price, prices.price(stock.symbol))


def value_gold(gold: GoldHolding, prices: LivePriceCache) -> HoldingValuation:
    valuation = _mark_to_price(
        gold.units, gold.invested, gold.purchase_price, prices.price(gold.symbol)
    )
    if gold.manual_current_value is None:
        return valuation
    gain_loss = gold.manual_current_value - gold.invested
    return HoldingValuation(
        current_value=gold.manual_current_value,
        gain_loss=gain_loss,
        return_pct=return_pct(gain_loss, gold.invested),
        current_price=valuation.current_price,
        is_live=valuation.is_live,
        is_manual=True,
    )


def value_holding(
    holding: Holding, prices: LivePriceCache, today: date | None = None
) -> HoldingValuation:
    """Value any holding, dispatching on its asset_class tag."""
    asset_class = AssetClass(holding.asset_class)
    if asset_class is AssetClass.FIXED_DEPOSIT:
        return value_fixed_deposit(holding, today)
    if asset_class is AssetClass.MUTUAL_FUND:
        return value_mutual_fund(holding, prices)
    if asset_class is AssetClass.STOCK:
        return value_stock(holding, prices)
    return value_gold(holding, prices)


def is_foreign(holding: Holding) -> bool:
    """True for holdings denominated in the foreign currency."""
    return isinstance(holding, StockHolding) and holding.exchange == FOREIGN_EXCHANGE


def to_reporting_currency(amount: float, holding: Holding, prices: LivePriceCache) -> float:
    if is_foreign(holding):
        return amount * prices.fx_rate()
    return amount
