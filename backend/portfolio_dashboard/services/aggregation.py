"""Asset-class buckets and portfolio totals.

Buckets always come out in the same order (fixed deposits, the two mutual fund
owners, domestic then foreign equity, gold) so charts and legends stay stable.
Empty buckets are skipped. Amounts are in the reporting currency.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from portfolio_dashboard.config import FOREIGN_EXCHANGE, MF_FAMILY_OWNER, MF_PRIMARY_OWNER
from portfolio_dashboard.models.holdings import AssetClass, Holding, Portfolio
from portfolio_dashboard.services.price_cache import LivePriceCache
from portfolio_dashboard.services.valuation import (
    return_pct,
    to_reporting_currency,
    value_holding,
)


@dataclass(frozen=True)
class BucketDefinition:
    key: str
    label: str
    icon: str
    asset_class: AssetClass
    includes: Callable[[Holding], bool] = lambda holding: True


BUCKETS: list[BucketDefinition] = [
    BucketDefinition("fd", "Fixed Deposits", "🏛", AssetClass.FIXED_DEPOSIT),
    BucketDefinition(
        "mf-primary",
        f"MF - {MF_PRIMARY_OWNER}",
        "📈",
        AssetClass.MUTUAL_FUND,
        lambda mf: mf.owner == MF_PRIMARY_OWNER,
    ),
    BucketDefinition(
        "mf-family",
        f"MF - {MF_FAMILY_OWNER}",
        "👨‍👩‍👧",
        AssetClass.MUTUAL_FUND,
        lambda mf: mf.owner != MF_PRIMARY_OWNER,
    ),
    BucketDefinition(
        "stocks-nse",
        "Indian Equity",
        "📊",
        AssetClass.STOCK,
        lambda stock: stock.exchange != FOREIGN_EXCHANGE,
    ),
    BucketDefinition(
        "stocks-nas",
        "US Equity",
        "🇺🇸",
        AssetClass.STOCK,
        lambda stock: stock.exchange == FOREIGN_EXCHANGE,
    ),
    BucketDefinition("gold", "Gold / SGB", "🥇", AssetClass.GOLD),
]


@dataclass
class AssetClassBucket:
    key: str
    label: str
    icon: str
    holdings: list[Holding] = field(default_factory=list)
    invested: float = 0.0
    current_value: float = 0.0

    @property
    def gain_loss(self) -> float:
        return self.current_value - self.invested

    @property
    def return_pct(self) -> float:
        return return_pct(self.gain_loss, self.invested)


@dataclass
class PortfolioTotal:
    invested: float = 0.0
    current_value: float = 0.0
    gain_loss: float = 0.0

    @property
    def return_pct(self) -> float:
        return return_pct(self.gain_loss, self.invested)


@dataclass
class SummaryCard:
    key: str
    label: str
    invested: float
    current_value: float
    gain_loss: float
    return_pct: float


@dataclass
class PortfolioSummary:
    buckets: list[AssetClassBucket]
    total: PortfolioTotal
    cards: list[SummaryCard]


def get_asset_totals(
    portfolio: Portfolio, prices: LivePriceCache, today: date | None = None
) -> list[AssetClassBucket]:
    buckets = []
    for definition in BUCKETS:
        members = [
            h for h in portfolio.collection(definition.asset_class) if definition.includes(h)
        ]
        if not members:
            continue
        bucket = AssetClassBucket(
            key=definition.key, label=definition.label, icon=definition.icon, holdings=members
        )
        for holding in members:
            valuation = value_holding(holding, prices, today)
            bucket.invested += to_reporting_currency(holding.invested, holding, prices)
            bucket.current_value += to_reporting_currency(
                valuation.current_value, holding, prices
            )
        buckets.append(bucket)
    return buckets


def get_portfolio_total(buckets: list[AssetClassBucket]) -> PortfolioTotal:
    total = PortfolioTotal()
    for bucket in buckets:
        total.invested += bucket.invested
        total.current_value += bucket.current_value
        total.gain_loss += bucket.gain_loss
    return total


def combine_buckets(key: str, label: str, buckets: list[AssetClassBucket]) -> SummaryCard:
    """Roll several buckets into one card, e.g. both mutual fund owners."""
    invested = sum(b.invested for b in buckets)
    current_value = sum(b.current_value for b in buckets)
    gain_loss = current_value - invested
    return SummaryCard(
        key=key,
        label=label,
        invested=invested,
        current_value=current_value,
        gain_loss=gain_loss,
        return_pct=return_pct(gain_loss, invested),
    )


def summary_cards(buckets: list[AssetClassBucket], total: PortfolioTotal) -> list[SummaryCard]:
    by_key = {b.key: b for b in buckets}

    def pick(*keys: str) -> list[AssetClassBucket]:
        return [by_key[k] for k in keys if k in by_key]

    cards = [
        SummaryCard(
            key="total",
            label="Total Portfolio",
            invested=total.invested,
            current_value=total.current_value,
            gain_loss=total.gain_loss,
            return_pct=total.return_pct,
        )
    ]
    groups = [
        ("fd", "Fixed Deposits", pick("fd")),
        ("mf", "Mutual Funds", pick("mf-primary", "mf-family")),
        ("stocks", "Stocks", pick("stocks-nse", "stocks-nas")),
        ("gold", "Gold / SGB", pick("gold")),
    ]
    for key, label, members in groups:
        if members:
            cards.append(combine_buckets(key, label, members))
    return cards


def summarize(
    portfolio: Portfolio, prices: LivePriceCache, today: date | None = None
) -> PortfolioSummary:
    buckets = get_asset_totals(portfolio, prices, today)
    total = get_portfolio_total(buckets)
    return PortfolioSummary(buckets=buckets, total=total, cards=summary_cards(buckets, total))
