"""Application state: holdings, live prices and per-table view state.

Built once at startup and handed to the routes and the scheduler, instead of
living in module globals.
"""

import logging
from datetime import date
from pathlib import Path

from portfolio_dashboard.models.holdings import Portfolio
from portfolio_dashboard.services.aggregation import PortfolioSummary, summarize
from portfolio_dashboard.services.price_cache import LivePriceCache
from portfolio_dashboard.services.record_store import RecordStore
from portfolio_dashboard.services.repository import DocumentRepository, load_seed_portfolio
from portfolio_dashboard.services.table_view import (
    TableId,
    TableView,
    ViewStateRegistry,
    render_table,
    table_counts,
)

logger = logging.getLogger(__name__)


class Dashboard:
    def __init__(
        self,
        store: RecordStore,
        prices: LivePriceCache | None = None,
        views: ViewStateRegistry | None = None,
        repository: DocumentRepository | None = None,
    ):
        self.store = store
        self.prices = prices or LivePriceCache()
        self.views = views or ViewStateRegistry()
        self.repository = repository

    @classmethod
    async def load(cls, repository: DocumentRepository, seed_path: Path | None = None) -> "Dashboard":
        """Restore the saved portfolio, else the seed file, else start empty."""
        portfolio = await repository.load_portfolio()
        if portfolio is not None:
            logger.info("Loaded portfolio from storage")
        elif seed_path is not None:
            portfolio = load_seed_portfolio(seed_path)
            if portfolio is not None:
                logger.info(f"Loaded portfolio from {seed_path}")
        if portfolio is None:
            logger.info("No saved portfolio, starting empty")
            portfolio = Portfolio()
        logger.info(
            f"Portfolio: {len(portfolio.fixed_deposits)} FDs, "
            f"{len(portfolio.mutual_funds)} funds, {len(portfolio.stocks)} stocks, "
            f"{len(portfolio.gold)} gold"
        )
        visibility = await repository.load_column_visibility()
        return cls(
            store=RecordStore(portfolio, persist=repository.save_portfolio),
            views=ViewStateRegistry(visibility),
            repository=repository,
        )

    @property
    def portfolio(self) -> Portfolio:
        return self.store.portfolio

    def summary(self, today: date | None = None) -> PortfolioSummary:
        return summarize(self.portfolio, self.prices, today)

    def table(self, table_id: TableId | str, today: date | None = None) -> TableView:
        table_id = TableId(table_id)
        return render_table(self.portfolio, table_id, self.views.get(table_id), self.prices, today)

    def table_counts(self) -> dict[TableId, int]:
        return table_counts(self.portfolio)

    async def set_column_visibility(self, table_id: TableId | str, column_key: str, visible: bool) -> None:
        self.views.get(table_id).column_visibility[column_key] = visible
        if self.repository is not None:
            await self.repository.save_column_visibility(self.views.visibility_document())
