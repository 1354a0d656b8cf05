"""Background task scheduler for periodic live price refresh."""

import logging
from datetime import datetime
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.market_data import RefreshResult, market_data_service
from portfolio_dashboard.config import PRICE_REFRESH_INTERVAL

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


async def refresh_live_prices(dashboard: Dashboard) -> RefreshResult | None:
    """Fetch live prices for every holding into the dashboard's price cache."""
    try:
        return await market_data_service.refresh_all(dashboard.portfolio, dashboard.prices)
    except Exception as e:
        logger.error(f"Failed to refresh live prices: {e}")
        return None


def start_scheduler(dashboard: Dashboard):
    """Start the background scheduler; the first refresh runs immediately."""
    scheduler.add_job(
        refresh_live_prices,
        trigger=IntervalTrigger(seconds=PRICE_REFRESH_INTERVAL),
        args=[dashboard],
        id="refresh_live_prices",
        replace_existing=True,
        next_run_time=datetime.now(),
    )
    scheduler.start()
    logger.info(f"Scheduler started, refreshing prices every {PRICE_REFRESH_INTERVAL}s")


def stop_scheduler():
    """Stop the background scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
