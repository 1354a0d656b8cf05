"""Live price cache routes."""

from fastapi import APIRouter, Depends

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.api.schemas import PriceResponse, RefreshResponse
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.market_data import market_data_service

router = APIRouter(prefix="/api/prices", tags=["prices"])


@router.get("", response_model=list[PriceResponse])
async def list_prices(dashboard: Dashboard = Depends(get_dashboard)):
    return [
        PriceResponse(
            key=key,
            price=s.price,
            change=round(s.change, 4) if s.change is not None else None,
            change_pct=round(s.change_pct, 4) if s.change_pct is not None else None,
            fetched_at=s.fetched_at.isoformat(timespec="seconds"),
        )
        for key, s in sorted(dashboard.prices.snapshot().items())
    ]


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_prices(dashboard: Dashboard = Depends(get_dashboard)):
    """Fetch every holding's live price now instead of waiting for the scheduler."""
    result = await market_data_service.refresh_all(dashboard.portfolio, dashboard.prices)
    return RefreshResponse(updated=result.updated, failed=result.failed)
