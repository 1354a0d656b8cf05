"""Whole-portfolio document routes."""

import json

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.services.dashboard import Dashboard

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


@router.get("")
async def get_portfolio(dashboard: Dashboard = Depends(get_dashboard)):
    return dashboard.store.snapshot()


@router.get("/export")
async def export_portfolio(dashboard: Dashboard = Depends(get_dashboard)):
    """Download the portfolio as a ``portfolio.json`` attachment."""
    content = json.dumps(dashboard.store.snapshot(), indent=2, ensure_ascii=False)
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="portfolio.json"'},
    )
