"""Dashboard summary: asset-class buckets, totals and summary cards."""

from fastapi import APIRouter, Depends

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.api.schemas import (
    BucketResponse,
    SummaryCardResponse,
    SummaryResponse,
    TotalResponse,
)
from portfolio_dashboard.services.dashboard import Dashboard

router = APIRouter(prefix="/api", tags=["summary"])


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(dashboard: Dashboard = Depends(get_dashboard)):
    summary = dashboard.summary()
    return SummaryResponse(
        buckets=[
            BucketResponse(
                key=b.key,
                label=b.label,
                icon=b.icon,
                count=len(b.holdings),
                invested=round(b.invested, 2),
                current_value=round(b.current_value, 2),
                gain_loss=round(b.gain_loss, 2),
                return_pct=round(b.return_pct, 4),
            )
            for b in summary.buckets
        ],
        total=TotalResponse(
            invested=round(summary.total.invested, 2),
            current_value=round(summary.total.current_value, 2),
            gain_loss=round(summary.total.gain_loss, 2),
            return_pct=round(summary.total.return_pct, 4),
        ),
        cards=[
            SummaryCardResponse(
                key=c.key,
                label=c.label,
                invested=round(c.invested, 2),
                current_value=round(c.current_value, 2),
                gain_loss=round(c.gain_loss, 2),
                return_pct=round(c.return_pct, 4),
            )
            for c in summary.cards
        ],
        fx_rate=dashboard.prices.fx_rate(),
    )
