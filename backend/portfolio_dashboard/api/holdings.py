"""Holding CRUD routes, addressed by asset class and position."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import ValidationError

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.api.schemas import HoldingMutationResponse, ManualValueRequest
from portfolio_dashboard.config import MF_FAMILY_OWNER, MF_PRIMARY_OWNER
from portfolio_dashboard.models.holdings import (
    AssetClass,
    FixedDeposit,
    Holding,
    MutualFundHolding,
    parse_holding,
)
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.exceptions import (
    HoldingNotFoundError,
    HoldingValidationError,
)

router = APIRouter(prefix="/api/holdings", tags=["holdings"])


def _validated(asset_class: AssetClass, data: dict[str, Any]) -> Holding:
    """Parse a request body and enforce the per-class entry rules."""
    try:
        holding = parse_holding(data, asset_class)
    except ValidationError as e:
        raise HTTPException(
            status_code=422, detail=e.errors(include_url=False, include_context=False)
        )

    if isinstance(holding, FixedDeposit):
        if holding.invested <= 0:
            raise HTTPException(status_code=400, detail="Invested amount must be positive")
        if (
            holding.start_date
            and holding.maturity_date
            and holding.maturity_date < holding.start_date
        ):
            raise HTTPException(status_code=400, detail="Maturity date is before start date")
    elif isinstance(holding, MutualFundHolding):
        if holding.owner not in (MF_PRIMARY_OWNER, MF_FAMILY_OWNER):
            raise HTTPException(
                status_code=400,
                detail=f"Owner must be {MF_PRIMARY_OWNER} or {MF_FAMILY_OWNER}",
            )
    return holding


@router.get("/{asset_class}")
async def list_holdings(asset_class: AssetClass, dashboard: Dashboard = Depends(get_dashboard)):
    return [
        h.model_dump(mode="json", by_alias=True)
        for h in dashboard.store.records(asset_class)
    ]


@router.post("/{asset_class}", response_model=HoldingMutationResponse)
async def add_holding(
    asset_class: AssetClass,
    data: dict[str, Any] = Body(...),
    dashboard: Dashboard = Depends(get_dashboard),
):
    holding = _validated(asset_class, data)
    try:
        index = await dashboard.store.add(asset_class, holding)
    except HoldingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return HoldingMutationResponse(asset_class=asset_class.value, index=index)


@router.put("/{asset_class}/{index}", response_model=HoldingMutationResponse)
async def update_holding(
    asset_class: AssetClass,
    index: int,
    data: dict[str, Any] = Body(...),
    dashboard: Dashboard = Depends(get_dashboard),
):
    holding = _validated(asset_class, data)
    try:
        await dashboard.store.update(asset_class, index, holding)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HoldingValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return HoldingMutationResponse(asset_class=asset_class.value, index=index)


@router.delete("/{asset_class}/{index}", response_model=HoldingMutationResponse)
async def delete_holding(
    asset_class: AssetClass,
    index: int,
    dashboard: Dashboard = Depends(get_dashboard),
):
    try:
        await dashboard.store.delete(asset_class, index)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return HoldingMutationResponse(asset_class=asset_class.value, index=index)


@router.put("/gold/{index}/manual-value", response_model=HoldingMutationResponse)
async def set_gold_manual_value(
    index: int,
    req: ManualValueRequest,
    dashboard: Dashboard = Depends(get_dashboard),
):
    """Set the manual current value of a gold holding; null clears it."""
    if req.value is not None and req.value < 0:
        raise HTTPException(status_code=400, detail="Manual value cannot be negative")
    try:
        await dashboard.store.set_gold_manual_value(index, req.value)
    except HoldingNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return HoldingMutationResponse(asset_class=AssetClass.GOLD.value, index=index)
