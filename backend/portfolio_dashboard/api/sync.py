"""Push the portfolio to remote storage."""

import logging

from fastapi import APIRouter, Depends, HTTPException

from portfolio_dashboard.api.dependencies import get_dashboard
from portfolio_dashboard.api.schemas import SyncResponse
from portfolio_dashboard.services.dashboard import Dashboard
from portfolio_dashboard.services.exceptions import RemoteSyncError
from portfolio_dashboard.services.remote_sync import github_sync_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post("/github", response_model=SyncResponse)
async def sync_to_github(dashboard: Dashboard = Depends(get_dashboard)):
    if not github_sync_service.configured:
        raise HTTPException(status_code=400, detail="GitHub sync is not configured")
    try:
        commit_sha = await github_sync_service.push(dashboard.store.snapshot())
    except RemoteSyncError as e:
        logger.error(f"GitHub sync failed: {e}")
        if e.unauthorized:
            raise HTTPException(status_code=401, detail="Invalid GitHub token")
        raise HTTPException(status_code=502, detail=str(e))
    return SyncResponse(commit_sha=commit_sha)
