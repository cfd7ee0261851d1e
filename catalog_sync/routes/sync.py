"""
Sync trigger API routes.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..dependencies import get_sync_state, require_token
from ..processor import run_sync

router = APIRouter(prefix="/api/sync", dependencies=[Depends(require_token)])


class SyncResponse(BaseModel):
    message: str
    success: bool
    started_at: Optional[datetime] = None


@router.post("", response_model=SyncResponse, status_code=202)
async def trigger_sync():
    """Start a full catalog sync in the background."""
    state = get_sync_state()

    if state.running:
        raise HTTPException(status_code=409, detail="A sync is already running")

    async def run_and_record():
        state.last_result = await run_sync(settings)

    state.started_at = datetime.now(timezone.utc)
    state.task = asyncio.create_task(run_and_record())

    return SyncResponse(
        message="Catalog sync started",
        success=True,
        started_at=state.started_at,
    )


@router.get("/status")
async def get_sync_status():
    """Get the current run state and the last run's summary."""
    state = get_sync_state()
    last = state.last_result

    return {
        "running": state.running,
        "started_at": state.started_at.isoformat() if state.started_at else None,
        "last_success": last.success if last else None,
        "last_error": last.error if last else None,
        "last_summary": last.summary.as_dict() if last and last.summary else None,
    }
