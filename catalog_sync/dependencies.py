"""
FastAPI dependency injection.
Simple setup - sync run state and token auth.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, Request

from .config import settings
from .processor import SyncResult

logger = logging.getLogger(__name__)


@dataclass
class SyncState:
    """Tracks the background sync run of this process."""
    task: Optional[asyncio.Task] = None
    started_at: Optional[datetime] = None
    last_result: Optional[SyncResult] = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


# Global instance (initialized on startup)
_sync_state: Optional[SyncState] = None


async def init_dependencies():
    """Initialize global dependencies. Called on app startup."""
    global _sync_state
    _sync_state = SyncState()


async def close_dependencies():
    """Cancel a sync still running at shutdown. Called on app shutdown."""
    if _sync_state and _sync_state.running:
        task = _sync_state.task
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Cancelled running sync at shutdown")


def get_sync_state() -> SyncState:
    """Get the sync state instance."""
    if _sync_state is None:
        raise RuntimeError("Sync state not initialized")
    return _sync_state


async def require_token(request: Request):
    """
    Dependency that requires the sync API bearer token.
    """
    if not settings.sync_api_token:
        raise HTTPException(status_code=503, detail="Sync API token not configured")

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(
        token.strip(), settings.sync_api_token
    ):
        raise HTTPException(status_code=401, detail="Not authenticated")
