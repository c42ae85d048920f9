"""Change-feed trigger — the store posts before/after snapshots of a written dispatch."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from dispatchsync.adapters.persistence.database import get_session
from dispatchsync.application.use_cases.dispatch_written import DispatchWrittenUseCase
from dispatchsync.domain.errors import DispatchSyncError
from dispatchsync.infrastructure.api.dependencies import get_dispatch_written_uc
from dispatchsync.infrastructure.api.errors import http_error

router = APIRouter(prefix="/triggers", tags=["triggers"])


class DispatchWrittenEvent(BaseModel):
    dispatch_key: str
    # driver_assignments maps before and after the write; None when absent
    before: dict | None = None
    after: dict | None = None


@router.post("/dispatch-written")
async def dispatch_written(
    event: DispatchWrittenEvent,
    uc: DispatchWrittenUseCase = Depends(get_dispatch_written_uc),
    session: AsyncSession = Depends(get_session),
):
    try:
        result = await uc.execute(event.dispatch_key, event.before, event.after)
        await session.commit()
    except DispatchSyncError as e:
        raise http_error(e) from e

    if result is None:
        return {"status": "ignored", "dispatch_key": event.dispatch_key}
    return {
        "status": "ok",
        "dispatch_key": event.dispatch_key,
        "dispatch_status": result.status.value,
        "changed": result.changed,
    }
