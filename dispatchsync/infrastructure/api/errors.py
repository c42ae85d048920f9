"""Translate domain errors into HTTP errors."""

from fastapi import HTTPException

from dispatchsync.domain.errors import (
    DispatchStateError,
    DispatchSyncError,
    NotFoundError,
    TransientStoreError,
)


def http_error(exc: DispatchSyncError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, DispatchStateError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, TransientStoreError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
