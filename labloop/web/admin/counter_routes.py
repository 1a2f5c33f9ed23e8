"""
Admin Counter Routes - ID counter inspection and reset
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from labloop.schemas.counter import (
    CounterInfoResponse,
    CounterResetRequest,
    NextIdResponse,
)
from labloop.services.id_allocator import IdAllocator, get_id_allocator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/counters", tags=["Admin Counters"])


@router.get("", response_model=List[CounterInfoResponse])
async def list_counters(allocator: IdAllocator = Depends(get_id_allocator)):
    """List every counter with its remaining capacity."""
    return [info.to_dict() for info in allocator.list_info()]


@router.get("/{prefix}", response_model=CounterInfoResponse)
async def counter_info(prefix: str, allocator: IdAllocator = Depends(get_id_allocator)):
    info = allocator.get_info(prefix)
    if info is None:
        raise HTTPException(status_code=404, detail=f"No counter for prefix {prefix}")
    return info.to_dict()


@router.get("/{prefix}/next", response_model=NextIdResponse)
async def counter_next_id(
    prefix: str, allocator: IdAllocator = Depends(get_id_allocator)
):
    """Preview the next ID. The value is not reserved."""
    return {"prefix": prefix, "next_id": allocator.peek_next(prefix)}


@router.post("/{prefix}/reset", status_code=status.HTTP_204_NO_CONTENT)
async def counter_reset(
    prefix: str,
    body: CounterResetRequest,
    allocator: IdAllocator = Depends(get_id_allocator),
):
    allocator.reset(prefix, body.start_from)
    logger.info(f"Admin reset of counter {prefix} to {body.start_from}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
