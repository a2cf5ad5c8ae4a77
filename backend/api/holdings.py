"""Holdings API endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from database import get_db
from schemas.holding import (
    Holding,
    HoldingCreate,
    HoldingUpdate,
    ImportRequest,
    ImportResult,
    TransferChunk,
)
from services.holding_service import HoldingNotFoundError, HoldingService
from services.transfer_service import CHUNK_SIZE, TransferError, TransferService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/holdings", tags=["holdings"])


@router.get("", response_model=list[Holding])
def list_holdings(db: Session = Depends(get_db)):
    """List holdings in display order."""
    return HoldingService.list_holdings(db)


@router.post("", response_model=Holding, status_code=201)
def add_holding(body: HoldingCreate, response: Response, db: Session = Depends(get_db)):
    """Add a holding.

    If the code is already held, its shares are replaced and 200 is
    returned instead of 201.
    """
    holding, created = HoldingService.add_holding(db, body)
    if not created:
        response.status_code = 200
    return holding


@router.get("/export", response_model=list[dict[str, Any]])
def export_holdings(db: Session = Depends(get_db)):
    """Export all holdings as JSON records."""
    return HoldingService.export_records(db)


@router.get("/export/chunks", response_model=list[TransferChunk])
def export_holding_chunks(
    chunk_size: int = Query(CHUNK_SIZE, ge=100, le=4000),
    db: Session = Depends(get_db),
):
    """Export holdings as ordered text chunks for QR transfer."""
    return TransferService.split(HoldingService.export_records(db), chunk_size)


@router.post("/import", response_model=ImportResult)
def import_holdings(body: ImportRequest, db: Session = Depends(get_db)):
    """Merge records (or reassembled transfer chunks) into the holdings list."""
    if body.chunks is not None:
        try:
            records = TransferService.assemble(body.chunks)
        except TransferError as e:
            raise HTTPException(status_code=400, detail=str(e))
    else:
        records = body.records
    return HoldingService.import_records(db, records)


@router.get("/{holding_id}", response_model=Holding)
def get_holding(holding_id: str, db: Session = Depends(get_db)):
    try:
        return HoldingService.get_holding(db, holding_id)
    except HoldingNotFoundError:
        raise HTTPException(status_code=404, detail="Holding not found")


@router.put("/{holding_id}", response_model=Holding)
def update_holding(holding_id: str, body: HoldingUpdate, db: Session = Depends(get_db)):
    try:
        return HoldingService.update_holding(db, holding_id, body)
    except HoldingNotFoundError:
        raise HTTPException(status_code=404, detail="Holding not found")


@router.delete("/{holding_id}", status_code=204)
def delete_holding(holding_id: str, db: Session = Depends(get_db)):
    try:
        HoldingService.delete_holding(db, holding_id)
    except HoldingNotFoundError:
        raise HTTPException(status_code=404, detail="Holding not found")
