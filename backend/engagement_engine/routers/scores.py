"""
routers/scores.py
=================
Trigger and read endpoints for the scoring engine.

Exposes:
- POST /api/recompute-scores                     {account_id?, client_id?}
- GET  /api/clients/{client_id}/scores/latest
- GET  /api/clients/{client_id}/scores           history, newest first
- GET  /api/clients/{client_id}/vnps/latest
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Client, ScoreSnapshot, VnpsSnapshot
from ..recompute import RecomputeError, latest_snapshot, recompute_scores
from .. import schemas

logger = logging.getLogger(__name__)

router = APIRouter(tags=["scores"])


@router.post(
    "/recompute-scores",
    response_model=schemas.RecomputeResponse,
    responses={500: {"model": schemas.ErrorResponse}},
)
def recompute(
    payload: Optional[schemas.RecomputeRequest] = Body(None),
    db: Session = Depends(get_db),
):
    """
    Recompute scores for all accounts, one account, or one client.

    Per-client failures are reported in `results[].errors` with a 200;
    only a run-level failure returns 500 with {"error": ...}.
    """
    payload = payload or schemas.RecomputeRequest()
    try:
        return recompute_scores(db, account_id=payload.account_id, client_id=payload.client_id)
    except RecomputeError as e:
        logger.error("Error in recompute-scores: %s", e)
        return JSONResponse(status_code=500, content={"error": str(e)})


def _require_client(db: Session, client_id: int) -> Client:
    c = db.get(Client, client_id)
    if not c:
        raise HTTPException(status_code=404, detail="Client not found")
    return c


@router.get("/clients/{client_id}/scores/latest", response_model=schemas.ScoreSnapshotOut)
def client_latest_score(client_id: int, db: Session = Depends(get_db)):
    _require_client(db, client_id)
    snap = latest_snapshot(db, client_id)
    if snap is None:
        raise HTTPException(status_code=404, detail="No scores computed yet")
    return snap


@router.get("/clients/{client_id}/scores", response_model=List[schemas.ScoreSnapshotOut])
def client_score_history(
    client_id: int,
    limit: int = Query(30, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Snapshot history for trend charts, newest first."""
    _require_client(db, client_id)
    return db.query(ScoreSnapshot).filter(
        ScoreSnapshot.client_id == client_id
    ).order_by(ScoreSnapshot.computed_at.desc(), ScoreSnapshot.id.desc()).limit(limit).all()


@router.get("/clients/{client_id}/vnps/latest", response_model=schemas.VnpsSnapshotOut)
def client_latest_vnps(client_id: int, db: Session = Depends(get_db)):
    _require_client(db, client_id)
    snap = db.query(VnpsSnapshot).filter(
        VnpsSnapshot.client_id == client_id
    ).order_by(VnpsSnapshot.computed_at.desc(), VnpsSnapshot.id.desc()).first()
    if snap is None:
        raise HTTPException(status_code=404, detail="No V-NPS computed yet")
    return snap
