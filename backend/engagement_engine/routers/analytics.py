# backend/engagement_engine/routers/analytics.py
from __future__ import annotations
from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Account, Client, Quadrant, Trend
from ..recompute import latest_snapshot
from .. import schemas

router = APIRouter(prefix="/accounts", tags=["analytics"])


@router.get("/{account_id}/quadrants", response_model=schemas.QuadrantSummary)
def quadrant_summary(account_id: int, db: Session = Depends(get_db)):
    """
    Population stats over each client's *current* snapshot:

    {
      "account_id": int,
      "total": int,                       # clients with at least one snapshot
      "quadrants": {quadrant -> count},
      "trends": {trend -> count},
      "avg_escore": float,
      "avg_roizometer": float
    }
    """
    if not db.get(Account, account_id):
        raise HTTPException(status_code=404, detail="Account not found")

    clients: List[Client] = db.query(Client).filter(Client.account_id == account_id).all()

    quadrants: Dict[str, int] = {q.value: 0 for q in Quadrant}
    trends: Dict[str, int] = {t.value: 0 for t in Trend}
    sum_e = 0.0
    sum_roi = 0.0
    n = 0

    for c in clients:
        snap = latest_snapshot(db, c.id)
        if snap is None:
            continue
        n += 1
        sum_e += snap.escore
        sum_roi += snap.roizometer
        quadrants[snap.quadrant.value] += 1
        trends[snap.trend.value] += 1

    return {
        "account_id": account_id,
        "total": n,
        "quadrants": quadrants,
        "trends": trends,
        "avg_escore": round(sum_e / n, 2) if n else 0.0,
        "avg_roizometer": round(sum_roi / n, 2) if n else 0.0,
    }
