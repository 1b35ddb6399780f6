"""
recompute.py
============
Run orchestrator and snapshot writer.

For each account (or one account) the settings are loaded once; each client
(or one client) is then scored independently:

    read signals → ROIzometer + E-Score → quadrant + trend
      → append ScoreSnapshot → status policy → (optional) V-NPS

A failure for one client rolls back the session, is recorded against the
account as "Client {id}: {message}" and never stops the loop. The status
update only happens after the snapshot has been committed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .classify import determine_quadrant, determine_status, determine_trend
from .config import ScoringSettings, load_settings, silence_risk_enabled, vnps_enabled
from .db import utcnow
from .models import Account, Client, ClientStatus, Quadrant, ScoreSnapshot, Trend
from .scoring import compute_scores
from .signals import read_client_signals, window_start
from .vnps import check_silence_risk, write_vnps_snapshot

logger = logging.getLogger(__name__)


class RecomputeError(Exception):
    """Run-level failure: nothing could be processed (e.g. accounts unreadable)."""


# ---------- snapshot writer ----------

def latest_snapshot(db: Session, client_id: int) -> Optional[ScoreSnapshot]:
    """The client's current score: the snapshot with the latest computed_at."""
    return db.query(ScoreSnapshot).filter(
        ScoreSnapshot.client_id == client_id
    ).order_by(ScoreSnapshot.computed_at.desc(), ScoreSnapshot.id.desc()).first()


def write_snapshot(db: Session, account_id: int, client_id: int, escore: int, roizometer: int,
                   quadrant: Quadrant, trend: Trend, computed_at: datetime) -> ScoreSnapshot:
    """Insert one snapshot row in its own transaction. Prior snapshots are never touched."""
    snap = ScoreSnapshot(
        account_id=account_id,
        client_id=client_id,
        escore=escore,
        roizometer=roizometer,
        quadrant=quadrant,
        trend=trend,
        computed_at=computed_at,
    )
    db.add(snap)
    db.commit()
    return snap


def apply_status(db: Session, client_id: int, status: Optional[ClientStatus]) -> bool:
    """Write `status` if the policy chose one. Returns whether a write happened."""
    if status is None:
        return False
    db.query(Client).filter(Client.id == client_id).update({Client.status: status})
    db.commit()
    return True


# ---------- per client ----------

def score_client(db: Session, account_id: int, client_id: int,
                 settings: ScoringSettings, now: datetime) -> ScoreSnapshot:
    """Read, aggregate, classify and persist one client's snapshot."""
    if silence_risk_enabled():
        check_silence_risk(db, client_id, account_id, settings, now)

    signals = read_client_signals(db, client_id, account_id, window_start(now))
    scores = compute_scores(signals, settings)
    escore, roizometer = scores["escore"], scores["roizometer"]

    quadrant = determine_quadrant(escore, roizometer)
    trend = determine_trend(escore, roizometer, latest_snapshot(db, client_id))

    snap = write_snapshot(db, account_id, client_id, escore, roizometer, quadrant, trend, now)
    logger.info("Processed client %s: E=%s, ROI=%s, Q=%s, T=%s, factors=%s",
                client_id, escore, roizometer, quadrant.value, trend.value, scores["factors"])
    return snap


# ---------- per account ----------

def recompute_account(db: Session, account_id: int, client_id: Optional[int] = None,
                      now: Optional[datetime] = None) -> Dict[str, object]:
    """Score every client of one account. Returns {account_id, clients_processed, errors}."""
    if now is None:
        now = utcnow()
    result: Dict[str, object] = {"account_id": account_id, "clients_processed": 0, "errors": []}
    errors: List[str] = result["errors"]

    try:
        settings = load_settings(db, account_id)
        q = db.query(Client.id).filter(Client.account_id == account_id)
        if client_id is not None:
            q = q.filter(Client.id == client_id)
        client_ids = [cid for (cid,) in q.order_by(Client.id).all()]
    except ValidationError as e:
        # out-of-range settings row; other accounts still run
        db.rollback()
        logger.exception("Invalid settings for account %s", account_id)
        errors.append(f"Failed to load settings: {e}")
        return result
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error fetching clients for account %s", account_id)
        errors.append(f"Failed to fetch clients: {e}")
        return result

    for cid in client_ids:
        try:
            snap = score_client(db, account_id, cid, settings, now)
        except Exception as e:
            db.rollback()
            logger.exception("Error processing client %s", cid)
            errors.append(f"Client {cid}: {e}")
            continue

        result["clients_processed"] += 1

        try:
            new_status = determine_status(snap.escore, snap.roizometer, settings)
            if apply_status(db, cid, new_status):
                logger.info("Client %s status -> %s", cid, new_status.value)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Error updating status for client %s", cid)
            errors.append(f"Client {cid}: status update failed: {e}")

        if vnps_enabled():
            try:
                write_vnps_snapshot(db, cid, account_id, snap.escore, snap.roizometer, settings, now)
            except Exception:
                db.rollback()
                logger.exception("Error creating V-NPS snapshot for client %s", cid)

    return result


# ---------- run ----------

def recompute_scores(db: Session, account_id: Optional[int] = None, client_id: Optional[int] = None,
                     now: Optional[datetime] = None) -> Dict[str, object]:
    """
    Entry point for the batch job.

    - no params                  → all accounts, all clients
    - account_id                 → all clients of that account
    - account_id + client_id     → exactly that client
    - client_id alone            → that client, in whichever account owns it

    Raises RecomputeError when the account list cannot be read.
    """
    if now is None:
        now = utcnow()
    logger.info("Starting score recalculation (account_id=%s, client_id=%s)", account_id, client_id)

    try:
        q = db.query(Account.id)
        if account_id is not None:
            q = q.filter(Account.id == account_id)
        account_ids = [aid for (aid,) in q.order_by(Account.id).all()]
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Error fetching accounts")
        raise RecomputeError(f"Failed to fetch accounts: {e}") from e

    results = [recompute_account(db, aid, client_id=client_id, now=now) for aid in account_ids]
    total = sum(r["clients_processed"] for r in results)
    logger.info("Score recalculation complete. Total clients processed: %s", total)

    return {
        "success": True,
        "message": f"Processed {total} clients",
        "results": results,
    }
