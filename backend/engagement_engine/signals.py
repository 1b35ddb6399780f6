"""
signals.py
==========
Read side of the engine: windowed slices of the four signal families for one
client, validated into typed records.

Records carry enum-like fields (impact, source, direction, type) as plain
strings. Unknown values are not rejected here; the aggregators resolve them
through explicit default branches.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from .models import (
    AttendanceRecord,
    LiveInteractionRecord,
    LiveSession,
    MessageEvent,
    ValueEvent,
)

WINDOW_DAYS = 30


def window_start(now: datetime, days: int = WINDOW_DAYS) -> datetime:
    """Lower bound of the scoring window, recomputed fresh on every run."""
    return now - timedelta(days=days)


# ---------- typed records ----------

class ValueSignal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    roi_type: str
    category: str
    impact: str = "low"
    source: str = ""
    happened_at: datetime


class MessageSignal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    source: str
    direction: str
    sent_at: datetime


class AttendanceSignal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    live_session_id: int
    duration_sec: Optional[int] = None
    join_delay_sec: Optional[int] = None
    join_time: datetime


class InteractionSignal(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    type: str
    count: Optional[int] = Field(None, ge=1)
    created_at: datetime


class ClientSignals(BaseModel):
    """Everything the aggregators need for one client and one window."""
    client_id: int
    account_id: int
    since: datetime
    value_events: List[ValueSignal] = []
    messages: List[MessageSignal] = []
    attendance: List[AttendanceSignal] = []
    interactions: List[InteractionSignal] = []
    sessions_offered: int = 0


# ---------- readers ----------

def read_value_events(db: Session, client_id: int, account_id: int, since: datetime) -> List[ValueSignal]:
    rows = db.query(ValueEvent).filter(
        ValueEvent.client_id == client_id,
        ValueEvent.account_id == account_id,
        ValueEvent.happened_at >= since,
    ).all()
    return [ValueSignal.model_validate(r) for r in rows]


def read_messages(db: Session, client_id: int, account_id: int, since: datetime) -> List[MessageSignal]:
    rows = db.query(MessageEvent).filter(
        MessageEvent.client_id == client_id,
        MessageEvent.account_id == account_id,
        MessageEvent.sent_at >= since,
    ).all()
    return [MessageSignal.model_validate(r) for r in rows]


def read_attendance(db: Session, client_id: int, account_id: int, since: datetime) -> List[AttendanceSignal]:
    """Attendance is windowed on join_time, independent of when the session started."""
    rows = db.query(AttendanceRecord).filter(
        AttendanceRecord.client_id == client_id,
        AttendanceRecord.account_id == account_id,
        AttendanceRecord.join_time >= since,
    ).all()
    return [AttendanceSignal.model_validate(r) for r in rows]


def read_interactions(db: Session, client_id: int, account_id: int, since: datetime) -> List[InteractionSignal]:
    rows = db.query(LiveInteractionRecord).filter(
        LiveInteractionRecord.client_id == client_id,
        LiveInteractionRecord.account_id == account_id,
        LiveInteractionRecord.created_at >= since,
    ).all()
    return [InteractionSignal.model_validate(r) for r in rows]


def count_sessions_offered(db: Session, account_id: int, since: datetime) -> int:
    """Account-wide count of live sessions started in the window."""
    return db.query(func.count(LiveSession.id)).filter(
        LiveSession.account_id == account_id,
        LiveSession.start_time >= since,
    ).scalar() or 0


def read_client_signals(db: Session, client_id: int, account_id: int, since: datetime) -> ClientSignals:
    """Read all four signal families plus the session denominator for one client."""
    return ClientSignals(
        client_id=client_id,
        account_id=account_id,
        since=since,
        value_events=read_value_events(db, client_id, account_id, since),
        messages=read_messages(db, client_id, account_id, since),
        attendance=read_attendance(db, client_id, account_id, since),
        interactions=read_interactions(db, client_id, account_id, since),
        sessions_offered=int(count_sessions_offered(db, account_id, since)),
    )
