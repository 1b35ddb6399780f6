"""
models.py
=========
ORM models and enums for the engagement scoring engine.

- Quadrant / Trend / ClientStatus / RiskLevel / VnpsClass: labels written by the engine
- Account, AccountSettings, Client:     tenant, per-tenant tuning, scored entity
- ValueEvent, MessageEvent:             ROI evidence and message traffic (read-only here)
- LiveSession, AttendanceRecord,
  LiveInteractionRecord:                live-meeting signals (read-only here)
- RiskEvent:                            risk evidence feeding the V-NPS risk index
- ScoreSnapshot, VnpsSnapshot:          append-only score history
"""

from __future__ import annotations

from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .db import Base, utcnow


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------
class Quadrant(PyEnum):
    """Coarse (E-Score, ROIzometer) bucket, threshold 50 on both axes."""
    highE_highROI = "highE_highROI"
    highE_lowROI = "highE_lowROI"
    lowE_highROI = "lowE_highROI"
    lowE_lowROI = "lowE_lowROI"


class Trend(PyEnum):
    up = "up"
    flat = "flat"
    down = "down"


class ClientStatus(PyEnum):
    """Lifecycle status. The engine only ever writes `active` or `churn_risk`."""
    active = "active"
    churn_risk = "churn_risk"
    onboarding = "onboarding"
    paused = "paused"
    churned = "churned"


class RiskLevel(PyEnum):
    low = "low"
    medium = "medium"
    high = "high"


class VnpsClass(PyEnum):
    detractor = "detractor"
    neutral = "neutral"
    promoter = "promoter"


# -----------------------------------------------------------------------------
# Tenants and clients
# -----------------------------------------------------------------------------
class Account(Base):
    """Tenant. Every signal, setting and client is scoped to one account."""
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    settings = relationship("AccountSettings", back_populates="account", uselist=False)
    clients = relationship("Client", back_populates="account")


class AccountSettings(Base):
    """
    Per-tenant scoring weights, point budgets and thresholds.

    Zero or one row per account; nullable columns fall back to the defaults in
    `config.ScoringSettings`. Edited by tenant admins, read-only for the engine.
    """
    __tablename__ = "account_settings"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, unique=True)

    # ROI source multipliers
    weight_whatsapp_text = Column(Float, nullable=True)
    weight_whatsapp_audio = Column(Float, nullable=True)
    weight_live_interaction = Column(Float, nullable=True)

    # E-Score point budgets (meant to sum to 100)
    escore_whatsapp_engagement = Column(Integer, nullable=True)
    escore_live_presence = Column(Integer, nullable=True)
    escore_live_participation = Column(Integer, nullable=True)

    # status policy
    threshold_low_escore = Column(Integer, nullable=True)
    threshold_low_roizometer = Column(Integer, nullable=True)
    threshold_silence_days = Column(Integer, nullable=True)

    # V-NPS
    vnps_risk_weight_low = Column(Float, nullable=True)
    vnps_risk_weight_medium = Column(Float, nullable=True)
    vnps_risk_weight_high = Column(Float, nullable=True)
    vnps_eligible_min_score = Column(Float, nullable=True)
    vnps_eligible_max_risk = Column(Integer, nullable=True)
    vnps_eligible_min_escore = Column(Integer, nullable=True)

    account = relationship("Account", back_populates="settings")


class Client(Base):
    """
    A customer of a tenant. Owned by the CRM; the engine reads `id`/`account_id`
    and conditionally writes `status`.
    """
    __tablename__ = "clients"
    __table_args__ = (
        Index("ix_clients_account", "account_id"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    status = Column(Enum(ClientStatus), default=ClientStatus.onboarding, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    account = relationship("Account", back_populates="clients")


# -----------------------------------------------------------------------------
# Signals (produced upstream, read-only here)
# -----------------------------------------------------------------------------
class ValueEvent(Base):
    """
    ROI evidence detected by the message classifier.

    `impact` and `source` are kept as plain strings; unknown values are
    resolved by the aggregator's default branches rather than rejected.
    """
    __tablename__ = "roi_events"
    __table_args__ = (
        Index("ix_roi_events_client_ts", "client_id", "happened_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    roi_type = Column(String, nullable=False)    # tangible | intangible
    category = Column(String, nullable=False)    # revenue | cost | ... | status_direction
    impact = Column(String, nullable=False, default="low")
    source = Column(String, nullable=False, default="manual")
    happened_at = Column(DateTime, default=utcnow, nullable=False)


class MessageEvent(Base):
    __tablename__ = "message_events"
    __table_args__ = (
        Index("ix_message_events_client_ts", "client_id", "sent_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    source = Column(String, nullable=False)      # whatsapp_text | whatsapp_audio_transcript | ...
    direction = Column(String, nullable=False)   # client_to_team | team_to_client
    sent_at = Column(DateTime, default=utcnow, nullable=False)


class LiveSession(Base):
    """A live meeting offered by the account. Only counted, never scored directly."""
    __tablename__ = "live_sessions"
    __table_args__ = (
        Index("ix_live_sessions_account_start", "account_id", "start_time"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=True)
    start_time = Column(DateTime, nullable=False)

    attendance = relationship("AttendanceRecord", back_populates="live_session")


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        Index("ix_attendance_client_join", "client_id", "join_time"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    live_session_id = Column(Integer, ForeignKey("live_sessions.id", ondelete="CASCADE"), nullable=False)
    duration_sec = Column(Integer, nullable=True)
    join_delay_sec = Column(Integer, nullable=True)
    join_time = Column(DateTime, nullable=False)

    live_session = relationship("LiveSession", back_populates="attendance")


class LiveInteractionRecord(Base):
    __tablename__ = "live_interactions"
    __table_args__ = (
        Index("ix_live_interactions_client_ts", "client_id", "created_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    type = Column(String, nullable=False)        # chat | question | reaction | ...
    count = Column(Integer, nullable=True, default=1)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class RiskEvent(Base):
    __tablename__ = "risk_events"
    __table_args__ = (
        Index("ix_risk_events_client_ts", "client_id", "happened_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    source = Column(String, nullable=False)      # ai | system | manual
    risk_level = Column(String, nullable=False, default="low")
    reason = Column(String, nullable=True)
    evidence_snippet = Column(Text, nullable=True)
    happened_at = Column(DateTime, default=utcnow, nullable=False)


# -----------------------------------------------------------------------------
# Engine output (append-only)
# -----------------------------------------------------------------------------
class ScoreSnapshot(Base):
    """
    One immutable score record per client per run.

    Never updated or deleted by the engine: the latest `computed_at` is the
    client's current score and the history drives trend detection.
    """
    __tablename__ = "score_snapshots"
    __table_args__ = (
        Index("ix_score_snapshots_client_computed", "client_id", "computed_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    escore = Column(Integer, nullable=False)
    roizometer = Column(Integer, nullable=False)
    quadrant = Column(Enum(Quadrant), nullable=False)
    trend = Column(Enum(Trend), nullable=False)
    computed_at = Column(DateTime, default=utcnow, nullable=False)


class VnpsSnapshot(Base):
    __tablename__ = "vnps_snapshots"
    __table_args__ = (
        Index("ix_vnps_snapshots_client_computed", "client_id", "computed_at"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    vnps_score = Column(Float, nullable=False)
    vnps_class = Column(Enum(VnpsClass), nullable=False)
    escore = Column(Integer, nullable=False)
    roizometer = Column(Integer, nullable=False)
    risk_index = Column(Integer, nullable=False)
    trend = Column(Enum(Trend), nullable=False)
    explanation = Column(Text, nullable=False, default="")
    eligible_for_nps_ask = Column(Boolean, nullable=False, default=False)
    computed_at = Column(DateTime, default=utcnow, nullable=False)
