"""
vnps.py
=======
Optional "live NPS" layer on top of the two scores, plus the silence watcher.

V-NPS = (ROIzometer×0.5 + E-Score×0.3 + (100 − RiskIndex)×0.2) / 10, one decimal.
RiskIndex is a recency-weighted sum of the client's risk events over 30 days:
  ≤7 days old   → ×1.2
  7..14 days    → ×1.0
  >14 days      → linear decay down to ×0.5
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from math import floor
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from .config import ScoringSettings
from .models import MessageEvent, RiskEvent, RiskLevel, Trend, VnpsClass, VnpsSnapshot
from .scoring import round_half_up
from .signals import window_start

logger = logging.getLogger(__name__)

PROMOTER_MIN = 9.0
NEUTRAL_MIN = 7.0
VNPS_TREND_STEP = 0.5
MIN_SILENCE_DAYS = 3
SILENCE_DEDUP_DAYS = 7
SILENCE_REASON_PREFIX = "Silence of"


# ---------- pure helpers (UNIT-TESTED) ----------

def risk_weight(level: str | None, settings: ScoringSettings) -> float:
    if level == RiskLevel.high.value:
        return settings.vnps_risk_weight_high
    if level == RiskLevel.medium.value:
        return settings.vnps_risk_weight_medium
    return settings.vnps_risk_weight_low


def recency_multiplier(days_ago: float) -> float:
    if days_ago <= 7:
        return 1.2
    if days_ago > 14:
        return max(0.5, 1 - ((days_ago - 14) / 32))
    return 1.0


def score_risk_index(events: Iterable[Tuple[str, datetime]], settings: ScoringSettings, now: datetime) -> int:
    """events: (risk_level, happened_at) pairs. Returns 0..100."""
    total = 0.0
    for level, happened_at in events:
        days_ago = (now - happened_at).total_seconds() / 86400
        total += risk_weight(level, settings) * recency_multiplier(days_ago)
    return min(100, round_half_up(total))


def score_vnps(escore: int, roizometer: int, risk_index: int) -> float:
    raw = roizometer * 0.5 + escore * 0.3 + (100 - risk_index) * 0.2
    return round_half_up(raw) / 10


def classify_vnps(score: float) -> VnpsClass:
    if score >= PROMOTER_MIN:
        return VnpsClass.promoter
    if score >= NEUTRAL_MIN:
        return VnpsClass.neutral
    return VnpsClass.detractor


def vnps_trend(score: float, previous: Optional[float]) -> Trend:
    if previous is None:
        return Trend.flat
    diff = round(score - previous, 1)
    if diff >= VNPS_TREND_STEP:
        return Trend.up
    if diff <= -VNPS_TREND_STEP:
        return Trend.down
    return Trend.flat


def is_eligible_for_nps_ask(score: float, risk_index: int, escore: int, settings: ScoringSettings) -> bool:
    return (
        score >= settings.vnps_eligible_min_score
        and risk_index <= settings.vnps_eligible_max_risk
        and escore >= settings.vnps_eligible_min_escore
    )


def explain_vnps(score: float, vnps_class: VnpsClass, roizometer: int, escore: int,
                 risk_index: int, trend: Trend) -> str:
    """One sentence naming the class, the factors that dominate it, and the trend."""
    parts = [f"V-NPS {vnps_class.value}"]

    factors: List[str] = []
    if roizometer >= 70:
        factors.append("high perceived ROI")
    elif roizometer <= 30:
        factors.append("low perceived ROI")

    if escore >= 70:
        factors.append("strong engagement")
    elif escore <= 30:
        factors.append("weak engagement")
    elif trend == Trend.down:
        factors.append("falling engagement")

    if risk_index >= 50:
        factors.append("high recent risk")
    elif risk_index >= 25:
        factors.append("medium recent risk")

    if factors:
        lead = "supported by" if score >= NEUTRAL_MIN else "pulled down by"
        parts.append(f"{lead} " + " and ".join(factors))

    if trend == Trend.up:
        parts.append("(trending up)")
    elif trend == Trend.down:
        parts.append("(trending down)")
    return " ".join(parts)


# ---------- DB-backed (INTEGRATION-TESTED) ----------

def compute_risk_index(db: Session, client_id: int, account_id: int,
                       settings: ScoringSettings, now: datetime) -> int:
    rows = db.query(RiskEvent.risk_level, RiskEvent.happened_at).filter(
        RiskEvent.client_id == client_id,
        RiskEvent.account_id == account_id,
        RiskEvent.happened_at >= window_start(now),
    ).all()
    return score_risk_index([(lvl, ts) for (lvl, ts) in rows], settings, now)


def compute_vnps(db: Session, client_id: int, account_id: int, escore: int, roizometer: int,
                 settings: ScoringSettings, now: datetime) -> Dict[str, object]:
    risk_index = compute_risk_index(db, client_id, account_id, settings, now)
    score = score_vnps(escore, roizometer, risk_index)
    vnps_class = classify_vnps(score)

    prev = db.query(VnpsSnapshot.vnps_score).filter(
        VnpsSnapshot.client_id == client_id
    ).order_by(VnpsSnapshot.computed_at.desc(), VnpsSnapshot.id.desc()).first()
    trend = vnps_trend(score, prev[0] if prev else None)

    return {
        "vnps_score": score,
        "vnps_class": vnps_class,
        "risk_index": risk_index,
        "trend": trend,
        "explanation": explain_vnps(score, vnps_class, roizometer, escore, risk_index, trend),
        "eligible_for_nps_ask": is_eligible_for_nps_ask(score, risk_index, escore, settings),
    }


def write_vnps_snapshot(db: Session, client_id: int, account_id: int, escore: int, roizometer: int,
                        settings: ScoringSettings, now: datetime) -> VnpsSnapshot:
    result = compute_vnps(db, client_id, account_id, escore, roizometer, settings, now)
    snap = VnpsSnapshot(
        account_id=account_id,
        client_id=client_id,
        escore=escore,
        roizometer=roizometer,
        computed_at=now,
        **result,
    )
    db.add(snap)
    db.commit()
    logger.info("V-NPS for client %s: %.1f (%s)", client_id, snap.vnps_score, snap.vnps_class.value)
    return snap


def check_silence_risk(db: Session, client_id: int, account_id: int,
                       settings: ScoringSettings, now: datetime) -> Optional[RiskEvent]:
    """
    Append a system risk event when the client's last message to the team is
    older than the silence threshold. At most one such event per 7 days.
    """
    last_sent = db.query(MessageEvent.sent_at).filter(
        MessageEvent.client_id == client_id,
        MessageEvent.account_id == account_id,
        MessageEvent.direction == "client_to_team",
    ).order_by(MessageEvent.sent_at.desc()).first()
    if last_sent is None:
        return None

    last_at = last_sent[0]
    days_silent = int(floor((now - last_at).total_seconds() / 86400))
    threshold = max(MIN_SILENCE_DAYS, settings.threshold_silence_days)
    if days_silent < threshold:
        return None

    existing = db.query(RiskEvent.id).filter(
        RiskEvent.client_id == client_id,
        RiskEvent.source == "system",
        RiskEvent.reason.like(f"{SILENCE_REASON_PREFIX}%"),
        RiskEvent.happened_at >= now - timedelta(days=SILENCE_DEDUP_DAYS),
    ).first()
    if existing is not None:
        return None

    level = RiskLevel.high if days_silent >= threshold * 2 else RiskLevel.medium
    ev = RiskEvent(
        account_id=account_id,
        client_id=client_id,
        source="system",
        risk_level=level.value,
        reason=f"{SILENCE_REASON_PREFIX} {days_silent} days",
        evidence_snippet=f"Last message: {last_at.date().isoformat()}",
        happened_at=now,
    )
    db.add(ev)
    db.commit()
    logger.info("Silence risk for client %s: %s days (threshold %s, level %s)",
                client_id, days_silent, threshold, level.value)
    return ev
