"""
scoring.py
==========
Aggregators: fold a client's windowed signals into two 0–100 scores.

- ROIzometer  = tangible half (0..50) + intangible half (0..50).
  Each half: sum(impact_score × source_weight) × 5, capped at 50, so a handful
  of strong signals saturates it.
- E-Score     = message engagement + live presence + live participation,
  each scaled into its configured point budget, total clamped to 100.

Rounding is half-up to stay compatible with scores produced by the previous
engine (Python's `round` would send 52.5 to 52).
"""

# backend/engagement_engine/scoring.py
from __future__ import annotations

from math import floor
from typing import Dict, Iterable, List

from .config import ScoringSettings
from .signals import (
    AttendanceSignal,
    ClientSignals,
    InteractionSignal,
    MessageSignal,
    ValueSignal,
)


# ---------- utilities ----------

def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a numeric value to [lo, hi]."""
    return max(lo, min(hi, float(x)))


def round_half_up(x: float) -> int:
    return int(floor(float(x) + 0.5))


# ROI tuning
TANGIBLE_CATEGORIES = frozenset({"revenue", "cost", "time", "process"})
INTANGIBLE_CATEGORIES = frozenset({"clarity", "confidence", "tranquility", "status_direction"})
IMPACT_SCORES: Dict[str, int] = {"high": 3, "medium": 2, "low": 1}
ROI_SCALE_FACTOR = 5
ROI_HALF_CAP = 50

# signal sources
AUDIO_ROI_SOURCE = "whatsapp_audio"
TEXT_ROI_SOURCE = "whatsapp_text"
LIVE_SOURCES = frozenset({"zoom", "google_meet", "meet"})
AUDIO_MESSAGE_SOURCES = frozenset({"whatsapp_audio_transcript", "whatsapp_audio"})
CLIENT_TO_TEAM = "client_to_team"

# E-Score targets
MESSAGE_FREQUENCY_TARGET = 30
CLIENT_MESSAGE_TARGET = 15
AUDIO_BONUS_PER_MESSAGE = 0.1
AUDIO_BONUS_CAP = 0.3
FULL_DURATION_SEC = 3600
PUNCTUAL_DELAY_SEC = 300
INTERACTION_TARGET = 20
TYPE_BONUS_PER_KIND = 0.1


# ---------- ROIzometer (UNIT-TESTED) ----------

def impact_score(impact: str | None) -> int:
    """high→3, medium→2, low or anything unrecognized→1."""
    return IMPACT_SCORES.get((impact or "").lower(), 1)


def source_weight(source: str | None, settings: ScoringSettings) -> float:
    """Multiplier for where the ROI evidence came from; unknown sources weigh 1.0."""
    s = (source or "").lower()
    if s == AUDIO_ROI_SOURCE:
        return settings.weight_whatsapp_audio
    if s == TEXT_ROI_SOURCE:
        return settings.weight_whatsapp_text
    if s in LIVE_SOURCES:
        return settings.weight_live_interaction
    return 1.0


def roi_raw_score(events: Iterable[ValueSignal], settings: ScoringSettings) -> float:
    total = 0.0
    for ev in events:
        total += impact_score(ev.impact) * source_weight(ev.source, settings)
    return total


def scale_roi_half(raw: float) -> int:
    """raw × 5, rounded, capped to [0, 50]."""
    return int(clamp(round_half_up(raw * ROI_SCALE_FACTOR), 0, ROI_HALF_CAP))


def score_roizometer(events: List[ValueSignal], settings: ScoringSettings) -> Dict[str, int]:
    """
    Returns {"tangible", "intangible", "total"}; all zero without events.
    Events whose category is in neither set contribute nothing.
    """
    if not events:
        return {"tangible": 0, "intangible": 0, "total": 0}

    tangible = [e for e in events if e.category in TANGIBLE_CATEGORIES]
    intangible = [e for e in events if e.category in INTANGIBLE_CATEGORIES]

    t = scale_roi_half(roi_raw_score(tangible, settings))
    i = scale_roi_half(roi_raw_score(intangible, settings))
    return {"tangible": t, "intangible": i, "total": t + i}


# ---------- E-Score sub-scores (UNIT-TESTED) ----------

def score_message_engagement(messages: List[MessageSignal], budget: int) -> int:
    """
    frequency (50%) + client responsiveness (50%) + audio bonus (up to 30%).
    Deliberately not capped at `budget`: heavy audio traffic can exceed it and
    only the E-Score total is clamped.
    """
    if not messages:
        return 0
    total = len(messages)
    from_client = sum(1 for m in messages if m.direction == CLIENT_TO_TEAM)
    audio = sum(1 for m in messages if m.source in AUDIO_MESSAGE_SOURCES)

    frequency_score = min(1.0, total / MESSAGE_FREQUENCY_TARGET)
    response_score = min(1.0, from_client / CLIENT_MESSAGE_TARGET)
    audio_bonus = min(AUDIO_BONUS_CAP, audio * AUDIO_BONUS_PER_MESSAGE)
    return round_half_up((frequency_score * 0.5 + response_score * 0.5 + audio_bonus) * budget)


def score_live_presence(attendance: List[AttendanceSignal], sessions_offered: int, budget: int) -> int:
    """
    attendance rate (50%) + average duration vs one hour (30%) + punctuality (20%).
    The denominator is every session the account ran in the window.
    """
    if sessions_offered <= 0:
        return 0
    attended = len(attendance)
    divisor = attended or 1

    attendance_rate = min(1.0, attended / sessions_offered)
    avg_duration = sum((a.duration_sec or 0) for a in attendance) / divisor
    duration_score = min(1.0, avg_duration / FULL_DURATION_SEC)
    punctual = sum(1 for a in attendance if (a.join_delay_sec or 0) < PUNCTUAL_DELAY_SEC)
    punctuality_score = punctual / divisor

    return round_half_up(
        (attendance_rate * 0.5 + duration_score * 0.3 + punctuality_score * 0.2) * budget
    )


def score_live_participation(interactions: List[InteractionSignal], budget: int) -> int:
    """Volume vs 20 interactions plus 0.1 per distinct kind, capped at `budget`."""
    if not interactions:
        return 0
    total_interactions = sum((i.count or 1) for i in interactions)
    type_bonus = len({i.type for i in interactions}) * TYPE_BONUS_PER_KIND
    raw = round_half_up((min(1.0, total_interactions / INTERACTION_TARGET) + type_bonus) * budget)
    return min(budget, raw)


def score_escore(signals: ClientSignals, settings: ScoringSettings) -> Dict[str, int]:
    """Returns the three sub-scores and the clamped total."""
    message = score_message_engagement(signals.messages, settings.escore_whatsapp_engagement)
    presence = score_live_presence(signals.attendance, signals.sessions_offered, settings.escore_live_presence)
    participation = score_live_participation(signals.interactions, settings.escore_live_participation)
    total = int(clamp(message + presence + participation))
    return {
        "message_engagement": message,
        "live_presence": presence,
        "live_participation": participation,
        "total": total,
    }


# ---------- combined breakdown ----------

def compute_scores(signals: ClientSignals, settings: ScoringSettings) -> Dict[str, int | Dict[str, int]]:
    """Compute both scores with their parts: {"escore", "roizometer", "factors"}."""
    roi = score_roizometer(signals.value_events, settings)
    e = score_escore(signals, settings)
    return {
        "escore": e["total"],
        "roizometer": roi["total"],
        "factors": {
            "roi_tangible": roi["tangible"],
            "roi_intangible": roi["intangible"],
            "message_engagement": e["message_engagement"],
            "live_presence": e["live_presence"],
            "live_participation": e["live_participation"],
        },
    }
