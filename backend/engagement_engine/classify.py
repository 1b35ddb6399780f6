"""
classify.py
===========
Pure labelling of a client's (E-Score, ROIzometer) pair.

- determine_quadrant:  threshold 50 on each axis, inclusive
- determine_trend:     combined-score delta vs the previous snapshot, ±10 dead band
- determine_status:    churn_risk / active / no change
"""

from __future__ import annotations

from typing import Optional, Protocol

from .config import ScoringSettings
from .models import ClientStatus, Quadrant, Trend

QUADRANT_THRESHOLD = 50
TREND_BAND = 10
ACTIVE_THRESHOLD = 50


class HasScores(Protocol):
    escore: int
    roizometer: int


def determine_quadrant(escore: int, roizometer: int) -> Quadrant:
    high_e = escore >= QUADRANT_THRESHOLD
    high_roi = roizometer >= QUADRANT_THRESHOLD
    if high_e and high_roi:
        return Quadrant.highE_highROI
    if high_e:
        return Quadrant.highE_lowROI
    if high_roi:
        return Quadrant.lowE_highROI
    return Quadrant.lowE_lowROI


def determine_trend(escore: int, roizometer: int, previous: Optional[HasScores]) -> Trend:
    """
    Compare escore+roizometer (0..200) with the previous snapshot.
    No previous snapshot → flat. Exactly ±10 is still flat.
    """
    if previous is None:
        return Trend.flat
    diff = (escore + roizometer) - (previous.escore + previous.roizometer)
    if diff > TREND_BAND:
        return Trend.up
    if diff < -TREND_BAND:
        return Trend.down
    return Trend.flat


def determine_status(escore: int, roizometer: int, settings: ScoringSettings) -> Optional[ClientStatus]:
    """
    Return the status to write, or None to leave the client's status untouched.
    There is no other demotion path out of `active` than the churn_risk rule.
    """
    if escore < settings.threshold_low_escore and roizometer < settings.threshold_low_roizometer:
        return ClientStatus.churn_risk
    if escore >= ACTIVE_THRESHOLD and roizometer >= ACTIVE_THRESHOLD:
        return ClientStatus.active
    return None
