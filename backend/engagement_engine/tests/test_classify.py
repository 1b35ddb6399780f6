"""
Quadrant, trend and status-policy rules from `engagement_engine.classify`.
"""

from types import SimpleNamespace

from engagement_engine.classify import determine_quadrant, determine_status, determine_trend
from engagement_engine.config import ScoringSettings
from engagement_engine.models import ClientStatus, Quadrant, Trend


def _prev(escore, roizometer):
    return SimpleNamespace(escore=escore, roizometer=roizometer)


def test_quadrant_boundary_is_inclusive():
    assert determine_quadrant(50, 50) == Quadrant.highE_highROI
    assert determine_quadrant(50, 49) == Quadrant.highE_lowROI
    assert determine_quadrant(49, 50) == Quadrant.lowE_highROI
    assert determine_quadrant(49, 49) == Quadrant.lowE_lowROI
    assert determine_quadrant(0, 0) == Quadrant.lowE_lowROI


def test_trend_cold_start_is_flat():
    assert determine_trend(100, 100, None) == Trend.flat
    assert determine_trend(0, 0, None) == Trend.flat


def test_trend_dead_band_is_strict():
    prev = _prev(20, 20)
    assert determine_trend(25, 25, prev) == Trend.flat   # +10
    assert determine_trend(26, 25, prev) == Trend.up     # +11
    assert determine_trend(15, 15, prev) == Trend.flat   # -10
    assert determine_trend(14, 15, prev) == Trend.down   # -11


def test_status_churn_risk_needs_both_scores_low():
    s = ScoringSettings()
    assert determine_status(29, 29, s) == ClientStatus.churn_risk
    assert determine_status(30, 29, s) is None
    assert determine_status(29, 30, s) is None


def test_status_active_needs_both_scores_high():
    s = ScoringSettings()
    assert determine_status(50, 50, s) == ClientStatus.active
    assert determine_status(49, 90, s) is None
    assert determine_status(90, 49, s) is None


def test_status_thresholds_come_from_settings():
    s = ScoringSettings(threshold_low_escore=60, threshold_low_roizometer=60)
    # churn rule is evaluated first, so it wins the overlap
    assert determine_status(55, 55, s) == ClientStatus.churn_risk
    assert determine_status(10, 70, s) is None
