"""
Unit tests for the aggregator functions in `engagement_engine.scoring`.

Scope
-----
Pure helpers only, no database:
- clamp() / round_half_up()         → bounds and x.5 rounding
- impact_score() / source_weight()  → explicit default branches for unknown values
- score_roizometer()                → partitioning, ×5 scaling, 50-point cap per half
- score_message_engagement()        → frequency / responsiveness / audio bonus
- score_live_presence()             → rate, duration, punctuality vs account-wide sessions
- score_live_participation()        → volume + variety, capped at the budget
- score_escore()                    → sum of the three, clamped to 100

How to run
----------
pytest -q backend/engagement_engine/tests
"""

from datetime import datetime, timedelta

from engagement_engine.config import ScoringSettings
from engagement_engine.scoring import (
    clamp,
    compute_scores,
    impact_score,
    round_half_up,
    score_escore,
    score_live_participation,
    score_live_presence,
    score_message_engagement,
    score_roizometer,
    source_weight,
)
from engagement_engine.signals import (
    AttendanceSignal,
    ClientSignals,
    InteractionSignal,
    MessageSignal,
    ValueSignal,
)

NOW = datetime(2024, 6, 1, 12, 0, 0)
DEFAULTS = ScoringSettings()


def _roi(category, impact="low", source="manual"):
    roi_type = "tangible" if category in ("revenue", "cost", "time", "process") else "intangible"
    return ValueSignal(roi_type=roi_type, category=category, impact=impact, source=source,
                       happened_at=NOW - timedelta(days=1))


def _msg(direction="client_to_team", source="whatsapp_text"):
    return MessageSignal(source=source, direction=direction, sent_at=NOW - timedelta(days=1))


def _att(duration=3600, delay=0, session_id=1):
    return AttendanceSignal(live_session_id=session_id, duration_sec=duration, join_delay_sec=delay,
                            join_time=NOW - timedelta(days=2))


def _inter(kind="chat", count=1):
    return InteractionSignal(type=kind, count=count, created_at=NOW - timedelta(days=2))


def _signals(**kw):
    return ClientSignals(client_id=1, account_id=1, since=NOW - timedelta(days=30), **kw)


def test_clamp_bounds_and_passthrough():
    assert clamp(-10) == 0
    assert clamp(150) == 100
    assert clamp(42.5) == 42.5


def test_round_half_up_differs_from_bankers_rounding():
    assert round_half_up(22.5) == 23
    assert round_half_up(52.5) == 53
    assert round_half_up(4.4999) == 4


def test_impact_score_defaults_unknown_to_one():
    assert impact_score("high") == 3
    assert impact_score("medium") == 2
    assert impact_score("low") == 1
    assert impact_score("critical") == 1
    assert impact_score(None) == 1


def test_source_weight_uses_account_settings():
    s = ScoringSettings(weight_whatsapp_text=0.5, weight_whatsapp_audio=2.5, weight_live_interaction=4.0)
    assert source_weight("whatsapp_audio", s) == 2.5
    assert source_weight("whatsapp_text", s) == 0.5
    assert source_weight("zoom", s) == 4.0
    assert source_weight("google_meet", s) == 4.0
    assert source_weight("manual", s) == 1.0
    assert source_weight(None, s) == 1.0


def test_roizometer_empty_is_zero():
    assert score_roizometer([], DEFAULTS) == {"tangible": 0, "intangible": 0, "total": 0}


def test_roizometer_mixed_events_scenario():
    """2× tangible high via audio (3×1.5 each) + 1× intangible medium manual → 45 + 10 = 55."""
    events = [
        _roi("revenue", "high", "whatsapp_audio"),
        _roi("time", "high", "whatsapp_audio"),
        _roi("clarity", "medium", "manual"),
    ]
    r = score_roizometer(events, DEFAULTS)
    assert r["tangible"] == 45
    assert r["intangible"] == 10
    assert r["total"] == 55


def test_roizometer_halves_saturate_at_fifty():
    events = [_roi("cost", "high", "zoom") for _ in range(4)] + [_roi("confidence", "high", "zoom") for _ in range(4)]
    r = score_roizometer(events, DEFAULTS)
    assert r == {"tangible": 50, "intangible": 50, "total": 100}


def test_roizometer_ignores_unknown_categories():
    r = score_roizometer([_roi("mood", "high", "zoom")], DEFAULTS)
    assert r["total"] == 0


def test_message_engagement_empty_is_zero():
    assert score_message_engagement([], 40) == 0


def test_message_engagement_is_not_capped_at_budget():
    """30 client messages, 5 of them audio: (0.5 + 0.5 + 0.3) × 40 = 52."""
    msgs = [_msg() for _ in range(25)] + [_msg(source="whatsapp_audio_transcript") for _ in range(5)]
    assert score_message_engagement(msgs, 40) == 52


def test_message_engagement_partial_activity():
    """10 messages, 3 from the client: (10/30×0.5 + 3/15×0.5) × 40 = 10.67 → 11."""
    msgs = [_msg() for _ in range(3)] + [_msg(direction="team_to_client") for _ in range(7)]
    assert score_message_engagement(msgs, 40) == 11


def test_live_presence_without_sessions_is_zero():
    assert score_live_presence([_att()], sessions_offered=0, budget=30) == 0


def test_live_presence_half_attendance_rounds_half_up():
    """rate 0.5, full hour, punctual: (0.25 + 0.3 + 0.2) × 30 = 22.5 → 23."""
    att = [_att(session_id=1), _att(session_id=2)]
    assert score_live_presence(att, sessions_offered=4, budget=30) == 23


def test_live_presence_sessions_but_no_attendance():
    assert score_live_presence([], sessions_offered=3, budget=30) == 0


def test_live_presence_late_and_short_scores_lower():
    punctual = score_live_presence([_att(duration=3600, delay=0)], sessions_offered=1, budget=30)
    late = score_live_presence([_att(duration=900, delay=600)], sessions_offered=1, budget=30)
    assert punctual == 30
    assert late < punctual


def test_live_participation_capped_at_budget():
    inter = [_inter("chat", 10), _inter("question", 10)]
    assert score_live_participation(inter, 30) == 30


def test_live_participation_missing_count_defaults_to_one():
    """one interaction: (1/20 + 0.1) × 30 = 4.5 → 5."""
    assert score_live_participation([_inter("chat", None)], 30) == 5


def test_escore_empty_window_is_zero():
    assert score_escore(_signals(), DEFAULTS)["total"] == 0


def test_escore_total_clamped_to_hundred():
    msgs = [_msg() for _ in range(25)] + [_msg(source="whatsapp_audio") for _ in range(5)]
    sig = _signals(
        messages=msgs,
        attendance=[_att(session_id=1)],
        sessions_offered=1,
        interactions=[_inter("chat", 20), _inter("poll", 1)],
    )
    e = score_escore(sig, DEFAULTS)
    assert e["message_engagement"] == 52
    assert e["live_presence"] == 30
    assert e["live_participation"] == 30
    assert e["total"] == 100


def test_compute_scores_reports_factors():
    sig = _signals(value_events=[_roi("process", "medium", "whatsapp_text")])
    out = compute_scores(sig, DEFAULTS)
    assert out["roizometer"] == 10
    assert out["escore"] == 0
    assert set(out["factors"]) == {
        "roi_tangible", "roi_intangible", "message_engagement", "live_presence", "live_participation",
    }
