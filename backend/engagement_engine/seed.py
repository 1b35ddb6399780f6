from datetime import timedelta
from random import random, randint, choice
from typing import Dict

from faker import Faker
from sqlalchemy.orm import Session

from .db import utcnow
from .models import (
    Account,
    AccountSettings,
    AttendanceRecord,
    Client,
    ClientStatus,
    LiveInteractionRecord,
    LiveSession,
    MessageEvent,
    RiskEvent,
    ValueEvent,
)

fake = Faker()

TANGIBLE = ["revenue", "cost", "time", "process"]
INTANGIBLE = ["clarity", "confidence", "tranquility", "status_direction"]
ROI_SOURCES = ["whatsapp_text", "whatsapp_audio", "zoom", "google_meet", "manual"]
MESSAGE_SOURCES = ["whatsapp_text", "whatsapp_text", "whatsapp_text", "whatsapp_audio_transcript"]
INTERACTION_TYPES = ["chat", "question", "reaction", "hand_raise", "poll"]


def _persona() -> str:
    """
    Personas create natural spread across both axes.
    champion: chatty, shows up, reports wins
    quiet_winner: little traffic but clear ROI
    busy_skeptic: lots of talk, little perceived value
    fading: drifting away, occasional risk signals
    """
    return choice(["champion", "quiet_winner", "busy_skeptic", "fading", "champion", "fading"])


def _persona_params(persona: str) -> Dict[str, object]:
    """Daily probabilities / ranges controlling event generation."""
    return {
        "champion":     dict(p_msg=0.9,  msgs=(1, 4), p_client=0.6, p_roi=0.12, p_high=0.5, p_attend=0.85, p_risk=0.01),
        "quiet_winner": dict(p_msg=0.3,  msgs=(0, 2), p_client=0.5, p_roi=0.10, p_high=0.6, p_attend=0.40, p_risk=0.01),
        "busy_skeptic": dict(p_msg=0.85, msgs=(1, 5), p_client=0.7, p_roi=0.02, p_high=0.1, p_attend=0.70, p_risk=0.04),
        "fading":       dict(p_msg=0.15, msgs=(0, 1), p_client=0.3, p_roi=0.01, p_high=0.1, p_attend=0.15, p_risk=0.06),
    }[persona]


def _seed_sessions(db: Session, account: Account, days: int) -> list:
    """Two live sessions a week for the account."""
    now = utcnow()
    sessions = []
    for d in range(days, 0, -1):
        day = now - timedelta(days=d)
        if day.weekday() in (1, 3):
            s = LiveSession(account_id=account.id, title=f"Group call {day.date().isoformat()}",
                            start_time=day.replace(hour=18, minute=0, second=0, microsecond=0))
            db.add(s)
            sessions.append(s)
    db.flush()
    return sessions


def _seed_client(db: Session, account: Account, sessions: list, days: int) -> None:
    now = utcnow()
    c = Client(account_id=account.id, name=fake.name(), status=ClientStatus.onboarding)
    db.add(c)
    db.flush()

    P = _persona_params(_persona())

    for d in range(days, 0, -1):
        day = now - timedelta(days=d)

        if random() < P["p_msg"]:
            for _ in range(randint(*P["msgs"])):
                direction = "client_to_team" if random() < P["p_client"] else "team_to_client"
                db.add(MessageEvent(account_id=account.id, client_id=c.id, source=choice(MESSAGE_SOURCES),
                                    direction=direction, sent_at=day + timedelta(hours=randint(8, 22))))

        if random() < P["p_roi"]:
            tangible = random() < 0.5
            impact = "high" if random() < P["p_high"] else choice(["low", "medium"])
            db.add(ValueEvent(account_id=account.id, client_id=c.id,
                              roi_type="tangible" if tangible else "intangible",
                              category=choice(TANGIBLE if tangible else INTANGIBLE),
                              impact=impact, source=choice(ROI_SOURCES),
                              happened_at=day + timedelta(hours=randint(8, 22))))

        if random() < P["p_risk"]:
            db.add(RiskEvent(account_id=account.id, client_id=c.id, source="ai",
                             risk_level=choice(["low", "medium", "high"]),
                             reason=fake.sentence(nb_words=6), happened_at=day))

    for s in sessions:
        if random() >= P["p_attend"]:
            continue
        delay = randint(0, 900)
        db.add(AttendanceRecord(account_id=account.id, client_id=c.id, live_session_id=s.id,
                                duration_sec=randint(600, 4200), join_delay_sec=delay,
                                join_time=s.start_time + timedelta(seconds=delay)))
        for _ in range(randint(0, 3)):
            db.add(LiveInteractionRecord(account_id=account.id, client_id=c.id,
                                         type=choice(INTERACTION_TYPES), count=randint(1, 4),
                                         created_at=s.start_time + timedelta(minutes=randint(1, 60))))


def seed_if_needed(db: Session):
    # If you want a full reset, drop the DB volume or delete rows before calling this.
    if db.query(Account).count() > 0:
        return

    days = 60
    for i in range(3):
        account = Account(name=fake.company())
        db.add(account)
        db.flush()
        # one tenant tunes its weights, the others run on defaults
        if i == 0:
            db.add(AccountSettings(account_id=account.id, weight_whatsapp_audio=2.0,
                                   threshold_low_escore=25, threshold_low_roizometer=25))
        sessions = _seed_sessions(db, account, days)
        for _ in range(randint(15, 25)):
            _seed_client(db, account, sessions, days)

    db.commit()
