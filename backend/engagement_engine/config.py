"""
config.py
=========
Scoring configuration.

- `ScoringSettings`: immutable per-account weights, budgets and thresholds.
  Built from the `account_settings` row (if any) and passed explicitly into
  every aggregator; there is no process-wide settings object.
- Env flags for the optional V-NPS / silence features and log level.

Env Vars
--------
- LOG_LEVEL             : logging level name, default INFO
- VNPS_ENABLED          : "true" to compute and store V-NPS snapshots, default off
- SILENCE_RISK_ENABLED  : "true" to record silence risk events, default off
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from .models import AccountSettings

logger = logging.getLogger(__name__)


class ScoringSettings(BaseModel):
    """Per-account scoring knobs with the documented defaults."""
    model_config = ConfigDict(frozen=True)

    weight_whatsapp_text: float = Field(1.0, ge=0)
    weight_whatsapp_audio: float = Field(1.5, ge=0)
    weight_live_interaction: float = Field(2.0, ge=0)

    escore_whatsapp_engagement: int = 40
    escore_live_presence: int = 30
    escore_live_participation: int = 30

    threshold_low_escore: int = Field(30, ge=0, le=100)
    threshold_low_roizometer: int = Field(30, ge=0, le=100)
    threshold_silence_days: int = Field(7, ge=0)

    vnps_risk_weight_low: float = 5.0
    vnps_risk_weight_medium: float = 15.0
    vnps_risk_weight_high: float = 30.0
    vnps_eligible_min_score: float = 9.0
    vnps_eligible_max_risk: int = 20
    vnps_eligible_min_escore: int = 60

    @classmethod
    def from_row(cls, row: Optional[AccountSettings]) -> "ScoringSettings":
        """Overlay the non-null columns of a settings row on top of the defaults."""
        if row is None:
            return cls()
        values = {}
        for name in cls.model_fields:
            value = getattr(row, name, None)
            if value is not None:
                values[name] = value
        return cls(**values)


def load_settings(db: Session, account_id: int) -> ScoringSettings:
    """Read the account's settings row; a missing row means defaults."""
    row = db.query(AccountSettings).filter(AccountSettings.account_id == account_id).one_or_none()
    if row is None:
        logger.debug("Account %s has no settings row, using defaults", account_id)
    return ScoringSettings.from_row(row)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() == "true"


def vnps_enabled() -> bool:
    return _env_flag("VNPS_ENABLED")


def silence_risk_enabled() -> bool:
    return _env_flag("SILENCE_RISK_ENABLED")


def configure_logging() -> None:
    """Configure root logging once from LOG_LEVEL."""
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
