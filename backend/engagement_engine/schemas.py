from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime

from .models import Quadrant, Trend, VnpsClass


class RecomputeRequest(BaseModel):
    account_id: Optional[int] = None
    client_id: Optional[int] = None


class AccountResult(BaseModel):
    account_id: int
    clients_processed: int = 0
    errors: List[str] = []


class RecomputeResponse(BaseModel):
    success: bool = True
    message: str
    results: List[AccountResult]


class ErrorResponse(BaseModel):
    error: str


class ScoreSnapshotOut(BaseModel):
    id: int
    account_id: int
    client_id: int
    escore: int = Field(ge=0, le=100)
    roizometer: int = Field(ge=0, le=100)
    quadrant: Quadrant
    trend: Trend
    computed_at: datetime
    model_config = ConfigDict(from_attributes=True)


class VnpsSnapshotOut(BaseModel):
    id: int
    account_id: int
    client_id: int
    vnps_score: float = Field(ge=0, le=10)
    vnps_class: VnpsClass
    escore: int
    roizometer: int
    risk_index: int
    trend: Trend
    explanation: str
    eligible_for_nps_ask: bool
    computed_at: datetime
    model_config = ConfigDict(from_attributes=True)


class QuadrantSummary(BaseModel):
    account_id: int
    total: int
    quadrants: Dict[str, int]
    trends: Dict[str, int]
    avg_escore: float
    avg_roizometer: float
