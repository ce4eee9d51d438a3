from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Optional

from irene.schemas.profile import ProfileSnapshot

MAX_REASONS = 3


class FactorBreakdown(BaseModel):
    personality: float
    interests: float
    geography: float
    demographics: float
    activity: float

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        return (
            self.personality
            + self.interests
            + self.geography
            + self.demographics
            + self.activity
        )


class CompatibilityResult(BaseModel):
    score: float
    reasons: list[str] = []
    breakdown: FactorBreakdown

    model_config = {"frozen": True}


class MatchStatus(str, Enum):
    PENDING = "pending"
    LIKED = "liked"
    PASSED = "passed"
    MATCHED = "matched"


class MatchAction(str, Enum):
    PENDING = "pending"
    LIKE = "like"
    PASS = "pass"


class RankedCandidate(BaseModel):
    user_id: Optional[str] = None
    score: float
    display_score: float
    reasons: list[str] = []
    breakdown: FactorBreakdown


class MatchRecord(BaseModel):
    user1_id: str
    user2_id: str
    compatibility_score: float
    match_status: MatchStatus = MatchStatus.PENDING
    user1_action: MatchAction = MatchAction.PENDING
    user2_action: MatchAction = MatchAction.PENDING
    ai_match_reason: str = ""
    matched_at: Optional[datetime] = None


# ── Request / response bodies ─────────────────────────────────────────────────

class ScoreRequest(BaseModel):
    user_a: ProfileSnapshot
    user_b: ProfileSnapshot
    as_of: Optional[datetime] = None


class MatchGenerateRequest(BaseModel):
    user: ProfileSnapshot
    candidates: list[ProfileSnapshot]
    min_compatibility: Optional[float] = Field(None, ge=0, le=100)
    limit: Optional[int] = Field(None, ge=1, le=100)
    exclude_ids: list[str] = []
    as_of: Optional[datetime] = None


class MatchGenerateResponse(BaseModel):
    matches: list[MatchRecord]


class FeedRequest(BaseModel):
    user: ProfileSnapshot
    candidates: list[ProfileSnapshot]
    limit: Optional[int] = Field(None, ge=1, le=100)
    exclude_ids: list[str] = []
    as_of: Optional[datetime] = None


class FeedResponse(BaseModel):
    candidates: list[RankedCandidate]


class MatchActionRequest(BaseModel):
    record: MatchRecord
    actor_id: str
    action: MatchAction
