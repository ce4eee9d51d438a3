from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

TRAIT_MIN = 1.0
TRAIT_MAX = 5.0
LEVEL_MIN = 1
LEVEL_MAX = 5


class PersonalityProfile(BaseModel):
    """Big-Five trait vector; out-of-range values are clamped to [1, 5].

    Non-finite values (NaN, infinity) are rejected.
    """

    extraversion: float
    agreeableness: float
    conscientiousness: float
    neuroticism: float
    openness: float

    model_config = {"frozen": True, "allow_inf_nan": False}

    @field_validator(
        "extraversion", "agreeableness", "conscientiousness", "neuroticism", "openness"
    )
    @classmethod
    def _clamp_trait(cls, v: float) -> float:
        return min(max(v, TRAIT_MIN), TRAIT_MAX)


class Interest(BaseModel):
    name: str
    level: int = 3

    model_config = {"frozen": True}

    @field_validator("level")
    @classmethod
    def _clamp_level(cls, v: int) -> int:
        return min(max(v, LEVEL_MIN), LEVEL_MAX)

    @property
    def key(self) -> str:
        return self.name.strip().lower()


class ProfileSnapshot(BaseModel):
    """Point-in-time view of one user, the scorer's sole input unit.

    ``user_id`` is caller metadata for ranking and match records; the scorer
    never reads it.
    """

    user_id: Optional[str] = None
    age: Optional[int] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    seeking_gender: Optional[str] = None
    last_active_at: Optional[datetime] = None
    personality: Optional[PersonalityProfile] = None
    interests: list[Interest] = []

    model_config = {"frozen": True}

    @field_validator("age")
    @classmethod
    def _clamp_age(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        return max(v, 0)
