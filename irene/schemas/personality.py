from pydantic import BaseModel

from irene.schemas.profile import PersonalityProfile


class AssessmentQuestion(BaseModel):
    id: str
    text: str
    trait: str


class AssessmentRequest(BaseModel):
    answers: dict[str, int]


class AssessmentResponse(BaseModel):
    scores: PersonalityProfile
    insights: str
