"""
Irene — Personality Assessment API
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, status

from irene.schemas.personality import (
    AssessmentQuestion,
    AssessmentRequest,
    AssessmentResponse,
)
from irene.services.personality_service import AssessmentError, PersonalityService

logger = structlog.get_logger("irene.api.personality")

router = APIRouter()

_personality_service = PersonalityService()


@router.get(
    "/questions",
    response_model=list[AssessmentQuestion],
    summary="List the Big-Five questionnaire items",
)
async def list_questions() -> list[AssessmentQuestion]:
    return _personality_service.QUESTIONS


@router.post(
    "/assessment",
    response_model=AssessmentResponse,
    summary="Score a completed questionnaire",
)
async def score_assessment(body: AssessmentRequest) -> AssessmentResponse:
    """Average the two answers per trait into Big-Five scores and attach a
    short plain-language summary."""
    try:
        scores = _personality_service.score_assessment(body.answers)
    except AssessmentError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    return AssessmentResponse(
        scores=scores,
        insights=_personality_service.generate_insights(scores),
    )
